import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import fitz
import pytest
from fastapi.testclient import TestClient

from api import dependencies
from api.main import app
from contract_pipeline.core.errors import RenderError, StorageError
from contract_pipeline.core.rate_limiter import SlidingWindowRateLimiter
from contract_pipeline.core.storage import BlobStorage, ContractRepository
from contract_pipeline.schema.models import Contract, ContractFilters


def pytest_configure(config):
    """Registra markers customizados para evitar warnings."""
    for marker in (
        "unit: Testes unitários do extrator e sub-parsers",
        "validation: Testes de validação de dados",
        "e2e: Testes do pipeline completo",
        "api: Testes dos endpoints HTTP",
        "contract: Testes do formato do payload",
    ):
        config.addinivalue_line("markers", marker)

# FAKES DOS COLABORADORES EXTERNOS

class InMemoryContractRepository(ContractRepository):
    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self._base = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def create(self, data: Dict[str, Any]) -> Contract:
        row = {
            **data,
            "id": str(uuid.uuid4()),
            "created_at": self._base + timedelta(days=len(self.rows)),
        }
        self.rows[row["id"]] = row
        return Contract(**row)

    def get(self, contract_id: str) -> Optional[Contract]:
        row = self.rows.get(contract_id)
        return Contract(**row) if row else None

    def update(self, contract_id: str, changes: Dict[str, Any]) -> Optional[Contract]:
        if contract_id not in self.rows:
            return None
        self.rows[contract_id].update(changes)
        return Contract(**self.rows[contract_id])

    def delete(self, contract_id: str) -> bool:
        return self.rows.pop(contract_id, None) is not None

    def list_all(self) -> List[Contract]:
        rows = sorted(self.rows.values(), key=lambda r: r["created_at"], reverse=True)
        return [Contract(**r) for r in rows]

    def filter(self, filters: ContractFilters) -> List[Contract]:
        result = []
        for contract in self.list_all():
            if filters.condominio and filters.condominio.lower() not in contract.condominio.lower():
                continue
            if filters.empresa and filters.empresa.lower() not in contract.empresa.lower():
                continue
            if filters.status and contract.status != filters.status:
                continue
            if filters.start_date and contract.created_at.date() < filters.start_date:
                continue
            if filters.end_date and contract.created_at.date() > filters.end_date:
                continue
            result.append(contract)
        return result


class FakeBlobStorage(BlobStorage):
    def __init__(self):
        self.uploads: Dict[str, bytes] = {}
        self.fail = False
        self.fail_delete = False
        self.deleted: List[str] = []

    def upload_pdf(self, file_name: str, data: bytes) -> str:
        if self.fail:
            raise StorageError("bucket indisponível")
        self.uploads[file_name] = data
        return f"https://storage.example.com/contracts-pdfs/{file_name}"

    def delete_pdf(self, file_name: str) -> None:
        if self.fail_delete:
            raise StorageError("bucket indisponível")
        self.uploads.pop(file_name, None)
        self.deleted.append(file_name)


class FakeRenderer:
    def __init__(self):
        self.rendered: List[Dict[str, Any]] = []
        self.fail = False

    def render(self, fields) -> bytes:
        if self.fail:
            raise RenderError("chromium não iniciou")
        self.rendered.append(dict(fields))
        return b"%PDF-1.4 fake contract"

# FIXTURES

@pytest.fixture
def repository():
    return InMemoryContractRepository()


@pytest.fixture
def blob_storage():
    return FakeBlobStorage()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def client(repository, blob_storage, renderer):
    app.dependency_overrides[dependencies.get_contract_repository] = lambda: repository
    app.dependency_overrides[dependencies.get_blob_storage] = lambda: blob_storage
    app.dependency_overrides[dependencies.get_renderer] = lambda: renderer
    app.dependency_overrides[dependencies.get_current_user] = lambda: None
    app.state.rate_limiter = SlidingWindowRateLimiter(max_requests=1000, window_seconds=60)

    yield TestClient(app)

    app.dependency_overrides.clear()


def make_pdf(text: str) -> bytes:
    """PDF de uma página com camada de texto (ASCII para a fonte base-14)."""
    doc = fitz.open()
    page = doc.new_page()
    if text:
        page.insert_text((72, 72), text, fontsize=10)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture(scope="session")
def proposal_text():
    """
    Texto de uma proposta comercial típica.
    Valor mensal menor que o total: exercita a política do maior valor.
    """
    return (
        "PROPOSTA COMERCIAL\n"
        "Condominio Residencial Aurora\n"
        "CNPJ: 11.222.333/0001-81\n"
        "Empresa: Limpeza Total Ltda\n"
        "CNPJ: 04.252.011/0001-10\n"
        "Valor mensal: R$ 1.250,00\n"
        "Valor total do contrato: R$ 15.000,00\n"
        "Sao Paulo, 12/06/2024\n"
    )


@pytest.fixture(scope="session")
def proposal_pdf(proposal_text):
    return make_pdf(proposal_text)


@pytest.fixture(scope="session")
def blank_pdf():
    return make_pdf("")


@pytest.fixture
def valid_fields():
    return {
        "empresa": "Limpeza Total Ltda",
        "cnpj_empresa": "04.252.011/0001-10",
        "condominio": "Residencial Aurora",
        "cnpj_condominio": "11.222.333/0001-81",
        "valor": "15.000,00",
        "data_assinatura": "2024-06-12",
    }
