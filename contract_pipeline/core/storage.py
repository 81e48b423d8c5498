"""
Gateways de armazenamento (Supabase).

- SupabaseBlobStorage: upload do PDF gerado e URL pública
- SupabaseContractRepository: CRUD da tabela de contratos

Ambos recebem o client pronto; nenhum estado global.
"""
import logging
import re
import unicodedata
from abc import ABC, abstractmethod
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from ..schema.models import Contract, ContractFilters
from .errors import StorageError

logger = logging.getLogger(__name__)


def create_supabase_client(url: Optional[str], key: Optional[str]) -> Client:
    if not url or not key:
        raise StorageError("Supabase não configurado (SUPABASE_URL / SUPABASE_KEY)")
    return create_client(url, key)


def build_pdf_file_name(condominio: str, now: Optional[datetime] = None) -> str:
    """contract-<millis>-<condominio-sem-acentos>.pdf"""
    now = now or datetime.now(timezone.utc)
    ascii_name = unicodedata.normalize("NFKD", condominio or "").encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r'[^A-Za-z0-9]+', '-', ascii_name).strip('-') or "contrato"
    return f"contract-{int(now.timestamp() * 1000)}-{slug}.pdf"


class BlobStorage(ABC):
    """Port: armazenamento de objetos com URL pública."""

    @abstractmethod
    def upload_pdf(self, file_name: str, data: bytes) -> str:
        """Envia o PDF e retorna a URL pública durável."""
        ...

    @abstractmethod
    def delete_pdf(self, file_name: str) -> None:
        """Remove o PDF do bucket (limpeza quando o registro não foi salvo)."""
        ...


class ContractRepository(ABC):
    """Port: persistência dos contratos."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Contract: ...

    @abstractmethod
    def get(self, contract_id: str) -> Optional[Contract]: ...

    @abstractmethod
    def update(self, contract_id: str, changes: Dict[str, Any]) -> Optional[Contract]: ...

    @abstractmethod
    def delete(self, contract_id: str) -> bool: ...

    @abstractmethod
    def list_all(self) -> List[Contract]: ...

    @abstractmethod
    def filter(self, filters: ContractFilters) -> List[Contract]: ...


class SupabaseBlobStorage(BlobStorage):
    def __init__(self, client: Client, bucket: str):
        self.client = client
        self.bucket = bucket

    def upload_pdf(self, file_name: str, data: bytes) -> str:
        try:
            bucket = self.client.storage.from_(self.bucket)
            bucket.upload(
                file_name,
                data,
                file_options={"content-type": "application/pdf", "cache-control": "3600"},
            )
            url = bucket.get_public_url(file_name)
        except Exception as e:
            raise StorageError(f"Erro ao fazer upload: {e}") from e

        logger.info("PDF enviado ao bucket %s: %s", self.bucket, file_name)
        return url

    def delete_pdf(self, file_name: str) -> None:
        try:
            self.client.storage.from_(self.bucket).remove([file_name])
        except Exception as e:
            raise StorageError(f"Erro ao remover {file_name}: {e}") from e
        logger.info("PDF removido do bucket %s: %s", self.bucket, file_name)


class SupabaseContractRepository(ContractRepository):
    """
    Tabela esperada: contracts
    Colunas: id (uuid, default), empresa, cnpj_empresa, condominio, cnpj_condominio,
             valor, data_assinatura, pdf_url, status, created_at (default now())
    """

    def __init__(self, client: Client, table: str = "contracts"):
        self.client = client
        self.table = table

    def _query(self):
        return self.client.table(self.table)

    def _execute(self, query, action: str) -> List[Dict[str, Any]]:
        try:
            res = query.execute()
        except Exception as e:
            raise StorageError(f"Erro ao {action} contrato: {e}") from e
        return res.data or []

    def create(self, data: Dict[str, Any]) -> Contract:
        rows = self._execute(self._query().insert(data), "criar")
        if not rows:
            raise StorageError("Inserção não retornou o contrato criado")
        return Contract(**rows[0])

    def get(self, contract_id: str) -> Optional[Contract]:
        rows = self._execute(self._query().select("*").eq("id", contract_id).limit(1), "buscar")
        return Contract(**rows[0]) if rows else None

    def update(self, contract_id: str, changes: Dict[str, Any]) -> Optional[Contract]:
        rows = self._execute(self._query().update(changes).eq("id", contract_id), "atualizar")
        return Contract(**rows[0]) if rows else None

    def delete(self, contract_id: str) -> bool:
        rows = self._execute(self._query().delete().eq("id", contract_id), "excluir")
        return bool(rows)

    def list_all(self) -> List[Contract]:
        rows = self._execute(self._query().select("*").order("created_at", desc=True), "listar")
        return [Contract(**row) for row in rows]

    def filter(self, filters: ContractFilters) -> List[Contract]:
        query = self._query().select("*")

        if filters.start_date:
            query = query.gte("created_at", datetime.combine(filters.start_date, time.min).isoformat())
        if filters.end_date:
            query = query.lte("created_at", datetime.combine(filters.end_date, time.max).isoformat())
        if filters.condominio:
            query = query.ilike("condominio", f"%{filters.condominio}%")
        if filters.empresa:
            query = query.ilike("empresa", f"%{filters.empresa}%")
        if filters.status:
            query = query.eq("status", filters.status.value)

        rows = self._execute(query.order("created_at", desc=True), "filtrar")
        return [Contract(**row) for row in rows]
