import hashlib
import logging
import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from .core.errors import (
    ContractNotFoundError,
    ContractPipelineError,
    ContractValidationError,
    GenerationError,
    NoTextContentError,
    PDFParseError,
)
from .core.extractor import extract
from .core.pdf_reader import pdf_bytes_to_text
from .core.renderer import ContractRenderer
from .core.rules import DEFAULT_POLICY, ExtractionPolicy
from .core.storage import BlobStorage, ContractRepository, build_pdf_file_name
from .core.validators import parse_signature_date, validate_contract_fields
from .schema.models import Contract, ContractFields, ContractFilters, ContractStatus, ContractUpdate
from .schema.orchestrator_models import GenerationResult, OrchestratorEvent, PipelineResult

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Coordenador do pipeline de contratos.
    Extração: READ -> PARSE.
    Geração: VALIDATE -> RENDER -> UPLOAD -> PERSIST.
    Cada estágio gera um evento; falhas levantam erro tipado com a trilha anexada.
    """

    def __init__(
        self,
        repository: Optional[ContractRepository],
        storage: Optional[BlobStorage],
        renderer: Optional[ContractRenderer],
        policy: ExtractionPolicy = DEFAULT_POLICY,
        min_text_length: int = 50,
        check_digits: bool = False,
    ):
        self.repository = repository
        self.storage = storage
        self.renderer = renderer
        self.policy = policy
        self.min_text_length = min_text_length
        self.check_digits = check_digits

    def _calculate_hash(self, data: Union[str, bytes]) -> str:
        """Gera SHA-256 determinístico do conteúdo."""
        if isinstance(data, str):
            content = data.encode('utf-8')
        else:
            content = data
        return hashlib.sha256(content).hexdigest()

    def _record(self, result, trace_id: str, stage: str, status: str,
                details: Dict[str, Any], error_policy: str = "CONTINUE") -> None:
        event = OrchestratorEvent(stage=stage, status=status, details=details, error_policy=error_policy)
        result.events.append(event)
        log = logger.info if status == "SUCCESS" else logger.warning
        log("[%s] %s %s %s", trace_id, stage, status, details)

    def _fail(self, result, trace_id: str, stage: str, error: ContractPipelineError,
              details: Optional[Dict[str, Any]] = None) -> ContractPipelineError:
        self._record(result, trace_id, stage, "FAILURE",
                     {"error": error.message, "code": error.code, **(details or {})}, error_policy="ABORT")
        result.status = "error"
        result.end_time = datetime.now()
        error.events = list(result.events)
        return error

    def _discard_pdf(self, file_name: str) -> bool:
        """Best-effort: o PDF já enviado não pode ficar sem registro."""
        try:
            self.storage.delete_pdf(file_name)
        except Exception as e:
            logger.warning("PDF órfão no bucket, remoção falhou: %s (%s)", file_name, e)
            return False
        return True

    # EXTRAÇÃO

    def extract(self, pdf_bytes: bytes, trace_id: Optional[str] = None) -> PipelineResult:
        trace_id = trace_id or str(uuid.uuid4())
        result = PipelineResult(
            trace_id=trace_id,
            start_time=datetime.now(),
            status="error", # Pessimista por padrão
        )

        # 1. READ
        start_read = time.time()
        try:
            pdf_result = pdf_bytes_to_text(pdf_bytes)
        except PDFParseError as e:
            raise self._fail(result, trace_id, "READ", e)
        except Exception as e:
            raise self._fail(result, trace_id, "READ", PDFParseError(f"Falha ao ler o PDF: {e}")) from e

        result.raw_metadata = {
            "input_hash_sha256": self._calculate_hash(pdf_bytes),
            "file_size_bytes": pdf_result.size_bytes,
            "page_count": pdf_result.page_count,
        }

        text_length = len(pdf_result.text.strip())
        if text_length < self.min_text_length:
            # PDF escaneado (só imagem) não tem camada de texto
            raise self._fail(result, trace_id, "READ", NoTextContentError(
                f"PDF sem conteúdo de texto extraível ({text_length} caracteres)"
            ))

        self._record(result, trace_id, "READ", "SUCCESS", {
            "duration_sec": round(time.time() - start_read, 4),
            "page_count": pdf_result.page_count,
            "text_length": text_length,
            "extraction_method": pdf_result.extraction_method,
        })

        # 2. PARSE (extract nunca lança)
        start_parse = time.time()
        fields = extract(pdf_result.text, self.policy)

        self._record(result, trace_id, "PARSE", "SUCCESS", {
            "duration_sec": round(time.time() - start_parse, 4),
            "fields_found": sorted(k for k, v in fields.model_dump().items() if v),
        })

        result.payload = fields
        result.status = "success"
        result.end_time = datetime.now()
        return result

    # GERAÇÃO

    def _clean(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Valida e normaliza (strip, data em ISO). Levanta ContractValidationError."""
        issues = validate_contract_fields(data, check_digits=self.check_digits)
        if issues:
            raise ContractValidationError(
                "Dados do contrato inválidos",
                details=[issue.model_dump() for issue in issues],
            )

        clean = {k: (str(v).strip() if v is not None else "") for k, v in data.items()}
        clean["data_assinatura"] = parse_signature_date(clean["data_assinatura"]).isoformat()
        return clean

    def generate(self, fields: ContractFields, trace_id: Optional[str] = None) -> GenerationResult:
        trace_id = trace_id or str(uuid.uuid4())
        result = GenerationResult(trace_id=trace_id, start_time=datetime.now(), status="error")

        # VALIDATE
        try:
            data = self._clean(fields.model_dump())
        except ContractValidationError as e:
            raise self._fail(result, trace_id, "VALIDATE", e)
        self._record(result, trace_id, "VALIDATE", "SUCCESS", {"issues": 0})

        # RENDER
        start = time.time()
        try:
            pdf_bytes = self.renderer.render(data)
        except Exception as e:
            raise self._fail(result, trace_id, "RENDER", GenerationError(f"Erro ao gerar o contrato: {e}")) from e
        self._record(result, trace_id, "RENDER", "SUCCESS", {
            "duration_sec": round(time.time() - start, 4),
            "pdf_size_bytes": len(pdf_bytes),
        })

        # UPLOAD
        file_name = build_pdf_file_name(data["condominio"])
        try:
            pdf_url = self.storage.upload_pdf(file_name, pdf_bytes)
        except Exception as e:
            raise self._fail(result, trace_id, "UPLOAD", GenerationError(f"Erro ao fazer upload: {e}")) from e
        self._record(result, trace_id, "UPLOAD", "SUCCESS", {"file_name": file_name})

        # PERSIST
        try:
            contract = self.repository.create({
                **data,
                "pdf_url": pdf_url,
                "status": ContractStatus.GENERATED.value,
            })
        except Exception as e:
            orphan_removed = self._discard_pdf(file_name)
            raise self._fail(
                result, trace_id, "PERSIST",
                GenerationError(f"Erro ao salvar o contrato: {e}"),
                {"file_name": file_name, "orphan_removed": orphan_removed},
            ) from e
        self._record(result, trace_id, "PERSIST", "SUCCESS", {"contract_id": contract.id})

        result.pdf_url = pdf_url
        result.contract = contract
        result.status = "success"
        result.end_time = datetime.now()
        return result

    # CRUD

    def create_contract(self, fields: ContractFields) -> Contract:
        data = self._clean(fields.model_dump())
        contract = self.repository.create({**data, "status": ContractStatus.PENDING.value})
        logger.info("Contrato %s criado (pending)", contract.id)
        return contract

    def list_contracts(self, filters: Optional[ContractFilters] = None) -> List[Contract]:
        """Mais recentes primeiro; qualquer filtro preenchido troca para filter()."""
        if filters is None or filters.is_empty():
            return self.repository.list_all()
        return self.repository.filter(filters)

    def get_contract(self, contract_id: str) -> Contract:
        contract = self.repository.get(contract_id)
        if contract is None:
            raise ContractNotFoundError(f"Contrato {contract_id} não encontrado")
        return contract

    def update_contract(self, contract_id: str, update: ContractUpdate) -> Contract:
        """Atualização parcial; o registro resultante é validado por inteiro."""
        current = self.get_contract(contract_id)
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return current

        field_names = set(ContractFields.model_fields)
        merged = {**current.model_dump(include=field_names), **{k: v for k, v in changes.items() if k in field_names}}
        clean = self._clean(merged)

        payload = {k: clean[k] for k in changes if k in field_names}
        if "pdf_url" in changes:
            payload["pdf_url"] = changes["pdf_url"]
        if "status" in changes:
            payload["status"] = ContractStatus(changes["status"]).value

        updated = self.repository.update(contract_id, payload)
        if updated is None:
            raise ContractNotFoundError(f"Contrato {contract_id} não encontrado")
        return updated

    def update_status(self, contract_id: str, status: ContractStatus) -> Contract:
        updated = self.repository.update(contract_id, {"status": ContractStatus(status).value})
        if updated is None:
            raise ContractNotFoundError(f"Contrato {contract_id} não encontrado")
        logger.info("Contrato %s -> %s", contract_id, ContractStatus(status).value)
        return updated

    def delete_contract(self, contract_id: str) -> None:
        if not self.repository.delete(contract_id):
            raise ContractNotFoundError(f"Contrato {contract_id} não encontrado")
        logger.info("Contrato %s excluído", contract_id)
