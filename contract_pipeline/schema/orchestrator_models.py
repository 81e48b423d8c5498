from typing import List, Optional, Dict, Literal, Any
from datetime import datetime
from pydantic import BaseModel, Field
from .models import Contract, ExtractedFields

Stage = Literal["READ", "PARSE", "VALIDATE", "RENDER", "UPLOAD", "PERSIST"]


class OrchestratorEvent(BaseModel):
    """
    Representa um evento imutável ocorrido durante o pipeline.
    Usado para Observabilidade e trilha de auditoria.
    """
    timestamp: datetime = Field(default_factory=datetime.now)
    stage: Stage
    status: Literal["SUCCESS", "FAILURE"]
    # Details deve ser flat e serializável, nunca com conteúdo do documento
    details: Dict[str, Any] = Field(default_factory=dict)
    error_policy: Literal["ABORT", "CONTINUE"] = "ABORT"


class PipelineResult(BaseModel):
    """
    Resultado da extração (READ -> PARSE).
    Payload só existe se status == success.
    """
    trace_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: Literal["success", "error"]
    events: List[OrchestratorEvent] = Field(default_factory=list)
    payload: Optional[ExtractedFields] = None
    # Metadados brutos (hash, tamanho, páginas)
    raw_metadata: Dict[str, Any] = Field(default_factory=dict)


class GenerationResult(BaseModel):
    """
    Resultado da geração (VALIDATE -> RENDER -> UPLOAD -> PERSIST).
    """
    trace_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: Literal["success", "error"]
    events: List[OrchestratorEvent] = Field(default_factory=list)
    pdf_url: Optional[str] = None
    contract: Optional[Contract] = None
