"""
Pydantic schemas for API contracts.
Separates transport payloads from domain models.
"""
from typing import Optional, Literal, Dict, Any, List
from datetime import datetime
from pydantic import BaseModel, Field

from contract_pipeline.schema.models import ContractStatus


class GenerateResponse(BaseModel):
    """
    Response for a generated contract.
    """
    pdf_url: str
    contract_id: str
    message: str = "Contrato gerado com sucesso"
    trace_id: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: ContractStatus


class ErrorResponse(BaseModel):
    """
    Standard error body: machine-readable code + human-readable message.
    """
    error: str
    message: str
    details: List[Any] = Field(default_factory=list)
    trace: Optional[str] = None


class HealthResponse(BaseModel):
    """
    Health check response.
    """
    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    timestamp: datetime = Field(default_factory=datetime.now)
    checks: Dict[str, bool] = Field(default_factory=dict)
