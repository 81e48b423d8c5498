from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator


class ExtractedFields(BaseModel): ##     Pré-preenchimento do formulário, nunca None
    empresa: str = ""
    cnpj_empresa: str = ""
    condominio: str = ""
    cnpj_condominio: str = ""
    valor: str = ""
    data_assinatura: str = ""


class ContractStatus(str, Enum):
    PENDING = "pending"
    GENERATED = "generated"
    SIGNED = "signed"
    CANCELLED = "cancelled"


class ContractFields(ExtractedFields):
    """
    Campos editados pelo usuário antes de gerar/salvar.
    Strings livres: a regra de negócio fica em validate_contract_fields.
    """


class ContractUpdate(BaseModel): ##     PATCH parcial, só campos enviados
    empresa: Optional[str] = None
    cnpj_empresa: Optional[str] = None
    condominio: Optional[str] = None
    cnpj_condominio: Optional[str] = None
    valor: Optional[str] = None
    data_assinatura: Optional[str] = None
    pdf_url: Optional[str] = None
    status: Optional[ContractStatus] = None


class Contract(BaseModel): ##     Linha persistida na tabela contracts
    id: str
    empresa: str = ""
    cnpj_empresa: str = ""
    condominio: str
    cnpj_condominio: str
    valor: str
    data_assinatura: str
    pdf_url: Optional[str] = None
    status: ContractStatus = ContractStatus.PENDING
    created_at: datetime

    @field_validator("empresa", "cnpj_empresa", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        """Colunas opcionais chegam como null do Postgres."""
        return "" if v is None else v


class ContractFilters(BaseModel):
    condominio: Optional[str] = None
    empresa: Optional[str] = None
    status: Optional[ContractStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def is_empty(self) -> bool:
        return not any(v is not None and v != "" for v in self.model_dump().values())


class ValidationIssue(BaseModel):
    field: str
    message: str
