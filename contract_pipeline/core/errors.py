"""
Erros de domínio do pipeline de contratos.

Cada erro carrega um `code` legível por máquina; o mapeamento para
status HTTP fica na camada de API (api/errors.py).
"""
from typing import Any, List, Optional


class ContractPipelineError(Exception):
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []
        # Trilha de eventos até a falha (preenchida pelo orquestrador)
        self.events: List[Any] = []


# Erros de entrada: nunca re-tentados automaticamente

class NoFileError(ContractPipelineError):
    code = "NO_FILE"


class InvalidFileTypeError(ContractPipelineError):
    code = "INVALID_FILE_TYPE"


class FileTooLargeError(ContractPipelineError):
    code = "FILE_TOO_LARGE"


class PDFParseError(ContractPipelineError):
    code = "PDF_PARSE_ERROR"


class NoTextContentError(ContractPipelineError):
    code = "NO_TEXT_CONTENT"


class ContractValidationError(ContractPipelineError):
    code = "VALIDATION_ERROR"


class ContractNotFoundError(ContractPipelineError):
    code = "NOT_FOUND"


class UnauthorizedError(ContractPipelineError):
    code = "UNAUTHORIZED"


class RateLimitExceededError(ContractPipelineError):
    code = "RATE_LIMITED"


# Erros de colaboradores externos

class StorageError(ContractPipelineError):
    code = "STORAGE_ERROR"


class RenderError(ContractPipelineError):
    code = "RENDER_ERROR"


class GenerationError(ContractPipelineError):
    code = "GENERATION_ERROR"
