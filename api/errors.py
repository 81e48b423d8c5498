"""
Mapeamento de erros de domínio para respostas HTTP.
"""
import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from contract_config import settings
from contract_pipeline.core.errors import ContractPipelineError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "NO_FILE": status.HTTP_400_BAD_REQUEST,
    "INVALID_FILE_TYPE": status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    "FILE_TOO_LARGE": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    "PDF_PARSE_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "NO_TEXT_CONTENT": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "VALIDATION_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "RATE_LIMITED": status.HTTP_429_TOO_MANY_REQUESTS,
    "GENERATION_ERROR": status.HTTP_502_BAD_GATEWAY,
    "STORAGE_ERROR": status.HTTP_502_BAD_GATEWAY,
    "RENDER_ERROR": status.HTTP_502_BAD_GATEWAY,
}

# Falhas de colaboradores: mensagem genérica fora de DEBUG
UPSTREAM_CODES = {"GENERATION_ERROR", "STORAGE_ERROR", "RENDER_ERROR"}


def _body(code: str, message: str, details=None, exc: Exception = None) -> dict:
    body = {"error": code, "message": message, "details": details or []}
    if exc is not None and settings.DEBUG:
        body["trace"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


async def pipeline_error_handler(request: Request, exc: ContractPipelineError):
    status_code = STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = getattr(exc, "headers", None)

    if exc.code in UPSTREAM_CODES or status_code >= 500:
        logger.error("%s em %s: %s", exc.code, request.url.path, exc.message)
        message = exc.message if settings.DEBUG else "Erro ao processar a requisição"
        return JSONResponse(status_code=status_code, content=_body(exc.code, message, exc=exc), headers=headers)

    logger.warning("%s em %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=_body(exc.code, exc.message, exc.details), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_body("VALIDATION_ERROR", "Dados da requisição inválidos", details),
    )


async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unexpected errors.
    """
    logger.exception("Erro inesperado em %s", request.url.path)
    message = str(exc) if settings.DEBUG else "An unexpected error occurred"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_body("INTERNAL_ERROR", message, exc=exc),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ContractPipelineError, pipeline_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, global_exception_handler)
