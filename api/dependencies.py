"""
FastAPI dependency injection utilities.
Handles collaborator wiring, authentication, rate limiting and upload validation.
"""
import logging
from functools import lru_cache
from typing import Any, Optional

from fastapi import Depends, Header, Request, UploadFile
from supabase import Client

from contract_config import settings
from contract_pipeline.core.errors import (
    FileTooLargeError,
    InvalidFileTypeError,
    NoFileError,
    RateLimitExceededError,
    UnauthorizedError,
)
from contract_pipeline.core.rate_limiter import SlidingWindowRateLimiter
from contract_pipeline.core.renderer import ContractRenderer, build_renderer
from contract_pipeline.core.rules import ExtractionPolicy
from contract_pipeline.core.storage import (
    BlobStorage,
    ContractRepository,
    SupabaseBlobStorage,
    SupabaseContractRepository,
    create_supabase_client,
)
from contract_pipeline.orchestrator import Orchestrator

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    return create_supabase_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


def get_contract_repository(client: Client = Depends(get_supabase_client)) -> ContractRepository:
    return SupabaseContractRepository(client, table=settings.CONTRACTS_TABLE)


def get_blob_storage(client: Client = Depends(get_supabase_client)) -> BlobStorage:
    return SupabaseBlobStorage(client, bucket=settings.SUPABASE_BUCKET_NAME)


@lru_cache(maxsize=1)
def get_renderer() -> ContractRenderer:
    return build_renderer(settings)


def get_extraction_policy() -> ExtractionPolicy:
    return ExtractionPolicy(
        context_window=settings.EXTRACTION_CONTEXT_WINDOW,
        amount_strategy=settings.EXTRACTION_AMOUNT_STRATEGY,
        default_tax_id_slot=settings.EXTRACTION_DEFAULT_TAX_ID_SLOT,
    )


def get_orchestrator(
    repository: ContractRepository = Depends(get_contract_repository),
    storage: BlobStorage = Depends(get_blob_storage),
    renderer: ContractRenderer = Depends(get_renderer),
    policy: ExtractionPolicy = Depends(get_extraction_policy),
) -> Orchestrator:
    return Orchestrator(
        repository=repository,
        storage=storage,
        renderer=renderer,
        policy=policy,
        min_text_length=settings.MIN_TEXT_LENGTH,
        check_digits=settings.CNPJ_CHECK_DIGITS,
    )


def get_extract_orchestrator(
    policy: ExtractionPolicy = Depends(get_extraction_policy),
) -> Orchestrator:
    """Extração não toca no Supabase: dispensa repository/storage."""
    return Orchestrator(
        repository=None,
        storage=None,
        renderer=None,
        policy=policy,
        min_text_length=settings.MIN_TEXT_LENGTH,
        check_digits=settings.CNPJ_CHECK_DIGITS,
    )


def get_current_user(authorization: Optional[str] = Header(default=None)) -> Optional[Any]:
    """
    Delega a verificação da sessão ao Supabase Auth.
    Com AUTH_ENABLED=false retorna None (ambiente local).
    """
    if not settings.AUTH_ENABLED:
        return None

    if not authorization or not authorization.lower().startswith("bearer "):
        raise UnauthorizedError("Unauthorized")

    token = authorization.split(" ", 1)[1].strip()
    try:
        response = get_supabase_client().auth.get_user(token)
    except Exception as e:
        logger.warning("Falha ao validar sessão: %s", e)
        raise UnauthorizedError("Unauthorized") from e

    user = getattr(response, "user", None)
    if user is None:
        raise UnauthorizedError("Unauthorized")
    return user


def get_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    return request.app.state.rate_limiter


def enforce_rate_limit(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> None:
    client_key = request.client.host if request.client else "anonymous"
    if not limiter.hit(client_key):
        error = RateLimitExceededError("Too many requests, try again later")
        error.headers = {"Retry-After": str(int(limiter.retry_after(client_key)) + 1)}
        raise error


def validate_pdf_file(file: Optional[UploadFile]) -> bytes:
    """
    Validate uploaded PDF file.

    Args:
        file: Uploaded file from multipart form

    Returns:
        File bytes

    Raises:
        NoFileError, InvalidFileTypeError, FileTooLargeError
    """
    if file is None or not file.filename:
        raise NoFileError("Nenhum arquivo PDF foi enviado")

    # Check content type
    if file.content_type not in settings.ALLOWED_CONTENT_TYPES:
        raise InvalidFileTypeError(
            f"Invalid content type. Expected: {settings.ALLOWED_CONTENT_TYPES}"
        )

    # Read file
    content = file.file.read()

    if not content:
        raise NoFileError("Arquivo vazio")

    # Check size
    if len(content) > settings.max_upload_size_bytes:
        raise FileTooLargeError(
            f"File too large. Max size: {settings.API_MAX_UPLOAD_SIZE_MB}MB"
        )

    # Basic PDF magic number check
    if not content.startswith(b'%PDF'):
        raise InvalidFileTypeError("Invalid PDF file format")

    return content
