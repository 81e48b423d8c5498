"""
FastAPI application entry point.
Handles proposal extraction, contract generation and contract CRUD:
- API validates input and dispatches
- Orchestrator makes all business decisions
- Supabase (auth, table, bucket) and Chromium are external collaborators
"""
import logging
import uuid
from datetime import date
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, File, Query, Response, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware

from contract_config import configure_logging, settings
from contract_pipeline.core.rate_limiter import SlidingWindowRateLimiter
from contract_pipeline.orchestrator import Orchestrator
from contract_pipeline.schema.models import (
    Contract,
    ContractFields,
    ContractFilters,
    ContractStatus,
    ContractUpdate,
    ExtractedFields,
)
from api.dependencies import (
    enforce_rate_limit,
    get_current_user,
    get_extract_orchestrator,
    get_orchestrator,
    validate_pdf_file,
)
from api.errors import register_error_handlers
from api.schemas import ErrorResponse, GenerateResponse, HealthResponse, StatusUpdateRequest

configure_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Extração de propostas comerciais e geração de contratos em PDF",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Estado explícito do limitador: um por app, nunca global de módulo
app.state.rate_limiter = SlidingWindowRateLimiter(
    max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
)

register_error_handlers(app)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Returns service status and basic diagnostics.
    """
    return HealthResponse(
        status="healthy",
        version=settings.APP_VERSION,
        checks={
            "api": True,
            "supabase_configured": bool(settings.SUPABASE_URL and settings.SUPABASE_KEY),
        }
    )


@app.post(
    "/api/contracts/extract",
    response_model=ExtractedFields,
    responses={**ERROR_RESPONSES, 413: {"model": ErrorResponse}, 415: {"model": ErrorResponse}},
    dependencies=[Depends(enforce_rate_limit)],
    tags=["Extraction"],
)
def extract_contract_data(
    pdf: Optional[UploadFile] = File(None, description="Proposta comercial em PDF"),
    user: Any = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_extract_orchestrator),
):
    """
    Extract contract fields from a commercial proposal.

    **Request Format (multipart/form-data):**
    - `pdf`: PDF file (max 10MB)

    **Example:**
    ```bash
    curl -X POST http://localhost:3001/api/contracts/extract \\
      -H "Authorization: Bearer $TOKEN" \\
      -F "pdf=@proposta.pdf"
    ```

    The result is a best-effort pre-fill: every field is a string, empty when not found.
    Sync route: PDF parsing runs in the threadpool, off the event loop.
    """
    pdf_bytes = validate_pdf_file(pdf)
    result = orchestrator.extract(pdf_bytes, trace_id=str(uuid.uuid4()))
    return result.payload


@app.post(
    "/api/contracts/generate",
    response_model=GenerateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**ERROR_RESPONSES, 502: {"model": ErrorResponse}},
    dependencies=[Depends(enforce_rate_limit)],
    tags=["Generation"],
)
def generate_contract(
    fields: ContractFields,
    user: Any = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """
    Validate the fields, render the contract PDF, upload it and save the contract.

    Sync route: the headless browser runs in the threadpool.
    """
    result = orchestrator.generate(fields, trace_id=str(uuid.uuid4()))
    return GenerateResponse(
        pdf_url=result.pdf_url,
        contract_id=result.contract.id,
        trace_id=result.trace_id,
    )

# CRUD de contratos

@app.get("/api/contracts", response_model=List[Contract], responses=ERROR_RESPONSES, tags=["Contracts"])
def list_contracts(
    condominio: Optional[str] = Query(None, description="Trecho do nome do condomínio"),
    empresa: Optional[str] = Query(None, description="Trecho do nome da empresa"),
    status_filter: Optional[ContractStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user: Any = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """
    Lists contracts, newest first. Any query parameter switches to filtering.
    """
    return orchestrator.list_contracts(ContractFilters(
        condominio=condominio,
        empresa=empresa,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
    ))


@app.post(
    "/api/contracts",
    response_model=Contract,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    tags=["Contracts"],
)
def create_contract(
    fields: ContractFields,
    user: Any = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    return orchestrator.create_contract(fields)


@app.get("/api/contracts/{contract_id}", response_model=Contract, responses={**ERROR_RESPONSES, 404: {"model": ErrorResponse}}, tags=["Contracts"])
def get_contract(
    contract_id: str,
    user: Any = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    return orchestrator.get_contract(contract_id)


@app.patch("/api/contracts/{contract_id}", response_model=Contract, responses={**ERROR_RESPONSES, 404: {"model": ErrorResponse}}, tags=["Contracts"])
def update_contract(
    contract_id: str,
    update: ContractUpdate,
    user: Any = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    return orchestrator.update_contract(contract_id, update)


@app.patch("/api/contracts/{contract_id}/status", response_model=Contract, responses={**ERROR_RESPONSES, 404: {"model": ErrorResponse}}, tags=["Contracts"])
def update_contract_status(
    contract_id: str,
    body: StatusUpdateRequest,
    user: Any = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    return orchestrator.update_status(contract_id, body.status)


@app.delete("/api/contracts/{contract_id}", status_code=status.HTTP_204_NO_CONTENT, responses={**ERROR_RESPONSES, 404: {"model": ErrorResponse}}, tags=["Contracts"])
def delete_contract(
    contract_id: str,
    user: Any = Depends(get_current_user),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    orchestrator.delete_contract(contract_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG
    )
