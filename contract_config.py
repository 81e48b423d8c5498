"""
Centralized configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""
import logging
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    APP_NAME: str = "contract-generator"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3001
    API_MAX_UPLOAD_SIZE_MB: int = 10
    FRONTEND_URL: str = "http://localhost:3000"

    # Security
    ALLOWED_CONTENT_TYPES: list[str] = ["application/pdf"]
    AUTH_ENABLED: bool = True

    # Rate limit (por cliente, janela deslizante)
    RATE_LIMIT_MAX_REQUESTS: int = 10
    RATE_LIMIT_WINDOW_SECONDS: float = 60.0

    # Extraction
    MIN_TEXT_LENGTH: int = 50
    EXTRACTION_CONTEXT_WINDOW: int = 100
    EXTRACTION_AMOUNT_STRATEGY: Literal["largest", "first"] = "largest"
    EXTRACTION_DEFAULT_TAX_ID_SLOT: Literal["entity", "company"] = "entity"

    # Validation
    CNPJ_CHECK_DIGITS: bool = False

    # Supabase (auth, tabela de contratos e storage)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None
    SUPABASE_BUCKET_NAME: str = "contracts-pdfs"
    CONTRACTS_TABLE: str = "contracts"

    # Rendering
    PDF_FORMAT: str = "A4"
    PDF_MARGIN_MM: int = 20
    RENDER_TIMEOUT_MS: int = 30000

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes."""
        return self.API_MAX_UPLOAD_SIZE_MB * 1024 * 1024


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    )


# Global settings instance
settings = Settings()
