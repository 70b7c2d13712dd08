"""Application configuration using Pydantic v2 Settings.

Centralized configuration that loads from environment variables once at
process start. The resulting Settings object is frozen and handed to each
component by the ComponentFactory.
"""

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults and can be overridden via
    environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Language model
    llm_provider: str = Field(
        default="openai",
        description="Language model provider used for field extraction: 'openai'.",
    )
    openai_api_key: str = Field(
        default="",
        description="API key for the OpenAI-compatible chat completion endpoint.",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Optional custom base URL (e.g. OpenRouter).",
    )
    llm_chat_model: str = Field(
        default="gpt-4o-mini",
        description="Chat model used for field extraction.",
    )
    llm_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for field extraction.",
    )
    llm_max_output_tokens: int = Field(
        default=4000,
        gt=0,
        description="Maximum length of the model response.",
    )
    extraction_timeout_seconds: float = Field(
        default=45.0,
        gt=0,
        description="Budget for a single extraction call to the model.",
    )

    # Compilation
    compiler_engines: list[str] = Field(
        default=["tectonic-local", "tectonic", "pdflatex"],
        description="Ordered engine names tried by the compiler chain.",
    )
    tectonic_local_path: Path = Field(
        default=Path("./bin/tectonic"),
        description="Path of the bundled Tectonic binary tried first.",
    )
    compile_timeout_seconds: float = Field(
        default=45.0,
        gt=0,
        description="Per-attempt timeout; generous to allow first-run package fetches.",
    )
    compile_backoff_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Pause between a failed engine and the next candidate.",
    )
    log_tail_chars: int = Field(
        default=3000,
        gt=0,
        description="Characters of compiler output kept per attempt.",
    )
    document_basename: str = Field(
        default="resume",
        description="Basename of the materialized .tex source and .pdf artifact.",
    )
    attachment_filename: str = Field(
        default="resume.pdf",
        description="Filename offered to clients for the generated PDF.",
    )

    # Workspaces
    workspace_root: Path | None = Field(
        default=None,
        description="Parent directory for scratch workspaces (system temp if unset).",
    )
    workspace_prefix: str = Field(
        default="latex-",
        description="Name prefix of scratch workspaces.",
    )
    workspace_cleanup_retries: int = Field(
        default=3,
        ge=1,
        description="Removal attempts before a workspace is abandoned.",
    )
    workspace_cleanup_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay between workspace removal attempts.",
    )

    # HTTP
    max_template_bytes: int = Field(
        default=200 * 1024,
        gt=0,
        description="Largest accepted template body.",
    )
    cors_origins: list[str] = Field(
        default=["*"],
        description="Origins allowed by the CORS middleware.",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR.",
    )
    log_dir: Path = Field(
        default=Path("logs"),
        description="Directory for info.log and error.log.",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        return v.upper()

    @field_validator("compiler_engines")
    @classmethod
    def require_engines(cls, v: list[str]) -> list[str]:
        """Reject an empty compiler chain."""
        if not v:
            raise ValueError("compiler_engines must name at least one engine")
        return v

    @field_validator("document_basename")
    @classmethod
    def plain_basename(cls, v: str) -> str:
        """Keep the document basename a bare filename."""
        if not v or "/" in v or "\\" in v or v.startswith("."):
            raise ValueError("document_basename must be a plain file name")
        return v

    def configure_logging(self) -> None:
        """Configure global logging based on settings."""
        import structlog

        level = getattr(logging, self.log_level, logging.INFO)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(
            format="%(message)s",
            level=level,
        )

        logger.setLevel(level)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global Settings instance.

    Returns:
        The singleton Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.configure_logging()
    return _settings
