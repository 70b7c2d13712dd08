"""API request and response schemas.

Pydantic v2 models for API serialization/deserialization.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Re-exported so API clients can import every payload type from one place
from texfill.strategies.template_engine import FieldDescriptor, TemplateValidation


# =============================================================================
# Error Schemas
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(description="Error message")
    error_code: str | None = Field(default=None, description="Application-specific error code")
    troubleshooting: list[str] = Field(
        default_factory=list, description="Ordered hints for resolving the error"
    )
    extra: dict[str, Any] | None = Field(default=None, description="Additional error context")


# =============================================================================
# Extraction Schemas
# =============================================================================


class ExtractionMeta(BaseModel):
    """Statistics about a schema extraction."""

    total_found: int = Field(description="Entries in the model response")
    valid_fields: int = Field(description="Entries that passed validation")
    extracted_at: datetime


class SchemaExtractionResponse(BaseModel):
    """Fields extracted from an uploaded template."""

    model_config = ConfigDict(populate_by_name=True)

    field_schema: list[FieldDescriptor] = Field(
        alias="schema", description="Fillable fields in extraction order"
    )
    meta: ExtractionMeta


# =============================================================================
# Generation Schemas
# =============================================================================


class GenerateRequest(BaseModel):
    """Request to fill a template and compile it to PDF."""

    template: str = Field(min_length=1, description="Raw LaTeX template")
    values: dict[str, Any] = Field(description="Field id to value mapping")
    fields: list[FieldDescriptor] | None = Field(
        default=None,
        description="Optional field schema; value ids outside it are ignored",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "template": "\\documentclass{article}\n\\newcommand{\\name}{John Doe}\n"
                "\\begin{document}\\name\\end{document}",
                "values": {"name": "Jane Smith"},
            }
        }
    )


# =============================================================================
# Health Schemas
# =============================================================================


class HealthResponse(BaseModel):
    """Liveness information."""

    status: str
    service: str
    version: str
    timestamp: datetime


class LLMConnectivityResponse(BaseModel):
    """Result of a round trip to the language model."""

    success: bool
    model: str
    response: str
    response_time_ms: int


class EngineStatus(BaseModel):
    """Availability of one compiler engine."""

    name: str
    available: bool
    version: str | None = None
    error: str | None = None


class CompilerStatusResponse(BaseModel):
    """Availability of every configured compiler engine."""

    engines: list[EngineStatus]
    available_count: int


__all__ = [
    "CompilerStatusResponse",
    "EngineStatus",
    "ErrorResponse",
    "ExtractionMeta",
    "FieldDescriptor",
    "GenerateRequest",
    "HealthResponse",
    "LLMConnectivityResponse",
    "SchemaExtractionResponse",
    "TemplateValidation",
]
