"""Template API routes.

Handles template validation, field schema extraction and PDF generation.
Domain errors propagate to the application's exception handler, which turns
them into structured ErrorResponse payloads.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status
from fastapi.responses import Response

from texfill.api.deps import (
    decode_template,
    get_app_settings,
    get_factory,
    get_schema_extractor,
    get_template_text,
)
from texfill.api.schemas import (
    ErrorResponse,
    ExtractionMeta,
    GenerateRequest,
    SchemaExtractionResponse,
)
from texfill.core.config import Settings
from texfill.core.exceptions import TexFillError
from texfill.core.factory import ComponentFactory
from texfill.interfaces.template import BaseSchemaExtractor
from texfill.strategies.template_engine import TemplateValidation, validate_template

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/templates", tags=["templates"])

TEXT_BODY = {
    "requestBody": {
        "content": {"text/plain": {"schema": {"type": "string"}}},
        "required": True,
    }
}

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "/validate",
    response_model=TemplateValidation,
    status_code=status.HTTP_200_OK,
    openapi_extra=TEXT_BODY,
)
async def validate_latex(latex: str = Depends(get_template_text)) -> TemplateValidation:
    """Check a LaTeX template for required structure and common issues."""
    return validate_template(latex)


@router.post(
    "/extract",
    response_model=SchemaExtractionResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
    openapi_extra=TEXT_BODY,
)
async def extract_schema(
    latex: str = Depends(get_template_text),
    extractor: BaseSchemaExtractor = Depends(get_schema_extractor),
) -> SchemaExtractionResponse:
    """Extract the fillable fields of a LaTeX template sent as text/plain.

    Args:
        latex: The raw template.
        extractor: The schema extractor.

    Returns:
        SchemaExtractionResponse with the ordered field list.

    Raises:
        HTTPException: If the body is empty, too large or not UTF-8.
    """
    return await _run_extraction(latex, extractor)


@router.post(
    "/extract/upload",
    response_model=SchemaExtractionResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def extract_schema_upload(
    file: UploadFile,
    settings: Settings = Depends(get_app_settings),
    extractor: BaseSchemaExtractor = Depends(get_schema_extractor),
) -> SchemaExtractionResponse:
    """Extract the fillable fields of an uploaded .tex file.

    Args:
        file: The LaTeX template (.tex).
        settings: Application settings.
        extractor: The schema extractor.

    Returns:
        SchemaExtractionResponse with the ordered field list.

    Raises:
        HTTPException: If the file type is unsupported or the content invalid.
    """
    if not file.filename or not file.filename.lower().endswith(".tex"):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Only .tex files are supported",
        )

    latex = decode_template(await file.read(), settings)
    logger.info(f"Received template upload: {file.filename} ({len(latex)} chars)")
    return await _run_extraction(latex, extractor)


@router.post(
    "/generate",
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}, "description": "The compiled PDF"},
        **ERROR_RESPONSES,
    },
)
async def generate_pdf(
    payload: GenerateRequest,
    factory: ComponentFactory = Depends(get_factory),
) -> Response:
    """Fill a template with values and compile it to PDF.

    Args:
        payload: Template, values and optional field schema.
        factory: Component factory.

    Returns:
        The PDF as an attachment.

    Raises:
        HTTPException: If the template is too large or generation fails
            unexpectedly.
    """
    settings = factory.settings
    if len(payload.template.encode("utf-8")) > settings.max_template_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Template exceeds {settings.max_template_bytes} bytes",
        )

    try:
        document = await factory.get_pipeline().generate(
            payload.template, payload.values, payload.fields
        )
    except TexFillError:
        raise
    except Exception as e:
        logger.error(f"PDF generation failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error processing template: {e}",
        ) from e

    return Response(
        content=document.pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{document.filename}"',
            "X-Compiler-Engine": document.engine_name,
        },
    )


async def _run_extraction(
    latex: str, extractor: BaseSchemaExtractor
) -> SchemaExtractionResponse:
    try:
        logger.info("Starting schema extraction")
        schema = await extractor.extract(latex)
    except TexFillError:
        raise
    except Exception as e:
        logger.error(f"Schema extraction failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"AI extraction failed: {e}",
        ) from e

    return SchemaExtractionResponse(
        field_schema=schema.fields,
        meta=ExtractionMeta(
            total_found=schema.candidates_found,
            valid_fields=len(schema.fields),
            extracted_at=datetime.now(timezone.utc),
        ),
    )
