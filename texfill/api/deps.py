"""FastAPI dependencies for dependency injection.

Provides reusable dependencies for routes including:
- The component factory and its settings
- Raw text template bodies
- The schema extractor
"""

import logging

from fastapi import Depends, HTTPException, Request, status

from texfill.core.config import Settings
from texfill.core.factory import ComponentFactory
from texfill.interfaces.template import BaseSchemaExtractor

logger = logging.getLogger(__name__)


def get_factory(request: Request) -> ComponentFactory:
    """Return the component factory built at application startup."""
    return request.app.state.factory


def get_app_settings(factory: ComponentFactory = Depends(get_factory)) -> Settings:
    """Return the settings the factory was built with."""
    return factory.settings


def get_schema_extractor(
    factory: ComponentFactory = Depends(get_factory),
) -> BaseSchemaExtractor:
    """Dependency for the schema extractor.

    Raises:
        HTTPException: If the language model is not configured.
    """
    try:
        return factory.get_schema_extractor()
    except ValueError as e:
        logger.error(f"Schema extractor unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Field extraction is not configured: {e}",
        ) from e


def decode_template(content: bytes, settings: Settings) -> str:
    """Validate size and encoding of a raw template and return its text.

    Raises:
        HTTPException: If the template is too large, not UTF-8, or empty.
    """
    if len(content) > settings.max_template_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Template exceeds {settings.max_template_bytes} bytes",
        )

    try:
        latex = content.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Template must be UTF-8 encoded text",
        ) from e

    if not latex:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No LaTeX provided",
        )
    return latex


async def get_template_text(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Dependency reading a text/plain LaTeX request body."""
    return decode_template(await request.body(), settings)
