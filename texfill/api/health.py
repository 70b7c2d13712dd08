"""Health and connectivity routes."""

import asyncio
import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from texfill import __version__
from texfill.api.deps import get_factory
from texfill.api.schemas import (
    CompilerStatusResponse,
    EngineStatus,
    HealthResponse,
    LLMConnectivityResponse,
)
from texfill.core.factory import ComponentFactory
from texfill.strategies.compilers import build_engines, probe_engines

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

CONNECTIVITY_PROMPT = "Say 'Hello, connection test successful!'"


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint for load balancers and monitoring."""
    return HealthResponse(
        status="healthy",
        service="texfill-api",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/llm", response_model=LLMConnectivityResponse)
async def llm_connectivity(
    factory: ComponentFactory = Depends(get_factory),
) -> LLMConnectivityResponse:
    """Send a trivial prompt to the language model and time the round trip.

    Raises:
        HTTPException: If the model is not configured or the call fails.
    """
    settings = factory.settings
    try:
        client = factory.get_llm_client()
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        ) from e

    logger.info("Testing language model API...")
    start = time.perf_counter()
    try:
        async with asyncio.timeout(settings.extraction_timeout_seconds):
            text = await client.complete(CONNECTIVITY_PROMPT, max_output_tokens=50)
    except Exception as e:
        logger.error(f"Language model test failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Language model test failed: {e}",
        ) from e

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.info(f"Language model responded in {elapsed_ms}ms")
    return LLMConnectivityResponse(
        success=True,
        model=client.model_name,
        response=text,
        response_time_ms=elapsed_ms,
    )


@router.get("/compilers", response_model=CompilerStatusResponse)
async def compiler_status(
    factory: ComponentFactory = Depends(get_factory),
) -> CompilerStatusResponse:
    """Report which configured LaTeX engines can be started."""
    settings = factory.settings
    engines = build_engines(settings.compiler_engines, settings.tectonic_local_path)
    results = await probe_engines(engines)

    return CompilerStatusResponse(
        engines=[
            EngineStatus(
                name=result.name,
                available=result.available,
                version=result.version,
                error=result.error,
            )
            for result in results
        ],
        available_count=sum(1 for result in results if result.available),
    )
