"""FastAPI application entry point.

Main application setup with middleware, routing, and lifecycle management.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from texfill import __version__
from texfill.api import health_router, templates_router
from texfill.api.schemas import ErrorResponse
from texfill.core.config import Settings, get_settings
from texfill.core.exceptions import TexFillError
from texfill.core.factory import ComponentFactory
from texfill.core.logging_config import setup_logging

# Handlers must exist before create_app() logs anything
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Logs the effective pipeline configuration on startup.
    """
    settings: Settings = app.state.settings

    logger.info("Starting TexFill API...")
    logger.info(
        f"Model: {settings.llm_provider}/{settings.llm_chat_model}, "
        f"compilers: {', '.join(settings.compiler_engines)}"
    )
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; field extraction will be unavailable")

    yield

    logger.info("Shutting down TexFill API...")


def create_app(
    settings: Settings | None = None,
    factory: ComponentFactory | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings. If None, loads from environment.
        factory: Optional pre-built component factory (used by tests).

    Returns:
        Configured FastAPI application instance.
    """
    try:
        settings = settings or (factory.settings if factory else get_settings())

        app = FastAPI(
            title="TexFill",
            description="LaTeX template field extraction and PDF generation",
            version=__version__,
            lifespan=lifespan,
            docs_url="/docs",
            redoc_url="/redoc",
        )

        # Store settings and components in app state
        app.state.settings = settings
        app.state.factory = factory or ComponentFactory(settings)

        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["Content-Disposition", "X-Compiler-Engine"],
        )

        app.include_router(health_router)
        app.include_router(templates_router)
        logger.info("Registered health and templates routers")

        @app.exception_handler(TexFillError)
        async def texfill_exception_handler(request: Request, exc: TexFillError):
            """Turn domain errors into structured error payloads."""
            if exc.status_code >= 500:
                logger.error(f"{exc.error_code}: {exc.message}")
            else:
                logger.warning(f"{exc.error_code}: {exc.message}")
            return JSONResponse(
                status_code=exc.status_code,
                content=ErrorResponse(
                    detail=exc.message,
                    error_code=exc.error_code,
                    troubleshooting=exc.troubleshooting,
                    extra=exc.extra(),
                ).model_dump(),
            )

        @app.exception_handler(RequestValidationError)
        async def validation_exception_handler(request: Request, exc: RequestValidationError):
            """Handle Pydantic validation errors."""
            logger.warning(f"Validation error: {exc.errors()}")
            return JSONResponse(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                content=ErrorResponse(
                    detail="Invalid payload",
                    error_code="VALIDATION_ERROR",
                    extra={"errors": jsonable_errors(exc)},
                ).model_dump(),
            )

        @app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle uncaught exceptions."""
            logger.error(f"Unhandled exception: {exc}", exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=ErrorResponse(
                    detail="Internal server error",
                    error_code="INTERNAL_ERROR",
                ).model_dump(),
            )

        logger.info("FastAPI application created successfully")
        return app

    except Exception as e:
        logger.error(f"Failed to create FastAPI app: {e}", exc_info=True)
        raise


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the non-serializable ``ctx``/``input`` parts."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info("Starting uvicorn server on port 8000...")
    uvicorn.run(
        "texfill.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
