"""FastAPI routers and dependencies."""

from texfill.api.deps import get_app_settings, get_factory, get_schema_extractor
from texfill.api.health import router as health_router
from texfill.api.templates import router as templates_router

__all__ = [
    "get_app_settings",
    "get_factory",
    "get_schema_extractor",
    "health_router",
    "templates_router",
]
