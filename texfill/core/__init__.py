"""Core configuration, wiring and pipeline components."""

from texfill.core.config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
