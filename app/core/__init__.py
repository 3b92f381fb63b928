"""Core: config, lifespan and exception handlers (application bootstrap)."""

from app.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
