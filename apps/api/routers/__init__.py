"""API routers package."""

from apps.api.routers import health

__all__ = ["health"]
