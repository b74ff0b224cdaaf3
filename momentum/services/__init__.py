"""Service facade consumed by UI collaborators."""

from .productivity_service import ProductivityService

__all__ = ["ProductivityService"]
