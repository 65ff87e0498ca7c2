"""Shared FastAPI dependencies (settings access and the optional API key gate)."""

from .auth import get_app_settings, require_api_key

__all__ = ["get_app_settings", "require_api_key"]
