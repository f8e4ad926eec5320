"""
Configuration module for the Crewboard backend.

Provides centralized configuration for:
- Photo storage location
- Mail templates and sender
- CORS origins
"""

from backend.src.config.settings import AppSettings, get_settings

__all__ = [
    "AppSettings",
    "get_settings",
]
