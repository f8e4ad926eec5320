"""
Utility modules for the Crewboard backend.

This package contains shared utilities used across the application:
- logging_config: Named application loggers with console/JSON formatting
"""

from backend.src.utils.logging_config import get_logger, init_logging

__all__ = [
    "get_logger",
    "init_logging",
]
