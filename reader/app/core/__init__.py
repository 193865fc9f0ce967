"""Core utilities for the reader service."""

from reader.app.core.config import settings
from reader.app.core.logging import get_log_context, get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "get_log_context",
    "setup_logging",
]
