"""Core utilities for the prompt proxy."""

from promptproxy.app.core.config import (
    ConfigurationError,
    Settings,
    settings,
    validate_environment,
)
from promptproxy.app.core.logging import get_log_context, get_logger, setup_logging

__all__ = [
    "ConfigurationError",
    "Settings",
    "settings",
    "validate_environment",
    "get_log_context",
    "get_logger",
    "setup_logging",
]
