"""Core module - configuration, logging, exceptions."""

from commentlens.core.config import Settings, get_settings
from commentlens.core.exceptions import (
    CommentLensError,
    ConfigurationError,
    ProviderInvocationError,
    ResponseParseError,
    UnsupportedProviderError,
)
from commentlens.core.logging import LogContext, get_logger, redact_secrets, setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "CommentLensError",
    "ConfigurationError",
    "UnsupportedProviderError",
    "ProviderInvocationError",
    "ResponseParseError",
    "setup_logging",
    "get_logger",
    "LogContext",
    "redact_secrets",
]
