"""Custom exceptions for commentlens."""

from __future__ import annotations

from typing import Any


class CommentLensError(Exception):
    """Base exception for all commentlens errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CommentLensError):
    """Raised when a client configuration or provider credential is unusable."""

    def __init__(
        self,
        message: str,
        client_id: str | None = None,
        provider: str | None = None,
    ) -> None:
        super().__init__(
            message,
            details={"client_id": client_id, "provider": provider},
        )
        self.client_id = client_id
        self.provider = provider


class UnsupportedProviderError(CommentLensError):
    """Raised when no provider is registered under the requested key."""

    def __init__(self, provider: Any) -> None:
        super().__init__(f"Provider not supported: {provider}")
        self.provider = provider


class ProviderInvocationError(CommentLensError):
    """Raised when a provider backend call fails."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(
            f"{provider} invocation failed: {message}",
            details={"provider": provider},
        )
        self.provider = provider
        self.reason = message


class ResponseParseError(CommentLensError):
    """Raised when a provider response cannot be parsed as the expected JSON."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message, details={"provider": provider})
        self.provider = provider
