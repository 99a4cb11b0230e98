from __future__ import annotations

from typing import Optional


class ApiError(RuntimeError):
    """Base error for the remote IMC API clients."""


class ApiHttpError(ApiError):
    """The server answered with a non-success HTTP status."""

    def __init__(self, status: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"HTTP {status} from IMC API")
        self.status = status


class ApiConnectionError(ApiError):
    """No response was received (timeout, DNS, refused connection...)."""


class ApiPayloadError(ApiError):
    """Response body could not be parsed into the expected structure."""


__all__ = [
    "ApiError",
    "ApiHttpError",
    "ApiConnectionError",
    "ApiPayloadError",
]
