"""Errors raised by the AI Factory dispatch layer."""

from enum import Enum
from typing import Any


class AIErrorCode(str, Enum):
    """Failure classification for programmatic handling."""

    NO_API_KEY = "NO_API_KEY"
    NO_PROVIDERS = "NO_PROVIDERS"
    RATE_LIMIT = "RATE_LIMIT"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    UNKNOWN = "UNKNOWN"


class AIError(Exception):
    """
    Raised by AIFactory.generate() when a request fails.

    Attributes:
        message: Human-readable failure message
        provider: Provider id that produced the failure, or "AIFactory"
                  when the dispatch layer itself failed
        status_code: HTTP status code, if the failure came from one
        details: Raw error payload, if any
        code: Failure classification
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        details: Any = None,
        code: AIErrorCode | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.details = details
        self.code = code

    def __repr__(self) -> str:
        return f"AIError({self.message!r}, provider={self.provider!r}, code={self.code})"
