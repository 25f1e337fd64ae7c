"""
Base provider interface for LLM calls.

This module defines the abstract base class and the uniform response shape
every provider normalizes into. Callers never see provider-specific error
formats, only a FailureReason.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FailureReason(str, Enum):
    """Closed taxonomy of LLM-stage failures."""
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    HTTP_ERROR = "http_error"
    NO_CONTENT = "no_content"
    PARSE_ERROR = "parse_error"
    NO_KEY = "no_key"
    ALL_FAILED = "all_failed"


@dataclass
class ProviderResponse:
    """
    Result of one provider round-trip.

    Attributes:
        success: Whether an assistant message came back
        content: Assistant message text (success only)
        reason: FailureReason value (failure only)
        status_code: HTTP status when one was received
        latency_ms: Round-trip time in milliseconds
    """
    success: bool
    content: Optional[str] = None
    reason: Optional[str] = None
    status_code: Optional[int] = None
    latency_ms: int = 0

    @classmethod
    def ok(cls, content: str, latency_ms: int = 0) -> "ProviderResponse":
        return cls(success=True, content=content, latency_ms=latency_ms)

    @classmethod
    def fail(
        cls, reason: FailureReason, status_code: Optional[int] = None, latency_ms: int = 0
    ) -> "ProviderResponse":
        return cls(
            success=False,
            reason=FailureReason(reason).value,
            status_code=status_code,
            latency_ms=latency_ms,
        )


class LLMProvider(ABC):
    """
    Abstract base class for chat-completion style LLM backends.

    Implementations must never raise from call(): every transport or
    upstream problem is returned as a failed ProviderResponse.
    """

    @abstractmethod
    def call(self, prompt: str, api_key: str) -> ProviderResponse:
        """
        Send a single-turn prompt and return the assistant message.

        Args:
            prompt: Full prompt text
            api_key: Credential for this provider

        Returns:
            ProviderResponse with content on success, reason on failure.
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """
        Return provider identifier for logging and metrics.
        """
        pass

    @staticmethod
    def reason_for_status(status_code: int, auth_codes=(401,)) -> FailureReason:
        """Map a non-200 HTTP status onto the failure taxonomy."""
        if status_code in auth_codes:
            return FailureReason.AUTH
        if status_code == 429:
            return FailureReason.RATE_LIMIT
        return FailureReason.HTTP_ERROR
