"""Exception types and user-facing error classification."""

from __future__ import annotations

import asyncio
from enum import Enum

import httpx
import openai


class BetbotError(Exception):
    """Base class for pipeline errors."""


class ProviderError(BetbotError):
    """An external data or model provider failed."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code


class MalformedOutputError(BetbotError):
    """Model output was not JSON or did not match the expected schema."""


class ParseConfidenceError(BetbotError):
    """The parsed bet is too uncertain to analyze."""


class SynthesisValidationError(BetbotError):
    """Synthesis output failed the post-analysis quality gate."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__("; ".join(problems))
        self.problems = problems


class ErrorCategory(str, Enum):
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    AI_UNAVAILABLE = "ai_unavailable"
    NETWORK = "network"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


_MESSAGES = {
    ErrorCategory.TIMEOUT: "{context} timed out. Please try again.",
    ErrorCategory.RATE_LIMITED: "Too many requests. Please wait a moment and try again.",
    ErrorCategory.UNAUTHORIZED: "Authentication failed for {context}.",
    ErrorCategory.AI_UNAVAILABLE: "AI analysis temporarily unavailable. Please try again.",
    ErrorCategory.NETWORK: "Network error during {context}. Please check your connection.",
    ErrorCategory.NOT_FOUND: "Requested data was not found for {context}.",
    ErrorCategory.UNKNOWN: "{context} failed. Please try again.",
}


def _status_code(exc: BaseException) -> int | None:
    if isinstance(exc, ProviderError):
        return exc.status_code
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    if isinstance(exc, openai.APIStatusError):
        return exc.status_code
    return None


def classify_error(exc: BaseException) -> ErrorCategory:
    """Map an exception onto a coarse category used for user messaging only."""

    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException, openai.APITimeoutError)):
        return ErrorCategory.TIMEOUT
    code = _status_code(exc)
    text = str(exc).lower()
    if code == 429 or "rate limit" in text:
        return ErrorCategory.RATE_LIMITED
    if code == 401 or "unauthorized" in text:
        return ErrorCategory.UNAUTHORIZED
    if isinstance(exc, openai.OpenAIError) or "openai" in text:
        return ErrorCategory.AI_UNAVAILABLE
    if isinstance(exc, httpx.TransportError) or "network" in text or "failed to fetch" in text:
        return ErrorCategory.NETWORK
    if code == 404 or "not found" in text:
        return ErrorCategory.NOT_FOUND
    return ErrorCategory.UNKNOWN


def friendly_message(exc: BaseException, context: str = "Request") -> str:
    return _MESSAGES[classify_error(exc)].format(context=context)
