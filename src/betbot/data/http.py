"""Shared retry policy for outbound provider HTTP calls."""

from __future__ import annotations

import logging

import httpx
from tenacity import RetryCallState, retry, retry_if_exception, stop_after_attempt, wait_fixed

logger = logging.getLogger(__name__)


def is_transient(exc: BaseException) -> bool:
    """Retry on transport hiccups and 5xx only; 4xx answers are final."""

    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


def _retry_log(retry_state: RetryCallState) -> None:  # pragma: no cover - logging helper
    attempt = retry_state.attempt_number
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    name = getattr(retry_state.fn, "__qualname__", "request")
    logger.warning("%s retry attempt %s due to %s", name, attempt, exception)


provider_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_fixed(1),
    retry=retry_if_exception(is_transient),
    after=_retry_log,
    reraise=True,
)
