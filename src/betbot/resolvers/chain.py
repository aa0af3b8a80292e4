"""Ordered "first success wins" combinator for provider tiers."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from betbot.errors import ProviderError

logger = logging.getLogger(__name__)

P = TypeVar("P")
T = TypeVar("T")


def _name(provider: object) -> str:
    return getattr(provider, "name", type(provider).__name__)


async def first_success(
    providers: Iterable[P],
    call: Callable[[P], Awaitable[T | None]],
) -> tuple[P, T]:
    """Try providers strictly in order and return the first non-empty result.

    A provider fails by raising or by returning ``None``; either way the next
    one is attempted. Raises ProviderError only when every provider failed.
    """

    failures: list[str] = []
    for provider in providers:
        name = _name(provider)
        try:
            result = await call(provider)
        except Exception as exc:
            logger.warning("Provider %s failed: %s", name, exc)
            failures.append(f"{name}: {exc}")
            continue
        if result is None:
            logger.info("Provider %s returned no data", name)
            failures.append(f"{name}: no data")
            continue
        return provider, result
    raise ProviderError("chain", "all providers failed (" + "; ".join(failures) + ")")
