"""OpenAI Chat Completions helper."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Protocol, TypeVar

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from betbot.config import get_openai_api_key, get_settings
from betbot.errors import MalformedOutputError, ProviderError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DEFAULT_SYSTEM_PROMPT = (
    "You are a careful sports betting analyst. Cite data, avoid guarantees and "
    "answer in the exact format requested."
)

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


class TextGenerator(Protocol):
    async def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        timeout: float,
        system: str | None = None,
    ) -> str: ...


class OpenAITextGenerator:
    """Async text generator backed by the OpenAI chat completions API."""

    def __init__(self, client: AsyncOpenAI | None = None, model: str | None = None) -> None:
        self._client = client
        self.model = model or get_settings().openai_model

    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=get_openai_api_key())
        return self._client

    async def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        timeout: float,
        system: str | None = None,
    ) -> str:
        messages = [
            {"role": "system", "content": system or DEFAULT_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        try:
            response = await asyncio.wait_for(
                self.client().chat.completions.create(
                    model=self.model,
                    messages=messages,
                    max_tokens=max_tokens,
                    temperature=temperature,
                ),
                timeout=timeout,
            )
        except openai.APIStatusError as exc:
            raise ProviderError("openai", exc.message, exc.status_code) from exc
        except openai.APIConnectionError as exc:
            raise ProviderError("openai", str(exc)) from exc
        content = response.choices[0].message.content or ""
        logger.debug("LLM returned %d chars (max_tokens=%d)", len(content), max_tokens)
        return content


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text.strip())


def extract_json(text: str) -> Any:
    """Parse model output as JSON, tolerating code fences and stray prose."""

    cleaned = _CONTROL_RE.sub("", strip_code_fences(text))
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start != -1 and end > start:
            try:
                return json.loads(cleaned[start : end + 1])
            except json.JSONDecodeError:
                pass
    raise MalformedOutputError(f"model output is not valid JSON: {cleaned[:120]!r}")


async def complete_json(
    generator: TextGenerator,
    prompt: str,
    schema: type[M],
    *,
    max_tokens: int,
    temperature: float,
    timeout: float,
    system: str | None = None,
) -> M:
    """Run one model call and validate the JSON reply against ``schema``."""

    raw = await generator.generate(
        prompt,
        max_tokens=max_tokens,
        temperature=temperature,
        timeout=timeout,
        system=system,
    )
    data = extract_json(raw)
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise MalformedOutputError(
            f"{schema.__name__} failed validation: {exc.error_count()} error(s)"
        ) from exc
