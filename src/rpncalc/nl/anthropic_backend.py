from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

from rpncalc.config import NLConfig
from rpncalc.errors import CalcConfigError, TranslationError
from rpncalc.nl import shared
from rpncalc.nl.base import Translator
from rpncalc.nl.shared import clean_expression, is_retryable, load_prompt

logger = logging.getLogger("rpncalc.nl.anthropic")

_MAX_TOKENS = 256


class AnthropicTranslator(Translator):
    """Phrase translation using the Anthropic Messages API."""

    def __init__(self, nl: NLConfig) -> None:
        api_key = (os.environ.get(nl.api_key_env) or "").strip()
        if not api_key:
            raise CalcConfigError(
                f"Missing API key: {nl.api_key_env}. Set it in the environment before using "
                f"nl.provider = 'anthropic'."
            )
        self._model = nl.model

        try:
            from anthropic import AsyncAnthropic
        except ImportError as e:
            raise CalcConfigError(
                "The 'anthropic' package is required for nl.provider = 'anthropic'. "
                "Install it with: pip install anthropic"
            ) from e

        self._client: Any = AsyncAnthropic(api_key=api_key)

        try:
            self._system = load_prompt("translate_system.md", nl.system_prompt or None)
        except OSError as e:
            raise CalcConfigError(f"Failed reading nl.system_prompt: {nl.system_prompt}") from e

    async def _call_anthropic(self, system: str, messages: list[dict[str, str]]) -> str:
        """Call Anthropic Messages API with retry and exponential backoff."""
        last_exc: BaseException | None = None
        for attempt in range(shared.MAX_API_RETRIES):
            try:
                resp: Any = await self._client.messages.create(
                    model=self._model,
                    max_tokens=_MAX_TOKENS,
                    system=system,
                    messages=messages,
                )
                content = resp.content
                if not content or not hasattr(content[0], "text"):
                    raise TranslationError("Anthropic returned empty content.")
                return str(content[0].text)
            except Exception as exc:
                last_exc = exc
                if not is_retryable(exc) or attempt >= shared.MAX_API_RETRIES - 1:
                    raise
                delay = shared.BASE_BACKOFF_S * (2**attempt)
                logger.warning(
                    "Anthropic API error (attempt %d/%d), retrying in %.1fs: %s",
                    attempt + 1,
                    shared.MAX_API_RETRIES,
                    delay,
                    exc,
                )
                await asyncio.sleep(delay)

        raise last_exc  # type: ignore[misc]

    async def translate(self, text: str, *, extra_error_context: list[str] | None = None) -> str:
        user = f"Request: {text.strip()}"
        if extra_error_context:
            user += "\n\n" + "\n".join(f"- {line}" for line in extra_error_context)
        raw = await self._call_anthropic(self._system.strip() + "\n", [{"role": "user", "content": user}])
        return clean_expression(raw)
