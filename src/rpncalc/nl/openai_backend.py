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

logger = logging.getLogger("rpncalc.nl.openai")


class OpenAITranslator(Translator):
    def __init__(self, nl: NLConfig) -> None:
        api_key = (os.environ.get(nl.api_key_env) or "").strip()
        if not api_key:
            raise CalcConfigError(
                f"Missing API key: {nl.api_key_env}. Set it in the environment before using "
                f"nl.provider = 'openai'."
            )
        self._model = nl.model

        # The OpenAI SDK is only needed for this provider; keep it out of the
        # core import path.
        from openai import AsyncOpenAI

        self._client: Any = AsyncOpenAI(api_key=api_key)

        try:
            self._system = load_prompt("translate_system.md", nl.system_prompt or None)
        except OSError as e:
            raise CalcConfigError(f"Failed reading nl.system_prompt: {nl.system_prompt}") from e

    async def _call_openai(self, messages: list[dict[str, str]]) -> str:
        """Call OpenAI API with retry and exponential backoff for transient errors."""
        last_exc: BaseException | None = None
        for attempt in range(shared.MAX_API_RETRIES):
            try:
                resp: Any = await self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                )
                content = resp.choices[0].message.content
                if not isinstance(content, str):
                    raise TranslationError("OpenAI returned empty content.")
                return content
            except Exception as exc:
                last_exc = exc
                if not is_retryable(exc) or attempt >= shared.MAX_API_RETRIES - 1:
                    raise
                delay = shared.BASE_BACKOFF_S * (2**attempt)
                logger.warning(
                    "OpenAI API error (attempt %d/%d), retrying in %.1fs: %s",
                    attempt + 1,
                    shared.MAX_API_RETRIES,
                    delay,
                    exc,
                )
                await asyncio.sleep(delay)

        raise last_exc  # type: ignore[misc]

    def _render_messages(
        self, text: str, *, extra_error_context: list[str] | None
    ) -> list[dict[str, str]]:
        user = f"Request: {text.strip()}"
        if extra_error_context:
            user += "\n\n" + "\n".join(f"- {line}" for line in extra_error_context)
        return [
            {"role": "system", "content": self._system.strip() + "\n"},
            {"role": "user", "content": user},
        ]

    async def translate(self, text: str, *, extra_error_context: list[str] | None = None) -> str:
        messages = self._render_messages(text, extra_error_context=extra_error_context)
        raw = await self._call_openai(messages)
        return clean_expression(raw)
