"""Shared utilities for LLM translation backends."""

from __future__ import annotations

import re
from importlib import resources
from pathlib import Path

from rpncalc.errors import TranslationError
from rpncalc.nl.rules import normalize_percent_and_roots

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n(?P<code>.*)\n\s*```\s*$", re.DOTALL)
_LABEL_RE = re.compile(r"^\s*(?:expression|answer)\s*:\s*", re.IGNORECASE)

MAX_API_RETRIES = 4
BASE_BACKOFF_S = 1.0


def is_retryable(exc: BaseException) -> bool:
    """Return True for transient provider errors worth retrying."""
    # RateLimitError, APITimeoutError, APIConnectionError and 5xx
    # APIStatusError share these names in both the OpenAI and Anthropic SDKs.
    cls_name = type(exc).__name__
    if cls_name in ("RateLimitError", "APITimeoutError", "APIConnectionError"):
        return True
    if cls_name in ("APIStatusError", "InternalServerError"):
        status = getattr(exc, "status_code", 0)
        return int(status) >= 500
    if isinstance(exc, (TimeoutError, ConnectionError, OSError)):
        return True
    return False


def strip_markdown_fences(text: str) -> str:
    m = _FENCE_RE.match(text or "")
    if not m:
        return (text or "").strip()
    return (m.group("code") or "").strip()


def clean_expression(raw: str) -> str:
    """Reduce a model answer to a single expression line."""

    text = strip_markdown_fences(raw)
    lines = [ln for ln in text.splitlines() if ln.strip()]
    if not lines:
        raise TranslationError("Translator returned an empty expression.")
    expr = _LABEL_RE.sub("", lines[0]).strip().strip("`").strip()
    if not expr:
        raise TranslationError("Translator returned an empty expression.")
    return normalize_percent_and_roots(expr)


def load_prompt(default_name: str, override_path: str | None) -> str:
    """Load a prompt from the packaged defaults or a user-specified path."""
    if override_path:
        return Path(override_path).read_text(encoding="utf-8")
    p = resources.files("rpncalc") / "prompts" / default_name
    return p.read_text(encoding="utf-8")
