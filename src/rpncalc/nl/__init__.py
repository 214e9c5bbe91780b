"""Natural-language front end: phrases in, candidate expressions out."""

from __future__ import annotations

from rpncalc.config import NLConfig
from rpncalc.errors import CalcConfigError
from rpncalc.nl.base import RuleTranslator, TranslationResult, Translator
from rpncalc.nl.rules import apply_rules, is_equation_request


def build_translator(nl: NLConfig) -> Translator:
    if nl.provider == "rules":
        return RuleTranslator()
    if nl.provider == "openai":
        from rpncalc.nl.openai_backend import OpenAITranslator

        return OpenAITranslator(nl)
    if nl.provider == "anthropic":
        from rpncalc.nl.anthropic_backend import AnthropicTranslator

        return AnthropicTranslator(nl)
    raise CalcConfigError(f"Unsupported nl.provider: {nl.provider!r}")


__all__ = [
    "RuleTranslator",
    "TranslationResult",
    "Translator",
    "apply_rules",
    "build_translator",
    "is_equation_request",
]
