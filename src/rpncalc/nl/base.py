from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from rpncalc.engine import explain
from rpncalc.errors import CalcError, LexError, ParseError, TranslationError
from rpncalc.nl.rules import apply_rules


@dataclass(frozen=True, slots=True)
class TranslationResult:
    attempts: int
    expression: str
    errors: list[str]


def check_expression(expression: str) -> list[str]:
    """Lex and parse `expression`; return the problems found (empty when valid)."""

    try:
        explain(expression)
    except (LexError, ParseError) as e:
        return [str(e)]
    return []


class Translator(ABC):
    # Deterministic translators give the same answer on retry, so retrying
    # them is pointless.
    deterministic: bool = False

    @abstractmethod
    async def translate(self, text: str, *, extra_error_context: list[str] | None = None) -> str:
        """Rewrite a natural-language phrase into calculator syntax."""

    async def translate_with_retry(self, text: str, *, max_attempts: int = 2) -> TranslationResult:
        """Translate, check the candidate parses, and retry with error context."""

        attempts = 0
        expression = ""
        errors: list[str] = []
        extra_ctx: list[str] | None = None

        while attempts < max_attempts:
            attempts += 1
            try:
                expression = await self.translate(text, extra_error_context=extra_ctx)
            except CalcError:
                raise
            except Exception as e:
                # SDK errors from the providers surface as TranslationError.
                raise TranslationError(f"{type(e).__name__}: {e}") from e
            errors = check_expression(expression)
            if not errors or self.deterministic or attempts >= max_attempts:
                break

            retry_ctx = [f"previous answer {expression!r} was rejected: {e}" for e in errors]
            extra_ctx = (extra_ctx or []) + retry_ctx

        return TranslationResult(attempts=attempts, expression=expression, errors=errors)


class RuleTranslator(Translator):
    """Offline translator built on the ordered regex rules."""

    deterministic = True

    async def translate(self, text: str, *, extra_error_context: list[str] | None = None) -> str:
        return apply_rules(text)
