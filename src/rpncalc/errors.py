"""rpncalc exception hierarchy.

Keep this module small and dependency-free: it is imported broadly across the
project and by tests.
"""

from __future__ import annotations


class CalcError(Exception):
    """Base exception for all rpncalc errors."""


class EvaluationError(CalcError):
    """Base for the three pipeline failures (lex, parse, eval)."""


class LexError(EvaluationError):
    """Raised for malformed input text (bad character, bad number literal)."""

    def __init__(self, message: str, char: str | None = None, position: int | None = None) -> None:
        detail = message
        if char is not None:
            detail = f"{message}: {char!r}"
        if position is not None:
            detail = f"{detail} at position {position}"
        super().__init__(detail)
        self.reason = message
        self.char = char
        self.position = position


class ParseError(EvaluationError):
    """Raised for a structurally invalid token sequence."""


class EvalError(EvaluationError):
    """Raised for an invalid or undefined computation."""

    def __init__(self, message: str, name: str | None = None) -> None:
        super().__init__(f"{message}: {name}" if name else message)
        self.name = name


class CalcConfigError(CalcError):
    """Raised for invalid user configuration."""


class TranslationError(CalcError):
    """Raised when a natural-language translator produces nothing usable."""


class HistoryError(CalcError):
    """Raised when the history file cannot be written or exported."""
