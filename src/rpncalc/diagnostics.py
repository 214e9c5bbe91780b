"""Error formatting and actionable hints for rpncalc CLI output.

Keep this module small and dependency-light: it is imported by the CLI layer
and only depends on the error hierarchy.
"""

from __future__ import annotations

from rpncalc.errors import (
    CalcConfigError,
    EvalError,
    HistoryError,
    LexError,
    ParseError,
    TranslationError,
)

EQUATION_NOTICE = "equation solving is not built-in; evaluating as an expression"


def format_hint(exc: BaseException) -> str | None:
    """Return an actionable hint for a known error, or None."""
    msg = str(exc)

    if isinstance(exc, LexError):
        if msg.startswith("invalid number"):
            return "a number may contain at most one decimal point"
        if exc.char == "=":
            return EQUATION_NOTICE
        return "use digits, + - * / ^, ! %, parentheses and function names only"

    if isinstance(exc, ParseError):
        if "parentheses" in msg:
            return "check that every '(' has a matching ')'"
        if "comma" in msg:
            return "commas are only allowed inside function-call parentheses"
        return None

    if isinstance(exc, EvalError):
        if msg.startswith("unknown function"):
            return "supported functions: sin cos tan csc sec cot ln log sqrt; constants: pi e"
        if "factorial" in msg:
            return "factorial needs a whole number between 0 and 170"
        if msg.startswith("non-finite"):
            return "the result is undefined or too large (division by zero, log of 0, ...)"
        if msg.startswith("stack underflow"):
            return "an operator is missing an operand"
        if msg.startswith("invalid expression"):
            return "operands must be joined by operators (there is no implicit multiplication)"
        return None

    if isinstance(exc, CalcConfigError):
        if "Missing API key" in msg:
            return "export the key in your shell or switch nl.provider to 'rules'"
        return "check rpncalc.toml"

    if isinstance(exc, TranslationError):
        return "rephrase the request or use `rpncalc eval` with an explicit expression"

    if isinstance(exc, HistoryError):
        return "check that history.path in rpncalc.toml points to a writable location"

    return None


def format_error_with_hint(exc: BaseException) -> str:
    """Format error message + optional hint for stderr output."""
    msg = (str(exc) or repr(exc)).strip()
    result = f"error: {msg}"
    hint = format_hint(exc)
    if hint:
        result += f"\nhint: {hint}"
    return result


def error_kind(exc: BaseException) -> str:
    """Short machine-readable error label used in JSON output."""
    if isinstance(exc, LexError):
        return "lex"
    if isinstance(exc, ParseError):
        return "parse"
    if isinstance(exc, EvalError):
        return "eval"
    if isinstance(exc, CalcConfigError):
        return "config"
    if isinstance(exc, TranslationError):
        return "translation"
    if isinstance(exc, HistoryError):
        return "history"
    return type(exc).__name__
