"""Expression pipeline entry point: text -> tokens -> postfix -> number.

Every call builds its own working state, so the functions here are safe to
call concurrently. The angle mode is always passed in by the caller.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from rpncalc.errors import LexError
from rpncalc.evaluator import evaluate
from rpncalc.parser import to_postfix
from rpncalc.tokenizer import UNICODE_OPERATORS, tokenize
from rpncalc.tokens import Token, format_tokens

logger = logging.getLogger("rpncalc.engine")

# Integral results at or above this magnitude are rounded like any other.
_INTEGER_DISPLAY_LIMIT = 1e21
_DISPLAY_DIGITS = 12


def normalize(text: str) -> str:
    """Map keypad symbols to ASCII and drop all whitespace."""

    out = str(text)
    for symbol, ascii_symbol in UNICODE_OPERATORS.items():
        out = out.replace(symbol, ascii_symbol)
    return "".join(out.split())


def _source_position(text: str, position: int | None) -> int | None:
    """Map an offset in the normalized text back to the caller's text."""

    if position is None:
        return None
    offsets = [i for i, ch in enumerate(str(text)) if not ch.isspace()]
    return offsets[position] if position < len(offsets) else position


def explain(text: str) -> list[Token]:
    """Return the postfix token sequence for `text` without evaluating it."""

    try:
        tokens = tokenize(normalize(text))
    except LexError as e:
        raise LexError(e.reason, e.char, _source_position(text, e.position)) from None
    return to_postfix(tokens)


def evaluate_expression(text: str, *, degree_mode: bool = True) -> float:
    """Evaluate an infix expression string.

    Raises LexError, ParseError or EvalError (all EvaluationError) and never
    returns a partial result.
    """

    postfix = explain(text)
    logger.debug("postfix for %r: %s", text, format_tokens(postfix))
    value = evaluate(postfix, degree_mode=degree_mode)
    logger.debug("result for %r (%s): %r", text, "deg" if degree_mode else "rad", value)
    return value


def format_result(value: float) -> str:
    """Display text for a result: integral values without a decimal part,
    everything else rounded to 12 significant digits.

    The text is always positional (`0.00001`, never `1e-05`) so it can be
    fed back to `evaluate_expression`.
    """

    if value.is_integer() and abs(value) < _INTEGER_DISPLAY_LIMIT:
        return str(int(value))
    rounded = float(f"{value:.{_DISPLAY_DIGITS}g}")
    if rounded.is_integer() and abs(rounded) < _INTEGER_DISPLAY_LIMIT:
        return str(int(rounded))
    text = repr(rounded)
    if "e" in text:
        text = format(Decimal(text), "f")
    return text
