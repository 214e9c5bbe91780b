"""Phrase-to-expression rewriting with an ordered list of regex rules.

The output is a best-effort candidate; `evaluate_expression` is what decides
whether it is valid.
"""

from __future__ import annotations

import re

Rule = tuple[re.Pattern[str], str]


def _rule(pattern: str, replacement: str) -> Rule:
    return re.compile(pattern, re.IGNORECASE), replacement


# Order matters: longer phrases must run before their prefixes.
RULES: tuple[Rule, ...] = (
    _rule(r"\bplus\b", "+"),
    _rule(r"\badd\b", "+"),
    _rule(r"\bminus\b", "-"),
    _rule(r"\bsubtract\b", "-"),
    _rule(r"\bmultipl(?:y|ied)(?:\s+by)?\b", "*"),
    _rule(r"\btimes\b", "*"),
    _rule(r"\binto\b", "*"),
    _rule(r"\bdivided\s+by\b", "/"),
    _rule(r"\bdivide\b", "/"),
    _rule(r"\bover\b", "/"),
    _rule(r"\bpercent\s+of\b", "% of"),
    _rule(r"\bper\s*cent\b", "%"),
    _rule(r"\b(?:to\s+the\s+)?power\s+of\b", "^"),
    _rule(r"\bsquared\b", "^2"),
    _rule(r"\bcubed\b", "^3"),
    _rule(r"\bsquare\s+root(?:\s+of)?\b", "sqrt("),
    _rule(r"\broot\s+of\b", "sqrt("),
    _rule(r"\bequals\b", "="),
)

_NUM = r"\d+(?:\.\d+)?"
_PERCENT_OF = re.compile(rf"({_NUM})\s*%\s*of\s*({_NUM})", re.IGNORECASE)
_OPEN_SQRT = re.compile(rf"sqrt\(\s*({_NUM})(?![\d.]|\s*\))", re.IGNORECASE)
_BARE_CALL = re.compile(
    rf"\b(sin|cos|tan|csc|sec|cot|ln|log|sqrt)\s+({_NUM})\b", re.IGNORECASE
)
_FILLER = re.compile(r"\b(?:what\s+is|what's|calculate|compute|then)\b", re.IGNORECASE)
_EQUATION = re.compile(r"\bsolve\b|=", re.IGNORECASE)


def normalize_percent_and_roots(text: str) -> str:
    """Expand ``N% of M`` into ``(N/100)*M`` and close ``sqrt(N``."""

    out = _PERCENT_OF.sub(r"(\1/100)*\2", text)
    return _OPEN_SQRT.sub(r"sqrt(\1)", out)


def apply_rules(text: str) -> str:
    s = text.lower().replace("?", "").strip()
    for pattern, replacement in RULES:
        s = pattern.sub(replacement, s)
    s = normalize_percent_and_roots(s)
    # Must run before whitespace is dropped: "sin 45" would lex as "sin45".
    s = _BARE_CALL.sub(r"\1(\2)", s)
    s = _FILLER.sub("", s)
    return " ".join(s.split())


def is_equation_request(text: str) -> bool:
    """True when the phrase asks to solve an equation (not supported)."""

    return bool(_EQUATION.search(text))
