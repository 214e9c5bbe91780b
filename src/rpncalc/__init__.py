from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from rpncalc.engine import evaluate_expression, explain, format_result
from rpncalc.errors import (
    CalcError,
    EvalError,
    EvaluationError,
    LexError,
    ParseError,
)


def _package_version() -> str:
    try:
        return version("rpncalc")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "CalcError",
    "EvalError",
    "EvaluationError",
    "LexError",
    "ParseError",
    "__version__",
    "evaluate_expression",
    "explain",
    "format_result",
]
