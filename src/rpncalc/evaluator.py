"""Stack machine executing a postfix token sequence."""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from rpncalc.errors import EvalError
from rpncalc.operators import OPERATORS
from rpncalc.tokens import Token, TokenKind

MAX_FACTORIAL = 170  # 171! overflows a float


@dataclass(frozen=True, slots=True)
class Function:
    name: str
    apply: Callable[[float], float]
    angular: bool = False  # argument is an angle, converted in degree mode


def _csc(x: float) -> float:
    return 1 / math.sin(x)


def _sec(x: float) -> float:
    return 1 / math.cos(x)


def _cot(x: float) -> float:
    return 1 / math.tan(x)


FUNCTIONS: Mapping[str, Function] = MappingProxyType(
    {
        "sin": Function("sin", math.sin, angular=True),
        "cos": Function("cos", math.cos, angular=True),
        "tan": Function("tan", math.tan, angular=True),
        "csc": Function("csc", _csc, angular=True),
        "sec": Function("sec", _sec, angular=True),
        "cot": Function("cot", _cot, angular=True),
        "ln": Function("ln", math.log),
        "log": Function("log", math.log10),
        "sqrt": Function("sqrt", math.sqrt),
    }
)


def factorial(n: float) -> float:
    """Iterative factorial of a non-negative integral float, at most 170."""

    if not math.isfinite(n) or n < 0:
        raise EvalError("invalid factorial argument", repr(n))
    if not float(n).is_integer():
        raise EvalError("factorial requires an integer", repr(n))
    if n > MAX_FACTORIAL:
        raise EvalError("factorial result too large", repr(n))
    result = 1.0
    for i in range(2, int(n) + 1):
        result *= i
    return result


def _finite(value: float) -> float:
    if not math.isfinite(value):
        raise EvalError("non-finite result")
    return value


def _call(fn: Callable[..., float], *args: float) -> float:
    # Python's math module raises where IEEE arithmetic would yield inf/nan.
    try:
        value = fn(*args)
    except (ArithmeticError, ValueError) as e:
        raise EvalError("non-finite result") from e
    return _finite(value)


def _pop(stack: list[float], count: int) -> list[float]:
    if len(stack) < count:
        raise EvalError("stack underflow")
    values = stack[-count:]
    del stack[-count:]
    return values


def evaluate(postfix: list[Token], *, degree_mode: bool) -> float:
    """Evaluate a postfix sequence produced by `to_postfix`.

    `degree_mode` applies to every trigonometric call in this evaluation.
    Raises EvalError on stack underflow, unknown functions, invalid
    factorial arguments, non-finite values, or a final stack size other
    than one.
    """

    stack: list[float] = []
    for tok in postfix:
        kind = tok.kind

        if kind is TokenKind.NUMBER:
            stack.append(_finite(float(tok.value)))

        elif kind is TokenKind.OPERATOR:
            a, b = _pop(stack, 2)
            stack.append(_call(OPERATORS[str(tok.value)].apply, a, b))

        elif kind is TokenKind.POSTFIX:
            (a,) = _pop(stack, 1)
            if tok.value == "!":
                stack.append(_finite(factorial(a)))
            else:
                stack.append(_finite(a / 100))

        elif kind is TokenKind.UNARY_MINUS:
            (a,) = _pop(stack, 1)
            stack.append(-a)

        elif kind is TokenKind.NAME:
            fn = FUNCTIONS.get(str(tok.value))
            if fn is None:
                raise EvalError("unknown function", str(tok.value))
            (a,) = _pop(stack, 1)
            if fn.angular and degree_mode:
                a = a * math.pi / 180
            stack.append(_call(fn.apply, a))

        else:
            raise EvalError("invalid expression")

    if len(stack) != 1:
        raise EvalError("invalid expression")
    return stack[0]
