from __future__ import annotations

import math

import pytest

from rpncalc.errors import EvalError
from rpncalc.evaluator import FUNCTIONS, MAX_FACTORIAL, evaluate, factorial
from rpncalc.parser import to_postfix
from rpncalc.tokenizer import tokenize
from rpncalc.tokens import Token, TokenKind, number


def _eval(text: str, *, degree_mode: bool = False) -> float:
    return evaluate(to_postfix(tokenize(text)), degree_mode=degree_mode)


def test_binary_operators_pop_right_operand_first() -> None:
    assert _eval("10-4") == 6
    assert _eval("8/2") == 4
    assert _eval("2^10") == 1024


def test_factorial_values() -> None:
    assert factorial(0) == 1
    assert factorial(1) == 1
    assert factorial(5) == 120
    assert math.isfinite(factorial(MAX_FACTORIAL))


def test_factorial_rejects_fraction() -> None:
    with pytest.raises(EvalError, match="integer"):
        factorial(5.5)


def test_factorial_rejects_negative_and_non_finite() -> None:
    with pytest.raises(EvalError):
        factorial(-1)
    with pytest.raises(EvalError):
        factorial(math.inf)
    with pytest.raises(EvalError):
        factorial(math.nan)


def test_factorial_rejects_values_above_limit() -> None:
    with pytest.raises(EvalError, match="too large"):
        factorial(MAX_FACTORIAL + 1)


def test_chained_postfix_operators() -> None:
    assert _eval("3!!") == 720
    assert _eval("50%+1") == 1.5


def test_unary_minus() -> None:
    assert _eval("-(2+3)") == -5
    assert _eval("--4") == 4


def test_trig_in_radians_and_degrees() -> None:
    assert _eval("sin(90)", degree_mode=True) == pytest.approx(1.0)
    assert _eval("sin(90)", degree_mode=False) == pytest.approx(0.8939966636)
    assert _eval("cos(60)", degree_mode=True) == pytest.approx(0.5)
    assert _eval("tan(45)", degree_mode=True) == pytest.approx(1.0)


def test_reciprocal_trig() -> None:
    assert _eval("csc(30)", degree_mode=True) == pytest.approx(2.0)
    assert _eval("sec(60)", degree_mode=True) == pytest.approx(2.0)
    assert _eval("cot(45)", degree_mode=True) == pytest.approx(1.0)


def test_degree_mode_does_not_touch_non_trig_functions() -> None:
    assert _eval("sqrt(16)", degree_mode=True) == 4
    assert _eval("log(1000)", degree_mode=True) == pytest.approx(3.0)
    assert _eval("ln(e)", degree_mode=True) == pytest.approx(1.0)


def test_function_table_is_closed() -> None:
    assert set(FUNCTIONS) == {"sin", "cos", "tan", "csc", "sec", "cot", "ln", "log", "sqrt"}
    assert {n for n, f in FUNCTIONS.items() if f.angular} == {
        "sin",
        "cos",
        "tan",
        "csc",
        "sec",
        "cot",
    }


def test_unknown_function() -> None:
    with pytest.raises(EvalError, match="unknown function") as excinfo:
        _eval("foo(3)")
    assert excinfo.value.name == "foo"


def test_bare_unknown_name() -> None:
    with pytest.raises(EvalError, match="unknown function"):
        _eval("x")


def test_stack_underflow() -> None:
    with pytest.raises(EvalError, match="stack underflow"):
        _eval("2//3")
    with pytest.raises(EvalError, match="stack underflow"):
        _eval("*3")
    with pytest.raises(EvalError, match="stack underflow"):
        _eval("sqrt()")


def test_division_by_zero_is_non_finite() -> None:
    with pytest.raises(EvalError, match="non-finite"):
        _eval("1/0")


def test_domain_errors_are_non_finite() -> None:
    for text in ("ln(0)", "sqrt(-1)", "log(-10)", "(-8)^(1/3)", "10^400"):
        with pytest.raises(EvalError, match="non-finite"):
            _eval(text)


def test_reciprocal_trig_at_pole_is_non_finite() -> None:
    with pytest.raises(EvalError, match="non-finite"):
        _eval("cot(0)")
    with pytest.raises(EvalError, match="non-finite"):
        _eval("csc(0)", degree_mode=True)


def test_overflowing_literal_is_non_finite() -> None:
    with pytest.raises(EvalError, match="non-finite"):
        _eval("9" * 400)


def test_final_stack_must_hold_one_value() -> None:
    with pytest.raises(EvalError, match="invalid expression"):
        evaluate([], degree_mode=False)
    with pytest.raises(EvalError, match="invalid expression"):
        evaluate([number(1), number(2)], degree_mode=False)


def test_extra_function_argument_is_invalid() -> None:
    with pytest.raises(EvalError, match="invalid expression"):
        _eval("sin(1,2)")


def test_unexpected_token_in_postfix() -> None:
    with pytest.raises(EvalError, match="invalid expression"):
        evaluate([Token(TokenKind.LPAREN, "(", 0)], degree_mode=False)


def test_evaluate_is_deterministic() -> None:
    postfix = to_postfix(tokenize("sin(30)+2^0.5"))
    first = evaluate(postfix, degree_mode=True)
    assert evaluate(postfix, degree_mode=True) == first
    assert evaluate(postfix, degree_mode=False) != first
