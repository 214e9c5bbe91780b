from __future__ import annotations

import asyncio

import pytest

from rpncalc.engine import evaluate_expression
from rpncalc.errors import TranslationError
from rpncalc.nl import RuleTranslator, apply_rules, is_equation_request
from rpncalc.nl.base import Translator, check_expression
from rpncalc.nl.rules import RULES, normalize_percent_and_roots


def test_basic_operator_words() -> None:
    assert apply_rules("what is 5 plus 3?") == "5 + 3"
    assert apply_rules("calculate 9 minus 2") == "9 - 2"
    assert apply_rules("6 times 7") == "6 * 7"
    assert apply_rules("3 multiplied by 4") == "3 * 4"
    assert apply_rules("10 divided by 4") == "10 / 4"
    assert apply_rules("9 over 3") == "9 / 3"


def test_case_insensitive() -> None:
    assert apply_rules("5 PLUS 3") == "5 + 3"


def test_word_boundaries() -> None:
    assert apply_rules("surplus") == "surplus"


def test_powers() -> None:
    assert apply_rules("2 to the power of 10") == "2 ^ 10"
    assert apply_rules("5 squared") == "5 ^2"
    assert apply_rules("3 cubed") == "3 ^3"
    assert evaluate_expression(apply_rules("5 squared")) == 25


def test_percent_of_expands() -> None:
    assert apply_rules("20 percent of 450") == "(20/100)*450"
    assert apply_rules("what is 20% of 450") == "(20/100)*450"
    assert evaluate_expression(apply_rules("20% of 450")) == 90


def test_function_word_followed_by_number_becomes_call() -> None:
    assert apply_rules("sin 45 + cos 30") == "sin(45) + cos(30)"
    assert apply_rules("what is log 1000?") == "log(1000)"
    assert apply_rules("sqrt 2.25") == "sqrt(2.25)"
    assert apply_rules("sin(45)") == "sin(45)"
    assert evaluate_expression(apply_rules("sin 30 + cos 60")) == pytest.approx(1.0)


def test_plain_percent() -> None:
    assert apply_rules("50 per cent") == "50 %"
    assert evaluate_expression(apply_rules("50 percent")) == 0.5


def test_square_root_is_closed() -> None:
    assert apply_rules("square root of 16") == "sqrt(16)"
    assert apply_rules("root of 2.25") == "sqrt(2.25)"
    assert evaluate_expression(apply_rules("square root of 16")) == 4


def test_sqrt_already_closed_is_left_alone() -> None:
    assert normalize_percent_and_roots("sqrt(9)") == "sqrt(9)"
    assert normalize_percent_and_roots("sqrt(9") == "sqrt(9)"


def test_rules_are_ordered_pairs() -> None:
    for pattern, replacement in RULES:
        assert hasattr(pattern, "sub")
        assert isinstance(replacement, str)


def test_equation_detection() -> None:
    assert is_equation_request("solve 2x+5=15") is True
    assert is_equation_request("x equals 4") is False
    assert is_equation_request("2 = 2") is True
    assert is_equation_request("what is 2 plus 2") is False


def test_check_expression() -> None:
    assert check_expression("2+2") == []
    assert check_expression("(2+2") == ["mismatched parentheses"]
    assert check_expression("foo(1)") == []


def test_rule_translator_does_not_retry() -> None:
    res = asyncio.run(RuleTranslator().translate_with_retry("2 plus (3", max_attempts=3))
    assert res.attempts == 1
    assert res.expression == "2 + (3"
    assert res.errors == ["mismatched parentheses"]


def test_rule_translator_success() -> None:
    res = asyncio.run(RuleTranslator().translate_with_retry("what is 5 plus 3"))
    assert res.attempts == 1
    assert res.expression == "5 + 3"
    assert res.errors == []


class _FlakyTranslator(Translator):
    def __init__(self) -> None:
        self.contexts: list[list[str] | None] = []

    async def translate(self, text: str, *, extra_error_context: list[str] | None = None) -> str:
        self.contexts.append(extra_error_context)
        return "(2+2" if len(self.contexts) == 1 else "2+2"


def test_translate_with_retry_feeds_back_errors() -> None:
    t = _FlakyTranslator()
    res = asyncio.run(t.translate_with_retry("two plus two"))
    assert res.attempts == 2
    assert res.expression == "2+2"
    assert res.errors == []
    assert t.contexts[0] is None
    assert t.contexts[1] == ["previous answer '(2+2' was rejected: mismatched parentheses"]


def test_translate_with_retry_stops_at_max_attempts() -> None:
    class _Broken(Translator):
        async def translate(self, text: str, *, extra_error_context: list[str] | None = None) -> str:
            return "(("

    res = asyncio.run(_Broken().translate_with_retry("x", max_attempts=3))
    assert res.attempts == 3
    assert res.errors


class AuthenticationError(Exception):
    pass


class _RejectingTranslator(Translator):
    async def translate(self, text: str, *, extra_error_context: list[str] | None = None) -> str:
        raise AuthenticationError("invalid x-api-key")


def test_provider_errors_become_translation_errors() -> None:
    with pytest.raises(TranslationError, match=r"^AuthenticationError: invalid x-api-key$") as excinfo:
        asyncio.run(_RejectingTranslator().translate_with_retry("1 plus 1"))
    assert isinstance(excinfo.value.__cause__, AuthenticationError)
