"""Token model shared by the tokenizer, parser and evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenKind(Enum):
    """All token kinds flowing through the pipeline."""

    NUMBER = auto()  # float literal, or a resolved constant
    NAME = auto()  # function name (lowercase)
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    COMMA = auto()  # ,
    POSTFIX = auto()  # ! %
    OPERATOR = auto()  # + - * / ^
    UNARY_MINUS = auto()  # parser-only, never produced by tokenize()


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: float | str
    pos: int = -1

    def __str__(self) -> str:
        if self.kind is TokenKind.NUMBER:
            v = float(self.value)
            return str(int(v)) if v.is_integer() and abs(v) < 1e15 else repr(v)
        if self.kind is TokenKind.UNARY_MINUS:
            return "neg"
        return str(self.value)


def number(value: float, pos: int = -1) -> Token:
    return Token(TokenKind.NUMBER, float(value), pos)


def unary_minus(pos: int = -1) -> Token:
    return Token(TokenKind.UNARY_MINUS, "-", pos)


def format_tokens(tokens: list[Token]) -> str:
    """Space-separated rendering, e.g. ``3 4 ! +``."""

    return " ".join(str(t) for t in tokens)
