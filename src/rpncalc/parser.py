"""Shunting-yard conversion from infix tokens to postfix (RPN) order."""

from __future__ import annotations

import math

from rpncalc.errors import ParseError
from rpncalc.operators import OPERATORS, PREFIX_PRECEDENCE
from rpncalc.tokens import Token, TokenKind, number, unary_minus

CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
}

# Tokens after which a "-" negates rather than subtracts.
_UNARY_CONTEXT = (TokenKind.OPERATOR, TokenKind.LPAREN, TokenKind.COMMA)
_PREFIX = (TokenKind.NAME, TokenKind.UNARY_MINUS)


def _is_unary_minus(tok: Token, prev: Token | None) -> bool:
    return tok.value == "-" and (prev is None or prev.kind in _UNARY_CONTEXT)


def _top_precedence(entry: Token) -> float | None:
    if entry.kind is TokenKind.OPERATOR:
        return OPERATORS[str(entry.value)].precedence
    if entry.kind in _PREFIX:
        return PREFIX_PRECEDENCE
    return None


def to_postfix(tokens: list[Token]) -> list[Token]:
    """Reorder `tokens` into postfix order.

    Raises ParseError on mismatched parentheses or a comma outside any
    parenthesis. Postfix operators (``!``, ``%``) are emitted where they
    occur, so they apply to the operand immediately before them.
    """

    output: list[Token] = []
    stack: list[Token] = []
    prev: Token | None = None

    for tok in tokens:
        kind = tok.kind

        if kind is TokenKind.NUMBER or kind is TokenKind.POSTFIX:
            output.append(tok)

        elif kind is TokenKind.NAME:
            if tok.value in CONSTANTS:
                output.append(number(CONSTANTS[str(tok.value)], tok.pos))
            else:
                stack.append(tok)

        elif kind is TokenKind.COMMA:
            while stack and stack[-1].kind is not TokenKind.LPAREN:
                output.append(stack.pop())
            if not stack:
                raise ParseError("misplaced comma")

        elif kind is TokenKind.OPERATOR:
            if _is_unary_minus(tok, prev):
                stack.append(unary_minus(tok.pos))
            else:
                op = OPERATORS[str(tok.value)]
                while stack:
                    top = _top_precedence(stack[-1])
                    if top is None or not op.yields_to(top):
                        break
                    output.append(stack.pop())
                stack.append(tok)

        elif kind is TokenKind.LPAREN:
            stack.append(tok)

        elif kind is TokenKind.RPAREN:
            while stack and stack[-1].kind is not TokenKind.LPAREN:
                output.append(stack.pop())
            if not stack:
                raise ParseError("mismatched parentheses")
            stack.pop()
            # Closing a call: "sin(x)" becomes "x sin".
            if stack and stack[-1].kind in _PREFIX:
                output.append(stack.pop())

        else:
            raise ParseError(f"unexpected token: {tok.value!r}")

        prev = tok

    while stack:
        top = stack.pop()
        if top.kind is TokenKind.LPAREN:
            raise ParseError("mismatched parentheses")
        output.append(top)

    return output
