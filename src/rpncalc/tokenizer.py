"""Lexer: raw expression text to a flat token list.

Names are lowercased here but never resolved; resolving `pi`/`e` is the
parser's job and unknown function names fail at evaluation time.
"""

from __future__ import annotations

from rpncalc.errors import LexError
from rpncalc.tokens import Token, TokenKind

_DIGITS = frozenset("0123456789")
_LETTERS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")
_BINARY = frozenset("+-*/^")
_POSTFIX = frozenset("!%")
_PUNCT = {"(": TokenKind.LPAREN, ")": TokenKind.RPAREN, ",": TokenKind.COMMA}

# Visually similar symbols typed or pasted from the keypad.
UNICODE_OPERATORS = {
    "÷": "/",  # ÷
    "×": "*",  # ×
    "−": "-",  # − (minus sign)
    "—": "-",  # — (em dash)
}


def _scan_number(text: str, start: int) -> tuple[Token, int]:
    end = start
    while end < len(text) and (text[end] in _DIGITS or text[end] == "."):
        end += 1
    literal = text[start:end]
    if literal.count(".") > 1:
        raise LexError("invalid number", literal, start)
    return Token(TokenKind.NUMBER, float(literal), start), end


def _scan_name(text: str, start: int) -> tuple[Token, int]:
    end = start + 1
    while end < len(text) and (text[end] in _LETTERS or text[end] in _DIGITS):
        end += 1
    return Token(TokenKind.NAME, text[start:end].lower(), start), end


def tokenize(text: str) -> list[Token]:
    """Split `text` into tokens, left to right.

    Raises LexError on an unrecognized character or a number literal with
    more than one decimal point.
    """

    tokens: list[Token] = []
    i = 0
    while i < len(text):
        ch = UNICODE_OPERATORS.get(text[i], text[i])

        if ch.isspace():
            i += 1
            continue

        nxt = text[i + 1] if i + 1 < len(text) else ""
        if ch in _DIGITS or (ch == "." and nxt in _DIGITS):
            tok, i = _scan_number(text, i)
            tokens.append(tok)
            continue

        if ch in _LETTERS:
            tok, i = _scan_name(text, i)
            tokens.append(tok)
            continue

        if ch in _PUNCT:
            tokens.append(Token(_PUNCT[ch], ch, i))
        elif ch in _POSTFIX:
            tokens.append(Token(TokenKind.POSTFIX, ch, i))
        elif ch in _BINARY:
            tokens.append(Token(TokenKind.OPERATOR, ch, i))
        else:
            raise LexError("unexpected character", text[i], i)
        i += 1

    return tokens
