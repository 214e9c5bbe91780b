"""Binary operator table: precedence, associativity and the operation itself."""

from __future__ import annotations

import math
import operator
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class Associativity(Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True, slots=True)
class BinaryOperator:
    symbol: str
    precedence: int
    associativity: Associativity
    apply: Callable[[float, float], float]

    def yields_to(self, top_precedence: float) -> bool:
        """Whether an entry of `top_precedence` on the stack pops before this one."""

        if self.associativity is Associativity.LEFT:
            return self.precedence <= top_precedence
        return self.precedence < top_precedence


OPERATORS: Mapping[str, BinaryOperator] = MappingProxyType(
    {
        "+": BinaryOperator("+", 2, Associativity.LEFT, operator.add),
        "-": BinaryOperator("-", 2, Associativity.LEFT, operator.sub),
        "*": BinaryOperator("*", 3, Associativity.LEFT, operator.mul),
        "/": BinaryOperator("/", 3, Associativity.LEFT, operator.truediv),
        # math.pow raises on a negative base with a fractional exponent instead
        # of returning a complex number.
        "^": BinaryOperator("^", 4, Associativity.RIGHT, math.pow),
    }
)

# Unary minus and bare function names bind tighter than * and / but looser
# than ^, so "-2^2" is -4 while "-5+3" is -2.
PREFIX_PRECEDENCE = 3.5
