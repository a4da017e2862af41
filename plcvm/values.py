from __future__ import annotations
import math
from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Dict, Union

from plc.types import Type, Int, Float, Bool, String, INT_BITS, INT_MIN, INT_MAX

_INT_SPAN = 1 << INT_BITS
_TENTH = Decimal("0.1")
# Wide enough for any finite double written out in full.
_FLOAT_CONTEXT = Context(prec=400)

Data = Union[int, float, bool, str]


def wrap_int(n: int) -> int:
    """Wrap to a signed 32-bit integer."""
    return (n - INT_MIN) % _INT_SPAN + INT_MIN


def format_float(x: float) -> str:
    """One fractional digit; ties round away from zero on the shortest decimal form."""
    if not math.isfinite(x):
        return repr(x)
    d = Decimal(repr(x)).quantize(_TENTH, rounding=ROUND_HALF_UP, context=_FLOAT_CONTEXT)
    return f"{d:f}"


@dataclass(frozen=True)
class Value:
    """A tagged runtime scalar: exactly one of int, float, bool or string."""
    type: Type
    data: Data

    def display(self) -> str:
        if self.type == Float:
            return format_float(self.data)
        if self.type == Bool:
            return "true" if self.data else "false"
        return str(self.data)

    def __str__(self) -> str:
        return self.display()


def int_value(n: int) -> Value:
    return Value(Int, wrap_int(int(n)))


def float_value(x: float) -> Value:
    return Value(Float, float(x))


def bool_value(b: bool) -> Value:
    return Value(Bool, bool(b))


def string_value(s: str) -> Value:
    return Value(String, str(s))


_CONSTRUCTORS = {
    Int: int_value,
    Float: float_value,
    Bool: bool_value,
    String: string_value,
}

ZERO: Dict[Type, Value] = {
    Int: int_value(0),
    Float: float_value(0.0),
    Bool: bool_value(False),
    String: string_value(""),
}


def make_value(type_: Type, data) -> Value:
    return _CONSTRUCTORS[type_](data)
