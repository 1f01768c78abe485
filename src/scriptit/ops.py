"""Operator implementations keyed by token kind."""
from __future__ import annotations

import math
from typing import Callable, Dict

from .numeric import ZERO_DIVISOR, c_mod, fit_integral, is_integral, widen
from .token_types import TT
from .types import (
    SitBool, SitDict, SitList, SitNumber, SitString, SitValue,
    ScriptItTypeError, ScriptItZeroDivisionError,
)
from .values import as_number, clone, compare, equals, identical, is_numeric, is_truthy, to_display, type_name

BinaryFn = Callable[[SitValue, SitValue], SitValue]

# Above this exponent, integer powers go through floating point instead of exact ints.
_EXACT_POW_LIMIT = 4096


def _numeric_operands(op: str, a: SitValue, b: SitValue):
    if not (is_numeric(a) and is_numeric(b)):
        raise ScriptItTypeError(f"Unsupported operand types for {op}: {type_name(a)} and {type_name(b)}")
    x, y = as_number(a), as_number(b)
    return x, y, widen(x.kind, y.kind)


def _arith(op: str, a: SitValue, b: SitValue, fn: Callable) -> SitNumber:
    x, y, kind = _numeric_operands(op, a, b)

    if is_integral(kind):
        return SitNumber(*fit_integral(fn(int(x.value), int(y.value)), kind))
    return SitNumber(float(fn(float(x.value), float(y.value))), kind)


def _repeat_count(val: SitValue) -> int:
    return max(0, int(val.value))


def _is_integral_number(val: SitValue) -> bool:
    return isinstance(val, SitNumber) and is_integral(val.kind)


def op_add(a: SitValue, b: SitValue) -> SitValue:
    if isinstance(a, SitString) or isinstance(b, SitString):
        return SitString(to_display(a) + to_display(b))

    if isinstance(a, SitList) and isinstance(b, SitList):
        return SitList([clone(x) for x in a.items + b.items])

    return _arith("+", a, b, lambda x, y: x + y)


def op_sub(a: SitValue, b: SitValue) -> SitValue:
    return _arith("-", a, b, lambda x, y: x - y)


def op_mul(a: SitValue, b: SitValue) -> SitValue:
    if isinstance(a, SitString) and _is_integral_number(b):
        return SitString(a.value * _repeat_count(b))
    if isinstance(b, SitString) and _is_integral_number(a):
        return SitString(b.value * _repeat_count(a))
    if isinstance(a, SitList) and _is_integral_number(b):
        return SitList([clone(x) for _ in range(_repeat_count(b)) for x in a.items])

    return _arith("*", a, b, lambda x, y: x * y)


def op_div(a: SitValue, b: SitValue) -> SitValue:
    x, y, kind = _numeric_operands("/", a, b)

    if abs(float(y.value)) < ZERO_DIVISOR:
        raise ScriptItZeroDivisionError("Division by zero")

    return SitNumber(float(x.value) / float(y.value), "double" if is_integral(kind) else kind)


def op_mod(a: SitValue, b: SitValue) -> SitValue:
    x, y, kind = _numeric_operands("%", a, b)

    if abs(float(y.value)) < ZERO_DIVISOR:
        raise ScriptItZeroDivisionError("Modulo by zero")

    if is_integral(kind):
        return SitNumber(*fit_integral(c_mod(int(x.value), int(y.value)), kind))
    return SitNumber(c_mod(float(x.value), float(y.value)), kind)


def _float_pow(x: float, y: float) -> float:
    try:
        return math.pow(x, y)
    except OverflowError:
        return math.inf if x > 0 or float(y).is_integer() and int(y) % 2 == 0 else -math.inf
    except ValueError:
        if x == 0:
            raise ScriptItZeroDivisionError("Zero cannot be raised to a negative power") from None
        return math.nan


def op_pow(a: SitValue, b: SitValue) -> SitValue:
    x, y, kind = _numeric_operands("^", a, b)

    if is_integral(kind):
        base, exp = int(x.value), int(y.value)
        if exp >= 0 and (exp <= _EXACT_POW_LIMIT or abs(base) <= 1):
            return SitNumber(*fit_integral(base ** exp, kind))
        return SitNumber(_float_pow(float(base), float(exp)), "double")

    return SitNumber(_float_pow(float(x.value), float(y.value)), kind)


def _edge(direction: str) -> BinaryFn:
    def build(a: SitValue, b: SitValue) -> SitValue:
        return SitDict({
            "__from__": clone(a),
            "__to__": clone(b),
            "__dir__": SitString(direction),
        })

    return build


BINARY: Dict[TT, BinaryFn] = {
    TT.PLUS: op_add,
    TT.MINUS: op_sub,
    TT.STAR: op_mul,
    TT.SLASH: op_div,
    TT.MOD: op_mod,
    TT.CARET: op_pow,
    TT.EQ: lambda a, b: SitBool(equals(a, b)),
    TT.NEQ: lambda a, b: SitBool(not equals(a, b)),
    TT.LT: lambda a, b: SitBool(compare(a, b) < 0),
    TT.LTE: lambda a, b: SitBool(compare(a, b) <= 0),
    TT.GT: lambda a, b: SitBool(compare(a, b) > 0),
    TT.GTE: lambda a, b: SitBool(compare(a, b) >= 0),
    TT.IS: lambda a, b: SitBool(equals(a, b)),
    TT.IS_NOT: lambda a, b: SitBool(not equals(a, b)),
    TT.POINTS: lambda a, b: SitBool(identical(a, b)),
    TT.NOT_POINTS: lambda a, b: SitBool(not identical(a, b)),
    TT.AND: lambda a, b: SitBool(is_truthy(a) and is_truthy(b)),
    TT.OR: lambda a, b: SitBool(is_truthy(a) or is_truthy(b)),
    TT.ARROW: _edge("directed"),
    TT.BIARROW: _edge("bidirectional"),
    TT.DASH3: _edge("undirected"),
}


def negate(a: SitValue) -> SitValue:
    if not is_numeric(a):
        raise ScriptItTypeError(f"Bad operand type for unary -: {type_name(a)}")

    x = as_number(a)
    if is_integral(x.kind):
        return SitNumber(*fit_integral(-int(x.value), x.kind))
    return SitNumber(-float(x.value), x.kind)


def apply_unary(op: TT, a: SitValue) -> SitValue:
    if op == TT.NEG:
        return negate(a)
    return SitBool(not is_truthy(a))