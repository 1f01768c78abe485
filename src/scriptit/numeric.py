"""Numeric kinds, their ranking, and overflow promotion.

Integral kinds carry Python ints clamped to the C ranges they model; floating
kinds carry Python floats. A result takes the higher-ranked kind of its
operands, and an integral result that leaves its range moves to the next wider
kind of the same signedness (then to `long_long`, then to `double`).
"""
from __future__ import annotations

import math
from typing import Dict, Tuple, Union

Num = Union[int, float]

KINDS = (
    "int",
    "uint",
    "long",
    "ulong",
    "long_long",
    "ulong_long",
    "float",
    "double",
    "long_double",
)

RANK: Dict[str, int] = {kind: i for i, kind in enumerate(KINDS)}

INTEGRAL = frozenset(KINDS[:6])
FLOATING = frozenset(KINDS[6:])
UNSIGNED = frozenset({"uint", "ulong", "ulong_long"})

BOUNDS: Dict[str, Tuple[int, int]] = {
    "int": (-2**31, 2**31 - 1),
    "uint": (0, 2**32 - 1),
    "long": (-2**63, 2**63 - 1),
    "ulong": (0, 2**64 - 1),
    "long_long": (-2**63, 2**63 - 1),
    "ulong_long": (0, 2**64 - 1),
}

EPSILON = 1e-9
ZERO_DIVISOR = 1e-15


def is_integral(kind: str) -> bool:
    return kind in INTEGRAL


def fits(value: int, kind: str) -> bool:
    low, high = BOUNDS[kind]
    return low <= value <= high


def widen(a: str, b: str) -> str:
    return a if RANK[a] >= RANK[b] else b


def fit_integral(value: int, kind: str) -> Tuple[Num, str]:
    """Place an integral result in `kind` or the narrowest wider kind holding it."""
    if fits(value, kind):
        return value, kind

    signed = kind not in UNSIGNED
    for candidate in KINDS[RANK[kind] + 1:6]:
        if (candidate not in UNSIGNED) == signed and fits(value, candidate):
            return value, candidate

    if not signed and fits(value, "long_long"):
        return value, "long_long"

    try:
        return float(value), "double"
    except OverflowError:
        return (math.inf if value > 0 else -math.inf), "double"


def literal_kind(text: str) -> Tuple[Num, str]:
    """Kind of a source literal: `double` with a dot, else `int` or `long_long`."""
    if "." in text:
        return float(text), "double"

    value = int(text)
    if fits(value, "int"):
        return value, "int"
    return fit_integral(value, "long_long")


def coerce(value: Num, kind: str) -> Tuple[Num, str]:
    """Convert a Python number into `kind`, promoting when it does not fit."""
    if kind in FLOATING:
        return float(value), kind

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return value, "double"
        value = int(value)

    return fit_integral(value, kind)


def c_mod(a: Num, b: Num) -> Num:
    """Remainder that takes the sign of the dividend."""
    if isinstance(a, int) and isinstance(b, int):
        r = abs(a) % abs(b)
        return -r if a < 0 else r
    return math.fmod(a, b)


def format_number(value: Num, kind: str) -> str:
    if kind in INTEGRAL and isinstance(value, int):
        return str(value)
    return format(value, "g")
