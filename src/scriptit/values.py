"""Value helpers: truthiness, display, type names, equality, copies and conversions."""
from __future__ import annotations

import math
import zlib
from typing import Iterable, List

from .numeric import EPSILON, FLOATING, INTEGRAL, coerce
from .types import (
    SitBool, SitDict, SitGraph, SitList, SitNone, SitNumber, SitSet, SitString, SitValue,
    ScriptItTypeError,
)

def is_truthy(val: SitValue) -> bool:
    match val:
        case SitBool(value=b):
            return b
        case SitNone():
            return False
        case SitNumber(value=num):
            return num != 0
        case SitString(value=s):
            return bool(s)
        case SitList(items=items) | SitSet(items=items):
            return bool(items)
        case SitDict(entries=entries):
            return bool(entries)
        case SitGraph(g=g):
            return g.number_of_nodes() > 0
        case _:
            return True

def type_name(val: SitValue) -> str:
    match val:
        case SitNone():
            return "NoneType"
        case SitBool():
            return "bool"
        case SitNumber(kind=kind):
            return kind
        case SitString():
            return "str"
        case SitList():
            return "list"
        case SitSet():
            return "set"
        case SitDict():
            return "dict"
        case SitGraph():
            return "graph"
    return type(val).__name__

def to_display(val: SitValue) -> str:
    """Top-level rendering: strings raw, everything else as its repr."""
    if isinstance(val, SitString):
        return val.value
    return repr(val)

def pretty_str(val: SitValue, indent: int = 0) -> str:
    pad = "  " * indent
    inner = "  " * (indent + 1)

    match val:
        case SitList(items=items) if items:
            body = ",\n".join(inner + pretty_str(x, indent + 1) for x in items)
            return "[\n" + body + "\n" + pad + "]"
        case SitSet(items=items) if items:
            body = ",\n".join(inner + pretty_str(x, indent + 1) for x in items)
            return "{\n" + body + "\n" + pad + "}"
        case SitDict(entries=entries) if entries:
            body = ",\n".join(f'{inner}"{k}": {pretty_str(v, indent + 1)}' for k, v in entries.items())
            return "{\n" + body + "\n" + pad + "}"
    return repr(val)

def as_number(val: SitValue) -> SitNumber:
    """Numeric view used by arithmetic; booleans count as ints."""
    if isinstance(val, SitNumber):
        return val
    if isinstance(val, SitBool):
        return SitNumber(int(val.value), "int")
    raise ScriptItTypeError(f"Expected a number, got {type_name(val)}")

def is_numeric(val: SitValue) -> bool:
    return isinstance(val, (SitNumber, SitBool))

def to_float(val: SitValue) -> float:
    if is_numeric(val):
        return float(as_number(val).value)
    if isinstance(val, SitString):
        try:
            return float(val.value.strip())
        except ValueError:
            raise ScriptItTypeError(f"Cannot convert '{val.value}' to a number") from None
    if isinstance(val, SitNone):
        return 0.0
    raise ScriptItTypeError(f"Cannot convert {type_name(val)} to a number")

def to_int(val: SitValue) -> int:
    if isinstance(val, SitNumber) and val.kind in INTEGRAL:
        return int(val.value)

    f = to_float(val)
    if math.isnan(f) or math.isinf(f):
        raise ScriptItTypeError(f"Cannot convert {to_display(val)} to an integer")
    return int(f)

def convert(val: SitValue, kind: str) -> SitNumber:
    """Numeric conversion used by `int()`, `toDouble()` and friends."""
    if kind in FLOATING:
        return SitNumber(*coerce(to_float(val), kind))
    return SitNumber(*coerce(to_int(val), kind))

def auto_numeric(val: SitValue) -> SitValue:
    """Parse a string into the narrowest number it spells; leave other values alone."""
    if not isinstance(val, SitString):
        return val

    text = val.value.strip()
    try:
        return SitNumber(*coerce(int(text), "int"))
    except ValueError:
        pass

    try:
        return SitNumber(float(text), "double")
    except ValueError:
        raise ScriptItTypeError(f"Cannot convert '{val.value}' to a number") from None

def dict_key(val: SitValue) -> str:
    return to_display(val)

def equals(a: SitValue, b: SitValue) -> bool:
    """Language `==`: tolerance for numbers, structural for containers."""
    if isinstance(a, SitString) and isinstance(b, SitString):
        return a.value == b.value

    if isinstance(a, SitNone) or isinstance(b, SitNone):
        return isinstance(a, SitNone) and isinstance(b, SitNone)

    if isinstance(a, SitList) and isinstance(b, SitList):
        return len(a.items) == len(b.items) and all(equals(x, y) for x, y in zip(a.items, b.items))

    if isinstance(a, SitSet) and isinstance(b, SitSet):
        return len(a.items) == len(b.items) and all(contains_value(b.items, x) for x in a.items)

    if isinstance(a, SitDict) and isinstance(b, SitDict):
        if a.entries.keys() != b.entries.keys():
            return False
        return all(equals(v, b.entries[k]) for k, v in a.entries.items())

    if isinstance(a, SitGraph) and isinstance(b, SitGraph):
        return a is b or (
            set(a.g.nodes) == set(b.g.nodes)
            and {(u, v, d["weight"]) for u, v, d in a.g.edges(data=True)}
            == {(u, v, d["weight"]) for u, v, d in b.g.edges(data=True)}
        )

    if is_numeric(a) and is_numeric(b):
        return abs(float(as_number(a).value) - float(as_number(b).value)) < EPSILON

    return False

def identical(a: SitValue, b: SitValue) -> bool:
    """`points`: same type name, exact value comparison, no tolerance."""
    if type_name(a) != type_name(b):
        return False

    match a:
        case SitNone():
            return True
        case SitBool() | SitNumber() | SitString():
            return a.value == b.value
    return equals(a, b)

def compare(a: SitValue, b: SitValue) -> int:
    """Three-way ordering used by `<`, `sort` and `sorted`."""
    if isinstance(a, SitString) and isinstance(b, SitString):
        return (a.value > b.value) - (a.value < b.value)

    if isinstance(a, SitList) and isinstance(b, SitList):
        for x, y in zip(a.items, b.items):
            c = compare(x, y)
            if c:
                return c
        return (len(a.items) > len(b.items)) - (len(a.items) < len(b.items))

    if (is_numeric(a) or isinstance(a, SitNone)) and (is_numeric(b) or isinstance(b, SitNone)):
        x, y = to_float(a), to_float(b)
        return (x > y) - (x < y)

    raise ScriptItTypeError(f"Cannot compare {type_name(a)} and {type_name(b)}")

def contains_value(items: Iterable[SitValue], needle: SitValue) -> bool:
    return any(equals(item, needle) for item in items)

def clone(val: SitValue) -> SitValue:
    """Independent copy: containers are duplicated, scalars are immutable and shared."""
    match val:
        case SitList(items=items):
            return SitList([clone(x) for x in items])
        case SitSet(items=items):
            return SitSet([clone(x) for x in items])
        case SitDict(entries=entries):
            return SitDict({k: clone(v) for k, v in entries.items()})
        case SitGraph(g=g):
            return SitGraph(g.copy())
    return val

def unique(items: Iterable[SitValue]) -> List[SitValue]:
    out: List[SitValue] = []

    for item in items:
        if not contains_value(out, item):
            out.append(item)

    return out

def length(val: SitValue) -> int:
    match val:
        case SitString(value=s):
            return len(s)
        case SitList(items=items) | SitSet(items=items):
            return len(items)
        case SitDict(entries=entries):
            return len(entries)
        case SitGraph(g=g):
            return g.number_of_nodes()
    raise ScriptItTypeError(f"Object of type {type_name(val)} has no len()")

def iter_values(val: SitValue, what: str) -> List[SitValue]:
    """Elements of an iterable value, as a snapshot list."""
    match val:
        case SitList(items=items) | SitSet(items=items):
            return list(items)
        case SitString(value=s):
            return [SitString(ch) for ch in s]
        case SitDict(entries=entries):
            return [SitString(k) for k in entries]
    raise ScriptItTypeError(f"{what} requires a list, string, or set; got {type_name(val)}")

def hash_value(val: SitValue) -> int:
    """Same value on every run; text is hashed with CRC-32."""
    match val:
        case SitNumber(value=v):
            return hash(v)
        case SitBool(value=b):
            return hash(b)
        case SitString(value=s):
            return zlib.crc32(s.encode("utf-8"))
    return zlib.crc32(to_display(val).encode("utf-8"))
