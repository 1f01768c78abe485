"""Dot-method tables per dtype, plus the universal fallback table.

Mutating methods change `recv` in place; the evaluator decides whether `recv`
is the caller's variable or a private copy.
"""

from __future__ import annotations

import functools
from typing import List

from .numeric import FLOATING, INTEGRAL, KINDS
from .runtime import (
    register_dict, register_list, register_set, register_string, register_universal,
)
from .types import (
    SitBool, SitDict, SitGraph, SitList, SitNone, SitNumber, SitSet, SitString, SitValue,
    Scope, ScriptItRuntimeError, ScriptItTypeError,
)
from .values import (
    clone, compare, contains_value, convert, dict_key, equals, hash_value, is_truthy, iter_values,
    length, pretty_str, to_display, to_int, type_name, unique,
)

def _int(n: int) -> SitNumber:
    return SitNumber(n, "int")

def _str_arg(method: str, arg: SitValue) -> str:
    if isinstance(arg, SitString):
        return arg.value

    raise ScriptItTypeError(f"{method}() expects a string argument, got {type_name(arg)}")

def _index(method: str, size: int, arg: SitValue) -> int:
    idx = to_int(arg)
    if idx < 0:
        idx += size

    if not 0 <= idx < size:
        raise ScriptItRuntimeError(f"{method}() index {to_int(arg)} out of range for size {size}")

    return idx

def _slice_bounds(args: List[SitValue]) -> slice:
    parts = [None if isinstance(a, SitNone) else to_int(a) for a in args]

    if len(parts) == 3 and parts[2] == 0:
        raise ScriptItRuntimeError("slice() step cannot be zero")

    return slice(*parts)

# ---------- Universal ----------

@register_universal("type")
def _type(_scope: Scope, recv: SitValue, _args: List[SitValue]) -> SitString:
    return SitString(type_name(recv))

@register_universal("str")
@register_universal("toString")
def _str(_scope: Scope, recv: SitValue, _args: List[SitValue]) -> SitString:
    return SitString(to_display(recv))

@register_universal("pretty_str")
def _pretty_str(_scope: Scope, recv: SitValue, _args: List[SitValue]) -> SitString:
    return SitString(pretty_str(recv))

@register_universal("len")
def _len(_scope: Scope, recv: SitValue, _args: List[SitValue]) -> SitNumber:
    return _int(length(recv))

@register_universal("hash")
def _hash(_scope: Scope, recv: SitValue, _args: List[SitValue]) -> SitNumber:
    return SitNumber(hash_value(recv), "long_long")

def _predicate(test):
    def method(_scope: Scope, recv: SitValue, _args: List[SitValue]) -> SitBool:
        return SitBool(test(recv))
    return method

def _is_kind(kind: str):
    return lambda v: isinstance(v, SitNumber) and v.kind == kind

_PREDICATES = {
    "is_none": lambda v: isinstance(v, SitNone),
    "isNone": lambda v: isinstance(v, SitNone),
    "is_bool": lambda v: isinstance(v, SitBool),
    "is_string": lambda v: isinstance(v, SitString),
    "is_list": lambda v: isinstance(v, SitList),
    "is_dict": lambda v: isinstance(v, SitDict),
    "is_ordered_dict": lambda v: isinstance(v, SitDict),
    "is_set": lambda v: isinstance(v, SitSet),
    "is_ordered_set": lambda v: isinstance(v, SitSet),
    "is_graph": lambda v: isinstance(v, SitGraph),
    "is_any_integral": lambda v: isinstance(v, SitNumber) and v.kind in INTEGRAL,
    "isIntegral": lambda v: isinstance(v, SitNumber) and v.kind in INTEGRAL,
    "is_any_floating": lambda v: isinstance(v, SitNumber) and v.kind in FLOATING,
    "is_any_numeric": lambda v: isinstance(v, SitNumber),
    "isNumeric": lambda v: isinstance(v, SitNumber),
    **{f"is_{kind}": _is_kind(kind) for kind in KINDS},
}

for _name, _test in _PREDICATES.items():
    register_universal(_name)(_predicate(_test))

def _converter(kind: str):
    def method(_scope: Scope, recv: SitValue, _args: List[SitValue]) -> SitNumber:
        return convert(recv, kind)
    return method

_CONVERSIONS = {
    "toInt": "int",
    "toLong": "long",
    "toLongLong": "long_long",
    "toFloat": "float",
    "toDouble": "double",
    "toLongDouble": "long_double",
}

for _name, _kind in _CONVERSIONS.items():
    register_universal(_name)(_converter(_kind))

@register_universal("toBool")
def _to_bool(_scope: Scope, recv: SitValue, _args: List[SitValue]) -> SitBool:
    return SitBool(is_truthy(recv))

# ---------- String ----------

def _sentence_case(text: str) -> str:
    out = []
    start = True

    for ch in text.lower():
        if start and ch.isalpha():
            out.append(ch.upper())
            start = False
        else:
            out.append(ch)

        if ch in ".!?":
            start = True

    return "".join(out)

_STRING_TRANSFORMS = {
    "upper": str.upper,
    "lower": str.lower,
    "strip": str.strip,
    "lstrip": str.lstrip,
    "rstrip": str.rstrip,
    "capitalize": str.capitalize,
    "title": str.title,
    "sentence_case": _sentence_case,
    "reverse": lambda s: s[::-1],
}

def _transform(fn):
    def method(_scope: Scope, recv: SitString, _args: List[SitValue]) -> SitString:
        return SitString(fn(recv.value))
    return method

for _name, _fn in _STRING_TRANSFORMS.items():
    register_string(_name)(_transform(_fn))

_STRING_TESTS = {
    "isdigit": str.isdigit,
    "isalpha": str.isalpha,
    "isalnum": str.isalnum,
    "isspace": str.isspace,
}

for _name, _fn in _STRING_TESTS.items():
    register_string(_name)(_predicate(lambda v, fn=_fn: fn(v.value)))

@register_string("empty")
@register_list("empty")
@register_set("empty")
@register_dict("empty")
def _empty(_scope: Scope, recv: SitValue, _args: List[SitValue]) -> SitBool:
    return SitBool(length(recv) == 0)

@register_string("size")
@register_list("size")
@register_set("size")
@register_dict("size")
def _size(_scope: Scope, recv: SitValue, _args: List[SitValue]) -> SitNumber:
    return _int(length(recv))

@register_string("split", 0, 1)
def _string_split(_scope: Scope, recv: SitString, args: List[SitValue]) -> SitList:
    if not args:
        return SitList([SitString(part) for part in recv.value.split()])

    sep = _str_arg("split", args[0])
    if sep == "":
        return SitList([SitString(ch) for ch in recv.value])

    return SitList([SitString(part) for part in recv.value.split(sep)])

@register_string("find", 1)
def _string_find(_scope: Scope, recv: SitString, args: List[SitValue]) -> SitNumber:
    return _int(recv.value.find(_str_arg("find", args[0])))

@register_string("count", 1)
def _string_count(_scope: Scope, recv: SitString, args: List[SitValue]) -> SitNumber:
    return _int(recv.value.count(_str_arg("count", args[0])))

@register_string("startswith", 1)
def _string_startswith(_scope: Scope, recv: SitString, args: List[SitValue]) -> SitBool:
    return SitBool(recv.value.startswith(_str_arg("startswith", args[0])))

@register_string("endswith", 1)
def _string_endswith(_scope: Scope, recv: SitString, args: List[SitValue]) -> SitBool:
    return SitBool(recv.value.endswith(_str_arg("endswith", args[0])))

@register_string("contains", 1)
@register_string("has", 1)
def _string_contains(_scope: Scope, recv: SitString, args: List[SitValue]) -> SitBool:
    return SitBool(to_display(args[0]) in recv.value)

@register_string("join", 1)
def _string_join(_scope: Scope, recv: SitString, args: List[SitValue]) -> SitString:
    items = iter_values(args[0], "join()")
    return SitString(recv.value.join(to_display(item) for item in items))

@register_string("zfill", 1)
def _string_zfill(_scope: Scope, recv: SitString, args: List[SitValue]) -> SitString:
    return SitString(recv.value.zfill(to_int(args[0])))

@register_string("at", 1)
def _string_at(_scope: Scope, recv: SitString, args: List[SitValue]) -> SitString:
    return SitString(recv.value[_index("at", len(recv.value), args[0])])

@register_string("replace", 2)
def _string_replace(_scope: Scope, recv: SitString, args: List[SitValue]) -> SitString:
    old, new = _str_arg("replace", args[0]), _str_arg("replace", args[1])
    return SitString(recv.value.replace(old, new))

@register_string("center", 1, 2)
def _string_center(_scope: Scope, recv: SitString, args: List[SitValue]) -> SitString:
    fill = _str_arg("center", args[1])[:1] if len(args) == 2 else " "
    return SitString(recv.value.center(to_int(args[0]), fill or " "))

@register_string("slice", 2, 3)
def _string_slice(_scope: Scope, recv: SitString, args: List[SitValue]) -> SitString:
    return SitString(recv.value[_slice_bounds(args)])

# ---------- List ----------

def _require_items(method: str, recv: SitList) -> None:
    if not recv.items:
        raise ScriptItRuntimeError(f"{method}() on empty list")

@register_list("front")
def _list_front(_scope: Scope, recv: SitList, _args: List[SitValue]) -> SitValue:
    _require_items("front", recv)
    return recv.items[0]

@register_list("back")
def _list_back(_scope: Scope, recv: SitList, _args: List[SitValue]) -> SitValue:
    _require_items("back", recv)
    return recv.items[-1]

@register_list("pop")
def _list_pop(_scope: Scope, recv: SitList, _args: List[SitValue]) -> SitValue:
    _require_items("pop", recv)
    return recv.items.pop()

@register_list("clear")
@register_set("clear")
def _clear_items(_scope: Scope, recv: SitValue, _args: List[SitValue]) -> SitNone:
    recv.items.clear()
    return SitNone()

@register_list("sort")
def _list_sort(_scope: Scope, recv: SitList, _args: List[SitValue]) -> SitList:
    recv.items.sort(key=functools.cmp_to_key(compare))
    return recv

@register_list("reverse")
def _list_reverse(_scope: Scope, recv: SitList, _args: List[SitValue]) -> SitList:
    recv.items.reverse()
    return recv

@register_list("keys")
def _list_keys(_scope: Scope, recv: SitList, _args: List[SitValue]) -> SitList:
    return SitList([_int(i) for i in range(len(recv.items))])

@register_list("append", 1)
def _list_append(_scope: Scope, recv: SitList, args: List[SitValue]) -> SitList:
    recv.items.append(clone(args[0]))
    return recv

@register_list("extend", 1)
def _list_extend(_scope: Scope, recv: SitList, args: List[SitValue]) -> SitList:
    recv.items.extend(clone(item) for item in iter_values(args[0], "extend()"))
    return recv

@register_list("remove", 1)
def _list_remove(_scope: Scope, recv: SitList, args: List[SitValue]) -> SitList:
    for i, item in enumerate(recv.items):
        if equals(item, args[0]):
            del recv.items[i]
            break
    return recv

@register_list("contains", 1)
@register_list("has", 1)
@register_set("contains", 1)
@register_set("has", 1)
def _items_contain(_scope: Scope, recv: SitValue, args: List[SitValue]) -> SitBool:
    return SitBool(contains_value(recv.items, args[0]))

@register_list("count", 1)
def _list_count(_scope: Scope, recv: SitList, args: List[SitValue]) -> SitNumber:
    return _int(sum(1 for item in recv.items if equals(item, args[0])))

@register_list("index", 1)
def _list_index(_scope: Scope, recv: SitList, args: List[SitValue]) -> SitNumber:
    for i, item in enumerate(recv.items):
        if equals(item, args[0]):
            return _int(i)
    return _int(-1)

@register_list("at", 1)
def _list_at(_scope: Scope, recv: SitList, args: List[SitValue]) -> SitValue:
    return recv.items[_index("at", len(recv.items), args[0])]

@register_list("slice", 2, 3)
def _list_slice(_scope: Scope, recv: SitList, args: List[SitValue]) -> SitList:
    return SitList([clone(item) for item in recv.items[_slice_bounds(args)]])

@register_list("insert", 2)
def _list_insert(_scope: Scope, recv: SitList, args: List[SitValue]) -> SitList:
    size = len(recv.items)
    idx = to_int(args[0])
    if idx < 0:
        idx += size
    idx = min(max(idx, 0), size)

    recv.items.insert(idx, clone(args[1]))
    return recv

# ---------- Set ----------

@register_set("add", 1)
def _set_add(_scope: Scope, recv: SitSet, args: List[SitValue]) -> SitSet:
    if not contains_value(recv.items, args[0]):
        recv.items.append(clone(args[0]))
    return recv

@register_set("remove", 1)
def _set_remove(_scope: Scope, recv: SitSet, args: List[SitValue]) -> SitSet:
    recv.items[:] = [item for item in recv.items if not equals(item, args[0])]
    return recv

@register_set("extend", 1)
@register_set("update", 1)
def _set_update(_scope: Scope, recv: SitSet, args: List[SitValue]) -> SitSet:
    merged = unique(recv.items + [clone(item) for item in iter_values(args[0], "update()")])
    recv.items[:] = merged
    return recv

# ---------- Dict ----------

@register_dict("keys")
def _dict_keys(_scope: Scope, recv: SitDict, _args: List[SitValue]) -> SitList:
    return SitList([SitString(k) for k in recv.entries])

@register_dict("values")
def _dict_values(_scope: Scope, recv: SitDict, _args: List[SitValue]) -> SitList:
    return SitList([clone(v) for v in recv.entries.values()])

@register_dict("items")
def _dict_items(_scope: Scope, recv: SitDict, _args: List[SitValue]) -> SitList:
    return SitList([SitList([SitString(k), clone(v)]) for k, v in recv.entries.items()])

@register_dict("clear")
def _dict_clear(_scope: Scope, recv: SitDict, _args: List[SitValue]) -> SitNone:
    recv.entries.clear()
    return SitNone()

@register_dict("contains", 1)
@register_dict("has", 1)
def _dict_contains(_scope: Scope, recv: SitDict, args: List[SitValue]) -> SitBool:
    return SitBool(dict_key(args[0]) in recv.entries)

@register_dict("update", 1)
def _dict_update(_scope: Scope, recv: SitDict, args: List[SitValue]) -> SitDict:
    other = args[0]
    if not isinstance(other, SitDict):
        raise ScriptItTypeError(f"update() expects a dict, got {type_name(other)}")

    for k, v in other.entries.items():
        recv.entries[k] = clone(v)
    return recv

@register_dict("get", 1, 2)
def _dict_get(_scope: Scope, recv: SitDict, args: List[SitValue]) -> SitValue:
    key = dict_key(args[0])

    if key in recv.entries:
        return recv.entries[key]
    return args[1] if len(args) == 2 else SitNone()
