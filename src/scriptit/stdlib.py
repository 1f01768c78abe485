"""Built-in free functions (print, math, conversions, containers) registered via scriptit.runtime."""

from __future__ import annotations

import functools
import math
from typing import Callable, List

from .numeric import coerce
from .ops import op_add
from .runtime import register_math, register_stdlib
from .types import (
    SitBool, SitDict, SitList, SitNone, SitNumber, SitSet, SitString, SitValue,
    Scope, ScriptItFileError, ScriptItRuntimeError, ScriptItTypeError, ScriptItZeroDivisionError,
)
from .values import (
    as_number, auto_numeric, clone, compare, convert, dict_key, is_truthy, iter_values,
    length, pretty_str, to_display, to_float, to_int, type_name, unique,
)

# ---------- Math ----------

def _double(x: float) -> SitNumber:
    return SitNumber(x, "double")

def _unary_math(name: str, fn: Callable[[float], float]):
    def impl(_scope: Scope, args: List[SitValue]) -> SitNumber:
        try:
            return _double(fn(to_float(args[0])))
        except ZeroDivisionError:
            raise ScriptItZeroDivisionError(f"{name}() is undefined at {to_display(args[0])}") from None
        except ValueError:
            raise ScriptItRuntimeError(f"{name}() math domain error for {to_display(args[0])}") from None

    register_math(name)(impl)

def _acot(x: float) -> float:
    return math.pi / 2 if x == 0 else math.atan(1 / x)

_MATH = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "cot": lambda x: 1 / math.tan(x),
    "sec": lambda x: 1 / math.cos(x),
    "csc": lambda x: 1 / math.sin(x),
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "acot": _acot,
    "asec": lambda x: math.acos(1 / x),
    "acsc": lambda x: math.asin(1 / x),
    "log2": math.log2,
    "log10": math.log10,
    "sqrt": math.sqrt,
}

for _name, _fn in _MATH.items():
    _unary_math(_name, _fn)

@register_math("log", arity=(1, 2))
def math_log(_scope: Scope, args: List[SitValue]) -> SitNumber:
    x = to_float(args[0])

    try:
        if len(args) == 2:
            return _double(math.log(x, to_float(args[1])))
        return _double(math.log(x))
    except (ValueError, ZeroDivisionError):
        raise ScriptItRuntimeError(f"log() math domain error for {to_display(args[0])}") from None

@register_math("abs")
def math_abs(_scope: Scope, args: List[SitValue]) -> SitNumber:
    n = as_number(args[0])
    return SitNumber(*coerce(abs(n.value), n.kind))

def _rounding(fn: Callable[[float], int]):
    def impl(_scope: Scope, args: List[SitValue]) -> SitNumber:
        x = to_float(args[0])
        if math.isnan(x) or math.isinf(x):
            return _double(x)
        return SitNumber(*coerce(fn(x), "int"))
    return impl

register_math("ceil")(_rounding(math.ceil))
register_math("floor")(_rounding(math.floor))

@register_math("round", arity=(1, 2))
def math_round(_scope: Scope, args: List[SitValue]) -> SitNumber:
    x = to_float(args[0])

    if len(args) == 2:
        return _double(round(x, to_int(args[1])))
    if math.isnan(x) or math.isinf(x):
        return _double(x)

    # half away from zero
    return SitNumber(*coerce(int(math.floor(abs(x) + 0.5)) * (1 if x >= 0 else -1), "int"))

def _extreme(name: str, pick: Callable[[int], bool]):
    def impl(_scope: Scope, args: List[SitValue]) -> SitValue:
        items = args
        if len(args) == 1:
            items = iter_values(args[0], f"{name}()")
        if not items:
            raise ScriptItRuntimeError(f"{name}() arg is an empty sequence")

        best = items[0]
        for item in items[1:]:
            if pick(compare(item, best)):
                best = item
        return best
    return impl

register_math("min", arity=None)(_extreme("min", lambda c: c < 0))
register_math("max", arity=None)(_extreme("max", lambda c: c > 0))

# ---------- I/O ----------

@register_stdlib("print")
def std_print(_scope: Scope, args: List[SitValue]) -> SitNone:
    print(" ".join(to_display(arg) for arg in args))
    return SitNone()

@register_stdlib("pprint", arity=1)
def std_pprint(_scope: Scope, args: List[SitValue]) -> SitNone:
    print(pretty_str(args[0]))
    return SitNone()

def _path_arg(fname: str, arg: SitValue) -> str:
    if not isinstance(arg, SitString):
        raise ScriptItTypeError(f"{fname}() expects a string filename, got {type_name(arg)}")
    return arg.value

@register_stdlib("read", arity=1)
def std_read(_scope: Scope, args: List[SitValue]) -> SitString:
    path = _path_arg("read", args[0])

    try:
        with open(path, encoding="utf-8") as fh:
            return SitString(fh.read())
    except OSError as exc:
        raise ScriptItFileError(f"Cannot open file: {path}") from exc

@register_stdlib("readLine", arity=(0, 1))
def std_read_line(_scope: Scope, args: List[SitValue]) -> SitValue:
    if not args:
        try:
            return SitString(input())
        except EOFError:
            return SitString("")

    path = _path_arg("readLine", args[0])
    try:
        with open(path, encoding="utf-8") as fh:
            return SitList([SitString(line.rstrip("\r\n")) for line in fh])
    except OSError as exc:
        raise ScriptItFileError(f"Cannot open file: {path}") from exc

@register_stdlib("write", arity=(2, 3))
def std_write(_scope: Scope, args: List[SitValue]) -> SitNone:
    path = _path_arg("write", args[0])
    mode = "w"
    if len(args) == 3 and isinstance(args[2], SitString) and args[2].value == "a":
        mode = "a"

    try:
        with open(path, mode, encoding="utf-8") as fh:
            fh.write(to_display(args[1]))
    except OSError as exc:
        raise ScriptItFileError(f"Cannot open file for writing: {path}") from exc

    return SitNone()

@register_stdlib("input", arity=(0, 1))
def std_input(_scope: Scope, args: List[SitValue]) -> SitString:
    prompt = to_display(args[0]) if args else ""

    try:
        return SitString(input(prompt))
    except EOFError:
        return SitString("")

@register_stdlib("open", arity=(1, 2))
def std_open(scope: Scope, args: List[SitValue]) -> SitDict:
    path = _path_arg("open", args[0])
    mode = to_display(args[1]) if len(args) == 2 else "r"
    return scope.ctx.files.open(path, mode)

@register_stdlib("close", arity=1)
def std_close(scope: Scope, args: List[SitValue]) -> SitNone:
    scope.ctx.files.close(args[0])
    return SitNone()

# ---------- Types and conversion ----------

@register_stdlib("len", arity=1)
def std_len(_scope: Scope, args: List[SitValue]) -> SitNumber:
    return SitNumber(length(args[0]), "int")

@register_stdlib("type", arity=1)
def std_type(_scope: Scope, args: List[SitValue]) -> SitString:
    return SitString(type_name(args[0]))

@register_stdlib("str", arity=1)
def std_str(_scope: Scope, args: List[SitValue]) -> SitString:
    return SitString(to_display(args[0]))

@register_stdlib("repr", arity=1)
def std_repr(_scope: Scope, args: List[SitValue]) -> SitString:
    return SitString(pretty_str(args[0]))

@register_stdlib("bool", arity=1)
def std_bool(_scope: Scope, args: List[SitValue]) -> SitBool:
    return SitBool(is_truthy(args[0]))

@register_stdlib("isinstance", arity=2)
def std_isinstance(_scope: Scope, args: List[SitValue]) -> SitBool:
    return SitBool(type_name(args[0]) == to_display(args[1]))

def _conversion(kind: str):
    def impl(_scope: Scope, args: List[SitValue]) -> SitNumber:
        return convert(args[0], kind)
    return impl

for _kind in ("int", "uint", "long", "ulong", "long_long", "ulong_long", "float", "double", "long_double"):
    register_stdlib(_kind, arity=1)(_conversion(_kind))

@register_stdlib("auto_numeric", arity=1)
def std_auto_numeric(_scope: Scope, args: List[SitValue]) -> SitValue:
    return auto_numeric(args[0])

# ---------- Containers ----------

def _require_list(fname: str, val: SitValue) -> SitList:
    if not isinstance(val, SitList):
        raise ScriptItTypeError(f"{fname}() requires a list, got {type_name(val)}")
    return val

@register_stdlib("append", arity=2)
def std_append(_scope: Scope, args: List[SitValue]) -> SitList:
    lst = _require_list("append", args[0])
    return SitList([clone(x) for x in lst.items] + [clone(args[1])])

@register_stdlib("pop", arity=1)
def std_pop(_scope: Scope, args: List[SitValue]) -> SitValue:
    lst = _require_list("pop", args[0])
    if not lst.items:
        raise ScriptItRuntimeError("pop() from empty list")
    return clone(lst.items[-1])

@register_stdlib("list", arity=(0, 1))
def std_list(_scope: Scope, args: List[SitValue]) -> SitList:
    if not args:
        return SitList()
    return SitList([clone(x) for x in iter_values(args[0], "list()")])

@register_stdlib("set", arity=(0, 1))
def std_set(_scope: Scope, args: List[SitValue]) -> SitSet:
    if not args:
        return SitSet()
    return SitSet([clone(x) for x in unique(iter_values(args[0], "set()"))])

@register_stdlib("dict", arity=(0, 1))
def std_dict(_scope: Scope, args: List[SitValue]) -> SitDict:
    if not args:
        return SitDict()

    src = args[0]
    if isinstance(src, SitDict):
        return clone(src)

    if isinstance(src, SitList):
        out = SitDict()
        for pair in src.items:
            if not (isinstance(pair, SitList) and len(pair.items) == 2):
                raise ScriptItTypeError("dict() expects a list of [key, value] pairs")
            out.entries[dict_key(pair.items[0])] = clone(pair.items[1])
        return out

    raise ScriptItTypeError(f"dict() cannot convert {type_name(src)}")

@register_stdlib("range_list", arity=(2, 3))
def std_range_list(_scope: Scope, args: List[SitValue]) -> SitList:
    start, end = to_int(args[0]), to_int(args[1])
    step = to_int(args[2]) if len(args) == 3 else (1 if end >= start else -1)

    if step == 0:
        raise ScriptItRuntimeError("range_list() step cannot be zero")

    stop = end + 1 if step > 0 else end - 1
    return SitList([SitNumber(*coerce(i, "int")) for i in range(start, stop, step)])

@register_stdlib("graph", arity=(0, 1))
def std_graph(_scope: Scope, args: List[SitValue]) -> SitValue:
    from .graph import make_graph
    return make_graph(args[0] if args else None)

@register_stdlib("sum", arity=(1, 2))
def std_sum(_scope: Scope, args: List[SitValue]) -> SitValue:
    total: SitValue = args[1] if len(args) == 2 else SitNumber(0, "int")

    for item in iter_values(args[0], "sum()"):
        total = op_add(total, item)

    return total

@register_stdlib("sorted", arity=(1, 2))
def std_sorted(_scope: Scope, args: List[SitValue]) -> SitList:
    items = [clone(x) for x in iter_values(args[0], "sorted()")]
    items.sort(key=functools.cmp_to_key(compare))

    if len(args) == 2 and is_truthy(args[1]):
        items.reverse()

    return SitList(items)

@register_stdlib("reversed", arity=1)
def std_reversed(_scope: Scope, args: List[SitValue]) -> SitValue:
    src = args[0]

    if isinstance(src, SitString):
        return SitString(src.value[::-1])
    if isinstance(src, SitSet):
        return SitSet([clone(x) for x in reversed(src.items)])

    return SitList([clone(x) for x in reversed(iter_values(src, "reversed()"))])

@register_stdlib("all", arity=1)
def std_all(_scope: Scope, args: List[SitValue]) -> SitBool:
    return SitBool(all(is_truthy(x) for x in iter_values(args[0], "all()")))

@register_stdlib("any", arity=1)
def std_any(_scope: Scope, args: List[SitValue]) -> SitBool:
    return SitBool(any(is_truthy(x) for x in iter_values(args[0], "any()")))

@register_stdlib("enumerate", arity=(1, 2))
def std_enumerate(_scope: Scope, args: List[SitValue]) -> SitList:
    start = to_int(args[1]) if len(args) == 2 else 0
    items = iter_values(args[0], "enumerate()")

    return SitList([SitList([SitNumber(start + i, "int"), clone(x)]) for i, x in enumerate(items)])

@register_stdlib("zip", arity=2)
def std_zip(_scope: Scope, args: List[SitValue]) -> SitList:
    left = iter_values(args[0], "zip()")
    right = iter_values(args[1], "zip()")

    return SitList([SitList([clone(a), clone(b)]) for a, b in zip(left, right)])

@register_stdlib("map", arity=2)
def std_map(scope: Scope, args: List[SitValue]) -> SitList:
    from .eval.calls import call_by_name

    if not isinstance(args[0], SitString):
        raise ScriptItTypeError(f"map() expects a function name string, got {type_name(args[0])}")

    name = args[0].value
    return SitList([call_by_name(scope, name, [item]) for item in iter_values(args[1], "map()")])
