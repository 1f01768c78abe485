from __future__ import annotations

import importlib
from typing import Callable, Iterable, List, Optional, Tuple, Union

from .types import (
    SitDict, SitGraph, SitList, SitSet, SitString, SitValue,
    Scope, StdlibFn, StdlibFunction, MethodRegistry, Builtins,
    ScriptItArityError, ScriptItMethodNotFound,
)
from .values import type_name

_STDLIB_INITIALIZED = False

# Modules whose import runs the register_* hooks below.
_BUILTIN_MODULES = ("methods", "stdlib", "files", "graph")

def init_stdlib() -> None:
    """Load builtin modules (idempotent) so the register hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    for module_name in _BUILTIN_MODULES:
        importlib.import_module(f".{module_name}", __package__)

    _STDLIB_INITIALIZED = True

def register_method(registry: MethodRegistry, name: str, *arities: int):
    def dec(fn: Callable[..., SitValue]):
        slots = registry.setdefault(name, {})

        for arity in arities:
            slots[arity] = fn

        return fn

    return dec

def register_universal(name: str, *arities: int):
    return register_method(Builtins.universal_methods, name, *(arities or (0,)))

def register_string(name: str, *arities: int):
    return register_method(Builtins.string_methods, name, *(arities or (0,)))

def register_list(name: str, *arities: int):
    return register_method(Builtins.list_methods, name, *(arities or (0,)))

def register_set(name: str, *arities: int):
    return register_method(Builtins.set_methods, name, *(arities or (0,)))

def register_dict(name: str, *arities: int):
    return register_method(Builtins.dict_methods, name, *(arities or (0,)))

def register_graph(name: str, *arities: int):
    return register_method(Builtins.graph_methods, name, *(arities or (0,)))

def register_file(name: str, *arities: int):
    return register_method(Builtins.file_methods, name, *(arities or (0,)))

Arity = Union[int, Iterable[int], None]

def _arity_tuple(arity: Arity) -> Optional[Tuple[int, ...]]:
    if arity is None:
        return None
    if isinstance(arity, int):
        return (arity,)
    return tuple(arity)

def register_stdlib(name: str, *, arity: Arity = None):
    def dec(fn: StdlibFn):
        Builtins.stdlib_functions[name] = StdlibFunction(fn=fn, arity=_arity_tuple(arity))
        return fn

    return dec

def register_math(name: str, *, arity: Arity = 1):
    def dec(fn: StdlibFn):
        Builtins.math_functions[name] = StdlibFunction(fn=fn, arity=_arity_tuple(arity))
        return fn

    return dec

# ---------- Free functions ----------

def is_builtin_name(name: str) -> bool:
    init_stdlib()
    return name in Builtins.math_functions or name in Builtins.stdlib_functions

def builtin_names() -> List[str]:
    init_stdlib()
    return sorted(set(Builtins.math_functions) | set(Builtins.stdlib_functions))

def lookup_builtin(name: str) -> Optional[StdlibFunction]:
    """Math functions shadow the other builtins."""
    init_stdlib()
    found = Builtins.math_functions.get(name)

    if found is None:
        found = Builtins.stdlib_functions.get(name)

    return found

def describe_arity(arity: Tuple[int, ...]) -> str:
    if len(arity) == 1:
        return str(arity[0])
    if len(arity) == 2:
        return f"{arity[0]} or {arity[1]}"
    return f"{min(arity)} to {max(arity)}"

def call_builtin(scope: Scope, name: str, fn: StdlibFunction, args: List[SitValue]) -> SitValue:
    if fn.arity is not None and len(args) not in fn.arity:
        raise ScriptItArityError(f"{name}() takes {describe_arity(fn.arity)} argument(s) ({len(args)} given)")

    return fn.fn(scope, args)

# ---------- Methods ----------

# Methods that may change their receiver in place.
MUTATING_METHODS = frozenset({
    "append", "extend", "insert", "remove", "pop", "clear", "sort", "reverse", "add", "update",
    "add_node", "add_edge", "remove_edge", "set_node_data", "set_edge_weight",
})

def is_file_handle(val: SitValue) -> bool:
    if not isinstance(val, SitDict):
        return False
    kind = val.entries.get("__type__")
    return isinstance(kind, SitString) and kind.value == "file" and "__id__" in val.entries

def _dtype_registry(recv: SitValue) -> Optional[MethodRegistry]:
    match recv:
        case SitString():
            return Builtins.string_methods
        case SitList():
            return Builtins.list_methods
        case SitSet():
            return Builtins.set_methods
        case SitDict():
            return Builtins.dict_methods
        case SitGraph():
            return Builtins.graph_methods
    return None

def method_tables(recv: SitValue) -> List[MethodRegistry]:
    """Registries consulted for `recv`, most specific first."""
    init_stdlib()
    tables: List[MethodRegistry] = []

    if is_file_handle(recv):
        tables.append(Builtins.file_methods)

    dtype = _dtype_registry(recv)
    if dtype is not None:
        tables.append(dtype)

    tables.append(Builtins.universal_methods)
    return tables

def call_builtin_method(recv: SitValue, name: str, args: List[SitValue], scope: Scope) -> SitValue:
    tables = method_tables(recv)
    argc = len(args)

    for table in tables:
        handler = table.get(name, {}).get(argc)
        if handler is not None:
            return handler(scope, recv, args)

    if any(name in table for table in tables):
        raise ScriptItArityError(f"Method '{name}' on {type_name(recv)} does not accept {argc} argument(s)")

    raise ScriptItMethodNotFound(recv, name)
