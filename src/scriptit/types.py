from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Set, Tuple, Union

import networkx as nx
from typing_extensions import Protocol, TypeAlias

from .nodes import FunctionDef, function_key
from .numeric import Num, format_number

if TYPE_CHECKING:
    from .config import InterpreterConfig
    from .files import FileRegistry

logger = logging.getLogger(__name__)

# ---------- Value Model ----------

@dataclass
class SitNone:
    def __repr__(self) -> str:
        return "None"

@dataclass
class SitBool:
    value: bool
    def __repr__(self) -> str:
        return "True" if self.value else "False"

@dataclass
class SitNumber:
    value: Num
    kind: str = "int"
    def __repr__(self) -> str:
        return format_number(self.value, self.kind)

@dataclass
class SitString:
    value: str
    def __repr__(self) -> str:
        return f'"{self.value}"'

@dataclass
class SitList:
    items: List['SitValue'] = field(default_factory=list)
    def __repr__(self) -> str:
        return "[" + ", ".join(repr(x) for x in self.items) + "]"

@dataclass
class SitSet:
    """Insertion-ordered; members are unique under language equality."""
    items: List['SitValue'] = field(default_factory=list)
    def __repr__(self) -> str:
        return "{" + ", ".join(repr(x) for x in self.items) + "}"

@dataclass
class SitDict:
    entries: Dict[str, 'SitValue'] = field(default_factory=dict)
    def __repr__(self) -> str:
        pairs = []

        for k, v in self.entries.items():
            pairs.append(f'"{k}": {repr(v)}')

        return "{" + ", ".join(pairs) + "}"

@dataclass
class SitGraph:
    """Edges carry `directed` and `weight`; an undirected edge is stored both ways."""
    g: nx.DiGraph = field(default_factory=nx.DiGraph)
    def __repr__(self) -> str:
        from .graph import edge_count
        return f"<graph nodes={self.g.number_of_nodes()} edges={edge_count(self)}>"

SitValue: TypeAlias = Union[SitNone, SitBool, SitNumber, SitString, SitList, SitSet, SitDict, SitGraph]

CONTAINER_TYPES: Tuple[type, ...] = (SitList, SitSet, SitDict, SitGraph)

# ---------- Exceptions ----------

class ScriptItRuntimeError(Exception):
    """Evaluation failure; `line` is filled in by the innermost statement or token that saw it."""

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"{self.message} at line {self.line}"

class ScriptItTypeError(ScriptItRuntimeError):
    pass

class ScriptItArityError(ScriptItRuntimeError):
    pass

class ScriptItNameError(ScriptItRuntimeError):
    pass

class ScriptItFunctionNotFound(ScriptItRuntimeError):
    pass

class ScriptItMethodNotFound(ScriptItRuntimeError):
    def __init__(self, recv: SitValue, name: str):
        from .values import type_name
        super().__init__(f"Unknown method '{name}' on type '{type_name(recv)}'")
        self.receiver = recv
        self.name = name

class ScriptItZeroDivisionError(ScriptItRuntimeError):
    pass

class ScriptItFileError(ScriptItRuntimeError):
    pass

class ScriptItRecursionError(ScriptItRuntimeError):
    pass

def attach_line(exc: ScriptItRuntimeError, line: Optional[int]) -> None:
    if exc.line is None and line:
        exc.line = line

# ---------- Control Flow ----------

@dataclass
class Return:
    """Flow record produced by `give`; consumed at the function-call boundary."""
    value: SitValue

Flow: TypeAlias = Optional[Return]

# ---------- Session Context ----------

class Context:
    """State shared by every scope of one interpreter session."""

    def __init__(self, config: 'InterpreterConfig', files: 'FileRegistry', echo: Optional[Callable[[str], None]] = None):
        self.config = config
        self.files = files
        self.echo = echo if echo is not None else print
        self.depth = 0
        self.last_value: Optional[SitValue] = None

# ---------- Scopes ----------

class Scope:
    def __init__(self, parent: Optional['Scope'] = None, barrier: bool = False, ctx: Optional[Context] = None):
        self.parent = parent
        self.barrier = barrier
        self.vars: Dict[str, SitValue] = {}
        self.functions: Dict[str, FunctionDef] = {}
        self.declared: Set[str] = set()

        if ctx is None and parent is not None:
            ctx = parent.ctx
        self.ctx: Optional[Context] = ctx

    def define(self, name: str, val: SitValue) -> None:
        self.vars[name] = val

    def get(self, name: str) -> SitValue:
        cur: Optional[Scope] = self

        while cur is not None:
            if name in cur.vars:
                return cur.vars[name]
            cur = cur.parent

        return SitNone()

    def has(self, name: str) -> bool:
        cur: Optional[Scope] = self

        while cur is not None:
            if name in cur.vars:
                return True
            cur = cur.parent

        return False

    def owner_for_write(self, name: str) -> Optional['Scope']:
        """Nearest scope owning `name` that a write may reach without crossing a barrier."""
        cur: Optional[Scope] = self

        while cur is not None:
            if name in cur.vars:
                return cur
            if cur.barrier:
                return None
            cur = cur.parent

        return None

    def can_set(self, name: str) -> bool:
        return self.owner_for_write(name) is not None

    def set(self, name: str, val: SitValue) -> None:
        owner = self.owner_for_write(name)

        if owner is None:
            raise ScriptItNameError(f"Undefined variable '{name}' in current scope (cannot mutate outer scope).")

        owner.vars[name] = val

    def define_function(self, fn: FunctionDef) -> None:
        key = fn.key

        if fn.body is None:
            if key not in self.functions:
                self.declared.add(key)
                logger.debug("forward declaration %s", key)
            return

        self.functions[key] = fn
        self.declared.discard(key)
        logger.debug("defined function %s at line %s", key, fn.line)

    def get_function(self, name: str, argc: int) -> FunctionDef:
        key = function_key(name, argc)
        forward = False
        cur: Optional[Scope] = self

        while cur is not None:
            if key in cur.functions:
                return cur.functions[key]
            if key in cur.declared:
                forward = True
            cur = cur.parent

        if forward:
            raise ScriptItFunctionNotFound(f"Function '{name}' was forward-declared but never defined")

        arities = self.function_arities(name)
        if arities:
            takes = " or ".join(str(a) for a in arities)
            raise ScriptItArityError(f"Unknown function: {name} with {argc} arg(s); '{name}' takes {takes} argument(s)")

        raise ScriptItFunctionNotFound(f"Unknown function: {name}")

    def function_arities(self, name: str) -> List[int]:
        found: Set[int] = set()
        cur: Optional[Scope] = self

        while cur is not None:
            for fn in cur.functions.values():
                if fn.name == name:
                    found.add(fn.arity)
            cur = cur.parent

        return sorted(found)

    def function_names(self) -> List[str]:
        names: Set[str] = set()
        cur: Optional[Scope] = self

        while cur is not None:
            names.update(fn.name for fn in cur.functions.values())
            cur = cur.parent

        return sorted(names)

    def clear(self) -> None:
        self.vars.clear()
        self.functions.clear()
        self.declared.clear()

# ---------- Builtin Registries ----------

class Method(Protocol):
    def __call__(self, scope: Scope, recv: SitValue, args: List[SitValue]) -> SitValue: ...

# name -> arity -> handler
MethodRegistry = Dict[str, Dict[int, Method]]

StdlibFn = Callable[[Scope, List[SitValue]], SitValue]

@dataclass(frozen=True)
class StdlibFunction:
    fn: StdlibFn
    arity: Optional[Tuple[int, ...]] = None  # None accepts any count

class Builtins:
    universal_methods: MethodRegistry = {}
    string_methods: MethodRegistry = {}
    list_methods: MethodRegistry = {}
    set_methods: MethodRegistry = {}
    dict_methods: MethodRegistry = {}
    graph_methods: MethodRegistry = {}
    file_methods: MethodRegistry = {}
    math_functions: Dict[str, StdlibFunction] = {}
    stdlib_functions: Dict[str, StdlibFunction] = {}
