from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..nodes import FunctionDef
from ..runtime import MUTATING_METHODS, call_builtin, call_builtin_method, lookup_builtin
from ..types import Return, Scope, ScriptItRecursionError, SitNone, SitValue
from ..values import clone

if TYPE_CHECKING:
    from .expr import Slot

logger = logging.getLogger(__name__)

def call_function(scope: Scope, name: str, args: Sequence['Slot']) -> SitValue:
    """Resolve `name(args)`: math functions, then other builtins, then user functions by arity."""
    builtin = lookup_builtin(name)

    if builtin is not None:
        return call_builtin(scope, name, builtin, [a.value for a in args])

    fn = scope.get_function(name, len(args))
    return call_user(scope, fn, [a.value for a in args], [a.origin for a in args])

def call_by_name(scope: Scope, name: str, args: List[SitValue]) -> SitValue:
    """Call with computed arguments; used by builtins such as `map`."""
    builtin = lookup_builtin(name)

    if builtin is not None:
        return call_builtin(scope, name, builtin, args)

    fn = scope.get_function(name, len(args))
    return call_user(scope, fn, args, [None] * len(args))

def call_user(caller: Scope, fn: FunctionDef, args: List[SitValue], origins: List[Optional[str]]) -> SitValue:
    from ..evaluator import exec_block  # local import to avoid cycle

    ctx = caller.ctx
    if ctx.depth >= ctx.config.max_depth:
        raise ScriptItRecursionError(f"Maximum recursion depth ({ctx.config.max_depth}) exceeded in '{fn.name}'")

    # Reads see the caller's variables; writes stop at the barrier.
    local = Scope(parent=caller, barrier=True)
    for param, arg in zip(fn.params, args):
        local.define(param, clone(arg))

    ctx.depth += 1
    try:
        flow = exec_block(fn.body, local, new_scope=False)
    except RecursionError:
        raise ScriptItRecursionError(f"Maximum recursion depth exceeded in '{fn.name}'") from None
    finally:
        ctx.depth -= 1

    for param, is_ref, origin in zip(fn.params, fn.ref_flags, origins):
        if is_ref and origin is not None and caller.can_set(origin):
            caller.set(origin, clone(local.get(param)))

    if isinstance(flow, Return):
        return flow.value
    return SitNone()

def call_method(scope: Scope, recv: 'Slot', name: str, args: List[SitValue]) -> SitValue:
    value = recv.value
    writable = recv.origin is not None and scope.can_set(recv.origin)
    mutating = name in MUTATING_METHODS

    if mutating and not writable:
        value = clone(value)

    result = call_builtin_method(value, name, args, scope)

    if mutating and writable:
        scope.set(recv.origin, value)

    return result
