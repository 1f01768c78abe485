from __future__ import annotations

from typing import Callable, List

from lark import Tree

from ..nodes import ELSE, FN_DEF, Expr
from ..numeric import EPSILON, ZERO_DIVISOR, coerce, is_integral, widen
from ..types import Flow, Scope, ScriptItRuntimeError, ScriptItTypeError, SitDict, SitNumber
from ..values import as_number, clone, is_truthy, iter_values, type_name
from .expr import eval_expr

ExecFunc = Callable[[Tree, Scope], Flow]

def hoist_functions(statements: List[Tree], scope: Scope) -> None:
    """Register every full definition up front so calls may precede them."""
    for stmt in statements:
        if stmt.data == FN_DEF and stmt.children[0].body is not None:
            scope.define_function(stmt.children[0])

def eval_block(block: Tree, scope: Scope, exec_func: ExecFunc, new_scope: bool = True) -> Flow:
    """Run a statement block, stopping at the first `give`."""
    local = Scope(parent=scope) if new_scope else scope
    hoist_functions(block.children, local)

    for stmt in block.children:
        flow = exec_func(stmt, local)
        if flow is not None:
            return flow

    return None

def eval_if(node: Tree, scope: Scope, exec_func: ExecFunc) -> Flow:
    for branch in node.children:
        if branch.data == ELSE:
            return eval_block(branch.children[0], scope, exec_func)

        cond, block = branch.children
        if is_truthy(eval_expr(cond, scope)):
            return eval_block(block, scope, exec_func)

    return None

# ---------- Counted loops ----------

def _bound(expr: Expr, scope: Scope, what: str) -> SitNumber:
    val = eval_expr(expr, scope)
    try:
        return as_number(val)
    except ScriptItRuntimeError:
        raise ScriptItRuntimeError(f"Range {what} must be a number, got {type_name(val)}") from None

def eval_for_range(node: Tree, scope: Scope, exec_func: ExecFunc) -> Flow:
    name, start_expr, end_expr, step_expr, body = node.children
    start = _bound(start_expr, scope, "start")
    end = _bound(end_expr, scope, "end")

    if step_expr is not None:
        step = _bound(step_expr, scope, "step")
        if abs(float(step.value)) < ZERO_DIVISOR:
            raise ScriptItRuntimeError("Step cannot be zero in range")
    else:
        step = SitNumber(1 if end.value >= start.value else -1, "int")

    kind = widen(widen(start.kind, end.kind), step.kind)
    loop = Scope(parent=scope)
    loop.define(str(name), SitNumber(*coerce(start.value, kind)))

    if is_integral(kind):
        current, stop, delta = int(start.value), int(end.value), int(step.value)
        def more(x):
            return x <= stop if delta > 0 else x >= stop
    else:
        current, stop, delta = float(start.value), float(end.value), float(step.value)
        def more(x):
            return x <= stop + EPSILON if delta > 0 else x >= stop - EPSILON

    while more(current):
        loop.set(str(name), SitNumber(*coerce(current, kind)))
        flow = eval_block(body, loop, exec_func)
        if flow is not None:
            return flow
        current += delta

    return None

# ---------- Iteration ----------

def eval_for_in(node: Tree, scope: Scope, exec_func: ExecFunc) -> Flow:
    name, iterable_expr, body = node.children
    iterable = eval_expr(iterable_expr, scope)
    if isinstance(iterable, SitDict):
        raise ScriptItTypeError(f"for-in requires a list, string, or set; got {type_name(iterable)}")
    items = iter_values(iterable, "for-in")

    loop = Scope(parent=scope)
    loop.define(str(name), SitNumber(0, "int"))

    for item in items:
        loop.set(str(name), clone(item))
        flow = eval_block(body, loop, exec_func)
        if flow is not None:
            return flow

    return None

def eval_while(node: Tree, scope: Scope, exec_func: ExecFunc) -> Flow:
    cond, body = node.children

    while is_truthy(eval_expr(cond, scope)):
        flow = eval_block(body, scope, exec_func)
        if flow is not None:
            return flow

    return None
