from __future__ import annotations

from lark import Tree

from .eval.blocks import eval_block, eval_for_in, eval_for_range, eval_if, eval_while
from .eval.expr import eval_expr
from .eval.scoped import eval_let_scoped
from .nodes import node_line
from .types import Flow, Return, Scope, ScriptItRuntimeError, SitNone, attach_line
from .values import clone, to_display

# ---------------- Public API ----------------

def exec_block(block: Tree, scope: Scope, new_scope: bool = True) -> Flow:
    return eval_block(block, scope, exec_stmt, new_scope=new_scope)

# ---------------- Core executor ----------------

def exec_stmt(node: Tree, scope: Scope) -> Flow:
    try:
        return _exec_stmt_inner(node, scope)
    except ScriptItRuntimeError as exc:
        attach_line(exc, node_line(node))
        raise

def _exec_stmt_inner(node: Tree, scope: Scope) -> Flow:
    match node.data:
        case 'block':
            return exec_block(node, scope)
        case 'if_stmt':
            return eval_if(node, scope, exec_stmt)
        case 'for_range':
            return eval_for_range(node, scope, exec_stmt)
        case 'for_in':
            return eval_for_in(node, scope, exec_stmt)
        case 'while_stmt':
            return eval_while(node, scope, exec_stmt)
        case 'let_scoped':
            return eval_let_scoped(node, scope, exec_stmt)
        case 'fn_def':
            scope.define_function(node.children[0])
            return None
        case 'give':
            return Return(clone(eval_expr(node.children[0], scope)))
        case 'declare':
            name, expr = node.children
            scope.define(str(name), clone(eval_expr(expr, scope)))
            return None
        case 'assign':
            name, expr = node.children
            scope.set(str(name), clone(eval_expr(expr, scope)))
            return None
        case 'multi_decl':
            for decl in node.children:
                exec_stmt(decl, scope)
            return None
        case 'expr_stmt':
            _echo(eval_expr(node.children[0], scope), scope)
            return None
        case 'pass_stmt':
            return None

    raise AssertionError(f"Unknown statement kind {node.data!r}")

def _echo(value, scope: Scope) -> None:
    """Expression statements print their non-None result."""
    if isinstance(value, SitNone):
        return

    ctx = scope.ctx
    ctx.last_value = value
    if ctx.config.echo_expressions:
        ctx.echo(to_display(value))
