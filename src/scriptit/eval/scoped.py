from __future__ import annotations

import logging

from lark import Tree

from ..runtime import is_file_handle
from ..types import Flow, Scope, SitValue
from ..values import clone
from .blocks import ExecFunc, eval_block
from .expr import eval_expr

logger = logging.getLogger(__name__)

def release(resource: SitValue, scope: Scope) -> None:
    """Close a file handle bound by `let ... be ...:`; other values need no release."""
    if not is_file_handle(resource):
        return

    files = scope.ctx.files
    if files.is_open(resource):
        files.close(resource)
        logger.debug("released %r at end of scoped block", resource)

def eval_let_scoped(node: Tree, scope: Scope, exec_func: ExecFunc) -> Flow:
    name, expr, body = node.children
    resource = eval_expr(expr, scope)

    local = Scope(parent=scope)
    local.define(str(name), clone(resource))

    try:
        return eval_block(body, local, exec_func, new_scope=False)
    finally:
        release(resource, scope)
