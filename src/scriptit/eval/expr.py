"""RPN stack machine and lazy logical evaluation."""
from __future__ import annotations

from typing import List, NamedTuple, Optional

from ..nodes import Expr, LogicalExpr, RpnExpr
from ..numeric import literal_kind
from ..ops import BINARY, apply_unary
from ..token_types import TT, Tok
from ..types import (
    SitBool, SitDict, SitList, SitNone, SitNumber, SitSet, SitString, SitValue,
    Scope, ScriptItRuntimeError, attach_line,
)
from ..values import clone, dict_key, is_truthy, unique
from .calls import call_function, call_method

class Slot(NamedTuple):
    """A stack entry: the value plus the variable it was loaded from, if any."""
    value: SitValue
    origin: Optional[str] = None

def eval_expr(expr: Expr, scope: Scope) -> SitValue:
    if isinstance(expr, LogicalExpr):
        return eval_logical(expr, scope)
    return eval_rpn(expr, scope)

def eval_logical(expr: LogicalExpr, scope: Scope) -> SitBool:
    left = is_truthy(eval_expr(expr.left, scope))

    if expr.op == TT.AND and not left:
        return SitBool(False)
    if expr.op == TT.OR and left:
        return SitBool(True)

    return SitBool(is_truthy(eval_expr(expr.right, scope)))

def eval_rpn(expr: RpnExpr, scope: Scope) -> SitValue:
    if not expr.tokens:
        return SitNumber(0, "int")

    stack: List[Slot] = []

    for tok in expr.tokens:
        try:
            _step(tok, stack, scope)
        except ScriptItRuntimeError as exc:
            attach_line(exc, tok.line)
            raise

    if len(stack) != 1:
        # the parser rejects unbalanced RPN, so this is an internal fault
        raise AssertionError(f"RPN evaluation left {len(stack)} values on the stack at line {expr.line}")

    return stack[0].value

def _pop(stack: List[Slot], count: int) -> List[Slot]:
    if count == 0:
        return []
    if len(stack) < count:
        raise AssertionError(f"RPN stack underflow: needed {count}, had {len(stack)}")

    popped = stack[-count:]
    del stack[-count:]
    return popped

def _step(tok: Tok, stack: List[Slot], scope: Scope) -> None:
    match tok.type:
        case TT.NUMBER:
            stack.append(Slot(SitNumber(*literal_kind(tok.value))))
        case TT.STRING:
            stack.append(Slot(SitString(tok.value)))
        case TT.TRUE:
            stack.append(Slot(SitBool(True)))
        case TT.FALSE:
            stack.append(Slot(SitBool(False)))
        case TT.NONE:
            stack.append(Slot(SitNone()))
        case TT.IDENT:
            stack.append(Slot(scope.get(tok.value), tok.value))
        case TT.LOGIC:
            stack.append(Slot(eval_logical(tok.value, scope)))
        case TT.NEG | TT.NOT:
            (operand,) = _pop(stack, 1)
            stack.append(Slot(apply_unary(tok.type, operand.value)))
        case TT.LIST:
            items = _pop(stack, tok.value)
            stack.append(Slot(SitList([clone(s.value) for s in items])))
        case TT.SET:
            items = _pop(stack, tok.value)
            stack.append(Slot(SitSet(unique(clone(s.value) for s in items))))
        case TT.DICT:
            flat = _pop(stack, tok.value * 2)
            entries = {}
            for key, val in zip(flat[0::2], flat[1::2]):
                entries[dict_key(key.value)] = clone(val.value)
            stack.append(Slot(SitDict(entries)))
        case TT.CALL:
            name, argc = tok.value
            args = _pop(stack, argc)
            stack.append(Slot(call_function(scope, name, args)))
        case TT.METHOD:
            name, argc = tok.value
            args = _pop(stack, argc)
            (recv,) = _pop(stack, 1)
            stack.append(Slot(call_method(scope, recv, name, [a.value for a in args])))
        case kind if kind in BINARY:
            left, right = _pop(stack, 2)
            stack.append(Slot(BINARY[kind](left.value, right.value)))
        case _:
            raise AssertionError(f"Unexpected token {tok.type.name} in RPN")
