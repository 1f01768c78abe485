"""Canonical source printer.

Turns parsed statements back into ScriptIt source. Every statement ends with an
explicit terminator and every block is indented, so formatting a program and
parsing the result yields the same tree.
"""
from __future__ import annotations

from typing import List, NamedTuple, Optional

from lark import Tree

from .nodes import BRANCH, Expr, FunctionDef, LogicalExpr
from .token_types import OPERATOR_TEXT, PRECEDENCE, RIGHT_ASSOC, TT, Tok

INDENT = "    "
_ATOM = 100


class _Piece(NamedTuple):
    text: str
    prec: int
    op: Optional[TT] = None


def format_expr(expr: Expr) -> str:
    if isinstance(expr, LogicalExpr):
        return _format_logical(expr)
    return _format_rpn(expr.tokens).text


def _format_logical(expr: LogicalExpr) -> str:
    parent = PRECEDENCE[expr.op]
    op = OPERATOR_TEXT[expr.op]

    def side(child: Expr, right: bool) -> str:
        text = format_expr(child)
        if isinstance(child, LogicalExpr):
            child_prec = PRECEDENCE[child.op]
            if child_prec < parent or (right and child_prec == parent):
                return f"({text})"
        return text

    return f"{side(expr.left, False)} {op} {side(expr.right, True)}"


def _format_rpn(tokens) -> _Piece:
    stack: List[_Piece] = []

    for tok in tokens:
        tt = tok.type

        if tt in (TT.NEG, TT.NOT):
            operand = stack.pop()
            text = operand.text if operand.prec > PRECEDENCE[tt] else f"({operand.text})"
            stack.append(_Piece(OPERATOR_TEXT[tt] + text, PRECEDENCE[tt], tt))
        elif tt in PRECEDENCE:
            right = stack.pop()
            left = stack.pop()
            stack.append(_binary(tt, left, right))
        elif tt == TT.CALL:
            name, argc = tok.value
            args = _pop_many(stack, argc)
            stack.append(_Piece(f"{name}({', '.join(p.text for p in args)})", _ATOM))
        elif tt == TT.METHOD:
            name, argc = tok.value
            args = _pop_many(stack, argc)
            recv = stack.pop()
            recv_text = recv.text if recv.prec == _ATOM else f"({recv.text})"
            stack.append(_Piece(f"{recv_text}.{name}({', '.join(p.text for p in args)})", _ATOM))
        elif tt == TT.LIST:
            items = _pop_many(stack, tok.value)
            stack.append(_Piece(f"[{', '.join(p.text for p in items)}]", _ATOM))
        elif tt == TT.SET:
            items = _pop_many(stack, tok.value)
            stack.append(_Piece("{" + ", ".join(_brace_item(p) for p in items) + "}", _ATOM))
        elif tt == TT.DICT:
            flat = _pop_many(stack, tok.value * 2)
            pairs = [f"{_brace_item(k)} -> {_brace_item(v)}" for k, v in zip(flat[::2], flat[1::2])]
            stack.append(_Piece("{" + ", ".join(pairs) + "}", _ATOM))
        elif tt == TT.LOGIC:
            stack.append(_Piece(format_expr(tok.value), PRECEDENCE[tok.value.op], tok.value.op))
        else:
            stack.append(_Piece(_format_atom(tok), _ATOM))

    if not stack:
        return _Piece("", _ATOM)
    return stack[-1]


def _binary(tt: TT, left: _Piece, right: _Piece) -> _Piece:
    prec = PRECEDENCE[tt]

    left_text = left.text
    if left.prec < prec or (left.prec == prec and tt in RIGHT_ASSOC):
        left_text = f"({left_text})"

    right_text = right.text
    if right.prec < prec or (right.prec == prec and tt not in RIGHT_ASSOC):
        right_text = f"({right_text})"
    elif tt == TT.IS and right.op == TT.NOT:
        # `a is !b` would read back as `a is not b`
        right_text = f"({right_text})"

    return _Piece(f"{left_text} {OPERATOR_TEXT[tt]} {right_text}", prec, tt)


def _brace_item(piece: _Piece) -> str:
    # A bare `->` inside braces would be read as a key/value separator.
    if piece.op == TT.ARROW:
        return f"({piece.text})"
    return piece.text


def _pop_many(stack: List[_Piece], count: int) -> List[_Piece]:
    if count == 0:
        return []
    items = stack[-count:]
    del stack[-count:]
    return items


def _format_atom(tok: Tok) -> str:
    if tok.type == TT.STRING:
        return quote_string(tok.value)
    return str(tok.value)


def quote_string(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n").replace("\t", "\\t")
    return f'"{escaped}"'


# ----------------------------------------------------------------------------
# Statements
# ----------------------------------------------------------------------------

def format_program(tree: Tree) -> str:
    lines: List[str] = []
    for stmt in tree.children:
        _format_stmt(stmt, 0, lines)
    return "\n".join(lines) + ("\n" if lines else "")


def _format_block(block: Tree, depth: int, lines: List[str]):
    for stmt in block.children:
        _format_stmt(stmt, depth, lines)


def _format_stmt(stmt: Tree, depth: int, lines: List[str]):
    pad = INDENT * depth

    match stmt.data:
        case 'declare':
            lines.append(f"{pad}var {_decl_text(stmt)}.")
        case 'multi_decl':
            lines.append(f"{pad}var {', '.join(_decl_text(d) for d in stmt.children)}.")
        case 'assign':
            name, expr = stmt.children
            lines.append(f"{pad}{name} = {format_expr(expr)}.")
        case 'expr_stmt':
            lines.append(f"{pad}{format_expr(stmt.children[0])}.")
        case 'give':
            value = format_expr(stmt.children[0])
            lines.append(f"{pad}give {value}." if value else f"{pad}give.")
        case 'pass_stmt':
            lines.append(f"{pad}pass.")
        case 'if_stmt':
            for i, branch in enumerate(stmt.children):
                if branch.data == BRANCH:
                    cond, block = branch.children
                    keyword = "if" if i == 0 else "elif"
                    lines.append(f"{pad}{keyword} {format_expr(cond)}:")
                else:
                    block = branch.children[0]
                    lines.append(f"{pad}else:")
                _format_block(block, depth + 1, lines)
            lines.append(f"{pad};")
        case 'for_range':
            name, start, end, step, body = stmt.children
            bounds = f"from {format_expr(start)} to {format_expr(end)}"
            if step is not None:
                bounds += f" step {format_expr(step)}"
            lines.append(f"{pad}for {name} in range({bounds}):")
            _format_block(body, depth + 1, lines)
            lines.append(f"{pad};")
        case 'for_in':
            name, iterable, body = stmt.children
            lines.append(f"{pad}for {name} in {format_expr(iterable)}:")
            _format_block(body, depth + 1, lines)
            lines.append(f"{pad};")
        case 'while_stmt':
            cond, body = stmt.children
            lines.append(f"{pad}while {format_expr(cond)}:")
            _format_block(body, depth + 1, lines)
            lines.append(f"{pad};")
        case 'fn_def':
            fn: FunctionDef = stmt.children[0]
            params = ", ".join(("@" if ref else "") + p for p, ref in zip(fn.params, fn.ref_flags))
            if fn.body is None:
                lines.append(f"{pad}fn {fn.name}({params}).")
            else:
                lines.append(f"{pad}fn {fn.name}({params}):")
                _format_block(fn.body, depth + 1, lines)
                lines.append(f"{pad};")
        case 'let_scoped':
            name, expr, body = stmt.children
            lines.append(f"{pad}let {name} be {format_expr(expr)}:")
            _format_block(body, depth + 1, lines)
            lines.append(f"{pad};")
        case 'block':
            _format_block(stmt, depth, lines)
        case _:
            raise ValueError(f"Cannot format statement {stmt.data!r}")


def _decl_text(decl: Tree) -> str:
    name, expr = decl.children
    return f"{name} = {format_expr(expr)}"
