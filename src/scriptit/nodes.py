"""Statement and expression node shapes shared by the parser, printer and evaluator.

Statements are lark ``Tree`` objects labelled by statement kind; names inside
them are lark ``Token`` objects. Expressions are one of two frozen shapes:
a flat RPN token sequence, or a lazy logical node that keeps ``&&``/``||``
short-circuiting across sub-expressions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from lark import Token, Tree
from typing_extensions import TypeAlias

from .token_types import TT, Tok

# Statement labels
BLOCK = "block"
IF_STMT = "if_stmt"
BRANCH = "branch"
ELSE = "else_branch"
FOR_RANGE = "for_range"
FOR_IN = "for_in"
WHILE = "while_stmt"
FN_DEF = "fn_def"
GIVE = "give"
ASSIGN = "assign"
DECLARE = "declare"
MULTI_DECL = "multi_decl"
EXPR_STMT = "expr_stmt"
PASS = "pass_stmt"
LET_SCOPED = "let_scoped"


@dataclass(frozen=True)
class RpnExpr:
    tokens: Tuple[Tok, ...]
    line: int = 0

    def __str__(self) -> str:
        from .printer import format_expr
        return format_expr(self)


@dataclass(frozen=True)
class LogicalExpr:
    op: TT  # TT.AND or TT.OR
    left: "Expr"
    right: "Expr"
    line: int = 0

    def __str__(self) -> str:
        from .printer import format_expr
        return format_expr(self)


Expr: TypeAlias = Union[RpnExpr, LogicalExpr]


@dataclass
class FunctionDef:
    """Signature plus optional body; a missing body marks a forward declaration."""
    name: str
    params: List[str]
    ref_flags: List[bool] = field(default_factory=list)
    body: Optional[Tree] = None
    line: int = 0

    @property
    def arity(self) -> int:
        return len(self.params)

    @property
    def key(self) -> str:
        return function_key(self.name, self.arity)

    def __str__(self) -> str:
        params = ", ".join(("@" if ref else "") + name for name, ref in zip(self.params, self.ref_flags))
        suffix = "" if self.body is not None else " (forward)"
        return f"{self.name}({params}){suffix}"


def function_key(name: str, arity: int) -> str:
    return f"{name}/{arity}"


def make_node(label: str, children: list, line: int) -> Tree:
    node = Tree(label, children)
    node.meta.line = line
    return node


def name_token(tok: Tok) -> Token:
    return Token("IDENT", tok.value, line=tok.line, column=tok.column, start_pos=tok.offset)


def node_line(node: Tree) -> Optional[int]:
    return getattr(node.meta, "line", None)


def is_empty_expr(expr: Expr) -> bool:
    return isinstance(expr, RpnExpr) and not expr.tokens
