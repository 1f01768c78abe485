"""
Token Types for the ScriptIt tokenizer and parser

Shared between lexer, parser, evaluator and printer to avoid circular
dependencies. Synthetic kinds (calls, literal markers, unary minus) never come
out of the lexer; the parser creates them while emitting RPN.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types"""

    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENT = auto()
    TRUE = auto()
    FALSE = auto()
    NONE = auto()

    # Keywords
    VAR = auto()
    FN = auto()
    GIVE = auto()
    IF = auto()
    ELIF = auto()
    ELSE = auto()
    FOR = auto()
    IN = auto()
    RANGE = auto()
    FROM = auto()
    TO = auto()
    STEP = auto()
    PASS = auto()
    WHILE = auto()
    ARE = auto()
    NEW = auto()
    LET = auto()
    BE = auto()
    OF = auto()
    IS = auto()
    POINTS = auto()

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    MOD = auto()
    CARET = auto()

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()

    # Logical
    AND = auto()
    OR = auto()
    NOT = auto()  # !

    # Edges
    ARROW = auto()  # ->
    BIARROW = auto()  # <->
    DASH3 = auto()  # ---

    # Assignment
    ASSIGN = auto()
    PLUSEQ = auto()
    MINUSEQ = auto()
    STAREQ = auto()
    SLASHEQ = auto()
    MODEQ = auto()
    INCR = auto()  # ++
    DECR = auto()  # --

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    DOT = auto()
    COMMA = auto()
    COLON = auto()
    SEMI = auto()
    AT = auto()

    # Special
    NEWLINE = auto()
    EOF = auto()

    # Synthetic (parser output only)
    NEG = auto()  # unary minus
    IS_NOT = auto()
    NOT_POINTS = auto()
    CALL = auto()  # value: (name, argc)
    METHOD = auto()  # value: (name, argc)
    LIST = auto()  # value: element count
    SET = auto()  # value: element count
    DICT = auto()  # value: pair count
    LOGIC = auto()  # value: LogicalExpr kept lazy inside an RPN stream


@dataclass(frozen=True)
class Tok:
    """Token with position info"""

    type: TT
    value: Any
    line: int = 0
    column: int = 0
    offset: int = 0

    @property
    def end_offset(self) -> int:
        return self.offset + len(str(self.value))

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"


# Source spelling of every operator kind (binary and unary).
OPERATOR_TEXT = {
    TT.PLUS: "+",
    TT.MINUS: "-",
    TT.STAR: "*",
    TT.SLASH: "/",
    TT.MOD: "%",
    TT.CARET: "^",
    TT.EQ: "==",
    TT.NEQ: "!=",
    TT.LT: "<",
    TT.LTE: "<=",
    TT.GT: ">",
    TT.GTE: ">=",
    TT.AND: "&&",
    TT.OR: "||",
    TT.NOT: "!",
    TT.NEG: "-",
    TT.IS: "is",
    TT.IS_NOT: "is not",
    TT.POINTS: "points",
    TT.NOT_POINTS: "not points",
    TT.ARROW: "->",
    TT.BIARROW: "<->",
    TT.DASH3: "---",
}

# Binding strength used by the shunting-yard pass and the printer.
PRECEDENCE = {
    TT.OR: 1,
    TT.AND: 2,
    TT.IS: 3,
    TT.IS_NOT: 3,
    TT.POINTS: 3,
    TT.NOT_POINTS: 3,
    TT.EQ: 3,
    TT.NEQ: 3,
    TT.LT: 4,
    TT.LTE: 4,
    TT.GT: 4,
    TT.GTE: 4,
    TT.ARROW: 4,
    TT.BIARROW: 4,
    TT.DASH3: 4,
    TT.PLUS: 5,
    TT.MINUS: 5,
    TT.STAR: 6,
    TT.SLASH: 6,
    TT.MOD: 6,
    TT.CARET: 7,
    TT.NEG: 8,
    TT.NOT: 8,
}

RIGHT_ASSOC = frozenset({TT.CARET, TT.NEG, TT.NOT})
UNARY_OPS = frozenset({TT.NEG, TT.NOT})
BINARY_OPS = frozenset(PRECEDENCE) - UNARY_OPS

COMPOUND_ASSIGN = {
    TT.PLUSEQ: TT.PLUS,
    TT.MINUSEQ: TT.MINUS,
    TT.STAREQ: TT.STAR,
    TT.SLASHEQ: TT.SLASH,
    TT.MODEQ: TT.MOD,
}
