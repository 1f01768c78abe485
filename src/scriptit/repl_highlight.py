"""prompt_toolkit lexer for live ScriptIt syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable, Dict

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer import LexError, Lexer as SitLexer
from .runtime import is_builtin_name
from .token_types import TT

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "constant": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "builtin": "bold ansiyellow",
    "type": "bold ansiblue",
    "operator": "",
    "edge": "bold ansiyellow",
    "punctuation": "",
    "comment": "italic ansigray",
}

_KEYWORDS = (
    TT.VAR, TT.FN, TT.GIVE, TT.IF, TT.ELIF, TT.ELSE, TT.FOR, TT.IN, TT.RANGE,
    TT.FROM, TT.TO, TT.STEP, TT.PASS, TT.WHILE, TT.ARE, TT.NEW, TT.LET, TT.BE,
    TT.OF, TT.IS, TT.POINTS,
)
_OPERATORS = (
    TT.PLUS, TT.MINUS, TT.STAR, TT.SLASH, TT.MOD, TT.CARET,
    TT.EQ, TT.NEQ, TT.LT, TT.LTE, TT.GT, TT.GTE, TT.AND, TT.OR, TT.NOT,
    TT.ASSIGN, TT.PLUSEQ, TT.MINUSEQ, TT.STAREQ, TT.SLASHEQ, TT.MODEQ, TT.INCR, TT.DECR,
)
_PUNCTUATION = (
    TT.LPAR, TT.RPAR, TT.LSQB, TT.RSQB, TT.LBRACE, TT.RBRACE,
    TT.DOT, TT.COMMA, TT.COLON, TT.SEMI, TT.AT,
)

_TT_GROUP: Dict[TT, str] = {
    **{tt: "keyword" for tt in _KEYWORDS},
    **{tt: "operator" for tt in _OPERATORS},
    **{tt: "punctuation" for tt in _PUNCTUATION},
    TT.ARROW: "edge",
    TT.BIARROW: "edge",
    TT.DASH3: "edge",
    TT.TRUE: "constant",
    TT.FALSE: "constant",
    TT.NONE: "constant",
    TT.NUMBER: "number",
    TT.STRING: "string",
    TT.IDENT: "identifier",
}

_TYPE_NAMES = frozenset({
    "int", "uint", "long", "ulong", "long_long", "ulong_long",
    "float", "double", "long_double", "str", "list", "set", "dict", "graph",
})

_SKIP = {TT.NEWLINE, TT.EOF}


def _gap(text: str) -> StyleAndTextTuples:
    """Text between tokens is blank space or a comment."""
    stripped = text.lstrip()
    if stripped.startswith("#") or stripped.startswith("-->"):
        lead = len(text) - len(stripped)
        return [("", text[:lead]), (GROUP_STYLE["comment"], stripped)]
    return [("", text)]


def _group(tok_type: TT, raw: str) -> str:
    group = _TT_GROUP.get(tok_type, "")

    if tok_type == TT.IDENT:
        if raw.replace(" ", "_") in _TYPE_NAMES or raw.startswith("unsigned"):
            return "type"
        if is_builtin_name(raw):
            return "builtin"

    return group


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    lexer = SitLexer(text)
    try:
        tokens = lexer.tokenize()
    except LexError:
        return [("", text)]

    result: StyleAndTextTuples = []
    pos = 0

    for tok, (start, end) in zip(tokens, lexer.spans):
        if tok.type in _SKIP or end <= start:
            continue

        if start > pos:
            result.extend(_gap(text[pos:start]))

        raw = text[start:end]
        result.append((GROUP_STYLE.get(_group(tok.type, raw), ""), raw))
        pos = end

    if pos < len(text):
        result.extend(_gap(text[pos:]))

    return result if result else [("", text)]


class ScriptItLexer(Lexer):
    """prompt_toolkit Lexer that highlights ScriptIt source using the tokenizer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines
        cache: Dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
