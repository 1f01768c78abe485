"""
Lexer for ScriptIt

Tokenizes ScriptIt source code into a flat stream of tokens.

Features:
- Single-pass tokenization with one or two characters of lookahead
- Explicit NEWLINE tokens (a newline is an alternative statement terminator)
- Backtick line continuation, `-->  <--` block comments and `#` line comments
- Multi-word type names folded into single identifiers (`long double` -> long_double)
"""

from typing import List, Optional, Tuple

from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class LexError(Exception):
    """Lexical analysis error"""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column


class Lexer:
    """ScriptIt lexer."""

    KEYWORDS = {
        'var': TT.VAR,
        'fn': TT.FN,
        'give': TT.GIVE,
        'if': TT.IF,
        'elif': TT.ELIF,
        'else': TT.ELSE,
        'for': TT.FOR,
        'in': TT.IN,
        'range': TT.RANGE,
        'from': TT.FROM,
        'to': TT.TO,
        'step': TT.STEP,
        'pass': TT.PASS,
        'while': TT.WHILE,
        'are': TT.ARE,
        'new': TT.NEW,
        'let': TT.LET,
        'be': TT.BE,
        'of': TT.OF,
        'is': TT.IS,
        'points': TT.POINTS,
        'True': TT.TRUE,
        'False': TT.FALSE,
        'None': TT.NONE,
    }

    # Word operators are spelled as their symbolic twins.
    WORD_OPERATORS = {
        'and': (TT.AND, '&&'),
        'or': (TT.OR, '||'),
        'not': (TT.NOT, '!'),
    }

    # Longest matches first. `-->` (comment) and `---` are handled before this
    # table is consulted.
    OPERATORS = [
        ('<->', TT.BIARROW),
        ('+=', TT.PLUSEQ),
        ('++', TT.INCR),
        ('--', TT.DECR),
        ('-=', TT.MINUSEQ),
        ('->', TT.ARROW),
        ('*=', TT.STAREQ),
        ('/=', TT.SLASHEQ),
        ('%=', TT.MODEQ),
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        ('&&', TT.AND),
        ('||', TT.OR),
        ('+', TT.PLUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('^', TT.CARET),
        ('%', TT.MOD),
        (',', TT.COMMA),
        ('.', TT.DOT),
        (':', TT.COLON),
        (';', TT.SEMI),
        ('@', TT.AT),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('-', TT.MINUS),
        ('=', TT.ASSIGN),
        ('!', TT.NOT),
        ('<', TT.LT),
        ('>', TT.GT),
    ]

    ESCAPES = {'n': '\n', 't': '\t', '\\': '\\'}

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []
        # (start, end) source offsets of each token, for highlighting
        self.spans: List[Tuple[int, int]] = []

        # Start of the token being scanned
        self.start_pos = 0
        self.start_line = 1
        self.start_column = 1

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        self.mark_start()
        self.emit(TT.EOF, None)
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        if self.skip_whitespace():
            return

        self.mark_start()
        ch = self.peek()

        if ch == '`':
            self.scan_backtick()
            return

        if ch == '#':
            self.skip_comment()
            return

        if ch == '-' and self.peek(1) == '-' and self.peek(2) == '>':
            self.skip_block_comment()
            return

        if ch in ('\n', '\r'):
            self.scan_newline()
            return

        if ch in ('"', "'"):
            self.scan_string()
            return

        if ch.isdigit() or (ch == '.' and self.peek(1).isdigit()):
            self.scan_number()
            return

        if ch.isalpha() or ch == '_':
            self.scan_identifier()
            return

        self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_newline(self):
        """Scan newline character"""
        if self.peek() == '\r' and self.peek(1) == '\n':
            self.advance(2)
        else:
            self.advance()

        self.emit(TT.NEWLINE, '\n')
        self.new_line()

    def scan_backtick(self):
        """A backtick followed only by blanks up to the newline joins the lines."""
        self.advance()
        idx = self.pos

        while idx < len(self.source) and self.source[idx] in (' ', '\t'):
            idx += 1

        if idx < len(self.source) and self.source[idx] in ('\n', '\r'):
            self.advance(idx - self.pos)
            if self.peek() == '\r' and self.peek(1) == '\n':
                self.advance(2)
            else:
                self.advance()
            self.new_line()
        # A stray backtick elsewhere is ignored.

    def skip_block_comment(self):
        """Skip `--> ... <--`, counting the newlines inside it."""
        self.advance(3)

        while self.pos < len(self.source):
            if self.source.startswith('<--', self.pos):
                self.advance(3)
                return

            if self.advance() == '\n':
                self.new_line()

    def skip_comment(self):
        """Skip comment until end of line (the newline itself is kept)"""
        while self.peek() not in ('\n', '\r', '\0'):
            self.advance()

    def scan_string(self):
        """Scan string literal: "..." or '...' with backslash escapes"""
        quote = self.advance()
        start_line = self.line
        chars = []

        while self.pos < len(self.source) and self.peek() != quote:
            ch = self.advance()

            if ch == '\\' and self.pos < len(self.source):
                nxt = self.advance()
                chars.append(self.ESCAPES.get(nxt, nxt))
                continue

            if ch == '\n':
                self.new_line()
            chars.append(ch)

        if self.pos >= len(self.source):
            raise LexError(f"Unterminated string at line {start_line}", start_line, self.start_column)

        self.advance()
        self.emit(TT.STRING, ''.join(chars))

    def scan_number(self):
        """Scan digits with an optional fraction; `.` only counts when a digit follows."""
        text = ''

        while self.peek().isdigit():
            text += self.advance()

        if self.peek() == '.' and self.peek(1).isdigit():
            text += self.advance()
            while self.peek().isdigit():
                text += self.advance()

        self.emit(TT.NUMBER, text)

    def scan_identifier(self):
        """Scan identifier, keyword or multi-word type name"""
        word = self.read_word()

        if word == 'long':
            nxt = self.peek_word()
            if nxt in ('double', 'long'):
                self.consume_word()
                word = 'long_double' if nxt == 'double' else 'long_long'
        elif word == 'unsigned':
            nxt = self.peek_word()
            if nxt == 'int':
                self.consume_word()
                word = 'uint'
            elif nxt == 'long':
                self.consume_word()
                word = 'ulong'
                if self.peek_word() == 'long':
                    self.consume_word()
                    word = 'ulong_long'

        if word in self.WORD_OPERATORS:
            token_type, spelling = self.WORD_OPERATORS[word]
            self.emit(token_type, spelling)
            return

        self.emit(self.KEYWORDS.get(word, TT.IDENT), word)

    def scan_operator(self):
        """Scan operators and punctuation"""
        if self.source.startswith('---', self.pos):
            self.advance(3)
            self.emit(TT.DASH3, '---')
            return

        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type, op_str)
                return

        ch = self.peek()
        raise LexError(f"Unexpected character '{ch}' at line {self.line}", self.line, self.column)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        result = self.source[self.pos:self.pos + n]
        self.pos += n
        self.column += n
        return result

    def new_line(self):
        self.line += 1
        self.column = 1

    def read_word(self) -> str:
        word = ''
        while self.peek().isalnum() or self.peek() == '_':
            word += self.advance()
        return word

    def peek_word(self) -> str:
        """Return the next word on the same line without consuming it"""
        idx = self.pos
        while idx < len(self.source) and self.source[idx] in (' ', '\t'):
            idx += 1

        end = idx
        while end < len(self.source) and (self.source[end].isalnum() or self.source[end] == '_'):
            end += 1

        return self.source[idx:end]

    def consume_word(self):
        while self.peek() in (' ', '\t'):
            self.advance()
        self.read_word()

    def skip_whitespace(self) -> bool:
        """Skip whitespace (not newlines), return True if any skipped"""
        skipped = False
        while self.peek() in (' ', '\t'):
            self.advance()
            skipped = True
        return skipped

    def mark_start(self):
        self.start_pos = self.pos
        self.start_line = self.line
        self.start_column = self.column

    def emit(self, token_type: TT, value):
        """Emit a token positioned at the start of its lexeme"""
        tok = Tok(
            type=token_type,
            value=value,
            line=self.start_line,
            column=self.start_column,
            offset=self.start_pos,
        )
        self.tokens.append(tok)
        self.spans.append((self.start_pos, self.pos))


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()
