"""
Recursive Descent Parser for ScriptIt

Structure:
- Statements: recursive descent with one token of lookahead (plus a little
  extra lookahead for multi-variable declarations and method-call dots)
- Expressions: a thin recursive layer peels off `||` and `&&` into lazy
  LogicalExpr nodes; everything else goes through one shunting-yard pass that
  emits RPN
- Output: lark Trees labelled by statement kind (see nodes.py)

Shunting-yard extensions:
- implicit multiplication between adjacent values (`2x`, `2(3+4)`, `(a)(b)`)
- unary `-` (emitted as NEG) and `!` when no value precedes them
- calls `f(a, b)` and adjacent-dot method calls `x.m(a)` as single marker tokens
- `[...]` list literals, `{...}` set or dict literals (dict when `->` follows
  the first element), edge operators `->`, `<->`, `---` outside braces
- `CALL of TARGET` rewritten into a method call on TARGET
"""

from typing import List, Optional, Tuple

from lark import Tree

from .lexer import tokenize
from .nodes import (
    ASSIGN, BLOCK, BRANCH, DECLARE, ELSE, EXPR_STMT, FN_DEF, FOR_IN, FOR_RANGE, GIVE,
    IF_STMT, LET_SCOPED, MULTI_DECL, PASS, WHILE,
    Expr, FunctionDef, LogicalExpr, RpnExpr, is_empty_expr, make_node, name_token,
)
from .token_types import COMPOUND_ASSIGN, PRECEDENCE, RIGHT_ASSOC, TT, Tok

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None, line: Optional[int] = None):
        self.message = message
        self.token = token
        self.line = line if line is not None else (token.line if token is not None else None)
        super().__init__(
            f"{message} at line {self.line}" if self.line is not None else message
        )


# Tokens that always end an expression
_EXPR_STOP = frozenset({
    TT.COLON, TT.SEMI, TT.IN, TT.TO, TT.STEP, TT.ELIF, TT.ELSE, TT.BE,
    TT.ASSIGN, TT.NEWLINE, TT.OF, TT.INCR, TT.DECR,
    TT.AND, TT.OR, TT.COMMA, TT.RPAR, TT.RSQB, TT.RBRACE, TT.EOF,
    *COMPOUND_ASSIGN,
})

_INFIX = frozenset({
    TT.PLUS, TT.MINUS, TT.STAR, TT.SLASH, TT.MOD, TT.CARET,
    TT.EQ, TT.NEQ, TT.LT, TT.LTE, TT.GT, TT.GTE,
    TT.ARROW, TT.BIARROW, TT.DASH3,
})

# Kinds after which a value-starting token triggers implicit multiplication
_VALUE_END = frozenset({TT.NUMBER, TT.RPAR, TT.IDENT, TT.RSQB})
_VALUE_START = frozenset({TT.NUMBER, TT.IDENT, TT.LPAR, TT.TRUE, TT.FALSE, TT.NONE})
_OPERATOR = "operator"


class Parser:
    """
    Recursive descent parser for ScriptIt.

    Expression precedence (lowest to highest):
    1. or (||)
    2. and (&&)
    3. equality and identity (==, !=, is, is not, points, not points)
    4. ordering and edges (<, <=, >, >=, ->, <->, ---)
    5. additive (+, -)
    6. multiplicative (*, /, %)
    7. power (^, right-associative)
    8. unary (-, !)
    """

    def __init__(self, tokens: List[Tok]):
        if not tokens or tokens[-1].type != TT.EOF:
            last_line = tokens[-1].line if tokens else 1
            tokens = list(tokens) + [Tok(TT.EOF, None, last_line)]
        self.tokens = tokens
        self.pos = 0
        self.brace_depth = 0
        self.last_line = 1

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token (raw, newlines included)"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def peek_next(self) -> Tok:
        """Token after the current one, skipping newlines"""
        idx = self.pos + 1
        while idx < len(self.tokens) and self.tokens[idx].type == TT.NEWLINE:
            idx += 1
        return self.tokens[idx] if idx < len(self.tokens) else self.tokens[-1]

    def at_end(self) -> bool:
        return self.peek().type == TT.EOF

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        tok = self.peek()
        if not self.at_end():
            self.pos += 1
            self.last_line = tok.line
        return tok

    def check(self, *types: TT) -> bool:
        return self.peek().type in types

    def skip_newlines(self):
        while self.check(TT.NEWLINE):
            self.advance()

    def match(self, *types: TT) -> bool:
        """Skip newlines, then consume if the current token matches"""
        self.skip_newlines()
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: str) -> Tok:
        """Consume token of expected type or raise error"""
        self.skip_newlines()
        if not self.check(token_type):
            raise ParseError(message, self.peek())
        return self.advance()

    def consume_terminator(self):
        """
        Consume the `.` statement terminator, or forgive its absence at end of
        input, before a block terminator, or when the next token starts a
        later line.
        """
        self.skip_newlines()

        if self.check(TT.DOT):
            self.advance()
            return

        if self.at_end() or self.check(TT.SEMI, TT.ELIF, TT.ELSE):
            return

        if self.peek().line > self.last_line:
            return

        raise ParseError("Expected '.'", line=self.last_line)

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree:
        """Parse entire program"""
        stmts = []

        while True:
            self.skip_newlines()
            if self.at_end():
                break
            stmts.append(self.parse_statement())

        return make_node(BLOCK, stmts, 1)

    def parse_block(self, *terminators: TT) -> Tree:
        """Parse statements until one of the terminators (left unconsumed)"""
        line = self.peek().line
        stmts = []

        while True:
            self.skip_newlines()
            if self.at_end() or self.check(*terminators):
                break
            stmts.append(self.parse_statement())

        return make_node(BLOCK, stmts, line)

    def parse_statement(self) -> Tree:
        self.skip_newlines()
        tok = self.peek()

        match tok.type:
            case TT.IF:
                self.advance()
                return self.parse_if_stmt(tok)
            case TT.FOR:
                self.advance()
                return self.parse_for_stmt(tok)
            case TT.WHILE:
                self.advance()
                return self.parse_while_stmt(tok)
            case TT.FN:
                self.advance()
                return self.parse_fn_stmt(tok)
            case TT.GIVE:
                self.advance()
                return self.parse_give_stmt(tok)
            case TT.PASS:
                self.advance()
                self.consume_terminator()
                return make_node(PASS, [], tok.line)
            case TT.LET:
                self.advance()
                return self.parse_let_stmt(tok)
            case TT.VAR:
                self.advance()
                return self.parse_var_stmt(tok)
            case TT.INCR | TT.DECR:
                return self.parse_pre_step(tok)
            case TT.IDENT:
                # lookahead skips newlines, so `x` then `--x.` on the next line reads as `x--`
                nxt = self.peek_next().type
                if nxt in COMPOUND_ASSIGN:
                    return self.parse_compound_assign()
                if nxt == TT.ASSIGN:
                    return self.parse_assign()
                if nxt in (TT.INCR, TT.DECR):
                    return self.parse_post_step()

        expr = self.parse_expression()
        if is_empty_expr(expr):
            raise ParseError(f"Unexpected token '{self.describe(tok)}'", tok)

        self.consume_terminator()
        return make_node(EXPR_STMT, [expr], tok.line)

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_if_stmt(self, if_tok: Tok) -> Tree:
        branches = []

        cond = self.parse_required_expression("Expected condition after if")
        self.expect(TT.COLON, "Expected : after if condition")
        block = self.parse_block(TT.ELIF, TT.ELSE, TT.SEMI)
        branches.append(make_node(BRANCH, [cond, block], if_tok.line))

        while self.check_after_newlines(TT.ELIF):
            elif_tok = self.advance()
            cond = self.parse_required_expression("Expected condition after elif")
            self.expect(TT.COLON, "Expected : after elif")
            block = self.parse_block(TT.ELIF, TT.ELSE, TT.SEMI)
            branches.append(make_node(BRANCH, [cond, block], elif_tok.line))

        if self.check_after_newlines(TT.ELSE):
            else_tok = self.advance()
            self.expect(TT.COLON, "Expected : after else")
            block = self.parse_block(TT.SEMI)
            branches.append(make_node(ELSE, [block], else_tok.line))

        self.expect(TT.SEMI, "Expected ; at end of if-structure")
        return make_node(IF_STMT, branches, if_tok.line)

    def parse_for_stmt(self, for_tok: Tok) -> Tree:
        name = self.expect(TT.IDENT, "Expected iterator name")
        self.expect(TT.IN, "Expected in")

        if self.check_after_newlines(TT.RANGE):
            self.advance()
            self.expect(TT.LPAR, "Expected (")
            step: Optional[Expr] = None

            if self.check_after_newlines(TT.FROM):
                self.advance()
                start = self.parse_required_expression("Expected start value after from")
                self.expect(TT.TO, "Expected to")
                end = self.parse_required_expression("Expected end value after to")
                if self.match(TT.STEP):
                    step = self.parse_required_expression("Expected step value")
            else:
                end = self.parse_required_expression("Expected range bound")
                start = RpnExpr((Tok(TT.NUMBER, "0", for_tok.line),), for_tok.line)

            self.expect(TT.RPAR, "Expected )")
            self.expect(TT.COLON, "Expected :")
            body = self.parse_block(TT.SEMI)
            self.expect(TT.SEMI, "Expected ; after loop")
            return make_node(FOR_RANGE, [name_token(name), start, end, step, body], for_tok.line)

        iterable = self.parse_required_expression("Expected iterable after in")
        self.expect(TT.COLON, "Expected :")
        body = self.parse_block(TT.SEMI)
        self.expect(TT.SEMI, "Expected ; after loop")
        return make_node(FOR_IN, [name_token(name), iterable, body], for_tok.line)

    def parse_while_stmt(self, while_tok: Tok) -> Tree:
        cond = self.parse_required_expression("Expected condition after while")
        self.expect(TT.COLON, "Expected : after while condition")
        body = self.parse_block(TT.SEMI)
        self.expect(TT.SEMI, "Expected ; after while body")
        return make_node(WHILE, [cond, body], while_tok.line)

    def parse_fn_stmt(self, fn_tok: Tok) -> Tree:
        name = self.expect(TT.IDENT, "Expected function name").value

        # Older scripts write `fn name @(params)`; the marker carries no meaning.
        if self.check(TT.AT) and self.peek(1).type == TT.LPAR:
            self.advance()

        self.expect(TT.LPAR, "Expected ( after function name")
        params: List[str] = []
        ref_flags: List[bool] = []

        self.skip_newlines()
        if not self.check(TT.RPAR):
            while True:
                is_ref = self.match(TT.AT)
                param = self.expect(TT.IDENT, "Expected param name")
                if param.value in params:
                    raise ParseError(f"Duplicate parameter name '{param.value}' in function '{name}'", param)
                params.append(param.value)
                ref_flags.append(is_ref)
                if not self.match(TT.COMMA):
                    break

        self.expect(TT.RPAR, "Expected ) after params")
        fn = FunctionDef(name=name, params=params, ref_flags=ref_flags, line=fn_tok.line)

        # Forward declaration: fn name(params).
        if self.check(TT.DOT, TT.NEWLINE) or self.at_end():
            self.consume_terminator()
            return make_node(FN_DEF, [fn], fn_tok.line)

        self.expect(TT.COLON, "Expected : start of function body")
        body = self.parse_block(TT.SEMI)
        self.expect(TT.SEMI, "Expected ; after function body")

        if not body.children:
            raise ParseError("Empty function body not allowed, use 'pass'.", fn_tok)

        fn.body = body
        return make_node(FN_DEF, [fn], fn_tok.line)

    def parse_give_stmt(self, give_tok: Tok) -> Tree:
        expr = self.parse_expression()
        if is_empty_expr(expr):
            expr = self.none_literal(give_tok)

        self.consume_terminator()
        return make_node(GIVE, [expr], give_tok.line)

    def parse_let_stmt(self, let_tok: Tok) -> Tree:
        name = self.expect(TT.IDENT, "Expected identifier after let")
        self.expect(TT.BE, "Expected 'be' after let <name>")
        expr = self.parse_required_expression("Expected expression after be")

        # Scoped-resource form: let f be open(...): BLOCK ;
        if self.match(TT.COLON):
            body = self.parse_block(TT.SEMI)
            if not self.at_end():
                self.expect(TT.SEMI, "Expected ; after let block")
            return make_node(LET_SCOPED, [name_token(name), expr, body], let_tok.line)

        self.consume_terminator()
        return make_node(DECLARE, [name_token(name), expr], let_tok.line)

    def parse_var_stmt(self, var_tok: Tok) -> Tree:
        decls = [self.parse_one_var()]

        while True:
            if self.check(TT.COMMA):
                self.advance()
                decls.append(self.parse_one_var())
            elif self.starts_juxtaposed_var():
                decls.append(self.parse_one_var())
            else:
                break

        self.consume_terminator()

        if len(decls) == 1:
            return decls[0]
        return make_node(MULTI_DECL, decls, var_tok.line)

    def parse_one_var(self) -> Tree:
        name = self.expect(TT.IDENT, "Expected identifier after var")

        if self.check(TT.ASSIGN):
            self.advance()
            expr = self.parse_required_expression(f"Expected value for '{name.value}'")
        else:
            expr = self.none_literal(name)

        return make_node(DECLARE, [name_token(name), expr], name.line)

    def starts_juxtaposed_var(self) -> bool:
        """`var a = 1 b = 2.`: another identifier starts a further declaration"""
        from .runtime import is_builtin_name

        tok = self.peek()
        if tok.type != TT.IDENT or is_builtin_name(tok.value):
            return False

        nxt = self.peek_next()
        if nxt.type == TT.DOT:
            # An adjacent dot is a method call on the identifier, a gap is a terminator.
            return nxt.offset != tok.end_offset

        return nxt.type in (TT.ASSIGN, TT.COMMA, TT.IDENT, TT.EOF)

    def parse_compound_assign(self) -> Tree:
        name = self.advance()
        self.skip_newlines()
        op = self.advance()
        rhs = self.parse_required_expression(f"Expected expression after {op.value}")
        arith = Tok(COMPOUND_ASSIGN[op.type], op.value[0], op.line, op.column, op.offset)
        expr = RpnExpr((name, *self.flatten(rhs), arith), name.line)

        self.consume_terminator()
        return make_node(ASSIGN, [name_token(name), expr], name.line)

    def parse_assign(self) -> Tree:
        name = self.advance()
        self.expect(TT.ASSIGN, "Expected =")
        expr = self.parse_required_expression(f"Expected expression after '{name.value} ='")

        self.consume_terminator()
        return make_node(ASSIGN, [name_token(name), expr], name.line)

    def parse_pre_step(self, op: Tok) -> Tree:
        self.advance()
        name = self.expect(TT.IDENT, f"Expected identifier after {op.value}")
        return self.step_assign(name, op)

    def parse_post_step(self) -> Tree:
        name = self.advance()
        self.skip_newlines()
        op = self.advance()
        return self.step_assign(name, op)

    def step_assign(self, name: Tok, op: Tok) -> Tree:
        arith = TT.PLUS if op.type == TT.INCR else TT.MINUS
        expr = RpnExpr((
            name,
            Tok(TT.NUMBER, "1", name.line, op.column, op.offset),
            Tok(arith, "+" if arith == TT.PLUS else "-", name.line, op.column, op.offset),
        ), name.line)

        self.consume_terminator()
        return make_node(ASSIGN, [name_token(name), expr], name.line)

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_required_expression(self, message: str) -> Expr:
        self.skip_newlines()
        expr = self.parse_expression()
        if is_empty_expr(expr):
            raise ParseError(message, self.peek())
        return expr

    def parse_expression(self) -> Expr:
        expr = self.parse_or_expr()

        # f(args) of target  ->  target.f(args)
        if self.check(TT.OF):
            of_tok = self.advance()
            target = self.parse_or_expr()
            expr = self.rewrite_of(expr, target, of_tok)

        if isinstance(expr, RpnExpr) and expr.tokens:
            self.check_rpn(expr)
        return expr

    def parse_or_expr(self) -> Expr:
        left = self.parse_and_expr()

        while self.check(TT.OR):
            op = self.advance()
            right = self.parse_and_expr()
            self.require_operand(left, op)
            self.require_operand(right, op)
            left = LogicalExpr(TT.OR, left, right, op.line)

        return left

    def parse_and_expr(self) -> Expr:
        left = self.parse_rpn()

        while self.check(TT.AND):
            op = self.advance()
            right = self.parse_rpn()
            self.require_operand(left, op)
            self.require_operand(right, op)
            left = LogicalExpr(TT.AND, left, right, op.line)

        return left

    def parse_rpn(self) -> RpnExpr:
        """Shunting-yard pass over one non-logical sub-expression"""
        out: List[Tok] = []
        ops: List[Tok] = []
        last = None  # kind of the previous element; None at the start
        line = self.peek().line

        while not self.at_end():
            tok = self.peek()
            tt = tok.type

            if tt == TT.DOT:
                if not self.is_method_dot():
                    break
                self.advance()
                name = self.advance()
                self.advance()
                argc = self.parse_call_args(out)
                out.append(Tok(TT.METHOD, (name.value, argc), name.line, name.column, name.offset))
                last = TT.IDENT
                continue

            if tt in _EXPR_STOP:
                break

            # `IDENT =` starts the next declaration of a multi-variable statement.
            if tt == TT.IDENT and self.peek(1).type == TT.ASSIGN:
                break

            # Inside braces `->` separates a dict key from its value.
            if tt == TT.ARROW and self.brace_depth > 0:
                break

            if tt == TT.IS:
                self.advance()
                kind = TT.IS
                if self.check(TT.NOT):
                    self.advance()
                    kind = TT.IS_NOT
                self.push_operator(Tok(kind, "is" if kind == TT.IS else "is not", tok.line, tok.column, tok.offset), out, ops)
                last = _OPERATOR
                continue

            if tt == TT.POINTS or (tt == TT.NOT and self.peek(1).type == TT.POINTS):
                kind = TT.POINTS if tt == TT.POINTS else TT.NOT_POINTS
                self.advance()
                if kind == TT.NOT_POINTS:
                    self.advance()
                self.push_operator(Tok(kind, "points" if kind == TT.POINTS else "not points", tok.line, tok.column, tok.offset), out, ops)
                last = _OPERATOR
                continue

            if tt in (TT.MINUS, TT.NOT) and (last is None or last == _OPERATOR):
                self.advance()
                kind = TT.NEG if tt == TT.MINUS else TT.NOT
                ops.append(Tok(kind, tok.value, tok.line, tok.column, tok.offset))
                last = _OPERATOR
                continue

            if tt in _INFIX:
                self.advance()
                self.push_operator(tok, out, ops)
                last = _OPERATOR
                continue

            if tt == TT.NOT:
                raise ParseError("Unexpected '!' after a value", tok)

            if tt in _VALUE_START and last in _VALUE_END:
                self.push_operator(Tok(TT.STAR, "*", tok.line, tok.column, tok.offset), out, ops)

            if tt in (TT.NUMBER, TT.STRING, TT.TRUE, TT.FALSE, TT.NONE):
                out.append(self.advance())
                last = TT.NUMBER if tt == TT.NUMBER else (TT.STRING if tt == TT.STRING else TT.IDENT)
            elif tt == TT.IDENT:
                self.advance()
                if self.check(TT.LPAR):
                    self.advance()
                    argc = self.parse_call_args(out)
                    out.append(Tok(TT.CALL, (tok.value, argc), tok.line, tok.column, tok.offset))
                else:
                    out.append(tok)
                last = TT.IDENT
            elif tt == TT.LPAR:
                self.advance()
                out.extend(self.parse_group(tok))
                last = TT.RPAR
            elif tt == TT.LSQB:
                self.advance()
                self.parse_list_literal(tok, out)
                last = TT.RSQB
            elif tt == TT.LBRACE:
                self.advance()
                self.parse_brace_literal(tok, out)
                last = TT.RBRACE
            else:
                break

        while ops:
            out.append(ops.pop())

        return RpnExpr(tuple(out), line)

    def push_operator(self, op: Tok, out: List[Tok], ops: List[Tok]):
        prec = PRECEDENCE[op.type]

        while ops:
            top_prec = PRECEDENCE[ops[-1].type]
            if top_prec > prec or (top_prec == prec and op.type not in RIGHT_ASSOC):
                out.append(ops.pop())
            else:
                break

        ops.append(op)

    def parse_group(self, open_tok: Tok) -> Tuple[Tok, ...]:
        saved, self.brace_depth = self.brace_depth, 0
        inner = self.parse_expression()
        self.brace_depth = saved

        if is_empty_expr(inner):
            raise ParseError("Expected expression after (", open_tok)

        self.expect(TT.RPAR, "Mismatched parens: expected )")
        return self.flatten(inner)

    def parse_call_args(self, out: List[Tok]) -> int:
        """Parse `a, b, c)` after an opening paren, flattening into out"""
        saved, self.brace_depth = self.brace_depth, 0
        argc = self.parse_items(out, TT.RPAR, "argument")
        self.expect(TT.RPAR, "Expected ) after arguments")
        self.brace_depth = saved
        return argc

    def parse_list_literal(self, open_tok: Tok, out: List[Tok]):
        saved, self.brace_depth = self.brace_depth, 0
        count = self.parse_items(out, TT.RSQB, "list element")
        self.expect(TT.RSQB, "Expected ] to close list")
        self.brace_depth = saved
        out.append(Tok(TT.LIST, count, open_tok.line, open_tok.column, open_tok.offset))

    def parse_items(self, out: List[Tok], closer: TT, what: str) -> int:
        count = 0
        self.skip_newlines()

        if self.check(closer):
            return 0

        while True:
            item = self.parse_required_expression(f"Expected {what}")
            out.extend(self.flatten(item))
            count += 1
            if not self.match(TT.COMMA):
                break

        return count

    def parse_brace_literal(self, open_tok: Tok, out: List[Tok]):
        """`{a, b}` is a set, `{k -> v, ...}` a dict; decided by the first element"""
        self.brace_depth += 1
        count = 0
        is_dict = False
        self.skip_newlines()

        if not self.check(TT.RBRACE):
            first = self.parse_required_expression("Expected set element or dict key")
            out.extend(self.flatten(first))

            if self.check(TT.ARROW):
                is_dict = True
                self.advance()
                value = self.parse_required_expression("Expected dict value after ->")
                out.extend(self.flatten(value))
            count = 1

            while self.match(TT.COMMA):
                item = self.parse_required_expression("Expected dict key" if is_dict else "Expected set element")
                out.extend(self.flatten(item))
                if is_dict:
                    self.expect(TT.ARROW, "Expected '->' in dict literal")
                    value = self.parse_required_expression("Expected dict value after ->")
                    out.extend(self.flatten(value))
                count += 1

        self.expect(TT.RBRACE, "Expected } to close " + ("dict" if is_dict else "set"))
        self.brace_depth -= 1
        kind = TT.DICT if is_dict else TT.SET
        out.append(Tok(kind, count, open_tok.line, open_tok.column, open_tok.offset))

    def rewrite_of(self, expr: Expr, target: Expr, of_tok: Tok) -> RpnExpr:
        if not isinstance(expr, RpnExpr) or not expr.tokens or expr.tokens[-1].type not in (TT.CALL, TT.METHOD):
            raise ParseError("'of' must follow a function or method call", of_tok)
        if is_empty_expr(target):
            raise ParseError("Expected expression after 'of'", of_tok)

        call = expr.tokens[-1]
        method = Tok(TT.METHOD, call.value, call.line, call.column, call.offset)
        return RpnExpr((*self.flatten(target), *expr.tokens[:-1], method), expr.line)

    # ========================================================================
    # Helpers
    # ========================================================================

    def is_method_dot(self) -> bool:
        """A dot glued to `name(` is a method call; anything else ends the expression"""
        dot, name, paren = self.peek(), self.peek(1), self.peek(2)
        return name.type == TT.IDENT and paren.type == TT.LPAR and dot.offset + 1 == name.offset

    def check_after_newlines(self, token_type: TT) -> bool:
        self.skip_newlines()
        return self.check(token_type)

    def flatten(self, expr: Expr) -> Tuple[Tok, ...]:
        if isinstance(expr, LogicalExpr):
            return (Tok(TT.LOGIC, expr, expr.line),)
        return expr.tokens

    def require_operand(self, expr: Expr, op: Tok):
        if is_empty_expr(expr):
            raise ParseError(f"Missing operand for '{op.value}'", op)

    def check_rpn(self, expr: RpnExpr):
        """Simulate the evaluator's stack so malformed RPN fails at parse time"""
        depth = 0

        for tok in expr.tokens:
            match tok.type:
                case TT.NEG | TT.NOT:
                    needed, produced = 1, 1
                case TT.CALL:
                    needed, produced = tok.value[1], 1
                case TT.METHOD:
                    needed, produced = tok.value[1] + 1, 1
                case TT.LIST | TT.SET:
                    needed, produced = tok.value, 1
                case TT.DICT:
                    needed, produced = tok.value * 2, 1
                case kind if kind in PRECEDENCE:
                    needed, produced = 2, 1
                case _:
                    needed, produced = 0, 1

            if depth < needed:
                raise ParseError(f"Missing operand for '{self.describe(tok)}'", tok)
            depth += produced - needed

        if depth != 1:
            raise ParseError("Malformed expression: missing operator between values", line=expr.line)

    def none_literal(self, at: Tok) -> RpnExpr:
        return RpnExpr((Tok(TT.NONE, "None", at.line, at.column, at.offset),), at.line)

    @staticmethod
    def describe(tok: Tok) -> str:
        if tok.type == TT.EOF:
            return "end of input"
        if tok.type == TT.NEWLINE:
            return "newline"
        if tok.type in (TT.CALL, TT.METHOD):
            return tok.value[0]
        return str(tok.value)


def parse_source(source: str) -> Tree:
    """Tokenize and parse a whole program"""
    return Parser(tokenize(source)).parse()
