"""Interactive REPL for ScriptIt, powered by prompt_toolkit."""

from __future__ import annotations

import re
import sys
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .config import InterpreterConfig
from .interpreter import Interpreter
from .lexer import LexError, tokenize
from .repl_highlight import ScriptItLexer
from .runner import USER_ERRORS, report_error
from .token_types import TT
from .types import SitNone, SitNumber
from .values import to_display

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")
_WORD_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*$")

# REPL commands: name => description.
_COMMANDS = {
    "exit": "Leave the REPL",
    "clear": "Clear the terminal screen",
    "wipe": "Forget every variable and function",
}

WIPE_MESSAGE = "Session wiped. All variables and functions cleared."

_OPEN = {TT.LPAR, TT.LSQB, TT.LBRACE}
_CLOSE = {TT.RPAR, TT.RSQB, TT.RBRACE}
_BLOCK_HEADS = {TT.IF, TT.FOR, TT.WHILE, TT.FN, TT.LET}


def open_blocks(text: str) -> int:
    """Unclosed `:` blocks plus unclosed brackets in *text*; -1 if it does not lex yet."""
    try:
        tokens = tokenize(text)
    except LexError:
        # most likely an unterminated string still being typed
        return -1

    depth = 0
    blocks = 0
    pending = None

    for tok in tokens:
        t = tok.type
        if t in _OPEN:
            depth += 1
        elif t in _CLOSE:
            depth = max(depth - 1, 0)
        elif depth == 0:
            if t in _BLOCK_HEADS and pending is None:
                pending = t
            elif t in (TT.ELIF, TT.ELSE):
                pending = t
            elif t == TT.COLON and pending is not None:
                if pending in _BLOCK_HEADS:
                    blocks += 1
                pending = None
            elif t in (TT.DOT, TT.NEWLINE) and pending in (TT.FN, TT.LET):
                # forward declaration or plain `let x be e.`
                pending = None
            elif t == TT.SEMI:
                blocks = max(blocks - 1, 0)

    return blocks + depth


def needs_more(text: str) -> bool:
    if text.rstrip(" \t").endswith("`"):
        return True
    return open_blocks(text) != 0


def _compute_indent(text: str) -> str:
    depth = max(open_blocks(text), 0)
    return " " * (4 * depth)


class _ReplCompleter(Completer):
    """Complete keywords, builtins, global names and REPL commands."""

    def __init__(self, interp: Interpreter):
        self.interp = interp

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        match = _WORD_RE.search(text)
        if match is None:
            return

        prefix = match.group(0)
        if text == prefix:
            for cmd, desc in _COMMANDS.items():
                if cmd.startswith(prefix):
                    yield Completion(cmd, start_position=-len(prefix), display_meta=desc)

        for name in self.interp.completions(prefix):
            if name not in _COMMANDS:
                yield Completion(name, start_position=-len(prefix))


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def handle_command(line: str, interp: Interpreter) -> Optional[bool]:
    """Run a REPL command. Returns None for ordinary input, False to exit, True otherwise."""
    cmd = line.strip()

    if cmd == "exit":
        return False

    if cmd == "clear":
        clear()
        return True

    if cmd == "wipe":
        interp.reset()
        interp.globals.define("ans", SitNumber(0, "int"))
        print(WIPE_MESSAGE)
        return True

    return None


def eval_line(text: str, interp: Interpreter) -> None:
    try:
        result = interp.run(text, remember=True)
    except USER_ERRORS as exc:
        report_error(exc)
        return

    if result.returned and not isinstance(result.value, SitNone):
        print(to_display(result.value))


def repl(config: Optional[InterpreterConfig] = None) -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    interp = Interpreter(config)
    interp.globals.define("ans", SitNumber(0, "int"))

    bindings = KeyBindings()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        text = buf.text

        if needs_more(text):
            buf.insert_text("\n" + _compute_indent(text))
            return

        buf.validate_and_handle()

    session: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        lexer=ScriptItLexer(),
        completer=_ReplCompleter(interp),
        complete_while_typing=False,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation=".. ",
    )

    print("ScriptIt REPL (type 'exit' to quit, 'wipe' to reset)")

    try:
        while True:
            try:
                text = session.prompt(">> ")
            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                print("KeyboardInterrupt", file=sys.stderr)
                continue

            text = _normalize(text)
            if not text.strip():
                continue

            outcome = handle_command(text, interp)
            if outcome is False:
                break
            if outcome is None:
                eval_line(text, interp)
    finally:
        interp.close()
