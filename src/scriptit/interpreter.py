"""Interpreter session: one global scope, one file registry, repeated runs."""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional

from lark import Tree

from .config import InterpreterConfig
from .evaluator import exec_block
from .files import FileRegistry
from .lexer import Lexer
from .parser import parse_source
from .runtime import builtin_names, init_stdlib
from .types import Context, Return, Scope, SitNone, SitNumber, SitValue

logger = logging.getLogger(__name__)

GLOBAL_DEFAULTS = {
    "PI": 3.14159265,
    "e": 2.7182818,
}

# Python frames consumed per nested user call, with headroom.
_FRAMES_PER_CALL = 50

def ensure_recursion_limit(max_depth: int) -> None:
    wanted = max_depth * _FRAMES_PER_CALL + 1000
    if sys.getrecursionlimit() < wanted:
        sys.setrecursionlimit(wanted)

@dataclass
class ExecResult:
    """`returned` is set when a top-level `give` ended the program."""
    value: SitValue
    returned: bool = False

class Interpreter:
    def __init__(self, config: Optional[InterpreterConfig] = None, echo: Optional[Callable[[str], None]] = None):
        init_stdlib()
        self.config = config if config is not None else InterpreterConfig.from_env()
        self.files = FileRegistry()
        self.ctx = Context(self.config, self.files, echo)
        self.globals = Scope(ctx=self.ctx)
        self.execution_count = 0

        ensure_recursion_limit(self.config.max_depth)
        self._install_defaults()

    def _install_defaults(self) -> None:
        for name, value in GLOBAL_DEFAULTS.items():
            self.globals.define(name, SitNumber(value, "double"))

    def parse(self, source: str) -> Tree:
        return parse_source(source)

    def run(self, source: str, remember: bool = False) -> ExecResult:
        """Parse and execute `source` in the global scope.

        With `remember`, the last echoed expression value is bound to `ans`.
        """
        return self.execute(self.parse(source), remember=remember)

    def execute(self, program: Tree, remember: bool = False) -> ExecResult:
        self.execution_count += 1
        self.ctx.depth = 0
        self.ctx.last_value = None

        flow = exec_block(program, self.globals, new_scope=False)

        if remember and self.ctx.last_value is not None:
            self.globals.define("ans", self.ctx.last_value)

        if isinstance(flow, Return):
            return ExecResult(flow.value, returned=True)

        last = self.ctx.last_value
        return ExecResult(last if last is not None else SitNone())

    def reset(self) -> None:
        """Drop every variable and function, close open files, restore the defaults."""
        self.globals.clear()
        self.files.close_all()
        self.execution_count = 0
        self._install_defaults()
        logger.debug("session wiped")

    def close(self) -> None:
        self.files.close_all()

    def completions(self, prefix: str) -> List[str]:
        names = set(Lexer.KEYWORDS) | set(Lexer.WORD_OPERATORS) | set(builtin_names())
        names.update(self.globals.vars)
        names.update(self.globals.function_names())
        return sorted(n for n in names if n.startswith(prefix))
