from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

ROOT_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (ROOT_DIR / "src").resolve()

if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from scriptit.config import InterpreterConfig
from scriptit.interpreter import ExecResult, Interpreter
from scriptit.lexer import LexError, tokenize
from scriptit.parser import ParseError, parse_source
from scriptit.token_types import TT
from scriptit.types import (
    ScriptItArityError,
    ScriptItFileError,
    ScriptItFunctionNotFound,
    ScriptItMethodNotFound,
    ScriptItNameError,
    ScriptItRecursionError,
    ScriptItRuntimeError,
    ScriptItTypeError,
    ScriptItZeroDivisionError,
    SitBool,
    SitDict,
    SitGraph,
    SitList,
    SitNone,
    SitNumber,
    SitSet,
    SitString,
    SitValue,
)
from scriptit.values import to_display

__all__ = [
    "ExecResult", "Interpreter", "InterpreterConfig", "LexError", "ParseError", "TT",
    "ScriptItArityError", "ScriptItFileError", "ScriptItFunctionNotFound",
    "ScriptItMethodNotFound", "ScriptItNameError", "ScriptItRecursionError",
    "ScriptItRuntimeError", "ScriptItTypeError", "ScriptItZeroDivisionError",
    "SitBool", "SitDict", "SitGraph", "SitList", "SitNone", "SitNumber", "SitSet",
    "SitString", "SitValue", "Session", "parse_source", "run_echo", "run_program",
    "run_runtime_case", "rpn_kinds", "tokenize", "verify_result",
]

# (kind, expected) pair checked against the program's result, or None to only run it.
RuntimeExpectation = Optional[Tuple[str, object]]


@dataclass
class Session:
    """An interpreter whose echoed expression values are collected instead of printed."""

    echoed: List[str] = field(default_factory=list)
    interp: Interpreter = field(init=False)

    def __post_init__(self) -> None:
        self.interp = Interpreter(InterpreterConfig(), echo=self.echoed.append)

    def run(self, source: str) -> ExecResult:
        return self.interp.run(source)

    def get(self, name: str) -> SitValue:
        return self.interp.globals.get(name)

    def show(self, name: str) -> str:
        return to_display(self.get(name))


def run_program(source: str) -> SitValue:
    """Run `source` and return its result: a top-level `give`, else the last echoed value."""
    return Session().run(source).value


def run_echo(source: str) -> List[str]:
    """Run `source` and return every value its expression statements echoed."""
    session = Session()
    session.run(source)
    return session.echoed


def rpn_kinds(source: str) -> List[TT]:
    """Token kinds of the first expression statement's RPN stream."""
    stmt = parse_source(source).children[0]
    return [tok.type for tok in stmt.children[0].tokens]


def verify_result(value: object, kind: str, expected: object) -> None:
    """Assert the runtime value has the expected shape and contents."""
    match kind:
        case "number":
            assert isinstance(value, SitNumber), f"expected number, got {type(value).__name__}"
            assert abs(float(value.value) - float(expected)) <= 1e-9, f"expected {expected}, got {value.value}"
        case "kind":
            assert isinstance(value, SitNumber), f"expected number, got {type(value).__name__}"
            assert value.kind == expected, f"expected kind {expected}, got {value.kind}"
        case "string":
            assert isinstance(value, SitString), f"expected string, got {type(value).__name__}"
            assert value.value == expected, f"expected {expected!r}, got {value.value!r}"
        case "bool":
            assert isinstance(value, SitBool), f"expected bool, got {type(value).__name__}"
            assert value.value is bool(expected), f"expected {expected}, got {value.value}"
        case "none":
            assert isinstance(value, SitNone), f"expected None, got {type(value).__name__}"
        case "display":
            rendered = to_display(value)
            assert rendered == expected, f"expected {expected!r}, got {rendered!r}"
        case _:
            raise AssertionError(f"unknown expectation kind {kind}")


def run_runtime_case(
    source: str,
    expectation: RuntimeExpectation,
    expected_exc: Optional[type],
) -> None:
    """Execute one runtime scenario with an optional expected exception."""
    if expected_exc is not None:
        with pytest.raises(expected_exc):
            run_program(source)
        return

    result = run_program(source)
    if expectation is not None:
        verify_result(result, expectation[0], expectation[1])
