from __future__ import annotations

import logging
import sys
import traceback
from pathlib import Path
from typing import List, Optional

from .config import InterpreterConfig, py_trace_enabled
from .interpreter import Interpreter
from .lexer import LexError
from .parser import ParseError, parse_source
from .printer import format_program
from .types import ScriptItRuntimeError, SitNone
from .values import to_display

logger = logging.getLogger(__name__)

USER_ERRORS = (LexError, ParseError, ScriptItRuntimeError)

SELF_TEST_SOURCE = """\
var a = 10.
--> Comment Test <--
fn add @(x, y): give(x+y). ;
var result = add(a, 20).
if result > 20:
   result = result + 1.
;
var loopSum = 0.
for i in range(from 1 to 5):
   loopSum = loopSum + i.
;
"""

USAGE = """\
usage: scriptit [--log-level=LEVEL] [--test | --script | --kernel | --ast PATH | --format PATH | PATH]

  (no arguments)   start the interactive REPL
  PATH             run a script file
  --script         run a program read from standard input
  --test           run the embedded self-check
  --ast PATH       print the parsed statement tree
  --format PATH    print the canonical rendering of a script
  --kernel         serve the line-delimited JSON kernel protocol
"""

def report_error(exc: BaseException, trace: Optional[bool] = None) -> None:
    print(f"Error: {exc}", file=sys.stderr)

    if trace is None:
        trace = py_trace_enabled()
    if trace:
        print("\nPython traceback:", file=sys.stderr)
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)

def run_source(source: str, interp: Optional[Interpreter] = None) -> int:
    """Run a whole program; a top-level `give` prints its value. Returns the exit status."""
    interp = interp if interp is not None else Interpreter()

    try:
        result = interp.run(source)
    except USER_ERRORS as exc:
        report_error(exc, interp.config.py_trace or None)
        return 1
    finally:
        interp.close()

    if result.returned and not isinstance(result.value, SitNone):
        print(to_display(result.value))

    return 0

def run_self_test() -> int:
    interp = Interpreter(echo=lambda _text: None)

    try:
        interp.run(SELF_TEST_SOURCE)
    except USER_ERRORS as exc:
        print(f"Test Failed: {exc}")
        return 1

    print(f"Result: {to_display(interp.globals.get('result'))} (Expected 31)")
    print(f"LoopSum: {to_display(interp.globals.get('loopSum'))} (Expected 15)")
    return 0

def _read_path(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise SystemExit(f"Error: cannot read '{path}': {exc.strerror}") from None

def _show_ast(path: str) -> int:
    try:
        tree = parse_source(_read_path(path))
    except (LexError, ParseError) as exc:
        report_error(exc)
        return 1

    print(tree.pretty(), end="")
    return 0

def _show_format(path: str) -> int:
    try:
        tree = parse_source(_read_path(path))
    except (LexError, ParseError) as exc:
        report_error(exc)
        return 1

    print(format_program(tree), end="")
    return 0

def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

def main(argv: Optional[List[str]] = None) -> None:
    args = list(sys.argv[1:] if argv is None else argv)
    config = InterpreterConfig.from_env()
    mode = None
    target = None
    it = iter(args)

    for token in it:
        if token.startswith("--log-level="):
            config.log_level = token.split("=", 1)[1].upper()
            continue

        if token in ("-h", "--help"):
            print(USAGE, end="")
            return

        if token in ("--test", "--script", "--kernel"):
            mode = token
            continue

        if token in ("--ast", "--format"):
            mode = token
            try:
                target = next(it)
            except StopIteration:
                raise SystemExit(f"{token} flag requires a path") from None
            continue

        if token.startswith("--"):
            raise SystemExit(f"Unknown option: {token}\n{USAGE}")

        if target is None:
            target = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    configure_logging(config.log_level)
    logger.debug("mode=%s target=%s", mode, target)

    match mode:
        case "--test":
            status = run_self_test()
        case "--script":
            status = run_source(sys.stdin.read(), Interpreter(config))
        case "--kernel":
            from .kernel import serve
            status = serve(config)
        case "--ast":
            status = _show_ast(target)
        case "--format":
            status = _show_format(target)
        case _ if target is not None:
            status = run_source(_read_path(target), Interpreter(config))
        case _:
            from .repl import repl
            repl(config)
            status = 0

    sys.exit(status)

if __name__ == "__main__":
    main()
