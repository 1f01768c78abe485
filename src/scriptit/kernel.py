"""Line-delimited JSON kernel used by notebook front ends.

Each request is one JSON object per line on stdin carrying an ``action``;
each response is one JSON object per line on stdout.
"""

from __future__ import annotations

import io
import json
import logging
import sys
from contextlib import redirect_stderr, redirect_stdout
from typing import Any, Dict, Optional, TextIO

from .config import InterpreterConfig
from .interpreter import Interpreter
from .runner import USER_ERRORS
from .types import SitNone
from .values import to_display

logger = logging.getLogger(__name__)

KERNEL_VERSION = "2.0"

Response = Dict[str, Any]


class Kernel:
    """Dispatches kernel requests against one interpreter session."""

    def __init__(self, config: Optional[InterpreterConfig] = None):
        self.interp = Interpreter(config)

    def handle(self, request: Dict[str, Any]) -> Response:
        action = request.get("action", "")
        logger.debug("kernel request action=%s", action)

        match action:
            case "execute":
                return self.execute(str(request.get("cell_id", "")), str(request.get("code", "")))
            case "complete":
                return self.complete(str(request.get("code", "")))
            case "reset":
                self.interp.reset()
                return {"status": "reset_ok"}
            case "shutdown":
                return {"status": "shutdown_ok"}

        return {"status": "error", "stderr": f"Unknown action: {action}"}

    def execute(self, cell_id: str, code: str) -> Response:
        out = io.StringIO()
        err = io.StringIO()
        result = ""
        error = ""

        with redirect_stdout(out), redirect_stderr(err):
            try:
                outcome = self.interp.run(code)
            except USER_ERRORS as exc:
                error = str(exc)
            else:
                if outcome.returned and not isinstance(outcome.value, SitNone):
                    result = to_display(outcome.value)

        stderr = err.getvalue() + error
        return {
            "cell_id": cell_id,
            "status": "error" if error else "ok",
            "stdout": out.getvalue(),
            "stderr": stderr,
            "result": result,
            "execution_count": self.interp.execution_count,
        }

    def complete(self, code: str) -> Response:
        words = code.split()
        prefix = words[-1] if words and not code[-1:].isspace() else ""
        return {"status": "ok", "completions": self.interp.completions(prefix)}

    def close(self) -> None:
        self.interp.close()


def _send(stream: TextIO, payload: Response) -> None:
    stream.write(json.dumps(payload) + "\n")
    stream.flush()


def serve(
    config: Optional[InterpreterConfig] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> int:
    """Answer requests until `shutdown` or end of input."""
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    kernel = Kernel(config)

    _send(stdout, {"status": "kernel_ready", "version": KERNEL_VERSION})

    try:
        for line in stdin:
            line = line.strip()
            if not line:
                continue

            try:
                request = json.loads(line)
            except json.JSONDecodeError as exc:
                _send(stdout, {"status": "error", "stderr": f"Malformed request: {exc.msg}"})
                continue

            if not isinstance(request, dict):
                _send(stdout, {"status": "error", "stderr": "Malformed request: expected an object"})
                continue

            response = kernel.handle(request)
            _send(stdout, response)

            if response.get("status") == "shutdown_ok":
                break
    finally:
        kernel.close()

    return 0
