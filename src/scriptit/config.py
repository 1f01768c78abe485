"""Interpreter settings, with environment-variable overrides."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_MAX_DEPTH = "SCRIPTIT_MAX_DEPTH"
ENV_PY_TRACE = "SCRIPTIT_DEBUG_PY_TRACE"
ENV_LOG_LEVEL = "SCRIPTIT_LOG_LEVEL"

_TRUTHY = ("1", "true", "yes", "on")

@dataclass
class InterpreterConfig:
    max_depth: int = 500
    echo_expressions: bool = True
    py_trace: bool = False
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'InterpreterConfig':
        env = os.environ if environ is None else environ
        config = cls()

        raw_depth = env.get(ENV_MAX_DEPTH)
        if raw_depth:
            try:
                config.max_depth = max(1, int(raw_depth))
            except ValueError:
                raise ValueError(f"{ENV_MAX_DEPTH} must be an integer, got {raw_depth!r}") from None

        config.py_trace = env.get(ENV_PY_TRACE, "").lower() in _TRUTHY
        config.log_level = env.get(ENV_LOG_LEVEL, config.log_level).upper()
        return config

def py_trace_enabled() -> bool:
    """Live check, so the REPL can toggle tracebacks mid-session."""
    return os.environ.get(ENV_PY_TRACE, "").lower() in _TRUTHY
