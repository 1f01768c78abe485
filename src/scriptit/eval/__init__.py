"""Evaluator helper modules for the ScriptIt runtime."""

__all__ = [
    "expr",
    "calls",
    "blocks",
    "scoped",
]
