"""ScriptIt: a small dynamically typed scripting language with a REPL and a JSON kernel."""

__version__ = "2.0.0"
