from __future__ import annotations

import zlib
from textwrap import dedent

import pytest

from tests.support.harness import (
    ScriptItArityError,
    ScriptItMethodNotFound,
    ScriptItRuntimeError,
    ScriptItTypeError,
    run_echo,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param('"Hello".upper()', ("string", "HELLO"), None, id="upper"),
    pytest.param('"Hello".lower()', ("string", "hello"), None, id="lower"),
    pytest.param('"  pad  ".strip()', ("string", "pad"), None, id="strip"),
    pytest.param('"  pad  ".lstrip()', ("string", "pad  "), None, id="lstrip"),
    pytest.param('"  pad  ".rstrip()', ("string", "  pad"), None, id="rstrip"),
    pytest.param('"hello world".capitalize()', ("string", "Hello world"), None, id="capitalize"),
    pytest.param('"hello world".title()', ("string", "Hello World"), None, id="title"),
    pytest.param('"one. two! three".sentence_case()', ("string", "One. Two! Three"), None, id="sentence-case"),
    pytest.param('"abc".reverse()', ("string", "cba"), None, id="reverse"),
    pytest.param('"123".isdigit()', ("bool", True), None, id="isdigit"),
    pytest.param('"ab1".isalpha()', ("bool", False), None, id="isalpha"),
    pytest.param('"ab1".isalnum()', ("bool", True), None, id="isalnum"),
    pytest.param('"  ".isspace()', ("bool", True), None, id="isspace"),
    pytest.param('"".empty()', ("bool", True), None, id="empty"),
    pytest.param('"abcd".size()', ("number", 4), None, id="size"),
    pytest.param('len("abcd")', ("number", 4), None, id="len-builtin"),
    pytest.param('"a b  c".split()', ("display", '["a", "b", "c"]'), None, id="split-whitespace"),
    pytest.param('"a,b,c".split(",")', ("display", '["a", "b", "c"]'), None, id="split-sep"),
    pytest.param('"abc".split("")', ("display", '["a", "b", "c"]'), None, id="split-chars"),
    pytest.param('"hello".find("l")', ("number", 2), None, id="find"),
    pytest.param('"hello".find("z")', ("number", -1), None, id="find-missing"),
    pytest.param('"hello".count("l")', ("number", 2), None, id="count"),
    pytest.param('"hello".startswith("he")', ("bool", True), None, id="startswith"),
    pytest.param('"hello".endswith("lo")', ("bool", True), None, id="endswith"),
    pytest.param('"hello".contains("ell")', ("bool", True), None, id="contains"),
    pytest.param('"hello".has("z")', ("bool", False), None, id="has"),
    pytest.param('"-".join(["a", 1, "b"])', ("string", "a-1-b"), None, id="join"),
    pytest.param('"7".zfill(3)', ("string", "007"), None, id="zfill"),
    pytest.param('"hello".at(1)', ("string", "e"), None, id="at"),
    pytest.param('"hello".at(-1)', ("string", "o"), None, id="at-negative"),
    pytest.param('"hello".at(9)', None, ScriptItRuntimeError, id="at-out-of-range"),
    pytest.param('"a-b-c".replace("-", "+")', ("string", "a+b+c"), None, id="replace"),
    pytest.param('"ab".center(6, "*")', ("string", "**ab**"), None, id="center"),
    pytest.param('"hello".slice(1, 3)', ("string", "el"), None, id="slice"),
    pytest.param('"hello".slice(None, None, -1)', ("string", "olleh"), None, id="slice-step"),
    pytest.param('"hello".slice(0, 5, 0)', None, ScriptItRuntimeError, id="slice-zero-step"),
    pytest.param('"hello".find(1)', None, ScriptItTypeError, id="find-needs-string"),
    pytest.param('"hello".nope()', None, ScriptItMethodNotFound, id="unknown-method"),
    pytest.param('"hello".split(",", 1)', None, ScriptItArityError, id="wrong-arity-method"),
    pytest.param('"abc".type()', ("string", "str"), None, id="universal-type"),
    pytest.param('"abc".is_string()', ("bool", True), None, id="universal-predicate"),
    pytest.param('"12".toInt() + 1', ("number", 13), None, id="universal-conversion"),
    pytest.param('str(12) + "!"', ("string", "12!"), None, id="str-builtin"),
    pytest.param('upper() of "shout"', ("string", "SHOUT"), None, id="of-sugar"),
    pytest.param('"it" + \'s\'', ("string", "its"), None, id="mixed-quotes"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_string_scenarios(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_string_methods_do_not_change_variable() -> None:
    echoed = run_echo(
        dedent(
            """\
            var s = "abc".
            s.upper()
            s
            """
        )
    )
    assert echoed == ["ABC", "abc"]


def test_strings_display_raw_at_top_level_and_quoted_inside_containers() -> None:
    echoed = run_echo('"plain"\n["quoted"]\n{"k" -> "v"}')
    assert echoed == ["plain", '["quoted"]', '{"k": "v"}']


def test_arity_error_message_names_method() -> None:
    with pytest.raises(ScriptItArityError) as exc_info:
        run_echo('"a".upper(1)')
    assert "Method 'upper' on str does not accept 1 argument(s)" in str(exc_info.value)
    assert "at line 1" in str(exc_info.value)


def test_unknown_method_message() -> None:
    with pytest.raises(ScriptItMethodNotFound) as exc_info:
        run_echo('"a".frobnicate()')
    assert "Unknown method 'frobnicate' on type 'str'" in str(exc_info.value)


def test_hash_is_stable_across_runs() -> None:
    echoed = run_echo('"abc".hash()\n[1, 2].hash()')
    assert echoed == ["891568578", str(zlib.crc32(b"[1, 2]"))]
