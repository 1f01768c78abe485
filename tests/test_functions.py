from __future__ import annotations

from textwrap import dedent
from typing import List

import pytest

from tests.support.harness import (
    Interpreter,
    InterpreterConfig,
    ScriptItArityError,
    ScriptItFunctionNotFound,
    ScriptItRecursionError,
    Session,
    run_echo,
    run_program,
    run_runtime_case,
)

FACTORIAL = dedent(
    """\
    fn fact(n):
        if n <= 1: give 1. ;
        give n * fact(n - 1).
    ;
    """
)

SCENARIOS = [
    pytest.param("fn add(x, y): give x + y. ;\nadd(10, 20)", ("number", 30), None, id="add"),
    pytest.param("fn add @(x, y): give(x+y). ;\nadd(1, 2)", ("number", 3), None, id="legacy-at-params"),
    pytest.param(FACTORIAL + "fact(10)", ("number", 3628800), None, id="recursion"),
    pytest.param("fn f(): give. ;\nf() == None", ("bool", True), None, id="bare-give"),
    pytest.param("fn f(): pass. ;\nf() == None", ("bool", True), None, id="falls-off-end"),
    pytest.param("nope()", None, ScriptItFunctionNotFound, id="unknown"),
    pytest.param("fn f(x): give 1. ;\nf()", None, ScriptItArityError, id="wrong-arity"),
    pytest.param("fn f(x).\nf(1)", None, ScriptItFunctionNotFound, id="forward-never-defined"),
    pytest.param(
        "fn f(x).\nfn g(): give f(2). ;\nfn f(x): give x + 1. ;\ng()",
        ("number", 3),
        None,
        id="forward-then-defined",
    ),
    pytest.param("fn len(x): give 99. ;\nlen([1])", ("number", 1), None, id="builtins-win"),
    pytest.param(
        "fn first_even(xs): for x in xs: if x % 2 == 0: give x. ; ; give -1. ;\nfirst_even([1, 3, 4, 6])",
        ("number", 4),
        None,
        id="give-unwinds-loops",
    ),
    pytest.param(
        "fn first_even(xs): for x in xs: if x % 2 == 0: give x. ; ; give -1. ;\nfirst_even([1, 3])",
        ("number", -1),
        None,
        id="give-after-loop",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_function_scenarios(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_overloads_by_arity() -> None:
    echoed = run_echo("fn f(x): give 1. ;\nfn f(x, y): give 2. ;\nf(0)\nf(0, 0)")
    assert echoed == ["1", "2"]


def test_arity_error_lists_known_arities() -> None:
    with pytest.raises(ScriptItArityError) as exc_info:
        run_program("fn f(x): give 1. ;\nfn f(x, y): give 2. ;\nf()")
    assert "Unknown function: f with 0 arg(s); 'f' takes 1 or 2 argument(s)" in str(exc_info.value)


def test_forward_declaration_message() -> None:
    with pytest.raises(ScriptItFunctionNotFound) as exc_info:
        run_program("fn later(x).\nlater(1)")
    assert "Function 'later' was forward-declared but never defined" in str(exc_info.value)


def test_unknown_function_message() -> None:
    with pytest.raises(ScriptItFunctionNotFound) as exc_info:
        run_program("frobnicate(1)")
    assert "Unknown function: frobnicate" in str(exc_info.value)


def test_ref_parameter_writes_back() -> None:
    session = Session()
    session.run("fn inc(@x): x = x + 1. ;\nvar n = 5.\ninc(n).")
    assert session.show("n") == "6"


def test_ref_parameter_accepts_literal() -> None:
    session = Session()
    session.run("fn inc(@x): x = x + 1. ;\ninc(5).")
    assert session.echoed == []


def test_ref_swap() -> None:
    session = Session()
    session.run(
        dedent(
            """\
            fn swap(@a, @b):
                var t = a.
                a = b.
                b = t.
            ;
            var p = 1.
            var q = 2.
            swap(p, q).
            """
        )
    )
    assert session.show("p") == "2"
    assert session.show("q") == "1"


def test_ref_write_back_into_function_local() -> None:
    echoed = run_echo(
        dedent(
            """\
            fn inc(@x): x = x + 1. ;
            fn outer():
                var m = 1.
                inc(m).
                give m.
            ;
            outer()
            """
        )
    )
    assert echoed == ["2"]


def test_ref_write_back_stops_at_barrier() -> None:
    session = Session()
    session.run("fn inc(@x): x = x + 1. ;\nfn outer(): inc(n). ;\nvar n = 5.\nouter().")
    assert session.show("n") == "5"


def test_ref_list_parameter_mutates_caller() -> None:
    session = Session()
    session.run("fn push(@xs): xs.append(9). ;\nvar a = [1].\npush(a).")
    assert session.show("a") == "[1, 9]"


def test_plain_parameters_are_copies() -> None:
    session = Session()
    session.run("fn push(xs): xs.append(9). ;\nvar a = [1].\npush(a).")
    assert session.show("a") == "[1]"


def test_expression_statements_echo_inside_functions() -> None:
    echoed = run_echo("fn f(): 1 + 1. ;\nf()")
    assert echoed == ["2"]


def test_recursion_limit_is_configurable() -> None:
    echoed: List[str] = []
    interp = Interpreter(InterpreterConfig(max_depth=50), echo=echoed.append)

    with pytest.raises(ScriptItRecursionError) as exc_info:
        interp.run("fn down(n): give down(n + 1). ;\ndown(0)")
    assert "Maximum recursion depth (50) exceeded in 'down'" in str(exc_info.value)

    # depth is reset, so the session stays usable
    interp.run(FACTORIAL + "fact(5)")
    assert echoed == ["120"]


def test_top_level_give_ends_program(capsys: pytest.CaptureFixture[str]) -> None:
    session = Session()
    result = session.run('give 5.\nprint("unreachable").')

    assert result.returned is True
    assert result.value.value == 5
    assert capsys.readouterr().out == ""
