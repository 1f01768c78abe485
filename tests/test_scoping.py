from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    ScriptItFunctionNotFound,
    ScriptItNameError,
    Session,
    run_echo,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param("var x = 1.\nif True: x = 2. ;\nx", ("number", 2), None, id="block-writes-outer"),
    pytest.param("if True: var inner = 1. ;\ninner == None", ("bool", True), None, id="block-locals-vanish"),
    pytest.param("var x = 5.\nfn f(): give x + 1. ;\nf()", ("number", 6), None, id="function-reads-caller"),
    pytest.param("var x = 1.\nfn f(): x = 2. ;\nf()", None, ScriptItNameError, id="function-write-blocked"),
    pytest.param("y = 3.", None, ScriptItNameError, id="assign-undeclared"),
    pytest.param("missing == None", ("bool", True), None, id="undefined-reads-none"),
    pytest.param("for i in range(3): pass. ;\ni == None", ("bool", True), None, id="loop-var-scoped"),
    pytest.param("give f(2).\nfn f(x): give x * 3. ;", ("number", 6), None, id="hoisted-definition"),
    pytest.param(
        "if True: fn f(): give 1. ; ;\nf()",
        None,
        ScriptItFunctionNotFound,
        id="block-function-stays-local",
    ),
    pytest.param(
        "fn g(): give y. ;\nfn h(): var y = 7. give g(). ;\nh()",
        ("number", 7),
        None,
        id="callee-sees-caller-locals",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_scoping_scenarios(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_local_declaration_shadows_global() -> None:
    echoed = run_echo("var x = 1.\nfn f(): var x = 2. give x. ;\nf()\nx")
    assert echoed == ["2", "1"]


def test_barrier_error_message() -> None:
    with pytest.raises(ScriptItNameError) as exc_info:
        run_echo("var total = 0.\nfn bump(): total = total + 1. ;\nbump().")
    assert "Undefined variable 'total' in current scope (cannot mutate outer scope)." in str(exc_info.value)


def test_nested_blocks_reach_enclosing_function_locals() -> None:
    echoed = run_echo(
        dedent(
            """\
            fn count(n):
                var seen = 0.
                for i in range(from 1 to n):
                    if i % 2 == 0:
                        seen = seen + 1.
                    ;
                ;
                give seen.
            ;
            count(6)
            """
        )
    )
    assert echoed == ["3"]


def test_globals_persist_between_runs() -> None:
    session = Session()
    session.run("var kept = 4.\nfn twice(x): give x * 2. ;")
    session.run("var out = twice(kept).")
    assert session.show("out") == "8"


def test_reset_forgets_everything_but_defaults() -> None:
    session = Session()
    session.run("var kept = 4.\nfn f(): give 1. ;")
    session.interp.reset()

    assert session.show("kept") == "None"
    assert session.interp.globals.function_names() == []
    assert session.show("PI").startswith("3.14159")
    with pytest.raises(ScriptItFunctionNotFound):
        session.run("f()")
