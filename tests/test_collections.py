from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    ScriptItRuntimeError,
    ScriptItTypeError,
    Session,
    run_echo,
    run_runtime_case,
)

SCENARIOS = [
    # lists
    pytest.param("[3, 1, 2].front()", ("number", 3), None, id="list-front"),
    pytest.param("[3, 1, 2].back()", ("number", 2), None, id="list-back"),
    pytest.param("[].front()", None, ScriptItRuntimeError, id="list-front-empty"),
    pytest.param("[3, 1, 2].sort()", ("display", "[1, 2, 3]"), None, id="list-sort"),
    pytest.param('["b", "a"].sort()', ("display", '["a", "b"]'), None, id="list-sort-strings"),
    pytest.param("[1, 2, 3].reverse()", ("display", "[3, 2, 1]"), None, id="list-reverse"),
    pytest.param("[7, 8].keys()", ("display", "[0, 1]"), None, id="list-keys"),
    pytest.param("[1, 2].append(3)", ("display", "[1, 2, 3]"), None, id="list-append-returns-list"),
    pytest.param("[1].extend([2, 3])", ("display", "[1, 2, 3]"), None, id="list-extend"),
    pytest.param("[1, 2, 1].remove(1)", ("display", "[2, 1]"), None, id="list-remove-first"),
    pytest.param("[1, 2].remove(9)", ("display", "[1, 2]"), None, id="list-remove-missing"),
    pytest.param("[1, 2].contains(2)", ("bool", True), None, id="list-contains"),
    pytest.param("[1, 2].has(2.0)", ("bool", True), None, id="list-has-tolerant"),
    pytest.param("[1, 2, 1].count(1)", ("number", 2), None, id="list-count"),
    pytest.param("[5, 6].index(6)", ("number", 1), None, id="list-index"),
    pytest.param("[5, 6].index(7)", ("number", -1), None, id="list-index-missing"),
    pytest.param("[5, 6].at(-1)", ("number", 6), None, id="list-at-negative"),
    pytest.param("[5, 6].at(2)", None, ScriptItRuntimeError, id="list-at-out-of-range"),
    pytest.param("[1, 2, 3, 4].slice(1, 3)", ("display", "[2, 3]"), None, id="list-slice"),
    pytest.param("[1, 3].insert(1, 2)", ("display", "[1, 2, 3]"), None, id="list-insert"),
    pytest.param("[1, 2].insert(99, 3)", ("display", "[1, 2, 3]"), None, id="list-insert-clamped"),
    pytest.param("[1, 2].insert(-99, 0)", ("display", "[0, 1, 2]"), None, id="list-insert-clamped-low"),
    pytest.param("[1, 2].clear()", ("none", None), None, id="list-clear-returns-none"),
    pytest.param("[].empty()", ("bool", True), None, id="list-empty"),
    pytest.param("[1, [2, 3]].size()", ("number", 2), None, id="list-size"),
    pytest.param("[1, 2].pop()", ("number", 2), None, id="list-pop"),
    pytest.param("[].pop()", None, ScriptItRuntimeError, id="list-pop-empty"),
    # sets
    pytest.param("{1, 2, 2, 1}", ("display", "{1, 2}"), None, id="set-literal-unique"),
    pytest.param("{1, 1.0}", ("display", "{1}"), None, id="set-unique-by-equality"),
    pytest.param("{1}.add(2)", ("display", "{1, 2}"), None, id="set-add"),
    pytest.param("{1}.add(1)", ("display", "{1}"), None, id="set-add-existing"),
    pytest.param("{1, 2}.remove(1)", ("display", "{2}"), None, id="set-remove"),
    pytest.param("{1}.update([2, 1, 3])", ("display", "{1, 2, 3}"), None, id="set-update"),
    pytest.param("{1}.extend({4})", ("display", "{1, 4}"), None, id="set-extend"),
    pytest.param("{1, 2}.contains(2)", ("bool", True), None, id="set-contains"),
    pytest.param("{1, 2}.size()", ("number", 2), None, id="set-size"),
    # dicts
    pytest.param('{"a" -> 1, "b" -> 2}.keys()', ("display", '["a", "b"]'), None, id="dict-keys"),
    pytest.param('{"a" -> 1, "b" -> 2}.values()', ("display", "[1, 2]"), None, id="dict-values"),
    pytest.param('{"a" -> 1}.items()', ("display", '[["a", 1]]'), None, id="dict-items"),
    pytest.param('{"a" -> 1}.get("a")', ("number", 1), None, id="dict-get"),
    pytest.param('{"a" -> 1}.get("z")', ("none", None), None, id="dict-get-missing"),
    pytest.param('{"a" -> 1}.get("z", 0)', ("number", 0), None, id="dict-get-default"),
    pytest.param('{"a" -> 1}.has("a")', ("bool", True), None, id="dict-has"),
    pytest.param('{1 -> "one"}.contains(1)', ("bool", True), None, id="dict-key-stringified"),
    pytest.param('{"a" -> 1}.update({"b" -> 2})', ("display", '{"a": 1, "b": 2}'), None, id="dict-update"),
    pytest.param('{"a" -> 1}.update([1])', None, ScriptItTypeError, id="dict-update-needs-dict"),
    pytest.param('{"b" -> 1, "a" -> 2}', ("display", '{"b": 1, "a": 2}'), None, id="dict-insertion-order"),
    pytest.param('{"a" -> 1, "a" -> 2}', ("display", '{"a": 2}'), None, id="dict-last-wins"),
    # free functions
    pytest.param("append([1], 2)", ("display", "[1, 2]"), None, id="fn-append"),
    pytest.param("pop([1, 2])", ("number", 2), None, id="fn-pop"),
    pytest.param('list("ab")', ("display", '["a", "b"]'), None, id="fn-list-from-string"),
    pytest.param("set([1, 1, 2])", ("display", "{1, 2}"), None, id="fn-set"),
    pytest.param('dict([["a", 1]])', ("display", '{"a": 1}'), None, id="fn-dict-pairs"),
    pytest.param("dict([1])", None, ScriptItTypeError, id="fn-dict-bad-pairs"),
    pytest.param("range_list(1, 4)", ("display", "[1, 2, 3, 4]"), None, id="fn-range-list"),
    pytest.param("range_list(4, 1)", ("display", "[4, 3, 2, 1]"), None, id="fn-range-list-down"),
    pytest.param("range_list(0, 10, 5)", ("display", "[0, 5, 10]"), None, id="fn-range-list-step"),
    pytest.param("range_list(0, 1, 0)", None, ScriptItRuntimeError, id="fn-range-list-zero-step"),
    pytest.param("sum([1, 2, 3])", ("number", 6), None, id="fn-sum"),
    pytest.param("sum([1, 2], 10)", ("number", 13), None, id="fn-sum-start"),
    pytest.param("sorted([3, 1, 2])", ("display", "[1, 2, 3]"), None, id="fn-sorted"),
    pytest.param("sorted([3, 1, 2], True)", ("display", "[3, 2, 1]"), None, id="fn-sorted-reverse"),
    pytest.param('reversed("abc")', ("string", "cba"), None, id="fn-reversed-string"),
    pytest.param("reversed([1, 2])", ("display", "[2, 1]"), None, id="fn-reversed-list"),
    pytest.param("all([1, True, \"x\"])", ("bool", True), None, id="fn-all"),
    pytest.param("any([0, None, \"\"])", ("bool", False), None, id="fn-any"),
    pytest.param('enumerate(["a", "b"], 1)', ("display", '[[1, "a"], [2, "b"]]'), None, id="fn-enumerate"),
    pytest.param("zip([1, 2, 3], [4, 5])", ("display", "[[1, 4], [2, 5]]"), None, id="fn-zip"),
    pytest.param('map("sqrt", [4, 9])', ("display", "[2, 3]"), None, id="fn-map-builtin"),
    pytest.param("map(1, [4])", None, ScriptItTypeError, id="fn-map-needs-name"),
    pytest.param("len({})", ("number", 0), None, id="fn-len-empty"),
    pytest.param("len(5)", None, ScriptItTypeError, id="fn-len-number"),
    pytest.param('type([])', ("string", "list"), None, id="fn-type-list"),
    pytest.param('type({})', ("string", "set"), None, id="fn-type-empty-braces"),
    pytest.param('type({"a" -> 1})', ("string", "dict"), None, id="fn-type-dict"),
    pytest.param('isinstance([1], "list")', ("bool", True), None, id="fn-isinstance"),
    pytest.param('bool([])', ("bool", False), None, id="fn-bool-empty"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_collection_scenarios(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_mutating_method_writes_back_to_variable() -> None:
    session = Session()
    session.run(
        dedent(
            """\
            var xs = [3, 1].
            xs.append(2).
            xs.sort().
            var seen = {1}.
            seen.add(5).
            var d = {"a" -> 1}.
            d.update({"b" -> 2}).
            """
        )
    )
    assert session.show("xs") == "[1, 2, 3]"
    assert session.show("seen") == "{1, 5}"
    assert session.show("d") == '{"a": 1, "b": 2}'


def test_pop_method_shrinks_variable() -> None:
    session = Session()
    session.run("var xs = [1, 2, 3].\nvar last = xs.pop().")
    assert session.show("last") == "3"
    assert session.show("xs") == "[1, 2]"


def test_clear_keeps_variable_but_empties_it() -> None:
    session = Session()
    session.run("var xs = [1, 2].\nxs.clear().")
    assert session.show("xs") == "[]"


def test_append_builtin_leaves_original() -> None:
    session = Session()
    session.run("var xs = [1].\nvar ys = append(xs, 2).")
    assert session.show("xs") == "[1]"
    assert session.show("ys") == "[1, 2]"


def test_assignment_copies_containers() -> None:
    session = Session()
    session.run("var a = [1].\nvar b = a.\nb.append(2).")
    assert session.show("a") == "[1]"
    assert session.show("b") == "[1, 2]"


def test_inserted_elements_are_copies() -> None:
    session = Session()
    session.run("var inner = [1].\nvar outer = [].\nouter.append(inner).\ninner.append(2).")
    assert session.show("outer") == "[[1]]"
    assert session.show("inner") == "[1, 2]"


def test_parenthesised_receiver_keeps_its_variable() -> None:
    session = Session()
    session.run("var xs = [2, 1].\nvar ys = (xs).sort().")
    assert session.show("ys") == "[1, 2]"
    assert session.show("xs") == "[1, 2]"


def test_method_on_temporary_leaves_variables_alone() -> None:
    session = Session()
    session.run("var xs = [2, 1].\nvar ys = (xs + []).sort().")
    assert session.show("ys") == "[1, 2]"
    assert session.show("xs") == "[2, 1]"


def test_pretty_print(capsys: pytest.CaptureFixture[str]) -> None:
    run_echo('pprint({"a" -> [1, 2]}).')
    assert capsys.readouterr().out == '{\n  "a": [\n    1,\n    2\n  ]\n}\n'


def test_map_over_user_function() -> None:
    echoed = run_echo("fn double_it(x): give x * 2. ;\nmap(\"double_it\", [1, 2, 3])")
    assert echoed == ["[2, 4, 6]"]
