from __future__ import annotations

import math

import pytest

from scriptit.numeric import c_mod, coerce, fit_integral, format_number, literal_kind, widen
from tests.support.harness import (
    ScriptItArityError,
    ScriptItRuntimeError,
    ScriptItTypeError,
    SitNumber,
    run_program,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param("42", ("kind", "int"), None, id="literal-int"),
    pytest.param("4.0", ("kind", "double"), None, id="literal-double"),
    pytest.param("2147483648", ("kind", "long_long"), None, id="literal-wide"),
    pytest.param("2147483647 + 1", ("kind", "long"), None, id="int-overflow-to-long"),
    pytest.param("2147483647 + 1", ("number", 2147483648), None, id="int-overflow-value"),
    pytest.param("2^64", ("kind", "double"), None, id="past-64-bits-is-double"),
    pytest.param("ulong(0) - 1", ("kind", "long_long"), None, id="unsigned-underflow"),
    pytest.param("ulong(0) - 1", ("number", -1), None, id="unsigned-underflow-value"),
    pytest.param("10 / 4", ("number", 2.5), None, id="div-floating"),
    pytest.param("10 / 5", ("kind", "double"), None, id="div-always-floating"),
    pytest.param("float(1) + 1", ("kind", "float"), None, id="float-wins-over-int"),
    pytest.param("float(1) + 1.0", ("kind", "double"), None, id="double-wins-over-float"),
    pytest.param("long(1) + 1", ("kind", "long"), None, id="long-wins-over-int"),
    pytest.param("2 ^ -1", ("number", 0.5), None, id="negative-exponent"),
    pytest.param("2 ^ 10", ("kind", "int"), None, id="integral-power"),
    pytest.param("int(3.9)", ("number", 3), None, id="int-truncates"),
    pytest.param("int(-3.9)", ("number", -3), None, id="int-truncates-negative"),
    pytest.param('int("12")', ("number", 12), None, id="int-from-string"),
    pytest.param('int("x")', None, ScriptItTypeError, id="int-from-bad-string"),
    pytest.param("double(2)", ("kind", "double"), None, id="double-conversion"),
    pytest.param("long_double(2)", ("kind", "long_double"), None, id="long-double-conversion"),
    pytest.param('auto_numeric("42")', ("kind", "int"), None, id="auto-int"),
    pytest.param('auto_numeric("4.5")', ("number", 4.5), None, id="auto-double"),
    pytest.param('auto_numeric("99999999999")', ("kind", "long"), None, id="auto-wide"),
    pytest.param('auto_numeric("abc")', None, ScriptItTypeError, id="auto-bad"),
    pytest.param("sqrt(16)", ("number", 4), None, id="sqrt"),
    pytest.param("sqrt(-1)", None, ScriptItRuntimeError, id="sqrt-domain"),
    pytest.param("abs(-3)", ("kind", "int"), None, id="abs-keeps-kind"),
    pytest.param("abs(-2.5)", ("number", 2.5), None, id="abs-floating"),
    pytest.param("floor(2.7)", ("number", 2), None, id="floor"),
    pytest.param("ceil(2.1)", ("kind", "int"), None, id="ceil-integral"),
    pytest.param("round(2.5)", ("number", 3), None, id="round-half-away"),
    pytest.param("round(-2.5)", ("number", -3), None, id="round-half-away-negative"),
    pytest.param("round(3.14159, 2)", ("number", 3.14), None, id="round-digits"),
    pytest.param("log(8, 2)", ("number", 3), None, id="log-base"),
    pytest.param("log10(1000)", ("number", 3), None, id="log10"),
    pytest.param("log(0)", None, ScriptItRuntimeError, id="log-domain"),
    pytest.param("max(3, 9, 4)", ("number", 9), None, id="max-varargs"),
    pytest.param("min([3, 9, 4])", ("number", 3), None, id="min-list"),
    pytest.param("max([])", None, ScriptItRuntimeError, id="max-empty"),
    pytest.param("sin(0)", ("number", 0), None, id="sin"),
    pytest.param("cos(PI)", ("number", -1), None, id="cos-pi-default"),
    pytest.param("sqrt()", None, ScriptItArityError, id="math-arity"),
    pytest.param("(3.7).toInt()", ("number", 3), None, id="method-toInt"),
    pytest.param("(3).toDouble()", ("kind", "double"), None, id="method-toDouble"),
    pytest.param("(5).is_int()", ("bool", True), None, id="method-is-int"),
    pytest.param("(5.0).is_any_floating()", ("bool", True), None, id="method-is-floating"),
    pytest.param("(5).isIntegral()", ("bool", True), None, id="method-isIntegral"),
    pytest.param("(0).toBool()", ("bool", False), None, id="method-toBool"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_numeric_scenarios(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


@pytest.mark.parametrize(
    "source, shown",
    [
        pytest.param("10 / 3", "3.33333", id="six-significant"),
        pytest.param("20 / 4", "5", id="whole-double"),
        pytest.param("1.5", "1.5", id="fraction"),
        pytest.param("2147483647 + 1", "2147483648", id="wide-int"),
        pytest.param("2^64", "1.84467e+19", id="huge-double"),
        pytest.param("0.1 * 3", "0.3", id="rounded-display"),
    ],
)
def test_number_display(source: str, shown: str) -> None:
    from scriptit.values import to_display

    assert to_display(run_program(source)) == shown


def test_literal_kinds() -> None:
    assert literal_kind("7") == (7, "int")
    assert literal_kind("7.25") == (7.25, "double")
    assert literal_kind(str(2**40)) == (2**40, "long_long")


def test_fit_integral_promotions() -> None:
    assert fit_integral(2**31, "int") == (2**31, "long")
    assert fit_integral(2**32, "uint") == (2**32, "ulong")
    assert fit_integral(-1, "uint") == (-1, "long_long")
    assert fit_integral(2**64, "long")[1] == "double"


def test_fit_integral_overflows_to_infinity() -> None:
    value, kind = fit_integral(10**400, "long_long")
    assert kind == "double"
    assert value == math.inf


def test_coerce_and_widen() -> None:
    assert coerce(3.9, "int") == (3, "int")
    assert coerce(3, "double") == (3.0, "double")
    assert widen("int", "double") == "double"
    assert widen("ulong", "long") == "ulong"


def test_c_mod_sign_follows_dividend() -> None:
    assert c_mod(-7, 3) == -1
    assert c_mod(7, -3) == 1
    assert c_mod(-7.5, 2.0) == -1.5


def test_format_number() -> None:
    assert format_number(5, "int") == "5"
    assert format_number(5.0, "double") == "5"
    assert format_number(1 / 3, "double") == "0.333333"


def test_globals_have_constants() -> None:
    pi = run_program("PI")
    assert isinstance(pi, SitNumber)
    assert pi.kind == "double"
    assert abs(pi.value - 3.14159265) < 1e-12
