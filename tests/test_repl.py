from __future__ import annotations

from typing import List

import pytest
from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document

from scriptit.repl import WIPE_MESSAGE, _normalize, _ReplCompleter, eval_line, handle_command, needs_more, open_blocks
from scriptit.repl_highlight import GROUP_STYLE, ScriptItLexer, _highlight_line
from tests.support.harness import Interpreter, InterpreterConfig, SitNumber


@pytest.fixture
def interp():
    echoed: List[str] = []
    session = Interpreter(InterpreterConfig(), echo=echoed.append)
    yield session
    session.close()


@pytest.mark.parametrize(
    "text, depth",
    [
        pytest.param("var a = 1.", 0, id="statement"),
        pytest.param("if a:", 1, id="if-open"),
        pytest.param("if a: pass. ;", 0, id="if-closed"),
        pytest.param("if a: pass. elif b:", 1, id="elif-same-block"),
        pytest.param("fn f(x):", 1, id="fn-open"),
        pytest.param("fn f(x).", 0, id="forward-declaration"),
        pytest.param("let x be 5.", 0, id="let-declaration"),
        pytest.param('let f be open("a"):', 1, id="let-scoped"),
        pytest.param("if a:\n    for i in range(3):", 2, id="nested"),
        pytest.param("print(1,", 1, id="open-paren"),
        pytest.param("var xs = [1, [2,", 2, id="open-brackets"),
        pytest.param('var s = "abc', -1, id="unterminated-string"),
    ],
)
def test_open_blocks(text: str, depth: int) -> None:
    assert open_blocks(text) == depth


@pytest.mark.parametrize(
    "text, more",
    [
        pytest.param("var a = 1.", False, id="complete"),
        pytest.param("if a:", True, id="open-block"),
        pytest.param("var a = 1 + `", True, id="backtick-continuation"),
        pytest.param('var s = "abc', True, id="inside-string"),
    ],
)
def test_needs_more(text: str, more: bool) -> None:
    assert needs_more(text) is more


def test_normalize_strips_invisible_characters() -> None:
    assert _normalize("var\u200b a\u00a0= 1.\r") == "var a= 1."


def test_exit_command(interp: Interpreter) -> None:
    assert handle_command("  exit ", interp) is False


def test_ordinary_input_is_not_a_command(interp: Interpreter) -> None:
    assert handle_command("var exit_code = 1.", interp) is None


def test_wipe_command(interp: Interpreter, capsys: pytest.CaptureFixture[str]) -> None:
    interp.run("var kept = 1.")

    assert handle_command("wipe", interp) is True
    assert capsys.readouterr().out == WIPE_MESSAGE + "\n"
    assert "kept" not in interp.globals.vars
    assert interp.globals.get("ans") == SitNumber(0, "int")


def test_eval_line_remembers_answer(interp: Interpreter) -> None:
    eval_line("6 * 7", interp)
    eval_line("var doubled = ans * 2.", interp)
    assert interp.globals.get("doubled").value == 84


def test_eval_line_reports_errors(interp: Interpreter, capsys: pytest.CaptureFixture[str]) -> None:
    eval_line("1 / 0", interp)
    assert capsys.readouterr().err == "Error: Division by zero at line 1\n"


def test_eval_line_prints_given_value(interp: Interpreter, capsys: pytest.CaptureFixture[str]) -> None:
    eval_line("give 5.", interp)
    assert capsys.readouterr().out == "5\n"


def _complete(interp: Interpreter, text: str) -> List[str]:
    completer = _ReplCompleter(interp)
    return [c.text for c in completer.get_completions(Document(text), CompleteEvent())]


def test_completer_offers_commands_at_line_start(interp: Interpreter) -> None:
    assert "exit" in _complete(interp, "ex")


def test_completer_skips_commands_mid_line(interp: Interpreter) -> None:
    interp.run("var wiper = 1.")
    names = _complete(interp, "var x = wi")

    assert "wiper" in names
    assert "wipe" not in names


def test_completer_needs_a_word(interp: Interpreter) -> None:
    assert _complete(interp, "var x = ") == []


def _styles(text: str) -> dict:
    return {raw: style for style, raw in _highlight_line(text) if raw.strip()}


def test_highlight_groups() -> None:
    styles = _styles('var n = len("a") + 1')

    assert styles["var"] == GROUP_STYLE["keyword"]
    assert styles["len"] == GROUP_STYLE["builtin"]
    assert styles['"a"'] == GROUP_STYLE["string"]
    assert styles["1"] == GROUP_STYLE["number"]
    assert styles["n"] == GROUP_STYLE["identifier"]


def test_highlight_types_and_edges() -> None:
    styles = _styles("var e = int(1) -> 2")

    assert styles["int"] == GROUP_STYLE["type"]
    assert styles["->"] == GROUP_STYLE["edge"]


def test_highlight_comment() -> None:
    fragments = _highlight_line("var a = 1. --> note <--")
    assert (GROUP_STYLE["comment"], "--> note <--") in fragments


def test_highlight_keeps_text_on_lex_error() -> None:
    assert _highlight_line('var s = "open') == [("", 'var s = "open')]


def test_highlight_fragments_cover_the_line() -> None:
    text = 'for c in "ab": print(c). ;'
    assert "".join(raw for _, raw in _highlight_line(text)) == text


def test_lexer_highlights_each_document_line() -> None:
    get_line = ScriptItLexer().lex_document(Document("var a = 1.\nif a: pass. ;"))

    assert "".join(raw for _, raw in get_line(1)) == "if a: pass. ;"
    assert get_line(5) == [("", "")]
