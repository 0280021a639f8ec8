"""Tests for the keypad model, the console loop and the command line."""

import pytest
from typer.testing import CliRunner

import calc
import calclib

runner = CliRunner()


def make_reader(*lines):
    """Return an input()-alike that replays lines, then hits EOF."""
    pending = list(lines)

    def read(prompt):
        if not pending:
            raise EOFError
        return pending.pop(0)
    return read


# --- Keypad ---

def test_keypad_builds_expression():
    pad = calc.Keypad()
    for key in "12+(3.5)":
        pad.press(key)
    assert pad.expression == "12 + (3.5)"


def test_keypad_equals_shows_result_and_clears():
    pad = calc.Keypad()
    for key in "2*(3+4)":
        pad.press(key)
    assert pad.press_equals() == "14"
    assert pad.result == "14"
    assert pad.expression == ""


def test_keypad_unary_minus_from_operation_key():
    pad = calc.Keypad()
    for key in "-5+3=":
        pad.press(key)
    assert pad.result == "-2"


def test_keypad_error_is_displayed():
    pad = calc.Keypad()
    for key in "4/0=":
        pad.press(key)
    assert pad.result == "Error: division by zero"
    assert pad.expression == ""


def test_keypad_equals_on_empty_buffer():
    pad = calc.Keypad()
    pad.press("=")
    assert pad.result.startswith("Error: unexpected end of input")


def test_keypad_clear():
    pad = calc.Keypad()
    for key in "1+2=3":
        pad.press(key)
    pad.press("C")
    assert pad.expression == ""
    assert pad.result == ""


def test_keypad_long_chain():
    pad = calc.Keypad()
    pad.expression = " + ".join(["1"] * 3000)
    assert pad.press_equals() == "3000"


@pytest.mark.parametrize("key", ["x", "^", "==", ""])
def test_keypad_unknown_key(key):
    with pytest.raises(ValueError):
        calc.Keypad().press(key)


def test_keypad_rejects_misrouted_keys():
    pad = calc.Keypad()
    with pytest.raises(ValueError):
        pad.press_number("+")
    with pytest.raises(ValueError):
        pad.press_operation("7")
    with pytest.raises(ValueError):
        pad.press_parenthesis("[")


# --- Console loop ---

def test_repl_prints_results(capsys):
    calc.repl(read=make_reader("3 + 4", "", "10 / 4"))
    out, err = capsys.readouterr()
    assert out.splitlines() == ["7", "2.5"]
    assert "caught EOF" in err


def test_repl_stops_at_salir(capsys):
    calc.repl(read=make_reader("1 + 1", "salir", "2 + 2"))
    out, err = capsys.readouterr()
    assert out.splitlines() == ["2"]
    assert "EOF" not in err


def test_repl_reports_errors_and_keeps_going(capsys):
    calc.repl(read=make_reader("4 / 0", "(1 + 2", "1 2", "2 * 3"))
    out, err = capsys.readouterr()
    assert out.splitlines() == ["6"]
    errors = [line for line in err.splitlines() if line.startswith("error:")]
    assert errors == [
        "error: division by zero",
        "error: expected ')' but reached the end of input",
        "error: unexpected tokens at end of expression: 2",
    ]


def test_repl_simple_mode(capsys):
    calc.repl(calclib.simple_evaluate, read=make_reader("3 * 4", "1 + 2 + 3", "salir"))
    out, err = capsys.readouterr()
    assert out.splitlines() == ["12"]
    assert "error: expected '<number> <operator> <number>'" in err


def test_repl_long_chain(capsys):
    calc.repl(read=make_reader(" + ".join(["1"] * 3000), "salir"))
    assert capsys.readouterr().out.splitlines() == ["3000"]


def test_repl_interrupt(capsys):
    def read(prompt):
        raise KeyboardInterrupt
    calc.repl(read=read)
    assert "interrupted" in capsys.readouterr().err


# --- Command line ---

def test_cli_evaluates_argument():
    result = runner.invoke(calc.app, ["2 * (3 + 4)"])
    assert result.exit_code == 0
    assert result.output.strip() == "14"


@pytest.mark.parametrize("expression, text", [
    ("-5 + 3", "-2"),
    ("--5", "5"),
    ("-(2 * 3)", "-6"),
])
def test_cli_leading_minus_is_an_expression(expression, text):
    result = runner.invoke(calc.app, [expression])
    assert result.exit_code == 0
    assert result.output.strip() == text


def test_cli_usage_names_program():
    result = runner.invoke(calc.app, ["--help"])
    assert result.exit_code == 0
    assert "Usage: calc" in result.output


def test_cli_error_exit_status():
    result = runner.invoke(calc.app, ["4 / 0"])
    assert result.exit_code == 1
    assert "division by zero" in result.output


def test_cli_simple_mode_rejects_full_grammar():
    result = runner.invoke(calc.app, ["--simple", "(1 + 2) * 3"])
    assert result.exit_code == 1


def test_cli_simple_mode():
    result = runner.invoke(calc.app, ["--simple", "9 / 2"])
    assert result.exit_code == 0
    assert "4.5" in result.output


def test_cli_console():
    result = runner.invoke(calc.app, ["--quiet"], input="3 + 4\nsalir\n")
    assert result.exit_code == 0
    assert "7" in result.output
    assert "a simple arithmetic calculator" not in result.output


def test_cli_console_banner():
    result = runner.invoke(calc.app, [], input="")
    assert result.exit_code == 0
    assert "a simple arithmetic calculator" in result.output
