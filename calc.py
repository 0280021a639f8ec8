#!/usr/bin/env python
"""The main calculator command-line interface"""

BANNER = """
                     calc - a simple arithmetic calculator

           numbers, + - * /, unary minus and parentheses are understood
                        type 'salir' or press Ctrl-D to leave
"""

import logging
import sys
from typing import Optional

import typer

import calclib

logger = logging.getLogger(__name__)

PROMPT = 'calc> '
EXIT_WORDS = ('salir', 'exit', 'quit')


def stderr(*args):
    print(*args, file=sys.stderr)


class Keypad:
    """The state behind the calculator's buttons.

    Key presses build up `expression`; '=' evaluates it, puts either the
    number or an error message in `result` and starts a fresh expression.
    """
    DIGITS = '0123456789.'
    OPERATIONS = '+-*/'
    PARENTHESES = '()'

    def __init__(self):
        self.expression = ''
        self.result = ''

    def press_number(self, digit):
        if digit not in self.DIGITS:
            raise ValueError("not a digit key: %r" % digit)
        self.expression += digit

    def press_operation(self, op):
        if op not in self.OPERATIONS:
            raise ValueError("not an operation key: %r" % op)
        self.expression += ' %s ' % op

    def press_parenthesis(self, paren):
        if paren not in self.PARENTHESES:
            raise ValueError("not a parenthesis key: %r" % paren)
        self.expression += paren

    def press_equals(self):
        try:
            value = calclib.evaluate_expression(self.expression)
        except calclib.CalcError as ex:
            logger.debug("could not evaluate %r: %s", self.expression, ex)
            self.result = 'Error: %s' % ex
        else:
            self.result = calclib.format_result(value)
        self.expression = ''
        return self.result

    def press_clear(self):
        self.expression = ''
        self.result = ''

    def press(self, key):
        """Dispatch a key by its label, as drawn on the button."""
        if len(key) == 1 and key in self.DIGITS:
            self.press_number(key)
        elif len(key) == 1 and key in self.OPERATIONS:
            self.press_operation(key)
        elif len(key) == 1 and key in self.PARENTHESES:
            self.press_parenthesis(key)
        elif key == '=':
            self.press_equals()
        elif key == 'C':
            self.press_clear()
        else:
            raise ValueError("unknown key: %r" % key)


def repl(evaluate=calclib.evaluate_expression, read=input):
    """Read lines and print their values until EOF or an exit word."""
    try:
        while True:
            try:
                line = read(PROMPT).strip()
                if line in EXIT_WORDS:
                    break
                if line:
                    print(calclib.format_result(evaluate(line)))
            except calclib.CalcError as ex:
                stderr('error:', ex)
    except EOFError:
        stderr('\ncaught EOF')
    except KeyboardInterrupt:
        stderr('\ninterrupted')


app = typer.Typer(
    name="calc",
    help="A simple arithmetic calculator",
    add_completion=False,
)


@app.command(
    "calc",
    # Lets an expression such as '-5 + 3' through instead of reading it as an option
    context_settings={"ignore_unknown_options": True},
)
def main(
    expression: Optional[str] = typer.Argument(None, help="Expression to evaluate; omit it to start the console"),
    simple: bool = typer.Option(False, "--simple", help="Only accept '<number> <operator> <number>'"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Don't print the banner"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log tokens and trees to stderr"),
) -> None:
    """Evaluate EXPRESSION, or read expressions one line at a time."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )
    evaluate = calclib.simple_evaluate if simple else calclib.evaluate_expression

    if expression is not None:
        try:
            print(calclib.format_result(evaluate(expression)))
        except calclib.CalcError as ex:
            stderr('error:', ex)
            raise typer.Exit(1)
        return

    if not quiet:
        stderr(BANNER)
    repl(evaluate)


if __name__ == '__main__':
    app()
