#!/usr/bin/env python
"""calclib - Stuff used by calc"""

# ---------------------------
#  The Process in a Nutshell
# ---------------------------
#
#             +------------+     +---------+     +------------+
# [input] >>> | tokenize() | >>> | parse() | >>> | evaluate() | >>> [result]
#          |  +------------+  |  +---------+  |  +------------+  |
#          |                  |               |                  |
#        string         list of tokens   expression tree       number
#
# Nothing is shared between calls: every run builds fresh tokens and a
# fresh tree, so the pipeline can be driven from any number of threads.

import logging
import math
import operator
import re

logger = logging.getLogger(__name__)


# ----------
#  Errors
# ----------

class CalcError(ValueError):
    """Base class for everything calc can complain about.

    str() of any of these is a message fit to show the user.
    """


class LexError(CalcError):
    pass


class InvalidNumber(LexError):
    def __init__(self, text, pos=None):
        super().__init__("invalid number: %s" % text)
        self.text = text
        self.pos = pos


class UnexpectedChar(LexError):
    def __init__(self, char, pos=None):
        msg = "unexpected character '%s'" % char
        if pos is not None:
            msg += " at position %d" % pos
        super().__init__(msg)
        self.char = char
        self.pos = pos


class CalcSyntaxError(CalcError):
    pass


class UnexpectedToken(CalcSyntaxError):
    def __init__(self, token):
        super().__init__("unexpected '%s'%s" % (_show(token), _where(token)))
        self.token = token


class UnexpectedEnd(CalcSyntaxError):
    def __init__(self):
        super().__init__("unexpected end of input: expected a number or '('")


class ExpectedToken(CalcSyntaxError):
    def __init__(self, expected, found=None):
        if found is None:
            msg = "expected '%s' but reached the end of input" % expected.name
        else:
            msg = "expected '%s' but found '%s'%s" % (expected.name, _show(found), _where(found))
        super().__init__(msg)
        self.expected = expected
        self.found = found


class TrailingTokens(CalcSyntaxError):
    def __init__(self, tokens):
        tokens = list(tokens)
        super().__init__("unexpected tokens at end of expression: %s"
                         % ' '.join(_show(t) for t in tokens))
        self.tokens = tokens


class EvalError(CalcError):
    pass


class DivisionByZero(EvalError, ZeroDivisionError):
    def __init__(self):
        super().__init__("division by zero")


class MalformedAst(EvalError):
    def __init__(self, node):
        super().__init__("malformed expression tree: %r" % (node,))
        self.node = node


def _show(token):
    if isinstance(token, Number):
        return format_result(token)
    return str(token)


def _where(token):
    pos = getattr(token, 'pos', None)
    return '' if pos is None else " at position %d" % pos


# ----------
#  Tokens
# ----------

class Number(float):
    def __new__(cls, value, pos=None):
        self = float.__new__(cls, value)
        self.pos = pos
        return self


class Operator:
    """The base class for operators.

    Do not instantiate this class directly; use create_operator_class().
    Two operators are equal when they are of the same kind, wherever
    they appeared in the input.
    """
    name = None
    nargs = None
    func = None

    def __init__(self, pos=None):
        if self.__class__ is Operator:
            raise NotImplementedError("Operator class is abstract; it cannot be called directly")
        self.pos = pos

    def __call__(self, *args):
        """Call the operator with the specified arguments."""
        return self.__class__.func(*args)

    def __eq__(self, other):
        return type(self) is type(other)

    def __hash__(self):
        return hash(self.__class__)

    def __repr__(self):
        return self.__class__.__name__

    def __str__(self):
        return self.__class__.name


def create_operator_class(clsname, name_, nargs_, func_):
    """Factory function for creating a new operator class."""
    class newop(Operator):
        name = name_
        nargs = nargs_
        func = staticmethod(func_) if func_ is not None else None
    newop.__name__ = newop.__qualname__ = clsname
    return newop


def divide(left, right):
    """True division that refuses a zero divisor.

    Only an exact zero (either sign) counts; there is no tolerance.
    """
    if right == 0.0:
        raise DivisionByZero()
    return left / right


Addition = create_operator_class('Addition', '+', 2, operator.add)
Subtraction = create_operator_class('Subtraction', '-', 2, operator.sub)
Multiplication = create_operator_class('Multiplication', '*', 2, operator.mul)
Division = create_operator_class('Division', '/', 2, divide)
Negative = create_operator_class('Negative', '-', 1, operator.neg)

binary = {
    '+': Addition,
    '-': Subtraction,
    '*': Multiplication,
    '/': Division,
}

unary = {
    '-': Negative,
}

# Parentheses aren't operators, but sharing the class keeps tokens uniform
LeftParenthesis = create_operator_class('LeftParenthesis', '(', 0, None)
RightParenthesis = create_operator_class('RightParenthesis', ')', 0, None)


# ----------
#  Lexer
# ----------

token_re = re.compile(r"""
    (?:
        (?P<number> [0-9.]+)  # run of digits and decimal points
      | (?P<symbol> \S)       # anything that didn't match the above
    )
    \s*
""", re.VERBOSE)

# Symbols that always mean the same thing
simple_tokens = {
    '+': Addition,
    '*': Multiplication,
    '/': Division,
    '(': LeftParenthesis,
    ')': RightParenthesis,
}


def parse_number(text, pos=None):
    """Convert a numeral to a Number, rejecting junk like '1.2.3'."""
    try:
        value = float(text)
    except ValueError:
        raise InvalidNumber(text, pos) from None
    if not math.isfinite(value):
        raise InvalidNumber(text, pos)
    return Number(value, pos)


def tokenize(s):
    """Convert a string into a list of tokens."""
    pos = len(s) - len(s.lstrip())
    end = len(s.rstrip())
    tokens = []
    # A '-' here is a sign, not a subtraction
    last_token_was_operator = True

    while pos < end:
        m = token_re.match(s, pos)

        # Numbers
        if m.group('number') is not None:
            tokens.append(parse_number(m.group('number'), pos))
            last_token_was_operator = False

        # Minus is the only symbol whose meaning depends on its neighbours
        elif m.group('symbol') == '-':
            if last_token_was_operator:
                tokens.append(Negative(pos))
            else:
                tokens.append(Subtraction(pos))
            last_token_was_operator = True

        elif m.group('symbol') in simple_tokens:
            token = simple_tokens[m.group('symbol')](pos)
            tokens.append(token)
            last_token_was_operator = not isinstance(token, RightParenthesis)

        else:
            raise UnexpectedChar(m.group('symbol'), pos)

        pos = m.end()
    return tokens


# ----------
#  Parser
# ----------

class Expr:
    """Base class for expression tree nodes."""
    fields = ()

    def __eq__(self, other):
        return (type(self) is type(other)
                and all(getattr(self, f) == getattr(other, f) for f in self.fields))

    def __repr__(self):
        return '%s(%s)' % (self.__class__.__name__,
                           ', '.join(repr(getattr(self, f)) for f in self.fields))


class Literal(Expr):
    fields = ('value',)

    def __init__(self, value):
        self.value = value


class UnaryOp(Expr):
    fields = ('op', 'operand')

    def __init__(self, op, operand):
        self.op = op
        self.operand = operand


class BinaryOp(Expr):
    fields = ('op', 'left', 'right')

    def __init__(self, op, left, right):
        self.op = op
        self.left = left
        self.right = right


class Parser:
    """Recursive descent parser over a list of tokens.

    Grammar:

        expression := term (('+' | '-') term)*
        term       := factor (('*' | '/') factor)*
        factor     := number | '-' factor | '(' expression ')'

    The read position only ever moves forward, and a parser is good
    for a single call to parse().
    """

    def __init__(self, tokens):
        self.tokens = list(tokens)
        self.pos = 0

    def peek(self):
        """Return the next token without consuming it, or None at the end."""
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def next(self):
        token = self.peek()
        if token is not None:
            self.pos += 1
        return token

    def expect(self, cls):
        """Consume the next token, which must be an instance of cls."""
        token = self.next()
        if not isinstance(token, cls):
            raise ExpectedToken(cls, token)
        return token

    def parse(self):
        try:
            tree = self.parse_expression()
        except RecursionError:
            raise CalcSyntaxError("expression is nested too deeply") from None
        if self.pos < len(self.tokens):
            raise TrailingTokens(self.tokens[self.pos:])
        return tree

    def parse_expression(self):
        tree = self.parse_term()
        while isinstance(self.peek(), (Addition, Subtraction)):
            op = self.next()
            # The tree built so far becomes the left operand: 1-2-3 is (1-2)-3
            tree = BinaryOp(op, tree, self.parse_term())
        return tree

    def parse_term(self):
        tree = self.parse_factor()
        while isinstance(self.peek(), (Multiplication, Division)):
            op = self.next()
            tree = BinaryOp(op, tree, self.parse_factor())
        return tree

    def parse_factor(self):
        token = self.next()
        if token is None:
            raise UnexpectedEnd()
        elif isinstance(token, Number):
            return Literal(token)
        elif isinstance(token, Negative):
            return UnaryOp(token, self.parse_factor())
        elif isinstance(token, LeftParenthesis):
            tree = self.parse_expression()
            self.expect(RightParenthesis)
            return tree
        else:
            raise UnexpectedToken(token)


def parse(tokens):
    """Build an expression tree from a list of tokens."""
    return Parser(tokens).parse()


# -------------
#  Evaluator
# -------------

_binary_classes = tuple(binary.values())


def evaluate(node):
    """Evaluate an expression tree, operands before operators.

    The walk keeps its own stacks rather than recursing, so a long flat
    chain like 1 + 1 + ... + 1 is no deeper to evaluate than to parse.
    """
    # Values computed so far, as in eval_rpn
    values = []
    # Nodes still to visit, each flagged once its operands are on `values`
    pending = [(node, False)]

    while pending:
        node, ready = pending.pop()

        if isinstance(node, Literal):
            values.append(float(node.value))

        elif isinstance(node, UnaryOp):
            if not isinstance(node.op, Negative):
                raise MalformedAst(node)
            if ready:
                values[-1] = node.op(values[-1])
            else:
                pending.append((node, True))
                pending.append((node.operand, False))

        elif isinstance(node, BinaryOp):
            if not isinstance(node.op, _binary_classes):
                raise MalformedAst(node)
            if ready:
                right = values.pop()
                values[-1] = node.op(values[-1], right)
            else:
                # Pushed right first so the left operand is evaluated first
                pending.append((node, True))
                pending.append((node.right, False))
                pending.append((node.left, False))

        else:
            raise MalformedAst(node)

    return values[0]


# -----------------
#  Entry points
# -----------------

def evaluate_expression(s):
    """Run the whole pipeline over s and return a float.

    Raises a CalcError subclass for anything wrong with the input; the
    first problem found stops the pipeline.
    """
    tokens = tokenize(s)
    logger.debug("tokens: %r", tokens)
    tree = parse(tokens)
    logger.debug("parsed into %s", tree.__class__.__name__)
    return evaluate(tree)


simple_number_re = re.compile(r"-?[0-9.]+\Z")


def simple_evaluate(line):
    """Evaluate exactly '<number> <operator> <number>'.

    This is the cut-down console mode: no parentheses, no chains of
    operators, but the numbers may carry their own sign.
    """
    fields = line.split()
    if len(fields) != 3:
        raise CalcSyntaxError("expected '<number> <operator> <number>', got %d field(s)"
                              % len(fields))
    left, symbol, right = fields
    if symbol not in binary:
        raise CalcSyntaxError("unknown operator: %s" % symbol)
    for text in (left, right):
        if not simple_number_re.match(text):
            raise InvalidNumber(text)
    tree = BinaryOp(binary[symbol](),
                    Literal(parse_number(left)),
                    Literal(parse_number(right)))
    return evaluate(tree)


def format_result(value):
    """Render a result for display: 7 rather than 7.0, 3.75 as is."""
    text = repr(float(value))
    if text.endswith('.0'):
        text = text[:-2]
    return text
