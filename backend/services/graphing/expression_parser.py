"""
Restricted single-variable expression evaluator for graphable functions.

Expressions are parsed by a small recursive-descent parser into nested
closures; nothing is passed to ``eval``. Supported: numbers, the variable
``x``, ``+ - * / ** ^``, unary signs, parentheses, the constants ``pi`` and
``e`` and a fixed list of math functions. A ``Math.`` prefix (``Math.sin``,
``Math.PI``) is accepted and ignored.

Evaluation follows IEEE float semantics instead of raising: division by
zero gives +/-inf (or NaN for 0/0), domain errors such as ``sqrt(-1)`` give
NaN and overflow gives +/-inf.
"""
import math
import re
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

MAX_EXPRESSION_LENGTH = 500
MAX_NESTING_DEPTH = 50
PROBE_VALUES = (0.0, 1.0, -1.0, 0.5, 2.0)

Evaluator = Callable[[float], float]


class ExpressionError(ValueError):
    """Raised when an expression cannot be parsed."""
    pass


def _guarded(fn: Callable[[float], float], odd: bool = False) -> Callable[[float], float]:
    def call(value: float) -> float:
        try:
            return float(fn(value))
        except OverflowError:
            # Odd functions overflow with the sign of their argument
            return math.copysign(math.inf, value) if odd else math.inf
        except (ValueError, ZeroDivisionError):
            return math.nan
    return call


def _log(fn: Callable[[float], float]) -> Callable[[float], float]:
    def call(value: float) -> float:
        if value == 0:
            return -math.inf
        if value < 0 or math.isnan(value):
            return math.nan
        if math.isinf(value):
            return math.inf
        return fn(value)
    return call


FUNCTIONS = {
    "sin": _guarded(math.sin),
    "cos": _guarded(math.cos),
    "tan": _guarded(math.tan),
    "asin": _guarded(math.asin),
    "acos": _guarded(math.acos),
    "atan": _guarded(math.atan),
    "sinh": _guarded(math.sinh, odd=True),
    "cosh": _guarded(math.cosh),
    "tanh": _guarded(math.tanh),
    "sqrt": _guarded(math.sqrt),
    "exp": _guarded(math.exp),
    "abs": _guarded(abs),
    "log": _log(math.log),  # Natural log
    "ln": _log(math.log),
    "log10": _log(math.log10),
    "log2": _log(math.log2),
}

CONSTANTS = {
    "pi": math.pi,
    "PI": math.pi,
    "e": math.e,
    "E": math.e,
}

VARIABLE = "x"

_TOKEN_PATTERN = re.compile(
    r"\s*(?:"
    r"(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)?)"
    r"|(?P<op>\*\*|[-+*/^(),])"
    r")"
)


def _tokenize(expr: str) -> List[Tuple[str, str]]:
    tokens = []
    pos = 0
    end = len(expr.rstrip())
    while pos < end:
        match = _TOKEN_PATTERN.match(expr, pos)
        if not match or match.end() == pos:
            raise ExpressionError(f"Unexpected character {expr[pos:pos + 1]!r} at position {pos}")
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    try:
        return a / b
    except OverflowError:
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _power(a: float, b: float) -> float:
    if a < 0 and not math.isinf(b) and not float(b).is_integer():
        return math.nan
    try:
        result = a ** b
    except ZeroDivisionError:
        return math.inf
    except OverflowError:
        if a < 0 and float(b).is_integer() and int(b) % 2 == 1:
            return -math.inf
        return math.inf
    if isinstance(result, complex):
        return math.nan
    return float(result)


def _multiply(a: float, b: float) -> float:
    return a * b


def _add(a: float, b: float) -> float:
    return a + b


def _subtract(a: float, b: float) -> float:
    return a - b


BINARY_OPERATORS = {
    "+": _add,
    "-": _subtract,
    "*": _multiply,
    "/": _divide,
    "**": _power,
    "^": _power,
}


def _binary(op: str, left: Evaluator, right: Evaluator) -> Evaluator:
    apply = BINARY_OPERATORS[op]
    return lambda x: apply(left(x), right(x))


def _constant(value: float) -> Evaluator:
    return lambda x: value


class _Parser:
    """
    Grammar::

        expression := term (('+' | '-') term)*
        term       := unary (('*' | '/') unary)*
        unary      := ('+' | '-') unary | power
        power      := atom (('**' | '^') unary)?
        atom       := NUMBER | 'x' | CONSTANT | FUNCTION '(' expression ')' | '(' expression ')'
    """

    def __init__(self, tokens: Sequence[Tuple[str, str]]):
        self.tokens = tokens
        self.pos = 0
        self.depth = 0

    def parse(self) -> Evaluator:
        if not self.tokens:
            raise ExpressionError("Expression is empty")
        evaluator = self._expression()
        if self.pos < len(self.tokens):
            raise ExpressionError(f"Unexpected token {self.tokens[self.pos][1]!r}")
        return evaluator

    def _peek_op(self) -> Optional[str]:
        if self.pos < len(self.tokens) and self.tokens[self.pos][0] == "op":
            return self.tokens[self.pos][1]
        return None

    def _next(self) -> Tuple[str, str]:
        if self.pos >= len(self.tokens):
            raise ExpressionError("Unexpected end of expression")
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def _expect(self, op: str) -> None:
        kind, value = self._next()
        if kind != "op" or value != op:
            raise ExpressionError(f"Expected {op!r}, found {value!r}")

    def _expression(self) -> Evaluator:
        evaluator = self._term()
        while self._peek_op() in ("+", "-"):
            op = self._next()[1]
            evaluator = _binary(op, evaluator, self._term())
        return evaluator

    def _term(self) -> Evaluator:
        evaluator = self._unary()
        while self._peek_op() in ("*", "/"):
            op = self._next()[1]
            evaluator = _binary(op, evaluator, self._unary())
        return evaluator

    def _unary(self) -> Evaluator:
        op = self._peek_op()
        if op in ("+", "-"):
            self._next()
            operand = self._unary()
            if op == "-":
                return lambda x: -operand(x)
            return operand
        return self._power()

    def _power(self) -> Evaluator:
        base = self._atom()
        op = self._peek_op()
        if op in ("**", "^"):
            self._next()
            # Right associative: 2**3**2 == 2**9
            return _binary(op, base, self._unary())
        return base

    def _nested(self) -> Evaluator:
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            raise ExpressionError("Expression is nested too deeply")
        evaluator = self._expression()
        self._expect(")")
        self.depth -= 1
        return evaluator

    def _atom(self) -> Evaluator:
        kind, value = self._next()

        if kind == "number":
            return _constant(float(value))

        if kind == "name":
            name = value[len("Math."):] if value.startswith("Math.") else value
            if "." in name:
                raise ExpressionError(f"Unknown identifier {value!r}")
            if name == VARIABLE:
                return lambda x: x
            if name in CONSTANTS:
                return _constant(CONSTANTS[name])
            if name in FUNCTIONS:
                fn = FUNCTIONS[name]
                self._expect("(")
                argument = self._nested()
                return lambda x: fn(argument(x))
            raise ExpressionError(f"Unknown identifier {value!r}")

        if value == "(":
            return self._nested()

        raise ExpressionError(f"Unexpected token {value!r}")


def compile_expression(expr: str) -> Evaluator:
    """
    Build a callable ``f(x) -> float`` from a restricted expression.

    Raises:
        ExpressionError: if the expression is empty, too long or not valid
    """
    if not isinstance(expr, str):
        raise ExpressionError(f"Expression must be a string, got {type(expr).__name__}")
    if len(expr) > MAX_EXPRESSION_LENGTH:
        raise ExpressionError(f"Expression longer than {MAX_EXPRESSION_LENGTH} characters")

    root = _Parser(_tokenize(expr)).parse()

    def evaluate(x: float) -> float:
        return root(float(x))

    return evaluate


def validate_function(expr: str) -> bool:
    """
    Check that an expression can be built and evaluated on the probe values.

    NaN is an acceptable result (domain gaps such as sqrt(-1) or 1/0 at 0);
    a parse failure, evaluation error or non-numeric result is not.
    """
    try:
        fn = compile_expression(expr)
        for x in PROBE_VALUES:
            result = fn(x)
            if isinstance(result, bool) or not isinstance(result, (int, float)):
                return False
        return True
    except (ExpressionError, ArithmeticError, TypeError, ValueError, RecursionError):
        return False


def sample_function(
    expr: str,
    domain: Tuple[float, float],
    num_points: int = 200,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sample an expression across ``domain`` for plotting.

    Non-finite values are returned as NaN so the plotted curve breaks at
    asymptotes instead of spiking.
    """
    x_min, x_max = domain
    if not x_min < x_max:
        raise ValueError(f"Invalid domain: ({x_min}, {x_max})")
    if num_points < 2:
        raise ValueError("num_points must be at least 2")

    fn = compile_expression(expr)
    xs = np.linspace(x_min, x_max, num_points)
    ys = np.array([fn(float(x)) for x in xs], dtype=np.float64)
    ys[~np.isfinite(ys)] = np.nan
    return xs, ys
