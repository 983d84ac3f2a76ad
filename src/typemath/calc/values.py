"""Value domain of the calculator: rationals, matrices and failures.

Every operation returns either a value or an ``EvaluationFailure``;
none of them raise for bad operands.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Callable, Union

from typemath.logging.events import (
    EVAL_DIMENSION_MISMATCH as DIMENSION_MISMATCH,
    EVAL_DOMAIN_ERROR as DOMAIN_ERROR,
    EVAL_FAILED,
    EVAL_TYPE_MISMATCH as TYPE_MISMATCH,
)


class EvaluationFailure:
    """A "no value" result.  Falsy, so ``if not result`` reads naturally.

    Attributes:
        reason: Human-readable explanation.
        code: Short machine-readable category, used as the event error code.
    """

    def __init__(self, reason: str, code: str = EVAL_FAILED) -> None:
        self.reason = reason
        self.code = code

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"EvaluationFailure({self.reason!r})"


class Numeric:
    """A rational number, flagged ``approx`` once any inexact step touched it."""

    def __init__(self, value: Fraction | int, approx: bool = False) -> None:
        self.value = Fraction(value)
        self.approx = approx

    @classmethod
    def from_text(cls, text: str) -> Numeric:
        """Read a digit string; a decimal point makes the result approximate."""
        return cls(Fraction(text), "." in text)

    @classmethod
    def from_float(cls, x: float) -> Numeric | EvaluationFailure:
        if isinstance(x, complex) or math.isnan(x) or math.isinf(x):
            return EvaluationFailure(f"result {x!r} is not a finite real number", DOMAIN_ERROR)
        return cls(Fraction(x), True)

    @property
    def is_integer(self) -> bool:
        return self.value.denominator == 1

    def __float__(self) -> float:
        return float(self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Numeric):
            return NotImplemented
        return self.value == other.value and self.approx == other.approx

    def __repr__(self) -> str:
        return f"Numeric({self.value}{', approx' if self.approx else ''})"


class MatrixValue:
    """A ``rows x cols`` grid of values stored row-major."""

    def __init__(self, rows: int, cols: int, cells: list[Value]) -> None:
        if len(cells) != rows * cols:
            raise ValueError(f"{rows}x{cols} matrix needs {rows * cols} cells, got {len(cells)}")
        self.rows = rows
        self.cols = cols
        self.cells = cells

    def cell(self, row: int, col: int) -> Value:
        return self.cells[row * self.cols + col]

    @classmethod
    def identity(cls, n: int) -> MatrixValue:
        return cls(n, n, [Numeric(1 if i == j else 0) for i in range(n) for j in range(n)])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MatrixValue):
            return NotImplemented
        return (self.rows, self.cols, self.cells) == (other.rows, other.cols, other.cells)

    def __repr__(self) -> str:
        return f"MatrixValue({self.rows}x{self.cols}, {self.cells!r})"


Value = Union[Numeric, MatrixValue]
Result = Union[Numeric, MatrixValue, EvaluationFailure]

# Ceilings on exact big-integer work; larger requests fail instead of running unbounded.
MAX_EXACT_BITS = 1 << 20
MAX_MATRIX_EXPONENT = 1024


def is_value(x: object) -> bool:
    return isinstance(x, (Numeric, MatrixValue))


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------


def _elementwise(a: MatrixValue, f: Callable[[Value], Result]) -> Result:
    cells: list[Value] = []
    for x in a.cells:
        r = f(x)
        if not r:
            return r
        cells.append(r)
    return MatrixValue(a.rows, a.cols, cells)


def _additive(x: Value, y: Value, sign: int) -> Result:
    if isinstance(x, Numeric) and isinstance(y, Numeric):
        return Numeric(x.value + sign * y.value, x.approx or y.approx)
    if isinstance(x, MatrixValue) and isinstance(y, MatrixValue):
        if (x.rows, x.cols) != (y.rows, y.cols):
            return EvaluationFailure(
                f"cannot add {x.rows}x{x.cols} and {y.rows}x{y.cols} matrices", DIMENSION_MISMATCH
            )
        cells: list[Value] = []
        for a, b in zip(x.cells, y.cells):
            r = _additive(a, b, sign)
            if not r:
                return r
            cells.append(r)
        return MatrixValue(x.rows, x.cols, cells)
    return EvaluationFailure("cannot add a number and a matrix", TYPE_MISMATCH)


def add(x: Value, y: Value) -> Result:
    return _additive(x, y, 1)


def sub(x: Value, y: Value) -> Result:
    return _additive(x, y, -1)


def negate(x: Value) -> Result:
    if isinstance(x, Numeric):
        return Numeric(-x.value, x.approx)
    return _elementwise(x, lambda c: sub(Numeric(0), c))


def mul(x: Value, y: Value) -> Result:
    if isinstance(x, Numeric) and isinstance(y, Numeric):
        return Numeric(x.value * y.value, x.approx or y.approx)
    if isinstance(x, Numeric):
        return _elementwise(y, lambda c: mul(x, c))
    if isinstance(y, Numeric):
        return _elementwise(x, lambda c: mul(c, y))
    if x.cols != y.rows:
        return EvaluationFailure(
            f"cannot multiply {x.rows}x{x.cols} by {y.rows}x{y.cols}", DIMENSION_MISMATCH
        )
    cells: list[Value] = []
    for i in range(x.rows):
        for j in range(y.cols):
            acc: Result = mul(x.cell(i, 0), y.cell(0, j))
            for k in range(1, x.cols):
                if not acc:
                    return acc
                term = mul(x.cell(i, k), y.cell(k, j))
                if not term:
                    return term
                acc = add(acc, term)
            if not acc:
                return acc
            cells.append(acc)
    return MatrixValue(x.rows, y.cols, cells)


def div(x: Value, y: Value) -> Result:
    if not (isinstance(x, Numeric) and isinstance(y, Numeric)):
        return EvaluationFailure("division is only defined for numbers", TYPE_MISMATCH)
    if y.value == 0:
        return EvaluationFailure("division by zero", DOMAIN_ERROR)
    return Numeric(x.value / y.value, x.approx or y.approx)


def modulo(x: Value, y: Value) -> Result:
    if not (isinstance(x, Numeric) and isinstance(y, Numeric)):
        return EvaluationFailure("mod is only defined for numbers", TYPE_MISMATCH)
    if x.approx or y.approx or not (x.is_integer and y.is_integer):
        return EvaluationFailure("mod needs exact integers", DOMAIN_ERROR)
    if y.value == 0:
        return EvaluationFailure("mod by zero", DOMAIN_ERROR)
    return Numeric(x.value % y.value)


def _bits(q: Fraction) -> int:
    """Roughly log2 of the larger of numerator and denominator."""
    return max(q.numerator.bit_length(), q.denominator.bit_length()) - 1


def power(x: Value, y: Value) -> Result:
    if not isinstance(y, Numeric):
        return EvaluationFailure("exponent must be a number", TYPE_MISMATCH)

    if isinstance(x, MatrixValue):
        if y.approx or not y.is_integer or y.value < 0:
            return EvaluationFailure("matrix exponent must be an exact nonnegative integer", DOMAIN_ERROR)
        if x.rows != x.cols:
            return EvaluationFailure(f"cannot raise a {x.rows}x{x.cols} matrix to a power", DIMENSION_MISMATCH)
        if y.value > MAX_MATRIX_EXPONENT:
            return EvaluationFailure(f"matrix exponent above {MAX_MATRIX_EXPONENT}", DOMAIN_ERROR)
        r: Result = MatrixValue.identity(x.rows)
        for _ in range(int(y.value)):
            r = mul(r, x)
            if not r:
                return r
        return r

    if not x.approx and not y.approx and y.is_integer:
        if x.value == 0 and y.value < 0:
            return EvaluationFailure("division by zero", DOMAIN_ERROR)
        if _bits(x.value) * abs(y.value) > MAX_EXACT_BITS:
            return EvaluationFailure(f"exact power exceeds {MAX_EXACT_BITS} bits", DOMAIN_ERROR)
        return Numeric(x.value ** int(y.value))

    try:
        r = float(x) ** float(y)
    except (OverflowError, ZeroDivisionError) as exc:
        return EvaluationFailure(f"power failed: {exc}", DOMAIN_ERROR)
    return Numeric.from_float(r)


def factorial(x: Value) -> Result:
    if not isinstance(x, Numeric) or x.approx or not x.is_integer or x.value < 0:
        return EvaluationFailure("factorial needs an exact nonnegative integer", DOMAIN_ERROR)
    n = int(x.value)
    if n > 1 and math.lgamma(n + 1) / math.log(2) > MAX_EXACT_BITS:
        return EvaluationFailure(f"{n}! exceeds {MAX_EXACT_BITS} bits", DOMAIN_ERROR)
    return Numeric(math.factorial(n))


# ---------------------------------------------------------------------------
# Bracket functions
# ---------------------------------------------------------------------------


def sqrt(x: Value) -> Result:
    if not isinstance(x, Numeric):
        return EvaluationFailure("square root of a matrix", TYPE_MISMATCH)
    if x.value < 0:
        return EvaluationFailure("square root of a negative number", DOMAIN_ERROR)
    try:
        root = math.sqrt(float(x))
    except OverflowError as exc:
        return EvaluationFailure(f"square root failed: {exc}", DOMAIN_ERROR)
    return Numeric.from_float(root)


def absolute(x: Value) -> Result:
    if not isinstance(x, Numeric):
        return EvaluationFailure("absolute value of a matrix", TYPE_MISMATCH)
    return Numeric(abs(x.value), x.approx)


def floor(x: Value) -> Result:
    if not isinstance(x, Numeric):
        return EvaluationFailure("floor of a matrix", TYPE_MISMATCH)
    return Numeric(math.floor(x.value), x.approx)


def ceil(x: Value) -> Result:
    if not isinstance(x, Numeric):
        return EvaluationFailure("ceiling of a matrix", TYPE_MISMATCH)
    return Numeric(math.ceil(x.value), x.approx)


# ---------------------------------------------------------------------------
# Elementary functions (always approximate)
# ---------------------------------------------------------------------------

FUNCTIONS: dict[str, Callable[[float], float]] = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "sec": lambda x: 1 / math.cos(x),
    "csc": lambda x: 1 / math.sin(x),
    "cot": lambda x: 1 / math.tan(x),
    "sinh": math.sinh,
    "cosh": math.cosh,
    "tanh": math.tanh,
    "coth": lambda x: 1 / math.tanh(x),
    "arcsin": math.asin,
    "arccos": math.acos,
    "arctan": math.atan,
    "exp": math.exp,
    "ln": math.log,
    "log": math.log,
    "lg": math.log10,
}


def apply_function(name: str, x: Value) -> Result:
    if not isinstance(x, Numeric):
        return EvaluationFailure(f"{name} of a matrix", TYPE_MISMATCH)
    try:
        return Numeric.from_float(FUNCTIONS[name](float(x)))
    except (ValueError, ZeroDivisionError, OverflowError) as exc:
        return EvaluationFailure(f"{name} failed: {exc}", DOMAIN_ERROR)
