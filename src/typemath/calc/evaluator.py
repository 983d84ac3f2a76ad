"""Operator-precedence evaluator over formula tokens.

Tokens are first turned into a work list: numbers, matrices, fractions
and bracketed formulas become values, everything else stays a token.
The work list is then reduced in place by precedence climbing: each
reduction splices the consumed span into one value and scanning resumes
at the same index.

Priorities (higher binds tighter):

=====================  ======  ========
operator               fixity  priority
=====================  ======  ========
``mod``                infix   0
``+`` ``-``            infix   1
``*`` ``/`` ``·`` ...  infix   2
``+`` ``-`` ``sin`` .  prefix  3
``^``                  infix   4
``!``                  suffix  5
``(`` ``[`` ``{``      prefix  inf
=====================  ======  ========
"""

from __future__ import annotations

import decimal
import logging
import math
from fractions import Fraction
from typing import Callable, Sequence, Union

from typemath.calc import values
from typemath.calc.values import (
    FUNCTIONS,
    EvaluationFailure,
    MatrixValue,
    Numeric,
    Result,
    Value,
    is_value,
)
from typemath.config import DEFAULT_MAX_DEPTH
from typemath.logging.events import (
    EVAL_TOO_DEEP as TOO_DEEP,
    EVAL_UNREDUCED as UNREDUCED,
    EventType,
    emit_info,
    emit_warning,
)
from typemath.tree import (
    Diagram,
    Formula,
    Matrix,
    Number,
    StructKind,
    Structure,
    Symbol,
    Token,
    make_frac,
)

logger = logging.getLogger(__name__)

_INFIX: dict[str, int] = {
    "mod": 0,
    "+": 1,
    "-": 1,
    "*": 2,
    "/": 2,
    "·": 2,
    "∙": 2,
    "×": 2,
    "÷": 2,
    "^": 4,
}
_PREFIX: dict[str, float] = {
    "+": 3,
    "-": 3,
    **{name: 3 for name in FUNCTIONS},
    "(": math.inf,
    "[": math.inf,
    "{": math.inf,
}
_CLOSERS = {"(": ")", "[": "]", "{": "}"}
_FACTORIAL_PRIORITY = 5
_IMPLICIT_PRIORITY = 2

_BINARY: dict[str, Callable[[Value, Value], Result]] = {
    "mod": values.modulo,
    "+": values.add,
    "-": values.sub,
    "*": values.mul,
    "·": values.mul,
    "∙": values.mul,
    "×": values.mul,
    "/": values.div,
    "÷": values.div,
    "^": values.power,
}

_BRACKET_FUNCTIONS: dict[tuple[str, str], Callable[[Value], Result]] = {
    ("√", ""): values.sqrt,
    ("|", "|"): values.absolute,
    ("‖", "‖"): values.absolute,
    ("⌊", "⌋"): values.floor,
    ("⌈", "⌉"): values.ceil,
}

_Item = Union[Numeric, MatrixValue, Token]


class _Abort(Exception):
    """Unwinds the reduction as soon as any step fails."""

    def __init__(self, failure: EvaluationFailure) -> None:
        super().__init__(failure.reason)
        self.failure = failure


def evaluate_value(tokens: Sequence[Token], *, max_depth: int = DEFAULT_MAX_DEPTH) -> Result:
    """Reduce *tokens* to a single value.

    Returns:
        A ``Numeric`` or ``MatrixValue``, or an ``EvaluationFailure``
        explaining why no value could be produced.  Never raises for
        bad input.
    """
    try:
        return _Evaluator(max_depth).sequence(tokens, 0)
    except _Abort as exc:
        return exc.failure


def evaluate(tokens: Sequence[Token], *, max_depth: int = DEFAULT_MAX_DEPTH) -> Token | EvaluationFailure:
    """Evaluate *tokens* and convert the result back into a formula token.

    The tokens themselves are left untouched; on success the caller
    replaces them with the returned token.
    """
    result = evaluate_value(tokens, max_depth=max_depth)
    if not result:
        logger.debug("evaluation failed: %s", result.reason)
        emit_warning(
            EventType.evaluation_failed,
            result.reason,
            context={"tokens": len(tokens)},
            error_code=result.code,
        )
        return result
    emit_info(
        EventType.evaluation_completed,
        f"Evaluated {len(tokens)} tokens",
        context={"tokens": len(tokens), "approx": _is_approx(result)},
    )
    return to_token(result)


def _is_approx(v: Value) -> bool:
    if isinstance(v, Numeric):
        return v.approx
    return any(_is_approx(c) for c in v.cells)


# ---------------------------------------------------------------------------
# Result materialization
# ---------------------------------------------------------------------------


_SIGNIFICANT_DIGITS = 17


def _format_approx(q: Fraction) -> str:
    """Positional decimal text for an approximate value; always holds a point."""
    with decimal.localcontext() as ctx:
        ctx.prec = _SIGNIFICANT_DIGITS
        ctx.Emax = decimal.MAX_EMAX
        ctx.Emin = decimal.MIN_EMIN
        try:
            x = float(q)
        except OverflowError:
            x = None
        if x is not None and (x != 0 or q == 0):
            d = decimal.Decimal(repr(x))
        else:
            d = decimal.Decimal(q.numerator) / q.denominator
        text = format(d.normalize(), "f")
    if "." not in text:
        text += ".0"
    return text


def to_token(v: Value) -> Token:
    """Convert a value into the token that displays it.

    Exact integers become a ``Number``, exact fractions a fraction
    structure, approximate values a decimal ``Number`` and matrices a
    parenthesised matrix of converted cells.
    """
    if isinstance(v, MatrixValue):
        m = Matrix(v.rows, v.cols)
        for i, cell in enumerate(v.cells):
            m.set_slot(i, Formula([to_token(cell)]))
        return Formula([m], "(", ")")
    if v.approx:
        return Number(_format_approx(v.value))
    if v.is_integer:
        return Number(str(v.value.numerator))
    return make_frac([Number(str(v.value.numerator))], [Number(str(v.value.denominator))])


# ---------------------------------------------------------------------------
# Reduction
# ---------------------------------------------------------------------------


def _operator(item: _Item) -> str | None:
    if isinstance(item, Symbol) and not item.variable:
        return item.text
    return None


def _require(item: _Item, context: str) -> Value:
    if is_value(item):
        return item
    raise _Abort(EvaluationFailure(f"{context}: {item!r} has no value", values.TYPE_MISMATCH))


def _check(result: Result) -> Value:
    if not result:
        raise _Abort(result)
    return result


class _Evaluator:
    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth

    def _guard(self, depth: int) -> None:
        if depth > self.max_depth:
            raise _Abort(EvaluationFailure(f"expression nests deeper than {self.max_depth}", TOO_DEEP))

    # -- leaves --------------------------------------------------------

    def sequence(self, tokens: Sequence[Token], depth: int) -> Value:
        self._guard(depth)
        if not tokens:
            raise _Abort(EvaluationFailure("nothing to evaluate", UNREDUCED))
        q: list[_Item] = [self.leaf(t, depth) for t in tokens]
        self.reduce(q, 0, 0, depth)
        if len(q) != 1:
            raise _Abort(EvaluationFailure(f"could not reduce {q!r}", UNREDUCED))
        return _require(q[0], "result")

    def leaf(self, t: Token, depth: int) -> _Item:
        match t:
            case Number(text=text):
                return Numeric.from_text(text)
            case Diagram():
                raise _Abort(EvaluationFailure("a diagram has no value", values.TYPE_MISMATCH))
            case Matrix():
                cells = [self.sequence(f.tokens, depth + 1) for f in t.cells]
                return MatrixValue(t.rows, t.cols, cells)
            case Structure(kind=StructKind.frac):
                num = self.sequence(t.slot(0).tokens, depth + 1)
                den = self.sequence(t.slot(1).tokens, depth + 1)
                return _check(values.div(num, den))
            case Formula():
                inner = self.sequence(t.tokens, depth + 1)
                func = _BRACKET_FUNCTIONS.get((t.prefix, t.suffix))
                return _check(func(inner)) if func is not None else inner
            case _:
                return t

    # -- precedence climbing -------------------------------------------

    def reduce(self, q: list[_Item], index: int, border: float, depth: int) -> None:
        """Reduce ``q[index:]`` in place using operators of priority >= *border*."""
        self._guard(depth)
        while len(q) - index > 1 and self.step(q, index, border, depth):
            logger.debug("reduced at %d (border %s): %r", index, border, q)

    def step(self, q: list[_Item], index: int, border: float, depth: int) -> bool:
        head = q[index]
        op = _operator(head)
        if op is not None and _PREFIX.get(op, -1) >= border:
            return self.prefix(q, index, op, depth)
        if not is_value(head):
            return False

        nxt = q[index + 1]
        op = _operator(nxt)
        if op is not None:
            p = _INFIX.get(op)
            if p is not None and p >= border:
                if index + 2 >= len(q):
                    raise _Abort(EvaluationFailure(f"missing operand after {op!r}", UNREDUCED))
                # ``^`` is right-associative
                self.reduce(q, index + 2, p if op == "^" else p + 1, depth + 1)
                rhs = _require(q[index + 2], f"right operand of {op!r}")
                q[index:index + 3] = [_check(_BINARY[op](head, rhs))]
                return True
            if op == "!" and _FACTORIAL_PRIORITY >= border:
                q[index:index + 2] = [_check(values.factorial(head))]
                return True
            if op in _PREFIX and op not in _INFIX and _IMPLICIT_PRIORITY >= border:
                return self.implicit(q, index, depth)
            return False

        if isinstance(nxt, Structure) and nxt.kind == StructKind.power:
            if _INFIX["^"] < border:
                return False
            exponent = self.sequence(nxt.slot(0).tokens, depth + 1)
            q[index:index + 2] = [_check(values.power(head, exponent))]
            return True

        if is_value(nxt) and _IMPLICIT_PRIORITY >= border:
            return self.implicit(q, index, depth)
        return False

    def prefix(self, q: list[_Item], index: int, op: str, depth: int) -> bool:
        if op in _CLOSERS:
            self.reduce(q, index + 1, 0, depth + 1)
            inner = _require(q[index + 1], f"content of {op!r}")
            closer = _operator(q[index + 2]) if index + 2 < len(q) else None
            if closer != _CLOSERS[op]:
                raise _Abort(EvaluationFailure(f"unbalanced {op!r}", UNREDUCED))
            q[index:index + 3] = [inner]
            return True

        self.reduce(q, index + 1, _PREFIX[op] + 1, depth + 1)
        operand = _require(q[index + 1], f"operand of {op!r}")
        if op == "-":
            result = values.negate(operand)
        elif op == "+":
            result = operand
        else:
            result = values.apply_function(op, operand)
        q[index:index + 2] = [_check(result)]
        return True

    def implicit(self, q: list[_Item], index: int, depth: int) -> bool:
        """Adjacent operands multiply."""
        self.reduce(q, index + 1, _IMPLICIT_PRIORITY + 1, depth + 1)
        rhs = _require(q[index + 1], "implicit product")
        q[index:index + 2] = [_check(values.mul(q[index], rhs))]
        return True
