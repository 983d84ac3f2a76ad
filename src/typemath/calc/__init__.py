"""Exact/approximate calculator over formula tokens.

Public API::

    from typemath.calc import evaluate
    result = evaluate(formula.tokens)
    if not result:
        print(result.reason)
"""

from typemath.calc.evaluator import evaluate, evaluate_value, to_token
from typemath.calc.values import EvaluationFailure, MatrixValue, Numeric

__all__ = [
    "EvaluationFailure",
    "MatrixValue",
    "Numeric",
    "evaluate",
    "evaluate_value",
    "to_token",
]
