"""The editable formula tree.

Public API::

    from typemath.tree import Formula, Symbol, Number, make_frac, Matrix, Diagram
"""

from typemath.tree.diagram import (
    Arrow,
    Decoration,
    Diagram,
    LabelPosition,
    StrokeStyle,
    make_diagram,
)
from typemath.tree.formula import (
    Accent,
    BigOperator,
    Formula,
    Number,
    StructKind,
    Structure,
    Symbol,
    Token,
    make_accent,
    make_big_operator,
    make_frac,
    make_index,
    make_infer,
    make_power,
)
from typemath.tree.matrix import Matrix, make_matrix

__all__ = [
    "Accent",
    "Arrow",
    "BigOperator",
    "Decoration",
    "Diagram",
    "Formula",
    "LabelPosition",
    "Matrix",
    "Number",
    "StrokeStyle",
    "StructKind",
    "Structure",
    "Symbol",
    "Token",
    "make_accent",
    "make_big_operator",
    "make_diagram",
    "make_frac",
    "make_index",
    "make_infer",
    "make_matrix",
    "make_power",
]
