"""Markup transcoding in both directions.

Public API::

    from typemath.markup import transcribe, parse_markup
    text = transcribe(formula, proof=False)
    ast = parse_markup(text)
"""

from typemath.markup.emitter import transcribe
from typemath.markup.nodes import MarkupNode, NodeKind
from typemath.markup.reader import MarkupReader, parse_markup

__all__ = [
    "MarkupNode",
    "MarkupReader",
    "NodeKind",
    "parse_markup",
    "transcribe",
]
