"""Generic syntax tree produced by the markup reader."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class NodeKind(str, Enum):
    sequence = "sequence"
    environment = "environment"
    command = "command"
    symbol = "symbol"
    number = "number"


class MarkupNode(BaseModel):
    """One node of the markup AST.

    ``children`` is ``None`` for leaves.  Command arguments that were not
    supplied (an absent optional argument, or a mandatory one cut off by
    the end of input) are stored as ``None`` entries so that argument
    positions stay stable.
    """

    kind: NodeKind
    value: str = ""
    children: list[MarkupNode | None] | None = None

    def arg(self, i: int) -> MarkupNode | None:
        if not self.children or i >= len(self.children):
            return None
        return self.children[i]


MarkupNode.model_rebuild()


def sequence(children: list[MarkupNode | None]) -> MarkupNode:
    return MarkupNode(kind=NodeKind.sequence, children=children)


def symbol(value: str) -> MarkupNode:
    return MarkupNode(kind=NodeKind.symbol, value=value)


def number(value: str) -> MarkupNode:
    return MarkupNode(kind=NodeKind.number, value=value)


def command(value: str, children: list[MarkupNode | None] | None = None) -> MarkupNode:
    return MarkupNode(kind=NodeKind.command, value=value, children=children or [])


def environment(value: str, children: list[MarkupNode | None]) -> MarkupNode:
    return MarkupNode(kind=NodeKind.environment, value=value, children=children)


def collapse(children: list[MarkupNode | None]) -> MarkupNode:
    """Return the single child itself, otherwise wrap in a sequence."""
    if len(children) == 1 and children[0] is not None:
        return children[0]
    return sequence(children)
