"""Commutative diagrams: a matrix with arrows between cells and framed cells."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Sequence, cast

from pydantic import BaseModel, ConfigDict

from typemath.errors import StructuralError
from typemath.tree.formula import Formula, StructKind, Token
from typemath.tree.matrix import Matrix

logger = logging.getLogger(__name__)


class StrokeStyle(str, Enum):
    plain = "plain"
    dotted = "dotted"
    dashed = "dashed"
    wavy = "wavy"


class LabelPosition(str, Enum):
    above = "above"
    below = "below"
    centered = "centered"


class Decoration(BaseModel):
    """A border drawn around one diagram cell."""

    model_config = ConfigDict(frozen=True)

    size: int = 0
    circle: bool = False
    double: bool = False
    style: StrokeStyle = StrokeStyle.plain


class Arrow:
    """An arrow from one cell to another of the same diagram."""

    def __init__(
        self,
        source: int,
        target: int,
        num: int = 1,
        style: StrokeStyle = StrokeStyle.plain,
        head: str = ">",
        label: Formula | None = None,
        label_position: LabelPosition = LabelPosition.above,
    ) -> None:
        self.source = source
        self.target = target
        self.num = num
        self.style = style
        self.head = head
        self.label = label
        self.label_position = label_position

    def clone(self) -> Arrow:
        return Arrow(
            self.source,
            self.target,
            self.num,
            self.style,
            self.head,
            self.label.clone() if self.label is not None else None,
            self.label_position,
        )

    def __repr__(self) -> str:
        return f"Arrow({self.source}->{self.target}, num={self.num}, {self.style.value})"


_Position = tuple[int, int]


class Diagram(Matrix):
    """A matrix whose cells are joined by arrows and may carry decorations."""

    def __init__(self, rows: int, cols: int) -> None:
        super().__init__(rows, cols, StructKind.diagram)
        self.arrows: list[Arrow] = []
        self.decorations: list[Decoration | None] = [None] * (rows * cols)

    # -- arrows --------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self.slots):
            raise StructuralError("Arrow endpoint is not a cell of this diagram", index)

    def add_arrow(self, arrow: Arrow) -> Arrow:
        self._check_index(arrow.source)
        self._check_index(arrow.target)
        if arrow.label is not None:
            arrow.label._attach(self)
        self.arrows.append(arrow)
        return arrow

    def arrows_between(self, source: int, target: int) -> list[Arrow]:
        return [a for a in self.arrows if a.source == source and a.target == target]

    def find_arrow(self, source: int, target: int, ordinal: int = 0) -> Arrow | None:
        """Return the *ordinal*-th arrow from *source* to *target*."""
        parallel = self.arrows_between(source, target)
        if 0 <= ordinal < len(parallel):
            return parallel[ordinal]
        return None

    def remove_arrow(self, source: int, target: int, ordinal: int = 0) -> Arrow | None:
        arrow = self.find_arrow(source, target, ordinal)
        if arrow is not None:
            self.arrows.remove(arrow)
            if arrow.label is not None:
                arrow.label.detach()
        return arrow

    # -- decorations ---------------------------------------------------

    def decoration(self, row: int, col: int) -> Decoration | None:
        self._check(row, col)
        return self.decorations[self.index(row, col)]

    def set_decoration(self, row: int, col: int, deco: Decoration | None) -> None:
        self._check(row, col)
        self.decorations[self.index(row, col)] = deco

    # -- grid shape ----------------------------------------------------

    def _reshape(self, change: Callable[[], bool | None]) -> bool:
        """Apply a row/column change and move arrows and decorations along.

        Arrows with an endpoint outside the new bounds are dropped.
        """
        ends = [(self.pos(a.source), self.pos(a.target)) for a in self.arrows]
        decos = [(self.pos(i), d) for i, d in enumerate(self.decorations) if d is not None]

        changed = change()
        if changed is False:
            return False

        def inside(p: _Position) -> bool:
            return p[0] < self.rows and p[1] < self.cols

        kept: list[Arrow] = []
        for arrow, (s, t) in zip(self.arrows, ends):
            if inside(s) and inside(t):
                arrow.source = self.index(*s)
                arrow.target = self.index(*t)
                kept.append(arrow)
            else:
                logger.debug("dropping arrow %r outside %dx%d", arrow, self.rows, self.cols)
                if arrow.label is not None:
                    arrow.label.detach()
        self.arrows = kept

        self.decorations = [None] * len(self.slots)
        for p, d in decos:
            if inside(p):
                self.decorations[self.index(*p)] = d
        return True

    def extend(self, horizontal: bool) -> None:
        self._reshape(lambda: Matrix.extend(self, horizontal))

    def shrink(self, horizontal: bool) -> bool:
        return self._reshape(lambda: Matrix.shrink(self, horizontal))

    # -- rectangles ----------------------------------------------------

    def clone_rect(self, i1: int, j1: int, i2: int, j2: int, erase: bool) -> Diagram:
        """Clone a rectangle, carrying arrows and decorations inside it.

        With *erase*, arrows with both ends inside move to the result and
        arrows with only one end inside are removed from this diagram.
        """
        d = cast(Diagram, super().clone_rect(i1, j1, i2, j2, erase))

        def rebase(index: int) -> _Position | None:
            r, c = self.pos(index)
            if i1 <= r <= i2 and j1 <= c <= j2:
                return r - i1, c - j1
            return None

        kept: list[Arrow] = []
        for arrow in self.arrows:
            s, t = rebase(arrow.source), rebase(arrow.target)
            if s is not None and t is not None:
                moved = arrow.clone()
                moved.source = d.index(*s)
                moved.target = d.index(*t)
                d.add_arrow(moved)
            if erase and (s is not None or t is not None):
                if arrow.label is not None:
                    arrow.label.detach()
                continue
            kept.append(arrow)
        self.arrows = kept

        for i, deco in enumerate(self.decorations):
            p = rebase(i)
            if deco is None or p is None:
                continue
            d.decorations[d.index(*p)] = deco
            if erase:
                self.decorations[i] = None
        return d

    def paste(self, index: int, tokens: Sequence[Token]) -> int:
        """Paste; a pasted diagram also merges its arrows and decorations."""
        result = super().paste(index, tokens)
        if len(tokens) != 1 or not isinstance(tokens[0], Diagram):
            return result
        src = tokens[0]
        row, col = self.pos(index)
        r = min(src.rows, self.rows - row)
        c = min(src.cols, self.cols - col)

        def translate(i: int) -> int | None:
            sr, sc = src.pos(i)
            if sr < r and sc < c:
                return self.index(sr + row, sc + col)
            return None

        for arrow in src.arrows:
            s, t = translate(arrow.source), translate(arrow.target)
            if s is None or t is None:
                continue
            a = arrow.clone()
            a.source, a.target = s, t
            self.add_arrow(a)
        for i, deco in enumerate(src.decorations):
            p = translate(i)
            if deco is not None and p is not None:
                self.decorations[p] = deco
        return result

    def clone(self) -> Diagram:
        d = Diagram(self.rows, self.cols)
        for i, f in enumerate(self.slots):
            d.set_slot(i, f.clone())
        for arrow in self.arrows:
            d.add_arrow(arrow.clone())
        d.decorations = list(self.decorations)
        return d

    def __repr__(self) -> str:
        return (
            f"Diagram{self.rows},{self.cols}[{', '.join(repr(f) for f in self.slots)}]"
            f" arrows={self.arrows!r}"
        )


def make_diagram(rows: int, cols: int) -> Diagram:
    return Diagram(rows, cols)
