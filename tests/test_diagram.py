"""Tests for commutative diagrams: arrows, decorations and reshaping."""

from __future__ import annotations

import pytest

from typemath.errors import StructuralError
from typemath.tree import (
    Arrow,
    Decoration,
    Diagram,
    Formula,
    LabelPosition,
    StrokeStyle,
    Symbol,
    make_diagram,
)


def _labelled(rows: int, cols: int) -> Diagram:
    d = make_diagram(rows, cols)
    for i in range(rows * cols):
        d.set_slot(i, Formula([Symbol(chr(ord("A") + i))]))
    return d


def _ends(d: Diagram) -> list[tuple[int, int]]:
    return [(a.source, a.target) for a in d.arrows]


def _assert_no_dangling(d: Diagram) -> None:
    for a in d.arrows:
        assert 0 <= a.source < d.count()
        assert 0 <= a.target < d.count()


# ---------------------------------------------------------------------------
# Arrows
# ---------------------------------------------------------------------------


class TestArrows:
    def test_add_and_find(self) -> None:
        d = _labelled(2, 2)
        first = d.add_arrow(Arrow(0, 1))
        second = d.add_arrow(Arrow(0, 1, num=2))
        assert d.arrows_between(0, 1) == [first, second]
        assert d.find_arrow(0, 1, 1) is second
        assert d.find_arrow(0, 1, 2) is None
        assert d.find_arrow(1, 0) is None

    def test_endpoint_must_be_a_cell(self) -> None:
        d = _labelled(2, 2)
        with pytest.raises(StructuralError):
            d.add_arrow(Arrow(0, 4))

    def test_label_parent_is_diagram(self) -> None:
        d = _labelled(1, 2)
        label = Formula([Symbol("f")])
        d.add_arrow(Arrow(0, 1, label=label))
        assert label.parent is d

    def test_remove_arrow(self) -> None:
        d = _labelled(1, 2)
        label = Formula([Symbol("f")])
        d.add_arrow(Arrow(0, 1, label=label, label_position=LabelPosition.below))
        removed = d.remove_arrow(0, 1)
        assert removed is not None
        assert d.arrows == []
        assert label.parent is None
        assert d.remove_arrow(0, 1) is None


# ---------------------------------------------------------------------------
# Reshaping
# ---------------------------------------------------------------------------


class TestDiagramShape:
    def test_extend_column_renumbers_arrows(self) -> None:
        d = _labelled(2, 2)
        d.add_arrow(Arrow(0, 3))
        d.extend(horizontal=True)
        assert (d.rows, d.cols) == (2, 3)
        # (1, 1) is now index 4
        assert _ends(d) == [(0, 4)]
        _assert_no_dangling(d)

    def test_extend_row_keeps_indices(self) -> None:
        d = _labelled(2, 2)
        d.add_arrow(Arrow(1, 2))
        d.extend(horizontal=False)
        assert _ends(d) == [(1, 2)]
        assert len(d.decorations) == 6

    def test_shrink_column_drops_arrows_leaving_grid(self) -> None:
        d = _labelled(2, 2)
        d.add_arrow(Arrow(0, 1))
        d.add_arrow(Arrow(0, 2))
        assert d.shrink(horizontal=True)
        assert (d.rows, d.cols) == (2, 1)
        # (0, 0) -> (1, 0) survives as 0 -> 1
        assert _ends(d) == [(0, 1)]
        _assert_no_dangling(d)

    def test_shrink_row_drops_arrows(self) -> None:
        d = _labelled(2, 2)
        d.add_arrow(Arrow(3, 0))
        d.add_arrow(Arrow(0, 1))
        assert d.shrink(horizontal=False)
        assert _ends(d) == [(0, 1)]
        _assert_no_dangling(d)

    def test_shrink_refused_keeps_arrows(self) -> None:
        d = _labelled(1, 2)
        d.add_arrow(Arrow(0, 1))
        assert not d.shrink(horizontal=False)
        assert _ends(d) == [(0, 1)]

    def test_decorations_follow_cells(self) -> None:
        d = _labelled(2, 2)
        deco = Decoration(circle=True)
        d.set_decoration(1, 1, deco)
        d.extend(horizontal=True)
        assert d.decoration(1, 1) == deco
        assert d.decoration(1, 2) is None
        d.shrink(horizontal=False)
        assert all(x is None for x in d.decorations)
        assert len(d.decorations) == d.count()


# ---------------------------------------------------------------------------
# Rectangles and paste
# ---------------------------------------------------------------------------


class TestDiagramRectangles:
    def test_clone_rect_carries_inner_arrows(self) -> None:
        d = _labelled(2, 2)
        d.add_arrow(Arrow(0, 1, style=StrokeStyle.dashed))
        d.add_arrow(Arrow(0, 2))
        sub = d.clone_rect(0, 0, 0, 1, erase=False)
        assert isinstance(sub, Diagram)
        assert _ends(sub) == [(0, 1)]
        assert sub.arrows[0].style == StrokeStyle.dashed
        assert len(d.arrows) == 2

    def test_clone_rect_erase_moves_and_cuts(self) -> None:
        d = _labelled(2, 2)
        d.add_arrow(Arrow(0, 1))
        d.add_arrow(Arrow(0, 2))
        d.add_arrow(Arrow(2, 3))
        sub = d.clone_rect(0, 0, 0, 1, erase=True)
        assert _ends(sub) == [(0, 1)]
        # fully inside moved, half inside removed, outside kept
        assert _ends(d) == [(2, 3)]
        assert d.cell(0, 0).is_empty()

    def test_clone_rect_carries_decorations(self) -> None:
        d = _labelled(2, 2)
        deco = Decoration(size=1, double=True)
        d.set_decoration(1, 1, deco)
        sub = d.clone_rect(1, 1, 1, 1, erase=True)
        assert sub.decoration(0, 0) == deco
        assert d.decoration(1, 1) is None

    def test_paste_merges_arrows(self) -> None:
        src = _labelled(1, 2)
        src.add_arrow(Arrow(0, 1, label=Formula([Symbol("g")])))
        src.set_decoration(0, 0, Decoration())
        dst = make_diagram(2, 2)
        dst.paste(dst.index(1, 0), [src])
        assert _ends(dst) == [(2, 3)]
        assert dst.arrows[0].label is not src.arrows[0].label
        assert dst.decoration(1, 0) == Decoration()
        assert dst.cell(1, 1).tokens[0].text == "B"

    def test_paste_drops_clipped_arrows(self) -> None:
        src = _labelled(1, 2)
        src.add_arrow(Arrow(0, 1))
        dst = make_diagram(2, 2)
        dst.paste(dst.index(0, 1), [src])
        assert dst.arrows == []
        _assert_no_dangling(dst)

    def test_clone(self) -> None:
        d = _labelled(1, 2)
        d.add_arrow(Arrow(0, 1, num=3, head="|"))
        d.set_decoration(0, 1, Decoration(style=StrokeStyle.dotted))
        c = d.clone()
        assert isinstance(c, Diagram)
        assert _ends(c) == [(0, 1)]
        assert c.arrows[0] is not d.arrows[0]
        assert c.arrows[0].num == 3
        assert c.decoration(0, 1) == Decoration(style=StrokeStyle.dotted)


class TestDecoration:
    def test_frozen(self) -> None:
        deco = Decoration()
        with pytest.raises(Exception):
            deco.size = 2  # type: ignore[misc]

    def test_defaults(self) -> None:
        deco = Decoration()
        assert deco.size == 0
        assert not deco.circle
        assert not deco.double
        assert deco.style == StrokeStyle.plain
