"""Row-major grid of formula cells."""

from __future__ import annotations

from typing import Sequence

from typemath.errors import StructuralError
from typemath.tree.formula import Formula, StructKind, Structure, Token


class Matrix(Structure):
    """A ``rows x cols`` grid of formulas stored row-major in ``slots``."""

    def __init__(self, rows: int, cols: int, kind: StructKind = StructKind.matrix) -> None:
        if rows < 1 or cols < 1:
            raise StructuralError(f"Matrix must be at least 1x1, got {rows}x{cols}")
        super().__init__(kind, rows * cols)
        self.rows = rows
        self.cols = cols

    @property
    def cells(self) -> list[Formula]:
        return self.slots

    def pos(self, index: int) -> tuple[int, int]:
        return index // self.cols, index % self.cols

    def index(self, row: int, col: int) -> int:
        return row * self.cols + col

    def _check(self, row: int, col: int) -> None:
        if row < 0 or row >= self.rows or col < 0 or col >= self.cols:
            raise StructuralError("Matrix cell out of range", (row, col))

    def cell(self, row: int, col: int) -> Formula:
        self._check(row, col)
        return self.slots[row * self.cols + col]

    def set_cell(self, row: int, col: int, f: Formula) -> Formula:
        self._check(row, col)
        return self.set_slot(row * self.cols + col, f)

    def row(self, i: int) -> list[Formula]:
        return self.slots[self.cols * i:self.cols * (i + 1)]

    # -- grid shape ----------------------------------------------------

    def _new_cell(self) -> Formula:
        f = Formula()
        f._attach(self)
        return f

    def extend(self, horizontal: bool) -> None:
        """Append one column (``horizontal``) or one row."""
        if horizontal:
            for i in range(self.rows, 0, -1):
                self.slots.insert(self.cols * i, self._new_cell())
            self.cols += 1
        else:
            self.slots.extend(self._new_cell() for _ in range(self.cols))
            self.rows += 1

    def shrink(self, horizontal: bool) -> bool:
        """Drop the last column (``horizontal``) or row.

        Returns False, leaving the grid untouched, when that would go
        below one column or row.
        """
        if horizontal:
            if self.cols == 1:
                return False
            for i in range(self.rows, 0, -1):
                self.slots.pop(self.cols * i - 1).detach()
            self.cols -= 1
        else:
            if self.rows == 1:
                return False
            for f in self.slots[(self.rows - 1) * self.cols:]:
                f.detach()
            del self.slots[(self.rows - 1) * self.cols:]
            self.rows -= 1
        return True

    # -- navigation ----------------------------------------------------

    def around(self, f: Formula, horizontal: bool, forward: bool) -> Formula | None:
        """Return the neighbouring cell of *f*, or None at the grid edge."""
        i = self.index_of(f)
        if i < 0:
            return None
        r, c = self.pos(i)
        step = 1 if forward else -1
        if horizontal:
            c += step
        else:
            r += step
        if r < 0 or r >= self.rows or c < 0 or c >= self.cols:
            return None
        return self.cell(r, c)

    def non_empty(self, i0: int, j0: int, rows: int, cols: int) -> bool:
        for i in range(rows):
            for j in range(cols):
                if not self.cell(i0 + i, j0 + j).is_empty():
                    return True
        return False

    # -- rectangles ----------------------------------------------------

    def clone_area(self, start: int, end: int, erase: bool) -> Matrix:
        """Clone the rectangle spanned by two cell indices."""
        a = self.pos(start)
        b = self.pos(end)
        return self.clone_rect(
            min(a[0], b[0]), min(a[1], b[1]),
            max(a[0], b[0]), max(a[1], b[1]),
            erase,
        )

    def clone_rect(self, i1: int, j1: int, i2: int, j2: int, erase: bool) -> Matrix:
        """Return rows ``i1..i2`` x cols ``j1..j2`` (inclusive) as a new matrix.

        With *erase*, the source cells are replaced by empty formulas.
        """
        self._check(i1, j1)
        self._check(i2, j2)
        m = type(self)(i2 - i1 + 1, j2 - j1 + 1)
        for i in range(m.rows):
            for j in range(m.cols):
                m.set_cell(i, j, self.cell(i + i1, j + j1).clone())
                if erase:
                    self.set_cell(i + i1, j + j1, Formula())
        return m

    def remove(self, start: int, end: int) -> list[Token]:
        return [self.clone_area(start, end, True)]

    def copy(self, start: int, end: int) -> list[Token]:
        return [self.clone_area(start, end, False)]

    def paste(self, index: int, tokens: Sequence[Token]) -> int:
        """Paste; a single matrix overwrites the overlapping cells in place."""
        if len(tokens) != 1 or not isinstance(tokens[0], Matrix):
            return super().paste(index, tokens)
        m = tokens[0]
        row, col = self.pos(index)
        r = min(m.rows, self.rows - row)
        c = min(m.cols, self.cols - col)
        for i in range(r):
            for j in range(c):
                self.set_cell(row + i, col + j, m.cell(i, j).clone())
        return index + (r - 1) * self.cols + (c - 1)

    def _blank(self) -> Matrix:
        return type(self)(self.rows, self.cols)

    def __repr__(self) -> str:
        return f"Matrix{self.rows},{self.cols}[{', '.join(repr(f) for f in self.slots)}]"


def make_matrix(rows: int, cols: int) -> Matrix:
    return Matrix(rows, cols)
