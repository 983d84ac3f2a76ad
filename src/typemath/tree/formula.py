"""Formula tree: leaf tokens, token sequences and fixed-arity structures.

Ownership always runs parent -> child.  Every token keeps a weak
reference to its owner for navigation only; removing a token from its
owner clears that link.
"""

from __future__ import annotations

import weakref
from enum import Enum
from typing import Iterable, Iterator, Sequence

from typemath.errors import StructuralError
from typemath.symbols import BRACKET_PAIRS, CLOSING_BRACKETS, OPENING_BRACKETS, FontStyle


class Token:
    """Base of every node in the formula tree."""

    def __init__(self) -> None:
        self._owner: weakref.ref | None = None

    @property
    def parent(self) -> Formula | Structure | None:
        """The owning sequence, or ``None`` for a root or detached token."""
        if self._owner is None:
            return None
        return self._owner()

    def _attach(self, owner: Formula | Structure | None) -> None:
        self._owner = weakref.ref(owner) if owner is not None else None

    def detach(self) -> Token:
        self._owner = None
        return self

    def clone(self) -> Token:
        """Return a deep, detached copy."""
        raise NotImplementedError


class Symbol(Token):
    """A displayed glyph or word.  Variables render italic and never reduce."""

    def __init__(self, text: str, variable: bool = False) -> None:
        super().__init__()
        self.text = text
        self.variable = variable

    def clone(self) -> Symbol:
        return Symbol(self.text, self.variable)

    def __repr__(self) -> str:
        return f"Symbol({self.text!r}{', variable' if self.variable else ''})"


class Number(Token):
    """A literal digit string, kept verbatim until evaluated."""

    def __init__(self, text: str) -> None:
        super().__init__()
        self.text = text

    def clone(self) -> Number:
        return Number(self.text)

    def __repr__(self) -> str:
        return f"Number({self.text!r})"


def _check_brackets(prefix: str, suffix: str) -> None:
    if prefix not in OPENING_BRACKETS:
        raise StructuralError(f"Unknown opening bracket {prefix!r}")
    if suffix not in CLOSING_BRACKETS:
        raise StructuralError(f"Unknown closing bracket {suffix!r}")
    if prefix and suffix and BRACKET_PAIRS[prefix] != suffix:
        raise StructuralError(f"Bracket {prefix!r} does not pair with {suffix!r}")


class Formula(Token):
    """An ordered token sequence with optional brackets and font style."""

    def __init__(
        self,
        tokens: Iterable[Token] | None = None,
        prefix: str = "",
        suffix: str = "",
        style: FontStyle = FontStyle.normal,
    ) -> None:
        super().__init__()
        _check_brackets(prefix, suffix)
        self.prefix = prefix
        self.suffix = suffix
        self.style = style
        self.tokens: list[Token] = []
        for t in tokens or ():
            t._attach(self)
            self.tokens.append(t)

    # -- access --------------------------------------------------------

    def count(self) -> int:
        return len(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self.tokens)

    def is_empty(self) -> bool:
        return not self.tokens

    def token(self, i: int) -> Token:
        if i < 0 or i >= len(self.tokens):
            raise StructuralError("Formula token out of range", i)
        return self.tokens[i]

    def index_of(self, t: Token) -> int:
        for i, u in enumerate(self.tokens):
            if u is t:
                return i
        return -1

    def prev(self, t: Token) -> Token | None:
        i = self.index_of(t)
        return self.tokens[i - 1] if i > 0 else None

    def next(self, t: Token) -> Token | None:
        i = self.index_of(t)
        if i < 0 or i == len(self.tokens) - 1:
            return None
        return self.tokens[i + 1]

    # -- mutation ------------------------------------------------------

    def insert(self, index: int, t: Token) -> None:
        t._attach(self)
        self.tokens.insert(index, t)

    def remove(self, start: int, end: int | None = None) -> list[Token]:
        """Remove ``[min(start, end), max(start, end))`` (or one token).

        Returns the removed tokens, detached from this formula.
        """
        if end is None:
            i, j = start, start + 1
        else:
            i, j = min(start, end), max(start, end)
        removed = self.tokens[i:j]
        del self.tokens[i:j]
        return [t.detach() for t in removed]

    def copy(self, start: int, end: int) -> list[Token]:
        i, j = min(start, end), max(start, end)
        return [t.clone() for t in self.tokens[i:j]]

    def paste(self, index: int, tokens: Sequence[Token]) -> int:
        """Insert clones of *tokens* at *index*; return the cursor after them."""
        clones = [t.clone() for t in tokens]
        for t in clones:
            t._attach(self)
        self.tokens[index:index] = clones
        return index + len(clones)

    def clone(self) -> Formula:
        return Formula((t.clone() for t in self.tokens), self.prefix, self.suffix, self.style)

    def __repr__(self) -> str:
        inner = " ".join(repr(t) for t in self.tokens)
        return f"Formula({self.prefix}{inner}{self.suffix})"


class StructKind(str, Enum):
    infer = "infer"
    frac = "frac"
    power = "power"
    index = "index"
    matrix = "matrix"
    diagram = "diagram"
    big_opr = "big_opr"
    accent = "accent"


_SLOT_COUNTS: dict[StructKind, int] = {
    StructKind.infer: 3,
    StructKind.frac: 2,
    StructKind.big_opr: 2,
    StructKind.power: 1,
    StructKind.index: 1,
    StructKind.accent: 1,
}


class Structure(Token):
    """A fixed-arity container of formula slots tagged by kind."""

    def __init__(self, kind: StructKind, count: int | None = None) -> None:
        super().__init__()
        self.kind = kind
        n = count if count is not None else _SLOT_COUNTS.get(kind, 0)
        self.slots: list[Formula] = []
        for _ in range(n):
            f = Formula()
            f._attach(self)
            self.slots.append(f)

    def count(self) -> int:
        return len(self.slots)

    def slot(self, i: int) -> Formula:
        if i < 0 or i >= len(self.slots):
            raise StructuralError(f"{self.kind.value} slot out of range", i)
        return self.slots[i]

    def set_slot(self, i: int, f: Formula) -> Formula:
        self.slot(i).detach()
        f._attach(self)
        self.slots[i] = f
        return f

    def index_of(self, t: Token) -> int:
        for i, f in enumerate(self.slots):
            if f is t:
                return i
        return -1

    def prev(self, f: Formula) -> Formula | None:
        i = self.index_of(f)
        return self.slots[i - 1] if i > 0 else None

    def next(self, f: Formula) -> Formula | None:
        i = self.index_of(f)
        if i < 0 or i == len(self.slots) - 1:
            return None
        return self.slots[i + 1]

    def remove(self, start: int, end: int) -> list[Token]:
        """Empty the inclusive slot range and return the old slots."""
        i, j = min(start, end), max(start, end)
        removed: list[Token] = []
        for k in range(i, j + 1):
            removed.append(self.slots[k].detach())
            f = Formula()
            f._attach(self)
            self.slots[k] = f
        return removed

    def copy(self, start: int, end: int) -> list[Token]:
        i, j = min(start, end), max(start, end)
        return [f.clone() for f in self.slots[i:j]]

    def paste(self, index: int, tokens: Sequence[Token]) -> int:
        if tokens and all(isinstance(t, Formula) for t in tokens):
            if index + len(tokens) > len(self.slots):
                raise StructuralError(f"{self.kind.value} has no room for pasted slots", index)
            for i, t in enumerate(tokens):
                self.set_slot(index + i, t.clone())
            return index + len(tokens)
        target = self.slot(index)
        target.paste(target.count(), tokens)
        return index

    def _blank(self) -> Structure:
        return Structure(self.kind, len(self.slots))

    def clone(self) -> Structure:
        s = self._blank()
        for i, f in enumerate(self.slots):
            s.set_slot(i, f.clone())
        return s

    def __repr__(self) -> str:
        return f"{self.kind.value}[{', '.join(repr(f) for f in self.slots)}]"


class BigOperator(Structure):
    """A large operator glyph (sum, integral, ...) with lower/upper bounds."""

    def __init__(self, operator: str) -> None:
        super().__init__(StructKind.big_opr)
        self.operator = operator

    def _blank(self) -> BigOperator:
        return BigOperator(self.operator)


class Accent(Structure):
    """A single slot decorated with an accent glyph above or below."""

    def __init__(self, glyph: str, above: bool = True) -> None:
        super().__init__(StructKind.accent)
        self.glyph = glyph
        self.above = above

    def _blank(self) -> Accent:
        return Accent(self.glyph, self.above)

    def __repr__(self) -> str:
        return f"accent{self.glyph}[{', '.join(repr(f) for f in self.slots)}]"


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _fill(s: Structure, *contents: Iterable[Token] | None) -> Structure:
    for i, tokens in enumerate(contents):
        if tokens is None:
            continue
        slot = s.slot(i)
        for t in tokens:
            slot.insert(slot.count(), t)
    return s


def make_frac(
    numerator: Iterable[Token] | None = None,
    denominator: Iterable[Token] | None = None,
) -> Structure:
    return _fill(Structure(StructKind.frac), numerator, denominator)


def make_infer(
    premise: Iterable[Token] | None = None,
    conclusion: Iterable[Token] | None = None,
    label: Iterable[Token] | None = None,
) -> Structure:
    return _fill(Structure(StructKind.infer), premise, conclusion, label)


def make_power(exponent: Iterable[Token] | None = None) -> Structure:
    return _fill(Structure(StructKind.power), exponent)


def make_index(subscript: Iterable[Token] | None = None) -> Structure:
    return _fill(Structure(StructKind.index), subscript)


def make_big_operator(
    operator: str,
    lower: Iterable[Token] | None = None,
    upper: Iterable[Token] | None = None,
) -> BigOperator:
    s = BigOperator(operator)
    _fill(s, lower, upper)
    return s


def make_accent(glyph: str, body: Iterable[Token] | None = None, above: bool = True) -> Accent:
    s = Accent(glyph, above)
    _fill(s, body)
    return s
