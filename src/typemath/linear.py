"""Lark-based reader for keyboard-style linear input.

Turns text such as ``1/2 + 1/3`` or ``2 alpha x^2`` into a flat
``Formula``:

- digit runs (with an optional decimal point) become ``Number``
- function and operator words (``sin``, ``mod``, ...) stay whole as
  non-variable ``Symbol``
- command names from the symbol table (``alpha``, ``infty``) become
  their glyph
- any other letter run is split into one variable ``Symbol`` per letter
- every other non-space character is a non-variable ``Symbol``
"""

from __future__ import annotations

from lark import Lark, Transformer
from lark.exceptions import LarkError

from typemath.calc.values import FUNCTIONS
from typemath.errors import TypeMathError
from typemath.symbols import COMMAND_SYMBOLS
from typemath.tree import Formula, Number, Symbol, Token

GRAMMAR = r"""
start: (number | word | symbol)*

number: NUMBER
word: WORD
symbol: SYMBOL

NUMBER.3: /[0-9]+(\.[0-9]*)?/
WORD.2: /[A-Za-z]+/
SYMBOL.1: /\S/

%import common.WS
%ignore WS
"""

_parser = Lark(GRAMMAR, parser="lalr", start="start")

KEYWORDS = frozenset(FUNCTIONS) | {"mod"}


def _word(text: str) -> list[Token]:
    if text in KEYWORDS:
        return [Symbol(text)]
    glyph = COMMAND_SYMBOLS.get(text)
    if glyph is not None:
        return [Symbol(glyph, variable=glyph.isalpha())]
    return [Symbol(c, variable=True) for c in text]


class _TokenBuilder(Transformer):
    def start(self, groups: list[list[Token]]) -> list[Token]:
        return [t for group in groups for t in group]

    def number(self, children) -> list[Token]:
        return [Number(str(children[0]))]

    def word(self, children) -> list[Token]:
        return _word(str(children[0]))

    def symbol(self, children) -> list[Token]:
        return [Symbol(str(children[0]))]


def read_linear(text: str) -> Formula:
    """Read linear text into a flat formula.

    Raises:
        TypeMathError: If the text cannot be tokenized.
    """
    try:
        tree = _parser.parse(text)
    except LarkError as exc:
        raise TypeMathError(f"Cannot read {text!r}: {exc}") from exc
    return Formula(_TokenBuilder().transform(tree))
