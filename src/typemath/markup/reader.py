"""Markup text -> ``MarkupNode`` AST.

The reader is permissive: unbalanced braces, missing arguments and
unknown commands degrade to a best-effort tree instead of failing.
Nesting beyond the depth ceiling is the only error.

Token rules:

- whitespace between tokens is skipped
- ``\\\\`` is a row-break symbol; ``\\name`` a command; ``\\`` followed by
  any other character a zero-argument command named by that character
- ``^`` and ``_`` are commands taking the next token as argument
- ``#1`` is a macro-parameter symbol
- ``{ ... }`` is a nested sequence; a stray ``}`` ends the current one
- ``12`` / ``1.5`` are numbers, any other character a symbol

Command arguments follow the obligation table in
``typemath.symbols.COMMAND_ARITY`` (``True`` mandatory, ``False``
optional in brackets), extended at parse time by ``\\newcommand``.
"""

from __future__ import annotations

import logging
import re
from collections import ChainMap

from typemath.config import DEFAULT_MAX_DEPTH
from typemath.errors import MarkupDepthError
from typemath.logging.events import MARKUP_TOO_DEEP, EventType, emit_info, emit_warning
from typemath.markup.nodes import (
    MarkupNode,
    NodeKind,
    collapse,
    command,
    environment,
    number,
    sequence,
    symbol,
)
from typemath.symbols import COMMAND_ARITY, ENVIRONMENT_ARITY

logger = logging.getLogger(__name__)

_WHITESPACE = " \t\r\n"
_DIGITS = "0123456789"

_COMMAND_RE = re.compile(r"\\([A-Za-z]+)")
_ENV_NAME_RE = re.compile(r"\s*\{([A-Za-z0-9]+\*?)\}")
_MACRO_NAME_RE = re.compile(r"\s*(?:\{\s*\\([A-Za-z]+)\s*\}|\\([A-Za-z]+))")
_NUMBER_RE = re.compile(r"[0-9]+(\.[0-9]*)?")
_PARAM_RE = re.compile(r"#[0-9]*")
_SIZE_RE = re.compile(r"[+-]*")

_DEFINERS = frozenset({"newcommand", "renewcommand"})


def parse_markup(text: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> MarkupNode:
    """Parse *text* into a markup AST.

    Raises:
        MarkupDepthError: If nesting exceeds *max_depth*.
    """
    reader = MarkupReader(text, max_depth=max_depth)
    try:
        node = reader.parse_seq()
    except MarkupDepthError as exc:
        emit_warning(
            EventType.depth_exceeded,
            str(exc),
            context={"direction": "parse", "max_depth": max_depth, "source": text},
            error_code=MARKUP_TOO_DEEP,
        )
        raise
    emit_info(
        EventType.markup_parsed,
        f"Parsed {len(text)} characters",
        context={"length": len(text), "macros": sorted(reader.arity.maps[0])},
    )
    return node


class MarkupReader:
    """Single-pass reader over one source string.

    ``arity`` layers the macros defined so far over the static table, so
    a ``\\newcommand`` affects the rest of this parse only.
    """

    def __init__(self, source: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.source = source
        self.pos = 0
        self.max_depth = max_depth
        self.depth = 0
        self.arity: ChainMap[str, tuple[bool, ...]] = ChainMap({}, COMMAND_ARITY)

    # -- scanning ------------------------------------------------------

    def peek(self, offset: int = 0) -> str:
        i = self.pos + offset
        return self.source[i] if i < len(self.source) else ""

    def skip_space(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos] in _WHITESPACE:
            self.pos += 1

    def raw(self, close: str) -> str:
        """Return the text up to *close*, skipping the opener at ``pos``."""
        end = self.source.find(close, self.pos + 1)
        if end < 0:
            end = len(self.source)
        text = self.source[self.pos + 1:end]
        self.pos = end + 1
        return text

    # -- sequences and tokens -----------------------------------------

    def parse_seq(self, eof: str | None = None) -> MarkupNode:
        tokens: list[MarkupNode | None] = []
        while self.pos < len(self.source):
            t = self.parse_token(eof)
            if t is None:
                break
            tokens.append(t)
        return collapse(tokens)

    def parse_token(self, eof: str | None = None) -> MarkupNode | None:
        self.depth += 1
        try:
            if self.depth > self.max_depth:
                raise MarkupDepthError(self.max_depth, self.pos)
            return self._token(eof)
        finally:
            self.depth -= 1

    def _token(self, eof: str | None) -> MarkupNode | None:
        self.skip_space()
        c = self.peek()
        if not c:
            return None
        if eof is not None and c == eof:
            self.pos += 1
            return None

        if c == "\\":
            return self._escape()
        if c in "^_":
            self.pos += 1
            return command(c, [self.parse_token()])
        if c == "#":
            m = _PARAM_RE.match(self.source, self.pos)
            self.pos = m.end()
            return symbol(m.group())
        if c == "{":
            self.pos += 1
            return self.parse_seq()
        if c == "}":
            self.pos += 1
            return None
        if c in _DIGITS:
            m = _NUMBER_RE.match(self.source, self.pos)
            self.pos = m.end()
            return number(m.group())

        self.pos += 1
        return symbol(c)

    def _escape(self) -> MarkupNode | None:
        if self.peek(1) == "\\":
            self.pos += 2
            return symbol("\\\\")

        m = _COMMAND_RE.match(self.source, self.pos)
        if m is None:
            if not self.peek(1):
                self.pos += 1
                return symbol("\\")
            c = self.peek(1)
            self.pos += 2
            return command(c)

        self.pos = m.end()
        name = m.group(1)
        if name == "begin":
            return self._environment()
        if name == "end":
            self._skip_env_name()
            return None
        if name == "xymatrix":
            self.skip_space()
            if self.peek() == "{":
                self.pos += 1
                return environment(name, [self.grid(xy=True)])
            return command(name)
        if name in _DEFINERS:
            return self._definition(name)
        return command(name, self.arguments(self.arity.get(name, ())))

    def arguments(self, obligations: tuple[bool, ...]) -> list[MarkupNode | None]:
        args: list[MarkupNode | None] = []
        for mandatory in obligations:
            if mandatory:
                args.append(self.parse_token())
            else:
                self.skip_space()
                if self.peek() == "[":
                    self.pos += 1
                    args.append(self.parse_seq("]"))
                else:
                    args.append(None)
        return args

    def _definition(self, name: str) -> MarkupNode:
        """``\\newcommand{\\name}[count]{body}``; registers *name* with *count* arguments."""
        m = _MACRO_NAME_RE.match(self.source, self.pos)
        if m is None:
            return command(name, self.arguments(self.arity[name]))

        self.pos = m.end()
        macro = m.group(1) or m.group(2)
        rest = self.arguments(self.arity[name][1:])
        count = rest[0]
        if count is not None and count.kind == NodeKind.number and count.value.isdigit():
            self.arity.maps[0][macro] = (True,) * int(count.value)
            logger.debug("registered \\%s with %s arguments", macro, count.value)
        return command(name, [command(macro), *rest])

    # -- environments --------------------------------------------------

    def _skip_env_name(self) -> None:
        m = _ENV_NAME_RE.match(self.source, self.pos)
        if m is not None:
            self.pos = m.end()

    def _environment(self) -> MarkupNode:
        m = _ENV_NAME_RE.match(self.source, self.pos)
        if m is None:
            return command("begin")
        self.pos = m.end()
        name = m.group(1)

        leading = [self.parse_token() for _ in range(ENVIRONMENT_ARITY.get(name, 0))]
        if "matrix" in name or name == "array":
            body = self.grid(xy=name.startswith("xymatrix"))
        else:
            body = self.parse_seq()
        return environment(name, [*leading, body])

    def grid(self, xy: bool) -> MarkupNode:
        """Read ``&``-separated cells and ``\\\\``-separated rows.

        Stops at ``\\end{...}``, at end of input, or (for the ``\\xymatrix``
        command form) at the closing brace.  Returns a sequence of rows,
        each a sequence of cells.
        """
        rows: list[MarkupNode | None] = []
        cells: list[MarkupNode | None] = []
        tokens: list[MarkupNode | None] = []

        while True:
            self.skip_space()
            c = self.peek()
            if not c:
                break
            if c == "&":
                self.pos += 1
                cells.append(_cell(tokens))
                tokens = []
                continue
            if self.source.startswith("\\\\", self.pos):
                self.pos += 2
                cells.append(_cell(tokens))
                rows.append(sequence(cells))
                cells, tokens = [], []
                continue
            if xy and c == "}":
                self.pos += 1
                break

            m = _COMMAND_RE.match(self.source, self.pos)
            if m is not None and m.group(1) == "end":
                self.pos = m.end()
                self._skip_env_name()
                break
            if xy and c == "*":
                tokens.append(self._decoration())
                continue
            if xy and m is not None and m.group(1) == "ar":
                self.pos = m.end()
                tokens.append(self._arrow())
                continue

            t = self.parse_token()
            if t is not None:
                tokens.append(t)

        if tokens or cells:
            cells.append(_cell(tokens))
            rows.append(sequence(cells))
        return sequence(rows)

    def _decoration(self) -> MarkupNode:
        """``*+[o][F=]{body}`` -> ``*`` command of (size, circle, frame, body)."""
        self.pos += 1
        m = _SIZE_RE.match(self.source, self.pos)
        self.pos = m.end()
        size = symbol(m.group())

        circle = None
        if self.source.startswith("[o]", self.pos):
            self.pos += 3
            circle = symbol("o")
        frame = None
        if self.peek() == "[":
            frame = symbol(self.raw("]"))
        return command("*", [size, circle, frame, self.parse_token()])

    def _arrow(self) -> MarkupNode:
        """``\\ar@2{=>}@<1ex>[rd]^{f}`` -> ``ar`` command of
        (multiplicity, style, shift, direction, label mark, label)."""
        mult = style = shift = direction = mark = label = None
        while self.peek() == "@":
            self.pos += 1
            if self.peek() and self.peek() in _DIGITS:
                mult = number(self.peek())
                self.pos += 1
            if self.peek() == "{":
                style = symbol(self.raw("}"))
            elif self.peek() == "<":
                shift = symbol(self.raw(">"))

        self.skip_space()
        if self.peek() == "[":
            direction = symbol(self.raw("]"))
        self.skip_space()
        c = self.peek()
        if c and c in "^_|":
            self.pos += 1
            mark = symbol(c)
            label = self.parse_token()
        return command("ar", [mult, style, shift, direction, mark, label])


def _cell(tokens: list[MarkupNode | None]) -> MarkupNode:
    return collapse(tokens) if tokens else sequence([])
