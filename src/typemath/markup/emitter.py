"""Formula tree -> markup text.

``transcribe`` never mutates the tree.  Unknown glyphs pass through
verbatim; only nesting beyond ``max_depth`` is an error.
"""

from __future__ import annotations

import unicodedata

from typemath.config import DEFAULT_MAX_DEPTH
from typemath.errors import MarkupDepthError
from typemath.logging.events import MARKUP_TOO_DEEP, EventType, emit_info, emit_warning
from typemath.symbols import (
    ACCENTS_ABOVE,
    ACCENTS_BELOW,
    COMBINING_ACCENTS,
    MATRIX_ENVIRONMENTS,
    PROOF_SYMBOLS,
    RADICAL,
    STYLE_COMMANDS,
    SYMBOL_COMMANDS,
    UNICODE_ALPHABETS,
    FontStyle,
)
from typemath.tree import (
    Accent,
    Arrow,
    BigOperator,
    Decoration,
    Diagram,
    Formula,
    LabelPosition,
    Matrix,
    Number,
    StrokeStyle,
    StructKind,
    Structure,
    Symbol,
    Token,
)

_SHAFTS = {
    StrokeStyle.plain: "-",
    StrokeStyle.dotted: ".",
    StrokeStyle.dashed: "--",
    StrokeStyle.wavy: "~",
}
_DOUBLE_SHAFTS = {
    StrokeStyle.plain: "=",
    StrokeStyle.dotted: ":",
    StrokeStyle.dashed: "==",
    StrokeStyle.wavy: "~~",
}
_FRAMES = {
    StrokeStyle.plain: "",
    StrokeStyle.dotted: ".",
    StrokeStyle.dashed: "--",
    StrokeStyle.wavy: "~",
}
_LABEL_MARKS = {
    LabelPosition.above: "^",
    LabelPosition.below: "_",
    LabelPosition.centered: "|",
}


def transcribe(
    token: Token,
    indent: str = "",
    proof: bool = False,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> str:
    """Return the markup for *token*.

    Args:
        token: Any node of the formula tree.
        indent: Leading indentation for multi-line inference rules.
        proof: Render ``&`` as a line break and logical connectives
            with their proof-tree command names.
        max_depth: Nesting ceiling; deeper trees raise.

    Raises:
        MarkupDepthError: If the tree nests deeper than *max_depth*.
    """
    try:
        text = _Emitter(proof, max_depth).trans(token, indent, 0)
    except MarkupDepthError as exc:
        emit_warning(
            EventType.depth_exceeded,
            str(exc),
            context={"direction": "transcribe", "max_depth": max_depth},
            error_code=MARKUP_TOO_DEEP,
        )
        raise
    emit_info(
        EventType.markup_transcribed,
        f"Transcribed {type(token).__name__} to {len(text)} characters",
        context={"length": len(text), "proof": proof},
    )
    return text


def alphabet_of(text: str) -> tuple[FontStyle, str] | None:
    """Split a Unicode math-alphabet character into (style, plain letter)."""
    if len(text) != 1 or text in SYMBOL_COMMANDS:
        return None
    name = unicodedata.name(text, "")
    for prefix, style in UNICODE_ALPHABETS.items():
        if name.startswith(prefix):
            return style, unicodedata.normalize("NFKC", text)
    return None


class _Emitter:
    def __init__(self, proof: bool, max_depth: int) -> None:
        self.proof = proof
        self.max_depth = max_depth

    def trans(self, t: Token, indent: str, depth: int) -> str:
        if depth > self.max_depth:
            raise MarkupDepthError(self.max_depth)
        match t:
            case Symbol(text=text):
                return self.symbol(text, indent)
            case Number(text=text):
                return text
            case Diagram():
                return "\\xymatrix{" + self.rows(t, depth, self.diagram_cell) + "}"
            case Matrix():
                return (
                    "\\begin{array}{" + "c" * t.cols + "}"
                    + self.rows(t, depth, self.cell)
                    + "\\end{array}"
                )
            case BigOperator():
                return self.big_operator(t, depth)
            case Accent():
                return self.accent(t, depth)
            case Structure(kind=StructKind.frac):
                return self.macro("frac", depth, t.slot(0), t.slot(1))
            case Structure(kind=StructKind.infer):
                # proof.sty order: conclusion first, then premises
                label = self.trans(t.slot(2), "", depth + 1)
                name = "infer" + (f"[{label}]" if label else "")
                return self.macro_breaked(name, indent, depth, t.slot(1), t.slot(0))
            case Structure(kind=StructKind.power):
                return self.script("^", t.slot(0), depth)
            case Structure(kind=StructKind.index):
                return self.script("_", t.slot(0), depth)
            case Formula():
                return self.formula(t, indent, depth)
            case _:
                raise TypeError(f"Cannot transcribe {type(t).__name__}")

    # -- leaves --------------------------------------------------------

    def symbol(self, text: str, indent: str) -> str:
        if self.proof:
            if text == "&":
                return "&\n" + indent[:-1]
            if text in PROOF_SYMBOLS:
                return "\\" + PROOF_SYMBOLS[text]
        if text in SYMBOL_COMMANDS:
            return "\\" + SYMBOL_COMMANDS[text]
        if len(text) > 1 and text[-1] in COMBINING_ACCENTS:
            return f"\\{COMBINING_ACCENTS[text[-1]]}{{{self.symbol(text[:-1], indent)}}}"
        return text

    # -- structures ----------------------------------------------------

    def macro(self, name: str, depth: int, *args: Formula) -> str:
        inner = " }{ ".join(self.trans(f, "", depth + 1) for f in args)
        return f"\\{name}{{ {inner} }}"

    def macro_breaked(self, name: str, indent: str, depth: int, *args: Formula) -> str:
        inner = indent + "  "
        body = ("\n" + indent + "}{\n" + inner).join(self.trans(f, inner, depth + 1) for f in args)
        return f"\\{name} {{\n{inner}{body}\n{indent}}}"

    def script(self, mark: str, f: Formula, depth: int) -> str:
        text = self.trans(f, "", depth + 1)
        if len(text) == 1:
            return mark + text
        return f"{mark}{{ {text} }}"

    def big_operator(self, s: BigOperator, depth: int) -> str:
        out = self.symbol(s.operator, "")
        lower = self.trans(s.slot(0), "", depth + 1)
        upper = self.trans(s.slot(1), "", depth + 1)
        if lower:
            out += f"_{{ {lower} }}"
        if upper:
            out += f"^{{ {upper} }}"
        return out

    def accent(self, s: Accent, depth: int) -> str:
        body = self.trans(s.slot(0), "", depth + 1)
        table = ACCENTS_ABOVE if s.above else ACCENTS_BELOW
        name = table.get(s.glyph)
        if name is None:
            return body + s.glyph
        return f"\\{name}{{ {body} }}"

    # -- grids ---------------------------------------------------------

    def rows(self, m: Matrix, depth: int, cell) -> str:
        multiline = m.rows >= 2 and m.cols >= 2 and not (m.rows == 2 and m.cols == 2)
        ln = "\n" if multiline else " "
        out = ln
        for r in range(m.rows):
            out += " & ".join(cell(m, r, c, depth) for c in range(m.cols)) + " \\\\" + ln
        return out

    def cell(self, m: Matrix, r: int, c: int, depth: int) -> str:
        return self.trans(m.cell(r, c), "", depth + 1)

    def diagram_cell(self, d: Diagram, r: int, c: int, depth: int) -> str:
        content = self.cell(d, r, c, depth)
        deco = d.decorations[d.index(r, c)]
        if deco is not None:
            content = _decoration(deco) + "{" + content + "}"

        parts = [content] if content else []
        source = d.index(r, c)
        groups: dict[int, list[Arrow]] = {}
        for arrow in d.arrows:
            if arrow.source == source:
                groups.setdefault(arrow.target, []).append(arrow)
        for group in groups.values():
            for k, arrow in enumerate(group):
                offset = k - (len(group) - 1) / 2
                parts.append(self.arrow(d, arrow, offset, depth))
        return " ".join(parts)

    def arrow(self, d: Diagram, arrow: Arrow, offset: float, depth: int) -> str:
        out = "\\ar"
        shaft = (_DOUBLE_SHAFTS if arrow.num == 2 else _SHAFTS)[arrow.style]
        style = shaft + arrow.head
        if arrow.num >= 3:
            out += f"@{arrow.num}{{{style}}}"
        elif style != "->" or arrow.num != 1:
            out += f"@{{{style}}}"
        if offset:
            out += f"@<{offset:g}ex>"

        sr, sc = d.pos(arrow.source)
        tr, tc = d.pos(arrow.target)
        direction = ("r" if tc > sc else "l") * abs(tc - sc) + ("d" if tr > sr else "u") * abs(tr - sr)
        out += f"[{direction}]"

        if arrow.label is not None and not arrow.label.is_empty():
            label = self.trans(arrow.label, "", depth + 1)
            out += f"{_LABEL_MARKS[arrow.label_position]}{{ {label} }}"
        return out

    # -- sequences -----------------------------------------------------

    def formula(self, f: Formula, indent: str, depth: int) -> str:
        if f.count() == 1 and type(f.tokens[0]) is Matrix:
            env = MATRIX_ENVIRONMENTS.get(f.prefix + f.suffix)
            if env is not None:
                return (
                    f"\\begin{{{env}}}"
                    + self.rows(f.tokens[0], depth, self.cell)
                    + f"\\end{{{env}}}"
                )

        body = self.sequence(f, indent, depth)
        if f.style != FontStyle.normal:
            body = f"\\{STYLE_COMMANDS[f.style]}{{{body}}}"

        if f.prefix == RADICAL:
            return f"\\sqrt{{ {body} }}"

        pre = self.symbol(f.prefix, indent)
        suf = self.symbol(f.suffix, indent)
        if not pre and not suf:
            return body
        return f"\\left{pre or '.'} {body} \\right{suf or '.'}"

    def sequence(self, f: Formula, indent: str, depth: int) -> str:
        parts: list[str] = []
        plain = True
        i = 0
        while i < len(f.tokens):
            t = f.tokens[i]
            found = alphabet_of(t.text) if isinstance(t, Symbol) else None
            if found is not None:
                style, letters = found
                i += 1
                while i < len(f.tokens) and isinstance(f.tokens[i], Symbol):
                    more = alphabet_of(f.tokens[i].text)
                    if more is None or more[0] != style:
                        break
                    letters += more[1]
                    i += 1
                parts.append(f"\\{STYLE_COMMANDS[style]}{{{letters}}}")
                plain = False
                continue
            text = self.trans(t, indent, depth + 1)
            if not isinstance(t, (Symbol, Number)) or text.startswith("\\"):
                plain = False
            parts.append(text)
            i += 1

        sep = "" if plain and f.style != FontStyle.normal else " "
        return sep.join(parts)


def _decoration(deco: Decoration) -> str:
    size = "+" * deco.size if deco.size >= 0 else "-" * -deco.size
    circle = "[o]" if deco.circle else ""
    frame = "F" + ("=" if deco.double else "") + _FRAMES[deco.style]
    return f"*{size}{circle}[{frame}]"
