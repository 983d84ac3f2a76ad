"""Markup written by the emitter reads back into the expected AST shape."""

from __future__ import annotations

from typemath.markup import NodeKind, parse_markup, transcribe
from typemath.symbols import FontStyle
from typemath.tree import (
    Arrow,
    Decoration,
    Formula,
    LabelPosition,
    Matrix,
    Number,
    Symbol,
    make_accent,
    make_big_operator,
    make_diagram,
    make_frac,
    make_index,
    make_infer,
    make_power,
)


class TestRoundTrip:
    def test_frac(self) -> None:
        node = parse_markup(transcribe(make_frac([Number("1")], [Number("2")])))
        assert node.kind == NodeKind.command
        assert node.value == "frac"
        assert [c.value for c in node.children] == ["1", "2"]

    def test_infer_keeps_premise_and_conclusion(self) -> None:
        s = make_infer([Symbol("A")], [Symbol("B")], [Symbol("R")])
        node = parse_markup(transcribe(s))
        assert node.value == "infer"
        label, conclusion, premise = node.children
        assert (label.value, conclusion.value, premise.value) == ("R", "B", "A")

    def test_pmatrix(self) -> None:
        m = Matrix(2, 2)
        for i in range(4):
            m.set_slot(i, Formula([Number(str(i))]))
        node = parse_markup(transcribe(Formula([m], "(", ")")))
        assert node.kind == NodeKind.environment
        assert node.value == "pmatrix"
        rows = node.children[0].children
        assert [[c.value for c in r.children] for r in rows] == [["0", "1"], ["2", "3"]]

    def test_diagram(self) -> None:
        d = make_diagram(1, 2)
        d.set_slot(0, Formula([Symbol("A")]))
        d.set_slot(1, Formula([Symbol("B")]))
        d.add_arrow(Arrow(0, 1, num=2, label=Formula([Symbol("f")])))
        node = parse_markup(transcribe(d))
        assert node.value == "xymatrix"
        (row,) = node.children[0].children
        cell, target = row.children
        assert target.value == "B"
        arrow = cell.children[1]
        assert arrow.value == "ar"
        assert arrow.children[1].value == "=>"
        assert arrow.children[3].value == "r"
        assert arrow.children[5].value == "f"

    def test_symbol_command(self) -> None:
        node = parse_markup(transcribe(Formula([Symbol("α"), Symbol("≤"), Number("2")])))
        assert [c.value for c in node.children] == ["alpha", "leq", "2"]


class TestScriptsRoundTrip:
    def test_single_character_power(self) -> None:
        node = parse_markup(transcribe(Formula([Symbol("x"), make_power([Number("2")])])))
        base, script = node.children
        assert base.value == "x"
        assert script.kind == NodeKind.command
        assert script.value == "^"
        assert script.arg(0).kind == NodeKind.number
        assert script.arg(0).value == "2"

    def test_braced_power(self) -> None:
        exponent = [Number("1"), Symbol("+"), Symbol("n")]
        node = parse_markup(transcribe(Formula([Symbol("x"), make_power(exponent)])))
        script = node.children[1]
        assert script.value == "^"
        assert [c.value for c in script.arg(0).children] == ["1", "+", "n"]

    def test_single_character_index(self) -> None:
        node = parse_markup(transcribe(Formula([Symbol("a"), make_index([Symbol("i")])])))
        script = node.children[1]
        assert script.value == "_"
        assert script.arg(0).value == "i"

    def test_braced_index(self) -> None:
        node = parse_markup(transcribe(Formula([Symbol("a"), make_index([Symbol("i"), Symbol("j")])])))
        script = node.children[1]
        assert script.value == "_"
        assert [c.value for c in script.arg(0).children] == ["i", "j"]

    def test_big_operator_bounds(self) -> None:
        s = make_big_operator("∑", [Symbol("i"), Symbol("="), Number("1")], [Symbol("n")])
        node = parse_markup(transcribe(s))
        op, lower, upper = node.children
        assert op.value == "sum"
        assert lower.value == "_"
        assert [c.value for c in lower.arg(0).children] == ["i", "=", "1"]
        assert upper.value == "^"
        assert upper.arg(0).value == "n"

    def test_accent(self) -> None:
        node = parse_markup(transcribe(make_accent("^", [Symbol("x"), Symbol("y")])))
        assert node.kind == NodeKind.command
        assert node.value == "widehat"
        assert [c.value for c in node.arg(0).children] == ["x", "y"]


class TestFormulaRoundTrip:
    def test_font_style(self) -> None:
        f = Formula([Symbol("a"), Symbol("b")], style=FontStyle.bold)
        node = parse_markup(transcribe(f))
        assert node.value == "mathbf"
        assert [c.value for c in node.arg(0).children] == ["a", "b"]

    def test_left_right_brackets(self) -> None:
        f = Formula([Symbol("x"), Symbol("+"), Number("1")], "(", ")")
        node = parse_markup(transcribe(f))
        left, *body, right = node.children
        assert (left.value, left.arg(0).value) == ("left", "(")
        assert [c.value for c in body] == ["x", "+", "1"]
        assert (right.value, right.arg(0).value) == ("right", ")")

    def test_sqrt(self) -> None:
        node = parse_markup(transcribe(Formula([Number("2")], "√", "")))
        assert node.value == "sqrt"
        assert node.arg(0) is None
        assert node.arg(1).kind == NodeKind.number
        assert node.arg(1).value == "2"

    def test_bare_matrix_array(self) -> None:
        m = Matrix(2, 3)
        for i in range(6):
            m.set_slot(i, Formula([Number(str(i))]))
        node = parse_markup(transcribe(m))
        assert node.kind == NodeKind.environment
        assert node.value == "array"
        columns, body = node.children
        assert [c.value for c in columns.children] == ["c", "c", "c"]
        rows = body.children
        assert len(rows) == 2
        assert [[c.value for c in r.children] for r in rows] == [["0", "1", "2"], ["3", "4", "5"]]


class TestDiagramRoundTrip:
    def _pair(self):
        d = make_diagram(1, 2)
        d.set_slot(0, Formula([Symbol("A")]))
        d.set_slot(1, Formula([Symbol("B")]))
        return d

    def test_decorated_cell(self) -> None:
        d = self._pair()
        d.set_decoration(0, 0, Decoration(size=1, circle=True))
        d.add_arrow(Arrow(0, 1))
        node = parse_markup(transcribe(d))
        (row,) = node.children[0].children
        deco, arrow = row.children[0].children
        assert deco.value == "*"
        assert [a.value for a in deco.children] == ["+", "o", "F", "A"]
        assert arrow.value == "ar"
        assert arrow.arg(3).value == "r"

    def test_parallel_arrows_are_shifted(self) -> None:
        d = self._pair()
        d.add_arrow(Arrow(0, 1))
        d.add_arrow(Arrow(0, 1, label=Formula([Symbol("g")]), label_position=LabelPosition.below))
        node = parse_markup(transcribe(d))
        (row,) = node.children[0].children
        source, first, second = row.children[0].children
        assert source.value == "A"
        assert first.arg(2).value == "-0.5ex"
        assert second.arg(2).value == "0.5ex"
        assert (first.arg(3).value, second.arg(3).value) == ("r", "r")
        assert first.arg(4) is None
        assert (second.arg(4).value, second.arg(5).value) == ("_", "g")
        assert row.children[1].value == "B"
