"""Tests for the typemath structured event logging system."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    return tmp_path / "logs"


@pytest.fixture
def sink(log_dir: Path):
    from typemath.logging.sink import EventSink

    return EventSink(log_dir)


def _lines(log_dir: Path) -> list[dict]:
    path = log_dir / "events.ndjson"
    return [json.loads(line) for line in path.read_text().strip().splitlines()]


# ---------------------------------------------------------------------------
# A) Event schema
# ---------------------------------------------------------------------------


class TestTypeMathEvent:
    def test_event_defaults(self) -> None:
        from typemath.logging.events import EventLevel, EventType, TypeMathEvent

        evt = TypeMathEvent(
            level=EventLevel.info,
            event_type=EventType.markup_parsed,
            message="hello",
        )
        assert evt.schema_version == 1
        assert evt.ts.endswith("Z")
        assert evt.level == "info"
        assert evt.event_type == "markup_parsed"
        assert evt.context == {}
        assert evt.error_code is None

    def test_event_serialization(self) -> None:
        from typemath.logging.events import EventLevel, EventType, TypeMathEvent

        evt = TypeMathEvent(
            level=EventLevel.warning,
            event_type=EventType.evaluation_failed,
            message="division by zero",
            error_code="eval_domain_error",
        )
        d = evt.model_dump()
        assert d["level"] == "warning"
        assert d["event_type"] == "evaluation_failed"
        assert d["error_code"] == "eval_domain_error"

    def test_all_event_types_exist(self) -> None:
        from typemath.logging.events import EventType

        expected = {
            "markup_parsed", "markup_transcribed",
            "evaluation_completed", "evaluation_failed",
            "depth_exceeded",
        }
        assert {e.value for e in EventType} == expected

    def test_error_codes_are_strings(self) -> None:
        from typemath.logging import events

        codes = [
            events.EVAL_FAILED,
            events.EVAL_TYPE_MISMATCH,
            events.EVAL_DIMENSION_MISMATCH,
            events.EVAL_DOMAIN_ERROR,
            events.EVAL_UNREDUCED,
            events.EVAL_TOO_DEEP,
            events.MARKUP_TOO_DEEP,
        ]
        for code in codes:
            assert isinstance(code, str)
            assert len(code) > 0
        assert len(set(codes)) == len(codes)


# ---------------------------------------------------------------------------
# B) Context truncation
# ---------------------------------------------------------------------------


class TestTruncation:
    def test_long_strings_cut(self) -> None:
        from typemath.logging.events import truncate_context

        out = truncate_context({"source": "x" * 1000, "n": 3})
        assert out["source"].startswith("x" * 256)
        assert out["source"].endswith("...[truncated]")
        assert out["n"] == 3

    def test_nested_values(self) -> None:
        from typemath.logging.events import truncate_context

        out = truncate_context({"inner": {"s": "y" * 300}, "items": ["z" * 300, 1]})
        assert out["inner"]["s"].endswith("...[truncated]")
        assert out["items"][0].endswith("...[truncated]")
        assert out["items"][1] == 1

    def test_short_strings_untouched(self) -> None:
        from typemath.logging.events import truncate_context

        assert truncate_context({"s": "short"}) == {"s": "short"}


# ---------------------------------------------------------------------------
# C) Filesystem NDJSON sink
# ---------------------------------------------------------------------------


class TestEventSink:
    def test_write_creates_log(self, sink, log_dir) -> None:
        from typemath.logging.events import EventLevel, EventType, TypeMathEvent

        sink.write(TypeMathEvent(
            level=EventLevel.info,
            event_type=EventType.markup_parsed,
            message="parsed",
        ))
        lines = _lines(log_dir)
        assert len(lines) == 1
        assert lines[0]["message"] == "parsed"

    def test_json_sort_keys(self, sink, log_dir) -> None:
        from typemath.logging.events import EventLevel, EventType, TypeMathEvent

        sink.write(TypeMathEvent(
            level=EventLevel.info,
            event_type=EventType.markup_parsed,
            message="m",
        ))
        line = (log_dir / "events.ndjson").read_text().strip()
        keys = list(json.loads(line).keys())
        assert keys == sorted(keys)

    def test_read_global_returns_most_recent_first(self, sink) -> None:
        from typemath.logging.events import EventLevel, EventType, TypeMathEvent

        for i in range(5):
            sink.write(TypeMathEvent(
                level=EventLevel.info,
                event_type=EventType.evaluation_completed,
                message=f"eval {i}",
            ))
        events = sink.read_global()
        assert len(events) == 5
        assert events[0]["message"] == "eval 4"
        assert events[4]["message"] == "eval 0"

    def test_read_global_filters(self, sink) -> None:
        from typemath.logging.events import EventLevel, EventType, TypeMathEvent

        sink.write(TypeMathEvent(
            level=EventLevel.info,
            event_type=EventType.evaluation_completed,
            message="ok",
        ))
        sink.write(TypeMathEvent(
            level=EventLevel.warning,
            event_type=EventType.evaluation_failed,
            message="bad",
        ))
        assert [e["message"] for e in sink.read_global(level="warning")] == ["bad"]
        assert [e["message"] for e in sink.read_global(event_type="evaluation_completed")] == ["ok"]

    def test_read_global_limit(self, sink) -> None:
        from typemath.logging.events import EventLevel, EventType, TypeMathEvent

        for i in range(10):
            sink.write(TypeMathEvent(
                level=EventLevel.info,
                event_type=EventType.markup_parsed,
                message=f"p {i}",
            ))
        assert len(sink.read_global(limit=3)) == 3

    def test_bad_lines_skipped(self, sink, log_dir) -> None:
        from typemath.logging.events import EventLevel, EventType, TypeMathEvent

        sink.write(TypeMathEvent(
            level=EventLevel.info,
            event_type=EventType.markup_parsed,
            message="good",
        ))
        with open(log_dir / "events.ndjson", "a") as f:
            f.write("{not json\n")
        events = sink.read_global()
        assert [e["message"] for e in events] == ["good"]

    def test_tail_read_drops_partial_line(self, log_dir) -> None:
        from typemath.logging.events import EventLevel, EventType, TypeMathEvent
        from typemath.logging.sink import EventSink

        small = EventSink(log_dir, tail_bytes=400)
        for i in range(20):
            small.write(TypeMathEvent(
                level=EventLevel.info,
                event_type=EventType.markup_parsed,
                message=f"p {i}",
            ))
        events = small.read_global()
        assert 0 < len(events) < 20
        assert events[0]["message"] == "p 19"

    def test_read_missing_log_returns_empty(self, sink) -> None:
        assert sink.read_global() == []


# ---------------------------------------------------------------------------
# D) Module-level emit helpers (safety)
# ---------------------------------------------------------------------------


class TestEmitHelpers:
    def test_emit_without_log_dir_is_noop(self, tmp_path) -> None:
        from typemath.logging.events import EventType, emit_info

        emit_info(EventType.markup_parsed, "test")
        assert not (tmp_path / "logs").exists()

    def test_set_log_dir_enables_logging(self, log_dir) -> None:
        from typemath.logging.events import EventType, emit_info, set_log_dir

        set_log_dir(log_dir)
        emit_info(EventType.markup_parsed, "hello from test")
        lines = _lines(log_dir)
        assert len(lines) == 1
        assert lines[0]["message"] == "hello from test"

    def test_emit_warning_sets_error_code(self, log_dir) -> None:
        from typemath.logging.events import EventType, emit_warning, set_log_dir

        set_log_dir(log_dir)
        emit_warning(EventType.evaluation_failed, "boom", error_code="eval_failed")
        (parsed,) = _lines(log_dir)
        assert parsed["level"] == "warning"
        assert parsed["error_code"] == "eval_failed"

    def test_emit_error(self, log_dir) -> None:
        from typemath.logging.events import EventType, emit_error, set_log_dir

        set_log_dir(log_dir)
        emit_error(EventType.depth_exceeded, "deep", error_code="markup_too_deep")
        (parsed,) = _lines(log_dir)
        assert parsed["level"] == "error"

    def test_emit_truncates_context(self, log_dir) -> None:
        from typemath.logging.events import EventType, emit_info, set_log_dir

        set_log_dir(log_dir)
        emit_info(EventType.markup_parsed, "long", context={"source": "a" * 5000})
        (parsed,) = _lines(log_dir)
        assert len(parsed["context"]["source"]) < 300

    def test_emit_never_raises(self, log_dir, capsys) -> None:
        import typemath.logging.events as mod
        from typemath.logging.events import EventType, emit_info

        class _Broken:
            def write(self, event) -> None:
                raise OSError("disk full")

        mod._sink = _Broken()
        mod._last_stderr_ts = -2 * mod._STDERR_INTERVAL_SECS
        emit_info(EventType.markup_parsed, "x")
        assert "logging failed" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# E) Events emitted by the library
# ---------------------------------------------------------------------------


class TestLibraryEvents:
    def test_parse_emits_markup_parsed(self, log_dir) -> None:
        from typemath.logging.events import set_log_dir
        from typemath.markup import parse_markup

        set_log_dir(log_dir)
        parse_markup(r"\newcommand{\foo}[1]{#1}\foo{x}")
        (parsed,) = _lines(log_dir)
        assert parsed["event_type"] == "markup_parsed"
        assert parsed["context"]["macros"] == ["foo"]

    def test_transcribe_emits_markup_transcribed(self, log_dir) -> None:
        from typemath.logging.events import set_log_dir
        from typemath.markup import transcribe
        from typemath.tree import Symbol

        set_log_dir(log_dir)
        transcribe(Symbol("α"), proof=True)
        (parsed,) = _lines(log_dir)
        assert parsed["event_type"] == "markup_transcribed"
        assert parsed["context"] == {"length": 6, "proof": True}

    def test_depth_exceeded_warning(self, log_dir) -> None:
        from typemath.errors import MarkupDepthError
        from typemath.logging.events import set_log_dir
        from typemath.markup import parse_markup

        set_log_dir(log_dir)
        with pytest.raises(MarkupDepthError):
            parse_markup("{" * 20, max_depth=5)
        (parsed,) = _lines(log_dir)
        assert parsed["event_type"] == "depth_exceeded"
        assert parsed["level"] == "warning"
        assert parsed["error_code"] == "markup_too_deep"
        assert parsed["context"]["direction"] == "parse"

    def test_evaluation_failed_carries_code(self, log_dir) -> None:
        from typemath.calc import evaluate
        from typemath.linear import read_linear
        from typemath.logging.events import set_log_dir

        set_log_dir(log_dir)
        evaluate(read_linear("1/0").tokens)
        (parsed,) = _lines(log_dir)
        assert parsed["event_type"] == "evaluation_failed"
        assert parsed["error_code"] == "eval_domain_error"
        assert parsed["context"] == {"tokens": 3}

    def test_evaluation_completed(self, log_dir) -> None:
        from typemath.calc import evaluate
        from typemath.linear import read_linear
        from typemath.logging.events import set_log_dir

        set_log_dir(log_dir)
        evaluate(read_linear("0.5*2").tokens)
        (parsed,) = _lines(log_dir)
        assert parsed["event_type"] == "evaluation_completed"
        assert parsed["context"]["approx"] is True
