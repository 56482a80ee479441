"""Tests for diagnostics sinks."""

import io

from rich.console import Console

from textreview_core.client import NO_REVIEW
from textreview_core.document import Document
from textreview_core.formatter import format_issues, render_issues
from textreview_core.models import Position, Range, RawIssue, Severity
from textreview_core.sink import DIAGNOSTIC_SOURCE, ConsoleSink, MemorySink

DOC = Document("file:///notes.md", "The the cat sat.\nSecond line.", path="/notes.md", language_id="markdown")


def _resolved(*issues):
    return format_issues(list(issues), DOC)


class TestMemorySink:
    def test_publish_stores_diagnostics(self):
        sink = MemorySink()
        assert sink.publish(DOC, _resolved(RawIssue(Severity.WARNING, "重複", "The the"))) is True
        [diag] = sink.get(DOC.uri)
        assert diag.message == "重複"
        assert diag.severity == "warning"
        assert diag.source == DIAGNOSTIC_SOURCE
        assert diag.range == Range(Position(0, 0), Position(0, len("The the cat sat.")))

    def test_publish_replaces_previous_set(self):
        sink = MemorySink()
        sink.publish(DOC, _resolved(RawIssue(Severity.ERROR, "old", None), RawIssue(Severity.ERROR, "old2", None)))
        sink.publish(DOC, _resolved(RawIssue(Severity.HINT, "new", "Second")))
        assert [d.message for d in sink.get(DOC.uri)] == ["new"]

    def test_severity_mapping(self):
        sink = MemorySink()
        sink.publish(
            DOC,
            _resolved(
                RawIssue(Severity.ERROR, "e", None),
                RawIssue(Severity.WARNING, "w", None),
                RawIssue(Severity.INFO, "i", None),
                RawIssue(Severity.HINT, "h", None),
            ),
        )
        assert [d.severity for d in sink.get(DOC.uri)] == ["error", "warning", "information", "information"]

    def test_invisible_document_discarded_and_cleared(self):
        visible = {DOC.uri}
        sink = MemorySink(is_visible=lambda uri: uri in visible)
        sink.publish(DOC, _resolved(RawIssue(Severity.ERROR, "stale", None)))
        visible.clear()
        assert sink.publish(DOC, _resolved(RawIssue(Severity.ERROR, "late", None))) is False
        assert sink.get(DOC.uri) == []
        assert DOC.uri not in sink.uris()

    def test_delete(self):
        sink = MemorySink()
        sink.publish(DOC, _resolved(RawIssue(Severity.ERROR, "x", None)))
        sink.delete(DOC.uri)
        assert sink.get(DOC.uri) == []

    def test_close_drops_everything(self):
        sink = MemorySink()
        sink.publish(DOC, _resolved(RawIssue(Severity.ERROR, "x", None)))
        sink.close()
        assert sink.uris() == []


class TestPublishText:
    def test_lines_resolved_and_clamped(self):
        sink = MemorySink()
        sink.publish_text(DOC, "[ERROR]typo [Ln 2, Col 7]\n[WARNING]far away [Ln 99, Col 3]\n[INFO]general")
        diags = sink.get(DOC.uri)
        assert [d.range.start for d in diags] == [Position(1, 7), Position(1, 3), Position(0, 0)]
        assert diags[0].range.end == Position(1, len("Second line."))

    def test_column_clamped_to_line_length(self):
        sink = MemorySink()
        sink.publish_text(DOC, "[HINT]x [Ln 2, Col 500]")
        assert sink.get(DOC.uri)[0].range.start == Position(1, len("Second line."))

    def test_sentinel_clears_diagnostics(self):
        sink = MemorySink()
        sink.publish_text(DOC, "[ERROR]old")
        sink.publish_text(DOC, NO_REVIEW)
        assert sink.get(DOC.uri) == []

    def test_multiline_message_round_trips_as_one_issue(self):
        doc = Document("file:///t.md", "first\nsecond has typo here\n")
        resolved = format_issues([RawIssue(Severity.ERROR, "bad\nwording", "has typo")], doc)
        sink = MemorySink()
        sink.publish_text(doc, render_issues(resolved))
        [diag] = sink.get(doc.uri)
        assert diag.message == "bad wording"
        assert diag.range.start == Position(1, 7)


class TestConsoleSink:
    def _sink(self):
        buf = io.StringIO()
        return ConsoleSink(console=Console(file=buf, width=200, color_system=None)), buf

    def test_prints_each_issue(self):
        sink, buf = self._sink()
        sink.publish(DOC, _resolved(RawIssue(Severity.WARNING, "重複した単語", "The the")))
        out = buf.getvalue()
        assert "/notes.md" in out
        assert "line 1, col 0" in out
        assert "WARNING" in out
        assert "重複した単語" in out

    def test_markup_in_message_is_escaped(self):
        sink, buf = self._sink()
        sink.publish(DOC, _resolved(RawIssue(Severity.INFO, "use [bold] sparingly", None)))
        assert "use [bold] sparingly" in buf.getvalue()

    def test_clean_document(self):
        sink, buf = self._sink()
        sink.publish(DOC, [])
        assert "no issues found" in buf.getvalue()
        assert sink.get(DOC.uri) == []
