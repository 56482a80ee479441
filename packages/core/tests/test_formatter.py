"""Tests for issue resolution and text rendering."""

from textreview_core.document import Document
from textreview_core.formatter import format_issues, render_issues, resolve_range
from textreview_core.models import Position, Range, RawIssue, Severity


def _doc(text: str) -> Document:
    return Document("file:///notes.md", text, path="/notes.md", language_id="markdown")


class TestFormatIssues:
    def test_duplicate_word_end_to_end(self):
        doc = _doc("The the cat sat.")
        issue = RawIssue(Severity.WARNING, "重複した単語", "The the")
        [resolved] = format_issues([issue], doc)
        assert resolved.line == 0
        assert resolved.column == 0
        assert resolved.located is True
        assert render_issues([resolved]) == "[WARNING]重複した単語 [Ln 1, Col 0]"

    def test_missing_snippet_defaults_to_line_zero(self):
        doc = _doc("first line\nsecond line")
        [resolved] = format_issues([RawIssue(Severity.INFO, "全体的な提案", None)], doc)
        assert (resolved.line, resolved.column) == (0, 0)
        assert resolved.located is False
        assert resolved.range == Range(Position(0, 0), Position(0, len("first line")))

    def test_unlocated_issue_rendered_without_location(self):
        doc = _doc("text")
        resolved = format_issues([RawIssue(Severity.HINT, "語尾", "not in document")], doc)
        assert render_issues(resolved) == "[HINT]語尾"

    def test_range_runs_to_end_of_line(self):
        doc = _doc("first\nsecond line here\nthird")
        [resolved] = format_issues([RawIssue(Severity.ERROR, "typo", "line here")], doc)
        assert resolved.line == 1
        assert resolved.column == 7
        assert resolved.range == Range(Position(1, 7), Position(1, len("second line here")))

    def test_order_preserved_and_nothing_dropped(self):
        doc = _doc("alpha\nbeta\ngamma")
        issues = [
            RawIssue(Severity.HINT, "c", "gamma"),
            RawIssue(Severity.ERROR, "a", "alpha"),
            RawIssue(Severity.ERROR, "a", "alpha"),
            RawIssue(Severity.INFO, "x", None),
        ]
        resolved = format_issues(issues, doc)
        assert [r.message for r in resolved] == ["c", "a", "a", "x"]
        assert [r.line for r in resolved] == [2, 0, 0, 0]

    def test_formatting_is_idempotent(self):
        doc = _doc("The the cat sat.\nA second sentance here.")
        issues = [
            RawIssue(Severity.WARNING, "dup", "The the"),
            RawIssue(Severity.ERROR, "spelling", "second sentance"),
            RawIssue(Severity.INFO, "general", None),
        ]
        assert format_issues(issues, doc) == format_issues(issues, doc)

    def test_empty_document(self):
        [resolved] = format_issues([RawIssue(Severity.INFO, "empty", "anything")], _doc(""))
        assert resolved.range == Range(Position(0, 0), Position(0, 0))


class TestResolveRange:
    def test_line_clamped_to_last_line(self):
        doc = _doc("one\ntwo\nthree")
        line, column, rng = resolve_range(doc, 99, 0)
        assert line == 2
        assert rng.end == Position(2, 5)

    def test_negative_line_clamped_to_zero(self):
        line, _, _ = resolve_range(_doc("one\ntwo"), -1, 0)
        assert line == 0

    def test_column_clamped_to_line_length(self):
        _, column, rng = resolve_range(_doc("short"), 0, 40)
        assert column == 5
        assert rng.start == rng.end == Position(0, 5)


class TestRenderIssues:
    def test_multiple_lines(self):
        doc = _doc("abc\ndef ghi")
        resolved = format_issues(
            [RawIssue(Severity.ERROR, "one", "abc"), RawIssue(Severity.INFO, "two", "ghi")],
            doc,
        )
        assert render_issues(resolved) == "[ERROR]one [Ln 1, Col 0]\n[INFO]two [Ln 2, Col 4]"

    def test_empty(self):
        assert render_issues([]) == ""
