"""Diagnostics sinks: where resolved issues end up.

A sink owns the per-document diagnostic collection. Publishing replaces
whatever was stored for the document before; nothing accumulates across
review cycles. Because a review may start while a document is visible and
finish after it was closed, visibility is checked again at publish time and
results for documents that are gone are discarded.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Sequence

from rich.console import Console
from rich.markup import escape

from textreview_core.formatter import resolve_range
from textreview_core.models import Range, ResolvedIssue, Severity
from textreview_core.protocol import parse_lines

if TYPE_CHECKING:
    from textreview_core.document import Document

DIAGNOSTIC_SOURCE = "LLM Reviewer"

_DISPLAY_SEVERITY = {
    Severity.ERROR: "error",
    Severity.WARNING: "warning",
    Severity.INFO: "information",
    Severity.HINT: "information",
}


@dataclass(frozen=True)
class Diagnostic:
    range: Range
    message: str
    severity: str  # "error" | "warning" | "information"
    source: str = DIAGNOSTIC_SOURCE

    @classmethod
    def from_issue(cls, issue: ResolvedIssue) -> Diagnostic:
        return cls(range=issue.range, message=issue.message, severity=_DISPLAY_SEVERITY[issue.severity])


def _always_visible(uri: str) -> bool:
    return True


class DiagnosticsSink(ABC):
    """Per-document diagnostic collection with replace-on-publish semantics.

    Subclasses implement _store, _delete and get. publish() may be called
    from scheduler worker threads; the base class serialises writes.
    """

    def __init__(self, is_visible: Callable[[str], bool] | None = None):
        self.is_visible = is_visible or _always_visible
        self._lock = threading.Lock()

    def publish(self, document: Document, issues: Sequence[ResolvedIssue]) -> bool:
        """Replace the diagnostics for ``document``.

        Returns False (and clears any stale entry) when the document is no
        longer visible.
        """
        with self._lock:
            if not self.is_visible(document.uri):
                self._delete(document.uri)
                return False
            self._store(document, [Diagnostic.from_issue(i) for i in issues])
            return True

    def publish_text(self, document: Document, text: str) -> bool:
        """Publish a review rendered in the line-based text format.

        Lines carrying a ``[Ln …]`` suffix are clamped into the document; lines
        without one land on line 0. Sentinel strings parse to nothing, which
        clears the document's diagnostics.
        """
        issues = []
        for parsed in parse_lines(text):
            line, column, rng = resolve_range(document, parsed.line, parsed.column)
            issues.append(
                ResolvedIssue(
                    severity=parsed.severity,
                    message=parsed.message,
                    line=line,
                    column=column,
                    range=rng,
                )
            )
        return self.publish(document, issues)

    def delete(self, uri: str) -> None:
        with self._lock:
            self._delete(uri)

    @abstractmethod
    def get(self, uri: str) -> list[Diagnostic]:
        """Return the diagnostics currently held for ``uri`` (empty if none)."""

    @abstractmethod
    def _store(self, document: Document, diagnostics: list[Diagnostic]) -> None: ...

    @abstractmethod
    def _delete(self, uri: str) -> None: ...

    def close(self) -> None:
        """Release any resources held by the sink. Default is a no-op."""


class MemorySink(DiagnosticsSink):
    """Keeps diagnostics in a dict keyed by document URI."""

    def __init__(self, is_visible: Callable[[str], bool] | None = None):
        super().__init__(is_visible)
        self._collection: dict[str, list[Diagnostic]] = {}

    def get(self, uri: str) -> list[Diagnostic]:
        return list(self._collection.get(uri, []))

    def uris(self) -> list[str]:
        return list(self._collection)

    def _store(self, document: Document, diagnostics: list[Diagnostic]) -> None:
        self._collection[document.uri] = diagnostics

    def _delete(self, uri: str) -> None:
        self._collection.pop(uri, None)

    def close(self) -> None:
        self._collection.clear()


class ConsoleSink(MemorySink):
    """MemorySink that also prints each published set to the terminal."""

    _severity_color = {"error": "red", "warning": "yellow", "information": "blue"}

    def __init__(self, console: Console | None = None, is_visible: Callable[[str], bool] | None = None):
        super().__init__(is_visible)
        self.console = console or Console()

    def _store(self, document: Document, diagnostics: list[Diagnostic]) -> None:
        super()._store(document, diagnostics)
        name = escape(document.file_name)
        if not diagnostics:
            self.console.print(f"[green]{name}: no issues found.[/green]")
            return
        self.console.print(f"\n[bold cyan]{name}[/bold cyan]  {len(diagnostics)} issue(s)\n")
        for d in diagnostics:
            color = self._severity_color.get(d.severity, "white")
            start = d.range.start
            self.console.print(
                f"  line [bold]{start.line + 1}[/bold], col {start.character}  "
                f"[{color}]{d.severity.upper()}[/{color}]  {escape(d.message)}"
            )
            snippet = document.line_at(start.line)[start.character :].strip()
            if snippet:
                self.console.print(f"    [dim]{escape(snippet)}[/dim]")
