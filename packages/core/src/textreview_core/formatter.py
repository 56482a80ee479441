"""Turn raw model issues into located, displayable issues."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Sequence

from textreview_core.locator import DEFAULT_STRATEGIES, SnippetStrategy, locate
from textreview_core.models import Position, Range, ResolvedIssue
from textreview_core.protocol import render_line

if TYPE_CHECKING:
    from textreview_core.document import Document
    from textreview_core.models import RawIssue


def resolve_range(document: Document, line: int, column: int) -> tuple[int, int, Range]:
    """Clamp a (line, column) pair into the document and span to end of line.

    Ranges run from the flagged point to the end of its line rather than the
    length of the quoted snippet; consumers highlight whole line tails.
    """
    safe_line = max(0, min(line, document.line_count - 1))
    length = len(document.line_at(safe_line))
    safe_column = max(0, min(column, length))
    rng = Range(Position(safe_line, safe_column), Position(safe_line, length))
    return safe_line, safe_column, rng


def format_issues(
    issues: Iterable[RawIssue],
    document: Document,
    strategies: Sequence[SnippetStrategy] = DEFAULT_STRATEGIES,
) -> list[ResolvedIssue]:
    """Resolve each issue's snippet against ``document``, preserving input order.

    Issues whose snippet cannot be placed land on line 0 instead of being
    dropped.
    """
    resolved = []
    for issue in issues:
        position = locate(issue.snippet, document, strategies)
        if position is not None:
            line, column, rng = resolve_range(document, position.line, position.character)
        else:
            line, column, rng = resolve_range(document, 0, 0)
        resolved.append(
            ResolvedIssue(
                severity=issue.severity,
                message=issue.message,
                line=line,
                column=column,
                range=rng,
                located=position is not None,
            )
        )
    return resolved


def render_issues(resolved: Iterable[ResolvedIssue]) -> str:
    lines = []
    for r in resolved:
        if r.located:
            lines.append(render_line(r.severity, r.message, r.line, r.column))
        else:
            lines.append(render_line(r.severity, r.message))
    return "\n".join(lines)
