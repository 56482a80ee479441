"""Line-based diagnostic text format.

One issue per line::

    [WARNING]重複した単語 [Ln 1, Col 0]

The location suffix is optional; the line number is one-based, the column
zero-based. Internally issues travel as structured values and only cross this
format at the edges (``request_review`` output, ``DiagnosticsSink.publish_text``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from textreview_core.models import Severity

DIAGNOSTIC_LINE = re.compile(
    r"^\[(ERROR|WARNING|INFO|HINT)\]\s*:?\s*(.+?)(?:\s+\[Ln\s+(\d+)(?:,\s*Col\s+(\d+))?\])?$",
    re.IGNORECASE,
)

# The line pattern needs a non-empty message.
EMPTY_MESSAGE = "(no message)"


@dataclass(frozen=True)
class ParsedDiagnostic:
    severity: Severity
    message: str
    line: int  # zero-based
    column: int


def render_line(severity: Severity, message: str, line: int | None = None, column: int | None = None) -> str:
    """Render one issue; ``line`` is zero-based and rendered one-based.

    Whitespace runs in ``message`` (newlines included) collapse to one space so
    the issue stays on a single line.
    """
    message = " ".join(message.split()) or EMPTY_MESSAGE
    text = f"[{Severity.coerce(severity).value}]{message}"
    if line is not None:
        text += f" [Ln {line + 1}, Col {column or 0}]"
    return text


def parse_line(text: str) -> ParsedDiagnostic | None:
    m = DIAGNOSTIC_LINE.match(text.strip())
    if not m:
        return None
    severity, message, line, column = m.groups()
    return ParsedDiagnostic(
        severity=Severity(severity.upper()),
        message=message.strip(),
        line=int(line) - 1 if line else 0,
        column=int(column) if column else 0,
    )


def parse_lines(text: str) -> list[ParsedDiagnostic]:
    """Parse every recognisable line; blank and unrecognised lines are ignored."""
    results = []
    for raw in text.split("\n"):
        parsed = parse_line(raw)
        if parsed is not None:
            results.append(parsed)
    return results
