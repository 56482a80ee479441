"""Read-only document model with offset <-> (line, column) conversion."""

from __future__ import annotations

import bisect
import re
from pathlib import Path

from textreview_core.models import Position

TEXT_DOCUMENT_LANGUAGE_IDS = {
    "markdown",
    "plaintext",
    "latex",
    "tex",
    "rst",
    "org",
    "md",
    "txt",
}

EXTENSION_LANGUAGE_IDS = {
    ".md": "markdown",
    ".markdown": "markdown",
    ".txt": "plaintext",
    ".tex": "latex",
    ".rst": "rst",
    ".org": "org",
}

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def is_text_document(language_id: str) -> bool:
    return language_id in TEXT_DOCUMENT_LANGUAGE_IDS


def language_id_for(path: str | Path) -> str:
    """Guess a language id from the file extension; unknown suffixes map to the suffix itself."""
    suffix = Path(path).suffix.lower()
    return EXTENSION_LANGUAGE_IDS.get(suffix, suffix.lstrip(".") or "plaintext")


class Document:
    """An open text buffer.

    The review pipeline only ever reads from a Document. Line starts are
    computed once at construction, so a Document is a snapshot: build a new
    one when the underlying text changes.
    """

    def __init__(
        self,
        uri: str,
        text: str,
        path: str | None = None,
        language_id: str = "plaintext",
        is_untitled: bool = False,
    ):
        self.uri = uri
        self.text = text
        self.path = path
        self.language_id = language_id
        self.is_untitled = is_untitled
        # Each entry is (start, end) of the line content, excluding the terminator.
        self._lines: list[tuple[int, int]] = []
        start = 0
        for m in _LINE_BREAK.finditer(text):
            self._lines.append((start, m.start()))
            start = m.end()
        self._lines.append((start, len(text)))
        self._starts = [s for s, _ in self._lines]

    @classmethod
    def from_path(cls, path: str | Path) -> Document:
        p = Path(path).resolve()
        text = p.read_text(encoding="utf-8", errors="replace")
        return cls(uri=p.as_uri(), text=text, path=str(p), language_id=language_id_for(p))

    @property
    def file_name(self) -> str:
        return self.path or self.uri

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line_at(self, line: int) -> str:
        start, end = self._lines[line]
        return self.text[start:end]

    def position_at(self, offset: int) -> Position:
        offset = max(0, min(offset, len(self.text)))
        line = bisect.bisect_right(self._starts, offset) - 1
        start, end = self._lines[line]
        # An offset inside a line terminator belongs to the end of that line.
        return Position(line=line, character=min(offset, end) - start)

    def offset_at(self, position: Position) -> int:
        line = max(0, min(position.line, self.line_count - 1))
        start, end = self._lines[line]
        return start + max(0, min(position.character, end - start))

    def __repr__(self) -> str:
        return f"Document({self.uri!r}, lines={self.line_count})"
