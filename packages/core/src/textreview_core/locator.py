"""Map model-quoted snippets back onto document offsets.

The model identifies issues by quoting text, not by position, and the quote
is not guaranteed to be byte-identical to the document (whitespace changes,
truncation, light paraphrasing). Resolution runs an ordered chain of
strategies; the first one that returns an offset wins:

    WhitespaceFoldingRegexStrategy  literal match, any whitespace run ≈ \\s+
    CooccurrenceStrategy            ≥2 of the first three long words nearby

Every strategy reports the first qualifying match in document order and never
raises; a snippet that cannot be placed is simply None.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Protocol, Sequence

if TYPE_CHECKING:
    from textreview_core.document import Document
    from textreview_core.models import Position

logger = logging.getLogger(__name__)


class SnippetStrategy(Protocol):
    def find(self, snippet: str, text: str) -> int | None: ...


class WhitespaceFoldingRegexStrategy:
    """Escaped literal search where each whitespace run matches one or more whitespace chars."""

    def build_pattern(self, tokens: list[str]) -> str:
        return r"\s+".join(re.escape(t) for t in tokens)

    def find(self, snippet: str, text: str) -> int | None:
        tokens = snippet.split()
        if not tokens:
            return None
        pattern = self.build_pattern(tokens)
        try:
            match = re.search(pattern, text)
        except re.error as e:
            logger.debug("Snippet pattern failed to compile: %s", e)
            return None
        return match.start() if match else None


class CooccurrenceStrategy:
    """Accept a word's first occurrence when another candidate word sits close by.

    Only used for snippets long enough that at least two distinctive words are
    likely; a single common word is never enough to place a snippet.
    """

    MIN_SNIPPET_LENGTH = 15
    MIN_WORD_LENGTH = 3
    MAX_WORDS = 3
    WINDOW = 50
    MIN_HITS = 2

    def find(self, snippet: str, text: str) -> int | None:
        if len(snippet) <= self.MIN_SNIPPET_LENGTH:
            return None
        words = [w for w in snippet.split() if len(w) > self.MIN_WORD_LENGTH][: self.MAX_WORDS]
        for word in words:
            index = text.find(word)
            if index < 0:
                continue
            context = text[max(0, index - self.WINDOW) : index + self.WINDOW]
            if sum(1 for w in words if w in context) >= self.MIN_HITS:
                return index
        return None


DEFAULT_STRATEGIES: tuple[SnippetStrategy, ...] = (
    WhitespaceFoldingRegexStrategy(),
    CooccurrenceStrategy(),
)


def find_offset(
    snippet: str | None,
    text: str,
    strategies: Sequence[SnippetStrategy] = DEFAULT_STRATEGIES,
) -> int | None:
    """Return the offset of the best match for ``snippet`` in ``text``, or None."""
    if not snippet:
        return None
    for strategy in strategies:
        offset = strategy.find(snippet, text)
        if offset is not None:
            logger.debug("Snippet %r located at %d by %s", snippet[:40], offset, type(strategy).__name__)
            return offset
    return None


def locate(
    snippet: str | None,
    document: Document,
    strategies: Sequence[SnippetStrategy] = DEFAULT_STRATEGIES,
) -> Position | None:
    offset = find_offset(snippet, document.text, strategies)
    if offset is None:
        return None
    return document.position_at(offset)
