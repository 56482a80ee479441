"""Review data models.

Kept free of any I/O so the locator, formatter and sink can be used and
tested without a model backend.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class Severity(str, enum.Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    HINT = "HINT"

    @classmethod
    def coerce(cls, value) -> Severity:
        """Map a model-supplied severity onto the enum, defaulting to INFO."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        logger.debug("Unknown severity %r, using INFO", value)
        return cls.INFO


@dataclass(frozen=True)
class Position:
    line: int
    character: int


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position


@dataclass(frozen=True)
class RawIssue:
    """A single issue as reported by the model, before location resolution."""

    severity: Severity
    message: str
    snippet: str | None = None

    @classmethod
    def from_payload(cls, item) -> RawIssue | None:
        """Build a RawIssue from one entry of the ``reviews`` tool argument.

        Returns None for entries that are not objects. A missing message becomes
        an empty string so the issue is still reported.
        """
        if not isinstance(item, dict):
            logger.debug("Skipping non-object review item: %r", item)
            return None
        message = item.get("message")
        if message is None:
            logger.debug("Review item without message: %r", item)
            message = ""
        elif not isinstance(message, str):
            message = str(message)
        snippet = item.get("codeSnippet")
        if not isinstance(snippet, str):
            snippet = None
        return cls(severity=Severity.coerce(item.get("severity")), message=message.strip(), snippet=snippet)


@dataclass(frozen=True)
class ResolvedIssue:
    """A RawIssue mapped onto a concrete document location.

    ``located`` is False when the snippet could not be found and the default
    line-0 position was used instead.
    """

    severity: Severity
    message: str
    line: int
    column: int
    range: Range
    located: bool = True
