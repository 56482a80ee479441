"""Review orchestration: host events in, diagnostics out.

    host event (open / save / manual) → ReviewService.lint_if_needed()
        → ReviewScheduler.submit()        cooldown gate + bounded pool
        → lint_document()                 on a worker thread
            → ReviewClient.fetch_issues() network round trip
            → format_issues()             snippet → line/column
            → DiagnosticsSink.publish()   replace, or discard if closed

ReviewService holds no editor types. Whatever hosts it (the CLI, a watcher,
an editor bridge) translates its own events into these method calls.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import TYPE_CHECKING, Sequence

from textreview_core.document import is_text_document
from textreview_core.formatter import format_issues
from textreview_core.scheduler import ReviewScheduler
from textreview_core.utils.paths import should_exclude

if TYPE_CHECKING:
    from textreview_core.client import ReviewClient
    from textreview_core.document import Document
    from textreview_core.models import ResolvedIssue
    from textreview_core.sink import DiagnosticsSink

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(
        self,
        config: dict,
        client: ReviewClient,
        sink: DiagnosticsSink,
        scheduler: ReviewScheduler | None = None,
        roots: Sequence[str] = (),
    ):
        self.config = config
        self.client = client
        self.sink = sink
        self.scheduler = scheduler or ReviewScheduler(
            max_workers=int(config.get("threads", 2)),
            cooldown=float(config.get("cooldown_seconds", 30)),
        )
        self.roots = list(roots)
        self.auto_review = bool(config.get("auto_review", True))
        self.auto_review_on_open = bool(config.get("auto_review_on_open", True))

    # ------------------------------------------------------------------ #
    # Host events                                                          #
    # ------------------------------------------------------------------ #

    def on_save(self, document: Document) -> Future | None:
        if not self.auto_review:
            return None
        return self.lint_if_needed(document)

    def on_open(self, document: Document) -> Future | None:
        if not self.auto_review_on_open:
            return None
        return self.lint_if_needed(document)

    def on_close(self, document: Document) -> None:
        self.sink.delete(document.uri)

    def review_now(self, document: Document) -> Future | None:
        """Manual review: same filters and queue, but the cooldown is bypassed."""
        if not self.is_reviewable(document):
            return None
        return self.scheduler.review_now(document.uri, lambda: self.lint_document(document))

    def toggle_auto_review(self) -> bool:
        self.auto_review = not self.auto_review
        logger.info("Auto review on save %s", "enabled" if self.auto_review else "disabled")
        return self.auto_review

    def toggle_auto_review_on_open(self) -> bool:
        self.auto_review_on_open = not self.auto_review_on_open
        logger.info("Auto review on open %s", "enabled" if self.auto_review_on_open else "disabled")
        return self.auto_review_on_open

    def deactivate(self, wait: bool = True) -> None:
        self.scheduler.throttle.clear()
        self.scheduler.shutdown(wait=wait)
        self.sink.close()

    # ------------------------------------------------------------------ #
    # Pipeline                                                             #
    # ------------------------------------------------------------------ #

    def is_reviewable(self, document: Document) -> bool:
        if document.is_untitled:
            return False
        if not is_text_document(document.language_id):
            logger.debug("Skipping %s: language %r is not reviewed", document.file_name, document.language_id)
            return False
        if document.path and should_exclude(
            document.path, self.config.get("exclude", []), self.config.get("include", []), self.roots
        ):
            logger.debug("Skipping %s: excluded by path filters", document.file_name)
            return False
        return True

    def lint_if_needed(self, document: Document) -> Future | None:
        logger.debug("lint_if_needed called for %s", document.file_name)
        if not self.is_reviewable(document):
            return None
        return self.scheduler.submit(document.uri, lambda: self.lint_document(document))

    def lint_document(self, document: Document) -> list[ResolvedIssue] | None:
        """Run one review cycle synchronously and publish the result.

        Returns the resolved issues, or None when the backend produced nothing
        usable. A failed cycle still publishes, with no diagnostics.
        """
        logger.info("Reviewing %s", document.file_name)
        issues = self.client.fetch_issues(document)
        resolved = format_issues(issues, document) if issues is not None else []
        if not self.sink.publish(document, resolved):
            logger.debug("Discarded review for %s: document no longer visible", document.file_name)
        return resolved if issues is not None else None
