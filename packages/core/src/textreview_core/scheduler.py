"""Per-document cooldown gating plus a bounded worker pool for reviews.

Two independent controls keep the backend from being flooded:

- ThrottleState remembers when each document was last accepted. A
  submission inside the cooldown window is dropped outright, not deferred.
  The timestamp is stamped on acceptance, before the review runs, so a slow
  review cannot let repeated saves pile up behind it.
- ReviewScheduler runs accepted reviews on a fixed-size thread pool shared
  by all documents. Excess work waits in FIFO order.

Nothing is cancellable once accepted. A task that raises is logged and
recorded as a failed TaskResult; it never takes the pool down.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 30.0
DEFAULT_MAX_WORKERS = 2
_RESULT_HISTORY = 200


class ThrottleState:
    """Last-accepted timestamps keyed by document identifier."""

    def __init__(self):
        self._lock = threading.Lock()
        self._last_run: dict[str, float] = {}

    def try_acquire(self, document_id: str, now: float, cooldown: float) -> bool:
        """Stamp ``document_id`` with ``now`` and return True if its cooldown has elapsed."""
        with self._lock:
            last = self._last_run.get(document_id)
            if last is not None and now - last < cooldown:
                return False
            self._last_run[document_id] = now
            return True

    def reset(self, document_id: str) -> None:
        with self._lock:
            self._last_run.pop(document_id, None)

    def last_run(self, document_id: str) -> float | None:
        with self._lock:
            return self._last_run.get(document_id)

    def clear(self) -> None:
        with self._lock:
            self._last_run.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_run)


@dataclass
class TaskResult:
    document_id: str
    ok: bool
    value: Any = None
    error: BaseException | None = None


class ReviewScheduler:
    def __init__(
        self,
        throttle: ThrottleState | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        cooldown: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.throttle = throttle if throttle is not None else ThrottleState()
        self.max_workers = max_workers
        self.cooldown = cooldown
        self._clock = clock
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="textreview")
        self._results: deque[TaskResult] = deque(maxlen=_RESULT_HISTORY)
        self._results_lock = threading.Lock()

    def submit(self, document_id: str, run: Callable[[], Any]) -> Future | None:
        """Queue ``run`` unless ``document_id`` was accepted within the cooldown.

        Returns the Future of the queued task, or None when the submission was
        dropped. The Future always resolves to a TaskResult.
        """
        if not self.throttle.try_acquire(document_id, self._clock(), self.cooldown):
            logger.debug("Cooldown active for %s; skipping review", document_id)
            return None
        logger.debug("Queueing review for %s", document_id)
        return self._executor.submit(self._run, document_id, run)

    def review_now(self, document_id: str, run: Callable[[], Any]) -> Future | None:
        """Submit ``run`` bypassing the cooldown for this document."""
        self.throttle.reset(document_id)
        return self.submit(document_id, run)

    def _run(self, document_id: str, run: Callable[[], Any]) -> TaskResult:
        try:
            result = TaskResult(document_id, ok=True, value=run())
        except Exception as e:
            logger.exception("Review task for %s failed", document_id)
            result = TaskResult(document_id, ok=False, error=e)
        with self._results_lock:
            self._results.append(result)
        return result

    @property
    def results(self) -> list[TaskResult]:
        with self._results_lock:
            return list(self._results)

    @property
    def failures(self) -> list[TaskResult]:
        return [r for r in self.results if not r.ok]

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> ReviewScheduler:
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown(wait=True)
