"""Cancellable worker pool over a fixed list of work items."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Generic, Sequence, TypeVar

from reclaim.core.cancellation import CancellationToken

log = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

# (item, worker_id, scanned_count, total_count)
PoolProgressCallback = Callable[[T, int, int, int], None]


@dataclass
class PoolReport(Generic[T, R]):
    """Outcome of a pool run."""

    results: list[tuple[T, R]] = field(default_factory=list)
    errors: list[tuple[T, str]] = field(default_factory=list)
    processed: int = 0
    cancelled: bool = False


class _Cursor:
    """Shared claim index over the item list."""

    def __init__(self, total: int) -> None:
        self._lock = threading.Lock()
        self._next = 0
        self._done = 0
        self.total = total

    def claim(self) -> int | None:
        with self._lock:
            if self._next >= self.total:
                return None
            index = self._next
            self._next += 1
            return index

    def finish(self) -> int:
        with self._lock:
            self._done += 1
            return self._done


def run_pool(
    items: Sequence[T],
    worker_count: int,
    process: Callable[[T], R],
    *,
    on_progress: PoolProgressCallback | None = None,
    token: CancellationToken | None = None,
) -> PoolReport[T, R]:
    """Process *items* on *worker_count* threads until done or cancelled.

    Each worker claims the next unclaimed item and stops claiming once
    *token* is cancelled or the list is exhausted.  Cancellation is
    cooperative: items already being processed run to completion (work that
    wraps an external process should register ``terminate`` with
    ``token.on_cancel``), but no new item starts afterwards.

    Raises:
        ValueError: If *worker_count* is not a positive integer.
    """
    if isinstance(worker_count, bool) or not isinstance(worker_count, int) or worker_count < 1:
        raise ValueError(f"worker_count must be a positive integer, got {worker_count!r}")

    report: PoolReport[T, R] = PoolReport()
    total = len(items)
    if total == 0:
        return report

    cursor = _Cursor(total)
    report_lock = threading.Lock()

    def _worker(worker_id: int) -> None:
        while token is None or not token.cancelled:
            index = cursor.claim()
            if index is None:
                return
            item = items[index]
            try:
                result = process(item)
            except Exception as exc:
                log.exception("Worker %d failed to process %r", worker_id, item)
                with report_lock:
                    report.errors.append((item, str(exc)))
            else:
                with report_lock:
                    report.results.append((item, result))

            scanned = cursor.finish()
            if on_progress is not None:
                try:
                    on_progress(item, worker_id, scanned, total)
                except Exception:
                    log.exception("Pool progress callback failed")

    workers = min(worker_count, total)
    if workers == 1:
        _worker(0)
    else:
        threads = [
            threading.Thread(target=_worker, args=(worker_id,), name=f"reclaim-pool-{worker_id}", daemon=True)
            for worker_id in range(workers)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    report.processed = len(report.results) + len(report.errors)
    report.cancelled = token is not None and token.cancelled and report.processed < total
    if report.cancelled:
        log.info("Pool cancelled after %d of %d items", report.processed, total)
    return report
