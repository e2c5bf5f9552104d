"""Bounded-concurrency task scheduler."""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Sequence, TypeVar

from reclaim.core.cancellation import CancellationToken

log = logging.getLogger(__name__)

T = TypeVar("T")

# (completed_count, total, task_index, result, elapsed_ms)
CompletionCallback = Callable[[int, int, int, T, float], None]

DEFAULT_CONCURRENCY = 4


def run_bounded(
    tasks: Sequence[Callable[[], T]],
    concurrency: int = DEFAULT_CONCURRENCY,
    *,
    parallel: bool = True,
    on_complete: CompletionCallback | None = None,
    token: CancellationToken | None = None,
) -> list[T]:
    """Run *tasks* with at most *concurrency* of them in flight at once.

    Results are returned in completion order, which depends on each task's
    latency; callers needing a stable order must sort the output themselves.
    With ``parallel=False`` the tasks run one after another on the calling
    thread.

    ``on_complete`` fires once per finished task, always on the calling
    thread.  Errors raised by the callback are logged and do not stop the
    run.  Errors raised by a task propagate; wrap tasks that may fail.

    If the run is interrupted (``KeyboardInterrupt`` or a task error),
    *token* is cancelled so running tasks can wind down, and tasks that have
    not started yet never start.

    Raises:
        ValueError: If *concurrency* is not a positive integer.
    """
    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError(f"concurrency must be a positive integer, got {concurrency!r}")

    total = len(tasks)
    if total == 0:
        return []

    if not parallel or concurrency == 1 or total == 1:
        return _run_sequential(tasks, on_complete, token)
    return _run_parallel(tasks, min(concurrency, total), on_complete, token)


def _timed(task: Callable[[], T]) -> Callable[[], tuple[T, float]]:
    def _run() -> tuple[T, float]:
        start = time.monotonic()
        result = task()
        return result, (time.monotonic() - start) * 1000

    return _run


def _notify(
    on_complete: CompletionCallback | None,
    completed: int,
    total: int,
    index: int,
    result: T,
    elapsed_ms: float,
) -> None:
    if on_complete is None:
        return
    try:
        on_complete(completed, total, index, result, elapsed_ms)
    except Exception:
        log.exception("Progress callback failed for task %d", index)


def _cancel(token: CancellationToken | None, exc: BaseException) -> None:
    if token is not None:
        token.cancel(f"run interrupted: {type(exc).__name__}")


def _run_sequential(
    tasks: Sequence[Callable[[], T]],
    on_complete: CompletionCallback | None,
    token: CancellationToken | None,
) -> list[T]:
    results: list[T] = []
    total = len(tasks)
    try:
        for index, task in enumerate(tasks):
            result, elapsed_ms = _timed(task)()
            results.append(result)
            _notify(on_complete, len(results), total, index, result, elapsed_ms)
    except BaseException as exc:
        _cancel(token, exc)
        raise
    return results


def _run_parallel(
    tasks: Sequence[Callable[[], T]],
    concurrency: int,
    on_complete: CompletionCallback | None,
    token: CancellationToken | None,
) -> list[T]:
    """Keep the in-flight set topped up to *concurrency* until the queue drains.

    Only this thread touches ``in_flight``; worker threads just run tasks.
    """
    results: list[T] = []
    total = len(tasks)
    queue = iter(enumerate(tasks))
    in_flight: dict[Future, int] = {}

    with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="reclaim-scan") as executor:

        def _launch_next() -> bool:
            for index, task in queue:
                in_flight[executor.submit(_timed(task))] = index
                return True
            return False

        try:
            while len(in_flight) < concurrency and _launch_next():
                pass

            while in_flight:
                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    index = in_flight.pop(future)
                    result, elapsed_ms = future.result()
                    results.append(result)
                    _notify(on_complete, len(results), total, index, result, elapsed_ms)
                    _launch_next()
        except BaseException as exc:
            log.info("Run interrupted with %d of %d tasks finished", len(results), total)
            _cancel(token, exc)
            executor.shutdown(wait=False, cancel_futures=True)
            raise

    return results
