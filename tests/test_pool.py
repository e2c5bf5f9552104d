"""Tests for the cancellable worker pool."""

from __future__ import annotations

import threading

import pytest

from reclaim.core.cancellation import CancellationToken
from reclaim.core.pool import run_pool


class TestRunPool:
    def test_processes_every_item(self):
        report = run_pool(list(range(20)), 4, lambda n: n * n)

        assert report.processed == 20
        assert not report.cancelled
        assert sorted(r for _, r in report.results) == [n * n for n in range(20)]

    def test_empty_items(self):
        report = run_pool([], 3, lambda n: n)
        assert report.processed == 0
        assert report.results == []

    @pytest.mark.parametrize("workers", [0, -1, True])
    def test_rejects_invalid_worker_count(self, workers):
        with pytest.raises(ValueError):
            run_pool([1, 2], workers, lambda n: n)

    def test_errors_are_collected(self):
        def process(n):
            if n == 3:
                raise RuntimeError("bad item")
            return n

        report = run_pool([1, 2, 3, 4], 2, process)

        assert report.processed == 4
        assert report.errors == [(3, "bad item")]
        assert len(report.results) == 3

    def test_progress_reports_each_item(self):
        events = []
        lock = threading.Lock()

        def on_progress(item, worker_id, scanned, total):
            with lock:
                events.append((item, worker_id, scanned, total))

        run_pool(["a", "b", "c"], 2, str.upper, on_progress=on_progress)

        assert sorted(e[0] for e in events) == ["a", "b", "c"]
        assert sorted(e[2] for e in events) == [1, 2, 3]
        assert all(e[3] == 3 for e in events)
        assert all(e[1] in (0, 1) for e in events)

    def test_cancellation_stops_new_claims(self):
        token = CancellationToken()
        started = []

        def process(n):
            started.append(n)
            if n == 2:
                token.cancel("enough")
            return n

        report = run_pool(list(range(10)), 1, process, token=token)

        assert started == [0, 1, 2]
        assert report.processed == 3
        assert report.cancelled

    def test_pre_cancelled_token_processes_nothing(self):
        token = CancellationToken()
        token.cancel()

        report = run_pool([1, 2, 3], 3, lambda n: n, token=token)

        assert report.processed == 0
        assert report.cancelled

    def test_failing_progress_callback_is_contained(self):
        def explode(*args):
            raise RuntimeError("progress broke")

        report = run_pool([1, 2, 3], 2, lambda n: n, on_progress=explode)
        assert report.processed == 3
