"""Tests for the cancellation token."""

from __future__ import annotations

import threading

from reclaim.core.cancellation import CancellationToken


class TestCancellationToken:
    def test_starts_uncancelled(self):
        token = CancellationToken()
        assert not token.cancelled
        assert token.reason == ""

    def test_cancel_sets_flag_and_reason(self):
        token = CancellationToken()
        token.cancel("user pressed stop")
        assert token.cancelled
        assert token.reason == "user pressed stop"

    def test_first_cancel_wins(self):
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")
        assert token.reason == "first"

    def test_callbacks_run_once(self):
        token = CancellationToken()
        calls = []
        token.on_cancel(lambda: calls.append("a"))
        token.cancel()
        token.cancel()
        assert calls == ["a"]

    def test_callback_after_cancel_runs_immediately(self):
        token = CancellationToken()
        token.cancel()
        calls = []
        token.on_cancel(lambda: calls.append("late"))
        assert calls == ["late"]

    def test_unregister(self):
        token = CancellationToken()
        calls = []
        unregister = token.on_cancel(lambda: calls.append("x"))
        unregister()
        token.cancel()
        assert calls == []

    def test_failing_callback_does_not_block_others(self):
        token = CancellationToken()
        calls = []

        def broken():
            raise RuntimeError("boom")

        token.on_cancel(broken)
        token.on_cancel(lambda: calls.append("ok"))
        token.cancel()
        assert calls == ["ok"]

    def test_wait_returns_when_cancelled_from_other_thread(self):
        token = CancellationToken()
        timer = threading.Timer(0.01, token.cancel)
        timer.start()
        assert token.wait(timeout=5)
        timer.join()

    def test_wait_times_out(self):
        assert CancellationToken().wait(timeout=0.01) is False
