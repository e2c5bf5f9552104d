"""Tests for the scan/clean engine."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from reclaim.core.cancellation import CancellationToken
from reclaim.core.engine import ScanEngine
from reclaim.core.filtering import FilterConfig
from reclaim.core.registry import ScannerRegistry, UnknownCategoryError
from reclaim.models.category import CATEGORIES, CategoryId
from reclaim.models.clean_result import CleanResult
from reclaim.models.scan_result import CleanableItem, ScanResult
from reclaim.models.scanner import InvalidScanOptions, ScanOptions, Scanner


class FakeScanner(Scanner):
    """Test scanner that doesn't touch the filesystem."""

    category = CATEGORIES[CategoryId.USER_CACHE]

    def __init__(
        self,
        category_id: CategoryId,
        sizes: tuple[int, ...] = (1024,),
        *,
        fail: bool = False,
        fail_clean: bool = False,
        scan_delay: float = 0,
        tracker: ConcurrencyTracker | None = None,
    ):
        self.category = CATEGORIES[category_id]
        self._sizes = sizes
        self._fail = fail
        self._fail_clean = fail_clean
        self._scan_delay = scan_delay
        self._tracker = tracker
        self.seen_options: ScanOptions | None = None
        self.scan_calls = 0

    def scan(self, options: ScanOptions) -> ScanResult:
        self.scan_calls += 1
        self.seen_options = options
        if self._tracker is not None:
            self._tracker.enter()
        try:
            if self._scan_delay:
                time.sleep(self._scan_delay)
            if self._fail:
                raise RuntimeError("scan failed")
            items = [
                CleanableItem(path=Path(f"/fake/{self.id}/{i}"), size_bytes=size, name=f"item{i}")
                for i, size in enumerate(self._sizes)
            ]
            return self.result(items)
        finally:
            if self._tracker is not None:
                self._tracker.leave()

    def clean(self, items, dry_run: bool = False) -> CleanResult:
        if self._fail_clean:
            raise RuntimeError("clean failed")
        return CleanResult(
            category=self.category,
            cleaned_items=len(items),
            freed_bytes=sum(i.size_bytes for i in items),
        )


class ConcurrencyTracker:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.active = 0
        self.peak = 0

    def enter(self) -> None:
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)

    def leave(self) -> None:
        with self._lock:
            self.active -= 1


def _engine(*scanners: Scanner, config: FilterConfig | None = None) -> ScanEngine:
    registry = ScannerRegistry()
    for scanner in scanners:
        registry.register(scanner)
    return ScanEngine(registry, config, check=lambda path: True)


class TestScanEngine:
    def test_failing_scanner_is_reported_not_raised(self):
        engine = _engine(
            FakeScanner(CategoryId.USER_CACHE, (100, 200, 300)),
            FakeScanner(CategoryId.TRASH, fail=True),
        )

        summary = engine.run_all_scans()

        assert summary.total_items == 3
        assert summary.total_bytes == 600
        failed = summary.get(CategoryId.TRASH)
        assert failed is not None
        assert failed.items == ()
        assert failed.error == "scan failed"

    def test_summary_totals_match_results(self):
        engine = _engine(
            FakeScanner(CategoryId.USER_CACHE, (10, 20)),
            FakeScanner(CategoryId.DOWNLOADS, (5,)),
            FakeScanner(CategoryId.TRASH, ()),
        )

        summary = engine.run_all_scans()

        assert summary.total_bytes == sum(r.total_bytes for r in summary.results)
        assert summary.total_items == sum(len(r.items) for r in summary.results)
        for result in summary.results:
            assert result.total_bytes == sum(i.size_bytes for i in result.items)

    def test_run_scans_selects_categories(self):
        engine = _engine(
            FakeScanner(CategoryId.USER_CACHE),
            FakeScanner(CategoryId.TRASH),
        )

        summary = engine.run_scans(["trash"])

        assert [r.category.id for r in summary.results] == [CategoryId.TRASH]

    def test_run_scans_deduplicates_ids(self):
        scanner = FakeScanner(CategoryId.TRASH)
        engine = _engine(scanner)

        summary = engine.run_scans([CategoryId.TRASH, "trash"])

        assert len(summary.results) == 1
        assert scanner.scan_calls == 1

    def test_run_scans_unknown_id(self):
        engine = _engine(FakeScanner(CategoryId.TRASH))
        with pytest.raises(UnknownCategoryError):
            engine.run_scans(["no-such-category"])

    def test_ignored_category_is_never_scanned(self):
        ignored = FakeScanner(CategoryId.DUPLICATES)
        engine = _engine(
            FakeScanner(CategoryId.USER_CACHE),
            ignored,
            config=FilterConfig.from_lists(ignored_categories=["duplicates"]),
        )

        summary = engine.run_all_scans()

        assert summary.get(CategoryId.DUPLICATES) is None
        assert ignored.scan_calls == 0

    @pytest.mark.parametrize("concurrency", [0, -1, True, 2.5])
    def test_invalid_concurrency_rejected_before_scanning(self, concurrency):
        scanner = FakeScanner(CategoryId.TRASH)
        engine = _engine(scanner)

        with pytest.raises(ValueError):
            engine.run_all_scans(concurrency=concurrency)
        assert scanner.scan_calls == 0

    def test_concurrency_bound_is_respected(self):
        tracker = ConcurrencyTracker()
        ids = list(CategoryId)[:6]
        engine = _engine(*(FakeScanner(cid, scan_delay=0.02, tracker=tracker) for cid in ids))

        summary = engine.run_all_scans(concurrency=2)

        assert len(summary.results) == 6
        assert 1 <= tracker.peak <= 2

    def test_sequential_mode_runs_one_at_a_time(self):
        tracker = ConcurrencyTracker()
        engine = _engine(
            *(FakeScanner(cid, scan_delay=0.01, tracker=tracker) for cid in list(CategoryId)[:4])
        )

        summary = engine.run_all_scans(parallel=False, concurrency=4)

        assert len(summary.results) == 4
        assert tracker.peak == 1

    def test_progress_callback(self):
        engine = _engine(FakeScanner(CategoryId.USER_CACHE), FakeScanner(CategoryId.TRASH))
        events: list[tuple[int, int, str]] = []

        engine.run_all_scans(
            on_progress=lambda done, total, scanner, result, ms: events.append((done, total, scanner.id))
        )

        assert sorted(e[0] for e in events) == [1, 2]
        assert all(e[1] == 2 for e in events)
        assert {e[2] for e in events} == {"user-cache", "trash"}

    def test_failing_progress_callback_does_not_abort(self):
        engine = _engine(FakeScanner(CategoryId.USER_CACHE), FakeScanner(CategoryId.TRASH))

        def explode(*args):
            raise RuntimeError("boom")

        summary = engine.run_all_scans(on_progress=explode)
        assert len(summary.results) == 2

    def test_invalid_options_become_error(self):
        class StrictScanner(FakeScanner):
            def scan(self, options):
                raise InvalidScanOptions("days_old must be a non-negative integer, got -1")

        engine = _engine(StrictScanner(CategoryId.DOWNLOADS))

        summary = engine.run_all_scans(ScanOptions(days_old=-1))

        assert "days_old" in summary.results[0].error

    def test_cancelled_token_skips_scanners(self):
        token = CancellationToken()
        token.cancel("user abort")
        scanner = FakeScanner(CategoryId.TRASH)
        engine = _engine(scanner)

        summary = engine.run_all_scans(ScanOptions(token=token))

        assert scanner.scan_calls == 0
        assert summary.results[0].error == "Scan cancelled"

    def test_scanner_cancelled_midway_reports_error(self):
        token = CancellationToken()

        class CancellingScanner(FakeScanner):
            def scan(self, options):
                result = super().scan(options)
                token.cancel("user abort")
                return result

        engine = _engine(CancellingScanner(CategoryId.TRASH, (100, 200)))

        summary = engine.run_all_scans(ScanOptions(token=token))

        assert summary.results[0].error == "Scan cancelled"
        assert summary.total_bytes == 300

    def test_interrupted_run_cancels_token_and_skips_queued_scanners(self):
        token = CancellationToken()
        scanners = [
            FakeScanner(CategoryId.USER_CACHE),
            FakeScanner(CategoryId.TRASH, scan_delay=0.2),
            FakeScanner(CategoryId.DOWNLOADS, scan_delay=0.2),
            FakeScanner(CategoryId.TEMP_FILES, scan_delay=0.2),
        ]
        engine = _engine(*scanners)

        def interrupt(*args):
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            engine.run_all_scans(ScanOptions(token=token), concurrency=2, on_progress=interrupt)

        assert token.cancelled
        assert 1 <= sum(s.scan_calls for s in scanners) <= 2

    def test_options_are_passed_through(self):
        scanner = FakeScanner(CategoryId.DOWNLOADS)
        engine = _engine(scanner)
        options = ScanOptions(days_old=3)

        engine.run_all_scans(options)

        assert scanner.seen_options is options

    def test_ignored_items_are_filtered(self):
        engine = _engine(
            FakeScanner(CategoryId.USER_CACHE, (100, 200)),
            config=FilterConfig.from_lists(ignored_paths=["/fake/user-cache/0"]),
        )

        summary = engine.run_all_scans()

        assert summary.total_items == 1
        assert summary.total_bytes == 200


class TestEngineClean:
    def test_clean_reports_per_category(self):
        engine = _engine(
            FakeScanner(CategoryId.USER_CACHE, (100, 200)),
            FakeScanner(CategoryId.TRASH, (50,)),
        )
        summary = engine.run_all_scans()

        cleaned = engine.clean(summary.results)

        assert cleaned.total_freed_bytes == 350
        assert cleaned.total_cleaned_items == 3
        assert cleaned.total_errors == 0

    def test_clean_skips_empty_results(self):
        engine = _engine(FakeScanner(CategoryId.TRASH, ()))
        summary = engine.run_all_scans()

        cleaned = engine.clean(summary.results)

        assert cleaned.results == ()

    def test_clean_handles_scanner_crash(self):
        engine = _engine(
            FakeScanner(CategoryId.USER_CACHE, (100,)),
            FakeScanner(CategoryId.TRASH, (10, 20), fail_clean=True),
        )
        summary = engine.run_all_scans()

        cleaned = engine.clean(summary.results)

        by_id = {r.category.id: r for r in cleaned.results}
        assert by_id[CategoryId.USER_CACHE].freed_bytes == 100
        assert by_id[CategoryId.TRASH].failed == 2
        assert by_id[CategoryId.TRASH].errors

    def test_clean_on_result_callback(self):
        engine = _engine(FakeScanner(CategoryId.USER_CACHE), FakeScanner(CategoryId.TRASH))
        seen: list[CleanResult] = []

        engine.clean(engine.run_all_scans().results, on_result=seen.append)

        assert len(seen) == 2
