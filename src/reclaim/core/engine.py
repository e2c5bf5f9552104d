"""Scanning and cleaning orchestration engine."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable, Iterable, Sequence

from reclaim.core.filtering import FilterConfig, apply_filters
from reclaim.core.permissions import can_delete
from reclaim.core.registry import ScannerRegistry, default_registry
from reclaim.core.scheduler import DEFAULT_CONCURRENCY, run_bounded
from reclaim.models.category import CategoryId
from reclaim.models.clean_result import CleanResult, CleanSummary
from reclaim.models.scan_result import ScanResult, ScanSummary
from reclaim.models.scanner import InvalidScanOptions, ScanOptions, Scanner

log = logging.getLogger(__name__)

# (completed, total, scanner, result, elapsed_ms)
ProgressCallback = Callable[[int, int, Scanner, ScanResult, float], None]
CleanResultCallback = Callable[[CleanResult], None]


class ScanEngine:
    """Orchestrates scanning and cleaning across scanners."""

    def __init__(
        self,
        registry: ScannerRegistry,
        filter_config: FilterConfig | None = None,
        *,
        check: Callable[[Path], bool] = can_delete,
    ) -> None:
        self.registry = registry
        self.filter_config = filter_config or FilterConfig()
        self._check = check

    def run_all_scans(
        self,
        options: ScanOptions | None = None,
        *,
        parallel: bool = True,
        concurrency: int = DEFAULT_CONCURRENCY,
        on_progress: ProgressCallback | None = None,
    ) -> ScanSummary:
        """Run every registered scanner and return the filtered summary."""
        return self._run(self.registry.get_all(), options, parallel, concurrency, on_progress)

    def run_scans(
        self,
        category_ids: Iterable[CategoryId | str],
        options: ScanOptions | None = None,
        *,
        parallel: bool = True,
        concurrency: int = DEFAULT_CONCURRENCY,
        on_progress: ProgressCallback | None = None,
    ) -> ScanSummary:
        """Run the scanners for *category_ids* and return the filtered summary.

        Raises:
            UnknownCategoryError: If an id is not a known category.
        """
        scanners: list[Scanner] = []
        for category_id in category_ids:
            scanner = self.registry.get(category_id)
            if scanner not in scanners:
                scanners.append(scanner)
        return self._run(scanners, options, parallel, concurrency, on_progress)

    def _run(
        self,
        scanners: Sequence[Scanner],
        options: ScanOptions | None,
        parallel: bool,
        concurrency: int,
        on_progress: ProgressCallback | None,
    ) -> ScanSummary:
        """Scan, filter and summarize.

        Result order follows scanner completion, not *scanners* order.
        """
        if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
            raise ValueError(f"concurrency must be a positive integer, got {concurrency!r}")

        options = options or ScanOptions()
        ignored = self.filter_config.ignored_categories
        # Ignored categories are not scanned at all; the filter below still
        # drops them in case a scanner reports under another category.
        skipped = [s.id for s in scanners if s.id in ignored]
        if skipped:
            log.info("Skipping ignored categories: %s", ", ".join(skipped))
        scanners = [s for s in scanners if s.id not in ignored]

        def _notify(completed: int, total: int, index: int, result: ScanResult, elapsed_ms: float) -> None:
            if on_progress is not None:
                on_progress(completed, total, scanners[index], result, elapsed_ms)

        tasks = [self._scan_task(scanner, options) for scanner in scanners]
        raw = run_bounded(tasks, concurrency, parallel=parallel, on_complete=_notify, token=options.token)
        results = apply_filters(raw, self.filter_config, check=self._check)
        summary = ScanSummary(results=tuple(results))
        log.info(
            "Scanned %d categories: %d items, %d bytes",
            len(summary.results),
            summary.total_items,
            summary.total_bytes,
        )
        return summary

    @staticmethod
    def _scan_task(scanner: Scanner, options: ScanOptions) -> Callable[[], ScanResult]:
        def _scan() -> ScanResult:
            if options.cancelled:
                return scanner.result([], error="Scan cancelled")
            try:
                result = scanner.scan(options)
            except InvalidScanOptions as exc:
                log.warning("Scanner '%s' rejected options: %s", scanner.id, exc)
                return scanner.result([], error=str(exc))
            except Exception as exc:
                log.exception("Scanner '%s' failed during scan", scanner.id)
                return scanner.result([], error=str(exc) or type(exc).__name__)
            if options.cancelled and not result.error:
                log.info("Scanner '%s' was cancelled before finishing", scanner.id)
                return replace(result, error="Scan cancelled")
            return result

        return _scan

    def clean(
        self,
        results: Iterable[ScanResult],
        *,
        dry_run: bool = False,
        on_result: CleanResultCallback | None = None,
    ) -> CleanSummary:
        """Clean the items of each scan result with its category's scanner.

        Args:
            results: Filtered scan results, usually ``summary.results``.
            dry_run: Report what would be removed without touching anything.
            on_result: Optional callback fired after each category finishes.
        """
        clean_results: list[CleanResult] = []
        for scan_result in results:
            if not scan_result.items:
                continue
            scanner = self.registry.get(scan_result.category.id)
            try:
                result = scanner.clean(scan_result.items, dry_run=dry_run)
            except Exception:
                log.exception("Scanner '%s' failed during clean", scanner.id)
                result = CleanResult(
                    category=scan_result.category,
                    failed=len(scan_result.items),
                    errors=["Scanner crashed during cleaning"],
                )
            clean_results.append(result)
            if on_result is not None:
                on_result(result)
        return CleanSummary(results=tuple(clean_results))


def run_all_scans(
    options: ScanOptions | None = None,
    *,
    parallel: bool = True,
    concurrency: int = DEFAULT_CONCURRENCY,
    on_progress: ProgressCallback | None = None,
) -> ScanSummary:
    """Run all built-in scanners using the user's ignore settings."""
    return build_engine().run_all_scans(
        options, parallel=parallel, concurrency=concurrency, on_progress=on_progress
    )


def run_scans(
    category_ids: Iterable[CategoryId | str],
    options: ScanOptions | None = None,
    *,
    parallel: bool = True,
    concurrency: int = DEFAULT_CONCURRENCY,
    on_progress: ProgressCallback | None = None,
) -> ScanSummary:
    """Run the selected built-in scanners using the user's ignore settings."""
    return build_engine().run_scans(
        category_ids, options, parallel=parallel, concurrency=concurrency, on_progress=on_progress
    )


def build_engine(filter_config: FilterConfig | None = None) -> ScanEngine:
    """Create an engine over the built-in scanners.

    The ignore configuration is loaded from settings once, here, unless
    *filter_config* is given.
    """
    if filter_config is None:
        from reclaim.settings import Settings

        filter_config = Settings().filter_config()
    return ScanEngine(default_registry(), filter_config)
