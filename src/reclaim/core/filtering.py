"""Ignore-rule and safety filtering applied to raw scan results."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Iterable, Sequence

from reclaim.core.permissions import can_delete, filter_deletable_items
from reclaim.models.category import CategoryId
from reclaim.models.scan_result import ScanResult

log = logging.getLogger(__name__)


def normalize_path(path: Path | str) -> str:
    """Lower-case a path and strip trailing slashes for comparison."""
    return str(path).lower().rstrip("/")


@dataclass(frozen=True)
class FilterConfig:
    """User exclusions, read once per run and never modified during it."""

    ignored_paths: frozenset[str] = frozenset()
    ignored_folders: frozenset[str] = frozenset()
    ignored_categories: frozenset[str] = frozenset()

    @classmethod
    def from_lists(
        cls,
        ignored_paths: Iterable[str] = (),
        ignored_folders: Iterable[str] = (),
        ignored_categories: Iterable[str] = (),
    ) -> FilterConfig:
        """Build a config from raw settings values, normalizing paths."""
        return cls(
            ignored_paths=frozenset(normalize_path(p) for p in ignored_paths),
            ignored_folders=frozenset(normalize_path(f) for f in ignored_folders),
            ignored_categories=frozenset(
                c.value if isinstance(c, CategoryId) else str(c) for c in ignored_categories
            ),
        )

    def is_path_ignored(self, path: Path | str) -> bool:
        """Check a path against ignored paths and ignored folder trees."""
        normalized = normalize_path(path)
        if normalized in self.ignored_paths:
            return True
        return is_under_folder(normalized, self.ignored_folders)


def is_under_folder(normalized: str, folders: Iterable[str]) -> bool:
    """Check whether a normalized path is one of *folders* or lies inside one.

    Matching respects the separator, so ``/home/u/Downloads2`` is not inside
    ``/home/u/Downloads``.
    """
    return any(normalized == folder or normalized.startswith(folder + "/") for folder in folders)


def exclude_categories(results: Iterable[ScanResult], config: FilterConfig) -> list[ScanResult]:
    """Drop whole results whose category is ignored."""
    kept = []
    for result in results:
        if result.category.id.value in config.ignored_categories:
            log.debug("Skipping ignored category: %s", result.category.id.value)
            continue
        kept.append(result)
    return kept


def exclude_ignored_items(results: Iterable[ScanResult], config: FilterConfig) -> list[ScanResult]:
    """Drop items matching an ignored path or lying under an ignored folder."""
    if not config.ignored_paths and not config.ignored_folders:
        return list(results)

    filtered = []
    for result in results:
        items = tuple(item for item in result.items if not config.is_path_ignored(item.path))
        removed = len(result.items) - len(items)
        if removed:
            log.info("%s: ignored %d items", result.category.name, removed)
        filtered.append(replace(result, items=items))
    return filtered


def exclude_protected_items(
    results: Iterable[ScanResult],
    check: Callable[[Path], bool] = can_delete,
) -> list[ScanResult]:
    """Drop items that cannot or must not be deleted.

    The category stays in the output even when no item survives.
    """
    filtered = []
    for result in results:
        items = tuple(filter_deletable_items(result.items, check))
        removed = len(result.items) - len(items)
        if removed:
            log.info("%s: filtered out %d protected items", result.category.name, removed)
        filtered.append(replace(result, items=items))
    return filtered


def apply_filters(
    results: Sequence[ScanResult],
    config: FilterConfig,
    *,
    check: Callable[[Path], bool] = can_delete,
) -> list[ScanResult]:
    """Run category exclusion, item exclusion and the permission filter in order.

    Category exclusion runs first so no permission probe is spent on a
    category that is dropped anyway.  Input results are left untouched.
    """
    kept = exclude_categories(results, config)
    kept = exclude_ignored_items(kept, config)
    return exclude_protected_items(kept, check)
