"""Cleaning result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from reclaim.models.category import Category
from reclaim.models.scan_result import CleanableItem


@dataclass(slots=True)
class CleanResult:
    """Result of a cleaning operation for one category."""

    category: Category
    cleaned_items: int = 0
    freed_bytes: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(slots=True)
class CleanSummary:
    """Aggregate over all categories cleaned in one run."""

    results: tuple[CleanResult, ...] = ()
    total_freed_bytes: int = field(init=False)
    total_cleaned_items: int = field(init=False)
    total_errors: int = field(init=False)

    def __post_init__(self) -> None:
        self.results = tuple(self.results)
        self.total_freed_bytes = sum(r.freed_bytes for r in self.results)
        self.total_cleaned_items = sum(r.cleaned_items for r in self.results)
        self.total_errors = sum(len(r.errors) for r in self.results)


def clean_items(
    category: Category,
    items: Iterable[CleanableItem],
    *,
    dry_run: bool = False,
    recreate_dirs: bool = False,
) -> CleanResult:
    """Remove *items* and report what happened.

    This is the standard cleanup every scanner calls from its ``clean``.
    Freed bytes are summed over successfully removed items only.  A dry run
    touches nothing and reports every item as cleaned.
    """
    from reclaim.utils import remove_items

    cleaned, failed, freed, errors = remove_items(items, dry_run=dry_run, recreate_dirs=recreate_dirs)
    return CleanResult(
        category=category,
        cleaned_items=cleaned,
        freed_bytes=freed,
        failed=failed,
        errors=errors,
    )
