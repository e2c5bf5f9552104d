"""Scan result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from reclaim.models.category import Category


@dataclass(frozen=True, slots=True)
class CleanableItem:
    """Single file or directory that can be cleaned."""

    path: Path
    size_bytes: int
    name: str
    is_directory: bool = False
    modified_at: float = 0.0


@dataclass(slots=True)
class ScanResult:
    """Result of running one scanner.

    ``total_bytes`` is derived from ``items`` on construction, so a filtered
    copy made with :func:`dataclasses.replace` always carries a matching
    total.  A non-empty ``error`` means the scanner could not finish; any
    ``items`` it still produced are valid.
    """

    category: Category
    items: tuple[CleanableItem, ...] = ()
    error: str = ""
    total_bytes: int = field(init=False)

    def __post_init__(self) -> None:
        self.items = tuple(self.items)
        self.total_bytes = sum(item.size_bytes for item in self.items)


@dataclass(slots=True)
class ScanSummary:
    """Aggregate view over filtered scan results."""

    results: tuple[ScanResult, ...] = ()
    total_bytes: int = field(init=False)
    total_items: int = field(init=False)

    def __post_init__(self) -> None:
        self.results = tuple(self.results)
        self.total_bytes = sum(r.total_bytes for r in self.results)
        self.total_items = sum(len(r.items) for r in self.results)

    def get(self, category_id: str) -> ScanResult | None:
        """Return the result for a category id, if it is present."""
        for result in self.results:
            if result.category.id == category_id:
                return result
        return None
