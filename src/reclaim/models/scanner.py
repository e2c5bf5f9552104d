"""Base scanner interface."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from reclaim.models.category import Category
from reclaim.models.clean_result import CleanResult
from reclaim.models.scan_result import CleanableItem, ScanResult

if TYPE_CHECKING:
    from reclaim.core.cancellation import CancellationToken


class InvalidScanOptions(ValueError):
    """Raised when a scanner receives thresholds it cannot work with."""


@dataclass(frozen=True)
class ScanOptions:
    """Options bundle handed to every scanner.

    Thresholds left as ``None`` fall back to each scanner's own default.
    ``ignored_folders`` is only a hint: scanners may skip walking those
    trees, the filtering pipeline removes their items either way.
    """

    days_old: int | None = None
    min_size: int | None = None
    ignored_folders: tuple[str, ...] = ()
    logger: logging.Logger | None = None
    token: CancellationToken | None = None

    @property
    def cancelled(self) -> bool:
        return self.token is not None and self.token.cancelled

    def resolve_days_old(self, default: int) -> int:
        """Return ``days_old`` or *default*, rejecting negative ages."""
        value = default if self.days_old is None else self.days_old
        if not isinstance(value, int) or value < 0:
            raise InvalidScanOptions(f"days_old must be a non-negative integer, got {value!r}")
        return value

    def resolve_min_size(self, default: int) -> int:
        """Return ``min_size`` or *default*, rejecting negative sizes."""
        value = default if self.min_size is None else self.min_size
        if not isinstance(value, int) or value < 0:
            raise InvalidScanOptions(f"min_size must be a non-negative integer, got {value!r}")
        return value


class Scanner(ABC):
    """Base class for all category scanners.

    A scanner declares one category, finds candidate items for it and can
    remove them again.  ``scan`` MUST NOT delete anything and must absorb
    expected filesystem conditions (missing directories, permission errors)
    by returning whatever it found.
    """

    @property
    @abstractmethod
    def category(self) -> Category:
        """Static category this scanner produces items for."""

    @abstractmethod
    def scan(self, options: ScanOptions) -> ScanResult:
        """Scan for cleanable items."""

    @abstractmethod
    def clean(self, items: Sequence[CleanableItem], dry_run: bool = False) -> CleanResult:
        """Remove the given items.

        Most scanners delegate to :func:`reclaim.models.clean_result.clean_items`.
        """

    @property
    def id(self) -> str:
        return self.category.id.value

    @property
    def name(self) -> str:
        return self.category.name

    def result(self, items: Sequence[CleanableItem], error: str = "") -> ScanResult:
        """Build a ScanResult for this scanner's category."""
        return ScanResult(category=self.category, items=tuple(items), error=error)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"
