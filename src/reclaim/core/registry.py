"""Central scanner registry."""

from __future__ import annotations

import logging
from typing import Iterator

from reclaim.models.category import CategoryId
from reclaim.models.scanner import Scanner

log = logging.getLogger(__name__)


class UnknownCategoryError(KeyError):
    """Raised when a category id is not part of the known enumeration."""


def parse_category_id(value: CategoryId | str) -> CategoryId:
    """Validate *value* against the closed set of category ids."""
    try:
        return CategoryId(value)
    except ValueError:
        known = ", ".join(c.value for c in CategoryId)
        raise UnknownCategoryError(f"Unknown category '{value}' (known: {known})") from None


class ScannerRegistry:
    """Maps each category id to exactly one scanner."""

    def __init__(self) -> None:
        self._scanners: dict[CategoryId, Scanner] = {}

    def register(self, scanner: Scanner) -> None:
        """Register a scanner instance."""
        if not isinstance(scanner, Scanner):
            raise TypeError(f"Expected a Scanner, got {type(scanner).__name__}")
        category_id = scanner.category.id
        if category_id in self._scanners:
            log.warning("Scanner for '%s' already registered, skipping duplicate", category_id.value)
            return
        self._scanners[category_id] = scanner
        log.debug("Registered scanner: %s (%s)", category_id.value, scanner.name)

    def get(self, category_id: CategoryId | str) -> Scanner:
        """Get the scanner for a category id.

        Raises:
            UnknownCategoryError: If the id is unknown or has no scanner.
        """
        key = parse_category_id(category_id)
        try:
            return self._scanners[key]
        except KeyError:
            raise UnknownCategoryError(f"No scanner registered for '{key.value}'") from None

    def get_all(self) -> list[Scanner]:
        """Get all registered scanners in registration order."""
        return list(self._scanners.values())

    def __len__(self) -> int:
        return len(self._scanners)

    def __iter__(self) -> Iterator[Scanner]:
        return iter(self._scanners.values())

    def __contains__(self, category_id: object) -> bool:
        try:
            return CategoryId(category_id) in self._scanners
        except ValueError:
            return False


def default_registry() -> ScannerRegistry:
    """Build the registry of built-in scanners."""
    from reclaim.scanners import BUILTIN_SCANNERS

    registry = ScannerRegistry()
    for scanner_cls in BUILTIN_SCANNERS:
        registry.register(scanner_cls())
    log.debug("Loaded %d scanners", len(registry))
    return registry
