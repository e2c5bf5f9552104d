"""Scanner for duplicate files in the user's document folders."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from reclaim.core.duplicates import HASH_WORKERS, MAX_DEPTH, MIN_FILE_SIZE, find_duplicates
from reclaim.models.category import CATEGORIES, CategoryId
from reclaim.models.clean_result import CleanResult, clean_items
from reclaim.models.scan_result import CleanableItem, ScanResult
from reclaim.models.scanner import ScanOptions, Scanner
from reclaim.utils import xdg_user_dir

log = logging.getLogger(__name__)


def _default_search_paths() -> tuple[Path, ...]:
    return (
        xdg_user_dir("DOWNLOAD", "Downloads"),
        xdg_user_dir("DOCUMENTS", "Documents"),
        xdg_user_dir("DESKTOP", "Desktop"),
    )


class DuplicatesScanner(Scanner):
    """Finds files with identical content and offers all but the newest copy."""

    category = CATEGORIES[CategoryId.DUPLICATES]

    def __init__(
        self,
        search_paths: Sequence[Path] | None = None,
        *,
        max_depth: int = MAX_DEPTH,
        workers: int = HASH_WORKERS,
    ) -> None:
        self._search_paths = tuple(search_paths) if search_paths is not None else None
        self._max_depth = max_depth
        self._workers = workers

    def scan(self, options: ScanOptions) -> ScanResult:
        logger = options.logger or log
        min_size = options.resolve_min_size(MIN_FILE_SIZE)
        roots = self._search_paths or _default_search_paths()
        items = find_duplicates(
            roots,
            min_size=min_size,
            max_depth=self._max_depth,
            ignored_folders=options.ignored_folders,
            workers=self._workers,
            token=options.token,
        )
        logger.debug("Duplicate search over %d roots found %d copies", len(roots), len(items))
        return self.result(items)

    def clean(self, items: Sequence[CleanableItem], dry_run: bool = False) -> CleanResult:
        return clean_items(self.category, items, dry_run=dry_run)
