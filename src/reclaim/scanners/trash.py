"""Scanner for the user's trash."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from reclaim.models.category import CATEGORIES, CategoryId
from reclaim.models.clean_result import CleanResult, clean_items
from reclaim.models.scan_result import CleanableItem, ScanResult
from reclaim.models.scanner import ScanOptions, Scanner
from reclaim.utils import top_level_items, xdg_data_home

log = logging.getLogger(__name__)


class TrashScanner(Scanner):
    """Lists trashed files in ~/.local/share/Trash/files.

    Cleaning also drops the matching ``.trashinfo`` record, so file managers
    do not show stale entries afterwards.
    """

    category = CATEGORIES[CategoryId.TRASH]

    def __init__(self, trash_dir: Path | None = None) -> None:
        self._trash_dir_override = trash_dir

    def _trash_dir(self) -> Path:
        return self._trash_dir_override or xdg_data_home() / "Trash"

    def scan(self, options: ScanOptions) -> ScanResult:
        logger = options.logger or log
        files_dir = self._trash_dir() / "files"
        if not files_dir.is_dir():
            logger.debug("Trash directory not found: %s", files_dir)
            return self.result([])
        items = top_level_items(files_dir, token=options.token)
        logger.debug("Found %d items in trash", len(items))
        return self.result(items)

    def clean(self, items: Sequence[CleanableItem], dry_run: bool = False) -> CleanResult:
        result = clean_items(self.category, items, dry_run=dry_run)
        if dry_run:
            return result

        info_dir = self._trash_dir() / "info"
        for item in items:
            if item.path.exists():
                continue
            info = info_dir / f"{item.path.name}.trashinfo"
            try:
                info.unlink(missing_ok=True)
            except OSError:
                log.debug("Cannot remove trash info: %s", info)
        return result
