"""Scanner for stale items in the Downloads folder."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Sequence

from reclaim.core.walk import FileRecord
from reclaim.models.category import CATEGORIES, CategoryId
from reclaim.models.clean_result import CleanResult, clean_items
from reclaim.models.scan_result import CleanableItem, ScanResult
from reclaim.models.scanner import ScanOptions, Scanner
from reclaim.utils import top_level_items, xdg_user_dir

log = logging.getLogger(__name__)

_ONE_DAY = 86400  # seconds
_DEFAULT_DAYS_OLD = 30


class DownloadsScanner(Scanner):
    """Lists top-level Downloads entries not modified within ``days_old`` days."""

    category = CATEGORIES[CategoryId.DOWNLOADS]

    def __init__(self, downloads_dir: Path | None = None) -> None:
        self._downloads_override = downloads_dir

    def _downloads_dir(self) -> Path:
        return self._downloads_override or xdg_user_dir("DOWNLOAD", "Downloads")

    def scan(self, options: ScanOptions) -> ScanResult:
        logger = options.logger or log
        days_old = options.resolve_days_old(_DEFAULT_DAYS_OLD)
        cutoff = time.time() - days_old * _ONE_DAY

        def _accept(record: FileRecord) -> bool:
            return not record.path.name.startswith(".") and record.modified_at <= cutoff

        items = top_level_items(self._downloads_dir(), accept=_accept, token=options.token)
        items.sort(key=lambda i: i.modified_at)
        logger.debug("Found %d downloads older than %d days", len(items), days_old)
        return self.result(items)

    def clean(self, items: Sequence[CleanableItem], dry_run: bool = False) -> CleanResult:
        return clean_items(self.category, items, dry_run=dry_run)
