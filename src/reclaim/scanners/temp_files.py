"""Scanner for user-owned temp files in /tmp and /var/tmp."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Sequence

from reclaim.core.walk import FileRecord
from reclaim.models.category import CATEGORIES, CategoryId
from reclaim.models.clean_result import CleanResult, clean_items
from reclaim.models.scan_result import CleanableItem, ScanResult
from reclaim.models.scanner import ScanOptions, Scanner
from reclaim.utils import top_level_items

log = logging.getLogger(__name__)

_ONE_DAY = 86400  # seconds
_DEFAULT_DAYS_OLD = 1
_TEMP_DIRS = (Path("/tmp"), Path("/var/tmp"))


class TempFilesScanner(Scanner):
    """Finds files owned by the current user that have not changed for a day or more."""

    category = CATEGORIES[CategoryId.TEMP_FILES]

    def __init__(self, temp_dirs: Sequence[Path] = _TEMP_DIRS) -> None:
        self._temp_dirs = tuple(temp_dirs)

    def scan(self, options: ScanOptions) -> ScanResult:
        logger = options.logger or log
        days_old = options.resolve_days_old(_DEFAULT_DAYS_OLD)
        uid = os.getuid()
        cutoff = time.time() - days_old * _ONE_DAY

        def _accept(record: FileRecord) -> bool:
            if record.modified_at > cutoff:
                return False
            try:
                return record.path.lstat().st_uid == uid
            except OSError:
                return False

        items: list[CleanableItem] = []
        for temp_dir in self._temp_dirs:
            if options.cancelled:
                break
            items.extend(top_level_items(temp_dir, accept=_accept, token=options.token))
        logger.debug("Found %d stale temp entries", len(items))
        return self.result(items)

    def clean(self, items: Sequence[CleanableItem], dry_run: bool = False) -> CleanResult:
        return clean_items(self.category, items, dry_run=dry_run)
