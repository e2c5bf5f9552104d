"""Scanner for ~/.cache contents."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from reclaim.core.walk import FileRecord
from reclaim.models.category import CATEGORIES, CategoryId
from reclaim.models.clean_result import CleanResult, clean_items
from reclaim.models.scan_result import CleanableItem, ScanResult
from reclaim.models.scanner import ScanOptions, Scanner
from reclaim.utils import top_level_items, xdg_cache_home

log = logging.getLogger(__name__)

# Directories commonly used by active applications that should not be cleaned
_EXCLUDE_DIRS = {
    "fontconfig",
    "icon-cache.kcache",
    "gstreamer-1.0",
    "babl",
    "gegl-0.4",
    "mesa_shader_cache",
    "mesa_shader_cache_db",
    "nvidia",
    "reclaim",
}


class UserCacheScanner(Scanner):
    """Lists cache directories under ~/.cache, skipping caches in active use."""

    category = CATEGORIES[CategoryId.USER_CACHE]

    def __init__(self, cache_dir: Path | None = None) -> None:
        self._cache_dir_override = cache_dir

    def _cache_dir(self) -> Path:
        return self._cache_dir_override or xdg_cache_home()

    def scan(self, options: ScanOptions) -> ScanResult:
        logger = options.logger or log
        cache_dir = self._cache_dir()
        if not cache_dir.is_dir():
            logger.debug("User cache directory not found: %s", cache_dir)
            return self.result([])

        def _accept(record: FileRecord) -> bool:
            return record.path.name not in _EXCLUDE_DIRS

        items = top_level_items(cache_dir, accept=_accept, token=options.token)
        logger.debug("Found %d cache entries in %s", len(items), cache_dir)
        return self.result(items)

    def clean(self, items: Sequence[CleanableItem], dry_run: bool = False) -> CleanResult:
        return clean_items(self.category, items, dry_run=dry_run)
