"""Scanner for very large files in the user's document folders."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Sequence

from reclaim.core.filtering import is_under_folder, normalize_path
from reclaim.core.walk import DirectoryWalk
from reclaim.models.category import CATEGORIES, CategoryId
from reclaim.models.clean_result import CleanResult, clean_items
from reclaim.models.scan_result import CleanableItem, ScanResult
from reclaim.models.scanner import ScanOptions, Scanner
from reclaim.utils import xdg_user_dir

log = logging.getLogger(__name__)

LARGE_FILE_SIZE = 500 * 1024 * 1024
_MAX_DEPTH = 3


def _default_search_paths() -> tuple[Path, ...]:
    return (xdg_user_dir("DOWNLOAD", "Downloads"), xdg_user_dir("DOCUMENTS", "Documents"))


class LargeFilesScanner(Scanner):
    """Lists files of at least ``min_size`` bytes (500 MiB by default), largest first."""

    category = CATEGORIES[CategoryId.LARGE_FILES]

    def __init__(self, search_paths: Sequence[Path] | None = None) -> None:
        self._search_paths = tuple(search_paths) if search_paths is not None else None

    def scan(self, options: ScanOptions) -> ScanResult:
        logger = options.logger or log
        min_size = options.resolve_min_size(LARGE_FILE_SIZE)
        folders = tuple(normalize_path(f) for f in options.ignored_folders)

        def _accept(entry: os.DirEntry) -> bool:
            if entry.name.startswith("."):
                return False
            return not (folders and is_under_folder(normalize_path(entry.path), folders))

        items: list[CleanableItem] = []
        seen: set[Path] = set()
        for root in self._search_paths or _default_search_paths():
            walk = DirectoryWalk(root, max_depth=_MAX_DEPTH, entry_filter=_accept, token=options.token)
            for record in walk:
                if record.size_bytes < min_size or record.path in seen:
                    continue
                seen.add(record.path)
                items.append(
                    CleanableItem(
                        path=record.path,
                        size_bytes=record.size_bytes,
                        name=record.path.name,
                        modified_at=record.modified_at,
                    )
                )
        items.sort(key=lambda i: (-i.size_bytes, str(i.path)))
        logger.debug("Found %d files of at least %d bytes", len(items), min_size)
        return self.result(items)

    def clean(self, items: Sequence[CleanableItem], dry_run: bool = False) -> CleanResult:
        return clean_items(self.category, items, dry_run=dry_run)
