"""Scanner for rotated log files."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Sequence

from reclaim.core.walk import DirectoryWalk
from reclaim.models.category import CATEGORIES, CategoryId
from reclaim.models.clean_result import CleanResult, clean_items
from reclaim.models.scan_result import CleanableItem, ScanResult
from reclaim.models.scanner import ScanOptions, Scanner
from reclaim.utils import xdg_data_home

log = logging.getLogger(__name__)

# syslog.1, auth.log.2.gz, Xorg.0.log.old, dpkg.log.3.xz ...
_ROTATED = re.compile(r".+(\.\d+(\.(gz|xz|bz2|zst))?|\.old)$")
_MAX_DEPTH = 2


def _default_log_dirs() -> tuple[Path, ...]:
    return (Path("/var/log"), xdg_data_home() / "xorg")


class SystemLogsScanner(Scanner):
    """Finds rotated logs; the live log files are never listed."""

    category = CATEGORIES[CategoryId.SYSTEM_LOGS]

    def __init__(self, log_dirs: Sequence[Path] | None = None) -> None:
        self._log_dirs = tuple(log_dirs) if log_dirs is not None else None

    def scan(self, options: ScanOptions) -> ScanResult:
        logger = options.logger or log
        items: list[CleanableItem] = []
        for log_dir in self._log_dirs or _default_log_dirs():
            if not log_dir.is_dir():
                continue
            for record in DirectoryWalk(log_dir, max_depth=_MAX_DEPTH, token=options.token):
                if _ROTATED.fullmatch(record.path.name) and record.size_bytes > 0:
                    items.append(
                        CleanableItem(
                            path=record.path,
                            size_bytes=record.size_bytes,
                            name=record.path.name,
                            modified_at=record.modified_at,
                        )
                    )
        logger.debug("Found %d rotated log files", len(items))
        return self.result(items)

    def clean(self, items: Sequence[CleanableItem], dry_run: bool = False) -> CleanResult:
        return clean_items(self.category, items, dry_run=dry_run)
