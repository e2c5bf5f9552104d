"""Scanner for build artifacts of inactive projects."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Sequence

from reclaim.core.walk import DirectoryWalk
from reclaim.models.category import CATEGORIES, CategoryId
from reclaim.models.clean_result import CleanResult, clean_items
from reclaim.models.scan_result import CleanableItem, ScanResult
from reclaim.models.scanner import ScanOptions, Scanner
from reclaim.utils import dir_info

log = logging.getLogger(__name__)

_ONE_DAY = 86400  # seconds
_DEFAULT_DAYS_OLD = 7
_MAX_DEPTH = 4

_PROJECT_DIRS = ("Projects", "Developer", "Code", "dev", "workspace", "repos", "src")

ARTIFACT_TARGETS = frozenset(
    {
        "node_modules",
        "target",
        "build",
        "dist",
        "venv",
        ".venv",
        "__pycache__",
        ".next",
        ".nuxt",
        ".turbo",
        ".parcel-cache",
        ".dart_tool",
        ".gradle",
    }
)

# A target only counts as an artifact next to one of these.
PROJECT_INDICATORS = frozenset(
    {
        "package.json",
        "Cargo.toml",
        "pom.xml",
        "build.gradle",
        "build.gradle.kts",
        "requirements.txt",
        "setup.py",
        "pyproject.toml",
        "composer.json",
        "pubspec.yaml",
    }
)


def _is_target(entry: os.DirEntry) -> bool:
    return entry.name in ARTIFACT_TARGETS


def _accept(entry: os.DirEntry) -> bool:
    return not entry.name.startswith(".") or entry.name in ARTIFACT_TARGETS


def _is_project_root(path: Path) -> bool:
    return any((path / name).exists() for name in PROJECT_INDICATORS)


class ProjectArtifactsScanner(Scanner):
    """Finds node_modules, virtualenvs and build output untouched for ``days_old`` days."""

    category = CATEGORIES[CategoryId.NODE_MODULES]

    def __init__(self, search_paths: Sequence[Path] | None = None) -> None:
        self._search_paths = tuple(search_paths) if search_paths is not None else None

    def _roots(self) -> tuple[Path, ...]:
        if self._search_paths is not None:
            return self._search_paths
        home = Path.home()
        return tuple(home / name for name in _PROJECT_DIRS)

    def scan(self, options: ScanOptions) -> ScanResult:
        logger = options.logger or log
        days_old = options.resolve_days_old(_DEFAULT_DAYS_OLD)
        cutoff = time.time() - days_old * _ONE_DAY

        items: list[CleanableItem] = []
        for root in self._roots():
            if not root.is_dir():
                continue
            walk = DirectoryWalk(
                root,
                max_depth=_MAX_DEPTH,
                entry_filter=_accept,
                prune=_is_target,
                include_dirs=True,
                token=options.token,
            )
            for record in walk:
                if not record.is_directory or record.path.name not in ARTIFACT_TARGETS:
                    continue
                if record.modified_at > cutoff or not _is_project_root(record.path.parent):
                    continue
                size = dir_info(record.path, options.token)[0]
                if size > 0:
                    items.append(
                        CleanableItem(
                            path=record.path,
                            size_bytes=size,
                            name=f"{record.path.parent.name}/{record.path.name}",
                            is_directory=True,
                            modified_at=record.modified_at,
                        )
                    )
        logger.debug("Found %d project artifacts", len(items))
        items.sort(key=lambda i: (-i.size_bytes, str(i.path)))
        return self.result(items)

    def clean(self, items: Sequence[CleanableItem], dry_run: bool = False) -> CleanResult:
        return clean_items(self.category, items, dry_run=dry_run)
