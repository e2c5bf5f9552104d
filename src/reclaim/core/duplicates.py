"""Two-stage duplicate file detection: bucket by size, then by content hash."""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from reclaim.core.cancellation import CancellationToken
from reclaim.core.filtering import is_under_folder, normalize_path
from reclaim.core.pool import run_pool
from reclaim.core.walk import DirectoryWalk, FileRecord
from reclaim.models.scan_result import CleanableItem

log = logging.getLogger(__name__)

MIN_FILE_SIZE = 1024 * 1024
MAX_DEPTH = 5
HASH_WORKERS = 4

_CHUNK_SIZE = 65_536  # 64 KB


@dataclass
class DuplicateGroup:
    """Files sharing one size and one content hash (always two or more)."""

    content_hash: str
    files: list[FileRecord]

    def ordered(self) -> list[FileRecord]:
        """Files newest first; equal timestamps fall back to path order."""
        return sorted(self.files, key=lambda f: (-f.modified_at, str(f.path)))

    @property
    def keeper(self) -> FileRecord:
        return self.ordered()[0]


def sha256_file(path: Path) -> str:
    """Compute SHA-256 of a file using chunked reads."""
    h = hashlib.sha256()
    with path.open("rb") as f:
        while chunk := f.read(_CHUNK_SIZE):
            h.update(chunk)
    return h.hexdigest()


def collect_by_size(
    roots: Iterable[Path],
    *,
    min_size: int = MIN_FILE_SIZE,
    max_depth: int = MAX_DEPTH,
    ignored_folders: Iterable[str] = (),
    token: CancellationToken | None = None,
) -> dict[int, list[FileRecord]]:
    """Walk *roots* and bucket regular files of at least *min_size* by size.

    Empty files are never duplicates of anything and are left out.  Hidden
    entries are skipped and symlinks are never followed.  A file
    reachable from two overlapping roots is recorded once.
    """
    folders = tuple(normalize_path(f) for f in ignored_folders)

    def _accept(entry: os.DirEntry) -> bool:
        if entry.name.startswith("."):
            return False
        return not (folders and is_under_folder(normalize_path(entry.path), folders))

    by_size: dict[int, list[FileRecord]] = {}
    seen: set[Path] = set()
    for root in roots:
        if token is not None and token.cancelled:
            break
        if not root.is_dir():
            log.debug("Search root not found: %s", root)
            continue
        walk = DirectoryWalk(root, max_depth=max_depth, entry_filter=_accept, token=token)
        for record in walk:
            if record.size_bytes == 0 or record.size_bytes < min_size or record.path in seen:
                continue
            seen.add(record.path)
            by_size.setdefault(record.size_bytes, []).append(record)
    return by_size


def _hash_or_none(record: FileRecord) -> str | None:
    try:
        return sha256_file(record.path)
    except OSError:
        log.debug("Cannot hash: %s", record.path)
        return None


def group_by_hash(
    by_size: dict[int, list[FileRecord]],
    *,
    workers: int = HASH_WORKERS,
    token: CancellationToken | None = None,
) -> list[DuplicateGroup]:
    """Hash every file in a size bucket of two or more and regroup by digest.

    Single-file buckets are never hashed.  Hashing is spread over the
    worker pool and stops claiming files once *token* is cancelled.  A
    cancelled run returns no groups: a keeper picked from a partial hash set
    may not be the newest copy.
    """
    candidates = [record for records in by_size.values() if len(records) >= 2 for record in records]
    if not candidates:
        return []

    log.debug("Hashing %d candidate files", len(candidates))
    report = run_pool(candidates, workers, _hash_or_none, token=token)
    if report.cancelled or (token is not None and token.cancelled):
        log.info("Hashing cancelled after %d of %d files", report.processed, len(candidates))
        return []

    by_hash: dict[tuple[int, str], list[FileRecord]] = {}
    for record, digest in report.results:
        if digest is not None:
            by_hash.setdefault((record.size_bytes, digest), []).append(record)

    return [
        DuplicateGroup(content_hash=digest, files=files)
        for (_size, digest), files in by_hash.items()
        if len(files) >= 2
    ]


def select_duplicates(groups: Iterable[DuplicateGroup]) -> list[CleanableItem]:
    """Turn every file except each group's keeper into a cleanable item.

    The keeper is the most recently modified file.  Output is sorted by size,
    largest first.
    """
    items: list[CleanableItem] = []
    for group in groups:
        keeper, *older = group.ordered()
        for record in older:
            items.append(
                CleanableItem(
                    path=record.path,
                    size_bytes=record.size_bytes,
                    name=f"{record.path.name} (duplicate of {keeper.path.name})",
                    is_directory=False,
                    modified_at=record.modified_at,
                )
            )
    items.sort(key=lambda i: (-i.size_bytes, str(i.path)))
    return items


def find_duplicates(
    roots: Iterable[Path | str],
    *,
    min_size: int = MIN_FILE_SIZE,
    max_depth: int = MAX_DEPTH,
    ignored_folders: Iterable[str] = (),
    workers: int = HASH_WORKERS,
    token: CancellationToken | None = None,
) -> list[CleanableItem]:
    """Find duplicate files under *roots* and return the reclaimable copies."""
    by_size = collect_by_size(
        [Path(r) for r in roots],
        min_size=min_size,
        max_depth=max_depth,
        ignored_folders=ignored_folders,
        token=token,
    )
    groups = group_by_hash(by_size, workers=workers, token=token)
    items = select_duplicates(groups)
    log.info("Found %d duplicate files in %d groups", len(items), len(groups))
    return items
