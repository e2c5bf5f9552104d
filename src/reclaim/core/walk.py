"""Shared directory walk used by every scanner that traverses a tree."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

from reclaim.core.cancellation import CancellationToken

log = logging.getLogger(__name__)

EntryFilter = Callable[[os.DirEntry], bool]


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Stat snapshot of one entry found by a walk."""

    path: Path
    size_bytes: int
    modified_at: float
    is_directory: bool = False


def skip_hidden(entry: os.DirEntry) -> bool:
    """Entry filter rejecting dot-files and dot-directories."""
    return not entry.name.startswith(".")


class DirectoryWalk:
    """Lazy depth-limited walk over a directory tree.

    Iterating yields :class:`FileRecord` objects for regular files (and for
    directories when ``include_dirs`` is set).  Every ``iter()`` starts a
    fresh walk, so the same instance can be consumed more than once.

    ``root`` is listed at depth 0 and a subdirectory is listed only while its
    depth stays within ``max_depth``.  ``entry_filter`` rejects an entry
    outright; ``prune`` keeps a directory but does not descend into it.
    Unreadable entries and subtrees are skipped.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        max_depth: int = 5,
        follow_symlinks: bool = False,
        entry_filter: EntryFilter | None = None,
        prune: EntryFilter | None = None,
        include_dirs: bool = False,
        token: CancellationToken | None = None,
    ) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.root = Path(root)
        self.max_depth = max_depth
        self.follow_symlinks = follow_symlinks
        self.entry_filter = entry_filter
        self.prune = prune
        self.include_dirs = include_dirs
        self.token = token

    def __iter__(self) -> Iterator[FileRecord]:
        return self._walk()

    def _cancelled(self) -> bool:
        return self.token is not None and self.token.cancelled

    def _walk(self) -> Iterator[FileRecord]:
        follow = self.follow_symlinks
        seen: set[tuple[int, int]] = set()
        if follow:
            try:
                st = os.stat(self.root)
                seen.add((st.st_dev, st.st_ino))
            except OSError:
                return

        stack: list[tuple[str, int]] = [(str(self.root), 0)]
        while stack:
            if self._cancelled():
                return
            current, depth = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError:
                log.debug("Cannot read directory: %s", current)
                continue

            subdirs: list[str] = []
            for entry in entries:
                if self._cancelled():
                    return
                if self.entry_filter is not None and not self.entry_filter(entry):
                    continue
                try:
                    if entry.is_dir(follow_symlinks=follow):
                        st = entry.stat(follow_symlinks=follow)
                        if follow:
                            key = (st.st_dev, st.st_ino)
                            if key in seen:
                                continue
                            seen.add(key)
                        if self.include_dirs:
                            yield FileRecord(Path(entry.path), st.st_size, st.st_mtime, is_directory=True)
                        if self.prune is not None and self.prune(entry):
                            continue
                        if depth + 1 <= self.max_depth:
                            subdirs.append(entry.path)
                    elif entry.is_file(follow_symlinks=follow):
                        st = entry.stat(follow_symlinks=follow)
                        yield FileRecord(Path(entry.path), st.st_size, st.st_mtime)
                except OSError:
                    log.debug("Cannot access: %s", entry.path)

            # Reversed so the stack pops subdirectories in name order.
            stack.extend((path, depth + 1) for path in reversed(subdirs))
