"""Shared utility functions."""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable

from reclaim.models.scan_result import CleanableItem

if TYPE_CHECKING:
    from reclaim.core.cancellation import CancellationToken
    from reclaim.core.walk import FileRecord

log = logging.getLogger(__name__)

_FIND_TIMEOUT = 60


def xdg_cache_home() -> Path:
    """Return XDG_CACHE_HOME, defaulting to ~/.cache."""
    return Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def xdg_data_home() -> Path:
    """Return XDG_DATA_HOME, defaulting to ~/.local/share."""
    return Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))


def xdg_user_dir(key: str, fallback: str) -> Path:
    """Resolve an XDG user directory such as ``DOWNLOAD`` or ``DOCUMENTS``.

    Reads ``XDG_<key>_DIR`` from ``user-dirs.dirs`` and falls back to
    ``~/<fallback>``.  The directory is not required to exist.
    """
    dirs_file = xdg_config_home() / "user-dirs.dirs"
    if dirs_file.is_file():
        try:
            text = dirs_file.read_text()
            match = re.search(rf'^XDG_{key}_DIR="(.+)"', text, re.MULTILINE)
            if match:
                return Path(match.group(1).replace("$HOME", str(Path.home())))
        except OSError:
            log.debug("Cannot read %s", dirs_file)
    return Path.home() / fallback


def remove_items(
    items: Iterable[CleanableItem],
    *,
    dry_run: bool = False,
    recreate_dirs: bool = False,
) -> tuple[int, int, int, list[str]]:
    """Remove items and return (cleaned, failed, freed_bytes, errors).

    An item that is already gone counts as cleaned but frees nothing.

    Args:
        items: CleanableItem values to remove.
        dry_run: If True, touch nothing and count every item as removed.
        recreate_dirs: If True, recreate directories after removal.
    """
    cleaned = 0
    failed = 0
    freed = 0
    errors: list[str] = []

    for item in items:
        if dry_run:
            cleaned += 1
            freed += item.size_bytes
            continue
        try:
            if item.path.is_dir() and not item.path.is_symlink():
                shutil.rmtree(item.path)
                if recreate_dirs:
                    item.path.mkdir(parents=True, exist_ok=True)
            elif item.path.exists() or item.path.is_symlink():
                item.path.unlink()
            else:
                # Removed by someone else since the scan: nothing freed here.
                log.debug("Already gone: %s", item.path)
                cleaned += 1
                continue
            cleaned += 1
            freed += item.size_bytes
        except OSError as e:
            failed += 1
            errors.append(f"{item.path}: {e}")

    if failed:
        log.info("Failed to remove %d of %d items", failed, cleaned + failed)
    return cleaned, failed, freed, errors


def run_cancellable(
    args: list[str],
    token: CancellationToken | None = None,
    *,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[bytes]:
    """Run a command that is terminated when *token* is cancelled.

    Raises:
        subprocess.TimeoutExpired: If *timeout* elapses first.
        OSError: If the command cannot be started.
    """
    proc = subprocess.Popen(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    unregister = token.on_cancel(proc.terminate) if token is not None else None
    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.communicate()
        raise
    finally:
        if unregister is not None:
            unregister()
    return subprocess.CompletedProcess(args, proc.returncode, stdout, stderr)


def dir_info(path: Path | str, token: CancellationToken | None = None) -> tuple[int, int]:
    """Calculate total size and file count of a directory tree.

    Uses GNU ``find`` (C-speed walk) when available, falling back to
    ``os.scandir`` on systems without it.

    Returns:
        (total_bytes, file_count) tuple.
    """
    if shutil.which("find") is not None:
        try:
            return _dir_info_find(str(path), token)
        except (OSError, ValueError, subprocess.SubprocessError):
            log.debug("find failed for %s, falling back to scandir", path)
    return _dir_info_scandir(path, token)


def _dir_info_find(path_str: str, token: CancellationToken | None) -> tuple[int, int]:
    """Walk a directory tree using GNU find (pure C, no Python per-file overhead)."""
    proc = run_cancellable(["find", path_str, "-type", "f", "-printf", "%s\n"], token, timeout=_FIND_TIMEOUT)
    if proc.returncode != 0 and not proc.stdout:
        raise ValueError(f"find exited with {proc.returncode}")
    total = count = 0
    for line in proc.stdout.split(b"\n"):
        if line:
            total += int(line)
            count += 1
    return total, count


def _dir_info_scandir(path: Path | str, token: CancellationToken | None) -> tuple[int, int]:
    """Walk a directory tree using os.scandir (pure Python fallback)."""
    total = 0
    count = 0
    stack: list[Path | str] = [path]
    while stack:
        if token is not None and token.cancelled:
            break
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                for entry in it:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total += entry.stat(follow_symlinks=False).st_size
                            count += 1
                        elif entry.is_dir(follow_symlinks=False):
                            stack.append(entry.path)
                    except OSError:
                        pass
        except OSError:
            pass
    return total, count


def top_level_items(
    directory: Path,
    *,
    accept: Callable[[FileRecord], bool] | None = None,
    token: CancellationToken | None = None,
) -> list[CleanableItem]:
    """Return the direct children of *directory* as cleanable items.

    Directories are sized recursively; empty entries are dropped.  A missing
    or unreadable *directory* yields an empty list.
    """
    from reclaim.core.walk import DirectoryWalk

    items: list[CleanableItem] = []
    for record in DirectoryWalk(directory, max_depth=0, include_dirs=True, token=token):
        if accept is not None and not accept(record):
            continue
        size = dir_info(record.path, token)[0] if record.is_directory else record.size_bytes
        if size > 0:
            items.append(
                CleanableItem(
                    path=record.path,
                    size_bytes=size,
                    name=record.path.name,
                    is_directory=record.is_directory,
                    modified_at=record.modified_at,
                )
            )
    return items


def bytes_to_human(size_bytes: int) -> str:
    """Convert byte count to a human-readable string."""
    if size_bytes < 0:
        return f"-{bytes_to_human(-size_bytes)}"
    if size_bytes == 0:
        return "0 B"

    units = ("B", "KB", "MB", "GB", "TB")
    value = float(size_bytes)
    for unit in units[:-1]:
        if abs(value) < 1024:
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024
    return f"{value:.1f} {units[-1]}"


def format_elapsed(seconds: float) -> str:
    """Format an elapsed time as a human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds) // 60
    secs = seconds - minutes * 60
    return f"{minutes}m {secs:.0f}s"
