"""Deletability checks for scanned items."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Callable, Iterable

from reclaim.models.scan_result import CleanableItem

log = logging.getLogger(__name__)

# Names that are always locked or owned by a running system service.
# Plain strings match a path segment exactly, patterns match it fully.
BLACKLIST_PATTERNS: tuple[str | re.Pattern[str], ...] = (
    "TemporaryItems",
    ".AddressBookLocks",
    "AudioComponentRegistrar",
    "WebKitCache",
    re.compile(r"com\.apple\.Safari"),
    re.compile(r"com\.apple\.bird"),
    re.compile(r"com\.apple\.cloudd"),
    re.compile(r"com\.apple\..+Service"),
    re.compile(r"com\.apple\..+Agent"),
    re.compile(r"com\.apple\..+Helper"),
    "com.apple.identityservicesd",
    "com.apple.tccd",
    # Live session state on Linux desktops
    ".X11-unix",
    ".ICE-unix",
    re.compile(r"systemd-private-.+"),
    "keyrings",
)


def is_blacklisted(path: Path | str) -> bool:
    """Check whether any segment of *path* matches the blacklist."""
    for part in Path(path).parts:
        for pattern in BLACKLIST_PATTERNS:
            if isinstance(pattern, str):
                if part == pattern:
                    return True
            elif pattern.fullmatch(part):
                return True
    return False


def can_delete(path: Path | str) -> bool:
    """Check if a file or directory can actually be deleted.

    Blacklisted paths are never deletable.  Otherwise the path must exist
    and be writable by the current user.
    """
    if is_blacklisted(path):
        return False
    return os.access(path, os.W_OK)


def filter_deletable_items(
    items: Iterable[CleanableItem],
    check: Callable[[Path], bool] = can_delete,
) -> list[CleanableItem]:
    """Return only the items *check* considers deletable."""
    kept: list[CleanableItem] = []
    for item in items:
        if check(item.path):
            kept.append(item)
        else:
            log.debug("Filtered out protected item: %s", item.path)
    return kept
