"""Scan categories."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SafetyLevel(str, Enum):
    """How careful the user should be before cleaning a category."""

    SAFE = "safe"
    MODERATE = "moderate"
    RISKY = "risky"


class CategoryId(str, Enum):
    """Closed set of category keys known to the scanner registry."""

    USER_CACHE = "user-cache"
    SYSTEM_LOGS = "system-logs"
    TEMP_FILES = "temp-files"
    TRASH = "trash"
    DOWNLOADS = "downloads"
    LARGE_FILES = "large-files"
    NODE_MODULES = "node-modules"
    DUPLICATES = "duplicates"


@dataclass(frozen=True)
class Category:
    """Named class of cleanable items."""

    id: CategoryId
    name: str
    safety_level: SafetyLevel = SafetyLevel.SAFE
    description: str = ""


CATEGORIES: dict[CategoryId, Category] = {
    CategoryId.USER_CACHE: Category(
        CategoryId.USER_CACHE,
        "User Cache",
        SafetyLevel.MODERATE,
        "Cached files in ~/.cache. Applications regenerate them as needed.",
    ),
    CategoryId.SYSTEM_LOGS: Category(
        CategoryId.SYSTEM_LOGS,
        "Rotated Logs",
        SafetyLevel.SAFE,
        "Rotated and compressed log files. Current logs are kept.",
    ),
    CategoryId.TEMP_FILES: Category(
        CategoryId.TEMP_FILES,
        "Temporary Files",
        SafetyLevel.SAFE,
        "Your own files in /tmp and /var/tmp that have not changed recently.",
    ),
    CategoryId.TRASH: Category(
        CategoryId.TRASH,
        "Trash",
        SafetyLevel.SAFE,
        "Files already moved to the trash.",
    ),
    CategoryId.DOWNLOADS: Category(
        CategoryId.DOWNLOADS,
        "Old Downloads",
        SafetyLevel.MODERATE,
        "Items in the Downloads folder that have not been touched for a while.",
    ),
    CategoryId.LARGE_FILES: Category(
        CategoryId.LARGE_FILES,
        "Large Files",
        SafetyLevel.RISKY,
        "Very large files in Downloads and Documents. Review before removing.",
    ),
    CategoryId.NODE_MODULES: Category(
        CategoryId.NODE_MODULES,
        "Project Build Artifacts",
        SafetyLevel.MODERATE,
        "node_modules, virtualenvs and build output of inactive projects.",
    ),
    CategoryId.DUPLICATES: Category(
        CategoryId.DUPLICATES,
        "Duplicate Files",
        SafetyLevel.RISKY,
        "Identical copies of the same file. The most recently modified copy is kept.",
    ),
}
