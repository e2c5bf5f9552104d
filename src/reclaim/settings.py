"""JSON-backed user settings."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from reclaim.core.filtering import FilterConfig
from reclaim.core.registry import parse_category_id
from reclaim.core.scheduler import DEFAULT_CONCURRENCY
from reclaim.utils import xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "reclaim"
_SETTINGS_FILE = "settings.json"


def default_settings_path() -> Path:
    return xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE


class Settings:
    """Persistent settings backed by a JSON file.

    Uses dot-notation keys for nested access:
        settings.get("scan.concurrency")  # reads data["scan"]["concurrency"]
        settings.set("scan.parallel", False)  # writes + saves

    Recognised keys: ``ignored_paths``, ``ignored_folders``,
    ``ignored_categories``, ``scan.parallel``, ``scan.concurrency``,
    ``scan.days_old`` and ``scan.min_size``.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_settings_path()
        self._data: dict[str, Any] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Set a value by dot-notation key and persist to disk."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        self._save()

    def _list(self, key: str) -> list[str]:
        value = self.get(key, [])
        if not isinstance(value, list):
            log.warning("Setting '%s' should be a list, ignoring %r", key, value)
            return []
        return [str(v) for v in value]

    def filter_config(self) -> FilterConfig:
        """Snapshot of the ignore rules for one run."""
        return FilterConfig.from_lists(
            ignored_paths=[str(Path(p).expanduser()) for p in self._list("ignored_paths")],
            ignored_folders=[str(Path(f).expanduser()) for f in self._list("ignored_folders")],
            ignored_categories=self._list("ignored_categories"),
        )

    @property
    def parallel(self) -> bool:
        return bool(self.get("scan.parallel", True))

    @property
    def concurrency(self) -> int:
        value = self.get("scan.concurrency", DEFAULT_CONCURRENCY)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            log.warning("Invalid scan.concurrency %r, using %d", value, DEFAULT_CONCURRENCY)
            return DEFAULT_CONCURRENCY
        return value

    def add_ignored(
        self,
        *,
        paths: Iterable[str] = (),
        folders: Iterable[str] = (),
        categories: Iterable[str] = (),
    ) -> None:
        """Append unique entries to the ignore lists and save once.

        Raises:
            UnknownCategoryError: If a category id is not known.
        """
        category_values = [parse_category_id(c).value for c in categories]
        changed = False
        for key, values in (
            ("ignored_paths", [str(Path(p).expanduser().absolute()) for p in paths]),
            ("ignored_folders", [str(Path(f).expanduser().absolute()) for f in folders]),
            ("ignored_categories", category_values),
        ):
            current = self._list(key)
            for value in values:
                if value not in current:
                    current.append(value)
                    changed = True
            self._data[key] = current
        if changed:
            self._save()

    def _load(self) -> None:
        """Load settings from disk, gracefully handling errors."""
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return
        if not isinstance(data, dict):
            log.warning("Settings file %s does not contain an object, ignoring it", self._path)
            return
        self._data = data

    def _save(self) -> None:
        """Persist settings to disk."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            log.warning("Could not save settings to %s: %s", self._path, e)
