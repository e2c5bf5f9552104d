"""Tests for shared utility functions."""

from __future__ import annotations

import shutil
import threading
import time
from pathlib import Path

import pytest

import reclaim.utils as utils
from reclaim.core.cancellation import CancellationToken
from reclaim.models.scan_result import CleanableItem
from reclaim.utils import (
    bytes_to_human,
    dir_info,
    format_elapsed,
    remove_items,
    run_cancellable,
    top_level_items,
    xdg_user_dir,
)


@pytest.fixture
def sized_tree(tmp_path):
    root = tmp_path / "tree"
    (root / "a" / "b").mkdir(parents=True)
    (root / "one.bin").write_bytes(b"1" * 100)
    (root / "a" / "two.bin").write_bytes(b"2" * 200)
    (root / "a" / "b" / "three.bin").write_bytes(b"3" * 300)
    return root


class TestBytesToHuman:
    @pytest.mark.parametrize(
        "size, expected",
        [
            (0, "0 B"),
            (512, "512 B"),
            (1536, "1.5 KB"),
            (5 * 1024 * 1024, "5.0 MB"),
            (3 * 1024**4, "3.0 TB"),
            (-2048, "-2.0 KB"),
        ],
    )
    def test_formats(self, size, expected):
        assert bytes_to_human(size) == expected


class TestFormatElapsed:
    def test_milliseconds(self):
        assert format_elapsed(0.25) == "250 ms"

    def test_seconds(self):
        assert format_elapsed(12.34) == "12.3s"

    def test_minutes(self):
        assert format_elapsed(125) == "2m 5s"


class TestDirInfo:
    def test_with_find(self, sized_tree):
        if shutil.which("find") is None:
            pytest.skip("find not installed")
        assert dir_info(sized_tree) == (600, 3)

    def test_scandir_fallback(self, sized_tree, monkeypatch):
        monkeypatch.setattr(utils.shutil, "which", lambda name: None)
        assert dir_info(sized_tree) == (600, 3)

    def test_missing_directory(self, tmp_path):
        assert dir_info(tmp_path / "missing") == (0, 0)


class TestRemoveItems:
    def test_removes_files_and_directories(self, sized_tree):
        items = [
            CleanableItem(sized_tree / "one.bin", 100, "one.bin"),
            CleanableItem(sized_tree / "a", 500, "a", is_directory=True),
        ]

        cleaned, failed, freed, errors = remove_items(items)

        assert (cleaned, failed, freed, errors) == (2, 0, 600, [])
        assert list(sized_tree.iterdir()) == []

    def test_recreate_dirs(self, sized_tree):
        item = CleanableItem(sized_tree / "a", 500, "a", is_directory=True)

        remove_items([item], recreate_dirs=True)

        assert (sized_tree / "a").is_dir()
        assert list((sized_tree / "a").iterdir()) == []

    def test_dry_run(self, sized_tree):
        item = CleanableItem(sized_tree / "one.bin", 100, "one.bin")

        assert remove_items([item], dry_run=True) == (1, 0, 100, [])
        assert (sized_tree / "one.bin").exists()

    def test_already_missing_item_frees_nothing(self, sized_tree):
        items = [
            CleanableItem(sized_tree / "one.bin", 100, "one.bin"),
            CleanableItem(sized_tree / "gone.bin", 700, "gone.bin"),
        ]

        cleaned, failed, freed, errors = remove_items(items)

        assert (cleaned, failed, freed, errors) == (2, 0, 100, [])

    def test_failures_are_counted(self, sized_tree, monkeypatch):
        def refuse(self, *args, **kwargs):
            raise PermissionError("read-only file system")

        monkeypatch.setattr(Path, "unlink", refuse)
        item = CleanableItem(sized_tree / "one.bin", 100, "one.bin")

        cleaned, failed, freed, errors = remove_items([item])

        assert (cleaned, failed, freed) == (0, 1, 0)
        assert "read-only" in errors[0]


class TestRunCancellable:
    def test_returns_output(self):
        proc = run_cancellable(["echo", "hello"])
        assert proc.returncode == 0
        assert proc.stdout.strip() == b"hello"

    def test_cancel_terminates_process(self):
        token = CancellationToken()
        timer = threading.Timer(0.05, token.cancel)
        started = time.monotonic()
        timer.start()

        proc = run_cancellable(["sleep", "30"], token)

        timer.join()
        assert proc.returncode != 0
        assert time.monotonic() - started < 10


class TestTopLevelItems:
    def test_sizes_directories_recursively(self, sized_tree):
        items = {i.name: i for i in top_level_items(sized_tree)}
        assert items["a"].size_bytes == 500
        assert items["a"].is_directory
        assert items["one.bin"].size_bytes == 100

    def test_accept_filter(self, sized_tree):
        items = top_level_items(sized_tree, accept=lambda record: not record.is_directory)
        assert [i.name for i in items] == ["one.bin"]

    def test_missing_directory(self, tmp_path):
        assert top_level_items(tmp_path / "missing") == []


class TestXdgUserDir:
    def test_reads_user_dirs_file(self, tmp_path, monkeypatch):
        home = tmp_path / "home"
        monkeypatch.setattr(Path, "home", staticmethod(lambda: home))
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        (tmp_path / "user-dirs.dirs").write_text('XDG_DOCUMENTS_DIR="$HOME/Dokumenty"\n')

        assert xdg_user_dir("DOCUMENTS", "Documents") == home / "Dokumenty"

    def test_falls_back_to_home(self, tmp_path, monkeypatch):
        home = tmp_path / "home"
        monkeypatch.setattr(Path, "home", staticmethod(lambda: home))
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "empty"))

        assert xdg_user_dir("DESKTOP", "Desktop") == home / "Desktop"
