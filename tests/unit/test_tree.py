"""Tests for directory tree diffing and syncing."""

import os
from pathlib import Path

import pytest

from dotmirror.mirror.tree import (
    apply_changes,
    copy_file_atomic,
    diff_trees,
    files_equal,
    remove_path,
    scan_mirror,
    scan_source,
)
from dotmirror.mirror.types import ChangeKind, TreeChange


def _make_tree(root: Path, files: dict):
    for rel, content in files.items():
        path = root / rel
        if content is None:
            path.mkdir(parents=True, exist_ok=True)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)


class TestFilesEqual:
    def test_same_content(self, tmp_path):
        _make_tree(tmp_path, {"a": "same", "b": "same"})
        assert files_equal(tmp_path / "a", tmp_path / "b") is True

    def test_same_size_different_content(self, tmp_path):
        _make_tree(tmp_path, {"a": "AAAA", "b": "AAAB"})
        assert files_equal(tmp_path / "a", tmp_path / "b") is False

    def test_different_size(self, tmp_path):
        _make_tree(tmp_path, {"a": "A", "b": "AA"})
        assert files_equal(tmp_path / "a", tmp_path / "b") is False


class TestCopyFileAtomic:
    def test_creates_parents_and_copies(self, tmp_path):
        src = tmp_path / "src"
        src.write_text("hello")
        dest = tmp_path / "deep" / "er" / "dest"

        copy_file_atomic(src, dest)

        assert dest.read_text() == "hello"

    def test_leaves_no_temp_files(self, tmp_path):
        src = tmp_path / "src"
        src.write_text("hello")
        (tmp_path / "out").mkdir()
        dest = tmp_path / "out" / "dest"
        dest.write_text("old")

        copy_file_atomic(src, dest)

        assert sorted(p.name for p in (tmp_path / "out").iterdir()) == ["dest"]
        assert dest.read_text() == "hello"

    def test_failed_copy_keeps_old_file(self, tmp_path):
        """A copy that fails midway leaves the previous destination intact."""
        (tmp_path / "out").mkdir()
        dest = tmp_path / "out" / "dest"
        dest.write_text("old")

        with pytest.raises(OSError):
            copy_file_atomic(tmp_path / "does-not-exist", dest)

        assert dest.read_text() == "old"
        assert sorted(p.name for p in (tmp_path / "out").iterdir()) == ["dest"]

    def test_preserves_mode(self, tmp_path):
        src = tmp_path / "script.sh"
        src.write_text("#!/bin/sh\n")
        src.chmod(0o755)
        dest = tmp_path / "out" / "script.sh"

        copy_file_atomic(src, dest)

        assert dest.stat().st_mode & 0o777 == 0o755


class TestScan:
    def test_scan_source_lists_files_and_empty_dirs(self, tmp_path):
        _make_tree(tmp_path, {"a.txt": "a", "sub/b.txt": "b", "empty": None})

        assert scan_source(tmp_path) == {
            "a.txt": "file",
            "empty": "dir",
            "sub": "dir",
            "sub/b.txt": "file",
        }

    def test_scan_source_follows_symlinks(self, tmp_path):
        target = tmp_path / "target"
        _make_tree(target, {"inner.txt": "x"})
        src = tmp_path / "src"
        src.mkdir()
        (src / "link").symlink_to(target, target_is_directory=True)
        (src / "file-link").symlink_to(target / "inner.txt")

        entries = scan_source(src)

        assert entries["link"] == "dir"
        assert entries["link/inner.txt"] == "file"
        assert entries["file-link"] == "file"

    def test_scan_source_stops_at_cycles(self, tmp_path):
        src = tmp_path / "src"
        _make_tree(src, {"sub/a": "a"})
        (src / "sub" / "loop").symlink_to(src, target_is_directory=True)

        entries = scan_source(src)

        assert entries["sub/loop"] == "dir"
        assert not any(rel.startswith("sub/loop/") for rel in entries)

    def test_scan_mirror_does_not_follow_symlinks(self, tmp_path):
        target = tmp_path / "target"
        _make_tree(target, {"inner.txt": "x"})
        mirror = tmp_path / "mirror"
        mirror.mkdir()
        (mirror / "link").symlink_to(target, target_is_directory=True)

        assert scan_mirror(mirror) == {"link": "link"}

    def test_scan_mirror_of_missing_dir_is_empty(self, tmp_path):
        assert scan_mirror(tmp_path / "missing") == {}


class TestDiffTrees:
    def test_identical_trees_have_no_changes(self, tmp_path):
        files = {"a": "1", "sub/b": "2", "empty": None}
        _make_tree(tmp_path / "src", files)
        _make_tree(tmp_path / "dst", files)

        assert diff_trees(tmp_path / "src", tmp_path / "dst") == []

    def test_reports_added_modified_deleted(self, tmp_path):
        _make_tree(tmp_path / "src", {"keep": "k", "changed": "new", "added": "+"})
        _make_tree(tmp_path / "dst", {"keep": "k", "changed": "old", "old.txt": "-"})

        changes = diff_trees(tmp_path / "src", tmp_path / "dst")

        assert changes == [
            TreeChange(ChangeKind.DELETED, "old.txt"),
            TreeChange(ChangeKind.ADDED, "added"),
            TreeChange(ChangeKind.MODIFIED, "changed"),
        ]

    def test_missing_destination_is_all_added(self, tmp_path):
        _make_tree(tmp_path / "src", {"a": "1", "d": None})

        changes = diff_trees(tmp_path / "src", tmp_path / "dst")

        assert [c.kind for c in changes] == [ChangeKind.ADDED, ChangeKind.ADDED]
        assert TreeChange(ChangeKind.ADDED, "d", True) in changes

    def test_type_change_inside_tree_is_modified(self, tmp_path):
        _make_tree(tmp_path / "src", {"x/inner": "i"})
        _make_tree(tmp_path / "dst", {"x": "was a file"})

        changes = diff_trees(tmp_path / "src", tmp_path / "dst")

        assert TreeChange(ChangeKind.MODIFIED, "x", True) in changes
        assert TreeChange(ChangeKind.ADDED, "x/inner") in changes


class TestApplyChanges:
    def _sync(self, src: Path, dst: Path):
        apply_changes(src, dst, diff_trees(src, dst))

    def _snapshot(self, root: Path) -> dict:
        result = {}
        for dirpath, dirnames, filenames in os.walk(root):
            rel_dir = os.path.relpath(dirpath, root)
            for name in dirnames:
                result[os.path.join(rel_dir, name)] = None
            for name in filenames:
                result[os.path.join(rel_dir, name)] = Path(dirpath, name).read_text()
        return result

    def test_mirrors_source_exactly(self, tmp_path):
        src, dst = tmp_path / "src", tmp_path / "dst"
        _make_tree(src, {"a": "1", "sub/b": "2", "empty": None})
        _make_tree(dst, {"a": "old", "stale/deep/c": "3", "old.txt": "x"})

        self._sync(src, dst)

        assert self._snapshot(dst) == self._snapshot(src)
        assert diff_trees(src, dst) == []

    def test_file_becomes_directory(self, tmp_path):
        src, dst = tmp_path / "src", tmp_path / "dst"
        _make_tree(src, {"x/inner": "i"})
        _make_tree(dst, {"x": "file"})

        self._sync(src, dst)

        assert (dst / "x" / "inner").read_text() == "i"

    def test_directory_becomes_file(self, tmp_path):
        src, dst = tmp_path / "src", tmp_path / "dst"
        _make_tree(src, {"x": "now a file"})
        _make_tree(dst, {"x/inner": "i", "x/sub/deeper": "d"})

        self._sync(src, dst)

        assert (dst / "x").read_text() == "now a file"

    def test_replaces_symlink_in_mirror(self, tmp_path):
        src, dst = tmp_path / "src", tmp_path / "dst"
        _make_tree(src, {"conf": "real"})
        _make_tree(tmp_path / "elsewhere", {"conf": "linked"})
        dst.mkdir()
        (dst / "conf").symlink_to(tmp_path / "elsewhere" / "conf")

        self._sync(src, dst)

        assert not (dst / "conf").is_symlink()
        assert (dst / "conf").read_text() == "real"
        assert (tmp_path / "elsewhere" / "conf").read_text() == "linked"


class TestRemovePath:
    def test_removes_file_dir_and_ignores_missing(self, tmp_path):
        _make_tree(tmp_path, {"f": "x", "d/inner": "y"})

        remove_path(tmp_path / "f")
        remove_path(tmp_path / "d")
        remove_path(tmp_path / "missing")

        assert list(tmp_path.iterdir()) == []
