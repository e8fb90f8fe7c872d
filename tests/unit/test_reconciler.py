"""Tests for reconciling a single source with its mirror copy."""

import os

import pytest

from dotmirror.errors import MirrorTypeConflict, UnsupportedSource
from dotmirror.mirror.reconciler import (
    DirectoryReconciler,
    FileReconciler,
    reconcile,
)
from dotmirror.mirror.types import (
    ChangeKind,
    OutcomeStatus,
    SourceKind,
    SyncMode,
)

APPLY = SyncMode.APPLY
PREVIEW = SyncMode.PREVIEW


class TestMissingSource:
    def test_returns_source_missing_and_leaves_destination(self, tmp_path):
        dest = tmp_path / "mirror" / ".zshrc"
        dest.parent.mkdir()
        dest.write_text("kept")

        outcome = reconcile(tmp_path / "nope", dest, APPLY, label=".zshrc")

        assert outcome.status == OutcomeStatus.SOURCE_MISSING
        assert outcome.dest == ".zshrc"
        assert dest.read_text() == "kept"

    def test_broken_symlink_counts_as_missing(self, tmp_path):
        link = tmp_path / "link"
        link.symlink_to(tmp_path / "gone")

        outcome = reconcile(link, tmp_path / "dest", APPLY)

        assert outcome.status == OutcomeStatus.SOURCE_MISSING


class TestFileSource:
    def test_new_file_is_created(self, tmp_path):
        src = tmp_path / ".zshrc"
        src.write_text("A")
        dest = tmp_path / "mirror" / "shell" / ".zshrc"

        outcome = reconcile(src, dest, APPLY)

        assert outcome.status == OutcomeStatus.CREATED
        assert outcome.kind == SourceKind.FILE
        assert dest.read_text() == "A"

    def test_changed_file_is_updated_then_unchanged(self, tmp_path):
        src = tmp_path / ".zshrc"
        src.write_text("B")
        dest = tmp_path / "mirror" / ".zshrc"
        dest.parent.mkdir()
        dest.write_text("A")

        first = reconcile(src, dest, APPLY)
        second = reconcile(src, dest, APPLY)

        assert first.status == OutcomeStatus.UPDATED
        assert dest.read_text() == "B"
        assert second.status == OutcomeStatus.UNCHANGED

    def test_preview_never_writes(self, tmp_path):
        src = tmp_path / ".zshrc"
        src.write_text("B")
        dest = tmp_path / "mirror" / ".zshrc"
        dest.parent.mkdir()
        dest.write_text("A")

        outcome = reconcile(src, dest, PREVIEW)

        assert outcome.status == OutcomeStatus.UPDATED
        assert dest.read_text() == "A"

    def test_preview_of_new_file_creates_nothing(self, tmp_path):
        src = tmp_path / ".zshrc"
        src.write_text("A")
        dest = tmp_path / "mirror" / "deep" / ".zshrc"

        outcome = reconcile(src, dest, PREVIEW)

        assert outcome.status == OutcomeStatus.CREATED
        assert not (tmp_path / "mirror").exists()

    def test_symlinked_source_is_copied_by_content(self, tmp_path):
        real = tmp_path / "real.conf"
        real.write_text("content")
        src = tmp_path / "link.conf"
        src.symlink_to(real)
        dest = tmp_path / "mirror" / "link.conf"

        reconcile(src, dest, APPLY)

        assert not dest.is_symlink()
        assert dest.read_text() == "content"

    def test_directory_destination_is_a_conflict(self, tmp_path):
        src = tmp_path / "conf"
        src.write_text("file")
        dest = tmp_path / "mirror" / "conf"
        dest.mkdir(parents=True)

        with pytest.raises(MirrorTypeConflict):
            reconcile(src, dest, APPLY)
        assert dest.is_dir()

    def test_conflict_replaced_when_confirmed(self, tmp_path):
        src = tmp_path / "conf"
        src.write_text("file")
        dest = tmp_path / "mirror" / "conf"
        (dest / "inner").mkdir(parents=True)

        outcome = reconcile(src, dest, APPLY, replace_conflicts=True)

        assert outcome.status == OutcomeStatus.UPDATED
        assert dest.read_text() == "file"

    def test_symlink_destination_is_replaced(self, tmp_path):
        src = tmp_path / ".zshrc"
        src.write_text("real")
        elsewhere = tmp_path / "elsewhere"
        elsewhere.write_text("linked")
        dest = tmp_path / "mirror" / ".zshrc"
        dest.parent.mkdir()
        dest.symlink_to(elsewhere)

        outcome = reconcile(src, dest, APPLY)

        assert outcome.status == OutcomeStatus.UPDATED
        assert not dest.is_symlink()
        assert dest.read_text() == "real"
        assert elsewhere.read_text() == "linked"

    def test_special_file_is_unsupported(self, tmp_path):
        fifo = tmp_path / "fifo"
        os.mkfifo(fifo)

        with pytest.raises(UnsupportedSource):
            reconcile(fifo, tmp_path / "dest", PREVIEW)


class TestDirectorySource:
    def _source(self, tmp_path, files):
        src = tmp_path / "nvim"
        for rel, content in files.items():
            path = src / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return src

    def test_new_directory_is_created(self, tmp_path):
        src = self._source(tmp_path, {"init.lua": "x", "lua/a.lua": "y"})
        dest = tmp_path / "mirror" / ".config" / "nvim"

        outcome = reconcile(src, dest, APPLY)

        assert outcome.status == OutcomeStatus.CREATED
        assert outcome.kind == SourceKind.DIRECTORY
        assert (dest / "lua" / "a.lua").read_text() == "y"

    def test_empty_source_directory_is_mirrored(self, tmp_path):
        src = tmp_path / "empty"
        src.mkdir()
        dest = tmp_path / "mirror" / "empty"

        outcome = reconcile(src, dest, APPLY)

        assert outcome.status == OutcomeStatus.CREATED
        assert dest.is_dir()
        assert reconcile(src, dest, APPLY).status == OutcomeStatus.UNCHANGED

    def test_deletes_entries_missing_from_source(self, tmp_path):
        src = self._source(tmp_path, {"init.lua": "x"})
        dest = tmp_path / "mirror" / "nvim"
        dest.mkdir(parents=True)
        (dest / "init.lua").write_text("x")
        (dest / "old.txt").write_text("stale")

        outcome = reconcile(src, dest, APPLY)

        assert outcome.status == OutcomeStatus.UPDATED
        assert [(c.kind, c.path) for c in outcome.changes] == [
            (ChangeKind.DELETED, "old.txt")
        ]
        assert not (dest / "old.txt").exists()
        assert reconcile(src, dest, APPLY).status == OutcomeStatus.UNCHANGED

    def test_preview_caps_change_list(self, tmp_path):
        src = self._source(tmp_path, {f"f{i}": str(i) for i in range(8)})
        dest = tmp_path / "mirror" / "nvim"
        dest.mkdir(parents=True)

        outcome = reconcile(src, dest, PREVIEW)

        assert outcome.status == OutcomeStatus.UPDATED
        assert len(outcome.changes) == 5
        assert outcome.omitted == 3
        assert list(dest.iterdir()) == []

    def test_symlink_destination_is_replaced(self, tmp_path):
        """A linked mirror directory is replaced like a linked mirror file."""
        src = self._source(tmp_path, {"init.lua": "x"})
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        (elsewhere / "keep.lua").write_text("untouched")
        dest = tmp_path / "mirror" / "nvim"
        dest.parent.mkdir()
        dest.symlink_to(elsewhere, target_is_directory=True)

        outcome = reconcile(src, dest, APPLY)

        assert outcome.status == OutcomeStatus.UPDATED
        assert not dest.is_symlink()
        assert sorted(p.name for p in dest.iterdir()) == ["init.lua"]
        assert (elsewhere / "keep.lua").read_text() == "untouched"
        assert reconcile(src, dest, APPLY).status == OutcomeStatus.UNCHANGED

    def test_symlink_destination_preview_does_not_write(self, tmp_path):
        src = self._source(tmp_path, {"init.lua": "x"})
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        dest = tmp_path / "mirror" / "nvim"
        dest.parent.mkdir()
        dest.symlink_to(elsewhere, target_is_directory=True)

        outcome = reconcile(src, dest, PREVIEW)

        assert outcome.status == OutcomeStatus.UPDATED
        assert dest.is_symlink()
        assert list(elsewhere.iterdir()) == []

    def test_file_destination_is_a_conflict(self, tmp_path):
        src = self._source(tmp_path, {"init.lua": "x"})
        dest = tmp_path / "mirror" / "nvim"
        dest.parent.mkdir()
        dest.write_text("a file")

        with pytest.raises(MirrorTypeConflict):
            reconcile(src, dest, APPLY)
        assert dest.read_text() == "a file"

    def test_conflict_preview_with_replace_does_not_write(self, tmp_path):
        src = self._source(tmp_path, {"init.lua": "x"})
        dest = tmp_path / "mirror" / "nvim"
        dest.parent.mkdir()
        dest.write_text("a file")

        outcome = reconcile(src, dest, PREVIEW, replace_conflicts=True)

        assert outcome.status == OutcomeStatus.UPDATED
        assert dest.read_text() == "a file"

    def test_conflict_replaced_when_confirmed(self, tmp_path):
        src = self._source(tmp_path, {"init.lua": "x"})
        dest = tmp_path / "mirror" / "nvim"
        dest.parent.mkdir()
        dest.write_text("a file")

        outcome = reconcile(src, dest, APPLY, replace_conflicts=True)

        assert outcome.status == OutcomeStatus.UPDATED
        assert (dest / "init.lua").read_text() == "x"


class TestReconcilerClasses:
    def test_diff_does_not_apply(self, tmp_path):
        src = tmp_path / "a"
        src.write_text("x")
        dest = tmp_path / "b"

        reconciler = FileReconciler(src, dest, label="b")
        outcome = reconciler.diff()

        assert outcome.status == OutcomeStatus.CREATED
        assert outcome.dest == "b"
        assert not dest.exists()

        reconciler.apply(outcome)
        assert dest.read_text() == "x"

    def test_directory_reconciler_kind(self, tmp_path):
        assert DirectoryReconciler.kind == SourceKind.DIRECTORY
        assert FileReconciler.kind == SourceKind.FILE
