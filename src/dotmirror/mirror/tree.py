"""Delete-aware comparison and synchronization of directory trees."""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, FrozenSet, List

from .types import ChangeKind, TreeChange

logger = logging.getLogger(__name__)

ENTRY_FILE = "file"
ENTRY_DIR = "dir"
ENTRY_LINK = "link"

CHUNK_SIZE = 64 * 1024


def files_equal(a: Path, b: Path) -> bool:
    """Compare two files byte for byte."""
    if a.stat().st_size != b.stat().st_size:
        return False
    with open(a, "rb") as fa, open(b, "rb") as fb:
        while True:
            chunk_a = fa.read(CHUNK_SIZE)
            chunk_b = fb.read(CHUNK_SIZE)
            if chunk_a != chunk_b:
                return False
            if not chunk_a:
                return True


def copy_file_atomic(source: Path, destination: Path):
    """Copy ``source`` over ``destination`` without exposing a partial file.

    The data is written to a temporary file next to the destination and
    renamed into place, so an interrupted copy never leaves a truncated
    file under the final name.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
    )
    os.close(fd)
    try:
        shutil.copy2(source, tmp_name)
        os.replace(tmp_name, destination)
    except BaseException:
        if os.path.lexists(tmp_name):
            os.unlink(tmp_name)
        raise


def remove_path(path: Path):
    """Remove a file, symlink or whole directory. Missing paths are ignored."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def scan_source(root: Path) -> Dict[str, str]:
    """List every entry under a source tree, following symlinks.

    Returns a mapping of POSIX relative path to entry type. A symlink that
    points back at one of its own ancestors is listed once and not
    descended into again.
    """
    entries: Dict[str, str] = {}

    def walk(directory: Path, prefix: str, ancestors: FrozenSet[str]):
        with os.scandir(directory) as it:
            children = sorted(it, key=lambda e: e.name)
        for entry in children:
            rel = prefix + entry.name
            if entry.is_dir():
                real = os.path.realpath(entry.path)
                entries[rel] = ENTRY_DIR
                if real in ancestors:
                    logger.warning(f"Not following directory cycle at {entry.path}")
                    continue
                walk(Path(entry.path), rel + "/", ancestors | {real})
            elif entry.is_file():
                entries[rel] = ENTRY_FILE
            elif entry.is_symlink():
                logger.warning(f"Skipping broken symlink {entry.path}")
            else:
                logger.warning(f"Skipping special file {entry.path}")

    walk(root, "", frozenset({os.path.realpath(root)}))
    return entries


def scan_mirror(root: Path) -> Dict[str, str]:
    """List every entry under a mirror tree without following symlinks."""
    entries: Dict[str, str] = {}
    if root.is_symlink() or not root.is_dir():
        return entries

    def walk(directory: Path, prefix: str):
        with os.scandir(directory) as it:
            children = sorted(it, key=lambda e: e.name)
        for entry in children:
            rel = prefix + entry.name
            if entry.is_symlink():
                entries[rel] = ENTRY_LINK
            elif entry.is_dir(follow_symlinks=False):
                entries[rel] = ENTRY_DIR
                walk(Path(entry.path), rel + "/")
            else:
                entries[rel] = ENTRY_FILE

    walk(root, "")
    return entries


def diff_trees(source: Path, destination: Path) -> List[TreeChange]:
    """Compute the changes that make ``destination`` mirror ``source``.

    Deletions are listed first, then additions and modifications, each
    group in path order.
    """
    src = scan_source(source)
    dst = scan_mirror(destination)

    deleted = [
        TreeChange(ChangeKind.DELETED, rel, dst[rel] == ENTRY_DIR)
        for rel in sorted(dst)
        if rel not in src
    ]

    updates: List[TreeChange] = []
    for rel in sorted(src):
        kind = src[rel]
        is_dir = kind == ENTRY_DIR
        existing = dst.get(rel)
        if existing is None:
            updates.append(TreeChange(ChangeKind.ADDED, rel, is_dir))
        elif existing != kind:
            updates.append(TreeChange(ChangeKind.MODIFIED, rel, is_dir))
        elif not is_dir and not files_equal(source / rel, destination / rel):
            updates.append(TreeChange(ChangeKind.MODIFIED, rel, is_dir))

    return deleted + updates


def apply_changes(source: Path, destination: Path, changes: List[TreeChange]):
    """Make ``destination`` match ``source`` using a precomputed change list."""
    destination.mkdir(parents=True, exist_ok=True)

    deletions = [c for c in changes if c.kind == ChangeKind.DELETED]
    updates = [c for c in changes if c.kind != ChangeKind.DELETED]

    # Children before their parents
    for change in sorted(deletions, key=lambda c: c.path, reverse=True):
        logger.debug(f"Deleting {destination / change.path}")
        remove_path(destination / change.path)

    # Parents before their children
    for change in sorted(updates, key=lambda c: c.path):
        target = destination / change.path
        if change.kind == ChangeKind.MODIFIED and (
            target.is_symlink() or target.is_dir() != change.is_dir
        ):
            remove_path(target)
        if change.is_dir:
            target.mkdir(parents=True, exist_ok=True)
        else:
            logger.debug(f"Copying {source / change.path} -> {target}")
            copy_file_atomic(source / change.path, target)
