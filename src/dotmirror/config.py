"""Configuration document model for dotmirror.

The document has a fixed two-level shape::

    repository:
      url: "git@github.com:me/dotfiles.git"
      branch: "main"
    files:
      - source: "~/.zshrc"
        dest: ".zshrc"

It is read with PyYAML but anything outside this shape is rejected rather
than interpreted.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterator, List, Optional, Union

import yaml

from .errors import ConfigMalformed, ConfigNotFound

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"

REPOSITORY_KEYS = ("url", "branch")
MAPPING_KEYS = ("source", "dest")
TOP_LEVEL_KEYS = ("repository", "files")

# Mappings written by `init`, in the order the starter document lists them
DEFAULT_MAPPINGS = [
    ("~/.zshrc", ".zshrc"),
    ("~/.bashrc", ".bashrc"),
    ("~/.profile", ".profile"),
    ("~/.gitconfig", ".gitconfig"),
    ("~/.vimrc", ".vimrc"),
]


@dataclass(frozen=True)
class RepositoryTarget:
    """Remote the mirror is published to."""

    url: str = ""
    branch: str = DEFAULT_BRANCH

    @property
    def provider(self) -> str:
        """Hosting provider guessed from the url. Display only."""
        if "github.com" in self.url:
            return "github"
        if "gitlab.com" in self.url:
            return "gitlab"
        return "unknown"


@dataclass(frozen=True)
class FileMapping:
    """A declared (source, destination) pair.

    ``source`` is already expanded against the home directory;
    ``raw_source`` keeps the string as it was written in the document.
    """

    source: Path
    dest: str
    raw_source: str = ""

    def __str__(self) -> str:
        return f"{self.raw_source or self.source} -> {self.dest}"


@dataclass
class Document:
    """A parsed configuration document."""

    repository: RepositoryTarget = field(default_factory=RepositoryTarget)
    mappings: List[FileMapping] = field(default_factory=list)

    def __iter__(self) -> Iterator[Any]:
        # Allows `repository, mappings = load(path)`
        yield self.repository
        yield self.mappings


def expand_source(raw: str, home: Path) -> Path:
    """Resolve a source path as written in the document.

    ``~`` and ``~/...`` are expanded against ``home``; other relative
    paths are taken relative to ``home`` as well.
    """
    if raw == "~":
        return home
    if raw.startswith("~/"):
        return home / raw[2:]
    if raw.startswith("~"):
        return Path(raw).expanduser()
    path = Path(raw)
    if path.is_absolute():
        return path
    return home / path


def normalize_dest(dest: str) -> str:
    """Validate a destination and return it in normalized POSIX form."""
    posix = PurePosixPath(dest.strip())
    if posix.is_absolute():
        raise ConfigMalformed(f"dest must be relative to the mirror root: {dest!r}")
    if ".." in posix.parts:
        raise ConfigMalformed(f"dest must not leave the mirror root: {dest!r}")
    if not posix.parts:
        raise ConfigMalformed(f"dest must name a path inside the mirror root: {dest!r}")
    return posix.as_posix()


def check_dest_overlaps(dests: List[str]):
    """Reject destinations that repeat or sit inside another destination.

    Every mirror path must belong to exactly one mapping.
    """
    seen = set()
    for dest in dests:
        if dest in seen:
            raise ConfigMalformed(f"dest {dest!r} is used by more than one mapping")
        seen.add(dest)
    for dest in dests:
        for parent in PurePosixPath(dest).parents:
            if parent.as_posix() in seen:
                raise ConfigMalformed(
                    f"dest {dest!r} is inside the dest of another mapping "
                    f"({parent.as_posix()!r})"
                )


def default_dest(source: Path) -> str:
    """Destination used when a mapping does not name one."""
    name = source.name
    if not name:
        raise ConfigMalformed(f"cannot derive a dest from source {source}")
    return name


def _require_str(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise ConfigMalformed(f"{what} must be a string, got {type(value).__name__}")
    return value


def _check_keys(data: Dict[str, Any], allowed: tuple, what: str):
    unknown = [k for k in data if k not in allowed]
    if unknown:
        raise ConfigMalformed(
            f"unknown key(s) in {what}: {', '.join(str(k) for k in unknown)}"
        )


def _parse_repository(data: Any) -> RepositoryTarget:
    if data is None:
        return RepositoryTarget()
    if not isinstance(data, dict):
        raise ConfigMalformed("'repository' must be a mapping")
    _check_keys(data, REPOSITORY_KEYS, "repository")

    url = data.get("url")
    url = "" if url is None else _require_str(url, "repository.url")
    branch = data.get("branch")
    branch = DEFAULT_BRANCH if branch is None else _require_str(branch, "repository.branch")
    return RepositoryTarget(url=url.strip(), branch=branch.strip() or DEFAULT_BRANCH)


def _parse_mapping(index: int, entry: Any, home: Path) -> FileMapping:
    what = f"files[{index}]"
    if not isinstance(entry, dict):
        raise ConfigMalformed(f"{what} must be a mapping with a 'source' key")
    _check_keys(entry, MAPPING_KEYS, what)

    raw_source = entry.get("source")
    if raw_source is None:
        raise ConfigMalformed(f"{what} is missing 'source'")
    raw_source = _require_str(raw_source, f"{what}.source").strip()
    if not raw_source:
        raise ConfigMalformed(f"{what}.source must not be empty")

    source = expand_source(raw_source, home)

    dest = entry.get("dest")
    if dest is None or (isinstance(dest, str) and not dest.strip()):
        dest = default_dest(source)
    dest = normalize_dest(_require_str(dest, f"{what}.dest"))

    return FileMapping(source=source, dest=dest, raw_source=raw_source)


def parse(text: str, home: Optional[Path] = None) -> Document:
    """Parse configuration text into a Document.

    Args:
        text: The YAML document.
        home: Directory ``~`` expands to (defaults to the current user's).

    Raises:
        ConfigMalformed: If the text is not valid YAML or not in the
            expected shape.
    """
    home = Path(home) if home else Path.home()

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigMalformed(f"invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ConfigMalformed("document must be a mapping with a 'files' section")
    _check_keys(data, TOP_LEVEL_KEYS, "document")

    if "files" not in data:
        raise ConfigMalformed("missing 'files' section")

    files = data["files"]
    if files is None:
        files = []
    if not isinstance(files, list):
        raise ConfigMalformed("'files' must be a list of mappings")

    repository = _parse_repository(data.get("repository"))
    mappings = [_parse_mapping(i, entry, home) for i, entry in enumerate(files)]
    check_dest_overlaps([m.dest for m in mappings])
    return Document(repository=repository, mappings=mappings)


def load(path: Union[str, Path], home: Optional[Path] = None) -> Document:
    """Load and parse the configuration document at ``path``.

    Raises:
        ConfigNotFound: If ``path`` does not exist.
        ConfigMalformed: If the document cannot be parsed.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigNotFound(path)

    try:
        text = path.read_text()
    except OSError as e:
        raise ConfigMalformed(f"cannot read file: {e}", path) from e

    try:
        document = parse(text, home)
    except ConfigMalformed as e:
        raise ConfigMalformed(e.reason, path) from e

    logger.debug(
        f"Loaded {len(document.mappings)} mapping(s) from {path}"
    )
    return document


class ConfigFile:
    """Editable view of the configuration document on disk.

    Edits go through the raw document so that ``raw_source`` strings
    (with their ``~``) are written back as the user wrote them. Comments
    are not preserved when the file is saved.
    """

    def __init__(self, path: Union[str, Path], home: Optional[Path] = None):
        self.path = Path(path)
        self.home = Path(home) if home else Path.home()
        document = load(self.path, self.home)
        self.url = document.repository.url
        self.branch = document.repository.branch
        self.entries: List[Dict[str, str]] = [
            {"source": m.raw_source, "dest": m.dest} for m in document.mappings
        ]

    @property
    def document(self) -> Document:
        """The current (possibly edited) state as a Document."""
        return parse(self.dump(), self.home)

    def find(self, source: str) -> Optional[int]:
        """Return the index of the entry with this raw source, if any."""
        wanted = source.strip()
        for i, entry in enumerate(self.entries):
            if entry["source"] == wanted:
                return i
        return None

    def add_mapping(self, source: str, dest: Optional[str] = None) -> FileMapping:
        """Add a mapping and return it.

        Raises:
            ConfigMalformed: If the source is empty, already tracked,
                the dest is not a safe relative path, or the dest overlaps
                another mapping.
        """
        source = source.strip()
        if not source:
            raise ConfigMalformed("source must not be empty")
        if self.find(source) is not None:
            raise ConfigMalformed(f"source is already tracked: {source}")

        expanded = expand_source(source, self.home)
        if dest is None or not dest.strip():
            dest = default_dest(expanded)
        dest = normalize_dest(dest)
        check_dest_overlaps([e["dest"] for e in self.entries] + [dest])

        self.entries.append({"source": source, "dest": dest})
        logger.info(f"Added mapping {source} -> {dest}")
        return FileMapping(source=expanded, dest=dest, raw_source=source)

    def remove_mapping(self, source: Union[str, int]) -> Dict[str, str]:
        """Remove a mapping by raw source string or 1-based index.

        Raises:
            KeyError: If no such mapping exists.
        """
        if isinstance(source, int):
            if source < 1 or source > len(self.entries):
                raise KeyError(f"no mapping number {source}")
            index = source - 1
        else:
            index = self.find(source)
            if index is None:
                raise KeyError(f"no mapping with source {source}")

        removed = self.entries.pop(index)
        logger.info(f"Removed mapping {removed['source']}")
        return removed

    def set_repository(self, url: Optional[str] = None, branch: Optional[str] = None):
        if url is not None:
            self.url = url.strip()
        if branch is not None:
            self.branch = branch.strip() or DEFAULT_BRANCH

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repository": {"url": self.url, "branch": self.branch},
            "files": [dict(e) for e in self.entries],
        }

    def dump(self) -> str:
        return yaml.safe_dump(
            self.to_dict(), default_flow_style=False, sort_keys=False
        )

    def save(self):
        header = "# Dotfiles Management Configuration\n\n"
        self.path.write_text(header + self.dump())
        logger.debug(f"Wrote configuration to {self.path}")

    @classmethod
    def create_default(
        cls,
        path: Union[str, Path],
        url: str = "",
        branch: str = DEFAULT_BRANCH,
        home: Optional[Path] = None,
    ) -> "ConfigFile":
        """Write a starter document to ``path`` and return it."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        created = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        lines = [
            "# Dotfiles Management Configuration",
            f"# Created: {created}",
            "",
            "# Git repository settings",
            "repository:",
            f"  url: {json.dumps(url)}",
            f"  branch: {json.dumps(branch or DEFAULT_BRANCH)}",
            "",
            "# Files to manage",
            "#   - source: \"~/path/to/file\"",
            "#     dest: \"relative/path/in/homeroot\"",
            "files:",
        ]
        for source, dest in DEFAULT_MAPPINGS:
            lines.append(f"  - source: \"{source}\"")
            lines.append(f"    dest: \"{dest}\"")
        path.write_text("\n".join(lines) + "\n")
        logger.info(f"Created configuration at {path}")
        return cls(path, home)
