"""Exceptions raised by the dotmirror engine."""

from pathlib import Path
from typing import Union


class DotmirrorError(Exception):
    """Base class for all dotmirror errors."""


class ConfigError(DotmirrorError):
    """The configuration document could not be used."""


class ConfigNotFound(ConfigError):
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"Configuration file not found: {self.path}")


class ConfigMalformed(ConfigError):
    def __init__(self, reason: str, path: Union[str, Path, None] = None):
        self.reason = reason
        self.path = Path(path) if path else None
        where = f" ({self.path})" if self.path else ""
        super().__init__(f"Malformed configuration{where}: {reason}")


class MirrorError(DotmirrorError):
    """A single mapping could not be reconciled."""


class MirrorTypeConflict(MirrorError):
    """Source and destination disagree on being a file or a directory."""

    def __init__(self, source: Path, destination: Path):
        self.source = source
        self.destination = destination
        src_kind = "directory" if source.is_dir() else "file"
        if destination.is_symlink():
            dest_kind = "symlink"
        else:
            dest_kind = "directory" if destination.is_dir() else "file"
        super().__init__(
            f"Type conflict: source {source} is a {src_kind} "
            f"but mirror {destination} is a {dest_kind}"
        )


class UnsupportedSource(MirrorError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(
            f"Unsupported source type (not a file or directory): {path}"
        )


class PublishFailed(DotmirrorError):
    """A git step of the publish sequence failed."""

    def __init__(self, step: str, reason: str):
        self.step = step
        self.reason = reason
        super().__init__(f"{step} failed: {reason}")


class DependencyMissing(DotmirrorError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name} is not installed")
