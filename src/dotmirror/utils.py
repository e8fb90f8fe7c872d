"""Shared utilities: logging setup, version lookup, url validation."""

import importlib.metadata
import logging
import re
import sys
from typing import Optional

PACKAGE_NAME = "dotmirror"

_SCP_LIKE = re.compile(r"^[\w.-]+@[\w.-]+:[\w./~-]+$")
_URL_SCHEMES = ("https://", "http://", "ssh://", "git://", "file://")


def setup_logging(verbose: bool = False):
    """Configure root logging for the CLI.

    Verbose mode logs everything at DEBUG; otherwise only warnings and
    errors reach stderr, leaving normal output to typer.echo.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def get_version() -> str:
    """Return the installed package version."""
    try:
        return importlib.metadata.version(PACKAGE_NAME)
    except importlib.metadata.PackageNotFoundError:
        return "(development)"


def validate_git_url(url: Optional[str]) -> bool:
    """Check that ``url`` looks like something git can push to."""
    if not url:
        return False
    url = url.strip()
    if url.startswith("/"):
        return True
    if url.startswith(_URL_SCHEMES):
        return len(url.split("://", 1)[1]) > 0
    return bool(_SCP_LIKE.match(url))
