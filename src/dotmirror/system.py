import logging
import os
import platform
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

ROOT_ENV_VAR = "DOTMIRROR_ROOT"
CONFIG_RELPATH = Path("_etc") / "managed-files.yaml"
MIRROR_DIRNAME = "_homeroot"


class Environment:
    """Detects and provides info about the current system environment."""

    def __init__(self, home: Optional[Path] = None):
        self.home = Path(home) if home else Path.home()
        self.user = (
            os.environ.get("USER")
            or os.environ.get("LOGNAME")
            or self.home.name
        )
        self.system = platform.system()

    def __repr__(self) -> str:
        return (
            f"Environment(system={self.system}, "
            f"home={self.home}, user={self.user})"
        )


class Workspace:
    """Paths of a dotmirror workspace.

    The workspace root is the git working copy. It holds the
    configuration document under ``_etc/`` and the mirror root
    ``_homeroot/``.
    """

    def __init__(
        self,
        root: Optional[Union[str, Path]] = None,
        config_path: Optional[Union[str, Path]] = None,
    ):
        if root is None:
            root = os.environ.get(ROOT_ENV_VAR) or Path.cwd()
        self.root = Path(root).expanduser().resolve()
        self.config_path = (
            Path(config_path).expanduser()
            if config_path
            else self.root / CONFIG_RELPATH
        )
        self.mirror_root = self.root / MIRROR_DIRNAME
        self.env = Environment()

    def __repr__(self) -> str:
        return f"Workspace(root={self.root}, config={self.config_path})"
