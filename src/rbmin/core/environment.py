"""Named environments and the gems installed in them

Layout under the tool home::

    envs/<environment>/<interpreter>/<name>-<version>/{bin,lib,...}
    active -> envs/<environment>
"""

import os
import shutil
from pathlib import Path
from typing import List, Optional

import structlog

from .exceptions import EnvironmentNotFoundError
from .package import PackageSpec

log = structlog.get_logger(__name__)

DEFAULT_ENVIRONMENT = "base"


class EnvironmentStore:
    """On-disk store of environments"""

    def __init__(self, home: Path):
        """
        Initialize EnvironmentStore

        Args:
            home: Tool home directory holding ``envs/`` and ``active``
        """
        self.home = Path(home)
        self.envs_dir = self.home / "envs"
        self.active_link = self.home / "active"

    def path(self, name: str) -> Path:
        return self.envs_dir / name

    def exists(self, name: str) -> bool:
        return self.path(name).is_dir()

    def names(self) -> List[str]:
        """All environment names, sorted"""
        if not self.envs_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.envs_dir.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        )

    def require(self, name: str) -> Path:
        """Path of an existing environment

        Raises:
            EnvironmentNotFoundError: If the environment does not exist
        """
        if not self.exists(name):
            raise EnvironmentNotFoundError(
                f"Environment '{name}' not found",
                details=f"available: {', '.join(self.names()) or '(none)'}",
            )
        return self.path(name)

    # Active environment

    def active_name(self) -> Optional[str]:
        """Name of the active environment, None if the marker is broken"""
        if not self.active_link.is_symlink():
            return None
        target = Path(os.readlink(self.active_link))
        if not self.exists(target.name):
            return None
        return target.name

    def activate(self, name: str) -> Path:
        """Create the environment if needed and point ``active`` at it

        The marker is removed and then recreated, so a crash in between
        leaves no active environment; ensure_active() repairs that.
        """
        path = self.path(name)
        path.mkdir(parents=True, exist_ok=True)
        if self.active_link.is_symlink() or self.active_link.exists():
            self.active_link.unlink()
        self.active_link.symlink_to(
            Path(self.envs_dir.name) / name, target_is_directory=True
        )
        log.info("env.activated", environment=name)
        return path

    def ensure_active(self) -> str:
        """Return the active environment, repairing the marker if needed"""
        name = self.active_name()
        if name is not None:
            return name
        names = self.names()
        name = names[0] if names else DEFAULT_ENVIRONMENT
        log.info("env.repaired", environment=name, existing=len(names))
        self.activate(name)
        return name

    def remove(self, name: str) -> None:
        """Delete an environment and everything installed in it"""
        path = self.require(name)
        was_active = self.active_name() == name
        shutil.rmtree(path)
        log.info("env.removed", environment=name)
        if was_active:
            self.ensure_active()

    # Installed packages

    def interpreter_dir(self, env: str, interpreter: str) -> Path:
        return self.path(env) / interpreter

    def package_dir(
        self, env: str, interpreter: str, spec: PackageSpec
    ) -> Path:
        return self.interpreter_dir(env, interpreter) / spec.dirname

    def staging_dir(
        self, env: str, interpreter: str, spec: PackageSpec
    ) -> Path:
        """Hidden sibling of the package directory used while building"""
        directory = self.interpreter_dir(env, interpreter)
        return directory / f".{spec.dirname}.partial"

    def interpreters(self, env: str) -> List[str]:
        """Interpreter ids that have a directory in the environment"""
        path = self.path(env)
        if not path.is_dir():
            return []
        return sorted(entry.name for entry in path.iterdir() if entry.is_dir())

    def list_installed(self, env: str, interpreter: str) -> List[PackageSpec]:
        """Installed packages, sorted by directory name"""
        directory = self.interpreter_dir(env, interpreter)
        if not directory.is_dir():
            return []
        return [
            PackageSpec.parse(entry.name)
            for entry in sorted(directory.iterdir())
            if entry.is_dir() and not entry.name.startswith(".")
        ]

    def installed_matching(
        self, env: str, interpreter: str, base_name: str
    ) -> Optional[PackageSpec]:
        """The installed version of ``base_name``, if any"""
        for spec in self.list_installed(env, interpreter):
            if spec.name == base_name:
                return spec
        return None
