"""Shared state and error handling for CLI commands"""

import functools
import os
from dataclasses import dataclass, field
from functools import cached_property
from typing import Dict, List, Optional, Tuple

import click
import structlog

from ..config import Settings
from ..core.builder import BuildPipeline
from ..core.environment import EnvironmentStore
from ..core.exceptions import (
    ConfigError,
    EnvironmentNotFoundError,
    NetworkFetchError,
    RuntimeNotFoundError,
    StreamError,
)
from ..core.index import PackageIndex
from ..core.installer import Installer
from ..core.runtimes import InterpreterTarget, RuntimeRegistry
from ..ui.console import print_error

log = structlog.get_logger(__name__)


@dataclass
class AppContext:
    """Objects built once per invocation and handed to every command"""

    settings: Settings
    verbose: bool = False
    env_name: Optional[str] = None
    requested: Tuple[str, ...] = ()
    environ: Dict[str, str] = field(default_factory=lambda: dict(os.environ))

    @cached_property
    def store(self) -> EnvironmentStore:
        return EnvironmentStore(self.settings.home)

    @cached_property
    def index(self) -> PackageIndex:
        return PackageIndex(self.settings.cache_dir, self.settings.source)

    @cached_property
    def registry(self) -> RuntimeRegistry:
        return RuntimeRegistry(
            self.settings.interpreters, self.environ.get("PATH", os.defpath)
        )

    @cached_property
    def targets(self) -> Dict[str, InterpreterTarget]:
        return self.registry.discover()

    @cached_property
    def pipeline(self) -> BuildPipeline:
        return BuildPipeline(make=self.settings.make, environ=self.environ)

    def environment(self) -> str:
        """The environment named on the command line, or the active one"""
        if self.env_name:
            self.store.require(self.env_name)
            return self.env_name
        return self.store.ensure_active()

    def interpreters(self) -> List[str]:
        """Requested interpreter ids, or every discovered one

        Raises:
            RuntimeNotFoundError: If nothing is available or requested ids
                were not discovered
        """
        if not self.targets:
            raise RuntimeNotFoundError(
                "No Ruby interpreter found on the search path",
                details="configure candidates under [interpreters] in "
                f"{self.settings.config_path}",
            )
        selected = self.registry.select(self.targets, list(self.requested))
        return [target.id for target in selected]

    def installer(self) -> Installer:
        return Installer(
            self.index,
            self.store,
            self.pipeline,
            self.environment(),
            self.targets,
            jobs=self.settings.jobs,
        )


pass_app = click.make_pass_decorator(AppContext)


def handle_errors(func):
    """Report fatal errors and exit with a non-zero status"""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (EnvironmentNotFoundError, RuntimeNotFoundError) as e:
            print_error(e.message, e.details)
        except (StreamError, NetworkFetchError, ConfigError) as e:
            log.error("command.failed", error=e.message, details=e.details)
            print_error(e.message, e.details)
        click.get_current_context().exit(1)

    return wrapper
