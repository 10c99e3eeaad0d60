"""Dependency resolution and per-interpreter installation

``install`` walks each requested interpreter through::

    resolving -> fetching -> unpacking -> configuring -> building
              -> swapping -> installed

and ends in ``failed`` from any of these steps. A failure only affects the
interpreter it happened on: the partial build is deleted and the remaining
interpreters carry on. Runtime dependencies are then installed recursively
with the same interpreter set. There is no cycle detection, so gems whose
metadata depends on each other recurse without end.
"""

import shutil
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import structlog

from .builder import BuildPipeline
from .environment import EnvironmentStore
from .exceptions import InstallationError, PackageError
from .index import PackageIndex
from .package import PackageSpec
from .runtimes import InterpreterTarget

log = structlog.get_logger(__name__)

GEM_SUFFIX = ".gem"


class Status(str, Enum):
    INSTALLED = "installed"
    REPLACED = "replaced"
    PRESENT = "present"
    FAILED = "failed"
    REMOVED = "removed"
    NOT_FOUND = "not_found"

    def __format__(self, format_spec):
        return str(self.value)


@dataclass
class Outcome:
    """Result of one package request on one interpreter

    ``interpreter`` is None for outcomes that concern the request as a
    whole, such as a gem missing from the index.
    """

    package: PackageSpec
    interpreter: Optional[str]
    status: Status
    message: str = ""
    details: Optional[str] = None
    previous: Optional[PackageSpec] = None

    @property
    def ok(self) -> bool:
        return self.status not in (Status.FAILED, Status.NOT_FOUND)

    @property
    def built(self) -> bool:
        return self.status in (Status.INSTALLED, Status.REPLACED)


class Installer:
    """Installs gems into one environment for a set of interpreters"""

    def __init__(
        self,
        index: PackageIndex,
        store: EnvironmentStore,
        pipeline: BuildPipeline,
        environment: str,
        targets: Mapping[str, InterpreterTarget],
        jobs: int = 1,
    ):
        """
        Initialize Installer

        Args:
            index: Gem index used for resolution and downloads
            store: Environment store receiving the packages
            pipeline: Build pipeline turning archives into packages
            environment: Name of the environment to work on
            targets: Discovered interpreters by id
            jobs: Number of interpreters processed concurrently
        """
        self.index = index
        self.store = store
        self.pipeline = pipeline
        self.environment = environment
        self.targets = dict(targets)
        self.jobs = max(1, jobs)
        self._locks: Dict[Tuple[str, str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock(self, interpreter: str, name: str) -> threading.Lock:
        key = (self.environment, interpreter, name)
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    def _map(self, func, items: List) -> List:
        """Apply ``func`` to each item, concurrently when jobs > 1"""
        if self.jobs == 1 or len(items) < 2:
            return [func(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.jobs) as executor:
            return list(executor.map(func, items))

    # Install

    def _resolve(
        self, request: Union[str, PackageSpec]
    ) -> Tuple[PackageSpec, Path]:
        """Turn a request into an exact spec and a local archive"""
        if isinstance(request, str):
            path = Path(request)
            if request.endswith(GEM_SUFFIX) and path.is_file():
                spec = PackageSpec.parse(path.name[: -len(GEM_SUFFIX)])
                if not spec.is_pinned:
                    raise PackageError(
                        f"Cannot read a version from archive name {path.name}"
                    )
                log.debug("install.local_archive", path=str(path))
                return spec, path
            request = PackageSpec.parse(request)

        spec = request.pinned(self.index.find_version(request))
        log.debug("install.resolved", request=str(request), package=str(spec))
        return spec, self.index.fetch_archive(spec)

    def _swap(
        self, interpreter: str, spec: PackageSpec, staging: Path
    ) -> Optional[PackageSpec]:
        """Replace any installed version with the staged build"""
        env = self.environment
        with self._lock(interpreter, spec.name):
            # Re-read under the lock: a concurrent request may have swapped
            existing = self.store.installed_matching(env, interpreter, spec.name)
            if existing is not None:
                shutil.rmtree(self.store.package_dir(env, interpreter, existing))
            staging.rename(self.store.package_dir(env, interpreter, spec))
        return existing

    def _failed(
        self,
        interpreter: str,
        spec: PackageSpec,
        staging: Path,
        error: InstallationError,
    ) -> Outcome:
        shutil.rmtree(staging, ignore_errors=True)
        log.warning(
            "install.failed",
            package=str(spec),
            interpreter=interpreter,
            error=error.message,
            output=error.details,
        )
        return Outcome(
            spec,
            interpreter,
            Status.FAILED,
            message=error.message,
            details=error.details,
        )

    def _install_for(
        self, interpreter: str, spec: PackageSpec, archive: Path
    ) -> Outcome:
        target = self.targets.get(interpreter)
        if target is None:
            return Outcome(
                spec,
                interpreter,
                Status.FAILED,
                message=f"Interpreter '{interpreter}' is not available",
            )

        env = self.environment
        existing = self.store.installed_matching(env, interpreter, spec.name)
        if existing == spec:
            return Outcome(
                spec, interpreter, Status.PRESENT, message="already present"
            )

        staging = self.store.staging_dir(env, interpreter, spec)
        try:
            if staging.exists():
                shutil.rmtree(staging)
            self.pipeline.run(archive, target.path, staging)
            existing = self._swap(interpreter, spec, staging)
        except OSError as e:
            return self._failed(
                interpreter,
                spec,
                staging,
                InstallationError(
                    f"Failed to install {spec} into the environment",
                    details=str(e),
                ),
            )
        except InstallationError as e:
            return self._failed(interpreter, spec, staging, e)

        if existing is not None:
            log.info(
                "install.replaced",
                package=str(spec),
                previous=str(existing),
                interpreter=interpreter,
            )
            return Outcome(spec, interpreter, Status.REPLACED, previous=existing)
        log.info("install.installed", package=str(spec), interpreter=interpreter)
        return Outcome(spec, interpreter, Status.INSTALLED)

    def install(
        self,
        interpreters: Iterable[str],
        request: Union[str, PackageSpec],
    ) -> List[Outcome]:
        """
        Install a gem and its runtime dependencies

        Args:
            interpreters: Interpreter ids to install for
            request: ``name``, ``name-version``, a PackageSpec, or the path
                of a local ``.gem`` archive

        Returns:
            Outcomes of the request followed by those of its dependencies

        Raises:
            NetworkFetchError: If the index, an archive or a gemspec cannot
                be downloaded
            StreamError: If the index or a gemspec cannot be decoded
        """
        interpreters = list(interpreters)
        try:
            spec, archive = self._resolve(request)
        except PackageError as e:
            if isinstance(request, str):
                request = PackageSpec.parse(request)
            return [
                Outcome(
                    request,
                    None,
                    Status.NOT_FOUND,
                    message=e.message,
                    details=e.details,
                )
            ]

        outcomes = self._map(
            lambda interpreter: self._install_for(interpreter, spec, archive),
            interpreters,
        )

        if any(outcome.built for outcome in outcomes):
            gemspec = self.index.fetch_gemspec(spec)
            for dependency in gemspec.runtime_dependencies:
                log.debug(
                    "install.dependency",
                    package=str(spec),
                    dependency=str(dependency.spec),
                )
                outcomes.extend(self.install(interpreters, dependency.spec))
        return outcomes

    # Remove / update

    def remove(self, interpreters: Iterable[str], name: str) -> List[Outcome]:
        """Delete the installed version of ``name`` on each interpreter"""
        outcomes = []
        for interpreter in interpreters:
            spec = self.store.installed_matching(
                self.environment, interpreter, name
            )
            if spec is None:
                continue
            with self._lock(interpreter, name):
                shutil.rmtree(
                    self.store.package_dir(self.environment, interpreter, spec)
                )
            log.info("remove.removed", package=str(spec), interpreter=interpreter)
            outcomes.append(Outcome(spec, interpreter, Status.REMOVED))

        if not outcomes:
            outcomes.append(
                Outcome(
                    PackageSpec(name),
                    None,
                    Status.NOT_FOUND,
                    message=f"Package '{name}' is not installed",
                )
            )
        return outcomes

    def installed_names(self, interpreters: Iterable[str]) -> List[str]:
        """Base names installed on any of the interpreters, first seen first"""
        names: List[str] = []
        for interpreter in interpreters:
            for spec in self.store.list_installed(self.environment, interpreter):
                if spec.name not in names:
                    names.append(spec.name)
        return names

    def update(self, interpreters: Iterable[str]) -> List[Outcome]:
        """Reinstall every installed gem at the version the index resolves to"""
        interpreters = list(interpreters)
        outcomes = []
        for name in self.installed_names(interpreters):
            outcomes.extend(self.install(interpreters, PackageSpec(name)))
        return outcomes
