# Core functionality for gem management
from .builder import BuildPipeline
from .environment import EnvironmentStore
from .index import PackageIndex
from .installer import Installer, Outcome, Status
from .marshal import Record, Symbol, decode
from .package import IndexEntry, PackageSpec
from .runtimes import InterpreterTarget, RuntimeRegistry
from .exceptions import (
    RbminError,
    StreamError,
    MalformedStreamError,
    UnsupportedVersionError,
    PackageError,
    PackageNotFoundError,
    VersionNotFoundError,
    InstallationError,
    UnpackError,
    BuildError,
    NetworkFetchError,
    EnvironmentNotFoundError,
    RuntimeNotFoundError,
    ConfigError,
)

__all__ = [
    "BuildPipeline",
    "EnvironmentStore",
    "PackageIndex",
    "Installer",
    "Outcome",
    "Status",
    "Record",
    "Symbol",
    "decode",
    "IndexEntry",
    "PackageSpec",
    "InterpreterTarget",
    "RuntimeRegistry",
    "RbminError",
    "StreamError",
    "MalformedStreamError",
    "UnsupportedVersionError",
    "PackageError",
    "PackageNotFoundError",
    "VersionNotFoundError",
    "InstallationError",
    "UnpackError",
    "BuildError",
    "NetworkFetchError",
    "EnvironmentNotFoundError",
    "RuntimeNotFoundError",
    "ConfigError",
]
