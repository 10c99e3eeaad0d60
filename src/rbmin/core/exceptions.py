"""Custom exceptions for the gem management system"""

from typing import Optional


class RbminError(Exception):
    """Base exception for rbmin"""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return self.message


class StreamError(RbminError):
    """Marshal stream decoding errors"""

    pass


class MalformedStreamError(StreamError):
    """Truncated or corrupt Marshal stream"""

    pass


class MissingFieldError(MalformedStreamError):
    """A decoded record lacks a required field"""

    pass


class UnsupportedVersionError(StreamError):
    """Marshal stream written by an unsupported format version"""

    pass


class PackageError(RbminError):
    """Package management related errors"""

    pass


class PackageNotFoundError(PackageError):
    """No index entry matches the requested gem name"""

    pass


class VersionNotFoundError(PackageError):
    """The requested exact version is not in the index"""

    pass


class InstallationError(PackageError):
    """Package installation errors"""

    pass


class UnpackError(InstallationError):
    """Gem archive extraction errors"""

    pass


class BuildError(InstallationError):
    """Native extension build errors"""

    pass


class NetworkFetchError(RbminError):
    """Gem server interaction errors"""

    pass


class EnvironmentNotFoundError(RbminError):
    """Named environment does not exist"""

    pass


class RuntimeNotFoundError(RbminError):
    """Interpreter could not be found on the search path"""

    pass


class ConfigError(RbminError):
    """Configuration file errors"""

    pass
