"""Package identities shared by the index, the installer and the store"""

import re
from dataclasses import dataclass
from typing import Optional

# "<name>-<version>", where the version starts with digits and continues
# with dot separated segments ("rake-0.8.7", "rails-3.0.0.beta4")
NAME_VERSION_PATTERN = re.compile(
    r"^(?P<name>.+)-(?P<version>\d+(?:\.[0-9A-Za-z]+)*)$"
)

NATIVE_PLATFORM = "ruby"


@dataclass(frozen=True)
class PackageSpec:
    """A gem name with an optional exact version"""

    name: str
    version: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "PackageSpec":
        """Split ``name-version`` on its last version-shaped suffix

        Text without such a suffix is taken as a bare name.
        """
        match = NAME_VERSION_PATTERN.match(text)
        if match:
            return cls(match.group("name"), match.group("version"))
        return cls(text)

    @property
    def is_pinned(self) -> bool:
        return self.version is not None

    def pinned(self, version: str) -> "PackageSpec":
        return PackageSpec(self.name, version)

    @property
    def dirname(self) -> str:
        """Directory and archive base name; only defined for pinned specs"""
        if self.version is None:
            raise ValueError(f"Package '{self.name}' has no version")
        return f"{self.name}-{self.version}"

    def __str__(self) -> str:
        return self.dirname if self.version else self.name


@dataclass(frozen=True)
class IndexEntry:
    """One (name, version) pair of the gem catalogue"""

    name: str
    version: str

    @property
    def spec(self) -> PackageSpec:
        return PackageSpec(self.name, self.version)
