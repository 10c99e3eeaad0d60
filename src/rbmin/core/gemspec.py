"""Typed views over decoded RubyGems records

The gem server publishes ``Gem::Specification``, ``Gem::Dependency``,
``Gem::Requirement`` and ``Gem::Version`` objects as Marshal dumps. The
helpers below read the few fields rbmin needs out of the generic
:class:`~rbmin.core.marshal.Record` values and fail with a
:class:`MalformedStreamError` when the data does not have the expected shape.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .exceptions import MalformedStreamError
from .marshal import Record, decode
from .package import NATIVE_PLATFORM, PackageSpec

RUNTIME = "runtime"
DEVELOPMENT = "development"

# Positions in the array written by Gem::Specification#_dump
SPEC_NAME = 2
SPEC_VERSION = 3
SPEC_SUMMARY = 5
SPEC_PLATFORM = 8
SPEC_DEPENDENCIES = 9


def text(value: Any) -> str:
    """Read a Ruby string or symbol as text"""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    if isinstance(value, str):
        return str(value)
    raise MalformedStreamError(
        f"Expected a string, got {type(value).__name__}"
    )


def version_string(value: Any) -> str:
    """Read a ``Gem::Version`` in either its ``U`` or its ``o`` form"""
    if isinstance(value, (str, bytes)):
        return text(value)
    if isinstance(value, Record):
        if isinstance(value.data, list) and value.data:
            return text(value.data[0])
        return text(value.require("version"))
    raise MalformedStreamError(
        f"Expected a Gem::Version, got {type(value).__name__}"
    )


def platform_string(value: Any) -> str:
    """Read a platform given as a string or as a ``Gem::Platform`` record"""
    if value is None:
        return NATIVE_PLATFORM
    if isinstance(value, Record):
        parts = [value.get(part) for part in ("cpu", "os", "version")]
        return "-".join(text(part) for part in parts if part is not None)
    return text(value) or NATIVE_PLATFORM


def requirement_pairs(value: Any) -> Tuple[Tuple[str, str], ...]:
    """Read a ``Gem::Requirement`` into ``(operator, version)`` pairs"""
    if value is None:
        return ()
    if not isinstance(value, Record):
        raise MalformedStreamError(
            f"Expected a Gem::Requirement, got {type(value).__name__}"
        )
    if isinstance(value.data, list):
        raw = value.data[0] if value.data else []
    else:
        raw = value.require("requirements")
    pairs = []
    for item in raw:
        if not isinstance(item, list) or len(item) != 2:
            raise MalformedStreamError(f"Invalid requirement entry {item!r}")
        pairs.append((text(item[0]), version_string(item[1])))
    return tuple(pairs)


@dataclass(frozen=True)
class Dependency:
    """A dependency declared by a gem"""

    name: str
    requirements: Tuple[Tuple[str, str], ...] = ()
    kind: str = RUNTIME

    @classmethod
    def from_record(cls, record: Any) -> "Dependency":
        if not isinstance(record, Record):
            raise MalformedStreamError(
                f"Expected a Gem::Dependency, got {type(record).__name__}"
            )
        # Gems built by old RubyGems releases use @version_requirements
        requirement = record.get("requirement")
        if requirement is None:
            requirement = record.get("version_requirements")
        return cls(
            name=text(record.require("name")),
            requirements=requirement_pairs(requirement),
            kind=text(record.get("type")) or RUNTIME,
        )

    @property
    def is_runtime(self) -> bool:
        return self.kind == RUNTIME

    @property
    def exact_version(self) -> Optional[str]:
        """Version of the first ``=`` requirement, if any"""
        for operator, version in self.requirements:
            if operator == "=":
                return version
        return None

    @property
    def spec(self) -> PackageSpec:
        return PackageSpec(self.name, self.exact_version)


@dataclass
class Gemspec:
    """The parts of a gem specification used for installation"""

    name: str
    version: str
    platform: str = NATIVE_PLATFORM
    summary: str = ""
    dependencies: List[Dependency] = field(default_factory=list)

    @property
    def runtime_dependencies(self) -> List[Dependency]:
        return [dep for dep in self.dependencies if dep.is_runtime]

    @classmethod
    def from_record(cls, record: Any) -> "Gemspec":
        """Build from a decoded ``Gem::Specification``

        Specifications are normally dumped through ``_dump``: the record
        payload is itself a Marshal stream holding a positional array.
        Specifications dumped as plain objects are read from their
        instance variables.
        """
        if not isinstance(record, Record):
            raise MalformedStreamError(
                f"Expected a Gem::Specification, got {type(record).__name__}"
            )

        if isinstance(record.data, bytes):
            values = decode(record.data)
            if not isinstance(values, list) or len(values) <= SPEC_DEPENDENCIES:
                raise MalformedStreamError(
                    "Gem::Specification payload is not a specification array"
                )
            name = values[SPEC_NAME]
            version = values[SPEC_VERSION]
            summary = values[SPEC_SUMMARY]
            platform = values[SPEC_PLATFORM]
            dependencies = values[SPEC_DEPENDENCIES]
        else:
            name = record.require("name")
            version = record.require("version")
            summary = record.get("summary")
            platform = record.get("original_platform", record.get("platform"))
            dependencies = record.get("dependencies")

        return cls(
            name=text(name),
            version=version_string(version),
            platform=platform_string(platform),
            summary=text(summary),
            dependencies=[
                Dependency.from_record(dep) for dep in dependencies or []
            ],
        )
