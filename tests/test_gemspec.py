# Test file for gemspec and package spec accessors

import zlib

import pytest

from rbmin.core.exceptions import MalformedStreamError, MissingFieldError
from rbmin.core.gemspec import (
    DEVELOPMENT,
    Dependency,
    Gemspec,
    platform_string,
    requirement_pairs,
    version_string,
)
from rbmin.core.marshal import Record, Symbol, decode
from rbmin.core.package import PackageSpec
from marshal_writer import dump
from gem_fixtures import (
    dependency,
    gem_version,
    gemspec_record,
    gemspec_rz,
    requirement,
)


@pytest.mark.parametrize(
    "text,name,version",
    [
        ("rake", "rake", None),
        ("rake-0.8.7", "rake", "0.8.7"),
        ("rack-test-0.5.4", "rack-test", "0.5.4"),
        ("rails-3.0.0.beta4", "rails", "3.0.0.beta4"),
        ("ruby-debug19", "ruby-debug19", None),
        ("rack-test", "rack-test", None),
    ],
)
def test_package_spec_parse(text, name, version):
    """Test splitting name-version strings"""
    spec = PackageSpec.parse(text)
    assert spec.name == name
    assert spec.version == version


def test_package_spec_dirname():
    """Test directory names of pinned and unpinned specs"""
    assert PackageSpec("rake", "0.8.7").dirname == "rake-0.8.7"
    assert str(PackageSpec("rake")) == "rake"
    assert PackageSpec("rake").pinned("0.8.7").is_pinned
    with pytest.raises(ValueError):
        PackageSpec("rake").dirname


def test_version_string_forms():
    """Test reading versions dumped with marshal_dump or as objects"""
    assert version_string(gem_version("1.2.3")) == "1.2.3"
    plain = Record(Symbol("Gem::Version"), fields={Symbol("@version"): "2.0"})
    assert version_string(plain) == "2.0"
    assert version_string("3.0") == "3.0"
    with pytest.raises(MalformedStreamError):
        version_string(42)


def test_platform_string():
    """Test reading platforms from strings and Gem::Platform records"""
    assert platform_string(None) == "ruby"
    assert platform_string("ruby") == "ruby"
    assert platform_string(b"java") == "java"
    platform = Record(
        Symbol("Gem::Platform"),
        fields={
            Symbol("@cpu"): "x86",
            Symbol("@os"): "mswin32",
            Symbol("@version"): "60",
        },
    )
    assert platform_string(platform) == "x86-mswin32-60"


def test_requirement_pairs():
    """Test reading requirement constraints"""
    assert requirement_pairs(requirement("~>", "1.2")) == (("~>", "1.2"),)
    assert requirement_pairs(None) == ()
    with pytest.raises(MalformedStreamError):
        requirement_pairs("= 1.0")


def test_dependency_from_record():
    """Test reading a runtime dependency with an exact pin"""
    dep = Dependency.from_record(decode(dump(dependency("rack", "=", "1.1.0"))))
    assert dep.name == "rack"
    assert dep.is_runtime
    assert dep.exact_version == "1.1.0"
    assert dep.spec == PackageSpec("rack", "1.1.0")


def test_dependency_without_exact_pin():
    """Test that a range constraint leaves the dependency unpinned"""
    dep = Dependency.from_record(
        decode(dump(dependency("rake", ">=", "0.8", kind="development")))
    )
    assert dep.kind == DEVELOPMENT
    assert not dep.is_runtime
    assert dep.exact_version is None
    assert dep.spec == PackageSpec("rake")


def test_dependency_with_legacy_requirement_field():
    """Test dependencies written with @version_requirements"""
    record = Record(
        Symbol("Gem::Dependency"),
        fields={
            Symbol("@name"): "hoe",
            Symbol("@version_requirements"): requirement("=", "2.0"),
        },
    )
    dep = Dependency.from_record(record)
    assert dep.exact_version == "2.0"
    assert dep.is_runtime


def test_dependency_without_name():
    """Test that a dependency record without a name is rejected"""
    record = Record(Symbol("Gem::Dependency"))
    with pytest.raises(MissingFieldError):
        Dependency.from_record(record)


def test_gemspec_from_dumped_record():
    """Test reading a specification from its _dump payload"""
    record = decode(
        dump(
            gemspec_record(
                "rack-test",
                "0.5.4",
                [
                    dependency("rack", "=", "1.1.0"),
                    dependency("rake", kind="development"),
                ],
                summary="Simple testing API",
            )
        )
    )
    gemspec = Gemspec.from_record(record)
    assert gemspec.name == "rack-test"
    assert gemspec.version == "0.5.4"
    assert gemspec.platform == "ruby"
    assert gemspec.summary == "Simple testing API"
    assert [dep.name for dep in gemspec.dependencies] == ["rack", "rake"]
    assert [dep.name for dep in gemspec.runtime_dependencies] == ["rack"]


def test_gemspec_from_object_record():
    """Test reading a specification dumped as a plain object"""
    record = Record(
        Symbol("Gem::Specification"),
        fields={
            Symbol("@name"): "rake",
            Symbol("@version"): gem_version("0.8.7"),
            Symbol("@dependencies"): [],
        },
    )
    gemspec = Gemspec.from_record(record)
    assert (gemspec.name, gemspec.version) == ("rake", "0.8.7")
    assert gemspec.dependencies == []


def test_gemspec_rejects_short_payload():
    """Test that a payload without the dependency slot is malformed"""
    record = Record(Symbol("Gem::Specification"), data=dump(["1.3.7", 3]))
    with pytest.raises(MalformedStreamError):
        Gemspec.from_record(record)


def test_gemspec_fixture_is_compressed():
    """Test the quick index payload format"""
    record = decode(zlib.decompress(gemspec_rz("rake", "0.8.7")))
    assert Gemspec.from_record(record).name == "rake"
