# Test file for interpreter discovery

import pytest

from rbmin.core.exceptions import RuntimeNotFoundError
from rbmin.core.runtimes import RuntimeRegistry
from conftest import write_script


@pytest.fixture
def search_path(tmp_path):
    bin_dir = tmp_path / "path"
    write_script(bin_dir / "ruby1.9", "exit 0")
    write_script(bin_dir / "jruby", "exit 0")
    (bin_dir / "ruby1.8").write_text("not executable\n")
    return str(bin_dir)


@pytest.fixture
def registry(search_path):
    return RuntimeRegistry(
        {
            "ruby18": ["ruby1.8", "ruby18"],
            "ruby19": ["ruby1.9.1", "ruby1.9"],
            "jruby": ["jruby"],
        },
        search_path,
    )


def test_resolve_tries_candidates_in_order(registry, search_path):
    """Test that the first executable candidate wins"""
    assert str(registry.resolve("ruby19")) == f"{search_path}/ruby1.9"
    assert registry.resolve("ruby18") is None
    assert registry.resolve("unknown") is None


def test_discover_keeps_configured_order(registry):
    """Test that only resolvable interpreters are discovered"""
    targets = registry.discover()
    assert list(targets) == ["ruby19", "jruby"]
    assert targets["jruby"].id == "jruby"


def test_select(registry):
    """Test selecting requested interpreters"""
    targets = registry.discover()
    assert [t.id for t in registry.select(targets, [])] == ["ruby19", "jruby"]
    assert [t.id for t in registry.select(targets, ["jruby"])] == ["jruby"]
    with pytest.raises(RuntimeNotFoundError):
        registry.select(targets, ["ruby18"])
