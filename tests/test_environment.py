# Test file for the environment store

import os

import pytest

from rbmin.core.environment import DEFAULT_ENVIRONMENT, EnvironmentStore
from rbmin.core.exceptions import EnvironmentNotFoundError
from rbmin.core.package import PackageSpec


def make_package(store, env, interpreter, dirname):
    path = store.interpreter_dir(env, interpreter) / dirname
    (path / "lib").mkdir(parents=True)
    return path


def test_ensure_active_creates_default(store):
    """Test that a fresh home gets the default environment"""
    assert store.active_name() is None
    assert store.ensure_active() == DEFAULT_ENVIRONMENT
    assert store.exists(DEFAULT_ENVIRONMENT)
    assert store.active_link.is_symlink()
    assert os.readlink(store.active_link) == os.path.join("envs", "base")


def test_activate_switches_marker(store):
    """Test that activate creates the environment and moves the marker"""
    store.activate("base")
    store.activate("web")
    assert store.active_name() == "web"
    assert store.names() == ["base", "web"]

    store.activate("base")
    assert store.active_name() == "base"


def test_broken_marker_is_repaired(store):
    """Test that a marker pointing at nothing is replaced"""
    store.activate("alpha")
    store.activate("beta")
    os.rmdir(store.path("beta"))
    assert store.active_name() is None
    assert store.ensure_active() == "alpha"
    assert store.active_name() == "alpha"


def test_require_missing_environment(store):
    """Test that require raises for unknown environments"""
    with pytest.raises(EnvironmentNotFoundError):
        store.require("nope")


def test_remove_active_environment_reactivates(store):
    """Test removing the active environment picks another one"""
    store.activate("alpha")
    store.activate("beta")
    store.remove("beta")
    assert not store.exists("beta")
    assert store.active_name() == "alpha"


def test_remove_last_environment_recreates_default(store):
    """Test removing the only environment recreates the default"""
    store.activate("only")
    store.remove("only")
    assert store.names() == [DEFAULT_ENVIRONMENT]
    assert store.active_name() == DEFAULT_ENVIRONMENT


def test_remove_inactive_environment_keeps_marker(store):
    """Test removing an inactive environment"""
    store.activate("alpha")
    store.activate("beta")
    store.remove("alpha")
    assert store.active_name() == "beta"
    with pytest.raises(EnvironmentNotFoundError):
        store.remove("alpha")


def test_list_installed(store):
    """Test listing installed packages, skipping staging directories"""
    store.activate("base")
    make_package(store, "base", "ruby19", "rake-0.8.7")
    make_package(store, "base", "ruby19", "rack-test-0.5.4")
    make_package(store, "base", "ruby19", ".rack-1.2.1.partial")

    assert store.list_installed("base", "ruby19") == [
        PackageSpec("rack-test", "0.5.4"),
        PackageSpec("rake", "0.8.7"),
    ]
    assert store.list_installed("base", "ruby18") == []
    assert store.interpreters("base") == ["ruby19"]


def test_installed_matching(store):
    """Test finding the installed version by base name"""
    store.activate("base")
    make_package(store, "base", "ruby19", "rack-test-0.5.4")
    make_package(store, "base", "ruby19", "rack-1.2.1")

    assert store.installed_matching("base", "ruby19", "rack") == PackageSpec(
        "rack", "1.2.1"
    )
    assert store.installed_matching("base", "ruby19", "rake") is None


def test_package_and_staging_dirs(store):
    """Test the per-package paths"""
    spec = PackageSpec("rake", "0.8.7")
    assert store.package_dir("base", "ruby19", spec) == (
        store.home / "envs" / "base" / "ruby19" / "rake-0.8.7"
    )
    staging = store.staging_dir("base", "ruby19", spec)
    assert staging.parent == store.interpreter_dir("base", "ruby19")
    assert staging.name.startswith(".")


def test_names_on_fresh_home(tmp_path):
    """Test that a missing envs directory means no environments"""
    assert EnvironmentStore(tmp_path / "nothing").names() == []
