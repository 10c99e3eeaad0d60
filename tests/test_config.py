# Test file for configuration loading

import pytest
import tomlkit

from rbmin.config import (
    DEFAULT_INTERPRETERS,
    DEFAULT_SOURCE,
    Settings,
    load_settings,
    write_settings,
)
from rbmin.core.exceptions import ConfigError


def test_first_run_writes_defaults(home):
    """Test that a missing config.toml is created with defaults"""
    settings = load_settings(environ={}, home=home)
    assert settings.config_path.exists()
    assert settings.source == DEFAULT_SOURCE
    assert settings.interpreters == DEFAULT_INTERPRETERS
    assert settings.jobs == 1
    assert settings.log_level == "WARNING"
    assert settings.log_file == home / "rbm.log"

    data = tomlkit.parse(settings.config_path.read_text()).unwrap()
    assert data["source"] == DEFAULT_SOURCE
    assert data["interpreters"]["jruby"] == ["jruby"]


def test_home_from_environment(home):
    """Test that RBM_HOME selects the tool home"""
    settings = load_settings(environ={"RBM_HOME": str(home)})
    assert settings.home == home
    assert settings.cache_dir == home / "cache"
    assert settings.envs_dir == home / "envs"
    assert settings.active_link == home / "active"


def test_values_from_config_file(home):
    """Test reading user settings"""
    home.mkdir()
    (home / "config.toml").write_text(
        'source = "https://mirror.test/"\n'
        'make = "gmake"\n'
        "jobs = 4\n"
        'log_level = "debug"\n'
        'log_file = ""\n'
        "\n"
        "[interpreters]\n"
        'ruby19 = ["ruby1.9.3"]\n'
    )
    settings = load_settings(environ={}, home=home)
    assert settings.source == "https://mirror.test"
    assert settings.make == "gmake"
    assert settings.jobs == 4
    assert settings.log_level == "DEBUG"
    assert settings.log_file is None
    assert settings.interpreters == {"ruby19": ["ruby1.9.3"]}


def test_log_level_from_environment(home):
    """Test that RBM_LOG_LEVEL overrides the configured level"""
    settings = load_settings(environ={"RBM_LOG_LEVEL": "info"}, home=home)
    assert settings.log_level == "INFO"


def test_round_trip_through_write_settings(home):
    """Test that written settings load back unchanged"""
    settings = Settings(home=home, source="https://x.test", jobs=3)
    write_settings(settings)
    loaded = load_settings(environ={}, home=home)
    assert loaded.source == "https://x.test"
    assert loaded.jobs == 3
    assert loaded.log_file is None


@pytest.mark.parametrize(
    "content",
    [
        "jobs = 0\n",
        'jobs = "two"\n',
        "jobs = true\n",
        "source = 1\n",
        'log_level = "LOUD"\n',
        'interpreters = ["ruby"]\n',
        "[interpreters]\nruby19 = [1]\n",
        "not toml at all = = =\n",
    ],
)
def test_invalid_config(home, content):
    """Test that invalid settings raise ConfigError"""
    home.mkdir()
    (home / "config.toml").write_text(content)
    with pytest.raises(ConfigError):
        load_settings(environ={}, home=home)
