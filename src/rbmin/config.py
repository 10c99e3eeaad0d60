"""User configuration stored in ``<home>/config.toml``"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .core.exceptions import ConfigError

DEFAULT_SOURCE = "https://rubygems.org"

# Interpreter id -> command names tried in order on the search path
DEFAULT_INTERPRETERS: Dict[str, List[str]] = {
    "ruby18": ["ruby1.8", "ruby18"],
    "ruby19": ["ruby1.9.1", "ruby1.9", "ruby19"],
    "ruby20": ["ruby2.0", "ruby20"],
    "jruby": ["jruby"],
    "rbx": ["rbx"],
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class Settings:
    """Runtime configuration"""

    home: Path
    source: str = DEFAULT_SOURCE
    interpreters: Dict[str, List[str]] = field(
        default_factory=lambda: {
            key: list(names) for key, names in DEFAULT_INTERPRETERS.items()
        }
    )
    make: str = "make"
    jobs: int = 1
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    @property
    def config_path(self) -> Path:
        return self.home / "config.toml"

    @property
    def cache_dir(self) -> Path:
        return self.home / "cache"

    @property
    def envs_dir(self) -> Path:
        return self.home / "envs"

    @property
    def active_link(self) -> Path:
        return self.home / "active"


def _read(path: Path) -> Dict[str, Any]:
    """Read config.toml into plain Python values"""
    try:
        with path.open("r", encoding="utf-8") as f:
            return tomlkit.parse(f.read()).unwrap()
    except (OSError, TOMLKitError) as e:
        raise ConfigError(f"Cannot read {path}", details=str(e)) from e


def _expect(key: str, value: Any, kind: type) -> Any:
    if not isinstance(value, kind) or isinstance(value, bool) != (kind is bool):
        raise ConfigError(
            f"Invalid value for '{key}': expected {kind.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


def _apply(settings: Settings, data: Dict[str, Any]) -> None:
    if "source" in data:
        settings.source = _expect("source", data["source"], str).rstrip("/")
    if "make" in data:
        settings.make = _expect("make", data["make"], str)
    if "jobs" in data:
        jobs = _expect("jobs", data["jobs"], int)
        if jobs < 1:
            raise ConfigError("Invalid value for 'jobs': must be at least 1")
        settings.jobs = jobs
    if "log_level" in data:
        settings.log_level = _expect("log_level", data["log_level"], str)
    if "log_file" in data:
        log_file = _expect("log_file", data["log_file"], str)
        settings.log_file = Path(log_file).expanduser() if log_file else None
    if "interpreters" in data:
        table = _expect("interpreters", data["interpreters"], dict)
        interpreters = {}
        for key, names in table.items():
            names = _expect(f"interpreters.{key}", names, list)
            interpreters[key] = [
                _expect(f"interpreters.{key}", name, str) for name in names
            ]
        settings.interpreters = interpreters


def write_settings(settings: Settings) -> None:
    """Write settings back to config.toml"""
    doc = tomlkit.document()
    doc.add(tomlkit.comment("rbmin configuration"))
    doc["source"] = settings.source
    doc["make"] = settings.make
    doc["jobs"] = settings.jobs
    doc["log_level"] = settings.log_level
    doc["log_file"] = str(settings.log_file) if settings.log_file else ""

    interpreters = tomlkit.table()
    for key, names in settings.interpreters.items():
        interpreters[key] = names
    doc["interpreters"] = interpreters

    settings.home.mkdir(parents=True, exist_ok=True)
    with settings.config_path.open("w", encoding="utf-8") as f:
        f.write(tomlkit.dumps(doc))


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Settings:
    """Load settings, writing a default config.toml on first run

    Args:
        environ: Environment map, defaults to ``os.environ``
        home: Tool home directory; defaults to ``$RBM_HOME`` or ``~/.rbm``

    Raises:
        ConfigError: If config.toml cannot be parsed or holds invalid values
    """
    environ = os.environ if environ is None else environ
    if home is None:
        home = Path(environ.get("RBM_HOME") or Path.home() / ".rbm")
    home = Path(home).expanduser()

    settings = Settings(home=home, log_file=home / "rbm.log")
    if settings.config_path.exists():
        _apply(settings, _read(settings.config_path))
    else:
        write_settings(settings)

    if environ.get("RBM_LOG_LEVEL"):
        settings.log_level = environ["RBM_LOG_LEVEL"]
    settings.log_level = settings.log_level.upper()
    if settings.log_level not in LOG_LEVELS:
        raise ConfigError(
            f"Invalid log level '{settings.log_level}'",
            details=f"choose one of {', '.join(LOG_LEVELS)}",
        )
    return settings
