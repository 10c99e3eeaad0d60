"""Search path export for an environment and interpreter"""

import os
import shlex
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from .environment import EnvironmentStore

LIB_VARIABLE = "RUBYLIB"
BIN_VARIABLE = "PATH"


def search_paths(
    store: EnvironmentStore, env: str, interpreter: str
) -> Tuple[List[Path], List[Path]]:
    """Library and executable directories of every installed package"""
    lib_dirs, bin_dirs = [], []
    for spec in store.list_installed(env, interpreter):
        package_dir = store.package_dir(env, interpreter, spec)
        if (package_dir / "lib").is_dir():
            lib_dirs.append(package_dir / "lib")
        if (package_dir / "bin").is_dir():
            bin_dirs.append(package_dir / "bin")
    return lib_dirs, bin_dirs


def _is_within(entry: str, root: Path) -> bool:
    path = Path(os.path.abspath(entry))
    return path == root or root in path.parents


def _merge(new: List[Path], current: str, root: Path) -> str:
    """Prepend ``new`` to a search path, dropping entries under ``root``"""
    kept = [
        entry
        for entry in current.split(os.pathsep)
        if entry and not _is_within(entry, root)
    ]
    return os.pathsep.join([str(path) for path in new] + kept)


def export_environment(
    store: EnvironmentStore,
    env: str,
    interpreter: str,
    environ: Mapping[str, str],
) -> Dict[str, str]:
    """
    Search path variables for running code from an environment

    Entries left by an earlier export (anything under the tool home) are
    removed from the current values before the new ones are prepended.

    Args:
        store: Environment store
        env: Environment name
        interpreter: Interpreter id
        environ: Current environment variables

    Returns:
        Variable name -> new value
    """
    store.require(env)
    root = Path(os.path.abspath(store.home))
    lib_dirs, bin_dirs = search_paths(store, env, interpreter)
    return {
        LIB_VARIABLE: _merge(lib_dirs, environ.get(LIB_VARIABLE, ""), root),
        BIN_VARIABLE: _merge(bin_dirs, environ.get(BIN_VARIABLE, ""), root),
    }


def format_exports(variables: Mapping[str, str]) -> str:
    """POSIX shell ``export`` lines"""
    return "\n".join(
        f"export {name}={shlex.quote(value)}"
        for name, value in variables.items()
    )
