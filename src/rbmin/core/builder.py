"""Unpacking, script rewriting and native extension builds"""

import os
import stat
import subprocess
import tarfile
import zlib
from pathlib import Path
from typing import List, Mapping, Optional

import structlog

from .exceptions import BuildError, UnpackError

log = structlog.get_logger(__name__)

DATA_MEMBER = "data.tar.gz"
EXTENSION_DESCRIPTOR = "extconf.rb"
SHEBANG = b"#!"
EXECUTABLE_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


class BuildPipeline:
    """Turns a gem archive into an installed package directory"""

    def __init__(
        self,
        make: str = "make",
        environ: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize BuildPipeline

        Args:
            make: Command running the generated Makefiles
            environ: Environment for build commands; defaults to ``os.environ``
        """
        self.make = make
        self.environ = dict(os.environ if environ is None else environ)

    def run(self, archive: Path, interpreter: Path, target: Path) -> None:
        """Unpack, configure and build one package for one interpreter"""
        self.unpack(archive, target)
        self.configure(interpreter, target)
        self.build(interpreter, target)

    def unpack(self, archive: Path, target: Path) -> None:
        """
        Extract the package files of a gem into ``target``

        A gem is a plain tar holding ``metadata.gz`` and ``data.tar.gz``;
        the package files live in the inner compressed tar.

        Raises:
            UnpackError: If either layer is missing or corrupt
        """
        try:
            with tarfile.open(archive, mode="r:") as outer:
                member = outer.getmember(DATA_MEMBER)
                data = outer.extractfile(member)
                if data is None:
                    raise UnpackError(
                        f"{DATA_MEMBER} in {archive.name} is not a file"
                    )
                with tarfile.open(fileobj=data, mode="r:gz") as inner:
                    target.mkdir(parents=True, exist_ok=True)
                    inner.extractall(target, filter="data")
        except KeyError as e:
            raise UnpackError(
                f"{archive.name} has no {DATA_MEMBER}", details=str(e)
            ) from e
        except (tarfile.TarError, OSError, EOFError, zlib.error) as e:
            raise UnpackError(
                f"Failed to unpack {archive.name}", details=str(e)
            ) from e
        log.debug("build.unpacked", archive=archive.name, target=str(target))

    def configure(self, interpreter: Path, target: Path) -> List[Path]:
        """
        Point the scripts in ``bin/`` at ``interpreter``

        Returns:
            The rewritten scripts
        """
        bin_dir = target / "bin"
        if not bin_dir.is_dir():
            return []

        rewritten = []
        directive = SHEBANG + os.fsencode(str(interpreter))
        try:
            for path in sorted(bin_dir.rglob("*")):
                if path.is_symlink() or not path.is_file():
                    continue
                content = path.read_bytes()
                if not content.startswith(SHEBANG):
                    continue
                _, newline, rest = content.partition(b"\n")
                path.write_bytes(directive + newline + rest)
                path.chmod(path.stat().st_mode | EXECUTABLE_BITS)
                rewritten.append(path)
        except OSError as e:
            raise BuildError(
                f"Failed to rewrite scripts in {bin_dir}", details=str(e)
            ) from e
        log.debug("build.configured", scripts=len(rewritten))
        return rewritten

    def _run(self, command: List[str], cwd: Path) -> str:
        """Run a build step, raising BuildError with its combined output"""
        log.debug("build.run", command=command, cwd=str(cwd))
        try:
            process = subprocess.run(
                command,
                cwd=cwd,
                env=self.environ,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise BuildError(
                f"Failed to run {command[0]}", details=str(e)
            ) from e
        if process.returncode != 0:
            raise BuildError(
                f"Command failed ({process.returncode}): {' '.join(command)}",
                details=process.stdout.strip(),
            )
        return process.stdout

    def build(self, interpreter: Path, target: Path) -> List[Path]:
        """
        Compile every native extension found under ``target``

        Each ``extconf.rb`` generates a Makefile in its own directory; the
        compiled artifacts are installed into the package's ``lib/``.

        Returns:
            Directories in which an extension was built

        Raises:
            BuildError: If a step exits non-zero or cannot be started
        """
        lib_dir = target.resolve() / "lib"
        built = []
        for descriptor in sorted(target.rglob(EXTENSION_DESCRIPTOR)):
            directory = descriptor.parent
            self._run([str(interpreter), EXTENSION_DESCRIPTOR], directory)
            self._run(
                [
                    self.make,
                    "install",
                    f"sitearchdir={lib_dir}",
                    f"sitelibdir={lib_dir}",
                ],
                directory,
            )
            built.append(directory)
            log.info("build.extension", directory=str(directory))
        return built
