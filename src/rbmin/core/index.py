"""Gem index fetching, caching and version lookup"""

import gzip
import os
import zlib
from pathlib import Path
from typing import Dict, List, Optional

import requests
import structlog

from .exceptions import (
    MalformedStreamError,
    NetworkFetchError,
    PackageNotFoundError,
    VersionNotFoundError,
)
from .gemspec import Gemspec, platform_string, text, version_string
from .marshal import decode
from .package import NATIVE_PLATFORM, IndexEntry, PackageSpec

log = structlog.get_logger(__name__)

# Most frequently updated first: a refresh interrupted half way still
# leaves the newest releases in the cache.
INDEX_FILES = (
    "latest_specs.4.8.gz",
    "specs.4.8.gz",
    "prerelease_specs.4.8.gz",
)

GEMSPEC_PATH = "quick/Marshal.4.8"
CHUNK_SIZE = 64 * 1024


class PackageIndex:
    """Catalogue of the gems published by a gem server"""

    def __init__(
        self,
        cache_dir: Path,
        source: str,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize PackageIndex

        Args:
            cache_dir: Directory holding index files, archives and gemspecs
            source: Base URL of the gem server
            session: Optional requests session, created lazily otherwise
        """
        self.cache_dir = Path(cache_dir)
        self.source = source.rstrip("/")
        self._session = session
        self._catalogue: Optional[List[IndexEntry]] = None

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    @property
    def gems_dir(self) -> Path:
        return self.cache_dir / "gems"

    @property
    def gemspecs_dir(self) -> Path:
        return self.cache_dir / "quick"

    def index_path(self, filename: str) -> Path:
        """Cache location of a decompressed index file"""
        return self.cache_dir / filename[: -len(".gz")]

    # Fetching

    def _get(self, url: str) -> requests.Response:
        log.debug("index.fetch", url=url)
        try:
            response = self.session.get(url, stream=True)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NetworkFetchError(
                f"Failed to fetch {url}", details=str(e)
            ) from e
        return response

    def _download(self, url: str, destination: Path) -> None:
        """Stream a URL into a temporary file, then move it into place"""
        destination.parent.mkdir(parents=True, exist_ok=True)
        partial = destination.with_name(f".{destination.name}.part")
        response = self._get(url)
        try:
            with partial.open("wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    f.write(chunk)
        except requests.RequestException as e:
            partial.unlink(missing_ok=True)
            raise NetworkFetchError(
                f"Failed to fetch {url}", details=str(e)
            ) from e
        finally:
            response.close()
        os.replace(partial, destination)

    def _fetch_index_file(self, filename: str) -> None:
        url = f"{self.source}/{filename}"
        response = self._get(url)
        try:
            payload = gzip.decompress(response.content)
        except (OSError, EOFError, zlib.error) as e:
            raise NetworkFetchError(
                f"Corrupt index file {url}", details=str(e)
            ) from e
        finally:
            response.close()

        path = self.index_path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        partial = path.with_name(f".{path.name}.part")
        partial.write_bytes(payload)
        os.replace(partial, path)
        log.info("index.cached", file=filename, size=len(payload))

    def is_cached(self) -> bool:
        return all(self.index_path(name).exists() for name in INDEX_FILES)

    def ensure_cached(self) -> None:
        """Fetch the index files unless all of them are already cached"""
        if not self.is_cached():
            self.refresh()

    def refresh(self) -> None:
        """Fetch every index file again, in priority order"""
        for filename in INDEX_FILES:
            self._fetch_index_file(filename)
        self._catalogue = None

    # Catalogue

    def _read_entries(self, filename: str) -> List[IndexEntry]:
        path = self.index_path(filename)
        specs = decode(path.read_bytes())
        if not isinstance(specs, list):
            raise MalformedStreamError(f"{path.name} is not a list of specs")

        entries = []
        for item in specs:
            if not isinstance(item, list) or len(item) != 3:
                raise MalformedStreamError(
                    f"Invalid entry in {path.name}: {item!r}"
                )
            name, version, platform = item
            if platform_string(platform) != NATIVE_PLATFORM:
                continue
            entries.append(IndexEntry(text(name), version_string(version)))
        return entries

    def catalogue(self) -> List[IndexEntry]:
        """All native-platform (name, version) pairs, in index file order"""
        if self._catalogue is None:
            self.ensure_cached()
            entries = []
            for filename in INDEX_FILES:
                entries.extend(self._read_entries(filename))
            log.debug("index.loaded", entries=len(entries))
            self._catalogue = entries
        return self._catalogue

    def versions(self, name: str) -> List[str]:
        """Versions listed for a gem, in catalogue order, duplicates dropped"""
        versions = []
        for entry in self.catalogue():
            if entry.name == name and entry.version not in versions:
                versions.append(entry.version)
        return versions

    def find_version(self, spec: PackageSpec) -> str:
        """
        Resolve a spec to an exact version

        An unpinned spec resolves to the first catalogue entry for the name,
        which is the one from latest_specs when the gem is listed there.

        Raises:
            PackageNotFoundError: If no entry has this name
            VersionNotFoundError: If the pinned version is not listed
        """
        versions = self.versions(spec.name)
        if not versions:
            raise PackageNotFoundError(f"Package '{spec.name}' not found")
        if spec.version is None:
            return versions[0]
        if spec.version not in versions:
            raise VersionNotFoundError(
                f"Version {spec.version} of '{spec.name}' not found",
                details=f"available: {', '.join(versions)}",
            )
        return spec.version

    def search(self, pattern: str) -> Dict[str, List[str]]:
        """Gems whose name contains ``pattern``, case-insensitively"""
        needle = pattern.lower()
        matches: Dict[str, List[str]] = {}
        for entry in self.catalogue():
            if needle in entry.name.lower():
                versions = matches.setdefault(entry.name, [])
                if entry.version not in versions:
                    versions.append(entry.version)
        return matches

    # Per-gem files

    def archive_path(self, spec: PackageSpec) -> Path:
        return self.gems_dir / f"{spec.dirname}.gem"

    def fetch_archive(self, spec: PackageSpec) -> Path:
        """Download a gem archive unless it is already cached"""
        path = self.archive_path(spec)
        if path.exists():
            log.debug("index.archive_cached", package=spec.dirname)
            return path
        self._download(f"{self.source}/gems/{spec.dirname}.gem", path)
        log.info("index.archive_fetched", package=spec.dirname)
        return path

    def fetch_gemspec(self, spec: PackageSpec) -> Gemspec:
        """Fetch and decode the Marshal specification of a gem"""
        filename = f"{spec.dirname}.gemspec.rz"
        path = self.gemspecs_dir / filename
        if not path.exists():
            self._download(f"{self.source}/{GEMSPEC_PATH}/{filename}", path)

        try:
            payload = zlib.decompress(path.read_bytes())
        except zlib.error as e:
            raise MalformedStreamError(
                f"Corrupt gemspec {filename}", details=str(e)
            ) from e
        return Gemspec.from_record(decode(payload))
