"""Test configuration for rbmin"""

import sys
from pathlib import Path

import pytest
import requests

# Add the source directory to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from rbmin.core.builder import BuildPipeline  # noqa: E402
from rbmin.core.environment import EnvironmentStore  # noqa: E402
from rbmin.core.index import PackageIndex  # noqa: E402
from rbmin.core.installer import Installer  # noqa: E402
from rbmin.core.runtimes import InterpreterTarget  # noqa: E402
from gem_fixtures import (  # noqa: E402
    dependency,
    gemspec_rz,
    simple_gem,
    specs_index,
)

SOURCE = "https://gems.test"


class FakeSession:
    """Serves canned responses in place of requests.Session"""

    def __init__(self, source: str = SOURCE):
        self.source = source
        self.routes = {}
        self.failing = set()
        self.requests = []

    def serve(self, path: str, content: bytes) -> None:
        self.routes[f"{self.source}/{path}"] = content

    def fail(self, path: str) -> None:
        self.failing.add(f"{self.source}/{path}")

    def get(self, url, stream=False, **kwargs):
        self.requests.append(url)
        if url in self.failing:
            raise requests.ConnectionError(f"Cannot reach {url}")
        response = requests.Response()
        response.url = url
        if url in self.routes:
            response.status_code = 200
            response.reason = "OK"
            response._content = self.routes[url]
        else:
            response.status_code = 404
            response.reason = "Not Found"
            response._content = b""
        response._content_consumed = True
        return response


def write_script(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def home(tmp_path):
    """Tool home directory"""
    return tmp_path / "home"


@pytest.fixture
def gem_server():
    """A gem server publishing rake, rack and rack-test"""
    session = FakeSession()
    session.serve(
        "latest_specs.4.8.gz",
        specs_index(
            [("rake", "0.8.7"), ("rack", "1.2.1"), ("rack-test", "0.5.4")]
        ),
    )
    session.serve(
        "specs.4.8.gz",
        specs_index(
            [
                ("rake", "0.8.4"),
                ("rake", "0.8.7"),
                ("rack", "1.1.0"),
                ("rack", "1.2.1"),
                ("rack-test", "0.5.4"),
                ("win32-api", "1.4.6", "x86-mswin32-60"),
            ]
        ),
    )
    session.serve(
        "prerelease_specs.4.8.gz", specs_index([("rails", "3.0.0.beta4")])
    )

    for name, version in [
        ("rake", "0.8.4"),
        ("rake", "0.8.7"),
        ("rack", "1.1.0"),
        ("rack", "1.2.1"),
    ]:
        session.serve(f"gems/{name}-{version}.gem", simple_gem(name, version))
        session.serve(
            f"quick/Marshal.4.8/{name}-{version}.gemspec.rz",
            gemspec_rz(name, version),
        )

    session.serve("gems/rack-test-0.5.4.gem", simple_gem("rack-test", "0.5.4"))
    session.serve(
        "quick/Marshal.4.8/rack-test-0.5.4.gemspec.rz",
        gemspec_rz(
            "rack-test",
            "0.5.4",
            [
                dependency("rack", "=", "1.1.0"),
                dependency("rake", ">=", "0.8", kind="development"),
            ],
        ),
    )
    return session


@pytest.fixture
def index(home, gem_server):
    return PackageIndex(home / "cache", SOURCE, session=gem_server)


@pytest.fixture
def store(home):
    return EnvironmentStore(home)


@pytest.fixture
def interpreters(tmp_path):
    """Two fake interpreters that succeed at everything"""
    bin_dir = tmp_path / "rubies"
    return {
        "ruby18": InterpreterTarget(
            "ruby18", write_script(bin_dir / "ruby1.8", "exit 0")
        ),
        "ruby19": InterpreterTarget(
            "ruby19", write_script(bin_dir / "ruby1.9", "exit 0")
        ),
    }


@pytest.fixture
def pipeline():
    return BuildPipeline(make="true")


@pytest.fixture
def installer(index, store, pipeline, interpreters):
    store.activate("base")
    return Installer(index, store, pipeline, "base", interpreters)
