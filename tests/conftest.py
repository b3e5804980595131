"""Shared test fixtures for apiwrap.

Provides a recording primitive, a GitHub-like backend on a private registry,
sample domain objects, config isolation and output management.  These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from apiwrap.models import Verb
from apiwrap.output import OutputFormat, OutputManager, reset_output, set_output
from apiwrap.registry import Backend, BackendRegistry, register_backend


GLOSSARY = {
    "repo": "A repository object, as returned by the API.",
    "issue": "An issue object, as returned by the API.",
    "user": "A user object, as returned by the API.",
}


def github_link(api_version: int, fragment: str) -> str:
    return f"https://developer.github.com/v{api_version}/{fragment}"


class Recorder:
    """Primitive stand-in that records every call and returns a canned result."""

    def __init__(self, verb: Verb, result: Any = None) -> None:
        self.verb = verb
        self.result = result
        self.calls: list[tuple[str, list[tuple[str, Any]], Any]] = []

    def __call__(self, path: str, params: list[tuple[str, Any]], data: Any = None) -> Any:
        self.calls.append((path, params, data))
        if self.result is None:
            return {"verb": self.verb.value, "path": path}
        return self.result

    @property
    def last(self) -> tuple[str, list[tuple[str, Any]], Any]:
        return self.calls[-1]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Backend fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def recorder_cls() -> type[Recorder]:
    """The recording primitive class, for tests that build their own backend."""
    return Recorder


@pytest.fixture
def glossary() -> dict[str, str]:
    return dict(GLOSSARY)


@pytest.fixture
def link():
    """Documentation link formatter of the GitHub-like backend."""
    return github_link


@pytest.fixture
def recorders() -> dict[Verb, Recorder]:
    """One recording primitive per verb."""
    return {verb: Recorder(verb) for verb in Verb}


@pytest.fixture
def registry() -> BackendRegistry:
    """A fresh registry, so tests never touch the module-level default."""
    return BackendRegistry()


@pytest.fixture
def github(registry: BackendRegistry, recorders: dict[Verb, Recorder]) -> Backend:
    """A GitHub-like backend whose primitives are recorders."""
    return register_backend(
        "GitHub",
        "ghubp",
        GLOSSARY,
        github_link,
        recorders,
        registry=registry,
    )


@pytest.fixture
def repo() -> dict[str, Any]:
    """A repository object shaped like the GitHub API's."""
    return {
        "id": 1296269,
        "name": "ghub-plus",
        "owner": {"login": "vermiculus", "id": 1},
        "private": False,
    }


@pytest.fixture
def issue() -> dict[str, Any]:
    return {"number": 42, "title": "Found a bug", "state": "open"}


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_DATA_HOME to a subdirectory of tmp_path, clears all APIWRAP_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["APIWRAP_BASE_URL", "APIWRAP_TOKEN_SOURCE", "APIWRAP_TIMEOUT"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, PLAIN-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
