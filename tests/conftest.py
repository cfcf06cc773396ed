"""Shared fixtures for elixir-fleet tests."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

import pytest

from elixir_fleet.config import FleetConfig
from elixir_fleet.core import FleetDispatcher, ProjectOperations


def _make_project(root: Path, *parts: str) -> Path:
    """Create a directory under *root* holding a mix.exs."""
    project = root.joinpath(*parts)
    project.mkdir(parents=True, exist_ok=True)
    (project / "mix.exs").write_text("defmodule Demo.MixProject do\nend\n", encoding="utf-8")
    return project


@pytest.fixture
def fleet_root(tmp_path: Path) -> Path:
    """A source tree with three projects and some directories discovery must skip."""
    root = tmp_path / "src"
    _make_project(root, "moneyclub")
    _make_project(root, "oneiros")
    _make_project(root, "clients", "acme_portal")
    # Dependency checkouts and build output also hold mix.exs files
    _make_project(root, "moneyclub", "deps", "jason")
    _make_project(root, "oneiros", "_build", "dev", "lib", "phoenix")
    (root / "notes").mkdir()
    return root


@pytest.fixture
def fleet_config(tmp_path: Path, fleet_root: Path) -> FleetConfig:
    return FleetConfig(root=fleet_root, cache_dir=tmp_path / "cache")


@pytest.fixture
def dispatcher(fleet_config: FleetConfig) -> FleetDispatcher:
    return FleetDispatcher(fleet_config)


@pytest.fixture
def fleet_env(monkeypatch, fleet_config: FleetConfig) -> FleetConfig:
    """Point FleetConfig.from_env() at the temporary tree."""
    monkeypatch.setenv("ELIXIR_FLEET_ROOT", str(fleet_config.root))
    monkeypatch.setenv("ELIXIR_FLEET_CACHE_DIR", str(fleet_config.cache_dir))
    return fleet_config


class FakeCommands:
    """Scripted stand-in for external commands, keyed by project name and argv."""

    def __init__(self):
        self.responses: dict[tuple[str, tuple[str, ...]], object] = {}
        self.calls: list[tuple[str, tuple[str, ...]]] = []

    def set(
        self,
        project: str,
        *args: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        """Script a reply; use project "*" for every project."""
        self.responses[(project, args)] = subprocess.CompletedProcess(
            list(args), returncode, stdout, stderr
        )

    def fail_to_start(self, project: str, *args: str, error: Exception | None = None) -> None:
        self.responses[(project, args)] = error or FileNotFoundError(
            2, "No such file or directory", args[0]
        )

    def __call__(self, project_path: Path, *args: str) -> subprocess.CompletedProcess:
        self.calls.append((project_path.name, args))
        reply = self.responses.get((project_path.name, args), self.responses.get(("*", args)))
        if reply is None:
            return subprocess.CompletedProcess(list(args), 0, "", "")
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def fake_commands(monkeypatch) -> FakeCommands:
    fake = FakeCommands()

    def _run(self, *args):
        return fake(self.project_path, *args)

    monkeypatch.setattr(ProjectOperations, "_run", _run)
    return fake


@pytest.fixture
def make_project():
    """Factory creating ``root/*parts`` as a Mix project directory."""
    return _make_project


@pytest.fixture
def make_non_utf8_project():
    """Factory creating ``root/caf\\xe9`` (raw bytes) as a Mix project directory."""

    def _make(root: Path) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        raw = os.path.join(os.fsencode(root), b"caf\xe9")
        try:
            os.mkdir(raw)
        except (OSError, UnicodeError):
            pytest.skip("filesystem rejects non-UTF-8 names")
        with open(os.path.join(raw, b"mix.exs"), "w", encoding="utf-8") as f:
            f.write("defmodule Cafe.MixProject do\nend\n")
        return Path(os.fsdecode(raw))

    return _make


@pytest.fixture
def locked_paths(monkeypatch) -> list[Path]:
    """Paths appended here, and everything below them, raise PermissionError on stat checks."""
    locked: list[Path] = []

    for method in ("exists", "is_dir", "is_file"):
        original = getattr(Path, method)

        def guarded(self, *args, _original=original, **kwargs):
            if any(self == p or p in self.parents for p in locked):
                raise PermissionError(13, "Permission denied", str(self))
            return _original(self, *args, **kwargs)

        monkeypatch.setattr(Path, method, guarded)

    return locked
