"""Runtime configuration: default scan root, cache location, project marker."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# A directory is a project root iff it directly contains this file.
PROJECT_MARKER = "mix.exs"

# Never descended into during discovery.
SKIP_DIRS = frozenset(
    {
        "deps",
        "_build",
        ".elixir_ls",
        "node_modules",
        ".git",
        "_checkouts",
    }
)

CACHE_FILE_NAME = "projects"
IGNORE_FILE_NAME = "ignored"


def resolve_default_root() -> Path:
    """Resolve the default discovery root.

    Priority order:
    1. $ELIXIR_FLEET_ROOT environment variable
    2. ~/src/flt
    """
    env_root = os.environ.get("ELIXIR_FLEET_ROOT")
    if env_root:
        return Path(env_root).expanduser()
    return Path.home() / "src" / "flt"


def resolve_cache_dir() -> Path:
    """Resolve the per-user directory holding the cache and ignore files.

    Priority order:
    1. $ELIXIR_FLEET_CACHE_DIR environment variable
    2. $XDG_CACHE_HOME/elixir-fleet
    3. ~/.cache/elixir-fleet
    """
    env_dir = os.environ.get("ELIXIR_FLEET_CACHE_DIR")
    if env_dir:
        return Path(env_dir).expanduser()

    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache).expanduser() / "elixir-fleet"

    return Path.home() / ".cache" / "elixir-fleet"


@dataclass(frozen=True)
class FleetConfig:
    """Where to look for projects and where to keep persistent state."""

    root: Path
    cache_dir: Path
    marker: str = PROJECT_MARKER
    skip_dirs: frozenset[str] = SKIP_DIRS

    @property
    def cache_file(self) -> Path:
        return self.cache_dir / CACHE_FILE_NAME

    @property
    def ignore_file(self) -> Path:
        return self.cache_dir / IGNORE_FILE_NAME

    @classmethod
    def from_env(cls) -> FleetConfig:
        return cls(root=resolve_default_root(), cache_dir=resolve_cache_dir())
