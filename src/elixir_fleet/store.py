"""File-backed persistence for the project cache and the ignore list.

Both files are plain text with one entry per line. Writes are best-effort:
a failed save is logged and reported through the return value, never raised.

There is no locking. Two processes writing the same file race and the last
writer wins.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from .config import PROJECT_MARKER

logger = logging.getLogger(__name__)


def is_project_root(path: Path, marker: str = PROJECT_MARKER) -> bool:
    """Check that *path* is a directory directly containing the marker file.

    A path that cannot be examined is not a project root.
    """
    try:
        return path.is_dir() and (path / marker).is_file()
    except OSError:
        return False


def _read_lines(path: Path) -> list[str] | None:
    """Read *path* as LF-separated lines, or None if it is missing or unreadable.

    Undecodable bytes come back surrogate-escaped, the same way os.walk
    reports them, so non-UTF-8 paths survive a save and load.
    """
    try:
        return path.read_text(encoding="utf-8", errors="surrogateescape").splitlines()
    except FileNotFoundError:
        return None
    except (OSError, UnicodeError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return None


def _write_lines(path: Path, lines: Iterable[str]) -> bool:
    """Replace *path* with *lines*, one per line.

    The content goes to a temp file in the same directory first and is then
    moved over the target, so a failed write leaves the old file intact.
    """
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
            for line in lines:
                f.write(f"{line}\n")
        os.replace(tmp_name, path)
        return True
    except (OSError, UnicodeError) as exc:
        logger.warning("Could not write %s: %s", path, exc)
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
        return False


class ProjectStore(Protocol):
    """Persistent set of discovered project paths."""

    def load(self) -> list[Path] | None: ...

    def save(self, paths: Iterable[Path]) -> bool: ...


class NameStore(Protocol):
    """Persistent set of ignored project names."""

    def load(self) -> set[str]: ...

    def save(self, names: Iterable[str]) -> bool: ...


class FileProjectCache:
    """Project paths cached in a text file, pruned of stale entries on read."""

    def __init__(self, path: Path, marker: str = PROJECT_MARKER):
        self.path = path
        self.marker = marker

    def load(self) -> list[Path] | None:
        """Return cached paths that still qualify as projects.

        Returns None when there is no cache yet. If any entry vanished or no
        longer holds the marker file, the pruned list is written back before
        returning, so this read can write.
        """
        lines = _read_lines(self.path)
        if lines is None:
            return None

        paths: list[Path] = []
        stale = False
        for line in lines:
            # Path("") is ".", which must not sneak in as a project
            if line and is_project_root(Path(line), self.marker):
                paths.append(Path(line))
            else:
                stale = True

        if stale:
            logger.info(
                "Pruned %d stale entries from %s", len(lines) - len(paths), self.path
            )
            self.save(paths)

        return paths

    def save(self, paths: Iterable[Path]) -> bool:
        return _write_lines(self.path, (str(p) for p in paths))


class FileIgnoreStore:
    """Ignored project names kept in a text file, one per line."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> set[str]:
        lines = _read_lines(self.path)
        if lines is None:
            return set()
        return {line for line in lines if line}

    def save(self, names: Iterable[str]) -> bool:
        return _write_lines(self.path, sorted(set(names)))
