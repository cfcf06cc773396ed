"""
elixir-fleet: run mix and git across a whole fleet of Elixir projects.

Discovers Mix projects under a root directory, caches what it found, honours
an ignore list, and runs dependency and git operations across every project,
reducing the outcome of each into a single report.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn

from ._version import __version__
from .config import PROJECT_MARKER, SKIP_DIRS, FleetConfig
from .errors import FleetError, MissingProjectFilter
from .formatters import (
    OutputFormatter,
    format_delete,
    format_git_status,
    format_git_sync,
    format_outdated,
    format_project_list,
    format_refresh,
    format_update_deps,
)
from .schema import get_tool_schema
from .store import FileIgnoreStore, FileProjectCache, NameStore, ProjectStore, is_project_root

logger = logging.getLogger(__name__)

NO_PROJECTS = "No Elixir projects found"
NO_MATCHING_PROJECTS = "No matching projects found"

OUTDATED_MARKER = "Newer versions"
PULL_UP_TO_DATE_MARKER = "Already up to date"
PUSH_UP_TO_DATE_MARKER = "Everything up-to-date"

# =============================================================================
# Domain Models
# =============================================================================


class FleetAction(StrEnum):
    """Operations a request can ask for."""

    LIST = "list"
    UPDATE_DEPS = "update_deps"
    OUTDATED = "outdated"
    GIT_PULL = "git_pull"
    GIT_PUSH = "git_push"
    GIT_STATUS = "git_status"
    REFRESH = "refresh"
    DELETE = "delete"
    IGNORE = "ignore"
    UNIGNORE = "unignore"
    UNKNOWN = "unknown"  # anything else

    @classmethod
    def parse(cls, name: str) -> FleetAction:
        """Map a raw action name to an action, falling back to UNKNOWN."""
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN

    @classmethod
    def valid_names(cls) -> list[str]:
        return [action.value for action in cls if action is not cls.UNKNOWN]


@dataclass
class FleetRequest:
    """A single request: action name, optional name filter, optional scan root."""

    action: str
    project: str | None = None
    path: str | None = None

    def __post_init__(self):
        # An empty filter would match every project, which delete must never do
        if not self.project:
            self.project = None
        if not self.path:
            self.path = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FleetRequest:
        project = data.get("project")
        path = data.get("path")
        return cls(
            action=str(data.get("action") or ""),
            project=None if project is None else str(project),
            path=None if path is None else str(path),
        )

    def to_dict(self) -> dict:
        return {"action": self.action, "project": self.project, "path": self.path}


@dataclass
class CommandOutput:
    """Captured result of one external command."""

    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str = ""  # why the command could not be started

    @property
    def started(self) -> bool:
        return self.returncode is not None

    @property
    def success(self) -> bool:
        return self.returncode == 0


@dataclass
class OperationResult:
    """Result of a per-project operation."""

    path: Path
    name: str
    success: bool
    operation: str
    message: str = ""
    error: str = ""

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "name": self.name,
            "success": self.success,
            "operation": self.operation,
            "message": self.message,
            "error": self.error,
        }


@dataclass
class OutdatedResult:
    """Outcome of ``mix hex.outdated`` for one project."""

    path: Path
    name: str
    has_outdated: bool = False
    dependencies: list[str] = field(default_factory=list)
    error: str = ""

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "name": self.name,
            "has_outdated": self.has_outdated,
            "dependencies": self.dependencies,
            "error": self.error,
        }


@dataclass
class ProjectStatus:
    """Working tree and upstream state of one project."""

    path: Path
    name: str
    dirty: bool = False
    ahead: bool = False

    @property
    def clean(self) -> bool:
        return not self.dirty and not self.ahead

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "name": self.name,
            "dirty": self.dirty,
            "ahead": self.ahead,
            "clean": self.clean,
        }


@dataclass
class FleetResponse:
    """Reply to a request: the report text plus the structured results behind it."""

    action: FleetAction
    text: str
    results: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "text": self.text,
            "results": [r.to_dict() if hasattr(r, "to_dict") else r for r in self.results],
        }


# =============================================================================
# Command Operations (Low-level)
# =============================================================================


def first_line(text: str, default: str = "failed") -> str:
    """First non-blank line of *text*, or *default* when there is none."""
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return default


def parse_outdated_dependencies(stdout: str) -> list[str]:
    """Pick the dependency rows out of ``mix hex.outdated`` output.

    A row either shows an upgrade arrow or is an indented, non-empty line
    that is not the table header.
    """
    return [
        line
        for line in stdout.splitlines()
        if "->" in line
        or (line.startswith("  ") and line.strip() and "Dependency" not in line)
    ]


def is_ahead_of_remote(porcelain_v2: str) -> bool:
    """Check the ``# branch.ab +<ahead> -<behind>`` header for local commits."""
    for line in porcelain_v2.splitlines():
        if line.startswith("# branch.ab "):
            parts = line.split()
            if len(parts) == 4:
                try:
                    return int(parts[2]) > 0
                except ValueError:
                    return False
    return False


class ProjectOperations:
    """Low-level mix and git commands for a single project."""

    def __init__(self, project_path: Path):
        self.project_path = project_path

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        """Run a command in the project directory, capturing its output."""
        logger.debug("Running %s in %s", " ".join(args), self.project_path)
        return subprocess.run(
            list(args),
            cwd=self.project_path,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
        )

    def _capture(self, *args: str) -> CommandOutput:
        try:
            result = self._run(*args)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("Could not run %s in %s: %s", args[0], self.project_path, e)
            return CommandOutput(error=str(e))
        return CommandOutput(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    def deps_update(self) -> CommandOutput:
        return self._capture("mix", "deps.update", "--all")

    def hex_outdated(self) -> CommandOutput:
        return self._capture("mix", "hex.outdated")

    def pull(self) -> CommandOutput:
        return self._capture("git", "pull")

    def push(self) -> CommandOutput:
        return self._capture("git", "push")

    def status_porcelain(self) -> CommandOutput:
        return self._capture("git", "status", "--porcelain")

    def status_branch(self) -> CommandOutput:
        return self._capture("git", "status", "--branch", "--porcelain=v2")


def _failure_reason(output: CommandOutput) -> str:
    if not output.started:
        return output.error
    return first_line(output.stderr)


# =============================================================================
# Project
# =============================================================================


class ElixirProject:
    """High-level interface for a single Mix project."""

    def __init__(self, path: Path):
        self.path = path
        self.name = path.name or str(path)
        self.ops = ProjectOperations(path)

    def __repr__(self) -> str:
        return f"ElixirProject({str(self.path)!r})"

    def to_dict(self) -> dict:
        return {"path": str(self.path), "name": self.name}

    def update_deps(self) -> OperationResult:
        """Run ``mix deps.update --all``."""
        output = self.ops.deps_update()
        return OperationResult(
            path=self.path,
            name=self.name,
            success=output.success,
            operation="update_deps",
            error="" if output.success else _failure_reason(output),
        )

    def outdated(self) -> OutdatedResult:
        """Run ``mix hex.outdated``; a non-zero exit means something is outdated."""
        output = self.ops.hex_outdated()
        result = OutdatedResult(path=self.path, name=self.name)
        if not output.started:
            result.error = output.error
            return result
        if not output.success or OUTDATED_MARKER in output.stdout:
            result.has_outdated = True
            result.dependencies = parse_outdated_dependencies(output.stdout)
        return result

    def _sync(
        self, output: CommandOutput, operation: str, up_to_date_marker: str, done: str
    ) -> OperationResult:
        result = OperationResult(
            path=self.path, name=self.name, success=output.success, operation=operation
        )
        if output.success:
            # git reports "nothing to do" on stdout for pull, on stderr for push
            combined = output.stdout + output.stderr
            result.message = "up to date" if up_to_date_marker in combined else done
        else:
            result.error = _failure_reason(output)
        return result

    def pull(self) -> OperationResult:
        return self._sync(self.ops.pull(), "pull", PULL_UP_TO_DATE_MARKER, "updated")

    def push(self) -> OperationResult:
        return self._sync(self.ops.push(), "push", PUSH_UP_TO_DATE_MARKER, "pushed")

    def get_status(self) -> ProjectStatus:
        """Probe for uncommitted changes and for unpushed commits.

        The two checks are independent; one that cannot run counts as a
        negative answer.
        """
        porcelain = self.ops.status_porcelain()
        branch = self.ops.status_branch()
        return ProjectStatus(
            path=self.path,
            name=self.name,
            dirty=porcelain.started and bool(porcelain.stdout.strip()),
            ahead=branch.started and is_ahead_of_remote(branch.stdout),
        )

    def delete(self) -> OperationResult:
        """Remove the project directory and everything in it."""
        try:
            shutil.rmtree(self.path)
        except OSError as e:
            return OperationResult(
                path=self.path, name=self.name, success=False, operation="delete", error=str(e)
            )
        return OperationResult(path=self.path, name=self.name, success=True, operation="delete")


# =============================================================================
# Discovery
# =============================================================================


def scan_projects(
    start: Path,
    marker: str = PROJECT_MARKER,
    skip_dirs: Iterable[str] = SKIP_DIRS,
) -> list[Path]:
    """Find every directory under *start* that directly contains *marker*.

    Symlinks are followed. A directory that resolves to one of its own
    ancestors is not entered, so link cycles terminate while two links to
    the same directory are both listed. Directories named in *skip_dirs* are
    never entered. A missing or unreadable *start* yields an empty list.
    """
    try:
        if not start.exists():
            return []
    except OSError:
        return []

    skip = frozenset(skip_dirs)
    # dirpath -> (st_dev, st_ino) of every directory above it on this branch
    ancestors: dict[str, frozenset[tuple[int, int]]] = {}
    projects: list[Path] = []

    for dirpath, dirnames, filenames in os.walk(start.absolute(), followlinks=True):
        above = ancestors.pop(dirpath, frozenset())
        try:
            st = os.stat(dirpath)
        except OSError:
            dirnames[:] = []
            continue
        key = (st.st_dev, st.st_ino)
        if key in above:
            dirnames[:] = []
            continue

        chain = above | {key}
        dirnames[:] = [d for d in dirnames if d not in skip]
        for d in dirnames:
            ancestors[os.path.join(dirpath, d)] = chain

        if marker in filenames and is_project_root(Path(dirpath), marker):
            projects.append(Path(dirpath))

    projects.sort()
    return projects


def filter_by_name(projects: list[ElixirProject], name_filter: str | None) -> list[ElixirProject]:
    """Keep projects whose name contains *name_filter*, ignoring case."""
    if name_filter is None:
        return projects
    needle = name_filter.lower()
    return [p for p in projects if needle in p.name.lower()]


# =============================================================================
# Project Resolver
# =============================================================================


class ProjectResolver:
    """Decide which projects a request applies to.

    An explicit path is always scanned fresh. Otherwise the cache is used
    when present, and a scan of the default root refills it when absent or
    when a refresh is forced. Ignored names are removed in every case.
    """

    def __init__(self, config: FleetConfig, cache: ProjectStore, ignore_store: NameStore):
        self.config = config
        self.cache = cache
        self.ignore_store = ignore_store

    def expand_path(self, raw: str | None) -> Path:
        """Turn a path override into a scan root; ``~/`` means the home directory."""
        if raw is None:
            return self.config.root
        if raw.startswith("~/"):
            return Path.home() / raw[2:]
        return Path(raw)

    def scan(self, path_override: str | None = None) -> list[Path]:
        return scan_projects(
            self.expand_path(path_override),
            marker=self.config.marker,
            skip_dirs=self.config.skip_dirs,
        )

    def rescan_default_root(self) -> list[Path]:
        """Scan the default root and overwrite the cache with the result."""
        paths = self.scan()
        self.cache.save(paths)
        return paths

    def _without_ignored(self, paths: list[Path]) -> list[ElixirProject]:
        ignored = self.ignore_store.load()
        projects = [ElixirProject(p) for p in paths]
        return [p for p in projects if p.name not in ignored]

    def resolve(
        self, path_override: str | None = None, force_refresh: bool = False
    ) -> list[ElixirProject]:
        if path_override is not None:
            return self._without_ignored(self.scan(path_override))

        if not force_refresh:
            cached = self.cache.load()
            if cached is not None:
                return self._without_ignored(cached)

        return self._without_ignored(self.rescan_default_root())

    def known_projects(self, path_override: str | None = None) -> list[ElixirProject]:
        """All projects, ignored ones included, from the cache or a fresh scan."""
        cached = self.cache.load()
        if cached is not None:
            return [ElixirProject(p) for p in cached]
        return [ElixirProject(p) for p in self.scan(path_override)]


# =============================================================================
# Fleet Manager
# =============================================================================


class FleetManager:
    """Run one operation across a list of projects.

    Projects are processed one after another in path order unless
    ``max_workers`` is raised; with a pool, results are still returned in
    path order.
    """

    def __init__(self, projects: list[ElixirProject], max_workers: int = 1):
        self.projects = projects
        self.max_workers = max_workers

    def _execute(self, operation: Callable[[ElixirProject], Any]) -> list:
        """Execute operation on every project, sequentially or in a pool."""
        projects = self.projects

        if self.max_workers <= 1 or len(projects) <= 1:
            return [operation(project) for project in projects]

        results = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(operation, project): project for project in projects}
            for future in as_completed(futures):
                results.append(future.result())

        results.sort(key=lambda r: r.path)
        return results

    def update_deps_all(self) -> list[OperationResult]:
        return self._execute(lambda project: project.update_deps())

    def outdated_all(self) -> list[OutdatedResult]:
        return self._execute(lambda project: project.outdated())

    def pull_all(self) -> list[OperationResult]:
        return self._execute(lambda project: project.pull())

    def push_all(self) -> list[OperationResult]:
        return self._execute(lambda project: project.push())

    def get_all_status(self) -> list[ProjectStatus]:
        return self._execute(lambda project: project.get_status())

    def delete_all(self) -> list[OperationResult]:
        # Always one at a time, whatever max_workers says
        return [project.delete() for project in self.projects]


# =============================================================================
# Request Dispatcher
# =============================================================================


class FleetDispatcher:
    """Route requests to the resolver, the fleet manager, or the ignore list."""

    def __init__(
        self,
        config: FleetConfig | None = None,
        *,
        cache: ProjectStore | None = None,
        ignore_store: NameStore | None = None,
        max_workers: int = 1,
    ):
        self.config = config or FleetConfig.from_env()
        if cache is None:
            cache = FileProjectCache(self.config.cache_file, self.config.marker)
        if ignore_store is None:
            ignore_store = FileIgnoreStore(self.config.ignore_file)
        self.cache = cache
        self.ignore_store = ignore_store
        self.resolver = ProjectResolver(self.config, self.cache, self.ignore_store)
        self.max_workers = max_workers
        self._handlers: dict[FleetAction, Callable[[FleetRequest], FleetResponse]] = {
            FleetAction.LIST: self._list,
            FleetAction.REFRESH: self._refresh,
            FleetAction.UPDATE_DEPS: self._update_deps,
            FleetAction.OUTDATED: self._outdated,
            FleetAction.GIT_PULL: self._git_pull,
            FleetAction.GIT_PUSH: self._git_push,
            FleetAction.GIT_STATUS: self._git_status,
            FleetAction.DELETE: self._delete,
            FleetAction.IGNORE: self._ignore,
            FleetAction.UNIGNORE: self._unignore,
            FleetAction.UNKNOWN: self._unknown,
        }

    def dispatch(self, request: FleetRequest) -> FleetResponse:
        action = FleetAction.parse(request.action)
        logger.debug("Dispatching %s (project=%s, path=%s)", action, request.project, request.path)
        try:
            return self._handlers[action](request)
        except FleetError as e:
            return FleetResponse(action, str(e))

    def _resolve(self, request: FleetRequest, force_refresh: bool = False) -> list[ElixirProject]:
        projects = self.resolver.resolve(request.path, force_refresh=force_refresh)
        return filter_by_name(projects, request.project)

    def _run_batch(
        self,
        request: FleetRequest,
        action: FleetAction,
        run: Callable[[FleetManager], list],
        render: Callable[[list], str],
    ) -> FleetResponse:
        projects = self._resolve(request)
        if not projects:
            return FleetResponse(action, NO_PROJECTS)
        results = run(FleetManager(projects, max_workers=self.max_workers))
        return FleetResponse(action, render(results), results)

    def _list(self, request: FleetRequest) -> FleetResponse:
        projects = self._resolve(request)
        if not projects:
            return FleetResponse(FleetAction.LIST, NO_PROJECTS)
        return FleetResponse(FleetAction.LIST, format_project_list(projects), projects)

    def _refresh(self, request: FleetRequest) -> FleetResponse:
        projects = self._resolve(request, force_refresh=True)
        return FleetResponse(FleetAction.REFRESH, format_refresh(projects), projects)

    def _update_deps(self, request: FleetRequest) -> FleetResponse:
        return self._run_batch(
            request, FleetAction.UPDATE_DEPS, FleetManager.update_deps_all, format_update_deps
        )

    def _outdated(self, request: FleetRequest) -> FleetResponse:
        return self._run_batch(
            request, FleetAction.OUTDATED, FleetManager.outdated_all, format_outdated
        )

    def _git_pull(self, request: FleetRequest) -> FleetResponse:
        return self._run_batch(
            request,
            FleetAction.GIT_PULL,
            FleetManager.pull_all,
            lambda results: format_git_sync(results, "pull"),
        )

    def _git_push(self, request: FleetRequest) -> FleetResponse:
        return self._run_batch(
            request,
            FleetAction.GIT_PUSH,
            FleetManager.push_all,
            lambda results: format_git_sync(results, "push"),
        )

    def _git_status(self, request: FleetRequest) -> FleetResponse:
        return self._run_batch(
            request, FleetAction.GIT_STATUS, FleetManager.get_all_status, format_git_status
        )

    def _delete(self, request: FleetRequest) -> FleetResponse:
        if request.project is None:
            raise MissingProjectFilter(FleetAction.DELETE.value)

        projects = self._resolve(request)
        if not projects:
            return FleetResponse(FleetAction.DELETE, NO_MATCHING_PROJECTS)

        results = FleetManager(projects).delete_all()
        # The cache must reflect what is really on disk now, failures included
        self.resolver.rescan_default_root()
        return FleetResponse(FleetAction.DELETE, format_delete(results), results)

    def _ignore(self, request: FleetRequest) -> FleetResponse:
        ignored = self.ignore_store.load()

        if request.project is None:
            if not ignored:
                return FleetResponse(FleetAction.IGNORE, "No projects are currently ignored")
            names = sorted(ignored)
            return FleetResponse(FleetAction.IGNORE, f"Ignored projects: {', '.join(names)}", names)

        needle = request.project.lower()
        added: list[str] = []
        for project in self.resolver.known_projects(request.path):
            if needle in project.name.lower() and project.name not in ignored:
                ignored.add(project.name)
                added.append(project.name)

        if not added:
            return FleetResponse(FleetAction.IGNORE, "No matching projects found to ignore")

        self.ignore_store.save(ignored)
        return FleetResponse(FleetAction.IGNORE, f"Ignored: {', '.join(added)}", added)

    def _unignore(self, request: FleetRequest) -> FleetResponse:
        if request.project is None:
            raise MissingProjectFilter(FleetAction.UNIGNORE.value)

        ignored = self.ignore_store.load()
        needle = request.project.lower()
        removed = sorted(name for name in ignored if needle in name.lower())

        if not removed:
            return FleetResponse(FleetAction.UNIGNORE, "No matching ignored projects found")

        self.ignore_store.save(ignored.difference(removed))
        return FleetResponse(FleetAction.UNIGNORE, f"Unignored: {', '.join(removed)}", removed)

    def _unknown(self, request: FleetRequest) -> FleetResponse:
        valid = ", ".join(FleetAction.valid_names())
        return FleetResponse(
            FleetAction.UNKNOWN, f"Unknown action '{request.action}'. Use: {valid}"
        )


def handle_request(
    request: FleetRequest | Mapping[str, Any], config: FleetConfig | None = None
) -> str:
    """Answer one ``{action, project, path}`` request with its report text."""
    if not isinstance(request, FleetRequest):
        request = FleetRequest.from_dict(request)
    return FleetDispatcher(config).dispatch(request).text


# =============================================================================
# CLI Application
# =============================================================================


app = typer.Typer(
    name="elixir-fleet",
    help="Run mix and git commands across a fleet of Elixir projects.",
    no_args_is_help=True,
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        print(f"elixir-fleet {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send debug logging to stderr through rich."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    schema: bool = typer.Option(
        False,
        "--schema",
        help="Output MCP-compatible tool schema for AI agents",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every command run to stderr",
    ),
):
    """elixir-fleet: run mix and git commands across a fleet of Elixir projects."""
    if schema:
        print(json.dumps(get_tool_schema(), indent=2))
        raise typer.Exit()

    configure_logging(verbose)


def get_console_and_formatter(json_output: bool) -> tuple[Console, OutputFormatter]:
    """Create console and formatter."""
    console = Console(highlight=False)
    formatter = OutputFormatter(console, use_json=json_output)
    return console, formatter


def _dispatch_with_progress(
    request: FleetRequest,
    description: str,
    json_output: bool,
    workers: int = 1,
) -> tuple[FleetResponse, OutputFormatter]:
    console, formatter = get_console_and_formatter(json_output)
    dispatcher = FleetDispatcher(FleetConfig.from_env(), max_workers=workers)

    if not json_output:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(description, total=None)
            response = dispatcher.dispatch(request)
    else:
        response = dispatcher.dispatch(request)

    return response, formatter


def _run_action(
    action: FleetAction | str,
    project: str | None,
    path: str | None,
    json_output: bool,
    description: str,
    workers: int = 1,
) -> None:
    request = FleetRequest(action=str(action), project=project, path=path)
    response, formatter = _dispatch_with_progress(request, description, json_output, workers)
    formatter.print_response(response)


@app.command(name="list")
def list_projects(
    project: str = typer.Option(
        None,
        "--project",
        "-p",
        help="Only projects whose name contains this text",
    ),
    path: str = typer.Option(
        None,
        "--path",
        help="Scan this directory instead of using the cache",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
    table: bool = typer.Option(
        False,
        "--table",
        "-t",
        help="Show a table with full paths, disambiguating shared names",
    ),
):
    """List all known Elixir projects."""
    request = FleetRequest(action=FleetAction.LIST.value, project=project, path=path)
    response, formatter = _dispatch_with_progress(request, "Loading projects...", json_output)
    if table:
        formatter.print_project_table(response.results)
    else:
        formatter.print_response(response)


@app.command()
def refresh(
    project: str = typer.Option(
        None,
        "--project",
        "-p",
        help="Only report projects whose name contains this text",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
):
    """Rescan the default root and rewrite the project cache."""
    _run_action(FleetAction.REFRESH, project, None, json_output, "Scanning for projects...")


@app.command(name="update-deps")
def update_deps(
    project: str = typer.Option(
        None,
        "--project",
        "-p",
        help="Only projects whose name contains this text",
    ),
    path: str = typer.Option(
        None,
        "--path",
        help="Scan this directory instead of using the cache",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
    workers: int = typer.Option(
        1,
        "--workers",
        "-w",
        min=1,
        help="Projects to process at once (results keep path order)",
    ),
):
    """Run `mix deps.update --all` in every project."""
    _run_action(
        FleetAction.UPDATE_DEPS, project, path, json_output, "Updating dependencies...", workers
    )


@app.command()
def outdated(
    project: str = typer.Option(
        None,
        "--project",
        "-p",
        help="Only projects whose name contains this text",
    ),
    path: str = typer.Option(
        None,
        "--path",
        help="Scan this directory instead of using the cache",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
    workers: int = typer.Option(
        1,
        "--workers",
        "-w",
        min=1,
        help="Projects to process at once (results keep path order)",
    ),
):
    """Report projects with outdated Hex dependencies."""
    _run_action(
        FleetAction.OUTDATED, project, path, json_output, "Checking dependencies...", workers
    )


@app.command()
def pull(
    project: str = typer.Option(
        None,
        "--project",
        "-p",
        help="Only projects whose name contains this text",
    ),
    path: str = typer.Option(
        None,
        "--path",
        help="Scan this directory instead of using the cache",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
    workers: int = typer.Option(
        1,
        "--workers",
        "-w",
        min=1,
        help="Projects to process at once (results keep path order)",
    ),
):
    """Run `git pull` in every project."""
    _run_action(FleetAction.GIT_PULL, project, path, json_output, "Pulling projects...", workers)


@app.command()
def push(
    project: str = typer.Option(
        None,
        "--project",
        "-p",
        help="Only projects whose name contains this text",
    ),
    path: str = typer.Option(
        None,
        "--path",
        help="Scan this directory instead of using the cache",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
    workers: int = typer.Option(
        1,
        "--workers",
        "-w",
        min=1,
        help="Projects to process at once (results keep path order)",
    ),
):
    """Run `git push` in every project."""
    _run_action(FleetAction.GIT_PUSH, project, path, json_output, "Pushing projects...", workers)


@app.command()
def status(
    project: str = typer.Option(
        None,
        "--project",
        "-p",
        help="Only projects whose name contains this text",
    ),
    path: str = typer.Option(
        None,
        "--path",
        help="Scan this directory instead of using the cache",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
    workers: int = typer.Option(
        1,
        "--workers",
        "-w",
        min=1,
        help="Projects to process at once (results keep path order)",
    ),
):
    """Show which projects have uncommitted changes or unpushed commits."""
    _run_action(FleetAction.GIT_STATUS, project, path, json_output, "Checking status...", workers)


@app.command()
def delete(
    project: str = typer.Option(
        None,
        "--project",
        "-p",
        help="Delete projects whose name contains this text (required)",
    ),
    path: str = typer.Option(
        None,
        "--path",
        help="Scan this directory instead of using the cache",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Do not ask for confirmation",
    ),
):
    """Delete matching project directories, then rescan the default root."""
    if project and not yes:
        typer.confirm(f"Delete every project whose name contains '{project}'?", abort=True)
    _run_action(FleetAction.DELETE, project, path, json_output, "Deleting projects...")


@app.command()
def ignore(
    project: str = typer.Option(
        None,
        "--project",
        "-p",
        help="Ignore projects whose name contains this text; omit to list ignored names",
    ),
    path: str = typer.Option(
        None,
        "--path",
        help="Directory to scan for candidates when there is no cache",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
):
    """Exclude projects from every fleet operation, or list the excluded ones."""
    _run_action(FleetAction.IGNORE, project, path, json_output, "Updating ignore list...")


@app.command()
def unignore(
    project: str = typer.Option(
        None,
        "--project",
        "-p",
        help="Stop ignoring names that contain this text (required)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
):
    """Remove names from the ignore list."""
    _run_action(FleetAction.UNIGNORE, project, None, json_output, "Updating ignore list...")


@app.command()
def run(
    action: str = typer.Argument(
        ...,
        help="Raw action name: " + ", ".join(FleetAction.valid_names()),
    ),
    project: str = typer.Option(
        None,
        "--project",
        "-p",
        help="Project name filter",
    ),
    path: str = typer.Option(
        None,
        "--path",
        help="Scan this directory instead of using the cache",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
):
    """Dispatch a raw request the way an agent sends it (no confirmation)."""
    _run_action(action, project, path, json_output, "Working...")
