"""Report text and console/JSON output for fleet results."""

from __future__ import annotations

import json
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from .core import (
        ElixirProject,
        FleetResponse,
        OperationResult,
        OutdatedResult,
        ProjectStatus,
    )


# =============================================================================
# Report text
# =============================================================================


def format_project_list(projects: list[ElixirProject]) -> str:
    names = ", ".join(p.name for p in projects)
    return f"Found {len(projects)} projects: {names}"


def format_refresh(projects: list[ElixirProject]) -> str:
    paths = "\n".join(str(p.path) for p in projects)
    return f"Refreshed project cache. Found {len(projects)} Elixir projects:\n{paths}"


def format_update_deps(results: list[OperationResult]) -> str:
    """One line per project: the mark, then the project path."""
    lines = []
    for result in results:
        mark = "✓" if result.success else f"✗ {result.error}"
        lines.append(f"{mark} {result.path}")
    return f"Updated {len(results)} projects:\n" + "\n".join(lines)


def format_outdated(results: list[OutdatedResult]) -> str:
    """Summarise hex.outdated output.

    Projects that could not be checked get an error block but are not
    counted as outdated. A flagged project without any recognisable
    dependency line is counted but has no block.
    """
    blocks: list[str] = []
    flagged = 0
    for result in results:
        if result.error:
            blocks.append(f"\n✗ {result.name} - error: {result.error}")
            continue
        if not result.has_outdated:
            continue
        flagged += 1
        if result.dependencies:
            deps = "\n  ".join(result.dependencies)
            blocks.append(f"\n📦 {result.name} ({len(result.dependencies)} outdated):\n  {deps}")

    if flagged == 0:
        return f"All {len(results)} projects are up to date!"
    return f"{flagged}/{len(results)} projects have outdated dependencies:" + "".join(blocks)


def format_sync_status(result: OperationResult) -> str:
    if result.success:
        return f"✓ ({result.message})"
    return f"✗ {result.error}"


def format_git_sync(results: list[OperationResult], verb: str) -> str:
    """Report for git pull / git push, one ``<name> <status>`` line each."""
    lines = [f"{r.name} {format_sync_status(r)}" for r in results]
    return f"Git {verb} on {len(results)} projects:\n" + "\n".join(lines)


def format_git_status(statuses: list[ProjectStatus]) -> str:
    dirty = [s.name for s in statuses if s.dirty]
    ahead = [s.name for s in statuses if s.ahead]
    clean = sum(1 for s in statuses if s.clean)

    if not dirty and not ahead:
        return f"✅ All {len(statuses)} projects are clean and pushed!"

    output = ""
    if dirty:
        output += f"⚠️  Uncommitted changes ({len(dirty)}):\n  " + "\n  ".join(dirty) + "\n\n"
    if ahead:
        output += f"📤 Unpushed commits ({len(ahead)}):\n  " + "\n  ".join(ahead) + "\n\n"
    output += f"✓ {clean} projects clean"
    return output


def format_delete(results: list[OperationResult]) -> str:
    lines = []
    for result in results:
        if result.success:
            lines.append(f"✓ Deleted {result.name}")
        else:
            lines.append(f"✗ Failed to delete {result.name}: {result.error}")
    return "\n".join(lines)


# =============================================================================
# Display names
# =============================================================================


def compute_unique_display_names(projects: list[Any]) -> dict[Path, str]:
    """Map each project path to a label for display.

    A name held by one project is used as is. Projects sharing a name are
    labelled with the shortest trailing part of their path that no other
    project in the group has.
    """
    by_name: dict[str, list[Path]] = defaultdict(list)
    for project in projects:
        by_name[project.name].append(project.path)

    labels: dict[Path, str] = {}
    for name, paths in by_name.items():
        if len(paths) == 1:
            labels[paths[0]] = name
        else:
            labels.update(_shortest_distinct_suffixes(paths))
    return labels


def _shortest_distinct_suffixes(paths: list[Path]) -> dict[Path, str]:
    labels = {}
    for path in paths:
        others = [other.parts for other in paths if other != path]
        depth = 2
        while depth < len(path.parts) and any(
            other[-depth:] == path.parts[-depth:] for other in others
        ):
            depth += 1
        labels[path] = "/".join(path.parts[-depth:])
    return labels


# =============================================================================
# Console output
# =============================================================================


class OutputFormatter:
    """Format output for console or JSON."""

    def __init__(self, console: Console, use_json: bool = False):
        self.console = console
        self.use_json = use_json

    def _print_json(self, output: dict):
        self.console.print(
            json.dumps(output, indent=2, default=str),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )

    def print_response(self, response: FleetResponse):
        """Print a dispatched response as its report text, or as JSON."""
        if self.use_json:
            self._print_json(response.to_dict())
        else:
            self.console.print(response.text, markup=False, highlight=False, soft_wrap=True)

    def print_project_table(self, projects: list[ElixirProject]):
        """Print discovered projects as a table, disambiguating shared names."""
        display_names = compute_unique_display_names(projects)

        if self.use_json:
            self._print_json(
                {
                    "count": len(projects),
                    "projects": [
                        {**p.to_dict(), "display_name": display_names.get(p.path, p.name)}
                        for p in projects
                    ],
                }
            )
            return

        if not projects:
            self.console.print("[dim]No Elixir projects found[/]")
            return

        table = Table(title="Elixir Projects")
        table.add_column("Project", style="cyan", no_wrap=True)
        table.add_column("Path")

        for project in projects:
            table.add_row(display_names.get(project.path, project.name), str(project.path))

        self.console.print(table)
        self.console.print(f"\n[bold]Total:[/] {len(projects)}")
