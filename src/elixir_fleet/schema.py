"""MCP-compatible tool schema for AI agents."""

from __future__ import annotations

from ._version import __version__

ACTIONS = [
    "list",
    "update_deps",
    "outdated",
    "git_pull",
    "git_push",
    "git_status",
    "refresh",
    "delete",
    "ignore",
    "unignore",
]


def get_tool_schema() -> dict:
    """Generate MCP-compatible tool schema for AI agents."""
    return {
        "name": "elixir-fleet",
        "version": __version__,
        "description": "Manage a fleet of Elixir (Mix) projects. Discovers every directory containing mix.exs under a root (default ~/src/flt, override with $ELIXIR_FLEET_ROOT), caches the list in ~/.cache/elixir-fleet/projects, and runs dependency and git operations across all of them, one project at a time. Names in ~/.cache/elixir-fleet/ignored are skipped by every action.",
        "usage": "elixir-fleet run <action> [--project NAME] [--path PATH] [--json]",
        "tools": [
            {
                "name": "elixir_projects",
                "description": "Run one fleet action. list: project names. refresh: rescan the default root and rewrite the cache. update_deps: mix deps.update --all. outdated: mix hex.outdated. git_pull / git_push: git pull / git push. git_status: uncommitted changes and unpushed commits. delete: remove matching project directories (requires 'project'). ignore: exclude matching projects, or list excluded names when 'project' is omitted. unignore: stop excluding matching names (requires 'project'). Every outcome, including per-project failures, is returned as text.",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "action": {
                            "type": "string",
                            "enum": ACTIONS,
                            "description": "Action to perform",
                        },
                        "project": {
                            "type": "string",
                            "description": "Filter to projects whose name contains this text, case-insensitive (e.g. 'moneyclub'). Required for delete and unignore.",
                        },
                        "path": {
                            "type": "string",
                            "description": "Starting directory to scan instead of the cache (defaults to ~/src/flt). A leading ~/ is expanded.",
                        },
                    },
                    "required": ["action"],
                },
                "outputSchema": {
                    "type": "object",
                    "properties": {
                        "action": {"type": "string"},
                        "text": {
                            "type": "string",
                            "description": "Human-readable report with counts and one line per project",
                        },
                        "results": {
                            "type": "array",
                            "description": "Structured per-project results (with --json)",
                        },
                    },
                },
                "examples": [
                    {
                        "description": "Which projects have uncommitted work",
                        "command": "elixir-fleet run git_status --json",
                    },
                    {
                        "description": "Update dependencies in one project",
                        "command": "elixir-fleet run update_deps --project moneyclub",
                    },
                    {
                        "description": "Stop touching archived projects",
                        "command": "elixir-fleet run ignore --project archive",
                    },
                ],
            },
        ],
    }
