"""Tests for per-project operations and the fleet manager, using scripted commands."""

import subprocess
import threading
import time

import pytest

from elixir_fleet.core import (
    ElixirProject,
    FleetManager,
    first_line,
    is_ahead_of_remote,
    parse_outdated_dependencies,
    scan_projects,
)

HEX_OUTDATED_STDOUT = """\
Dependency              Current  Latest  Status
ecto_sql                3.10.1   3.11.0  Update possible
phoenix                 1.7.2    1.7.10  Update possible
jason                   1.4.1    1.4.1   Up-to-date

Run `mix hex.outdated APP` to see requirements for a specific dependency.

To view the diffs in each available update, visit:
https://hex.pm/l/AbCdE
"""


@pytest.fixture
def fleet(fleet_root):
    return FleetManager([ElixirProject(p) for p in scan_projects(fleet_root)])


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def test_first_line_skips_blank_lines():
    assert first_line("\n  \n** (Mix) Could not find\nmore") == "** (Mix) Could not find"
    assert first_line("") == "failed"
    assert first_line("   \n") == "failed"


def test_parse_outdated_dependencies_arrow_and_indented_lines():
    stdout = (
        "Newer versions of the following dependencies are available:\n"
        "  Dependency  Current  Latest\n"
        "  plug 1.14.0 -> 1.15.2\n"
        "  telemetry   1.2.0    1.2.1\n"
        "\n"
        "ecto 3.10.0 -> 3.11.0\n"
        "   \n"
    )
    assert parse_outdated_dependencies(stdout) == [
        "  plug 1.14.0 -> 1.15.2",
        "  telemetry   1.2.0    1.2.1",
        "ecto 3.10.0 -> 3.11.0",
    ]


def test_parse_outdated_dependencies_table_without_markers():
    assert parse_outdated_dependencies(HEX_OUTDATED_STDOUT) == []


@pytest.mark.parametrize(
    "output, expected",
    [
        ("# branch.oid abc\n# branch.head main\n# branch.ab +2 -0\n", True),
        ("# branch.head main\n# branch.ab +0 -3\n", False),
        ("# branch.head main\n", False),
        ("# branch.ab +x -0\n", False),
        ("? ahead_notes.md\n", False),
    ],
)
def test_is_ahead_of_remote(output, expected):
    assert is_ahead_of_remote(output) is expected


# ---------------------------------------------------------------------------
# update_deps
# ---------------------------------------------------------------------------


def test_update_deps_runs_in_each_project_in_path_order(fleet, fake_commands):
    results = fleet.update_deps_all()

    assert [r.success for r in results] == [True, True, True]
    assert fake_commands.calls == [
        ("acme_portal", ("mix", "deps.update", "--all")),
        ("moneyclub", ("mix", "deps.update", "--all")),
        ("oneiros", ("mix", "deps.update", "--all")),
    ]


def test_update_deps_failure_uses_first_stderr_line(fleet, fake_commands):
    fake_commands.set(
        "moneyclub",
        "mix",
        "deps.update",
        "--all",
        returncode=1,
        stderr="** (Mix) Hex is not installed\nmore detail\n",
    )
    fake_commands.set("oneiros", "mix", "deps.update", "--all", returncode=1)

    results = {r.name: r for r in fleet.update_deps_all()}

    assert results["acme_portal"].success
    assert results["moneyclub"].error == "** (Mix) Hex is not installed"
    assert results["oneiros"].error == "failed"


def test_update_deps_missing_tool_does_not_abort_batch(fleet, fake_commands):
    fake_commands.fail_to_start("acme_portal", "mix", "deps.update", "--all")

    results = fleet.update_deps_all()

    assert not results[0].success
    assert "No such file or directory" in results[0].error
    assert [r.success for r in results[1:]] == [True, True]


def test_real_missing_executable_is_reported(tmp_path, make_project, monkeypatch):
    project = ElixirProject(make_project(tmp_path, "app"))
    monkeypatch.setenv("PATH", str(tmp_path / "empty_bin"))

    result = project.update_deps()

    assert not result.success
    assert result.error


# ---------------------------------------------------------------------------
# outdated
# ---------------------------------------------------------------------------


def test_outdated_flags_non_zero_exit(fleet, fake_commands):
    fake_commands.set(
        "moneyclub",
        "mix",
        "hex.outdated",
        returncode=1,
        stdout="  phoenix 1.7.2 -> 1.7.10\n",
    )

    results = {r.name: r for r in fleet.outdated_all()}

    assert results["moneyclub"].has_outdated
    assert results["moneyclub"].dependencies == ["  phoenix 1.7.2 -> 1.7.10"]
    assert not results["oneiros"].has_outdated


def test_outdated_flags_marker_phrase_on_success(fleet, fake_commands):
    fake_commands.set(
        "oneiros",
        "mix",
        "hex.outdated",
        stdout="Newer versions available:\n  ecto 3.10.0 -> 3.11.0\n",
    )

    results = {r.name: r for r in fleet.outdated_all()}

    assert results["oneiros"].has_outdated
    assert results["oneiros"].dependencies == ["  ecto 3.10.0 -> 3.11.0"]


def test_outdated_invocation_error_is_recorded(fleet, fake_commands):
    fake_commands.fail_to_start("*", "mix", "hex.outdated")

    results = fleet.outdated_all()

    assert all(r.error for r in results)
    assert not any(r.has_outdated for r in results)


# ---------------------------------------------------------------------------
# git pull / push
# ---------------------------------------------------------------------------


def test_pull_statuses(fleet, fake_commands):
    fake_commands.set("acme_portal", "git", "pull", stdout="Already up to date.\n")
    fake_commands.set("moneyclub", "git", "pull", stdout="Updating 1a2b..3c4d\nFast-forward\n")
    fake_commands.set(
        "oneiros",
        "git",
        "pull",
        returncode=1,
        stderr="fatal: not a git repository (or any of the parent directories): .git\n",
    )

    results = fleet.pull_all()

    assert [(r.success, r.message) for r in results[:2]] == [
        (True, "up to date"),
        (True, "updated"),
    ]
    assert results[2].error.startswith("fatal: not a git repository")


def test_push_up_to_date_marker_on_stderr(fleet, fake_commands):
    fake_commands.set("acme_portal", "git", "push", stderr="Everything up-to-date\n")
    fake_commands.set("moneyclub", "git", "push", stderr="To github.com:me/moneyclub.git\n")
    fake_commands.set("oneiros", "git", "push", returncode=128)

    results = fleet.push_all()

    assert results[0].message == "up to date"
    assert results[1].message == "pushed"
    assert results[2].error == "failed"


def test_push_missing_git(fleet, fake_commands):
    fake_commands.fail_to_start("*", "git", "push", error=PermissionError(13, "Permission denied"))

    results = fleet.push_all()

    assert all(not r.success for r in results)
    assert all("Permission denied" in r.error for r in results)


# ---------------------------------------------------------------------------
# git status
# ---------------------------------------------------------------------------


def test_status_checks_are_independent(fleet, fake_commands):
    fake_commands.set("acme_portal", "git", "status", "--porcelain", stdout=" M lib/acme.ex\n")
    fake_commands.set(
        "moneyclub", "git", "status", "--branch", "--porcelain=v2", stdout="# branch.ab +1 -0\n"
    )
    fake_commands.set("oneiros", "git", "status", "--porcelain", stdout="?? new.ex\n")
    fake_commands.set(
        "oneiros", "git", "status", "--branch", "--porcelain=v2", stdout="# branch.ab +4 -1\n"
    )

    statuses = {s.name: s for s in fleet.get_all_status()}

    assert (statuses["acme_portal"].dirty, statuses["acme_portal"].ahead) == (True, False)
    assert (statuses["moneyclub"].dirty, statuses["moneyclub"].ahead) == (False, True)
    assert (statuses["oneiros"].dirty, statuses["oneiros"].ahead) == (True, True)
    assert not any(s.clean for s in statuses.values())


def test_status_check_errors_count_as_clean(fleet, fake_commands):
    fake_commands.fail_to_start("*", "git", "status", "--porcelain")
    fake_commands.fail_to_start("*", "git", "status", "--branch", "--porcelain=v2")

    assert all(s.clean for s in fleet.get_all_status())


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


def test_delete_removes_directories(fleet, fleet_root):
    results = fleet.delete_all()

    assert all(r.success for r in results)
    assert not (fleet_root / "moneyclub").exists()


def test_delete_failure_is_reported(tmp_path):
    results = FleetManager([ElixirProject(tmp_path / "ghost")]).delete_all()

    assert not results[0].success
    assert results[0].error


# ---------------------------------------------------------------------------
# Worker pool
# ---------------------------------------------------------------------------


def test_worker_pool_keeps_path_order(fleet_root, monkeypatch):
    projects = [ElixirProject(p) for p in scan_projects(fleet_root)]
    started = []
    lock = threading.Lock()

    def slow_run(self, *args):
        with lock:
            started.append(self.project_path.name)
        # First project finishes last
        if self.project_path.name == "acme_portal":
            time.sleep(0.2)
        return subprocess.CompletedProcess(list(args), 0, "Already up to date.", "")

    monkeypatch.setattr("elixir_fleet.core.ProjectOperations._run", slow_run)

    results = FleetManager(projects, max_workers=3).pull_all()

    assert [r.name for r in results] == ["acme_portal", "moneyclub", "oneiros"]
    assert sorted(started) == ["acme_portal", "moneyclub", "oneiros"]
