"""elixir-fleet: run mix and git commands across a fleet of Elixir projects."""

# Guard against deleted CWD (e.g. directory removed by a fleet delete).
# rich crashes on import if os.getcwd() fails, so recover before any imports.
import os

try:
    os.getcwd()
except (OSError, PermissionError):
    os.chdir(os.path.expanduser("~"))

from ._version import __version__
from .config import FleetConfig
from .core import (
    CommandOutput,
    ElixirProject,
    FleetAction,
    FleetDispatcher,
    FleetManager,
    FleetRequest,
    FleetResponse,
    OperationResult,
    OutdatedResult,
    ProjectOperations,
    ProjectResolver,
    ProjectStatus,
    app,
    handle_request,
    scan_projects,
)
from .errors import FleetError, MissingProjectFilter
from .formatters import OutputFormatter
from .schema import get_tool_schema
from .store import FileIgnoreStore, FileProjectCache

__all__ = [
    # Version
    "__version__",
    # CLI
    "app",
    # Config
    "FleetConfig",
    # Models
    "CommandOutput",
    "FleetAction",
    "FleetRequest",
    "FleetResponse",
    "OperationResult",
    "OutdatedResult",
    "ProjectStatus",
    # Operations
    "ElixirProject",
    "FleetDispatcher",
    "FleetManager",
    "ProjectOperations",
    "ProjectResolver",
    # Persistence
    "FileIgnoreStore",
    "FileProjectCache",
    # Errors
    "FleetError",
    "MissingProjectFilter",
    # Functions
    "get_tool_schema",
    "handle_request",
    "scan_projects",
    # Formatters
    "OutputFormatter",
]
