"""Exception hierarchy for elixir-fleet.

These are configuration errors: the request itself is unusable, so the
operation stops before any project is touched. The dispatcher turns them into
plain-text replies; they never reach an agent as a fault.
"""


class FleetError(Exception):
    """Base class for all elixir-fleet errors."""


class MissingProjectFilter(FleetError):
    """An action that needs a project name filter was called without one."""

    def __init__(self, action: str):
        super().__init__(f"Error: 'project' filter is required for {action} action")
        self.action = action
