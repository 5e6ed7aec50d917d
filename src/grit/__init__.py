"""grit: keep git repositories in sync between computers."""

# Guard against deleted CWD (e.g. directory removed by another process).
# rich crashes on import if os.getcwd() fails, so recover before any imports.
import os

try:
    os.getcwd()
except (OSError, PermissionError):
    os.chdir(os.path.expanduser("~"))

from ._version import __version__
from .core import (
    ActionStep,
    CommandOutput,
    ConfigError,
    ExecutionPlan,
    Existence,
    FleetManager,
    GatherResult,
    GitCommandError,
    GitOperations,
    GitRepository,
    GritError,
    NotARepositoryError,
    PlanExecutor,
    PlannedRepo,
    ProbeFailure,
    RepoAction,
    RepoStatus,
    RepositoryAccessError,
    StepOutcome,
    StepResult,
    SyncMode,
    app,
    entailed_steps,
    load_repos_file,
    resolve_config_file,
    run_command,
    sync_repositories,
)
from .formatters import OutputFormatter, display_path, normalize_remote

__all__ = [
    # Version
    "__version__",
    # CLI
    "app",
    # Models
    "ActionStep",
    "CommandOutput",
    "ExecutionPlan",
    "Existence",
    "GatherResult",
    "PlannedRepo",
    "ProbeFailure",
    "RepoAction",
    "RepoStatus",
    "StepOutcome",
    "StepResult",
    "SyncMode",
    # Errors
    "ConfigError",
    "GitCommandError",
    "GritError",
    "NotARepositoryError",
    "RepositoryAccessError",
    # Operations
    "FleetManager",
    "GitOperations",
    "GitRepository",
    "PlanExecutor",
    # Functions
    "entailed_steps",
    "load_repos_file",
    "resolve_config_file",
    "run_command",
    "sync_repositories",
    # Formatters
    "OutputFormatter",
    "display_path",
    "normalize_remote",
]
