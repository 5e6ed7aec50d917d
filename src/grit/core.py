"""
grit: keep a fixed set of git repositories in sync between computers.

Every run works in three phases: gather the status of each configured
repository concurrently, compile a plan from that snapshot, then (after the
operator consents) execute the plan one step at a time.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import IO

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from ._version import __version__
from .formatters import OutputFormatter
from .logging import setup_logging_from_env

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8

# =============================================================================
# Errors
# =============================================================================


class GritError(Exception):
    """Base class for grit errors."""


class ConfigError(GritError):
    """The repository list could not be read."""


class NotARepositoryError(GritError):
    """A configured path exists but is not a git repository."""

    def __init__(self, path: Path):
        super().__init__(f"{path} is not a valid git repository")
        self.path = path


class RepositoryAccessError(GritError):
    """A configured path could not be inspected on disk."""

    def __init__(self, path: Path, error: OSError):
        super().__init__(f"Cannot access {path}: {error.strerror or error}")
        self.path = path
        self.error = error


class GitCommandError(GritError):
    """A git command that was expected to succeed failed."""

    def __init__(self, path: Path, args: Sequence[str], returncode: int | None, stderr: str):
        self.path = path
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(f"`{' '.join(self.args_list)}` failed in {path}: {detail}")


# =============================================================================
# Domain Models
# =============================================================================


class SyncMode(StrEnum):
    """Direction of a sync run."""

    PULL = "pull"
    PUSH = "push"


class Existence(StrEnum):
    EXISTS = "exists"
    DOES_NOT_EXIST = "does_not_exist"


class RepoAction(StrEnum):
    """The single next action a repository needs, most work first."""

    NEEDS_STAGE = "needs_stage"
    NEEDS_COMMIT = "needs_commit"
    NEEDS_PUSH = "needs_push"
    NEEDS_PULL = "needs_pull"
    UP_TO_DATE = "up_to_date"


MODE_ACTIONS: dict[SyncMode, frozenset[RepoAction]] = {
    SyncMode.PUSH: frozenset(
        {
            RepoAction.NEEDS_STAGE,
            RepoAction.NEEDS_COMMIT,
            RepoAction.NEEDS_PUSH,
            RepoAction.UP_TO_DATE,
        }
    ),
    SyncMode.PULL: frozenset({RepoAction.NEEDS_PULL, RepoAction.UP_TO_DATE}),
}


class ActionStep(StrEnum):
    """A concrete unit of work run against one repository."""

    STAGE = "stage"
    COMMIT = "commit"
    PUSH = "push"
    PULL = "pull"

    @property
    def command(self) -> str:
        """Git command line shown in the plan preview."""
        match self:
            case ActionStep.STAGE:
                return "git add ."
            case ActionStep.COMMIT:
                return "git commit"
            case ActionStep.PUSH:
                return "git push"
            case ActionStep.PULL:
                return "git pull"
        raise ValueError(f"Unknown step: {self!r}")


def entailed_steps(action: RepoAction) -> tuple[ActionStep, ...]:
    """Expand an action into the ordered steps it requires.

    Staging always precedes committing, which always precedes pushing.
    """
    match action:
        case RepoAction.NEEDS_STAGE:
            return (ActionStep.STAGE, ActionStep.COMMIT, ActionStep.PUSH)
        case RepoAction.NEEDS_COMMIT:
            return (ActionStep.COMMIT, ActionStep.PUSH)
        case RepoAction.NEEDS_PUSH:
            return (ActionStep.PUSH,)
        case RepoAction.NEEDS_PULL:
            return (ActionStep.PULL,)
        case RepoAction.UP_TO_DATE:
            return ()
    raise ValueError(f"Unknown repository action: {action!r}")


def resolve_push_action(has_unstaged: bool, has_staged: bool, ahead: int) -> RepoAction:
    """Pick the most urgent push-direction action."""
    if has_unstaged:
        return RepoAction.NEEDS_STAGE
    if has_staged:
        return RepoAction.NEEDS_COMMIT
    if ahead > 0:
        return RepoAction.NEEDS_PUSH
    return RepoAction.UP_TO_DATE


def resolve_pull_action(behind: int) -> RepoAction:
    """Pick the pull-direction action."""
    return RepoAction.NEEDS_PULL if behind > 0 else RepoAction.UP_TO_DATE


@dataclass(frozen=True)
class RepoStatus:
    """Snapshot of one repository taken at the start of a run."""

    path: Path
    existence: Existence = Existence.EXISTS
    branch: str = ""
    remote: str = ""
    action: RepoAction | None = None
    ahead: int = 0
    behind: int = 0
    warnings: tuple[str, ...] = ()

    def __post_init__(self):
        if self.existence == Existence.EXISTS and self.action is None:
            raise ValueError(f"Existing repository {self.path} has no action")


@dataclass(frozen=True)
class PlannedRepo:
    """A repository status paired with the steps planned for it."""

    status: RepoStatus
    steps: tuple[ActionStep, ...] = ()


@dataclass(frozen=True)
class ExecutionPlan:
    """Ordered steps across all repositories for one sync direction."""

    mode: SyncMode
    repos: tuple[PlannedRepo, ...] = ()

    @classmethod
    def build(cls, statuses: Iterable[RepoStatus], mode: SyncMode) -> ExecutionPlan:
        """Compile a plan from probed statuses. Does no I/O."""
        planned = []
        for status in sorted(statuses, key=lambda s: s.path):
            if status.existence == Existence.DOES_NOT_EXIST or status.action is None:
                continue
            if status.action not in MODE_ACTIONS[mode]:
                raise ValueError(
                    f"Action {status.action.value} of {status.path} is not valid for {mode.value}"
                )
            planned.append(PlannedRepo(status=status, steps=entailed_steps(status.action)))
        return cls(mode=mode, repos=tuple(planned))

    @property
    def steps(self) -> list[tuple[Path, ActionStep]]:
        """Every step in execution order, bound to its repository path."""
        return [(repo.status.path, step) for repo in self.repos for step in repo.steps]

    def is_noop(self) -> bool:
        return not any(repo.steps for repo in self.repos)


class StepOutcome(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    """Result of executing one plan step."""

    path: Path
    step: ActionStep
    outcome: StepOutcome
    message: str = ""
    error: str = ""

    @property
    def success(self) -> bool:
        return self.outcome == StepOutcome.SUCCEEDED


@dataclass(frozen=True)
class ProbeFailure:
    """A repository whose status could not be determined."""

    path: Path
    error: GritError

    @property
    def message(self) -> str:
        if isinstance(self.error, GitCommandError) and self.error.stderr.strip():
            return self.error.stderr.strip()
        return str(self.error)


@dataclass
class GatherResult:
    """Everything learned while probing the configured repositories."""

    statuses: list[RepoStatus] = field(default_factory=list)
    missing: list[Path] = field(default_factory=list)
    failures: list[ProbeFailure] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


# =============================================================================
# Command Runner
# =============================================================================


@dataclass
class CommandOutput:
    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        return self.returncode == 0


def _drain(stream: IO[str], sink: list[str], echo: Console | None, style: str) -> None:
    """Read a stream line by line until EOF, optionally echoing each line."""
    try:
        for line in iter(stream.readline, ""):
            sink.append(line)
            if echo is not None:
                echo.print(f"  {escape(line.rstrip())}", style=style, highlight=False)
    finally:
        stream.close()


def run_command(
    cwd: Path,
    args: Sequence[str],
    *,
    check: bool = True,
    echo: Console | None = None,
) -> CommandOutput:
    """Run a command in ``cwd`` and capture its output.

    stdout and stderr are drained concurrently while the process runs so a
    child writing a lot to either stream never blocks on a full pipe. With
    ``echo`` set, the command and each output line are printed as they
    arrive. With ``check`` set, a non-zero exit raises GitCommandError;
    otherwise the exit code is returned as data.
    """
    if echo is not None:
        echo.print(
            f"🚀 Running: [bright_green]{escape(args[0])}[/] "
            f"[bright_cyan]{escape(' '.join(args[1:]))}[/] "
            f"[bright_blue](in {escape(str(cwd))})[/]",
            highlight=False,
        )
    logger.debug("Running %s in %s", " ".join(args), cwd)

    try:
        process = subprocess.Popen(
            list(args),
            cwd=cwd,
            stdin=None if echo is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise GitCommandError(cwd, args, None, str(e)) from e

    stdout_lines: list[str] = []
    stderr_lines: list[str] = []
    with ThreadPoolExecutor(max_workers=2) as readers:
        pending = [
            readers.submit(_drain, process.stdout, stdout_lines, echo, "bright_green"),
            readers.submit(_drain, process.stderr, stderr_lines, echo, "yellow"),
        ]
        returncode = process.wait()
        for future in pending:
            future.result()

    output = CommandOutput(
        stdout="".join(stdout_lines),
        stderr="".join(stderr_lines),
        returncode=returncode,
    )
    if check and not output.success:
        logger.warning("%s failed in %s with exit code %s", " ".join(args), cwd, returncode)
        raise GitCommandError(cwd, args, returncode, output.stderr)
    return output


# =============================================================================
# Git Operations (Low-level)
# =============================================================================


class GitOperations:
    """Git queries and mutations for a single repository."""

    def __init__(self, repo_path: Path, console: Console | None = None):
        self.repo_path = repo_path
        self.console = console

    def _run(self, *args: str, check: bool = True, echo: bool = False) -> CommandOutput:
        """Run a git command in the repository."""
        return run_command(
            self.repo_path,
            ["git", *args],
            check=check,
            echo=self.console if echo else None,
        )

    def current_branch(self) -> str:
        return self._run("rev-parse", "--abbrev-ref", "HEAD").stdout.strip()

    def origin_url(self) -> str:
        return self._run("remote", "get-url", "origin").stdout.strip()

    def has_unstaged_changes(self) -> bool:
        """Check for modified or untracked files that are not staged."""
        result = self._run("status", "--porcelain")
        for line in result.stdout.splitlines():
            # Format: XY path, where Y is the working tree column
            if line.startswith("??") or (len(line) > 1 and line[1] != " "):
                return True
        return False

    def has_staged_changes(self) -> bool:
        """Check for staged changes that are not committed yet.

        ``git diff --cached --quiet`` exits 1 when there is a staged diff and
        0 when there is none. Any other exit code is an error.
        """
        args = ("diff", "--cached", "--quiet")
        result = self._run(*args, check=False)
        if result.returncode == 1:
            return True
        if result.returncode == 0:
            return False
        raise GitCommandError(self.repo_path, ["git", *args], result.returncode, result.stderr)

    def count_ahead(self) -> int:
        """Count local commits not yet on the upstream branch."""
        return self._count("@{u}..HEAD")

    def count_behind(self) -> int:
        """Count upstream commits not yet in HEAD."""
        return self._count("HEAD..@{u}")

    def _count(self, revision_range: str) -> int:
        result = self._run("rev-list", "--count", revision_range)
        try:
            return int(result.stdout.strip())
        except ValueError as e:
            raise GitCommandError(
                self.repo_path,
                ["git", "rev-list", "--count", revision_range],
                result.returncode,
                f"unexpected output: {result.stdout.strip()!r}",
            ) from e

    def fetch_all(self) -> CommandOutput:
        return self._run("fetch", "--all", check=False)

    def stage_all(self) -> CommandOutput:
        return self._run("add", ".", check=False, echo=True)

    def staged_summary(self) -> str:
        return self._run("diff", "--cached", "--stat", check=False).stdout

    def commit(self, message: str) -> CommandOutput:
        return self._run("commit", "-m", message, check=False, echo=True)

    def commit_with_editor(self) -> int:
        """Run ``git commit`` attached to the terminal so the editor can open."""
        try:
            return subprocess.run(["git", "commit"], cwd=self.repo_path, check=False).returncode
        except OSError as e:
            raise GitCommandError(self.repo_path, ["git", "commit"], None, str(e)) from e

    def push(self) -> CommandOutput:
        return self._run("push", check=False, echo=True)

    def pull(self) -> CommandOutput:
        return self._run("pull", check=False, echo=True)


# =============================================================================
# Repository Prober
# =============================================================================


class GitRepository:
    """A configured repository checkout."""

    def __init__(self, path: Path, ops: GitOperations | None = None):
        self.path = path
        self.ops = ops or GitOperations(path)

    @property
    def existence(self) -> Existence:
        try:
            exists = self.path.exists()
        except OSError as e:
            raise RepositoryAccessError(self.path, e) from e
        return Existence.EXISTS if exists else Existence.DOES_NOT_EXIST

    def probe(self, mode: SyncMode) -> RepoStatus | None:
        """Determine what this repository needs for ``mode``.

        Returns None when the directory does not exist. Raises
        NotARepositoryError when it exists without a ``.git`` directory,
        RepositoryAccessError when the path cannot be inspected and
        GitCommandError when a status query fails.
        """
        if self.existence == Existence.DOES_NOT_EXIST:
            logger.info("Skipping %s: directory does not exist", self.path)
            return None
        try:
            is_repository = (self.path / ".git").is_dir()
        except OSError as e:
            raise RepositoryAccessError(self.path, e) from e
        if not is_repository:
            raise NotARepositoryError(self.path)

        branch = self.ops.current_branch()
        remote = self.ops.origin_url()

        match mode:
            case SyncMode.PUSH:
                has_unstaged = self.ops.has_unstaged_changes()
                has_staged = self.ops.has_staged_changes()
                ahead = self.ops.count_ahead()
                return RepoStatus(
                    path=self.path,
                    branch=branch,
                    remote=remote,
                    action=resolve_push_action(has_unstaged, has_staged, ahead),
                    ahead=ahead,
                )
            case SyncMode.PULL:
                warnings: list[str] = []
                fetch = self.ops.fetch_all()
                if not fetch.success:
                    logger.warning("Fetch failed in %s: %s", self.path, fetch.stderr.strip())
                    warnings.append(f"Failed to fetch changes: {fetch.stderr.strip()}")
                behind = self.ops.count_behind()
                return RepoStatus(
                    path=self.path,
                    branch=branch,
                    remote=remote,
                    action=resolve_pull_action(behind),
                    behind=behind,
                    warnings=tuple(warnings),
                )
        raise ValueError(f"Unknown sync mode: {mode!r}")


# =============================================================================
# Fleet Manager
# =============================================================================


class FleetManager:
    """Probe a fixed list of repositories with bounded concurrency."""

    def __init__(self, paths: Iterable[Path], max_workers: int = DEFAULT_MAX_WORKERS):
        self.paths = [Path(p) for p in paths]
        self.max_workers = max_workers

    def repositories(self) -> list[GitRepository]:
        return [GitRepository(path) for path in self.paths]

    @staticmethod
    def _probe(repo: GitRepository, mode: SyncMode) -> RepoStatus | GritError | None:
        try:
            return repo.probe(mode)
        except GritError as e:
            return e

    def gather(self, mode: SyncMode) -> GatherResult:
        """Probe every repository and collect the results sorted by path.

        A failing status query only drops that repository. A path that is
        not a git repository aborts the run once all probes have finished.
        """
        repos = self.repositories()
        outcomes: list[tuple[Path, RepoStatus | GritError | None]] = []

        if repos:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {executor.submit(self._probe, repo, mode): repo for repo in repos}
                for future in as_completed(futures):
                    outcomes.append((futures[future].path, future.result()))

        result = GatherResult()
        not_repositories: list[NotARepositoryError] = []
        for path, outcome in sorted(outcomes, key=lambda item: item[0]):
            if outcome is None:
                result.missing.append(path)
            elif isinstance(outcome, NotARepositoryError):
                not_repositories.append(outcome)
            elif isinstance(outcome, GritError):
                logger.warning("Could not read status of %s: %s", path, outcome)
                result.failures.append(ProbeFailure(path=path, error=outcome))
            else:
                result.statuses.append(outcome)

        if not_repositories:
            for error in not_repositories[1:]:
                logger.error("%s", error)
            raise not_repositories[0]
        return result


# =============================================================================
# Plan Executor
# =============================================================================


class PlanExecutor:
    """Run an execution plan one step at a time.

    A failed step skips the remaining steps of the same repository and
    execution moves on to the next repository.
    """

    def __init__(
        self,
        console: Console,
        formatter: OutputFormatter,
        prompt: Callable[[str], str] | None = None,
        ops_factory: Callable[[Path, Console], GitOperations] = GitOperations,
    ):
        self.console = console
        self.formatter = formatter
        self.prompt = prompt or console.input
        self.ops_factory = ops_factory

    def execute(self, plan: ExecutionPlan) -> list[StepResult]:
        results: list[StepResult] = []
        for planned in plan.repos:
            if not planned.steps:
                continue
            path = planned.status.path
            self.formatter.print_repo_header(path)
            ops = self.ops_factory(path, self.console)
            failed = False
            for step in planned.steps:
                if failed:
                    result = StepResult(
                        path=path,
                        step=step,
                        outcome=StepOutcome.SKIPPED,
                        message="Skipped after an earlier failure",
                    )
                else:
                    result = self._run_step(ops, path, step)
                    failed = not result.success
                self.formatter.print_step_result(result)
                results.append(result)
        return results

    def _run_step(self, ops: GitOperations, path: Path, step: ActionStep) -> StepResult:
        try:
            match step:
                case ActionStep.STAGE:
                    return self._stage(ops, path)
                case ActionStep.COMMIT:
                    return self._commit(ops, path)
                case ActionStep.PUSH:
                    return self._push(ops, path)
                case ActionStep.PULL:
                    return self._pull(ops, path)
        except GritError as e:
            logger.warning("%s failed in %s: %s", step.value, path, e)
            return StepResult(path=path, step=step, outcome=StepOutcome.FAILED, error=str(e))
        raise ValueError(f"Unknown step: {step!r}")

    @staticmethod
    def _failed(path: Path, step: ActionStep, output: CommandOutput) -> StepResult:
        return StepResult(
            path=path,
            step=step,
            outcome=StepOutcome.FAILED,
            error=output.stderr.strip() or output.stdout.strip(),
        )

    def _stage(self, ops: GitOperations, path: Path) -> StepResult:
        output = ops.stage_all()
        if not output.success:
            return self._failed(path, ActionStep.STAGE, output)
        return StepResult(path, ActionStep.STAGE, StepOutcome.SUCCEEDED, message="Changes staged")

    def _commit(self, ops: GitOperations, path: Path) -> StepResult:
        summary = ops.staged_summary()
        self.console.print("  Staged changes:")
        self.console.print(escape(summary.rstrip()) or "  [dim](none)[/]", highlight=False)

        try:
            message = self.prompt("  Enter commit message (leave empty to open your editor): ")
        except EOFError:
            return StepResult(
                path, ActionStep.COMMIT, StepOutcome.FAILED, error="No commit message provided"
            )

        message = message.strip()
        if message:
            output = ops.commit(message)
            if not output.success:
                return self._failed(path, ActionStep.COMMIT, output)
        else:
            returncode = ops.commit_with_editor()
            if returncode != 0:
                return StepResult(
                    path,
                    ActionStep.COMMIT,
                    StepOutcome.FAILED,
                    error=f"git commit exited with code {returncode}",
                )
        return StepResult(path, ActionStep.COMMIT, StepOutcome.SUCCEEDED, message="Changes committed")

    def _push(self, ops: GitOperations, path: Path) -> StepResult:
        output = ops.push()
        if not output.success:
            return self._failed(path, ActionStep.PUSH, output)
        if "Everything up-to-date" in output.stderr or "Everything up-to-date" in output.stdout:
            message = "Nothing to push"
        else:
            message = "Changes pushed"
        return StepResult(path, ActionStep.PUSH, StepOutcome.SUCCEEDED, message=message)

    def _pull(self, ops: GitOperations, path: Path) -> StepResult:
        output = ops.pull()
        if not output.success:
            return self._failed(path, ActionStep.PULL, output)
        if "Already up to date" in output.stdout or "Already up-to-date" in output.stdout:
            message = "Already up to date"
        else:
            message = "Changes pulled"
        return StepResult(path, ActionStep.PULL, StepOutcome.SUCCEEDED, message=message)


# =============================================================================
# Configuration
# =============================================================================


CONFIG_ENV = "GRIT_CONFIG"

DEFAULT_CONFIG_TEMPLATE = """\
# grit configuration file
# List one repository path per line, e.g.:
# /home/user/projects/repo1
# /home/user/projects/repo2
# ~/Documents/github/my-project
"""


def resolve_config_file() -> Path:
    """Locate the repository list.

    Priority order:
    1. $GRIT_CONFIG environment variable
    2. ~/.config/grit.conf
    """
    env_config = os.environ.get(CONFIG_ENV)
    if env_config:
        return Path(env_config).expanduser()
    return Path.home() / ".config" / "grit.conf"


def parse_repos(content: str) -> list[Path]:
    """Parse repository paths (one per line).

    Supports:
    - Comments starting with #, on their own line or after a path
    - Environment variables: $HOME, ${HOME}, etc.
    - Tilde expansion: ~/path
    """
    repos: list[Path] = []
    seen: set[Path] = set()
    for line in content.splitlines():
        entry = line.split("#", 1)[0].strip()
        if not entry:
            continue
        path = Path(os.path.expandvars(entry)).expanduser()
        if path in seen:
            continue
        seen.add(path)
        repos.append(path)
    return repos


def load_repos_file(config_file: Path) -> list[Path]:
    """Load the configured repository paths, in file order."""
    try:
        content = config_file.expanduser().read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to read config file at {config_file}: {e}") from e
    return parse_repos(content)


def create_default_config(config_file: Path) -> None:
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")


def default_editor() -> str:
    return os.environ.get("VISUAL") or os.environ.get("EDITOR") or ""


def open_in_editor(editor: str, config_file: Path) -> int:
    """Open ``config_file`` in ``editor`` attached to the terminal.

    ``editor`` may carry arguments, e.g. ``code --wait``.
    """
    try:
        args = [*shlex.split(editor), str(config_file)]
    except ValueError as e:
        raise ConfigError(f"Cannot parse editor command {editor!r}: {e}") from e
    logger.info("Opening %s with %s", config_file, editor)
    try:
        return subprocess.run(args, check=False).returncode
    except OSError as e:
        raise ConfigError(f"Failed to open editor {editor!r}: {e}") from e


# =============================================================================
# Sync Workflow
# =============================================================================


def ask_yes(console: Console, question: str, *, ignore_case: bool = False) -> bool:
    """Ask a question on the terminal; only a literal ``yes`` counts."""
    try:
        answer = console.input(question).strip()
    except EOFError:
        return False
    if ignore_case:
        answer = answer.lower()
    return answer == "yes"


def sync_repositories(
    mode: SyncMode,
    paths: Sequence[Path],
    console: Console,
    formatter: OutputFormatter,
    *,
    confirm: Callable[[], bool],
    executor: PlanExecutor | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> int:
    """Gather, plan, confirm and execute. Returns the process exit code."""
    fleet = FleetManager(paths, max_workers=max_workers)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Checking {len(fleet.paths)} repositories...", total=None)
        gathered = fleet.gather(mode)

    formatter.print_gather_warnings(gathered)

    plan = ExecutionPlan.build(gathered.statuses, mode)
    formatter.print_plan(plan)

    if plan.is_noop():
        if gathered.has_failures:
            return 1
        formatter.print_cheer()
        return 0

    if not confirm():
        console.print("[red]Operation cancelled.[/]")
        return 0

    executor = executor or PlanExecutor(console, formatter)
    results = executor.execute(plan)
    formatter.print_execution_summary(results)

    if gathered.has_failures or any(r.outcome == StepOutcome.FAILED for r in results):
        return 1
    return 0


# =============================================================================
# CLI Application
# =============================================================================


app = typer.Typer(
    name="grit",
    help="Keep git repositories in sync between computers.",
    no_args_is_help=True,
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        print(f"grit {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """grit: keep git repositories in sync between computers."""
    setup_logging_from_env()


def get_console_and_formatter() -> tuple[Console, OutputFormatter]:
    """Create console and formatter. All output goes to stderr."""
    console = Console(stderr=True)
    return console, OutputFormatter(console)


def read_configured_repositories(console: Console) -> list[Path] | None:
    """Read the repository list, offering to create it when missing.

    Returns None when there is nothing to sync in this run because the
    config file did not exist.
    """
    config_file = resolve_config_file()
    if not config_file.exists():
        console.print(f"Config file not found at [bright_cyan]{escape(str(config_file))}[/]")
        if not ask_yes(
            console,
            "Do you want to create a default config file? ([green]yes[/]/[red]no[/]): ",
            ignore_case=True,
        ):
            console.print("Exiting without creating config file.")
            return None
        try:
            create_default_config(config_file)
        except OSError as e:
            raise ConfigError(f"Failed to create config file at {config_file}: {e}") from e
        console.print(f"Default config file created at [bright_cyan]{escape(str(config_file))}[/]")
        offer_editor(console, config_file)
        return None
    return load_repos_file(config_file)


def offer_editor(console: Console, config_file: Path) -> None:
    """Ask for an editor and open the freshly created config file in it."""
    fallback = default_editor()
    hint = f" [dim]({escape(fallback)})[/]" if fallback else ""
    try:
        editor = console.input(
            f"Enter your favorite text editor to open the config file{hint}: "
        ).strip()
    except EOFError:
        editor = ""
    editor = editor or fallback
    if not editor:
        console.print("Add your repositories to it and run grit again.")
        return

    console.print(
        f"Opening config file with [bright_cyan]{escape(editor)}[/]. "
        "Press Ctrl+C to quit now if you don't want to proceed."
    )
    returncode = open_in_editor(editor, config_file)
    if returncode != 0:
        logger.warning("Editor %s exited with code %d", editor, returncode)
    console.print("Please run grit again after editing the config file.")


def run_sync(mode: SyncMode) -> int:
    console, formatter = get_console_and_formatter()
    try:
        paths = read_configured_repositories(console)
        if paths is None:
            return 0
        if not paths:
            console.print(
                f"[yellow]No repositories configured in {escape(str(resolve_config_file()))}[/]"
            )
            return 0
        return sync_repositories(
            mode,
            paths,
            console,
            formatter,
            confirm=lambda: ask_yes(
                console, "\nDo you want to proceed? Type [green]yes[/] to continue: "
            ),
        )
    except (ConfigError, NotARepositoryError) as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        return 2


@app.command()
def pull():
    """Pull latest changes for all repositories."""
    raise typer.Exit(run_sync(SyncMode.PULL))


@app.command()
def push():
    """Push local changes for all repositories."""
    raise typer.Exit(run_sync(SyncMode.PUSH))
