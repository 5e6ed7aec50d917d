"""Console output for plans, step results and summaries."""

from __future__ import annotations

import random
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from .core import ExecutionPlan, GatherResult, RepoAction, RepoStatus, StepResult


MARINE_EMOJIS = ["🐠", "🐡", "🦈", "🐙", "🦀", "🐚", "🐳", "🐬", "🦭", "🐟"]

CHEERFUL_MESSAGES = [
    "Everything's shipshape and Bristol fashion!",
    "Smooth sailing ahead!",
    "You're in sync with the universe!",
    "Repo goals achieved!",
    "Cleaner than a whistle!",
    "Synced and ready to rock!",
    "You're at the helm of this ship!",
    "Git-er done? More like git-er already done!",
    "Commits so clean, they sparkle!",
    "Synced to perfection!",
    "Repo harmony restored!",
    "Nothing to do but enjoy the view!",
]

# Longest prefixes first; the first match wins.
REMOTE_ALIASES = [
    ("ssh://git@github.com/", "gh:"),
    ("https://github.com/", "gh:"),
    ("git@github.com:", "gh:"),
    ("https://code.bearcove.cloud/", "bcc:"),
]


def normalize_remote(remote: str) -> str:
    """Shorten a remote URL for display.

    ``https://github.com/org/repo.git`` and ``https://github.com/org/repo``
    both become ``gh:org/repo``. Unknown hosts only lose the ``.git`` suffix.
    """
    remote = remote.strip().removesuffix(".git")
    for prefix, alias in REMOTE_ALIASES:
        if remote.startswith(prefix):
            return f"{alias}{remote[len(prefix):]}"
    return remote


def display_path(path: Path, home: Path | None = None) -> str:
    """Show paths under the home directory as ``~/...``."""
    if home is None:
        try:
            home = Path.home()
        except RuntimeError:
            return str(path)
    try:
        return str(Path("~") / path.relative_to(home))
    except ValueError:
        return str(path)


class OutputFormatter:
    """Render grit output on a rich console."""

    def __init__(self, console: Console):
        self.console = console

    def _action_display(self, action: RepoAction | None) -> str:
        from .core import RepoAction

        match action:
            case RepoAction.NEEDS_STAGE:
                return "[bright_red]Needs staging[/]"
            case RepoAction.NEEDS_COMMIT:
                return "[bright_yellow]Needs commit[/]"
            case RepoAction.NEEDS_PUSH:
                return "[bright_blue]Needs push[/]"
            case RepoAction.NEEDS_PULL:
                return "[bright_magenta]Needs pull[/]"
            case RepoAction.UP_TO_DATE:
                return "[green]Up to date[/]"
            case _:
                return "[dim]?[/]"

    def _remote_display(self, remote: str) -> str:
        short = normalize_remote(remote)
        for _, alias in REMOTE_ALIASES:
            if short.startswith(alias):
                rest = short[len(alias) :]
                return f"[bright_blue]{escape(alias)}[/][bright_yellow]{escape(rest)}[/]"
        return escape(short)

    def print_gather_warnings(self, result: GatherResult):
        """Print skipped paths, fetch warnings and probe failures, in path order."""
        for path in result.missing:
            self.console.print(
                f"  ⚠️  [bright_cyan]{escape(display_path(path))}[/] [yellow]does not exist[/]"
            )
        for status in result.statuses:
            for warning in status.warnings:
                self.console.print(
                    f"  ⚠️  [bright_cyan]{escape(display_path(status.path))}[/] "
                    f"[yellow]{escape(warning)}[/]"
                )
        for failure in result.failures:
            self.console.print(
                f"  ❌ [red]Could not read status of[/] "
                f"[bright_cyan]{escape(display_path(failure.path))}[/]"
            )
            self.console.print(f"[red]{escape(failure.message)}[/]", highlight=False)

    def print_repo_status(self, status: RepoStatus):
        self.console.print(
            f"📁 [bright_cyan]{escape(display_path(status.path))}[/] "
            f"[bright_green]{escape(status.branch)}[/] @ {self._remote_display(status.remote)}",
            highlight=False,
        )
        self.console.print(f"  {self._action_display(status.action)}")

    def print_plan(self, plan: ExecutionPlan):
        """Print what each repository needs and the commands that will run."""
        self.console.print(f"\n[bright_cyan]{plan.mode.value.title()}[/] Plan:")

        if not plan.repos:
            self.console.print("[dim]No repositories to sync[/]")
            return

        for planned in plan.repos:
            self.print_repo_status(planned.status)
            for step in planned.steps:
                self.console.print(f"  [bright_blue]Will execute[/]: {escape(step.command)}")

    def print_repo_header(self, path: Path):
        self.console.print(f"\n📁 [bright_cyan]{escape(display_path(path))}[/]")

    def print_step_result(self, result: StepResult):
        from .core import StepOutcome

        step = result.step.value
        match result.outcome:
            case StepOutcome.SUCCEEDED:
                self.console.print(f"  ✅ [green]{escape(result.message or step + ' succeeded')}[/]")
            case StepOutcome.FAILED:
                self.console.print(f"  ❌ [red]Failed to {step}[/]")
                if result.error:
                    self.console.print(f"[red]{escape(result.error)}[/]", highlight=False)
            case StepOutcome.SKIPPED:
                self.console.print(f"  ⏭  [dim]{escape(step)}: {escape(result.message)}[/]")

    def print_execution_summary(self, results: list[StepResult]):
        """Print per-step outcomes as a table."""
        from .core import StepOutcome

        if not results:
            self.console.print("[dim]Nothing was executed[/]")
            return

        table = Table(title="Results")
        table.add_column("Repository", style="cyan")
        table.add_column("Step")
        table.add_column("Status", justify="center")
        table.add_column("Message")

        success_count = 0
        for result in results:
            match result.outcome:
                case StepOutcome.SUCCEEDED:
                    success_count += 1
                    status = "[green]✓[/]"
                    message = escape(result.message[:60]) if result.message else "OK"
                case StepOutcome.FAILED:
                    status = "[red]✗[/]"
                    message = f"[red]{escape(result.error[:60])}[/]" if result.error else "Failed"
                case _:
                    status = "[dim]-[/]"
                    message = f"[dim]{escape(result.message[:60])}[/]"

            table.add_row(escape(display_path(result.path)), result.step.value, status, message)

        self.console.print()
        self.console.print(table)
        self.console.print(f"\n[bold]Success:[/] {success_count}/{len(results)}")

    def print_cheer(self, rng: random.Random | None = None):
        """Celebrate a run where every repository was already in sync."""
        rng = rng or random.Random()
        emoji = rng.choice(MARINE_EMOJIS)
        first = rng.choice(CHEERFUL_MESSAGES)
        second = rng.choice(CHEERFUL_MESSAGES)

        self.console.print("[cyan]========================================[/]")
        self.console.print(f"{emoji} [bold green]{escape(first)}[/]")
        self.console.print(f"{emoji} [blue]{escape(second)}[/]")
        self.console.print("[cyan]========================================[/]")
