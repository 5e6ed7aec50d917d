"""Tests for PlanExecutor with git operations mocked out."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from grit.core import (
    ActionStep,
    CommandOutput,
    ExecutionPlan,
    GitCommandError,
    PlanExecutor,
    RepoAction,
    RepoStatus,
    StepOutcome,
    SyncMode,
)

OK = CommandOutput(stdout="", stderr="", returncode=0)


def failed(stderr: str) -> CommandOutput:
    return CommandOutput(stdout="", stderr=stderr, returncode=1)


def make_plan(mode: SyncMode, actions: dict[str, RepoAction]) -> ExecutionPlan:
    statuses = [RepoStatus(path=Path(p), action=a) for p, a in actions.items()]
    return ExecutionPlan.build(statuses, mode)


@pytest.fixture
def repo_ops():
    """One MagicMock of GitOperations per repository path."""
    mocks: dict[Path, MagicMock] = {}

    def factory(path, console):
        if path not in mocks:
            ops = MagicMock()
            ops.stage_all.return_value = OK
            ops.staged_summary.return_value = " file.txt | 1 +\n"
            ops.commit.return_value = OK
            ops.commit_with_editor.return_value = 0
            ops.push.return_value = OK
            ops.pull.return_value = CommandOutput("Updating abc..def\n", "", 0)
            mocks[path] = ops
        return mocks[path]

    factory.mocks = mocks
    return factory


@pytest.fixture
def make_executor(console, formatter, repo_ops):
    def _make(prompt=None):
        return PlanExecutor(
            console,
            formatter,
            prompt=prompt or (lambda text: "Sync work"),
            ops_factory=repo_ops,
        )

    return _make


class TestFailureIsolation:
    """One repository failing does not stop the others."""

    def test_stage_failure_in_middle_repository(self, make_executor, repo_ops):
        a, b, c = Path("/work/a"), Path("/work/b"), Path("/work/c")
        # Pre-create the b mock so its stage step fails.
        repo_ops(b, None).stage_all.return_value = failed("fatal: unable to index file")
        plan = make_plan(
            SyncMode.PUSH,
            {
                "/work/a": RepoAction.NEEDS_PUSH,
                "/work/b": RepoAction.NEEDS_STAGE,
                "/work/c": RepoAction.NEEDS_PUSH,
            },
        )

        results = make_executor().execute(plan)

        assert [(r.path, r.step, r.outcome) for r in results] == [
            (a, ActionStep.PUSH, StepOutcome.SUCCEEDED),
            (b, ActionStep.STAGE, StepOutcome.FAILED),
            (b, ActionStep.COMMIT, StepOutcome.SKIPPED),
            (b, ActionStep.PUSH, StepOutcome.SKIPPED),
            (c, ActionStep.PUSH, StepOutcome.SUCCEEDED),
        ]
        assert results[1].error == "fatal: unable to index file"
        repo_ops.mocks[a].push.assert_called_once()
        repo_ops.mocks[c].push.assert_called_once()
        repo_ops.mocks[b].commit.assert_not_called()
        repo_ops.mocks[b].push.assert_not_called()

    def test_spawn_error_is_captured(self, make_executor, repo_ops):
        repo_ops(Path("/work/a"), None).pull.side_effect = GitCommandError(
            Path("/work/a"), ["git", "pull"], None, "No such file or directory: 'git'"
        )
        plan = make_plan(
            SyncMode.PULL,
            {"/work/a": RepoAction.NEEDS_PULL, "/work/b": RepoAction.NEEDS_PULL},
        )

        results = make_executor().execute(plan)

        assert [r.outcome for r in results] == [StepOutcome.FAILED, StepOutcome.SUCCEEDED]
        assert "No such file" in results[0].error

    def test_failure_is_printed(self, make_executor, repo_ops, console):
        repo_ops(Path("/work/a"), None).push.return_value = failed("rejected: non-fast-forward")
        plan = make_plan(SyncMode.PUSH, {"/work/a": RepoAction.NEEDS_PUSH})

        make_executor().execute(plan)

        text = console.export_text()
        assert "Failed to push" in text
        assert "rejected: non-fast-forward" in text


class TestSteps:
    """Per-step behaviour."""

    def test_full_push_sequence_in_order(self, make_executor, repo_ops):
        plan = make_plan(SyncMode.PUSH, {"/work/a": RepoAction.NEEDS_STAGE})
        make_executor().execute(plan)

        ops = repo_ops.mocks[Path("/work/a")]
        names = [c[0] for c in ops.method_calls if c[0] in {"stage_all", "commit", "push"}]
        assert names == ["stage_all", "commit", "push"]
        ops.commit.assert_called_once_with("Sync work")

    def test_empty_commit_message_opens_editor(self, make_executor, repo_ops):
        plan = make_plan(SyncMode.PUSH, {"/work/a": RepoAction.NEEDS_COMMIT})
        results = make_executor(prompt=lambda text: "   ").execute(plan)

        ops = repo_ops.mocks[Path("/work/a")]
        ops.commit.assert_not_called()
        ops.commit_with_editor.assert_called_once()
        assert [r.outcome for r in results] == [StepOutcome.SUCCEEDED, StepOutcome.SUCCEEDED]

    def test_aborted_editor_commit_fails(self, make_executor, repo_ops):
        repo_ops(Path("/work/a"), None).commit_with_editor.return_value = 1
        plan = make_plan(SyncMode.PUSH, {"/work/a": RepoAction.NEEDS_COMMIT})
        results = make_executor(prompt=lambda text: "").execute(plan)

        assert results[0].outcome == StepOutcome.FAILED
        assert results[1].outcome == StepOutcome.SKIPPED

    def test_closed_stdin_fails_commit(self, make_executor, repo_ops):
        def prompt(text):
            raise EOFError

        plan = make_plan(SyncMode.PUSH, {"/work/a": RepoAction.NEEDS_COMMIT})
        results = make_executor(prompt=prompt).execute(plan)
        assert results[0].outcome == StepOutcome.FAILED
        assert results[0].error == "No commit message provided"

    def test_nothing_to_push_is_success(self, make_executor, repo_ops):
        repo_ops(Path("/work/a"), None).push.return_value = CommandOutput(
            "", "Everything up-to-date\n", 0
        )
        plan = make_plan(SyncMode.PUSH, {"/work/a": RepoAction.NEEDS_PUSH})
        results = make_executor().execute(plan)
        assert results[0].outcome == StepOutcome.SUCCEEDED
        assert results[0].message == "Nothing to push"

    def test_push_with_progress_on_stderr_is_success(self, make_executor, repo_ops):
        repo_ops(Path("/work/a"), None).push.return_value = CommandOutput(
            "", "To github.com:org/repo.git\n   abc..def  main -> main\n", 0
        )
        plan = make_plan(SyncMode.PUSH, {"/work/a": RepoAction.NEEDS_PUSH})
        results = make_executor().execute(plan)
        assert results[0].message == "Changes pushed"

    def test_pull_already_up_to_date(self, make_executor, repo_ops):
        repo_ops(Path("/work/a"), None).pull.return_value = CommandOutput(
            "Already up to date.\n", "", 0
        )
        plan = make_plan(SyncMode.PULL, {"/work/a": RepoAction.NEEDS_PULL})
        results = make_executor().execute(plan)
        assert results[0].message == "Already up to date"

    def test_pull_with_changes(self, make_executor):
        plan = make_plan(SyncMode.PULL, {"/work/a": RepoAction.NEEDS_PULL})
        results = make_executor().execute(plan)
        assert results[0].outcome == StepOutcome.SUCCEEDED
        assert results[0].message == "Changes pulled"

    def test_up_to_date_repositories_are_not_touched(self, make_executor, repo_ops):
        plan = make_plan(
            SyncMode.PULL,
            {"/work/a": RepoAction.UP_TO_DATE, "/work/b": RepoAction.NEEDS_PULL},
        )
        results = make_executor().execute(plan)
        assert [r.path for r in results] == [Path("/work/b")]
        assert Path("/work/a") not in repo_ops.mocks
