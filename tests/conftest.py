"""Pytest fixtures for grit tests."""

import io
import logging
import shutil
import subprocess
from pathlib import Path

import pytest
from rich.console import Console

from grit.formatters import OutputFormatter

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def git(cwd: Path, *args: str) -> str:
    """Run git in a test repository and return stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def commit_file(repo: Path, name: str, content: str, message: str) -> None:
    (repo / name).write_text(content)
    git(repo, "add", name)
    git(repo, "commit", "-m", message)


@pytest.fixture(autouse=True)
def git_identity(monkeypatch, tmp_path):
    """Isolate git from the user's configuration."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.delenv("GRIT_CONFIG", raising=False)
    monkeypatch.delenv("GRIT_LOG_LEVEL", raising=False)
    monkeypatch.delenv("GRIT_LOG_FILE", raising=False)
    monkeypatch.delenv("VISUAL", raising=False)
    monkeypatch.delenv("EDITOR", raising=False)


@pytest.fixture
def remote_and_clone(tmp_path):
    """Create a bare remote with one commit and a clone tracking it.

    Returns (remote, clone).
    """
    remote = tmp_path / "remote.git"
    seed = tmp_path / "seed"
    clone = tmp_path / "clone"

    git(tmp_path, "init", "--bare", str(remote))
    git(tmp_path, "init", str(seed))
    commit_file(seed, "README.md", "hello\n", "Initial commit")
    git(seed, "remote", "add", "origin", str(remote))
    git(seed, "push", "-u", "origin", "HEAD")
    git(tmp_path, "clone", str(remote), str(clone))
    return remote, clone


@pytest.fixture
def make_clone(tmp_path, remote_and_clone):
    """Factory for extra clones of the shared remote."""
    remote, _ = remote_and_clone
    counter = {"n": 0}

    def _make() -> Path:
        counter["n"] += 1
        path = tmp_path / f"other-{counter['n']}"
        git(tmp_path, "clone", str(remote), str(path))
        return path

    return _make


@pytest.fixture
def console():
    """A console that records output instead of writing to a terminal."""
    return Console(file=io.StringIO(), record=True, width=120, color_system=None)


@pytest.fixture
def formatter(console):
    return OutputFormatter(console)


@pytest.fixture(autouse=True)
def reset_grit_logger():
    """Drop handlers installed by setup_logging during a test."""
    yield
    logger = logging.getLogger("grit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
