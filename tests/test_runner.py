"""Tests for the command runner."""

import sys

import pytest

from grit.core import GitCommandError, run_command


class TestRunCommand:
    """Tests for run_command."""

    def test_captures_both_streams(self, tmp_path):
        script = "import sys; print('out'); print('err', file=sys.stderr)"
        output = run_command(tmp_path, [sys.executable, "-c", script])
        assert output.stdout == "out\n"
        assert output.stderr == "err\n"
        assert output.returncode == 0
        assert output.success

    def test_large_output_on_both_streams_does_not_deadlock(self, tmp_path):
        # Well beyond a pipe buffer on each stream, interleaved.
        script = (
            "import sys\n"
            "for i in range(20000):\n"
            "    sys.stdout.write('o' * 50 + '\\n')\n"
            "    sys.stderr.write('e' * 50 + '\\n')\n"
        )
        output = run_command(tmp_path, [sys.executable, "-c", script])
        assert len(output.stdout.splitlines()) == 20000
        assert len(output.stderr.splitlines()) == 20000

    def test_nonzero_exit_raises_when_checked(self, tmp_path):
        script = "import sys; sys.stderr.write('bad things\\n'); sys.exit(3)"
        with pytest.raises(GitCommandError) as exc_info:
            run_command(tmp_path, [sys.executable, "-c", script])
        assert exc_info.value.returncode == 3
        assert "bad things" in exc_info.value.stderr
        assert "bad things" in str(exc_info.value)

    def test_nonzero_exit_is_data_when_unchecked(self, tmp_path):
        output = run_command(tmp_path, [sys.executable, "-c", "raise SystemExit(1)"], check=False)
        assert output.returncode == 1
        assert not output.success

    def test_runs_in_working_directory(self, tmp_path):
        output = run_command(tmp_path, [sys.executable, "-c", "import os; print(os.getcwd())"])
        assert output.stdout.strip() == str(tmp_path.resolve())

    def test_missing_executable(self, tmp_path):
        with pytest.raises(GitCommandError) as exc_info:
            run_command(tmp_path, ["definitely-not-a-real-command-grit"])
        assert exc_info.value.returncode is None

    def test_echo_prints_command_and_lines(self, tmp_path, console):
        script = "import sys; print('hello'); print('warning', file=sys.stderr)"
        output = run_command(tmp_path, [sys.executable, "-c", script], echo=console)
        text = console.export_text()
        assert "Running:" in text
        assert "hello" in text
        assert "warning" in text
        assert output.stdout == "hello\n"

    def test_quiet_run_prints_nothing(self, tmp_path, console):
        run_command(tmp_path, [sys.executable, "-c", "print('hidden')"])
        assert console.export_text() == ""
