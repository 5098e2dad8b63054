"""Tests for ProcessRunner."""

import sys

import pytest

from gcbench.runner import ProcessRunner


class TestProcessRunner:
    """Tests for subprocess execution with output capture."""

    def test_captures_output(self, temp_dir):
        """Test that stdout lands in the output log and the exit code is kept."""
        output = temp_dir / "logs" / "out.txt"
        runner = ProcessRunner([sys.executable, "-c", "print('hello')"], output_path=output)

        runner.start()
        code = runner.wait()

        assert code == 0
        assert runner.exit_code == 0
        assert not runner.timed_out
        assert output.read_text().strip() == "hello"

    def test_appends_to_existing_output(self, temp_dir):
        """Test that earlier content written by the child is kept."""
        output = temp_dir / "out.txt"
        output.write_text("first\n")
        runner = ProcessRunner([sys.executable, "-c", "print('second')"], output_path=output)

        runner.start()
        runner.wait()

        assert output.read_text().splitlines() == ["first", "second"]

    def test_stderr_goes_to_same_log(self, temp_dir):
        """Test that stderr is merged into the output log."""
        output = temp_dir / "out.txt"
        runner = ProcessRunner(
            [sys.executable, "-c", "import sys; sys.stderr.write('oops\\n')"],
            output_path=output,
        )

        runner.start()
        runner.wait()

        assert "oops" in output.read_text()

    def test_nonzero_exit(self, temp_dir):
        """Test that a failing command reports its exit code."""
        runner = ProcessRunner(
            [sys.executable, "-c", "import sys; sys.exit(4)"],
            output_path=temp_dir / "out.txt",
        )

        runner.start()

        assert runner.wait() == 4

    def test_timeout_kills_process(self, temp_dir):
        """Test that a run past its timeout is killed and flagged."""
        runner = ProcessRunner(
            [sys.executable, "-c", "import time; time.sleep(60)"],
            output_path=temp_dir / "out.txt",
        )

        runner.start()
        code = runner.wait(timeout=0.5, grace_period=1.0)

        assert runner.timed_out
        assert code != 0
        assert runner.exit_code == code

    def test_kill_after_exit_returns_exit_code(self, temp_dir):
        """Test that killing a finished process just reports how it ended."""
        runner = ProcessRunner(
            [sys.executable, "-c", "import sys; sys.exit(3)"],
            output_path=temp_dir / "out.txt",
        )

        runner.start()
        runner.wait()

        assert runner.kill(grace_period=0.1) == 3
        assert not runner.timed_out

    def test_missing_executable_raises(self, temp_dir):
        """Test that a launch failure surfaces as OSError."""
        runner = ProcessRunner([str(temp_dir / "nope")], output_path=temp_dir / "out.txt")

        with pytest.raises(OSError):
            runner.start()
