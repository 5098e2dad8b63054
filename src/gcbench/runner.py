# Copyright (c) Syntropy Systems
"""Launch the harness in its own process group with an optional deadline."""
from __future__ import annotations

import contextlib
import ctypes
import os
import signal
import subprocess
import sys
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

PR_SET_PDEATHSIG = 1
KILL_WAIT = 5.0


def _die_with_parent() -> None:
    # Runs in the child between fork and exec; Linux only
    with contextlib.suppress(AttributeError, OSError):
        ctypes.CDLL("libc.so.6", use_errno=True).prctl(PR_SET_PDEATHSIG, signal.SIGKILL)


class ProcessRunner:
    """One harness process whose stdout and stderr are appended to a log.

    The child leads a new session, so a timeout can signal the harness
    together with its forked workers. On Linux the child is also killed
    when the suite process dies.
    """

    command_argv: list[str]
    output_path: Path
    timed_out: bool
    exit_code: int | None
    _process: subprocess.Popen[bytes] | None
    _log: IO[str] | None

    def __init__(self, command_argv: list[str], output_path: Path) -> None:
        self.command_argv = command_argv
        self.output_path = output_path
        self.timed_out = False
        self.exit_code = None
        self._process = None
        self._log = None

    def start(self) -> None:
        """Launch the command. Raises OSError if it cannot be started."""
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        # Append: the harness writes its own results to the same file
        self._log = self.output_path.open("a", encoding="utf-8")
        try:
            self._process = subprocess.Popen(  # noqa: S603
                self.command_argv,
                stdout=self._log,
                stderr=subprocess.STDOUT,
                start_new_session=True,
                preexec_fn=_die_with_parent if sys.platform == "linux" else None,  # noqa: PLW1509
            )
        except OSError:
            self._close_log()
            raise

    def wait(self, timeout: float | None = None, grace_period: float = 10.0) -> int:
        """Block until the process exits and return its exit code.

        When ``timeout`` expires first the process group is killed (see
        ``kill``) and ``timed_out`` is set.
        """
        if self._process is None:
            return self.exit_code or 0
        try:
            code = self._process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            self.timed_out = True
            return self.kill(grace_period)
        return self._finish(code)

    def kill(self, grace_period: float = 10.0) -> int:
        """SIGTERM the process group, then SIGKILL it after ``grace_period``.

        Returns the exit code, negative when the process died from a signal.
        """
        if self._process is None:
            return self.exit_code or 0
        code = self._process.poll()
        if code is not None:
            return self._finish(code)

        try:
            pgid = os.getpgid(self._process.pid)
        except ProcessLookupError:
            return self._finish(self._process.wait())

        self._signal_group(pgid, signal.SIGTERM)
        with contextlib.suppress(subprocess.TimeoutExpired):
            return self._finish(self._process.wait(timeout=grace_period))

        self._signal_group(pgid, signal.SIGKILL)
        with contextlib.suppress(subprocess.TimeoutExpired):
            _ = self._process.wait(timeout=KILL_WAIT)
        code = self._process.returncode
        return self._finish(code if code is not None else -signal.SIGKILL)

    @staticmethod
    def _signal_group(pgid: int, sig: signal.Signals) -> None:
        with contextlib.suppress(ProcessLookupError, PermissionError):
            os.killpg(pgid, sig)

    def _finish(self, code: int) -> int:
        self.exit_code = code
        self._close_log()
        return code

    def _close_log(self) -> None:
        if self._log is not None:
            with contextlib.suppress(OSError):
                self._log.close()
            self._log = None
