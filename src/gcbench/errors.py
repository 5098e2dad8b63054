# Copyright (c) Syntropy Systems
"""Exception types raised by gcbench."""


class GCBenchError(Exception):
    """Base error for gcbench."""


class SetupError(GCBenchError):
    """Raised when the suite cannot prepare its output directories or config."""


class HarnessError(GCBenchError):
    """Raised when the measurement harness cannot run a benchmark."""
