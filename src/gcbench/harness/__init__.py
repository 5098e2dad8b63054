# Copyright (c) Syntropy Systems
"""Measurement harness run in its own interpreter by the orchestrator."""

from gcbench.harness.flags import RuntimeFlags
from gcbench.harness.measure import BenchmarkStats, run_suite, select_benchmarks
from gcbench.harness.options import DEFAULT_INCLUDE, HarnessOptions, VerboseMode

__all__ = [
    "DEFAULT_INCLUDE",
    "BenchmarkStats",
    "HarnessOptions",
    "RuntimeFlags",
    "VerboseMode",
    "run_suite",
    "select_benchmarks",
]
