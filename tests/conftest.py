# Copyright (c) Syntropy Systems
"""Pytest fixtures for gcbench tests."""

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from gcbench.config import BenchConfig

# Store original cwd at module load time
_original_cwd = Path.cwd()

SAMPLE_HARNESS_OUTPUT = """\
# gcbench harness, Python 3.12.3
# Runtime args: -X gcbench.gc=generational -X gcbench.heap_max=512m
# Warmup: 1 iterations, 1.0 s each
# Measurement: 2 iterations, 1.0 s each
# Threads: 1 thread(s)
# Benchmark mode: Average time, time/op

# Benchmark: ObjectAllocationBenchmark.small_object_allocation
# Run progress: 1 of 2
# Fork: 1 of 1
# Warmup Iteration   1: 11.204 ms/op
Small objects - Memory delta: 2.00 MB
Iteration   1: 10.100 ms/op
Small objects - Memory delta: 1.50 MB
Iteration   2: 9.900 ms/op

# Benchmark: ObjectAllocationBenchmark.medium_object_allocation
# Run progress: 2 of 2
# Fork: 1 of 1
Medium objects - Memory delta: -12.25 KB
Iteration   1: 20.500 ms/op
Iteration   2: 19.500 ms/op


# Run complete. Total time: 00:00:06

Benchmark                                                Mode  Cnt   Score   Error  Units
ObjectAllocationBenchmark.small_object_allocation        avgt    2  10.000 ± 6.580  ms/op
ObjectAllocationBenchmark.medium_object_allocation       avgt    2  20.000 ± 9.870  ms/op
"""


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def bench_project(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a project directory with an empty .gcbench config dir and chdir into it."""
    (temp_dir / ".gcbench").mkdir()

    # Change to temp directory
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def sample_output() -> str:
    """Raw harness output for one configuration."""
    return SAMPLE_HARNESS_OUTPUT


@pytest.fixture
def sample_output_file(temp_dir: Path, sample_output: str) -> Path:
    path = temp_dir / "jmh_results_generational-gc_20250101_120000.txt"
    path.write_text(sample_output, encoding="utf-8")
    return path


@pytest.fixture
def fast_config(temp_dir: Path) -> BenchConfig:
    """Config with output under temp_dir and the shortest harness settings."""
    return BenchConfig(
        log_dir=temp_dir / "log",
        result_dir=temp_dir / "result",
        warmup_iterations=0,
        measurement_iterations=1,
        forks=0,
        iteration_time=0.01,
        kill_grace_period=1.0,
    )
