# Copyright (c) Syntropy Systems
"""Warmup/measurement loop, forked workers and the result table."""
from __future__ import annotations

import gc
import json
import os
import re
import subprocess
import sys
import time
import traceback
from concurrent.futures import ThreadPoolExecutor
from contextlib import redirect_stdout
from dataclasses import dataclass, field
from statistics import NormalDist, fmean, stdev
from typing import IO, TYPE_CHECKING, Callable

from gcbench.errors import HarnessError
from gcbench.harness.flags import (
    HeapReserve,
    RuntimeFlags,
    apply_collector_flags,
    apply_heap_flags,
    freeze_if_requested,
)
from gcbench.harness.gclog import GCEventLog
from gcbench.harness.options import HarnessOptions, VerboseMode
from gcbench.workloads import WORKLOADS, Blackhole

if TYPE_CHECKING:
    from gcbench.workloads.base import BenchmarkBase

SCORES_MARKER = "# gcbench-scores: "
CONFIDENCE = 0.999
OUTPUT_TAIL_LINES = 20

_UNIT_FACTOR = {"s": 1.0, "ms": 1e3, "us": 1e6, "ns": 1e9}


@dataclass
class BenchmarkStats:
    """Measurement samples of one benchmark across all forks."""

    benchmark: str
    unit: str
    scores: list[float] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.scores)

    @property
    def score(self) -> float:
        return fmean(self.scores) if self.scores else 0.0

    @property
    def error(self) -> float:
        """Half-width of the 99.9% confidence interval (normal approximation)."""
        if len(self.scores) < 2:
            return 0.0
        z = NormalDist().inv_cdf(0.5 + CONFIDENCE / 2)
        return z * stdev(self.scores) / len(self.scores) ** 0.5


def select_benchmarks(include: str) -> list[str]:
    """Benchmark ids (``Class.method``) whose id matches ``include``."""
    pattern = re.compile(include)
    selected: list[str] = []
    for workload in WORKLOADS:
        selected.extend(bid for bid in workload.benchmark_ids() if pattern.search(bid))
    return selected


def resolve_benchmark(benchmark_id: str) -> tuple[type[BenchmarkBase], str]:
    class_name, _, method = benchmark_id.partition(".")
    for workload in WORKLOADS:
        if workload.__name__ == class_name and method in workload.benchmark_methods():
            return workload, method
    msg = f"Unknown benchmark: {benchmark_id}"
    raise HarnessError(msg)


def format_score(value: float) -> str:
    return f"{value:.3f}" if value >= 1 else f"{value:.6f}"


def _time_per_op(op: Callable[[Blackhole], None], iteration_time: float) -> float:
    """Invoke ``op`` until ``iteration_time`` elapses; seconds per invocation."""
    bh = Blackhole()
    ops = 0
    start = time.perf_counter()
    deadline = start + iteration_time
    while True:
        op(bh)
        ops += 1
        now = time.perf_counter()
        if now >= deadline:
            break
    return (now - start) / ops


def collect_between_iterations() -> None:
    """Run two full collections before an iteration; no-op with the collector off."""
    if gc.isenabled():
        gc.collect()
        gc.collect()


def measure_iteration(
    op: Callable[[Blackhole], None],
    iteration_time: float,
    threads: int = 1,
) -> float:
    """Average seconds per op for one iteration, averaged across threads."""
    if threads <= 1:
        return _time_per_op(op, iteration_time)
    with ThreadPoolExecutor(max_workers=threads) as pool:
        futures = [pool.submit(_time_per_op, op, iteration_time) for _ in range(threads)]
        return fmean(f.result() for f in futures)


def run_iterations(
    benchmark_id: str,
    *,
    warmup: int,
    measurement: int,
    iteration_time: float,
    threads: int,
    verbosity: VerboseMode,
    time_unit: str,
    flags: RuntimeFlags | None = None,
) -> list[float]:
    """Set up the workload, run warmup and measurement iterations.

    Prints progress and workload memory-delta lines on stdout and returns the
    measurement scores converted to ``time_unit`` per op.
    """
    workload_cls, method_name = resolve_benchmark(benchmark_id)
    workload = workload_cls()
    workload.setup()
    if flags is not None:
        freeze_if_requested(flags)
    op = getattr(workload, method_name)
    factor = _UNIT_FACTOR[time_unit]
    verbose = verbosity != VerboseMode.SILENT

    scores: list[float] = []
    try:
        for i in range(1, warmup + 1):
            collect_between_iterations()
            value = measure_iteration(op, iteration_time, threads) * factor
            if verbose:
                print(f"# Warmup Iteration {i:3d}: {format_score(value)} {time_unit}/op")
        for i in range(1, measurement + 1):
            collect_between_iterations()
            value = measure_iteration(op, iteration_time, threads) * factor
            scores.append(value)
            if verbose:
                print(f"Iteration {i:3d}: {format_score(value)} {time_unit}/op")
    finally:
        workload.teardown()
        gc.unfreeze()
    return scores


def run_worker(
    benchmark_id: str,
    *,
    warmup: int,
    measurement: int,
    iteration_time: float,
    threads: int,
    verbosity: VerboseMode,
    time_unit: str,
    flags: RuntimeFlags,
) -> list[float]:
    """Entry point inside a forked interpreter; flags come from ``-X`` options.

    Flags are applied before the GC log starts so its header reports them.
    """
    reserve = HeapReserve()
    apply_heap_flags(flags, reserve)
    apply_collector_flags(flags)
    gc_log = GCEventLog(flags.gc_log) if flags.gc_log is not None else None
    if gc_log is not None:
        gc_log.start(flags)
        gc_log.mark(f"Benchmark {benchmark_id}")
    try:
        scores = run_iterations(
            benchmark_id,
            warmup=warmup,
            measurement=measurement,
            iteration_time=iteration_time,
            threads=threads,
            verbosity=verbosity,
            time_unit=time_unit,
            flags=flags,
        )
    finally:
        reserve.release()
        if gc_log is not None:
            gc_log.stop()
    print(SCORES_MARKER + json.dumps(scores), flush=True)
    return scores


def worker_command(
    benchmark_id: str,
    options: HarnessOptions,
    python: str | None = None,
) -> list[str]:
    return [
        python or sys.executable,
        *options.runtime_args,
        "-m",
        "gcbench.harness",
        "worker",
        benchmark_id,
        f"--warmup={options.warmup_iterations}",
        f"--measurement={options.measurement_iterations}",
        f"--iteration-time={options.iteration_time}",
        f"--threads={options.threads}",
        f"--verbosity={options.verbosity.value}",
        f"--time-unit={options.time_unit}",
    ]


def run_fork(benchmark_id: str, options: HarnessOptions, out: IO[str]) -> list[float]:
    """Run one benchmark in a fresh interpreter, relaying its output."""
    argv = worker_command(benchmark_id, options)
    scores: list[float] | None = None
    tail: list[str] = []

    try:
        process = subprocess.Popen(  # noqa: S603
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            env={**os.environ, "PYTHONIOENCODING": "utf-8"},
        )
    except OSError as e:
        msg = f"Cannot start worker for {benchmark_id}: {e}"
        raise HarnessError(msg) from e

    assert process.stdout is not None
    with process.stdout:
        for line in process.stdout:
            if line.startswith(SCORES_MARKER):
                scores = [float(v) for v in json.loads(line[len(SCORES_MARKER):])]
                continue
            _ = out.write(line)
            tail.append(line.rstrip("\n"))
            del tail[:-OUTPUT_TAIL_LINES]
    exit_code = process.wait()

    if exit_code != 0 or scores is None:
        detail = "\n".join(t for t in tail if t.strip())
        msg = f"Worker for {benchmark_id} exited with code {exit_code}"
        if detail:
            msg = f"{msg}:\n{detail}"
        raise HarnessError(msg)
    return scores


def run_in_process(benchmark_id: str, options: HarnessOptions, out: IO[str]) -> list[float]:
    """Run one benchmark inside the controller (``forks == 0``).

    Collector flags are applied for the duration of the run and restored
    afterwards; heap bounds only take effect in forked workers.
    """
    flags = RuntimeFlags.from_args(options.runtime_args)
    was_enabled = gc.isenabled()
    threshold = gc.get_threshold()
    apply_collector_flags(flags)
    gc_log = GCEventLog(flags.gc_log) if flags.gc_log is not None else None
    if gc_log is not None:
        gc_log.start(flags)
        gc_log.mark(f"Benchmark {benchmark_id}")
    try:
        with redirect_stdout(out):
            return run_iterations(
                benchmark_id,
                warmup=options.warmup_iterations,
                measurement=options.measurement_iterations,
                iteration_time=options.iteration_time,
                threads=options.threads,
                verbosity=options.verbosity,
                time_unit=options.time_unit,
                flags=flags,
            )
    finally:
        gc.set_threshold(*threshold)
        if was_enabled:
            gc.enable()
        else:
            gc.disable()
        if gc_log is not None:
            gc_log.stop()


def format_results_table(results: list[BenchmarkStats]) -> list[str]:
    """Summary table with one ``avgt`` row per benchmark that has samples."""
    rows = [r for r in results if r.scores]
    if not rows:
        return []
    name_width = max(len("Benchmark"), *(len(r.benchmark) for r in rows))
    scores = [format_score(r.score) for r in rows]
    errors = [format_score(r.error) for r in rows]
    score_width = max(len("Score"), *(len(s) for s in scores))
    error_width = max(len("Error"), *(len(e) for e in errors))

    lines = [
        f"{'Benchmark':<{name_width}}  Mode  Cnt  {'Score':>{score_width}}"
        f"   {'Error':>{error_width}}  Units"
    ]
    for result, score, error in zip(rows, scores, errors):
        lines.append(
            f"{result.benchmark:<{name_width}}  avgt  {result.count:>3}  "
            f"{score:>{score_width}} ± {error:>{error_width}}  {result.unit}/op"
        )
    return lines


def _format_elapsed(seconds: float) -> str:
    hours, rem = divmod(int(seconds), 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def run_suite(options: HarnessOptions, out: IO[str]) -> tuple[list[BenchmarkStats], bool]:
    """Run every selected benchmark; returns (results, all_succeeded)."""
    benchmark_ids = select_benchmarks(options.include)
    if not benchmark_ids:
        msg = f"No benchmarks match include pattern {options.include!r}"
        raise HarnessError(msg)

    verbose = options.verbosity != VerboseMode.SILENT
    started = time.perf_counter()
    results: list[BenchmarkStats] = []
    succeeded = True

    if verbose:
        _ = out.write(f"# gcbench harness, Python {sys.version.split()[0]}\n")
        _ = out.write(f"# Runtime args: {' '.join(options.runtime_args) or '<none>'}\n")
        _ = out.write(
            f"# Warmup: {options.warmup_iterations} iterations, "
            f"{options.iteration_time} s each\n"
        )
        _ = out.write(
            f"# Measurement: {options.measurement_iterations} iterations, "
            f"{options.iteration_time} s each\n"
        )
        _ = out.write(f"# Threads: {options.threads} thread(s)\n")
        _ = out.write("# Benchmark mode: Average time, time/op\n\n")

    for index, benchmark_id in enumerate(benchmark_ids, start=1):
        stats = BenchmarkStats(benchmark=benchmark_id, unit=options.time_unit)
        if verbose:
            _ = out.write(f"# Benchmark: {benchmark_id}\n")
            _ = out.write(f"# Run progress: {index} of {len(benchmark_ids)}\n")
        try:
            if options.forks == 0:
                stats.scores.extend(run_in_process(benchmark_id, options, out))
            else:
                for fork in range(1, options.forks + 1):
                    if verbose:
                        _ = out.write(f"# Fork: {fork} of {options.forks}\n")
                    out.flush()
                    stats.scores.extend(run_fork(benchmark_id, options, out))
        except HarnessError as e:
            succeeded = False
            _ = out.write(f"<failure>\n{e}\n\n")
        except Exception:  # noqa: BLE001
            succeeded = False
            _ = out.write(f"<failure>\n{traceback.format_exc()}\n")
        results.append(stats)
        if verbose:
            _ = out.write("\n")
        out.flush()
        if not succeeded and options.fail_on_error:
            break

    _ = out.write(f"\n# Run complete. Total time: {_format_elapsed(time.perf_counter() - started)}\n\n")
    for line in format_results_table(results):
        _ = out.write(line + "\n")
    out.flush()
    return results, succeeded
