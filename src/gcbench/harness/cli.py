# Copyright (c) Syntropy Systems
"""Command line of the measurement harness (``python -m gcbench.harness``)."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from gcbench.errors import HarnessError
from gcbench.harness.flags import RuntimeFlags
from gcbench.harness.measure import run_suite, run_worker
from gcbench.harness.options import DEFAULT_INCLUDE, HarnessOptions, VerboseMode

err_console = Console(stderr=True)

app = typer.Typer(
    name="gcbench-harness",
    help="Measure workload benchmarks under the current runtime flags.",
    no_args_is_help=True,
    add_completion=False,
)


@app.command()
def run(
    include: str = typer.Option(DEFAULT_INCLUDE, "--include", "-i", help="Benchmark id regex"),
    warmup: int = typer.Option(1, "--warmup", help="Warmup iterations"),
    measurement: int = typer.Option(2, "--measurement", help="Measurement iterations"),
    forks: int = typer.Option(1, "--forks", "-f", help="Forked workers per benchmark (0 = in-process)"),
    threads: int = typer.Option(1, "--threads", "-t", help="Threads per iteration"),
    iteration_time: float = typer.Option(1.0, "--iteration-time", help="Seconds per iteration"),
    fail_on_error: bool = typer.Option(True, "--fail-on-error/--no-fail-on-error"),
    verbosity: VerboseMode = typer.Option(VerboseMode.NORMAL, "--verbosity", "-v"),
    time_unit: str = typer.Option("ms", "--time-unit"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Append results to this file"),
    runtime_arg: Optional[list[str]] = typer.Option(
        None,
        "--runtime-arg",
        help="Interpreter flag appended to each worker (repeatable)",
    ),
) -> None:
    """Run every benchmark matching --include and print the result table."""
    try:
        options = HarnessOptions(
            include=include,
            warmup_iterations=warmup,
            measurement_iterations=measurement,
            forks=forks,
            threads=threads,
            iteration_time=iteration_time,
            fail_on_error=fail_on_error,
            verbosity=verbosity,
            output=output,
            runtime_args=tuple(runtime_arg or ()),
            time_unit=time_unit,
        )
    except ValidationError as e:
        err_console.print(f"[red]Invalid harness options:[/red] {e}")
        raise typer.Exit(2)

    try:
        if options.output is not None:
            options.output.parent.mkdir(parents=True, exist_ok=True)
            with options.output.open("a", encoding="utf-8") as out:
                _, succeeded = run_suite(options, out)
        else:
            _, succeeded = run_suite(options, sys.stdout)
    except HarnessError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except OSError as e:
        err_console.print(f"[red]Cannot write results:[/red] {e}")
        raise typer.Exit(1)

    if not succeeded and options.fail_on_error:
        raise typer.Exit(1)


@app.command()
def worker(
    benchmark_id: str = typer.Argument(..., help="Benchmark id, e.g. ObjectAllocationBenchmark.small_object_allocation"),
    warmup: int = typer.Option(1, "--warmup"),
    measurement: int = typer.Option(2, "--measurement"),
    threads: int = typer.Option(1, "--threads"),
    iteration_time: float = typer.Option(1.0, "--iteration-time"),
    verbosity: VerboseMode = typer.Option(VerboseMode.NORMAL, "--verbosity"),
    time_unit: str = typer.Option("ms", "--time-unit"),
) -> None:
    """Run a single benchmark in this interpreter (used by forked workers)."""
    try:
        flags = RuntimeFlags.current()
    except ValueError as e:
        err_console.print(f"[red]Invalid runtime flags:[/red] {e}")
        raise typer.Exit(2)

    try:
        run_worker(
            benchmark_id,
            warmup=warmup,
            measurement=measurement,
            iteration_time=iteration_time,
            threads=threads,
            verbosity=verbosity,
            time_unit=time_unit,
            flags=flags,
        )
    except HarnessError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
