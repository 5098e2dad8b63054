# Copyright (c) Syntropy Systems
"""Main CLI entry point for gcbench."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from gcbench.collector import ResultsAggregate
from gcbench.config import BenchConfig, ensure_output_dirs, load_config
from gcbench.errors import SetupError
from gcbench.harness.options import DEFAULT_INCLUDE
from gcbench.orchestrator import BenchmarkOrchestrator, make_timestamp
from gcbench.registry import GCRegistry
from gcbench.reports import ReportGenerator, print_summary
from gcbench.workloads import WORKLOADS, find_workload, workload_names

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="gcbench",
    help="Compare garbage-collector configurations on synthetic workloads.",
    add_completion=False,
)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _print_listing(registry: GCRegistry) -> None:
    workloads = Table(title="Workloads", show_header=True, header_style="bold")
    workloads.add_column("Class", style="cyan")
    workloads.add_column("Benchmarks", justify="right")
    for workload in WORKLOADS:
        workloads.add_row(workload.__name__, str(len(workload.benchmark_methods())))
    console.print(workloads)

    configs = Table(title="GC Configurations", show_header=True, header_style="bold")
    configs.add_column("#", style="dim", justify="right")
    configs.add_column("Name", style="cyan")
    configs.add_column("Flags")
    baselines = registry.baselines() or ()
    for index, gc_config in enumerate(registry, start=1):
        name = gc_config.name
        if name in baselines:
            name = f"{name} [dim](baseline)[/dim]"
        configs.add_row(str(index), name, gc_config.flags_string or "-")
    console.print(configs)


def _apply_overrides(
    config: BenchConfig,
    timeout: float | None,
    log_dir: Path | None,
    result_dir: Path | None,
) -> None:
    if timeout is not None:
        config.run_timeout = timeout
    if log_dir is not None:
        config.log_dir = log_dir
    if result_dir is not None:
        config.result_dir = result_dir


@app.command()
def main(
    workload: Optional[str] = typer.Argument(
        None, help="Workload class to run (case-insensitive); default runs all"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to a config.yaml"
    ),
    list_only: bool = typer.Option(
        False, "--list", "-l", help="List workloads and GC configurations, then exit"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Kill a configuration's harness after this many seconds"
    ),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory for raw logs"),
    result_dir: Optional[Path] = typer.Option(
        None, "--result-dir", help="Directory for the Markdown report"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    """Run the workload library under every GC configuration and write reports.

    Examples:
        gcbench
        gcbench StringProcessingBenchmark
        gcbench allocation --timeout 600

    """
    configure_logging(verbose)

    try:
        config = load_config(config_path)
        _apply_overrides(config, timeout, log_dir, result_dir)
        registry = GCRegistry.from_config(config)
    except (SetupError, ValueError) as e:
        err_console.print(f"[red]Setup error:[/red] {e}")
        raise typer.Exit(2)

    if list_only:
        _print_listing(registry)
        return

    include = DEFAULT_INCLUDE
    if workload is not None:
        found = find_workload(workload)
        if found is None:
            err_console.print(f"[red]Benchmark class not found: {workload}[/red]")
            err_console.print("Available benchmarks:")
            for name in workload_names():
                err_console.print(f"  - {name}")
            raise typer.Exit(1)
        include = found.__name__

    try:
        ensure_output_dirs(config)
    except SetupError as e:
        err_console.print(f"[red]Setup error:[/red] {e}")
        raise typer.Exit(2)

    timestamp = make_timestamp()
    results = ResultsAggregate()

    console.print("[bold]GC Performance Benchmark Suite[/bold]")
    console.print(f"Runtime: {config.runtime}")
    console.print(f"Workloads: {include}")
    console.print(f"Configurations: {len(registry)}")

    orchestrator = BenchmarkOrchestrator(
        config,
        registry,
        results,
        include=include,
        timestamp=timestamp,
        console=console,
    )
    _ = orchestrator.run_all()

    print_summary(console, results)

    generator = ReportGenerator(
        results,
        log_dir=config.log_dir,
        result_dir=config.result_dir,
        timestamp=timestamp,
        baselines=registry.baselines(),
    )
    written = generator.write_all()
    if written:
        console.print("\n[bold]Reports generated:[/bold]")
        for path in written:
            console.print(f"  {path}")

    succeeded = len(results.successful())
    console.print(
        f"\n{succeeded}/{len(results)} configuration(s) completed successfully"
    )


if __name__ == "__main__":
    app()
