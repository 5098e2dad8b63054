# Copyright (c) Syntropy Systems
"""Markdown, plain-text and CSV reports built from a results aggregate."""
from __future__ import annotations

import csv
import logging
import platform
from datetime import datetime
from typing import TYPE_CHECKING, Callable, TextIO

from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

    from gcbench.collector import ResultsAggregate
    from gcbench.models.results import GCRunResult

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
CSV_HEADER = (
    "GC_Name",
    "GC_Flags",
    "Status",
    "Benchmark",
    "Avg_Time_ms",
    "Error_ms",
    "Unit",
    "Throughput_ops_sec",
)


def _status_glyph(result: GCRunResult) -> str:
    return "✅" if result.successful else "❌"


def head_to_head_winner(
    first: tuple[str, float | None], second: tuple[str, float | None]
) -> str:
    """Name of the configuration with the strictly lower time, else N/A."""
    (first_name, first_time), (second_name, second_time) = first, second
    if first_time is None or second_time is None:
        return NOT_AVAILABLE
    if first_time < second_time:
        return first_name
    if second_time < first_time:
        return second_name
    return NOT_AVAILABLE


class ReportGenerator:
    """Writes the three report artifacts for one suite run.

    Every artifact is written on its own: an I/O error on one is logged
    and the remaining ones are still produced.
    """

    results: ResultsAggregate
    log_dir: Path
    result_dir: Path
    timestamp: str
    baselines: tuple[str, str] | None

    def __init__(
        self,
        results: ResultsAggregate,
        log_dir: Path,
        result_dir: Path,
        timestamp: str,
        baselines: tuple[str, str] | None = None,
    ) -> None:
        self.results = results
        self.log_dir = log_dir
        self.result_dir = result_dir
        self.timestamp = timestamp
        self.baselines = baselines

    @property
    def markdown_path(self) -> Path:
        return self.result_dir / f"gc_benchmark_comparison_{self.timestamp}.md"

    @property
    def text_path(self) -> Path:
        return self.log_dir / f"gc_benchmark_detailed_{self.timestamp}.txt"

    @property
    def csv_path(self) -> Path:
        return self.log_dir / f"gc_benchmark_results_{self.timestamp}.csv"

    def write_all(self) -> list[Path]:
        """Write every artifact; returns the paths actually written."""
        written: list[Path] = []
        for path, writer in (
            (self.markdown_path, self.write_markdown),
            (self.text_path, self.write_text),
            (self.csv_path, self.write_csv),
        ):
            if self._write(path, writer):
                written.append(path)
        return written

    def _write(self, path: Path, writer: Callable[[TextIO], None]) -> bool:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # newline="" lets the csv module control line endings
            with path.open("w", encoding="utf-8", newline="") as f:
                writer(f)
        except OSError as e:
            logger.error("Failed to write report %s: %s", path, e)
            return False
        return True

    # Markdown

    def write_markdown(self, out: TextIO) -> None:
        self._write_summary_table(out)
        self._write_head_to_head(out)

    def _write_summary_table(self, out: TextIO) -> None:
        out.write("| GC Algorithm | Status | Avg Time (ms) | Throughput (ops/sec) |\n")
        out.write("|--------------|--------|---------------|----------------------|\n")
        for result in self.results:
            if result.successful:
                out.write(
                    f"| {result.name} | ✅ "
                    f"| {result.mean_average_time_ms():.2f} "
                    f"| {result.mean_throughput():.0f} |\n"
                )
            else:
                out.write(
                    f"| {result.name} | ❌ | {NOT_AVAILABLE} | {NOT_AVAILABLE} |\n"
                )
        out.write("\n")

    def _write_head_to_head(self, out: TextIO) -> None:
        if self.baselines is None:
            return
        benchmarks = self.results.all_benchmarks()
        if not benchmarks:
            return

        first, second = self.baselines
        out.write(f"| Benchmark | {first} | {second} | Winner |\n")
        out.write("|-----------|" + "-" * (len(first) + 2) + "|")
        out.write("-" * (len(second) + 2) + "|--------|\n")
        for benchmark in benchmarks:
            first_time = self._time_ms(first, benchmark)
            second_time = self._time_ms(second, benchmark)
            winner = head_to_head_winner((first, first_time), (second, second_time))
            short_name = benchmark.rsplit(".", 1)[-1]
            out.write(
                f"| {short_name} | {self._format_time(first_time)} "
                f"| {self._format_time(second_time)} | {winner} |\n"
            )
        out.write("\n")

    def _time_ms(self, name: str, benchmark: str) -> float | None:
        result = self.results.get(name)
        if result is None or not result.successful:
            return None
        workload = result.benchmarks.get(benchmark)
        if workload is None:
            return None
        return workload.average_time_ms()

    @staticmethod
    def _format_time(value: float | None) -> str:
        return NOT_AVAILABLE if value is None else f"{value:.2f} ms"

    # Plain text

    def write_text(self, out: TextIO) -> None:
        out.write("=" * 80 + "\n")
        out.write("GC ALGORITHM PERFORMANCE BENCHMARK - DETAILED RESULTS\n")
        out.write("=" * 80 + "\n")
        out.write(f"Generated: {datetime.now().isoformat(timespec='seconds')}\n")
        out.write(
            f"Python Version: {platform.python_implementation()} "
            f"{platform.python_version()}\n"
        )
        out.write("\n")

        for result in self.results:
            out.write("-" * 50 + "\n")
            out.write(f"GC: {result.name}\n")
            out.write(f"Flags: {result.flags}\n")
            out.write(f"Status: {result.status_label}\n")
            if not result.successful:
                out.write(f"Error: {result.error_message}\n")
            else:
                out.write("\nBenchmark Results:\n")
                for name, workload in result.benchmarks.items():
                    out.write(
                        f"  {name}: {workload.average_time:.3f} ± {workload.error:.3f} "
                        f"{workload.unit} ({workload.throughput:.0f} ops/sec)\n"
                    )
                out.write("\nMemory Deltas:\n")
                for operation, delta in result.memory_deltas.items():
                    out.write(f"  {operation}: {delta}\n")
            out.write("\n")

    # CSV

    def write_csv(self, out: TextIO) -> None:
        writer = csv.writer(out)
        writer.writerow(CSV_HEADER)
        for result in self.results:
            if not result.successful:
                writer.writerow(
                    [result.name, result.flags, result.status_label]
                    + [NOT_AVAILABLE] * 5
                )
                continue
            for workload in result.benchmarks.values():
                writer.writerow(
                    [
                        result.name,
                        result.flags,
                        result.status_label,
                        workload.benchmark,
                        f"{workload.average_time:.3f}",
                        f"{workload.error:.3f}",
                        workload.unit,
                        f"{workload.throughput:.0f}",
                    ]
                )


def build_summary_table(results: ResultsAggregate) -> Table:
    """Rich table mirroring the Markdown summary, for the console."""
    table = Table(title="GC Benchmark Summary", show_header=True, header_style="bold")
    table.add_column("GC Algorithm", style="cyan")
    table.add_column("Status")
    table.add_column("Avg Time (ms)", justify="right")
    table.add_column("Throughput (ops/sec)", justify="right")
    table.add_column("Duration", justify="right", style="dim")

    for result in results:
        duration = (
            f"{result.duration_seconds:.1f}s"
            if result.duration_seconds is not None
            else "-"
        )
        if result.successful:
            table.add_row(
                result.name,
                f"[green]{_status_glyph(result)} {result.status_label}[/green]",
                f"{result.mean_average_time_ms():.2f}",
                f"{result.mean_throughput():.0f}",
                duration,
            )
        else:
            table.add_row(
                result.name,
                f"[red]{_status_glyph(result)} {result.state.value}[/red]",
                NOT_AVAILABLE,
                NOT_AVAILABLE,
                duration,
            )
    return table


def print_summary(console: Console, results: ResultsAggregate) -> None:
    console.print()
    console.print(build_summary_table(results))
    for result in results:
        if not result.successful and result.error_message:
            first_line = result.error_message.splitlines()[0]
            line = f"{escape(result.name)}: {escape(first_line)}"
            console.print(f"[dim]{line}[/dim]", highlight=False)
