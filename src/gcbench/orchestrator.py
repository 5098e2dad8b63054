# Copyright (c) Syntropy Systems
"""Run the workload library under each collector configuration in turn."""
from __future__ import annotations

import logging
import subprocess
import time
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from rich.console import Console

from gcbench.harness.options import DEFAULT_INCLUDE, HarnessOptions, VerboseMode
from gcbench.models.results import GCConfiguration, GCRunResult, RunState
from gcbench.runner import ProcessRunner
from gcbench.sampler import format_duration

if TYPE_CHECKING:
    from gcbench.collector import ResultsAggregate
    from gcbench.config import BenchConfig
    from gcbench.registry import GCRegistry

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
# Exits non-zero when -X gil=0 was accepted but the GIL is still enabled
VERSION_QUERY = """\
import sys
if sys._xoptions.get("gil") == "0" and getattr(sys, "_is_gil_enabled", lambda: True)():
    sys.exit("free-threading requested but the GIL is enabled")
sys.stdout.write(sys.version)
"""
PROBE_TIMEOUT = 60.0
ERROR_TAIL_LINES = 10

AvailabilityProbe = Callable[[str, GCConfiguration], bool]


def make_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def probe_availability(runtime: str, config: GCConfiguration) -> bool:
    """Check whether the runtime starts with the configuration's flags in effect.

    Only the exit code matters: 0 means available. Interpreters that accept
    unknown ``-X`` options silently still fail the query when a requested
    mode such as ``gil=0`` did not take effect. A launch error or a hung
    probe counts as unavailable.
    """
    argv = [runtime, *config.flags, "-c", VERSION_QUERY]
    try:
        result = subprocess.run(  # noqa: S603
            argv,
            capture_output=True,
            text=True,
            timeout=PROBE_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("Error checking availability of %s: %s", config.name, e)
        return False
    if result.returncode != 0:
        logger.debug(
            "%s unavailable (exit %d): %s",
            config.name,
            result.returncode,
            result.stderr.strip(),
        )
    return result.returncode == 0


def read_tail(path: Path, lines: int = ERROR_TAIL_LINES) -> str:
    """Last non-empty lines of a log file, or "" if it cannot be read."""
    try:
        with path.open(encoding="utf-8", errors="replace") as f:
            tail = deque((line.rstrip() for line in f if line.strip()), maxlen=lines)
    except OSError:
        return ""
    return "\n".join(tail)


class BenchmarkOrchestrator:
    """Drives each configuration through availability check, harness run
    and result parsing, strictly one configuration at a time.
    """

    config: BenchConfig
    registry: GCRegistry
    results: ResultsAggregate
    include: str
    timestamp: str
    console: Console
    transitions: list[tuple[str, RunState]]
    _probe: AvailabilityProbe

    def __init__(
        self,
        config: BenchConfig,
        registry: GCRegistry,
        results: ResultsAggregate,
        *,
        include: str = DEFAULT_INCLUDE,
        timestamp: str | None = None,
        console: Console | None = None,
        probe: AvailabilityProbe = probe_availability,
    ) -> None:
        self.config = config
        self.registry = registry
        self.results = results
        self.include = include
        self.timestamp = timestamp or make_timestamp()
        self.console = console or Console()
        self.transitions = []
        self._probe = probe

    def raw_output_path(self, gc_config: GCConfiguration) -> Path:
        return self.config.log_dir / f"jmh_results_{gc_config.safe_name}_{self.timestamp}.txt"

    def gc_log_path(self, gc_config: GCConfiguration) -> Path:
        return self.config.log_dir / f"gc_{gc_config.safe_name}_{self.timestamp}.log"

    def harness_options(self, gc_config: GCConfiguration) -> HarnessOptions:
        runtime_args = (
            *gc_config.flags,
            "-X",
            f"gcbench.heap_max={self.config.heap_max}",
            "-X",
            f"gcbench.heap_min={self.config.heap_min}",
            "-X",
            f"gcbench.gc_log={self.gc_log_path(gc_config)}",
        )
        return HarnessOptions(
            include=self.include,
            warmup_iterations=self.config.warmup_iterations,
            measurement_iterations=self.config.measurement_iterations,
            forks=self.config.forks,
            threads=self.config.threads,
            iteration_time=self.config.iteration_time,
            fail_on_error=True,
            verbosity=VerboseMode.NORMAL,
            output=self.raw_output_path(gc_config),
            runtime_args=runtime_args,
        )

    def harness_command(self, gc_config: GCConfiguration) -> list[str]:
        options = self.harness_options(gc_config)
        return [self.config.runtime, "-m", "gcbench.harness", *options.to_argv()]

    def run_all(self) -> ResultsAggregate:
        """Run every configuration in registry order; never raises per-config errors."""
        for gc_config in self.registry:
            self.run_configuration(gc_config)
        return self.results

    def run_configuration(self, gc_config: GCConfiguration) -> GCRunResult:
        self.console.print(f"\n[bold]Running benchmarks with: {gc_config.name}[/bold]")
        self.console.print(f"[dim]Flags: {gc_config.flags_string or '<none>'}[/dim]")

        started = time.monotonic()
        self._transition(gc_config, RunState.PENDING)
        _ = self.results.begin(gc_config)
        self._transition(gc_config, RunState.CHECKING_AVAILABILITY)

        try:
            result = self._run(gc_config, started)
        except Exception as e:  # noqa: BLE001
            logger.exception("Unexpected error running %s", gc_config.name)
            result = self.results.record_failure(
                gc_config,
                f"Unexpected error: {e}",
                duration_seconds=time.monotonic() - started,
            )

        self._transition(gc_config, result.state)
        self._report(result)
        return result

    def _run(self, gc_config: GCConfiguration, started: float) -> GCRunResult:
        if not self._probe(self.config.runtime, gc_config):
            return self.results.record_failure(
                gc_config,
                f"{gc_config.name} is not available in this build",
                state=RunState.UNAVAILABLE,
            )

        raw_output = self.raw_output_path(gc_config)
        self._transition(gc_config, RunState.RUNNING)
        running = self.results.get(gc_config.name)
        if running is not None:
            running.state = RunState.RUNNING
        self.console.print(f"[blue]Starting harness[/blue], results: {raw_output}")

        runner = ProcessRunner(self.harness_command(gc_config), output_path=raw_output)
        try:
            runner.start()
        except OSError as e:
            return self.results.record_failure(
                gc_config,
                f"Cannot launch harness: {e}",
                duration_seconds=time.monotonic() - started,
            )

        exit_code = runner.wait(
            timeout=self.config.run_timeout,
            grace_period=self.config.kill_grace_period,
        )
        duration = time.monotonic() - started

        if runner.timed_out:
            return self.results.record_failure(
                gc_config,
                f"Timed out after {format_duration(duration)}",
                state=RunState.TIMED_OUT,
                duration_seconds=duration,
            )
        if exit_code != 0:
            message = f"Harness exited with code {exit_code}"
            tail = read_tail(raw_output)
            if tail:
                message = f"{message}: {tail}"
            return self.results.record_failure(
                gc_config, message, duration_seconds=duration
            )

        return self.results.parse_results(gc_config, raw_output, duration_seconds=duration)

    def _transition(self, gc_config: GCConfiguration, state: RunState) -> None:
        self.transitions.append((gc_config.name, state))
        logger.debug("%s -> %s", gc_config.name, state.value)

    def _report(self, result: GCRunResult) -> None:
        duration = (
            format_duration(result.duration_seconds)
            if result.duration_seconds is not None
            else None
        )
        if result.successful:
            self.console.print(
                f"[green]✓[/green] {result.name} benchmarks completed successfully"
            )
            if duration:
                self.console.print(f"  Total execution time: {duration}")
        elif result.state == RunState.UNAVAILABLE:
            self.console.print(f"[yellow]✗[/yellow] {result.error_message}")
        else:
            self.console.print(f"[red]✗[/red] {result.name} benchmarks failed")
            first_line = (result.error_message or "").splitlines()[:1]
            if first_line:
                self.console.print(f"  {first_line[0]}", markup=False)
            if duration:
                self.console.print(f"  Failed after: {duration}")
