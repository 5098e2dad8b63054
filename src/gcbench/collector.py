# Copyright (c) Syntropy Systems
"""Parse raw harness output into per-configuration results."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gcbench.models.results import GCConfiguration, GCRunResult, RunState, WorkloadResult

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

logger = logging.getLogger(__name__)

# Bump when either pattern changes; harness output is a versioned contract
GRAMMAR_VERSION = 1

BENCHMARK_RESULT_PATTERN = re.compile(
    r"(\w+\.\w+)\s+avgt\s+\d+\s+([\d.]+)\s+±\s+([\d.]+)\s+(\w+)"
)
MEMORY_DELTA_PATTERN = re.compile(r"(\w+.*) - Memory delta: (-?[\d.]+ \w+)")


@dataclass(frozen=True)
class MemoryDelta:
    operation: str
    delta: str


def parse_line(line: str) -> WorkloadResult | MemoryDelta | None:
    """Match one output line against the two patterns; None if neither matches."""
    match = BENCHMARK_RESULT_PATTERN.search(line)
    if match is not None:
        try:
            return WorkloadResult(
                benchmark=match.group(1),
                average_time=float(match.group(2)),
                error=float(match.group(3)),
                unit=match.group(4),
            )
        except ValueError:
            # e.g. "1.2.3" satisfies [\d.]+ but is not a number
            return None

    match = MEMORY_DELTA_PATTERN.search(line)
    if match is not None:
        return MemoryDelta(operation=match.group(1), delta=match.group(2))
    return None


def parse_output(
    lines: Iterable[str],
) -> tuple[dict[str, WorkloadResult], dict[str, str]]:
    """Extract benchmark results and memory deltas; later lines win."""
    benchmarks: dict[str, WorkloadResult] = {}
    deltas: dict[str, str] = {}
    for line in lines:
        parsed = parse_line(line)
        if isinstance(parsed, WorkloadResult):
            benchmarks[parsed.benchmark] = parsed
        elif isinstance(parsed, MemoryDelta):
            deltas[parsed.operation] = parsed.delta
    return benchmarks, deltas


class ResultsAggregate:
    """Ordered collection of one GCRunResult per configuration attempted.

    Entries keep the order in which configurations were first seen;
    re-recording a configuration replaces its entry in place.
    """

    _results: dict[str, GCRunResult]

    def __init__(self) -> None:
        self._results = {}

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[GCRunResult]:
        return iter(list(self._results.values()))

    def __contains__(self, name: object) -> bool:
        return name in self._results

    def get(self, name: str) -> GCRunResult | None:
        return self._results.get(name)

    def names(self) -> list[str]:
        return list(self._results)

    def successful(self) -> list[GCRunResult]:
        return [r for r in self._results.values() if r.successful]

    def begin(self, config: GCConfiguration) -> GCRunResult:
        """Create the (empty) result for a configuration whose run is starting."""
        result = GCRunResult(
            name=config.name,
            flags=config.flags_string,
            state=RunState.CHECKING_AVAILABILITY,
        )
        self._results[config.name] = result
        return result

    def record_failure(
        self,
        config: GCConfiguration,
        message: str,
        state: RunState = RunState.FAILED,
        duration_seconds: float | None = None,
    ) -> GCRunResult:
        result = GCRunResult(
            name=config.name,
            flags=config.flags_string,
            state=state,
            error_message=message,
            duration_seconds=duration_seconds,
        )
        self._results[config.name] = result
        return result

    def parse_results(
        self,
        config: GCConfiguration,
        output_file: Path,
        duration_seconds: float | None = None,
    ) -> GCRunResult:
        """Parse a raw harness log into a completed result.

        An unreadable log is recorded as a failure rather than raised.
        """
        try:
            with output_file.open(encoding="utf-8", errors="replace") as f:
                benchmarks, deltas = parse_output(f)
        except OSError as e:
            logger.error("Failed to parse results for %s: %s", config.name, e)
            return self.record_failure(config, str(e), duration_seconds=duration_seconds)

        return self.complete(config, benchmarks, deltas, duration_seconds)

    def complete(
        self,
        config: GCConfiguration,
        benchmarks: dict[str, WorkloadResult],
        memory_deltas: dict[str, str] | None = None,
        duration_seconds: float | None = None,
    ) -> GCRunResult:
        result = GCRunResult(
            name=config.name,
            flags=config.flags_string,
            state=RunState.COMPLETED,
            duration_seconds=duration_seconds,
            benchmarks=benchmarks,
            memory_deltas=memory_deltas or {},
        )
        self._results[config.name] = result
        return result

    def all_benchmarks(self) -> list[str]:
        """Sorted benchmark ids seen in any successful configuration."""
        names: set[str] = set()
        for result in self.successful():
            names.update(result.benchmarks)
        return sorted(names)
