# Copyright (c) Syntropy Systems
"""Harness configuration passed across the subprocess boundary."""
from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator

from gcbench.models.base import FrozenModel

DEFAULT_INCLUDE = ".*Benchmark.*"


class VerboseMode(str, Enum):
    SILENT = "SILENT"
    NORMAL = "NORMAL"
    EXTRA = "EXTRA"


class HarnessOptions(FrozenModel):
    """Everything the harness controller needs for one suite run."""

    include: str = DEFAULT_INCLUDE
    warmup_iterations: int = Field(default=1, ge=0)
    measurement_iterations: int = Field(default=2, ge=1)
    forks: int = Field(default=1, ge=0)
    threads: int = Field(default=1, ge=1)
    iteration_time: float = Field(default=1.0, gt=0)
    fail_on_error: bool = True
    verbosity: VerboseMode = VerboseMode.NORMAL
    output: Optional[Path] = None
    runtime_args: tuple[str, ...] = ()
    time_unit: str = "ms"

    @field_validator("include")
    @classmethod
    def _valid_regex(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            msg = f"Invalid include pattern {value!r}: {e}"
            raise ValueError(msg) from e
        return value

    @field_validator("time_unit")
    @classmethod
    def _known_unit(cls, value: str) -> str:
        if value not in ("s", "ms", "us", "ns"):
            msg = f"Unsupported time unit: {value}"
            raise ValueError(msg)
        return value

    def to_argv(self) -> list[str]:
        """Command-line arguments for ``python -m gcbench.harness run``."""
        argv = [
            "run",
            f"--include={self.include}",
            f"--warmup={self.warmup_iterations}",
            f"--measurement={self.measurement_iterations}",
            f"--forks={self.forks}",
            f"--threads={self.threads}",
            f"--iteration-time={self.iteration_time}",
            "--fail-on-error" if self.fail_on_error else "--no-fail-on-error",
            f"--verbosity={self.verbosity.value}",
            f"--time-unit={self.time_unit}",
        ]
        if self.output is not None:
            argv.append(f"--output={self.output}")
        # "=" form keeps values such as "-X" from being read as options
        argv.extend(f"--runtime-arg={arg}" for arg in self.runtime_args)
        return argv
