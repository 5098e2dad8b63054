# Copyright (c) Syntropy Systems
"""Apply ``-X gcbench.*`` runtime flags to the current interpreter."""
from __future__ import annotations

import gc
import logging
import re
import resource
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = logging.getLogger(__name__)

XOPTION_PREFIX = "gcbench."
GC_MODES = ("generational", "off")

_SIZE_PATTERN = re.compile(r"^(\d+)([kmg]?)b?$", re.IGNORECASE)
_SIZE_UNITS = {"": 1, "k": 1024, "m": 1024**2, "g": 1024**3}


def parse_size(value: str) -> int:
    """Parse ``512m`` style sizes into bytes."""
    match = _SIZE_PATTERN.match(value.strip())
    if match is None:
        msg = f"Invalid size: {value!r}"
        raise ValueError(msg)
    return int(match.group(1)) * _SIZE_UNITS[match.group(2).lower()]


def parse_threshold(value: str) -> tuple[int, int, int]:
    parts = [p.strip() for p in value.split(",")]
    if not 1 <= len(parts) <= 3:
        msg = f"Invalid GC threshold: {value!r}"
        raise ValueError(msg)
    try:
        numbers = [int(p) for p in parts]
    except ValueError as e:
        msg = f"Invalid GC threshold: {value!r}"
        raise ValueError(msg) from e
    if any(n < 0 for n in numbers):
        msg = f"GC threshold values must be non-negative: {value!r}"
        raise ValueError(msg)
    current = gc.get_threshold()
    numbers.extend(current[len(numbers):])
    return numbers[0], numbers[1], numbers[2]


@dataclass(frozen=True)
class RuntimeFlags:
    """Collector settings requested on the interpreter command line."""

    gc_mode: str = "generational"
    threshold: tuple[int, int, int] | None = None
    freeze: bool = False
    heap_max: int | None = None
    heap_min: int | None = None
    gc_log: Path | None = None

    @classmethod
    def from_xoptions(cls, xoptions: Mapping[str, str | bool]) -> RuntimeFlags:
        """Build from ``sys._xoptions``-shaped data, ignoring foreign keys."""
        values = {
            key[len(XOPTION_PREFIX):]: value
            for key, value in xoptions.items()
            if key.startswith(XOPTION_PREFIX)
        }

        gc_mode = str(values.get("gc", "generational"))
        if gc_mode not in GC_MODES:
            msg = f"Unknown gcbench.gc mode {gc_mode!r}; expected one of {GC_MODES}"
            raise ValueError(msg)

        threshold = values.get("threshold")
        heap_max = values.get("heap_max")
        heap_min = values.get("heap_min")
        gc_log = values.get("gc_log")
        freeze = values.get("freeze", False)

        flags = cls(
            gc_mode=gc_mode,
            threshold=parse_threshold(str(threshold)) if threshold else None,
            freeze=freeze is True or str(freeze).lower() in ("1", "true", "yes"),
            heap_max=parse_size(str(heap_max)) if heap_max else None,
            heap_min=parse_size(str(heap_min)) if heap_min else None,
            gc_log=Path(str(gc_log)) if gc_log else None,
        )
        if flags.heap_max is not None and flags.heap_min is not None:
            if flags.heap_min > flags.heap_max:
                msg = "gcbench.heap_min must not exceed gcbench.heap_max"
                raise ValueError(msg)
        return flags

    @classmethod
    def from_args(cls, args: Sequence[str]) -> RuntimeFlags:
        """Build from a raw interpreter argument list such as ``["-X", "dev"]``."""
        return cls.from_xoptions(xoptions_from_args(args))

    @classmethod
    def current(cls) -> RuntimeFlags:
        return cls.from_xoptions(getattr(sys, "_xoptions", {}))

    def describe(self) -> str:
        parts = [f"gc={self.gc_mode}"]
        if self.threshold is not None:
            parts.append("threshold=" + ",".join(str(t) for t in self.threshold))
        if self.freeze:
            parts.append("freeze")
        if self.heap_max is not None:
            parts.append(f"heap_max={self.heap_max}")
        if self.heap_min is not None:
            parts.append(f"heap_min={self.heap_min}")
        return " ".join(parts)


def xoptions_from_args(args: Sequence[str]) -> dict[str, str | bool]:
    """Collect ``-X key[=value]`` pairs from an argument list."""
    result: dict[str, str | bool] = {}
    pending = False
    for arg in args:
        if pending:
            option = arg
            pending = False
        elif arg == "-X":
            pending = True
            continue
        elif arg.startswith("-X"):
            option = arg[2:]
        else:
            continue
        key, sep, value = option.partition("=")
        result[key] = value if sep else True
    return result


class HeapReserve:
    """Holds the pre-committed heap floor for the lifetime of a worker."""

    _buffer: bytearray | None

    def __init__(self) -> None:
        self._buffer = None

    def commit(self, size: int) -> None:
        self._buffer = bytearray(size)

    def release(self) -> None:
        self._buffer = None

    @property
    def size(self) -> int:
        return len(self._buffer) if self._buffer is not None else 0


def _apply_heap_ceiling(limit: int) -> bool:
    soft, hard = resource.getrlimit(resource.RLIMIT_DATA)
    if hard != resource.RLIM_INFINITY:
        limit = min(limit, hard)
    try:
        resource.setrlimit(resource.RLIMIT_DATA, (limit, hard))
    except (ValueError, OSError) as e:
        logger.warning("Cannot apply heap ceiling of %d bytes: %s", limit, e)
        return False
    logger.debug("Heap ceiling %d bytes (was %s)", limit, soft)
    return True


def apply_collector_flags(flags: RuntimeFlags) -> None:
    """Configure the gc module before any workload setup runs."""
    if flags.gc_mode == "off":
        gc.disable()
    else:
        gc.enable()
        if flags.threshold is not None:
            gc.set_threshold(*flags.threshold)


def apply_heap_flags(flags: RuntimeFlags, reserve: HeapReserve) -> None:
    if flags.heap_max is not None:
        _apply_heap_ceiling(flags.heap_max)
    if flags.heap_min is not None:
        reserve.commit(flags.heap_min)


def freeze_if_requested(flags: RuntimeFlags) -> None:
    """Move setup-time objects to the permanent generation."""
    if flags.freeze and flags.gc_mode != "off":
        gc.collect()
        gc.freeze()
