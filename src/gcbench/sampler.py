# Copyright (c) Syntropy Systems
"""Process memory sampling and human-readable formatting."""
from __future__ import annotations

import gc
import os
import resource
import time
from dataclasses import dataclass
from typing import cast

import psutil

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB

_process: psutil.Process | None = None


def _current_process() -> psutil.Process:
    # Cached per interpreter; re-created after a fork since the pid changes
    global _process  # noqa: PLW0603
    if _process is None or _process.pid != os.getpid():
        _process = psutil.Process()
    return _process


def _heap_limit() -> int:
    """Data-segment limit if one is set, else total physical memory."""
    soft, _ = resource.getrlimit(resource.RLIMIT_DATA)
    if soft != resource.RLIM_INFINITY and soft > 0:
        return soft
    return cast("int", psutil.virtual_memory().total)


@dataclass(frozen=True)
class MemorySnapshot:
    """Point-in-time memory usage of the current process, in bytes."""

    heap_used: int
    heap_committed: int
    heap_max: int
    non_heap_used: int
    non_heap_committed: int
    timestamp: int

    def delta(self, after: MemorySnapshot) -> int:
        """Bytes of used heap gained between this snapshot and ``after``."""
        return after.heap_used - self.heap_used

    def __str__(self) -> str:
        return (
            f"Heap: {self.heap_used // KIB}/{self.heap_committed // KIB}/"
            f"{self.heap_max // KIB} KB, NonHeap: {self.non_heap_used // KIB}/"
            f"{self.non_heap_committed // KIB} KB"
        )


def sample() -> MemorySnapshot:
    """Read current memory usage without triggering a collection."""
    info = _current_process().memory_info()
    shared = cast("int", getattr(info, "shared", 0))
    text = cast("int", getattr(info, "text", 0))
    lib = cast("int", getattr(info, "lib", 0))
    return MemorySnapshot(
        heap_used=cast("int", info.rss),
        heap_committed=cast("int", info.vms),
        heap_max=_heap_limit(),
        non_heap_used=shared,
        non_heap_committed=text + lib,
        timestamp=int(time.time() * 1000),
    )


def force_gc_and_sample(pause: float = 0.1) -> MemorySnapshot:
    """Request two full collections, pause briefly, then sample.

    Best-effort: with the collector disabled or objects still referenced the
    snapshot may not reflect a clean heap.
    """
    gc.collect()
    gc.collect()
    time.sleep(pause)
    return sample()


def format_bytes(num_bytes: int) -> str:
    """Format a byte count as B, KB, MB or GB with binary multiples."""
    if num_bytes < KIB:
        return f"{num_bytes} B"
    if num_bytes < MIB:
        return f"{num_bytes / KIB:.2f} KB"
    if num_bytes < GIB:
        return f"{num_bytes / MIB:.2f} MB"
    return f"{num_bytes / GIB:.2f} GB"


def format_duration(seconds: float) -> str:
    """Format seconds as ``"M min S sec"`` or ``"S sec"``."""
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    if minutes > 0:
        return f"{minutes} min {secs} sec"
    return f"{secs} sec"
