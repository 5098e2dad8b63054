# Copyright (c) Syntropy Systems
"""GC event log written from ``gc.callbacks``."""
from __future__ import annotations

import gc
import time
from datetime import datetime, timezone
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from gcbench.harness.flags import RuntimeFlags


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


class GCEventLog:
    """Appends one decorated line per collection to a log file.

    Lines look like::

        [2026-01-01T00:00:00.000+00:00][info][gc] GC(3) Pause gen0 collected=12 uncollectable=0 0.041ms
    """

    path: Path
    _file: IO[str] | None
    _started: float | None
    _count: int

    def __init__(self, path: Path) -> None:
        self.path = path
        self._file = None
        self._started = None
        self._count = 0

    @property
    def collections(self) -> int:
        return self._count

    def start(self, flags: RuntimeFlags | None = None) -> None:
        if self._file is not None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.path.open("a", encoding="utf-8")
        threshold = ",".join(str(t) for t in gc.get_threshold())
        self._write("gc,init", f"Collector enabled={gc.isenabled()} threshold={threshold}")
        if flags is not None:
            self._write("gc,init", f"Flags: {flags.describe()}")
        gc.callbacks.append(self._callback)

    def stop(self) -> None:
        if self._file is None:
            return
        if self._callback in gc.callbacks:
            gc.callbacks.remove(self._callback)
        self._write("gc,heap", f"Total collections: {self._count}")
        self._file.close()
        self._file = None

    def mark(self, message: str) -> None:
        """Write a free-form phase marker, e.g. the benchmark being run."""
        self._write("gc,phases", message)

    def _callback(self, phase: str, info: dict[str, int]) -> None:
        if phase == "start":
            self._started = time.perf_counter()
            return
        elapsed_ms = 0.0
        if self._started is not None:
            elapsed_ms = (time.perf_counter() - self._started) * 1000
            self._started = None
        self._write(
            "gc",
            f"GC({self._count}) Pause gen{info.get('generation', -1)} "
            f"collected={info.get('collected', 0)} "
            f"uncollectable={info.get('uncollectable', 0)} {elapsed_ms:.3f}ms",
        )
        self._count += 1

    def _write(self, tags: str, message: str) -> None:
        if self._file is None:
            return
        _ = self._file.write(f"[{_now()}][info][{tags}] {message}\n")
        _ = self._file.flush()
