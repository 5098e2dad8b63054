# Copyright (c) Syntropy Systems
"""Base class and helpers shared by all workloads."""
from __future__ import annotations

import random
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, ClassVar, Optional, TypeVar

from pydantic import Field

from gcbench.models.base import GCBenchBaseModel
from gcbench.sampler import MemorySnapshot, format_bytes, sample

if TYPE_CHECKING:
    from collections.abc import Iterator

_F = TypeVar("_F", bound=Callable[..., None])

BENCHMARK_MARKER = "__gcbench_benchmark__"


def benchmark(func: _F) -> _F:
    """Mark a workload method as a measured benchmark."""
    setattr(func, BENCHMARK_MARKER, True)
    return func


class WorkloadOptions(GCBenchBaseModel):
    """Tunable knobs for a workload instance."""

    iterations: Optional[int] = Field(default=None, ge=1)
    seed: int = 42
    target_size: Optional[int] = Field(default=None, ge=0)


class Blackhole:
    """Sink that keeps benchmark results observable.

    Folds each consumed object's identity into a running token so the work
    producing it cannot be skipped.
    """

    __slots__ = ("_count", "_token")

    def __init__(self) -> None:
        self._count = 0
        self._token = 0

    def consume(self, obj: object) -> None:
        self._count += 1
        self._token ^= id(obj)

    @property
    def count(self) -> int:
        return self._count

    @property
    def token(self) -> int:
        return self._token


class BenchmarkBase:
    """Base for workload classes.

    Subclasses set DEFAULT_ITERATIONS and DEFAULT_TARGET_SIZE, override
    ``populate`` to build baseline data, and mark measured methods with
    ``@benchmark``. Each measured method takes a Blackhole.
    """

    DEFAULT_ITERATIONS: ClassVar[int] = 10_000
    DEFAULT_TARGET_SIZE: ClassVar[int] = 0

    options: WorkloadOptions
    iterations: int
    target_size: int
    random: random.Random

    def __init__(self, options: WorkloadOptions | None = None) -> None:
        self.options = options or WorkloadOptions()
        self.iterations = self.options.iterations or self.DEFAULT_ITERATIONS
        self.target_size = (
            self.options.target_size
            if self.options.target_size is not None
            else self.DEFAULT_TARGET_SIZE
        )
        self.random = random.Random(self.options.seed)

    @classmethod
    def benchmark_methods(cls) -> list[str]:
        """Names of the methods marked with @benchmark, in definition order."""
        names: list[str] = []
        for klass in reversed(cls.__mro__):
            for name, attr in vars(klass).items():
                if getattr(attr, BENCHMARK_MARKER, False) and name not in names:
                    names.append(name)
        return names

    @classmethod
    def benchmark_ids(cls) -> list[str]:
        return [f"{cls.__name__}.{name}" for name in cls.benchmark_methods()]

    def setup(self) -> None:
        """Reseed the random source and pre-populate baseline data."""
        self.random = random.Random(self.options.seed)
        self.populate()

    def populate(self) -> None:
        """Build baseline data structures; no-op by default."""

    def teardown(self) -> None:
        """Release baseline data; no-op by default."""

    @contextmanager
    def memory_delta(self, label: str) -> Iterator[None]:
        """Report the used-memory delta of the enclosed block on stdout."""
        before = self.current_memory_stats()
        yield
        after = self.current_memory_stats()
        print(f"{label} - Memory delta: {format_bytes(before.delta(after))}", flush=True)

    def current_memory_stats(self) -> MemorySnapshot:
        return sample()

    def create_memory_pressure(self, iterations: int) -> None:
        """Allocate and immediately drop short-lived objects."""
        for i in range(iterations):
            array: list[object] = [None] * 1000
            strings = [f"Memory pressure string {i}_{j}" for j in range(500)]
            array[0] = strings
            # Let objects become eligible for collection
            del array, strings
