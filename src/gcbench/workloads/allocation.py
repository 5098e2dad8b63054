# Copyright (c) Syntropy Systems
"""Object allocation patterns of varying size and lifetime."""
from __future__ import annotations

from typing import ClassVar

from gcbench.workloads.base import BenchmarkBase, Blackhole, benchmark

OBJECT_SIZE = 1024


class ObjectAllocationBenchmark(BenchmarkBase):
    """Small, medium, large and mixed buffer allocation."""

    DEFAULT_ITERATIONS: ClassVar[int] = 10_000

    @benchmark
    def small_object_allocation(self, bh: Blackhole) -> None:
        """64-320 byte buffers."""
        with self.memory_delta("Small objects"):
            for _ in range(self.iterations):
                bh.consume(bytearray(self.random.randrange(256) + 64))

    @benchmark
    def medium_object_allocation(self, bh: Blackhole) -> None:
        """1-4 KB buffers."""
        with self.memory_delta("Medium objects"):
            for _ in range(self.iterations // 10):
                bh.consume(bytearray(OBJECT_SIZE + self.random.randrange(OBJECT_SIZE * 3)))

    @benchmark
    def large_object_allocation(self, bh: Blackhole) -> None:
        """64-256 KB buffers, large enough to bypass the small-object allocator."""
        with self.memory_delta("Large objects"):
            for _ in range(self.iterations // 100):
                bh.consume(bytearray(64 * 1024 + self.random.randrange(192 * 1024)))

    @benchmark
    def mixed_allocation_pattern(self, bh: Blackhole) -> None:
        with self.memory_delta("Mixed allocation"):
            rng = self.random
            for _ in range(self.iterations):
                choice = rng.randrange(100)
                if choice < 70:
                    obj = bytearray(rng.randrange(512) + 32)
                elif choice < 95:
                    obj = bytearray(rng.randrange(8192) + 1024)
                else:
                    obj = bytearray(rng.randrange(65536) + 32768)
                bh.consume(obj)

    @benchmark
    def high_pressure_allocation(self, bh: Blackhole) -> None:
        """Short-lived strings, buffers and containers after forced garbage."""
        with self.memory_delta("High pressure"):
            self.create_memory_pressure(100)
            rng = self.random
            for i in range(self.iterations * 2):
                bh.consume(f"High pressure allocation test string {i}")
                bh.consume(bytearray(rng.randrange(1024)))
                bh.consume([None] * (rng.randrange(100) + 10))

    @benchmark
    def mixed_lifetime_allocation(self, bh: Blackhole) -> None:
        """Long-lived buffers that survive while short-lived ones churn."""
        with self.memory_delta("Mixed lifetime"):
            rng = self.random
            long_lived = [bytearray(rng.randrange(2048) + 1024) for _ in range(100)]

            for i in range(self.iterations):
                bh.consume(bytearray(rng.randrange(512) + 64))
                if i % 1000 == 0:
                    index = rng.randrange(len(long_lived))
                    long_lived[index] = bytearray(rng.randrange(2048) + 1024)

            bh.consume(long_lived)
