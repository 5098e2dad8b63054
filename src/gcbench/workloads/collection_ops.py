# Copyright (c) Syntropy Systems
"""Collection churn: lists, deques, dicts and sets."""
from __future__ import annotations

import random
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import ClassVar

from gcbench.workloads.base import BenchmarkBase, Blackhole, benchmark

MAX_VALUE = 100_000
WORKER_THREADS = 4


class CollectionOperationsBenchmark(BenchmarkBase):
    """Add/search/remove and bulk-copy operations on pre-populated collections."""

    DEFAULT_ITERATIONS: ClassVar[int] = 10_000
    DEFAULT_TARGET_SIZE: ClassVar[int] = 50_000

    test_list: list[int]
    test_map: dict[str, int]
    test_set: set[str]

    def populate(self) -> None:
        rng = self.random
        self.test_list = [rng.randrange(MAX_VALUE) for _ in range(self.target_size)]
        self.test_map = {f"key_{i}": i for i in range(self.target_size)}
        self.test_set = {f"element_{i}" for i in range(self.target_size)}

    def teardown(self) -> None:
        self.test_list = []
        self.test_map = {}
        self.test_set = set()

    @benchmark
    def list_operations(self, bh: Blackhole) -> None:
        with self.memory_delta("List operations"):
            rng = self.random
            working = list(self.test_list)

            for _ in range(self.iterations):
                working.append(rng.randrange(MAX_VALUE))

            for _ in range(self.iterations // 100):
                bh.consume(rng.randrange(MAX_VALUE) in working)

            for _ in range(self.iterations // 2):
                if working:
                    working.pop(rng.randrange(len(working)))

            bh.consume(working)

    @benchmark
    def deque_operations(self, bh: Blackhole) -> None:
        """Linked-list style churn at both ends and in the middle."""
        with self.memory_delta("Deque operations"):
            rng = self.random
            working = deque(self.test_list)

            for i in range(self.iterations):
                if i % 2 == 0:
                    working.appendleft(rng.randrange(MAX_VALUE))
                else:
                    working.append(rng.randrange(MAX_VALUE))

            filtered = [x for x in working if x % 2 == 0][: self.iterations // 2]

            for _ in range(self.iterations // 40):
                if working:
                    del working[len(working) // 2]

            bh.consume(working)
            bh.consume(filtered)

    @benchmark
    def dict_operations(self, bh: Blackhole) -> None:
        with self.memory_delta("Dict operations"):
            rng = self.random
            working = dict(self.test_map)

            for i in range(self.iterations):
                working[f"new_key_{i}"] = rng.randrange(MAX_VALUE)

            size = max(self.target_size, 1)
            for _ in range(self.iterations):
                bh.consume(working.get(f"key_{rng.randrange(size)}"))

            transformed: dict[str, str] = {}
            for key, value in working.items():
                if len(transformed) >= self.iterations // 2:
                    break
                if value % 2 == 0:
                    transformed[key] = f"value_{value}"

            for i in range(self.iterations // 2):
                working.pop(f"new_key_{i}", None)

            bh.consume(working)
            bh.consume(transformed)

    @benchmark
    def concurrent_dict_operations(self, bh: Blackhole) -> None:
        """Parallel reads and writes on a shared dict from a thread pool."""
        with self.memory_delta("Concurrent dict operations"):
            shared: dict[str, int] = {}
            lock = threading.Lock()
            ops = self.iterations
            seeds = [self.random.randrange(2**32) for _ in range(WORKER_THREADS)]
            chunk = max(ops // WORKER_THREADS, 1)

            def populate(worker: int) -> None:
                rng = random.Random(seeds[worker])
                for i in range(worker * chunk, min((worker + 1) * chunk, ops)):
                    value = rng.randrange(MAX_VALUE)
                    with lock:
                        shared[f"concurrent_key_{i}"] = value

            def read_write(worker: int) -> None:
                rng = random.Random(seeds[worker] + 1)
                for _ in range(chunk):
                    read_key = f"concurrent_key_{rng.randrange(max(ops, 1))}"
                    with lock:
                        value = shared.get(read_key)
                        if value is not None:
                            shared[f"modified_{read_key}"] = value * 2

            with ThreadPoolExecutor(max_workers=WORKER_THREADS) as pool:
                list(pool.map(populate, range(WORKER_THREADS)))
                list(pool.map(read_write, range(WORKER_THREADS)))

            with lock:
                processed = [k.upper() for k, v in shared.items() if v > MAX_VALUE // 2]

            bh.consume(shared)
            bh.consume(processed)

    @benchmark
    def collection_copying_operations(self, bh: Blackhole) -> None:
        with self.memory_delta("Collection copying"):
            rng = self.random
            copy1 = list(self.test_list)
            copy2 = deque(self.test_list)
            set_from_list = set(self.test_list)

            copy1.extend(copy2)
            to_remove = set(list(set_from_list)[:1000])
            copy1 = [x for x in copy1 if x not in to_remove]

            index_map = {
                i: f"mapped_{i}" for i in range(min(len(self.test_list), self.iterations))
            }

            nested: list[list[int]] = []
            half = len(self.test_list) // 2
            if half:
                for _ in range(self.iterations // 100):
                    start = rng.randrange(half)
                    end = rng.randrange(half) + half
                    nested.append(self.test_list[start:end])

            bh.consume(copy1)
            bh.consume(copy2)
            bh.consume(set_from_list)
            bh.consume(index_map)
            bh.consume(nested)

    @benchmark
    def high_memory_pressure_collections(self, bh: Blackhole) -> None:
        """Binary blobs in a list and dict with periodic removal to fragment."""
        with self.memory_delta("High memory pressure"):
            self.create_memory_pressure(50)
            rng = self.random
            data_list: list[bytes] = []
            data_map: dict[str, bytes] = {}

            for i in range(self.iterations // 10):
                data = rng.randbytes(rng.randrange(8192) + 1024)
                data_list.append(data)
                data_map[f"binary_{i}"] = data

                if i > 0 and i % 100 == 0:
                    for _ in range(10):
                        if not data_list:
                            break
                        data_list.pop(rng.randrange(len(data_list)))
                    data_map.pop(f"binary_{i - rng.randrange(50)}", None)

            total_size = sum(len(d) for d in data_list)

            bh.consume(data_list)
            bh.consume(data_map)
            bh.consume(total_size)
