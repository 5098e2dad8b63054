"""Tests for the workload library."""

import pytest

from gcbench.workloads import (
    WORKLOADS,
    Blackhole,
    CollectionOperationsBenchmark,
    ObjectAllocationBenchmark,
    StringProcessingBenchmark,
    WorkloadOptions,
    all_benchmark_ids,
    find_workload,
    workload_names,
)

SMALL = WorkloadOptions(iterations=200, target_size=500)


class TestRegistry:
    """Tests for workload lookup."""

    def test_names_in_order(self):
        """Test the workload listing order."""
        assert workload_names() == [
            "ObjectAllocationBenchmark",
            "CollectionOperationsBenchmark",
            "StringProcessingBenchmark",
        ]

    def test_find_exact_case_insensitive(self):
        """Test that an exact name matches in any case."""
        assert find_workload("stringprocessingbenchmark") is StringProcessingBenchmark

    def test_find_substring(self):
        """Test that a partial name finds the containing class."""
        assert find_workload("Allocation") is ObjectAllocationBenchmark
        assert find_workload("collection") is CollectionOperationsBenchmark

    def test_find_unknown(self):
        """Test that an unknown or empty name finds nothing."""
        assert find_workload("NoSuchBenchmark") is None
        assert find_workload("") is None

    def test_benchmark_ids(self):
        """Test that ids are Class.method and unique."""
        ids = all_benchmark_ids()

        assert "ObjectAllocationBenchmark.small_object_allocation" in ids
        assert "CollectionOperationsBenchmark.concurrent_dict_operations" in ids
        assert "StringProcessingBenchmark.string_interning_operations" in ids
        assert len(ids) == len(set(ids))
        assert all(i.count(".") == 1 for i in ids)

    def test_method_counts(self):
        """Test the number of benchmarks in each workload."""
        assert len(ObjectAllocationBenchmark.benchmark_methods()) == 6
        assert len(CollectionOperationsBenchmark.benchmark_methods()) == 6
        assert len(StringProcessingBenchmark.benchmark_methods()) == 8


class TestBlackhole:
    """Tests for Blackhole."""

    def test_consume_counts(self):
        """Test that the blackhole counts and folds consumed objects."""
        bh = Blackhole()
        bh.consume("a")
        bh.consume([1, 2])

        assert bh.count == 2
        assert bh.token != 0


@pytest.mark.parametrize("workload_cls", WORKLOADS, ids=lambda w: w.__name__)
class TestWorkloadExecution:
    """Every benchmark method runs and reports a memory delta."""

    def test_all_methods_run(self, workload_cls, capsys):
        """Test that every benchmark runs and prints one memory-delta line."""
        workload = workload_cls(SMALL)
        workload.setup()
        bh = Blackhole()
        try:
            for method in workload_cls.benchmark_methods():
                getattr(workload, method)(bh)
        finally:
            workload.teardown()

        out = capsys.readouterr().out
        delta_lines = [line for line in out.splitlines() if " - Memory delta: " in line]
        assert len(delta_lines) == len(workload_cls.benchmark_methods())
        assert bh.count > 0


class TestDeterminism:
    """Tests for seeded, repeatable workloads."""

    def test_setup_reseeds(self):
        """Test that setup resets the random source to the seed."""
        workload = ObjectAllocationBenchmark(WorkloadOptions(seed=7))
        workload.setup()
        first = [workload.random.random() for _ in range(5)]
        workload.setup()
        second = [workload.random.random() for _ in range(5)]

        assert first == second

    def test_options_defaults(self):
        """Test that class defaults apply without options."""
        workload = CollectionOperationsBenchmark()

        assert workload.iterations == CollectionOperationsBenchmark.DEFAULT_ITERATIONS
        assert workload.target_size == CollectionOperationsBenchmark.DEFAULT_TARGET_SIZE
        assert workload.options.seed == 42

    def test_invalid_options(self):
        """Test that invalid options are rejected."""
        with pytest.raises(ValueError):
            WorkloadOptions(iterations=0)


class TestMemoryDelta:
    """Tests for the memory-delta report line."""

    def test_line_format(self, capsys):
        """Test the memory-delta line format."""
        workload = StringProcessingBenchmark(SMALL)

        with workload.memory_delta("Custom label"):
            _ = [str(i) for i in range(1000)]

        out = capsys.readouterr().out.strip()
        assert out.startswith("Custom label - Memory delta: ")
        assert out.split(": ", 1)[1].split()[1] in ("B", "KB", "MB", "GB")
