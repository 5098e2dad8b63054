"""Tests for memory sampling and formatting."""

import resource

import pytest

from gcbench.sampler import (
    GIB,
    KIB,
    MIB,
    MemorySnapshot,
    force_gc_and_sample,
    format_bytes,
    format_duration,
    sample,
)


class TestFormatBytes:
    """Tests for format_bytes."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (KIB, "1.00 KB"),
            (1536, "1.50 KB"),
            (MIB - 1, "1024.00 KB"),
            (MIB, "1.00 MB"),
            (int(2.5 * MIB), "2.50 MB"),
            (GIB, "1.00 GB"),
            (3 * GIB, "3.00 GB"),
        ],
    )
    def test_boundaries(self, value, expected):
        """Test the unit boundaries of format_bytes."""
        assert format_bytes(value) == expected

    def test_negative_values_are_bytes(self):
        """Test that a shrinking heap is reported in bytes."""
        assert format_bytes(-4096) == "-4096 B"

    def test_deterministic(self):
        """Test that formatting is deterministic."""
        assert format_bytes(123_456_789) == format_bytes(123_456_789)

    @pytest.mark.parametrize(
        ("value", "suffix"),
        [(500, " B"), (5 * KIB, " KB"), (5 * MIB, " MB"), (5 * GIB, " GB")],
    )
    def test_unit_per_range(self, value, suffix):
        """Test the unit suffix chosen for each range."""
        assert format_bytes(value).endswith(suffix)


class TestFormatDuration:
    """Tests for format_duration."""

    def test_seconds_only(self):
        """Test that short durations omit minutes."""
        assert format_duration(42.7) == "42 sec"

    def test_minutes_and_seconds(self):
        """Test that long durations include minutes."""
        assert format_duration(125) == "2 min 5 sec"


class TestSnapshots:
    """Tests for memory snapshots."""

    def test_sample_reads_process_memory(self):
        """Test that a snapshot reads real process memory."""
        snapshot = sample()

        assert snapshot.heap_used > 0
        assert snapshot.heap_committed >= snapshot.heap_used
        assert snapshot.heap_max > 0
        assert snapshot.timestamp > 0

    def test_heap_max_reads_data_limit(self, monkeypatch):
        """Test that heap_max is the data-segment limit when one is set."""
        real_getrlimit = resource.getrlimit

        def fake_getrlimit(which):
            if which == resource.RLIMIT_DATA:
                return 256 * MIB, resource.RLIM_INFINITY
            return real_getrlimit(which)

        monkeypatch.setattr(resource, "getrlimit", fake_getrlimit)

        assert sample().heap_max == 256 * MIB

    def test_delta_uses_heap_used(self):
        """Test that delta is after.used - before.used."""
        before = MemorySnapshot(100, 200, 1000, 10, 20, timestamp=1)
        after = MemorySnapshot(350, 400, 1000, 99, 99, timestamp=2)

        assert before.delta(after) == 250
        assert after.delta(before) == -250

    def test_delta_grows_with_retained_allocation(self):
        """Test that holding a large buffer shows up as a non-negative delta."""
        before = force_gc_and_sample(pause=0.0)
        retained = b"\x01" * (32 * MIB)
        after = sample()

        assert before.delta(after) > 0
        del retained

    def test_str(self):
        """Test the snapshot summary string in KB."""
        snapshot = MemorySnapshot(2 * KIB, 4 * KIB, 8 * KIB, KIB, KIB, timestamp=0)

        assert str(snapshot) == "Heap: 2/4/8 KB, NonHeap: 1/1 KB"
