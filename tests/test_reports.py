"""Tests for report generation."""

import csv
import io

import pytest
from rich.console import Console

from gcbench.collector import ResultsAggregate
from gcbench.models import GCConfiguration, RunState, WorkloadResult
from gcbench.reports import (
    CSV_HEADER,
    ReportGenerator,
    build_summary_table,
    head_to_head_winner,
    print_summary,
)

TIMESTAMP = "20250101_120000"

G1 = GCConfiguration(name="G1 GC", flags=("-X", "gcbench.gc=generational"))
ZGC = GCConfiguration(name="ZGC", flags=("-X", "gil=0"))


def _workload(name: str, average: float, error: float = 0.5) -> WorkloadResult:
    return WorkloadResult(benchmark=name, average_time=average, error=error, unit="ms")


@pytest.fixture
def scenario() -> ResultsAggregate:
    """G1 GC succeeds with A=10ms and B=20ms; ZGC is unavailable."""
    aggregate = ResultsAggregate()
    aggregate.complete(
        G1,
        {"Bench.A": _workload("Bench.A", 10.0), "Bench.B": _workload("Bench.B", 20.0)},
        {"Small objects": "1.50 MB"},
        duration_seconds=12.0,
    )
    aggregate.record_failure(ZGC, "ZGC is not available in this build", RunState.UNAVAILABLE)
    return aggregate


def _generator(aggregate, temp_dir, baselines=("G1 GC", "ZGC")) -> ReportGenerator:
    return ReportGenerator(
        aggregate,
        log_dir=temp_dir / "log",
        result_dir=temp_dir / "result",
        timestamp=TIMESTAMP,
        baselines=baselines,
    )


class TestEndToEndScenario:
    """One available and one unavailable configuration."""

    def test_markdown_summary(self, scenario, temp_dir):
        """Test the Markdown summary rows for success and failure."""
        generator = _generator(scenario, temp_dir)
        generator.write_all()

        text = generator.markdown_path.read_text(encoding="utf-8")
        summary = text.split("\n\n")[0].splitlines()
        assert summary[0] == "| GC Algorithm | Status | Avg Time (ms) | Throughput (ops/sec) |"
        rows = summary[2:]
        assert len(rows) == 2
        assert rows[0] == "| G1 GC | ✅ | 15.00 | 75 |"
        assert rows[1] == "| ZGC | ❌ | N/A | N/A |"

    def test_csv_rows(self, scenario, temp_dir):
        """Test one CSV row per benchmark and one N/A row per failure."""
        generator = _generator(scenario, temp_dir)
        generator.write_all()

        with generator.csv_path.open(newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))

        assert tuple(rows[0]) == CSV_HEADER
        body = rows[1:]
        assert len(body) == 3
        assert body[0] == [
            "G1 GC",
            "-X gcbench.gc=generational",
            "SUCCESS",
            "Bench.A",
            "10.000",
            "0.500",
            "ms",
            "100",
        ]
        assert body[1][3] == "Bench.B"
        assert body[2] == ["ZGC", "-X gil=0", "FAILED", "N/A", "N/A", "N/A", "N/A", "N/A"]

    def test_head_to_head_missing_data(self, scenario, temp_dir):
        """Test that a failed baseline gives N/A times and winners."""
        generator = _generator(scenario, temp_dir)
        generator.write_all()

        text = generator.markdown_path.read_text(encoding="utf-8")
        assert "| Benchmark | G1 GC | ZGC | Winner |" in text
        assert "| A | 10.00 ms | N/A | N/A |" in text
        assert "| B | 20.00 ms | N/A | N/A |" in text

    def test_paths(self, scenario, temp_dir):
        """Test the timestamped report file names."""
        written = _generator(scenario, temp_dir).write_all()

        assert written == [
            temp_dir / "result" / f"gc_benchmark_comparison_{TIMESTAMP}.md",
            temp_dir / "log" / f"gc_benchmark_detailed_{TIMESTAMP}.txt",
            temp_dir / "log" / f"gc_benchmark_results_{TIMESTAMP}.csv",
        ]


class TestHeadToHead:
    """Tests for the baseline comparison table."""

    def test_winner_strictly_lower(self):
        """Test that the lower time wins."""
        assert head_to_head_winner(("A", 1.0), ("B", 2.0)) == "A"
        assert head_to_head_winner(("A", 3.0), ("B", 2.0)) == "B"

    def test_tie_is_na(self):
        """Test that equal times name no winner."""
        assert head_to_head_winner(("A", 2.0), ("B", 2.0)) == "N/A"

    def test_missing_is_na(self):
        """Test that a missing time names no winner."""
        assert head_to_head_winner(("A", None), ("B", 2.0)) == "N/A"
        assert head_to_head_winner(("A", 1.0), ("B", None)) == "N/A"

    def test_rows_sorted_with_winner(self, temp_dir):
        """Test that head-to-head rows are sorted by benchmark id."""
        aggregate = ResultsAggregate()
        aggregate.complete(
            G1,
            {"Bench.Z": _workload("Bench.Z", 5.0), "Bench.A": _workload("Bench.A", 1.0)},
        )
        aggregate.complete(
            ZGC,
            {"Bench.Z": _workload("Bench.Z", 4.0), "Bench.A": _workload("Bench.A", 1.0)},
        )
        out = io.StringIO()

        _generator(aggregate, temp_dir).write_markdown(out)

        lines = [line for line in out.getvalue().splitlines() if line.startswith("| ")]
        head = lines[lines.index("| Benchmark | G1 GC | ZGC | Winner |") + 1 :]
        assert head == [
            "| A | 1.00 ms | 1.00 ms | N/A |",
            "| Z | 5.00 ms | 4.00 ms | ZGC |",
        ]

    def test_no_baselines_skips_table(self, scenario, temp_dir):
        """Test that no baselines means no head-to-head table."""
        out = io.StringIO()

        _generator(scenario, temp_dir, baselines=None).write_markdown(out)

        assert "Winner" not in out.getvalue()


class TestDetailedReport:
    """Tests for the plain-text report."""

    def test_sections_follow_configuration_order(self, temp_dir):
        """Test that sections appear in configuration order, not completion order."""
        aggregate = ResultsAggregate()
        for name in ("X", "Y", "Z"):
            aggregate.begin(GCConfiguration(name=name))
        # Z finishes first, X last
        aggregate.complete(GCConfiguration(name="Z"), {"B.a": _workload("B.a", 1.0)})
        aggregate.record_failure(GCConfiguration(name="Y"), "crashed")
        aggregate.complete(GCConfiguration(name="X"), {"B.a": _workload("B.a", 2.0)})
        out = io.StringIO()

        _generator(aggregate, temp_dir).write_text(out)

        text = out.getvalue()
        positions = [text.index(f"GC: {name}\n") for name in ("X", "Y", "Z")]
        assert positions == sorted(positions)

    def test_contents(self, scenario, temp_dir):
        """Test the detailed text report sections."""
        out = io.StringIO()

        _generator(scenario, temp_dir).write_text(out)

        text = out.getvalue()
        assert "GC ALGORITHM PERFORMANCE BENCHMARK - DETAILED RESULTS" in text
        assert "Flags: -X gcbench.gc=generational" in text
        assert "Status: SUCCESS" in text
        assert "  Bench.A: 10.000 ± 0.500 ms (100 ops/sec)" in text
        assert "  Small objects: 1.50 MB" in text
        assert "Status: FAILED" in text
        assert "Error: ZGC is not available in this build" in text


class TestWriteFailures:
    """Tests for independent artifact writing."""

    def test_one_failure_does_not_block_others(self, scenario, temp_dir, caplog):
        """Test that an unwritable result dir still yields the log artifacts."""
        blocker = temp_dir / "result"
        blocker.write_text("not a directory")
        generator = _generator(scenario, temp_dir)

        written = generator.write_all()

        assert generator.markdown_path not in written
        assert generator.text_path.exists()
        assert generator.csv_path.exists()
        assert len(written) == 2
        assert "Failed to write report" in caplog.text


class TestConsoleSummary:
    """Tests for the rich summary table."""

    def test_table_rows(self, scenario):
        """Test one console row per configuration."""
        table = build_summary_table(scenario)

        assert table.row_count == 2

    def test_print_summary(self, scenario):
        """Test that the console summary includes failure reasons."""
        console = Console(file=io.StringIO(), width=120)

        print_summary(console, scenario)

        output = console.file.getvalue()
        assert "G1 GC" in output
        assert "15.00" in output
        assert "UNAVAILABLE" in output
        assert "not available in this build" in output
