"""
Tests for charts and tables.
"""

import csv

import pytest

from benchmark_multiplication import CellFailure, FailureKind
from performance_plots import (
    ArtifactWriteError,
    create_latex_table,
    create_performance_plot,
    format_summary,
    scientific,
    write_latex_table,
    write_results_csv,
)
from result_aggregation import AggregatedResult, CrossoverPoint

RESULTS = [
    AggregatedResult("schoolbook", 64, 3, 1.0e-5, 1.0e-6),
    AggregatedResult("schoolbook", 128, 3, 4.0e-5, 2.0e-6),
    AggregatedResult("karatsuba", 64, 3, 2.0e-5, 1.0e-6),
    AggregatedResult("karatsuba", 128, 3, 3.0e-5, 1.0e-6),
]
BIT_LENGTHS = [64, 128]


class TestChart:
    """PNG chart output"""

    def test_writes_png(self, tmp_path) -> None:
        out = tmp_path / "assets" / "multiplication_times.png"
        path = create_performance_plot(
            RESULTS, out,
            crossovers=[CrossoverPoint("karatsuba", "schoolbook", 128),
                        CrossoverPoint("ntt", "schoolbook", None)],
            failures=[CellFailure("toom3", 128, FailureKind.TIMEOUT, "run 0 exceeded 1s"),
                      CellFailure("toom3", 256, FailureKind.SKIPPED, "timed out at a smaller size")],
            subtitle="4 cores")
        assert path == out
        assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_empty_results_still_write(self, tmp_path) -> None:
        out = tmp_path / "empty.png"
        create_performance_plot([], out)
        assert out.exists()

    def test_directory_target_raises(self, tmp_path) -> None:
        target = tmp_path / "chart.png"
        target.mkdir()
        with pytest.raises(ArtifactWriteError):
            create_performance_plot(RESULTS, target)

    def test_file_as_parent_raises(self, tmp_path) -> None:
        blocker = tmp_path / "assets"
        blocker.write_text("not a directory")
        with pytest.raises(ArtifactWriteError, match="cannot write chart"):
            create_performance_plot(RESULTS, blocker / "chart.png")


class TestTables:
    """CSV, LaTeX and console tables"""

    def test_csv(self, tmp_path) -> None:
        out = write_results_csv(RESULTS, tmp_path / "results.csv")
        with open(out, newline="") as fh:
            rows = list(csv.reader(fh))
        assert rows[0] == ["algorithm", "bits", "count", "mean_seconds", "std_seconds"]
        assert rows[1][:3] == ["schoolbook", "64", "3"]
        assert float(rows[1][3]) == pytest.approx(1.0e-5)
        assert len(rows) == 1 + len(RESULTS)

    def test_csv_unwritable_raises(self, tmp_path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        with pytest.raises(ArtifactWriteError):
            write_results_csv(RESULTS, blocker / "results.csv")

    def test_scientific(self) -> None:
        assert scientific(1.5e-5) == "$1.50 \\times 10^{-5}$"
        assert scientific(float("inf")) == "$\\infty$"

    def test_latex_marks_fastest(self) -> None:
        table = create_latex_table(RESULTS, BIT_LENGTHS, repetitions=3)
        lines = table.splitlines()
        schoolbook_row = next(line for line in lines if line.startswith("Schoolbook"))
        karatsuba_row = next(line for line in lines if line.startswith("Karatsuba"))
        # schoolbook wins at 64 bits, karatsuba at 128
        assert schoolbook_row.split(" & ")[1].startswith("$\\mathbf{")
        assert not schoolbook_row.split(" & ")[2].startswith("$\\mathbf{")
        assert karatsuba_row.split(" & ")[2].startswith("$\\mathbf{")
        assert "mean of 3 runs" in table

    def test_latex_missing_cell_is_infinity(self) -> None:
        table = create_latex_table(RESULTS, [64, 128, 256], repetitions=3)
        assert "$\\infty$" in table

    def test_write_latex(self, tmp_path) -> None:
        out = write_latex_table(RESULTS, BIT_LENGTHS, 3, tmp_path / "table.tex")
        assert out.read_text().startswith("\\begin{table}")

    def test_summary(self) -> None:
        summary = format_summary(RESULTS, [64, 128, 256])
        lines = summary.splitlines()
        assert "Schoolbook" in lines[0] and "Karatsuba" in lines[0]
        assert "0.010 ms" in lines[2]
        assert lines[-1].startswith("     256")
        assert lines[-1].rstrip().endswith("-")
