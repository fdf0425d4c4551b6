"""
Tests for result aggregation and crossover detection.
"""

import math

import pytest

from benchmark_multiplication import BenchmarkSample
from result_aggregation import (
    AggregatedResult,
    CrossoverPoint,
    aggregate,
    algorithms_in,
    crossover_regressions,
    find_crossover,
    find_crossovers,
    fit_scaling_exponent,
    series,
)


def results_from(table):
    """Build results from {algorithm: {bits: mean}}."""
    return [AggregatedResult(name, bits, 1, mean, 0.0)
            for name, row in table.items() for bits, mean in sorted(row.items())]


class TestAggregate:
    """Grouping samples into per-cell statistics"""

    def test_mean_and_sample_std(self) -> None:
        samples = [BenchmarkSample("karatsuba", 64, t, i) for i, t in enumerate([1.0, 2.0, 3.0, 4.0])]
        (result,) = aggregate(samples)
        assert result.count == 4
        assert result.mean == pytest.approx(2.5)
        assert result.std == pytest.approx(math.sqrt(5.0 / 3.0))

    def test_single_sample_has_zero_std(self) -> None:
        (result,) = aggregate([BenchmarkSample("ntt", 128, 0.5, 0)])
        assert result.count == 1
        assert result.std == 0.0

    def test_groups_by_algorithm_and_size(self) -> None:
        samples = [
            BenchmarkSample("toom3", 256, 3.0, 0),
            BenchmarkSample("schoolbook", 64, 1.0, 0),
            BenchmarkSample("toom3", 64, 2.0, 0),
            BenchmarkSample("schoolbook", 64, 3.0, 1),
        ]
        results = aggregate(samples)
        assert [(r.algorithm, r.bits, r.count) for r in results] == [
            ("toom3", 64, 1), ("toom3", 256, 1), ("schoolbook", 64, 2)]
        assert algorithms_in(results) == ["toom3", "schoolbook"]

    def test_empty(self) -> None:
        assert aggregate([]) == []

    def test_series_is_sorted(self) -> None:
        results = results_from({"ntt": {512: 3.0, 64: 1.0, 128: 2.0}})
        assert [r.bits for r in series(results, "ntt")] == [64, 128, 512]


class TestCrossover:
    """Crossover detection between two algorithms"""

    def test_first_size_where_faster_wins(self) -> None:
        results = results_from({
            "karatsuba": {64: 2.0, 128: 3.0, 256: 4.0, 512: 6.0},
            "schoolbook": {64: 1.0, 128: 2.5, 256: 4.0, 512: 9.0},
        })
        assert find_crossover(results, "karatsuba", "schoolbook") == CrossoverPoint(
            "karatsuba", "schoolbook", 256)

    def test_no_crossover(self) -> None:
        results = results_from({
            "ntt": {64: 5.0, 128: 6.0},
            "schoolbook": {64: 1.0, 128: 2.0},
        })
        crossover = find_crossover(results, "ntt", "schoolbook")
        assert not crossover.observed
        assert crossover.bits is None
        assert "no crossover observed" in str(crossover)

    def test_failed_slower_cell_counts_as_crossover(self) -> None:
        results = results_from({
            "ntt": {64: 5.0, 128: 6.0, 256: 7.0},
            "schoolbook": {64: 1.0, 128: 2.0},
        })
        crossover = find_crossover(results, "ntt", "schoolbook",
                                   failed_cells=[("schoolbook", 256)])
        assert crossover.bits == 256
        assert str(crossover) == "ntt vs schoolbook: crossover at 256 bits"

    def test_missing_cell_without_failure_is_ignored(self) -> None:
        results = results_from({
            "ntt": {64: 5.0, 128: 6.0},
            "schoolbook": {64: 1.0},
        })
        assert not find_crossover(results, "ntt", "schoolbook").observed

    def test_find_crossovers_skips_unmeasured_pairs(self) -> None:
        results = results_from({
            "karatsuba": {64: 1.0},
            "schoolbook": {64: 2.0},
        })
        crossovers = find_crossovers(results)
        assert crossovers == [CrossoverPoint("karatsuba", "schoolbook", 64)]

    def test_regressions_after_crossover(self) -> None:
        results = results_from({
            "toom3": {64: 2.0, 128: 1.0, 256: 3.0, 512: 2.0},
            "karatsuba": {64: 1.0, 128: 1.5, 256: 2.0, 512: 2.0},
        })
        assert crossover_regressions(results, "toom3", "karatsuba") == [256]

    def test_regression_within_tolerance_is_ignored(self) -> None:
        results = results_from({
            "toom3": {64: 1.0, 128: 2.1},
            "karatsuba": {64: 1.0, 128: 2.0},
        })
        assert crossover_regressions(results, "toom3", "karatsuba") == []
        assert crossover_regressions(results, "toom3", "karatsuba", tolerance=0.01) == [128]

    def test_regression_after_failure_crossover(self) -> None:
        results = results_from({
            "karatsuba": {64: 1.0, 128: 2.0},
            "schoolbook": {128: 1.0},
        })
        failed = {("schoolbook", 64)}
        assert find_crossover(results, "karatsuba", "schoolbook", failed).bits == 64
        assert crossover_regressions(results, "karatsuba", "schoolbook",
                                     failed_cells=failed) == [128]

    def test_dc_pair_reported_by_default(self) -> None:
        results = results_from({
            "dc": {64: 1.0, 128: 4.0},
            "karatsuba": {64: 1.5, 128: 3.0},
        })
        assert find_crossovers(results) == [CrossoverPoint("karatsuba", "dc", 128)]


class TestScalingExponent:
    """Log-log slope of time against size"""

    def test_quadratic(self) -> None:
        results = results_from({"schoolbook": {bits: (bits / 64.0) ** 2 for bits in (64, 128, 256, 512)}})
        assert fit_scaling_exponent(results, "schoolbook") == pytest.approx(2.0)

    def test_karatsuba_exponent(self) -> None:
        exponent = math.log2(3)
        results = results_from({"karatsuba": {bits: bits ** exponent for bits in (256, 1024, 4096)}})
        assert fit_scaling_exponent(results, "karatsuba") == pytest.approx(exponent)

    def test_min_bits_filters_small_sizes(self) -> None:
        table = {64: 100.0, 128: 4.0, 256: 16.0, 512: 64.0}
        results = results_from({"schoolbook": table})
        assert fit_scaling_exponent(results, "schoolbook", min_bits=128) == pytest.approx(2.0)

    def test_too_few_points(self) -> None:
        results = results_from({"ntt": {64: 1.0}})
        assert fit_scaling_exponent(results, "ntt") is None
        assert fit_scaling_exponent(results, "toom3") is None
