"""
Reduce raw timing samples to per-(algorithm, size) statistics and derive
crossover points between algorithms.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np

from benchmark_multiplication import BenchmarkSample

# (faster-in-the-limit, slower-in-the-limit) pairs reported by default
DEFAULT_CROSSOVER_PAIRS = (
    ("karatsuba", "schoolbook"),
    ("toom3", "karatsuba"),
    ("ntt", "toom3"),
    ("ntt", "schoolbook"),
    ("karatsuba", "dc"),
)


@dataclass(frozen=True)
class AggregatedResult:
    algorithm: str
    bits: int
    count: int
    mean: float
    std: float


@dataclass(frozen=True)
class CrossoverPoint:
    faster: str
    slower: str
    bits: Optional[int]

    @property
    def observed(self) -> bool:
        return self.bits is not None

    def __str__(self) -> str:
        if self.bits is None:
            return f"{self.faster} vs {self.slower}: no crossover observed"
        return f"{self.faster} vs {self.slower}: crossover at {self.bits} bits"


def aggregate(samples: Iterable[BenchmarkSample]) -> List[AggregatedResult]:
    """
    Group samples by (algorithm, bits) and compute count, mean and the sample
    standard deviation (0.0 for a single sample).

    Algorithms keep the order in which they first appear; sizes ascend.
    """
    groups: Dict[Tuple[str, int], List[float]] = {}
    order: Dict[str, int] = {}
    for sample in samples:
        order.setdefault(sample.algorithm, len(order))
        groups.setdefault((sample.algorithm, sample.bits), []).append(sample.elapsed)

    results = []
    for (algorithm, bits), times in groups.items():
        values = np.asarray(times, dtype=float)
        std = float(np.std(values, ddof=1)) if len(values) > 1 else 0.0
        results.append(AggregatedResult(algorithm, bits, len(values), float(values.mean()), std))
    results.sort(key=lambda r: (order[r.algorithm], r.bits))
    return results


def series(results: Iterable[AggregatedResult], algorithm: str) -> List[AggregatedResult]:
    """One algorithm's results in ascending size order."""
    return sorted((r for r in results if r.algorithm == algorithm), key=lambda r: r.bits)


def algorithms_in(results: Iterable[AggregatedResult]) -> List[str]:
    names: List[str] = []
    for r in results:
        if r.algorithm not in names:
            names.append(r.algorithm)
    return names


def find_crossover(results: Sequence[AggregatedResult], faster: str, slower: str,
                   failed_cells: Iterable[Tuple[str, int]] = ()) -> CrossoverPoint:
    """
    First size at which mean(faster) <= mean(slower), walking sizes upward.

    A size where ``slower`` failed (e.g. timed out) while ``faster`` produced
    a result also counts.  Sizes outside the measured range are never
    extrapolated: no crossing gives CrossoverPoint(bits=None).
    """
    failed: Set[Tuple[str, int]] = set(failed_cells)
    fast = {r.bits: r.mean for r in series(results, faster)}
    slow = {r.bits: r.mean for r in series(results, slower)}
    for bits in sorted(fast):
        if bits in slow:
            if fast[bits] <= slow[bits]:
                return CrossoverPoint(faster, slower, bits)
        elif (slower, bits) in failed:
            return CrossoverPoint(faster, slower, bits)
    return CrossoverPoint(faster, slower, None)


def find_crossovers(results: Sequence[AggregatedResult],
                    pairs: Iterable[Tuple[str, str]] = DEFAULT_CROSSOVER_PAIRS,
                    failed_cells: Iterable[Tuple[str, int]] = ()) -> List[CrossoverPoint]:
    """Crossovers for every pair whose algorithms were both measured."""
    measured = set(algorithms_in(results))
    failed = set(failed_cells)
    return [find_crossover(results, faster, slower, failed)
            for faster, slower in pairs
            if faster in measured and slower in measured]


def crossover_regressions(results: Sequence[AggregatedResult], faster: str, slower: str,
                          tolerance: float = 0.1,
                          failed_cells: Iterable[Tuple[str, int]] = ()) -> List[int]:
    """
    Sizes above the crossover where ``faster`` is again slower than ``slower``
    by more than the relative tolerance.  An empty list means the crossover
    is monotonic.

    ``failed_cells`` must match the ones given to find_crossover so both
    agree on where the crossover is.
    """
    crossover = find_crossover(results, faster, slower, failed_cells)
    if not crossover.observed:
        return []
    fast = {r.bits: r.mean for r in series(results, faster)}
    slow = {r.bits: r.mean for r in series(results, slower)}
    return [bits for bits in sorted(fast)
            if bits > crossover.bits and bits in slow
            and fast[bits] > slow[bits] * (1.0 + tolerance)]


def fit_scaling_exponent(results: Sequence[AggregatedResult], algorithm: str,
                         min_bits: int = 0) -> Optional[float]:
    """
    Slope of log(mean time) against log(bits): the empirical complexity
    exponent (about 2 for schoolbook, 1.58 for Karatsuba, 1.46 for Toom-3).

    Returns None with fewer than two usable sizes.
    """
    points = [(r.bits, r.mean) for r in series(results, algorithm)
              if r.bits >= min_bits and r.mean > 0 and math.isfinite(r.mean)]
    if len(points) < 2:
        return None
    xs, ys = zip(*points)
    slope, _ = np.polyfit(np.log(xs), np.log(ys), 1)
    return float(slope)
