"""
Benchmark harness for the multiplication strategies.

For every operand bit-length (ascending) one operand pair is generated and
shared by all strategies, so each algorithm is timed on identical input.
Each (algorithm, size) cell runs a few untimed warm-up calls followed by the
timed repetitions.  Every call runs under a SIGALRM wall-clock budget; a cell
that runs out of time, raises an arithmetic error or returns a wrong product
is recorded as failed and the sweep moves on.
"""

import math
import random
import signal
import threading
import time
import warnings
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np
import psutil

from bigint import BigInt
from multiplication import (
    DEFAULT_ALGORITHMS,
    KARATSUBA_THRESHOLD,
    MIN_THRESHOLD,
    TOOM3_THRESHOLD,
    Algorithm,
    make_multiplier,
)

Multiplier = Callable[[BigInt, BigInt], BigInt]


class ConfigurationError(ValueError):
    """Raised for a benchmark configuration that cannot be run."""
    pass


class CellTimeout(Exception):
    """Raised inside a timed call when its time budget runs out."""
    pass


# ----------------------------------------------------------------------------
# 1.  Configuration
# ----------------------------------------------------------------------------

@dataclass
class BenchmarkConfig:
    min_bits: int = 64
    max_bits: int = 65536
    growth_factor: float = 2.0
    # Arithmetic spacing; overrides growth_factor when set
    step_bits: Optional[int] = None
    warmup: int = 1
    repetitions: int = 5
    timeout: float = 30.0
    karatsuba_threshold: int = KARATSUBA_THRESHOLD
    toom3_threshold: int = TOOM3_THRESHOLD
    algorithms: Tuple[str, ...] = tuple(alg.value for alg in DEFAULT_ALGORITHMS)
    # None draws operands from OS entropy instead of a fixed seed
    seed: Optional[int] = 0
    # 1 runs sequentially, 0 uses one worker per physical core
    workers: int = 1
    verify: bool = True
    skip_after_timeout: bool = True

    def validate(self) -> None:
        """Raise ConfigurationError before any measurement starts."""
        if self.min_bits <= 0:
            raise ConfigurationError(f"min_bits must be positive, got {self.min_bits}")
        if self.max_bits < self.min_bits:
            raise ConfigurationError(
                f"max_bits ({self.max_bits}) is smaller than min_bits ({self.min_bits})")
        if self.step_bits is not None:
            if self.step_bits <= 0:
                raise ConfigurationError(f"step_bits must be positive, got {self.step_bits}")
        elif not self.growth_factor > 1.0:
            raise ConfigurationError(f"growth_factor must exceed 1, got {self.growth_factor}")
        if self.warmup < 0:
            raise ConfigurationError(f"warmup must not be negative, got {self.warmup}")
        if self.repetitions < 1:
            raise ConfigurationError(f"repetitions must be at least 1, got {self.repetitions}")
        if not self.timeout > 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")
        for name in ("karatsuba_threshold", "toom3_threshold"):
            if getattr(self, name) < MIN_THRESHOLD:
                raise ConfigurationError(
                    f"{name} must be at least {MIN_THRESHOLD}, got {getattr(self, name)}")
        if not self.algorithms:
            raise ConfigurationError("no algorithms enabled")
        known = [alg.value for alg in Algorithm]
        for name in self.algorithms:
            if name not in known:
                raise ConfigurationError(
                    f"unknown algorithm {name!r}; choose from {', '.join(known)}")
        if len(set(self.algorithms)) != len(self.algorithms):
            raise ConfigurationError(f"duplicate algorithms in {list(self.algorithms)}")
        if self.workers < 0:
            raise ConfigurationError(f"workers must not be negative, got {self.workers}")

    def bit_lengths(self) -> List[int]:
        """Ascending operand sizes; max_bits is always the last one."""
        if self.step_bits is not None:
            sizes = list(range(self.min_bits, self.max_bits + 1, self.step_bits))
        else:
            count = int(math.floor(math.log(self.max_bits / self.min_bits)
                                   / math.log(self.growth_factor) + 1e-9)) + 1
            sizes = np.rint(self.min_bits * self.growth_factor ** np.arange(count)).astype(int).tolist()
        if sizes[-1] != self.max_bits:
            sizes.append(self.max_bits)
        return sorted(set(sizes))

    def resolved_workers(self) -> int:
        if self.workers == 0:
            return psutil.cpu_count(logical=False) or 1
        return self.workers

    def multipliers(self) -> Dict[str, Multiplier]:
        return {
            Algorithm(name).value: make_multiplier(name, self.karatsuba_threshold,
                                                   self.toom3_threshold)
            for name in self.algorithms
        }


# ----------------------------------------------------------------------------
# 2.  Records
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class OperandPair:
    bits: int
    a: BigInt
    b: BigInt

    @classmethod
    def generate(cls, bits: int, seed: Optional[int] = None) -> "OperandPair":
        """Two random operands of exactly ``bits`` bits, reproducible per (seed, bits)."""
        rng = random.Random(f"{seed}:{bits}") if seed is not None else random.Random()
        return cls(bits, BigInt.random(bits, rng), BigInt.random(bits, rng))


class FailureKind(str, Enum):
    TIMEOUT = "timeout"
    ARITHMETIC = "arithmetic"
    MISMATCH = "mismatch"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class BenchmarkSample:
    algorithm: str
    bits: int
    elapsed: float
    run_index: int


@dataclass(frozen=True)
class CellFailure:
    algorithm: str
    bits: int
    kind: FailureKind
    message: str


@dataclass
class SweepResult:
    config: BenchmarkConfig
    bit_lengths: List[int]
    samples: List[BenchmarkSample] = field(default_factory=list)
    failures: List[CellFailure] = field(default_factory=list)

    def failed_cells(self) -> Set[Tuple[str, int]]:
        return {(f.algorithm, f.bits) for f in self.failures}


# ----------------------------------------------------------------------------
# 3.  Timing with a wall-clock budget
# ----------------------------------------------------------------------------

def timeout_handler(signum, frame):
    """Handler for SIGALRM signal."""
    raise CellTimeout()


def timeouts_supported() -> bool:
    return hasattr(signal, "SIGALRM") and threading.current_thread() is threading.main_thread()


def run_with_timeout(func, args, timeout_seconds):
    """
    Run a function with a timeout.
    Returns (result, execution_time) or (None, float('inf')) if timeout occurs.
    Only the call itself is timed.
    """
    if not timeouts_supported():
        warnings.warn("SIGALRM timeouts need the main thread of a POSIX process; "
                      "running without a time budget", RuntimeWarning)
        start_time = time.perf_counter()
        result = func(*args)
        return result, time.perf_counter() - start_time

    previous = signal.signal(signal.SIGALRM, timeout_handler)
    signal.setitimer(signal.ITIMER_REAL, timeout_seconds)
    try:
        start_time = time.perf_counter()
        result = func(*args)
        execution_time = time.perf_counter() - start_time
        return result, execution_time
    except CellTimeout:
        return None, float('inf')
    finally:
        # Disable the alarm
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous)


def run_cell(algorithm: str, multiplier: Multiplier, operands: OperandPair,
             warmup: int, repetitions: int, timeout: float,
             expected: Optional[BigInt] = None) -> Tuple[List[BenchmarkSample], Optional[CellFailure]]:
    """
    Benchmark one (algorithm, size) cell.

    Returns the cell's samples, or no samples and the failure that aborted it.
    """
    samples: List[BenchmarkSample] = []
    bits = operands.bits

    def failed(kind: FailureKind, message: str):
        return [], CellFailure(algorithm, bits, kind, message)

    product = None
    try:
        for _ in range(warmup):
            product, _ = run_with_timeout(multiplier, (operands.a, operands.b), timeout)
            if product is None:
                return failed(FailureKind.TIMEOUT, f"warm-up call exceeded {timeout:g}s")
        for run_index in range(repetitions):
            product, elapsed = run_with_timeout(multiplier, (operands.a, operands.b), timeout)
            if product is None:
                return failed(FailureKind.TIMEOUT, f"run {run_index} exceeded {timeout:g}s")
            samples.append(BenchmarkSample(algorithm, bits, elapsed, run_index))
    except CellTimeout:
        return failed(FailureKind.TIMEOUT, f"call exceeded {timeout:g}s")
    except ArithmeticError as exc:
        return failed(FailureKind.ARITHMETIC, f"{type(exc).__name__}: {exc}")

    if expected is not None and product != expected:
        return failed(FailureKind.MISMATCH, "product differs from the reference product")
    return samples, None


# ----------------------------------------------------------------------------
# 4.  Sweep driver
# ----------------------------------------------------------------------------

def _report_cell(name: str, samples: List[BenchmarkSample], failure: Optional[CellFailure]) -> None:
    if failure is not None:
        print(f"  {name}: {failure.kind.value} - {failure.message}")
    else:
        mean = sum(s.elapsed for s in samples) / len(samples)
        print(f"  {name}: {mean:.6f} seconds (mean of {len(samples)})")


def _sweep(config: BenchmarkConfig, multipliers: Mapping[str, Multiplier],
           result: SweepResult, verbose: bool,
           executor: Optional[ProcessPoolExecutor]) -> None:
    timed_out: Set[str] = set()

    for bits in result.bit_lengths:
        operands = OperandPair.generate(bits, config.seed)
        expected = None
        if config.verify:
            expected = BigInt.from_int(int(operands.a) * int(operands.b))
        if verbose:
            print(f"Testing {bits}-bit operands")

        pending = []
        for name, multiplier in multipliers.items():
            if config.skip_after_timeout and name in timed_out:
                failure = CellFailure(name, bits, FailureKind.SKIPPED,
                                      "timed out at a smaller size")
                pending.append((name, ([], failure)))
                continue
            args = (name, multiplier, operands, config.warmup,
                    config.repetitions, config.timeout, expected)
            if executor is not None:
                pending.append((name, executor.submit(run_cell, *args)))
            else:
                pending.append((name, run_cell(*args)))

        # Cells of one size are collected in submission order
        for name, outcome in pending:
            samples, failure = outcome if isinstance(outcome, tuple) else outcome.result()
            if failure is not None:
                result.failures.append(failure)
                if failure.kind is FailureKind.TIMEOUT:
                    timed_out.add(name)
            result.samples.extend(samples)
            if verbose:
                _report_cell(name, samples, failure)


def run_sweep(config: Optional[BenchmarkConfig] = None,
              multipliers: Optional[Mapping[str, Multiplier]] = None,
              verbose: bool = True) -> SweepResult:
    """
    Run the full benchmark sweep.

    ``multipliers`` maps algorithm names to callables and defaults to the
    configured algorithms; parallel mode needs picklable callables.
    """
    config = config or BenchmarkConfig()
    config.validate()
    if multipliers is None:
        multipliers = config.multipliers()
    elif not multipliers:
        raise ConfigurationError("no algorithms enabled")

    result = SweepResult(config, config.bit_lengths())
    workers = config.resolved_workers()
    if verbose:
        print(f"Benchmarking {len(multipliers)} algorithms on {len(result.bit_lengths)} sizes "
              f"from {result.bit_lengths[0]} to {result.bit_lengths[-1]} bits "
              f"({config.warmup} warm-up, {config.repetitions} timed runs, "
              f"{config.timeout:g}s timeout, {workers} worker(s))")

    if workers == 1:
        _sweep(config, multipliers, result, verbose, None)
    else:
        with ProcessPoolExecutor(max_workers=workers) as executor:
            _sweep(config, multipliers, result, verbose, executor)
    return result


# ----------------------------------------------------------------------------
# 5.  Cross-checking implementations
# ----------------------------------------------------------------------------

VERIFICATION_BIT_LENGTHS = (1, 31, 32, 33, 63, 64, 65, 1024, 3000, 10000)


def verify_strategies(bit_lengths: Sequence[int] = VERIFICATION_BIT_LENGTHS,
                      seed: Optional[int] = 0,
                      multipliers: Optional[Mapping[str, Multiplier]] = None,
                      verbose: bool = False) -> List[Tuple[str, int]]:
    """
    Check every strategy against the built-in integer product.

    Covers a zero operand plus one random pair per bit-length.  Returns the
    (algorithm, bits) combinations that disagree; bits 0 denotes the zero case.
    Raises ConfigurationError if ``bit_lengths`` is empty.
    """
    if not bit_lengths:
        raise ConfigurationError("no bit lengths to verify")
    if multipliers is None:
        multipliers = {alg.value: make_multiplier(alg) for alg in Algorithm}

    cases = [(0, BigInt(), BigInt.random(max(bit_lengths), random.Random(seed)))]
    for bits in bit_lengths:
        pair = OperandPair.generate(bits, seed)
        cases.append((bits, pair.a, -pair.b))

    disagreements = []
    for bits, a, b in cases:
        expected = BigInt.from_int(int(a) * int(b))
        for name, multiplier in multipliers.items():
            if multiplier(a, b) != expected:
                disagreements.append((name, bits))

    if verbose:
        if disagreements:
            print(f"Found {len(disagreements)} disagreements:")
            for name, bits in disagreements:
                print(f"  {name} disagrees at {bits} bits")
        else:
            print(f"All {len(multipliers)} algorithms agree on {len(cases)} operand pairs")
    return disagreements


def host_description() -> str:
    """Short hardware summary for chart subtitles."""
    physical = psutil.cpu_count(logical=False)
    logical = psutil.cpu_count(logical=True)
    memory_gb = psutil.virtual_memory().total / (1024 ** 3)
    return f"{physical or '?'} cores ({logical or '?'} threads), {memory_gb:.0f} GB RAM"
