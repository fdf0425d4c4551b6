#!/usr/bin/env python3
"""
Run the multiplication benchmark sweep and write the comparison chart.

With no arguments the default sweep runs and the chart is saved to
assets/multiplication_times.png, next to a CSV and a LaTeX table of the
aggregated results.
"""

import argparse
import sys
from pathlib import Path

from benchmark_multiplication import (
    BenchmarkConfig,
    ConfigurationError,
    host_description,
    run_sweep,
    verify_strategies,
)
from multiplication import Algorithm
from performance_plots import (
    DEFAULT_CHART_PATH,
    ArtifactWriteError,
    create_performance_plot,
    format_summary,
    write_latex_table,
    write_results_csv,
)
from result_aggregation import (
    aggregate,
    crossover_regressions,
    find_crossovers,
    fit_scaling_exponent,
)


def build_parser() -> argparse.ArgumentParser:
    defaults = BenchmarkConfig()
    parser = argparse.ArgumentParser(
        description="Benchmark big-integer multiplication algorithms across operand sizes")
    parser.add_argument("--min-bits", type=int, default=defaults.min_bits,
                        help="Smallest operand size in bits")
    parser.add_argument("--max-bits", type=int, default=defaults.max_bits,
                        help="Largest operand size in bits")
    spacing = parser.add_mutually_exclusive_group()
    spacing.add_argument("--growth", type=float, default=defaults.growth_factor,
                         help="Multiplicative step between sizes")
    spacing.add_argument("--step", type=int, default=None,
                         help="Additive step between sizes (overrides --growth)")
    parser.add_argument("--warmup", type=int, default=defaults.warmup,
                        help="Untimed calls per cell")
    parser.add_argument("--repetitions", type=int, default=defaults.repetitions,
                        help="Timed calls per cell")
    parser.add_argument("--timeout", type=float, default=defaults.timeout,
                        help="Per-call time budget in seconds")
    parser.add_argument("--karatsuba-threshold", type=int, default=defaults.karatsuba_threshold,
                        help="Limb count below which Karatsuba uses schoolbook")
    parser.add_argument("--toom3-threshold", type=int, default=defaults.toom3_threshold,
                        help="Limb count below which Toom-3 uses Karatsuba")
    parser.add_argument("--algorithms", nargs="+", default=list(defaults.algorithms),
                        metavar="NAME",
                        help=f"Algorithms to run ({', '.join(a.value for a in Algorithm)})")
    seeding = parser.add_mutually_exclusive_group()
    seeding.add_argument("--seed", type=int, default=defaults.seed,
                         help="Seed for operand generation")
    seeding.add_argument("--random-seed", action="store_true",
                         help="Draw operands from OS entropy")
    parser.add_argument("--workers", type=int, default=defaults.workers,
                        help="Worker processes for cells of one size (0 = one per core)")
    parser.add_argument("--output", type=Path, default=DEFAULT_CHART_PATH,
                        help="Chart image path")
    parser.add_argument("--no-verify", action="store_true",
                        help="Skip checking products against the reference")
    parser.add_argument("--keep-going-after-timeout", action="store_true",
                        help="Keep running an algorithm at larger sizes after it timed out")
    parser.add_argument("--quiet", action="store_true", help="Only print the summary")
    return parser


def config_from_args(args: argparse.Namespace) -> BenchmarkConfig:
    return BenchmarkConfig(
        min_bits=args.min_bits,
        max_bits=args.max_bits,
        growth_factor=args.growth,
        step_bits=args.step,
        warmup=args.warmup,
        repetitions=args.repetitions,
        timeout=args.timeout,
        karatsuba_threshold=args.karatsuba_threshold,
        toom3_threshold=args.toom3_threshold,
        algorithms=tuple(args.algorithms),
        seed=None if args.random_seed else args.seed,
        workers=args.workers,
        verify=not args.no_verify,
        skip_after_timeout=not args.keep_going_after_timeout,
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = config_from_args(args)
    verbose = not args.quiet

    try:
        config.validate()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if config.verify:
        if verbose:
            print("Verifying multiplication implementations...")
        disagreements = verify_strategies(multipliers=config.multipliers(), verbose=verbose)
        if disagreements:
            print("\nCannot run benchmarks due to disagreements between implementations.",
                  file=sys.stderr)
            return 1

    sweep = run_sweep(config, verbose=verbose)
    results = aggregate(sweep.samples)
    failed = sweep.failed_cells()
    crossovers = find_crossovers(results, failed_cells=failed)

    print("\nMean time per multiplication:")
    print(format_summary(results, sweep.bit_lengths))
    print("\nCrossover points:")
    for crossover in crossovers:
        print(f"  {crossover}")
        regressions = crossover_regressions(results, crossover.faster, crossover.slower,
                                            failed_cells=failed)
        if regressions:
            print(f"    regression: {crossover.faster} slower again at {regressions} bits")
    print("\nEmpirical scaling exponents:")
    for name in config.multipliers():
        exponent = fit_scaling_exponent(results, name)
        if exponent is not None:
            print(f"  {name}: {exponent:.3f}")

    chart = Path(args.output)
    try:
        create_performance_plot(results, chart, crossovers=crossovers,
                                failures=sweep.failures, subtitle=host_description())
        write_results_csv(results, chart.with_suffix(".csv"))
        write_latex_table(results, sweep.bit_lengths, config.repetitions, chart.with_suffix(".tex"))
    except ArtifactWriteError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"\nGraph saved to {chart}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
