"""
Charts and tables for multiplication benchmark results.

Outputs
=======
* A log-log chart of mean time against operand bit-length, one line per
  algorithm with standard-deviation error bars and crossover markers
* A CSV file with one row per (algorithm, size)
* A LaTeX table with the fastest algorithm per size in bold
* A plain-text summary for the console
"""

import csv
import math
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from benchmark_multiplication import CellFailure, FailureKind
from multiplication import ALGORITHM_LABELS, Algorithm
from result_aggregation import AggregatedResult, CrossoverPoint, algorithms_in, series

DEFAULT_CHART_PATH = Path("assets") / "multiplication_times.png"


class ArtifactWriteError(OSError):
    """Raised when a chart or report file cannot be written."""
    pass


def algorithm_label(name: str) -> str:
    try:
        return ALGORITHM_LABELS[Algorithm(name)]
    except ValueError:
        return name


def scientific(val: float) -> str:
    """Return a LaTeX-friendly scientific-notation string."""
    if val == float("inf") or math.isnan(val):
        return "$\\infty$"
    exponent = int(math.floor(math.log10(abs(val)))) if val else 0
    mantissa = val / (10 ** exponent) if val else 0
    return f"${mantissa:.2f} \\times 10^{{{exponent}}}$"


# ----------------------------------------------------------------------------
# 1.  Chart
# ----------------------------------------------------------------------------

def create_performance_plot(results: Sequence[AggregatedResult],
                            out_path: Path = DEFAULT_CHART_PATH,
                            crossovers: Iterable[CrossoverPoint] = (),
                            failures: Iterable[CellFailure] = (),
                            subtitle: Optional[str] = None) -> Path:
    """Save a log-log runtime chart; raises ArtifactWriteError if it cannot be written."""
    out_path = Path(out_path)
    fig, ax = plt.subplots(figsize=(10, 6), dpi=150)
    markers = ["o", "s", "^", "d", "X", "*"]

    for idx, name in enumerate(algorithms_in(results)):
        points = series(results, name)
        xs = [r.bits for r in points]
        ys = [r.mean for r in points]
        errs = [r.std for r in points]
        ax.errorbar(xs, ys, yerr=errs, label=algorithm_label(name),
                    marker=markers[idx % len(markers)], linewidth=2, capsize=3)

    for crossover in crossovers:
        if crossover.observed:
            ax.axvline(x=crossover.bits, color="black", linestyle="--", alpha=0.4)
            ax.annotate(f"{algorithm_label(crossover.faster)} < {algorithm_label(crossover.slower)}",
                        xy=(crossover.bits, 0.02), xycoords=("data", "axes fraction"),
                        rotation=90, fontsize=8, ha="right", va="bottom")

    notes = [f"{algorithm_label(f.algorithm)}: {f.kind.value} at {f.bits} bits"
             for f in failures if f.kind is not FailureKind.SKIPPED]
    if notes:
        ax.text(0.02, 0.98, "\n".join(notes), transform=ax.transAxes, ha="left", va="top",
                fontsize=8, bbox=dict(facecolor="white", alpha=0.9, pad=5, edgecolor="lightgray"))

    ax.set_xscale("log", base=2)
    ax.set_yscale("log")
    ax.grid(True, which="both", ls="--", alpha=0.6)
    ax.set_xlabel("Operand size (bits, log scale)")
    ax.set_ylabel("Mean execution time (s, log scale)")
    title = "Multiplication Algorithms Comparison"
    ax.set_title(f"{title}\n{subtitle}" if subtitle else title)
    if results:
        ax.legend(loc="lower right")
    fig.tight_layout()

    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out_path)
    except OSError as exc:
        raise ArtifactWriteError(f"cannot write chart to {out_path}: {exc}") from exc
    finally:
        plt.close(fig)
    return out_path


# ----------------------------------------------------------------------------
# 2.  Tables
# ----------------------------------------------------------------------------

def write_results_csv(results: Sequence[AggregatedResult], out_path: Path) -> Path:
    out_path = Path(out_path)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w", newline="") as fh:
            writer = csv.writer(fh)
            writer.writerow(["algorithm", "bits", "count", "mean_seconds", "std_seconds"])
            for r in results:
                writer.writerow([r.algorithm, r.bits, r.count, f"{r.mean:.9g}", f"{r.std:.9g}"])
    except OSError as exc:
        raise ArtifactWriteError(f"cannot write results to {out_path}: {exc}") from exc
    return out_path


def create_latex_table(results: Sequence[AggregatedResult], bit_lengths: Sequence[int],
                       repetitions: int) -> str:
    """Return a LaTeX table of mean times; failed cells show as infinity."""
    names = algorithms_in(results)
    means = {(r.algorithm, r.bits): r.mean for r in results}

    # fastest algorithm per size (ignoring missing cells)
    fastest = {}
    for bits in bit_lengths:
        measured = [(name, means[(name, bits)]) for name in names if (name, bits) in means]
        fastest[bits] = min(measured, key=lambda p: p[1])[0] if measured else None

    table = ["\\begin{table}[h]", "\\centering", "\\small"]
    table.append("\\begin{tabular}{|l|" + "c|" * len(bit_lengths) + "}")
    table.append("\\hline")
    header = ["\\textbf{Algorithm}"] + [f"$\\mathbf{{{bits}}}$" for bits in bit_lengths]
    table.append(" & ".join(header) + " \\\\")
    table.append("\\hline")

    for name in names:
        row = [algorithm_label(name)]
        for bits in bit_lengths:
            cell = scientific(means.get((name, bits), float("inf")))
            if fastest[bits] == name:
                cell = "$\\mathbf{" + cell.strip("$") + "}$"
            row.append(cell)
        table.append(" & ".join(row) + " \\\\")
    table.append("\\hline\n\\end{tabular}")

    caption = (
        f"Mean multiplication time in seconds by operand size in bits (mean of {repetitions} runs). "
        "Bold entries mark the fastest algorithm; $\\infty$ marks a timed-out or failed cell."
    )
    table.append(f"\\caption{{{caption}}}")
    table.append("\\label{tab:multiplication}")
    table.append("\\end{table}")
    return "\n".join(table)


def write_latex_table(results: Sequence[AggregatedResult], bit_lengths: Sequence[int],
                      repetitions: int, out_path: Path) -> Path:
    out_path = Path(out_path)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(create_latex_table(results, bit_lengths, repetitions))
    except OSError as exc:
        raise ArtifactWriteError(f"cannot write table to {out_path}: {exc}") from exc
    return out_path


def format_summary(results: Sequence[AggregatedResult], bit_lengths: Sequence[int]) -> str:
    """Console table of mean times in milliseconds; '-' marks a missing cell."""
    names = algorithms_in(results)
    means = {(r.algorithm, r.bits): r.mean for r in results}
    width = max([12] + [len(algorithm_label(n)) for n in names])

    lines: List[str] = []
    header = f"{'Bits':>8} | " + " | ".join(f"{algorithm_label(n):>{width}}" for n in names)
    lines.append(header)
    lines.append("-" * 9 + "|" + "|".join("-" * (width + 2) for _ in names))
    for bits in bit_lengths:
        cells = []
        for name in names:
            if (name, bits) in means:
                cells.append(f"{means[(name, bits)] * 1000:>{width - 3}.3f} ms")
            else:
                cells.append(f"{'-':>{width}}")
        lines.append(f"{bits:>8} | " + " | ".join(cells))
    return "\n".join(lines)
