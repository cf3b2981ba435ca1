"""
Feasibility analysis over the combination table.

Reports how many M-site combinations satisfy each (threshold, required
coverage) pair, which shows how hard a scenario is before searching it.
"""

from typing import Sequence
import numpy as np

from .oracle import TableCoverageOracle


def combination_coverage(table_oracle: TableCoverageOracle, threshold: float) -> np.ndarray:
    """Coverage ratio of every combination at a threshold (no evaluation cost)."""
    return np.mean(table_oracle.table >= threshold, axis=1)


def valid_combination_share(
    table_oracle: TableCoverageOracle,
    thresholds: Sequence[float],
    coverages: Sequence[float]
) -> np.ndarray:
    """
    Percentage of combinations meeting each coverage at each threshold.

    Reads the table directly; the oracle's evaluation counter is untouched.

    Args:
        table_oracle: Table-backed oracle holding every combination
        thresholds: Power thresholds, in the table's unit
        coverages: Required coverage ratios in [0, 1]

    Returns:
        Array (len(thresholds), len(coverages)) of percentages in [0, 100]
    """
    share = np.zeros((len(thresholds), len(coverages)), dtype=float)

    for i, threshold in enumerate(thresholds):
        coverage = combination_coverage(table_oracle, threshold)
        for j, required in enumerate(coverages):
            share[i, j] = 100.0 * np.count_nonzero(coverage >= required) / coverage.shape[0]

    return share


def print_feasibility_report(
    share: np.ndarray,
    thresholds: Sequence[float],
    coverages: Sequence[float]
) -> None:
    """Print the share table with thresholds as rows."""
    header = "threshold | " + " ".join(f"{100 * c:6.0f}%" for c in coverages)
    print(header)
    print("-" * len(header))
    for i, threshold in enumerate(thresholds):
        row = " ".join(f"{value:6.2f}%" for value in share[i])
        print(f"{threshold:9.1f} | {row}")
