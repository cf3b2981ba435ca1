"""
Greedy construction baseline.

Adds one site per step, always the one giving the best coverage (ties:
higher average power, then lower site index). Always returns exactly M
sites, whether or not the coverage target is met.
"""

import numpy as np

from coverage_model.oracle import CoverageOracle
from .data_models import SearchResult, TerminationReason
from .representation import validate_problem


def is_better(coverage: float, avg_power: float, best_coverage: float, best_avg_power: float) -> bool:
    """Strictly better by coverage, then by average power."""
    return coverage > best_coverage or (coverage == best_coverage and avg_power > best_avg_power)


def greedy_construction(oracle: CoverageOracle, num_active: int) -> SearchResult:
    """
    Build a subset of M sites incrementally.

    Step k evaluates every remaining site (in index order) added to the
    current selection, so the run costs sum_{k=0}^{M-1} (L - k) evaluations.
    The oracle must accept partial subsets (DirectCoverageOracle).

    Args:
        oracle: Coverage oracle accepting subsets of 1..M sites
        num_active: Number of sites to activate (M)

    Returns:
        SearchResult with termination COMPLETED
    """
    num_sites = oracle.num_sites
    validate_problem(num_sites, num_active)

    selected = []
    remaining = list(range(num_sites))
    total_evaluations = 0
    best_coverage = -np.inf
    best_avg_power = -np.inf

    for _ in range(num_active):
        step_best = -1
        step_coverage = -np.inf
        step_avg_power = -np.inf

        for site in remaining:
            coverage, avg_power = oracle.evaluate(selected + [site])
            total_evaluations += 1

            if is_better(coverage, avg_power, step_coverage, step_avg_power):
                step_best = site
                step_coverage = coverage
                step_avg_power = avg_power

        selected.append(step_best)
        remaining.remove(step_best)
        best_coverage = step_coverage
        best_avg_power = step_avg_power

    return SearchResult(
        algorithm="greedy",
        subset=tuple(sorted(selected)),
        coverage=best_coverage,
        avg_power=best_avg_power,
        evaluations=total_evaluations,
        termination=TerminationReason.COMPLETED,
        generation_found=num_active,
        iterations=num_active
    )


def greedy_evaluation_count(num_sites: int, num_active: int) -> int:
    """Evaluations consumed by greedy_construction for (L, M)."""
    return sum(num_sites - k for k in range(num_active))
