"""
Uniform random sampling baseline.

Draws combinations uniformly with replacement and stops at the first one
meeting the coverage requirement or when the evaluation budget runs out.
"""

from typing import Optional, Tuple
import numpy as np

from coverage_model.oracle import CoverageOracle, TableCoverageOracle
from .data_models import SearchResult, TerminationReason
from .greedy import is_better
from .representation import random_subset, to_subset, validate_problem


def random_search(
    oracle: CoverageOracle,
    num_active: int,
    required_coverage: float,
    rng: np.random.Generator,
    max_evals: int = 1000,
    verbose: bool = False
) -> SearchResult:
    """
    Sample random combinations until one meets the coverage requirement.

    With a TableCoverageOracle the draw is a uniform row index of the
    combination table; with any other oracle it is a uniform random subset
    of M sites. The best draw is tracked by coverage, then average power.

    Args:
        oracle: Coverage oracle to evaluate draws with
        num_active: Number of sites to activate (M)
        required_coverage: Coverage ratio that stops the search
        rng: Random number generator
        max_evals: Maximum number of draws
        verbose: Print a message when the target is reached

    Returns:
        SearchResult; evaluations equal the draw that met the target, or
        max_evals when the budget ran out
    """
    num_sites = oracle.num_sites
    validate_problem(num_sites, num_active)
    if max_evals < 1:
        raise ValueError(f"max_evals must be >= 1, got {max_evals}")
    if not 0.0 <= required_coverage <= 1.0:
        raise ValueError(f"required_coverage must be in [0, 1], got {required_coverage}")

    use_table = isinstance(oracle, TableCoverageOracle)
    if use_table and oracle.num_active != num_active:
        raise ValueError(
            f"Table holds {oracle.num_active}-site combinations, requested M={num_active}"
        )

    best_subset: Tuple[int, ...] = ()
    best_index: Optional[int] = None
    best_coverage = -np.inf
    best_avg_power = -np.inf
    draw_found = 0
    termination = TerminationReason.BUDGET_EXHAUSTED
    draw = 0

    for draw in range(1, max_evals + 1):
        if use_table:
            index = int(rng.integers(0, oracle.num_combinations))
            coverage, avg_power = oracle.evaluate_index(index)
            subset = oracle.combination(index)
        else:
            index = None
            subset = to_subset(random_subset(num_sites, num_active, rng))
            coverage, avg_power = oracle.evaluate(subset)

        if is_better(coverage, avg_power, best_coverage, best_avg_power):
            best_subset = subset
            best_index = index
            best_coverage = coverage
            best_avg_power = avg_power
            draw_found = draw

        if coverage >= required_coverage:
            termination = TerminationReason.TARGET_REACHED
            if verbose:
                print(f"Target coverage met after {draw} random draws")
            break

    return SearchResult(
        algorithm="random",
        subset=best_subset,
        coverage=best_coverage,
        avg_power=best_avg_power,
        evaluations=draw,
        termination=termination,
        generation_found=draw_found,
        iterations=draw,
        best_index=best_index
    )
