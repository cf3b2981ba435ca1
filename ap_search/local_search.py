"""
Local search (1-swap hill climbing) baseline.

Starts from the greedy solution and explores the full swap neighbourhood
each round, applying the single best strictly improving swap until none
is left.
"""

from typing import Iterable, Optional

from coverage_model.oracle import CoverageOracle
from .data_models import SearchResult, TerminationReason
from .greedy import greedy_construction, is_better
from .representation import table_row, validate_problem


def local_search(
    oracle: CoverageOracle,
    num_active: int,
    initial: Optional[Iterable[int]] = None
) -> SearchResult:
    """
    Improve a subset by best-improvement 1-swap hill climbing.

    Each round tries every (active site, inactive site) swap, active sites
    and inactive sites both in increasing index order, and keeps the best
    by coverage then average power (first found wins ties). The round's
    best swap is applied only if it strictly improves the current solution.

    Args:
        oracle: Coverage oracle; must accept partial subsets when no initial
            subset is given (the greedy seed builds up to M sites)
        num_active: Number of sites to activate (M)
        initial: Starting subset; defaults to the greedy solution

    Returns:
        SearchResult with termination LOCAL_OPTIMUM; evaluations include
        the greedy seed's evaluations
    """
    num_sites = oracle.num_sites
    validate_problem(num_sites, num_active)

    if initial is None:
        seed = greedy_construction(oracle, num_active)
        current = list(seed.subset)
        current_coverage = seed.coverage
        current_avg_power = seed.avg_power
        total_evaluations = seed.evaluations
    else:
        current = sorted(int(site) for site in initial)
        if len(current) != num_active:
            raise ValueError(
                f"Initial subset has {len(current)} sites, expected {num_active}"
            )
        current_coverage, current_avg_power = oracle.evaluate(current)
        total_evaluations = 1

    rounds = 0
    last_improvement = 0

    while True:
        rounds += 1
        inactive = [site for site in range(num_sites) if site not in current]

        best_candidate = None
        best_coverage = current_coverage
        best_avg_power = current_avg_power

        for i in range(len(current)):
            for site_in in inactive:
                candidate = sorted(current[:i] + [site_in] + current[i + 1:])
                coverage, avg_power = oracle.evaluate(candidate)
                total_evaluations += 1

                if is_better(coverage, avg_power, best_coverage, best_avg_power):
                    best_candidate = candidate
                    best_coverage = coverage
                    best_avg_power = avg_power

        if best_candidate is None:
            break

        current = best_candidate
        current_coverage = best_coverage
        current_avg_power = best_avg_power
        last_improvement = rounds

    return SearchResult(
        algorithm="local_search",
        subset=tuple(current),
        coverage=current_coverage,
        avg_power=current_avg_power,
        evaluations=total_evaluations,
        termination=TerminationReason.LOCAL_OPTIMUM,
        generation_found=last_improvement,
        iterations=rounds,
        best_index=table_row(oracle, current)
    )
