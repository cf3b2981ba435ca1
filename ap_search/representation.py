"""
Fixed-cardinality candidate representation.

A candidate activates exactly M of L sites. It is held either as an
indicator vector (length L, exactly M ones) or as a sorted tuple of site
indices; helpers here convert between the two and keep the invariant.
"""

from typing import Iterable, Optional, Tuple
import numpy as np

from coverage_model.measurements import ProblemDefinitionError
from coverage_model.oracle import CardinalityError, CoverageOracle, TableCoverageOracle


def validate_problem(num_sites: int, num_active: int) -> None:
    """
    Fail fast on degenerate subset sizes.

    Raises:
        ProblemDefinitionError: If L <= 0, M <= 0 or M > L
    """
    if num_sites <= 0:
        raise ProblemDefinitionError(f"Number of sites must be positive, got L={num_sites}")
    if num_active <= 0:
        raise ProblemDefinitionError(f"Number of active sites must be positive, got M={num_active}")
    if num_active > num_sites:
        raise ProblemDefinitionError(
            f"Cannot activate M={num_active} sites out of L={num_sites}"
        )


def to_indicator(subset: Iterable[int], num_sites: int) -> np.ndarray:
    """Indicator vector (int8, length L) of a subset."""
    indicator = np.zeros(num_sites, dtype=np.int8)
    indicator[list(subset)] = 1
    return indicator


def to_subset(indicator: np.ndarray) -> Tuple[int, ...]:
    """Sorted site indices that are active in an indicator vector."""
    return tuple(int(site) for site in np.flatnonzero(indicator))


def check_candidate(indicator: np.ndarray, num_active: int) -> None:
    """
    Assert the cardinality invariant on an indicator vector.

    Raises:
        CardinalityError: If the vector is not binary or has != M ones
    """
    if not np.isin(indicator, (0, 1)).all():
        raise CardinalityError("Indicator vector must be binary")
    active = int(np.sum(indicator))
    if active != num_active:
        raise CardinalityError(f"Candidate has {active} active sites, expected {num_active}")


def random_subset(num_sites: int, num_active: int, rng: np.random.Generator) -> np.ndarray:
    """
    Draw a uniformly random candidate with exactly M active sites.

    Uses a random permutation, so the result is feasible by construction.
    """
    indicator = np.zeros(num_sites, dtype=np.int8)
    indicator[rng.permutation(num_sites)[:num_active]] = 1
    return indicator


def repair_to_cardinality(
    indicator: np.ndarray,
    num_active: int,
    scores: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    Trim or pad a binary vector to exactly M active sites.

    Too many active sites: keep the M active ones with the highest score.
    Too few: add the inactive sites with the highest score. Equal scores
    are resolved towards the lowest site index.

    Args:
        indicator: Binary vector of length L
        num_active: Target number of active sites (M)
        scores: Per-site preference (defaults to all zeros)

    Returns:
        New indicator vector with exactly M ones
    """
    indicator = np.asarray(indicator, dtype=np.int8).copy()
    num_sites = indicator.shape[0]
    validate_problem(num_sites, num_active)

    if scores is None:
        scores = np.zeros(num_sites)

    active = int(indicator.sum())
    if active == num_active:
        return indicator

    # Stable sort on -score keeps lower indices first among equal scores
    order = np.argsort(-np.asarray(scores, dtype=float), kind='stable')

    if active > num_active:
        keep = [site for site in order if indicator[site] == 1][:num_active]
        repaired = np.zeros(num_sites, dtype=np.int8)
        repaired[keep] = 1
        return repaired

    missing = num_active - active
    additions = [site for site in order if indicator[site] == 0][:missing]
    indicator[additions] = 1
    return indicator


def table_row(oracle: CoverageOracle, subset: Iterable[int]) -> Optional[int]:
    """Row of a subset in a table-backed oracle; None for other oracles."""
    if isinstance(oracle, TableCoverageOracle):
        return oracle.index_of(subset)
    return None
