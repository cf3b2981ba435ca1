"""
Mutation operator for fixed-cardinality candidates.

Implements the swap mutation: one active site is switched off and one
inactive site switched on, which keeps exactly M sites active.
"""

from typing import Optional, Tuple
import numpy as np


def swap_mutation(
    individual: np.ndarray,
    rng: np.random.Generator
) -> Tuple[np.ndarray, Optional[Tuple[int, int]]]:
    """
    Swap one active site for one inactive site, both chosen uniformly.

    Args:
        individual: Indicator vector to mutate (left untouched)
        rng: Random number generator

    Returns:
        Tuple of (mutated indicator vector, (removed_site, added_site))
        The swap is None when every site is active (M == L) or none is.
    """
    active = np.flatnonzero(individual)
    inactive = np.flatnonzero(individual == 0)

    mutated = np.array(individual, dtype=np.int8, copy=True)

    if active.size == 0 or inactive.size == 0:
        return mutated, None

    removed = int(active[rng.integers(0, active.size)])
    added = int(inactive[rng.integers(0, inactive.size)])

    mutated[removed] = 0
    mutated[added] = 1
    return mutated, (removed, added)


def maybe_mutate(
    individual: np.ndarray,
    mutation_rate: float,
    rng: np.random.Generator
) -> Tuple[np.ndarray, Optional[Tuple[int, int]]]:
    """
    Apply swap_mutation with probability mutation_rate.

    Returns:
        Same as swap_mutation; the swap is None when no mutation happened
    """
    if rng.random() >= mutation_rate:
        return individual, None
    return swap_mutation(individual, rng)
