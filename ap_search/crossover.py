"""
Crossover operator for fixed-cardinality candidates.

The child draws its M active sites from the union of both parents' active
sites, so recombination never breaks the cardinality invariant.
"""

from typing import Tuple
import numpy as np


def union_crossover(
    parent_a: np.ndarray,
    parent_b: np.ndarray,
    num_active: int,
    rng: np.random.Generator
) -> Tuple[np.ndarray, bool]:
    """
    Combine two parents by sampling M sites from their union.

    Args:
        parent_a: First parent indicator vector
        parent_b: Second parent indicator vector
        num_active: Number of active sites (M)
        rng: Random number generator

    Returns:
        Tuple of (child indicator vector, used_fallback)
        where used_fallback is True when the union held fewer than M sites
        and the child is a copy of parent_a

    Note:
        With valid parents the union always has at least M sites; the
        fallback only guards against malformed input.
    """
    union = np.flatnonzero(np.logical_or(parent_a, parent_b))

    if union.size < num_active:
        return np.array(parent_a, dtype=np.int8, copy=True), True

    chosen = rng.choice(union, size=num_active, replace=False)
    child = np.zeros(parent_a.shape[0], dtype=np.int8)
    child[chosen] = 1
    return child, False
