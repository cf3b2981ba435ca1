"""
Selection helpers shared by the GA variants.

Ties between equally fit candidates always go to the lowest population
index, so runs are reproducible for a given random stream.
"""

import math
import numpy as np


def tournament_selection(
    fitness: np.ndarray,
    tournament_size: int,
    rng: np.random.Generator
) -> int:
    """
    Pick a parent by tournament.

    Draws `tournament_size` distinct population indices uniformly and
    returns the fittest; among equal fitness the lowest index wins.

    Args:
        fitness: Fitness per population member
        tournament_size: Number of contestants
        rng: Random number generator

    Returns:
        Population index of the winner
    """
    contestants = np.sort(rng.choice(fitness.shape[0], size=tournament_size, replace=False))
    # argmax returns the first maximum, i.e. the lowest index after sorting
    return int(contestants[np.argmax(fitness[contestants])])


def elite_indices(fitness: np.ndarray, elite_fraction: float) -> np.ndarray:
    """
    Indices of the top ceil(elite_fraction * N) members by fitness.

    Ties keep population order.
    """
    # round first so that e.g. 0.2 * 15 does not ceil to 4
    num_elites = max(1, math.ceil(round(elite_fraction * fitness.shape[0], 9)))
    order = np.argsort(-fitness, kind='stable')
    return order[:num_elites]
