"""
Probabilistic (estimation-of-distribution) GA for AP activation.

Instead of a population carried between generations, the search keeps a
per-site activation probability vector. Each generation samples candidates
from it, evaluates them, and moves the vector towards the site frequencies
of the elite candidates.
"""

from typing import Optional, Tuple
import numpy as np

from coverage_model.config_loader import SAMPLING_POLICIES
from coverage_model.oracle import CoverageOracle
from .data_models import GenerationStats, SearchResult, TerminationReason
from .representation import repair_to_cardinality, table_row, to_subset, validate_problem
from .selection import elite_indices


class SamplingExhaustedError(RuntimeError):
    """Raised when rejection sampling cannot produce exactly M active sites"""
    pass


def sample_candidate(
    probabilities: np.ndarray,
    num_active: int,
    rng: np.random.Generator,
    max_attempts: int
) -> Tuple[np.ndarray, bool]:
    """
    Draw one candidate by rejection sampling.

    Each site is switched on by an independent Bernoulli trial with its
    probability; a draw is accepted only with exactly M sites on.

    Args:
        probabilities: Activation probability per site
        num_active: Required number of active sites (M)
        rng: Random number generator
        max_attempts: Draws allowed before giving up

    Returns:
        Tuple of (indicator vector, exhausted)
        When exhausted is True the vector is the last rejected draw.
    """
    draw = np.zeros(probabilities.shape[0], dtype=np.int8)
    for _ in range(max_attempts):
        draw = (rng.random(probabilities.shape[0]) < probabilities).astype(np.int8)
        if int(draw.sum()) == num_active:
            return draw, False
    return draw, True


def update_probabilities(
    probabilities: np.ndarray,
    elite_frequency: np.ndarray,
    learning_rate: float,
    num_active: int
) -> np.ndarray:
    """
    Move the probability vector towards the elite site frequencies.

    p <- (1 - alpha) * p + alpha * elite_frequency, then rescaled so that
    sum(p) == M and clipped to at most 1.

    Returns:
        New probability vector
    """
    updated = (1.0 - learning_rate) * probabilities + learning_rate * elite_frequency
    total = updated.sum()
    if total > 0:
        updated = updated * (num_active / total)
    return np.minimum(updated, 1.0)


def _validate_params(
    population_size: int,
    num_generations: int,
    learning_rate: float,
    patience: int,
    elite_fraction: float,
    max_sampling_attempts: int,
    on_sampling_exhausted: str,
    required_coverage: float
) -> None:
    """Raise ValueError on out-of-range EDA parameters."""
    if population_size < 1:
        raise ValueError(f"population_size must be >= 1, got {population_size}")
    if num_generations < 1:
        raise ValueError(f"num_generations must be >= 1, got {num_generations}")
    if not 0.0 <= learning_rate <= 1.0:
        raise ValueError(f"learning_rate must be in [0, 1], got {learning_rate}")
    if patience < 1:
        raise ValueError(f"patience must be >= 1, got {patience}")
    if not 0.0 < elite_fraction <= 1.0:
        raise ValueError(f"elite_fraction must be in (0, 1], got {elite_fraction}")
    if max_sampling_attempts < 1:
        raise ValueError(f"max_sampling_attempts must be >= 1, got {max_sampling_attempts}")
    if on_sampling_exhausted not in SAMPLING_POLICIES:
        raise ValueError(
            f"on_sampling_exhausted must be one of {SAMPLING_POLICIES}, "
            f"got '{on_sampling_exhausted}'"
        )
    if not 0.0 <= required_coverage <= 1.0:
        raise ValueError(f"required_coverage must be in [0, 1], got {required_coverage}")


def probabilistic_ga(
    oracle: CoverageOracle,
    num_active: int,
    required_coverage: float,
    rng: np.random.Generator,
    population_size: int = 10,
    num_generations: int = 50,
    learning_rate: float = 0.1,
    patience: int = 15,
    elite_fraction: float = 0.2,
    max_sampling_attempts: int = 10000,
    on_sampling_exhausted: str = "repair",
    max_workers: Optional[int] = None,
    verbose: bool = False
) -> SearchResult:
    """
    Search for M active sites with an estimation-of-distribution GA.

    Algorithm:
        1. p = M/L for every site
        2. Per generation:
           a. Sample population_size candidates from p (rejection sampling)
           b. Evaluate them and record max/mean fitness and mean power
           c. Keep the best if strictly better than the best-so-far
           d. Stop on success, after patience generations without
              improvement, or at the cap
           e. Elite update of p from the top ceil(elite_fraction * N)

    When rejection sampling exceeds max_sampling_attempts the last draw is
    trimmed/padded to M sites using p as preference ("repair"), or
    SamplingExhaustedError is raised ("raise").

    Args:
        oracle: Coverage oracle to evaluate candidates with
        num_active: Number of sites to activate (M)
        required_coverage: Coverage ratio that counts as success
        rng: Random number generator
        population_size: Candidates sampled per generation
        num_generations: Maximum number of generations
        learning_rate: Weight of the elite frequency in the update (alpha)
        patience: Generations without improvement before stopping
        elite_fraction: Share of the population used for the update
        max_sampling_attempts: Rejection-sampling budget per candidate
        on_sampling_exhausted: "repair" or "raise"
        max_workers: Threads for evaluating a generation (None = sequential)
        verbose: Print success/early-stopping messages

    Returns:
        SearchResult with history and the final probability vector

    Raises:
        SamplingExhaustedError: If sampling fails and the policy is "raise"
    """
    num_sites = oracle.num_sites
    validate_problem(num_sites, num_active)
    _validate_params(population_size, num_generations, learning_rate, patience,
                     elite_fraction, max_sampling_attempts, on_sampling_exhausted,
                     required_coverage)

    probabilities = np.full(num_sites, num_active / num_sites)

    best_solution: Optional[np.ndarray] = None
    best_coverage = -np.inf
    best_avg_power = -np.inf
    generation_found = None
    no_improvement = 0
    total_evaluations = 0
    sampling_repairs = 0
    history = []
    termination = TerminationReason.GENERATION_CAP
    generation = 0

    for generation in range(1, num_generations + 1):
        population = np.zeros((population_size, num_sites), dtype=np.int8)

        for i in range(population_size):
            candidate, exhausted = sample_candidate(
                probabilities, num_active, rng, max_sampling_attempts
            )
            if exhausted:
                if on_sampling_exhausted == "raise":
                    raise SamplingExhaustedError(
                        f"No candidate with exactly {num_active} active sites after "
                        f"{max_sampling_attempts} draws at generation {generation}"
                    )
                candidate = repair_to_cardinality(candidate, num_active, probabilities)
                sampling_repairs += 1
            population[i] = candidate

        subsets = [to_subset(individual) for individual in population]
        fitness, avg_power = oracle.evaluate_many(subsets, max_workers=max_workers)
        total_evaluations += population_size

        current = int(np.argmax(fitness))
        if fitness[current] > best_coverage:
            best_solution = population[current].copy()
            best_coverage = float(fitness[current])
            best_avg_power = float(avg_power[current])
            generation_found = generation
            no_improvement = 0
        else:
            no_improvement += 1

        history.append(GenerationStats(
            generation=generation,
            max_fitness=float(fitness.max()),
            mean_fitness=float(fitness.mean()),
            mean_avg_power=float(avg_power.mean()),
            best_so_far=best_coverage
        ))

        if best_coverage >= required_coverage:
            termination = TerminationReason.TARGET_REACHED
            if verbose:
                print(f"Valid solution found at generation {generation} "
                      f"with coverage {100 * best_coverage:.2f}%")
            break

        if no_improvement >= patience:
            termination = TerminationReason.STAGNATION
            if verbose:
                print(f"Early stopping at generation {generation} due to no improvement")
            break

        if generation == num_generations:
            break

        elites = population[elite_indices(fitness, elite_fraction)]
        elite_frequency = elites.mean(axis=0)
        probabilities = update_probabilities(
            probabilities, elite_frequency, learning_rate, num_active
        )

    best_subset = to_subset(best_solution)

    return SearchResult(
        algorithm="probabilistic_ga",
        subset=best_subset,
        coverage=best_coverage,
        avg_power=best_avg_power,
        evaluations=total_evaluations,
        termination=termination,
        generation_found=generation_found,
        iterations=generation,
        history=history,
        probabilities=probabilities,
        best_index=table_row(oracle, best_subset),
        sampling_repairs=sampling_repairs
    )
