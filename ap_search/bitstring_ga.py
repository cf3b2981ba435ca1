"""
Bitstring genetic algorithm for AP activation.

Candidates are indicator vectors with exactly M active sites. Every
generation is evaluated in full, the best-so-far is carried over unchanged
(elitism), and the remaining members come from tournament selection,
union crossover and swap mutation, all of which preserve the cardinality.
"""

from typing import Optional
import numpy as np

from coverage_model.oracle import CoverageOracle
from .data_models import GenerationStats, SearchResult, TerminationReason
from .representation import random_subset, table_row, to_subset, validate_problem
from .selection import tournament_selection
from .crossover import union_crossover
from .mutation import maybe_mutate


def _validate_params(
    population_size: int,
    num_generations: int,
    mutation_rate: float,
    patience: int,
    tournament_size: int,
    required_coverage: float
) -> None:
    """Raise ValueError on out-of-range GA parameters."""
    if population_size < 1:
        raise ValueError(f"population_size must be >= 1, got {population_size}")
    if num_generations < 1:
        raise ValueError(f"num_generations must be >= 1, got {num_generations}")
    if not 0.0 <= mutation_rate <= 1.0:
        raise ValueError(f"mutation_rate must be in [0, 1], got {mutation_rate}")
    if patience < 1:
        raise ValueError(f"patience must be >= 1, got {patience}")
    if not 1 <= tournament_size <= population_size:
        raise ValueError(
            f"tournament_size must be in [1, population_size={population_size}], "
            f"got {tournament_size}"
        )
    if not 0.0 <= required_coverage <= 1.0:
        raise ValueError(f"required_coverage must be in [0, 1], got {required_coverage}")


def bitstring_ga(
    oracle: CoverageOracle,
    num_active: int,
    required_coverage: float,
    rng: np.random.Generator,
    population_size: int = 10,
    num_generations: int = 50,
    mutation_rate: float = 0.6,
    patience: int = 10,
    tournament_size: int = 3,
    max_workers: Optional[int] = None,
    verbose: bool = False
) -> SearchResult:
    """
    Search for M active sites maximizing coverage with a bitstring GA.

    Algorithm:
        1. Draw population_size random candidates (random permutation)
        2. Per generation:
           a. Evaluate every candidate
           b. Keep the best if strictly better than the best-so-far,
              otherwise count a generation without improvement
           c. Stop if best-so-far >= required_coverage, if patience
              generations passed without improvement, or at the cap
           d. Next population: best-so-far first, then children from two
              tournament winners, union crossover and (with probability
              mutation_rate) swap mutation

    Args:
        oracle: Coverage oracle to evaluate candidates with
        num_active: Number of sites to activate (M)
        required_coverage: Coverage ratio that counts as success
        rng: Random number generator
        population_size: Candidates per generation
        num_generations: Maximum number of generations
        mutation_rate: Probability of mutating each child
        patience: Generations without improvement before stopping
        tournament_size: Contestants per tournament
        max_workers: Threads for evaluating a generation (None = sequential)
        verbose: Print success/early-stopping messages

    Returns:
        SearchResult with per-generation history
    """
    num_sites = oracle.num_sites
    validate_problem(num_sites, num_active)
    _validate_params(population_size, num_generations, mutation_rate,
                     patience, tournament_size, required_coverage)

    total_evaluations = 0

    population = [random_subset(num_sites, num_active, rng) for _ in range(population_size)]

    best_solution: Optional[np.ndarray] = None
    best_coverage = -np.inf
    best_avg_power = -np.inf
    generation_found = None
    no_improvement = 0
    history = []
    termination = TerminationReason.GENERATION_CAP
    generation = 0

    for generation in range(1, num_generations + 1):
        subsets = [to_subset(individual) for individual in population]
        fitness, avg_power = oracle.evaluate_many(subsets, max_workers=max_workers)
        total_evaluations += len(subsets)

        # Track best (first maximum wins ties)
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
                print(f"Found valid solution with {100 * best_coverage:.2f}% "
                      f"coverage at generation {generation}")
            break

        if no_improvement >= patience:
            termination = TerminationReason.STAGNATION
            if verbose:
                print(f"Early stopping at generation {generation}")
            break

        if generation == num_generations:
            break

        # Elitism: best-so-far always survives in slot 0
        new_population = [best_solution.copy()]

        for _ in range(1, population_size):
            parent_a = population[tournament_selection(fitness, tournament_size, rng)]
            parent_b = population[tournament_selection(fitness, tournament_size, rng)]

            child, _ = union_crossover(parent_a, parent_b, num_active, rng)
            child, _ = maybe_mutate(child, mutation_rate, rng)
            new_population.append(child)

        population = new_population

    best_subset = to_subset(best_solution)

    return SearchResult(
        algorithm="bitstring_ga",
        subset=best_subset,
        coverage=best_coverage,
        avg_power=best_avg_power,
        evaluations=total_evaluations,
        termination=termination,
        generation_found=generation_found,
        iterations=generation,
        history=history,
        best_index=table_row(oracle, best_subset)
    )
