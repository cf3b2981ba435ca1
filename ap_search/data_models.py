"""
Data models for AP subset search.

Core data structures shared by every search algorithm: the terminal
result record, per-generation statistics, and termination reasons.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import numpy as np


class TerminationReason(Enum):
    """Why a search run stopped"""
    TARGET_REACHED = "target_reached"
    STAGNATION = "stagnation"
    GENERATION_CAP = "generation_cap"
    BUDGET_EXHAUSTED = "budget_exhausted"
    COMPLETED = "completed"
    LOCAL_OPTIMUM = "local_optimum"


@dataclass
class GenerationStats:
    """
    Summary of one GA generation.

    Attributes:
        generation: 1-based generation number
        max_fitness: Best fitness in the population
        mean_fitness: Mean fitness (== mean coverage) of the population
        mean_avg_power: Mean of the candidates' average aggregated power
        best_so_far: Coverage of the retained best after this generation
    """
    generation: int
    max_fitness: float
    mean_fitness: float
    mean_avg_power: float
    best_so_far: float


@dataclass
class SearchResult:
    """
    Terminal record of a search run.

    Attributes:
        algorithm: Name of the algorithm that produced the result
        subset: Best subset found, as sorted site indices
        coverage: Coverage ratio of the best subset
        avg_power: Average aggregated power of the best subset
        evaluations: Oracle evaluations consumed by this run
        termination: Which stop condition fired
        generation_found: Generation/round/draw at which the best was found
            (for the EDA: first generation meeting the target, if any)
        iterations: Generations, rounds or draws executed
        history: Per-generation statistics (GA algorithms only)
        probabilities: Final activation-probability vector (EDA only)
        best_index: Row of the subset in the combination table, if known
        sampling_repairs: Candidates repaired after the sampling budget ran
            out (EDA only)
    """
    algorithm: str
    subset: Tuple[int, ...]
    coverage: float
    avg_power: float
    evaluations: int
    termination: TerminationReason
    generation_found: Optional[int] = None
    iterations: int = 0
    history: List[GenerationStats] = field(default_factory=list)
    probabilities: Optional[np.ndarray] = None
    best_index: Optional[int] = None
    sampling_repairs: int = 0

    @property
    def fitness(self) -> float:
        """Fitness of the best subset (coverage, no power weighting)."""
        return self.coverage

    def meets_coverage(self, required_coverage: float) -> bool:
        """Whether the best subset satisfies the coverage requirement."""
        return self.coverage >= required_coverage

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert result to a plain dictionary for reporting.

        Returns:
            Dictionary with scalar, list and string values only
        """
        return {
            "algorithm": self.algorithm,
            "subset": list(self.subset),
            "coverage": self.coverage,
            "avg_power": self.avg_power,
            "evaluations": self.evaluations,
            "termination": self.termination.value,
            "generation_found": self.generation_found,
            "iterations": self.iterations,
            "best_index": self.best_index,
            "sampling_repairs": self.sampling_repairs,
        }
