"""
Subset search for AP activation

This package searches for M of L sites whose combined received power covers
a required share of measurement points, using a coverage oracle as the only
view of the data.

Key Features:
- Two GA variants over fixed-cardinality bitstrings (operator GA and EDA)
- Greedy construction and 1-swap local search baselines
- Random sampling baseline with an evaluation budget
- Repeated-trial comparison with per-algorithm statistics

Modules:
- data_models: SearchResult, GenerationStats, TerminationReason
- representation: Indicator vectors, cardinality checks and repair
- crossover: Union crossover with cardinality-preserving sampling
- mutation: Swap mutation
- selection: Tournament and elite selection
- bitstring_ga: Operator GA with elitism and stagnation stop
- probabilistic_ga: Probability-vector GA (EDA)
- greedy: Greedy construction
- local_search: Best-improvement 1-swap local search
- random_search: Random sampling baseline
- orchestration: Trials, statistics and reports
- cli: Run configuration loading and mode dispatch
"""

__version__ = "0.1.0"
__author__ = "AP Coverage Search Developers"

from .data_models import SearchResult, GenerationStats, TerminationReason
from .bitstring_ga import bitstring_ga
from .probabilistic_ga import probabilistic_ga, SamplingExhaustedError
from .greedy import greedy_construction
from .local_search import local_search
from .random_search import random_search

__all__ = [
    "SearchResult",
    "GenerationStats",
    "TerminationReason",
    "bitstring_ga",
    "probabilistic_ga",
    "SamplingExhaustedError",
    "greedy_construction",
    "local_search",
    "random_search",
]
