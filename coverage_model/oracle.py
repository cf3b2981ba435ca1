"""
Coverage oracles.

An oracle maps a set of active sites to (coverage ratio, average aggregated
power). Two backends are provided:

- DirectCoverageOracle: sums per-site power in the linear domain on every call
- TableCoverageOracle: looks the subset up in a precomputed table holding the
  aggregated power of every M-site combination

Both count every successful evaluation; the count is the cost metric used
to compare search algorithms.
"""

from concurrent.futures import ThreadPoolExecutor
from itertools import combinations
from math import comb
from typing import Dict, Iterable, Optional, Sequence, Tuple
import threading
import numpy as np

from .measurements import MeasurementSet, ProblemDefinitionError


class CardinalityError(ValueError):
    """Raised when a subset is not a valid set of active sites"""
    pass


class OracleLookupError(KeyError):
    """Raised when a subset has no row in the combination table"""
    pass


def aggregate_power(rows: np.ndarray, power_scale: float = 1.0) -> np.ndarray:
    """
    Aggregate per-site power over the site axis (second to last).

    Values are converted to linear scale, summed, and converted back to the
    stored log unit. Points receiving no power at all come out as -inf.

    Args:
        rows: Array (..., S, K) of per-site powers in the stored unit
        power_scale: Factor between the stored unit and dBm

    Returns:
        Array (..., K) of aggregated powers in the stored unit
    """
    linear = np.sum(np.power(10.0, rows / (10.0 * power_scale)), axis=-2)
    with np.errstate(divide='ignore'):
        return 10.0 * power_scale * np.log10(linear)


def coverage_metrics(aggregated: np.ndarray, threshold: float) -> Tuple[float, float]:
    """Coverage ratio and mean power of one aggregated power vector."""
    coverage = float(np.mean(aggregated >= threshold))
    avg_power = float(np.mean(aggregated))
    return coverage, avg_power


class CoverageOracle:
    """
    Base class holding the threshold, subset validation and the
    evaluation counter.

    Subclasses implement `_evaluate_sorted(key)` for a validated, sorted
    tuple of site indices.
    """

    def __init__(self, num_sites: int, threshold: float, num_active: Optional[int] = None):
        if num_sites <= 0:
            raise ProblemDefinitionError(f"Number of sites must be positive, got {num_sites}")
        if num_active is not None and not 0 < num_active <= num_sites:
            raise ProblemDefinitionError(
                f"Number of active sites must be in [1, {num_sites}], got {num_active}"
            )
        if not np.isfinite(threshold):
            raise ProblemDefinitionError(f"Threshold must be finite, got {threshold}")

        self.num_sites = int(num_sites)
        self.num_active = num_active
        self.threshold = float(threshold)
        self._evaluations = 0
        self._lock = threading.Lock()

    @property
    def evaluations(self) -> int:
        """Number of evaluations performed since the last reset."""
        return self._evaluations

    def reset_counter(self) -> None:
        """Zero the evaluation counter."""
        with self._lock:
            self._evaluations = 0

    def _count(self, n: int = 1) -> None:
        with self._lock:
            self._evaluations += n

    def check_subset(self, subset: Iterable[int]) -> Tuple[int, ...]:
        """
        Validate a subset and return it as a sorted tuple.

        Raises:
            CardinalityError: On duplicates, out-of-range indices, an empty
                subset, or a size different from num_active (when fixed)
        """
        key = tuple(sorted(int(site) for site in subset))

        if not key:
            raise CardinalityError("Subset is empty")
        if len(set(key)) != len(key):
            raise CardinalityError(f"Subset has duplicate sites: {key}")
        if key[0] < 0 or key[-1] >= self.num_sites:
            raise CardinalityError(
                f"Subset {key} has sites outside [0, {self.num_sites - 1}]"
            )
        if self.num_active is not None and len(key) != self.num_active:
            raise CardinalityError(
                f"Subset has {len(key)} sites, expected exactly {self.num_active}"
            )
        return key

    def evaluate(self, subset: Iterable[int]) -> Tuple[float, float]:
        """
        Evaluate one subset of active sites.

        Returns:
            Tuple of (coverage ratio in [0, 1], average aggregated power)
        """
        key = self.check_subset(subset)
        result = self._evaluate_sorted(key)
        self._count()
        return result

    def evaluate_many(
        self,
        subsets: Sequence[Iterable[int]],
        max_workers: Optional[int] = None
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Evaluate a batch of subsets.

        All evaluations finish before this returns. With max_workers > 1 the
        batch is spread over a thread pool; results keep input order.

        Returns:
            Tuple of (coverage array, average power array)
        """
        if max_workers is not None and max_workers > 1 and len(subsets) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                results = list(pool.map(self.evaluate, subsets))
        else:
            results = [self.evaluate(subset) for subset in subsets]

        coverage = np.array([r[0] for r in results], dtype=float)
        avg_power = np.array([r[1] for r in results], dtype=float)
        return coverage, avg_power

    def _evaluate_sorted(self, key: Tuple[int, ...]) -> Tuple[float, float]:
        raise NotImplementedError


class DirectCoverageOracle(CoverageOracle):
    """
    Oracle that aggregates the active sites' power on every call.

    Accepts subsets of any size unless num_active is given, so it also
    serves incremental construction (greedy baseline).
    """

    def __init__(
        self,
        measurements: MeasurementSet,
        threshold: float,
        num_active: Optional[int] = None
    ):
        super().__init__(measurements.num_sites, threshold, num_active)
        self.measurements = measurements

    def aggregated_power(self, key: Sequence[int]) -> np.ndarray:
        """Aggregated power vector (length K) of a validated subset."""
        rows = self.measurements.power[list(key), :]
        return aggregate_power(rows, self.measurements.power_scale)

    def _evaluate_sorted(self, key: Tuple[int, ...]) -> Tuple[float, float]:
        return coverage_metrics(self.aggregated_power(key), self.threshold)


class TableCoverageOracle(CoverageOracle):
    """
    Oracle backed by a precomputed table of every M-site combination.

    Attributes:
        combinations: Int array (N, M), sorted site indices per row
        table: Float array (N, K), aggregated power per combination
    """

    def __init__(
        self,
        combinations: np.ndarray,
        table: np.ndarray,
        threshold: float,
        num_sites: int
    ):
        combinations = np.asarray(combinations, dtype=int)
        table = np.array(table, dtype=float)

        if combinations.ndim != 2 or combinations.shape[0] == 0:
            raise ProblemDefinitionError(
                f"Combination index must be a non-empty 2-D array, got shape {combinations.shape}"
            )
        if table.ndim != 2 or table.shape[0] != combinations.shape[0]:
            raise ProblemDefinitionError(
                f"Table shape {table.shape} does not match {combinations.shape[0]} combinations"
            )
        if table.shape[1] == 0:
            raise ProblemDefinitionError("Table has no measurement points")

        super().__init__(num_sites, threshold, combinations.shape[1])

        combinations = np.sort(combinations, axis=1)
        combinations.setflags(write=False)
        table.setflags(write=False)
        self.combinations = combinations
        self.table = table

        self._index: Dict[Tuple[int, ...], int] = {}
        for row, combo in enumerate(combinations.tolist()):
            self._index.setdefault(tuple(combo), row)

    @classmethod
    def from_measurements(
        cls,
        measurements: MeasurementSet,
        num_active: int,
        threshold: float,
        chunk_size: int = 4096
    ) -> "TableCoverageOracle":
        """
        Build the full C(L, M) table from a per-site power table.

        Uses the same aggregation as DirectCoverageOracle, so both backends
        return identical values for the same subset.
        """
        num_sites = measurements.num_sites
        if not 0 < num_active <= num_sites:
            raise ProblemDefinitionError(
                f"Number of active sites must be in [1, {num_sites}], got {num_active}"
            )

        combos = np.array(list(combinations(range(num_sites), num_active)), dtype=int)
        table = np.empty((combos.shape[0], measurements.num_points), dtype=float)

        for start in range(0, combos.shape[0], chunk_size):
            block = combos[start:start + chunk_size]
            rows = measurements.power[block]  # (chunk, M, K)
            table[start:start + chunk_size] = aggregate_power(rows, measurements.power_scale)

        return cls(combos, table, threshold, num_sites)

    @property
    def num_combinations(self) -> int:
        """Number of rows in the table."""
        return self.combinations.shape[0]

    def index_of(self, subset: Iterable[int]) -> int:
        """
        Row of a subset in the table.

        Raises:
            OracleLookupError: If the subset is not in the table
        """
        key = self.check_subset(subset)
        try:
            return self._index[key]
        except KeyError:
            raise OracleLookupError(f"Combination {key} not found in the coverage table")

    def combination(self, index: int) -> Tuple[int, ...]:
        """Subset stored at a table row."""
        return tuple(int(site) for site in self.combinations[index])

    def evaluate_index(self, index: int) -> Tuple[float, float]:
        """Evaluate the combination at a table row."""
        if not 0 <= index < self.num_combinations:
            raise OracleLookupError(
                f"Row {index} outside table of {self.num_combinations} combinations"
            )
        result = coverage_metrics(self.table[index], self.threshold)
        self._count()
        return result

    def _evaluate_sorted(self, key: Tuple[int, ...]) -> Tuple[float, float]:
        row = self._index.get(key)
        if row is None:
            raise OracleLookupError(f"Combination {key} not found in the coverage table")
        return coverage_metrics(self.table[row], self.threshold)


def expected_table_size(num_sites: int, num_active: int) -> int:
    """Number of rows a full table for (L, M) holds."""
    return comb(num_sites, num_active)
