"""
Tests for the greedy, local search and random sampling baselines.
"""

import unittest
import numpy as np

from coverage_model.feasibility import combination_coverage
from coverage_model.measurements import MeasurementSet, synthetic_measurements
from coverage_model.oracle import CardinalityError, DirectCoverageOracle, TableCoverageOracle
from ap_search.data_models import TerminationReason
from ap_search.greedy import greedy_construction, greedy_evaluation_count, is_better
from ap_search.local_search import local_search
from ap_search.random_search import random_search


def make_greedy_example():
    """
    L=4, K=3 table where {0, 1} covers every point at 0 dBm and no single
    site covers more than one point.
    """
    power = np.array([
        [1.0, -2.5, -2.5],
        [-2.5, 1.0, -3.0],
        [-20.0, -20.0, 0.5],
        [-30.0, -30.0, -30.0],
    ])
    return MeasurementSet(power)


class TestGreedy(unittest.TestCase):
    """Test greedy construction."""

    def test_worked_example(self):
        """Greedy returns {0, 1} with full coverage in 4 + 3 evaluations."""
        oracle = DirectCoverageOracle(make_greedy_example(), threshold=0.0)
        result = greedy_construction(oracle, 2)

        self.assertEqual(result.subset, (0, 1))
        self.assertEqual(result.coverage, 1.0)
        self.assertEqual(result.evaluations, 7)
        self.assertEqual(oracle.evaluations, 7)
        self.assertEqual(result.termination, TerminationReason.COMPLETED)

    def test_single_site_example(self):
        """With M=1 equal coverage is resolved by average power."""
        oracle = DirectCoverageOracle(make_greedy_example(), threshold=0.0)
        result = greedy_construction(oracle, 1)

        self.assertEqual(result.subset, (0,))
        self.assertAlmostEqual(result.coverage, 1 / 3)

    def test_exact_tie_goes_to_lowest_index(self):
        """Identical sites are resolved towards the lower index."""
        power = np.array([[-80.0, -60.0], [-60.0, -60.0], [-60.0, -60.0]])
        oracle = DirectCoverageOracle(MeasurementSet(power), threshold=-70.0)

        self.assertEqual(greedy_construction(oracle, 1).subset, (1,))

    def test_evaluation_count(self):
        """Greedy costs sum_{k<M} (L - k) evaluations."""
        measurements = synthetic_measurements(9, 30, np.random.default_rng(0))
        oracle = DirectCoverageOracle(measurements, -70.0)
        result = greedy_construction(oracle, 4)

        self.assertEqual(result.evaluations, greedy_evaluation_count(9, 4))
        self.assertEqual(result.evaluations, 9 + 8 + 7 + 6)
        self.assertEqual(len(result.subset), 4)

    def test_full_selection(self):
        """M == L selects every site."""
        oracle = DirectCoverageOracle(make_greedy_example(), threshold=0.0)
        self.assertEqual(greedy_construction(oracle, 4).subset, (0, 1, 2, 3))

    def test_requires_partial_subsets(self):
        """The fixed-size table cannot serve incremental construction."""
        table = TableCoverageOracle.from_measurements(make_greedy_example(), 2, 0.0)

        with self.assertRaises(CardinalityError):
            greedy_construction(table, 2)

    def test_is_better(self):
        self.assertTrue(is_better(0.5, -80.0, 0.4, -60.0))
        self.assertTrue(is_better(0.5, -60.0, 0.5, -80.0))
        self.assertFalse(is_better(0.5, -80.0, 0.5, -80.0))
        self.assertFalse(is_better(0.4, -50.0, 0.5, -80.0))


class TestLocalSearch(unittest.TestCase):
    """Test 1-swap local search."""

    def setUp(self):
        self.measurements = synthetic_measurements(10, 50, np.random.default_rng(8))
        self.oracle = DirectCoverageOracle(self.measurements, -72.0)

    def test_not_worse_than_greedy(self):
        """Local search never ends below its greedy seed."""
        greedy = greedy_construction(self.oracle, 3)
        improved = local_search(self.oracle, 3)

        self.assertTrue(
            improved.coverage > greedy.coverage or
            (improved.coverage == greedy.coverage and improved.avg_power >= greedy.avg_power)
        )
        self.assertEqual(improved.termination, TerminationReason.LOCAL_OPTIMUM)

    def test_evaluation_count(self):
        """Each round evaluates the full M x (L - M) neighbourhood once."""
        result = local_search(self.oracle, 3)
        neighbourhood = 3 * (10 - 3)

        self.assertEqual(
            result.evaluations,
            greedy_evaluation_count(10, 3) + result.iterations * neighbourhood
        )

    def test_result_is_local_optimum(self):
        """No single swap improves the returned subset."""
        result = local_search(self.oracle, 3)
        current = list(result.subset)

        for i in range(3):
            for site in range(10):
                if site in current:
                    continue
                candidate = current[:i] + [site] + current[i + 1:]
                coverage, avg_power = self.oracle.evaluate(candidate)
                self.assertFalse(is_better(coverage, avg_power, result.coverage, result.avg_power))

    def test_initial_subset_on_table(self):
        """With an explicit start the fixed-size table backend works too."""
        table = TableCoverageOracle.from_measurements(self.measurements, 3, -72.0)
        result = local_search(table, 3, initial=[7, 8, 9])

        self.assertEqual(result.evaluations, 1 + result.iterations * 21)
        self.assertEqual(table.evaluations, result.evaluations)
        self.assertEqual(table.combination(result.best_index), result.subset)

    def test_reaches_full_coverage_on_example(self):
        """From a poor start the swaps find the covering pair."""
        oracle = DirectCoverageOracle(make_greedy_example(), threshold=0.0)
        result = local_search(oracle, 2, initial=[2, 3])

        self.assertEqual(result.coverage, 1.0)
        self.assertEqual(result.subset, (0, 1))

    def test_initial_wrong_size(self):
        with self.assertRaises(ValueError):
            local_search(self.oracle, 3, initial=[0, 1])


class TestRandomSearch(unittest.TestCase):
    """Test the random sampling baseline."""

    def setUp(self):
        self.measurements = synthetic_measurements(8, 30, np.random.default_rng(2))
        self.table = TableCoverageOracle.from_measurements(self.measurements, 3, -70.0)

    def test_budget_bound(self):
        """An unreachable target uses exactly max_evals evaluations."""
        table = TableCoverageOracle.from_measurements(self.measurements, 3, 100.0)
        result = random_search(table, 3, 1.0, np.random.default_rng(0), max_evals=25)

        self.assertEqual(result.evaluations, 25)
        self.assertEqual(table.evaluations, 25)
        self.assertEqual(result.termination, TerminationReason.BUDGET_EXHAUSTED)
        self.assertEqual(len(result.subset), 3)

    def test_trivial_target(self):
        """Zero required coverage stops at the first draw."""
        result = random_search(self.table, 3, 0.0, np.random.default_rng(1))

        self.assertEqual(result.evaluations, 1)
        self.assertEqual(result.termination, TerminationReason.TARGET_REACHED)
        self.assertEqual(self.table.combination(result.best_index), result.subset)

    def test_stops_at_first_qualifying_draw(self):
        """Replaying the seed's draws gives the exact stopping draw."""
        coverage = combination_coverage(self.table, -70.0)
        required = coverage.max()
        later_stops = 0

        for seed in range(10):
            rng = np.random.default_rng(seed)
            expected_draws = 1
            while coverage[int(rng.integers(0, self.table.num_combinations))] < required:
                expected_draws += 1

            result = random_search(self.table, 3, required, np.random.default_rng(seed), max_evals=10000)

            self.assertEqual(result.termination, TerminationReason.TARGET_REACHED)
            self.assertEqual(result.evaluations, expected_draws)
            self.assertEqual(result.coverage, required)
            if expected_draws > 1:
                later_stops += 1

        self.assertGreater(later_stops, 0)

    def test_never_exceeds_budget(self):
        for seed in range(5):
            result = random_search(self.table, 3, 0.9, np.random.default_rng(seed), max_evals=40)
            self.assertLessEqual(result.evaluations, 40)
            if result.termination == TerminationReason.TARGET_REACHED:
                self.assertGreaterEqual(result.coverage, 0.9)

    def test_direct_oracle(self):
        """Non-table oracles draw random M-site subsets."""
        direct = DirectCoverageOracle(self.measurements, -70.0, num_active=3)
        result = random_search(direct, 3, 1.0, np.random.default_rng(3), max_evals=10)

        self.assertLessEqual(result.evaluations, 10)
        self.assertEqual(direct.evaluations, result.evaluations)
        self.assertIsNone(result.best_index)

    def test_table_size_mismatch(self):
        with self.assertRaises(ValueError):
            random_search(self.table, 2, 0.9, np.random.default_rng(0))

    def test_invalid_budget(self):
        with self.assertRaises(ValueError):
            random_search(self.table, 3, 0.9, np.random.default_rng(0), max_evals=0)


if __name__ == '__main__':
    unittest.main()
