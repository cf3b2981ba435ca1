"""
Tests for coverage oracles: aggregation, table/direct consistency, subset
validation and the evaluation counter.
"""

import unittest
from itertools import combinations
import numpy as np

from coverage_model.measurements import MeasurementSet, ProblemDefinitionError, synthetic_measurements
from coverage_model.oracle import (
    CardinalityError,
    DirectCoverageOracle,
    OracleLookupError,
    TableCoverageOracle,
    aggregate_power,
    coverage_metrics,
    expected_table_size,
)


class TestAggregation(unittest.TestCase):
    """Test linear-domain power aggregation."""

    def test_two_equal_sites_add_three_db(self):
        """Two sites at 0 dBm combine to ~3.01 dBm."""
        rows = np.array([[0.0, -10.0], [0.0, -10.0]])
        aggregated = aggregate_power(rows)

        np.testing.assert_allclose(aggregated, [10 * np.log10(2), -10 + 10 * np.log10(2)])

    def test_power_scale(self):
        """Tables stored as dBm x 10 aggregate in the same unit."""
        rows = np.array([[0.0], [0.0]])
        aggregated = aggregate_power(rows, power_scale=10.0)

        np.testing.assert_allclose(aggregated, [100 * np.log10(2)])

    def test_single_site_is_identity(self):
        """Aggregating one site returns its own power."""
        rows = np.array([[-42.5, -60.0, -71.25]])
        np.testing.assert_allclose(aggregate_power(rows), rows[0])

    def test_no_power_is_negative_infinity(self):
        """A point with zero linear power aggregates to -inf."""
        rows = np.array([[-np.inf], [-np.inf]])
        aggregated = aggregate_power(rows)

        self.assertTrue(np.isneginf(aggregated[0]))

    def test_batched_rows(self):
        """Leading axes are kept, the site axis is reduced."""
        rows = np.zeros((5, 3, 7))
        self.assertEqual(aggregate_power(rows).shape, (5, 7))

    def test_coverage_metrics(self):
        """Coverage counts points at or above the threshold."""
        coverage, avg_power = coverage_metrics(np.array([-70.0, -75.0, -80.0, -60.0]), -75.0)

        self.assertEqual(coverage, 0.75)
        self.assertAlmostEqual(avg_power, -71.25)


class TestDirectOracle(unittest.TestCase):
    """Test the on-demand oracle."""

    def setUp(self):
        """Create a small measurement set."""
        self.measurements = MeasurementSet(np.array([
            [-60.0, -80.0, -90.0],
            [-90.0, -60.0, -90.0],
            [-90.0, -90.0, -60.0],
            [-75.0, -75.0, -75.0],
        ]))
        self.oracle = DirectCoverageOracle(self.measurements, threshold=-70.0)

    def test_evaluate(self):
        """Coverage and average power of a subset."""
        coverage, avg_power = self.oracle.evaluate([0, 1])

        self.assertAlmostEqual(coverage, 2 / 3)
        expected = np.mean(aggregate_power(self.measurements.power[[0, 1]]))
        self.assertAlmostEqual(avg_power, expected)

    def test_order_does_not_matter(self):
        """Subsets are sets; index order is irrelevant."""
        self.assertEqual(self.oracle.evaluate([2, 0]), self.oracle.evaluate([0, 2]))

    def test_accepts_partial_subsets(self):
        """Without num_active any size from 1 to L is accepted."""
        self.oracle.evaluate([3])
        self.oracle.evaluate([0, 1, 2, 3])
        self.assertEqual(self.oracle.evaluations, 2)

    def test_fixed_cardinality(self):
        """With num_active set, other sizes are rejected."""
        oracle = DirectCoverageOracle(self.measurements, threshold=-70.0, num_active=2)

        with self.assertRaises(CardinalityError):
            oracle.evaluate([0, 1, 2])

    def test_invalid_subsets(self):
        """Empty, duplicate and out-of-range subsets are rejected."""
        for subset in ([], [1, 1], [0, 4], [-1, 2]):
            with self.assertRaises(CardinalityError):
                self.oracle.evaluate(subset)

        # Rejected calls are not counted
        self.assertEqual(self.oracle.evaluations, 0)

    def test_degenerate_construction(self):
        """Degenerate oracle definitions fail fast."""
        with self.assertRaises(ProblemDefinitionError):
            DirectCoverageOracle(self.measurements, threshold=-70.0, num_active=5)
        with self.assertRaises(ProblemDefinitionError):
            DirectCoverageOracle(self.measurements, threshold=float('nan'))


class TestTableOracle(unittest.TestCase):
    """Test the precomputed-table oracle."""

    def setUp(self):
        """Build a synthetic measurement set and both backends."""
        self.measurements = synthetic_measurements(6, 25, np.random.default_rng(3))
        self.threshold = -70.0
        self.table = TableCoverageOracle.from_measurements(self.measurements, 3, self.threshold)
        self.direct = DirectCoverageOracle(self.measurements, self.threshold, num_active=3)

    def test_table_size(self):
        """The table holds C(L, M) rows."""
        self.assertEqual(self.table.num_combinations, expected_table_size(6, 3))
        self.assertEqual(self.table.num_combinations, 20)
        self.assertEqual(self.table.table.shape, (20, 25))

    def test_backends_agree(self):
        """Table and direct oracles return identical values for every subset."""
        for subset in combinations(range(6), 3):
            table_cov, table_avg = self.table.evaluate(subset)
            direct_cov, direct_avg = self.direct.evaluate(subset)
            self.assertEqual(table_cov, direct_cov)
            self.assertAlmostEqual(table_avg, direct_avg, places=9)

    def test_index_round_trip(self):
        """index_of and combination are inverse."""
        for row in range(self.table.num_combinations):
            subset = self.table.combination(row)
            self.assertEqual(self.table.index_of(subset), row)

    def test_evaluate_index_matches_evaluate(self):
        """Evaluating by row equals evaluating by subset."""
        row = self.table.index_of([1, 3, 5])
        self.assertEqual(self.table.evaluate_index(row), self.table.evaluate([5, 3, 1]))
        self.assertEqual(self.table.evaluations, 2)

    def test_evaluate_index_out_of_range(self):
        """Rows outside the table raise OracleLookupError."""
        with self.assertRaises(OracleLookupError):
            self.table.evaluate_index(self.table.num_combinations)

    def test_table_is_read_only(self):
        """The table and index cannot be modified."""
        with self.assertRaises(ValueError):
            self.table.table[0, 0] = 0.0
        with self.assertRaises(ValueError):
            self.table.combinations[0, 0] = 5

    def test_wrong_size_rejected(self):
        """The table only holds M-site subsets."""
        with self.assertRaises(CardinalityError):
            self.table.evaluate([0, 1])

    def test_lookup_miss_raises(self):
        """A subset missing from a partial table is an error, not zero coverage."""
        oracle = TableCoverageOracle(
            combinations=np.array([[0, 1], [0, 2]]),
            table=np.array([[-60.0, -60.0], [-80.0, -80.0]]),
            threshold=-70.0,
            num_sites=3
        )

        self.assertEqual(oracle.evaluate([0, 1]), (1.0, -60.0))
        with self.assertRaises(OracleLookupError):
            oracle.evaluate([1, 2])
        with self.assertRaises(OracleLookupError):
            oracle.index_of([1, 2])
        self.assertEqual(oracle.evaluations, 1)

    def test_mismatched_table(self):
        """Row counts of index and table must match."""
        with self.assertRaises(ProblemDefinitionError):
            TableCoverageOracle(np.array([[0, 1]]), np.zeros((2, 4)), -70.0, 3)

    def test_caller_array_not_frozen(self):
        """The oracle copies the table instead of freezing the caller's array."""
        values = np.zeros((1, 4))
        TableCoverageOracle(np.array([[0, 1]]), values, -70.0, 2)

        values[0, 0] = 1.0
        self.assertEqual(values[0, 0], 1.0)


class TestEvaluationCounter(unittest.TestCase):
    """Test that the counter matches the number of evaluations exactly."""

    def setUp(self):
        """Create a table oracle."""
        measurements = synthetic_measurements(7, 10, np.random.default_rng(11))
        self.oracle = TableCoverageOracle.from_measurements(measurements, 2, -70.0)
        self.subsets = [subset for subset in combinations(range(7), 2)]

    def test_sequential_count(self):
        """Each evaluate call counts once."""
        for subset in self.subsets[:5]:
            self.oracle.evaluate(subset)
        self.assertEqual(self.oracle.evaluations, 5)

    def test_parallel_batch_count_and_order(self):
        """Threaded batches count every subset and keep input order."""
        sequential = self.oracle.evaluate_many(self.subsets)
        parallel = self.oracle.evaluate_many(self.subsets, max_workers=4)

        np.testing.assert_array_equal(sequential[0], parallel[0])
        np.testing.assert_array_equal(sequential[1], parallel[1])
        self.assertEqual(self.oracle.evaluations, 2 * len(self.subsets))

    def test_reset(self):
        """reset_counter zeroes the count."""
        self.oracle.evaluate(self.subsets[0])
        self.oracle.reset_counter()
        self.assertEqual(self.oracle.evaluations, 0)


if __name__ == '__main__':
    unittest.main()
