#!/usr/bin/env python3
"""
Test runner for the AP activation search
"""

import unittest
import sys
from pathlib import Path

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))


def run_all_tests():
    """Discover and run every test module under tests/"""
    # Plots are only written to disk during tests
    import matplotlib
    matplotlib.use('Agg')

    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    tests_dir = Path(__file__).parent / "tests"
    for folder in sorted(p for p in tests_dir.iterdir() if p.is_dir() and p.name.startswith("test_")):
        suite.addTests(loader.discover(str(folder), pattern="test_*.py", top_level_dir=str(folder)))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


def run_integration_test():
    """Run a small compare run end to end"""
    print("\n" + "=" * 50)
    print("INTEGRATION TEST")
    print("=" * 50)

    try:
        import numpy as np
        from coverage_model.measurements import Scenario, synthetic_measurements
        from coverage_model.config_loader import ALGORITHMS, DEFAULT_PARAMS
        from ap_search.orchestration import run_trials, summarize_trials, print_comparison_report

        print("Generating synthetic measurements...")
        measurements = synthetic_measurements(12, 80, np.random.default_rng(0))
        scenario = Scenario(num_active=3, threshold=-75.0, required_coverage=0.8)

        print("Running all algorithms...")
        params = {name: dict(DEFAULT_PARAMS[name]) for name in ALGORITHMS}
        records = run_trials(measurements, scenario, ALGORITHMS, params, num_trials=5, seed=1)
        summary = summarize_trials(records, scenario.required_coverage)
        print_comparison_report(summary, scenario)

        # Basic validation
        success = (
            all(len(runs) == 5 for runs in records.values()) and
            all(len(run.result.subset) == scenario.num_active
                for runs in records.values() for run in runs) and
            summary['local_search']['avg_coverage'] >= summary['greedy']['avg_coverage']
        )

        if success:
            print("✓ Integration test PASSED")
        else:
            print("✗ Integration test FAILED")

        return success

    except Exception as e:
        print(f"✗ Integration test FAILED: {e}")
        import traceback
        traceback.print_exc()
        return False


if __name__ == "__main__":
    print("Running AP Activation Search Tests")
    print("=" * 60)

    # Run unit tests
    print("Running unit tests...")
    unit_success = run_all_tests()

    # Run integration test
    integration_success = run_integration_test()

    # Summary
    print("\n" + "=" * 60)
    print("TEST SUMMARY")
    print("=" * 60)
    print(f"Unit tests: {'PASSED' if unit_success else 'FAILED'}")
    print(f"Integration test: {'PASSED' if integration_success else 'FAILED'}")

    overall_success = unit_success and integration_success
    print(f"Overall: {'PASSED' if overall_success else 'FAILED'}")

    sys.exit(0 if overall_success else 1)
