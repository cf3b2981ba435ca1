"""
Orchestration module for AP subset search.

Implements the compare and feasibility workflows: repeated trials of every
algorithm per scenario, per-algorithm statistics, and printed reports.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import time
import numpy as np

from coverage_model.config_loader import (
    ALGORITHMS,
    algorithm_params,
    check_scenario_fits,
    measurements_from_config,
    print_config_summary,
    scenarios_from_config,
)
from coverage_model.feasibility import print_feasibility_report, valid_combination_share
from coverage_model.measurements import MeasurementSet, ProblemDefinitionError, Scenario
from coverage_model.oracle import (
    CoverageOracle,
    DirectCoverageOracle,
    TableCoverageOracle,
    expected_table_size,
)
from .data_models import SearchResult
from .bitstring_ga import bitstring_ga
from .probabilistic_ga import probabilistic_ga
from .greedy import greedy_construction
from .local_search import local_search
from .random_search import random_search


# Rows x points above which the full combination table is refused
MAX_TABLE_CELLS = 50_000_000


@dataclass
class TrialRecord:
    """One algorithm run inside a trial, with its wall-clock time."""
    result: SearchResult
    elapsed: float


def check_table_size(measurements: MeasurementSet, num_active: int, hint: str = "") -> None:
    """
    Refuse combination tables larger than MAX_TABLE_CELLS.

    Raises:
        ProblemDefinitionError: If C(L, M) x K exceeds the limit
    """
    rows = expected_table_size(measurements.num_sites, num_active)
    if rows * measurements.num_points > MAX_TABLE_CELLS:
        message = (f"Combination table would hold {rows} x {measurements.num_points} values, "
                   f"above the limit of {MAX_TABLE_CELLS}")
        if hint:
            message += f"; {hint}"
        raise ProblemDefinitionError(message)


def build_oracles(
    measurements: MeasurementSet,
    scenario: Scenario,
    backend: str = "table"
) -> Tuple[CoverageOracle, DirectCoverageOracle]:
    """
    Create the oracles used for one scenario.

    Returns:
        Tuple of (search_oracle, construction_oracle)
        search_oracle evaluates full M-site candidates (table or direct);
        construction_oracle accepts partial subsets for greedy/local search.

    Raises:
        ProblemDefinitionError: If M > L or the table would be too large
    """
    check_scenario_fits(measurements, scenario)

    construction_oracle = DirectCoverageOracle(measurements, scenario.threshold)

    if backend == "table":
        check_table_size(measurements, scenario.num_active,
                         hint="use the 'direct' oracle for this scenario")
        search_oracle = TableCoverageOracle.from_measurements(
            measurements, scenario.num_active, scenario.threshold
        )
    elif backend == "direct":
        search_oracle = DirectCoverageOracle(
            measurements, scenario.threshold, num_active=scenario.num_active
        )
    else:
        raise ValueError(f"Unknown oracle backend: {backend}")

    return search_oracle, construction_oracle


def run_algorithm(
    name: str,
    scenario: Scenario,
    search_oracle: CoverageOracle,
    construction_oracle: CoverageOracle,
    params: Dict[str, Any],
    rng: np.random.Generator,
    max_workers: Optional[int] = None
) -> SearchResult:
    """
    Run one algorithm on one scenario.

    Args:
        name: One of ALGORITHMS
        scenario: Problem to solve
        search_oracle: Oracle for full M-site candidates
        construction_oracle: Oracle accepting partial subsets
        params: Algorithm parameters (see DEFAULT_PARAMS)
        rng: Random number generator (unused by deterministic baselines)
        max_workers: Evaluation threads for the GA variants

    Returns:
        SearchResult of the run
    """
    m = scenario.num_active
    required = scenario.required_coverage

    if name == "bitstring_ga":
        return bitstring_ga(search_oracle, m, required, rng, max_workers=max_workers, **params)
    elif name == "probabilistic_ga":
        return probabilistic_ga(search_oracle, m, required, rng, max_workers=max_workers, **params)
    elif name == "greedy":
        return greedy_construction(construction_oracle, m)
    elif name == "local_search":
        return local_search(construction_oracle, m)
    elif name == "random":
        return random_search(search_oracle, m, required, rng, **params)
    else:
        raise ValueError(f"Unknown algorithm: {name}. Must be one of {ALGORITHMS}")


def run_trials(
    measurements: MeasurementSet,
    scenario: Scenario,
    algorithms: List[str],
    params: Dict[str, Dict[str, Any]],
    num_trials: int,
    seed: Optional[int] = None,
    backend: str = "table",
    max_workers: Optional[int] = None,
    progress: bool = False
) -> Dict[str, List[TrialRecord]]:
    """
    Run every algorithm num_trials times on one scenario.

    Every (trial, algorithm) pair gets its own random stream spawned from
    one SeedSequence, so runs are reproducible and independent. The
    deterministic baselines run every trial too, for timing statistics.

    Args:
        measurements: Power table
        scenario: Problem to solve
        algorithms: Algorithm names to run
        params: Per-algorithm parameters
        num_trials: Trials per algorithm
        seed: Root seed (None draws fresh entropy)
        backend: "table" or "direct" for the search oracle
        max_workers: Evaluation threads for the GA variants
        progress: Print a progress line per trial

    Returns:
        Dictionary mapping algorithm name to its trial records (length num_trials)
    """
    search_oracle, construction_oracle = build_oracles(measurements, scenario, backend)

    root = np.random.SeedSequence(seed)
    trial_seeds = root.spawn(num_trials)

    records: Dict[str, List[TrialRecord]] = {name: [] for name in algorithms}

    for trial, trial_seed in enumerate(trial_seeds):
        algorithm_seeds = trial_seed.spawn(len(algorithms))

        for name, algorithm_seed in zip(algorithms, algorithm_seeds):
            rng = np.random.default_rng(algorithm_seed)
            start = time.perf_counter()
            result = run_algorithm(
                name, scenario, search_oracle, construction_oracle,
                params.get(name, {}), rng, max_workers=max_workers
            )
            records[name].append(TrialRecord(result=result, elapsed=time.perf_counter() - start))

        if progress and ((trial + 1) % 10 == 0 or trial == num_trials - 1):
            print(f"  Progress: {trial + 1}/{num_trials} trials completed")

    return records


def _mean_std(values: List[float]) -> Tuple[float, float]:
    """Mean and sample standard deviation (0 for a single value)."""
    array = np.asarray(values, dtype=float)
    std = float(np.std(array, ddof=1)) if array.size > 1 else 0.0
    return float(np.mean(array)), std


def summarize_trials(
    records: Dict[str, List[TrialRecord]],
    required_coverage: float
) -> Dict[str, Dict[str, float]]:
    """
    Aggregate trial records per algorithm.

    Returns:
        Dictionary mapping algorithm name to statistics:
        trials, avg/std_coverage, avg/std_power, avg/std_evaluations,
        success_rate, mean_time
    """
    summary = {}

    for name, runs in records.items():
        if not runs:
            continue
        results = [run.result for run in runs]

        avg_coverage, std_coverage = _mean_std([r.coverage for r in results])
        avg_power, std_power = _mean_std([r.avg_power for r in results])
        avg_evals, std_evals = _mean_std([r.evaluations for r in results])
        successes = sum(1 for r in results if r.meets_coverage(required_coverage))

        summary[name] = {
            "trials": len(runs),
            "avg_coverage": avg_coverage,
            "std_coverage": std_coverage,
            "avg_power": avg_power,
            "std_power": std_power,
            "avg_evaluations": avg_evals,
            "std_evaluations": std_evals,
            "success_rate": successes / len(runs),
            "mean_time": float(np.mean([run.elapsed for run in runs])),
        }

    return summary


def print_comparison_report(
    summary: Dict[str, Dict[str, float]],
    scenario: Scenario,
    power_scale: float = 1.0
) -> None:
    """Print per-algorithm statistics for one scenario (power in dBm)."""
    print()
    print("=" * 70)
    print(f"RESULTS: {scenario.describe()}")
    print("=" * 70)
    print(f"{'algorithm':<18}{'coverage (%)':>16}{'power (dBm)':>14}"
          f"{'evaluations':>16}{'success':>9}{'time (ms)':>11}")
    print("-" * 84)

    for name, stats in summary.items():
        coverage = f"{100 * stats['avg_coverage']:.2f}±{100 * stats['std_coverage']:.2f}"
        power = f"{stats['avg_power'] / power_scale:.2f}"
        evals = f"{stats['avg_evaluations']:.1f}±{stats['std_evaluations']:.1f}"
        print(f"{name:<18}{coverage:>16}{power:>14}{evals:>16}"
              f"{100 * stats['success_rate']:>8.0f}%{1000 * stats['mean_time']:>11.2f}")


def run_compare_mode(run_config: Dict, base_dir: Path = Path('.')) -> Dict[Scenario, Dict[str, Dict[str, float]]]:
    """
    Run all algorithms over all scenarios and report statistics.

    Args:
        run_config: Run configuration dict from YAML
        base_dir: Folder relative data paths are resolved against

    Algorithm:
        1. Load measurements (file or synthetic)
        2. For each scenario:
           a. Build oracles (table or direct, plus direct for construction)
           b. Run `trials` trials of every algorithm
           c. Summarize and print the report
           d. Save plots when output.plots is set
        3. Print a closing summary

    Returns:
        Dictionary mapping each scenario to its per-algorithm summary
    """
    print("=" * 70)
    print("COMPARE MODE")
    print("=" * 70)

    measurements = measurements_from_config(run_config, base_dir)
    print_config_summary(run_config, measurements)

    algorithms = run_config.get('algorithms', ALGORITHMS)
    params = {name: algorithm_params(run_config, name) for name in algorithms}
    num_trials = run_config.get('trials', 1)
    seed = run_config.get('random_seed')
    backend = run_config.get('oracle', 'table')
    max_workers = run_config.get('max_workers')

    plots_dir = (run_config.get('output') or {}).get('plots')
    if plots_dir:
        plots_dir = Path(plots_dir)
        if not plots_dir.is_absolute():
            plots_dir = base_dir / plots_dir
        plots_dir.mkdir(parents=True, exist_ok=True)

    all_summaries = {}

    for index, scenario in enumerate(scenarios_from_config(run_config)):
        print(f"\nRunning scenario {index + 1}: {scenario.describe()}")

        records = run_trials(
            measurements, scenario, algorithms, params, num_trials,
            seed=None if seed is None else seed + index,
            backend=backend, max_workers=max_workers, progress=True
        )
        summary = summarize_trials(records, scenario.required_coverage)
        print_comparison_report(summary, scenario, measurements.power_scale)
        all_summaries[scenario] = summary

        if plots_dir:
            _save_plots(records, summary, scenario, plots_dir, index)

    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"Scenarios run: {len(all_summaries)}")
    print(f"Trials per algorithm: {num_trials}")
    if plots_dir:
        print(f"Plots: {plots_dir}")

    return all_summaries


def _save_plots(
    records: Dict[str, List[TrialRecord]],
    summary: Dict[str, Dict[str, float]],
    scenario: Scenario,
    plots_dir: Path,
    index: int
) -> None:
    """Write convergence and comparison figures for one scenario."""
    # Non-interactive backend, figures are only written to disk
    import matplotlib
    matplotlib.use('Agg')
    from coverage_model.visualization import plot_comparison, plot_convergence

    ga_results = [
        run.result
        for name in ("bitstring_ga", "probabilistic_ga") if name in records
        for run in records[name]
    ]
    if ga_results:
        path = plots_dir / f"scenario_{index + 1:02d}_convergence.png"
        plot_convergence(ga_results, scenario.required_coverage, save_path=str(path),
                         title=f"GA convergence ({scenario.describe()})")
        print(f"  Saved: {path}")

    path = plots_dir / f"scenario_{index + 1:02d}_comparison.png"
    plot_comparison(summary, save_path=str(path), title=scenario.describe())
    print(f"  Saved: {path}")


def run_feasibility_mode(run_config: Dict, base_dir: Path = Path('.')) -> np.ndarray:
    """
    Report the share of valid combinations over a threshold x coverage grid.

    Args:
        run_config: Run configuration dict from YAML
        base_dir: Folder relative data paths are resolved against

    Returns:
        Array (thresholds x coverages) of percentages
    """
    print("=" * 70)
    print("FEASIBILITY MODE")
    print("=" * 70)

    measurements = measurements_from_config(run_config, base_dir)
    print_config_summary(run_config, measurements)

    section = run_config['feasibility']
    thresholds = [float(t) for t in section['thresholds']]
    coverages = [float(c) for c in section['coverages']]
    # The threshold only matters for evaluate(); the grid reads the table directly
    scenario = Scenario(section['num_active'], thresholds[0], coverages[0])
    check_scenario_fits(measurements, scenario)
    check_table_size(measurements, scenario.num_active, hint="lower feasibility.num_active")

    table_oracle = TableCoverageOracle.from_measurements(
        measurements, scenario.num_active, scenario.threshold
    )
    print(f"\nCombinations (M={scenario.num_active}): {table_oracle.num_combinations}\n")

    share = valid_combination_share(table_oracle, thresholds, coverages)
    print_feasibility_report(share, thresholds, coverages)

    return share
