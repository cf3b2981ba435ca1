"""
Run Configuration Loading

Loads YAML run files and converts them to measurement sets, scenarios and
per-algorithm parameters for the search layer.
"""

import yaml
import numpy as np
from typing import Dict, List, Any
from pathlib import Path

from .measurements import (
    MeasurementSet, ProblemDefinitionError, Scenario,
    load_measurements, synthetic_measurements
)


class ConfigValidationError(Exception):
    """Raised when run configuration is invalid"""
    pass


ALGORITHMS = ["bitstring_ga", "probabilistic_ga", "greedy", "local_search", "random"]

MODES = ["compare", "feasibility"]

ORACLE_BACKENDS = ["table", "direct"]

# Defaults match the settings used for the published comparison runs
DEFAULT_PARAMS: Dict[str, Dict[str, Any]] = {
    "bitstring_ga": {
        "population_size": 10,
        "num_generations": 50,
        "mutation_rate": 0.6,
        "patience": 10,
        "tournament_size": 3,
    },
    "probabilistic_ga": {
        "population_size": 10,
        "num_generations": 50,
        "learning_rate": 0.1,
        "patience": 15,
        "elite_fraction": 0.2,
        "max_sampling_attempts": 10000,
        "on_sampling_exhausted": "repair",
    },
    "greedy": {},
    "local_search": {},
    "random": {
        "max_evals": 1000,
    },
}

POSITIVE_INT_PARAMS = [
    "population_size", "num_generations", "patience", "tournament_size",
    "max_sampling_attempts", "max_evals",
]

SAMPLING_POLICIES = ("repair", "raise")


def load_run_config(config_path: str) -> Dict[str, Any]:
    """
    Load run configuration from YAML file.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        Dictionary containing run configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If the file is not valid YAML or is empty
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigValidationError("Configuration file is empty")
    if not isinstance(config, dict):
        raise ConfigValidationError("Configuration must be a mapping at the top level")

    return config


def validate_run_config(config: Dict[str, Any]) -> None:
    """
    Validate run configuration structure.

    Args:
        config: Run configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    mode = config.get('mode', 'compare')
    if mode not in MODES:
        raise ConfigValidationError(
            f"Invalid mode: '{mode}'. Must be one of {MODES}"
        )

    if 'measurements' not in config:
        raise ConfigValidationError("Missing required field: 'measurements'")
    _validate_measurements_section(config['measurements'])

    backend = config.get('oracle', 'table')
    if backend not in ORACLE_BACKENDS:
        raise ConfigValidationError(
            f"Invalid oracle: '{backend}'. Must be one of {ORACLE_BACKENDS}"
        )

    if mode == 'compare':
        _validate_compare_config(config)
    elif mode == 'feasibility':
        _validate_feasibility_config(config)


def _validate_measurements_section(section: Any) -> None:
    """Check that exactly one data source is given."""
    if not isinstance(section, dict):
        raise ConfigValidationError("'measurements' must be a dictionary")

    has_path = 'path' in section
    has_synthetic = 'synthetic' in section

    if not has_path and not has_synthetic:
        raise ConfigValidationError(
            "'measurements' requires either 'path' or 'synthetic'"
        )
    if has_path and has_synthetic:
        raise ConfigValidationError(
            "'measurements' cannot have both 'path' and 'synthetic'. "
            "Please specify only one."
        )

    if has_synthetic:
        synthetic = section['synthetic']
        if not isinstance(synthetic, dict):
            raise ConfigValidationError("'measurements.synthetic' must be a dictionary")
        for field in ['num_sites', 'num_points']:
            value = synthetic.get(field)
            if not isinstance(value, int) or value <= 0:
                raise ConfigValidationError(
                    f"'measurements.synthetic.{field}' must be a positive integer, got: {value}"
                )

    scale = section.get('power_scale', 1.0)
    if not isinstance(scale, (int, float)) or scale <= 0:
        raise ConfigValidationError(
            f"'measurements.power_scale' must be a positive number, got: {scale}"
        )


def _validate_compare_config(config: Dict[str, Any]) -> None:
    """
    Validate compare mode configuration.

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    scenarios = config.get('scenarios')
    if not isinstance(scenarios, list) or not scenarios:
        raise ConfigValidationError("Compare mode requires a non-empty 'scenarios' list")

    for i, scenario in enumerate(scenarios):
        _validate_scenario(scenario, f"scenarios[{i}]")

    algorithms = config.get('algorithms', ALGORITHMS)
    if not isinstance(algorithms, list) or not algorithms:
        raise ConfigValidationError("'algorithms' must be a non-empty list")
    for name in algorithms:
        if name not in ALGORITHMS:
            raise ConfigValidationError(
                f"Unknown algorithm: '{name}'. Must be one of {ALGORITHMS}"
            )
        params = config.get(name, {})
        if not isinstance(params, dict):
            raise ConfigValidationError(f"'{name}' parameters must be a dictionary")
        unknown = set(params) - set(DEFAULT_PARAMS[name])
        if unknown:
            raise ConfigValidationError(
                f"Unknown parameters for '{name}': {sorted(unknown)}"
            )
        _validate_algorithm_params(name, params)

    trials = config.get('trials', 1)
    if not isinstance(trials, int) or trials <= 0:
        raise ConfigValidationError(f"'trials' must be a positive integer, got: {trials}")

    workers = config.get('max_workers')
    if workers is not None and (not isinstance(workers, int) or workers <= 0):
        raise ConfigValidationError(
            f"'max_workers' must be a positive integer or null, got: {workers}"
        )


def _is_number(value: Any) -> bool:
    """True for int/float values, False for bools and everything else."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_algorithm_params(name: str, params: Dict[str, Any]) -> None:
    """
    Check parameter values of one algorithm, overlaid on its defaults.

    Raises:
        ConfigValidationError: If a value has the wrong type or range
    """
    merged = dict(DEFAULT_PARAMS[name])
    merged.update(params)

    for field in POSITIVE_INT_PARAMS:
        if field in merged:
            value = merged[field]
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigValidationError(
                    f"'{name}.{field}' must be a positive integer, got: {value}"
                )

    for field in ['mutation_rate', 'learning_rate']:
        if field in merged:
            value = merged[field]
            if not _is_number(value) or not 0 <= value <= 1:
                raise ConfigValidationError(
                    f"'{name}.{field}' must be in [0, 1], got: {value}"
                )

    if 'elite_fraction' in merged:
        value = merged['elite_fraction']
        if not _is_number(value) or not 0 < value <= 1:
            raise ConfigValidationError(
                f"'{name}.elite_fraction' must be in (0, 1], got: {value}"
            )

    if 'on_sampling_exhausted' in merged:
        value = merged['on_sampling_exhausted']
        if value not in SAMPLING_POLICIES:
            raise ConfigValidationError(
                f"'{name}.on_sampling_exhausted' must be one of {SAMPLING_POLICIES}, got: {value}"
            )

    if 'tournament_size' in merged and merged['tournament_size'] > merged['population_size']:
        raise ConfigValidationError(
            f"'{name}.tournament_size' ({merged['tournament_size']}) cannot exceed "
            f"population_size ({merged['population_size']})"
        )


def _validate_feasibility_config(config: Dict[str, Any]) -> None:
    """
    Validate feasibility mode configuration.

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    section = config.get('feasibility')
    if not isinstance(section, dict):
        raise ConfigValidationError("Feasibility mode requires a 'feasibility' dictionary")

    num_active = section.get('num_active')
    if not isinstance(num_active, int) or num_active <= 0:
        raise ConfigValidationError(
            f"'feasibility.num_active' must be a positive integer, got: {num_active}"
        )

    for field in ['thresholds', 'coverages']:
        values = section.get(field)
        if not isinstance(values, list) or not values:
            raise ConfigValidationError(f"'feasibility.{field}' must be a non-empty list")

    for value in section['thresholds']:
        if not _is_number(value):
            raise ConfigValidationError(
                f"'feasibility.thresholds' entries must be numbers, got: {value}"
            )

    for value in section['coverages']:
        if not isinstance(value, (int, float)) or not 0 <= value <= 1:
            raise ConfigValidationError(
                f"'feasibility.coverages' entries must be in [0, 1], got: {value}"
            )


def _validate_scenario(scenario: Any, where: str) -> None:
    """Check one scenario entry."""
    if not isinstance(scenario, dict):
        raise ConfigValidationError(f"'{where}' must be a dictionary")

    for field in ['num_active', 'threshold', 'required_coverage']:
        if field not in scenario:
            raise ConfigValidationError(f"Missing required field: '{where}.{field}'")

    if not isinstance(scenario['num_active'], int) or scenario['num_active'] <= 0:
        raise ConfigValidationError(
            f"'{where}.num_active' must be a positive integer, got: {scenario['num_active']}"
        )
    if not isinstance(scenario['threshold'], (int, float)):
        raise ConfigValidationError(
            f"'{where}.threshold' must be a number, got: {scenario['threshold']}"
        )
    coverage = scenario['required_coverage']
    if not isinstance(coverage, (int, float)) or not 0 <= coverage <= 1:
        raise ConfigValidationError(
            f"'{where}.required_coverage' must be in [0, 1], got: {coverage}"
        )


def measurements_from_config(config: Dict[str, Any], base_dir: Path = Path('.')) -> MeasurementSet:
    """
    Create the measurement set described by the 'measurements' section.

    Relative paths are resolved against base_dir (the config file's folder).
    """
    section = config['measurements']
    power_scale = section.get('power_scale', 1.0)

    if 'synthetic' in section:
        synthetic = dict(section['synthetic'])
        seed = synthetic.pop('seed', 0)
        try:
            return synthetic_measurements(
                rng=np.random.default_rng(seed),
                power_scale=power_scale,
                **synthetic
            )
        except TypeError as e:
            raise ConfigValidationError(f"Invalid 'measurements.synthetic' options: {e}")

    path = Path(section['path'])
    if not path.is_absolute():
        path = base_dir / path
    return load_measurements(path, power_scale=power_scale, key=section.get('key'))


def scenarios_from_config(config: Dict[str, Any]) -> List[Scenario]:
    """Create Scenario objects from the 'scenarios' list."""
    return [
        Scenario(
            num_active=entry['num_active'],
            threshold=float(entry['threshold']),
            required_coverage=float(entry['required_coverage'])
        )
        for entry in config.get('scenarios', [])
    ]


def algorithm_params(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Default parameters for an algorithm overlaid with the config's."""
    params = dict(DEFAULT_PARAMS[name])
    params.update(config.get(name) or {})
    return params


def check_scenario_fits(measurements: MeasurementSet, scenario: Scenario) -> None:
    """
    Fail fast when a scenario asks for more sites than exist.

    Raises:
        ProblemDefinitionError: If M > L
    """
    if scenario.num_active > measurements.num_sites:
        raise ProblemDefinitionError(
            f"Scenario activates M={scenario.num_active} sites but only "
            f"L={measurements.num_sites} exist"
        )


def print_config_summary(config: Dict[str, Any], measurements: MeasurementSet) -> None:
    """Print a summary of the run configuration"""
    print("=" * 50)
    print("CONFIGURATION SUMMARY")
    print("=" * 50)

    print(f"Mode: {config.get('mode', 'compare')}")
    print(f"Sites (L): {measurements.num_sites}")
    print(f"Measurement points (K): {measurements.num_points}")
    print(f"Power scale: {measurements.power_scale:g}")
    print(f"Oracle backend: {config.get('oracle', 'table')}")

    if config.get('mode', 'compare') == 'compare':
        print(f"Trials per scenario: {config.get('trials', 1)}")
        print(f"Random seed: {config.get('random_seed', 'random')}")

        scenarios = scenarios_from_config(config)
        print(f"\nScenarios ({len(scenarios)}):")
        for scenario in scenarios:
            print(f"  {scenario.describe()}")

        print("\nAlgorithms:")
        for name in config.get('algorithms', ALGORITHMS):
            params = algorithm_params(config, name)
            settings = ", ".join(f"{k}={v}" for k, v in params.items()) or "no parameters"
            print(f"  {name}: {settings}")

    print("=" * 50)
