"""
CLI module for AP subset search.

Handles run configuration loading, validation, and mode dispatching.
"""

from typing import Any, Dict, Optional
from pathlib import Path

from coverage_model.config_loader import (
    ConfigValidationError,
    load_run_config,
    validate_run_config,
)


def apply_overrides(
    config: Dict[str, Any],
    trials: Optional[int] = None,
    seed: Optional[int] = None,
    plots: Optional[str] = None,
    oracle: Optional[str] = None
) -> Dict[str, Any]:
    """Return a copy of the config with command-line overrides applied."""
    config = dict(config)
    if trials is not None:
        config['trials'] = trials
    if seed is not None:
        config['random_seed'] = seed
    if oracle is not None:
        config['oracle'] = oracle
    if plots is not None:
        output = dict(config.get('output') or {})
        output['plots'] = plots
        config['output'] = output
    return config


def run_from_config(config_path: str, validate_only: bool = False, **overrides) -> Any:
    """
    Load run configuration and execute appropriate mode.

    This is the main entry point called by main.py.

    Args:
        config_path: Path to run configuration YAML file
        validate_only: Stop after validation
        **overrides: trials, seed, plots, oracle (see apply_overrides)

    Returns:
        The mode's result (scenario summaries or feasibility share), or
        None when validate_only is set

    Raises:
        FileNotFoundError: If config or data files don't exist
        ConfigValidationError: If config is invalid
        ProblemDefinitionError: If a scenario is degenerate for the data
    """
    print(f"Loading configuration from: {config_path}")
    config = apply_overrides(load_run_config(config_path), **overrides)

    print("Validating configuration...")
    validate_run_config(config)

    mode = config.get('mode', 'compare')
    print(f"Mode: {mode}\n")

    if validate_only:
        print("Configuration is valid.")
        return None

    base_dir = Path(config_path).parent

    if mode == 'compare':
        from .orchestration import run_compare_mode
        result = run_compare_mode(config, base_dir)
    elif mode == 'feasibility':
        from .orchestration import run_feasibility_mode
        result = run_feasibility_mode(config, base_dir)
    else:
        raise ConfigValidationError(f"Invalid mode: {mode}")

    print("\nRun completed successfully!")
    return result
