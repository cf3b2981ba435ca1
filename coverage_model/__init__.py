"""
AP Coverage Model

Measurement tables, coverage oracles and run configuration for choosing
which access-point sites to activate.
"""

__version__ = "1.0.0"
__author__ = "AP Coverage Search Developers"

# Export main classes for easy importing
from .measurements import (
    MeasurementSet,
    Scenario,
    ProblemDefinitionError,
    load_measurements,
    synthetic_measurements
)

from .oracle import (
    CoverageOracle,
    DirectCoverageOracle,
    TableCoverageOracle,
    CardinalityError,
    OracleLookupError,
    aggregate_power
)
from .feasibility import valid_combination_share
from .config_loader import ConfigValidationError, load_run_config, validate_run_config
from .visualization import plot_convergence, plot_comparison

__all__ = [
    'MeasurementSet',
    'Scenario',
    'ProblemDefinitionError',
    'load_measurements',
    'synthetic_measurements',
    'CoverageOracle',
    'DirectCoverageOracle',
    'TableCoverageOracle',
    'CardinalityError',
    'OracleLookupError',
    'aggregate_power',
    'valid_combination_share',
    'ConfigValidationError',
    'load_run_config',
    'validate_run_config',
    'plot_convergence',
    'plot_comparison'
]
