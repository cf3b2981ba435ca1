"""
Measurement data for AP activation.

Holds the per-site received power table that every coverage oracle
aggregates from, and loads it from disk or generates a synthetic one.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
import numpy as np


class ProblemDefinitionError(ValueError):
    """Raised when sites, measurement points or subset size are degenerate"""
    pass


@dataclass
class MeasurementSet:
    """
    Received power from every candidate site at every measurement point.

    Attributes:
        power: Array of shape (L, K); power[l, k] is the power of site l at
            point k in the stored log unit
        power_scale: Factor between the stored unit and dBm (10 for tables
            stored as dBm x 10)
        site_labels: Optional display names, one per site
    """
    power: np.ndarray
    power_scale: float = 1.0
    site_labels: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Validate shape and freeze the table."""
        power = np.array(self.power, dtype=float)
        if power.ndim != 2:
            raise ProblemDefinitionError(
                f"Power table must be 2-D (sites x points), got shape {power.shape}"
            )
        if power.shape[0] == 0:
            raise ProblemDefinitionError("Power table has no sites")
        if power.shape[1] == 0:
            raise ProblemDefinitionError("Power table has no measurement points")
        if np.isnan(power).any():
            raise ProblemDefinitionError("Power table contains NaN entries")
        if not self.power_scale > 0:
            raise ProblemDefinitionError(
                f"power_scale must be positive, got {self.power_scale}"
            )
        if self.site_labels and len(self.site_labels) != power.shape[0]:
            raise ProblemDefinitionError(
                f"Expected {power.shape[0]} site labels, got {len(self.site_labels)}"
            )

        power.setflags(write=False)
        self.power = power
        self.power_scale = float(self.power_scale)

    @property
    def num_sites(self) -> int:
        """Number of candidate sites (L)."""
        return self.power.shape[0]

    @property
    def num_points(self) -> int:
        """Number of measurement points (K)."""
        return self.power.shape[1]

    def label(self, site: int) -> str:
        """Display name for a site index."""
        if self.site_labels:
            return self.site_labels[site]
        return f"AP{site}"


@dataclass(frozen=True)
class Scenario:
    """
    One search problem over a measurement set.

    Attributes:
        num_active: Number of sites to activate (M)
        threshold: Power threshold in the measurement set's stored unit
        required_coverage: Coverage ratio a solution must reach
    """
    num_active: int
    threshold: float
    required_coverage: float

    def __post_init__(self):
        if self.num_active <= 0:
            raise ProblemDefinitionError(
                f"num_active must be positive, got {self.num_active}"
            )
        if not 0.0 <= self.required_coverage <= 1.0:
            raise ProblemDefinitionError(
                f"required_coverage must be in [0, 1], got {self.required_coverage}"
            )

    def describe(self) -> str:
        """Short label used in reports."""
        return (f"M={self.num_active}, threshold={self.threshold:g}, "
                f"coverage={100 * self.required_coverage:.0f}%")


def load_measurements(
    path: Union[str, Path],
    power_scale: float = 1.0,
    key: Optional[str] = None
) -> MeasurementSet:
    """
    Load a site-by-point power table.

    Supported formats:
        .npy  - a single (L, K) array
        .npz  - archive; uses `key`, else 'power', else the first array
        .csv  - comma separated, one row per site, no header

    Args:
        path: File to read
        power_scale: Factor between the stored unit and dBm
        key: Array name inside an .npz archive

    Returns:
        MeasurementSet

    Raises:
        FileNotFoundError: If the file doesn't exist
        ProblemDefinitionError: If the format or contents are invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Measurement file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.npy':
        power = np.load(path)
    elif suffix == '.npz':
        with np.load(path) as archive:
            if key is None:
                key = 'power' if 'power' in archive.files else archive.files[0]
            if key not in archive.files:
                raise ProblemDefinitionError(f"Array '{key}' not found in {path}")
            power = archive[key]
    elif suffix == '.csv':
        power = np.loadtxt(path, delimiter=',', ndmin=2)
    else:
        raise ProblemDefinitionError(
            f"Unsupported measurement format '{suffix}'. Expected .npy, .npz or .csv"
        )

    return MeasurementSet(power=power, power_scale=power_scale)


def synthetic_measurements(
    num_sites: int,
    num_points: int,
    rng: np.random.Generator,
    area_size: float = 100.0,
    tx_power_dbm: float = -30.0,
    pathloss_exponent: float = 3.0,
    shadowing_db: float = 4.0,
    power_scale: float = 1.0
) -> MeasurementSet:
    """
    Generate a random power table from a log-distance model.

    Sites and points are dropped uniformly on a square of side `area_size`
    metres. Used for demos and tests when no measured table is available.
    """
    if num_sites <= 0 or num_points <= 0:
        raise ProblemDefinitionError(
            f"Need at least one site and one point, got L={num_sites}, K={num_points}"
        )

    sites = rng.uniform(0.0, area_size, size=(num_sites, 2))
    points = rng.uniform(0.0, area_size, size=(num_points, 2))

    distance = np.linalg.norm(sites[:, None, :] - points[None, :, :], axis=2)
    distance = np.maximum(distance, 1.0)

    power_dbm = (
        tx_power_dbm
        - 10.0 * pathloss_exponent * np.log10(distance)
        + rng.normal(0.0, shadowing_db, size=distance.shape)
    )

    return MeasurementSet(power=power_dbm * power_scale, power_scale=power_scale)
