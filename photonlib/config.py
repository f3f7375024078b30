"""
Configuration records for atom generation and photon analysis.

Every tunable (grid side, file paths, reduction axis, crop window, log floor,
sampling distributions) lives here and is passed explicitly into the
generator and reducer functions.
"""

import json
import math
import numbers
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional, Union


# Grid sides the simulator has been run with
KNOWN_SIDES = (256, 512)

GENERATION_VARIANTS = ("normal", "linear")


def _is_integer(value) -> bool:
    """True for integers and integral finite floats, False for bools and anything else."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value) and int(value) == value


@dataclass
class GenerationConfig:
    """
    Parameters for generating an initial atom file.

    Attributes:
        n_atoms: Number of atoms (rows) to generate
        variant: "normal" for independent Gaussian samples,
            "linear" for an evenly spaced chain along x
        position_sigma: Standard deviation of each position component (m)
        velocity_sigma: Standard deviation of each velocity component (m/s)
        include_velocity: Whether to emit vx, vy, vz columns
        spacing: Distance between neighbouring atoms in the linear chain (m)
        seed: Random seed for reproducibility
        out_path: Destination file for the atom table
    """
    n_atoms: int = 10_000
    variant: str = "normal"
    position_sigma: float = 1e-4
    velocity_sigma: float = 1e-3
    include_velocity: bool = True
    spacing: float = 1e-6
    seed: Optional[int] = None
    out_path: Path = field(default_factory=lambda: Path("atoms.h5"))

    def __post_init__(self):
        self.out_path = Path(self.out_path)
        if not _is_integer(self.n_atoms):
            raise ValueError(f"n_atoms must be an integer, got {self.n_atoms!r}")
        self.n_atoms = int(self.n_atoms)
        if self.n_atoms <= 0:
            raise ValueError(f"n_atoms must be positive, got {self.n_atoms}")
        if self.variant not in GENERATION_VARIANTS:
            raise ValueError(
                f"Unknown variant '{self.variant}', expected one of {GENERATION_VARIANTS}"
            )
        if self.position_sigma < 0 or self.velocity_sigma < 0:
            raise ValueError("Standard deviations must be non-negative")

    @classmethod
    def normal_cloud(cls, **overrides) -> "GenerationConfig":
        """Gaussian cloud: 10,000 atoms, 100 um position and 1 mm/s velocity spread."""
        params = dict(n_atoms=10_000, variant="normal", position_sigma=1e-4,
                      velocity_sigma=1e-3, include_velocity=True)
        params.update(overrides)
        return cls(**params)

    @classmethod
    def linear_chain(cls, **overrides) -> "GenerationConfig":
        """Ten atoms 1 um apart along x, centred on the origin, positions only."""
        params = dict(n_atoms=10, variant="linear", spacing=1e-6,
                      include_velocity=False, out_path=Path("atoms.csv"))
        params.update(overrides)
        return cls(**params)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        d = asdict(self)
        d["out_path"] = str(self.out_path)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "GenerationConfig":
        """Build from a dictionary, ignoring unknown keys."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in names})


@dataclass
class AnalysisConfig:
    """
    Parameters for reading and reducing simulator output.

    The grid side is never inferred from the data: it must match the
    setting the simulator was run with, otherwise the reshape fails.

    Attributes:
        side: Number of cells along one edge of the voxel grid
        reduce_axis: Axis summed over when projecting the grid (0, 1 or 2)
        order: Flat-to-cube index convention, "C" (row-major) or "F"
        crop_half_width: Half-width of the displayed window in cells,
            None to show the full projection
        crop_center: Window centre index, defaults to side // 2 - 1
        log_floor: Value assigned to empty pixels after log10
        domain_size: Edge length of the histogram domain (m), used when
            binning list-mode photons into a grid
        photons_path: Photon list output file
        histogram_path: Flat photon histogram output file
    """
    side: int
    reduce_axis: int = 2
    order: str = "C"
    crop_half_width: Optional[int] = 30
    crop_center: Optional[int] = None
    log_floor: float = -1.0
    domain_size: float = 1e-3
    photons_path: Path = field(default_factory=lambda: Path("output.h5"))
    histogram_path: Path = field(default_factory=lambda: Path("photon_histogram.txt"))

    def __post_init__(self):
        self.photons_path = Path(self.photons_path)
        self.histogram_path = Path(self.histogram_path)
        if not _is_integer(self.side) or self.side <= 0:
            raise ValueError(f"side must be a positive integer, got {self.side!r}")
        self.side = int(self.side)
        if self.reduce_axis not in (0, 1, 2):
            raise ValueError(f"reduce_axis must be 0, 1 or 2, got {self.reduce_axis}")
        if self.order not in ("C", "F"):
            raise ValueError(f"order must be 'C' or 'F', got {self.order!r}")
        if self.crop_half_width is not None and self.crop_half_width < 0:
            raise ValueError("crop_half_width must be non-negative")
        if self.crop_center is not None and not 0 <= self.crop_center < self.side:
            raise ValueError(
                f"crop_center {self.crop_center} outside grid of side {self.side}"
            )
        if self.domain_size <= 0:
            raise ValueError("domain_size must be positive")

    @property
    def center(self) -> int:
        """Crop window centre index."""
        if self.crop_center is not None:
            return self.crop_center
        return self.side // 2 - 1

    @property
    def n_cells(self) -> int:
        """Total number of voxels, side cubed."""
        return self.side ** 3

    @property
    def cell_size(self) -> float:
        """Edge length of one voxel (m)."""
        return self.domain_size / self.side

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        d = asdict(self)
        d["photons_path"] = str(self.photons_path)
        d["histogram_path"] = str(self.histogram_path)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "AnalysisConfig":
        """Build from a dictionary, ignoring unknown keys."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in names})


ConfigType = Union[GenerationConfig, AnalysisConfig]


def save_config(config: ConfigType, path: Path) -> Path:
    """Write a configuration record to a JSON file."""
    path = Path(path)
    path.write_text(json.dumps(config.to_dict(), indent=2))
    return path


def load_config(path: Path, kind: type = AnalysisConfig) -> ConfigType:
    """
    Load a configuration record from a JSON file.

    Args:
        path: JSON file written by save_config
        kind: GenerationConfig or AnalysisConfig

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the JSON is malformed or holds invalid values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse config {path}: {e}")

    return kind.from_dict(data)
