"""
Data I/O utilities for the files shared with the simulator.

Reads photon lists (CSV or HDF5), flat photon histograms and atom tables,
and writes atom tables and histograms in the formats the simulator uses.
"""

from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from typing import Optional

import h5py
import numpy as np
import pandas as pd

from .projection import to_micrometres


HDF5_SUFFIXES = (".h5", ".hdf5")

POSITION_COLUMNS = ["x", "y", "z"]
VELOCITY_COLUMNS = ["vx", "vy", "vz"]
ATOM_LAYOUTS = (POSITION_COLUMNS, POSITION_COLUMNS + VELOCITY_COLUMNS)


@dataclass
class PhotonSet:
    """
    Photon emission records read from a simulator output file.

    Attributes:
        positions: (n, 3) array of emission positions in metres
        directions: Optional (n, 3) array of unit emission directions
        filepath: Path to the source file
    """
    positions: np.ndarray
    directions: Optional[np.ndarray] = None
    filepath: Optional[Path] = None

    @property
    def n_photons(self) -> int:
        """Return number of photons."""
        return len(self.positions)

    @property
    def positions_um(self) -> np.ndarray:
        """Return positions in micrometres."""
        return to_micrometres(self.positions)


def is_hdf5(path: Path) -> bool:
    """Return True if the path has an HDF5 suffix."""
    return Path(path).suffix.lower() in HDF5_SUFFIXES


def _require_file(path: Path, what: str) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{what} file not found: {path}")
    return path


def _first_line(path: Path) -> str:
    """Return the first non-blank line of a text file, or "" if there is none."""
    with open(path) as f:
        for line in f:
            if line.strip():
                return line
    return ""


def _read_numeric_csv(path: Path) -> pd.DataFrame:
    """Read a CSV of numbers, with or without a header row."""
    first_line = _first_line(path)
    if not first_line:
        raise ValueError(f"CSV file is empty: {path}")

    # A header is present if the first row doesn't parse as numbers
    try:
        [float(tok) for tok in first_line.strip().split(",")]
        header = None
    except ValueError:
        header = 0

    try:
        data = pd.read_csv(path, header=header, float_precision="round_trip")
    except Exception as e:
        raise ValueError(f"Failed to parse CSV {path}: {e}")

    try:
        data = data.apply(pd.to_numeric)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Non-numeric value in {path}: {e}")

    bad = ~np.isfinite(data.to_numpy(dtype=float))
    if bad.any():
        bad_row = int(np.where(bad.any(axis=1))[0][0])
        raise ValueError(
            f"Malformed row {bad_row} in {path}: missing or non-finite value"
        )

    return data


def load_photons(path: Path) -> PhotonSet:
    """
    Load photon emission records.

    CSV files hold one photon per line as ``x,y,z[,dx,dy,dz]`` (no header
    needed). HDF5 files hold a ``photons`` dataset, either a compound type
    whose first three fields are the position or a plain (n, >=3) array.

    Args:
        path: Path to the photon output file

    Returns:
        PhotonSet with positions (and directions when present)

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is malformed
    """
    path = _require_file(path, "Photon")

    if is_hdf5(path):
        with h5py.File(path, "r") as f:
            if "photons" not in f:
                raise ValueError(f"HDF5 file has no 'photons' dataset: {path}")
            raw = f["photons"][()]

        if raw.dtype.names:
            names = raw.dtype.names
            columns = np.column_stack([raw[name] for name in names]).astype(float)
        else:
            columns = np.asarray(raw, dtype=float)
            if columns.ndim == 1 and len(columns) == 0:
                columns = columns.reshape(0, 3)
    elif not _first_line(path):
        # The simulator leaves an empty file when no photons were emitted
        columns = np.zeros((0, 3))
    else:
        columns = _read_numeric_csv(path).to_numpy(dtype=float)

    if columns.ndim != 2 or columns.shape[1] < 3:
        raise ValueError(
            f"Photon records need at least 3 columns (x, y, z), got shape "
            f"{columns.shape} in {path}"
        )

    directions = columns[:, 3:6].copy() if columns.shape[1] >= 6 else None

    return PhotonSet(
        positions=columns[:, :3].copy(),
        directions=directions,
        filepath=path,
    )


def load_histogram(path: Path) -> np.ndarray:
    """
    Load a flat photon histogram.

    The simulator writes every cell count followed by a comma on a single
    line. ``.npy`` files and HDF5 files with a ``histogram`` dataset are
    also accepted. The result is always 1D; reshape with
    ``histogram.reshape_grid``.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If any entry is not an integer count
    """
    path = _require_file(path, "Histogram")

    if path.suffix.lower() == ".npy":
        return np.load(path).ravel()

    if is_hdf5(path):
        with h5py.File(path, "r") as f:
            if "histogram" not in f:
                raise ValueError(f"HDF5 file has no 'histogram' dataset: {path}")
            return np.asarray(f["histogram"][()]).ravel()

    text = path.read_text().strip().rstrip(",")
    if not text:
        return np.zeros(0, dtype=np.int64)

    try:
        flat = np.loadtxt(StringIO(text), delimiter=",", dtype=np.int64, ndmin=1)
    except ValueError as e:
        raise ValueError(f"Failed to parse histogram {path}: {e}")

    return flat.ravel()


def write_histogram(flat: np.ndarray, path: Path) -> Path:
    """Write a flat histogram in the simulator's comma-terminated text format."""
    path = Path(path)
    flat = np.asarray(flat).ravel()
    path.write_text("".join(f"{int(v)}," for v in flat))
    return path


def _atoms_to_records(atoms: pd.DataFrame) -> np.ndarray:
    dtype = [(col, "<f8") for col in atoms.columns]
    records = np.zeros(len(atoms), dtype=dtype)
    for col in atoms.columns:
        records[col] = atoms[col].to_numpy(dtype=float)
    return records


def write_atoms(atoms: pd.DataFrame, path: Path) -> Path:
    """
    Write an atom table, replacing any existing file.

    HDF5 destinations get a compound ``atoms`` dataset with one named field
    per column; anything else is written as CSV with a header row. The table
    is written to a temporary sibling first and renamed into place, so the
    destination never holds a partial file.

    Raises:
        ValueError: If the columns aren't a known atom layout
        OSError: If the destination isn't writable
    """
    path = Path(path)
    if list(atoms.columns) not in ATOM_LAYOUTS:
        raise ValueError(
            f"Atom columns must be {POSITION_COLUMNS} or "
            f"{POSITION_COLUMNS + VELOCITY_COLUMNS}, got {list(atoms.columns)}"
        )

    tmp_path = path.with_name(path.name + ".tmp")
    try:
        if is_hdf5(path):
            with h5py.File(tmp_path, "w") as f:
                f.create_dataset("atoms", data=_atoms_to_records(atoms))
        else:
            atoms.to_csv(tmp_path, index=False, float_format="%.17g")
        tmp_path.replace(path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    return path


def load_atoms(path: Path) -> pd.DataFrame:
    """
    Load an atom table written by write_atoms.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file doesn't hold a known atom layout
    """
    path = _require_file(path, "Atom")

    if is_hdf5(path):
        with h5py.File(path, "r") as f:
            if "atoms" not in f:
                raise ValueError(f"HDF5 file has no 'atoms' dataset: {path}")
            records = f["atoms"][()]
        if not records.dtype.names:
            raise ValueError(f"'atoms' dataset must have named fields: {path}")
        atoms = pd.DataFrame({name: records[name] for name in records.dtype.names})
    else:
        atoms = _read_numeric_csv(path)

    if list(atoms.columns) not in ATOM_LAYOUTS:
        raise ValueError(f"Unexpected atom columns {list(atoms.columns)} in {path}")

    return atoms
