"""
Tests for file I/O module.
"""

import h5py
import numpy as np
import pandas as pd
import pytest

from photonlib.io import (
    PhotonSet,
    load_atoms,
    load_histogram,
    load_photons,
    write_atoms,
    write_histogram,
)


class TestLoadPhotons:
    """Test loading photon lists."""

    def test_csv_without_header(self, tmp_path):
        """Test the simulator's x,y,z,dx,dy,dz rows."""
        path = tmp_path / "photons.csv"
        path.write_text(
            "1e-6,2e-6,3e-6,0.0,0.0,1.0\n"
            "-1e-6,0.0,5e-7,1.0,0.0,0.0\n"
        )
        photons = load_photons(path)
        assert photons.n_photons == 2
        assert photons.positions.shape == (2, 3)
        assert photons.directions.shape == (2, 3)
        assert photons.positions[0, 2] == 3e-6
        assert np.allclose(photons.positions_um[0], [1.0, 2.0, 3.0])

    def test_csv_with_header(self, tmp_path):
        """Test a positions-only CSV with a header row."""
        path = tmp_path / "photons.csv"
        path.write_text("x0,x1,x2\n1.0,2.0,3.0\n")
        photons = load_photons(path)
        assert photons.n_photons == 1
        assert photons.directions is None

    def test_hdf5_compound(self, tmp_path):
        """Test an HDF5 'photons' dataset of compound records."""
        path = tmp_path / "output.h5"
        dtype = [(f"x{i}", "<f8") for i in range(6)]
        records = np.zeros(3, dtype=dtype)
        records["x0"] = [1e-6, 2e-6, 3e-6]
        records["x5"] = 1.0
        with h5py.File(path, "w") as f:
            f.create_dataset("photons", data=records)

        photons = load_photons(path)
        assert photons.n_photons == 3
        assert np.array_equal(photons.positions[:, 0], [1e-6, 2e-6, 3e-6])
        assert np.all(photons.directions[:, 2] == 1.0)

    def test_hdf5_plain_array(self, tmp_path):
        """Test an HDF5 'photons' dataset stored as an (n, 3) array."""
        path = tmp_path / "output.h5"
        with h5py.File(path, "w") as f:
            f.create_dataset("photons", data=np.ones((4, 3)))
        photons = load_photons(path)
        assert photons.positions.shape == (4, 3)
        assert photons.directions is None

    def test_hdf5_missing_dataset(self, tmp_path):
        """Test an HDF5 file without photons."""
        path = tmp_path / "output.h5"
        with h5py.File(path, "w") as f:
            f.create_dataset("other", data=np.ones(3))
        with pytest.raises(ValueError, match="photons"):
            load_photons(path)

    def test_missing_file(self, tmp_path):
        """Test a missing file is fatal."""
        with pytest.raises(FileNotFoundError):
            load_photons(tmp_path / "nope.csv")

    def test_short_row(self, tmp_path):
        """Test a row with missing columns."""
        path = tmp_path / "photons.csv"
        path.write_text("1.0,2.0,3.0\n4.0,5.0\n")
        with pytest.raises(ValueError, match="Malformed row 1"):
            load_photons(path)

    def test_long_row(self, tmp_path):
        """Test a row with extra columns."""
        path = tmp_path / "photons.csv"
        path.write_text("1.0,2.0,3.0\n4.0,5.0,6.0,7.0\n")
        with pytest.raises(ValueError):
            load_photons(path)

    def test_too_few_columns(self, tmp_path):
        """Test a file with only two columns."""
        path = tmp_path / "photons.csv"
        path.write_text("1.0,2.0\n3.0,4.0\n")
        with pytest.raises(ValueError, match="at least 3 columns"):
            load_photons(path)

    def test_empty_file(self, tmp_path):
        """Test a run that emitted no photons loads as an empty set."""
        path = tmp_path / "photons.csv"
        path.write_text("")
        photons = load_photons(path)
        assert photons.n_photons == 0
        assert photons.positions.shape == (0, 3)

    def test_empty_file_matches_hdf5(self, tmp_path):
        """Test empty CSV and empty HDF5 photon files agree."""
        csv_path = tmp_path / "photons.csv"
        csv_path.write_text("\n")
        h5_path = tmp_path / "output.h5"
        with h5py.File(h5_path, "w") as f:
            f.create_dataset("photons", data=np.zeros((0, 6)))
        assert load_photons(csv_path).n_photons == load_photons(h5_path).n_photons == 0

    def test_nan_field(self, tmp_path):
        """Test a NaN coordinate is reported as a non-finite value."""
        path = tmp_path / "photons.csv"
        path.write_text("1.0,2.0,3.0\nNaN,5.0,6.0\n")
        with pytest.raises(ValueError, match="Malformed row 1.*non-finite"):
            load_photons(path)


class TestHistogramFiles:
    """Test flat histogram reading and writing."""

    def test_trailing_comma(self, tmp_path):
        """Test the simulator's comma-terminated format."""
        path = tmp_path / "hist.txt"
        path.write_text("0,1,2,3,4,5,6,7,")
        flat = load_histogram(path)
        assert np.array_equal(flat, np.arange(8))

    def test_write_then_read(self, tmp_path):
        """Test write_histogram output is readable."""
        flat = np.array([0, 3, 0, 12])
        path = write_histogram(flat, tmp_path / "hist.txt")
        assert path.read_text() == "0,3,0,12,"
        assert np.array_equal(load_histogram(path), flat)

    def test_corrupt_entry(self, tmp_path):
        """Test a non-integer token is rejected."""
        path = tmp_path / "hist.txt"
        path.write_text("1,2,x,4,")
        with pytest.raises(ValueError):
            load_histogram(path)

    def test_empty_entry(self, tmp_path):
        """Test a missing count between commas is rejected."""
        path = tmp_path / "hist.txt"
        path.write_text("1,,3,")
        with pytest.raises(ValueError, match="Failed to parse histogram"):
            load_histogram(path)

    def test_float_entry(self, tmp_path):
        """Test a fractional count is rejected."""
        path = tmp_path / "hist.txt"
        path.write_text("1,2.5,3,")
        with pytest.raises(ValueError):
            load_histogram(path)

    def test_npy(self, tmp_path):
        """Test .npy histograms are flattened."""
        path = tmp_path / "hist.npy"
        np.save(path, np.ones((2, 2, 2), dtype=np.int32))
        flat = load_histogram(path)
        assert flat.shape == (8,)

    def test_hdf5(self, tmp_path):
        """Test HDF5 'histogram' dataset."""
        path = tmp_path / "hist.h5"
        with h5py.File(path, "w") as f:
            f.create_dataset("histogram", data=np.arange(27))
        assert load_histogram(path).size == 27

    def test_missing_file(self, tmp_path):
        """Test a missing histogram is fatal."""
        with pytest.raises(FileNotFoundError):
            load_histogram(tmp_path / "hist.txt")


class TestAtomFiles:
    """Test atom table persistence."""

    def test_hdf5_named_fields(self, tmp_path):
        """Test the 'atoms' dataset has one field per column."""
        atoms = pd.DataFrame({c: np.arange(3, dtype=float) for c in
                              ["x", "y", "z", "vx", "vy", "vz"]})
        path = write_atoms(atoms, tmp_path / "atoms.h5")
        with h5py.File(path, "r") as f:
            assert f["atoms"].dtype.names == ("x", "y", "z", "vx", "vy", "vz")
            assert len(f["atoms"]) == 3
        loaded = load_atoms(path)
        assert list(loaded.columns) == list(atoms.columns)

    def test_csv_exact(self, tmp_path):
        """Test CSV values are read back bit-for-bit."""
        atoms = pd.DataFrame({"x": [0.1, -4.5e-6, 1 / 3], "y": [0.0] * 3, "z": [0.0] * 3})
        path = write_atoms(atoms, tmp_path / "atoms.csv")
        loaded = load_atoms(path)
        assert np.array_equal(loaded["x"].to_numpy(), atoms["x"].to_numpy())

    def test_overwrites(self, tmp_path):
        """Test an existing file is replaced."""
        path = tmp_path / "atoms.csv"
        path.write_text("old contents\n")
        atoms = pd.DataFrame({"x": [1.0], "y": [2.0], "z": [3.0]})
        write_atoms(atoms, path)
        assert len(load_atoms(path)) == 1
        assert not (tmp_path / "atoms.csv.tmp").exists()

    def test_empty_atom_file(self, tmp_path):
        """Test an empty atom file is still rejected."""
        path = tmp_path / "atoms.csv"
        path.write_text("")
        with pytest.raises(ValueError, match="empty"):
            load_atoms(path)

    def test_bad_columns(self, tmp_path):
        """Test unknown column layouts are rejected."""
        atoms = pd.DataFrame({"x": [1.0], "y": [2.0]})
        with pytest.raises(ValueError):
            write_atoms(atoms, tmp_path / "atoms.csv")

    def test_unwritable_destination(self, tmp_path):
        """Test writing into a missing directory fails."""
        atoms = pd.DataFrame({"x": [1.0], "y": [2.0], "z": [3.0]})
        with pytest.raises(OSError):
            write_atoms(atoms, tmp_path / "missing" / "atoms.csv")


class TestPhotonSet:
    """Test PhotonSet container."""

    def test_empty(self):
        """Test an empty photon set."""
        photons = PhotonSet(positions=np.zeros((0, 3)))
        assert photons.n_photons == 0
        assert photons.positions_um.shape == (0, 3)
