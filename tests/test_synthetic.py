"""
Tests for atom generation module.
"""

import json

import numpy as np
import pytest

from photonlib.config import GenerationConfig
from photonlib.io import load_atoms
from photonlib.synthetic import (
    generate_atom_file,
    generate_atoms,
    generate_linear_chain,
)


class TestLinearChain:
    """Test the evenly spaced chain."""

    def test_positions(self):
        """Test ten atoms from -4.5 um to 4.5 um with y = z = 0."""
        atoms = generate_atoms(GenerationConfig.linear_chain())
        expected = np.array([-4.5, -3.5, -2.5, -1.5, -0.5, 0.5, 1.5, 2.5, 3.5, 4.5]) * 1e-6
        assert len(atoms) == 10
        assert list(atoms.columns) == ["x", "y", "z"]
        assert np.array_equal(atoms["x"].to_numpy(), expected)
        assert np.all(atoms["y"] == 0)
        assert np.all(atoms["z"] == 0)

    def test_with_velocity(self):
        """Test velocities are zero when requested."""
        atoms = generate_linear_chain(4, 1e-6, include_velocity=True)
        assert list(atoms.columns) == ["x", "y", "z", "vx", "vy", "vz"]
        assert np.all(atoms[["vx", "vy", "vz"]].to_numpy() == 0)

    def test_file_exact(self, tmp_path):
        """Test the written file holds the exact chain positions."""
        config = GenerationConfig.linear_chain(out_path=tmp_path / "atoms.csv")
        path = generate_atom_file(config)
        atoms = load_atoms(path)
        expected = (np.arange(10) - 4.5) * 1e-6
        assert np.array_equal(atoms["x"].to_numpy(), expected)


class TestNormalCloud:
    """Test Gaussian sampling."""

    def test_row_count_and_columns(self):
        """Test exactly N rows of six columns."""
        atoms = generate_atoms(GenerationConfig.normal_cloud(seed=1))
        assert len(atoms) == 10_000
        assert list(atoms.columns) == ["x", "y", "z", "vx", "vy", "vz"]

    def test_standard_deviations(self):
        """Test sample spreads match the configured sigmas."""
        atoms = generate_atoms(GenerationConfig.normal_cloud(seed=2))
        for col in ["x", "y", "z"]:
            assert np.isclose(atoms[col].std(), 1e-4, rtol=0.05)
            assert abs(atoms[col].mean()) < 1e-5
        for col in ["vx", "vy", "vz"]:
            assert np.isclose(atoms[col].std(), 1e-3, rtol=0.05)

    def test_columns_uncorrelated(self):
        """Test components are drawn independently."""
        atoms = generate_atoms(GenerationConfig.normal_cloud(seed=3))
        corr = np.corrcoef(atoms.to_numpy().T)
        off_diagonal = corr[~np.eye(6, dtype=bool)]
        assert np.all(np.abs(off_diagonal) < 0.05)

    def test_seed_reproducible(self):
        """Test the same seed gives the same table."""
        a = generate_atoms(GenerationConfig.normal_cloud(seed=7, n_atoms=100))
        b = generate_atoms(GenerationConfig.normal_cloud(seed=7, n_atoms=100))
        assert a.equals(b)

    def test_positions_only(self):
        """Test velocity columns can be left out."""
        config = GenerationConfig.normal_cloud(n_atoms=5, include_velocity=False, seed=0)
        atoms = generate_atoms(config)
        assert list(atoms.columns) == ["x", "y", "z"]

    @pytest.mark.parametrize("n_atoms", [1, 3, 250])
    def test_any_positive_count(self, n_atoms):
        """Test the row count for several N."""
        atoms = generate_atoms(GenerationConfig(n_atoms=n_atoms, seed=0))
        assert len(atoms) == n_atoms


class TestGenerateAtomFile:
    """Test writing atom files."""

    def test_hdf5_and_sidecar(self, tmp_path):
        """Test the atom file and metadata sidecar are written."""
        config = GenerationConfig.normal_cloud(n_atoms=50, seed=5,
                                               out_path=tmp_path / "atoms.h5")
        path = generate_atom_file(config)
        assert path.exists()
        assert len(load_atoms(path)) == 50

        meta = json.loads((tmp_path / "atoms.meta.json").read_text())
        assert meta["n_atoms"] == 50
        assert meta["units"]["vx"] == "m/s"
        assert meta["config"]["seed"] == 5

    def test_overwrites_existing(self, tmp_path):
        """Test a second run replaces the first file."""
        out = tmp_path / "atoms.csv"
        generate_atom_file(GenerationConfig(n_atoms=20, seed=0, out_path=out))
        generate_atom_file(GenerationConfig(n_atoms=5, seed=0, out_path=out))
        assert len(load_atoms(out)) == 5

    @pytest.mark.parametrize("n_atoms", [float("inf"), float("nan"), 2.5, "10"])
    def test_non_integer_count(self, n_atoms):
        """Test infinite, NaN and fractional counts raise ValueError."""
        with pytest.raises(ValueError):
            GenerationConfig(n_atoms=n_atoms)

    def test_numpy_integer_count(self):
        """Test numpy integers are accepted."""
        assert GenerationConfig(n_atoms=np.int64(12)).n_atoms == 12

    @pytest.mark.parametrize("n_atoms", [0, -10])
    def test_non_positive_count(self, n_atoms):
        """Test N <= 0 is rejected."""
        with pytest.raises(ValueError):
            GenerationConfig(n_atoms=n_atoms)
