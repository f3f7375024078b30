"""
Synthetic atom cloud generator.

Produces the table of initial atom positions (and optionally velocities)
that the simulator reads at start-up.
"""

import json
from datetime import datetime
from pathlib import Path

import numpy as np
import pandas as pd

from .config import GenerationConfig
from .io import POSITION_COLUMNS, VELOCITY_COLUMNS, write_atoms


def generate_normal_cloud(
    n_atoms: int,
    position_sigma: float,
    velocity_sigma: float,
    include_velocity: bool,
    rng: np.random.Generator,
) -> pd.DataFrame:
    """
    Draw independent zero-mean Gaussian positions and velocities.

    Each column is sampled separately, so there is no correlation between
    rows or between components.
    """
    data = {col: rng.normal(0.0, position_sigma, n_atoms) for col in POSITION_COLUMNS}
    if include_velocity:
        for col in VELOCITY_COLUMNS:
            data[col] = rng.normal(0.0, velocity_sigma, n_atoms)
    return pd.DataFrame(data)


def generate_linear_chain(
    n_atoms: int,
    spacing: float,
    include_velocity: bool,
) -> pd.DataFrame:
    """
    Place atoms evenly along x, centred on the origin, with y = z = 0.

    For 10 atoms 1 um apart, x runs from -4.5 um to 4.5 um.
    """
    x = (np.arange(n_atoms) - (n_atoms - 1) / 2) * spacing
    data = {"x": x, "y": np.zeros(n_atoms), "z": np.zeros(n_atoms)}
    if include_velocity:
        for col in VELOCITY_COLUMNS:
            data[col] = np.zeros(n_atoms)
    return pd.DataFrame(data)


def generate_atoms(config: GenerationConfig) -> pd.DataFrame:
    """
    Generate the atom table described by a configuration.

    Returns:
        DataFrame with exactly config.n_atoms rows and columns
        x, y, z (and vx, vy, vz when velocities are included)
    """
    if config.variant == "linear":
        return generate_linear_chain(
            config.n_atoms, config.spacing, config.include_velocity
        )

    rng = np.random.default_rng(config.seed)
    return generate_normal_cloud(
        config.n_atoms,
        config.position_sigma,
        config.velocity_sigma,
        config.include_velocity,
        rng,
    )


def generate_atom_file(config: GenerationConfig) -> Path:
    """
    Generate an atom table and write it, plus a JSON metadata sidecar.

    The destination is overwritten if it exists.

    Args:
        config: Generation parameters, including the output path

    Returns:
        Path to the written atom file
    """
    out_path = config.out_path
    out_path.parent.mkdir(parents=True, exist_ok=True)

    print(f"Generating {config.n_atoms} atoms ({config.variant}) in {out_path}")

    atoms = generate_atoms(config)
    write_atoms(atoms, out_path)

    metadata = {
        "generated": datetime.now().isoformat(timespec="seconds"),
        "n_atoms": len(atoms),
        "columns": list(atoms.columns),
        "units": {col: ("m" if col in POSITION_COLUMNS else "m/s") for col in atoms.columns},
        "config": config.to_dict(),
    }
    meta_path = out_path.with_suffix(".meta.json")
    meta_path.write_text(json.dumps(metadata, indent=2))

    print(f"Wrote {len(atoms)} atoms to {out_path}")

    return out_path
