"""
Unit rescaling of photon positions for display.
"""

import numpy as np


METRES_TO_MICROMETRES = 1e6


def to_micrometres(positions: np.ndarray) -> np.ndarray:
    """
    Rescale photon positions from metres to micrometres.

    Only the first three columns are positions; any further columns
    (emission directions) are dropped. Every row is kept.

    Args:
        positions: (n, >=3) array, or a single row of length >=3

    Returns:
        (n, 3) array in micrometres (a single row stays 1D)
    """
    positions = np.asarray(positions, dtype=float)
    if positions.shape[-1] < 3:
        raise ValueError(
            f"Positions need at least 3 columns, got shape {positions.shape}"
        )
    return positions[..., :3] * METRES_TO_MICROMETRES


def from_micrometres(values: np.ndarray) -> np.ndarray:
    """Convert micrometres back to metres."""
    return np.asarray(values, dtype=float) / METRES_TO_MICROMETRES
