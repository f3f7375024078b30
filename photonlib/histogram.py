"""
Reduction of 3D photon histograms to 2D log-scaled images.

A flat histogram of side**3 counts is reshaped into a voxel grid, summed
along one axis, log-scaled and optionally cropped to a window around the
grid centre.

The simulator stores cell (ix, iy, iz) at flat index
``iz * side**2 + iy * side + ix``. Reshaping in row-major ("C") order
therefore gives ``grid[iz, iy, ix]``, and summing over axis 2 integrates
along the simulator's x axis (the imaging beam direction).
"""

from typing import Optional

import numpy as np

from .config import AnalysisConfig


def reshape_grid(flat: np.ndarray, side: int, order: str = "C") -> np.ndarray:
    """
    Reshape a flat histogram into a cubic voxel grid.

    Args:
        flat: 1D array of cell counts
        side: Cells along one edge of the grid
        order: "C" (row-major) or "F" (column-major)

    Returns:
        Array of shape (side, side, side)

    Raises:
        ValueError: If len(flat) != side**3
    """
    flat = np.asarray(flat).ravel()
    expected = side ** 3
    if flat.size != expected:
        raise ValueError(
            f"Histogram has {flat.size} entries but side {side} needs "
            f"{side}^3 = {expected}"
        )
    return flat.reshape((side, side, side), order=order)


def flatten_grid(grid: np.ndarray, order: str = "C") -> np.ndarray:
    """Flatten a voxel grid back to the simulator's 1D layout."""
    return np.asarray(grid).ravel(order=order)


def project_grid(grid: np.ndarray, axis: int = 2) -> np.ndarray:
    """
    Sum a voxel grid along one axis.

    Counts are accumulated in int64 so small input dtypes can't overflow.
    """
    grid = np.asarray(grid)
    if grid.ndim != 3:
        raise ValueError(f"Expected a 3D grid, got shape {grid.shape}")
    return grid.sum(axis=axis, dtype=np.int64)


def log_scale(image: np.ndarray, floor: float = -1.0) -> np.ndarray:
    """
    Apply log10 to a projected image.

    Empty pixels (count 0) are set to ``floor``. The default of -1 sits one
    decade below a single count, so empty pixels stay distinguishable from
    pixels with one photon (log10(1) = 0).

    Raises:
        ValueError: If any pixel is negative, NaN or infinite
    """
    image = np.asarray(image, dtype=float)
    if not np.all(np.isfinite(image)):
        raise ValueError("Cannot log-scale non-finite counts")
    if np.any(image < 0):
        raise ValueError("Cannot log-scale negative counts")

    result = np.full(image.shape, float(floor))
    nonzero = image > 0
    result[nonzero] = np.log10(image[nonzero])
    return result


def crop_bounds(size: int, center: int, half_width: int) -> tuple[int, int]:
    """
    Return inclusive (start, stop) indices of a window clipped to [0, size).
    """
    start = max(center - half_width, 0)
    stop = min(center + half_width, size - 1)
    return start, stop


def crop_window(
    image: np.ndarray,
    center: int,
    half_width: int,
) -> np.ndarray:
    """
    Crop a 2D image to rows and columns [center - half_width, center + half_width].

    Both bounds are inclusive. A window reaching past the image edge is
    clipped to the image.
    """
    image = np.asarray(image)
    row_start, row_stop = crop_bounds(image.shape[0], center, half_width)
    col_start, col_stop = crop_bounds(image.shape[1], center, half_width)
    return image[row_start:row_stop + 1, col_start:col_stop + 1]


def reduce_histogram(
    flat: np.ndarray,
    config: AnalysisConfig,
    crop: bool = True,
) -> np.ndarray:
    """
    Turn a flat histogram into a displayable log-intensity image.

    Args:
        flat: 1D array of side**3 counts
        config: Analysis configuration (side, axis, order, crop, floor)
        crop: Apply the configured crop window

    Returns:
        2D array of log10 counts
    """
    grid = reshape_grid(flat, config.side, order=config.order)
    image = log_scale(project_grid(grid, axis=config.reduce_axis), floor=config.log_floor)

    if crop and config.crop_half_width is not None:
        image = crop_window(image, config.center, config.crop_half_width)

    return image


def bin_photons(
    positions: np.ndarray,
    side: int,
    domain_size: float,
    order: str = "C",
) -> np.ndarray:
    """
    Build a voxel grid from photon positions.

    Uses the simulator's cell convention: cell index along each axis is
    ``trunc(p / cell_size) + side // 2``. Photons outside the domain are
    dropped. The returned grid is indexed like ``reshape_grid`` output,
    i.e. ``grid[iz, iy, ix]`` for row-major order.

    Args:
        positions: (n, >=3) array of positions in metres
        side: Cells along one edge
        domain_size: Edge length of the histogram domain in metres
        order: Flat layout convention the grid should match
    """
    positions = np.asarray(positions, dtype=float)
    if positions.ndim != 2 or positions.shape[1] < 3:
        raise ValueError(f"Positions need shape (n, 3), got {positions.shape}")

    cell_size = domain_size / side
    idx = np.trunc(positions[:, :3] / cell_size).astype(np.int64) + side // 2
    inside = np.all((idx >= 0) & (idx < side), axis=1)
    idx = idx[inside]

    flat_index = idx[:, 2] * side * side + idx[:, 1] * side + idx[:, 0]
    flat = np.bincount(flat_index, minlength=side ** 3).astype(np.int64)

    return reshape_grid(flat, side, order=order)


def histogram_summary(flat: np.ndarray, side: Optional[int] = None) -> dict:
    """Summary statistics of a flat histogram."""
    flat = np.asarray(flat).ravel()
    summary = {
        "n_cells": int(flat.size),
        "total_counts": int(flat.sum()) if flat.size else 0,
        "occupied_cells": int(np.count_nonzero(flat)),
        "max_count": int(flat.max()) if flat.size else 0,
    }
    if side is not None:
        summary["side"] = side
        summary["size_matches"] = flat.size == side ** 3
    return summary
