"""
Plotting utilities for photon and atom visualization.

Provides 3D emission scatter plots, log-scaled projected histogram images
and distributions of generated atom tables.
"""

from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .histogram import crop_bounds
from .projection import to_micrometres


AXIS_LABELS = ["x (µm)", "y (µm)", "z (µm)"]

# Camera angles for the 3D emission scatter
SCATTER_ELEVATION = 45
SCATTER_AZIMUTH = -45


def plot_photon_scatter(
    positions: np.ndarray,
    title: Optional[str] = None,
    max_points: Optional[int] = None,
    ax: Optional[plt.Axes] = None,
    figsize: tuple[float, float] = (8, 7),
) -> plt.Figure:
    """
    Create a 3D scatter plot of photon emission positions.

    Args:
        positions: (n, >=3) array of positions in metres
        title: Plot title
        max_points: Plot only the first max_points photons
        ax: Existing 3D axes to plot on
        figsize: Figure size if creating new figure

    Returns:
        matplotlib Figure
    """
    if ax is None:
        fig = plt.figure(figsize=figsize)
        ax = fig.add_subplot(projection="3d")
    else:
        fig = ax.figure

    pos_um = to_micrometres(positions)
    if max_points is not None:
        pos_um = pos_um[:max_points]

    ax.plot(pos_um[:, 0], pos_um[:, 1], pos_um[:, 2], ".", markersize=2)

    ax.view_init(elev=SCATTER_ELEVATION, azim=SCATTER_AZIMUTH)
    ax.set_xlabel(AXIS_LABELS[0])
    ax.set_ylabel(AXIS_LABELS[1])
    ax.set_zlabel(AXIS_LABELS[2])
    ax.set_title(title or f"Photon emission positions ({len(pos_um)} photons)")

    fig.patch.set_facecolor("white")
    fig.tight_layout()
    return fig


def plot_projected_image(
    image: np.ndarray,
    side: Optional[int] = None,
    center: Optional[int] = None,
    half_width: Optional[int] = None,
    cmap: str = "viridis",
    title: Optional[str] = None,
    ax: Optional[plt.Axes] = None,
    figsize: tuple[float, float] = (7, 6),
) -> plt.Figure:
    """
    Display a log-scaled projected histogram.

    When the image was cropped, pass the grid side, window centre and
    half-width so the axes show the original cell indices.

    Args:
        image: 2D array of log10 counts
        side: Grid side the image was cropped from
        center: Crop window centre index
        half_width: Crop window half-width
        cmap: Colormap name
        title: Plot title
        ax: Existing axes
        figsize: Figure size

    Returns:
        matplotlib Figure
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    extent = None
    if side is not None and center is not None and half_width is not None:
        start, stop = crop_bounds(side, center, half_width)
        extent = (start - 0.5, stop + 0.5, stop + 0.5, start - 0.5)

    im = ax.imshow(image, cmap=cmap, extent=extent, interpolation="nearest")
    cbar = fig.colorbar(im, ax=ax)
    cbar.set_label("log10(counts)")

    ax.set_xlabel("Cell index (axis 1)")
    ax.set_ylabel("Cell index (axis 0)")
    ax.set_title(title or "Projected photon histogram")

    fig.tight_layout()
    return fig


def plot_atom_distribution(
    atoms: pd.DataFrame,
    bins: int = 50,
    title: str = "Initial atom distribution",
    figsize: tuple[float, float] = (12, 6),
) -> plt.Figure:
    """
    Create histograms of each column of a generated atom table.

    Positions are shown in µm and velocities in mm/s.
    """
    columns = list(atoms.columns)
    n_rows = 2 if len(columns) > 3 else 1
    fig, axes = plt.subplots(n_rows, 3, figsize=figsize, squeeze=False)

    for i, col in enumerate(columns):
        ax = axes[i // 3][i % 3]
        if col.startswith("v"):
            values = atoms[col].to_numpy() * 1e3
            label = f"{col} (mm/s)"
        else:
            values = atoms[col].to_numpy() * 1e6
            label = f"{col} (µm)"
        ax.hist(values, bins=bins, color="steelblue", edgecolor="white")
        ax.set_xlabel(label)
        ax.set_ylabel("Atoms")
        ax.grid(True, alpha=0.3)

    fig.suptitle(f"{title} ({len(atoms)} atoms)")
    fig.tight_layout()
    return fig


def save_figure(fig: plt.Figure, path: str, dpi: int = 150) -> None:
    """Save figure to file."""
    fig.savefig(path, dpi=dpi, bbox_inches='tight', facecolor='white')
    plt.close(fig)
