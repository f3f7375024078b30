"""
Cloud size and position metrics.

Measures where photons were emitted and how wide the emitting cloud is,
either directly from photon positions or by fitting Gaussians to the
marginals of a projected histogram image.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.optimize import curve_fit

from .io import PhotonSet


@dataclass
class CloudMetrics:
    """Summary of a photon emission cloud. Lengths are in metres."""
    n_photons: int
    centroid: tuple[float, float, float]
    rms_width: tuple[float, float, float]
    extent: tuple[float, float, float]

    def to_dict(self) -> dict:
        """Convert to flat dictionary."""
        d = {"n_photons": self.n_photons}
        for i, axis in enumerate("xyz"):
            d[f"centroid_{axis}"] = self.centroid[i]
            d[f"rms_width_{axis}"] = self.rms_width[i]
            d[f"extent_{axis}"] = self.extent[i]
        return d


@dataclass
class GaussianFit:
    """Result of a 1D Gaussian fit."""
    amplitude: float
    center: float
    sigma: float
    offset: float

    def to_dict(self) -> dict:
        return {
            "amplitude": self.amplitude,
            "center": self.center,
            "sigma": self.sigma,
            "offset": self.offset,
        }


def gaussian(x, amplitude, center, sigma, offset):
    return amplitude * np.exp(-((x - center) ** 2) / (2 * sigma ** 2)) + offset


def compute_centroid(positions: np.ndarray) -> np.ndarray:
    """Mean position along each axis."""
    positions = np.asarray(positions, dtype=float)[:, :3]
    if len(positions) == 0:
        return np.full(3, np.nan)
    return positions.mean(axis=0)


def compute_rms_width(positions: np.ndarray) -> np.ndarray:
    """Root-mean-square distance from the centroid along each axis."""
    positions = np.asarray(positions, dtype=float)[:, :3]
    if len(positions) == 0:
        return np.full(3, np.nan)
    return positions.std(axis=0)


def compute_extent(positions: np.ndarray) -> np.ndarray:
    """Peak-to-peak spread along each axis."""
    positions = np.asarray(positions, dtype=float)[:, :3]
    if len(positions) == 0:
        return np.full(3, np.nan)
    return np.ptp(positions, axis=0)


def compute_cloud_metrics(photons: PhotonSet) -> CloudMetrics:
    """Compute centroid, RMS width and extent of a photon set."""
    centroid = compute_centroid(photons.positions)
    rms = compute_rms_width(photons.positions)
    extent = compute_extent(photons.positions)
    return CloudMetrics(
        n_photons=photons.n_photons,
        centroid=tuple(float(v) for v in centroid),
        rms_width=tuple(float(v) for v in rms),
        extent=tuple(float(v) for v in extent),
    )


def compute_image_profiles(image: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Marginal profiles of a projected count image.

    Returns:
        Tuple of (row profile, column profile): sums over columns and rows
    """
    image = np.asarray(image, dtype=float)
    return image.sum(axis=1), image.sum(axis=0)


def fit_gaussian_profile(
    profile: np.ndarray,
    coords: Optional[np.ndarray] = None,
) -> Optional[GaussianFit]:
    """
    Fit a Gaussian with constant offset to a 1D profile.

    Args:
        profile: Counts along one axis (linear, not log-scaled)
        coords: Coordinate of each sample, defaults to the index

    Returns:
        GaussianFit, or None if the profile is flat or the fit fails
    """
    profile = np.asarray(profile, dtype=float)
    if coords is None:
        coords = np.arange(len(profile), dtype=float)
    coords = np.asarray(coords, dtype=float)

    if len(profile) < 4 or np.ptp(profile) == 0:
        return None

    # Moment-based initial guess
    baseline = float(profile.min())
    weights = profile - baseline
    center0 = float(np.sum(coords * weights) / np.sum(weights))
    sigma0 = float(np.sqrt(np.sum(weights * (coords - center0) ** 2) / np.sum(weights)))
    if sigma0 == 0:
        sigma0 = float(np.median(np.diff(coords)))
    p0 = [float(weights.max()), center0, sigma0, baseline]

    try:
        popt, _ = curve_fit(gaussian, coords, profile, p0=p0, maxfev=5000)
    except (RuntimeError, ValueError):
        return None

    return GaussianFit(
        amplitude=float(popt[0]),
        center=float(popt[1]),
        sigma=float(abs(popt[2])),
        offset=float(popt[3]),
    )
