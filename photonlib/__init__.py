"""
Photon Explorer Library - Post-processing for atom imaging simulations.

This package provides tools for generating initial atom files, loading
simulated photon emission data, reducing photon histograms to projected
images, and visualizing the results.
"""

__version__ = "0.1.0"
