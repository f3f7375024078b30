#!/usr/bin/env python3
"""
Photon Explorer - Imaging Simulation Dashboard

A Streamlit-based mini-dashboard for viewing the photon emission output of
the atom imaging simulator.
"""

import matplotlib
matplotlib.use('Agg')  # Set non-interactive backend before importing pyplot

import streamlit as st
import pandas as pd
import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path
from io import BytesIO

from photonlib.config import AnalysisConfig, GenerationConfig, KNOWN_SIDES
from photonlib.histogram import histogram_summary, reduce_histogram
from photonlib.io import PhotonSet, load_atoms, load_histogram, load_photons
from photonlib.metrics import compute_cloud_metrics
from photonlib.plotting import (
    plot_atom_distribution, plot_photon_scatter, plot_projected_image
)
from photonlib.report import generate_report
from photonlib.synthetic import generate_atom_file

st.set_page_config(
    page_title="Photon Explorer",
    layout="wide",
    initial_sidebar_state="expanded"
)


def show_fig(fig):
    """Convert matplotlib figure to PNG and display with st.image()."""
    buf = BytesIO()
    fig.savefig(buf, format='png', dpi=150, bbox_inches='tight', facecolor='white')
    buf.seek(0)
    st.image(buf, use_container_width=True)
    plt.close(fig)


@st.cache_data
def load_photons_cached(path: str):
    """Load and cache photon positions and directions."""
    photons = load_photons(Path(path))
    return photons.positions, photons.directions


@st.cache_data
def load_histogram_cached(path: str):
    """Load and cache a flat histogram."""
    return load_histogram(Path(path))


def format_metric(val, precision=3):
    """Format metric value for display."""
    if val is None or (isinstance(val, float) and np.isnan(val)):
        return "N/A"
    if isinstance(val, float):
        if abs(val) > 1000 or (abs(val) < 0.01 and val != 0):
            return f"{val:.{precision}e}"
        return f"{val:.{precision}f}"
    return str(val)


def main():
    st.title("Photon Explorer")
    st.markdown("*Atom imaging simulation dashboard*")

    with st.sidebar:
        st.header("Data Files")

        photons_file = st.text_input("Photon file", value="output.h5",
                                     help="Photon list written by the simulator (.h5 or .csv)")
        histogram_file = st.text_input("Histogram file", value="photon_histogram.txt",
                                       help="Flat photon histogram written by the simulator")
        atoms_file = st.text_input("Atom file", value="atoms.h5",
                                   help="Initial atom file given to the simulator")

        st.divider()
        st.header("Histogram")

        side = st.selectbox("Grid side", options=list(KNOWN_SIDES), index=0,
                            help="Must match the simulator run")
        use_crop = st.checkbox("Crop to centre", value=True)
        half_width = st.slider("Crop half-width (cells)", 5, 128, 30) if use_crop else None
        log_floor = st.number_input("Log floor for empty pixels", value=-1.0, step=0.5)

        config = AnalysisConfig(
            side=side,
            crop_half_width=half_width,
            log_floor=log_floor,
            photons_path=Path(photons_file),
            histogram_path=Path(histogram_file),
        )

        st.divider()
        st.header("Atom Generation")

        variant = st.selectbox("Variant", options=["normal", "linear"])
        seed = st.number_input("Seed", min_value=0, value=42)
        if st.button("Generate atom file"):
            preset = GenerationConfig.normal_cloud if variant == "normal" else GenerationConfig.linear_chain
            out = generate_atom_file(preset(seed=int(seed), out_path=Path(atoms_file)))
            st.success(f"Wrote {out}")

    photons = None
    if Path(photons_file).exists():
        try:
            positions, directions = load_photons_cached(photons_file)
            photons = PhotonSet(positions=positions, directions=directions,
                                filepath=Path(photons_file))
        except (ValueError, OSError) as e:
            st.error(f"Failed to load photons: {e}")

    histogram = None
    if Path(histogram_file).exists():
        try:
            histogram = load_histogram_cached(histogram_file)
        except (ValueError, OSError) as e:
            st.error(f"Failed to load histogram: {e}")

    tab_scatter, tab_projection, tab_atoms, tab_report = st.tabs([
        "Emission Scatter", "Projected Histogram", "Initial Atoms", "Report"
    ])

    with tab_scatter:
        if photons is None:
            st.info(f"No photon file at {photons_file}")
        else:
            metrics = compute_cloud_metrics(photons)
            col1, col2, col3 = st.columns(3)
            with col1:
                st.metric("Photons", metrics.n_photons)
            with col2:
                st.metric("RMS width x (µm)", format_metric(metrics.rms_width[0] * 1e6))
            with col3:
                st.metric("RMS width z (µm)", format_metric(metrics.rms_width[2] * 1e6))

            max_points = st.slider("Max points plotted", 1000, 200_000, 50_000, step=1000)
            show_fig(plot_photon_scatter(photons.positions, max_points=max_points))

            st.subheader("Cloud Metrics")
            st.dataframe(pd.DataFrame([metrics.to_dict()]), use_container_width=True)

    with tab_projection:
        if histogram is None:
            st.info(f"No histogram file at {histogram_file}")
        else:
            summary = histogram_summary(histogram, config.side)
            if not summary["size_matches"]:
                st.error(
                    f"Histogram has {summary['n_cells']} cells, side {config.side} "
                    f"needs {config.n_cells}. Pick the side the simulator used."
                )
            else:
                image = reduce_histogram(histogram, config)
                show_fig(plot_projected_image(
                    image,
                    side=config.side if use_crop else None,
                    center=config.center if use_crop else None,
                    half_width=half_width,
                ))
                st.dataframe(pd.DataFrame([summary]), use_container_width=True)

    with tab_atoms:
        if not Path(atoms_file).exists():
            st.info(f"No atom file at {atoms_file}")
        else:
            try:
                atoms = load_atoms(Path(atoms_file))
                st.metric("Atoms", len(atoms))
                show_fig(plot_atom_distribution(atoms))
                st.dataframe(atoms.describe(), use_container_width=True)
            except (ValueError, OSError) as e:
                st.error(f"Failed to load atoms: {e}")

    with tab_report:
        st.header("Generate Report")
        notes = st.text_area("Notes", value="")
        if st.button("Generate report"):
            if photons is None and histogram is None:
                st.warning("Nothing to report: load photons or a histogram first")
            else:
                report_dir = generate_report(config, photons=photons,
                                             histogram=histogram, notes=notes)
                st.success(f"Report written to {report_dir}")
                st.markdown((report_dir / "report.md").read_text())


if __name__ == "__main__":
    main()
