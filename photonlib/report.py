"""
Report generation utilities.

Generates Markdown reports with embedded plots and cloud metrics tables.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from .config import AnalysisConfig
from .histogram import histogram_summary, project_grid, reduce_histogram, reshape_grid
from .io import PhotonSet
from .metrics import compute_cloud_metrics, compute_image_profiles, fit_gaussian_profile
from .plotting import plot_photon_scatter, plot_projected_image, save_figure


def _format_value(val) -> str:
    if isinstance(val, float):
        if np.isnan(val):
            return "N/A"
        if abs(val) > 1000 or (abs(val) < 0.01 and val != 0):
            return f"{val:.3e}"
        return f"{val:.3f}"
    return str(val)


def generate_report(
    config: AnalysisConfig,
    photons: Optional[PhotonSet] = None,
    histogram: Optional[np.ndarray] = None,
    output_dir: Optional[Path] = None,
    notes: str = "",
) -> Path:
    """
    Generate an analysis report for one simulator run.

    Args:
        config: Analysis configuration
        photons: Photon list, for the scatter plot and cloud metrics
        histogram: Flat photon histogram, for the projected image
        output_dir: Output directory (default: reports/report_<timestamp>)
        notes: Additional notes to include

    Returns:
        Path to generated report directory
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    if output_dir is None:
        output_dir = Path("reports") / f"report_{timestamp}"
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    plots_dir = output_dir / "plots"
    plots_dir.mkdir(exist_ok=True)

    tables_dir = output_dir / "tables"
    tables_dir.mkdir(exist_ok=True)

    plot_paths = {}
    metrics_rows = []

    if photons is not None:
        fig = plot_photon_scatter(photons.positions)
        plot_path = plots_dir / "photon_scatter.png"
        save_figure(fig, str(plot_path))
        plot_paths["scatter"] = plot_path.relative_to(output_dir)

        metrics = compute_cloud_metrics(photons)
        metrics_rows.append({"source": "photons", **metrics.to_dict()})

    hist_info = None
    if histogram is not None:
        hist_info = histogram_summary(histogram, config.side)
        image = reduce_histogram(histogram, config)
        fig = plot_projected_image(
            image,
            side=config.side,
            center=config.center if config.crop_half_width is not None else None,
            half_width=config.crop_half_width,
        )
        plot_path = plots_dir / "projected_histogram.png"
        save_figure(fig, str(plot_path))
        plot_paths["projection"] = plot_path.relative_to(output_dir)

        counts = project_grid(reshape_grid(histogram, config.side, config.order),
                              axis=config.reduce_axis)
        row_profile, col_profile = compute_image_profiles(counts)
        coords = (np.arange(config.side) - config.side // 2) * config.cell_size
        for name, profile in (("axis0", row_profile), ("axis1", col_profile)):
            fit = fit_gaussian_profile(profile, coords)
            row = {"source": f"histogram_{name}"}
            if fit is not None:
                row.update({f"fit_{k}": v for k, v in fit.to_dict().items()})
            metrics_rows.append(row)

    metrics_df = pd.DataFrame(metrics_rows)
    csv_path = tables_dir / "cloud_metrics.csv"
    metrics_df.to_csv(csv_path, index=False)

    md_lines = [
        f"# Photon Emission Report",
        f"",
        f"**Generated:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"",
        f"---",
        f"",
        f"## Configuration",
        f"",
    ]
    for key, value in config.to_dict().items():
        md_lines.append(f"- **{key}:** {value}")

    if "scatter" in plot_paths:
        md_lines.extend([
            f"",
            f"---",
            f"",
            f"## Photon Emission Positions",
            f"",
            f"- **Photons:** {photons.n_photons}",
            f"- **Source:** {photons.filepath or 'in memory'}",
            f"",
            f"![Photon Scatter]({plot_paths['scatter']})",
            f"",
        ])

    if "projection" in plot_paths:
        md_lines.extend([
            f"",
            f"---",
            f"",
            f"## Projected Histogram",
            f"",
            f"![Projected Histogram]({plot_paths['projection']})",
            f"",
            "| Statistic | Value |",
            "|-----------|-------|",
        ])
        for key, value in hist_info.items():
            md_lines.append(f"| {key.replace('_', ' ').title()} | {value} |")

    md_lines.extend([
        f"",
        f"---",
        f"",
        f"## Cloud Metrics",
        f"",
        f"Full metrics available in `tables/cloud_metrics.csv`",
        f"",
    ])

    if not metrics_df.empty:
        cols = list(metrics_df.columns)
        md_lines.append("| " + " | ".join(cols) + " |")
        md_lines.append("| " + " | ".join(["---"] * len(cols)) + " |")
        for _, row in metrics_df.iterrows():
            md_lines.append("| " + " | ".join(_format_value(row[c]) for c in cols) + " |")

    md_lines.extend([
        f"",
        f"---",
        f"",
        f"## Notes",
        f"",
        notes if notes else "*No additional notes.*",
        f"",
        f"---",
        f"",
        f"*Report generated by Photon Explorer*",
    ])

    report_path = output_dir / "report.md"
    report_path.write_text("\n".join(md_lines))

    return output_dir
