#!/usr/bin/env python3
"""
Photon output analysis CLI.

Loads the simulator's photon list and/or flat photon histogram and writes
the 3D emission scatter, the log-scaled projected image, or a full report.

Usage:
    python analyse_photons.py --photons output.h5
    python analyse_photons.py --histogram photon_histogram.txt --side 512
    python analyse_photons.py --photons photons.csv --histogram photon_histogram.txt --side 256 --report
"""

import argparse
from pathlib import Path

import matplotlib
matplotlib.use('Agg')

from photonlib.config import AnalysisConfig, load_config
from photonlib.histogram import reduce_histogram
from photonlib.io import load_histogram, load_photons
from photonlib.metrics import compute_cloud_metrics
from photonlib.plotting import plot_photon_scatter, plot_projected_image, save_figure
from photonlib.report import generate_report


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Plot photon emission data produced by the imaging simulator.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python analyse_photons.py --photons output.h5
    python analyse_photons.py --histogram photon_histogram.txt --side 512 --half_width 30
    python analyse_photons.py --config analysis.json --report

The grid side must match the simulator run (256 or 512); it is never
inferred from the file.
With --config and no file options, both photons_path and histogram_path
from the config are loaded and must exist.
        """
    )

    parser.add_argument("--photons", "-p", type=str, default=None,
                        help="Photon list file (.csv or .h5)")
    parser.add_argument("--histogram", "-H", type=str, default=None,
                        help="Flat photon histogram file")
    parser.add_argument("--side", type=int, default=None,
                        help="Histogram grid side (required with --histogram)")
    parser.add_argument("--half_width", type=int, default=30,
                        help="Crop window half-width in cells, negative to disable (default: 30)")
    parser.add_argument("--log_floor", type=float, default=-1.0,
                        help="Value shown for empty pixels (default: -1)")
    parser.add_argument("--config", "-c", type=str, default=None,
                        help="JSON analysis config; replaces --side/--half_width/--log_floor")
    parser.add_argument("--out_dir", "-o", type=str, default="plots",
                        help="Output directory for figures (default: plots)")
    parser.add_argument("--report", action="store_true",
                        help="Write a Markdown report instead of loose figures")

    args = parser.parse_args(argv)

    if args.photons is None and args.histogram is None and args.config is None:
        parser.error("give --photons, --histogram or --config")

    if args.config is not None:
        config = load_config(Path(args.config), kind=AnalysisConfig)
    else:
        if args.histogram is not None and args.side is None:
            parser.error("--side is required with --histogram")
        config = AnalysisConfig(
            side=args.side if args.side is not None else 256,
            crop_half_width=args.half_width if args.half_width >= 0 else None,
            log_floor=args.log_floor,
        )

    photons_path = Path(args.photons) if args.photons else None
    histogram_path = Path(args.histogram) if args.histogram else None
    if args.config is not None and photons_path is None and histogram_path is None:
        photons_path = config.photons_path
        histogram_path = config.histogram_path

    photons = load_photons(photons_path) if photons_path else None
    histogram = load_histogram(histogram_path) if histogram_path else None

    if photons is not None:
        metrics = compute_cloud_metrics(photons)
        print(f"Loaded {photons.n_photons} photons from {photons_path}")
        print(f"  Centroid (um): " + ", ".join(f"{v * 1e6:.2f}" for v in metrics.centroid))
        print(f"  RMS width (um): " + ", ".join(f"{v * 1e6:.2f}" for v in metrics.rms_width))

    if histogram is not None:
        print(f"Loaded histogram with {histogram.size} cells from {histogram_path}")

    if args.report:
        report_dir = generate_report(config, photons=photons, histogram=histogram,
                                     output_dir=Path(args.out_dir))
        print(f"Report written to {report_dir / 'report.md'}")
        return

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    if photons is not None:
        path = out_dir / "photon_scatter.png"
        save_figure(plot_photon_scatter(photons.positions), str(path))
        print(f"Wrote {path}")

    if histogram is not None:
        image = reduce_histogram(histogram, config)
        cropped = config.crop_half_width is not None
        fig = plot_projected_image(
            image,
            side=config.side if cropped else None,
            center=config.center if cropped else None,
            half_width=config.crop_half_width,
        )
        path = out_dir / "projected_histogram.png"
        save_figure(fig, str(path))
        print(f"Wrote {path}")


if __name__ == "__main__":
    main()
