#!/usr/bin/env python3
"""
Initial atom file generator CLI.

Writes the table of starting atom positions (and velocities) read by the
imaging simulator.

Usage:
    python generate_atoms.py --variant normal --n_atoms 10000 --out atoms.h5 --seed 123
"""

import argparse
from pathlib import Path

from photonlib.config import GenerationConfig, load_config
from photonlib.synthetic import generate_atom_file


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate an initial atom position/velocity file for the simulator.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python generate_atoms.py
    python generate_atoms.py --variant linear --out atoms.csv
    python generate_atoms.py --n_atoms 5000 --position_sigma 5e-5 --seed 42

Variants:
    normal  Independent Gaussian positions (100 um) and velocities (1 mm/s)
    linear  Ten atoms 1 um apart along x, y = z = 0
        """
    )

    parser.add_argument(
        "--variant", "-v",
        choices=["normal", "linear"],
        default=None,
        help="Sampling variant, overrides --config (default: normal)"
    )

    parser.add_argument(
        "--n_atoms", "-n",
        type=int,
        default=None,
        help="Number of atoms (default: 10000 for normal, 10 for linear)"
    )

    parser.add_argument(
        "--out", "-o",
        type=str,
        default=None,
        help="Output file, .h5 for HDF5 or .csv (default: atoms.h5 / atoms.csv)"
    )

    parser.add_argument(
        "--position_sigma",
        type=float,
        default=None,
        help="Position standard deviation in m (default: 1e-4)"
    )

    parser.add_argument(
        "--velocity_sigma",
        type=float,
        default=None,
        help="Velocity standard deviation in m/s (default: 1e-3)"
    )

    parser.add_argument(
        "--no_velocity",
        action="store_true",
        help="Write positions only"
    )

    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Random seed for reproducibility (default: random)"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="JSON generation config; command line options override it"
    )

    args = parser.parse_args(argv)

    if args.config is not None:
        params = load_config(Path(args.config), kind=GenerationConfig).to_dict()
    elif args.variant == "linear":
        params = GenerationConfig.linear_chain().to_dict()
    else:
        params = GenerationConfig.normal_cloud().to_dict()

    overrides = {
        "variant": args.variant,
        "n_atoms": args.n_atoms,
        "out_path": args.out,
        "position_sigma": args.position_sigma,
        "velocity_sigma": args.velocity_sigma,
        "seed": args.seed,
    }
    params.update({k: v for k, v in overrides.items() if v is not None})
    if args.no_velocity:
        params["include_velocity"] = False

    config = GenerationConfig.from_dict(params)

    print(f"Generating initial atom file...")
    print(f"  Variant: {config.variant}")
    print(f"  Atoms: {config.n_atoms}")
    print(f"  Output: {config.out_path.absolute()}")
    print(f"  Seed: {config.seed if config.seed is not None else 'random'}")
    print()

    generate_atom_file(config)

    print()
    print("Done! Run the simulator, then analyse its output:")
    print("    python analyse_photons.py --photons output.h5")


if __name__ == "__main__":
    main()
