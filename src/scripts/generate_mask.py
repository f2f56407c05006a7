#!/usr/bin/env python3
"""
Blue-Noise Mask Generator

Headless driver for the swap optimizer: allocates a mask, runs a number of
optimization ticks and saves the result as .npz (and optionally PNG).
"""

import argparse
import sys
import time
from pathlib import Path

# Add package source to path
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from bluenoise import BlueNoiseOptimizer, OptimizerConfig, utils
from bluenoise.reducer import BACKENDS


def build_config(args: argparse.Namespace) -> OptimizerConfig:
    """Defaults, then the parameter file, then explicit command-line flags."""
    params = utils.load_params(args.config) if args.config else {}
    config = OptimizerConfig.from_dict(params)
    if args.size is not None:
        config.size = args.size
    if args.seed is not None:
        config.seed = args.seed
    if args.trials is not None:
        config.trials_per_step = args.trials
    if args.backend is not None:
        config.backend = args.backend
    if args.workers is not None:
        config.workers = args.workers
    if args.quiet:
        config.verbose = False
    return config


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate a blue-noise dither mask by greedy swap optimization",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--size", type=int, default=None, help="Grid dimension N (default: 64)")
    parser.add_argument("--steps", type=int, default=100, help="Number of optimization ticks (default: 100)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: 0)")
    parser.add_argument("--trials", type=int, default=None, help="Swap trials per tick (default: 16)")
    parser.add_argument("--backend", choices=BACKENDS, default=None, help="Energy reduction backend")
    parser.add_argument("--workers", type=int, default=None, help="Worker count for the reducer")
    parser.add_argument("--config", type=str, default=None, help="JSON/TOML parameter file")
    parser.add_argument(
        "--out",
        type=str,
        default=None,
        help="Output .npz file path (auto-generated if not provided)",
    )
    parser.add_argument("--png", type=str, default=None, help="Also write the mask as a grayscale PNG")
    parser.add_argument("--quiet", action="store_true", help="Suppress per-swap output")

    args = parser.parse_args(argv)
    config = build_config(args)

    optimizer = BlueNoiseOptimizer(config)
    optimizer.allocate()

    print(f"Optimizing {config.size}x{config.size} mask: steps={args.steps}, seed={config.seed}")
    start_time = time.time()
    initial_energy = optimizer.energy()
    reports = optimizer.run(args.steps)
    final_energy = reports[-1].energy_after if reports else initial_energy
    elapsed_time = time.time() - start_time

    if args.out is None:
        output_dir = Path("results")
        output_dir.mkdir(exist_ok=True)
        args.out = str(
            output_dir / f"bluenoise_N{config.size}_S{config.seed}_{utils.now_str()}.npz"
        )

    result = utils.MaskResult(values=optimizer.as_array())
    meta = result.ensure_meta()
    meta.update(config.to_dict())
    meta.update(
        {
            "steps": args.steps,
            "initial_energy": initial_energy,
            "final_energy": final_energy,
            "accepted_swaps": sum(r.accepted for r in reports),
        }
    )
    utils.save_mask_result(args.out, result)
    if args.png:
        utils.save_mask_png(args.png, result.values)

    print(f"\nDone in {elapsed_time:.2f} seconds")
    print(f"   Energy: {initial_energy:f} -> {final_energy:f}")
    print(f"   Accepted swaps: {meta['accepted_swaps']}")
    print(f"   Output saved to: {args.out}")
    if args.png:
        print(f"   PNG saved to: {args.png}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
