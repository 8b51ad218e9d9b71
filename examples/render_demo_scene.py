#!/usr/bin/env python3
"""Render the demo scene.

This script demonstrates end-to-end rendering of the demo scene: a field of
small random spheres around a diffuse, a metal and a glass-wrapped light
sphere. It builds the scene, renders it with a pool of row workers and writes
the image.

Usage:
    python -m examples.render_demo_scene [options]

Options:
    --width WIDTH           Image width in pixels (default: 640)
    --aspect-ratio RATIO    Width / height (default: 16/9)
    --samples SAMPLES       Number of samples per pixel (default: 5)
    --max-depth DEPTH       Maximum ray bounces (default: 50)
    --workers WORKERS       Number of parallel row workers (default: 16)
    --seed SEED             Seed for the scene layout and sampling
    --arch {cpu,gpu}        Taichi backend (default: cpu)
    --output OUTPUT         Output file path (default: demo_scene.png)
    --quiet                 Only log warnings and errors

Example:
    python -m examples.render_demo_scene --width 320 --samples 20 --seed 1
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_demo_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the demo scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=640,
        help="Image width in pixels (default: 640)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=16.0 / 9.0,
        help="Image width divided by height (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=5,
        help="Number of samples per pixel (default: 5)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum number of ray bounces (default: 50)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of parallel row workers (default: DEMO_WORKER_COUNT, 16)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the scene layout and sampling (default: random)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="demo_scene.png",
        help="Output file path (default: demo_scene.png)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )
    return parser.parse_args(argv)


def render_demo_scene(
    width: int = 640,
    aspect_ratio: float = 16.0 / 9.0,
    samples_per_pixel: int = 5,
    max_depth: int = 50,
    worker_count: int | None = None,
    seed: int | None = None,
    output_path: str = "demo_scene.png",
    quiet: bool = False,
) -> Path:
    """Render the demo scene and save to file.

    Args:
        width: Image width in pixels.
        aspect_ratio: Image width divided by height.
        samples_per_pixel: Number of samples per pixel.
        max_depth: Maximum number of ray bounces.
        worker_count: Number of parallel row workers. None uses
            DEMO_WORKER_COUNT.
        seed: Seed for the scene layout and the sampler streams.
        output_path: Output file path.
        quiet: If True, suppress the progress line.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.pathtracer.preview.export import save_png
    from src.pathtracer.scene.demo import DEMO_WORKER_COUNT, create_demo_scene

    if worker_count is None:
        worker_count = DEMO_WORKER_COUNT

    scene, camera = create_demo_scene(seed=seed)
    camera = dataclasses.replace(
        camera,
        image_width=width,
        aspect_ratio=aspect_ratio,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
    )

    start_time = time.time()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (rows_done / total_rows) * 100 if total_rows > 0 else 0
            print(
                f"\r  Progress: {rows_done}/{total_rows} rows "
                f"({progress_pct:.1f}%) - {elapsed:.1f}s",
                end="",
                flush=True,
            )

    pixels = camera.render(scene, worker_count, seed=seed, progress=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_png(pixels, output_file)

    logger.info("Saved to: %s", output_file.absolute())
    logger.info("Total time: %.2fs", time.time() - start_time)
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    arch = ti.gpu if args.arch == "gpu" else ti.cpu
    ti.init(arch=arch, default_fp=ti.f32)

    try:
        render_demo_scene(
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            samples_per_pixel=args.samples,
            max_depth=args.max_depth,
            worker_count=args.workers,
            seed=args.seed,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except Exception:
        logger.exception("Render failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
