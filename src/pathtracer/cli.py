"""Command-line renderer.

Usage:
    pathtracer [options]
    python -m pathtracer.cli [options]

Options:
    --width WIDTH           Image width in pixels (default: 400)
    --aspect-ratio RATIO    Width / height (default: 1.7778)
    --samples SAMPLES       Samples per pixel (default: 200)
    --max-depth DEPTH       Maximum bounces per path (default: 50)
    --preset NAME           Preset scene (default: three_spheres)
    --scene FILE            JSON scene description, overrides --preset
    --seed SEED             Random seed (default: 0)
    --arch ARCH             Taichi backend (default: cpu)
    --batch-size SIZE       Samples per progress update (default: 10)
    --output OUTPUT         Output .ppm or .png path (default: image.ppm)
    --quiet / --verbose     Only warnings / include debug messages

Example:
    pathtracer --width 200 --samples 50 --output spheres.png
"""

import argparse
import sys
import time
from collections.abc import Sequence
from pathlib import Path

import taichi as ti
from loguru import logger

from pathtracer.config import ARCHES, RenderConfig

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"


def build_parser() -> argparse.ArgumentParser:
    defaults = RenderConfig()
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a scene of spheres with a Monte-Carlo path tracer.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=defaults.width, help="Image width in pixels")
    parser.add_argument(
        "--aspect-ratio", type=float, default=defaults.aspect_ratio, help="Width / height"
    )
    parser.add_argument(
        "--samples", type=int, default=defaults.samples_per_pixel, help="Samples per pixel"
    )
    parser.add_argument(
        "--max-depth", type=int, default=defaults.max_depth, help="Maximum bounces per path"
    )
    parser.add_argument("--preset", default=defaults.preset, help="Preset scene name")
    parser.add_argument(
        "--scene", type=Path, default=None, help="JSON scene description (overrides --preset)"
    )
    parser.add_argument("--seed", type=int, default=defaults.seed, help="Random seed")
    parser.add_argument("--arch", choices=ARCHES, default=defaults.arch, help="Taichi backend")
    parser.add_argument(
        "--batch-size", type=int, default=defaults.batch_size, help="Samples per progress update"
    )
    parser.add_argument(
        "--output", type=Path, default=defaults.output, help="Output image (.ppm or .png)"
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    verbosity.add_argument("--verbose", action="store_true", help="Log debug messages")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def build_config(args: argparse.Namespace) -> RenderConfig:
    """Turn parsed arguments into a validated RenderConfig.

    Raises:
        ValueError: If any value is out of range.
    """
    return RenderConfig(
        width=args.width,
        aspect_ratio=args.aspect_ratio,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        preset=args.preset,
        scene_file=args.scene,
        seed=args.seed,
        arch=args.arch,
        batch_size=args.batch_size,
        output=args.output,
    )


def configure_logging(quiet: bool = False, verbose: bool = False) -> None:
    """Send log records to stderr at INFO, WARNING (quiet) or DEBUG (verbose)."""
    level = "WARNING" if quiet else "DEBUG" if verbose else "INFO"
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)


def init_taichi(arch: str, seed: int) -> None:
    """Initialize Taichi once for this process.

    A GPU backend that fails to start falls back to the CPU. Fast math stays
    off because the render kernel's NaN filter needs IEEE comparisons.
    """
    try:
        ti.init(arch=getattr(ti, arch), random_seed=seed, fast_math=False)
    except Exception as e:
        if arch == "cpu":
            raise
        logger.warning(f"Could not start the {arch} backend ({e}); falling back to CPU")
        ti.init(arch=ti.cpu, random_seed=seed, fast_math=False)
    logger.info(f"Taichi backend: {arch}, seed {seed}")


def build_scene(config: RenderConfig):
    """Build the configured scene and return its camera.

    Must run after ti.init().
    """
    # Lazy imports: these modules declare Taichi fields
    from pathtracer.camera.pinhole import PinholeCamera
    from pathtracer.scene.manager import SceneManager
    from pathtracer.scene.presets import create_preset_scene

    if config.scene_file is not None:
        scene = SceneManager()
        scene.load_json(config.scene_file)
        camera = PinholeCamera(aspect_ratio=config.aspect_ratio)
        logger.info(f"Loaded scene from {config.scene_file}")
    else:
        scene, camera = create_preset_scene(config.preset, aspect_ratio=config.aspect_ratio)
        logger.info(f"Using preset scene '{config.preset}'")

    logger.info(
        f"Scene has {scene.get_sphere_count()} spheres and {scene.get_material_count()} materials"
    )
    return camera


def run(config: RenderConfig) -> Path:
    """Render the configured scene and write the image.

    Taichi must already be initialized.

    Returns:
        Path to the written image.
    """
    from pathtracer.camera.pinhole import setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer

    camera = build_scene(config)
    setup_camera(camera)

    width, height = config.width, config.height
    renderer = ProgressiveRenderer(width, height, max_depth=config.max_depth)
    logger.info(
        f"Rendering {width}x{height}, {config.samples_per_pixel} samples per pixel, "
        f"max depth {config.max_depth}"
    )

    start_time = time.perf_counter()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.perf_counter() - start_time
        rate = current / elapsed if elapsed > 0 else 0.0
        percent = 100.0 * current / target
        logger.info(f"Samples {current}/{target} ({percent:.1f}%) - {rate:.1f} spp/s")

    renderer.render(
        num_samples=config.samples_per_pixel,
        batch_size=config.batch_size,
        callback=progress_callback,
    )

    output_path = renderer.save_image(config.output)
    logger.info(f"Saved to {output_path.absolute()}")
    logger.info(f"Done in {time.perf_counter() - start_time:.2f}s")
    return output_path


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(quiet=args.quiet, verbose=args.verbose)

    try:
        config = build_config(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    init_taichi(config.arch, config.seed)

    try:
        run(config)
    except Exception as e:
        logger.error(f"Render failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
