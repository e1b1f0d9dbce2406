"""Render configuration.

A RenderConfig holds everything the command-line driver needs to produce one
image: output size, sampling parameters, scene source, Taichi backend and
output path. Values are checked on construction.

Example:
    >>> from pathtracer.config import RenderConfig
    >>> config = RenderConfig(width=400, samples_per_pixel=50)
    >>> config.height
    225
"""

from dataclasses import dataclass
from pathlib import Path

ARCHES = ("cpu", "gpu", "vulkan", "cuda", "metal")


@dataclass
class RenderConfig:
    """Settings for a single render.

    Attributes:
        width: Image width in pixels.
        aspect_ratio: Width divided by height; the height is derived from it.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of bounces per path.
        preset: Name of a preset scene, used when scene_file is None.
        scene_file: Optional JSON scene description to load instead.
        seed: Seed for Taichi's random number generator.
        arch: Taichi backend name.
        batch_size: Samples per progress update.
        output: Output image path; the suffix selects PPM or PNG.
    """

    width: int = 400
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 200
    max_depth: int = 50
    preset: str = "three_spheres"
    scene_file: Path | None = None
    seed: int = 0
    arch: str = "cpu"
    batch_size: int = 10
    output: Path = Path("image.ppm")

    def __post_init__(self) -> None:
        self.output = Path(self.output)
        if self.scene_file is not None:
            self.scene_file = Path(self.scene_file)
        self.validate()

    @property
    def height(self) -> int:
        return max(1, int(self.width / self.aspect_ratio))

    def validate(self) -> None:
        """Check every field.

        Raises:
            ValueError: On the first invalid field.
        """
        if self.width <= 0:
            raise ValueError(f"width must be positive, got {self.width}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")
        if self.arch not in ARCHES:
            raise ValueError(f"arch must be one of {', '.join(ARCHES)}, got {self.arch!r}")
        if self.output.suffix.lower() not in (".ppm", ".png"):
            raise ValueError(f"output must end in .ppm or .png, got {self.output}")
