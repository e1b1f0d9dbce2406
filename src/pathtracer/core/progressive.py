"""Sample accumulation in batches.

``ProgressiveRenderer`` keeps adding samples to the integrator's buffers,
reporting after every batch, and turns the sums into finished images on
request. The buffers are module globals, so at most one renderer is live.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, random_seed=42)
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>> from pathtracer.scene.presets import create_three_spheres_scene
    >>> from pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>> renderer = ProgressiveRenderer(400, 225, max_depth=50)
    >>> for done, total in renderer.render_progressive(200, batch_size=10):
    ...     pass
    >>> renderer.save_image("image.ppm")
"""

from collections.abc import Callable, Iterator
from pathlib import Path

import numpy as np
import numpy.typing as npt
from loguru import logger

from pathtracer.core.integrator import (
    MAX_DEPTH,
    clear_render_target,
    get_accumulated_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from pathtracer.preview.export import image_to_uint8, save_image

# Called as callback(samples_so_far, samples_when_finished)
ProgressCallback = Callable[[int, int], None]


def split_batches(num_samples: int, batch_size: int) -> list[int]:
    """Sizes of the batches that add up to num_samples; the last may be short.

    Raises:
        ValueError: If batch_size is not positive.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    full, rest = divmod(max(num_samples, 0), batch_size)
    return [batch_size] * full + ([rest] if rest else [])


class ProgressiveRenderer:
    """Accumulates samples for a width x height image.

    Attributes:
        max_depth: Bounce limit for every path.
    """

    def __init__(self, width: int, height: int, max_depth: int = MAX_DEPTH) -> None:
        """Claim the render target at the given size.

        Raises:
            ValueError: If max_depth is negative or the size is unsupported.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self.max_depth = max_depth
        self._size = (width, height)
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        return self._size[0]

    @property
    def height(self) -> int:
        return self._size[1]

    @property
    def sample_count(self) -> int:
        """Samples accumulated per pixel so far."""
        return get_total_samples()

    def reset(self) -> None:
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Switch to a new image size. Accumulated samples are lost."""
        setup_render_target(width, height)
        self._size = (width, height)

    def render_progressive(
        self, num_samples: int = 1, batch_size: int = 1
    ) -> Iterator[tuple[int, int]]:
        """Add num_samples samples per pixel, batch_size at a time.

        Yields (samples_so_far, samples_when_finished) after every batch.
        Nothing is yielded when num_samples is 0 or less.

        Raises:
            ValueError: If batch_size is not positive.
        """
        batches = split_batches(num_samples, batch_size)
        goal = self.sample_count + sum(batches)
        for batch in batches:
            render_image(batch, self.max_depth)
            done = self.sample_count
            logger.debug(f"{done}/{goal} samples per pixel")
            yield done, goal

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Like render_progressive, but reports through an optional callback."""
        for done, goal in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(done, goal)

    def get_accumulated_numpy(self) -> npt.NDArray[np.float32]:
        """Raw per-pixel sums, shape (height, width, 3), top row first."""
        return get_accumulated_numpy()

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Mean linear color per pixel, shape (height, width, 3).

        Raises:
            RuntimeError: Before any sample has been rendered.
        """
        return self.get_accumulated_numpy() / np.float32(self._samples_or_raise())

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Display-ready pixels: averaged, gamma 2, quantized to 0..255.

        Raises:
            RuntimeError: Before any sample has been rendered.
        """
        return image_to_uint8(self.get_accumulated_numpy(), self._samples_or_raise())

    def save_image(self, filepath: str | Path) -> Path:
        """Write the image; ``.ppm`` or ``.png`` picks the format."""
        return save_image(self.get_image_uint8(), filepath)

    def _samples_or_raise(self) -> int:
        samples = self.sample_count
        if samples <= 0:
            raise RuntimeError("No samples rendered yet. Call render() first.")
        return samples

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"max_depth={self.max_depth}, samples={self.sample_count})"
        )
