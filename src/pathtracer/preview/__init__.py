"""Preview module for image output.

Components:
    export: write_color conversion, PPM and PNG writers

Example:
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>> from pathtracer.preview import image_to_uint8, save_image
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> pixels = image_to_uint8(renderer.get_accumulated_numpy(), renderer.sample_count)
    >>> save_image(pixels, "output.ppm")
"""

from pathtracer.preview.export import (
    format_ppm,
    image_to_uint8,
    save_image,
    save_png,
    save_ppm,
    write_color,
)

__all__ = [
    "write_color",
    "image_to_uint8",
    "format_ppm",
    "save_ppm",
    "save_png",
    "save_image",
]
