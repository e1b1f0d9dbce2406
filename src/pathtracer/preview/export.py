"""Image export for rendered buffers.

Every output path goes through the same per-channel conversion from a
summed color to an 8-bit value:

    value = sqrt(sum / samples)        # gamma 2 tone mapping
    value = clamp(value, 0.0, 0.999)
    byte  = int(256 * value)           # truncation

A NaN channel (including the square root of a negative sum) maps to 0.

Supported formats:
    - PPM (plain-text P3, 255 max value)
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from pathtracer.preview.export import write_color
    >>> write_color((0.25, 1.0, 4.0), samples=1)
    '128 255 255'
"""

import math
from pathlib import Path

import numpy as np
import numpy.typing as npt
from loguru import logger
from PIL import Image as PILImage

CLAMP_MIN = 0.0
CLAMP_MAX = 0.999

SUPPORTED_SUFFIXES = (".ppm", ".png")


def _channel_to_byte(value: float, scale: float) -> int:
    scaled = value * scale
    if math.isnan(scaled) or scaled < 0.0:
        return 0
    corrected = min(max(math.sqrt(scaled), CLAMP_MIN), CLAMP_MAX)
    return int(256 * corrected)


def write_color(color, samples: int) -> str:
    """Format one accumulated pixel as a PPM "R G B" triple.

    Args:
        color: Sum of all samples for the pixel, as an (R, G, B) sequence.
        samples: Number of samples that were summed. Must be positive.

    Returns:
        The three byte values separated by single spaces.

    Raises:
        ValueError: If samples is not positive.
    """
    if samples <= 0:
        raise ValueError(f"samples must be positive, got {samples}")
    scale = 1.0 / samples
    r, g, b = (_channel_to_byte(float(c), scale) for c in color)
    return f"{r} {g} {b}"


def image_to_uint8(accumulated: npt.NDArray[np.floating], samples: int) -> npt.NDArray[np.uint8]:
    """Vectorized write_color over a whole (H, W, 3) buffer of sums.

    Args:
        accumulated: Summed samples of shape (H, W, 3).
        samples: Number of samples per pixel. Must be positive.

    Returns:
        8-bit image array of shape (H, W, 3).

    Raises:
        ValueError: If samples is not positive.
    """
    if samples <= 0:
        raise ValueError(f"samples must be positive, got {samples}")

    scaled = np.asarray(accumulated, dtype=np.float64) * (1.0 / samples)
    with np.errstate(invalid="ignore"):
        corrected = np.sqrt(scaled)
    corrected = np.where(np.isnan(corrected), 0.0, corrected)
    corrected = np.clip(corrected, CLAMP_MIN, CLAMP_MAX)
    return (256.0 * corrected).astype(np.uint8)


def format_ppm(pixels: npt.NDArray[np.uint8]) -> str:
    """Encode an (H, W, 3) uint8 image as plain-text PPM (P3).

    Rows are written top first, one "R G B" line per pixel.
    """
    height, width = pixels.shape[:2]
    lines = [f"P3\n{width} {height}\n255"]
    lines.extend(f"{r} {g} {b}" for r, g, b in pixels.reshape(-1, 3).tolist())
    return "\n".join(lines) + "\n"


def save_ppm(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write an (H, W, 3) uint8 image as a P3 PPM file."""
    Path(filepath).write_text(format_ppm(pixels))


def save_png(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write an (H, W, 3) uint8 image as a PNG file."""
    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
    pil_image.save(filepath)


def save_image(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> Path:
    """Write an image, choosing the format from the file suffix.

    Args:
        pixels: (H, W, 3) uint8 image, top row first.
        filepath: Destination ending in .ppm or .png.

    Returns:
        The path written.

    Raises:
        ValueError: If the suffix is not supported.
    """
    path = Path(filepath)
    suffix = path.suffix.lower()
    if suffix == ".ppm":
        save_ppm(pixels, path)
    elif suffix == ".png":
        save_png(pixels, path)
    else:
        raise ValueError(
            f"Unsupported image format {suffix!r}; expected one of {', '.join(SUPPORTED_SUFFIXES)}"
        )
    logger.debug(f"Wrote {pixels.shape[1]}x{pixels.shape[0]} image to {path}")
    return path
