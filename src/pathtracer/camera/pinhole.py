"""Axis-aligned pinhole camera.

The camera sits at ``origin`` looking down -z with +y up. A viewport of
height ``viewport_height`` and width ``aspect_ratio * viewport_height`` is
placed ``focal_length`` in front of it:

    horizontal        = (viewport_width, 0, 0)
    vertical          = (0, viewport_height, 0)
    lower_left_corner = origin - horizontal/2 - vertical/2 - (0, 0, focal_length)

``get_ray(u, v)`` shoots from the origin toward
``lower_left_corner + u*horizontal + v*vertical``. The direction is left
unnormalized. There is no lens model.

The derived vectors are computed once on the host by ``setup_camera`` and
kept in Taichi fields for the lifetime of a render.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.pinhole import PinholeCamera, setup_camera, get_ray
    >>> setup_camera(PinholeCamera(aspect_ratio=16.0 / 9.0))
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center, direction (0, 0, -1)
"""

from dataclasses import dataclass

import numpy as np
import taichi as ti

from pathtracer.core.ray import Ray, make_ray
from pathtracer.core.vector import vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class PinholeCamera:
    """Viewport geometry of the camera. All lengths are in world units.

    Attributes:
        aspect_ratio: Image width over image height.
        viewport_height: Height of the virtual image plane in world units.
        focal_length: Distance from the origin to the image plane.
        origin: Camera position in world space (x, y, z).
    """

    aspect_ratio: float = 16.0 / 9.0
    viewport_height: float = 2.0
    focal_length: float = 1.0
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.viewport_height <= 0.0:
            raise ValueError(f"viewport_height must be positive, got {self.viewport_height}")
        if self.focal_length <= 0.0:
            raise ValueError(f"focal_length must be positive, got {self.focal_length}")

    @property
    def viewport_width(self) -> float:
        return self.aspect_ratio * self.viewport_height


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
# Full viewport extent along x and y
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: PinholeCamera) -> None:
    """Upload the camera's derived vectors to the Taichi fields.

    Must be called before rendering, from Python scope.

    Args:
        camera: Camera configuration.
    """
    origin = np.array(camera.origin, dtype=np.float32)
    horizontal = np.array([camera.viewport_width, 0.0, 0.0], dtype=np.float32)
    vertical = np.array([0.0, camera.viewport_height, 0.0], dtype=np.float32)
    depth = np.array([0.0, 0.0, camera.focal_length], dtype=np.float32)

    lower_left = origin - horizontal / 2.0 - vertical / 2.0 - depth

    _camera_origin[None] = origin.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Ray from the camera origin through viewport point (u, v).

    (0, 0) is the lower-left corner and (1, 1) the upper-right. The direction
    is not normalized.
    """
    origin = _camera_origin[None]
    direction = (
        _lower_left_corner[None]
        + u * _viewport_horizontal[None]
        + v * _viewport_vertical[None]
        - origin
    )
    return make_ray(origin, direction)


@ti.func
def get_ray_jittered(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Ray through a uniformly random point inside pixel (i, j).

    Uses ``u = (i + xi) / (width - 1)`` and ``v = (j + xi) / (height - 1)``
    with independent xi in [0, 1). Row j = 0 is the bottom of the image.
    A one-pixel-wide or one-pixel-tall image divides by 1.

    """
    u = (ti.cast(pixel_i, ti.f32) + ti.random(ti.f32)) / ti.cast(ti.max(width - 1, 1), ti.f32)
    v = (ti.cast(pixel_j, ti.f32) + ti.random(ti.f32)) / ti.cast(ti.max(height - 1, 1), ti.f32)
    return get_ray(u, v)


@ti.func
def get_camera_origin() -> vec3:
    return _camera_origin[None]


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Read back the uploaded camera vectors (origin, horizontal, vertical, lower_left)."""

    def _triple(field) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": _triple(_camera_origin),
        "horizontal": _triple(_viewport_horizontal),
        "vertical": _triple(_viewport_vertical),
        "lower_left": _triple(_lower_left_corner),
    }
