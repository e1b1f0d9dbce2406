"""Path-color estimator and render kernels.

``ray_color`` walks a single light path backward from the camera, keeping a
running throughput (the product of every attenuation so far). Each bounce
intersects the scene over ``(T_MIN, T_MAX)`` and lets the material at the hit
scatter the ray. A path stops when

    - it escapes: the result is ``throughput * background(direction)``;
    - a material absorbs it: the result is black;
    - the depth budget is spent: the result is black.

A depth of 0 or less is black without tracing anything. ``T_MIN`` is kept
slightly above zero so a scattered ray cannot hit the surface it just left.

The kernels add samples into a per-pixel sum and count; averaging happens
once, when the image is exported.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, random_seed=42)
    >>> from pathtracer.core.integrator import render_image, setup_render_target
    >>> from pathtracer.scene.presets import create_three_spheres_scene
    >>> from pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> render_image(num_samples=100, max_depth=50)
"""

import numpy as np
import taichi as ti
import taichi.math as tm
from loguru import logger

from pathtracer.camera.pinhole import get_ray_jittered
from pathtracer.core.ray import Ray, make_ray
from pathtracer.core.vector import unit_vector, vec3
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import MaterialType, lookup_material

MAX_DEPTH = 50

T_MIN = 0.001
T_MAX = tm.inf

# Background gradient: horizon color, zenith color
HORIZON = vec3(1.0, 1.0, 1.0)
ZENITH = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Accumulation buffers
# =============================================================================

# Preallocated so changing the image size never recompiles a kernel
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_sums = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_counts = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
# (width, height); (0, 0) while no target is active
_active_size = ti.Vector.field(2, dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Activate a width x height region of the buffers and zero it.

    Raises:
        ValueError: If a dimension is not positive or larger than the buffers.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"{width}x{height} is larger than the {MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT} maximum"
        )
    _active_size[None] = [width, height]
    clear_render_target()
    logger.debug(f"Render target {width}x{height}")


def clear_render_target() -> None:
    """Drop every accumulated sample; the active size is kept."""
    _sums.fill(0.0)
    _counts.fill(0)


def reset_render_target() -> None:
    """Deactivate the render target. Rendering needs setup_render_target() again."""
    _active_size[None] = [0, 0]
    clear_render_target()


def get_image_dimensions() -> tuple[int, int]:
    size = _active_size[None]
    return int(size[0]), int(size[1])


def _require_target() -> tuple[int, int]:
    width, height = get_image_dimensions()
    if width == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")
    return width, height


# =============================================================================
# Shading
# =============================================================================


@ti.func
def scatter_material(
    material_id: ti.i32, incident_direction: vec3, normal: vec3, front_face: ti.i32
):
    """Scatter with whatever material material_id names.

    Returns:
        (scattered_direction, attenuation, did_scatter). An id that was never
        issued absorbs the ray.
    """
    kind, slot = lookup_material(material_id)

    direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if kind == int(MaterialType.LAMBERTIAN):
        direction, attenuation, did_scatter = scatter_lambertian_by_id(slot, normal)
    elif kind == int(MaterialType.METAL):
        direction, attenuation, did_scatter = scatter_metal_by_id(slot, incident_direction, normal)
    elif kind == int(MaterialType.DIELECTRIC):
        direction, attenuation, did_scatter = scatter_dielectric_by_id(
            slot, incident_direction, normal, front_face
        )

    return direction, attenuation, did_scatter


@ti.func
def background_color(direction: vec3) -> vec3:
    """Blend from HORIZON (looking down) to ZENITH (looking up)."""
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return tm.mix(HORIZON, ZENITH, t)


@ti.func
def ray_color(ray: Ray, depth: ti.i32) -> vec3:
    """One Monte-Carlo sample of the light arriving along ray.

    depth bounds the number of surface interactions.
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    origin = ray.origin
    direction = ray.direction

    bounces_left = depth
    while bounces_left > 0:
        hit = intersect_scene(origin, direction, T_MIN, T_MAX)
        if hit.hit == 0:
            radiance = throughput * background_color(direction)
            break

        scattered, attenuation, did_scatter = scatter_material(
            hit.material_id, direction, hit.normal, hit.front_face
        )
        if did_scatter == 0:
            break

        throughput *= attenuation
        origin = hit.point
        direction = scattered
        bounces_left -= 1

    return radiance


@ti.func
def sanitize_color(color: vec3) -> vec3:
    """Zero any NaN or infinite channel."""
    clean = color
    for c in ti.static(range(3)):
        if tm.isnan(clean[c]) or tm.isinf(clean[c]):
            clean[c] = 0.0
    return clean


# =============================================================================
# Kernels
# =============================================================================


@ti.kernel
def _accumulate_pass(width: ti.i32, height: ti.i32, max_depth: ti.i32):
    for i, j in ti.ndrange(width, height):
        ray = get_ray_jittered(i, j, width, height)
        _sums[i, j] += sanitize_color(ray_color(ray, max_depth))
        _counts[i, j] += 1


@ti.kernel
def _sample_pixel(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32, max_depth: ti.i32) -> vec3:
    return ray_color(get_ray_jittered(i, j, width, height), max_depth)


@ti.kernel
def _sample_ray(origin: vec3, direction: vec3, depth: ti.i32) -> vec3:
    return ray_color(make_ray(origin, direction), depth)


def _as_rgb(color) -> tuple[float, float, float]:
    return (float(color[0]), float(color[1]), float(color[2]))


# =============================================================================
# Host API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Run ray_color once for an arbitrary ray and return the RGB sample."""
    return _as_rgb(_sample_ray(vec3(*origin), vec3(*direction), depth))


def render_sample(
    pixel_i: int, pixel_j: int, max_depth: int = MAX_DEPTH
) -> tuple[float, float, float]:
    """Draw one jittered sample for pixel (pixel_i, pixel_j) without accumulating it.

    pixel_j counts from the bottom row.

    Raises:
        RuntimeError: If no render target is active.
    """
    width, height = _require_target()
    return _as_rgb(_sample_pixel(pixel_i, pixel_j, width, height, max_depth))


def render_image(num_samples: int = 1, max_depth: int = MAX_DEPTH) -> None:
    """Add num_samples samples to every pixel of the active target.

    Samples keep adding up across calls until the target is cleared.

    Raises:
        RuntimeError: If no render target is active.
        ValueError: If num_samples is negative.
    """
    width, height = _require_target()
    if num_samples < 0:
        raise ValueError(f"num_samples must be non-negative, got {num_samples}")
    for _ in range(num_samples):
        _accumulate_pass(width, height, max_depth)


def get_total_samples() -> int:
    """Samples accumulated so far. Every pixel receives the same number."""
    _require_target()
    return int(_counts[0, 0])


def get_accumulated_numpy() -> np.ndarray:
    """Per-pixel sample sums as a (height, width, 3) float32 array, top row first.

    Raises:
        RuntimeError: If no render target is active.
    """
    width, height = _require_target()
    sums = _sums.to_numpy()[:width, :height]
    # Buffers are indexed (x, y) with y = 0 at the bottom
    return np.ascontiguousarray(sums.transpose(1, 0, 2)[::-1], dtype=np.float32)
