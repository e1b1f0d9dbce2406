"""Ideal diffuse reflection.

A scattered ray leaves along ``normal + u`` for a uniformly random unit vector
u, which is cosine-distributed about the normal; the attenuation is simply
the albedo. If u almost cancels the normal the normal itself is used.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.lambertian import scatter_lambertian
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(albedo, normal)
"""

import taichi as ti

from pathtracer.core.vector import near_zero, random_unit_vector, vec3
from pathtracer.materials.registry import SlotCounter, check_color


@ti.func
def lambertian_direction(normal: vec3, u: vec3) -> vec3:
    """normal + u, or normal alone when the sum is near zero."""
    direction = normal + u
    if near_zero(direction):
        direction = normal
    return direction


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Bounce a ray diffusely off a surface with the given normal.

    Returns:
        (scattered_direction, attenuation, did_scatter); did_scatter is always 1.
    """
    return lambertian_direction(normal, random_unit_vector()), albedo, 1


# Registry

MAX_LAMBERTIAN_MATERIALS = 256

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
lambertian_slots = SlotCounter("Lambertian", MAX_LAMBERTIAN_MATERIALS)


def clear_lambertian_materials() -> None:
    lambertian_slots.reset()


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Store a diffuse albedo and return its slot in the Lambertian registry.

    Raises:
        ValueError: If albedo is not three components in [0, 1].
        RuntimeError: If the registry is full.
    """
    r, g, b = check_color(albedo)
    slot = lambertian_slots.claim()
    lambertian_albedos[slot] = vec3(r, g, b)
    return slot


def get_lambertian_material_count() -> int:
    return len(lambertian_slots)


@ti.func
def scatter_lambertian_by_id(slot: ti.i32, normal: vec3):
    """scatter_lambertian with the albedo stored at slot."""
    return scatter_lambertian(lambertian_albedos[slot], normal)
