"""Specular reflection with optional blur ("fuzz").

The normalized incoming direction is mirrored about the normal and then
perturbed by ``fuzz * random_in_unit_sphere()``:

    d = reflect(unit(I), N) + fuzz * s

d is not renormalized. When the perturbation tips d to or below the surface
(``dot(d, N) <= 0``) the ray is absorbed.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.vector import random_in_unit_sphere, reflect, unit_vector, vec3
from pathtracer.materials.registry import SlotCounter, check_color, check_fraction


@ti.func
def scatter_metal(albedo: vec3, fuzz: ti.f32, incident_direction: vec3, normal: vec3):
    """Reflect off a metal surface.

    Args:
        albedo: Tint applied to the reflected light.
        fuzz: Blur radius in [0, 1]; 0 is a perfect mirror.
        incident_direction: Incoming ray direction, any non-zero length.
        normal: Unit normal on the side the ray arrived from.

    Returns:
        (scattered_direction, attenuation, did_scatter), where did_scatter is
        0 if the blurred direction points into the surface.
    """
    direction = reflect(unit_vector(incident_direction), normal) + fuzz * random_in_unit_sphere()
    did_scatter = 1 if tm.dot(direction, normal) > 0.0 else 0
    return direction, albedo, did_scatter


# Registry

MAX_METAL_MATERIALS = 256

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_slots = SlotCounter("metal", MAX_METAL_MATERIALS)


def clear_metal_materials() -> None:
    metal_slots.reset()


def add_metal_material(albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
    """Store a metal's albedo and fuzz; return its slot in the metal registry.

    Raises:
        ValueError: If an albedo component or fuzz is outside [0, 1].
        RuntimeError: If the registry is full.
    """
    r, g, b = check_color(albedo)
    fuzz = check_fraction(fuzz, "fuzz")
    slot = metal_slots.claim()
    metal_albedos[slot] = vec3(r, g, b)
    metal_fuzzes[slot] = fuzz
    return slot


def get_metal_material_count() -> int:
    return len(metal_slots)


@ti.func
def scatter_metal_by_id(slot: ti.i32, incident_direction: vec3, normal: vec3):
    return scatter_metal(metal_albedos[slot], metal_fuzzes[slot], incident_direction, normal)
