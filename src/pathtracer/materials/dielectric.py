"""Clear dielectrics such as glass and water.

At every hit the ray either reflects or refracts, never both. Let ``eta`` be
the ratio of indices across the boundary: ``1 / ior`` going in through the
front face and ``ior`` coming out. The ray must reflect when
``eta * sin(theta) > 1`` (total internal reflection). Otherwise it reflects
with the Schlick reflectance as its probability and refracts the rest of the
time. Nothing is absorbed, so the attenuation is white.

Example:
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     1.5, incident_dir, normal, front_face
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.vector import (
    random_double,
    reflect,
    refract,
    schlick_fresnel,
    unit_vector,
    vec3,
)
from pathtracer.materials.registry import SlotCounter

# Typical indices of refraction
IOR_AIR = 1.0
IOR_WATER = 1.33
IOR_GLASS = 1.5
IOR_DIAMOND = 2.4


@ti.func
def refraction_ratio_for(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """eta for a ray hitting the front (entering) or back (leaving) face."""
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def _incidence(unit_direction: vec3, normal: vec3):
    cos_theta = ti.min(tm.dot(-unit_direction, normal), 1.0)
    return cos_theta, ti.sqrt(1.0 - cos_theta * cos_theta)


@ti.func
def will_reflect(ior: ti.f32, incident_direction: vec3, normal: vec3, front_face: ti.i32) -> ti.i32:
    """1 if refraction is impossible at this angle, else 0."""
    eta = refraction_ratio_for(ior, front_face)
    _cos_theta, sin_theta = _incidence(unit_vector(incident_direction), normal)
    return 1 if eta * sin_theta > 1.0 else 0


@ti.func
def scatter_dielectric(ior: ti.f32, incident_direction: vec3, normal: vec3, front_face: ti.i32):
    """Reflect or refract at a dielectric boundary.

    Args:
        ior: The material's index of refraction.
        incident_direction: Incoming ray direction, any non-zero length.
        normal: Unit normal on the side the ray arrived from.
        front_face: 1 when entering the material, 0 when leaving.

    Returns:
        (scattered_direction, attenuation, did_scatter); did_scatter is always 1.
    """
    eta = refraction_ratio_for(ior, front_face)
    unit_direction = unit_vector(incident_direction)
    cos_theta, sin_theta = _incidence(unit_direction, normal)

    direction = vec3(0.0, 0.0, 0.0)
    if eta * sin_theta > 1.0 or schlick_fresnel(cos_theta, eta) > random_double():
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, eta)

    return direction, vec3(1.0, 1.0, 1.0), 1


# Registry

MAX_DIELECTRIC_MATERIALS = 256

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
dielectric_slots = SlotCounter("dielectric", MAX_DIELECTRIC_MATERIALS)


def clear_dielectric_materials() -> None:
    dielectric_slots.reset()


def add_dielectric_material(ior: float = IOR_GLASS) -> int:
    """Store an index of refraction; return its slot in the dielectric registry.

    Indices below 1 are allowed and describe a bubble of thinner medium.

    Raises:
        ValueError: If ior is not positive.
        RuntimeError: If the registry is full.
    """
    ior = float(ior)
    if ior <= 0.0:
        raise ValueError(f"Index of refraction must be positive, got {ior}")
    slot = dielectric_slots.claim()
    dielectric_iors[slot] = ior
    return slot


def get_dielectric_material_count() -> int:
    return len(dielectric_slots)


@ti.func
def scatter_dielectric_by_id(
    slot: ti.i32, incident_direction: vec3, normal: vec3, front_face: ti.i32
):
    return scatter_dielectric(dielectric_iors[slot], incident_direction, normal, front_face)
