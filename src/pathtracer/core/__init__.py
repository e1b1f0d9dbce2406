"""Vector math, rays, the path-color estimator and progressive rendering.

``vector`` and ``ray`` declare no Taichi fields and are re-exported here.
``integrator`` and ``progressive`` allocate buffers when imported, so import
them explicitly once ti.init() has run.
"""

from .ray import Ray, make_ray, ray_at
from .vector import (
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    normalize,
    random_double,
    random_in_hemisphere,
    random_in_unit_sphere,
    random_range,
    random_unit_vector,
    random_vec3,
    reflect,
    refract,
    schlick_fresnel,
    unit_vector,
    vec3,
)

__all__ = [
    "Ray",
    "cross",
    "dot",
    "length",
    "length_squared",
    "make_ray",
    "near_zero",
    "normalize",
    "random_double",
    "random_in_hemisphere",
    "random_in_unit_sphere",
    "random_range",
    "random_unit_vector",
    "random_vec3",
    "ray_at",
    "reflect",
    "refract",
    "schlick_fresnel",
    "unit_vector",
    "vec3",
]
