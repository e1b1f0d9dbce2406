"""Rays: ``origin + t * direction``.

Directions are stored as given; nothing normalizes them.
"""

import taichi as ti

from pathtracer.core.vector import vec3


@ti.dataclass
class Ray:
    origin: vec3
    direction: vec3

    @ti.func
    def at(self, t: ti.f32) -> vec3:
        """Position at parameter t (negative t lies behind the origin)."""
        return self.origin + t * self.direction


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    return ray.at(t)


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    return Ray(origin=origin, direction=direction)
