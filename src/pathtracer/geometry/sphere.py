"""Spheres and the ray-sphere test.

Substituting the ray ``P(t) = O + t*D`` into ``|P - C|^2 = r^2`` gives a
quadratic in t. With ``oc = O - C`` it is solved in half-b form:

    a = D.D    h = D.oc    c = oc.oc - r^2
    t = (-h -/+ sqrt(h*h - a*c)) / a

The smaller root wins if it lies strictly between t_min and t_max; otherwise
the larger one is tried. Tangent rays (zero discriminant) count as hits.

The normal in a HitRecord always opposes the ray. ``front_face`` remembers
whether the ray came from outside, which refraction needs.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.vector import vec3


@ti.dataclass
class Sphere:
    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Result of a ray-sphere test.

    Attributes:
        hit: 1 on a hit, 0 on a miss. The other fields are meaningful only
            when hit == 1.
        t: Ray parameter at the hit.
        point: Hit position in world space.
        normal: Unit normal facing against the ray.
        front_face: 1 if the ray arrived from outside the sphere.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Flip outward_normal to face the ray if needed.

    Returns:
        (front_face, normal); front_face is 1 when no flip was required.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return front_face, normal


@ti.func
def _in_window(t: ti.f32, t_min: ti.f32, t_max: ti.f32) -> ti.i32:
    return 1 if t_min < t and t < t_max else 0


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect a ray with one sphere over the open interval (t_min, t_max).

    ray_direction need not be unit length.
    """
    rec = HitRecord(hit=0, t=0.0, point=vec3(0.0), normal=vec3(0.0), front_face=0)

    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t = (-h - sqrt_d) / a
        if not _in_window(t, t_min, t_max):
            t = (-h + sqrt_d) / a

        if _in_window(t, t_min, t_max):
            point = ray_origin + t * ray_direction
            front_face, normal = set_face_normal(
                ray_direction, (point - sphere.center) / sphere.radius
            )
            rec = HitRecord(hit=1, t=t, point=point, normal=normal, front_face=front_face)

    return rec
