"""Sphere storage and nearest-hit queries.

Spheres live in parallel Taichi fields (center, radius, material id) that
kernels index directly. The list only grows until ``clear_scene``; duplicate
or overlapping spheres are fine, the nearest surface simply wins.
"""

import taichi as ti

from pathtracer.core.vector import vec3
from pathtracer.geometry.sphere import Sphere, hit_sphere


@ti.dataclass
class SceneHitRecord:
    """Nearest hit along a ray, plus the material of the sphere that was hit.

    Fields match HitRecord; material_id is -1 when nothing was hit.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


MAX_SPHERES = 1024

sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
sphere_count = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Drop every sphere. Field contents are left to be overwritten."""
    sphere_count[None] = 0


def add_sphere(center, radius: float, material_id: int = 0) -> int:
    """Append a sphere and return its index.

    No validation happens here; SceneManager.add_sphere checks radius and id.

    Raises:
        RuntimeError: If MAX_SPHERES spheres are already stored.
    """
    index = int(sphere_count[None])
    if index >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[index] = vec3(*center)
    sphere_radii[index] = radius
    sphere_material_ids[index] = material_id
    sphere_count[None] = index + 1
    return index


def get_sphere_count() -> int:
    return int(sphere_count[None])


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Closest sphere hit with t strictly inside (t_min, t_max).

    Spheres are tested in order and each hit tightens the upper bound, so a
    later sphere must be strictly nearer to replace the current hit.

    The loop over spheres must not be the outermost loop of a kernel, or
    Taichi would run it in parallel.
    """
    nearest = SceneHitRecord(
        hit=0, t=0.0, point=vec3(0.0), normal=vec3(0.0), front_face=0, material_id=-1
    )
    upper = t_max

    for i in range(sphere_count[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, upper)
        if rec.hit == 1:
            upper = rec.t
            nearest = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                front_face=rec.front_face,
                material_id=sphere_material_ids[i],
            )

    return nearest
