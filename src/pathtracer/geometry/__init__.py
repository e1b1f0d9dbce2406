"""Shape primitives. Only spheres are supported."""

from .sphere import HitRecord, Sphere, hit_sphere, set_face_normal

__all__ = ["HitRecord", "Sphere", "hit_sphere", "set_face_normal"]
