"""Spheres, materials and ready-made scenes.

Sphere and material data live in Taichi fields, so import this package only
after ti.init() has run.
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialRecord,
    MaterialType,
    SceneDescription,
    SceneManager,
    SphereRecord,
    lookup_material,
    parse_material_type,
)
from .presets import PRESETS, create_glass_scene, create_preset_scene, create_three_spheres_scene

__all__ = [
    "MAX_SPHERES",
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_MATERIALS",
    "MaterialRecord",
    "MaterialType",
    "SceneDescription",
    "SceneManager",
    "SphereRecord",
    "lookup_material",
    "parse_material_type",
    "PRESETS",
    "create_glass_scene",
    "create_preset_scene",
    "create_three_spheres_scene",
]
