"""Surface scattering models.

Every kind exposes a ``scatter_*`` Taichi function returning
``(scattered_direction, attenuation, did_scatter)`` (did_scatter == 0 means
the ray was absorbed), a field-backed registry, and a ``scatter_*_by_id``
variant that reads its parameters from a registry slot.

Importing this package declares Taichi fields; do it after ti.init().
"""

from .dielectric import (
    MAX_DIELECTRIC_MATERIALS,
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
    will_reflect,
)
from .lambertian import (
    MAX_LAMBERTIAN_MATERIALS,
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    MAX_METAL_MATERIALS,
    add_metal_material,
    clear_metal_materials,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)
from .registry import SlotCounter, check_color, check_fraction

__all__ = [
    "MAX_DIELECTRIC_MATERIALS",
    "MAX_LAMBERTIAN_MATERIALS",
    "MAX_METAL_MATERIALS",
    "SlotCounter",
    "add_dielectric_material",
    "add_lambertian_material",
    "add_metal_material",
    "check_color",
    "check_fraction",
    "clear_dielectric_materials",
    "clear_lambertian_materials",
    "clear_metal_materials",
    "get_dielectric_material_count",
    "get_lambertian_material_count",
    "get_metal_material_count",
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "scatter_metal",
    "scatter_metal_by_id",
    "will_reflect",
]
