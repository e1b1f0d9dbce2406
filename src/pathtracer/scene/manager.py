"""Scene construction: material arena and sphere list.

A scene is a list of spheres plus an arena of materials. Every material gets
a stable integer id when it is registered; the id resolves to a
``(MaterialType, slot)`` pair where ``slot`` indexes that kind's own registry
(``lambertian_albedos``, ``metal_fuzzes``, ...). Spheres carry only the id,
so one material can be shared by any number of spheres and outlives all of
them.

The arena has two mirrors:

    - Taichi fields (``material_kinds``, ``material_slots``) that the shading
      code reads through ``lookup_material`` inside kernels;
    - ``MaterialRecord`` / ``SphereRecord`` lists on the ``SceneManager``,
      used for inspection and for the dict / JSON scene format.

Scene documents look like::

    {
        "materials": [
            {"type": "lambertian", "albedo": [0.8, 0.8, 0.0]},
            {"type": "metal", "albedo": [0.8, 0.6, 0.2], "fuzz": 1.0},
            {"type": "dielectric", "ior": 1.5}
        ],
        "spheres": [
            {"center": [0.0, -100.5, -1.0], "radius": 100.0, "material_id": 0}
        ]
    }

where a sphere's ``material_id`` is the position of its material in the list.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    >>> scene.add_sphere(center=(0, -100.5, -1), radius=100, material_id=ground)
    0
"""

import json
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

import taichi as ti
from loguru import logger

from pathtracer.materials.dielectric import (
    MAX_DIELECTRIC_MATERIALS,
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    MAX_LAMBERTIAN_MATERIALS,
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.metal import (
    MAX_METAL_MATERIALS,
    add_metal_material,
    clear_metal_materials,
)
from pathtracer.scene.intersection import add_sphere, clear_scene, get_sphere_count


class MaterialType(IntEnum):
    """Material kinds the shading dispatch knows about."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


MAX_MATERIALS = MAX_LAMBERTIAN_MATERIALS + MAX_METAL_MATERIALS + MAX_DIELECTRIC_MATERIALS

# Arena: material id -> kind and slot within that kind's registry
material_kinds = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_slots = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_count = ti.field(dtype=ti.i32, shape=())


def reset_material_arena() -> None:
    """Forget every material id. The per-kind registries are left alone."""
    material_count[None] = 0


@ti.func
def lookup_material(material_id: ti.i32):
    """Resolve a material id inside a kernel.

    Returns:
        Tuple of (kind, slot). Both are -1 for an id that was never issued.
    """
    kind = -1
    slot = -1
    if material_id >= 0 and material_id < material_count[None]:
        kind = material_kinds[material_id]
        slot = material_slots[material_id]
    return kind, slot


# =============================================================================
# Host-side records
# =============================================================================


def _as_triple(values, name: str) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"{name} must have exactly 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


def _jsonable(value: Any) -> Any:
    return list(value) if isinstance(value, tuple) else value


@dataclass(frozen=True)
class MaterialRecord:
    """A registered material.

    Attributes:
        material_id: Id in the arena.
        kind: Which registry holds the parameters.
        slot: Index within that registry.
        params: Parameters exactly as stored (tuples for colors).
    """

    material_id: int
    kind: MaterialType
    slot: int
    params: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        entry = {"type": self.kind.name.lower()}
        entry.update((key, _jsonable(value)) for key, value in self.params.items())
        return entry


@dataclass(frozen=True)
class SphereRecord:
    """A sphere as it was added to the scene."""

    index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int

    def to_dict(self) -> dict[str, Any]:
        return {"center": list(self.center), "radius": self.radius, "material_id": self.material_id}


@dataclass
class SceneDescription:
    """Plain-data form of a scene: material dicts in id order, sphere dicts."""

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SceneDescription":
        if not isinstance(data, dict):
            raise ValueError(f"Scene description must be a mapping, got {type(data).__name__}")
        return cls(
            materials=list(data.get("materials", [])),
            spheres=list(data.get("spheres", [])),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"materials": self.materials, "spheres": self.spheres}


def parse_material_type(name: str) -> MaterialType:
    """Map a scene-document type name ("metal", "Metal", ...) to MaterialType.

    Raises:
        ValueError: If the name is not a known material type.
    """
    try:
        return MaterialType[str(name).upper()]
    except KeyError:
        raise ValueError(f"Unknown material type: {name!r}") from None


# Parameters filled in when a scene document leaves them out
_DOCUMENT_DEFAULTS: dict[MaterialType, dict[str, Any]] = {
    MaterialType.LAMBERTIAN: {"albedo": (0.5, 0.5, 0.5)},
    MaterialType.METAL: {"albedo": (0.8, 0.8, 0.8), "fuzz": 0.0},
    MaterialType.DIELECTRIC: {"ior": 1.5},
}


# =============================================================================
# SceneManager
# =============================================================================


class SceneManager:
    """Registers materials and places spheres.

    Only one scene is live at a time: constructing a manager (or calling
    ``clear``) empties every sphere, registry and arena field.

    Attributes:
        materials: MaterialRecord per material, indexed by material id.
        spheres: SphereRecord per sphere, in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> matte = scene.add_lambertian_material(albedo=(0.7, 0.3, 0.3))
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=1.0)
        >>> scene.add_sphere((0, 0, -1), 0.5, matte)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialRecord] = []
        self.spheres: list[SphereRecord] = []
        self.clear()

    def clear(self) -> None:
        """Remove every sphere and material."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        reset_material_arena()
        self.materials = []
        self.spheres = []

    # -------------------------------------------------------------------------
    # Materials
    # -------------------------------------------------------------------------

    def _issue_id(self, kind: MaterialType, slot: int, params: dict[str, Any]) -> int:
        material_id = int(material_count[None])
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_kinds[material_id] = int(kind)
        material_slots[material_id] = slot
        material_count[None] = material_id + 1

        self.materials.append(MaterialRecord(material_id, kind, slot, params))
        logger.debug(f"Material {material_id}: {kind.name.lower()} {params}")
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Register a diffuse material and return its id.

        Raises:
            ValueError: If albedo does not have three components in [0, 1].
            RuntimeError: If a capacity is exceeded.
        """
        albedo = _as_triple(albedo, "albedo")
        slot = add_lambertian_material(albedo)
        return self._issue_id(MaterialType.LAMBERTIAN, slot, {"albedo": albedo})

    def add_metal_material(self, albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
        """Register a metal material and return its id.

        Args:
            albedo: Reflective color, each component in [0, 1].
            fuzz: Blur radius in [0, 1]; 0 is a perfect mirror.

        Raises:
            ValueError: If albedo or fuzz is out of range.
            RuntimeError: If a capacity is exceeded.
        """
        albedo = _as_triple(albedo, "albedo")
        fuzz = float(fuzz)
        slot = add_metal_material(albedo, fuzz)
        return self._issue_id(MaterialType.METAL, slot, {"albedo": albedo, "fuzz": fuzz})

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a clear dielectric with the given index of refraction.

        Raises:
            ValueError: If ior is not positive.
            RuntimeError: If a capacity is exceeded.
        """
        ior = float(ior)
        slot = add_dielectric_material(ior)
        return self._issue_id(MaterialType.DIELECTRIC, slot, {"ior": ior})

    def add_material(self, kind: MaterialType | str, **params: Any) -> int:
        """Register a material of any kind from keyword parameters.

        Missing parameters take the scene-document defaults.

        Raises:
            ValueError: On an unknown kind, unknown parameter or bad value.
        """
        if not isinstance(kind, MaterialType):
            kind = parse_material_type(kind)
        builders = {
            MaterialType.LAMBERTIAN: self.add_lambertian_material,
            MaterialType.METAL: self.add_metal_material,
            MaterialType.DIELECTRIC: self.add_dielectric_material,
        }
        merged = {**_DOCUMENT_DEFAULTS[kind], **params}
        try:
            return builders[kind](**merged)
        except TypeError as e:
            raise ValueError(f"Bad parameters for {kind.name.lower()} material: {e}") from e

    def get_material_count(self) -> int:
        return int(material_count[None])

    def material(self, material_id: int) -> MaterialRecord | None:
        """The record for material_id, or None if no such id was issued."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def material_kind(self, material_id: int) -> MaterialType | None:
        record = self.material(material_id)
        return None if record is None else record.kind

    # -------------------------------------------------------------------------
    # Spheres
    # -------------------------------------------------------------------------

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Place a sphere that uses an already registered material.

        Returns:
            The sphere's index in the scene.

        Raises:
            ValueError: If radius is not positive or material_id was never issued.
            RuntimeError: If the sphere capacity is exceeded.
        """
        radius = float(radius)
        if radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        if self.material(material_id) is None:
            raise ValueError(
                f"Invalid material_id {material_id}; {len(self.materials)} materials registered"
            )

        center = _as_triple(center, "center")
        index = add_sphere(center, radius, material_id)
        self.spheres.append(SphereRecord(index, center, radius, material_id))
        logger.debug(f"Sphere {index}: center={center} radius={radius} material={material_id}")
        return index

    def add_lambertian_sphere(self, center, radius: float, albedo) -> tuple[int, int]:
        """Place a sphere with its own new diffuse material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(self, center, radius: float, albedo, fuzz: float = 0.0) -> tuple[int, int]:
        """Place a sphere with its own new metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(self, center, radius: float, ior: float = 1.5) -> tuple[int, int]:
        """Place a sphere with its own new dielectric material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    # -------------------------------------------------------------------------
    # Scene documents
    # -------------------------------------------------------------------------

    def describe(self) -> SceneDescription:
        """Snapshot the scene as plain data."""
        return SceneDescription(
            materials=[record.to_dict() for record in self.materials],
            spheres=[record.to_dict() for record in self.spheres],
        )

    def load(self, description: SceneDescription) -> None:
        """Replace the scene with the one described.

        Materials are registered in list order so their ids equal their
        positions in the list.

        Raises:
            ValueError: If any entry is invalid. The scene is left partially
                built in that case; call clear() before reuse.
        """
        self.clear()

        for entry in description.materials:
            params = dict(entry)
            kind = params.pop("type", None)
            if kind is None:
                raise ValueError(f"Material entry without a type: {entry!r}")
            self.add_material(kind, **params)

        for entry in description.spheres:
            try:
                center = entry["center"]
                radius = entry["radius"]
                material_id = int(entry["material_id"])
            except KeyError as e:
                raise ValueError(f"Sphere entry is missing {e.args[0]!r}: {entry!r}") from None
            self.add_sphere(center, radius, material_id)

        logger.debug(
            f"Loaded scene with {len(self.materials)} materials and {len(self.spheres)} spheres"
        )

    def to_dict(self) -> dict[str, Any]:
        return self.describe().to_dict()

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the scene with one given as a dict.

        Raises:
            ValueError: If the dict does not describe a valid scene.
        """
        self.load(SceneDescription.from_dict(data))

    def save_json(self, path: str | Path) -> None:
        """Write the scene document to path."""
        Path(path).write_text(json.dumps(self.to_dict(), indent=2))

    def load_json(self, path: str | Path) -> None:
        """Replace the scene with the document stored at path.

        Raises:
            ValueError: If the file is not valid JSON or not a valid scene.
        """
        try:
            data = json.loads(Path(path).read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Scene file {path} is not valid JSON: {e}") from e
        self.from_dict(data)
