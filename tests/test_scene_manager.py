"""Unit tests for the SceneManager.

Tests cover:
- Material registration and the unified id arena
- Material type tracking and lookup on both sides of the kernel boundary
- Sphere addition and validation
- Scene documents (SceneDescription, dict and JSON)
- Scene clearing
"""

import json

import pytest
import taichi as ti


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    from pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    yield scene
    scene.clear()


class TestMaterialRegistration:
    """Tests for material registration."""

    def test_ids_are_sequential_across_kinds(self, fresh_scene):
        id0 = fresh_scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
        id1 = fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.0)
        id2 = fresh_scene.add_dielectric_material(ior=1.5)
        id3 = fresh_scene.add_lambertian_material(albedo=(0.1, 0.8, 0.1))

        assert (id0, id1, id2, id3) == (0, 1, 2, 3)
        assert fresh_scene.get_material_count() == 4

    def test_type_local_indices(self, fresh_scene):
        from pathtracer.scene.manager import MaterialType

        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_metal_material(albedo=(0.5, 0.5, 0.5))
        second_lambertian = fresh_scene.add_lambertian_material(albedo=(0.2, 0.2, 0.2))

        record = fresh_scene.material(second_lambertian)
        assert record.kind == MaterialType.LAMBERTIAN
        assert record.slot == 1
        assert record.params == {"albedo": (0.2, 0.2, 0.2)}

    def test_material_type_lookup(self, fresh_scene):
        from pathtracer.scene.manager import MaterialType

        glass = fresh_scene.add_dielectric_material(ior=1.33)
        assert fresh_scene.material_kind(glass) == MaterialType.DIELECTRIC
        assert fresh_scene.material_kind(99) is None
        assert fresh_scene.material(-1) is None

    def test_material_validation(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_lambertian_material(albedo=(1.5, 0.0, 0.0))
        with pytest.raises(ValueError):
            fresh_scene.add_metal_material(albedo=(0.8, 0.8, 0.8), fuzz=1.5)
        with pytest.raises(ValueError):
            fresh_scene.add_dielectric_material(ior=0.0)
        with pytest.raises(ValueError, match="3 components"):
            fresh_scene.add_lambertian_material(albedo=(0.5, 0.5))
        # Nothing was registered
        assert fresh_scene.get_material_count() == 0

    def test_kernel_side_type_lookup(self, fresh_scene):
        from pathtracer.scene.manager import MaterialType, lookup_material

        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_metal_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_dielectric_material()

        kinds = ti.field(dtype=ti.i32, shape=5)
        slots = ti.field(dtype=ti.i32, shape=5)

        @ti.kernel
        def test_kernel():
            for i in range(5):
                kind, slot = lookup_material(i - 1)
                kinds[i] = kind
                slots[i] = slot

        test_kernel()
        assert [kinds[i] for i in range(5)] == [
            -1,
            int(MaterialType.LAMBERTIAN),
            int(MaterialType.METAL),
            int(MaterialType.DIELECTRIC),
            -1,
        ]
        assert [slots[i] for i in range(5)] == [-1, 0, 0, 0, -1]


class TestSpheres:
    """Tests for sphere addition."""

    def test_add_sphere(self, fresh_scene):
        mat = fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        assert fresh_scene.add_sphere((0, 0, -1), 0.5, mat) == 0
        assert fresh_scene.add_sphere((1, 0, -1), 0.5, mat) == 1
        assert fresh_scene.get_sphere_count() == 2
        assert fresh_scene.spheres[1].center == (1.0, 0.0, -1.0)

    @pytest.mark.parametrize("radius", [0.0, -0.5])
    def test_rejects_non_positive_radius(self, fresh_scene, radius):
        mat = fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="radius"):
            fresh_scene.add_sphere((0, 0, -1), radius, mat)

    @pytest.mark.parametrize("material_id", [-1, 1, 50])
    def test_rejects_unknown_material(self, fresh_scene, material_id):
        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="material_id"):
            fresh_scene.add_sphere((0, 0, -1), 0.5, material_id)

    def test_convenience_methods(self, fresh_scene):
        from pathtracer.scene.manager import MaterialType

        s0, m0 = fresh_scene.add_lambertian_sphere((0, -100.5, -1), 100, (0.8, 0.8, 0.0))
        s1, m1 = fresh_scene.add_metal_sphere((1, 0, -1), 0.5, (0.8, 0.6, 0.2), fuzz=1.0)
        s2, m2 = fresh_scene.add_dielectric_sphere((-1, 0, -1), 0.5, ior=1.5)

        assert (s0, s1, s2) == (0, 1, 2)
        assert (m0, m1, m2) == (0, 1, 2)
        assert fresh_scene.material_kind(m1) == MaterialType.METAL

    def test_shared_material(self, fresh_scene):
        mat = fresh_scene.add_metal_material(albedo=(0.9, 0.9, 0.9))
        for x in range(3):
            fresh_scene.add_sphere((float(x), 0.0, -2.0), 0.4, mat)
        assert fresh_scene.get_material_count() == 1
        assert fresh_scene.get_sphere_count() == 3

    def test_clear(self, fresh_scene):
        fresh_scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))
        fresh_scene.clear()
        assert fresh_scene.get_sphere_count() == 0
        assert fresh_scene.get_material_count() == 0
        assert fresh_scene.materials == []
        assert fresh_scene.spheres == []

    def test_new_manager_replaces_scene(self):
        from pathtracer.scene.manager import SceneManager

        first = SceneManager()
        first.add_lambertian_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))
        second = SceneManager()
        assert second.get_sphere_count() == 0
        assert second.get_material_count() == 0

    def test_records_keep_double_precision(self, fresh_scene):
        """Records hold the given float; the kernel field holds its f32 rounding."""
        from pathtracer.scene.intersection import sphere_radii

        mat = fresh_scene.add_dielectric_material(ior=1.5)
        radius = 0.1 + 1e-12
        index = fresh_scene.add_sphere((0.0, 0.0, -1.0), radius, mat)

        assert fresh_scene.spheres[index].radius == radius
        assert fresh_scene.to_dict()["spheres"][index]["radius"] == radius
        assert sphere_radii.dtype == ti.f32
        assert abs(sphere_radii[index] - radius) < 1e-7

    def test_arena_capacity_covers_every_registry(self):
        from pathtracer.materials.dielectric import MAX_DIELECTRIC_MATERIALS
        from pathtracer.materials.lambertian import MAX_LAMBERTIAN_MATERIALS
        from pathtracer.materials.metal import MAX_METAL_MATERIALS
        from pathtracer.scene.manager import MAX_MATERIALS

        assert MAX_MATERIALS == (
            MAX_LAMBERTIAN_MATERIALS + MAX_METAL_MATERIALS + MAX_DIELECTRIC_MATERIALS
        )


class TestSerialization:
    """Tests for scene export and import."""

    def _build(self, scene):
        ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
        gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.5)
        glass = scene.add_dielectric_material(ior=1.5)
        scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
        scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)
        scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)

    def test_to_dict(self, fresh_scene):
        self._build(fresh_scene)
        data = fresh_scene.to_dict()
        assert data["materials"] == [
            {"type": "lambertian", "albedo": [0.8, 0.8, 0.0]},
            {"type": "metal", "albedo": [0.8, 0.6, 0.2], "fuzz": 0.5},
            {"type": "dielectric", "ior": 1.5},
        ]
        assert data["spheres"][1] == {"center": [1.0, 0.0, -1.0], "radius": 0.5, "material_id": 1}

    def test_dict_round_trip(self, fresh_scene):
        self._build(fresh_scene)
        data = fresh_scene.to_dict()
        fresh_scene.from_dict(data)
        assert fresh_scene.to_dict() == data
        assert fresh_scene.get_sphere_count() == 3

    def test_json_round_trip(self, fresh_scene, tmp_path):
        from pathtracer.scene.manager import SceneManager

        self._build(fresh_scene)
        path = tmp_path / "scene.json"
        fresh_scene.save_json(path)
        saved = json.loads(path.read_text())

        loaded = SceneManager()
        loaded.load_json(path)
        assert loaded.to_dict() == saved
        assert loaded.get_material_count() == 3

    def test_invalid_json(self, fresh_scene, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{ not json")
        with pytest.raises(ValueError, match="not valid JSON"):
            fresh_scene.load_json(path)

    def test_unknown_material_type(self, fresh_scene):
        with pytest.raises(ValueError, match="Unknown material type"):
            fresh_scene.from_dict({"materials": [{"type": "plasma"}], "spheres": []})

    def test_sphere_referencing_missing_material(self, fresh_scene):
        data = {
            "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}],
            "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 3}],
        }
        with pytest.raises(ValueError, match="material_id"):
            fresh_scene.from_dict(data)

    def test_material_entry_without_type(self, fresh_scene):
        with pytest.raises(ValueError, match="without a type"):
            fresh_scene.from_dict({"materials": [{"ior": 1.5}]})

    def test_sphere_entry_missing_radius(self, fresh_scene):
        data = {
            "materials": [{"type": "dielectric"}],
            "spheres": [{"center": [0, 0, -1], "material_id": 0}],
        }
        with pytest.raises(ValueError, match="radius"):
            fresh_scene.from_dict(data)

    def test_describe_matches_to_dict(self, fresh_scene):
        self._build(fresh_scene)
        description = fresh_scene.describe()
        assert len(description.materials) == 3
        assert description.to_dict() == fresh_scene.to_dict()

    def test_non_mapping_document(self, fresh_scene):
        with pytest.raises(ValueError, match="mapping"):
            fresh_scene.from_dict([1, 2, 3])


class TestGenericMaterials:
    """Tests for add_material and type-name parsing."""

    @pytest.mark.parametrize("name", ["metal", "METAL", "Metal"])
    def test_parse_material_type(self, name):
        from pathtracer.scene.manager import MaterialType, parse_material_type

        assert parse_material_type(name) == MaterialType.METAL

    def test_parse_unknown(self):
        from pathtracer.scene.manager import parse_material_type

        with pytest.raises(ValueError, match="Unknown material type"):
            parse_material_type("velvet")

    def test_defaults_fill_missing_parameters(self, fresh_scene):
        from pathtracer.scene.manager import MaterialType

        metal = fresh_scene.add_material("metal")
        glass = fresh_scene.add_material(MaterialType.DIELECTRIC)
        assert fresh_scene.material(metal).params == {"albedo": (0.8, 0.8, 0.8), "fuzz": 0.0}
        assert fresh_scene.material(glass).params == {"ior": 1.5}

    def test_explicit_parameters(self, fresh_scene):
        matte = fresh_scene.add_material("lambertian", albedo=[0.1, 0.2, 0.3])
        assert fresh_scene.material(matte).params == {"albedo": (0.1, 0.2, 0.3)}

    def test_unknown_parameter(self, fresh_scene):
        with pytest.raises(ValueError, match="Bad parameters"):
            fresh_scene.add_material("dielectric", ior=1.5, tint=0.2)
        assert fresh_scene.get_material_count() == 0

    def test_record_to_dict(self, fresh_scene):
        gold = fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.25)
        assert fresh_scene.material(gold).to_dict() == {
            "type": "metal",
            "albedo": [0.8, 0.6, 0.2],
            "fuzz": 0.25,
        }
