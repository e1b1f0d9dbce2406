"""Pytest configuration for path tracer tests.

Provides shared fixtures for all test modules, including Taichi
initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    ti.init() discards every field declared before it, so it is called only
    here and modules declaring fields are imported inside the tests.
    """
    ti.init(arch=ti.cpu, random_seed=42, fast_math=False)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material and render target state around each test."""
    # Import here so the field declarations happen after ti.init()
    from pathtracer.core.integrator import reset_render_target
    from pathtracer.materials.dielectric import clear_dielectric_materials
    from pathtracer.materials.lambertian import clear_lambertian_materials
    from pathtracer.materials.metal import clear_metal_materials
    from pathtracer.scene.intersection import clear_scene
    from pathtracer.scene.manager import reset_material_arena

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        reset_material_arena()
        reset_render_target()

    _clear_all()
    yield
    _clear_all()
