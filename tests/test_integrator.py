"""Tests for the path-color estimator and the accumulation buffer."""

import numpy as np
import pytest
import taichi as ti


def _setup_default_camera():
    from pathtracer.camera.pinhole import PinholeCamera, setup_camera

    setup_camera(PinholeCamera(aspect_ratio=2.0))


def _background(direction):
    """Host-side copy of the sky gradient."""
    d = np.asarray(direction, dtype=np.float64)
    t = 0.5 * (d[1] / np.linalg.norm(d) + 1.0)
    return (1.0 - t) * np.ones(3) + t * np.array([0.5, 0.7, 1.0])


class TestBackground:
    """Tests for the sky gradient seen by escaping rays."""

    @pytest.mark.parametrize(
        "direction",
        [(0.0, 1.0, 0.0), (0.0, -1.0, 0.0), (0.0, 0.0, -1.0), (0.3, 0.4, -2.0)],
    )
    def test_miss_returns_background(self, direction):
        from pathtracer.core.integrator import trace_ray

        color = trace_ray((0.0, 0.0, 0.0), direction, depth=50)
        np.testing.assert_allclose(color, _background(direction), atol=1e-5)

    def test_gradient_endpoints(self):
        from pathtracer.core.integrator import trace_ray

        up = trace_ray((0.0, 0.0, 0.0), (0.0, 5.0, 0.0))
        down = trace_ray((0.0, 0.0, 0.0), (0.0, -5.0, 0.0))
        np.testing.assert_allclose(up, (0.5, 0.7, 1.0), atol=1e-6)
        np.testing.assert_allclose(down, (1.0, 1.0, 1.0), atol=1e-6)


class TestRayColor:
    """Tests for ray_color termination and throughput."""

    def test_zero_depth_is_black(self):
        from pathtracer.core.integrator import trace_ray

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=0) == (0.0, 0.0, 0.0)

    def test_negative_depth_is_black(self):
        from pathtracer.core.integrator import trace_ray

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=-3) == (0.0, 0.0, 0.0)

    def test_depth_exhaustion_is_black(self):
        """One bounce allowed: the ray scatters off the ground and runs out."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, (0.8, 0.8, 0.0))

        for _ in range(20):
            assert trace_ray((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), depth=1) == (0.0, 0.0, 0.0)

    def test_diffuse_ground_tints_background(self):
        """A diffuse bounce off the convex ground always escapes to the sky.

        The result is albedo * background, so the blue channel is zero and
        red and green lie within albedo times the gradient's range.
        """
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, (0.8, 0.8, 0.0))

        for _ in range(50):
            r, g, b = trace_ray((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), depth=50)
            assert b == 0.0
            assert 0.4 - 1e-5 <= r <= 0.8 + 1e-5
            assert 0.56 - 1e-5 <= g <= 0.8 + 1e-5

    def test_mirror_reflects_background(self):
        """A head-on ray off a perfect mirror sees the sky straight behind it."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, 0.0, -1.0), 0.5, (0.8, 0.6, 0.2), fuzz=0.0)

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        expected = np.array([0.8, 0.6, 0.2]) * _background((0.0, 0.0, 1.0))
        np.testing.assert_allclose(color, expected, atol=1e-5)

    def test_index_matched_glass_is_invisible(self):
        """Glass with ior 1 lets a head-on ray through unchanged."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_dielectric_sphere((0.0, 0.0, -1.0), 0.5, ior=1.0)

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        np.testing.assert_allclose(color, _background((0.0, 0.0, -1.0)), atol=1e-5)

    def test_colors_are_finite_and_non_negative(self):
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.presets import create_glass_scene

        create_glass_scene()
        for direction in [(-1.0, 0.0, -1.0), (0.0, 0.0, -1.0), (1.0, 0.0, -1.0), (0.0, -1.0, -1.0)]:
            for _ in range(10):
                color = trace_ray((0.0, 0.0, 0.0), direction)
                assert all(np.isfinite(c) and c >= 0.0 for c in color)


class TestMaterialDispatch:
    """Tests for scatter dispatch by material id."""

    def test_unknown_material_absorbs(self):
        from pathtracer.core.integrator import scatter_material
        from pathtracer.core.vector import vec3

        did_scatter = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            _d, _att, ok = scatter_material(-1, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1)
            did_scatter[None] = ok

        test_kernel()
        assert did_scatter[None] == 0

    def test_dispatch_uses_type_local_index(self):
        """The second metal registered gets its own albedo, not the first one's."""
        from pathtracer.core.integrator import scatter_material
        from pathtracer.core.vector import vec3
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_material((0.1, 0.1, 0.1))
        scene.add_metal_material((0.9, 0.9, 0.9))
        second_metal = scene.add_metal_material((0.2, 0.3, 0.4))
        attenuation = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(material_id: ti.i32):
            _d, att, _ok = scatter_material(
                material_id, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1
            )
            attenuation[None] = att

        test_kernel(second_metal)
        np.testing.assert_allclose(attenuation[None].to_numpy(), (0.2, 0.3, 0.4), atol=1e-6)


class TestSanitizeColor:
    def test_non_finite_channels_become_zero(self):
        from pathtracer.core.integrator import sanitize_color
        from pathtracer.core.vector import vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = sanitize_color(vec3(ti.math.nan, ti.math.inf, 0.5))

        test_kernel()
        np.testing.assert_allclose(result[None].to_numpy(), (0.0, 0.0, 0.5))


class TestRenderTarget:
    """Tests for render target setup and accumulation."""

    def test_render_requires_setup(self):
        from pathtracer.core.integrator import get_accumulated_numpy, render_image

        with pytest.raises(RuntimeError, match="Render target not set up"):
            render_image(1)
        with pytest.raises(RuntimeError, match="Render target not set up"):
            get_accumulated_numpy()

    @pytest.mark.parametrize("size", [(0, 10), (10, -1), (4096, 10), (10, 4096)])
    def test_rejects_bad_dimensions(self, size):
        from pathtracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(*size)

    def test_rejects_negative_sample_count(self):
        from pathtracer.core.integrator import render_image, setup_render_target

        setup_render_target(4, 2)
        with pytest.raises(ValueError, match="non-negative"):
            render_image(-1)

    def test_samples_accumulate(self):
        from pathtracer.core.integrator import (
            get_accumulated_numpy,
            get_image_dimensions,
            get_total_samples,
            render_image,
            setup_render_target,
        )

        _setup_default_camera()
        setup_render_target(8, 4)
        assert get_image_dimensions() == (8, 4)

        render_image(num_samples=2, max_depth=5)
        render_image(num_samples=1, max_depth=5)
        assert get_total_samples() == 3

        image = get_accumulated_numpy()
        assert image.shape == (4, 8, 3)
        assert image.dtype == np.float32
        assert np.all(np.isfinite(image))
        # Three samples of a color in [0, 1] per channel
        assert image.min() >= 0.0
        assert image.max() <= 3.0 + 1e-4

    def test_empty_scene_rows_follow_gradient(self):
        """Top row first: the top of an empty-scene image is bluer than the bottom."""
        from pathtracer.core.integrator import (
            get_accumulated_numpy,
            render_image,
            setup_render_target,
        )

        _setup_default_camera()
        setup_render_target(8, 6)
        render_image(num_samples=4, max_depth=5)
        image = get_accumulated_numpy() / 4.0

        top_red = image[0, :, 0].mean()
        bottom_red = image[-1, :, 0].mean()
        assert top_red < bottom_red
        # Blue is 1 everywhere on the gradient
        np.testing.assert_allclose(image[:, :, 2], 1.0, atol=1e-5)

    def test_setup_clears_buffer(self):
        from pathtracer.core.integrator import get_total_samples, render_image, setup_render_target

        _setup_default_camera()
        setup_render_target(4, 2)
        render_image(2, max_depth=2)
        setup_render_target(4, 2)
        assert get_total_samples() == 0

    def test_render_sample_does_not_accumulate(self):
        from pathtracer.core.integrator import get_total_samples, render_sample, setup_render_target

        _setup_default_camera()
        setup_render_target(4, 2)
        color = render_sample(1, 1, max_depth=5)
        assert len(color) == 3
        assert all(0.0 <= c <= 1.0 for c in color)
        assert get_total_samples() == 0

    def test_preset_scene_renders_without_nan(self):
        from pathtracer.camera.pinhole import setup_camera
        from pathtracer.core.integrator import (
            get_accumulated_numpy,
            render_image,
            setup_render_target,
        )
        from pathtracer.scene.presets import create_three_spheres_scene

        _scene, camera = create_three_spheres_scene()
        setup_camera(camera)
        setup_render_target(16, 9)
        render_image(num_samples=2, max_depth=10)
        image = get_accumulated_numpy()
        assert np.all(np.isfinite(image))
        assert image.min() >= 0.0
