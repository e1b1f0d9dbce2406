"""Ready-made scenes.

Each factory clears the current scene, builds a new one through a
SceneManager and returns it together with a matching camera.

Available presets:
    three_spheres: a matte sphere between a soft-fuzz and a full-fuzz metal
        sphere, resting on a large yellow-green ground sphere.
    glass: the same layout with a glass sphere on the left and a
        mirror-like metal sphere on the right.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.presets import create_three_spheres_scene
    >>> from pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
"""

from collections.abc import Callable

from pathtracer.camera.pinhole import PinholeCamera
from pathtracer.scene.manager import SceneManager

# =============================================================================
# Scene Constants
# =============================================================================

ASPECT_RATIO = 16.0 / 9.0

GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0
GROUND_ALBEDO = (0.8, 0.8, 0.0)

SPHERE_RADIUS = 0.5
LEFT_CENTER = (-1.0, 0.0, -1.0)
CENTER_CENTER = (0.0, 0.0, -1.0)
RIGHT_CENTER = (1.0, 0.0, -1.0)

CENTER_ALBEDO = (0.7, 0.3, 0.3)
LEFT_METAL_ALBEDO = (0.8, 0.8, 0.8)
LEFT_METAL_FUZZ = 0.3
RIGHT_METAL_ALBEDO = (0.8, 0.6, 0.2)
RIGHT_METAL_FUZZ = 1.0

GLASS_IOR = 1.5


# =============================================================================
# Scene Factories
# =============================================================================


def create_three_spheres_scene(
    aspect_ratio: float = ASPECT_RATIO,
) -> tuple[SceneManager, PinholeCamera]:
    """Build the three-spheres-on-a-ground-sphere scene.

    Materials are registered ground, center, left, right, so their ids are
    0 to 3 in that order.

    Args:
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        A tuple of (SceneManager, PinholeCamera).

    Example:
        >>> scene, camera = create_three_spheres_scene()
        >>> scene.get_sphere_count()
        4
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=GROUND_ALBEDO)
    center = scene.add_lambertian_material(albedo=CENTER_ALBEDO)
    left = scene.add_metal_material(albedo=LEFT_METAL_ALBEDO, fuzz=LEFT_METAL_FUZZ)
    right = scene.add_metal_material(albedo=RIGHT_METAL_ALBEDO, fuzz=RIGHT_METAL_FUZZ)

    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, ground)
    scene.add_sphere(CENTER_CENTER, SPHERE_RADIUS, center)
    scene.add_sphere(LEFT_CENTER, SPHERE_RADIUS, left)
    scene.add_sphere(RIGHT_CENTER, SPHERE_RADIUS, right)

    return scene, PinholeCamera(aspect_ratio=aspect_ratio)


def create_glass_scene(
    aspect_ratio: float = ASPECT_RATIO,
) -> tuple[SceneManager, PinholeCamera]:
    """Build the glass variant: glass left, matte center, polished metal right.

    Args:
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        A tuple of (SceneManager, PinholeCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=GROUND_ALBEDO)
    center = scene.add_lambertian_material(albedo=CENTER_ALBEDO)
    glass = scene.add_dielectric_material(ior=GLASS_IOR)
    right = scene.add_metal_material(albedo=RIGHT_METAL_ALBEDO, fuzz=0.0)

    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, ground)
    scene.add_sphere(CENTER_CENTER, SPHERE_RADIUS, center)
    scene.add_sphere(LEFT_CENTER, SPHERE_RADIUS, glass)
    scene.add_sphere(RIGHT_CENTER, SPHERE_RADIUS, right)

    return scene, PinholeCamera(aspect_ratio=aspect_ratio)


PRESETS: dict[str, Callable[..., tuple[SceneManager, PinholeCamera]]] = {
    "three_spheres": create_three_spheres_scene,
    "glass": create_glass_scene,
}


def create_preset_scene(
    name: str, aspect_ratio: float = ASPECT_RATIO
) -> tuple[SceneManager, PinholeCamera]:
    """Build a preset scene by name.

    Raises:
        ValueError: If name is not a known preset.
    """
    try:
        factory = PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown preset {name!r}; choose from {', '.join(sorted(PRESETS))}"
        ) from None
    return factory(aspect_ratio=aspect_ratio)
