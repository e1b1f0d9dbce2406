"""Monte-Carlo path tracer built on Taichi.

Renders scenes of spheres with diffuse, metal and glass materials through a
pinhole camera, averaging many jittered samples per pixel and writing PPM or
PNG images.

Subpackages:
    core: Vector math, rays, the path-color estimator and render loop
    geometry: Sphere primitive and intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Sphere storage, material arena, preset scenes
    camera: Pinhole camera ray generation
    preview: Image conversion and export

Modules:
    config: RenderConfig dataclass
    cli: Command-line entry point

Subpackages that declare Taichi fields must be imported after ti.init().
"""

__version__ = "0.1.0"
