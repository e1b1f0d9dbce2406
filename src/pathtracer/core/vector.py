"""vec3 helpers and random direction sampling.

Points, directions and RGB colors all use Taichi's ``vec3``, which already
supports the arithmetic operators. Everything here is a ``@ti.func`` meant to
be called from kernels.

The samplers draw from Taichi's per-thread generator, seeded by
``ti.init(random_seed=...)``.

Kernel math and every field are single precision (f32). Host-side scene
records keep the Python floats they were given, so scene documents round
trip at double precision even though rendering does not use it.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

NEAR_ZERO_EPSILON = 1e-8


@ti.func
def length_squared(v: vec3) -> ti.f32:
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    return ti.sqrt(length_squared(v))


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """v scaled to length 1.

    v must be non-zero. Debug builds (``ti.init(debug=True)``) assert this;
    release builds return NaN components instead.
    """
    assert length_squared(v) > 0.0, "unit_vector() called on a zero-length vector"
    return v / length(v)


normalize = unit_vector


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Mirror v about the plane with unit normal n: ``v - 2 (v.n) n``."""
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f32) -> vec3:
    """Bend unit direction uv through a boundary with unit normal n (Snell).

    The result is assembled from its components across and along n:

        perp = eta * (uv + cos_theta * n)
        par  = -sqrt(|1 - |perp|^2|) * n

    Total internal reflection is not detected here.
    """
    cos_theta = ti.min(tm.dot(-uv, n), 1.0)
    perp = etai_over_etat * (uv + cos_theta * n)
    parallel = -ti.sqrt(ti.abs(1.0 - length_squared(perp))) * n
    return perp + parallel


@ti.func
def schlick_fresnel(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Schlick's approximation of the reflectance at incidence angle acos(cosine)."""
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * (1.0 - cosine) ** 5


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """1 if every |component| of v is below NEAR_ZERO_EPSILON."""
    return ti.max(ti.abs(v.x), ti.abs(v.y), ti.abs(v.z)) < NEAR_ZERO_EPSILON


# =============================================================================
# Sampling
# =============================================================================


@ti.func
def random_double() -> ti.f32:
    """Uniform in [0, 1)."""
    return ti.random(ti.f32)


@ti.func
def random_range(lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Uniform in [lo, hi)."""
    return lo + (hi - lo) * random_double()


@ti.func
def random_vec3(lo: ti.f32, hi: ti.f32) -> vec3:
    return vec3(random_range(lo, hi), random_range(lo, hi), random_range(lo, hi))


@ti.func
def random_in_unit_sphere() -> vec3:
    """Uniform point with length < 1, by rejection from the [-1, 1) cube."""
    p = random_vec3(-1.0, 1.0)
    while length_squared(p) >= 1.0:
        p = random_vec3(-1.0, 1.0)
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Uniform direction on the unit sphere."""
    return unit_vector(random_in_unit_sphere())


@ti.func
def random_in_hemisphere(normal: vec3) -> vec3:
    """random_in_unit_sphere(), negated if it points away from normal."""
    p = random_in_unit_sphere()
    if tm.dot(p, normal) <= 0.0:
        p = -p
    return p
