"""Dielectric (glass/water) material implementation.

This module implements transparent materials that both reflect and refract.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when eta * sin(theta) > 1

The refraction ratio eta is 1/ior when the ray enters the material (front
face) and ior when it leaves. The material reflects on total internal
reflection or when a uniform draw falls below the Schlick reflectance, and
refracts otherwise. Glass absorbs nothing: attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # srec = scatter_dielectric(ior, ray_in, rec, sampler)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray, normalize, reflect, refract, schlick_reflectance
from src.pathtracer.core.sampler import random_float
from src.pathtracer.geometry.sphere import HitRecord
from src.pathtracer.materials.material import ScatterRecord, make_scatter

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio of refractive indices for the side the ray arrives from."""
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def cannot_refract(ri: ti.f32, cos_theta: ti.f32) -> ti.i32:
    """Check for total internal reflection.

    Args:
        ri: The refraction ratio.
        cos_theta: Cosine of the incident angle.

    Returns:
        1 if ri * sin(theta) > 1, 0 otherwise.
    """
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)
    return ri * sin_theta > 1.0


@ti.func
def scatter_dielectric(ior: ti.f32, ray_in: Ray, rec: HitRecord, sampler: ti.i32) -> ScatterRecord:
    """Scatter a ray through a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        ray_in: The incoming ray.
        rec: The hit record; front_face selects the refraction ratio.
        sampler: The sampler handle to draw from.

    Returns:
        A ScatterRecord with white attenuation and the reflected or
        refracted ray.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    ri = refraction_ratio(ior, rec.front_face)

    unit_direction = normalize(ray_in.direction)
    cos_theta = tm.min(tm.dot(-unit_direction, rec.normal), 1.0)

    direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract(ri, cos_theta) or schlick_reflectance(cos_theta, ri) > random_float(sampler):
        direction = reflect(unit_direction, rec.normal)
    else:
        direction = refract(unit_direction, rec.normal, ri)

    return make_scatter(attenuation, rec.point, direction)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass). Must be
            positive; values below 1 model a less dense medium enclosed in a
            denser one (an air bubble inside glass).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is not positive.
    """
    if ior <= 0.0:
        raise ValueError(f"Index of refraction = {ior} must be positive")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(material_idx: ti.i32, ray_in: Ray, rec: HitRecord, sampler: ti.i32) -> ScatterRecord:
    """Scatter off a registered dielectric material."""
    return scatter_dielectric(get_dielectric_ior(material_idx), ray_in, rec, sampler)
