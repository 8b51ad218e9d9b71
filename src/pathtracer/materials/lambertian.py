"""Lambertian (ideal diffuse) material implementation.

This module implements diffuse scattering: the outgoing direction is the
surface normal plus a random unit vector, which distributes scattered rays
with a cosine-weighted density about the normal. The attenuation is the
albedo.

If the sampled direction is numerically degenerate (the random unit vector
almost exactly cancels the normal), the normal itself is used instead so the
scattered ray never has zero length.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # srec = scatter_lambertian(albedo, rec, sampler)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import near_zero, random_unit_vector
from src.pathtracer.geometry.sphere import HitRecord
from src.pathtracer.materials.material import ScatterRecord, make_scatter, validate_colour

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, rec: HitRecord, sampler: ti.i32) -> ScatterRecord:
    """Scatter a ray diffusely off a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color (RGB).
        rec: The hit record of the surface interaction.
        sampler: The sampler handle to draw from.

    Returns:
        A ScatterRecord with attenuation = albedo and an outgoing ray from
        the hit point along normal + random unit vector.
    """
    direction = rec.normal + random_unit_vector(sampler)

    # Catch degenerate scatter direction
    if near_zero(direction):
        direction = rec.normal

    return make_scatter(albedo, rec.point, direction)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Each component must be in [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_colour("albedo", albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, rec: HitRecord, sampler: ti.i32) -> ScatterRecord:
    """Scatter off a registered Lambertian material.

    Looks up the albedo from the registry and calls scatter_lambertian.
    """
    return scatter_lambertian(get_lambertian_albedo(material_idx), rec, sampler)
