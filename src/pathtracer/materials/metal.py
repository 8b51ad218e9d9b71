"""Metal (specular reflective) material implementation.

This module implements metal scattering: the incoming direction is mirrored
about the surface normal, normalized, and then perturbed by a random unit
vector scaled by the fuzz factor. Fuzz 0 gives a perfect mirror.

The reflection formula is:
    R = I - 2(I . N)N

Fuzz is not clamped; values outside [0, 1] are the caller's responsibility.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # srec = scatter_metal(albedo, fuzz, ray_in, rec, sampler)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray, normalize, random_unit_vector, reflect
from src.pathtracer.geometry.sphere import HitRecord
from src.pathtracer.materials.material import ScatterRecord, make_scatter, validate_colour

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(albedo: vec3, fuzz: ti.f32, ray_in: Ray, rec: HitRecord, sampler: ti.i32) -> ScatterRecord:
    """Scatter a ray off a metal surface.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The fuzz factor.
        ray_in: The incoming ray.
        rec: The hit record of the surface interaction.
        sampler: The sampler handle to draw from.

    Returns:
        A ScatterRecord with attenuation = albedo and the fuzzed reflection.
    """
    reflected = normalize(reflect(ray_in.direction, rec.normal))
    reflected = reflected + fuzz * random_unit_vector(sampler)
    return make_scatter(albedo, rec.point, reflected)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 256

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzz = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple, each in [0, 1].
        fuzz: The fuzz factor. Default is 0 (perfect mirror). Not validated.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_colour("albedo", albedo)

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzz[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the fuzz factor for a metal material by index."""
    return metal_fuzz[material_idx]


@ti.func
def scatter_metal_by_id(material_idx: ti.i32, ray_in: Ray, rec: HitRecord, sampler: ti.i32) -> ScatterRecord:
    """Scatter off a registered metal material."""
    return scatter_metal(
        get_metal_albedo(material_idx), get_metal_fuzz(material_idx), ray_in, rec, sampler
    )
