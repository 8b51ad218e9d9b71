"""Emissive (light source) material implementation.

An emissive surface never scatters. Hitting it ends the path and the surface
contributes its configured colour, which the integrator multiplies by the
attenuation gathered along the path so far. The colour may exceed 1 for
bright lights.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.materials.emissive import scatter_emissive
    >>> # Use within a Taichi kernel:
    >>> # srec = scatter_emissive(colour)  # srec.did_scatter == 0
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.materials.material import ScatterRecord, make_terminal, validate_colour

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_emissive(colour: vec3) -> ScatterRecord:
    """Terminate a path on a light.

    The incoming ray and hit record do not affect the result.

    Args:
        colour: The emitted colour.

    Returns:
        A ScatterRecord with did_scatter = 0 and attenuation = colour.
    """
    return make_terminal(colour)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of emissive materials in the scene
MAX_EMISSIVE_MATERIALS = 256

emissive_colours = ti.Vector.field(3, dtype=ti.f32, shape=MAX_EMISSIVE_MATERIALS)
num_emissive_materials = ti.field(dtype=ti.i32, shape=())


def clear_emissive_materials() -> None:
    """Clear all emissive materials."""
    num_emissive_materials[None] = 0


def add_emissive_material(colour: tuple[float, float, float]) -> int:
    """Add an emissive material to the material registry.

    Args:
        colour: The emitted colour as (R, G, B). Components must be
            non-negative; values above 1 are allowed.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any colour component is negative.
    """
    validate_colour("colour", colour, upper=None)

    idx = num_emissive_materials[None]
    if idx >= MAX_EMISSIVE_MATERIALS:
        raise RuntimeError(
            f"Maximum number of emissive materials ({MAX_EMISSIVE_MATERIALS}) exceeded"
        )

    emissive_colours[idx] = vec3(colour[0], colour[1], colour[2])
    num_emissive_materials[None] = idx + 1
    return idx


def get_emissive_material_count() -> int:
    """Get the number of emissive materials in the registry."""
    return int(num_emissive_materials[None])


@ti.func
def get_emissive_colour(material_idx: ti.i32) -> vec3:
    """Get the emitted colour for an emissive material by index."""
    return emissive_colours[material_idx]


@ti.func
def scatter_emissive_by_id(material_idx: ti.i32) -> ScatterRecord:
    """Terminate a path on a registered emissive material."""
    return scatter_emissive(get_emissive_colour(material_idx))
