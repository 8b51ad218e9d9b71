"""Shared material interface.

Every material variant exposes a Taichi scatter function with the contract:

    scatter(ray_in, hit_record, ...) -> ScatterRecord

The ScatterRecord carries the attenuation colour and, when did_scatter == 1,
the outgoing ray. A record with did_scatter == 0 ends the path; its
attenuation is then the light contributed by the surface (emission).
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class ScatterRecord:
    """Result of scattering a ray off a material.

    Attributes:
        attenuation: Colour multiplier for the continued path, or the emitted
            colour when the path terminates.
        scattered: The outgoing ray. Only valid if did_scatter == 1.
        did_scatter: 1 if the path continues along scattered, 0 if it ends.
    """

    attenuation: vec3
    scattered: Ray
    did_scatter: ti.i32


@ti.func
def make_scatter(attenuation: vec3, origin: vec3, direction: vec3) -> ScatterRecord:
    """Create a record for a path that continues from origin along direction."""
    return ScatterRecord(
        attenuation=attenuation,
        scattered=Ray(origin=origin, direction=direction),
        did_scatter=1,
    )


@ti.func
def make_terminal(colour: vec3) -> ScatterRecord:
    """Create a record for a path that ends, contributing colour."""
    return ScatterRecord(
        attenuation=colour,
        scattered=Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, 0.0)),
        did_scatter=0,
    )


def validate_colour(name: str, colour: tuple[float, float, float], upper: float | None = 1.0) -> None:
    """Check colour components against [0, upper].

    Args:
        name: Parameter name used in the error message.
        colour: The (R, G, B) tuple to check.
        upper: Inclusive upper bound, or None for no upper bound.

    Raises:
        ValueError: If the colour does not have three components or any
            component is out of range.
    """
    if len(colour) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(colour)}")
    for i, component in enumerate(colour):
        if component < 0.0 or (upper is not None and component > upper):
            bound = f"[0, {upper}]" if upper is not None else "[0, inf)"
            raise ValueError(f"{name} component {i} = {component} is outside {bound}")
