"""Ray data structure and vector utilities for the path tracer.

This module provides the fundamental Ray dataclass and the vector kernel used
throughout the renderer: products, normalization, reflection and refraction,
Schlick reflectance and the random sampling helpers needed for Monte Carlo
scattering. All operations are Taichi functions for use inside kernels.

Random helpers take an explicit sampler handle (see core.sampler) rather than
drawing from a hidden global generator.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.sampler import random_range

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not normalized;
            any non-zero magnitude is valid.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the length (magnitude) of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The result is undefined for a zero-length vector; callers must pass
    non-degenerate vectors.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product of two vectors."""
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to catch degenerate scatter directions.

    Args:
        v: The vector to check.

    Returns:
        1 if every component is below 1e-8 in magnitude, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect a vector about a normal.

    Computes v - 2 * dot(v, n) * n. The magnitude of v is preserved when n
    is unit length.

    Args:
        v: The incoming direction vector (pointing toward the surface).
        n: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f32) -> vec3:
    """Refract a unit vector through a surface using Snell's law.

    Splits the transmitted ray into components perpendicular and parallel to
    the normal. Only meaningful when total internal reflection does not occur;
    callers check etai_over_etat * sin(theta) <= 1 first.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal (unit length, facing against uv).
        etai_over_etat: Ratio of refractive indices (incident / transmitted).

    Returns:
        The refracted direction.
    """
    cos_theta = tm.min(tm.dot(-uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, refraction_index: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    r0 = ((1 - eta) / (1 + eta))^2
    reflectance = r0 + (1 - r0) * (1 - cosine)^5

    Args:
        cosine: Cosine of the angle between the incident direction and normal.
        refraction_index: Ratio of refractive indices.

    Returns:
        The approximate reflectance probability.
    """
    r0 = (1.0 - refraction_index) / (1.0 + refraction_index)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(sampler: ti.i32) -> vec3:
    """Generate a random point strictly inside the unit sphere.

    Rejection sampling from the enclosing cube. The loop has no iteration
    cap; each attempt succeeds with probability pi/6, so it terminates after
    about two attempts on average.

    Args:
        sampler: The sampler handle to draw from.

    Returns:
        A random point with 1e-12 < length^2 < 1.
    """
    p = vec3(1.0, 1.0, 1.0)
    lensq = length_squared(p)
    while lensq >= 1.0 or lensq <= 1e-12:
        p = vec3(
            random_range(sampler, -1.0, 1.0),
            random_range(sampler, -1.0, 1.0),
            random_range(sampler, -1.0, 1.0),
        )
        lensq = length_squared(p)
    return p


@ti.func
def random_unit_vector(sampler: ti.i32) -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    return normalize(random_in_unit_sphere(sampler))


@ti.func
def random_in_unit_disk(sampler: ti.i32) -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used for defocus-disk sampling. Unbounded rejection sampling, like
    random_in_unit_sphere().

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(1.0, 1.0, 0.0)
    while p.x * p.x + p.y * p.y >= 1.0:
        p = vec3(
            random_range(sampler, -1.0, 1.0),
            random_range(sampler, -1.0, 1.0),
            0.0,
        )
    return p
