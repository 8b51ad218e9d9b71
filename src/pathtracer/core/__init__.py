"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector utilities
    interval: Closed/open parameter ranges for intersection tests
    sampler: Explicit per-worker random number streams
    integrator: Path tracing estimate and the row-partitioned renderer

All compute-intensive operations use Taichi kernels for parallel execution.
"""

from .interval import (
    Interval,
    interval_clamp,
    interval_contains,
    interval_size,
    interval_surrounds,
    make_interval,
)
from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)
from .sampler import MAX_SAMPLERS, random_float, random_range, seed_samplers

# Note: integrator is NOT imported here to avoid circular imports.
# Import directly from src.pathtracer.core.integrator when needed.

__all__ = [
    "Interval",
    "make_interval",
    "interval_size",
    "interval_contains",
    "interval_surrounds",
    "interval_clamp",
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "MAX_SAMPLERS",
    "seed_samplers",
    "random_float",
    "random_range",
]
