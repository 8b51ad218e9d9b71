"""Sphere primitive with ray-sphere intersection.

This module provides the Sphere and HitRecord dataclasses and the intersection
function used by the scene's closest-hit queries.

The ray-sphere intersection solves:
    |origin + t * direction - center|^2 = radius^2

which, with oc = center - origin, is the quadratic:
    a*t^2 - 2*h*t + c = 0

where:
    a = dot(direction, direction)
    h = dot(direction, oc)
    c = dot(oc, oc) - radius^2

The nearer root (h - sqrt(h^2 - ac)) / a is tried first, then the farther
one. Only roots strictly inside the supplied interval count as hits.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.interval import Interval, interval_surrounds
from src.pathtracer.core.ray import Ray, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and material handle.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        material_id: Handle of the sphere's material in the scene's
            material arena.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
            All other fields are only valid if hit == 1.
        t: The ray parameter of the intersection.
        point: The 3D point where the ray intersected the surface.
        normal: The unit surface normal, always oriented against the
            incoming ray.
        front_face: 1 if the ray hit the outward-facing side, 0 if it hit
            from inside.
        material_id: Handle of the material of the hit primitive, -1 on miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, ray_t: Interval) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray: The ray to test. The direction need not be normalized.
        sphere: The sphere to test against.
        ray_t: Open interval of acceptable hit parameters.

    Returns:
        A HitRecord; check its hit field to determine if the ray hit.
    """
    oc = sphere.center - ray.origin
    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    rec = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Nearest root first, then the far one
        root = (h - sqrt_d) / a
        valid = interval_surrounds(ray_t, root)
        if not valid:
            root = (h + sqrt_d) / a
            valid = interval_surrounds(ray_t, root)

        if valid:
            point = ray_at(ray, root)
            outward_normal = (point - sphere.center) / sphere.radius

            # Front face: ray direction and outward normal point in opposite directions
            front_face = 1
            normal = outward_normal
            if tm.dot(ray.direction, outward_normal) >= 0.0:
                front_face = 0
                normal = -outward_normal

            rec = HitRecord(
                hit=1,
                t=root,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=sphere.material_id,
            )

    return rec


@ti.func
def make_sphere(center: vec3, radius: ti.f32, material_id: ti.i32) -> Sphere:
    """Create a sphere from center, radius and material handle."""
    return Sphere(center=center, radius=radius, material_id=material_id)
