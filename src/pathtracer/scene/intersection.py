"""Scene-level ray intersection over the sphere arena.

Spheres live in Taichi fields (Structure of Arrays) and are addressed by
index. A hittable list is a contiguous index range of the arena; the whole
arena is the root list of the scene. hit_list() performs the standard
closest-hit scan over a range, shrinking the upper bound of the valid
interval to the nearest hit found so far.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.interval import Interval
from src.pathtracer.core.ray import Ray
from src.pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of spheres supported in the scene
MAX_SPHERES = 4096

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the sphere count to zero. The field data is overwritten when new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the arena.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. Not validated; degenerate spheres
            are the caller's responsibility.
        material_id: The material handle to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(idx: ti.i32) -> Sphere:
    """Load a sphere from the arena."""
    return Sphere(
        center=sphere_centers[idx],
        radius=sphere_radii[idx],
        material_id=sphere_material_ids[idx],
    )


@ti.func
def hit_list(ray: Ray, ray_t: Interval, first: ti.i32, count: ti.i32) -> HitRecord:
    """Find the closest hit among a contiguous range of spheres.

    The result does not depend on the order of the spheres except for exact
    ties in t, which keep the first sphere found.

    Args:
        ray: The ray to test.
        ray_t: Open interval of acceptable hit parameters.
        first: Index of the first sphere of the list.
        count: Number of spheres in the list.

    Returns:
        The nearest HitRecord inside ray_t, or a miss record.
    """
    closest_so_far = ray_t.max
    result = make_miss_record()

    for i in range(first, first + count):
        rec = hit_sphere(ray, get_sphere(i), Interval(min=ray_t.min, max=closest_so_far))
        if rec.hit == 1:
            closest_so_far = rec.t
            result = rec

    return result


@ti.func
def intersect_scene(ray: Ray, ray_t: Interval) -> HitRecord:
    """Test a ray against every sphere in the scene (the root list).

    Args:
        ray: The ray to test.
        ray_t: Open interval of acceptable hit parameters.

    Returns:
        The nearest HitRecord inside ray_t, or a miss record.
    """
    return hit_list(ray, ray_t, 0, num_spheres[None])
