"""Thin-lens camera model for primary ray generation.

This module implements the camera that generates primary rays for rendering.
The camera supports:
- Look-at positioning (lookfrom, lookat, fixed world up)
- Vertical field of view in degrees
- Arbitrary aspect ratios (image height derived from width, minimum 1)
- Jittered sampling for box-filter anti-aliasing
- Depth of field by sampling ray origins on a defocus disk

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits at focus_dist along -w, so everything at that distance is
in perfect focus. Pixel (0, 0) is the top-left pixel; j grows downward.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.camera.thin_lens import Camera, setup_camera, get_ray
    >>>
    >>> camera = Camera(
    ...     aspect_ratio=16.0 / 9.0,
    ...     image_width=400,
    ...     samples_per_pixel=10,
    ...     max_depth=50,
    ...     vfov=20.0,
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     defocus_angle=0.6,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def trace():
    ...     ray = get_ray(0, 0, 0)  # Jittered ray through the top-left pixel
"""

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import taichi as ti

from src.pathtracer.core.ray import Ray, make_ray, random_in_unit_disk, vec3
from src.pathtracer.core.sampler import random_float

if TYPE_CHECKING:
    from src.pathtracer.core.integrator import ProgressCallback
    from src.pathtracer.scene.manager import SceneManager

# World up direction used to orient the camera
VUP = (0.0, 1.0, 0.0)


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration and derived state of a thin-lens camera.

    All construction parameters are required. Derived quantities are computed
    once in __post_init__.

    Attributes:
        aspect_ratio: Width divided by height of the output image.
        image_width: Image width in pixels.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of ray bounces per path.
        vfov: Vertical field of view in degrees.
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at (x, y, z).
        defocus_angle: Cone angle in degrees of rays through each pixel.
            Values <= 0 disable depth of field.
        focus_dist: Distance from lookfrom to the plane of perfect focus.
    """

    aspect_ratio: float
    image_width: int
    samples_per_pixel: int
    max_depth: int
    vfov: float
    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    defocus_angle: float
    focus_dist: float

    image_height: int = field(init=False)
    pixel_samples_scale: float = field(init=False)
    center: npt.NDArray[np.float64] = field(init=False, repr=False)
    u: npt.NDArray[np.float64] = field(init=False, repr=False)
    v: npt.NDArray[np.float64] = field(init=False, repr=False)
    w: npt.NDArray[np.float64] = field(init=False, repr=False)
    pixel00_loc: npt.NDArray[np.float64] = field(init=False, repr=False)
    pixel_delta_u: npt.NDArray[np.float64] = field(init=False, repr=False)
    pixel_delta_v: npt.NDArray[np.float64] = field(init=False, repr=False)
    defocus_disk_u: npt.NDArray[np.float64] = field(init=False, repr=False)
    defocus_disk_v: npt.NDArray[np.float64] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate parameters and compute the derived camera state.

        Raises:
            ValueError: If a parameter is outside its valid range.
        """
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.image_width <= 0:
            raise ValueError(f"image_width must be positive, got {self.image_width}")
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"samples_per_pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.focus_dist <= 0.0:
            raise ValueError(f"focus_dist must be positive, got {self.focus_dist}")

        self.image_height = max(int(self.image_width / self.aspect_ratio), 1)
        self.pixel_samples_scale = 1.0 / self.samples_per_pixel

        lookfrom = np.array(self.lookfrom, dtype=np.float64)
        lookat = np.array(self.lookat, dtype=np.float64)
        vup = np.array(VUP, dtype=np.float64)
        self.center = lookfrom

        # Viewport dimensions at the focus distance
        theta = math.radians(self.vfov)
        h = math.tan(theta / 2.0)
        viewport_height = 2.0 * h * self.focus_dist
        viewport_width = viewport_height * (self.image_width / self.image_height)

        # Orthonormal basis
        self.w = (lookfrom - lookat) / np.linalg.norm(lookfrom - lookat)
        self.u = np.cross(vup, self.w)
        self.u = self.u / np.linalg.norm(self.u)
        self.v = np.cross(self.w, self.u)

        # Vectors across the horizontal and down the vertical viewport edges
        viewport_u = viewport_width * self.u
        viewport_v = viewport_height * -self.v

        self.pixel_delta_u = viewport_u / self.image_width
        self.pixel_delta_v = viewport_v / self.image_height

        viewport_upper_left = (
            self.center - self.focus_dist * self.w - 0.5 * (viewport_u + viewport_v)
        )
        self.pixel00_loc = viewport_upper_left + 0.5 * (self.pixel_delta_u + self.pixel_delta_v)

        defocus_radius = self.focus_dist * math.tan(math.radians(self.defocus_angle / 2.0))
        self.defocus_disk_u = self.u * defocus_radius
        self.defocus_disk_v = self.v * defocus_radius

    def render(
        self,
        scene: "SceneManager",
        worker_count: int,
        *,
        seed: int | None = None,
        progress: "ProgressCallback | None" = None,
    ) -> npt.NDArray[np.uint8]:
        """Render the scene through this camera.

        See src.pathtracer.core.integrator.render().
        """
        from src.pathtracer.core.integrator import render

        return render(self, scene, worker_count, seed=seed, progress=progress)


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_center = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel00_loc = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_disk_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_disk_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_angle = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: Camera) -> None:
    """Upload the camera's derived state to Taichi fields.

    Must be called before get_ray() is used in a kernel. render() calls it.

    Args:
        camera: The camera to upload.
    """
    _camera_center[None] = camera.center.tolist()
    _pixel00_loc[None] = camera.pixel00_loc.tolist()
    _pixel_delta_u[None] = camera.pixel_delta_u.tolist()
    _pixel_delta_v[None] = camera.pixel_delta_v.tolist()
    _defocus_disk_u[None] = camera.defocus_disk_u.tolist()
    _defocus_disk_v[None] = camera.defocus_disk_v.tolist()
    _defocus_angle[None] = camera.defocus_angle


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def defocus_disk_sample(sampler: ti.i32) -> vec3:
    """Sample a random point on the camera's defocus disk.

    Args:
        sampler: The sampler handle to draw from.

    Returns:
        A world-space ray origin on the lens.
    """
    p = random_in_unit_disk(sampler)
    return _camera_center[None] + p.x * _defocus_disk_u[None] + p.y * _defocus_disk_v[None]


@ti.func
def get_ray(i: ti.i32, j: ti.i32, sampler: ti.i32) -> Ray:
    """Generate a jittered primary ray for pixel (i, j).

    The pixel center is offset uniformly in [-0.5, 0.5) on both axes. The
    ray starts at the camera center, or on the defocus disk when the defocus
    angle is positive, and points at the jittered pixel location. The
    direction is not normalized.

    Args:
        i: Pixel column (0 = left).
        j: Pixel row (0 = top).
        sampler: The sampler handle to draw from.

    Returns:
        The primary ray.
    """
    offset_x = random_float(sampler) - 0.5
    offset_y = random_float(sampler) - 0.5

    pixel_sample = (
        _pixel00_loc[None]
        + (ti.cast(i, ti.f32) + offset_x) * _pixel_delta_u[None]
        + (ti.cast(j, ti.f32) + offset_y) * _pixel_delta_v[None]
    )

    origin = _camera_center[None]
    if _defocus_angle[None] > 0.0:
        origin = defocus_disk_sample(sampler)

    return make_ray(origin, pixel_sample - origin)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with center, pixel00_loc, pixel deltas and defocus disk
        vectors as read back from the Taichi fields.
    """
    fields = {
        "center": _camera_center,
        "pixel00_loc": _pixel00_loc,
        "pixel_delta_u": _pixel_delta_u,
        "pixel_delta_v": _pixel_delta_v,
        "defocus_disk_u": _defocus_disk_u,
        "defocus_disk_v": _defocus_disk_v,
    }
    info = {}
    for name, f in fields.items():
        value = f[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
