"""Path tracing integrator and parallel renderer.

This module implements the radiance estimate for a single camera ray and the
row-partitioned parallel renderer that turns a scene and a camera into an
8-bit framebuffer.

The path tracer follows a ray through the scene, multiplying the attenuation
of every surface it scatters off. A path ends when it escapes to the sky, hits
a surface that does not scatter (a light), or runs out of bounces.

Key features:
    - Material dispatch over the closed set of material variants
    - Iterative bounce loop with an explicit depth limit
    - Vertical sky gradient for escaped rays
    - Static row partitioning across workers with disjoint writes
    - Per-worker random number streams for reproducible renders

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.integrator import render
    >>> from src.pathtracer.scene.demo import create_demo_scene
    >>>
    >>> scene, camera = create_demo_scene(seed=0)
    >>> pixels = render(camera, scene, worker_count=16, seed=0)
    >>> pixels.shape
    (360, 640, 3)
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.pathtracer.camera.thin_lens import get_ray, setup_camera
from src.pathtracer.core.interval import Interval
from src.pathtracer.core.ray import Ray, normalize
from src.pathtracer.core.sampler import MAX_SAMPLERS, seed_samplers
from src.pathtracer.geometry.sphere import HitRecord
from src.pathtracer.materials.dielectric import scatter_dielectric_by_id
from src.pathtracer.materials.emissive import scatter_emissive_by_id
from src.pathtracer.materials.lambertian import scatter_lambertian_by_id
from src.pathtracer.materials.material import ScatterRecord, make_terminal
from src.pathtracer.materials.metal import scatter_metal_by_id
from src.pathtracer.scene.intersection import intersect_scene
from src.pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

if TYPE_CHECKING:
    from src.pathtracer.camera.thin_lens import Camera
    from src.pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# Called after every kernel launch with (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

# =============================================================================
# Rendering Constants
# =============================================================================

# Valid ray parameter range; the lower bound avoids shadow acne
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient endpoints
SKY_HORIZON = vec3(1.0, 1.0, 1.0)
SKY_ZENITH = vec3(0.5, 0.7, 1.0)

# Output quantisation
COLOUR_MIN = 0.0
COLOUR_MAX = 0.999
COLOUR_SCALE = 255.99

# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(ray_in: Ray, rec: HitRecord, sampler: ti.i32) -> ScatterRecord:
    """Dispatch to the scatter function of the hit surface's material.

    Args:
        ray_in: The incoming ray.
        rec: The hit record of the surface.
        sampler: The sampler handle to draw from.

    Returns:
        The ScatterRecord of the material. An unknown handle absorbs the path.
    """
    mat_type = get_material_type(rec.material_id)
    type_index = get_material_type_index(rec.material_id)

    srec = make_terminal(vec3(0.0, 0.0, 0.0))

    if mat_type == int(MaterialType.LAMBERTIAN):
        srec = scatter_lambertian_by_id(type_index, rec, sampler)
    elif mat_type == int(MaterialType.METAL):
        srec = scatter_metal_by_id(type_index, ray_in, rec, sampler)
    elif mat_type == int(MaterialType.DIELECTRIC):
        srec = scatter_dielectric_by_id(type_index, ray_in, rec, sampler)
    elif mat_type == int(MaterialType.EMISSIVE):
        srec = scatter_emissive_by_id(type_index)

    return srec


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def sky_colour(ray: Ray) -> vec3:
    """Background colour for a ray that escapes the scene.

    Blends white at the horizon into light blue overhead based on the
    vertical component of the normalized direction.
    """
    unit_direction = normalize(ray.direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - a) * SKY_HORIZON + a * SKY_ZENITH


@ti.func
def ray_colour(ray: Ray, max_depth: ti.i32, sampler: ti.i32) -> vec3:
    """Estimate the colour carried back along a ray.

    Each bounce multiplies the path throughput by the attenuation of the
    surface hit. A surface that does not scatter ends the path with its
    colour; an escaped ray ends it with the sky colour. A path still bouncing
    after max_depth hits (including max_depth == 0) contributes black.

    Args:
        ray: The camera ray.
        max_depth: Maximum number of surface interactions.
        sampler: The sampler handle to draw from.

    Returns:
        The colour estimate (unbounded, non-negative).
    """
    colour = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Taichi has no recursion; the active flag stands in for early return
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(current, Interval(min=T_MIN, max=T_MAX))

            if rec.hit == 0:
                colour = throughput * sky_colour(current)
                active = 0
            else:
                srec = _scatter_material(current, rec, sampler)
                throughput *= srec.attenuation

                if srec.did_scatter == 0:
                    colour = throughput
                    active = 0
                else:
                    current = srec.scattered

    return colour


# =============================================================================
# Row Partitioning
# =============================================================================


@dataclass(frozen=True)
class RowChunk:
    """A contiguous range of image rows owned by one worker.

    Attributes:
        worker: Index of the owning worker (also its sampler handle).
        start: First row of the chunk.
        end: One past the last row. start == end for an empty chunk.
    """

    worker: int
    start: int
    end: int

    @property
    def rows(self) -> int:
        return self.end - self.start


def partition_rows(height: int, worker_count: int) -> list[RowChunk]:
    """Split image rows into worker_count contiguous chunks.

    Every chunk holds ceil(height / worker_count) rows except the trailing
    ones, which may be shorter or empty when workers outnumber rows.

    Args:
        height: Image height in rows.
        worker_count: Number of workers.

    Returns:
        One RowChunk per worker, in top-to-bottom order.

    Raises:
        ValueError: If height is negative or worker_count is not positive.
    """
    if height < 0:
        raise ValueError(f"height must be non-negative, got {height}")
    if worker_count <= 0:
        raise ValueError(f"worker_count must be positive, got {worker_count}")

    chunk = math.ceil(height / worker_count)
    chunks = []
    for w in range(worker_count):
        start = min(w * chunk, height)
        end = min((w + 1) * chunk, height)
        chunks.append(RowChunk(worker=w, start=start, end=end))
    return chunks


# =============================================================================
# Render Target
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Maximum number of parallel workers, bounded by the sampler pool
MAX_WORKERS = MAX_SAMPLERS

# Per-pixel sum of samples, indexed [row, column]
_accum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Row range owned by each worker
_chunk_start = ti.field(dtype=ti.i32, shape=MAX_WORKERS)
_chunk_end = ti.field(dtype=ti.i32, shape=MAX_WORKERS)

# Rows completed across all workers
_rows_done = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _render_row_step(
    step: ti.i32,
    worker_count: ti.i32,
    width: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
):
    """Render row `step` of every worker's chunk.

    The outer loop over workers is parallel; each worker draws from its own
    sampler and writes only rows inside its chunk.
    """
    ti.loop_config(block_dim=1)
    for w in range(worker_count):
        row = _chunk_start[w] + step
        if row < _chunk_end[w]:
            for i in range(width):
                pixel_colour = vec3(0.0, 0.0, 0.0)
                for _ in range(samples_per_pixel):
                    ray = get_ray(i, row, w)
                    pixel_colour += ray_colour(ray, max_depth, w)
                _accum[row, i] = pixel_colour
            ti.atomic_add(_rows_done[None], 1)


# =============================================================================
# Output Encoding
# =============================================================================


def linear_to_gamma(linear: npt.NDArray[np.floating]) -> npt.NDArray[np.floating]:
    """Apply the square-root tone curve; non-positive input maps to zero."""
    positive = np.maximum(linear, 0.0)
    return np.where(linear > 0.0, np.sqrt(positive), 0.0)


def encode_framebuffer(
    accum: npt.NDArray[np.floating], samples_per_pixel: int
) -> npt.NDArray[np.uint8]:
    """Convert summed samples into 8-bit pixels.

    Each channel is averaged over samples_per_pixel, gamma corrected,
    clamped to [COLOUR_MIN, COLOUR_MAX] and scaled by COLOUR_SCALE with
    truncation.

    Args:
        accum: Array of shape (height, width, 3) holding per-pixel sums.
        samples_per_pixel: Number of samples summed into each pixel.

    Returns:
        uint8 array of the same shape.
    """
    scaled = np.asarray(accum, dtype=np.float64) / samples_per_pixel
    gamma = linear_to_gamma(scaled)
    clamped = np.clip(gamma, COLOUR_MIN, COLOUR_MAX)
    return (clamped * COLOUR_SCALE).astype(np.uint8)


# =============================================================================
# Public Rendering API
# =============================================================================


def render(
    camera: "Camera",
    scene: "SceneManager",
    worker_count: int,
    *,
    seed: int | None = None,
    progress: ProgressCallback | None = None,
) -> npt.NDArray[np.uint8]:
    """Render the scene through the camera.

    Rows are split into worker_count contiguous chunks. Every kernel launch
    advances each worker by one row, so the number of launches equals the
    largest chunk size. When all launches are done the chunks are read back
    one by one and stacked into the framebuffer.

    Args:
        camera: The camera to render through.
        scene: The scene whose spheres and materials are currently uploaded.
        worker_count: Number of parallel workers, in [1, MAX_WORKERS].
        seed: Seed for the per-worker random streams. The same seed and
            worker count give the same image.
        progress: Optional callback invoked with (rows_done, total_rows)
            after each launch.

    Returns:
        uint8 array of shape (image_height, image_width, 3), row 0 at the top.

    Raises:
        ValueError: If worker_count or the image size is out of range.
    """
    if worker_count <= 0 or worker_count > MAX_WORKERS:
        raise ValueError(f"worker_count must be in [1, {MAX_WORKERS}], got {worker_count}")

    width = camera.image_width
    height = camera.image_height
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    chunks = partition_rows(height, worker_count)
    steps = max(chunk.rows for chunk in chunks)

    logger.info(
        "Rendering %dx%d, %d spp, depth %d, %d spheres, %d workers",
        width,
        height,
        camera.samples_per_pixel,
        camera.max_depth,
        scene.get_sphere_count(),
        worker_count,
    )
    started = time.perf_counter()

    setup_camera(camera)
    seed_samplers(seed)
    _chunk_start.from_numpy(
        np.array([c.start for c in chunks] + [0] * (MAX_WORKERS - worker_count), dtype=np.int32)
    )
    _chunk_end.from_numpy(
        np.array([c.end for c in chunks] + [0] * (MAX_WORKERS - worker_count), dtype=np.int32)
    )
    _rows_done[None] = 0

    for step in range(steps):
        _render_row_step(step, worker_count, width, camera.samples_per_pixel, camera.max_depth)
        rows_done = int(_rows_done[None])
        logger.debug("Step %d/%d complete, %d/%d rows", step + 1, steps, rows_done, height)
        if progress is not None:
            progress(rows_done, height)

    accum = _accum.to_numpy()
    parts = [accum[c.start : c.end, :width, :] for c in chunks]
    framebuffer = np.concatenate(parts, axis=0)

    logger.info("Render finished in %.2fs", time.perf_counter() - started)
    return encode_framebuffer(framebuffer, camera.samples_per_pixel)
