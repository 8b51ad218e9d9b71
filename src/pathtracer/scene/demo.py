"""Demo scene: a field of small random spheres around three large ones.

The layout places a grid of small spheres with randomly drawn materials on a
huge ground sphere, and three large spheres along the x axis:
- Left: diffuse brown
- Center: polished metal
- Right: a glass shell around an air bubble around a warm light

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.scene.demo import create_demo_scene
    >>>
    >>> scene, camera = create_demo_scene(seed=7)
    >>> pixels = camera.render(scene, worker_count=16, seed=7)
"""

import logging

import numpy as np

from src.pathtracer.camera.thin_lens import Camera
from src.pathtracer.scene.manager import HittableList, SceneManager, SphereInfo

logger = logging.getLogger(__name__)

# =============================================================================
# Demo Scene Constants
# =============================================================================

DEMO_WORKER_COUNT = 16

# Small sphere grid
GRID_EXTENT = 10
SMALL_RADIUS = 0.2
JITTER = 0.9
CLEARANCE = 0.9
LARGE_SPHERE_CENTERS = ((4.0, 0.2, 0.0), (0.0, 0.2, 0.0), (-4.0, 0.2, 0.0))

# Material draw thresholds
LAMBERTIAN_CUTOFF = 0.33
METAL_CUTOFF = 0.66
EMISSIVE_CUTOFF = 0.90

GROUND_ALBEDO = (0.5, 0.5, 0.5)
LEFT_ALBEDO = (0.4, 0.2, 0.1)
CENTER_ALBEDO = (0.7, 0.6, 0.5)
LIGHT_COLOUR = (1.0, 0.9, 0.4)
GLASS_IOR = 1.5


def create_demo_camera() -> Camera:
    """Camera looking at the origin from slightly above the sphere field."""
    return Camera(
        aspect_ratio=16.0 / 9.0,
        image_width=640,
        samples_per_pixel=5,
        max_depth=50,
        vfov=20.0,
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        defocus_angle=0.6,
        focus_dist=10.0,
    )


def _random_colour(rng: np.random.Generator) -> tuple[float, float, float]:
    return (float(rng.random()), float(rng.random()), float(rng.random()))


def _random_material(scene: SceneManager, rng: np.random.Generator) -> int:
    choice = rng.random()
    if choice < LAMBERTIAN_CUTOFF:
        return scene.add_lambertian_material(_random_colour(rng))
    if choice < METAL_CUTOFF:
        scale = float(rng.random())
        r, g, b = _random_colour(rng)
        return scene.add_metal_material((scale * r, scale * g, scale * b), fuzz=float(rng.random()))
    if choice < EMISSIVE_CUTOFF:
        return scene.add_emissive_material(_random_colour(rng))
    return scene.add_dielectric_material(ior=float(rng.random()) / 2.0 + 0.75)


def _build_grid(scene: SceneManager, rng: np.random.Generator) -> HittableList:
    grid = HittableList()
    keep_out = np.array(LARGE_SPHERE_CENTERS)

    for i in range(-GRID_EXTENT, GRID_EXTENT + 1):
        for j in range(-GRID_EXTENT, GRID_EXTENT + 1):
            center = np.array(
                [i + JITTER * rng.random(), SMALL_RADIUS, j + JITTER * rng.random()]
            )
            if np.any(np.linalg.norm(keep_out - center, axis=1) <= CLEARANCE):
                continue

            material_id = _random_material(scene, rng)
            grid.add(
                SphereInfo(
                    center=tuple(center.tolist()), radius=SMALL_RADIUS, material_id=material_id
                )
            )

    return grid


def create_demo_scene(seed: int | None = None) -> tuple[SceneManager, Camera]:
    """Create the demo scene and its camera.

    Args:
        seed: Seed for the random layout. None draws fresh entropy.

    Returns:
        A tuple of (SceneManager, Camera). The scene is already uploaded.
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    grid = _build_grid(scene, rng)
    scene.add_list(grid)

    ground = scene.add_lambertian_material(GROUND_ALBEDO)
    left = scene.add_lambertian_material(LEFT_ALBEDO)
    center = scene.add_metal_material(CENTER_ALBEDO, fuzz=0.0)
    glass = scene.add_dielectric_material(GLASS_IOR)
    bubble = scene.add_dielectric_material(1.0 / GLASS_IOR)
    light = scene.add_emissive_material(LIGHT_COLOUR)

    scene.add_sphere((0.0, -1000.0, 0.0), 999.99, ground)
    scene.add_sphere((-4.0, 1.0, 0.0), 1.0, left)
    scene.add_sphere((0.0, 1.0, 0.0), 1.0, center)

    # Glass shell, bubble and light share a center
    lantern = HittableList()
    lantern.add(SphereInfo(center=(4.0, 1.0, 0.0), radius=1.0, material_id=glass))
    lantern.add(SphereInfo(center=(4.0, 1.0, 0.0), radius=0.9, material_id=bubble))
    lantern.add(SphereInfo(center=(4.0, 1.0, 0.0), radius=0.8, material_id=light))
    scene.add_list(lantern)

    logger.info(
        "Demo scene: %d spheres, %d materials",
        scene.get_sphere_count(),
        scene.get_material_count(),
    )
    return scene, create_demo_camera()
