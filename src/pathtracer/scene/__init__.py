"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Sphere arena in Taichi fields and closest-hit queries
    manager: Material handles, hittable lists and the SceneManager facade
    demo: The demo layout of random spheres around three large ones

Scene data is organized for efficient access from kernels:
    - Structure-of-Arrays layout for sphere data
    - Integer material handles resolved to (variant, index) pairs
    - Nested hittable lists flattened into contiguous arena ranges
"""

from .demo import DEMO_WORKER_COUNT, create_demo_camera, create_demo_scene
from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    hit_list,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    HittableList,
    ListRange,
    MaterialInfo,
    MaterialType,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)

__all__ = [
    # Intersection module
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "hit_list",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "HittableList",
    "ListRange",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Demo scene
    "create_demo_scene",
    "create_demo_camera",
    "DEMO_WORKER_COUNT",
]
