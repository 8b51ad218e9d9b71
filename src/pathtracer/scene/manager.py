"""Unified scene manager for coordinating primitives and materials.

This module provides a high-level scene management API that coordinates the
sphere arena with material assignment. Materials form an arena of their own:
each registered material receives a stable integer handle, and spheres store
that handle rather than the material itself, so many spheres can share one
material for the whole render.

The SceneManager maintains:
- A unified material handle space across all material variants
- Mapping from handle to (MaterialType, type_local_index) for dispatch
- The root HittableList mirroring what was uploaded to the sphere arena
- Convenience methods for adding objects with materials in one call

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> mat_id = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=mat_id)
    >>> # Use get_material_type(mat_id) in the integrator for dispatch
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from src.pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.pathtracer.materials.emissive import (
    add_emissive_material,
    clear_emissive_materials,
)
from src.pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.pathtracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from src.pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Closed set of material variants.

    Used for material dispatch in the integrator to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2
    EMISSIVE = 3


# Maximum number of materials across all types
MAX_MATERIALS = 1024  # 256 per type * 4 types

# material_types[i] stores the MaterialType for handle i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the index into the variant's own registry
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given handle.

    Args:
        material_id: The unified material handle.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid handles.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the variant-local index for a given handle.

    Used to look up material parameters in the variant registries
    (e.g., lambertian_albedos[type_index]).

    Returns:
        The index into the variant's registry, or -1 for invalid handles.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material handle.
        material_type: The variant of the material.
        type_index: The index within the variant's registry.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass(frozen=True)
class SphereInfo:
    """A sphere primitive described on the Python side.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere.
        material_id: The material handle assigned to the sphere.
    """

    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class HittableList:
    """An ordered collection of spheres and nested lists.

    The list is a plain description; adding it to a SceneManager flattens it
    depth-first into a contiguous range of the sphere arena.

    Attributes:
        objects: The children, in insertion order.
    """

    objects: "list[SphereInfo | HittableList]" = field(default_factory=list)

    def add(self, obj: "SphereInfo | HittableList") -> None:
        """Append a sphere or nested list."""
        self.objects.append(obj)

    def spheres(self) -> Iterator[SphereInfo]:
        """Iterate over every sphere in the tree, depth-first."""
        for obj in self.objects:
            if isinstance(obj, HittableList):
                yield from obj.spheres()
            else:
                yield obj

    def __len__(self) -> int:
        return len(self.objects)


@dataclass(frozen=True)
class ListRange:
    """Location of a flattened HittableList in the sphere arena.

    Attributes:
        first: Index of the list's first sphere.
        count: Number of spheres in the list (including nested lists).
    """

    first: int
    count: int


class SceneManager:
    """Unified scene manager coordinating primitives and materials.

    Attributes:
        materials: MaterialInfo for every registered material, by handle.
        world: The root HittableList; mirrors the sphere arena.

    Example:
        >>> scene = SceneManager()
        >>> red_diffuse = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold_metal = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red_diffuse)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold_metal)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.world = HittableList()
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_emissive_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.world = HittableList()

    def clear(self) -> None:
        """Clear the entire scene (primitives and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        """Assign a unified handle to a material already in its registry."""
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B), each in [0, 1].

        Returns:
            The unified material handle.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_lambertian_material(albedo)
        return self._register_material(MaterialType.LAMBERTIAN, type_index, {"albedo": albedo})

    def add_metal_material(self, albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B), each in [0, 1].
            fuzz: The fuzz factor. Default is 0 (perfect mirror).

        Returns:
            The unified material handle.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL, type_index, {"albedo": albedo, "fuzz": fuzz}
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).

        Returns:
            The unified material handle.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is not positive.
        """
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def add_emissive_material(self, colour: tuple[float, float, float]) -> int:
        """Add an emissive (light) material to the scene.

        Args:
            colour: The emitted colour as (R, G, B). Non-negative; may
                exceed 1.

        Returns:
            The unified material handle.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any colour component is negative.
        """
        type_index = add_emissive_material(colour)
        return self._register_material(MaterialType.EMISSIVE, type_index, {"colour": colour})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by handle, or None if unknown."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a handle (Python side).

        For kernel-side lookup, use the get_material_type() Taichi function.
        """
        info = self.get_material_info(material_id)
        return info.material_type if info is not None else None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

    def _upload_sphere(self, sphere: SphereInfo) -> int:
        center = vec3(sphere.center[0], sphere.center[1], sphere.center[2])
        return add_sphere(center, sphere.radius, sphere.material_id)

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the root list.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere.
            material_id: The material handle to assign to the sphere.

        Returns:
            The index of the added sphere in the arena.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is invalid.
        """
        self._check_material_id(material_id)
        sphere = SphereInfo(center=tuple(center), radius=radius, material_id=material_id)
        sphere_index = self._upload_sphere(sphere)
        self.world.add(sphere)
        return sphere_index

    def add_list(self, hittables: HittableList) -> ListRange:
        """Add a (possibly nested) HittableList to the root list.

        The list is flattened depth-first, so it and each of its nested
        lists occupy contiguous arena ranges.

        Args:
            hittables: The list to add.

        Returns:
            The arena range occupied by the list.

        Raises:
            RuntimeError: If the list does not fit in the sphere arena.
            ValueError: If any sphere references an invalid material.
        """
        spheres = list(hittables.spheres())
        for sphere in spheres:
            self._check_material_id(sphere.material_id)

        first = get_sphere_count()
        if first + len(spheres) > MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

        for sphere in spheres:
            self._upload_sphere(sphere)
        self.world.add(hittables)
        return ListRange(first=first, count=len(spheres))

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def add_emissive_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        colour: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new emissive material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_emissive_material(colour)
        return self.add_sphere(center, radius, material_id), material_id

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the arena."""
        return get_sphere_count()

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
