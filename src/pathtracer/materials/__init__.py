"""Materials module for scattering models.

This module implements the material variants of the renderer:

Components:
    material: ScatterRecord and the shared scatter contract
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick reflectance
    emissive: Light sources that end a path with their colour

Each material provides:
    - scatter_<variant>(): Scatter from explicit parameters
    - scatter_<variant>_by_id(): Scatter from a registered material
    - add_/clear_/get_<variant>_material*(): Parameter registry management

The closed set of variants is dispatched by the integrator through
scene.manager.MaterialType. All scatter computations are Taichi functions.
"""

from .dielectric import (
    add_dielectric_material,
    cannot_refract,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    refraction_ratio,
    scatter_dielectric,
    scatter_dielectric_by_id,
)
from .emissive import (
    add_emissive_material,
    clear_emissive_materials,
    get_emissive_colour,
    get_emissive_material_count,
    scatter_emissive,
    scatter_emissive_by_id,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .material import ScatterRecord, make_scatter, make_terminal, validate_colour
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Shared
    "ScatterRecord",
    "make_scatter",
    "make_terminal",
    "validate_colour",
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    "refraction_ratio",
    "cannot_refract",
    # Emissive
    "scatter_emissive",
    "scatter_emissive_by_id",
    "add_emissive_material",
    "clear_emissive_materials",
    "get_emissive_material_count",
    "get_emissive_colour",
]
