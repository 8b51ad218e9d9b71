"""Taichi-based Monte Carlo path tracer.

This package renders a scene of spheres with diffuse, metal, dielectric and
emissive materials through a thin-lens camera, tracing stochastic light paths
per pixel and accumulating them across parallel row-chunk workers.

Subpackages:
    core: Vector kernel, rays, intervals, random samplers and the integrator
    geometry: Sphere primitive and hit records
    materials: Scattering models (Lambertian, metal, dielectric, emissive)
    scene: Sphere arena, closest-hit queries, scene manager and demo scene
    camera: Thin-lens camera with anti-aliasing jitter and depth of field
    preview: Image export utilities
"""

__version__ = "0.1.0"
