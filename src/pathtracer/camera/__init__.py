"""Camera module for primary ray generation.

Components:
    thin_lens: Thin-lens perspective camera with look-at positioning,
        vertical field of view, box-filter anti-aliasing jitter and
        defocus-disk depth of field

The camera computes its derived state (orthonormal basis, viewport, pixel
deltas, defocus disk) once on the Python side; setup_camera() uploads it to
Taichi fields so get_ray() can run inside kernels.
"""

from .thin_lens import (
    VUP,
    Camera,
    defocus_disk_sample,
    get_camera_info,
    get_ray,
    setup_camera,
)

__all__ = [
    "Camera",
    "VUP",
    "setup_camera",
    "get_ray",
    "defocus_disk_sample",
    "get_camera_info",
]
