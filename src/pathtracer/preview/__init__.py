"""Preview module for writing rendered output.

Components:
    export: Pillow-based image export of 8-bit framebuffers

Example:
    >>> from src.pathtracer.preview import save_png
    >>> save_png(pixels, "output.png")
"""

from src.pathtracer.preview.export import load_image, save_png

__all__ = [
    "save_png",
    "load_image",
]
