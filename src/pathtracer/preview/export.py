"""Image export utilities for rendered framebuffers.

The renderer already quantises to 8 bits, so export is a thin wrapper around
Pillow. The file format follows the extension of the output path (PNG, JPEG,
BMP, ...).

Example:
    >>> from src.pathtracer.preview.export import save_png
    >>> from src.pathtracer.scene.demo import create_demo_scene
    >>>
    >>> scene, camera = create_demo_scene(seed=0)
    >>> pixels = camera.render(scene, worker_count=16, seed=0)
    >>> save_png(pixels, "output.png")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def save_png(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an 8-bit RGB framebuffer to an image file.

    Args:
        pixels: uint8 array of shape (height, width, 3), row 0 at the top.
        filepath: Output file path. The extension selects the format.

    Raises:
        ValueError: If pixels is not a uint8 (H, W, 3) array.
    """
    if pixels.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected shape (H, W, 3), got {pixels.shape}")

    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels))
    pil_image.save(filepath)
    logger.info("Wrote %dx%d image to %s", pixels.shape[1], pixels.shape[0], filepath)


def load_image(filepath: str | Path) -> npt.NDArray[np.uint8]:
    """Read an image file back as a uint8 (H, W, 3) array."""
    with PILImage.open(filepath) as pil_image:
        return np.asarray(pil_image.convert("RGB"), dtype=np.uint8)
