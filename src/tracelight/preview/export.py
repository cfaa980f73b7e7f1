"""Pixel buffer conversion and image export.

Rendered frames are linear float RGB. The conversion to 8-bit RGBA follows
``Color.to_pixel``: each channel is clamped to [0, 1], multiplied by 255 and
truncated, and alpha is always 255. There is no tone mapping or gamma curve.

Example:
    >>> import numpy as np
    >>> from tracelight.preview.export import to_rgba8
    >>> to_rgba8(np.array([[[0.5, 2.0, -1.0]]], dtype=np.float32))[0, 0].tolist()
    [127, 255, 0, 255]
"""

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def to_rgba8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float RGB image to 8-bit RGBA.

    Args:
        image: Array of shape (H, W, 3).

    Returns:
        Array of shape (H, W, 4) with dtype uint8.

    Raises:
        ValueError: If the image is not (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")

    height, width, _ = image.shape
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    # astype truncates toward zero, matching Color.to_pixel
    pixels[:, :, :3] = (np.clip(image, 0.0, 1.0) * 255.0).astype(np.uint8)
    pixels[:, :, 3] = 255
    return pixels


def save_png(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an RGBA8 frame as a PNG file.

    Args:
        pixels: Array of shape (H, W, 4) with dtype uint8 (see to_rgba8).
        filepath: Output file path (should end in .png).

    Raises:
        ValueError: If the array is not an (H, W, 4) uint8 buffer.
    """
    if pixels.dtype != np.uint8 or pixels.ndim != 3 or pixels.shape[2] != 4:
        raise ValueError(
            f"Expected an (H, W, 4) uint8 buffer, got shape {pixels.shape} dtype {pixels.dtype}"
        )

    # (H, W, 4) uint8 maps to mode "RGBA"
    pil_image = PILImage.fromarray(pixels)
    pil_image.save(filepath)


def load_png(filepath: str | Path) -> npt.NDArray[np.uint8]:
    """Load a PNG file as an (H, W, 4) uint8 buffer."""
    with PILImage.open(filepath) as pil_image:
        return np.asarray(pil_image.convert("RGBA"), dtype=np.uint8).copy()


def compute_rmse(
    image_a: npt.NDArray[np.number],
    image_b: npt.NDArray[np.number],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
