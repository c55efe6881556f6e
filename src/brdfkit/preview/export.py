"""Image export for lobe previews.

Supported formats:
    - PNG (8-bit sRGB via Pillow)

Example:
    >>> from brdfkit.preview.export import save_lobe_png
    >>> save_lobe_png(model, (-1.0, 1.0, 0.0), "lobe.png", tone_map="reinhard")
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from brdfkit.core.vector import Vec3
from brdfkit.materials.base import BRDF
from brdfkit.preview.display import ToneMapMethod, process_image_for_display
from brdfkit.preview.lobe import render_lobe


def image_to_uint8(
    image: npt.NDArray[np.floating],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8 for export.

    Args:
        image: Linear HDR image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 2.2 for sRGB).
        exposure: Exposure value for exposure tone mapping (default 1.0).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    processed = process_image_for_display(
        image,
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
    )
    return (processed * 255).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.floating],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> Path:
    """Save a linear image as an 8-bit PNG file."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    image_uint8 = image_to_uint8(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    PILImage.fromarray(image_uint8).save(filepath)
    return filepath


def save_lobe_png(
    model: BRDF,
    wi: Vec3 | Sequence[float],
    filepath: str | Path,
    *,
    resolution: int = 256,
    tone_map: ToneMapMethod = "reinhard",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> Path:
    """Render the lobe of ``model`` for ``wi`` and save it as PNG.

    Args:
        model: The reflectance model.
        wi: Incoming direction.
        filepath: Output file path (should end in .png).
        resolution: Image width and height in pixels.
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 2.2 for sRGB).
        exposure: Exposure value for exposure tone mapping (default 1.0).

    Returns:
        The path written.
    """
    image = render_lobe(model, wi, resolution)
    return save_png_from_array(image, filepath, tone_map=tone_map, gamma=gamma, exposure=exposure)
