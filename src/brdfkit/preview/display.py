"""Tone mapping and gamma correction for lobe images.

Lobe images are linear HDR values: a mirror lobe with a large exponent can
peak far above 1. These helpers bring them into [0, 1] for export.

Features:
    - Tone mapping (Reinhard, exposure-based)
    - Gamma correction (sRGB 2.2)
"""

from __future__ import annotations

from typing import Literal

import numpy as np
import numpy.typing as npt

# Type alias for tone mapping options
ToneMapMethod = Literal["none", "reinhard", "exposure"]

TONE_MAP_METHODS: tuple[str, ...] = ("none", "reinhard", "exposure")


def _non_negative(image: npt.ArrayLike) -> npt.NDArray[np.float32]:
    # f * cos is never negative; anything below 0 is rounding from the kernel
    return np.maximum(np.asarray(image, dtype=np.float32), 0.0)


def tone_map_reinhard(
    image: npt.NDArray[np.float32],
) -> npt.NDArray[np.float32]:
    """Compress lobe values with ``v / (1 + v)``.

    A diffuse lobe stays below 1/pi and is barely changed; a sharp highlight
    whose peak is several times brighter keeps its shape but no longer
    saturates.

    Args:
        image: Lobe image of shape (R, R, 3) from ``render_lobe``.

    Returns:
        Compressed image in [0, 1).
    """
    values = _non_negative(image)
    return values / (1.0 + values)


def tone_map_exposure(
    image: npt.NDArray[np.float32],
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Map lobe values with ``1 - exp(-v * exposure)``.

    Raising ``exposure`` makes dim diffuse lobes readable next to the
    highlight.

    Args:
        image: Lobe image of shape (R, R, 3).
        exposure: Scale applied before the exponential.
    """
    values = _non_negative(image)
    return (1.0 - np.exp(-values * exposure)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Encode a [0, 1] lobe image as ``v^(1/gamma)`` for an 8-bit PNG."""
    if gamma <= 0.0:
        raise ValueError(f"gamma must be > 0, got {gamma}")
    if gamma == 1.0:
        return image
    return np.power(np.clip(image, 0.0, 1.0), 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.floating],
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Tone map, gamma correct and clamp an image.

    Args:
        image: Linear HDR image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 2.2 for sRGB).
        exposure: Exposure value for exposure tone mapping (default 1.0).

    Returns:
        Image in [0, 1] range.

    Raises:
        ValueError: On an unknown tone mapping method.
    """
    result = np.asarray(image, dtype=np.float32).copy()

    if tone_map == "reinhard":
        result = tone_map_reinhard(result)
    elif tone_map == "exposure":
        result = tone_map_exposure(result, exposure)
    elif tone_map != "none":
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    result = apply_gamma(result, gamma)
    return np.clip(result, 0.0, 1.0).astype(np.float32)
