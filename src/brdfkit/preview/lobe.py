"""Render the reflection lobe of a model.

The outgoing hemisphere around the reference normal is projected
orthographically onto a disk: pixel (u, v) in [-1, 1]^2 with
u^2 + v^2 <= 1 maps to the local direction (u, v, sqrt(1 - u^2 - v^2)), with
the normal at the centre. Each pixel holds ``f(wi, wo) * cos(theta_o)``, the
radiance reflected towards ``wo`` under unit irradiance from ``wi``. Pixels
outside the disk are zero.

Example:
    >>> image = render_lobe(PhongSpecularBRDF(Spectrum(1, 1, 1), 32.0), wi, 128)
    >>> image.shape
    (128, 128, 3)
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

from brdfkit.core.vector import REFERENCE_NORMAL, Vec3, as_vec3, build_onb_from_normal, local_to_world, normalize
from brdfkit.materials.base import BRDF


def disk_directions(resolution: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.bool_]]:
    """World directions of the pixels of a ``resolution`` square disk image.

    Returns:
        ``(directions, mask)``: an ``(H, W, 3)`` array of unit directions
        (zero outside the disk) and the ``(H, W)`` boolean disk mask.
    """
    if resolution < 1:
        raise ValueError(f"resolution must be >= 1, got {resolution}")

    # Pixel centres; row 0 is the top of the image
    centres = (np.arange(resolution, dtype=np.float64) + 0.5) / resolution * 2.0 - 1.0
    u, v = np.meshgrid(centres, -centres)
    r2 = u * u + v * v
    mask = r2 <= 1.0

    local = np.zeros((resolution, resolution, 3), dtype=np.float64)
    local[..., 0] = u
    local[..., 1] = v
    local[..., 2] = np.sqrt(np.clip(1.0 - r2, 0.0, 1.0))
    local[~mask] = 0.0

    t, b, n = build_onb_from_normal(REFERENCE_NORMAL)
    world = local_to_world(local.reshape(-1, 3), t, b, n).reshape(resolution, resolution, 3)
    return world, mask


def render_lobe(
    model: BRDF,
    wi: Vec3 | Sequence[float],
    resolution: int = 256,
) -> npt.NDArray[np.float32]:
    """Evaluate ``model`` over the outgoing hemisphere for one incoming direction.

    Args:
        model: The reflectance model.
        wi: Incoming direction (normalised here).
        resolution: Image width and height in pixels.

    Returns:
        Linear ``(H, W, 3)`` float32 image.
    """
    wi = normalize(as_vec3(wi))
    directions, mask = disk_directions(resolution)

    wo = directions[mask]
    cos_theta = wo[:, 0] * REFERENCE_NORMAL[0] + wo[:, 1] * REFERENCE_NORMAL[1] + wo[:, 2] * REFERENCE_NORMAL[2]
    values = model.evaluate_many(wi, wo) * cos_theta[:, None]

    image = np.zeros((resolution, resolution, 3), dtype=np.float32)
    image[mask] = values
    return image
