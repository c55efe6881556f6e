"""Mirror lobe shared by the specular BRDF variants.

The Phong-specular and shiny-diffuse models reflect the incoming direction
about a fixed reference normal and raise the cosine between the outgoing
direction and that mirror direction to an exponent:

    r     = wi - 2 (wi . N) N
    alpha = max(0, wo . r)
    lobe  = alpha ^ exponent

Because reflecting about N is symmetric, ``wo . r(wi) == wi . r(wo)`` and the
lobe is exactly reciprocal when the dot products are evaluated in a fixed
order.

``mirror_lobe`` is the scalar form used by ``BRDF.f``. ``mirror_lobe_batch``
evaluates many outgoing directions in one Taichi kernel launch.

This module must not use postponed annotations: Taichi reads the
``ti.types.ndarray`` annotations of a kernel when it is decorated.
"""

import numpy as np
import numpy.typing as npt
import taichi as ti

from brdfkit.core.backend import init_backend, kernel_lock, register_warmup
from brdfkit.core.vector import REFERENCE_NORMAL, Vec3, dot, reflect


def mirror_lobe(wi: Vec3, wo: Vec3, exponent: float, normal: Vec3 = REFERENCE_NORMAL) -> float:
    """Evaluate the mirror lobe for a single direction pair."""
    mirrored = reflect(wi, normal)
    alpha = max(0.0, dot(wo, mirrored))
    return alpha**exponent


@ti.func
def _lobe(ix, iy, iz, ox, oy, oz, nx, ny, nz, exponent):
    d = ix * nx + iy * ny + iz * nz
    rx = ix - 2.0 * d * nx
    ry = iy - 2.0 * d * ny
    rz = iz - 2.0 * d * nz
    alpha = ti.max(ox * rx + oy * ry + oz * rz, 0.0)
    return alpha**exponent


@ti.kernel
def _mirror_lobe_kernel(
    wi: ti.types.ndarray(dtype=ti.f64, ndim=1),
    wo: ti.types.ndarray(dtype=ti.f64, ndim=2),
    normal: ti.types.ndarray(dtype=ti.f64, ndim=1),
    exponent: ti.f64,
    out: ti.types.ndarray(dtype=ti.f64, ndim=1),
):
    for i in range(wo.shape[0]):
        out[i] = _lobe(
            wi[0], wi[1], wi[2],
            wo[i, 0], wo[i, 1], wo[i, 2],
            normal[0], normal[1], normal[2],
            exponent,
        )


def mirror_lobe_batch(
    wi: Vec3,
    wo: npt.NDArray[np.float64],
    exponent: float,
    normal: Vec3 = REFERENCE_NORMAL,
) -> npt.NDArray[np.float64]:
    """Evaluate the mirror lobe for one incoming and many outgoing directions.

    Args:
        wi: Incoming direction, shape (3,).
        wo: Outgoing directions, shape (n, 3).
        exponent: Lobe exponent (>= 0).
        normal: Mirror axis.

    Returns:
        Array of shape (n,) with the lobe value per outgoing direction.
    """
    wo_arr = np.ascontiguousarray(wo, dtype=np.float64)
    out = np.zeros(wo_arr.shape[0], dtype=np.float64)
    if wo_arr.shape[0] == 0:
        return out
    # alpha^0 is 1 even where alpha is 0, as in mirror_lobe
    if exponent == 0:
        out.fill(1.0)
        return out

    init_backend()
    with kernel_lock:
        _mirror_lobe_kernel(
            np.array(wi, dtype=np.float64),
            wo_arr,
            np.array(normal, dtype=np.float64),
            float(exponent),
            out,
        )
    return out


@register_warmup
def _compile_mirror_lobe_kernel() -> None:
    out = np.zeros(1, dtype=np.float64)
    _mirror_lobe_kernel(
        np.array(REFERENCE_NORMAL, dtype=np.float64),
        np.array([REFERENCE_NORMAL], dtype=np.float64),
        np.array(REFERENCE_NORMAL, dtype=np.float64),
        1.0,
        out,
    )
