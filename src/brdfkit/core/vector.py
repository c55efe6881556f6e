"""Vector utilities for directions on the unit sphere.

Directions are float64 NumPy arrays of shape (3,). The dot product is spelled
out component by component so that ``dot(a, b) == dot(b, a)`` holds exactly;
the reciprocity check compares BRDF values with exact equality and depends on
this.

Example:
    >>> import numpy as np
    >>> wi = normalize(np.array([1.0, 1.0, 0.0]))
    >>> reflect(wi, REFERENCE_NORMAL)
    array([-0.70710678,  0.70710678,  0.        ])
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

# Type alias for 3D vectors
Vec3 = npt.NDArray[np.float64]

# Fixed axis used by the specular lobes and by the energy estimator's cosine term
REFERENCE_NORMAL: Vec3 = np.array([1.0, 0.0, 0.0], dtype=np.float64)
REFERENCE_NORMAL.setflags(write=False)


def vec3(x: float, y: float, z: float) -> Vec3:
    """Create a direction vector."""
    return np.array([x, y, z], dtype=np.float64)


def as_vec3(v: Sequence[float] | Vec3) -> Vec3:
    """Coerce a length-3 sequence to a float64 vector.

    Raises:
        ValueError: If ``v`` does not have exactly three components.
    """
    arr = np.asarray(v, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-component vector, got shape {arr.shape}")
    return arr


def dot(a: Vec3, b: Vec3) -> float:
    """Dot product with a fixed summation order."""
    return float(a[0] * b[0] + a[1] * b[1] + a[2] * b[2])


def length(v: Vec3) -> float:
    return float(np.sqrt(dot(v, v)))


def near_zero(v: Vec3) -> bool:
    """Check if a vector is near zero in all components."""
    s = 1e-8
    return bool(abs(v[0]) < s and abs(v[1]) < s and abs(v[2]) < s)


def normalize(v: Vec3) -> Vec3:
    """Normalize a vector to unit length.

    A zero-length vector is returned unchanged.
    """
    n = length(v)
    if n == 0.0:
        return np.array(v, dtype=np.float64)
    return np.asarray(v, dtype=np.float64) / n


def reflect(incident: Vec3, normal: Vec3) -> Vec3:
    """Reflect a vector about a normal: ``I - 2(I.N)N``.

    Args:
        incident: The vector to reflect.
        normal: The surface normal (should be normalized).

    Returns:
        The mirrored vector.
    """
    return incident - 2.0 * dot(incident, normal) * normal


def mirror_direction(incident: Vec3, normal: Vec3) -> Vec3:
    """Perfect mirror direction for a ray travelling towards the surface.

    Computes ``I + 2 max(-I.N, 0) N``. A direction already leaving the
    surface (``I.N >= 0``) is returned unchanged.
    """
    cos_nd = max(-dot(incident, normal), 0.0)
    return incident + (2.0 * cos_nd) * normal


def build_onb_from_normal(normal: Vec3) -> tuple[Vec3, Vec3, Vec3]:
    """Build an orthonormal basis from a normal vector.

    Creates a local coordinate frame where the normal is the z-axis.

    Args:
        normal: The surface normal (should be normalized).

    Returns:
        A tuple (tangent, bitangent, normal) forming an orthonormal basis.
    """
    # Choose a vector not parallel to normal
    a = vec3(1.0, 0.0, 0.0)
    if abs(normal[0]) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = normalize(np.cross(a, normal))
    bitangent = np.cross(normal, tangent)
    return tangent, bitangent, np.asarray(normal, dtype=np.float64)


def local_to_world(
    local_dirs: npt.NDArray[np.float64],
    tangent: Vec3,
    bitangent: Vec3,
    normal: Vec3,
) -> npt.NDArray[np.float64]:
    """Transform local (z-up) directions to world coordinates.

    Accepts a single direction of shape (3,) or a batch of shape (n, 3).
    """
    basis = np.stack([tangent, bitangent, normal])
    return np.asarray(local_dirs, dtype=np.float64) @ basis
