"""Core building blocks.

Components:
    spectrum: RGB value type with in-place arithmetic and validation
    vector: Direction utilities (dot, reflect, normalize, orthonormal basis)
    sampler: Seedable hemisphere sampling
    backend: Taichi runtime initialisation for batch kernels
"""

from .sampler import UNIFORM_HEMISPHERE_PDF, HemisphereSampler
from .spectrum import Spectrum
from .vector import (
    REFERENCE_NORMAL,
    Vec3,
    as_vec3,
    build_onb_from_normal,
    dot,
    length,
    local_to_world,
    mirror_direction,
    near_zero,
    normalize,
    reflect,
    vec3,
)

# Note: backend is NOT imported here so that importing the package does not
# import Taichi. Use brdfkit.core.backend.init_backend() directly.

__all__ = [
    "Spectrum",
    "HemisphereSampler",
    "UNIFORM_HEMISPHERE_PDF",
    "REFERENCE_NORMAL",
    "Vec3",
    "vec3",
    "as_vec3",
    "dot",
    "length",
    "normalize",
    "near_zero",
    "reflect",
    "mirror_direction",
    "build_onb_from_normal",
    "local_to_world",
]
