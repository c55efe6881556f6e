"""Seedable hemisphere sampling for Monte Carlo verification.

Two distributions are provided:

``sample()``
    The reference direction generator. From ``xi1 in [0, 1)`` and
    ``xi2 in [-1, 1]`` it builds ``normalize(xi1, sin(phi) s, cos(phi) s)``
    with ``phi = 2 pi xi1`` and ``s = 1 - xi2^2``. Directions always have a
    non-negative x component (the upper hemisphere about ``REFERENCE_NORMAL``)
    but are *not* uniformly distributed over it.

``sample_uniform()`` / ``sample_uniform_batch()``
    Directions uniformly distributed over the hemisphere around a normal,
    with pdf ``1 / (2 pi)``. The energy estimator divides by exactly this pdf,
    so its outgoing directions come from here.

All draws come from one ``numpy.random.Generator`` owned by the sampler. A
fixed seed reproduces an identical sequence; the sampler is the explicit
randomness source passed into every verifier entry point.

Example:
    >>> sampler = HemisphereSampler(seed=100)
    >>> wi = sampler.sample()
    >>> wo = sampler.sample_uniform_batch(1024)
"""

from __future__ import annotations

import math

import numpy as np
import numpy.typing as npt

from brdfkit.core.vector import (
    REFERENCE_NORMAL,
    Vec3,
    build_onb_from_normal,
    local_to_world,
    near_zero,
    normalize,
    vec3,
)

# Probability density of a uniform direction on the unit hemisphere
UNIFORM_HEMISPHERE_PDF = 1.0 / (2.0 * math.pi)


class HemisphereSampler:
    """Deterministic generator of directions on a hemisphere.

    Attributes:
        seed: The seed the underlying generator was last (re)seeded with.
    """

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    @property
    def rng(self) -> np.random.Generator:
        """The underlying NumPy generator."""
        return self._rng

    def reseed(self, seed: int) -> None:
        """Restart the sequence from ``seed``."""
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def uniform(self) -> float:
        """One uniform draw in [0, 1)."""
        return float(self._rng.random())

    def sample(self) -> Vec3:
        """Generate one reference direction with non-negative x.

        Returns:
            A unit direction. A degenerate zero-length draw (``xi1 = 0`` and
            ``xi2 = +-1``) yields ``REFERENCE_NORMAL``.
        """
        xi_1 = float(self._rng.random())
        # Includes +1; xi_2 only enters squared, so (-1, 1] covers [-1, 1]
        xi_2 = 1.0 - 2.0 * float(self._rng.random())

        phi = xi_1 * 2.0 * math.pi
        s = 1.0 - xi_2 * xi_2

        direction = vec3(xi_1, math.sin(phi) * s, math.cos(phi) * s)
        if near_zero(direction):
            return REFERENCE_NORMAL.copy()
        return normalize(direction)

    def sample_uniform(self, normal: Vec3 = REFERENCE_NORMAL) -> Vec3:
        """Generate one direction uniformly distributed around ``normal``."""
        return self.sample_uniform_batch(1, normal)[0]

    def sample_uniform_batch(
        self,
        n: int,
        normal: Vec3 = REFERENCE_NORMAL,
    ) -> npt.NDArray[np.float64]:
        """Generate ``n`` directions uniformly distributed around ``normal``.

        In the local frame ``cos(theta)`` is uniform in [0, 1) and the azimuth
        uniform in [0, 2 pi), which gives the constant pdf ``1 / (2 pi)``.

        Args:
            n: Number of directions.
            normal: Hemisphere axis (should be normalized).

        Returns:
            Array of shape (n, 3) of unit directions with ``d . normal >= 0``.
        """
        cos_theta = self._rng.random(n)
        phi = 2.0 * math.pi * self._rng.random(n)
        sin_theta = np.sqrt(np.maximum(0.0, 1.0 - cos_theta * cos_theta))

        local = np.empty((n, 3), dtype=np.float64)
        local[:, 0] = np.cos(phi) * sin_theta
        local[:, 1] = np.sin(phi) * sin_theta
        local[:, 2] = cos_theta

        tangent, bitangent, n_axis = build_onb_from_normal(normal)
        return local_to_world(local, tangent, bitangent, n_axis)
