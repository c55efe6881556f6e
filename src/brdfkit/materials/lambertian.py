"""Lambertian (ideal diffuse) BRDF.

The Lambertian BRDF scatters incident light equally in all directions:

    f_r(wi, wo) = reflectivity / pi

It does not depend on either direction, so it is reciprocal by construction,
and with reflectivity in [0, 1] the cosine-weighted integral over the
hemisphere equals the reflectivity, so it is energy conserving.

Example:
    >>> from brdfkit.core.spectrum import Spectrum
    >>> brdf = LambertianBRDF(Spectrum(0.5, 0.5, 0.5))
    >>> brdf.f(wi, wo)  # Spectrum(0.159..., 0.159..., 0.159...)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np
import numpy.typing as npt

from brdfkit.core.spectrum import Spectrum
from brdfkit.core.vector import Vec3, mirror_direction
from brdfkit.materials.base import BRDF, Parameter, ReflectionClass, broadcast_spectrum


@dataclass(frozen=True)
class LambertianBRDF(BRDF):
    """Lambertian (ideal diffuse) reflectance model.

    Attributes:
        reflectivity: The diffuse reflectance color (RGB, each component in
            [0, 1]). Validated on construction.
    """

    VARIANT_NAME = "LambertianBRDF"
    REFLECTION_CLASS = ReflectionClass.DIFFUSE

    reflectivity: Spectrum

    def __post_init__(self) -> None:
        reflectivity = self.reflectivity.copy()
        reflectivity.validate()
        object.__setattr__(self, "reflectivity", reflectivity)

    def _evaluate(self, wi: Vec3, wo: Vec3) -> Spectrum:
        return self.reflectivity.copy().div(math.pi)

    def sample_f(self, wi: Vec3, normal: Vec3) -> tuple[Vec3, Spectrum]:
        # Attenuation is the albedo, as for cosine-weighted diffuse scattering
        return mirror_direction(wi, normal), self.reflectivity.copy()

    def evaluate_many(self, wi: Vec3, wo: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        return broadcast_spectrum(self._evaluate(wi, wi), len(wo))

    def get_parameters(self) -> list[Parameter]:
        return [Parameter("Diffuse Reflectivity", "Spectrum", self.reflectivity.copy())]

    def serialize(self) -> dict[str, Any]:
        return {"reflectivity": self.reflectivity.to_list()}
