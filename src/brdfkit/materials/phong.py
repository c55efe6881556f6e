"""Diffuse and specular components of the Phong reflectance model.

The two components are separate BRDFs so that a composite can weight them
independently:

    PhongDiffuseBRDF:   f_r = diffuse_reflectivity / pi
    PhongSpecularBRDF:  f_r = specular_reflectivity * max(0, wo . r)^n

where ``r`` is ``wi`` mirrored about the fixed reference normal (see
``brdfkit.materials.lobe``) and ``n`` is the specular exponent. The diffuse
component evaluates identically to ``LambertianBRDF``; it exists as its own
variant so that definitions keep the Phong parameter names.

The specular component is not normalised, so low exponents with bright
reflectivities are expected to fail the energy-conservation check.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np
import numpy.typing as npt

from brdfkit.core.spectrum import Spectrum
from brdfkit.core.vector import Vec3, mirror_direction
from brdfkit.materials.base import (
    BRDF,
    Parameter,
    ReflectionClass,
    broadcast_spectrum,
    require_non_negative,
)
from brdfkit.materials.lobe import mirror_lobe, mirror_lobe_batch


@dataclass(frozen=True)
class PhongDiffuseBRDF(BRDF):
    """Diffuse component of the Phong model.

    Attributes:
        diffuse_reflectivity: Diffuse color (RGB, each component in [0, 1]).
    """

    VARIANT_NAME = "PhongDiffuseBRDF"
    REFLECTION_CLASS = ReflectionClass.DIFFUSE

    diffuse_reflectivity: Spectrum

    def __post_init__(self) -> None:
        reflectivity = self.diffuse_reflectivity.copy()
        reflectivity.validate()
        object.__setattr__(self, "diffuse_reflectivity", reflectivity)

    def _evaluate(self, wi: Vec3, wo: Vec3) -> Spectrum:
        return self.diffuse_reflectivity.copy().div(math.pi)

    def sample_f(self, wi: Vec3, normal: Vec3) -> tuple[Vec3, Spectrum]:
        return mirror_direction(wi, normal), self.diffuse_reflectivity.copy()

    def evaluate_many(self, wi: Vec3, wo: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        return broadcast_spectrum(self._evaluate(wi, wi), len(wo))

    def get_parameters(self) -> list[Parameter]:
        return [Parameter("Diffuse Reflectivity", "Spectrum", self.diffuse_reflectivity.copy())]

    def serialize(self) -> dict[str, Any]:
        return {"diffuseReflectivity": self.diffuse_reflectivity.to_list()}


@dataclass(frozen=True)
class PhongSpecularBRDF(BRDF):
    """Specular component of the Phong model.

    Attributes:
        specular_reflectivity: Specular color (RGB, each component in [0, 1]).
        specular_exponent: Glossiness. 0 is dull; higher values give sharper
            highlights. Must be >= 0.
    """

    VARIANT_NAME = "PhongSpecularBRDF"
    REFLECTION_CLASS = ReflectionClass.SPECULAR

    specular_reflectivity: Spectrum
    specular_exponent: float

    def __post_init__(self) -> None:
        reflectivity = self.specular_reflectivity.copy()
        reflectivity.validate()
        object.__setattr__(self, "specular_reflectivity", reflectivity)
        object.__setattr__(
            self,
            "specular_exponent",
            require_non_negative("Specular exponent", self.specular_exponent),
        )

    def _evaluate(self, wi: Vec3, wo: Vec3) -> Spectrum:
        return self.specular_reflectivity.copy().mul(mirror_lobe(wi, wo, self.specular_exponent))

    def sample_f(self, wi: Vec3, normal: Vec3) -> tuple[Vec3, Spectrum]:
        weight = self.specular_reflectivity.copy().mul(self.specular_exponent)
        return mirror_direction(wi, normal), weight

    def evaluate_many(self, wi: Vec3, wo: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        lobe = mirror_lobe_batch(wi, wo, self.specular_exponent)
        return lobe[:, None] * self.specular_reflectivity.as_array()[None, :]

    def get_parameters(self) -> list[Parameter]:
        return [
            Parameter("Specular Reflectivity", "Spectrum", self.specular_reflectivity.copy()),
            Parameter("Specular Exponent", "float", self.specular_exponent),
        ]

    def serialize(self) -> dict[str, Any]:
        return {
            "specularExponent": self.specular_exponent,
            "specularReflectivity": self.specular_reflectivity.to_list(),
        }
