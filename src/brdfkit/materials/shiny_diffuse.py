"""Shiny diffuse BRDF: a diffuse base with an optional mirror highlight.

    d   = diffuse_reflectivity / pi
    f_r = d                              if reflection == 0
    f_r = d + d * max(0, wo . r)^reflection   otherwise

The highlight uses the same fixed-reference-normal mirror lobe as
``PhongSpecularBRDF`` (see ``brdfkit.materials.lobe``) and is summed directly
with the diffuse term; the sum is not renormalised.
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
    require_non_negative,
)
from brdfkit.materials.lobe import mirror_lobe, mirror_lobe_batch


@dataclass(frozen=True)
class ShinyDiffuseBRDF(BRDF):
    """Diffuse surface with a mirror-lobe highlight.

    Attributes:
        diffuse_reflectivity: Diffuse color (RGB, each component in [0, 1]).
        reflection: Highlight exponent; 0 disables the highlight. Must be >= 0.
    """

    VARIANT_NAME = "ShinyDiffuseBRDF"
    REFLECTION_CLASS = ReflectionClass.BOTH

    diffuse_reflectivity: Spectrum
    reflection: float

    def __post_init__(self) -> None:
        reflectivity = self.diffuse_reflectivity.copy()
        reflectivity.validate()
        object.__setattr__(self, "diffuse_reflectivity", reflectivity)
        object.__setattr__(self, "reflection", require_non_negative("Reflection", self.reflection))

    def _diffuse(self) -> Spectrum:
        return self.diffuse_reflectivity.copy().div(math.pi)

    def _specular(self, wi: Vec3, wo: Vec3) -> Spectrum:
        if self.reflection == 0:
            return Spectrum(0.0, 0.0, 0.0)
        return self._diffuse().mul(mirror_lobe(wi, wo, self.reflection))

    def _evaluate(self, wi: Vec3, wo: Vec3) -> Spectrum:
        reflectance = self._diffuse()
        if self.reflection == 0:
            return reflectance
        return reflectance.add(self._specular(wi, wo))

    def _evaluate_class(self, wi: Vec3, wo: Vec3, reflection_class: ReflectionClass) -> Spectrum:
        if reflection_class is ReflectionClass.DIFFUSE:
            return self._diffuse()
        if reflection_class is ReflectionClass.SPECULAR:
            return self._specular(wi, wo)
        if reflection_class is ReflectionClass.BOTH:
            return self._evaluate(wi, wo)
        return Spectrum(0.0, 0.0, 0.0)

    def sample_f(self, wi: Vec3, normal: Vec3) -> tuple[Vec3, Spectrum]:
        weight = self.diffuse_reflectivity.copy().mul(self.reflection)
        return mirror_direction(wi, normal), weight

    def evaluate_many(self, wi: Vec3, wo: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        diffuse = np.tile(self._diffuse().as_array(), (len(wo), 1))
        if self.reflection == 0:
            return diffuse
        lobe = mirror_lobe_batch(wi, wo, self.reflection)
        return diffuse + diffuse * lobe[:, None]

    def get_parameters(self) -> list[Parameter]:
        return [
            Parameter("Diffuse Reflectivity", "Spectrum", self.diffuse_reflectivity.copy()),
            Parameter("Reflection", "float", self.reflection),
        ]

    def serialize(self) -> dict[str, Any]:
        return {
            "diffuseReflectivity": self.diffuse_reflectivity.to_list(),
            "reflection": self.reflection,
        }
