"""Variant registry: build a simple model from its property bag.

Each builder takes the variant-specific fields of one definition component
(see ``brdfkit.library.definitions``) and returns a validated model:

    LambertianBRDF      reflectivity: [r, g, b]
    PhongDiffuseBRDF    diffuseReflectivity: [r, g, b]
    PhongSpecularBRDF   specularReflectivity: [r, g, b], specularExponent: float
    ShinyDiffuseBRDF    diffuseReflectivity: [r, g, b], reflection: float

Unrelated keys (``name``, ``type``, ``weighting``) are ignored.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from brdfkit.core.spectrum import Spectrum
from brdfkit.errors import InvalidParameterError, MissingPropertyError, UnknownVariantError
from brdfkit.materials import (
    BRDF,
    LambertianBRDF,
    PhongDiffuseBRDF,
    PhongSpecularBRDF,
    ShinyDiffuseBRDF,
)

Properties = Mapping[str, Any]


def _require(props: Properties, key: str) -> Any:
    try:
        return props[key]
    except KeyError:
        raise MissingPropertyError(f"Missing property {key!r}") from None


def _spectrum(props: Properties, key: str) -> Spectrum:
    value = _require(props, key)
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise InvalidParameterError(f"{key!r} must be an [r, g, b] array, got {value!r}")
    return Spectrum.from_sequence(value)


def build_lambertian(props: Properties) -> LambertianBRDF:
    return LambertianBRDF(_spectrum(props, "reflectivity"))


def build_phong_diffuse(props: Properties) -> PhongDiffuseBRDF:
    return PhongDiffuseBRDF(_spectrum(props, "diffuseReflectivity"))


def build_phong_specular(props: Properties) -> PhongSpecularBRDF:
    return PhongSpecularBRDF(
        _spectrum(props, "specularReflectivity"),
        _require(props, "specularExponent"),
    )


def build_shiny_diffuse(props: Properties) -> ShinyDiffuseBRDF:
    return ShinyDiffuseBRDF(
        _spectrum(props, "diffuseReflectivity"),
        _require(props, "reflection"),
    )


VARIANT_BUILDERS: dict[str, Callable[[Properties], BRDF]] = {
    LambertianBRDF.VARIANT_NAME: build_lambertian,
    PhongDiffuseBRDF.VARIANT_NAME: build_phong_diffuse,
    PhongSpecularBRDF.VARIANT_NAME: build_phong_specular,
    ShinyDiffuseBRDF.VARIANT_NAME: build_shiny_diffuse,
}


def is_variant(name: str) -> bool:
    return name in VARIANT_BUILDERS


def build_variant(name: str, props: Properties) -> BRDF:
    """Build the simple variant called ``name``.

    Raises:
        UnknownVariantError: If no variant has that name.
        MissingPropertyError: If a required field is absent.
        InvalidSpectrumError: If a reflectivity channel is outside [0, 1].
        InvalidParameterError: If a field has the wrong type or a scalar is
            negative.
    """
    try:
        builder = VARIANT_BUILDERS[name]
    except KeyError:
        known = ", ".join(VARIANT_BUILDERS)
        raise UnknownVariantError(f"Unknown BRDF variant {name!r}; expected one of: {known}") from None
    return builder(props)
