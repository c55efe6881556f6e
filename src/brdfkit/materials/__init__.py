"""Reflectance models.

Components:
    base: BRDF interface, reflection classes, parameter descriptions
    lobe: Mirror lobe shared by the specular variants (scalar + Taichi batch)
    lambertian: Ideal diffuse reflection
    phong: Phong diffuse and Phong specular components
    shiny_diffuse: Diffuse base with a mirror highlight
    composite: Weighted combination of other models

The family of variants is closed. ``ReflectanceModel`` names it for type
checking; code that dispatches on the variant should handle all five.
"""

from typing import Union

from .base import (
    BRDF,
    Parameter,
    ReflectionClass,
    require_non_negative,
    to_reflection_class,
)
from .composite import Component, CompositeBRDF
from .lambertian import LambertianBRDF
from .lobe import mirror_lobe, mirror_lobe_batch
from .phong import PhongDiffuseBRDF, PhongSpecularBRDF
from .shiny_diffuse import ShinyDiffuseBRDF

ReflectanceModel = Union[
    LambertianBRDF,
    PhongDiffuseBRDF,
    PhongSpecularBRDF,
    ShinyDiffuseBRDF,
    CompositeBRDF,
]

SIMPLE_VARIANTS: tuple[type[BRDF], ...] = (
    LambertianBRDF,
    PhongDiffuseBRDF,
    PhongSpecularBRDF,
    ShinyDiffuseBRDF,
)

__all__ = [
    # Interface
    "BRDF",
    "Parameter",
    "ReflectionClass",
    "ReflectanceModel",
    "SIMPLE_VARIANTS",
    "require_non_negative",
    "to_reflection_class",
    # Variants
    "LambertianBRDF",
    "PhongDiffuseBRDF",
    "PhongSpecularBRDF",
    "ShinyDiffuseBRDF",
    "Component",
    "CompositeBRDF",
    # Lobe
    "mirror_lobe",
    "mirror_lobe_batch",
]
