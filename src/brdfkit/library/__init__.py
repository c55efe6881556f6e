"""Model definitions, the variant registry and the model library."""

from brdfkit.library.definitions import (
    build_component,
    build_composite,
    dumps_definition,
    loads_definition,
    parse_definition,
    to_definition,
)
from brdfkit.library.manager import BRDFLibrary
from brdfkit.library.registry import (
    VARIANT_BUILDERS,
    build_lambertian,
    build_phong_diffuse,
    build_phong_specular,
    build_shiny_diffuse,
    build_variant,
)

__all__ = [
    "BRDFLibrary",
    "VARIANT_BUILDERS",
    "build_component",
    "build_composite",
    "build_lambertian",
    "build_phong_diffuse",
    "build_phong_specular",
    "build_shiny_diffuse",
    "build_variant",
    "dumps_definition",
    "loads_definition",
    "parse_definition",
    "to_definition",
]
