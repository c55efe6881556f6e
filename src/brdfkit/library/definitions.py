"""JSON definitions of reflectance models.

A definition names one model and lists its components:

    {
      "alias": "Plastic",
      "type": "composite",
      "components": [
        {"name": "LambertianBRDF", "weighting": 0.7, "reflectivity": [0.6, 0.1, 0.1]},
        {"name": "PhongSpecularBRDF", "weighting": 0.3,
         "specularReflectivity": [1, 1, 1], "specularExponent": 32}
      ]
    }

A ``simple`` definition has exactly one component, without ``weighting``.
Written definitions tag that component with ``"type": "simple"``.
In a composite, a component's ``name`` is either a variant name or the alias
of another definition (looked up through a resolver), and a component with
``"type": "composite"`` is a nested composite carrying its own
``components``.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any

from brdfkit.errors import DefinitionFormatError, MissingPropertyError, UnknownVariantError
from brdfkit.library.registry import build_variant, is_variant
from brdfkit.materials import BRDF, Component, CompositeBRDF

SIMPLE = "simple"
COMPOSITE = "composite"

# Returns the model for an alias, or None if there is no such alias
Resolver = Callable[[str], "BRDF | None"]


def _components(mapping: Mapping[str, Any], owner: str) -> list[Mapping[str, Any]]:
    components = mapping.get("components")
    if not isinstance(components, list) or not components:
        raise DefinitionFormatError(f"{owner!r} needs a non-empty 'components' array")
    for entry in components:
        if not isinstance(entry, Mapping):
            raise DefinitionFormatError(f"Components of {owner!r} must be objects, got {entry!r}")
    return components


def _name(entry: Mapping[str, Any]) -> str:
    name = entry.get("name")
    if name is None:
        raise MissingPropertyError("Missing property 'name'")
    if not isinstance(name, str):
        raise DefinitionFormatError(f"Component name must be a string, got {name!r}")
    return name


def build_component(entry: Mapping[str, Any], resolver: Resolver | None = None) -> BRDF:
    """Build the model described by one component entry.

    Args:
        entry: The component mapping.
        resolver: Looks up aliases of other definitions.

    Returns:
        A simple variant, a nested composite, or the resolved alias.

    Raises:
        UnknownVariantError: If the name is neither a variant nor a known
            alias.
    """
    name = _name(entry)
    if entry.get("type") == COMPOSITE or "components" in entry:
        return build_composite(name, _components(entry, name), resolver)
    if is_variant(name):
        return build_variant(name, entry)
    if resolver is not None:
        model = resolver(name)
        if model is not None:
            return model
    raise UnknownVariantError(f"No BRDF variant or alias named {name!r}")


def build_composite(
    alias: str,
    entries: list[Mapping[str, Any]],
    resolver: Resolver | None = None,
) -> CompositeBRDF:
    components = []
    for entry in entries:
        if "weighting" not in entry:
            raise MissingPropertyError(f"Component {entry.get('name')!r} of {alias!r} is missing 'weighting'")
        components.append(Component(build_component(entry, resolver), entry["weighting"]))
    return CompositeBRDF(alias, components)


def parse_definition(
    mapping: Mapping[str, Any],
    resolver: Resolver | None = None,
) -> tuple[str, BRDF]:
    """Build a model from a definition mapping.

    Args:
        mapping: A parsed definition.
        resolver: Looks up aliases referenced by composite components.

    Returns:
        ``(alias, model)``.

    Raises:
        DefinitionFormatError: If the mapping does not have the definition
            shape.
        BRDFError: Any construction error of the model or its components.
    """
    if not isinstance(mapping, Mapping):
        raise DefinitionFormatError(f"A definition must be an object, got {type(mapping).__name__}")
    alias = mapping.get("alias")
    if not isinstance(alias, str) or not alias:
        raise DefinitionFormatError("A definition needs a non-empty string 'alias'")
    kind = mapping.get("type")
    entries = _components(mapping, alias)

    if kind == SIMPLE:
        if len(entries) != 1:
            raise DefinitionFormatError(
                f"Simple definition {alias!r} must have exactly one component, got {len(entries)}"
            )
        return alias, build_component(entries[0], resolver)
    if kind == COMPOSITE:
        return alias, build_composite(alias, entries, resolver)
    raise DefinitionFormatError(f"Definition {alias!r} has unknown type {kind!r}; expected 'simple' or 'composite'")


def to_definition(alias: str, model: BRDF) -> dict[str, Any]:
    """Describe ``model`` as a definition mapping that re-parses to it."""
    if model.is_composite:
        return {"alias": alias, "type": COMPOSITE, **model.serialize()}
    component = {"name": model.name, "type": SIMPLE, **model.serialize()}
    return {"alias": alias, "type": SIMPLE, "components": [component]}


def dumps_definition(alias: str, model: BRDF, indent: int = 2) -> str:
    return json.dumps(to_definition(alias, model), indent=indent)


def loads_definition(text: str, resolver: Resolver | None = None) -> tuple[str, BRDF]:
    """Parse a JSON definition string.

    Raises:
        DefinitionFormatError: If the text is not valid JSON.
    """
    try:
        mapping = json.loads(text)
    except json.JSONDecodeError as e:
        raise DefinitionFormatError(f"Malformed JSON: {e}") from e
    return parse_definition(mapping, resolver)
