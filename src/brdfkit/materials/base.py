"""Reflectance model interface shared by every BRDF variant.

Every model answers the same questions:

    f(wi, wo)                  unweighted reflectance for a direction pair
    f(wi, wo, reflection_class)
                               the same, restricted to one reflection class
    sample_f(wi, normal)       mirror direction plus an unnormalised weight
    evaluate_many(wi, wo)      batch form of f for many outgoing directions
    get_parameters()           ordered, typed parameter descriptions
    serialize()                the model's fields in the definition schema

Both ``wi`` and ``wo`` point away from the surface (towards the light and the
viewer respectively) and must be unit vectors; models never normalise them.
``sample_f`` instead takes the incident ray direction travelling *towards* the
surface, as a renderer would.

Models are immutable values once constructed. The set of variants is closed:
see ``brdfkit.materials.ReflectanceModel``.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

import numpy as np
import numpy.typing as npt

from brdfkit.core.spectrum import Spectrum
from brdfkit.core.vector import Vec3
from brdfkit.errors import InvalidParameterError


class ReflectionClass(str, Enum):
    """Kind of reflection a model (or model component) contributes."""

    DIFFUSE = "diffuse"
    SPECULAR = "specular"
    BOTH = "both"
    NONE = "none"


ReflectionClassLike = ReflectionClass | str


def to_reflection_class(value: ReflectionClassLike) -> ReflectionClass:
    """Coerce a string such as ``"specular"`` to a ReflectionClass.

    Raises:
        ValueError: If the value names no reflection class.
    """
    if isinstance(value, ReflectionClass):
        return value
    try:
        return ReflectionClass(value.lower())
    except ValueError:
        valid = ", ".join(rc.value for rc in ReflectionClass)
        raise ValueError(f"Unknown reflection class {value!r}; expected one of: {valid}") from None


@dataclass(frozen=True)
class Parameter:
    """Named, typed description of one model parameter.

    Attributes:
        label: Human readable name, e.g. ``"Specular Exponent"``.
        kind: Value type: ``"Spectrum"``, ``"float"`` or ``"BRDF"``.
        value: The current value (None for a ``"BRDF"`` header entry).
    """

    label: str
    kind: str
    value: Any = None

    def display_value(self) -> str:
        return "" if self.value is None else str(self.value)


def require_non_negative(label: str, value: Any) -> float:
    """Validate a scalar model parameter.

    Raises:
        InvalidParameterError: If ``value`` is not a finite, non-negative number.
    """
    if isinstance(value, bool):
        raise InvalidParameterError(f"{label} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidParameterError(f"{label} must be a number, got {value!r}") from e
    if not np.isfinite(number) or number < 0.0:
        raise InvalidParameterError(f"{label} = {number} must be finite and >= 0")
    return number


class BRDF(abc.ABC):
    """Abstract reflectance model."""

    VARIANT_NAME: ClassVar[str] = ""
    REFLECTION_CLASS: ClassVar[ReflectionClass] = ReflectionClass.NONE

    @property
    def name(self) -> str:
        """Variant name used in the definition schema."""
        return self.VARIANT_NAME

    @property
    def reflection_class(self) -> ReflectionClass:
        return self.REFLECTION_CLASS

    @property
    def is_composite(self) -> bool:
        return False

    def f(
        self,
        wi: Vec3,
        wo: Vec3,
        reflection_class: ReflectionClassLike | None = None,
    ) -> Spectrum | None:
        """Evaluate the BRDF for one direction pair.

        Args:
            wi: Unit direction towards the light.
            wo: Unit direction towards the viewer.
            reflection_class: Restrict the result to this class. A model with
                no component of the class returns a zero Spectrum.

        Returns:
            A new Spectrum owned by the caller.
        """
        if reflection_class is None:
            return self._evaluate(wi, wo)
        return self._evaluate_class(wi, wo, to_reflection_class(reflection_class))

    @abc.abstractmethod
    def _evaluate(self, wi: Vec3, wo: Vec3) -> Spectrum:
        """Unfiltered reflectance."""

    def _evaluate_class(self, wi: Vec3, wo: Vec3, reflection_class: ReflectionClass) -> Spectrum:
        if reflection_class is self.reflection_class:
            return self._evaluate(wi, wo)
        return Spectrum(0.0, 0.0, 0.0)

    @abc.abstractmethod
    def sample_f(self, wi: Vec3, normal: Vec3) -> tuple[Vec3, Spectrum]:
        """Mirror ``wi`` about ``normal`` and return the direction and a weight."""

    @abc.abstractmethod
    def evaluate_many(self, wi: Vec3, wo: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """Evaluate ``f(wi, wo[k])`` for every row of ``wo``.

        Args:
            wi: Unit direction towards the light, shape (3,).
            wo: Unit directions towards the viewer, shape (n, 3).

        Returns:
            Array of shape (n, 3) with one RGB reflectance per row.
        """

    @abc.abstractmethod
    def get_parameters(self) -> list[Parameter]:
        """Ordered parameter descriptions for introspection and UIs."""

    @abc.abstractmethod
    def serialize(self) -> dict[str, Any]:
        """Variant-specific fields of this model in the definition schema."""


def broadcast_spectrum(spectrum: Spectrum, n: int) -> npt.NDArray[np.float64]:
    """Repeat one RGB value ``n`` times as an (n, 3) array."""
    return np.tile(spectrum.as_array(), (n, 1))
