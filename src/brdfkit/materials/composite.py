"""Composite BRDF: a weighted combination of other BRDFs.

    f_r(wi, wo) = sum_i w_i * f_i(wi, wo)

Children are kept in registration order and summed in that order, so results
are reproducible bit for bit. Weights are unconstrained and need not sum to
one. A child may itself be a composite. Because models are immutable and a
composite is built from already constructed children, a model can never be
its own descendant.

Filtered evaluation sums only the children of the requested reflection class
and returns ``None`` when no child contributes; ``None`` is the
"no matching component" signal, not an error.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

import numpy as np
import numpy.typing as npt

from brdfkit.core.sampler import HemisphereSampler
from brdfkit.core.spectrum import Spectrum
from brdfkit.core.vector import Vec3
from brdfkit.errors import InvalidParameterError
from brdfkit.materials.base import (
    BRDF,
    Parameter,
    ReflectionClass,
    ReflectionClassLike,
    to_reflection_class,
)


@dataclass(frozen=True)
class Component:
    """One weighted child of a composite.

    Attributes:
        model: The child BRDF.
        weight: Its weighting.
    """

    model: BRDF
    weight: float

    def __post_init__(self) -> None:
        if not isinstance(self.model, BRDF):
            raise InvalidParameterError(f"Component model must be a BRDF, got {type(self.model).__name__}")
        try:
            weight = float(self.weight)
        except (TypeError, ValueError) as e:
            raise InvalidParameterError(f"Weighting must be a number, got {self.weight!r}") from e
        if not np.isfinite(weight):
            raise InvalidParameterError(f"Weighting must be finite, got {weight}")
        object.__setattr__(self, "weight", weight)


@dataclass(frozen=True, init=False)
class CompositeBRDF(BRDF):
    """Weighted combination of sub-models.

    Attributes:
        alias: Name of this composite (used as its ``name``).
        components: Ordered children and their weights.
    """

    alias: str
    components: tuple[Component, ...]

    def __init__(
        self,
        alias: str,
        components: Iterable[Component | tuple[BRDF, float]],
    ) -> None:
        items = tuple(c if isinstance(c, Component) else Component(*c) for c in components)
        if not items:
            raise InvalidParameterError(f"Composite {alias!r} needs at least one component")
        object.__setattr__(self, "alias", alias)
        object.__setattr__(self, "components", items)

    @property
    def name(self) -> str:
        return self.alias

    @property
    def is_composite(self) -> bool:
        return True

    def __iter__(self) -> Iterator[Component]:
        return iter(self.components)

    def __len__(self) -> int:
        return len(self.components)

    # =========================================================================
    # Evaluation
    # =========================================================================

    def _evaluate(self, wi: Vec3, wo: Vec3) -> Spectrum:
        reflectance = Spectrum()
        for component in self.components:
            s = component.model.f(wi, wo)
            reflectance.add(s.mul(component.weight))
        return reflectance

    def f(
        self,
        wi: Vec3,
        wo: Vec3,
        reflection_class: ReflectionClassLike | None = None,
    ) -> Spectrum | None:
        """Evaluate the composite, optionally restricted to one class.

        Simple children contribute their full value when their class equals
        the requested one. Composite children are asked recursively and
        contribute unless they themselves have no match.

        Returns:
            The weighted sum, or None when no child matches the class.
        """
        if reflection_class is None:
            return self._evaluate(wi, wo)

        requested = to_reflection_class(reflection_class)
        reflectance = Spectrum()
        matched = False
        for component in self.components:
            child = component.model
            if child.is_composite:
                s = child.f(wi, wo, requested)
                if s is None:
                    continue
            elif child.reflection_class is requested:
                s = child.f(wi, wo)
            else:
                continue
            reflectance.add(s.mul(component.weight))
            matched = True

        if not matched:
            return None
        return reflectance

    def evaluate_many(self, wi: Vec3, wo: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        result = np.zeros((len(wo), 3), dtype=np.float64)
        for component in self.components:
            result += component.weight * component.model.evaluate_many(wi, wo)
        return result

    # =========================================================================
    # Sampling
    # =========================================================================

    def sample_f(self, wi: Vec3, normal: Vec3) -> tuple[Vec3, Spectrum]:
        """Average the children's mirror directions and weighted samples.

        Every child is sampled; directions and ``weight * sample`` spectra are
        summed and divided by the number of children.
        """
        direction = np.zeros(3, dtype=np.float64)
        reflectance = Spectrum()
        for component in self.components:
            child_direction, child_weight = component.model.sample_f(wi, normal)
            direction += child_direction
            reflectance.add(child_weight.mul(component.weight))

        count = len(self.components)
        return direction / count, reflectance.div(count)

    def choose_component(self, u: float) -> tuple[Component, float]:
        """Select a child by cumulative normalised weight.

        Selection probabilities are ``|w_i| / sum |w|``. The child whose
        cumulative range contains ``u`` is returned.

        Args:
            u: A uniform draw in [0, 1).

        Returns:
            The selected component and its selection probability.

        Raises:
            InvalidParameterError: If every weight is zero.
        """
        magnitudes = [abs(c.weight) for c in self.components]
        total = sum(magnitudes)
        if total == 0.0:
            raise InvalidParameterError(f"Composite {self.alias!r} has no non-zero weighting")

        cumulative = 0.0
        for component, magnitude in zip(self.components, magnitudes):
            cumulative += magnitude / total
            if u < cumulative and magnitude > 0.0:
                return component, magnitude / total
        # Rounding can leave the last cumulative value just below 1
        last = [i for i, m in enumerate(magnitudes) if m > 0.0][-1]
        return self.components[last], magnitudes[last] / total

    def sample_f_weighted(
        self,
        wi: Vec3,
        normal: Vec3,
        sampler: HemisphereSampler,
    ) -> tuple[Vec3, Spectrum]:
        """Sample one child chosen stochastically by weight.

        The returned spectrum is ``weight * sample / probability``, which keeps
        the expectation equal to the full weighted sum over children.
        """
        component, probability = self.choose_component(sampler.uniform())
        direction, weight = component.model.sample_f(wi, normal)
        return direction, weight.mul(component.weight / probability)

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_parameters(self) -> list[Parameter]:
        """Flatten the children's parameters.

        Each child contributes a ``BRDF`` header entry, its weighting, and its
        own parameters with the child name appended to the label.
        """
        parameters: list[Parameter] = []
        for component in self.components:
            child = component.model
            parameters.append(Parameter(child.name, "BRDF"))
            parameters.append(Parameter(f"Weighting_{child.name}", "float", component.weight))
            for p in child.get_parameters():
                parameters.append(Parameter(f"{p.label}_{child.name}", p.kind, p.value))
        return parameters

    def serialize(self) -> dict[str, Any]:
        components = []
        for component in self.components:
            child = component.model
            entry: dict[str, Any] = {
                "name": child.name,
                "type": "composite" if child.is_composite else "simple",
                "weighting": component.weight,
            }
            entry.update(child.serialize())
            components.append(entry)
        return {"components": components}

    @property
    def reflection_classes(self) -> set[ReflectionClass]:
        """Every reflection class present among the (nested) children."""
        classes: set[ReflectionClass] = set()
        for component in self.components:
            child = component.model
            if child.is_composite:
                classes |= child.reflection_classes
            else:
                classes.add(child.reflection_class)
        return classes
