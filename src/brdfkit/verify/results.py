"""Verification results.

A model that breaks reciprocity or energy conservation is a normal outcome of
verification, so verdicts are returned as values. ``violation`` on each result
names the property that failed, or is None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from brdfkit.config import EnergyMode
from brdfkit.core.spectrum import Spectrum


class Violation(str, Enum):
    """Physical law a model was found to break."""

    RECIPROCITY = "reciprocity"
    ENERGY_CONSERVATION = "energy_conservation"


@dataclass(frozen=True)
class ReciprocityFailure:
    """The first direction pair for which ``f(wi, wo) != f(wo, wi)``.

    Attributes:
        incoming_index: Index of the incoming direction (0-based).
        sample_index: Index of the outgoing sample (0-based).
        incoming: The incoming direction.
        outgoing: The outgoing direction.
        forward: ``f(incoming, outgoing)``.
        backward: ``f(outgoing, incoming)``.
    """

    incoming_index: int
    sample_index: int
    incoming: tuple[float, float, float]
    outgoing: tuple[float, float, float]
    forward: Spectrum
    backward: Spectrum


@dataclass
class ReciprocityResult:
    """Outcome of the reciprocity check.

    Attributes:
        passed: True if every sampled pair was reciprocal.
        num_incoming: Requested incoming directions.
        samples_per_incoming: Requested outgoing samples per incoming direction.
        pairs_checked: Pairs evaluated before stopping.
        failure: The first mismatching pair, if any.
    """

    passed: bool
    num_incoming: int
    samples_per_incoming: int
    pairs_checked: int
    failure: ReciprocityFailure | None = None

    @property
    def violation(self) -> Violation | None:
        return None if self.passed else Violation.RECIPROCITY


@dataclass
class EnergyResult:
    """Outcome of an energy-conservation check.

    Attributes:
        passed: True if no estimator's one-sided bound exceeded
            ``threshold``.
        mode: Which check produced this result.
        num_incoming: Incoming directions evaluated.
        samples_per_incoming: Outgoing samples per incoming direction (for
            convergence mode, the samples actually taken).
        threshold: ``1 + energy_tolerance``.
        confidence_sigmas: Standard errors subtracted before comparing an
            estimator with ``threshold``.
        estimators: Monte Carlo estimator per incoming direction, in order.
        standard_errors: Standard error of each estimator.
        running_average: Running mean of ``estimators``.
        running_variance: Sample variance of ``estimators`` (0 for one value).
        standard_error: Standard error of ``running_average``.
        samples_taken: Total outgoing samples evaluated.
        converged: Convergence mode only: whether the stopping rule was met
            before ``max_samples``.
        failed_at: Index (fixed mode: incoming direction, 0-based; convergence
            mode: sample count) at which the threshold was first exceeded.
    """

    passed: bool
    mode: EnergyMode
    num_incoming: int
    samples_per_incoming: int
    threshold: float
    confidence_sigmas: float = 0.0
    estimators: list[float] = field(default_factory=list)
    standard_errors: list[float] = field(default_factory=list)
    running_average: float = 0.0
    running_variance: float = 0.0
    standard_error: float = 0.0
    samples_taken: int = 0
    converged: bool | None = None
    failed_at: int | None = None

    @property
    def violation(self) -> Violation | None:
        return None if self.passed else Violation.ENERGY_CONSERVATION

    @property
    def estimator(self) -> float:
        """The final estimate (the running average)."""
        return self.running_average

    @property
    def max_estimator(self) -> float:
        return max(self.estimators) if self.estimators else 0.0

    @property
    def lower_bound(self) -> float:
        """One-sided bound on the albedo compared with ``threshold``."""
        return self.running_average - self.confidence_sigmas * self.standard_error


@dataclass
class VerificationResult:
    """Combined verdict for one model.

    Attributes:
        model_name: Name of the verified model.
        reciprocity: Reciprocity outcome.
        energy: Energy outcome, or None when reciprocity already failed.
    """

    model_name: str
    reciprocity: ReciprocityResult
    energy: EnergyResult | None = None

    @property
    def physically_based(self) -> bool:
        return self.reciprocity.passed and self.energy is not None and self.energy.passed

    @property
    def violation(self) -> Violation | None:
        """The first violation found, or None."""
        if not self.reciprocity.passed:
            return Violation.RECIPROCITY
        if self.energy is not None and not self.energy.passed:
            return Violation.ENERGY_CONSERVATION
        return None

    def summary(self) -> str:
        """One-line human readable verdict."""
        if self.physically_based:
            assert self.energy is not None
            return (
                f"[{self.model_name}] physically plausible "
                f"(estimator {self.energy.estimator:.4f}, {self.energy.samples_taken} samples)"
            )
        if self.violation is Violation.RECIPROCITY:
            return (
                f"[{self.model_name}] violates Helmholtz reciprocity "
                f"after {self.reciprocity.pairs_checked} pair(s)"
            )
        assert self.energy is not None
        return (
            f"[{self.model_name}] is not energy conserving "
            f"(estimator {self.energy.max_estimator:.4f}, "
            f"threshold {self.energy.threshold:.4f} at {self.energy.confidence_sigmas:g} sigma)"
        )
