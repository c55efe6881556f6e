"""Physical-plausibility verifier for reflectance models.

A BRDF is physically plausible when it obeys

Helmholtz reciprocity
    ``f(wi, wo) == f(wo, wi)`` for every pair of directions. Checked on
    sampled pairs with exact Spectrum equality.

Energy conservation
    The reflected radiance never exceeds the incident radiance. For each
    incoming direction the directional albedo is estimated by Monte Carlo
    integration over uniformly sampled outgoing directions:

        <I> = 1/N sum_k f(wi, wo_k) cos(theta_k) / pdf,   pdf = 1 / (2 pi)

    where ``cos(theta_k) = wo_k . N_ref``. Every estimator, and their running
    mean, must stay <= 1 + energy_tolerance.

    The estimator of a model that reflects exactly all incident energy (a
    white Lambertian) scatters around 1, so the comparison uses a one-sided
    bound: an estimator fails when ``estimator - z * standard_error`` is above
    the threshold, with ``z = confidence_sigmas``. A model whose albedo is
    above 1 fails once enough samples shrink the standard error below its
    excess.

Randomness is an explicit parameter. Each entry point accepts a
``HemisphereSampler``; when none is given it creates one with the check's
fixed seed, so a call is reproducible and a verifier instance can be shared
between threads.

Example:
    >>> verifier = PlausibilityVerifier()
    >>> result = verifier.is_physically_based(LambertianBRDF(Spectrum(0.5, 0.5, 0.5)))
    >>> result.physically_based
    True
"""

from __future__ import annotations

import math

import numpy as np

from brdfkit.config import EnergyMode, VerifierConfig
from brdfkit.core.sampler import UNIFORM_HEMISPHERE_PDF, HemisphereSampler
from brdfkit.core.vector import REFERENCE_NORMAL, dot
from brdfkit.materials.base import BRDF
from brdfkit.verify.diagnostics import DiagnosticSink, NullSink
from brdfkit.verify.results import (
    EnergyResult,
    ReciprocityFailure,
    ReciprocityResult,
    VerificationResult,
)


def _as_tuple(v: np.ndarray) -> tuple[float, float, float]:
    return (float(v[0]), float(v[1]), float(v[2]))


def _standard_error(values: np.ndarray) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.std(values, ddof=1)) / math.sqrt(len(values))


def _require_positive(name: str, value: int | None, default: int) -> int:
    if value is None:
        return default
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value}")
    return int(value)


class PlausibilityVerifier:
    """Checks reciprocity and energy conservation of a BRDF.

    Attributes:
        config: Sample counts, seeds and tolerances.
        sink: Receiver of diagnostic records.
    """

    def __init__(
        self,
        config: VerifierConfig | None = None,
        sink: DiagnosticSink | None = None,
    ) -> None:
        self.config = config or VerifierConfig()
        self.sink: DiagnosticSink = sink or NullSink()

    # =========================================================================
    # Reciprocity
    # =========================================================================

    def check_reciprocity(
        self,
        model: BRDF,
        num_incoming: int | None = None,
        samples_per_incoming: int | None = None,
        sampler: HemisphereSampler | None = None,
    ) -> ReciprocityResult:
        """Check ``f(wi, wo) == f(wo, wi)`` on sampled direction pairs.

        Stops at the first mismatch.

        Args:
            model: The BRDF to check.
            num_incoming: Incoming directions (default from config).
            samples_per_incoming: Outgoing directions per incoming direction
                (default from config).
            sampler: Randomness source. Defaults to a fresh sampler seeded
                with ``config.reciprocity_seed``.

        Returns:
            The reciprocity result.
        """
        cfg = self.config
        num_incoming = _require_positive("num_incoming", num_incoming, cfg.num_incoming)
        samples = _require_positive("samples_per_incoming", samples_per_incoming, cfg.samples_per_test)
        sampler = sampler or HemisphereSampler(cfg.reciprocity_seed)

        pairs = 0
        for i in range(num_incoming):
            wi = sampler.sample()
            for k in range(samples):
                wo = sampler.sample()
                forward = model.f(wi, wo)
                backward = model.f(wo, wi)
                pairs += 1
                if cfg.record_samples:
                    self.sink.record(
                        "reciprocity.sample",
                        model=model.name,
                        incoming=i,
                        sample=k,
                        forward=str(forward),
                        backward=str(backward),
                    )
                if forward != backward:
                    failure = ReciprocityFailure(
                        incoming_index=i,
                        sample_index=k,
                        incoming=_as_tuple(wi),
                        outgoing=_as_tuple(wo),
                        forward=forward,
                        backward=backward,
                    )
                    self.sink.record(
                        "reciprocity.violation",
                        model=model.name,
                        incoming=failure.incoming,
                        outgoing=failure.outgoing,
                        forward=str(forward),
                        backward=str(backward),
                    )
                    return self._reciprocity_verdict(
                        model,
                        ReciprocityResult(False, num_incoming, samples, pairs, failure),
                    )

        return self._reciprocity_verdict(model, ReciprocityResult(True, num_incoming, samples, pairs))

    def _reciprocity_verdict(self, model: BRDF, result: ReciprocityResult) -> ReciprocityResult:
        self.sink.record(
            "reciprocity.verdict",
            model=model.name,
            passed=result.passed,
            num_incoming=result.num_incoming,
            samples_per_incoming=result.samples_per_incoming,
            pairs_checked=result.pairs_checked,
        )
        return result

    # =========================================================================
    # Energy conservation: fixed sample counts
    # =========================================================================

    def check_energy_conservation(
        self,
        model: BRDF,
        num_incoming: int | None = None,
        samples_per_outgoing: int | None = None,
        sampler: HemisphereSampler | None = None,
    ) -> EnergyResult:
        """Estimate the directional albedo for several incoming directions.

        No per-direction estimator may lie above the threshold by more than
        ``confidence_sigmas`` standard errors (the check stops at the first
        that does), and neither may the Welford running mean of all
        estimators.

        Args:
            model: The BRDF to check.
            num_incoming: Incoming directions (default from config).
            samples_per_outgoing: Outgoing samples per incoming direction
                (default from config).
            sampler: Randomness source. Defaults to a fresh sampler seeded
                with ``config.energy_seed``.

        Returns:
            The energy result in ``EnergyMode.FIXED``.
        """
        cfg = self.config
        num_incoming = _require_positive("num_incoming", num_incoming, cfg.num_incoming)
        samples = _require_positive("samples_per_outgoing", samples_per_outgoing, cfg.samples_per_test)
        sampler = sampler or HemisphereSampler(cfg.energy_seed)
        threshold = cfg.energy_threshold
        sigmas = cfg.confidence_sigmas
        normal = REFERENCE_NORMAL

        result = EnergyResult(
            passed=True,
            mode=EnergyMode.FIXED,
            num_incoming=num_incoming,
            samples_per_incoming=samples,
            threshold=threshold,
            confidence_sigmas=sigmas,
        )
        mean = 0.0
        m2 = 0.0

        for i in range(num_incoming):
            wi = sampler.sample()
            wo = sampler.sample_uniform_batch(samples, normal)

            values = model.evaluate_many(wi, wo)
            scalars = (values[:, 0] + values[:, 1] + values[:, 2]) / 3
            cos_theta = wo[:, 0] * normal[0] + wo[:, 1] * normal[1] + wo[:, 2] * normal[2]
            contributions = scalars * cos_theta / UNIFORM_HEMISPHERE_PDF
            estimator = float(np.mean(contributions))
            std_error = _standard_error(contributions)

            if cfg.record_samples:
                for k, (c, value) in enumerate(zip(cos_theta, contributions)):
                    self.sink.record(
                        "energy.sample",
                        model=model.name,
                        incoming=i,
                        sample=k,
                        cos_theta=float(c),
                        value=float(value),
                    )

            # Welford running mean and variance across incoming directions
            n = i + 1
            delta = estimator - mean
            mean += delta / n
            m2 += delta * (estimator - mean)

            result.estimators.append(estimator)
            result.standard_errors.append(std_error)
            result.samples_taken += samples
            result.running_average = mean
            result.running_variance = m2 / (n - 1) if n > 1 else 0.0
            # Standard error of the mean of n independent estimators
            result.standard_error = math.sqrt(sum(se * se for se in result.standard_errors)) / n
            self.sink.record(
                "energy.estimator",
                model=model.name,
                incoming=i,
                direction=_as_tuple(wi),
                estimator=estimator,
                standard_error=std_error,
                running_average=mean,
            )

            if estimator - sigmas * std_error > threshold:
                result.passed = False
                result.failed_at = i
                self.sink.record(
                    "energy.violation",
                    model=model.name,
                    incoming=i,
                    estimator=estimator,
                    standard_error=std_error,
                    threshold=threshold,
                )
                return self._energy_verdict(model, result)

        if result.lower_bound > threshold:
            result.passed = False
            self.sink.record(
                "energy.violation",
                model=model.name,
                running_average=result.running_average,
                standard_error=result.standard_error,
                threshold=threshold,
            )
        return self._energy_verdict(model, result)

    # =========================================================================
    # Energy conservation: run until the estimator settles
    # =========================================================================

    def check_energy_convergence(
        self,
        model: BRDF,
        sampler: HemisphereSampler | None = None,
        *,
        max_samples: int | None = None,
    ) -> EnergyResult:
        """Estimate the albedo for one incoming direction until it settles.

        Samples are taken one at a time. The loop stops when the estimator
        changed by less than ``convergence_tolerance`` on each of the last
        ``convergence_window`` samples (after at least ``min_samples``), or
        when ``max_samples`` is reached. After ``min_samples`` an estimator
        whose one-sided bound is above the threshold fails immediately.

        Args:
            model: The BRDF to check.
            sampler: Randomness source. Defaults to a fresh sampler seeded
                with ``config.convergence_seed``.
            max_samples: Override for ``config.max_samples``.

        Returns:
            The energy result in ``EnergyMode.CONVERGENCE``; ``converged``
            tells whether the stopping rule was met before the cap.
        """
        cfg = self.config
        cap = _require_positive("max_samples", max_samples, cfg.max_samples)
        min_samples = min(cfg.min_samples, cap)
        sampler = sampler or HemisphereSampler(cfg.convergence_seed)
        threshold = cfg.energy_threshold
        sigmas = cfg.confidence_sigmas
        normal = REFERENCE_NORMAL

        wi = sampler.sample()
        total = 0.0
        total_sq = 0.0
        estimator = 0.0
        std_error = 0.0
        previous: float | None = None
        stable = 0
        converged = False
        failed_at: int | None = None
        taken = 0

        for k in range(1, cap + 1):
            wo = sampler.sample_uniform(normal)
            cos_theta = dot(wo, normal)
            value = model.f(wi, wo).to_scalar() * cos_theta / UNIFORM_HEMISPHERE_PDF
            total += value
            total_sq += value * value
            estimator = total / k
            if k > 1:
                variance = max(0.0, (total_sq - k * estimator * estimator) / (k - 1))
                std_error = math.sqrt(variance / k)
            taken = k

            if cfg.record_samples:
                self.sink.record(
                    "energy.sample",
                    model=model.name,
                    incoming=0,
                    sample=k - 1,
                    cos_theta=cos_theta,
                    value=value,
                    estimator=estimator,
                )

            if k >= min_samples and estimator - sigmas * std_error > threshold:
                failed_at = k
                break

            if previous is not None and abs(estimator - previous) < cfg.convergence_tolerance:
                stable += 1
            else:
                stable = 0
            previous = estimator

            if k >= min_samples and stable >= cfg.convergence_window:
                converged = True
                break

        result = EnergyResult(
            passed=failed_at is None and estimator - sigmas * std_error <= threshold,
            mode=EnergyMode.CONVERGENCE,
            num_incoming=1,
            samples_per_incoming=taken,
            threshold=threshold,
            confidence_sigmas=sigmas,
            estimators=[estimator],
            standard_errors=[std_error],
            running_average=estimator,
            standard_error=std_error,
            samples_taken=taken,
            converged=converged,
            failed_at=failed_at,
        )
        self.sink.record(
            "energy.estimator",
            model=model.name,
            incoming=0,
            direction=_as_tuple(wi),
            estimator=estimator,
            standard_error=std_error,
            running_average=estimator,
        )
        if not result.passed:
            self.sink.record(
                "energy.violation",
                model=model.name,
                estimator=estimator,
                standard_error=std_error,
                threshold=threshold,
                samples=taken,
            )
        return self._energy_verdict(model, result)

    def _energy_verdict(self, model: BRDF, result: EnergyResult) -> EnergyResult:
        self.sink.record(
            "energy.verdict",
            model=model.name,
            mode=result.mode.value,
            passed=result.passed,
            estimator=result.running_average,
            samples=result.samples_taken,
            converged=result.converged,
        )
        return result

    # =========================================================================
    # Combined verdict
    # =========================================================================

    def is_physically_based(
        self,
        model: BRDF,
        num_incoming: int | None = None,
        samples_per_test: int | None = None,
        mode: EnergyMode | str | None = None,
        sampler: HemisphereSampler | None = None,
    ) -> VerificationResult:
        """Run reciprocity, then (if it passed) the selected energy check.

        Args:
            model: The BRDF to verify.
            num_incoming: Incoming directions per check (default from config).
            samples_per_test: Outgoing samples per incoming direction
                (default from config). Ignored by convergence mode.
            mode: Energy check to run (default ``config.mode``).
            sampler: Randomness source shared by both checks. When omitted
                each check uses its own fixed seed.

        Returns:
            The combined result; ``energy`` is None if reciprocity failed.
        """
        mode = EnergyMode(mode or self.config.mode)

        reciprocity = self.check_reciprocity(model, num_incoming, samples_per_test, sampler)
        energy: EnergyResult | None = None
        if reciprocity.passed:
            if mode is EnergyMode.CONVERGENCE:
                energy = self.check_energy_convergence(model, sampler)
            else:
                energy = self.check_energy_conservation(model, num_incoming, samples_per_test, sampler)

        result = VerificationResult(model.name, reciprocity, energy)
        violation = result.violation
        self.sink.record(
            "verdict",
            model=model.name,
            physically_based=result.physically_based,
            violation=violation.value if violation else None,
        )
        return result
