"""Unit tests for the plausibility verifier.

Tests cover:
- Reciprocity check (pass, first-pair failure, determinism)
- Fixed-sample energy conservation (Lambertian bounds, over-unit albedo,
  Phong violations, the one-sided bound)
- Convergence-mode energy conservation (termination, verdict)
- Combined verdict and violation reporting
- Parallel verification of many models
"""

import math
from dataclasses import dataclass
from typing import Any

import numpy as np
import pytest

from brdfkit.config import EnergyMode, VerifierConfig
from brdfkit.core.sampler import HemisphereSampler
from brdfkit.core.spectrum import Spectrum
from brdfkit.core.vector import Vec3, mirror_direction
from brdfkit.materials import (
    BRDF,
    CompositeBRDF,
    LambertianBRDF,
    Parameter,
    PhongDiffuseBRDF,
    PhongSpecularBRDF,
    ShinyDiffuseBRDF,
)
from brdfkit.verify import MemorySink, PlausibilityVerifier, Violation, verify_many


@dataclass(frozen=True)
class SkewedBRDF(BRDF):
    """Deliberately non-reciprocal model: depends on wi only."""

    VARIANT_NAME = "SkewedBRDF"

    def _evaluate(self, wi: Vec3, wo: Vec3) -> Spectrum:
        v = float(wi[0]) / math.pi
        return Spectrum(v, v, v)

    def sample_f(self, wi: Vec3, normal: Vec3) -> tuple[Vec3, Spectrum]:
        return mirror_direction(wi, normal), Spectrum()

    def evaluate_many(self, wi: Vec3, wo: np.ndarray) -> np.ndarray:
        v = float(wi[0]) / math.pi
        return np.full((len(wo), 3), v)

    def get_parameters(self) -> list[Parameter]:
        return []

    def serialize(self) -> dict[str, Any]:
        return {}


@pytest.fixture
def verifier():
    return PlausibilityVerifier()


def white_lambertian():
    return LambertianBRDF(Spectrum(1.0, 1.0, 1.0))


class TestReciprocity:
    """Tests for check_reciprocity."""

    @pytest.mark.parametrize(
        "model",
        [
            LambertianBRDF(Spectrum(0.5, 0.5, 0.5)),
            PhongDiffuseBRDF(Spectrum(0.8, 0.3, 0.3)),
            PhongSpecularBRDF(Spectrum(0.2, 0.2, 0.2), 32.0),
            ShinyDiffuseBRDF(Spectrum(0.4, 0.4, 0.6), 16.0),
        ],
        ids=["lambertian", "phong-diffuse", "phong-specular", "shiny-diffuse"],
    )
    def test_variants_are_reciprocal(self, verifier, model):
        """Test every built-in variant passes reciprocity."""
        result = verifier.check_reciprocity(model, 2, 512)
        assert result.passed
        assert result.pairs_checked == 1024
        assert result.violation is None
        assert result.failure is None

    def test_non_reciprocal_fails_at_first_pair(self, verifier):
        """Test a direction-skewed model fails on the very first pair."""
        result = verifier.check_reciprocity(SkewedBRDF(), 1, 1024)
        assert not result.passed
        assert result.violation is Violation.RECIPROCITY
        assert result.pairs_checked == 1
        assert result.failure.incoming_index == 0
        assert result.failure.sample_index == 0
        assert result.failure.forward != result.failure.backward

    def test_default_counts_from_config(self, verifier):
        """Test the defaults are one incoming direction and 4^5 samples."""
        result = verifier.check_reciprocity(white_lambertian())
        assert result.num_incoming == 1
        assert result.samples_per_incoming == 1024

    def test_zero_count_raises(self, verifier):
        """Test non-positive counts are rejected."""
        with pytest.raises(ValueError):
            verifier.check_reciprocity(white_lambertian(), 0, 10)
        with pytest.raises(ValueError):
            verifier.check_reciprocity(white_lambertian(), 1, 0)

    def test_records_violation(self):
        """Test the violation is written to the sink."""
        sink = MemorySink()
        PlausibilityVerifier(sink=sink).check_reciprocity(SkewedBRDF(), 1, 4)
        violations = sink.events("reciprocity.violation")
        assert len(violations) == 1
        assert violations[0].fields["model"] == "SkewedBRDF"
        assert len(sink.events("reciprocity.verdict")) == 1


class TestEnergyConservation:
    """Tests for the fixed-sample energy check."""

    def test_half_albedo_lambertian_passes(self, verifier):
        """Test Lambertian 0.5 with 1 x 1024 samples stays below 1."""
        result = verifier.check_energy_conservation(LambertianBRDF(Spectrum(0.5, 0.5, 0.5)), 1, 1024)
        assert result.passed
        assert result.estimator <= 1.0
        assert result.estimator == pytest.approx(0.5, abs=0.05)
        assert result.mode is EnergyMode.FIXED

    def test_white_lambertian_stays_within_one(self, verifier):
        """Test unit-albedo Lambertian with many samples stays <= 1."""
        result = verifier.check_energy_conservation(white_lambertian(), 1, 65536)
        assert result.threshold == 1.0
        assert result.passed
        assert result.estimator <= 1.0
        assert result.lower_bound <= 1.0
        # Per-sample values are 2 cos(theta) with cos(theta) uniform on [0, 1)
        assert result.standard_error == pytest.approx(1.0 / math.sqrt(3.0 * 65536), rel=0.05)

    def test_albedo_just_above_one_fails(self, verifier):
        """Test a model reflecting 4% more energy than it receives is rejected."""
        hot = CompositeBRDF("Hot", [(white_lambertian(), 1.04)])
        result = verifier.check_energy_conservation(hot, 1, 65536)
        assert not result.passed
        assert result.violation is Violation.ENERGY_CONSERVATION
        assert result.failed_at == 0
        assert result.estimator == pytest.approx(1.04, abs=0.01)
        assert result.lower_bound > 1.0

    def test_albedo_just_above_one_is_not_physically_based(self, verifier):
        """Test the combined verdict rejects an albedo of 1.04."""
        hot = CompositeBRDF("Hot", [(white_lambertian(), 1.04)])
        result = verifier.is_physically_based(hot, 1, 65536)
        assert result.reciprocity.passed
        assert not result.physically_based
        assert result.violation is Violation.ENERGY_CONSERVATION

    def test_estimator_scales_with_albedo(self, verifier):
        """Test the same samples scale linearly with reflectivity."""
        low = verifier.check_energy_conservation(LambertianBRDF(Spectrum(0.25, 0.25, 0.25)), 2, 2048)
        high = verifier.check_energy_conservation(LambertianBRDF(Spectrum(0.5, 0.5, 0.5)), 2, 2048)
        assert high.estimator == pytest.approx(2.0 * low.estimator)

    def test_constant_specular_fails(self, verifier):
        """Test Phong specular with exponent 0 and white reflectivity fails."""
        result = verifier.check_energy_conservation(PhongSpecularBRDF(Spectrum(1.0, 1.0, 1.0), 0.0), 1, 1024)
        assert not result.passed
        assert result.violation is Violation.ENERGY_CONSERVATION
        assert result.failed_at == 0
        # f = 1 everywhere integrates to pi
        assert result.max_estimator == pytest.approx(math.pi, rel=0.1)

    def test_failure_stops_at_first_direction(self, verifier):
        """Test the check stops at the first failing incoming direction."""
        result = verifier.check_energy_conservation(PhongSpecularBRDF(Spectrum(1.0, 1.0, 1.0), 0.0), 4, 256)
        assert len(result.estimators) == 1
        assert result.samples_taken == 256

    def test_sharp_specular_passes(self, verifier):
        """Test a dim, sharp specular lobe conserves energy."""
        result = verifier.check_energy_conservation(PhongSpecularBRDF(Spectrum(0.2, 0.2, 0.2), 32.0), 4, 1024)
        assert result.passed
        assert len(result.estimators) == 4
        assert result.samples_taken == 4096

    def test_running_average_and_variance(self, verifier):
        """Test the Welford statistics match the estimator list."""
        result = verifier.check_energy_conservation(LambertianBRDF(Spectrum(0.5, 0.5, 0.5)), 5, 256)
        assert result.running_average == pytest.approx(float(np.mean(result.estimators)))
        assert result.running_variance == pytest.approx(float(np.var(result.estimators, ddof=1)))

    def test_deterministic(self, verifier):
        """Test repeated checks give identical estimators."""
        model = ShinyDiffuseBRDF(Spectrum(0.4, 0.4, 0.6), 16.0)
        a = verifier.check_energy_conservation(model, 2, 512)
        b = verifier.check_energy_conservation(model, 2, 512)
        assert a.estimators == b.estimators

    def test_explicit_sampler(self, verifier):
        """Test a caller supplied sampler is used instead of the fixed seed."""
        model = LambertianBRDF(Spectrum(0.5, 0.5, 0.5))
        a = verifier.check_energy_conservation(model, 1, 256, sampler=HemisphereSampler(1))
        b = verifier.check_energy_conservation(model, 1, 256, sampler=HemisphereSampler(2))
        assert a.estimators != b.estimators

    def test_default_threshold_is_one(self, verifier):
        """Test the default comparison is against exactly 1."""
        result = verifier.check_energy_conservation(LambertianBRDF(Spectrum(0.5, 0.5, 0.5)), 1, 1024)
        assert result.threshold == 1.0
        assert result.confidence_sigmas == 3.0
        assert result.passed

    def test_zero_sigmas_compares_raw_estimator(self):
        """Test confidence_sigmas = 0 fails white Lambertian on sampling noise alone."""
        verifier = PlausibilityVerifier(VerifierConfig(confidence_sigmas=0.0))
        result = verifier.check_energy_conservation(white_lambertian(), 1, 1024)
        assert result.estimator > 1.0
        assert not result.passed

    def test_tolerance_raises_threshold(self):
        """Test energy_tolerance is added to the threshold."""
        verifier = PlausibilityVerifier(VerifierConfig(energy_tolerance=0.5, confidence_sigmas=0.0))
        result = verifier.check_energy_conservation(white_lambertian(), 1, 1024)
        assert result.threshold == 1.5
        assert result.passed

    def test_records_estimators(self):
        """Test one estimator record per incoming direction."""
        sink = MemorySink()
        PlausibilityVerifier(sink=sink).check_energy_conservation(LambertianBRDF(Spectrum(0.5, 0.5, 0.5)), 3, 128)
        assert len(sink.events("energy.estimator")) == 3
        assert len(sink.events("energy.sample")) == 0

    def test_records_samples_when_enabled(self):
        """Test record_samples emits one record per sample."""
        sink = MemorySink()
        verifier = PlausibilityVerifier(VerifierConfig(record_samples=True), sink)
        verifier.check_energy_conservation(LambertianBRDF(Spectrum(0.5, 0.5, 0.5)), 1, 64)
        assert len(sink.events("energy.sample")) == 64


class TestEnergyConvergence:
    """Tests for convergence-mode energy checking."""

    def test_terminates_within_cap(self):
        """Test the loop never exceeds max_samples."""
        config = VerifierConfig(min_samples=16, max_samples=500, convergence_tolerance=0.0)
        result = PlausibilityVerifier(config).check_energy_convergence(LambertianBRDF(Spectrum(0.5, 0.5, 0.5)))
        assert result.samples_taken == 500
        assert result.converged is False
        assert result.mode is EnergyMode.CONVERGENCE

    def test_converges_for_lambertian(self):
        """Test a constant BRDF converges and passes."""
        config = VerifierConfig(convergence_tolerance=1e-3, convergence_window=16, min_samples=256)
        result = PlausibilityVerifier(config).check_energy_convergence(LambertianBRDF(Spectrum(0.5, 0.5, 0.5)))
        assert result.passed
        assert result.converged
        assert result.samples_taken <= config.max_samples
        assert result.estimator == pytest.approx(0.5, abs=0.1)

    def test_fails_fast_for_constant_specular(self):
        """Test a violating model fails as soon as min_samples is reached."""
        config = VerifierConfig(min_samples=64)
        result = PlausibilityVerifier(config).check_energy_convergence(PhongSpecularBRDF(Spectrum(1.0, 1.0, 1.0), 0.0))
        assert not result.passed
        assert result.failed_at == 64
        assert result.samples_taken == 64

    def test_max_samples_override(self):
        """Test the cap can be overridden per call."""
        config = VerifierConfig(min_samples=8, convergence_tolerance=0.0)
        result = PlausibilityVerifier(config).check_energy_convergence(LambertianBRDF(Spectrum(0.5, 0.5, 0.5)), max_samples=40)
        assert result.samples_taken == 40


class TestIsPhysicallyBased:
    """Tests for the combined verdict."""

    def test_plausible_model(self, verifier):
        """Test a valid Lambertian model is physically based."""
        result = verifier.is_physically_based(LambertianBRDF(Spectrum(0.5, 0.5, 0.5)))
        assert result.physically_based
        assert result.violation is None
        assert "physically plausible" in result.summary()

    def test_energy_violation(self, verifier):
        """Test the energy violation is reported."""
        result = verifier.is_physically_based(PhongSpecularBRDF(Spectrum(1.0, 1.0, 1.0), 0.0))
        assert not result.physically_based
        assert result.violation is Violation.ENERGY_CONSERVATION
        assert "not energy conserving" in result.summary()

    def test_reciprocity_violation_skips_energy(self, verifier):
        """Test energy is not checked once reciprocity failed."""
        result = verifier.is_physically_based(SkewedBRDF())
        assert result.violation is Violation.RECIPROCITY
        assert result.energy is None
        assert "reciprocity" in result.summary()

    def test_convergence_mode(self, verifier):
        """Test the convergence energy check can be selected."""
        result = verifier.is_physically_based(LambertianBRDF(Spectrum(0.5, 0.5, 0.5)), mode="convergence")
        assert result.physically_based
        assert result.energy.mode is EnergyMode.CONVERGENCE

    def test_composite_plausible(self, verifier):
        """Test a weighted diffuse plus specular composite passes."""
        plastic = CompositeBRDF(
            "Plastic",
            [
                (PhongDiffuseBRDF(Spectrum(0.8, 0.3, 0.3)), 0.7),
                (PhongSpecularBRDF(Spectrum(1.0, 1.0, 1.0), 32.0), 0.3),
            ],
        )
        result = verifier.is_physically_based(plastic, 2, 2048)
        assert result.physically_based
        assert result.model_name == "Plastic"

    def test_verdict_record(self):
        """Test the final verdict is recorded."""
        sink = MemorySink()
        PlausibilityVerifier(sink=sink).is_physically_based(PhongSpecularBRDF(Spectrum(1.0, 1.0, 1.0), 0.0))
        verdicts = sink.events("verdict")
        assert len(verdicts) == 1
        assert verdicts[0].fields["physically_based"] is False
        assert verdicts[0].fields["violation"] == "energy_conservation"


class TestVerifyMany:
    """Tests for parallel verification."""

    def test_results_keyed_in_input_order(self, verifier):
        """Test results are keyed by alias in input order."""
        models = {
            "Matte": LambertianBRDF(Spectrum(0.5, 0.5, 0.5)),
            "Overbright": PhongSpecularBRDF(Spectrum(1.0, 1.0, 1.0), 0.0),
            "Gloss": PhongSpecularBRDF(Spectrum(0.2, 0.2, 0.2), 32.0),
        }
        results = verify_many(models, verifier, max_workers=3)
        assert list(results) == ["Matte", "Overbright", "Gloss"]
        assert results["Matte"].physically_based
        assert not results["Overbright"].physically_based
        assert results["Gloss"].physically_based

    def test_parallel_matches_sequential(self, verifier):
        """Test threaded results equal sequential ones."""
        models = {
            "A": ShinyDiffuseBRDF(Spectrum(0.4, 0.4, 0.6), 16.0),
            "B": PhongSpecularBRDF(Spectrum(0.2, 0.2, 0.2), 8.0),
        }
        parallel = verify_many(models, verifier, max_workers=2)
        for alias, model in models.items():
            sequential = verifier.is_physically_based(model)
            assert parallel[alias].energy.estimators == sequential.energy.estimators

    def test_models_keyed_by_name(self, verifier):
        """Test an iterable of models is keyed by model name."""
        results = verify_many([LambertianBRDF(Spectrum(0.5, 0.5, 0.5))], verifier)
        assert list(results) == ["LambertianBRDF"]

    def test_empty(self, verifier):
        """Test no models gives no results."""
        assert verify_many({}, verifier) == {}

    def test_workers_in_fresh_process(self, run_fresh_python):
        """Test verify_many works when no kernel was compiled before the call."""
        script = (
            "from brdfkit.core.spectrum import Spectrum\n"
            "from brdfkit.materials import PhongSpecularBRDF, ShinyDiffuseBRDF\n"
            "from brdfkit.verify import verify_many\n"
            "models = {\n"
            "    'Gloss': PhongSpecularBRDF(Spectrum(0.2, 0.2, 0.2), 32.0),\n"
            "    'Shiny': ShinyDiffuseBRDF(Spectrum(0.4, 0.4, 0.6), 16.0),\n"
            "}\n"
            "results = verify_many(models, max_workers=2)\n"
            "print(all(r.physically_based for r in results.values()))\n"
        )
        assert run_fresh_python(script) == "True"

    def test_errors_propagate(self, verifier):
        """Test an exception in a task is raised to the caller."""
        with pytest.raises(ValueError):
            verify_many({"A": white_lambertian()}, verifier, num_incoming=0)
