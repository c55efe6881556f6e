"""Physical-plausibility verification of reflectance models."""

from brdfkit.verify.diagnostics import (
    CSVSink,
    DiagnosticRecord,
    DiagnosticSink,
    LoggingSink,
    MemorySink,
    NullSink,
)
from brdfkit.verify.parallel import verify_many
from brdfkit.verify.results import (
    EnergyResult,
    ReciprocityFailure,
    ReciprocityResult,
    VerificationResult,
    Violation,
)
from brdfkit.verify.verifier import PlausibilityVerifier

__all__ = [
    "CSVSink",
    "DiagnosticRecord",
    "DiagnosticSink",
    "EnergyResult",
    "LoggingSink",
    "MemorySink",
    "NullSink",
    "PlausibilityVerifier",
    "ReciprocityFailure",
    "ReciprocityResult",
    "VerificationResult",
    "Violation",
    "verify_many",
]
