"""Configuration for verification, the model library and the lobe preview.

Settings are plain dataclasses. The verifier defaults are one incoming
direction, 4^5 outgoing samples and the fixed seeds 100 and 99.
They can be loaded from a TOML file:

    [verifier]
    num_incoming = 4
    samples_per_test = 4096
    mode = "fixed"            # or "convergence"
    energy_tolerance = 0.0
    confidence_sigmas = 3.0

    [library]
    definitions_dir = "definitions"
    folders = ["default", "custom"]

    [preview]
    resolution = 256
    tone_map = "reinhard"

Example:
    >>> settings = load_settings("brdfkit.toml")
    >>> settings.verifier.samples_per_test
    4096
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any


class EnergyMode(str, Enum):
    """Energy-conservation check to run after reciprocity."""

    FIXED = "fixed"
    CONVERGENCE = "convergence"


@dataclass
class VerifierConfig:
    """Sample counts, seeds and tolerances for the plausibility verifier.

    Attributes:
        num_incoming: Incoming directions per check.
        samples_per_test: Outgoing directions per incoming direction.
        mode: Energy-conservation mode used by ``is_physically_based``.
        energy_tolerance: Slack added to the threshold of 1. Zero keeps the
            physical bound.
        confidence_sigmas: Standard errors an estimator may lie above the
            threshold before it fails. An estimator passes when
            ``estimator - confidence_sigmas * standard_error`` is <= the
            threshold.
        reciprocity_seed: Seed for the reciprocity check's sampler.
        energy_seed: Seed for the fixed-sample energy check's sampler.
        convergence_seed: Seed for the convergence-mode sampler.
        convergence_tolerance: Largest per-sample change of the estimator
            still counted as stable.
        convergence_window: Consecutive stable samples needed to stop.
        min_samples: Samples taken before convergence mode may stop or fail.
        max_samples: Hard cap on convergence-mode samples.
        record_samples: Emit one diagnostic record per sample.
    """

    num_incoming: int = 1
    samples_per_test: int = 4**5
    mode: EnergyMode = EnergyMode.FIXED
    energy_tolerance: float = 0.0
    confidence_sigmas: float = 3.0
    reciprocity_seed: int = 100
    energy_seed: int = 99
    convergence_seed: int = 100
    convergence_tolerance: float = 1e-4
    convergence_window: int = 32
    min_samples: int = 128
    max_samples: int = 65536
    record_samples: bool = False

    def __post_init__(self) -> None:
        self.mode = EnergyMode(self.mode)
        self.validate()

    def validate(self) -> None:
        """Check ranges.

        Raises:
            ValueError: If a count is not positive, a tolerance is negative,
                or ``min_samples`` exceeds ``max_samples``.
        """
        for name in ("num_incoming", "samples_per_test", "convergence_window", "min_samples", "max_samples"):
            if int(getattr(self, name)) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")
        for name in ("energy_tolerance", "confidence_sigmas", "convergence_tolerance"):
            if float(getattr(self, name)) < 0.0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.min_samples > self.max_samples:
            raise ValueError(
                f"min_samples ({self.min_samples}) exceeds max_samples ({self.max_samples})"
            )

    @property
    def energy_threshold(self) -> float:
        return 1.0 + self.energy_tolerance


@dataclass
class LibraryConfig:
    """Where BRDF definition files live.

    Attributes:
        definitions_dir: Root directory of definition folders.
        folders: Sub-folders loaded by ``BRDFLibrary.init()``, in order.
        verify_on_load: Verify every model after ``init()``.
    """

    definitions_dir: Path = Path("definitions")
    folders: tuple[str, ...] = ("default", "custom")
    verify_on_load: bool = True

    def __post_init__(self) -> None:
        self.definitions_dir = Path(self.definitions_dir)
        self.folders = tuple(self.folders)


@dataclass
class PreviewConfig:
    """Lobe preview rendering options.

    Attributes:
        resolution: Output image width and height in pixels.
        incoming: Default incoming direction (normalised before use). The
            specular lobes mirror it about the reference normal as given, so a
            negative x component puts the highlight inside the rendered
            hemisphere.
        tone_map: "none", "reinhard" or "exposure".
        gamma: Display gamma.
        exposure: Exposure for the "exposure" tone map.
    """

    resolution: int = 256
    incoming: tuple[float, float, float] = (-1.0, 1.0, 0.0)
    tone_map: str = "reinhard"
    gamma: float = 2.2
    exposure: float = 1.0

    def __post_init__(self) -> None:
        if self.resolution < 1:
            raise ValueError(f"resolution must be >= 1, got {self.resolution}")
        if len(self.incoming) != 3:
            raise ValueError(f"incoming must have 3 components, got {self.incoming!r}")
        self.incoming = tuple(float(c) for c in self.incoming)


@dataclass
class Settings:
    """All configuration sections."""

    verifier: VerifierConfig = field(default_factory=VerifierConfig)
    library: LibraryConfig = field(default_factory=LibraryConfig)
    preview: PreviewConfig = field(default_factory=PreviewConfig)


def _section(cls: type, table: dict[str, Any], section: str) -> Any:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(table) - known)
    if unknown:
        raise ValueError(f"Unknown key(s) in [{section}]: {', '.join(unknown)}")
    return cls(**table)


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Build Settings from a parsed TOML document.

    Raises:
        ValueError: On unknown sections or keys, or invalid values.
    """
    sections = {"verifier": VerifierConfig, "library": LibraryConfig, "preview": PreviewConfig}
    unknown = sorted(set(data) - set(sections))
    if unknown:
        raise ValueError(f"Unknown configuration section(s): {', '.join(unknown)}")
    return Settings(
        **{name: _section(cls, data.get(name, {}), name) for name, cls in sections.items()}
    )


def load_settings(path: str | Path) -> Settings:
    """Load Settings from a TOML file.

    Relative ``library.definitions_dir`` values are resolved against the
    file's directory.
    """
    path = Path(path)
    with path.open("rb") as fh:
        data = tomllib.load(fh)
    settings = settings_from_dict(data)
    if not settings.library.definitions_dir.is_absolute():
        settings.library.definitions_dir = path.parent / settings.library.definitions_dir
    return settings
