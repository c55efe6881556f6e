"""RGB spectrum value type.

A Spectrum holds three floating-point channels (r, g, b). Arithmetic is done
in place and never clamps; the [0, 1] range is only checked when ``validate()``
is called, which model constructors do for every user-supplied reflectivity.

Equality is exact per channel. The reciprocity check relies on this, so no
tolerance is applied anywhere in ``__eq__``.

Example:
    >>> s = Spectrum(0.3, 0.6, 0.9)
    >>> s.to_scalar()
    0.6
    >>> Spectrum.parse(str(s)) == s
    True
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

import numpy as np
import numpy.typing as npt

from brdfkit.errors import InvalidParameterError, InvalidSpectrumError, MissingPropertyError


class Spectrum:
    """Mutable RGB triple with in-place arithmetic.

    Attributes:
        r: Red channel.
        g: Green channel.
        b: Blue channel.
    """

    __slots__ = ("r", "g", "b")

    def __init__(self, r: float = 0.0, g: float = 0.0, b: float = 0.0) -> None:
        self.r = float(r)
        self.g = float(g)
        self.b = float(b)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> Spectrum:
        """Build a Spectrum from the first three entries of a sequence.

        Raises:
            MissingPropertyError: If fewer than three values are given.
            InvalidParameterError: If a value is not numeric.
        """
        if len(values) < 3:
            raise MissingPropertyError(
                f"Spectrum needs 3 channels, got {len(values)}: {list(values)!r}"
            )
        try:
            return cls(float(values[0]), float(values[1]), float(values[2]))
        except (TypeError, ValueError) as e:
            raise InvalidParameterError(f"Spectrum channels must be numeric: {list(values)!r}") from e

    @classmethod
    def parse(cls, text: str) -> Spectrum:
        """Parse the ``"r,g,b"`` form produced by ``str()``."""
        return cls.from_sequence([part.strip() for part in text.split(",")])

    # =========================================================================
    # In-place arithmetic
    # =========================================================================

    def mul(self, scalar: float) -> Spectrum:
        """Multiply every channel by ``scalar``."""
        self.r *= scalar
        self.g *= scalar
        self.b *= scalar
        return self

    def div(self, scalar: float) -> Spectrum:
        """Divide every channel by ``scalar``."""
        self.r /= scalar
        self.g /= scalar
        self.b /= scalar
        return self

    def add(self, other: Spectrum | float) -> Spectrum:
        """Add a scalar to every channel, or another Spectrum channel-wise."""
        if isinstance(other, Spectrum):
            self.r += other.r
            self.g += other.g
            self.b += other.b
        else:
            self.r += other
            self.g += other
            self.b += other
        return self

    def copy(self) -> Spectrum:
        """Return an independent copy."""
        return Spectrum(self.r, self.g, self.b)

    # =========================================================================
    # Validation and reduction
    # =========================================================================

    def is_valid(self) -> bool:
        """Return True iff every channel lies in [0, 1]."""
        return all(0.0 <= c <= 1.0 for c in self)

    def validate(self) -> None:
        """Raise if any channel lies outside [0, 1].

        Raises:
            InvalidSpectrumError: If ``is_valid()`` is False.
        """
        if not self.is_valid():
            raise InvalidSpectrumError(f"Spectrum is invalid: {self}")

    def to_scalar(self) -> float:
        """Average of the three channels, used as a single energy figure."""
        return (self.r + self.g + self.b) / 3

    def to_list(self) -> list[float]:
        return [self.r, self.g, self.b]

    def as_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.r, self.g, self.b], dtype=np.float64)

    def __iter__(self) -> Iterator[float]:
        yield self.r
        yield self.g
        yield self.b

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Spectrum):
            return NotImplemented
        return self.r == other.r and self.g == other.g and self.b == other.b

    # Mutable value type
    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return f"{self.r!r},{self.g!r},{self.b!r}"

    def __repr__(self) -> str:
        return f"Spectrum({self.r!r}, {self.g!r}, {self.b!r})"
