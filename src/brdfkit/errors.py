"""Exceptions raised while building reflectance models.

Construction-time failures are exceptions; verification outcomes never are
(see ``brdfkit.verify.results``). Every error derives from ``BRDFError`` and
from the closest builtin, so callers may catch either.
"""


class BRDFError(Exception):
    """Base class for all brdfkit errors."""


class InvalidSpectrumError(BRDFError, ValueError):
    """A spectrum channel lies outside [0, 1] at validation time."""


class InvalidParameterError(BRDFError, ValueError):
    """A scalar model parameter is non-numeric or out of range."""


class MissingPropertyError(BRDFError, KeyError):
    """An expected definition field or array index is absent."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class UnknownVariantError(BRDFError, ValueError):
    """No known variant or alias matches the requested name."""


class CyclicDefinitionError(BRDFError, ValueError):
    """Alias references between definitions form a cycle."""


class DefinitionFormatError(BRDFError, ValueError):
    """A definition is not valid JSON or does not have the expected shape."""
