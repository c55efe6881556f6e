"""Library of named reflectance models loaded from definition files.

The BRDFLibrary keeps every model under its alias together with the
definition it was built from. Definitions are loaded in batches; a
definition that fails to build is logged and recorded in ``errors`` while
the rest of the batch is registered.

Simple definitions are registered before composite ones. A composite
component that names another alias is built afresh from that alias's
definition, so two composites never share a child instance. Alias
references that loop back on themselves raise CyclicDefinitionError for the
definition being built.

Example:
    >>> library = BRDFLibrary(LibraryConfig(definitions_dir=Path("definitions")))
    >>> library.init()
    >>> library.aliases()
    ['Chalk', 'Plastic', ...]
    >>> plastic = library.get("Plastic")
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from brdfkit.config import EnergyMode, LibraryConfig
from brdfkit.errors import BRDFError, CyclicDefinitionError, DefinitionFormatError
from brdfkit.library.definitions import COMPOSITE, dumps_definition, parse_definition, to_definition
from brdfkit.materials import BRDF
from brdfkit.verify.parallel import verify_many
from brdfkit.verify.results import VerificationResult
from brdfkit.verify.verifier import PlausibilityVerifier

LOGGER = logging.getLogger(__name__)


class BRDFLibrary:
    """Named reflectance models and their definitions.

    Attributes:
        config: Where definition folders live.
        errors: Load failures, keyed by alias (or file path when the file
            could not be read), mapped to the error message.
    """

    def __init__(self, config: LibraryConfig | None = None) -> None:
        self.config = config or LibraryConfig()
        self.errors: dict[str, str] = {}
        self._models: dict[str, BRDF] = {}
        self._definitions: dict[str, dict[str, Any]] = {}

    # =========================================================================
    # Lookup
    # =========================================================================

    def get(self, alias: str) -> BRDF:
        """Return the model registered as ``alias``.

        Raises:
            KeyError: If no model has that alias.
        """
        try:
            return self._models[alias]
        except KeyError:
            raise KeyError(f"No BRDF registered as {alias!r}") from None

    def aliases(self) -> list[str]:
        """Registered aliases, sorted case-insensitively."""
        return sorted(self._models, key=str.lower)

    def models(self) -> dict[str, BRDF]:
        return {alias: self._models[alias] for alias in self.aliases()}

    def __contains__(self, alias: object) -> bool:
        return alias in self._models

    def __len__(self) -> int:
        return len(self._models)

    def definition(self, alias: str) -> dict[str, Any]:
        """The definition of ``alias``, as loaded or derived from the model."""
        if alias in self._definitions:
            return self._definitions[alias]
        return to_definition(alias, self.get(alias))

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, alias: str, model: BRDF) -> None:
        """Register an already constructed model, replacing any previous one."""
        if not isinstance(model, BRDF):
            raise TypeError(f"Expected a BRDF, got {type(model).__name__}")
        if alias in self._models:
            LOGGER.info("Replacing BRDF %r", alias)
        self._models[alias] = model
        self._definitions[alias] = to_definition(alias, model)
        self.errors.pop(alias, None)

    def load_definitions(self, definitions: Iterable[Mapping[str, Any]]) -> list[str]:
        """Build and register a batch of definition mappings.

        Args:
            definitions: Parsed definitions. Each must carry an ``alias``.

        Returns:
            Aliases registered from this batch, in registration order.
        """
        pending: dict[str, dict[str, Any]] = {}
        for mapping in definitions:
            alias = mapping.get("alias") if isinstance(mapping, Mapping) else None
            if not isinstance(alias, str) or not alias:
                self._record_error("<unnamed>", DefinitionFormatError("A definition needs a non-empty string 'alias'"))
                continue
            if alias in pending:
                LOGGER.warning("Duplicate definition for %r, using the last one", alias)
            pending[alias] = dict(mapping)

        # Definitions in this batch shadow earlier ones for alias resolution
        self._definitions.update(pending)

        # Simple before composite; sorted() is stable so file order is kept otherwise
        ordered = sorted(pending.items(), key=lambda item: item[1].get("type") == COMPOSITE)

        registered = []
        for alias, mapping in ordered:
            try:
                _, model = parse_definition(mapping, self._resolver((alias,)))
            except BRDFError as e:
                self._definitions.pop(alias, None)
                self._models.pop(alias, None)
                self._record_error(alias, e)
                continue
            self._models[alias] = model
            self.errors.pop(alias, None)
            registered.append(alias)
            LOGGER.info("BRDF registered: %s", alias)
        return registered

    def _resolver(self, building: tuple[str, ...]):
        def resolve(name: str) -> BRDF | None:
            if name in building:
                chain = " -> ".join((*building, name))
                raise CyclicDefinitionError(f"Cyclic alias reference: {chain}")
            mapping = self._definitions.get(name)
            if mapping is not None:
                _, model = parse_definition(mapping, self._resolver((*building, name)))
                return model
            return self._models.get(name)

        return resolve

    def _record_error(self, key: str, error: Exception) -> None:
        LOGGER.error("Invalid BRDF definition [%s]: %s", key, error)
        self.errors[key] = str(error)

    # =========================================================================
    # Files
    # =========================================================================

    def load_directory(self, path: str | Path) -> list[str]:
        """Load every ``*.json`` definition in a directory.

        Files are read in name order. A file that cannot be read or parsed is
        recorded in ``errors`` under its path.

        Returns:
            Aliases registered from the directory.

        Raises:
            FileNotFoundError: If ``path`` is not a directory.
        """
        path = Path(path)
        if not path.is_dir():
            raise FileNotFoundError(f"No BRDF definitions found at path: {path}")

        definitions = []
        for file in sorted(path.glob("*.json")):
            try:
                definitions.append(self._read_definition(file))
            except DefinitionFormatError as e:
                self._record_error(str(file), e)
        LOGGER.debug("Read %d definition(s) from %s", len(definitions), path)
        return self.load_definitions(definitions)

    @staticmethod
    def _read_definition(file: Path) -> dict[str, Any]:
        try:
            data = json.loads(file.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DefinitionFormatError(f"Cannot read {file.name}: {e}") from e
        if not isinstance(data, dict):
            raise DefinitionFormatError(f"{file.name} does not contain a JSON object")
        return data

    def save(self, alias: str, path: str | Path) -> Path:
        """Write the definition of ``alias`` as JSON.

        Args:
            alias: Registered alias.
            path: Target file, or a directory to write ``<alias>.json`` into.

        Returns:
            The file written.
        """
        model = self.get(alias)
        path = Path(path)
        if path.is_dir():
            path = path / f"{alias}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dumps_definition(alias, model) + "\n", encoding="utf-8")
        LOGGER.info("Saved BRDF %r to %s", alias, path)
        return path

    # =========================================================================
    # Startup and verification
    # =========================================================================

    def init(self, verifier: PlausibilityVerifier | None = None) -> dict[str, VerificationResult]:
        """Load the configured folders, then verify every model if enabled.

        A missing folder is recorded in ``errors`` and skipped.

        Returns:
            Verification results keyed by alias (empty if verification is
            disabled).
        """
        for folder in self.config.folders:
            directory = self.config.definitions_dir / folder
            try:
                self.load_directory(directory)
            except FileNotFoundError as e:
                self._record_error(str(directory), e)
        if not self.config.verify_on_load:
            return {}
        return self.verify_all(verifier)

    def verify_all(
        self,
        verifier: PlausibilityVerifier | None = None,
        *,
        num_incoming: int | None = None,
        samples_per_test: int | None = None,
        mode: EnergyMode | str | None = None,
        max_workers: int | None = None,
    ) -> dict[str, VerificationResult]:
        """Verify every registered model and log the verdicts.

        Returns:
            Results keyed by alias, in ``aliases()`` order.
        """
        results = verify_many(
            self.models(),
            verifier,
            num_incoming=num_incoming,
            samples_per_test=samples_per_test,
            mode=mode,
            max_workers=max_workers,
        )
        for alias, result in results.items():
            if result.physically_based:
                LOGGER.info("[%s] is physically plausible.", alias)
            else:
                LOGGER.warning("[%s] is not physically based (%s).", alias, result.violation.value)
        return results
