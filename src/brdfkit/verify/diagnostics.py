"""Diagnostic sinks for verifier records.

The verifier never logs through a process-wide logger. It writes structured
records (an event name plus keyword fields) to whatever sink it was given:

    NullSink     drop everything (default)
    MemorySink   keep records in a list, for tests and notebooks
    LoggingSink  forward to a ``logging.Logger``
    CSVSink      append one CSV row per record

Events written by the verifier:

    reciprocity.sample     one pair compared (only with record_samples)
    reciprocity.violation  first non-reciprocal pair
    reciprocity.verdict    check finished
    energy.sample          one Monte Carlo sample (only with record_samples)
    energy.estimator       estimator for one incoming direction
    energy.violation       an estimator exceeded the threshold by more
                           than confidence_sigmas standard errors
    energy.verdict         check finished
    verdict                overall result of is_physically_based
"""

from __future__ import annotations

import csv
import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, TextIO


class DiagnosticSink(Protocol):
    """Receiver of structured verifier records."""

    def record(self, event: str, **fields: Any) -> None: ...


class NullSink:
    """Sink that discards every record."""

    def record(self, event: str, **fields: Any) -> None:
        pass


@dataclass(frozen=True)
class DiagnosticRecord:
    event: str
    fields: dict[str, Any]


@dataclass
class MemorySink:
    """Sink that keeps every record in memory."""

    records: list[DiagnosticRecord] = field(default_factory=list)

    def record(self, event: str, **fields: Any) -> None:
        self.records.append(DiagnosticRecord(event, dict(fields)))

    def events(self, event: str) -> list[DiagnosticRecord]:
        """Records with the given event name, in order."""
        return [r for r in self.records if r.event == event]

    def clear(self) -> None:
        self.records.clear()


class LoggingSink:
    """Sink that forwards records to a standard library logger.

    Violations are logged at WARNING, verdicts at INFO, and per-sample or
    per-estimator records at DEBUG. The record's fields are attached as
    ``extra={"event": ..., "fields": ...}`` for structured handlers.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("brdfkit.verify")

    @staticmethod
    def _level(event: str) -> int:
        if event.endswith("violation"):
            return logging.WARNING
        if event.endswith("verdict"):
            return logging.INFO
        return logging.DEBUG

    def record(self, event: str, **fields: Any) -> None:
        level = self._level(event)
        if not self.logger.isEnabledFor(level):
            return
        text = " ".join(f"{k}={v}" for k, v in fields.items())
        self.logger.log(level, "%s %s", event, text, extra={"event": event, "fields": fields})


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return str(value)


@dataclass
class CSVSink:
    """Sink that writes one CSV row per record.

    Columns are ``event``, ``model`` and ``fields`` (the remaining fields as a
    JSON object).
    """

    path: Path
    _writer: csv.DictWriter[str] | None = field(init=False, default=None)
    _file: TextIO | None = field(init=False, default=None)
    _lock: threading.Lock = field(init=False, default_factory=threading.Lock)

    FIELDNAMES = ("event", "model", "fields")

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.path.open("w", newline="")
        self._writer = csv.DictWriter(self._file, fieldnames=list(self.FIELDNAMES))
        self._writer.writeheader()

    def record(self, event: str, **fields: Any) -> None:
        assert self._writer is not None and self._file is not None
        model = fields.pop("model", "")
        payload = {k: _jsonable(v) for k, v in fields.items()}
        row = {"event": event, "model": model, "fields": json.dumps(payload)}
        # Records may arrive from several verify_many workers
        with self._lock:
            self._writer.writerow(row)
            self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None

    def __enter__(self) -> CSVSink:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
