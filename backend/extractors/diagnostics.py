"""
Diagnostics Module
Sinks that receive trace and error notes from the transaction extractor.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class DiagnosticEntry:
    """A single diagnostic note."""
    level: str
    message: str
    fields: dict[str, Any] = field(default_factory=dict)


class DiagnosticSink:
    """
    Base diagnostic collaborator.

    Subclasses override record(); the level helpers route through it.
    """

    def record(self, level: str, message: str, **fields: Any) -> None:
        raise NotImplementedError

    def debug(self, message: str, **fields: Any) -> None:
        self.record("debug", message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self.record("info", message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self.record("warning", message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self.record("error", message, **fields)


class LoggingDiagnosticSink(DiagnosticSink):
    """Forwards diagnostics to a standard library logger."""

    _LEVELS = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("extractors.regex_extractor")

    def record(self, level: str, message: str, **fields: Any) -> None:
        if fields:
            details = ", ".join(f"{key}={value}" for key, value in fields.items())
            message = f"{message} ({details})"
        self.logger.log(self._LEVELS.get(level, logging.INFO), message)


class MemoryDiagnosticSink(DiagnosticSink):
    """Keeps diagnostics in memory, mainly for tests."""

    def __init__(self):
        self.entries: list[DiagnosticEntry] = []

    def record(self, level: str, message: str, **fields: Any) -> None:
        self.entries.append(DiagnosticEntry(level, message, dict(fields)))

    def at_level(self, level: str) -> list[DiagnosticEntry]:
        """Return entries recorded at the given level."""
        return [entry for entry in self.entries if entry.level == level]

    def clear(self) -> None:
        self.entries.clear()
