"""
Regex Extractor Module
Recognizes transaction notifications in raw message text using the
patterns of a PatternRegistry. Extraction never raises: callers get a
record, "no match", or a typed fault result.
"""

import logging
from datetime import date
from typing import Optional

from config import config
from .diagnostics import DiagnosticSink, LoggingDiagnosticSink
from .patterns import PatternRegistry, default_registry
from .records import (
    ExtractionResult,
    ExtractionStatus,
    MalformedFieldError,
    TransactionRecord,
)

logger = logging.getLogger(__name__)


class TransactionExtractor:
    """
    Extracts a single transaction from one message.

    Holds no per-call state, so one instance may serve concurrent callers.
    """

    def __init__(
        self,
        registry: Optional[PatternRegistry] = None,
        diagnostics: Optional[DiagnosticSink] = None,
        large_message_length: Optional[int] = None
    ):
        """
        Initialize extractor.

        Args:
            registry: Patterns to try; defaults to the "You spent $..." pattern only
            diagnostics: Sink for trace/error notes; defaults to this module's logger
            large_message_length: Messages longer than this get a warning
                diagnostic; they are still matched in full
        """
        self.registry = registry if registry is not None else default_registry()
        self.diagnostics = diagnostics if diagnostics is not None else LoggingDiagnosticSink(logger)
        self.large_message_length = (
            config.LARGE_MESSAGE_LENGTH if large_message_length is None else large_message_length
        )

    def extract(self, text: str, received_on: Optional[date] = None) -> Optional[TransactionRecord]:
        """
        Extract a transaction record from message text.

        Args:
            text: Raw message body
            received_on: Date the message arrived; used by patterns whose
                messages carry no date of their own

        Returns:
            TransactionRecord on success, None otherwise
        """
        return self.extract_result(text, received_on=received_on).record

    def extract_result(self, text: str, received_on: Optional[date] = None) -> ExtractionResult:
        """
        Extract a transaction and report how the attempt ended.

        Patterns are tried in registry order and the first record wins. A
        pattern that faults does not stop the remaining ones; the result is
        FAULT only when nothing matched and at least one pattern faulted.
        """
        if not isinstance(text, str):
            self.diagnostics.warning("Ignoring non-text message", input_type=type(text).__name__)
            return ExtractionResult.no_match()

        if len(text) > self.large_message_length:
            self.diagnostics.warning(
                "Unusually large message",
                length=len(text),
                threshold=self.large_message_length
            )

        first_error = None

        for pattern in self.registry:
            try:
                record = pattern.try_extract(text, received_on=received_on)
            except MalformedFieldError as e:
                self.diagnostics.warning("Matched text rejected", pattern=pattern.name, reason=str(e))
                continue
            except Exception as e:
                error = f"{type(e).__name__}: {e}"
                self.diagnostics.error("Error parsing message", pattern=pattern.name, error=error)
                if first_error is None:
                    first_error = error
                continue

            if record is not None:
                self.diagnostics.info(
                    "Transaction extracted",
                    amount=str(record.amount),
                    merchant=record.merchant,
                    date=record.date,
                    pattern=pattern.name
                )
                return ExtractionResult.match(record)

        if first_error is not None:
            return ExtractionResult.fault(first_error)

        return ExtractionResult.no_match()


def extract_transaction(text: str, received_on: Optional[date] = None) -> Optional[TransactionRecord]:
    """
    Convenience function to extract a transaction with the default pattern.

    Args:
        text: Message body

    Returns:
        TransactionRecord or None
    """
    extractor = TransactionExtractor()
    return extractor.extract(text, received_on=received_on)


__all__ = [
    'ExtractionResult',
    'ExtractionStatus',
    'TransactionExtractor',
    'TransactionRecord',
    'extract_transaction',
]
