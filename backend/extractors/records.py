"""
Record types produced by transaction extraction.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from .sms_rules import TransactionType, format_amount_display


class MalformedFieldError(ValueError):
    """A matched field (amount, date) could not be converted."""
    pass


@dataclass(frozen=True)
class TransactionRecord:
    """A transaction recognized in a notification message."""
    amount: Decimal
    merchant: str
    date: str
    transaction_type: TransactionType = TransactionType.DEBIT
    source: str = "you_spent"
    upi_id: Optional[str] = None
    bank: Optional[str] = None
    category: Optional[str] = None

    @property
    def amount_display(self) -> str:
        return format_amount_display(self.amount, self.transaction_type)

    @property
    def month(self) -> str:
        """YYYY-MM part of the ISO date."""
        return self.date[:7]

    def to_dict(self) -> dict:
        """Convert record to a JSON-friendly dictionary."""
        data = asdict(self)
        data["amount"] = f"{self.amount:.2f}"
        data["amount_display"] = self.amount_display
        data["transaction_type"] = self.transaction_type.value
        return data

    def __repr__(self) -> str:
        return (
            f"TransactionRecord(date={self.date}, merchant={self.merchant[:30]!r}, "
            f"amount={self.amount_display}, source={self.source})"
        )


class ExtractionStatus(Enum):
    """Outcome of one extraction call."""
    MATCH = "match"
    NO_MATCH = "no_match"
    FAULT = "fault"


@dataclass(frozen=True)
class ExtractionResult:
    """
    Typed extraction outcome.

    Distinguishes "nothing to extract" from "the matching engine failed";
    record is set only for MATCH and error only for FAULT.
    """
    status: ExtractionStatus
    record: Optional[TransactionRecord] = None
    error: Optional[str] = None

    @classmethod
    def match(cls, record: TransactionRecord) -> "ExtractionResult":
        return cls(ExtractionStatus.MATCH, record=record)

    @classmethod
    def no_match(cls) -> "ExtractionResult":
        return cls(ExtractionStatus.NO_MATCH)

    @classmethod
    def fault(cls, error: str) -> "ExtractionResult":
        return cls(ExtractionStatus.FAULT, error=error)

    @property
    def matched(self) -> bool:
        return self.status == ExtractionStatus.MATCH

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "record": self.record.to_dict() if self.record else None,
            "error": self.error,
        }
