"""
Record Validator Module
Validates extracted transaction records for correctness and completeness.
"""

import logging
import re
from datetime import date
from decimal import Decimal
from extractors.records import TransactionRecord
from extractors.sms_rules import TransactionType

logger = logging.getLogger(__name__)

ISO_DATE_PATTERN = re.compile(r'\d{4}-\d{2}-\d{2}', re.ASCII)


class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


class RecordValidator:
    """Validates transaction records."""

    def __init__(
        self,
        strict_mode: bool = False,
        allow_zero_amounts: bool = False,
        strict_dates: bool = False
    ):
        """
        Initialize validator with configurable settings.

        Args:
            strict_mode: If True, raise exceptions on invalid data.
                        If False, log warnings and skip invalid records.
            allow_zero_amounts: If True, allow records with a 0.00 amount.
            strict_dates: If True, dates must also be real calendar dates
                        (2025-02-30 is rejected). Otherwise only the
                        YYYY-MM-DD shape is checked.
        """
        self.strict_mode = strict_mode
        self.allow_zero_amounts = allow_zero_amounts
        self.strict_dates = strict_dates
        self.reset_stats()

    def validate_record(self, record: TransactionRecord) -> bool:
        """
        Validate a single record.

        Returns:
            True if valid, False if invalid

        Raises:
            ValidationError: If strict_mode is True and validation fails
        """
        self.validation_stats["total_validated"] += 1

        checks = (
            ("invalid_amount", self._validate_amount(record.amount), f"Invalid amount: {record.amount}"),
            ("invalid_merchant", self._validate_merchant(record.merchant), "Invalid merchant: empty"),
            ("invalid_date", self._validate_date(record.date), f"Invalid date: {record.date}"),
            ("invalid_type", isinstance(record.transaction_type, TransactionType),
             f"Invalid type: {record.transaction_type}"),
        )

        for stat_key, passed, msg in checks:
            if passed:
                continue
            self.validation_stats[stat_key] += 1
            self.validation_stats["invalid"] += 1
            if self.strict_mode:
                raise ValidationError(msg)
            logger.warning(f"{msg} in record: {record}")
            return False

        self.validation_stats["valid"] += 1
        return True

    def validate_records(self, records: list[TransactionRecord]) -> list[TransactionRecord]:
        """
        Validate a list of records.

        Returns:
            List of valid records (invalid ones filtered out)
        """
        valid_records = [record for record in records if self.validate_record(record)]

        logger.info(
            f"Validation complete: {self.validation_stats['valid']} valid, "
            f"{self.validation_stats['invalid']} invalid out of "
            f"{self.validation_stats['total_validated']} total"
        )

        return valid_records

    def _validate_amount(self, amount: Decimal) -> bool:
        """
        Amount must be a Decimal with exactly two places, non-negative,
        and non-zero unless allow_zero_amounts is set.
        """
        if not isinstance(amount, Decimal) or not amount.is_finite():
            return False

        if amount.as_tuple().exponent != -2:
            logger.debug(f"Amount {amount} does not have exactly two decimal places")
            return False

        if amount < 0:
            return False

        if amount == 0 and not self.allow_zero_amounts:
            logger.debug("Amount is zero (rejected - allow_zero_amounts=False)")
            return False

        return True

    def _validate_merchant(self, merchant: str) -> bool:
        return isinstance(merchant, str) and merchant != ""

    def _validate_date(self, date_str: str) -> bool:
        if not isinstance(date_str, str) or not ISO_DATE_PATTERN.fullmatch(date_str):
            return False

        if self.strict_dates:
            try:
                date.fromisoformat(date_str)
            except ValueError:
                return False

        return True

    def get_stats(self) -> dict:
        """Get validation statistics."""
        return self.validation_stats.copy()

    def reset_stats(self):
        """Reset validation statistics."""
        self.validation_stats = {
            "total_validated": 0,
            "valid": 0,
            "invalid": 0,
            "invalid_amount": 0,
            "invalid_merchant": 0,
            "invalid_date": 0,
            "invalid_type": 0
        }


def validate_records(
    records: list[TransactionRecord],
    strict_mode: bool = False,
    strict_dates: bool = False
) -> list[TransactionRecord]:
    """
    Convenience function to validate a list of records.

    Args:
        records: List of TransactionRecord objects
        strict_mode: If True, raise exceptions on invalid data
        strict_dates: If True, reject impossible calendar dates

    Returns:
        List of valid records
    """
    validator = RecordValidator(strict_mode=strict_mode, strict_dates=strict_dates)
    return validator.validate_records(records)
