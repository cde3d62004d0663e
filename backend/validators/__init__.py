"""
Validators Module - Transaction record validation.
"""

from .record_validator import (
    RecordValidator,
    validate_records,
    ValidationError
)

__all__ = [
    'RecordValidator',
    'validate_records',
    'ValidationError',
]
