"""
Extractors Module - Transaction recognition and message rules.
"""

from .records import (
    ExtractionResult,
    ExtractionStatus,
    MalformedFieldError,
    TransactionRecord
)

from .regex_extractor import (
    TransactionExtractor,
    extract_transaction
)

from .patterns import (
    BUILTIN_PATTERNS,
    PatternRegistry,
    TransactionPattern,
    build_registry,
    default_registry
)

from .diagnostics import (
    DiagnosticEntry,
    DiagnosticSink,
    LoggingDiagnosticSink,
    MemoryDiagnosticSink
)

from .sms_rules import (
    TransactionType,
    categorize_merchant,
    format_amount_display,
    identify_source,
    is_spam_message
)

__all__ = [
    'ExtractionResult',
    'ExtractionStatus',
    'MalformedFieldError',
    'TransactionRecord',
    'TransactionExtractor',
    'extract_transaction',
    'BUILTIN_PATTERNS',
    'PatternRegistry',
    'TransactionPattern',
    'build_registry',
    'default_registry',
    'DiagnosticEntry',
    'DiagnosticSink',
    'LoggingDiagnosticSink',
    'MemoryDiagnosticSink',
    'TransactionType',
    'categorize_merchant',
    'format_amount_display',
    'identify_source',
    'is_spam_message',
]
