"""
Loaders Module - Message file reading.
"""

from .message_loader import (
    MessageLoadError,
    RawMessage,
    load_messages,
    load_multiple_files
)

__all__ = [
    'MessageLoadError',
    'RawMessage',
    'load_messages',
    'load_multiple_files',
]
