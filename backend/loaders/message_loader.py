"""
Message Loader Module
Reads raw notification messages from text, JSON Lines and CSV files.
"""

import csv
import json
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = ('.txt', '.jsonl', '.csv')


class MessageLoadError(Exception):
    """Custom exception for message loading errors."""
    pass


@dataclass(frozen=True)
class RawMessage:
    """A message body plus optional metadata from its source."""
    body: str
    sender: Optional[str] = None
    received_on: Optional[date] = None


def _parse_received_on(value: Optional[str], location: str) -> Optional[date]:
    if value is None or not str(value).strip():
        return None
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise MessageLoadError(f"Invalid received_on '{value}' at {location}") from e


def _load_text(path: Path) -> list[RawMessage]:
    with path.open(encoding='utf-8') as f:
        return [RawMessage(body=line.rstrip('\r\n')) for line in f if line.strip()]


def _load_jsonl(path: Path) -> list[RawMessage]:
    messages = []
    with path.open(encoding='utf-8') as f:
        for line_num, line in enumerate(f, 1):
            if not line.strip():
                continue
            location = f"{path}:{line_num}"
            try:
                item = json.loads(line)
            except json.JSONDecodeError as e:
                raise MessageLoadError(f"Invalid JSON at {location}: {e}") from e

            if not isinstance(item, dict) or not isinstance(item.get("body"), str):
                raise MessageLoadError(f"Missing 'body' string at {location}")

            messages.append(RawMessage(
                body=item["body"],
                sender=item.get("sender"),
                received_on=_parse_received_on(item.get("received_on"), location)
            ))
    return messages


def _load_csv(path: Path) -> list[RawMessage]:
    messages = []
    with path.open(encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames or "body" not in reader.fieldnames:
            raise MessageLoadError(f"CSV must have a 'body' column: {path}")

        for row_num, row in enumerate(reader, 2):
            body = row.get("body") or ""
            if not body.strip():
                continue
            messages.append(RawMessage(
                body=body,
                sender=(row.get("sender") or None),
                received_on=_parse_received_on(row.get("received_on"), f"{path}:{row_num}")
            ))
    return messages


_LOADERS = {
    '.txt': _load_text,
    '.jsonl': _load_jsonl,
    '.csv': _load_csv,
}


def load_messages(file_path: str) -> list[RawMessage]:
    """
    Load messages from a file.

    Formats by suffix:
    - .txt: one message per non-blank line
    - .jsonl: one {"body", "sender"?, "received_on"?} object per line
    - .csv: "body" column required, "sender"/"received_on" optional

    Args:
        file_path: Path to the message file

    Returns:
        List of RawMessage objects

    Raises:
        MessageLoadError: If the file is missing, unsupported or malformed
    """
    path = Path(file_path)
    if not path.exists():
        logger.error(f"Message file not found: {file_path}")
        raise MessageLoadError(f"Message file not found: {file_path}")

    loader = _LOADERS.get(path.suffix.lower())
    if loader is None:
        logger.error(f"Unsupported message file type: {file_path}")
        raise MessageLoadError(
            f"Unsupported file type '{path.suffix}'. Supported: {', '.join(SUPPORTED_SUFFIXES)}"
        )

    try:
        messages = loader(path)
    except MessageLoadError:
        raise
    except UnicodeDecodeError as e:
        logger.error(f"File is not valid UTF-8: {file_path}")
        raise MessageLoadError(f"File is not valid UTF-8: {file_path}") from e
    except (OSError, csv.Error) as e:
        logger.error(f"Error reading {file_path}: {e}", exc_info=True)
        raise MessageLoadError(f"Failed to read {file_path}: {e}") from e

    logger.info(f"Loaded {len(messages)} messages from {file_path}")
    return messages


def load_multiple_files(file_paths: list[str]) -> list[RawMessage]:
    """
    Load and combine messages from multiple files.

    Files that fail to load are skipped with a warning.

    Raises:
        MessageLoadError: If no paths are given or every file fails
    """
    if not file_paths:
        logger.error("No message files provided")
        raise MessageLoadError("No message files provided")

    all_messages = []
    failed_files = []

    for idx, file_path in enumerate(file_paths, 1):
        try:
            logger.info(f"Processing file {idx}/{len(file_paths)}: {file_path}")
            all_messages.extend(load_messages(file_path))
        except MessageLoadError as e:
            logger.error(f"Failed to load {file_path}: {e}")
            failed_files.append(file_path)

    if len(failed_files) == len(file_paths):
        raise MessageLoadError(f"Failed to load any files. All {len(file_paths)} files failed.")

    if failed_files:
        logger.warning(
            f"Loaded {len(file_paths) - len(failed_files)}/{len(file_paths)} files. "
            f"Failed: {', '.join(failed_files)}"
        )

    return all_messages
