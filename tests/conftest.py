"""Pytest configuration shared by all tests.

Output and log directories default to ``./output`` and ``./logs``; tests
redirect them into their own temporary directory so no files land in the
working tree.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from config import Config


@pytest.fixture(autouse=True)
def _isolate_output_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Config, "OUTPUT_DIR", tmp_path / "output")
    monkeypatch.setattr(Config, "LOG_DIR", tmp_path / "logs")


@pytest.fixture
def write_file(tmp_path: Path):
    """Write text to a file under tmp_path and return its path as a string."""

    def _write(name: str, content: str) -> str:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write
