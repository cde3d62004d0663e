"""
Configuration settings for SMS Transaction Extractor.
Centralized configuration management for the application.
"""

import os
from pathlib import Path
from typing import Optional

class Config:
    """Application configuration class."""

    # Application Settings
    APP_NAME = "SMS Transaction Extractor"
    VERSION = "1.0.0"

    # File Upload Settings
    MAX_FILE_SIZE_MB: int = int(os.getenv("MAX_FILE_SIZE_MB", "5"))
    MAX_FILE_SIZE_BYTES: int = MAX_FILE_SIZE_MB * 1024 * 1024
    ALLOWED_FILE_TYPES: list[str] = [".txt", ".jsonl", ".csv"]

    # Output Settings
    OUTPUT_DIR: Path = Path(os.getenv("OUTPUT_DIR", "./output"))
    LOG_DIR: Path = Path(os.getenv("LOG_DIR", "./logs"))
    REPORT_FORMATS: list[str] = [".pdf", ".json", ".csv"]

    # Extraction Settings
    # Messages longer than this are logged as unusually large
    LARGE_MESSAGE_LENGTH: int = int(os.getenv("LARGE_MESSAGE_LENGTH", "10000"))
    ENABLED_PATTERNS: str = os.getenv("ENABLED_PATTERNS", "you_spent")
    SPAM_FILTER: bool = os.getenv("SPAM_FILTER", "false").lower() == "true"

    # Validation Settings
    STRICT_MODE: bool = os.getenv("STRICT_MODE", "false").lower() == "true"
    STRICT_DATES: bool = os.getenv("STRICT_DATES", "false").lower() == "true"
    ALLOW_ZERO_AMOUNTS: bool = os.getenv("ALLOW_ZERO_AMOUNTS", "false").lower() == "true"
    HIGH_VALUE_THRESHOLD: float = float(os.getenv("HIGH_VALUE_THRESHOLD", "10000"))

    # Logging Settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    # API Settings
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    @classmethod
    def ensure_directories(cls):
        """Ensure required directories exist."""
        cls.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def get_output_path(cls, filename: str) -> Path:
        """Get full path for output file."""
        cls.ensure_directories()
        return cls.OUTPUT_DIR / filename

    @classmethod
    def get_log_path(cls, filename: str) -> Path:
        """Get full path for log file."""
        cls.ensure_directories()
        return cls.LOG_DIR / filename

    @classmethod
    def enabled_patterns(cls) -> list[str]:
        """Pattern names enabled for extraction, in the order configured."""
        return [name.strip() for name in cls.ENABLED_PATTERNS.split(",") if name.strip()]

    @classmethod
    def validate_file(cls, filename: str, file_size: int) -> tuple[bool, Optional[str]]:
        """
        Validate uploaded message file.

        Returns:
            tuple: (is_valid, error_message)
        """
        # Check file type
        if not any(filename.lower().endswith(ext) for ext in cls.ALLOWED_FILE_TYPES):
            return False, f"Invalid file type. Allowed types: {', '.join(cls.ALLOWED_FILE_TYPES)}"

        # Check file size
        if file_size > cls.MAX_FILE_SIZE_BYTES:
            size_mb = file_size / (1024 * 1024)
            return False, f"File too large ({size_mb:.2f} MB). Maximum: {cls.MAX_FILE_SIZE_MB} MB"

        if file_size == 0:
            return False, "File is empty"

        return True, None

    @classmethod
    def to_dict(cls) -> dict:
        """Convert configuration to dictionary."""
        return {
            "app_name": cls.APP_NAME,
            "version": cls.VERSION,
            "max_file_size_mb": cls.MAX_FILE_SIZE_MB,
            "output_dir": str(cls.OUTPUT_DIR),
            "log_dir": str(cls.LOG_DIR),
            "large_message_length": cls.LARGE_MESSAGE_LENGTH,
            "enabled_patterns": cls.enabled_patterns(),
            "spam_filter": cls.SPAM_FILTER,
            "strict_mode": cls.STRICT_MODE,
            "strict_dates": cls.STRICT_DATES,
            "allow_zero_amounts": cls.ALLOW_ZERO_AMOUNTS,
            "log_level": cls.LOG_LEVEL,
        }


# Create a singleton instance
config = Config()
