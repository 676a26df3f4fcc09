"""
Configuration module for HireBook.

Contains constants, settings, and configuration values used throughout the application.
"""

import os
from pathlib import Path

# Version
VERSION = "0.1.0"

# Application paths
# Relative to the working directory unless HIREBOOK_DATA_DIR is set
DATA_DIR = Path(os.getenv("HIREBOOK_DATA_DIR", Path.cwd() / "data"))
LOG_DIR = DATA_DIR / "logs"

# Database configuration
DEFAULT_DB_PATH = DATA_DIR / "hirebook.db"
DB_TIMEOUT = 10.0  # seconds

# Timestamps are stored with a fixed Korea Standard Time offset
KST_OFFSET_HOURS = 9

# Query limits
SEARCH_RESULT_LIMIT = 50
TRASH_UNNAMED_LABEL = "이름 없음"
UNKNOWN_PERSON_LABEL = "미지정"

# Person validation
MIN_BIRTH_YEAR = 1900
MAX_BIRTH_YEAR = 2100

# Statistics defaults
REFUND_CATEGORY = "환불"
DEFAULT_TREND_MONTHS = 6
DEFAULT_RANKING_LIMIT = 5

# Backup configuration
BACKUP_VERSION = "1.0.0"
BACKUP_FILE_PREFIX = "hirebook_backup_"
BACKUP_MIME_TYPE = "application/json"
DEFAULT_BACKUP_DIR = DATA_DIR / "backups"

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "hirebook.log"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_db_path() -> Path:
    """Get the database path, honouring HIREBOOK_DB_PATH when set."""
    override = os.getenv("HIREBOOK_DB_PATH")
    return Path(override) if override else DEFAULT_DB_PATH


def get_backup_dir() -> Path:
    """Get the backup directory, honouring HIREBOOK_BACKUP_DIR when set."""
    override = os.getenv("HIREBOOK_BACKUP_DIR")
    return Path(override) if override else DEFAULT_BACKUP_DIR


def ensure_directories():
    """Ensure required directories exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    LOG_DIR.mkdir(parents=True, exist_ok=True)


def get_log_level():
    """Get the configured log level."""
    import logging

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(os.getenv("LOG_LEVEL", LOG_LEVEL).upper(), logging.INFO)
