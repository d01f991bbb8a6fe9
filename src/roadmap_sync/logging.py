"""Centralized logging configuration for roadmap-sync.

Console logs go to stderr so that a dry-run roadmap printed on stdout stays
clean. A rotating log file is added when a log directory is configured.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Default configuration
DEFAULT_LOG_FILE = "roadmap-sync.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "WARNING"

LOG_DIR_ENV = "ROADMAP_SYNC_LOG_DIR"
LOG_LEVEL_ENV = "ROADMAP_SYNC_LOG_LEVEL"

# Log format
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    log_dir: str | Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    level: str | None = None,
    console: bool = True,
) -> logging.Logger:
    """Set up logging for the roadmap_sync package.

    Args:
        log_dir: Directory for log files. Falls back to the ROADMAP_SYNC_LOG_DIR
                 environment variable; no file is written when neither is set.
        log_file: Log file name. Defaults to 'roadmap-sync.log'.
        max_bytes: Maximum size per log file before rotation. Defaults to 10MB.
        backup_count: Number of backup files to keep. Defaults to 5.
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to WARNING.
               Can be overridden with ROADMAP_SYNC_LOG_LEVEL environment variable.
        console: Whether to also log to stderr. Defaults to True.

    Returns:
        The root roadmap_sync logger.
    """
    if log_dir is None:
        log_dir = os.environ.get(LOG_DIR_ENV) or None

    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)
    log_level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger("roadmap_sync")
    logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    log_path: Path | None = None
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / log_file
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    logger.debug("Logging initialized (level=%s, file=%s)", level, log_path)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a component.

    Args:
        name: Component name (e.g., 'reconciler', 'github').
              Will be prefixed with 'roadmap_sync.'.

    Returns:
        Logger instance for the component.
    """
    if not name.startswith("roadmap_sync."):
        name = f"roadmap_sync.{name}"
    return logging.getLogger(name)


def truncate_output(output: str, max_length: int = 5000) -> str:
    """Truncate long output for logging.

    Args:
        output: The output string to truncate.
        max_length: Maximum length before truncation.

    Returns:
        Truncated string with indicator if truncated.
    """
    if len(output) <= max_length:
        return output
    return output[:max_length] + f"\n... [truncated, {len(output) - max_length} more chars]"


def sanitize_for_log(text: str) -> str:
    """Remove credentials from text before it is logged or shown.

    Args:
        text: Text that may contain sensitive data.

    Returns:
        Sanitized text safe for logging.
    """
    patterns = [
        (r"ghp_[a-zA-Z0-9]{36}", "[GITHUB_TOKEN]"),  # GitHub PAT
        (r"gho_[a-zA-Z0-9]{36}", "[GITHUB_TOKEN]"),  # GitHub OAuth
        (r"github_pat_[a-zA-Z0-9_]{82}", "[GITHUB_TOKEN]"),  # Fine-grained PAT
        (r"lin_api_[a-zA-Z0-9]+", "[LINEAR_API_KEY]"),  # Linear personal key
        (r"Bearer [a-zA-Z0-9._-]+", "Bearer [REDACTED]"),
        (r"token=[a-zA-Z0-9._-]+", "token=[REDACTED]"),
    ]

    result = text
    for pat, replacement in patterns:
        result = re.sub(pat, replacement, result)

    return result
