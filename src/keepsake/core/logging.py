"""
Logging configuration.

Structured logging for debugging and audit trail.
"""

import logging
import sys
from pathlib import Path


def setup_logging(
    level: int | str = logging.INFO,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure root logger with console and optional file output."""
    logger = logging.getLogger("keepsake")
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    # Repeated calls replace handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    # File handler
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger."""
    return logging.getLogger(f"keepsake.{name}")


def preview(text: str, limit: int = 80) -> str:
    """Shorten text for log lines."""
    text = text.replace("\n", " ")
    return text if len(text) <= limit else text[:limit] + "..."
