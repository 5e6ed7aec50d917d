"""Logging configuration for grit."""

import logging
import os
import sys
from datetime import UTC, datetime
from pathlib import Path

LOG_LEVEL_ENV = "GRIT_LOG_LEVEL"
LOG_FILE_ENV = "GRIT_LOG_FILE"


def setup_logging(level: str | None = None, log_file: Path | None = None) -> None:
    """Configure logging for the grit namespace.

    Args:
        level: Level name for the stderr handler (e.g. "INFO", "DEBUG").
            None or empty disables stderr logging.
        log_file: Optional path to write logs to file
    """
    if not level and log_file is None:
        # No logging requested
        return

    numeric_level = logging.getLevelNamesMapping().get((level or "INFO").upper(), logging.INFO)

    logger = logging.getLogger("grit")
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if level:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(numeric_level)
        stderr_handler.setFormatter(formatter)
        logger.addHandler(stderr_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    logger.info("grit starting | %s | level=%s", timestamp, logging.getLevelName(numeric_level))


def setup_logging_from_env() -> None:
    """Configure logging from GRIT_LOG_LEVEL and GRIT_LOG_FILE."""
    log_file = os.environ.get(LOG_FILE_ENV)
    setup_logging(
        level=os.environ.get(LOG_LEVEL_ENV),
        log_file=Path(log_file).expanduser() if log_file else None,
    )
