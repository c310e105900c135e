"""Logging configuration for lanemark."""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

NAMESPACE = "lanemark"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level_for(verbose: int) -> int:
    if verbose >= 2:
        return logging.DEBUG
    return logging.INFO


def setup_logging(verbose: int = 0, log_file: Path | None = None) -> None:
    """Configure logging based on verbosity level and optional file output.

    Args:
        verbose: Verbosity level (0=off, 1=INFO, 2+=DEBUG)
        log_file: Optional path to write logs to file
    """
    if verbose == 0 and log_file is None:
        return

    level = _level_for(verbose)
    logger = logging.getLogger(NAMESPACE)
    logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    # Drop handlers from earlier calls
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if verbose > 0:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(level)
        stderr_handler.setFormatter(formatter)
        logger.addHandler(stderr_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    logger.info("=" * 60)
    logger.info("%s starting | %s | level=%s", NAMESPACE, timestamp, logging.getLevelName(level))
    logger.info("=" * 60)
