"""
Logging configuration for sim-qc.

Provides:
- Console handler on stderr: INFO when verbose (progress notifications), WARNING otherwise
- Optional file handler: captures all details (DEBUG level)
"""

import logging
import sys
from pathlib import Path
from typing import Optional


# Module-level state
_logging_initialized = False

LOGGER_NAME = "sim_qc"


def setup_logging(
    verbose: bool = False,
    log_file: Optional[Path] = None,
    file_level: int = logging.DEBUG,
) -> logging.Logger:
    """
    Initialize logging for the sim_qc package.

    Args:
        verbose: Show INFO messages (including progress) on the console.
        log_file: Optional path for a detailed log file.
        file_level: Log level for file output (default: DEBUG).

    Returns:
        The package logger.
    """
    global _logging_initialized

    logger = logging.getLogger(LOGGER_NAME)

    # Avoid re-initialization
    if _logging_initialized:
        return logger

    logger.setLevel(logging.DEBUG)  # Capture everything, handlers filter
    logger.handlers.clear()
    logger.propagate = False

    # Console handler - minimal output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    # File handler - detailed output
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(file_level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)

    _logging_initialized = True

    return logger


def reset_logging():
    """Reset logging state. Useful for testing."""
    global _logging_initialized
    _logging_initialized = False

    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
