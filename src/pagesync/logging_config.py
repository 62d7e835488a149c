import logging
import sys
from pathlib import Path
from typing import Optional, Union


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Set up logging configuration for pagesync.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for logging output
        format_string: Optional custom format string for log messages
        force: If True, reconfigure even if handlers exist

    Returns:
        The configured "pagesync" logger
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger("pagesync")
    logger.setLevel(numeric_level)

    # Only clear and reconfigure if forced or no handlers exist
    if force or not logger.handlers:
        logger.handlers.clear()
        formatter = logging.Formatter(format_string)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    # Library modules log under pagesync.*; keep them out of the root logger
    logger.propagate = False

    return logger
