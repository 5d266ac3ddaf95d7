"""
Logging setup for the alumni portal API.

Console output always; a rotating file log when a log directory is configured.
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None) -> logging.Logger:
    """
    Configure the ``alumni`` logger hierarchy.

    Args:
        level: Minimum level for the console handler
        log_dir: Directory for ``alumni.log``; file logging is skipped when None

    Returns:
        The ``alumni`` root logger
    """
    logger = logging.getLogger("alumni")
    logger.setLevel(logging.DEBUG)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path / "alumni.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)-24s | %(filename)s:%(lineno)d | %(message)s",
                datefmt=DATE_FORMAT,
            )
        )
        logger.addHandler(file_handler)

    logger.propagate = False
    logger.info("Logging initialized (level=%s, log_dir=%s)", level, log_dir or "-")
    return logger
