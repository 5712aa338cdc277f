import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from . import settings


def setup_logger(name: Optional[str] = None, log_level: Optional[str] = None) -> logging.Logger:
    """
    Sets up a logger with console output and, when LOG_TO_FILE is enabled,
    a rotating file handler under settings.LOG_DIR.
    """
    logger = logging.getLogger(name)
    level = getattr(logging, log_level or settings.LOG_LEVEL, logging.INFO)
    logger.setLevel(level)

    # Prevent adding handlers multiple times if logger is already set up
    if any(not isinstance(h, logging.NullHandler) for h in logger.handlers):
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if settings.LOG_TO_FILE:
        settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.LOG_DIR / "import.log",
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)

    return logger
