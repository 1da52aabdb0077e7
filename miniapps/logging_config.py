"""
Logging setup for the mini-apps.

Log records go to stderr so they never interleave with the conversation
printed on stdout.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import Settings, get_settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure logging with console and optional file handlers."""
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.WARNING)

    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if settings.log_path:
        try:
            log_path = Path(settings.log_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            root_logger.info("Logging to file: %s", log_path)
        except OSError as e:
            root_logger.error("Failed to set up file logging: %s", e)

    # httpx logs every request at info
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))

    return logging.getLogger("miniapps")
