"""
Logging configuration

Progress lines go to stdout next to the forwarded Enterprise Search
responses; warnings and failures go to stderr next to rejected responses.
"""

import logging
import sys
from typing import List, Optional, TextIO

from core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class BelowLevelFilter(logging.Filter):
    """Pass only records below ``level``"""

    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def build_handlers(
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None
) -> List[logging.Handler]:
    """Split log records over stdout (progress) and stderr (warnings and errors)"""
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    progress = logging.StreamHandler(stdout or sys.stdout)
    progress.addFilter(BelowLevelFilter(logging.WARNING))
    progress.setFormatter(formatter)

    failures = logging.StreamHandler(stderr or sys.stderr)
    failures.setLevel(logging.WARNING)
    failures.setFormatter(formatter)

    return [progress, failures]


def setup_logging():
    """Configure application logging"""

    # Get log level from settings
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    # Configure root logger
    logging.basicConfig(level=log_level, handlers=build_handlers())

    # Request lines are logged per page by the fetchers already
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {settings.LOG_LEVEL} level")
