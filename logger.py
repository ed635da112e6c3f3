import logging
import os
import sys
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the whole line by level when writing to a terminal"""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',  # Cyan
        'INFO': '\033[32m',  # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',  # Red
        'CRITICAL': '\033[41m\033[37m',  # White on Red background
        'RESET': '\033[0m'  # Reset to default
    }

    def __init__(self, fmt=None, datefmt=None, use_color: bool = True):
        super().__init__(fmt, datefmt)
        self.use_color = use_color

    def format(self, record):
        log_message = super().format(record)
        if self.use_color and record.levelname in self.COLORS:
            return f"{self.COLORS[record.levelname]}{log_message}{self.COLORS['RESET']}"
        return log_message


def _level_from_env() -> int:
    name = os.getenv("TODO_LOG_LEVEL", "WARNING").upper()
    return getattr(logging, name, logging.WARNING)


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Set up and return a logger writing to stderr, leaving stdout to the CLI"""
    if level is None:
        level = _level_from_env()

    _logger = logging.getLogger(name)
    _logger.setLevel(level)

    # Importing modules more than once must not duplicate output
    if _logger.handlers:
        return _logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    formatter = ColoredFormatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        use_color=sys.stderr.isatty(),
    )
    handler.setFormatter(formatter)
    _logger.addHandler(handler)

    return _logger


# Create a default logger for import
logger = setup_logger("todo")
