"""Logging setup with coloured console output"""
import logging
import os
import sys

from colorama import Fore, Style, init as colorama_init

colorama_init()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LEVEL_COLORS = {
    logging.DEBUG: Fore.CYAN,
    logging.INFO: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name"""

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno, '')
        original = record.levelname
        record.levelname = f"{color}{original}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logger(name: str, level: str = None) -> logging.Logger:
    """Get a logger with a single coloured stream handler"""
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    level_name = level or os.environ.get('GHERKINSHEET_LOG_LEVEL', 'INFO')
    logger.setLevel(getattr(logging, str(level_name).upper(), logging.INFO))
    return logger


def set_global_level(level: str) -> None:
    """Change the level of every logger created through setup_logger"""
    value = getattr(logging, str(level).upper(), logging.INFO)
    for name, existing in logging.Logger.manager.loggerDict.items():
        if isinstance(existing, logging.Logger) and name.startswith(('gherkinsheet', 'run')):
            existing.setLevel(value)
