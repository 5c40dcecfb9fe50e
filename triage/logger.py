"""
Central logger configuration. Import get_logger() from other modules.
"""
import logging

from triage.config import SETTINGS


def get_logger(name: str = "sos_triage"):
    """Create and return a named logger with a single console handler."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(SETTINGS.log_format))
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, SETTINGS.log_level.upper(), logging.INFO))
    return logger
