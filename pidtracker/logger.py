"""
Logging setup for pidtracker.

Every module logs through logging.getLogger(__name__), so attaching a handler
to the "pidtracker" logger shows the whole package's output.
"""
import logging

LOG_FORMAT = '[%(asctime)s] [%(name)s] %(levelname)s: %(message)s'


def get_logger(name="pidtracker", level=logging.INFO):
    """Retrieve a configured logger, the package logger by default."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
