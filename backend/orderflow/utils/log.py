import logging
import sys

from orderflow.config import settings


def get_logger(name: str) -> logging.Logger:
    """
    Return the named logger, attaching a stdout handler with a `[NAME]` prefix
    the first time it is requested.
    """
    log = logging.getLogger(name)
    log.setLevel(settings.LOG_LEVEL.upper())
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter(f"[{name.upper()}] %(levelname)s %(message)s"))
        log.addHandler(h)
        log.propagate = False
    return log
