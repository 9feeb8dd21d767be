"""Functions for logging."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# HTTP libraries that log every connection and response at DEBUG
CHATTY_LOGGERS = ("urllib3", "charset_normalizer")


def setup_logger(level: str) -> None:
    """Route every record at ``level`` or above to stderr.

    Output from the HTTP stack is capped at INFO even when ``level`` is DEBUG,
    so a debug run shows the version lookups rather than one line per request.
    """
    level_value = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level_value)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level_value, logging.INFO))
