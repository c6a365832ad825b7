import logging

from parkwise.settings import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_handler = None


def setup_logging(level: str | None = None) -> None:
    global _handler

    root_logger = logging.getLogger()
    root_logger.setLevel((level or LOG_LEVEL).upper())

    # Idempotent: the app factory and the bootstrap script can both call it
    if _handler is not None and _handler in root_logger.handlers:
        return

    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(_handler)
