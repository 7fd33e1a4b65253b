"""Logging configuration helpers."""

import logging

_LOCAL_FORMAT = "%(levelname)s: %(name)s: %(message)s"
_DEPLOYED_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO", environment: str = "local") -> None:
    """Configure the ``prompt_crit`` logger once with a single stream handler."""
    logger = logging.getLogger("prompt_crit")
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(_LOCAL_FORMAT if environment == "local" else _DEPLOYED_FORMAT)
    )
    logger.addHandler(handler)
    logger.propagate = False
