"""Centralized logging setup, called once at startup."""
import logging

from triage import config


def init_logging(level_name: str = None) -> logging.Logger:
    level_name = (level_name or config.LOG_LEVEL or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(module)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)

    logger = logging.getLogger("triage")
    logger.setLevel(level)
    logger.handlers = [stream_handler]
    logger.propagate = False

    logger.info("Logging initialized at %s", level_name)
    return logger
