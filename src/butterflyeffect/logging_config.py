"""
Logging Configuration
Console (and optional file) output for the 'butterflyeffect' logger tree.
The level can be chosen from the environment:
    BUTTERFLY_LOG_LEVEL=DEBUG|INFO|WARNING|ERROR  (explicit level)
    BUTTERFLY_DEBUG=1                             (shorthand for DEBUG)
"""
import logging
import os
import sys
from typing import Mapping, Optional

LOGGER_NAMESPACE = "butterflyeffect"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def level_from_env(env: Optional[Mapping[str, str]] = None, default: int = logging.INFO) -> int:
    """Logging level requested through environment variables."""
    env = os.environ if env is None else env

    name = (env.get("BUTTERFLY_LOG_LEVEL") or "").strip().upper()
    if name:
        level = logging.getLevelName(name)
        if isinstance(level, int):
            return level
        logging.getLogger(__name__).warning(f"Unknown BUTTERFLY_LOG_LEVEL={name!r}, ignored.")

    if env.get("BUTTERFLY_DEBUG", "").strip() not in ("", "0"):
        return logging.DEBUG
    return default


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach handlers to the package logger (replacing any from an earlier call).

    Args:
        level: Logging level for the logger and its handlers.
        log_file: Optional path; the file is truncated on every start.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.info(f"Logging initialized at {logging.getLevelName(level)}.")
    return logger
