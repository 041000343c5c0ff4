"""Tests for the logging setup."""

import logging

import pytest

from butterflyeffect.logging_config import LOGGER_NAMESPACE, level_from_env, setup_logging


@pytest.fixture()
def package_logger():
    logger = logging.getLogger(LOGGER_NAMESPACE)
    saved_level, saved_handlers = logger.level, list(logger.handlers)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(saved_level)
    for handler in saved_handlers:
        logger.addHandler(handler)


@pytest.mark.parametrize("env, expected", [
    ({}, logging.INFO),
    ({"BUTTERFLY_DEBUG": "1"}, logging.DEBUG),
    ({"BUTTERFLY_DEBUG": "0"}, logging.INFO),
    ({"BUTTERFLY_LOG_LEVEL": "warning"}, logging.WARNING),
    ({"BUTTERFLY_LOG_LEVEL": "ERROR", "BUTTERFLY_DEBUG": "1"}, logging.ERROR),
    ({"BUTTERFLY_LOG_LEVEL": "chatty"}, logging.INFO),
])
def test_level_from_env(env, expected):
    assert level_from_env(env) == expected


def test_setup_replaces_handlers(package_logger, tmp_path):
    log_file = tmp_path / "run.log"
    setup_logging(logging.DEBUG, log_file=str(log_file))
    logger = setup_logging(logging.DEBUG, log_file=str(log_file))

    assert logger is package_logger
    assert len(logger.handlers) == 2
    assert logger.level == logging.DEBUG

    logging.getLogger(f"{LOGGER_NAMESPACE}.model.state").debug("installed batch")
    for handler in logger.handlers:
        handler.flush()
    assert "butterflyeffect.model.state - DEBUG - installed batch" in log_file.read_text(encoding="utf-8")
