import logging

import pytest

from parkwise import logging_config


@pytest.fixture
def root_logger(monkeypatch):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    monkeypatch.setattr(logging_config, "_handler", None)
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def test_setup_logging_adds_one_handler(root_logger):
    before = len(root_logger.handlers)

    logging_config.setup_logging("debug")
    logging_config.setup_logging("warning")

    assert len(root_logger.handlers) == before + 1
    assert logging_config._handler in root_logger.handlers
    assert root_logger.level == logging.WARNING


def test_setup_logging_reinstalls_a_removed_handler(root_logger):
    logging_config.setup_logging()
    root_logger.removeHandler(logging_config._handler)

    logging_config.setup_logging()

    assert logging_config._handler in root_logger.handlers
