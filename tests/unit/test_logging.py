# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Unit tests for logging setup."""

import logging

import pytest

from dayscope import LOG_FORMAT, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_replaces_handlers_and_sets_level(restore_root_logger):
    configure_logging(logging.DEBUG)
    configure_logging(logging.DEBUG)

    root = restore_root_logger
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert root.handlers[0].formatter._fmt == LOG_FORMAT
    assert logging.getLogger('urllib3').level == logging.WARNING


def test_log_file(restore_root_logger, tmp_path):
    log_file = tmp_path / "dayscope.log"

    configure_logging(logging.INFO, str(log_file))
    logging.getLogger("dayscope.test").info("planned 3 items")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert "dayscope.test: planned 3 items" in log_file.read_text()
