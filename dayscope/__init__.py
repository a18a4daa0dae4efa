# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""DayScope - Daily plan scoping for engineering work items."""

import logging
import sys

__version__ = "0.1.0"

LOG_FORMAT = '%(asctime)s %(levelname)-7s %(name)s: %(message)s'


def configure_logging(level=logging.INFO, log_file=None):
    """
    Route DayScope logs to stderr and, optionally, a file.

    Calling it again replaces the previous handlers. HTTP library loggers
    are capped at WARNING so --debug output stays readable.

    Args:
        level: Root logging level
        log_file: Extra log file path
    """
    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for noisy in ('urllib3', 'requests'):
        logging.getLogger(noisy).setLevel(logging.WARNING)
