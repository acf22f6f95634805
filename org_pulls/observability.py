"""Logging setup and run summary counters."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

LOGGER_NAMESPACE = "org_pulls"
TIMESTAMP_FORMAT = "%(asctime)s %(message)s"
PLAIN_FORMAT = "%(message)s"
DATE_FORMAT = "%Y/%m/%d %H:%M:%S"

_HANDLER_NAME = "org_pulls.stream"


@dataclass(slots=True)
class RunSummary:
    """Counts collected while reporting."""

    repositories: int = 0
    repositories_with_pull_requests: int = 0
    pull_requests: int = 0
    reviewers: int = 0


def configure_logging(*, timestamps: bool = True, verbose: bool = False) -> logging.Logger:
    """Attach a single stderr handler to the package logger namespace."""
    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    for handler in list(package_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    if timestamps:
        handler.setFormatter(logging.Formatter(TIMESTAMP_FORMAT, datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))

    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return package_logger
