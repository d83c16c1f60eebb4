"""Logging helpers for photodeck."""

from __future__ import annotations

import logging
from typing import Optional

_LOGGER: Optional[logging.Logger] = None


def get_logger() -> logging.Logger:
    """Return the package-level logger configured for photodeck."""

    global _LOGGER
    if _LOGGER is None:
        _LOGGER = logging.getLogger("photodeck")
        if not _LOGGER.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            handler.setFormatter(formatter)
            _LOGGER.addHandler(handler)
        _LOGGER.setLevel(logging.INFO)
    return _LOGGER


def set_verbose(enabled: bool) -> None:
    """Switch the package logger between INFO and DEBUG."""

    get_logger().setLevel(logging.DEBUG if enabled else logging.INFO)
