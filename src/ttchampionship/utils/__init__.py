"""Shared helpers: logger setup and id generation."""

# Table Tennis Championship
# Copyright (C) 2025  Table Tennis Championship developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import logging
import os
import uuid

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL_ENV = "TTCHAMPIONSHIP_LOG_LEVEL"


def setup_logger(name: str) -> logging.Logger:
    """Return a module logger with the project's formatting.

    The level defaults to WARNING and can be raised or lowered with the
    ``TTCHAMPIONSHIP_LOG_LEVEL`` environment variable (e.g. ``DEBUG``).

    Args:
        name: Logger name, normally ``__name__``

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(os.environ.get(LOG_LEVEL_ENV, "WARNING").upper())
        logger.propagate = False
    return logger


def generate_id(prefix: str = "") -> str:
    """Generate a unique identifier, optionally prefixed (``match-1a2b...``)."""
    unique = uuid.uuid4().hex[:12]
    return f"{prefix}-{unique}" if prefix else unique
