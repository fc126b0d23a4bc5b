"""Run metadata collected alongside each record."""

from __future__ import annotations

import getpass
import logging
import socket
from importlib.metadata import PackageNotFoundError, version as package_version

logger = logging.getLogger(__name__)


def tool_version() -> str:
    try:
        return package_version("rommy")
    except PackageNotFoundError:
        return "0.0.0"


def current_user() -> str | None:
    """Login name, or None when it cannot be determined."""
    try:
        return getpass.getuser() or None
    except (OSError, KeyError, ImportError) as e:
        logger.debug("Cannot determine user: %s", e)
        return None


def current_host() -> str | None:
    try:
        return socket.gethostname() or None
    except OSError as e:
        logger.debug("Cannot determine host: %s", e)
        return None
