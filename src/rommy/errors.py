"""Rommy exceptions."""

from __future__ import annotations

from pathlib import Path


class RommyError(Exception):
    """Base class for rommy errors."""


class LaunchError(RommyError):
    """The child process could not be started."""


class ScratchError(RommyError):
    """Scratch script editing was aborted."""


class LockError(RommyError):
    """The sidecar lock file could not be opened or locked."""


class WriteError(RommyError):
    """Writing the record file failed; the destination was left untouched."""

    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path


class RecordParseError(RommyError):
    """Record file does not follow the block format."""
