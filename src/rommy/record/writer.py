"""Atomic, cross-process serialized record file writes."""

from __future__ import annotations

import logging
import os
import shutil
import time
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

from filelock import FileLock

from rommy.errors import LockError, WriteError

logger = logging.getLogger(__name__)

DEFAULT_NAME = "rommy.rommy"


def _base_name(out_path: Path) -> str:
    return out_path.name or DEFAULT_NAME


def lock_path_for(out_path: Path) -> Path:
    """Hidden sidecar lock file next to the destination."""
    return out_path.with_name(f".{_base_name(out_path)}.lock")


def temp_path_for(out_path: Path) -> Path:
    """Unique hidden temp file next to the destination."""
    return out_path.with_name(f".{_base_name(out_path)}.{os.getpid()}.{time.time_ns()}.tmp")


@contextmanager
def exclusive_lock(lock_path: Path) -> Iterator[None]:
    """Hold a blocking exclusive lock on ``lock_path``.

    The lock file is only a mutex token and never carries data.
    """
    lock = FileLock(lock_path)
    try:
        lock.acquire()
    except OSError as e:
        raise LockError(f"Cannot acquire lock {lock_path}: {e}") from e

    logger.debug("Acquired lock %s", lock_path)
    try:
        yield
    finally:
        lock.release()
        logger.debug("Released lock %s", lock_path)


def _fill_temp(temp: IO[bytes], tmp_path: Path, out_path: Path, data: bytes, append: bool) -> None:
    """Fill the temp file with prior content (append mode) plus the new record."""
    if append:
        try:
            with open(out_path, "rb") as current:
                shutil.copyfileobj(current, temp)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise WriteError(
                f"Cannot copy existing content from {out_path}: {e}", out_path
            ) from e

    try:
        temp.write(data)
        temp.flush()
    except OSError as e:
        raise WriteError(f"Cannot write {tmp_path}: {e}", tmp_path) from e

    try:
        os.fsync(temp.fileno())
    except OSError as e:
        raise WriteError(f"Cannot sync {tmp_path}: {e}", tmp_path) from e


def write_record(data: bytes, out_path: Path | str, *, append: bool = False) -> Path:
    """Write an encoded record to ``out_path``, creating or appending.

    Concurrent callers on the same destination are serialized through a
    sidecar lock file. The destination is replaced by rename, so readers see
    either the previous content or the new content, never a mix. On failure
    the temp file is removed and the destination is left as it was.
    """
    out_path = Path(out_path)
    parent = out_path.parent
    if not parent.exists():
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(f"Cannot create directory {parent}: {e}", parent) from e

    with exclusive_lock(lock_path_for(out_path)):
        tmp_path = temp_path_for(out_path)
        try:
            temp = open(tmp_path, "xb")
        except OSError as e:
            raise WriteError(f"Cannot create {tmp_path}: {e}", tmp_path) from e

        # From here on the temp file is ours to remove
        try:
            with temp:
                _fill_temp(temp, tmp_path, out_path, data, append)
            try:
                os.replace(tmp_path, out_path)
            except OSError as e:
                raise WriteError(
                    f"Cannot atomically move {tmp_path} to {out_path}: {e}", out_path
                ) from e
        except BaseException:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as cleanup_error:
                logger.warning("Cannot remove temp file %s: %s", tmp_path, cleanup_error)
            raise

    logger.info("Wrote %d bytes to %s (append=%s)", len(data), out_path, append)
    return out_path
