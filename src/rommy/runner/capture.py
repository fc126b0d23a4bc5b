"""Child output capture with optional live relay to the terminal."""

from __future__ import annotations

import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from typing import IO, NamedTuple

import click

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192

YELLOW = b"\x1b[33m"
RESET = b"\x1b[0m"


class CaptureResult(NamedTuple):
    """Everything the child wrote, and how it exited."""

    stdout: bytes
    stderr: bytes
    exit_code: int


def exit_code_of(returncode: int | None) -> int:
    """Map a Popen return code to a record exit code (-1 when killed by a signal)."""
    if returncode is None or returncode < 0:
        return -1
    return returncode


def tee(source: IO[bytes], sink: IO[bytes], colorize: bool = False) -> bytes:
    """Copy ``source`` to ``sink`` chunk by chunk and return everything read.

    Colorizing only touches what goes to the sink, the returned bytes are raw.
    """
    captured = bytearray()
    while True:
        try:
            chunk = source.read1(CHUNK_SIZE)
        except (OSError, ValueError) as e:
            logger.debug("Read from child stream failed, treating as EOF: %s", e)
            break
        if not chunk:
            break

        try:
            if colorize:
                sink.write(YELLOW + chunk + RESET)
            else:
                sink.write(chunk)
            sink.flush()
        except (OSError, ValueError) as e:
            # Terminal went away; keep capturing
            logger.debug("Relay write failed: %s", e)

        captured += chunk
    return bytes(captured)


def capture(
    proc: subprocess.Popen[bytes],
    *,
    stream: bool = True,
    colorize_stderr: bool = False,
    stdout_sink: IO[bytes] | None = None,
    stderr_sink: IO[bytes] | None = None,
) -> CaptureResult:
    """Wait for ``proc`` and collect its stdout and stderr.

    With ``stream`` each pipe is drained by its own worker that relays chunks
    to the terminal as they arrive. Without it the output is collected
    silently. No ordering is kept between the two streams.
    """
    if not stream:
        stdout, stderr = proc.communicate()
        return CaptureResult(stdout or b"", stderr or b"", exit_code_of(proc.returncode))

    if stdout_sink is None:
        stdout_sink = click.get_binary_stream("stdout")
    if stderr_sink is None:
        stderr_sink = click.get_binary_stream("stderr")

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="rommy-tee") as pool:
        out_future = pool.submit(tee, proc.stdout, stdout_sink) if proc.stdout else None
        err_future = (
            pool.submit(tee, proc.stderr, stderr_sink, colorize_stderr) if proc.stderr else None
        )

        returncode = proc.wait()

        stdout = out_future.result() if out_future else b""
        stderr = err_future.result() if err_future else b""

    for pipe in (proc.stdout, proc.stderr):
        if pipe is not None:
            pipe.close()

    logger.debug(
        "Captured %d stdout bytes, %d stderr bytes, return code %s",
        len(stdout),
        len(stderr),
        returncode,
    )
    return CaptureResult(stdout, stderr, exit_code_of(returncode))
