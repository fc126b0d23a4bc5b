"""Command resolution and child process launch."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from rommy.errors import LaunchError
from rommy.models.record import Command, LineCommand, ScriptCommand

logger = logging.getLogger(__name__)


def shell_join(parts: Sequence[str]) -> str:
    """Join argv pieces into one line that bash reads back as the same argv."""
    return shlex.join(parts)


def resolve_script(script_path: Path) -> ScriptCommand:
    """Resolve a script to its absolute path and read its source."""
    try:
        script_abs = Path(script_path).resolve(strict=True)
    except OSError as e:
        raise LaunchError(f"Cannot resolve script path: {script_path}") from e

    try:
        source = script_abs.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LaunchError(f"Cannot read script: {script_abs}") from e

    return ScriptCommand.from_source(script_abs, source)


def resolve_command(cmd: Sequence[str] = (), script: Path | None = None) -> Command:
    """Pick the command to record: a script file or a command line."""
    if script is not None:
        return resolve_script(script)
    if not cmd:
        raise LaunchError("Provide either --script <file> or a command after --")
    return LineCommand(text=shell_join(cmd))


def build_argv(command: Command) -> list[str]:
    """The bash invocation that runs ``command``."""
    if isinstance(command, ScriptCommand):
        return ["bash", "-Eeuo", "pipefail", str(command.path)]
    if isinstance(command, LineCommand):
        return ["bash", "-lc", command.text]
    raise TypeError(f"Unknown command type: {type(command).__name__}")


def parse_env_pairs(pairs: Sequence[str]) -> dict[str, str]:
    """Parse KEY=VALUE pairs, skipping malformed ones with a warning."""
    env: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            logger.warning("Ignoring malformed --env '%s', expected KEY=VALUE", pair)
            continue
        env[key] = value
    return env


def resolve_cwd(cwd: Path | str | None) -> Path:
    """Absolute working directory for the child."""
    try:
        return Path(cwd or Path.cwd()).resolve(strict=True)
    except OSError as e:
        raise LaunchError(f"Cannot resolve cwd {cwd}") from e


def spawn(
    command: Command,
    cwd: Path,
    extra_env: Mapping[str, str] | None = None,
) -> subprocess.Popen[bytes]:
    """Start the child with both output streams piped and stdin closed."""
    argv = build_argv(command)
    env = {**os.environ, **(extra_env or {})}

    logger.info("Running cmd=%s cwd=%s", argv, cwd)
    try:
        return subprocess.Popen(
            argv,
            cwd=str(cwd),
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            close_fds=True,
        )
    except OSError as e:
        raise LaunchError(f"Failed to spawn process {argv[0]}: {e}") from e
