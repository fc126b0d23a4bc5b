"""Automatic output paths for runs without --out."""

from __future__ import annotations

import re
import sys
from datetime import datetime
from pathlib import Path

from rommy.models.config import Environment
from rommy.models.record import Command, LineCommand, ScriptCommand

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")
_TOKEN_MAX = 32


def _home(env: Environment) -> Path:
    return Path(env.home) if env.home else Path("~")


def default_root_dir(env: Environment, platform: str = sys.platform) -> Path:
    """Default root directory for record files."""
    # 1. Explicit override
    if env.rommy_root:
        return Path(env.rommy_root)

    # 2. XDG state dir
    if env.xdg_state_home:
        return Path(env.xdg_state_home) / "rommy"

    # 3. OS defaults
    if platform == "darwin":
        return _home(env) / "Library" / "Application Support" / "Rommy"

    if platform == "win32":
        if env.local_app_data:
            return Path(env.local_app_data) / "Rommy"
        if env.home:
            return Path(env.home) / "AppData" / "Local" / "Rommy"

    return _home(env) / ".local" / "state" / "rommy"


def command_token(command: Command) -> str:
    """Short file-name-safe token for a command, e.g. ``cargo_clippy``."""
    if isinstance(command, ScriptCommand):
        return "bash_script"
    if not isinstance(command, LineCommand):
        raise TypeError(f"Unknown command type: {type(command).__name__}")

    first_words = "_".join(command.text.split()[:2])
    token = _NON_ALNUM.sub("_", first_words).strip("_").lower()
    if not token:
        return "cmd"
    return token[:_TOKEN_MAX]


def resolve_auto_out_path(
    command: Command,
    root: Path,
    now: datetime | None = None,
) -> Path:
    """Time-based path under ``root``: ``YYYY/MM/DD/HHMMSS.<token>.rommy``.

    Parent directories are created by the writer.
    """
    now = now or datetime.now()
    return (
        root
        / now.strftime("%Y")
        / now.strftime("%m")
        / now.strftime("%d")
        / f"{now.strftime('%H%M%S')}.{command_token(command)}.rommy"
    )
