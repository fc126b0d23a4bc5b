"""Configuration loading and environment snapshot."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from rommy.models.config import ColorChoice, Config, Environment, LoggingConfig

DEFAULT_CONFIG_PATH = Path("~/.config/rommy/config.toml")


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH.expanduser()
    else:
        config_path = Path(config_path).expanduser()

    if not config_path.exists():
        return Config()

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return Config.model_validate(data)


def load_environment(environ: Mapping[str, str] | None = None) -> Environment:
    """Snapshot the environment variables rommy cares about."""
    if environ is None:
        environ = os.environ

    return Environment(
        no_color="NO_COLOR" in environ,
        clicolor=environ.get("CLICOLOR"),
        clicolor_force="CLICOLOR_FORCE" in environ,
        rommy_root=environ.get("ROMMY_ROOT"),
        xdg_state_home=environ.get("XDG_STATE_HOME"),
        home=environ.get("USERPROFILE") if sys.platform == "win32" else environ.get("HOME"),
        local_app_data=environ.get("LOCALAPPDATA"),
        editor=environ.get("EDITOR"),
        visual=environ.get("VISUAL"),
    )


def color_is_enabled(choice: ColorChoice, env: Environment, is_tty: bool) -> bool:
    """Decide whether to colorize terminal output."""
    if env.no_color:
        return False
    if choice == "always":
        return True
    if choice == "never":
        return False

    # auto
    if env.clicolor_force:
        return True
    if env.clicolor == "0":
        return False
    return is_tty


def configure_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """Set up diagnostic logging to stderr and, optionally, a log file."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file is not None:
        log_file = config.file.expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    level = logging.DEBUG if verbose else getattr(logging, config.level.upper())
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
