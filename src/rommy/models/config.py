"""Configuration models."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ColorChoice = Literal["auto", "always", "never"]


class RunConfig(BaseModel):
    """Defaults for `rommy run`."""

    stream: bool = True
    color: ColorChoice = "auto"
    append: bool = False


class OutputConfig(BaseModel):
    """Output location configuration."""

    root_dir: Path | None = None


class LoggingConfig(BaseModel):
    """Diagnostic logging configuration."""

    level: Literal["debug", "info", "warning", "error"] = "warning"
    file: Path | None = None


class Config(BaseModel):
    """Main configuration."""

    run: RunConfig = Field(default_factory=RunConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Environment(BaseModel):
    """Snapshot of the environment variables rommy reads.

    Taken once at startup and handed to whatever needs it, so nothing
    downstream looks at ``os.environ`` on its own.
    """

    model_config = ConfigDict(frozen=True)

    no_color: bool = False
    clicolor: str | None = None
    clicolor_force: bool = False
    rommy_root: str | None = None
    xdg_state_home: str | None = None
    home: str | None = None
    local_app_data: str | None = None
    editor: str | None = None
    visual: str | None = None
