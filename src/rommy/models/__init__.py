"""Data models for rommy."""

from rommy.models.config import (
    ColorChoice,
    Config,
    Environment,
    LoggingConfig,
    OutputConfig,
    RunConfig,
)
from rommy.models.record import (
    END_MARKER,
    Block,
    Command,
    LineCommand,
    ParsedRecord,
    RunRecord,
    ScriptCommand,
)

__all__ = [
    "ColorChoice",
    "Config",
    "Environment",
    "LoggingConfig",
    "OutputConfig",
    "RunConfig",
    "END_MARKER",
    "Block",
    "Command",
    "LineCommand",
    "ParsedRecord",
    "RunRecord",
    "ScriptCommand",
]
