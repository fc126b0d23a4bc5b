"""Run record models."""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator

SCRIPT_HEADER = "#!/usr/bin/env bash\n"


class Block(str, Enum):
    """Block kinds of a record, in the order the encoder writes them."""

    META = "META"
    COMMAND = "COMMAND"
    STDOUT = "STDOUT"
    STDERR = "STDERR"

    @property
    def marker(self) -> str:
        return f"<<<{self.value}>>>"


END_MARKER = "<<<END>>>"


class LineCommand(BaseModel):
    """A single shell-escaped command line."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["line"] = "line"
    text: str


class ScriptCommand(BaseModel):
    """A script file, with its source as shown in the COMMAND block."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["script"] = "script"
    path: Path
    content: str

    @classmethod
    def from_source(cls, path: Path, source: str) -> ScriptCommand:
        """Build from the raw script text, adding the shebang header."""
        return cls(path=path, content=f"{SCRIPT_HEADER}{source}\n")


Command = Annotated[Union[LineCommand, ScriptCommand], Field(discriminator="kind")]


def reject_line_breaks(value: str) -> str:
    """META values must stay on a single line."""
    if "\n" in value or "\r" in value:
        raise ValueError("must not contain line breaks")
    return value


class RunRecord(BaseModel):
    """One completed run, ready to be encoded."""

    model_config = ConfigDict(frozen=True)

    tool_version: str
    label: str | None = None
    cwd: Path
    user: str | None = None
    host: str | None = None
    command: Command
    start_ts: AwareDatetime
    end_ts: AwareDatetime
    output_path: Path
    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""

    @field_validator("label")
    @classmethod
    def _single_line_label(cls, value: str | None) -> str | None:
        return value if value is None else reject_line_breaks(value)

    @property
    def status(self) -> Literal["ok", "error"]:
        return "ok" if self.exit_code == 0 else "error"

    @property
    def duration_ms(self) -> int:
        return (self.end_ts - self.start_ts) // timedelta(milliseconds=1)


class ParsedRecord(BaseModel):
    """A record as read back from a record file."""

    model_config = ConfigDict(frozen=True)

    meta: dict[str, str] = Field(default_factory=dict)
    command: str = ""
    stdout: str = ""
    stderr: str = ""

    @property
    def status(self) -> str | None:
        return self.meta.get("status")

    @property
    def exit_code(self) -> int | None:
        value = self.meta.get("exit_code")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

