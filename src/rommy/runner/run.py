"""The write path: run a command, capture it, append the record."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from rommy.models.config import Environment
from rommy.models.record import RunRecord, reject_line_breaks
from rommy.record.encoder import encode_record
from rommy.record.writer import write_record
from rommy.runner import metadata
from rommy.runner.capture import capture
from rommy.runner.command import parse_env_pairs, resolve_command, resolve_cwd, spawn
from rommy.runner.outpath import default_root_dir, resolve_auto_out_path
from rommy.runner.scratch import launch_editor_and_get_script

logger = logging.getLogger(__name__)


class RunOptions(BaseModel):
    """Everything `rommy run` needs before the child starts."""

    cmd: list[str] = Field(default_factory=list)
    script: Path | None = None
    out: Path | None = None
    cwd: Path | None = None
    envs: list[str] = Field(default_factory=list)
    append: bool = False
    label: str | None = None
    stream: bool = True
    colors: bool = False
    root_dir: Path | None = None

    @field_validator("label")
    @classmethod
    def _single_line_label(cls, value: str | None) -> str | None:
        return value if value is None else reject_line_breaks(value)


def execute(options: RunOptions, env: Environment) -> Path:
    """Run the command described by ``options`` and write its record.

    Returns the path of the record file.
    """
    script = options.script
    if script is None and not options.cmd:
        script = launch_editor_and_get_script(env)

    command = resolve_command(options.cmd, script)
    cwd = resolve_cwd(options.cwd)
    extra_env = parse_env_pairs(options.envs)

    tool_version = metadata.tool_version()
    user = metadata.current_user()
    host = metadata.current_host()

    start = datetime.now(timezone.utc)
    proc = spawn(command, cwd, extra_env)
    result = capture(proc, stream=options.stream, colorize_stderr=options.colors)
    end = datetime.now(timezone.utc)

    if options.out is not None:
        out_path = options.out
    else:
        root = options.root_dir or default_root_dir(env)
        out_path = resolve_auto_out_path(command, root.expanduser())

    record = RunRecord(
        tool_version=tool_version,
        label=options.label,
        cwd=cwd,
        user=user,
        host=host,
        command=command,
        start_ts=start,
        end_ts=end,
        output_path=out_path,
        exit_code=result.exit_code,
        stdout=result.stdout,
        stderr=result.stderr,
    )
    logger.info("Run finished with status=%s exit_code=%d", record.status, record.exit_code)

    return write_record(encode_record(record), out_path, append=options.append)
