"""Record encoding into the block format."""

from __future__ import annotations

from rommy.models.record import END_MARKER, Block, LineCommand, RunRecord, ScriptCommand


def _block(kind: Block, body: bytes) -> bytes:
    """Wrap a body in begin/end markers, keeping the end marker on its own line."""
    if body and not body.endswith(b"\n"):
        body += b"\n"
    return f"{kind.marker}\n".encode() + body + f"{END_MARKER}\n".encode()


def meta_lines(record: RunRecord) -> list[tuple[str, str]]:
    """META entries in write order."""
    entries: list[tuple[str, str]] = [("rommy_version", record.tool_version)]
    if record.label is not None:
        entries.append(("label", record.label))
    entries.append(("cwd", str(record.cwd)))
    if record.user is not None:
        entries.append(("user", record.user))
    if record.host is not None:
        entries.append(("host", record.host))

    command = record.command
    if isinstance(command, ScriptCommand):
        entries.append(("script_path", str(command.path)))
    elif isinstance(command, LineCommand):
        entries.append(("command_line", command.text))
    else:
        raise TypeError(f"Unknown command type: {type(command).__name__}")

    entries.extend(
        [
            ("start_ts", record.start_ts.isoformat()),
            ("end_ts", record.end_ts.isoformat()),
            ("duration_ms", str(record.duration_ms)),
            ("output_path", str(record.output_path)),
            ("status", record.status),
            ("exit_code", str(record.exit_code)),
        ]
    )
    return entries


def command_body(record: RunRecord) -> str:
    """Text of the COMMAND block."""
    command = record.command
    if isinstance(command, ScriptCommand):
        return command.content
    if isinstance(command, LineCommand):
        return f"$ {command.text}\n"
    raise TypeError(f"Unknown command type: {type(command).__name__}")


def encode_record(record: RunRecord) -> bytes:
    """Encode a run record as META, COMMAND, STDOUT and STDERR blocks."""
    meta = "".join(f"{key}: {value}\n" for key, value in meta_lines(record))

    return b"".join(
        [
            _block(Block.META, meta.encode()),
            _block(Block.COMMAND, command_body(record).encode()),
            _block(Block.STDOUT, record.stdout),
            _block(Block.STDERR, record.stderr),
        ]
    )
