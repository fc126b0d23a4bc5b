"""Record file parser.

A record file is a sequence of records, each made of four blocks::

    <<<META>>>
    key: value
    <<<END>>>
    <<<COMMAND>>>
    $ echo hi
    <<<END>>>
    <<<STDOUT>>>
    hi
    <<<END>>>
    <<<STDERR>>>
    <<<END>>>

Lines outside blocks are ignored, as are stray end markers. Nesting a block
inside another, leaving a block open at end of input, or finishing a record
without all four blocks is an error.
"""

from __future__ import annotations

from pathlib import Path

from rommy.errors import RecordParseError
from rommy.models.record import END_MARKER, Block, ParsedRecord

_MARKERS = {kind.marker: kind for kind in Block}


class _OpenRecord:
    """Record being assembled while scanning."""

    def __init__(self) -> None:
        self.meta: dict[str, str] = {}
        self.bodies: dict[Block, list[str]] = {
            Block.COMMAND: [],
            Block.STDOUT: [],
            Block.STDERR: [],
        }
        self.closed: set[Block] = set()

    def add_line(self, kind: Block, line: str) -> None:
        if kind is Block.META:
            if not line.strip():
                return
            key, sep, value = line.partition(":")
            if sep:
                self.meta[key.strip()] = value.strip()
            return
        self.bodies[kind].append(line)

    def finish(self) -> ParsedRecord:
        missing = [kind.value for kind in Block if kind not in self.closed]
        if missing:
            raise RecordParseError(f"incomplete record: missing block(s): {', '.join(missing)}")

        return ParsedRecord(
            meta=self.meta,
            command="\n".join(self.bodies[Block.COMMAND]),
            stdout="\n".join(self.bodies[Block.STDOUT]),
            stderr="\n".join(self.bodies[Block.STDERR]),
        )


def _split_lines(text: str) -> list[str]:
    """Split on newlines only, without a phantom line after a final newline."""
    text = text.replace("\r\n", "\n")
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def parse_text(text: str) -> list[ParsedRecord]:
    """Parse record file text into records, in file order."""
    records: list[ParsedRecord] = []
    current: _OpenRecord | None = None
    in_block: Block | None = None

    for line in _split_lines(text):
        stripped = line.strip()
        kind = _MARKERS.get(stripped)

        if kind is not None:
            if in_block is not None:
                raise RecordParseError(
                    f"unexpected start of block {kind.value} before closing previous block"
                )
            if kind is Block.META:
                if current is not None:
                    records.append(current.finish())
                current = _OpenRecord()
                in_block = kind
            elif current is not None:
                in_block = kind
            # Blocks before the first META are noise
            continue

        if stripped == END_MARKER:
            if in_block is not None and current is not None:
                current.closed.add(in_block)
                in_block = None
            continue

        if in_block is not None and current is not None:
            current.add_line(in_block, line)

    if in_block is not None:
        raise RecordParseError(f"unexpected EOF: block not closed with {END_MARKER}")
    if current is not None:
        records.append(current.finish())

    return records


def parse_bytes(data: bytes) -> list[ParsedRecord]:
    """Parse raw file content; invalid UTF-8 is replaced, not rejected."""
    return parse_text(data.decode("utf-8", errors="replace"))


def parse_file(path: Path | str) -> list[ParsedRecord]:
    """Parse a record file from disk."""
    return parse_bytes(Path(path).read_bytes())
