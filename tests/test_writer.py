"""Tests for the atomic, locked record writer."""

from __future__ import annotations

import errno
import os
import subprocess
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from rommy.errors import LockError, WriteError
from rommy.record import writer
from rommy.record.encoder import encode_record
from rommy.record.parser import parse_file
from rommy.record.writer import lock_path_for, temp_path_for, write_record

SRC_DIR = Path(writer.__file__).resolve().parents[2]

CHILD_SCRIPT = """
import sys
from datetime import datetime, timezone
from pathlib import Path

from rommy.models.record import LineCommand, RunRecord
from rommy.record.encoder import encode_record
from rommy.record.writer import write_record

payload, out = sys.argv[1], Path(sys.argv[2])
now = datetime.now(timezone.utc)
record = RunRecord(
    tool_version="test",
    cwd=Path.cwd(),
    command=LineCommand(text=f"echo {payload}"),
    start_ts=now,
    end_ts=now,
    output_path=out,
    exit_code=0,
    stdout=((payload + "\\n") * 2000).encode(),
)
write_record(encode_record(record), out, append=True)
"""


def _leftover_temp_files(directory: Path) -> list[Path]:
    return [p for p in directory.iterdir() if p.name.endswith(".tmp")]


def test_sidecar_names(tmp_path):
    out = tmp_path / "history.rommy"
    assert lock_path_for(out) == tmp_path / ".history.rommy.lock"

    tmp = temp_path_for(out)
    assert tmp.parent == tmp_path
    assert tmp.name.startswith(f".history.rommy.{os.getpid()}.")
    assert tmp.name.endswith(".tmp")
    assert temp_path_for(out) != tmp


def test_create(tmp_path, make_record):
    out = tmp_path / "run.rommy"
    data = encode_record(make_record(stdout=b"hello\n"))

    assert write_record(data, out) == out
    assert out.read_bytes() == data
    assert _leftover_temp_files(tmp_path) == []


def test_overwrite_without_append(tmp_path, make_record):
    out = tmp_path / "run.rommy"
    write_record(encode_record(make_record(stdout=b"first\n")), out)
    write_record(encode_record(make_record(stdout=b"second\n")), out)

    records = parse_file(out)
    assert [r.stdout for r in records] == ["second"]


def test_append_keeps_order(tmp_path, make_record):
    out = tmp_path / "run.rommy"
    write_record(encode_record(make_record(stdout=b"A\n")), out)
    write_record(encode_record(make_record(stdout=b"B\n", exit_code=1)), out, append=True)

    records = parse_file(out)
    assert [r.stdout for r in records] == ["A", "B"]
    assert [r.status for r in records] == ["ok", "error"]


def test_append_to_missing_file_creates_it(tmp_path, make_record):
    out = tmp_path / "fresh.rommy"
    data = encode_record(make_record(stdout=b"only\n"))

    write_record(data, out, append=True)

    assert out.read_bytes() == data
    assert len(parse_file(out)) == 1


def test_creates_parent_directories(tmp_path, make_record):
    out = tmp_path / "2025" / "10" / "20" / "run.rommy"
    write_record(encode_record(make_record()), out)
    assert out.exists()


def test_sync_failure_leaves_destination_untouched(tmp_path, make_record, monkeypatch):
    out = tmp_path / "run.rommy"
    write_record(encode_record(make_record(stdout=b"before\n")), out)
    before = out.read_bytes()

    def disk_full(fd):
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(writer.os, "fsync", disk_full)

    with pytest.raises(WriteError) as excinfo:
        write_record(encode_record(make_record(stdout=b"after\n")), out, append=True)

    assert "Cannot sync" in str(excinfo.value)
    assert excinfo.value.path.name.endswith(".tmp")
    assert out.read_bytes() == before
    assert _leftover_temp_files(tmp_path) == []


def test_rename_failure_leaves_destination_untouched(tmp_path, make_record, monkeypatch):
    out = tmp_path / "run.rommy"
    write_record(encode_record(make_record(stdout=b"before\n")), out)
    before = out.read_bytes()

    def refuse(src, dst):
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr(writer.os, "replace", refuse)

    with pytest.raises(WriteError, match="Cannot atomically move"):
        write_record(encode_record(make_record(stdout=b"after\n")), out)

    assert out.read_bytes() == before
    assert _leftover_temp_files(tmp_path) == []


def test_lock_released_after_failure(tmp_path, make_record, monkeypatch):
    out = tmp_path / "run.rommy"

    def disk_full(fd):
        raise OSError(errno.ENOSPC, "No space left on device")

    with monkeypatch.context() as m:
        m.setattr(writer.os, "fsync", disk_full)
        with pytest.raises(WriteError):
            write_record(encode_record(make_record()), out)

    # A second write would block forever if the lock were still held
    write_record(encode_record(make_record(stdout=b"ok\n")), out)
    assert parse_file(out)[0].stdout == "ok"


def test_unusable_lock_file(tmp_path, make_record):
    out = tmp_path / "run.rommy"
    lock_path_for(out).mkdir()

    with pytest.raises(LockError, match="Cannot acquire lock"):
        write_record(encode_record(make_record()), out)

    assert not out.exists()


def test_parallel_appends_from_threads(tmp_path, make_record):
    out = tmp_path / "shared.rommy"
    payloads = [f"thread-{i}" for i in range(8)]

    def append(payload: str) -> None:
        data = encode_record(make_record(stdout=f"{payload}\n".encode()))
        write_record(data, out, append=True)

    with ThreadPoolExecutor(max_workers=len(payloads)) as pool:
        list(pool.map(append, payloads))

    records = parse_file(out)
    assert sorted(r.stdout for r in records) == sorted(payloads)


def test_parallel_appends_from_processes(tmp_path):
    out = tmp_path / "shared.rommy"
    payloads = [f"par-{i}" for i in range(6)]

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))

    procs = [
        subprocess.Popen([sys.executable, "-c", CHILD_SCRIPT, payload, str(out)], env=env)
        for payload in payloads
    ]
    for proc in procs:
        assert proc.wait(timeout=60) == 0

    records = parse_file(out)
    assert len(records) == len(payloads)
    by_payload = {r.command.removeprefix("$ echo "): r for r in records}
    assert sorted(by_payload) == sorted(payloads)
    for payload, record in by_payload.items():
        assert record.stdout == "\n".join([payload] * 2000)
    assert _leftover_temp_files(tmp_path) == []


def test_temp_name_collision_leaves_other_file(tmp_path, make_record, monkeypatch):
    out = tmp_path / "run.rommy"
    foreign = tmp_path / ".run.rommy.other.tmp"
    foreign.write_bytes(b"in progress elsewhere")
    monkeypatch.setattr(writer, "temp_path_for", lambda path: foreign)

    with pytest.raises(WriteError, match="Cannot create"):
        write_record(encode_record(make_record()), out)

    assert foreign.read_bytes() == b"in progress elsewhere"
    assert not out.exists()
