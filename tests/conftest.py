"""Shared fixtures for rommy tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from rommy.models.record import LineCommand, RunRecord


@pytest.fixture
def make_record():
    """Factory for run records with sensible defaults."""

    def _make(
        stdout: bytes = b"",
        stderr: bytes = b"",
        exit_code: int = 0,
        command=None,
        output_path: Path = Path("/tmp/out.rommy"),
        **overrides,
    ) -> RunRecord:
        start = datetime(2025, 10, 20, 17, 30, 48, tzinfo=timezone.utc)
        fields = {
            "tool_version": "0.1.0",
            "cwd": Path("/home/ollie"),
            "user": "ollie",
            "host": "devbox",
            "command": command or LineCommand(text="echo hello"),
            "start_ts": start,
            "end_ts": start + timedelta(milliseconds=1500),
            "output_path": output_path,
            "exit_code": exit_code,
            "stdout": stdout,
            "stderr": stderr,
        }
        fields.update(overrides)
        return RunRecord(**fields)

    return _make
