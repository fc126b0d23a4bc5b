"""Scratch scripts written in an editor when no command is given."""

from __future__ import annotations

import os
import sys
import tempfile
import time
from pathlib import Path

import click

from rommy.errors import ScratchError
from rommy.models.config import Environment

TEMPLATE = """#!/usr/bin/env bash
set -Eeuo pipefail
# Rommy scratch script: write your commands below, then save & close the editor.
echo "Hello from Rommy scratch!"
"""


def pick_editor(env: Environment, platform: str = sys.platform) -> str:
    """Editor command from $EDITOR, then $VISUAL, else a platform default."""
    if env.editor:
        return env.editor
    if env.visual:
        return env.visual
    return "notepad" if platform == "win32" else "nano"


def editor_wait_args(editor: str) -> list[str]:
    """Flags that keep GUI editors attached until the file is closed."""
    name = editor.lower()
    if "code" in name or "codium" in name:
        return ["--wait"]
    if "subl" in name or "sublime_text" in name:
        return ["-w"]
    if "gedit" in name:
        return ["--wait"]
    return []


def write_scratch_script(path: Path) -> None:
    path.write_text(TEMPLATE, encoding="utf-8")
    path.chmod(0o755)


def has_real_content(source: str) -> bool:
    """True when at least one line is neither blank nor a comment."""
    for line in source.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            return True
    return False


def launch_editor_and_get_script(env: Environment, scratch_dir: Path | None = None) -> Path:
    """Open a scratch script in an editor and return its path once saved."""
    if scratch_dir is None:
        scratch_dir = Path(tempfile.gettempdir()) / "rommy"
    try:
        scratch_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ScratchError(f"Failed to create scratch dir {scratch_dir}") from e

    script_path = scratch_dir / f"scratch-{int(time.time())}-{os.getpid()}.sh"
    try:
        write_scratch_script(script_path)
    except OSError as e:
        raise ScratchError(f"Failed to write scratch script {script_path}") from e

    editor = pick_editor(env)
    editor_cmd = " ".join([editor, *editor_wait_args(editor)])
    try:
        click.edit(filename=str(script_path), editor=editor_cmd)
    except click.ClickException as e:
        raise ScratchError(f"Failed to launch editor '{editor}': {e.message}") from e

    source = script_path.read_text(encoding="utf-8")
    if not has_real_content(source):
        raise ScratchError("Scratch script is empty. Aborting.")

    return script_path
