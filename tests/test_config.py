"""Tests for configuration loading and color detection."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from rommy.config import color_is_enabled, load_config, load_environment
from rommy.models.config import Config, Environment


def test_missing_config_gives_defaults(tmp_path):
    config = load_config(tmp_path / "absent.toml")
    assert config == Config()
    assert config.run.stream is True
    assert config.run.color == "auto"
    assert config.logging.level == "warning"


def test_load_config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[run]\nstream = false\ncolor = "never"\nappend = true\n'
        '[output]\nroot_dir = "/var/lib/rommy"\n'
        '[logging]\nlevel = "debug"\n',
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.run.stream is False
    assert config.run.color == "never"
    assert config.run.append is True
    assert config.output.root_dir == Path("/var/lib/rommy")
    assert config.logging.level == "debug"


def test_invalid_config_rejected(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[run]\ncolor = "sometimes"\n', encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(path)


def test_environment_snapshot():
    env = load_environment(
        {
            "NO_COLOR": "",
            "CLICOLOR": "0",
            "ROMMY_ROOT": "/r",
            "EDITOR": "vim",
            "UNRELATED": "x",
        }
    )
    assert env.no_color is True
    assert env.clicolor == "0"
    assert env.clicolor_force is False
    assert env.rommy_root == "/r"
    assert env.editor == "vim"
    assert env.visual is None


def test_environment_is_frozen():
    env = load_environment({})
    with pytest.raises(ValidationError):
        env.editor = "nano"


@pytest.mark.parametrize(
    "choice, env, is_tty, expected",
    [
        ("always", Environment(), False, True),
        ("never", Environment(), True, False),
        ("always", Environment(no_color=True), True, False),
        ("auto", Environment(), True, True),
        ("auto", Environment(), False, False),
        ("auto", Environment(clicolor_force=True), False, True),
        ("auto", Environment(clicolor="0"), True, False),
        ("auto", Environment(clicolor="1"), True, True),
    ],
)
def test_color_is_enabled(choice, env, is_tty, expected):
    assert color_is_enabled(choice, env, is_tty) is expected
