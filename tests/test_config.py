"""Tests for environment-driven settings."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from casefile import CasefileSettings


def test_defaults_when_environment_is_empty() -> None:
    settings = CasefileSettings.from_env({})

    assert settings.mission_paths == ()
    assert settings.save_dir == Path("~/.casefile").expanduser()
    assert settings.selection_delay_ms == 300
    assert settings.selection_delay == pytest.approx(0.3)
    assert settings.strict_missions is False
    assert settings.log_level == "WARNING"


def test_values_are_read_from_environment(tmp_path: Path) -> None:
    settings = CasefileSettings.from_env(
        {
            "CASEFILE_MISSION_PATHS": os.pathsep.join(
                [str(tmp_path / "a"), " ", str(tmp_path / "b.json")]
            ),
            "CASEFILE_SAVE_DIR": f"  {tmp_path / 'saves'}  ",
            "CASEFILE_SELECTION_DELAY_MS": "0",
            "CASEFILE_STRICT_MISSIONS": "Yes",
            "CASEFILE_LOG_LEVEL": "debug",
        }
    )

    assert settings.mission_paths == (tmp_path / "a", tmp_path / "b.json")
    assert settings.save_dir == tmp_path / "saves"
    assert settings.selection_delay == 0
    assert settings.strict_missions is True
    assert settings.log_level == "DEBUG"


def test_blank_values_fall_back_to_defaults() -> None:
    settings = CasefileSettings.from_env(
        {
            "CASEFILE_SAVE_DIR": "   ",
            "CASEFILE_SELECTION_DELAY_MS": "",
            "CASEFILE_STRICT_MISSIONS": " ",
        }
    )

    assert settings.save_dir == Path("~/.casefile").expanduser()
    assert settings.selection_delay_ms == 300
    assert settings.strict_missions is False


@pytest.mark.parametrize(
    "name, value",
    [
        ("CASEFILE_SELECTION_DELAY_MS", "soon"),
        ("CASEFILE_SELECTION_DELAY_MS", "-5"),
        ("CASEFILE_STRICT_MISSIONS", "maybe"),
        ("CASEFILE_LOG_LEVEL", "LOUD"),
    ],
)
def test_invalid_values_name_the_variable(name: str, value: str) -> None:
    with pytest.raises(ValueError, match=name):
        CasefileSettings.from_env({name: value})
