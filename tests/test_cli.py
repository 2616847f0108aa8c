"""Smoke tests for the terminal client."""

from __future__ import annotations

import asyncio
import builtins
import json
from collections.abc import Iterator
from pathlib import Path

import pytest

import main
from casefile import (
    GameSession,
    GameState,
    GameStorage,
    MissionRepository,
    SessionStatus,
    load_mission_from_mapping,
)
from conftest import make_mission_payload


class _IteratorInput:
    """Callable helper that returns successive values from an iterator."""

    def __init__(self, values: Iterator[str]) -> None:
        self._values = values

    def __call__(self, prompt: str = "") -> str:  # pragma: no cover - trivial wrapper
        del prompt
        try:
            return next(self._values)
        except StopIteration:
            raise EOFError from None


def _feed(monkeypatch: pytest.MonkeyPatch, *lines: str) -> None:
    monkeypatch.setattr(builtins, "input", _IteratorInput(iter(lines)))


def _session(repository: MissionRepository, storage: GameStorage) -> GameSession:
    return asyncio.run(
        GameSession.open(repository, storage, "harbour", selection_delay=0)
    )


def test_play_to_mission_complete(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    repository: MissionRepository,
    storage: GameStorage,
) -> None:
    session = _session(repository, storage)
    _feed(monkeypatch, "1", "history", "2")

    status = main.run_cli(session)

    output = capsys.readouterr().out
    assert status is SessionStatus.COMPLETE
    assert "Mission: The Harbour Job" in output
    assert "== Office ==" in output
    assert "[image unavailable: office.jpg]" in output
    assert "[narration: office.mp3]" in output
    assert "  1. Watchman" in output
    assert "== Watchman ==" in output
    assert "  1. Office\n  2. Watchman" in output
    assert "Mission Complete" in output


def test_invalid_input_reprompts(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    repository: MissionRepository,
    storage: GameStorage,
) -> None:
    session = _session(repository, storage)
    _feed(monkeypatch, "", "dance", "7", "narration loud", "?", "q")

    status = main.run_cli(session)

    output = capsys.readouterr().out
    assert status is SessionStatus.ACTIVE
    assert "Unknown command 'dance'" in output
    assert "Choose an option between 1 and 2." in output
    assert "Use 'narration on' or 'narration off'." in output
    assert "Commands:" in output
    assert "Your progress has been saved." in output


def test_narration_toggle_switches_track(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    repository: MissionRepository,
    storage: GameStorage,
) -> None:
    session = _session(repository, storage)
    _feed(monkeypatch, "narration on")

    main.run_cli(session)

    output = capsys.readouterr().out
    assert "Audio narration: ON" in output
    assert "[narration: office-extended.mp3]" in output
    assert asyncio.run(storage.load_accessibility_mode()) is True


def test_music_commands(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    storage: GameStorage,
) -> None:
    payload = make_mission_payload(assets={"audio": ["audio/rain.mp3", "audio/wind.mp3"]})
    repository = MissionRepository([load_mission_from_mapping(payload)])
    session = _session(repository, storage)
    _feed(monkeypatch, "music", "music 2", "music 9", "music off")

    main.run_cli(session)

    output = capsys.readouterr().out
    assert "  0. None (Off) *" in output
    assert "  1. rain.mp3" in output
    assert "Now playing wind.mp3." in output
    assert "Pick a track between 1 and 2." in output
    assert "Background music off." in output
    assert session.active_background_track is None


def test_unknown_mission_reports_loading(
    capsys: pytest.CaptureFixture[str],
    repository: MissionRepository,
    storage: GameStorage,
) -> None:
    session = asyncio.run(GameSession.open(repository, storage, "missing"))

    status = main.run_cli(session)

    assert status is SessionStatus.LOADING
    assert "could not be found" in capsys.readouterr().out


def _write_mission(tmp_path: Path) -> Path:
    mission_file = tmp_path / "harbour.json"
    mission_file.write_text(json.dumps(make_mission_payload()), encoding="utf-8")
    return mission_file


def test_main_plays_mission_and_persists_progress(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    mission_file = _write_mission(tmp_path)
    save_dir = tmp_path / "saves"
    _feed(monkeypatch, "1", "quit")

    main.main(
        [
            "--mission-path",
            str(mission_file),
            "--save-dir",
            str(save_dir),
            "--selection-delay-ms",
            "0",
        ]
    )

    saved = json.loads((save_dir / "detective_game_save.json").read_text(encoding="utf-8"))
    assert GameState.from_payload(saved) == GameState("harbour", 2, (1, 2))

    _feed(monkeypatch, "quit")
    main.main(
        [
            "--mission-path",
            str(mission_file),
            "--save-dir",
            str(save_dir),
            "--continue",
            "--accessibility",
        ]
    )

    output = capsys.readouterr().out
    assert output.count("== Watchman ==") == 2
    accessibility = (save_dir / "detective_accessibility_mode.json").read_text(
        encoding="utf-8"
    )
    assert json.loads(accessibility) is True


def test_main_continue_without_save_starts_new_game(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    mission_file = _write_mission(tmp_path)
    _feed(monkeypatch, "q")

    main.main(["--mission-path", str(mission_file), "--no-persistence", "--continue"])

    output = capsys.readouterr().out
    assert "No saved game found; starting a new game." in output
    assert "== Office ==" in output


def test_main_rejects_broken_mission_file(
    capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main.main(["--mission-path", str(broken), "--no-persistence"])

    assert excinfo.value.code == 2
    assert "Failed to load missions" in capsys.readouterr().out


def test_main_strict_flag_rejects_ambiguous_mission(
    capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    mission_file = tmp_path / "loose.json"
    mission_file.write_text(
        json.dumps(make_mission_payload(connections=[])), encoding="utf-8"
    )

    with pytest.raises(SystemExit):
        main.main(["--mission-path", str(mission_file), "--no-persistence", "--strict"])

    assert "strict validation" in capsys.readouterr().out


def test_main_rejects_unknown_log_level(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    monkeypatch.delenv("CASEFILE_LOG_LEVEL", raising=False)
    configured: list[str] = []
    monkeypatch.setattr(main, "configure_logging", configured.append)
    mission_file = _write_mission(tmp_path)

    with pytest.raises(SystemExit) as excinfo:
        main.main(
            ["--mission-path", str(mission_file), "--no-persistence", "--log-level", "bogus"]
        )

    assert excinfo.value.code == 2
    assert "--log-level 'bogus' is not a logging level." in capsys.readouterr().out
    assert configured == []
