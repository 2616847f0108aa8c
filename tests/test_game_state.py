"""Tests for the serialisable game state."""

from __future__ import annotations

import json

import pytest

from casefile import GameState


def test_start_state_has_start_scene_in_history() -> None:
    state = GameState.start("harbour", 1)

    assert state.current_scene_id == 1
    assert state.history == (1,)


def test_advancing_appends_to_history_without_mutating() -> None:
    start = GameState.start("harbour", 1)

    moved = start.advanced_to(2).advanced_to(1)

    assert start.history == (1,)
    assert moved.current_scene_id == 1
    assert moved.history == (1, 2, 1)


def test_payload_uses_camel_case_field_names() -> None:
    state = GameState("harbour", 2, (1, 2))

    assert state.to_payload() == {
        "missionId": "harbour",
        "currentSceneId": 2,
        "history": [1, 2],
    }
    assert json.loads(state.to_json()) == state.to_payload()


def test_json_round_trip_is_exact() -> None:
    state = GameState("mission-1", 1771194711777, (1771194709306, 1771194711777))

    assert GameState.from_json(state.to_json()) == state


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {},
        {"missionId": 3, "currentSceneId": 1, "history": [1]},
        {"missionId": "m", "currentSceneId": "1", "history": [1]},
        {"missionId": "m", "currentSceneId": True, "history": [1]},
        {"missionId": "m", "currentSceneId": 1, "history": "1"},
        {"missionId": "m", "currentSceneId": 1, "history": [1, "2"]},
        {"missionId": " ", "currentSceneId": 1, "history": [1]},
    ],
)
def test_invalid_payloads_are_rejected(payload: object) -> None:
    with pytest.raises(ValueError):
        GameState.from_payload(payload)  # type: ignore[arg-type]


def test_invalid_json_is_rejected() -> None:
    with pytest.raises(ValueError, match="Invalid game state JSON"):
        GameState.from_json("{oops")
