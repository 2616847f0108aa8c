"""Test configuration for the detective game project."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from typing import Any

import pytest

from casefile import (
    GameStorage,
    InMemoryKeyValueStore,
    KeyValueStore,
    Mission,
    MissionRepository,
    load_mission_from_mapping,
)


def make_mission_payload(**overrides: Any) -> dict[str, Any]:
    """Return the three-scene case: S1 --A--> S2 and S1 --B--> S3."""

    payload: dict[str, Any] = {
        "id": "harbour",
        "title": "The Harbour Job",
        "description": "Someone broke into the harbour office.",
        "boxes": [
            {
                "id": 1,
                "label": "Office",
                "image": "office.jpg",
                "question": "Where do you start?",
                "options": [{"id": 11, "text": "Watchman"}, {"id": 12, "text": "Safe"}],
                "audio": "audio/office.mp3",
                "extendedAudio": "audio/office-extended.mp3",
                "x": 10,
                "y": 20,
            },
            {
                "id": 2,
                "label": "Watchman",
                "image": "watchman.jpg",
                "question": "He saw nobody.",
                "options": [{"id": 21, "text": "Accuse"}, {"id": 22, "text": "Leave"}],
                "audio": "audio/watchman.mp3",
            },
            {
                "id": 3,
                "label": "Safe",
                "image": "https://example.com/safe.jpg",
                "question": "The safe is open.",
                "options": [{"id": 31, "text": "Dust for prints"}],
            },
        ],
        "connections": [
            {"id": 100, "fromSceneId": 1, "fromOptionId": 11, "toSceneId": 2},
            {"id": 101, "fromSceneId": 1, "fromOptionId": 12, "toSceneId": 3},
        ],
    }
    payload.update(overrides)
    return payload


class FailingKeyValueStore(KeyValueStore):
    """Store whose every operation raises, for exercising failure paths."""

    def save(self, key: str, value: str) -> None:
        raise OSError("disk full")

    def load(self, key: str) -> str | None:
        raise OSError("disk unreadable")

    def delete(self, key: str) -> None:
        raise OSError("disk unreadable")


@pytest.fixture()
def mission_payload() -> dict[str, Any]:
    return make_mission_payload()


@pytest.fixture()
def mission(mission_payload: dict[str, Any]) -> Mission:
    return load_mission_from_mapping(mission_payload)


@pytest.fixture()
def repository(mission: Mission) -> MissionRepository:
    return MissionRepository([mission])


@pytest.fixture()
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def storage(store: InMemoryKeyValueStore) -> GameStorage:
    return GameStorage(store)


__all__ = ["FailingKeyValueStore", "make_mission_payload"]
