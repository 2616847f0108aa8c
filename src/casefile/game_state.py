"""Serializable traversal cursor for an in-progress mission."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Tuple


@dataclass(frozen=True)
class GameState:
    """Where the player is within a mission and how they got there.

    ``history`` lists every visited scene id in order, starting with the
    start scene. It only ever grows; a cycle in the mission graph shows up
    as repeated ids.
    """

    mission_id: str
    current_scene_id: int
    history: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.mission_id, str) or not self.mission_id.strip():
            raise ValueError("mission_id must be a non-empty string")
        object.__setattr__(self, "history", tuple(self.history))

    @classmethod
    def start(cls, mission_id: str, start_scene_id: int) -> "GameState":
        """Return the state for a fresh play-through."""

        return cls(
            mission_id=mission_id,
            current_scene_id=start_scene_id,
            history=(start_scene_id,),
        )

    def advanced_to(self, scene_id: int) -> "GameState":
        """Return a copy positioned at ``scene_id`` with it appended to history."""

        return GameState(
            mission_id=self.mission_id,
            current_scene_id=scene_id,
            history=self.history + (scene_id,),
        )

    def to_payload(self) -> Dict[str, object]:
        """Return a JSON-serialisable representation of the state."""

        return {
            "missionId": self.mission_id,
            "currentSceneId": self.current_scene_id,
            "history": list(self.history),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "GameState":
        """Build a state from its stored payload.

        Raises:
            ValueError: If the payload is not a valid game state.
        """

        if not isinstance(payload, Mapping):
            raise ValueError("Invalid game state payload: expected an object")

        mission_id = payload.get("missionId")
        if not isinstance(mission_id, str):
            raise ValueError("Invalid game state payload: missionId must be a string")

        current = payload.get("currentSceneId")
        if not _is_scene_id(current):
            raise ValueError(
                "Invalid game state payload: currentSceneId must be an integer"
            )

        history = payload.get("history", [])
        if not isinstance(history, Iterable) or isinstance(history, (str, bytes, Mapping)):
            raise ValueError("Invalid game state payload: history must be a list")
        history_ids = tuple(history)
        if not all(_is_scene_id(entry) for entry in history_ids):
            raise ValueError("Invalid game state payload: history must hold integers")

        return cls(mission_id=mission_id, current_scene_id=current, history=history_ids)

    def to_json(self) -> str:
        return json.dumps(self.to_payload())

    @classmethod
    def from_json(cls, text: str) -> "GameState":
        """Parse a state serialised with :meth:`to_json`.

        Raises:
            ValueError: If ``text`` is not valid JSON or not a game state.
        """

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid game state JSON: {exc}") from exc
        return cls.from_payload(payload)


def _is_scene_id(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


__all__ = ["GameState"]
