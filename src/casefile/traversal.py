"""State machine that walks a player through a mission graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .game_state import GameState
from .mission import Mission, Scene

logger = logging.getLogger(__name__)


class TraversalError(RuntimeError):
    """Raised when a transition is requested from an invalid state."""


class TraversalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETE = "complete"


class CompletionReason(str, Enum):
    """Why a mission ended.

    ``EXPLICIT_END`` is the authored end of the story: the chosen option has
    no outgoing connection. ``DANGLING_REFERENCE`` means a connection pointed
    at a scene that does not exist. Both finish the mission for the player.
    """

    EXPLICIT_END = "explicit_end"
    DANGLING_REFERENCE = "dangling_reference"


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a single option selection."""

    status: TraversalStatus
    state: GameState
    scene: Scene | None = None
    reason: CompletionReason | None = None

    @property
    def completed(self) -> bool:
        return self.status is TraversalStatus.COMPLETE


class MissionTraversal:
    """Drive one play-through of ``mission``.

    The traversal is either active, positioned on a scene, or complete. A
    completed traversal accepts no further selections; start a new one to
    replay the mission.
    """

    def __init__(self, mission: Mission, state: GameState) -> None:
        if state.mission_id != mission.id:
            raise ValueError(
                f"Game state belongs to mission '{state.mission_id}', not '{mission.id}'."
            )
        self.mission = mission
        self._state = state
        self._status = TraversalStatus.ACTIVE
        self._reason: CompletionReason | None = None

    @classmethod
    def start(cls, mission: Mission) -> "MissionTraversal":
        """Begin a fresh play-through at the mission's start scene."""

        return cls(mission, GameState.start(mission.id, mission.resolve_start_scene()))

    @classmethod
    def resume(cls, mission: Mission, state: GameState) -> "MissionTraversal":
        """Continue from a saved ``state``.

        Raises:
            ValueError: If the state belongs to another mission or points at a
                scene the mission no longer has.
        """

        if mission.find_scene(state.current_scene_id) is None:
            raise ValueError(
                f"Saved scene {state.current_scene_id} is not part of mission "
                f"'{mission.id}'."
            )
        return cls(mission, state)

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def status(self) -> TraversalStatus:
        return self._status

    @property
    def is_complete(self) -> bool:
        return self._status is TraversalStatus.COMPLETE

    @property
    def completion_reason(self) -> CompletionReason | None:
        return self._reason

    @property
    def current_scene(self) -> Scene | None:
        if self.is_complete:
            return None
        return self.mission.find_scene(self._state.current_scene_id)

    def select_option(self, option_id: int) -> TransitionResult:
        """Apply the player's choice of ``option_id`` in the current scene.

        Raises:
            TraversalError: If the mission is already complete.
        """

        if self.is_complete:
            raise TraversalError(f"Mission '{self.mission.id}' is already complete.")

        current_id = self._state.current_scene_id
        scene = self.mission.find_scene(current_id)
        if scene is not None and scene.find_option(option_id) is None:
            logger.warning(
                "Mission %r: scene %s offers no option %s",
                self.mission.id,
                current_id,
                option_id,
            )

        connection = self.mission.find_connection(current_id, option_id)
        if connection is None:
            return self._complete(CompletionReason.EXPLICIT_END)

        target = self.mission.find_scene(connection.to_scene_id)
        if target is None:
            logger.warning(
                "Mission %r: connection %s from scene %s leads to missing scene %s",
                self.mission.id,
                connection.id,
                current_id,
                connection.to_scene_id,
            )
            return self._complete(CompletionReason.DANGLING_REFERENCE)

        self._state = self._state.advanced_to(target.id)
        return TransitionResult(
            status=TraversalStatus.ACTIVE, state=self._state, scene=target
        )

    def _complete(self, reason: CompletionReason) -> TransitionResult:
        self._status = TraversalStatus.COMPLETE
        self._reason = reason
        logger.info("Mission %r complete (%s)", self.mission.id, reason.value)
        return TransitionResult(
            status=TraversalStatus.COMPLETE, state=self._state, reason=reason
        )


__all__ = [
    "CompletionReason",
    "MissionTraversal",
    "TransitionResult",
    "TraversalError",
    "TraversalStatus",
]
