"""Asynchronous controller for a single play-through."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .assets import AssetHandle, AssetResolver
from .game_state import GameState
from .mission import Mission, Scene
from .narration import NarrationChannel, select_narration
from .persistence import GameStorage
from .repository import MissionRepository
from .traversal import CompletionReason, MissionTraversal, TransitionResult

logger = logging.getLogger(__name__)

DEFAULT_SELECTION_DELAY = 0.3


class SessionStatus(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class MenuState:
    """What a main menu needs to know before a game starts."""

    has_saved_game: bool
    saved_mission_id: str | None
    accessibility_mode: bool


async def load_menu_state(storage: GameStorage) -> MenuState:
    """Read the save slot and accessibility preference for a main menu."""

    saved = await storage.load_game_state()
    return MenuState(
        has_saved_game=saved is not None,
        saved_mission_id=saved.mission_id if saved is not None else None,
        accessibility_mode=await storage.load_accessibility_mode(),
    )


class GameSession:
    """Couples a :class:`MissionTraversal` with storage and presentation state.

    Only one selection may be in flight at a time. A selection waits for
    ``selection_delay`` seconds so the chosen option can be highlighted,
    then applies the transition and persists the outcome: the new state
    while the mission is active, or a cleared save once it is complete.

    A session created for an unknown mission stays in the ``LOADING``
    status and ignores every selection.
    """

    def __init__(
        self,
        mission: Mission | None,
        traversal: MissionTraversal | None,
        storage: GameStorage,
        *,
        accessibility_mode: bool = False,
        selection_delay: float = DEFAULT_SELECTION_DELAY,
        resolver: AssetResolver | None = None,
        mission_id: str | None = None,
    ) -> None:
        if selection_delay < 0:
            raise ValueError("selection_delay must not be negative")
        self.mission = mission
        self.mission_id = mission.id if mission is not None else mission_id
        self.storage = storage
        self.selection_delay = selection_delay
        self.resolver = resolver or AssetResolver()
        self._traversal = traversal
        self._accessibility_mode = accessibility_mode
        self._pending_option: int | None = None
        self._closed = False
        self._active_background_track = (
            mission.background_audio if mission is not None else None
        )

    @classmethod
    async def open(
        cls,
        repository: MissionRepository,
        storage: GameStorage,
        mission_id: str,
        *,
        continue_game: bool = False,
        selection_delay: float = DEFAULT_SELECTION_DELAY,
        resolver: AssetResolver | None = None,
    ) -> "GameSession":
        """Start or continue ``mission_id`` and persist the initial state.

        When continuing, a missing, corrupt or foreign save (another mission,
        or a scene the mission no longer has) falls back to a fresh start.
        """

        accessibility_mode = await storage.load_accessibility_mode()

        mission = repository.get(mission_id)
        if mission is None:
            logger.warning("Mission %r is not registered; session stays loading", mission_id)
            return cls(
                None,
                None,
                storage,
                accessibility_mode=accessibility_mode,
                selection_delay=selection_delay,
                resolver=resolver,
                mission_id=mission_id,
            )

        traversal: MissionTraversal | None = None
        if continue_game:
            saved = await storage.load_game_state()
            if saved is None:
                logger.info("No saved game to continue; starting %r afresh", mission.id)
            elif saved.mission_id != mission.id:
                logger.info(
                    "Saved game belongs to %r; starting %r afresh",
                    saved.mission_id,
                    mission.id,
                )
            else:
                try:
                    traversal = MissionTraversal.resume(mission, saved)
                except ValueError as exc:
                    logger.warning("Cannot resume saved game: %s", exc)

        if traversal is None:
            traversal = MissionTraversal.start(mission)

        await storage.save_game_state(traversal.state)
        return cls(
            mission,
            traversal,
            storage,
            accessibility_mode=accessibility_mode,
            selection_delay=selection_delay,
            resolver=resolver,
        )

    @property
    def status(self) -> SessionStatus:
        if self._traversal is None:
            return SessionStatus.LOADING
        if self._traversal.is_complete:
            return SessionStatus.COMPLETE
        return SessionStatus.ACTIVE

    @property
    def state(self) -> GameState | None:
        return self._traversal.state if self._traversal is not None else None

    @property
    def completion_reason(self) -> CompletionReason | None:
        return self._traversal.completion_reason if self._traversal is not None else None

    @property
    def current_scene(self) -> Scene | None:
        return self._traversal.current_scene if self._traversal is not None else None

    @property
    def selected_option(self) -> int | None:
        """Return the option whose transition is in flight, if any."""

        return self._pending_option

    @property
    def accepts_input(self) -> bool:
        return (
            not self._closed
            and self.status is SessionStatus.ACTIVE
            and self._pending_option is None
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Detach the session from the save slot.

        A selection still waiting out its delay is dropped without touching
        storage, and later selections are ignored.
        """

        self._closed = True

    async def select_option(self, option_id: int) -> TransitionResult | None:
        """Choose ``option_id`` in the current scene.

        Returns ``None`` when the selection is ignored: the session is not
        active, another selection is still being applied, or the session was
        closed before the selection settled.
        """

        if self._closed:
            logger.debug("Ignoring option %s: session is closed", option_id)
            return None
        if self._traversal is None or self._traversal.is_complete:
            logger.debug("Ignoring option %s: session is %s", option_id, self.status.value)
            return None
        if self._pending_option is not None:
            logger.debug(
                "Ignoring option %s while option %s is applied",
                option_id,
                self._pending_option,
            )
            return None

        self._pending_option = option_id
        try:
            if self.selection_delay:
                await asyncio.sleep(self.selection_delay)
            if self._closed:
                logger.info(
                    "Dropping option %s: mission %r was closed", option_id, self.mission_id
                )
                return None
            result = self._traversal.select_option(option_id)
            if result.completed:
                await self.storage.clear_game_state()
            else:
                await self.storage.save_game_state(result.state)
        finally:
            self._pending_option = None
        return result

    @property
    def accessibility_mode(self) -> bool:
        return self._accessibility_mode

    async def set_accessibility_mode(self, enabled: bool) -> None:
        self._accessibility_mode = bool(enabled)
        await self.storage.save_accessibility_mode(self._accessibility_mode)

    @property
    def narration_channel(self) -> NarrationChannel:
        return NarrationChannel.for_accessibility(self._accessibility_mode)

    def current_narration(self) -> str | None:
        """Return the narration reference for the current scene."""

        scene = self.current_scene
        if scene is None:
            return None
        return select_narration(scene, self.narration_channel)

    def current_narration_asset(self) -> AssetHandle | None:
        if self.mission is None:
            return None
        return self.resolver.resolve_audio(self.mission, self.current_narration())

    def current_image(self) -> AssetHandle | None:
        """Return the resolved image for the current scene.

        ``None`` means the caller should show a placeholder.
        """

        scene = self.current_scene
        if scene is None or self.mission is None:
            return None
        return self.resolver.resolve_image(self.mission, scene.image)

    def background_tracks(self) -> Tuple[str, ...]:
        if self.mission is None:
            return ()
        return self.mission.unused_audio_tracks()

    @property
    def active_background_track(self) -> str | None:
        return self._active_background_track

    def choose_background_track(self, track: str | None) -> None:
        """Switch the looping background track, or turn it off with ``None``.

        Raises:
            ValueError: If ``track`` is not one of the mission's tracks.
        """

        if track is not None:
            allowed = set(self.background_tracks())
            if self.mission is not None and self.mission.background_audio:
                allowed.add(self.mission.background_audio)
            if track not in allowed:
                raise ValueError(f"Unknown background track '{track}'.")
        self._active_background_track = track


__all__ = [
    "DEFAULT_SELECTION_DELAY",
    "GameSession",
    "MenuState",
    "SessionStatus",
    "load_menu_state",
]
