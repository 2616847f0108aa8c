"""HTTP play service: mission listing, the save slot and a single game session."""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from ..assets import AssetHandle
from ..config import CasefileSettings
from ..mission import Mission, Scene
from ..persistence import FileKeyValueStore, GameStorage
from ..repository import MissionRepository
from ..session import GameSession, SessionStatus, load_menu_state

logger = logging.getLogger(__name__)


class AssetResource(BaseModel):
    """A resolved image or audio resource."""

    kind: str
    location: str


class OptionResource(BaseModel):
    id: int
    text: str


class SceneResource(BaseModel):
    """The scene currently shown to the player."""

    id: int
    label: str
    question: str
    image: str
    image_asset: AssetResource | None = Field(
        None, description="Resolved image; null means render a placeholder."
    )
    narration: str | None = None
    narration_asset: AssetResource | None = None
    options: list[OptionResource]


class MissionSummary(BaseModel):
    id: str
    title: str
    description: str
    scene_count: int
    start_scene_id: int
    background_audio: str | None = None
    background_tracks: list[str]


class MissionListResponse(BaseModel):
    data: list[MissionSummary]


class MenuResponse(BaseModel):
    has_saved_game: bool
    saved_mission_id: str | None = None
    accessibility_mode: bool


class AccessibilityRequest(BaseModel):
    enabled: bool


class AccessibilityResponse(BaseModel):
    enabled: bool


class NewGameRequest(BaseModel):
    mission_id: str | None = None
    continue_game: bool = False


class SelectOptionRequest(BaseModel):
    option_id: int


class BackgroundTrackRequest(BaseModel):
    track: str | None = None


class GameResponse(BaseModel):
    """Snapshot of the running session."""

    status: SessionStatus
    mission_id: str | None = None
    mission_title: str | None = None
    scene: SceneResource | None = None
    history: list[int] = Field(default_factory=list)
    selected_option: int | None = None
    completion_reason: str | None = None
    accessibility_mode: bool = False
    background_tracks: list[str] = Field(default_factory=list)
    active_background_track: str | None = None


def _asset_resource(handle: AssetHandle | None) -> AssetResource | None:
    if handle is None:
        return None
    return AssetResource(kind=handle.kind, location=handle.location)


def _mission_summary(mission: Mission) -> MissionSummary:
    return MissionSummary(
        id=mission.id,
        title=mission.title,
        description=mission.description,
        scene_count=len(mission.graph.scenes),
        start_scene_id=mission.resolve_start_scene(),
        background_audio=mission.background_audio,
        background_tracks=list(mission.unused_audio_tracks()),
    )


def _scene_resource(session: GameSession, scene: Scene) -> SceneResource:
    return SceneResource(
        id=scene.id,
        label=scene.label,
        question=scene.question,
        image=scene.image,
        image_asset=_asset_resource(session.current_image()),
        narration=session.current_narration(),
        narration_asset=_asset_resource(session.current_narration_asset()),
        options=[OptionResource(id=option.id, text=option.text) for option in scene.options],
    )


def _game_response(session: GameSession) -> GameResponse:
    scene = session.current_scene
    state = session.state
    reason = session.completion_reason
    return GameResponse(
        status=session.status,
        mission_id=session.mission_id,
        mission_title=session.mission.title if session.mission is not None else None,
        scene=_scene_resource(session, scene) if scene is not None else None,
        history=list(state.history) if state is not None else [],
        selected_option=session.selected_option,
        completion_reason=reason.value if reason is not None else None,
        accessibility_mode=session.accessibility_mode,
        background_tracks=list(session.background_tracks()),
        active_background_track=session.active_background_track,
    )


def create_app(
    repository: MissionRepository | None = None,
    storage: GameStorage | None = None,
    *,
    settings: CasefileSettings | None = None,
) -> FastAPI:
    """Create a FastAPI app serving one device's game."""

    resolved_settings = settings or CasefileSettings.from_env()
    missions = (
        repository
        if repository is not None
        else MissionRepository.from_settings(resolved_settings)
    )
    game_storage = (
        storage
        if storage is not None
        else GameStorage(FileKeyValueStore(resolved_settings.save_dir))
    )

    app = FastAPI(
        title="Casefile Play Service",
        description="Play branching detective missions and keep a single save slot.",
    )
    app.state.session = None

    def _require_session() -> GameSession:
        session: GameSession | None = app.state.session
        if session is None:
            raise HTTPException(status_code=409, detail="No game has been started.")
        return session

    @app.get("/api/missions", response_model=MissionListResponse, tags=["Missions"])
    def list_missions() -> MissionListResponse:
        return MissionListResponse(
            data=[_mission_summary(mission) for mission in missions.list_missions()]
        )

    @app.get("/api/missions/{mission_id}", response_model=MissionSummary, tags=["Missions"])
    def get_mission(mission_id: str) -> MissionSummary:
        try:
            return _mission_summary(missions.require(mission_id))
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.get("/api/menu", response_model=MenuResponse, tags=["Menu"])
    async def get_menu() -> MenuResponse:
        menu = await load_menu_state(game_storage)
        return MenuResponse(
            has_saved_game=menu.has_saved_game,
            saved_mission_id=menu.saved_mission_id,
            accessibility_mode=menu.accessibility_mode,
        )

    @app.put(
        "/api/settings/accessibility",
        response_model=AccessibilityResponse,
        tags=["Menu"],
    )
    async def put_accessibility(payload: AccessibilityRequest) -> AccessibilityResponse:
        session: GameSession | None = app.state.session
        if session is not None:
            await session.set_accessibility_mode(payload.enabled)
        else:
            await game_storage.save_accessibility_mode(payload.enabled)
        return AccessibilityResponse(enabled=payload.enabled)

    @app.post("/api/game", response_model=GameResponse, tags=["Game"])
    async def start_game(payload: NewGameRequest) -> GameResponse:
        mission_id = payload.mission_id
        if mission_id is None and payload.continue_game:
            saved = await game_storage.load_game_state()
            if saved is None:
                raise HTTPException(status_code=404, detail="There is no saved game.")
            mission_id = saved.mission_id
        if mission_id is None:
            first = missions.first()
            if first is None:
                raise HTTPException(status_code=404, detail="No missions are available.")
            mission_id = first.id

        previous: GameSession | None = app.state.session
        if previous is not None:
            previous.close()

        session = await GameSession.open(
            missions,
            game_storage,
            mission_id,
            continue_game=payload.continue_game,
            selection_delay=resolved_settings.selection_delay,
        )
        logger.info(
            "Opened mission %r (continue=%s): %s",
            mission_id,
            payload.continue_game,
            session.status.value,
        )
        app.state.session = session
        return _game_response(session)

    @app.get("/api/game", response_model=GameResponse, tags=["Game"])
    def get_game() -> GameResponse:
        return _game_response(_require_session())

    @app.post("/api/game/select", response_model=GameResponse, tags=["Game"])
    async def select_option(payload: SelectOptionRequest) -> GameResponse:
        session = _require_session()
        result = await session.select_option(payload.option_id)
        if result is None:
            if session.closed:
                detail = "Selection ignored because a new game was started."
            elif session.selected_option is not None:
                detail = "Selection ignored while another choice is pending."
            else:
                detail = f"Selection ignored while the game is {session.status.value}."
            raise HTTPException(status_code=409, detail=detail)
        return _game_response(session)

    @app.put("/api/game/background", response_model=GameResponse, tags=["Game"])
    def put_background_track(payload: BackgroundTrackRequest) -> GameResponse:
        session = _require_session()
        try:
            session.choose_background_track(payload.track)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _game_response(session)

    return app


__all__ = ["create_app"]
