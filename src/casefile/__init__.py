"""Core package for the branching detective game."""

from .assets import AssetHandle, AssetResolver, is_remote_reference, track_display_name
from .config import CasefileSettings, configure_logging, parse_log_level
from .game_state import GameState
from .mission import AssetCatalog, Connection, Mission, MissionGraph, Option, Scene
from .mission_loader import (
    MissionDefinitionError,
    MissionValidationReport,
    load_mission_from_file,
    load_mission_from_mapping,
    validate_mission,
)
from .narration import NarrationChannel, select_narration
from .persistence import (
    ACCESSIBILITY_KEY,
    GAME_STATE_KEY,
    FileKeyValueStore,
    GameStorage,
    InMemoryKeyValueStore,
    KeyValueStore,
)
from .repository import MissionRepository
from .session import GameSession, MenuState, SessionStatus, load_menu_state
from .traversal import (
    CompletionReason,
    MissionTraversal,
    TransitionResult,
    TraversalError,
    TraversalStatus,
)

__all__ = [
    "Option",
    "Scene",
    "Connection",
    "AssetCatalog",
    "MissionGraph",
    "Mission",
    "MissionDefinitionError",
    "MissionValidationReport",
    "load_mission_from_file",
    "load_mission_from_mapping",
    "validate_mission",
    "MissionRepository",
    "NarrationChannel",
    "select_narration",
    "AssetHandle",
    "AssetResolver",
    "is_remote_reference",
    "track_display_name",
    "GameState",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "FileKeyValueStore",
    "GameStorage",
    "GAME_STATE_KEY",
    "ACCESSIBILITY_KEY",
    "MissionTraversal",
    "TransitionResult",
    "TraversalStatus",
    "TraversalError",
    "CompletionReason",
    "GameSession",
    "SessionStatus",
    "MenuState",
    "load_menu_state",
    "CasefileSettings",
    "configure_logging",
    "parse_log_level",
]
