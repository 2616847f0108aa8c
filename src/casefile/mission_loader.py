"""Build :class:`~casefile.mission.Mission` objects from JSON definitions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Tuple

from .mission import AssetCatalog, Connection, Mission, MissionGraph, Option, Scene

logger = logging.getLogger(__name__)

IMAGE_FOLDER = "images"
AUDIO_FOLDER = "audio"


class MissionDefinitionError(ValueError):
    """Raised when a mission document cannot be turned into a mission."""


@dataclass(frozen=True)
class MissionValidationReport:
    """Structural problems found in a loaded mission."""

    mission_id: str
    dangling_connections: Tuple[Connection, ...] = ()
    root_candidates: Tuple[int, ...] = ()
    missing_starting_scene: int | None = None
    unreachable_scenes: Tuple[int, ...] = ()
    has_explicit_start: bool = False

    @property
    def ambiguous_start(self) -> bool:
        """Return ``True`` when the start scene is chosen by tie-break."""

        if self.has_explicit_start:
            return False
        return len(self.root_candidates) != 1

    def issues(self) -> Tuple[str, ...]:
        """Return readable descriptions of every problem, worst first."""

        messages: list[str] = []
        for connection in self.dangling_connections:
            messages.append(
                "Connection {} ({} / option {} -> {}) references an unknown scene "
                "or option.".format(
                    connection.id,
                    connection.from_scene_id,
                    connection.from_option_id,
                    connection.to_scene_id,
                )
            )
        if self.missing_starting_scene is not None:
            messages.append(
                f"startingSceneId {self.missing_starting_scene} does not name a scene."
            )
        if self.ambiguous_start:
            if self.root_candidates:
                formatted = ", ".join(str(scene_id) for scene_id in self.root_candidates)
                messages.append(f"Several scenes could be the start scene: {formatted}.")
            else:
                messages.append("Every scene is a connection target; no root scene.")
        if self.unreachable_scenes:
            formatted = ", ".join(str(scene_id) for scene_id in self.unreachable_scenes)
            messages.append(f"Scenes unreachable from the start scene: {formatted}.")
        return tuple(messages)

    @property
    def is_valid(self) -> bool:
        return not self.issues()


def validate_mission(mission: Mission) -> MissionValidationReport:
    """Inspect ``mission`` and report structural issues without raising."""

    graph = mission.graph
    explicit = graph.starting_scene_id
    missing_start = (
        explicit if explicit is not None and graph.find_scene(explicit) is None else None
    )
    has_explicit_start = explicit is not None and missing_start is None

    unreachable: Tuple[int, ...] = ()
    if graph.scenes:
        reachable = graph.reachable_scenes(graph.resolve_start_scene())
        unreachable = tuple(
            scene.id for scene in graph.scenes if scene.id not in reachable
        )

    return MissionValidationReport(
        mission_id=mission.id,
        dangling_connections=graph.dangling_connections(),
        root_candidates=graph.root_candidates(),
        missing_starting_scene=missing_start,
        unreachable_scenes=unreachable,
        has_explicit_start=has_explicit_start,
    )


def _require_int(value: Any, *, context: str) -> int:
    # bool is an int subclass but never a valid identifier
    if isinstance(value, bool) or not isinstance(value, int):
        raise MissionDefinitionError(f"{context} must be an integer.")
    return value


def _require_str(value: Any, *, context: str) -> str:
    if not isinstance(value, str):
        raise MissionDefinitionError(f"{context} must be a string.")
    return value


def _optional_str(value: Any, *, context: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise MissionDefinitionError(f"{context} must be a string when provided.")
    return value or None


def _first_present(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return None


def _parse_scene(payload: Any, *, index: int) -> Scene:
    if not isinstance(payload, Mapping):
        raise MissionDefinitionError(f"Scene #{index} must be an object definition.")

    scene_id = _require_int(payload.get("id"), context=f"Scene #{index} 'id'")
    context = f"Scene {scene_id}"

    raw_options = payload.get("options", [])
    if not isinstance(raw_options, list):
        raise MissionDefinitionError(f"{context} must define a list of options.")

    options: list[Option] = []
    for option_index, option_payload in enumerate(raw_options):
        if not isinstance(option_payload, Mapping):
            raise MissionDefinitionError(
                f"Option #{option_index} in {context.lower()} must be an object definition."
            )
        options.append(
            Option(
                id=_require_int(
                    option_payload.get("id"),
                    context=f"Option #{option_index} in {context.lower()} 'id'",
                ),
                text=_require_str(
                    option_payload.get("text", ""),
                    context=f"Option #{option_index} in {context.lower()} 'text'",
                ),
            )
        )

    try:
        return Scene(
            id=scene_id,
            label=_require_str(payload.get("label", ""), context=f"{context} 'label'"),
            image=_require_str(payload.get("image", ""), context=f"{context} 'image'"),
            question=_require_str(
                payload.get("question", ""), context=f"{context} 'question'"
            ),
            options=tuple(options),
            audio=_optional_str(payload.get("audio"), context=f"{context} 'audio'"),
            extended_audio=_optional_str(
                _first_present(payload, "extendedAudio", "extended_audio"),
                context=f"{context} 'extendedAudio'",
            ),
        )
    except ValueError as exc:
        if isinstance(exc, MissionDefinitionError):
            raise
        raise MissionDefinitionError(str(exc)) from exc


def _parse_connection(payload: Any, *, index: int) -> Connection:
    if not isinstance(payload, Mapping):
        raise MissionDefinitionError(
            f"Connection #{index} must be an object definition."
        )

    context = f"Connection #{index}"
    return Connection(
        id=_require_int(payload.get("id"), context=f"{context} 'id'"),
        from_scene_id=_require_int(
            _first_present(payload, "fromSceneId", "fromBoxId"),
            context=f"{context} 'fromSceneId'",
        ),
        from_option_id=_require_int(
            payload.get("fromOptionId"), context=f"{context} 'fromOptionId'"
        ),
        to_scene_id=_require_int(
            _first_present(payload, "toSceneId", "toBoxId"),
            context=f"{context} 'toSceneId'",
        ),
    )


def _graph_block(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the mapping holding ``boxes``/``connections``.

    Older documents nest the graph under ``data``; newer ones keep it at the
    top level next to the mission metadata.
    """

    if "boxes" in payload:
        return payload
    nested = payload.get("data")
    if isinstance(nested, Mapping) and "boxes" in nested:
        return nested
    raise MissionDefinitionError(
        "Mission must define 'boxes' either at the top level or under 'data'."
    )


def _scan_folder(base_path: Path, folder: str) -> dict[str, Path]:
    root = base_path / folder
    if not root.is_dir():
        return {}
    return {
        path.relative_to(base_path).as_posix(): path
        for path in sorted(root.rglob("*"))
        if path.is_file() and not path.name.startswith(".")
    }


def _declared_assets(
    payload: Any, *, base_path: Path | None, kind: str
) -> dict[str, Path]:
    if payload is None:
        return {}

    root = base_path if base_path is not None else Path(".")
    if isinstance(payload, list):
        entries = {}
        for entry in payload:
            key = _require_str(entry, context=f"Asset entry in '{kind}'")
            entries[key] = root / key
        return entries
    if isinstance(payload, Mapping):
        return {
            _require_str(key, context=f"Asset key in '{kind}'"): root
            / _require_str(value, context=f"Asset path for '{key}'")
            for key, value in payload.items()
        }
    raise MissionDefinitionError(
        f"Assets '{kind}' must be a list of keys or a mapping of keys to paths."
    )


def build_asset_catalog(
    payload: Mapping[str, Any] | None = None,
    *,
    base_path: Path | None = None,
) -> AssetCatalog:
    """Collect the bundled images and audio known for a mission.

    Files under ``images/`` and ``audio/`` next to the mission document are
    picked up automatically; the optional ``assets`` block adds explicit
    entries on top.
    """

    images: dict[str, Path] = {}
    audio: dict[str, Path] = {}
    if base_path is not None:
        images.update(_scan_folder(base_path, IMAGE_FOLDER))
        audio.update(_scan_folder(base_path, AUDIO_FOLDER))

    if payload is not None:
        if not isinstance(payload, Mapping):
            raise MissionDefinitionError("Mission 'assets' must be an object.")
        images.update(
            _declared_assets(payload.get("images"), base_path=base_path, kind="images")
        )
        audio.update(
            _declared_assets(payload.get("audio"), base_path=base_path, kind="audio")
        )

    return AssetCatalog(images=images, audio=audio)


def load_mission_from_mapping(
    payload: Mapping[str, Any],
    *,
    base_path: Path | None = None,
    strict: bool = False,
) -> Mission:
    """Convert a parsed mission document into a :class:`Mission`.

    Both the flat layout (``boxes``/``connections`` next to ``id`` and
    ``title``) and the nested legacy layout (under ``data``) are accepted.
    Presentation-only fields such as layout coordinates are ignored.

    When ``strict`` is set, dangling connections, a ``startingSceneId``
    that names no scene, and graphs without exactly one root scene are
    rejected instead of logged.
    """

    if not isinstance(payload, Mapping):
        raise MissionDefinitionError("Mission definitions must be objects.")

    mission_id = payload.get("id")
    if not isinstance(mission_id, str) or not mission_id.strip():
        raise MissionDefinitionError("Mission must define a non-empty string 'id'.")
    mission_id = mission_id.strip()

    title = _require_str(payload.get("title", mission_id), context="Mission 'title'")
    description = _require_str(
        payload.get("description", ""), context="Mission 'description'"
    )

    block = _graph_block(payload)

    raw_scenes = block.get("boxes")
    if not isinstance(raw_scenes, list):
        raise MissionDefinitionError(f"Mission '{mission_id}' 'boxes' must be a list.")
    if not raw_scenes:
        raise MissionDefinitionError(f"Mission '{mission_id}' defines no scenes.")

    raw_connections = block.get("connections", [])
    if not isinstance(raw_connections, list):
        raise MissionDefinitionError(
            f"Mission '{mission_id}' 'connections' must be a list."
        )

    scenes = [_parse_scene(entry, index=index) for index, entry in enumerate(raw_scenes)]
    connections = [
        _parse_connection(entry, index=index)
        for index, entry in enumerate(raw_connections)
    ]

    starting_raw = _first_present(block, "startingSceneId", "starting_scene_id")
    if starting_raw is None and block is not payload:
        starting_raw = payload.get("startingSceneId")
    starting_scene_id = (
        None
        if starting_raw is None
        else _require_int(starting_raw, context=f"Mission '{mission_id}' 'startingSceneId'")
    )

    background_raw = _first_present(block, "backgroundAudio", "background_audio")
    if background_raw is None and block is not payload:
        background_raw = payload.get("backgroundAudio")
    background_audio = _optional_str(
        background_raw, context=f"Mission '{mission_id}' 'backgroundAudio'"
    )

    try:
        graph = MissionGraph(
            scenes,
            connections,
            starting_scene_id=starting_scene_id,
            background_audio=background_audio,
        )
    except ValueError as exc:
        raise MissionDefinitionError(f"Mission '{mission_id}': {exc}") from exc

    mission = Mission(
        id=mission_id,
        title=title,
        description=description,
        graph=graph,
        assets=build_asset_catalog(payload.get("assets"), base_path=base_path),
    )

    report = validate_mission(mission)
    if strict:
        blocking = (
            bool(report.dangling_connections)
            or report.missing_starting_scene is not None
            or report.ambiguous_start
        )
        if blocking:
            raise MissionDefinitionError(
                f"Mission '{mission_id}' failed strict validation: "
                + " ".join(report.issues())
            )
    for issue in report.issues():
        logger.warning("Mission %r: %s", mission_id, issue)

    return mission


def load_mission_from_file(path: str | Path, *, strict: bool = False) -> Mission:
    """Load a mission from a JSON document on disk.

    Asset folders are resolved relative to the document's directory.
    """

    mission_path = Path(path)
    with mission_path.open("r", encoding="utf-8") as handle:
        try:
            raw_data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise MissionDefinitionError(
                f"Mission file '{mission_path}' is not valid JSON: {exc}"
            ) from exc

    if not isinstance(raw_data, Mapping):
        raise MissionDefinitionError(
            f"Mission file '{mission_path}' must contain an object at the top level."
        )

    return load_mission_from_mapping(
        raw_data, base_path=mission_path.parent, strict=strict
    )


__all__ = [
    "MissionDefinitionError",
    "MissionValidationReport",
    "build_asset_catalog",
    "load_mission_from_file",
    "load_mission_from_mapping",
    "validate_mission",
]
