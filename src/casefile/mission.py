"""Immutable data structures describing a mission's scene graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple


def _validate_text(value: str, *, field_name: str) -> str:
    """Validate free-form text used by scenes and options."""

    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string, got {type(value)!r}")
    return value.strip()


@dataclass(frozen=True)
class Option:
    """A labelled choice attached to a scene."""

    id: int
    text: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "text", _validate_text(self.text, field_name="option text"))


@dataclass(frozen=True)
class Scene:
    """A single screen of a mission: an image, a question and its options."""

    id: int
    label: str
    image: str
    question: str
    options: Tuple[Option, ...] = ()
    audio: str | None = None
    extended_audio: str | None = None

    def __post_init__(self) -> None:
        options = tuple(self.options)
        seen: set[int] = set()
        for option in options:
            if option.id in seen:
                raise ValueError(
                    f"Scene {self.id} defines duplicate option id {option.id}."
                )
            seen.add(option.id)
        object.__setattr__(self, "options", options)

    def find_option(self, option_id: int) -> Option | None:
        """Return the option with ``option_id`` offered by this scene."""

        for option in self.options:
            if option.id == option_id:
                return option
        return None

    def audio_references(self) -> Tuple[str, ...]:
        """Return every narration reference attached to the scene."""

        return tuple(ref for ref in (self.audio, self.extended_audio) if ref)


@dataclass(frozen=True)
class Connection:
    """Directed edge from a ``(scene, option)`` pair to a destination scene."""

    id: int
    from_scene_id: int
    from_option_id: int
    to_scene_id: int

    @property
    def key(self) -> Tuple[int, int]:
        return (self.from_scene_id, self.from_option_id)


@dataclass(frozen=True)
class AssetCatalog:
    """Bundled assets known for a mission, keyed by their reference string."""

    images: Mapping[str, Path] = field(default_factory=dict)
    audio: Mapping[str, Path] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "images", MappingProxyType(dict(self.images)))
        object.__setattr__(self, "audio", MappingProxyType(dict(self.audio)))


class MissionGraph:
    """Scenes and option-keyed connections forming one mission.

    The graph is not guaranteed to be acyclic and connections may reference
    scenes that do not exist. Lookups return ``None`` for missing nodes so
    callers can treat them as terminal instead of failing.
    """

    def __init__(
        self,
        scenes: Iterable[Scene],
        connections: Iterable[Connection] = (),
        *,
        starting_scene_id: int | None = None,
        background_audio: str | None = None,
    ) -> None:
        self._scenes: Tuple[Scene, ...] = tuple(scenes)
        self._connections: Tuple[Connection, ...] = tuple(connections)
        self.starting_scene_id = starting_scene_id
        self.background_audio = background_audio

        scene_index: dict[int, Scene] = {}
        for scene in self._scenes:
            if scene.id in scene_index:
                raise ValueError(f"Duplicate scene id {scene.id}.")
            scene_index[scene.id] = scene

        connection_index: dict[Tuple[int, int], Connection] = {}
        for connection in self._connections:
            if connection.key in connection_index:
                raise ValueError(
                    "Scene {} option {} has more than one outgoing connection.".format(
                        *connection.key
                    )
                )
            connection_index[connection.key] = connection

        self._scene_index: Mapping[int, Scene] = MappingProxyType(scene_index)
        self._connection_index: Mapping[Tuple[int, int], Connection] = (
            MappingProxyType(connection_index)
        )

    @property
    def scenes(self) -> Tuple[Scene, ...]:
        return self._scenes

    @property
    def connections(self) -> Tuple[Connection, ...]:
        return self._connections

    def __repr__(self) -> str:
        return (
            f"MissionGraph(scenes={len(self._scenes)}, "
            f"connections={len(self._connections)})"
        )

    def find_scene(self, scene_id: int) -> Scene | None:
        """Return the scene with ``scene_id`` or ``None`` when it is absent."""

        return self._scene_index.get(scene_id)

    def find_connection(self, scene_id: int, option_id: int) -> Connection | None:
        """Return the connection leaving ``scene_id`` through ``option_id``.

        ``None`` means the option is a terminal choice.
        """

        return self._connection_index.get((scene_id, option_id))

    def target_ids(self) -> frozenset[int]:
        """Return the set of scene ids that some connection points to."""

        return frozenset(connection.to_scene_id for connection in self._connections)

    def root_candidates(self) -> Tuple[int, ...]:
        """Return every scene that is never a connection target, in order."""

        targets = self.target_ids()
        return tuple(scene.id for scene in self._scenes if scene.id not in targets)

    def resolve_start_scene(self) -> int:
        """Return the id of the scene a new play-through begins with.

        An explicit ``starting_scene_id`` naming an existing scene wins.
        Otherwise the first scene (in definition order) that no connection
        targets is used, falling back to the first scene for graphs where
        every scene is a target.

        Raises:
            ValueError: If the graph has no scenes.
        """

        if not self._scenes:
            raise ValueError("Mission graph has no scenes.")

        if (
            self.starting_scene_id is not None
            and self.starting_scene_id in self._scene_index
        ):
            return self.starting_scene_id

        candidates = self.root_candidates()
        if candidates:
            return candidates[0]
        return self._scenes[0].id

    def used_audio(self) -> frozenset[str]:
        """Return all audio references attached to scenes."""

        used: set[str] = set()
        for scene in self._scenes:
            used.update(scene.audio_references())
        return frozenset(used)

    def dangling_connections(self) -> Tuple[Connection, ...]:
        """Return connections whose endpoints reference unknown scenes or options."""

        dangling: list[Connection] = []
        for connection in self._connections:
            source = self._scene_index.get(connection.from_scene_id)
            if (
                source is None
                or source.find_option(connection.from_option_id) is None
                or connection.to_scene_id not in self._scene_index
            ):
                dangling.append(connection)
        return tuple(dangling)

    def reachable_scenes(self, start_scene_id: int) -> frozenset[int]:
        """Walk connections from ``start_scene_id`` and return the visited ids."""

        if start_scene_id not in self._scene_index:
            raise ValueError(f"Start scene {start_scene_id} is not defined.")

        outgoing: dict[int, list[int]] = {}
        for connection in self._connections:
            outgoing.setdefault(connection.from_scene_id, []).append(
                connection.to_scene_id
            )

        visited: set[int] = set()
        frontier = [start_scene_id]
        while frontier:
            current = frontier.pop()
            if current in visited:
                continue
            visited.add(current)
            for target in outgoing.get(current, ()):
                if target not in visited and target in self._scene_index:
                    frontier.append(target)
        return frozenset(visited)


@dataclass(frozen=True)
class Mission:
    """A complete mission: metadata, its scene graph and bundled assets."""

    id: str
    title: str
    description: str
    graph: MissionGraph
    assets: AssetCatalog = field(default_factory=AssetCatalog)

    def find_scene(self, scene_id: int) -> Scene | None:
        return self.graph.find_scene(scene_id)

    def find_connection(self, scene_id: int, option_id: int) -> Connection | None:
        return self.graph.find_connection(scene_id, option_id)

    def resolve_start_scene(self) -> int:
        return self.graph.resolve_start_scene()

    @property
    def background_audio(self) -> str | None:
        return self.graph.background_audio

    def unused_audio_tracks(self) -> Tuple[str, ...]:
        """Return bundled audio keys that no scene uses for narration.

        These are offered to the player as ambient background tracks. The
        result is sorted so listings stay stable.
        """

        used = self.graph.used_audio()
        return tuple(sorted(key for key in self.assets.audio if key not in used))


__all__ = [
    "AssetCatalog",
    "Connection",
    "Mission",
    "MissionGraph",
    "Option",
    "Scene",
]
