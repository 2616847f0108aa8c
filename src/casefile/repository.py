"""Explicit registry of the missions available to a game."""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Iterable, Iterator, Sequence, Tuple, TYPE_CHECKING

from .mission import Mission
from .mission_loader import load_mission_from_file

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from .config import CasefileSettings

logger = logging.getLogger(__name__)

MISSION_FILE_NAME = "mission.json"


def _mission_files(path: Path) -> list[Path]:
    """Expand ``path`` into the mission documents it contains.

    A directory may hold loose ``*.json`` documents and sub-directories
    with a ``mission.json`` next to their ``images``/``audio`` folders.
    """

    if path.is_file():
        return [path]
    if not path.is_dir():
        raise FileNotFoundError(f"Mission path '{path}' does not exist.")

    files = [entry for entry in sorted(path.glob("*.json")) if entry.is_file()]
    for child in sorted(path.iterdir()):
        candidate = child / MISSION_FILE_NAME
        if child.is_dir() and candidate.is_file():
            files.append(candidate)
    return files


class MissionRepository:
    """Holds every loaded mission, keyed by identifier.

    Repositories are built once at startup and passed to whatever needs
    mission data. Definition order is preserved so "the first mission" is
    stable.
    """

    def __init__(self, missions: Iterable[Mission] = ()) -> None:
        self._missions: dict[str, Mission] = {}
        for mission in missions:
            if mission.id in self._missions:
                raise ValueError(f"Duplicate mission id '{mission.id}'.")
            self._missions[mission.id] = mission

    @classmethod
    def from_paths(
        cls, paths: Sequence[str | Path], *, strict: bool = False
    ) -> "MissionRepository":
        """Load every mission found under ``paths``."""

        missions: list[Mission] = []
        for raw_path in paths:
            for mission_file in _mission_files(Path(raw_path).expanduser()):
                logger.debug("Loading mission from %s", mission_file)
                missions.append(load_mission_from_file(mission_file, strict=strict))
        return cls(missions)

    @classmethod
    def from_package(
        cls,
        package: str = "casefile.data",
        folder: str = "missions",
        *,
        strict: bool = False,
    ) -> "MissionRepository":
        """Load the missions bundled inside ``package``."""

        data_resource = resources.files(package).joinpath(folder)
        with resources.as_file(data_resource) as path:
            return cls.from_paths([path], strict=strict)

    @classmethod
    def from_settings(cls, settings: "CasefileSettings") -> "MissionRepository":
        """Load configured mission paths, or the bundled missions when none are set."""

        if settings.mission_paths:
            return cls.from_paths(settings.mission_paths, strict=settings.strict_missions)
        return cls.from_package(strict=settings.strict_missions)

    def __contains__(self, mission_id: object) -> bool:
        return mission_id in self._missions

    def __len__(self) -> int:
        return len(self._missions)

    def __iter__(self) -> Iterator[Mission]:
        return iter(self._missions.values())

    def get(self, mission_id: str) -> Mission | None:
        """Return the mission with ``mission_id`` or ``None``."""

        return self._missions.get(mission_id)

    def require(self, mission_id: str) -> Mission:
        """Return the mission with ``mission_id``.

        Raises:
            KeyError: If no such mission is registered.
        """

        try:
            return self._missions[mission_id]
        except KeyError as exc:
            raise KeyError(f"Mission '{mission_id}' does not exist") from exc

    def first(self) -> Mission | None:
        """Return the first registered mission, used for "New Game"."""

        return next(iter(self._missions.values()), None)

    def list_missions(self) -> Tuple[Mission, ...]:
        return tuple(self._missions.values())

    def start_scene(self, mission_id: str) -> int:
        return self.require(mission_id).resolve_start_scene()

    def unused_audio_tracks(self, mission_id: str) -> Tuple[str, ...]:
        return self.require(mission_id).unused_audio_tracks()


__all__ = ["MissionRepository", "MISSION_FILE_NAME"]
