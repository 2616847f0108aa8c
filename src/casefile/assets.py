"""Resolve image and audio references to loadable resources."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Literal, Mapping
from urllib.parse import urlparse

from .mission import Mission

logger = logging.getLogger(__name__)

AssetKind = Literal["bundled", "remote"]

_REMOTE_SCHEMES = frozenset({"http", "https"})


@dataclass(frozen=True)
class AssetHandle:
    """A resource the presentation layer can load."""

    kind: AssetKind
    location: str

    @property
    def is_remote(self) -> bool:
        return self.kind == "remote"


def is_remote_reference(reference: str) -> bool:
    """Return ``True`` for well-formed ``http``/``https`` URLs."""

    parsed = urlparse(reference.strip())
    return parsed.scheme.lower() in _REMOTE_SCHEMES and bool(parsed.netloc)


def track_display_name(reference: str) -> str:
    """Return the file name portion of an asset reference.

    ``"audio/abc123.mp3"`` becomes ``"abc123.mp3"``.
    """

    name = PurePosixPath(reference).name
    return name or reference


def _lookup(catalog: Mapping[str, Path], reference: str) -> Path | None:
    path = catalog.get(reference)
    if path is not None or is_remote_reference(reference):
        return path

    # Scenes often name a file without its folder ("OIG1.jpg").
    wanted = track_display_name(reference)
    for key in sorted(catalog):
        if track_display_name(key) == wanted:
            return catalog[key]
    return None


class AssetResolver:
    """Turns scene references into :class:`AssetHandle` objects.

    References that are neither bundled with the mission nor remote URLs
    resolve to ``None``; callers render a placeholder in that case.
    """

    def resolve_image(self, mission: Mission, reference: str | None) -> AssetHandle | None:
        return self._resolve(mission.assets.images, reference, mission_id=mission.id)

    def resolve_audio(self, mission: Mission, reference: str | None) -> AssetHandle | None:
        return self._resolve(mission.assets.audio, reference, mission_id=mission.id)

    def _resolve(
        self,
        catalog: Mapping[str, Path],
        reference: str | None,
        *,
        mission_id: str,
    ) -> AssetHandle | None:
        if not reference or not reference.strip():
            return None

        path = _lookup(catalog, reference)
        if path is not None:
            return AssetHandle(kind="bundled", location=str(path))

        if is_remote_reference(reference):
            return AssetHandle(kind="remote", location=reference.strip())

        logger.debug("Mission %r: asset %r did not resolve", mission_id, reference)
        return None


__all__ = [
    "AssetHandle",
    "AssetResolver",
    "is_remote_reference",
    "track_display_name",
]
