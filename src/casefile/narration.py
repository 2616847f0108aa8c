"""Selection of the narration track played for a scene."""

from __future__ import annotations

from enum import Enum

from .mission import Scene


class NarrationChannel(str, Enum):
    """Which narration recording the player hears."""

    STANDARD = "standard"
    EXTENDED = "extended"

    @classmethod
    def for_accessibility(cls, enabled: bool) -> "NarrationChannel":
        """Return the channel matching the accessibility preference."""

        return cls.EXTENDED if enabled else cls.STANDARD


def select_narration(scene: Scene, channel: NarrationChannel) -> str | None:
    """Return the audio reference to play for ``scene`` on ``channel``.

    The extended channel falls back to the standard recording when a scene
    has no extended narration. The standard channel never uses the extended
    recording.
    """

    if channel is NarrationChannel.EXTENDED:
        return scene.extended_audio or scene.audio or None
    return scene.audio or None


__all__ = ["NarrationChannel", "select_narration"]
