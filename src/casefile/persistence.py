"""Key-value persistence for saved games and player preferences."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict

from .game_state import GameState

logger = logging.getLogger(__name__)

GAME_STATE_KEY = "detective_game_save"
ACCESSIBILITY_KEY = "detective_accessibility_mode"

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(ABC):
    """Interface describing a small string key-value store."""

    @abstractmethod
    def save(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def load(self, key: str) -> str | None:
        """Return the value stored under ``key`` or ``None`` when absent."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if it exists."""


class InMemoryKeyValueStore(KeyValueStore):
    """Keep values in local process memory."""

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}

    def save(self, key: str, value: str) -> None:
        self._values[_validate_key(key)] = _validate_value(value)

    def load(self, key: str) -> str | None:
        return self._values.get(_validate_key(key))

    def delete(self, key: str) -> None:
        self._values.pop(_validate_key(key), None)


class FileKeyValueStore(KeyValueStore):
    """Persist each key as a UTF-8 text file inside ``storage_dir``."""

    def __init__(self, storage_dir: Path) -> None:
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def save(self, key: str, value: str) -> None:
        path = self._path(key)
        temporary = path.with_suffix(".tmp")
        temporary.write_text(_validate_value(value), encoding="utf-8")
        temporary.replace(path)

    def load(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def _path(self, key: str) -> Path:
        return self.storage_dir / f"{_validate_key(key)}.json"


def _validate_key(key: str) -> str:
    if not isinstance(key, str):
        raise TypeError("key must be a string")
    stripped = key.strip()
    if not stripped:
        raise ValueError("key must be a non-empty string")
    if not _KEY_PATTERN.match(stripped):
        raise ValueError(f"key contains unsupported characters: {key!r}")
    return stripped


def _validate_value(value: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"value must be a string, got {type(value)!r}")
    return value


class GameStorage:
    """Asynchronous access to the single save slot and the accessibility flag.

    Store calls run in a worker thread. Failures never propagate: reads
    degrade to "nothing saved" and writes report ``False``.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    async def save_game_state(self, state: GameState) -> bool:
        return await self._write(GAME_STATE_KEY, state.to_json())

    async def load_game_state(self) -> GameState | None:
        raw = await self._read(GAME_STATE_KEY)
        if not raw:
            return None
        # deeply nested documents exhaust the decoder with RecursionError
        try:
            return GameState.from_json(raw)
        except (ValueError, RecursionError) as exc:
            logger.warning("Ignoring corrupt saved game: %s", exc)
            return None

    async def clear_game_state(self) -> bool:
        try:
            await asyncio.to_thread(self.store.delete, GAME_STATE_KEY)
        except Exception:
            logger.exception("Failed to clear saved game")
            return False
        return True

    async def has_saved_game(self) -> bool:
        return await self.load_game_state() is not None

    async def save_accessibility_mode(self, enabled: bool) -> bool:
        return await self._write(ACCESSIBILITY_KEY, json.dumps(bool(enabled)))

    async def load_accessibility_mode(self) -> bool:
        raw = await self._read(ACCESSIBILITY_KEY)
        if not raw:
            return False
        try:
            value = json.loads(raw)
        except (ValueError, RecursionError):
            logger.warning("Ignoring corrupt accessibility preference: %.80r", raw)
            return False
        if not isinstance(value, bool):
            logger.warning("Ignoring non-boolean accessibility preference: %r", value)
            return False
        return value

    async def _read(self, key: str) -> str | None:
        try:
            return await asyncio.to_thread(self.store.load, key)
        except Exception:
            logger.exception("Failed to read %r from storage", key)
            return None

    async def _write(self, key: str, value: str) -> bool:
        try:
            await asyncio.to_thread(self.store.save, key, value)
        except Exception:
            logger.exception("Failed to write %r to storage", key)
            return False
        return True


__all__ = [
    "ACCESSIBILITY_KEY",
    "GAME_STATE_KEY",
    "FileKeyValueStore",
    "GameStorage",
    "InMemoryKeyValueStore",
    "KeyValueStore",
]
