"""Environment-driven settings shared by the terminal client and HTTP service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Tuple

DEFAULT_SAVE_DIR = Path("~/.casefile")
DEFAULT_SELECTION_DELAY_MS = 300

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _normalise_path(value: str | None) -> Path | None:
    if value is None:
        return None

    trimmed = value.strip()
    if not trimmed:
        return None

    return Path(trimmed).expanduser()


def _parse_paths(value: str | None) -> Tuple[Path, ...]:
    if value is None:
        return ()
    return tuple(
        Path(entry.strip()).expanduser()
        for entry in value.split(os.pathsep)
        if entry.strip()
    )


def _parse_bool(value: str | None, *, name: str, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag (true/false).")


def _parse_delay(value: str | None) -> int:
    if value is None or not value.strip():
        return DEFAULT_SELECTION_DELAY_MS
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise ValueError(
            "CASEFILE_SELECTION_DELAY_MS must be a non-negative integer."
        ) from exc
    if parsed < 0:
        raise ValueError("CASEFILE_SELECTION_DELAY_MS must not be negative.")
    return parsed


def parse_log_level(value: str | None, *, name: str = "CASEFILE_LOG_LEVEL") -> str:
    """Return the upper-cased level name, or ``WARNING`` when ``value`` is empty.

    Raises:
        ValueError: If ``value`` is not a standard logging level.
    """

    if value is None or not value.strip():
        return "WARNING"
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"{name} '{value}' is not a logging level.")
    return level


@dataclass(frozen=True)
class CasefileSettings:
    """Deployment settings read from environment variables.

    Empty variables are treated as unset. An empty mission path list means
    the demo mission bundled with the package is used.
    """

    mission_paths: Tuple[Path, ...] = ()
    save_dir: Path = DEFAULT_SAVE_DIR
    selection_delay_ms: int = DEFAULT_SELECTION_DELAY_MS
    strict_missions: bool = False
    log_level: str = "WARNING"

    @property
    def selection_delay(self) -> float:
        return self.selection_delay_ms / 1000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "CasefileSettings":
        """Return settings populated from ``environ`` (default :data:`os.environ`)."""

        source = environ if environ is not None else os.environ

        save_dir = _normalise_path(source.get("CASEFILE_SAVE_DIR"))
        return cls(
            mission_paths=_parse_paths(source.get("CASEFILE_MISSION_PATHS")),
            save_dir=save_dir if save_dir is not None else DEFAULT_SAVE_DIR.expanduser(),
            selection_delay_ms=_parse_delay(source.get("CASEFILE_SELECTION_DELAY_MS")),
            strict_missions=_parse_bool(
                source.get("CASEFILE_STRICT_MISSIONS"),
                name="CASEFILE_STRICT_MISSIONS",
                default=False,
            ),
            log_level=parse_log_level(source.get("CASEFILE_LOG_LEVEL")),
        )


def configure_logging(level: str | int = "WARNING") -> None:
    """Send log records to stderr using a compact format."""

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = ["CasefileSettings", "configure_logging", "parse_log_level"]
