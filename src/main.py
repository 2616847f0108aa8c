"""Command-line entry point for the detective game."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Sequence

from casefile import (
    CasefileSettings,
    FileKeyValueStore,
    GameSession,
    GameStorage,
    InMemoryKeyValueStore,
    MissionRepository,
    SessionStatus,
    configure_logging,
    load_menu_state,
    parse_log_level,
    track_display_name,
)

_SHORTCUTS = {"q": "quit", "h": "help", "?": "help"}

_HELP_LINES = (
    "Commands:",
    "  <number>          choose the option with that number",
    "  history           list the scenes visited so far",
    "  music             list background tracks",
    "  music <n> | off   play background track <n> or turn music off",
    "  narration on|off  toggle extended audio narration",
    "  help              show this overview",
    "  quit              leave the game (progress is kept)",
)


def _print_scene(session: GameSession) -> None:
    scene = session.current_scene
    if scene is None:
        return

    print()
    print(f"== {scene.label} ==")
    image = session.current_image()
    if image is not None:
        print(f"[image: {image.location}]")
    else:
        print(f"[image unavailable: {scene.image}]")
    narration = session.current_narration()
    if narration:
        print(f"[narration: {track_display_name(narration)}]")
    print(scene.question)
    for index, option in enumerate(scene.options, start=1):
        print(f"  {index}. {option.text}")


def _print_history(session: GameSession) -> None:
    state = session.state
    if state is None or session.mission is None:
        return
    for step, scene_id in enumerate(state.history, start=1):
        scene = session.mission.find_scene(scene_id)
        label = scene.label if scene is not None else f"scene {scene_id}"
        print(f"  {step}. {label}")


def _handle_music(session: GameSession, argument: str) -> None:
    tracks = session.background_tracks()
    if not argument:
        if not tracks:
            print("This mission has no background music.")
            return
        active = session.active_background_track
        print("Background music:")
        print(f"  0. None (Off){' *' if active is None else ''}")
        for index, track in enumerate(tracks, start=1):
            marker = " *" if track == active else ""
            print(f"  {index}. {track_display_name(track)}{marker}")
        return

    if argument in {"off", "0"}:
        session.choose_background_track(None)
        print("Background music off.")
        return

    try:
        index = int(argument)
    except ValueError:
        print(f"Unknown track '{argument}'.")
        return
    if not 1 <= index <= len(tracks):
        print(f"Pick a track between 1 and {len(tracks)}.")
        return
    session.choose_background_track(tracks[index - 1])
    print(f"Now playing {track_display_name(tracks[index - 1])}.")


async def play(session: GameSession) -> SessionStatus:
    """Drive an interactive loop using ``input``/``print`` until the game ends."""

    if session.status is SessionStatus.LOADING:
        print(f"Loading mission '{session.mission_id}'...")
        print("The mission could not be found.")
        return session.status

    assert session.mission is not None
    print(f"Mission: {session.mission.title}")
    if session.mission.description:
        print(session.mission.description)
    print("Type 'help' for commands or 'quit' to leave.")
    _print_scene(session)

    while session.status is SessionStatus.ACTIVE:
        try:
            raw = input("> ")
        except EOFError:
            print()
            break

        text = raw.strip()
        if not text:
            continue
        command, _, argument = text.partition(" ")
        command = _SHORTCUTS.get(command.lower(), command.lower())
        argument = argument.strip().lower()

        if command == "quit":
            print("Your progress has been saved.")
            break
        if command == "help":
            print("\n".join(_HELP_LINES))
            continue
        if command == "history":
            _print_history(session)
            continue
        if command == "music":
            _handle_music(session, argument)
            continue
        if command == "narration":
            if argument not in {"on", "off"}:
                print("Use 'narration on' or 'narration off'.")
                continue
            await session.set_accessibility_mode(argument == "on")
            print(f"Audio narration: {argument.upper()}")
            _print_scene(session)
            continue

        scene = session.current_scene
        options = scene.options if scene is not None else ()
        try:
            choice = int(command)
        except ValueError:
            print(f"Unknown command '{text}'. Type 'help' for a list of commands.")
            continue
        if not 1 <= choice <= len(options):
            print(f"Choose an option between 1 and {len(options)}.")
            continue

        option = options[choice - 1]
        print(f"> {option.text}")
        result = await session.select_option(option.id)
        if result is None:
            continue
        if result.completed:
            print()
            print("Mission Complete")
            print(session.mission.title)
            print("You have reached the end of this investigation.")
        else:
            _print_scene(session)

    return session.status


def run_cli(session: GameSession) -> SessionStatus:
    return asyncio.run(play(session))


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play a branching detective mission.")
    parser.add_argument(
        "--mission-path",
        dest="mission_paths",
        action="append",
        type=Path,
        default=None,
        help=(
            "Mission JSON file or directory of missions. May be repeated. "
            "Defaults to CASEFILE_MISSION_PATHS or the bundled demo mission."
        ),
    )
    parser.add_argument(
        "--mission",
        dest="mission_id",
        default=None,
        help="Identifier of the mission to play (defaults to the first mission).",
    )
    parser.add_argument(
        "--continue",
        dest="continue_game",
        action="store_true",
        help="Resume the saved game instead of starting over.",
    )
    parser.add_argument(
        "--save-dir",
        type=Path,
        default=None,
        help="Directory for saved games (defaults to CASEFILE_SAVE_DIR or ~/.casefile).",
    )
    parser.add_argument(
        "--no-persistence",
        action="store_true",
        help="Keep progress in memory only.",
    )
    parser.add_argument(
        "--accessibility",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Turn extended audio narration on or off and remember the choice.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Reject missions with dangling connections or ambiguous start scenes.",
    )
    parser.add_argument(
        "--selection-delay-ms",
        type=int,
        default=None,
        help="Pause between choosing an option and showing the next scene.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (defaults to CASEFILE_LOG_LEVEL or WARNING).",
    )
    return parser.parse_args(argv)


async def _open_session(
    args: argparse.Namespace,
    repository: MissionRepository,
    storage: GameStorage,
    selection_delay: float,
) -> GameSession | None:
    if args.accessibility is not None:
        await storage.save_accessibility_mode(args.accessibility)

    mission_id = args.mission_id
    continue_game = args.continue_game
    if continue_game and mission_id is None:
        menu = await load_menu_state(storage)
        if menu.saved_mission_id is None:
            print("No saved game found; starting a new game.")
            continue_game = False
        else:
            mission_id = menu.saved_mission_id

    if mission_id is None:
        first = repository.first()
        if first is None:
            print("No missions are available.")
            return None
        mission_id = first.id

    return await GameSession.open(
        repository,
        storage,
        mission_id,
        continue_game=continue_game,
        selection_delay=selection_delay,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Start a game in the terminal."""

    args = _parse_args(argv)
    try:
        settings = CasefileSettings.from_env()
        log_level = (
            parse_log_level(args.log_level, name="--log-level")
            if args.log_level is not None
            else settings.log_level
        )
    except ValueError as exc:
        print(f"Invalid configuration: {exc}")
        raise SystemExit(2) from exc

    configure_logging(log_level)

    if args.selection_delay_ms is not None and args.selection_delay_ms < 0:
        print("--selection-delay-ms must not be negative.")
        raise SystemExit(2)
    selection_delay = (
        args.selection_delay_ms / 1000
        if args.selection_delay_ms is not None
        else settings.selection_delay
    )
    strict = settings.strict_missions if args.strict is None else args.strict

    try:
        if args.mission_paths:
            repository = MissionRepository.from_paths(args.mission_paths, strict=strict)
        elif settings.mission_paths:
            repository = MissionRepository.from_paths(settings.mission_paths, strict=strict)
        else:
            repository = MissionRepository.from_package(strict=strict)
    except (OSError, ValueError) as exc:
        print(f"Failed to load missions: {exc}")
        raise SystemExit(2) from exc

    if args.no_persistence:
        store = InMemoryKeyValueStore()
    else:
        store = FileKeyValueStore((args.save_dir or settings.save_dir).expanduser())
    storage = GameStorage(store)

    async def _run() -> None:
        session = await _open_session(args, repository, storage, selection_delay)
        if session is not None:
            await play(session)

    asyncio.run(_run())


if __name__ == "__main__":
    main()
