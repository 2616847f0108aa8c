"""Tests for resolving image and audio references."""

from __future__ import annotations

from pathlib import Path

from casefile import (
    AssetCatalog,
    AssetResolver,
    Mission,
    MissionGraph,
    Scene,
    is_remote_reference,
    track_display_name,
)


def _mission(catalog: AssetCatalog) -> Mission:
    graph = MissionGraph([Scene(id=1, label="One", image="one.jpg", question="?")])
    return Mission(id="m", title="M", description="", graph=graph, assets=catalog)


def test_bundled_reference_resolves_by_key_or_file_name() -> None:
    mission = _mission(
        AssetCatalog(
            images={"images/one.jpg": Path("/assets/images/one.jpg")},
            audio={"audio/theme.mp3": Path("/assets/audio/theme.mp3")},
        )
    )
    resolver = AssetResolver()

    by_name = resolver.resolve_image(mission, "one.jpg")
    by_key = resolver.resolve_audio(mission, "audio/theme.mp3")

    assert by_name is not None and by_name.kind == "bundled"
    assert by_name.location == str(Path("/assets/images/one.jpg"))
    assert by_key is not None and by_key.location == str(Path("/assets/audio/theme.mp3"))


def test_remote_urls_resolve_to_remote_handles() -> None:
    handle = AssetResolver().resolve_image(_mission(AssetCatalog()), " https://example.com/a.jpg ")

    assert handle is not None
    assert handle.is_remote
    assert handle.location == "https://example.com/a.jpg"


def test_unknown_references_degrade_to_none() -> None:
    resolver = AssetResolver()
    mission = _mission(AssetCatalog())

    assert resolver.resolve_image(mission, "missing.jpg") is None
    assert resolver.resolve_image(mission, "ftp://example.com/a.jpg") is None
    assert resolver.resolve_audio(mission, "") is None
    assert resolver.resolve_audio(mission, None) is None


def test_audio_and_image_catalogs_are_separate() -> None:
    mission = _mission(AssetCatalog(images={"theme.mp3": Path("theme.mp3")}))

    assert AssetResolver().resolve_audio(mission, "theme.mp3") is None


def test_is_remote_reference() -> None:
    assert is_remote_reference("http://example.com/x.mp3")
    assert is_remote_reference("HTTPS://example.com/x.mp3")
    assert not is_remote_reference("https://")
    assert not is_remote_reference("audio/x.mp3")
    assert not is_remote_reference("file:///tmp/x.mp3")


def test_track_display_name_strips_folders() -> None:
    assert track_display_name("audio/abc123.mp3") == "abc123.mp3"
    assert track_display_name("abc123.mp3") == "abc123.mp3"


def test_remote_urls_do_not_match_bundled_files_by_name() -> None:
    mission = _mission(AssetCatalog(images={"images/safe.jpg": Path("/assets/images/safe.jpg")}))

    handle = AssetResolver().resolve_image(mission, "https://example.com/safe.jpg")

    assert handle is not None
    assert handle.kind == "remote"
    assert handle.location == "https://example.com/safe.jpg"
