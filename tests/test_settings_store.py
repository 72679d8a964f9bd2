import json

import pytest

from tvslide.core.errors import ConfigurationError
from tvslide.core.settings_store import load_settings, resolve_locator, settings_from_dict
from tvslide.models.settings import AppSettings


def test_defaults():
    s = settings_from_dict({})
    assert s == AppSettings()
    assert s.transitions == ["fade"]
    assert s.delay_ms == 4000
    assert s.keyboard_enabled


def test_full_document(tmp_path):
    doc = {
        "images": {"sources": ["images/1.jpg", "https://cdn/2.jpg"], "shuffle": True},
        "music": {"sources": ["music/1.mp3"], "shuffle": True, "volume": 0.4, "reshuffleOnWrap": True},
        "transitions": ["fade", "zoom-in"],
        "randomTransitions": False,
        "transitionDuration": 1500,
        "autoplay": True,
        "delay": 6000,
        "keyboard": {"enabled": False},
        "debug": {"enabled": True},
        "captions": {"enabled": False},
        "remote": {"enabled": True, "port": 9090},
        "window": {"fullscreen": False, "hideCursor": False, "displayIndex": 1},
        "logging": {"level": "debug"},
    }
    s = settings_from_dict(doc, base_dir=tmp_path)
    assert s.images.sources == [str(tmp_path / "images/1.jpg"), "https://cdn/2.jpg"]
    assert s.images.shuffle
    assert s.music.sources == [str(tmp_path / "music/1.mp3")]
    assert (s.music.shuffle, s.music.volume, s.music.reshuffle_on_wrap) == (True, 0.4, True)
    assert s.transitions == ["fade", "zoom-in"]
    assert not s.random_transitions
    assert s.transition_ms == 1500
    assert s.autoplay and s.delay_ms == 6000
    assert not s.keyboard_enabled
    assert s.debug_enabled
    assert not s.captions_enabled
    assert (s.remote.enabled, s.remote.port) == (True, 9090)
    assert (s.window.fullscreen, s.window.hide_cursor, s.window.display_index) == (False, False, 1)
    assert s.log_level == "DEBUG"


def test_invalid_values_fall_back(caplog):
    s = settings_from_dict({"delay": "soon", "autoplay": 1, "transitions": "fade", "music": {"volume": True}})
    assert s.delay_ms == 4000
    assert s.autoplay is False
    assert s.transitions == ["fade"]
    assert s.music.volume == 0.7
    assert "delay" in caplog.text


def test_volume_is_clamped():
    assert settings_from_dict({"music": {"volume": 4}}).music.volume == 1.0
    assert settings_from_dict({"music": {"volume": -1}}).music.volume == 0.0


def test_empty_transitions_list_is_kept():
    assert settings_from_dict({"transitions": []}).transitions == []


def test_folder_enumeration(tmp_path):
    pics = tmp_path / "pics"
    pics.mkdir()
    for name in ("2.jpg", "1.png", "readme.md"):
        (pics / name).write_bytes(b"x")
    s = settings_from_dict({"images": {"folder": "pics"}}, base_dir=tmp_path)
    assert s.images.sources == [str(pics / "1.png"), str(pics / "2.jpg")]


def test_explicit_sources_win_over_folder(tmp_path):
    s = settings_from_dict({"images": {"sources": ["/abs/a.jpg"], "folder": "pics"}}, base_dir=tmp_path)
    assert s.images.sources == ["/abs/a.jpg"]


def test_resolve_locator(tmp_path):
    assert resolve_locator("a.jpg", None) == "a.jpg"
    assert resolve_locator("http://x/a.jpg", tmp_path) == "http://x/a.jpg"
    assert resolve_locator("sub/a.jpg", tmp_path) == str(tmp_path / "sub/a.jpg")


def test_load_settings_file(tmp_path):
    p = tmp_path / "config.json"
    p.write_text(json.dumps({"images": {"sources": ["x.jpg"]}, "autoplay": True}), encoding="utf-8")
    s = load_settings(p)
    assert s.images.sources == [str(tmp_path / "x.jpg")]
    assert s.autoplay


def test_load_settings_missing(tmp_path):
    assert load_settings(tmp_path / "none.json") == AppSettings()
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "none.json", required=True)


def test_load_settings_broken(tmp_path):
    p = tmp_path / "config.json"
    p.write_text("{", encoding="utf-8")
    assert load_settings(p) == AppSettings()
    with pytest.raises(ConfigurationError):
        load_settings(p, required=True)


def test_load_settings_not_an_object(tmp_path, caplog):
    p = tmp_path / "config.json"
    p.write_text("[1, 2, 3]", encoding="utf-8")
    assert load_settings(p) == AppSettings()
    assert "JSON object" in caplog.text
    with pytest.raises(ConfigurationError):
        load_settings(p, required=True)


def test_music_folder_tracks_come_before_sources(tmp_path):
    music = tmp_path / "music"
    music.mkdir()
    for name in ("10.mp3", "2.mp3", "1.mp3", "cover.jpg"):
        (music / name).write_bytes(b"x")
    s = settings_from_dict({"music": {"folder": "music", "sources": ["https://radio/live.mp3"]}},
                           base_dir=tmp_path)
    assert s.music.folder == "music"
    assert s.music.sources == [str(music / "1.mp3"), str(music / "2.mp3"), str(music / "10.mp3"),
                               "https://radio/live.mp3"]


def test_missing_music_folder_keeps_sources(tmp_path):
    s = settings_from_dict({"music": {"folder": "nowhere", "sources": ["a.mp3"]}}, base_dir=tmp_path)
    assert s.music.sources == [str(tmp_path / "a.mp3")]
