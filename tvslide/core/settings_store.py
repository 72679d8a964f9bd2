import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from tvslide.core.catalog import list_audio, list_images
from tvslide.core.errors import ConfigurationError
from tvslide.models.settings import (
    AppSettings,
    ImageSettings,
    MusicSettings,
    RemoteSettings,
    WindowSettings,
)

logger = logging.getLogger(__name__)

APP_DIR_NAME = "tvslide"
CONFIG_FILE_NAME = "config.json"
CAPTIONS_FILE_NAME = "captions.json"


def _config_root() -> Path:
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata)
        return Path.home() / "AppData" / "Roaming"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def default_config_path() -> Path:
    local = Path.cwd() / CONFIG_FILE_NAME
    if local.exists():
        return local
    return _config_root() / APP_DIR_NAME / CONFIG_FILE_NAME


def _take(data: Dict[str, Any], key: str, typ, default, where: str = ""):
    if key not in data:
        return default
    value = data[key]
    # bool is an int subclass, keep them apart
    ok = isinstance(value, typ) and not (typ in (int, float, (int, float)) and isinstance(value, bool))
    if not ok:
        logger.warning(f"[settings] invalid value for {where}{key}: {value!r}. Using default: {default!r}")
        return default
    return value


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning(f"[settings] section {key!r} must be an object, ignoring it")
        return {}
    return value


def _str_list(data: Dict[str, Any], key: str, where: str) -> Optional[list]:
    value = _take(data, key, list, None, where)
    if value is None:
        return None
    return [str(v) for v in value if isinstance(v, str) and v.strip()]


def resolve_locator(locator: str, base_dir: Optional[Path]) -> str:
    if base_dir is None or locator.startswith(("http://", "https://")):
        return locator
    p = Path(locator).expanduser()
    if not p.is_absolute():
        p = base_dir / p
    return str(p)


def settings_from_dict(data: Dict[str, Any], base_dir: Optional[Path] = None) -> AppSettings:
    s = AppSettings()

    images = _section(data, "images")
    s.images = ImageSettings(
        sources=[resolve_locator(x, base_dir) for x in (_str_list(images, "sources", "images.") or [])],
        folder=_take(images, "folder", str, "", "images."),
        shuffle=_take(images, "shuffle", bool, False, "images."),
    )
    if not s.images.sources and s.images.folder:
        folder = Path(resolve_locator(s.images.folder, base_dir))
        s.images.sources = [str(p) for p in list_images(folder)]
        logger.info(f"[settings] found {len(s.images.sources)} images in {folder}")

    music = _section(data, "music")
    s.music = MusicSettings(
        sources=[resolve_locator(x, base_dir) for x in (_str_list(music, "sources", "music.") or [])],
        shuffle=_take(music, "shuffle", bool, False, "music."),
        volume=max(0.0, min(1.0, float(_take(music, "volume", (int, float), 0.7, "music.")))),
        folder=_take(music, "folder", str, "", "music."),
        reshuffle_on_wrap=_take(music, "reshuffleOnWrap", bool, False, "music."),
    )
    if s.music.folder:
        # local tracks first, then the configured sources
        folder = Path(resolve_locator(s.music.folder, base_dir))
        local = [str(p) for p in list_audio(folder)]
        s.music.sources = local + s.music.sources
        logger.info(f"[settings] found {len(local)} tracks in {folder}")

    transitions = _str_list(data, "transitions", "")
    if transitions is not None:
        s.transitions = transitions
    s.random_transitions = _take(data, "randomTransitions", bool, s.random_transitions)
    s.transition_ms = max(0, _take(data, "transitionDuration", int, s.transition_ms))

    s.autoplay = _take(data, "autoplay", bool, s.autoplay)
    s.delay_ms = max(1, _take(data, "delay", int, s.delay_ms))

    s.keyboard_enabled = _take(_section(data, "keyboard"), "enabled", bool, True, "keyboard.")
    s.debug_enabled = _take(_section(data, "debug"), "enabled", bool, False, "debug.")
    s.captions_enabled = _take(_section(data, "captions"), "enabled", bool, True, "captions.")

    remote = _section(data, "remote")
    s.remote = RemoteSettings(
        enabled=_take(remote, "enabled", bool, False, "remote."),
        port=_take(remote, "port", int, 8080, "remote."),
    )

    window = _section(data, "window")
    s.window = WindowSettings(
        fullscreen=_take(window, "fullscreen", bool, True, "window."),
        hide_cursor=_take(window, "hideCursor", bool, True, "window."),
        display_index=_take(window, "displayIndex", int, 0, "window."),
    )

    s.log_level = str(_take(_section(data, "logging"), "level", str, "INFO", "logging.")).upper()
    return s


def load_settings(path: Optional[Path] = None, required: bool = False) -> AppSettings:
    """Load a config document. A missing file gives defaults unless ``required``."""
    p = Path(path) if path else default_config_path()
    if not p.exists():
        if required:
            raise ConfigurationError(f"config file not found: {p}")
        logger.info(f"[settings] no config file at {p}, using defaults")
        return AppSettings()

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        if required:
            raise ConfigurationError(f"could not read {p}: {e}") from e
        logger.error(f"[settings] error loading {p}: {e}. Using defaults.")
        return AppSettings()

    if not isinstance(data, dict):
        if required:
            raise ConfigurationError(f"{p} must contain a JSON object")
        logger.error(f"[settings] {p} does not contain a JSON object. Using defaults.")
        return AppSettings()

    logger.info(f"[settings] loaded from {p}")
    return settings_from_dict(data, base_dir=p.resolve().parent)
