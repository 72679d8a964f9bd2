import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PySide6.QtWidgets import QApplication

from tvslide.core.audio_player import QtPlayback
from tvslide.core.captions import load_captions
from tvslide.core.engine import Engine
from tvslide.core.errors import ConfigurationError, EmptyCatalogError
from tvslide.core.input_dispatcher import InputDispatcher
from tvslide.core.remote import RemoteServer
from tvslide.core.settings_store import CAPTIONS_FILE_NAME, default_config_path, load_settings
from tvslide.core.slideshow_window import SlideShowWindow

logger = logging.getLogger("tvslide")


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tvslide", description="Looping fullscreen slideshow with background music.")
    parser.add_argument("--config", type=Path, default=None, help="path to config.json")
    parser.add_argument("--captions", type=Path, default=None, help="path to captions.json (default: next to the config)")
    parser.add_argument("--verbose", action="store_true", help="log at DEBUG level")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    config_path = args.config or default_config_path()
    try:
        settings = load_settings(config_path, required=args.config is not None)
    except ConfigurationError as e:
        logger.error(f"{e}")
        return 2
    setup_logging(settings.log_level, verbose=args.verbose)

    captions_path = args.captions or Path(config_path).resolve().parent / CAPTIONS_FILE_NAME
    captions = load_captions(str(captions_path))

    app = QApplication(sys.argv[:1])

    window = SlideShowWindow(settings)
    playback = QtPlayback() if settings.music.sources else None
    try:
        engine = Engine.create(settings, captions, window.canvas, window, window, playback=playback)
    except EmptyCatalogError as e:
        logger.error(f"Nothing to show: {e}")
        return 1

    dispatcher = InputDispatcher(engine)
    window.set_dispatcher(dispatcher)
    if engine.playlist is not None:
        engine.playlist.track_changed.connect(window.set_music_title)

    remote = None
    if settings.remote.enabled:
        remote = RemoteServer(settings.remote.port)
        remote.command_received.connect(dispatcher.dispatch)
        remote.follow_engine(engine, dispatcher)
        try:
            remote.start()
        except OSError as e:
            logger.error(f"[remote] could not listen on port {settings.remote.port}: {e}")
            remote = None

    window.present()
    try:
        engine.start()
    except EmptyCatalogError as e:
        logger.error(f"Nothing to show: {e}")
        return 1
    if remote is not None:
        remote.publish_status(engine.status())

    logger.info("Controls: Left/Right (prev/next), Enter/Space (autoplay), Up (debug), Down (captions), M (music), Esc (exit)")
    ret = app.exec()

    engine.shutdown()
    if remote is not None:
        remote.stop()
    return ret


if __name__ == "__main__":
    sys.exit(main())
