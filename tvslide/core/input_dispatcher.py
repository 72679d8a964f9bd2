import logging
from typing import Callable, Dict, Optional

from PySide6.QtCore import QObject, Qt, Signal

from tvslide.core.engine import Engine
from tvslide.models.settings import Command

logger = logging.getLogger(__name__)

KEY_COMMANDS: Dict[int, str] = {
    int(Qt.Key_Right): Command.NEXT,
    int(Qt.Key_Left): Command.PREVIOUS,
    int(Qt.Key_Up): Command.TOGGLE_DEBUG,
    int(Qt.Key_Down): Command.TOGGLE_CAPTIONS,
    int(Qt.Key_Return): Command.TOGGLE_AUTOPLAY,
    int(Qt.Key_Enter): Command.TOGGLE_AUTOPLAY,
    int(Qt.Key_Space): Command.TOGGLE_AUTOPLAY,
    int(Qt.Key_M): Command.TOGGLE_MUSIC,
}


def command_for_key(key) -> Optional[str]:
    return KEY_COMMANDS.get(int(key))


class InputDispatcher(QObject):
    """Runs command tokens against the engine. ``dispatched`` fires after each handled one."""

    dispatched = Signal(str)

    def __init__(self, engine: Engine, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._engine = engine
        self._actions: Dict[str, Callable[[], None]] = {
            Command.NEXT: self._next,
            Command.PREVIOUS: self._previous,
            Command.TOGGLE_AUTOPLAY: self._toggle_autoplay,
            Command.TOGGLE_DEBUG: self._toggle_debug,
            Command.TOGGLE_CAPTIONS: self._toggle_captions,
            Command.TOGGLE_MUSIC: self._toggle_music,
        }

    def dispatch(self, token: str) -> bool:
        action = self._actions.get(token)
        if action is None:
            logger.debug(f"[input] ignoring unknown command {token!r}")
            return False
        logger.debug(f"[input] {token}")
        action()
        self.dispatched.emit(token)
        return True

    def _next(self):
        self._engine.slideshow.advance(1)

    def _previous(self):
        self._engine.slideshow.advance(-1)

    def _toggle_autoplay(self):
        self._engine.autoplay.toggle()

    def _toggle_debug(self):
        self._engine.debug.toggle()

    def _toggle_captions(self):
        self._engine.captions.toggle_visible()

    def _toggle_music(self):
        if self._engine.playlist is not None:
            self._engine.playlist.toggle_pause()
