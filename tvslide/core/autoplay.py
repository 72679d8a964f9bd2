import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer

from tvslide.core.slideshow import SlideshowController

logger = logging.getLogger(__name__)


class AutoplayScheduler(QObject):
    """Owns the single pending 'advance' timer of a slideshow."""

    def __init__(self, controller: SlideshowController, delay_ms: int = 4000,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self._controller = controller
        self._enabled = False
        self.delay_ms = max(1, int(delay_ms))

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timeout)

        controller.transition_started.connect(self._on_transition_started)
        controller.transition_finished.connect(self._on_transition_settled)
        controller.transition_aborted.connect(self._on_transition_settled)

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def is_pending(self) -> bool:
        return self._timer.isActive()

    def enable(self, delay_ms: Optional[int] = None):
        if delay_ms is not None:
            self.delay_ms = max(1, int(delay_ms))
        self._enabled = True
        self.rearm()
        logger.info(f"[autoplay] on, every {self.delay_ms} ms")

    def disable(self):
        self._enabled = False
        self.cancel()
        logger.info("[autoplay] off")

    def toggle(self) -> bool:
        if self._enabled:
            self.disable()
        else:
            self.enable()
        return self._enabled

    def cancel(self):
        self._timer.stop()

    def rearm(self):
        self.cancel()
        if not self._enabled or self._controller.is_transitioning:
            return
        self._timer.start(self.delay_ms)

    def _on_transition_started(self, index: int):
        self.cancel()

    def _on_transition_settled(self, index: int):
        self.rearm()

    def _on_timeout(self):
        self._controller.advance(1)
