import logging
from typing import Optional

from PySide6.QtCore import Qt, QPropertyAnimation, QEasingCurve
from PySide6.QtGui import QGuiApplication, QKeyEvent
from PySide6.QtWidgets import QGraphicsOpacityEffect, QLabel, QVBoxLayout, QWidget

from tvslide.core.input_dispatcher import InputDispatcher, command_for_key
from tvslide.core.transition_canvas import TransitionCanvas
from tvslide.models.settings import AppSettings

logger = logging.getLogger(__name__)


class SlideShowWindow(QWidget):
    """Fullscreen window: the canvas with caption, debug and music labels on top."""

    CAPTION_FADE_MS = 800

    def __init__(self, settings: AppSettings):
        super().__init__()
        self.settings = settings
        self.setWindowTitle("tvslide")
        self.setStyleSheet("background: black;")

        self.canvas = TransitionCanvas(self)
        self._dispatcher: Optional[InputDispatcher] = None

        self.caption_box = QWidget(self)
        self.caption_box.setAttribute(Qt.WA_TransparentForMouseEvents, True)
        self.caption_box.setStyleSheet("background: rgba(0, 0, 0, 110); color: white;")
        lay = QVBoxLayout(self.caption_box)
        lay.setContentsMargins(24, 12, 24, 16)
        self.caption_title = QLabel("", self.caption_box)
        self.caption_title.setStyleSheet("font-size: 34px; font-weight: bold; background: transparent;")
        self.caption_description = QLabel("", self.caption_box)
        self.caption_description.setWordWrap(True)
        self.caption_description.setStyleSheet("font-size: 22px; background: transparent;")
        self.caption_meta = QLabel("", self.caption_box)
        self.caption_meta.setStyleSheet("font-size: 16px; color: #cccccc; background: transparent;")
        for lbl in (self.caption_title, self.caption_description, self.caption_meta):
            lay.addWidget(lbl)

        self._caption_opacity = QGraphicsOpacityEffect(self.caption_box)
        self.caption_box.setGraphicsEffect(self._caption_opacity)
        self._caption_anim = QPropertyAnimation(self._caption_opacity, b"opacity", self)
        self._caption_anim.setDuration(self.CAPTION_FADE_MS)
        self._caption_anim.setEasingCurve(QEasingCurve.OutCubic)
        self._caption_has_text = False
        self._caption_visible = True

        self.debug_label = QLabel("", self)
        self.debug_label.setStyleSheet(
            "background: rgba(0, 0, 0, 160); color: #00ff00; font-family: monospace; padding: 8px;"
        )
        self.debug_label.hide()

        self.music_label = QLabel("", self)
        self.music_label.setStyleSheet("background: transparent; color: #dddddd; font-size: 16px;")
        self.music_label.setAlignment(Qt.AlignRight | Qt.AlignVCenter)

        self._apply_window_flags()

    def set_dispatcher(self, dispatcher: InputDispatcher):
        self._dispatcher = dispatcher

    def _apply_window_flags(self):
        flags = Qt.FramelessWindowHint | Qt.WindowStaysOnTopHint
        self.setWindowFlags(flags)
        if self.settings.window.hide_cursor:
            self.setCursor(Qt.BlankCursor)
        else:
            self.unsetCursor()

    def move_to_display(self, display_index: int):
        screens = QGuiApplication.screens()
        if not screens:
            return
        idx = max(0, min(int(display_index), len(screens) - 1))
        self.setGeometry(screens[idx].geometry())

    def present(self):
        self.move_to_display(self.settings.window.display_index)
        if self.settings.window.fullscreen:
            self.showFullScreen()
        else:
            self.show()
        self.activateWindow()
        self.raise_()
        self.canvas.start_rendering()

    # caption view

    def show_caption(self, title: str, description: str, meta: str):
        self.caption_title.setText(title)
        self.caption_title.setVisible(bool(title))
        self.caption_description.setText(description)
        self.caption_description.setVisible(bool(description))
        self.caption_meta.setText(meta)
        self.caption_meta.setVisible(bool(meta))
        self._caption_has_text = bool(title or description or meta)
        self._sync_caption_box()

    def clear_caption(self):
        self.show_caption("", "", "")

    def fade_in_caption(self):
        self._caption_anim.stop()
        self._caption_anim.setStartValue(0.0)
        self._caption_anim.setEndValue(1.0)
        self._caption_anim.start()

    def set_caption_visible(self, visible: bool):
        self._caption_visible = visible
        self._sync_caption_box()

    def _sync_caption_box(self):
        self.caption_box.setVisible(self._caption_visible and self._caption_has_text)
        self._layout_overlays()

    # debug view

    def show_debug(self, text: str):
        self.debug_label.setText(text)
        self.debug_label.adjustSize()
        self.debug_label.show()
        self.debug_label.raise_()

    def hide_debug(self):
        self.debug_label.hide()

    def set_music_title(self, title: str):
        self.music_label.setText(f"♪ {title}" if title else "")

    def _layout_overlays(self):
        w, h = self.width(), self.height()
        self.canvas.setGeometry(0, 0, w, h)

        box_w = int(w * 0.84)
        self.caption_box.setFixedWidth(max(1, box_w))
        self.caption_box.adjustSize()
        ch = self.caption_box.sizeHint().height()
        self.caption_box.move(int(w * 0.08), max(0, h - ch - int(h * 0.06)))

        self.debug_label.move(16, 16)
        self.music_label.setGeometry(w - 416, h - 36, 400, 28)

    def resizeEvent(self, e):
        self._layout_overlays()
        super().resizeEvent(e)

    def keyPressEvent(self, e: QKeyEvent):
        if e.key() == Qt.Key_Escape:
            self.close()
            return
        if self._dispatcher is not None and self.settings.keyboard_enabled:
            token = command_for_key(e.key())
            if token is not None:
                self._dispatcher.dispatch(token)
                return
        super().keyPressEvent(e)

    def closeEvent(self, e):
        self.canvas.stop_rendering()
        self.canvas.fetcher.shutdown()
        super().closeEvent(e)
