from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QObject, Signal, QUrl
from PySide6.QtMultimedia import QAudioOutput, QMediaDevices, QMediaPlayer

from tvslide.core.errors import PlaybackRejected, ResourceUnavailable

logger = logging.getLogger(__name__)


def to_url(locator: str) -> QUrl:
    if locator.startswith(("http://", "https://")):
        return QUrl(locator)
    return QUrl.fromLocalFile(str(Path(locator).resolve()))


class QtPlayback(QObject):
    """
    Single-track playback on QMediaPlayer. Advancing is the playlist's job.

    ``track_ended`` fires at the end of a track that played; ``track_failed``
    fires once per loaded source the backend cannot decode or open.
    """

    track_ended = Signal()
    track_failed = Signal(str)

    def __init__(self):
        super().__init__()
        self._player = QMediaPlayer()
        self._audio = QAudioOutput()
        self._player.setAudioOutput(self._audio)
        self._source = ""
        self._failed_source: str | None = None

        self._player.mediaStatusChanged.connect(self._on_status)
        self._player.errorOccurred.connect(self._on_error)

    def load(self, locator: str):
        url = to_url(locator)
        if url.isLocalFile() and not Path(url.toLocalFile()).is_file():
            raise ResourceUnavailable(locator, "file not found")
        self._source = locator
        self._failed_source = None
        self._player.setSource(url)
        logger.debug(f"[audio] source: {url.toString()}")

    def set_volume(self, v: float):
        self._audio.setVolume(max(0.0, min(1.0, float(v))))

    def play(self):
        if QMediaDevices.defaultAudioOutput().isNull():
            raise PlaybackRejected("no audio output device")
        self._player.play()
        logger.debug(f"[audio] state: {self._player.playbackState()}")

    def pause(self):
        self._player.pause()

    def stop(self):
        self._player.stop()

    def is_playing(self) -> bool:
        return self._player.playbackState() == QMediaPlayer.PlaybackState.PlayingState

    def _on_status(self, st: QMediaPlayer.MediaStatus):
        if st == QMediaPlayer.MediaStatus.EndOfMedia:
            self.track_ended.emit()
        elif st == QMediaPlayer.MediaStatus.InvalidMedia:
            self._fail(f"cannot play {self._player.source().toString()}")

    def _on_error(self, error: QMediaPlayer.Error, message: str):
        if error == QMediaPlayer.Error.NoError:
            return
        self._fail(f"playback error {error}: {message}")

    def _fail(self, reason: str):
        # InvalidMedia and errorOccurred usually arrive together for one source
        logger.warning(f"[audio] {reason}")
        if self._failed_source == self._source:
            return
        self._failed_source = self._source
        self.track_failed.emit(self._source)
