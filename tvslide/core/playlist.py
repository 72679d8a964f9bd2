from __future__ import annotations

import logging
import random
import urllib.parse
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

import requests
from PySide6.QtCore import QObject, Qt, Signal, SignalInstance

from tvslide.core.errors import EmptyPlaylistError, PlaybackRejected, ResourceUnavailable
from tvslide.models.media import filename_of

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_S = 5


class Playback(Protocol):
    track_ended: SignalInstance
    track_failed: SignalInstance

    def load(self, locator: str) -> None: ...

    def set_volume(self, v: float) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def is_playing(self) -> bool: ...


def is_remote(locator: str) -> bool:
    return locator.startswith(("http://", "https://"))


def probe_source(locator: str) -> bool:
    if is_remote(locator):
        try:
            resp = requests.head(locator, timeout=PROBE_TIMEOUT_S, allow_redirects=True)
        except requests.RequestException as e:
            logger.debug(f"[music] probe failed for {locator}: {e}")
            return False
        return resp.status_code < 400
    return Path(locator).is_file()


def track_title(locator: str) -> str:
    name = filename_of(locator)
    if "." in name:
        name = name.rsplit(".", 1)[0]
    return urllib.parse.unquote(name)


def clamp_volume(v: float) -> float:
    return max(0.0, min(1.0, float(v)))


class PlaylistController(QObject):
    """Background music rotation, advanced only by the end of the current track."""

    track_changed = Signal(str)

    def __init__(
        self,
        tracks: Sequence[str],
        playback: Playback,
        shuffle_enabled: bool = False,
        volume: float = 0.7,
        reshuffle_on_wrap: bool = False,
        rng: Optional[random.Random] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        if not tracks:
            raise EmptyPlaylistError("no playable music sources")
        self.tracks: List[str] = list(tracks)
        self.shuffle_enabled = shuffle_enabled
        self.reshuffle_on_wrap = reshuffle_on_wrap
        self.volume = clamp_volume(volume)
        self.current_track_index = 0
        self.current_track: Optional[str] = None
        self.rejected = False
        self.failures_in_a_row = 0

        self._rng = rng or random.Random()
        self._playback = playback
        if shuffle_enabled:
            self._rng.shuffle(self.tracks)

        playback.track_ended.connect(self._on_track_ended)
        # failures can be reported from inside load(), so the skip waits a turn
        playback.track_failed.connect(self._on_track_failed, Qt.QueuedConnection)

    @classmethod
    def build(
        cls,
        sources: Sequence[str],
        playback: Playback,
        shuffle_enabled: bool = False,
        volume: float = 0.7,
        reshuffle_on_wrap: bool = False,
        probe: Callable[[str], bool] = probe_source,
        rng: Optional[random.Random] = None,
    ) -> "PlaylistController":
        tracks = []
        for src in sources:
            if probe(src):
                tracks.append(src)
            else:
                logger.warning(f"[music] dropping unreachable source: {src}")
        if not tracks:
            raise EmptyPlaylistError(f"none of {len(sources)} music sources are reachable")
        logger.info(f"[music] playlist of {len(tracks)} tracks (shuffle={shuffle_enabled})")
        return cls(tracks, playback, shuffle_enabled=shuffle_enabled, volume=volume,
                   reshuffle_on_wrap=reshuffle_on_wrap, rng=rng)

    def start(self):
        self.play_next()

    def play_next(self):
        # a track that vanished since build is skipped; at most one pass over the list
        for _ in range(len(self.tracks)):
            track = self.tracks[self.current_track_index]
            self.current_track_index = (self.current_track_index + 1) % len(self.tracks)
            if self.current_track_index == 0 and self.shuffle_enabled and self.reshuffle_on_wrap:
                self._rng.shuffle(self.tracks)

            try:
                self._playback.load(track)
            except ResourceUnavailable as e:
                logger.warning(f"[music] skipping {track}: {e}")
                continue

            self.current_track = track
            self._playback.set_volume(self.volume)
            self.track_changed.emit(track_title(track))
            self._request_play()
            return
        logger.error("[music] no track could be loaded")

    def set_volume(self, v: float):
        self.volume = clamp_volume(v)
        self._playback.set_volume(self.volume)

    def resume(self):
        if self.current_track is None:
            self.play_next()
        else:
            self._request_play()

    def toggle_pause(self) -> bool:
        """Returns True when music is playing afterwards."""
        if self._playback.is_playing():
            self._playback.pause()
            return False
        self.resume()
        return not self.rejected

    def _request_play(self):
        try:
            self._playback.play()
        except PlaybackRejected as e:
            self.rejected = True
            logger.warning(f"[music] playback blocked: {e}")
            return
        self.rejected = False

    def _on_track_ended(self):
        self.failures_in_a_row = 0
        self.play_next()

    def _on_track_failed(self, locator: str):
        if locator != self.current_track:
            return
        self.failures_in_a_row += 1
        if self.failures_in_a_row >= len(self.tracks):
            logger.error("[music] every track failed to play, music stopped")
            return
        logger.warning(f"[music] skipping {locator}: backend could not play it")
        self.play_next()
