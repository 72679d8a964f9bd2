from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Mapping, Optional

from tvslide.core.autoplay import AutoplayScheduler
from tvslide.core.captions import CaptionBinder, CaptionView
from tvslide.core.catalog import ImageCatalog
from tvslide.core.debug_overlay import DebugReporter, DebugView
from tvslide.core.effects import EffectRegistry, build_default_registry
from tvslide.core.errors import EmptyPlaylistError
from tvslide.core.playlist import Playback, PlaylistController, probe_source
from tvslide.core.slideshow import SlideshowController, SurfaceFactory
from tvslide.models.media import CaptionRecord
from tvslide.models.settings import AppSettings

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    """Everything the input side needs to drive a running show."""

    settings: AppSettings
    catalog: ImageCatalog
    registry: EffectRegistry
    captions: CaptionBinder
    debug: DebugReporter
    slideshow: SlideshowController
    autoplay: AutoplayScheduler
    playlist: Optional[PlaylistController] = None

    @classmethod
    def create(
        cls,
        settings: AppSettings,
        captions: Mapping[str, CaptionRecord],
        surfaces: SurfaceFactory,
        caption_view: CaptionView,
        debug_view: DebugView,
        playback: Optional[Playback] = None,
        rng: Optional[random.Random] = None,
        probe=probe_source,
    ) -> "Engine":
        rng = rng or random.Random()
        catalog = ImageCatalog.build(settings.images.sources, settings.images.shuffle, rng=rng)
        registry = build_default_registry(settings.transition_ms, rng=rng)
        for name in settings.transitions:
            if name not in registry.names():
                logger.warning(f"[engine] unknown transition {name!r} will fall back to {registry.default_name}")

        binder = CaptionBinder(captions, caption_view, visible=settings.captions_enabled)
        debug = DebugReporter(debug_view, enabled=settings.debug_enabled)
        slideshow = SlideshowController(
            catalog, registry, surfaces, binder, debug,
            transitions=settings.transitions,
            random_transitions=settings.random_transitions,
        )
        autoplay = AutoplayScheduler(slideshow, delay_ms=settings.delay_ms)

        playlist = None
        if playback is not None and settings.music.sources:
            try:
                playlist = PlaylistController.build(
                    settings.music.sources,
                    playback,
                    shuffle_enabled=settings.music.shuffle,
                    volume=settings.music.volume,
                    reshuffle_on_wrap=settings.music.reshuffle_on_wrap,
                    probe=probe,
                    rng=rng,
                )
            except EmptyPlaylistError as e:
                logger.error(f"[engine] music disabled: {e}")

        return cls(settings, catalog, registry, binder, debug, slideshow, autoplay, playlist)

    def start(self):
        self.slideshow.start()
        if self.settings.autoplay:
            self.autoplay.enable(self.settings.delay_ms)
        if self.playlist is not None:
            self.playlist.start()

    def shutdown(self):
        self.autoplay.disable()
        self.slideshow.shutdown()

    def status(self) -> dict:
        entry = self.slideshow.current_entry
        return {
            "state": self.slideshow.state.value,
            "index": entry.index if entry else None,
            "position": self.slideshow.current_index,
            "filename": entry.filename if entry else None,
            "effect": self.slideshow.last_effect,
            "autoplay": self.autoplay.is_enabled,
            "debug": self.debug.enabled,
            "captions": self.captions.visible,
            "track": self.playlist.current_track if self.playlist else None,
        }
