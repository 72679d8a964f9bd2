"""
Shared pytest fixtures and fakes for tvslide tests.
"""
import os
import random

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QObject, Signal

from tvslide.core.captions import CaptionBinder
from tvslide.core.catalog import ImageCatalog
from tvslide.core.debug_overlay import DebugReporter
from tvslide.core.effects import EffectRegistry, TransitionEffect, TransitionJob
from tvslide.core.errors import PlaybackRejected, ResourceUnavailable
from tvslide.core.slideshow import SlideshowController
from tvslide.core.transition_canvas import Surface
from tvslide.models.media import CaptionRecord


class FakeSurfaceFactory:
    def __init__(self, broken=()):
        self.broken = set(broken)
        self.live = []
        self.created = []
        self.destroyed = []
        self.prefetched = []

    def create_surface(self, locator):
        if locator in self.broken:
            raise ResourceUnavailable(locator, "broken on purpose")
        surface = Surface(locator)
        self.live.append(surface)
        self.created.append(locator)
        return surface

    def prefetch(self, locator):
        self.prefetched.append(locator)

    def set_visibility(self, surface, amount):
        surface.opacity = amount

    def destroy_surface(self, surface):
        self.live.remove(surface)
        self.destroyed.append(surface.locator)


class ManualEffect(TransitionEffect):
    """Effect whose jobs complete only when the test says so."""

    def __init__(self, name):
        super().__init__(0)
        self.name = name
        self.jobs = []

    def apply(self, from_surface, to_surface):
        job = TransitionJob(self.name, finalize=lambda: self.finalize(from_surface, to_surface))
        self.jobs.append(job)
        return job

    def complete_last(self):
        self.jobs[-1].finish()


class RecordingCaptionView:
    def __init__(self):
        self.calls = []
        self.visible = None

    def show_caption(self, title, description, meta):
        self.calls.append(("show", title, description, meta))

    def clear_caption(self):
        self.calls.append(("clear",))

    def fade_in_caption(self):
        self.calls.append(("fade_in",))

    def set_caption_visible(self, visible):
        self.visible = visible


class RecordingDebugView:
    def __init__(self):
        self.text = None
        self.shown = False

    def show_debug(self, text):
        self.text = text
        self.shown = True

    def hide_debug(self):
        self.shown = False


class FakePlayback(QObject):
    track_ended = Signal()
    track_failed = Signal(str)

    def __init__(self, reject=False):
        super().__init__()
        self.reject = reject
        self.loaded = []
        self.volumes = []
        self.play_calls = 0
        self.playing = False
        self.missing = set()

    def load(self, locator):
        if locator in self.missing:
            raise ResourceUnavailable(locator, "gone")
        self.loaded.append(locator)

    def set_volume(self, v):
        self.volumes.append(v)

    def play(self):
        self.play_calls += 1
        if self.reject:
            raise PlaybackRejected("autoplay blocked")
        self.playing = True

    def pause(self):
        self.playing = False

    def is_playing(self):
        return self.playing


@pytest.fixture
def surfaces():
    return FakeSurfaceFactory()


@pytest.fixture
def caption_view():
    return RecordingCaptionView()


@pytest.fixture
def debug_view():
    return RecordingDebugView()


@pytest.fixture
def manual_fade(qapp):
    return ManualEffect("fade")


@pytest.fixture
def make_controller(qapp, surfaces, caption_view, debug_view, manual_fade):
    """Build a controller over plain locators with a manual 'fade' effect."""

    def _make(sources=("A", "B", "C"), shuffle=False, transitions=("fade",),
              random_transitions=False, captions=None, seed=7, debug=True):
        rng = random.Random(seed)
        catalog = ImageCatalog.build(list(sources), shuffle_enabled=shuffle, rng=rng)
        registry = EffectRegistry(default=manual_fade, rng=rng)
        binder = CaptionBinder(captions or {"A": CaptionRecord("Alpha", "first", "Ann", "2020")}, caption_view)
        reporter = DebugReporter(debug_view, enabled=debug)
        return SlideshowController(
            catalog, registry, surfaces, binder, reporter,
            transitions=list(transitions), random_transitions=random_transitions,
        )

    return _make
