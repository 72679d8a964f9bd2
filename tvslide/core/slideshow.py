from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Protocol, Sequence

from PySide6.QtCore import QObject, Signal

from tvslide.core.captions import CaptionBinder
from tvslide.core.catalog import ImageCatalog
from tvslide.core.debug_overlay import DebugReporter
from tvslide.core.effects import EffectRegistry, TransitionJob
from tvslide.core.errors import EmptyCatalogError, ResourceUnavailable
from tvslide.core.transition_canvas import Surface
from tvslide.models.media import ImageEntry

logger = logging.getLogger(__name__)

INITIAL_EFFECT_LABEL = "(initial)"


class SlideState(Enum):
    IDLE = "idle"
    SHOWING = "showing"
    TRANSITIONING = "transitioning"


class SurfaceFactory(Protocol):
    def create_surface(self, locator: str) -> Surface: ...

    def prefetch(self, locator: str) -> None: ...

    def set_visibility(self, surface: Surface, amount: float) -> None: ...

    def destroy_surface(self, surface: Surface) -> None: ...


class SlideshowController(QObject):
    """
    Slide state machine: IDLE -> SHOWING <-> TRANSITIONING.

    Only one transition runs at a time. advance() calls that arrive while a
    transition is in flight are dropped, not queued.
    """

    transition_started = Signal(int)
    transition_finished = Signal(int)
    transition_aborted = Signal(int)

    def __init__(
        self,
        catalog: ImageCatalog,
        registry: EffectRegistry,
        surfaces: SurfaceFactory,
        captions: CaptionBinder,
        debug: DebugReporter,
        transitions: Optional[Sequence[str]] = None,
        random_transitions: bool = True,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.catalog = catalog
        self.registry = registry
        self.transitions: List[str] = list(transitions or [])
        self.random_transitions = random_transitions

        self._surfaces = surfaces
        self._captions = captions
        self._debug = debug

        self._state = SlideState.IDLE
        self._index = 0
        self._current_surface: Optional[Surface] = None
        self._next_surface: Optional[Surface] = None
        self._shown_entry: Optional[ImageEntry] = None
        self._last_effect = ""

        self._job: Optional[TransitionJob] = None
        self._pending_entry: Optional[ImageEntry] = None
        self._pending_effect = ""

    @property
    def state(self) -> SlideState:
        return self._state

    @property
    def is_transitioning(self) -> bool:
        return self._state is SlideState.TRANSITIONING

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_entry(self) -> Optional[ImageEntry]:
        """The entry on screen, which lags the index while a transition runs."""
        return self._shown_entry

    @property
    def last_effect(self) -> str:
        return self._last_effect

    @property
    def current_surface(self) -> Optional[Surface]:
        return self._current_surface

    def start(self):
        if self._state is not SlideState.IDLE:
            return
        if len(self.catalog) == 0:
            raise EmptyCatalogError("catalog is empty")

        for index in range(len(self.catalog)):
            entry = self.catalog[index]
            try:
                surface = self._surfaces.create_surface(entry.source)
            except ResourceUnavailable as e:
                logger.warning(f"[slideshow] skipping {entry.filename}: {e}")
                continue
            self._index = index
            self._current_surface = surface
            self._surfaces.set_visibility(surface, 1.0)
            self._show(entry, INITIAL_EFFECT_LABEL)
            self._state = SlideState.SHOWING
            self._prefetch_neighbours()
            logger.info(f"[slideshow] started on {entry.filename}")
            return

        raise EmptyCatalogError("none of the configured images could be loaded")

    def next(self) -> bool:
        return self.advance(1)

    def previous(self) -> bool:
        # relative to the current order; a reshuffle has no memory of the old one
        return self.advance(-1)

    def advance(self, delta: int = 1) -> bool:
        """
        Move ``delta`` positions and run a transition to that image.

        Entries that fail to load are skipped in the same direction. When no
        other entry loads the old image stays, the index goes back to it and
        ``transition_aborted`` fires.
        """
        if self._state is not SlideState.SHOWING:
            logger.debug(f"[slideshow] advance({delta}) dropped in state {self._state.value}")
            return False
        if delta == 0:
            return False

        step = 1 if delta > 0 else -1
        move = delta
        for _ in range(max(1, len(self.catalog) - 1)):
            if self.catalog.wraps(self._index, move):
                self.catalog.shuffle()
                logger.info("[slideshow] loop complete, catalog reshuffled")
            self._index = self.catalog.advance_index(self._index, move)
            entry = self.catalog[self._index]
            try:
                surface = self._surfaces.create_surface(entry.source)
            except ResourceUnavailable as e:
                logger.warning(f"[slideshow] skipping {entry.filename}: {e}")
                move = step
                continue
            self._begin_transition(entry, surface)
            return True

        self._index = self.catalog.position_of(self._shown_entry)
        logger.warning(f"[slideshow] no other image could be loaded, staying on {self._shown_entry.filename}")
        self.transition_aborted.emit(self._index)
        return False

    def _begin_transition(self, entry: ImageEntry, surface: Surface):
        name = self.registry.pick_name(self.transitions, self.random_transitions)
        effect = self.registry.resolve(name)

        self._state = SlideState.TRANSITIONING
        self._next_surface = surface
        self._pending_entry = entry
        self._pending_effect = effect.name
        self.transition_started.emit(self._index)
        logger.debug(f"[slideshow] {entry.filename} via {name}")

        job = effect.apply(self._current_surface, surface)
        self._job = job
        job.finished.connect(lambda j=job: self._on_transition_done(j))
        if job.done:
            self._on_transition_done(job)

    def _on_transition_done(self, job: TransitionJob):
        if job is not self._job or self._state is not SlideState.TRANSITIONING:
            return

        superseded = self._current_surface
        self._current_surface, self._next_surface = self._next_surface, None
        if superseded is not None:
            self._surfaces.destroy_surface(superseded)

        entry, name = self._pending_entry, self._pending_effect
        self._pending_entry, self._pending_effect = None, ""
        self._show(entry, name)
        self._state = SlideState.SHOWING
        self._prefetch_neighbours()
        self.transition_finished.emit(self._index)

    def _prefetch_neighbours(self):
        # past the end the order is reshuffled, so there is nothing to guess
        if not self.catalog.wraps(self._index, 1):
            self._surfaces.prefetch(self.catalog[self._index + 1].source)
        if len(self.catalog) > 2:
            self._surfaces.prefetch(self.catalog[self.catalog.advance_index(self._index, -1)].source)

    def _show(self, entry: ImageEntry, effect_name: str):
        self._shown_entry = entry
        self._last_effect = effect_name
        self._captions.update(entry)
        self._debug.report(entry, effect_name)

    def shutdown(self):
        if self._job is not None and not self._job.done:
            self._job.finish()
        for surface in (self._next_surface, self._current_surface):
            if surface is not None:
                self._surfaces.destroy_surface(surface)
        self._current_surface = self._next_surface = None
        self._job = None
        self._state = SlideState.IDLE
        self._index = 0
