"""
Transition effects and the registry that resolves them by name.

An effect animates two surfaces of the canvas: the one leaving the screen and
the one arriving. ``apply`` returns a :class:`TransitionJob` whose
``finished`` signal fires exactly once, after the incoming surface is left
fully visible and the outgoing one hidden.
"""
from __future__ import annotations

import logging
import math
import random
from typing import Callable, Dict, List, Optional, Sequence

from PySide6.QtCore import QAbstractAnimation, QEasingCurve, QObject, QTimer, QVariantAnimation, Signal

from tvslide.core.errors import UnknownEffectName
from tvslide.core.transition_canvas import Surface, Tile
from tvslide.models.settings import EffectName

logger = logging.getLogger(__name__)


class TransitionJob(QObject):
    finished = Signal()

    def __init__(self, effect_name: str, finalize: Optional[Callable[[], None]] = None):
        super().__init__()
        self.effect_name = effect_name
        self._finalize = finalize
        self._anim: Optional[QVariantAnimation] = None
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def attach(self, anim: QVariantAnimation):
        self._anim = anim
        anim.finished.connect(self.finish)

    def finish(self):
        """Jump to the end of the transition. Safe to call more than once."""
        if self._done:
            return
        self._done = True
        if self._anim is not None and self._anim.state() == QAbstractAnimation.Running:
            self._anim.stop()
        if self._finalize is not None:
            self._finalize()
        self.finished.emit()


class TransitionEffect:
    name = ""
    easing = QEasingCurve.InOutQuad

    def __init__(self, duration_ms: int = 1000):
        self.duration_ms = max(0, int(duration_ms))

    def apply(self, from_surface: Optional[Surface], to_surface: Surface) -> TransitionJob:
        job = TransitionJob(self.name, finalize=lambda: self.finalize(from_surface, to_surface))
        self.prepare(from_surface, to_surface)

        if self.duration_ms <= 0 or from_surface is None:
            # never complete inside apply(); the caller connects first
            QTimer.singleShot(0, job.finish)
            return job

        anim = QVariantAnimation(job)
        anim.setStartValue(0.0)
        anim.setEndValue(1.0)
        anim.setDuration(self.duration_ms)
        anim.setEasingCurve(self.easing)
        anim.valueChanged.connect(lambda v: self.render(from_surface, to_surface, float(v)))
        job.attach(anim)
        anim.start()
        return job

    def prepare(self, from_surface: Optional[Surface], to_surface: Surface):
        to_surface.reset(opacity=0.0)
        if from_surface is not None:
            from_surface.reset(opacity=1.0)

    def render(self, from_surface: Surface, to_surface: Surface, p: float):
        raise NotImplementedError

    def finalize(self, from_surface: Optional[Surface], to_surface: Surface):
        to_surface.reset(opacity=1.0)
        if from_surface is not None:
            from_surface.reset(opacity=0.0)


class FadeEffect(TransitionEffect):
    """Dip: the old image fades out completely before the new one fades in."""
    name = EffectName.FADE

    def render(self, from_surface, to_surface, p):
        if p < 0.5:
            from_surface.opacity = 1.0 - 2.0 * p
            to_surface.opacity = 0.0
        else:
            from_surface.opacity = 0.0
            to_surface.opacity = 2.0 * p - 1.0


class CrossfadeEffect(TransitionEffect):
    name = EffectName.CROSSFADE

    def render(self, from_surface, to_surface, p):
        from_surface.opacity = 1.0 - p
        to_surface.opacity = p


class CutEffect(TransitionEffect):
    name = EffectName.CUT

    def __init__(self, duration_ms: int = 0):
        super().__init__(0)

    def render(self, from_surface, to_surface, p):
        pass


class SlideEffect(TransitionEffect):
    """Incoming image slides over the outgoing one."""
    direction = -1  # -1 moves towards the left
    push = False

    def prepare(self, from_surface, to_surface):
        super().prepare(from_surface, to_surface)
        to_surface.opacity = 1.0
        to_surface.offset = (-self.direction * 1.0, 0.0)

    def render(self, from_surface, to_surface, p):
        to_surface.offset = (-self.direction * (1.0 - p), 0.0)
        if self.push:
            from_surface.offset = (self.direction * p, 0.0)
        else:
            from_surface.opacity = 1.0 - 0.5 * p


class SlideLeftEffect(SlideEffect):
    name = EffectName.SLIDE_LEFT


class SlideRightEffect(SlideEffect):
    name = EffectName.SLIDE_RIGHT
    direction = +1


class PushLeftEffect(SlideEffect):
    name = EffectName.PUSH_LEFT
    push = True


class PushRightEffect(SlideEffect):
    name = EffectName.PUSH_RIGHT
    direction = +1
    push = True


class ZoomEffect(TransitionEffect):
    start_scale = 0.6

    def render(self, from_surface, to_surface, p):
        to_surface.scale = self.start_scale + (1.0 - self.start_scale) * p
        to_surface.opacity = p
        from_surface.opacity = 1.0 - p


class ZoomInEffect(ZoomEffect):
    name = EffectName.ZOOM_IN


class ZoomOutEffect(ZoomEffect):
    name = EffectName.ZOOM_OUT
    start_scale = 1.4


class KenBurnsEffect(TransitionEffect):
    name = EffectName.KENBURNS
    easing = QEasingCurve.OutCubic
    strength = 0.15

    def render(self, from_surface, to_surface, p):
        to_surface.scale = 1.0 + self.strength * (1.0 - p)
        to_surface.offset = (0.04 * (1.0 - p), -0.03 * (1.0 - p))
        to_surface.opacity = min(1.0, 2.0 * p)
        from_surface.opacity = 1.0 - p


class RotateEffect(TransitionEffect):
    name = EffectName.ROTATE

    def render(self, from_surface, to_surface, p):
        to_surface.rotation = -90.0 * (1.0 - p)
        to_surface.scale = max(0.01, p)
        to_surface.opacity = p
        from_surface.opacity = 1.0 - p


class ClipRevealEffect(TransitionEffect):
    """Incoming image is revealed through a growing clip rectangle."""
    easing = QEasingCurve.Linear

    def prepare(self, from_surface, to_surface):
        super().prepare(from_surface, to_surface)
        to_surface.opacity = 1.0
        to_surface.clip = self.clip_for(0.0)

    def render(self, from_surface, to_surface, p):
        to_surface.clip = self.clip_for(p)

    def clip_for(self, p: float):
        raise NotImplementedError


class WipeLeftEffect(ClipRevealEffect):
    name = EffectName.WIPE_LEFT

    def clip_for(self, p):
        return (1.0 - p, 0.0, p, 1.0)


class WipeRightEffect(ClipRevealEffect):
    name = EffectName.WIPE_RIGHT

    def clip_for(self, p):
        return (0.0, 0.0, p, 1.0)


class SplitHorizontalEffect(ClipRevealEffect):
    name = EffectName.SPLIT_HORIZONTAL

    def clip_for(self, p):
        return (0.0, 0.5 - p / 2.0, 1.0, p)


class SplitVerticalEffect(ClipRevealEffect):
    name = EffectName.SPLIT_VERTICAL

    def clip_for(self, p):
        return (0.5 - p / 2.0, 0.0, p, 1.0)


class BlurFadeEffect(TransitionEffect):
    name = EffectName.BLUR_FADE

    def render(self, from_surface, to_surface, p):
        from_surface.opacity = 1.0 - p
        from_surface.blur = p
        to_surface.opacity = p
        to_surface.blur = 1.0 - p


class FlipEffect(TransitionEffect):
    """Card flip: the old image folds flat, then the new one unfolds."""
    axis = 0  # 0 flips around the vertical axis, 1 around the horizontal one

    def _squash(self, amount: float):
        return (amount, 1.0) if self.axis == 0 else (1.0, amount)

    def render(self, from_surface, to_surface, p):
        if p < 0.5:
            from_surface.stretch = self._squash(max(0.0, 1.0 - 2.0 * p))
            to_surface.opacity = 0.0
        else:
            from_surface.opacity = 0.0
            to_surface.opacity = 1.0
            to_surface.stretch = self._squash(2.0 * p - 1.0)


class FlipHorizontalEffect(FlipEffect):
    name = EffectName.FLIP_HORIZONTAL


class FlipVerticalEffect(FlipEffect):
    name = EffectName.FLIP_VERTICAL
    axis = 1


class CubeRotateEffect(TransitionEffect):
    """Flat cube turn: the old face narrows to the left as the new face widens from the right."""
    name = EffectName.CUBE_ROTATE

    def prepare(self, from_surface, to_surface):
        super().prepare(from_surface, to_surface)
        to_surface.opacity = 1.0
        to_surface.stretch = (0.0, 1.0)
        to_surface.offset = (0.5, 0.0)

    def render(self, from_surface, to_surface, p):
        from_surface.stretch = (1.0 - p, 1.0)
        from_surface.offset = (-p / 2.0, 0.0)
        from_surface.opacity = 1.0 - 0.4 * p
        to_surface.stretch = (p, 1.0)
        to_surface.offset = ((1.0 - p) / 2.0, 0.0)


class BookOpenEffect(TransitionEffect):
    """New page opens out from the left spine."""
    name = EffectName.BOOK_OPEN
    easing = QEasingCurve.OutCubic

    def prepare(self, from_surface, to_surface):
        super().prepare(from_surface, to_surface)
        to_surface.opacity = 1.0
        to_surface.stretch = (0.0, 1.0)
        to_surface.offset = (-0.5, 0.0)

    def render(self, from_surface, to_surface, p):
        to_surface.stretch = (p, 1.0)
        to_surface.offset = (-(1.0 - p) / 2.0, 0.0)
        from_surface.opacity = 1.0 - 0.5 * p


class WaterRippleEffect(TransitionEffect):
    """Damped wobble of the incoming image while it fades in."""
    name = EffectName.WATER_RIPPLE
    easing = QEasingCurve.Linear
    waves = 3
    amplitude = 0.06

    def render(self, from_surface, to_surface, p):
        wobble = self.amplitude * (1.0 - p) * math.sin(2.0 * math.pi * self.waves * p)
        to_surface.stretch = (1.0 + wobble, 1.0 - wobble)
        to_surface.opacity = p
        from_surface.opacity = 1.0 - p


class TiledRevealEffect(TransitionEffect):
    """Incoming image is drawn as moving or growing tiles."""
    easing = QEasingCurve.Linear

    def prepare(self, from_surface, to_surface):
        super().prepare(from_surface, to_surface)
        to_surface.opacity = 1.0
        to_surface.tiles = self.tiles_for(0.0)

    def render(self, from_surface, to_surface, p):
        to_surface.tiles = self.tiles_for(p)

    def tiles_for(self, p: float) -> List[Tile]:
        raise NotImplementedError


class CurtainOpenEffect(TiledRevealEffect):
    """Two halves slide in from the sides and meet in the middle."""
    name = EffectName.CURTAIN_OPEN
    easing = QEasingCurve.OutCubic

    def tiles_for(self, p):
        gap = (1.0 - p) * 0.5
        return [((0.0, 0.0, 0.5, 1.0), (-gap, 0.0)),
                ((0.5, 0.0, 0.5, 1.0), (gap, 0.0))]


class CheckerboardEffect(TiledRevealEffect):
    """Cells grow from their centres; the two colours of the board are staggered."""
    name = EffectName.CHECKERBOARD
    cols = 6
    rows = 4
    lag = 0.4

    def tiles_for(self, p):
        cw, ch = 1.0 / self.cols, 1.0 / self.rows
        tiles = []
        for r in range(self.rows):
            for c in range(self.cols):
                start = self.lag if (r + c) % 2 else 0.0
                q = max(0.0, min(1.0, (p - start) / (1.0 - self.lag)))
                x, y = (c + 0.5 * (1.0 - q)) * cw, (r + 0.5 * (1.0 - q)) * ch
                tiles.append(((x, y, q * cw, q * ch), (0.0, 0.0)))
        return tiles


class StripesEffect(TiledRevealEffect):
    """Vertical stripes slide in, alternately from the top and from the bottom."""
    name = EffectName.STRIPES
    easing = QEasingCurve.InOutQuad
    count = 8

    def tiles_for(self, p):
        width = 1.0 / self.count
        return [((i * width, 0.0, width, 1.0), (0.0, (1.0 - p) * (-1.0 if i % 2 == 0 else 1.0)))
                for i in range(self.count)]


BUILTIN_EFFECTS = (
    FadeEffect,
    CrossfadeEffect,
    CutEffect,
    SlideLeftEffect,
    SlideRightEffect,
    PushLeftEffect,
    PushRightEffect,
    ZoomInEffect,
    ZoomOutEffect,
    KenBurnsEffect,
    RotateEffect,
    WipeLeftEffect,
    WipeRightEffect,
    SplitHorizontalEffect,
    SplitVerticalEffect,
    BlurFadeEffect,
    FlipHorizontalEffect,
    FlipVerticalEffect,
    CubeRotateEffect,
    CurtainOpenEffect,
    CheckerboardEffect,
    StripesEffect,
    BookOpenEffect,
    WaterRippleEffect,
)


class EffectRegistry:
    def __init__(self, default: Optional[TransitionEffect] = None,
                 rng: Optional[random.Random] = None):
        self._effects: Dict[str, TransitionEffect] = {}
        self._default = default or FadeEffect()
        self._rng = rng or random.Random()
        self.register(self._default.name, self._default)

    @property
    def default_name(self) -> str:
        return self._default.name

    def names(self) -> List[str]:
        return list(self._effects)

    def register(self, name: str, effect: TransitionEffect):
        self._effects[name] = effect

    def _lookup(self, name: str) -> TransitionEffect:
        try:
            return self._effects[name]
        except KeyError:
            raise UnknownEffectName(name) from None

    def resolve(self, name: str) -> TransitionEffect:
        try:
            return self._lookup(name)
        except UnknownEffectName as e:
            logger.debug(f"[effects] unknown effect {e}, using {self.default_name}")
            return self._default

    def pick_name(self, available: Sequence[str], randomize: bool) -> str:
        if not available:
            return self.default_name
        if randomize:
            return self._rng.choice(list(available))
        return available[0]


def build_default_registry(duration_ms: int = 1000,
                           rng: Optional[random.Random] = None) -> EffectRegistry:
    registry = EffectRegistry(default=FadeEffect(duration_ms), rng=rng)
    for cls in BUILTIN_EFFECTS:
        if cls.name != registry.default_name:
            registry.register(cls.name, cls(duration_ms))
    return registry
