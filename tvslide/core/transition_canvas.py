import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import requests
from PySide6.QtCore import Qt, QRectF, QTimer
from PySide6.QtGui import QPainter, QPixmap
from PySide6.QtWidgets import QWidget

from tvslide.core.errors import ResourceUnavailable

logger = logging.getLogger(__name__)

REMOTE_TIMEOUT_S = 5


Rect = Tuple[float, float, float, float]
Tile = Tuple[Rect, Tuple[float, float]]


class Surface:
    """One on-screen image slot and its paint state.

    Offsets, clip rectangles and tiles are fractions of the canvas size, so
    effects never need to know the widget geometry. ``stretch`` scales each
    axis on top of ``scale``. ``tiles`` draws the image once per
    ``(rect, offset)`` pair: the rect clips that copy and moves with it.
    ``blur`` runs from 0 (sharp) to 1.
    """

    def __init__(self, locator: str, pixmap: Optional[QPixmap] = None):
        self.locator = locator
        self.pixmap = pixmap
        self.cover: Optional[QPixmap] = None
        self.cover_offset = (0.0, 0.0)
        self.alive = True
        self.reset(opacity=0.0)

    def reset(self, opacity: float = 1.0):
        self.opacity = opacity
        self.offset: Tuple[float, float] = (0.0, 0.0)
        self.scale = 1.0
        self.stretch: Tuple[float, float] = (1.0, 1.0)
        self.rotation = 0.0
        self.blur = 0.0
        self.clip: Optional[Rect] = None
        self.tiles: Optional[List[Tile]] = None

    def __repr__(self):
        return f"<Surface {self.locator} opacity={self.opacity:.2f}>"


def is_remote(locator: str) -> bool:
    return locator.startswith(("http://", "https://"))


def fetch_bytes(locator: str, timeout_s: float = REMOTE_TIMEOUT_S) -> bytes:
    try:
        resp = requests.get(locator, timeout=timeout_s)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise ResourceUnavailable(locator, str(e)) from e
    return resp.content


class RemoteFetcher:
    """Downloads remote images on worker threads before they are needed."""

    MAX_PENDING = 8

    def __init__(self, max_workers: int = 2, timeout_s: float = REMOTE_TIMEOUT_S):
        self.timeout_s = timeout_s
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="tvslide-fetch")
        self._pending: Dict[str, Future] = {}

    def prefetch(self, locator: str):
        if not is_remote(locator) or locator in self._pending:
            return
        while len(self._pending) >= self.MAX_PENDING:
            self._pending.pop(next(iter(self._pending))).cancel()
        self._pending[locator] = self._pool.submit(fetch_bytes, locator, self.timeout_s)
        logger.debug(f"[canvas] prefetching {locator}")

    def take(self, locator: str) -> bytes:
        future = self._pending.pop(locator, None)
        if future is None:
            return fetch_bytes(locator, self.timeout_s)
        return future.result()

    def shutdown(self):
        self._pending.clear()
        self._pool.shutdown(wait=False, cancel_futures=True)


def load_pixmap(locator: str, fetcher: Optional[RemoteFetcher] = None) -> QPixmap:
    pix = QPixmap()
    if is_remote(locator):
        data = fetcher.take(locator) if fetcher is not None else fetch_bytes(locator)
        pix.loadFromData(data)
    elif Path(locator).is_file():
        pix.load(locator)
    else:
        raise ResourceUnavailable(locator, "file not found")

    if pix.isNull():
        raise ResourceUnavailable(locator, "not a readable image")
    return pix


class TransitionCanvas(QWidget):
    """Paints the live surfaces, last created on top. Acts as the surface factory."""

    RENDER_INTERVAL_MS = 33

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setAttribute(Qt.WA_OpaquePaintEvent, True)
        self.setAutoFillBackground(False)

        self._surfaces: List[Surface] = []
        self.fetcher = RemoteFetcher()

        self.render_timer = QTimer(self)
        self.render_timer.setInterval(self.RENDER_INTERVAL_MS)
        self.render_timer.timeout.connect(self.update)

    @property
    def surfaces(self) -> List[Surface]:
        return self._surfaces[:]

    def start_rendering(self):
        self.render_timer.start()

    def stop_rendering(self):
        self.render_timer.stop()

    def create_surface(self, locator: str) -> Surface:
        surface = Surface(locator, load_pixmap(locator, self.fetcher))
        self._refresh_cover(surface)
        self._surfaces.append(surface)
        logger.debug(f"[canvas] surface created for {locator}")
        return surface

    def prefetch(self, locator: str):
        self.fetcher.prefetch(locator)

    def set_visibility(self, surface: Surface, amount: float):
        surface.opacity = max(0.0, min(1.0, float(amount)))
        self.update()

    def destroy_surface(self, surface: Surface):
        if surface in self._surfaces:
            self._surfaces.remove(surface)
        surface.alive = False
        surface.pixmap = None
        surface.cover = None
        self.update()

    def clear(self):
        for surface in list(self._surfaces):
            self.destroy_surface(surface)

    def _make_cover(self, src: QPixmap) -> tuple[QPixmap, tuple[float, float]]:
        w, h = self.width(), self.height()
        cover = src.scaled(w, h, Qt.KeepAspectRatioByExpanding, Qt.SmoothTransformation)
        ox = (w - cover.width()) / 2.0
        oy = (h - cover.height()) / 2.0
        return cover, (ox, oy)

    def _refresh_cover(self, surface: Surface):
        if surface.pixmap is not None and not surface.pixmap.isNull() and self.width() > 0 and self.height() > 0:
            surface.cover, surface.cover_offset = self._make_cover(surface.pixmap)
        else:
            surface.cover = None

    def _draw_surface(self, painter: QPainter, surface: Surface):
        if surface.cover is None or surface.cover.isNull() or surface.opacity <= 0.0:
            return
        w, h = self.width(), self.height()
        painter.save()
        if surface.clip is not None:
            cx, cy, cw, ch = surface.clip
            painter.setClipRect(QRectF(cx * w, cy * h, cw * w, ch * h))
        painter.setOpacity(max(0.0, min(1.0, surface.opacity)))

        image = self._blurred(surface.cover, surface.blur)
        for rect, (tx, ty) in surface.tiles if surface.tiles is not None else [(None, (0.0, 0.0))]:
            painter.save()
            painter.translate(tx * w, ty * h)
            if rect is not None:
                rx, ry, rw, rh = rect
                painter.setClipRect(QRectF(rx * w, ry * h, rw * w, rh * h), Qt.IntersectClip)
            self._paint_cover(painter, surface, image)
            painter.restore()
        painter.restore()

    def _paint_cover(self, painter: QPainter, surface: Surface, image: QPixmap):
        w, h = self.width(), self.height()
        dx, dy = surface.offset
        painter.translate(dx * w, dy * h)
        mx, my = w / 2.0, h / 2.0
        painter.translate(mx, my)
        if surface.rotation:
            painter.rotate(surface.rotation)
        sx, sy = surface.stretch
        painter.scale(surface.scale * sx, surface.scale * sy)
        painter.translate(-mx, -my)

        ox, oy = surface.cover_offset
        cover = surface.cover
        painter.drawPixmap(QRectF(ox, oy, cover.width(), cover.height()), image,
                           QRectF(0, 0, image.width(), image.height()))

    @staticmethod
    def _blurred(cover: QPixmap, amount: float) -> QPixmap:
        # downsample then let drawPixmap stretch it back up
        if amount <= 0.0:
            return cover
        factor = max(0.03, 1.0 - 0.97 * min(1.0, amount))
        return cover.scaled(max(1, int(cover.width() * factor)), max(1, int(cover.height() * factor)),
                            Qt.IgnoreAspectRatio, Qt.SmoothTransformation)

    def paintEvent(self, e):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
        painter.fillRect(self.rect(), Qt.black)
        for surface in self._surfaces:
            self._draw_surface(painter, surface)
        painter.end()

    def resizeEvent(self, e):
        for surface in self._surfaces:
            self._refresh_cover(surface)
        super().resizeEvent(e)
