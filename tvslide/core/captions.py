from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

from tvslide.models.media import CaptionRecord, ImageEntry

logger = logging.getLogger(__name__)


class CaptionView(Protocol):
    def show_caption(self, title: str, description: str, meta: str) -> None: ...

    def clear_caption(self) -> None: ...

    def fade_in_caption(self) -> None: ...

    def set_caption_visible(self, visible: bool) -> None: ...


def _record_from(raw: Any) -> Optional[CaptionRecord]:
    if not isinstance(raw, dict):
        return None
    return CaptionRecord(
        title=str(raw.get("title") or ""),
        description=str(raw.get("description") or ""),
        author=str(raw["author"]) if raw.get("author") else None,
        date=str(raw["date"]) if raw.get("date") else None,
    )


def parse_captions(data: Mapping[str, Any]) -> Dict[str, CaptionRecord]:
    out: Dict[str, CaptionRecord] = {}
    for key, raw in data.items():
        rec = _record_from(raw)
        if rec is None:
            logger.warning(f"[captions] ignoring malformed entry for {key!r}")
            continue
        out[str(key)] = rec
    return out


def load_captions(path: Optional[str]) -> Dict[str, CaptionRecord]:
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        logger.info(f"[captions] no caption file at {p}")
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error(f"[captions] could not read {p}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.error(f"[captions] {p} must contain a JSON object")
        return {}
    return parse_captions(data)


class CaptionBinder:
    def __init__(self, captions: Mapping[str, CaptionRecord], view: CaptionView, visible: bool = True):
        self._captions = dict(captions)
        self._view = view
        self._visible = visible
        self.last_applied: Optional[CaptionRecord] = None
        self._view.set_caption_visible(visible)

    @property
    def visible(self) -> bool:
        return self._visible

    def lookup(self, entry: ImageEntry) -> Optional[CaptionRecord]:
        rec = self._captions.get(entry.filename)
        if rec is None:
            rec = self._captions.get(str(entry.index))
        return rec

    def update(self, entry: ImageEntry):
        rec = self.lookup(entry)
        self.last_applied = rec
        if rec is None:
            self._view.clear_caption()
            return
        self._view.show_caption(rec.title, rec.description, rec.meta)
        self._view.fade_in_caption()

    def toggle_visible(self) -> bool:
        self._visible = not self._visible
        self._view.set_caption_visible(self._visible)
        return self._visible
