from __future__ import annotations

from typing import Optional, Protocol

from tvslide.models.media import ImageEntry


class DebugView(Protocol):
    def show_debug(self, text: str) -> None: ...

    def hide_debug(self) -> None: ...


def format_debug_text(entry: ImageEntry, effect_name: str) -> str:
    return f"Index: {entry.index}\nFile: {entry.filename}\nEffect: {effect_name}"


class DebugReporter:
    def __init__(self, view: DebugView, enabled: bool = False):
        self._view = view
        self.enabled = enabled
        self._last: Optional[tuple[ImageEntry, str]] = None

    def update(self, enabled: bool, entry: Optional[ImageEntry], effect_name: str):
        if entry is not None:
            self._last = (entry, effect_name)
        if not enabled or entry is None:
            self._view.hide_debug()
            return
        self._view.show_debug(format_debug_text(entry, effect_name))

    def report(self, entry: ImageEntry, effect_name: str):
        self.update(self.enabled, entry, effect_name)

    def toggle(self) -> bool:
        self.enabled = not self.enabled
        entry, effect = self._last if self._last else (None, "")
        self.update(self.enabled, entry, effect)
        return self.enabled
