from __future__ import annotations

import logging
import random
import re
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from tvslide.core.errors import EmptyCatalogError
from tvslide.models.media import ImageEntry, filename_of

logger = logging.getLogger(__name__)

IMG_EXT = {".jpg", ".jpeg", ".png", ".bmp", ".webp", ".gif"}
AUDIO_EXT = {".mp3", ".ogg", ".oga", ".wav", ".m4a", ".aac", ".flac", ".opus"}


def list_images(folder: Path) -> List[Path]:
    if not folder.exists():
        return []
    files = [p for p in folder.iterdir() if p.is_file() and p.suffix.lower() in IMG_EXT]
    files.sort(key=lambda p: p.name.lower())
    return files


def _natural_key(p: Path):
    # 2.mp3 before 10.mp3
    return [int(part) if part.isdigit() else part for part in re.split(r"(\d+)", p.name.lower())]


def list_audio(folder: Path) -> List[Path]:
    if not folder.exists():
        return []
    files = [p for p in folder.iterdir() if p.is_file() and p.suffix.lower() in AUDIO_EXT]
    files.sort(key=_natural_key)
    return files


class ImageCatalog:
    """Ordered deck of images. Entries never change after build, only their order."""

    def __init__(self, entries: Sequence[ImageEntry], shuffle_enabled: bool = False,
                 rng: Optional[random.Random] = None):
        if not entries:
            raise EmptyCatalogError("no images configured")
        self._entries: List[ImageEntry] = list(entries)
        self.shuffle_enabled = shuffle_enabled
        self._rng = rng or random.Random()
        self.shuffle_count = 0

    @classmethod
    def build(cls, sources: Sequence[str], shuffle_enabled: bool = False,
              rng: Optional[random.Random] = None) -> "ImageCatalog":
        entries = [ImageEntry(index=i, filename=filename_of(src), source=str(src))
                   for i, src in enumerate(sources)]
        catalog = cls(entries, shuffle_enabled=shuffle_enabled, rng=rng)
        if shuffle_enabled:
            catalog.shuffle()
        logger.info(f"[catalog] built with {len(catalog)} images (shuffle={shuffle_enabled})")
        return catalog

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, position: int) -> ImageEntry:
        return self._entries[position]

    def __iter__(self) -> Iterator[ImageEntry]:
        return iter(self._entries)

    def entries(self) -> List[ImageEntry]:
        return self._entries[:]

    def shuffle(self):
        # Fisher-Yates, in place
        for i in range(len(self._entries) - 1, 0, -1):
            j = self._rng.randint(0, i)
            self._entries[i], self._entries[j] = self._entries[j], self._entries[i]
        self.shuffle_count += 1
        logger.debug(f"[catalog] reshuffled (#{self.shuffle_count})")

    def advance_index(self, current: int, delta: int) -> int:
        return (current + delta) % len(self._entries)

    def wraps(self, current: int, delta: int) -> bool:
        """True when moving forward by ``delta`` runs past the last entry."""
        return delta > 0 and current + delta >= len(self._entries)

    def position_of(self, entry: ImageEntry) -> int:
        return self._entries.index(entry)
