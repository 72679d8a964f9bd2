from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ImageEntry:
    index: int
    filename: str
    source: str


@dataclass(frozen=True)
class CaptionRecord:
    title: str = ""
    description: str = ""
    author: Optional[str] = None
    date: Optional[str] = None

    @property
    def meta(self) -> str:
        return " • ".join(p for p in (self.author, self.date) if p)


def filename_of(locator: str) -> str:
    # works for both local paths and URLs
    return str(locator).replace("\\", "/").rstrip("/").split("/")[-1]
