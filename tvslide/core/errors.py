"""
Exceptions raised by the slideshow and playlist engines.

Startup errors (empty catalog or playlist) propagate to the caller.
Per-item errors are caught where they happen, logged, and skipped.
"""


class SlideshowError(Exception):
    """Base exception for all tvslide errors."""
    pass


class ConfigurationError(SlideshowError):
    """Raised when a configuration document cannot be read."""
    pass


class EmptyCatalogError(SlideshowError):
    """Raised when there are no images to show."""
    pass


class EmptyPlaylistError(SlideshowError):
    """Raised when none of the music sources can be played."""
    pass


class ResourceUnavailable(SlideshowError):
    """Raised when a single image or track cannot be loaded."""

    def __init__(self, locator: str, reason: str = ""):
        self.locator = locator
        self.reason = reason
        msg = f"resource unavailable: {locator}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class PlaybackRejected(SlideshowError):
    """Raised by a playback backend that refuses to start playing."""
    pass


class UnknownEffectName(SlideshowError):
    """An effect name that is not registered. Never raised to callers of the registry."""
    pass
