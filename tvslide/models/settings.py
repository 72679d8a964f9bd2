from dataclasses import dataclass, field


class EffectName:
    FADE = "fade"
    CROSSFADE = "crossfade"
    CUT = "cut"
    SLIDE_LEFT = "slide-left"
    SLIDE_RIGHT = "slide-right"
    PUSH_LEFT = "push-left"
    PUSH_RIGHT = "push-right"
    ZOOM_IN = "zoom-in"
    ZOOM_OUT = "zoom-out"
    KENBURNS = "kenburns"
    ROTATE = "rotate"
    WIPE_LEFT = "wipe-left"
    WIPE_RIGHT = "wipe-right"
    SPLIT_HORIZONTAL = "split-horizontal"
    SPLIT_VERTICAL = "split-vertical"
    BLUR_FADE = "blur-fade"
    FLIP_HORIZONTAL = "flip-horizontal"
    FLIP_VERTICAL = "flip-vertical"
    CUBE_ROTATE = "cube-rotate"
    CURTAIN_OPEN = "curtain-open"
    CHECKERBOARD = "checkerboard"
    STRIPES = "stripes"
    BOOK_OPEN = "book-open"
    WATER_RIPPLE = "water-ripple"

    DEFAULT = FADE


class Command:
    NEXT = "next"
    PREVIOUS = "previous"
    TOGGLE_AUTOPLAY = "toggleAutoplay"
    TOGGLE_DEBUG = "toggleDebug"
    TOGGLE_CAPTIONS = "toggleCaptions"
    TOGGLE_MUSIC = "toggleMusic"

    ALL = (NEXT, PREVIOUS, TOGGLE_AUTOPLAY, TOGGLE_DEBUG, TOGGLE_CAPTIONS, TOGGLE_MUSIC)


@dataclass
class ImageSettings:
    sources: list[str] = field(default_factory=list)
    folder: str = ""
    shuffle: bool = False


@dataclass
class MusicSettings:
    sources: list[str] = field(default_factory=list)
    folder: str = ""
    shuffle: bool = False
    volume: float = 0.7
    reshuffle_on_wrap: bool = False


@dataclass
class RemoteSettings:
    enabled: bool = False
    port: int = 8080


@dataclass
class WindowSettings:
    fullscreen: bool = True
    hide_cursor: bool = True
    display_index: int = 0


@dataclass
class AppSettings:
    images: ImageSettings = field(default_factory=ImageSettings)
    music: MusicSettings = field(default_factory=MusicSettings)

    transitions: list[str] = field(default_factory=lambda: [EffectName.FADE])
    random_transitions: bool = True
    transition_ms: int = 1000

    autoplay: bool = False
    delay_ms: int = 4000

    keyboard_enabled: bool = True
    debug_enabled: bool = False
    captions_enabled: bool = True

    remote: RemoteSettings = field(default_factory=RemoteSettings)
    window: WindowSettings = field(default_factory=WindowSettings)

    log_level: str = "INFO"
