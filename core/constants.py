"""
Musical and animation constants.

Tempo and frame-rate limits, interpolated shape properties, input coercion.
"""

# Standard BPM ranges
BPM_MIN = 20
BPM_MAX = 300
BPM_DEFAULT = 120

# Frame rate input limits
FPS_MIN = 1
FPS_MAX = 120
FPS_DEFAULT = 30

# Duration / meter input limits
DURATION_BARS_DEFAULT = 4
DURATION_BARS_MAX = 512
BEATS_PER_BAR_MAX = 16

# Subdivisions per beat shown on the timeline (sixteenths under a quarter-note beat)
SUBDIVISIONS_PER_BEAT = 4

# Shape properties blended between keyframes. Anything else snaps to the
# earlier keyframe.
INTERPOLATED_PROPERTIES = (
    "left",
    "top",
    "width",
    "height",
    "radius",
    "angle",
    "scaleX",
    "scaleY",
    "opacity",
)

# Shape kinds the drawing surface can create
SHAPE_TYPES = ("rect", "circle", "line")

DEFAULT_FILL = "#ff0000"
DEFAULT_STROKE = "#000000"
DEFAULT_STROKE_WIDTH = 2
DEFAULT_BACKGROUND = "#ffffff"

# Audio containers accepted by the import dialog
AUDIO_EXTENSIONS = (".mp3", ".wav", ".ogg", ".m4a")

# Project file extension
PROJECT_EXTENSION = ".beatframe"


def clamp_fps(value) -> int:
    """
    Coerce user input to a usable frame rate.

    Example:
        >>> clamp_fps("0")
        1
        >>> clamp_fps(30.7)
        30
    """
    try:
        fps = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return FPS_DEFAULT
    return max(FPS_MIN, min(FPS_MAX, fps))


def clamp_bpm(value) -> float:
    """
    Coerce user input to a tempo within BPM_MIN..BPM_MAX.

    Example:
        >>> clamp_bpm("abc")
        120.0
        >>> clamp_bpm(500)
        300.0
    """
    try:
        bpm = float(value)
    except (TypeError, ValueError):
        return float(BPM_DEFAULT)
    if bpm != bpm:  # NaN
        return float(BPM_DEFAULT)
    return float(max(BPM_MIN, min(BPM_MAX, bpm)))


def clamp_positive_int(value, default: int, maximum: int) -> int:
    """Coerce user input to an int in 1..maximum, falling back to default."""
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return max(1, min(maximum, number))
