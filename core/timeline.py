"""
Timeline layout: where tick marks, tempo markers, keyframe markers and the
playhead go, as a pure function of the clock, keyframes and playhead.

The dearpygui widget in ui/widgets/Timeline.py only draws what this returns.
"""
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from core.clock import ClockSettings
from core.constants import SUBDIVISIONS_PER_BEAT

# Tick heights in pixels
BAR_TICK_HEIGHT = 30
BEAT_TICK_HEIGHT = 15
SUBDIVISION_TICK_HEIGHT = 8

# Marker rows
TEMPO_MARKER_Y = 35
TEMPO_MARKER_SIZE = 5
KEYFRAME_MARKER_Y = 65
KEYFRAME_MARKER_RADIUS = 5


@dataclass(frozen=True)
class Tick:
    """
    Vertical tick mark.

    Attributes:
        x: Horizontal position in pixels
        height: Line length from the top edge
        kind: "bar", "beat" or "subdivision"
        label: Bar number for bar ticks, else empty
    """
    x: float
    height: int
    kind: str
    label: str = ""


@dataclass(frozen=True)
class TempoMarker:
    x: float
    bar: int
    bpm: float

    @property
    def label(self) -> str:
        # 140.0 -> "140", 92.5 -> "92.5"
        return f"{self.bpm:g}"


@dataclass(frozen=True)
class KeyframeMarker:
    x: float
    frame: int


@dataclass(frozen=True)
class TimelineLayout:
    """Everything the timeline widget draws for one redraw."""
    width: float
    height: float
    ticks: Tuple[Tick, ...] = field(default_factory=tuple)
    tempo_markers: Tuple[TempoMarker, ...] = field(default_factory=tuple)
    keyframe_markers: Tuple[KeyframeMarker, ...] = field(default_factory=tuple)
    playhead_x: float = 0.0


def frame_to_x(frame: int, max_frames: int, width: float) -> float:
    """Map a frame onto the timeline width. A zero-length timeline maps to 0."""
    if max_frames <= 0:
        return 0.0
    return (frame / max_frames) * width


def x_to_frame(x: float, width: float, max_frames: int) -> int:
    """Map a click position back to a frame (floored, clamped to the timeline)."""
    if width <= 0:
        return 0
    frame = math.floor((x / width) * max_frames)
    return max(0, min(max_frames, frame))


def build_timeline(settings: ClockSettings, keyframe_frames: Iterable[int],
                   current_frame: int, width: float, height: float) -> TimelineLayout:
    """
    Lay out the timeline.

    Args:
        settings: Clock parameters (fps, bpm, meter, duration, tempo changes)
        keyframe_frames: Frames holding keyframes (any order)
        current_frame: Playhead frame
        width: Timeline width in pixels
        height: Timeline height in pixels

    Returns:
        TimelineLayout with ticks in bar/beat order, tempo markers in bar
        order and keyframe markers in ascending frame order
    """
    total = settings.max_frames
    ticks: List[Tick] = []

    for bar in range(1, settings.duration_bars + 1):
        for beat in range(1, settings.beats_per_bar + 1):
            frame = settings.to_frame(bar, beat)
            if frame > total:
                continue

            x = frame_to_x(frame, total, width)
            if beat == 1:
                ticks.append(Tick(x=x, height=BAR_TICK_HEIGHT, kind="bar", label=str(bar)))
            else:
                ticks.append(Tick(x=x, height=BEAT_TICK_HEIGHT, kind="beat"))

            for sub in range(2, SUBDIVISIONS_PER_BEAT + 1):
                sub_frame = settings.to_frame(bar, beat, sub)
                if sub_frame > total:
                    continue
                ticks.append(Tick(x=frame_to_x(sub_frame, total, width),
                                  height=SUBDIVISION_TICK_HEIGHT, kind="subdivision"))

    tempo_markers = []
    for bar in sorted(settings.tempo_changes):
        frame = settings.to_frame(bar, 1)
        if frame > total:
            continue
        tempo_markers.append(TempoMarker(x=frame_to_x(frame, total, width),
                                         bar=bar, bpm=settings.tempo_changes[bar]))

    # Keyframes past the end are kept in the store but land off the right edge
    keyframe_markers = tuple(
        KeyframeMarker(x=frame_to_x(frame, total, width), frame=frame)
        for frame in sorted(keyframe_frames)
    )

    return TimelineLayout(
        width=width,
        height=height,
        ticks=tuple(ticks),
        tempo_markers=tuple(tempo_markers),
        keyframe_markers=keyframe_markers,
        playhead_x=frame_to_x(current_frame, total, width),
    )
