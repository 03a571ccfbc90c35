"""
Musical clock: conversions between frame indices and musical time.

All conversions use a single global tempo. Tempo changes stored on
ClockSettings are timeline annotations only and do not bend the
frame <-> time mapping.

Example (30 fps, 120 BPM, 4/4, 4 bars):
    totalBeats = 16, secondsPerBeat = 0.5, totalSeconds = 8 -> 240 frames
"""
import math
from dataclasses import dataclass, field, replace
from typing import Dict, Any, Tuple

from core.constants import SUBDIVISIONS_PER_BEAT


@dataclass(frozen=True)
class MusicalTime:
    """
    Position on the timeline in musical units.

    Attributes:
        bar: Bar number (1-indexed)
        beat: Beat within the bar (1-indexed)
        subdivision: Sixteenth within the beat (1-4)
        seconds: Wall-clock seconds from the start
    """
    bar: int
    beat: int
    subdivision: int
    seconds: float


def seconds_per_beat(bpm: float) -> float:
    """Length of one beat in seconds."""
    return 60.0 / bpm


def max_frames(fps: float, bpm: float, duration_bars: int, beats_per_bar: int) -> int:
    """
    Total playable frames for a piece of the given length.

    Args:
        fps: Frames per second
        bpm: Tempo in beats per minute
        duration_bars: Length in bars
        beats_per_bar: Time signature numerator

    Returns:
        floor(totalSeconds * fps)
    """
    total_beats = duration_bars * beats_per_bar
    total_seconds = total_beats * seconds_per_beat(bpm)
    return math.floor(total_seconds * fps)


def frame_to_musical_time(frame: int, fps: float, bpm: float, beats_per_bar: int) -> MusicalTime:
    """
    Convert a frame index to bar/beat/subdivision.

    Example:
        >>> frame_to_musical_time(45, 30, 120, 4)
        MusicalTime(bar=1, beat=4, subdivision=1, seconds=1.5)
    """
    seconds = frame / fps
    total_beats = seconds / seconds_per_beat(bpm)
    bar = math.floor(total_beats / beats_per_bar) + 1
    beat = math.floor(total_beats % beats_per_bar) + 1
    subdivision = math.floor((total_beats % 1) * SUBDIVISIONS_PER_BEAT) + 1
    return MusicalTime(bar=bar, beat=beat, subdivision=subdivision, seconds=seconds)


def musical_time_to_frame(bar: int, beat: int, subdivision: int,
                          fps: float, bpm: float, beats_per_bar: int) -> int:
    """
    Convert bar/beat/subdivision to a frame index (floored).

    Left-inverse of frame_to_musical_time up to flooring: the result never
    exceeds the input frame and lands on the start of its sixteenth.
    """
    total_beats = ((bar - 1) * beats_per_bar
                   + (beat - 1)
                   + (subdivision - 1) / SUBDIVISIONS_PER_BEAT)
    seconds = total_beats * seconds_per_beat(bpm)
    return math.floor(seconds * fps)


def format_musical_time(musical_time: MusicalTime) -> str:
    """Format for the transport display, e.g. '1.4.1 (1.50s)'."""
    return (f"{musical_time.bar}.{musical_time.beat}.{musical_time.subdivision} "
            f"({musical_time.seconds:.2f}s)")


@dataclass(frozen=True)
class ClockSettings:
    """
    Musical clock parameters for a project.

    Attributes:
        fps: Frames per second
        bpm: Global tempo in beats per minute
        time_signature: (numerator, denominator); only the numerator
            affects frame math
        duration_bars: Project length in bars
        tempo_changes: Bar number -> tempo annotation (display only)
    """
    fps: float = 30
    bpm: float = 120.0
    time_signature: Tuple[int, int] = (4, 4)
    duration_bars: int = 4
    tempo_changes: Dict[int, float] = field(default_factory=dict)

    def __post_init__(self):
        """Validate clock parameters."""
        if self.fps <= 0:
            raise ValueError(f"FPS must be positive, got {self.fps}")
        if self.bpm <= 0:
            raise ValueError(f"BPM must be positive, got {self.bpm}")
        if self.time_signature[0] <= 0 or self.time_signature[1] <= 0:
            raise ValueError(f"Invalid time signature: {self.time_signature}")
        if self.duration_bars <= 0:
            raise ValueError(f"Duration must be at least one bar, got {self.duration_bars}")

    @property
    def beats_per_bar(self) -> int:
        return self.time_signature[0]

    @property
    def max_frames(self) -> int:
        return max_frames(self.fps, self.bpm, self.duration_bars, self.beats_per_bar)

    def to_musical_time(self, frame: int) -> MusicalTime:
        return frame_to_musical_time(frame, self.fps, self.bpm, self.beats_per_bar)

    def to_frame(self, bar: int, beat: int, subdivision: int = 1) -> int:
        return musical_time_to_frame(bar, beat, subdivision,
                                     self.fps, self.bpm, self.beats_per_bar)

    def clamp_frame(self, frame: int) -> int:
        """Clamp a frame index to [0, max_frames]."""
        return max(0, min(self.max_frames, int(frame)))

    def with_tempo_change(self, bar: int, bpm: float) -> "ClockSettings":
        """Return a copy with a tempo annotation at the given bar."""
        if bar < 1:
            raise ValueError(f"Bar must be 1 or greater, got {bar}")
        if bpm <= 0:
            raise ValueError(f"BPM must be positive, got {bpm}")
        changes = dict(self.tempo_changes)
        changes[bar] = bpm
        return replace(self, tempo_changes=changes)

    def without_tempo_change(self, bar: int) -> "ClockSettings":
        """Return a copy with the tempo annotation at bar removed."""
        changes = dict(self.tempo_changes)
        changes.pop(bar, None)
        return replace(self, tempo_changes=changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "fps": self.fps,
            "bpm": self.bpm,
            "time_signature": list(self.time_signature),
            "duration_bars": self.duration_bars,
            # msgpack/json keys must be strings
            "tempo_changes": {str(bar): bpm for bar, bpm in self.tempo_changes.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClockSettings":
        """Create ClockSettings from dictionary."""
        return cls(
            fps=data.get("fps", 30),
            bpm=float(data.get("bpm", 120.0)),
            time_signature=tuple(data.get("time_signature", (4, 4))),
            duration_bars=data.get("duration_bars", 4),
            tempo_changes={int(k): float(v) for k, v in data.get("tempo_changes", {}).items()},
        )
