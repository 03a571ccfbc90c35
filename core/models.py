"""
Immutable data models for Beatframe.

All document models are frozen dataclasses to support:
- Easy undo/redo via command pattern
- Keyframes that can never be mutated in place
- Cheap comparison of snapshots in tests
"""
import copy
from dataclasses import dataclass, field
from typing import Tuple, Optional, Dict, Any

from core.clock import ClockSettings
from core.constants import (
    DEFAULT_BACKGROUND,
    DEFAULT_FILL,
    DEFAULT_STROKE,
)

PROJECT_VERSION = "1.0.0"


@dataclass(frozen=True)
class SceneSnapshot:
    """
    Serialized state of every drawable object on the canvas at one instant.

    Objects are plain dicts using the canvas serialization keys
    (type, left, top, width, height, radius, angle, scaleX, scaleY, opacity,
    fill, stroke, strokeWidth, x1/y1/x2/y2 for lines). Objects have no
    identity: keyframes are matched purely by list position.

    Attributes:
        objects: Ordered drawable objects
        document: Remaining top-level document keys (background, version, ...)
    """
    objects: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)
    document: Dict[str, Any] = field(default_factory=dict)

    @property
    def background(self) -> str:
        return self.document.get("background", DEFAULT_BACKGROUND)

    def __len__(self) -> int:
        return len(self.objects)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a canvas document dictionary."""
        result = copy.deepcopy(self.document)
        result["objects"] = [copy.deepcopy(obj) for obj in self.objects]
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SceneSnapshot":
        """Create SceneSnapshot from a canvas document dictionary."""
        document = {k: copy.deepcopy(v) for k, v in data.items() if k != "objects"}
        objects = tuple(dict(obj) for obj in data.get("objects", []))
        return cls(objects=objects, document=document)


def make_rect(left: float, top: float, width: float, height: float,
              fill: str = DEFAULT_FILL, stroke: str = DEFAULT_STROKE,
              stroke_width: float = 2) -> Dict[str, Any]:
    """Build a rectangle object in canvas serialization form."""
    return {
        "type": "rect",
        "left": left,
        "top": top,
        "width": width,
        "height": height,
        "angle": 0,
        "scaleX": 1,
        "scaleY": 1,
        "opacity": 1,
        "fill": fill,
        "stroke": stroke,
        "strokeWidth": stroke_width,
    }


def make_circle(left: float, top: float, radius: float,
                fill: str = DEFAULT_FILL, stroke: str = DEFAULT_STROKE,
                stroke_width: float = 2) -> Dict[str, Any]:
    """Build a circle object in canvas serialization form."""
    return {
        "type": "circle",
        "left": left,
        "top": top,
        "radius": radius,
        "width": radius * 2,
        "height": radius * 2,
        "angle": 0,
        "scaleX": 1,
        "scaleY": 1,
        "opacity": 1,
        "fill": fill,
        "stroke": stroke,
        "strokeWidth": stroke_width,
    }


def make_line(x1: float, y1: float, x2: float, y2: float,
              stroke: str = DEFAULT_STROKE, stroke_width: float = 2) -> Dict[str, Any]:
    """Build a line object in canvas serialization form."""
    return {
        "type": "line",
        "x1": x1,
        "y1": y1,
        "x2": x2,
        "y2": y2,
        "left": min(x1, x2),
        "top": min(y1, y2),
        "angle": 0,
        "scaleX": 1,
        "scaleY": 1,
        "opacity": 1,
        "fill": None,
        "stroke": stroke,
        "strokeWidth": stroke_width,
    }


@dataclass(frozen=True)
class Project:
    """
    Complete animation project.

    Attributes:
        name: Project name
        clock: Musical clock parameters
        keyframes: Frame index -> scene snapshot
        audio_path: Optional soundtrack
        canvas_width: Canvas width in pixels
        canvas_height: Canvas height in pixels
        file_path: Path to saved file (None if unsaved)
    """
    name: str
    clock: ClockSettings = field(default_factory=ClockSettings)
    keyframes: Dict[int, SceneSnapshot] = field(default_factory=dict)
    audio_path: Optional[str] = None
    canvas_width: int = 800
    canvas_height: int = 600
    file_path: Optional[str] = None

    def __post_init__(self):
        """Validate project structure."""
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            raise ValueError(
                f"Canvas size must be positive, got {self.canvas_width}x{self.canvas_height}")
        for frame in self.keyframes:
            if frame < 0:
                raise ValueError(f"Keyframe index must be non-negative, got {frame}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "version": PROJECT_VERSION,
            "name": self.name,
            "clock": self.clock.to_dict(),
            "keyframes": [
                {"frame": frame, "snapshot": self.keyframes[frame].to_dict()}
                for frame in sorted(self.keyframes)
            ],
            "audio_path": self.audio_path,
            "canvas_width": self.canvas_width,
            "canvas_height": self.canvas_height,
            "file_path": self.file_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        """Create Project from dictionary."""
        keyframes = {
            int(entry["frame"]): SceneSnapshot.from_dict(entry["snapshot"])
            for entry in data.get("keyframes", [])
        }
        return cls(
            name=data.get("name", "Untitled"),
            clock=ClockSettings.from_dict(data.get("clock", {})),
            keyframes=keyframes,
            audio_path=data.get("audio_path"),
            canvas_width=data.get("canvas_width", 800),
            canvas_height=data.get("canvas_height", 600),
            file_path=data.get("file_path"),
        )
