"""
Application state for Beatframe.

One AppState instance is owned by the animator view and handed to every
operation that reads or mutates the project, keyframes or playhead.
"""
from dataclasses import replace
from typing import Optional, List

from core.clock import ClockSettings
from core.constants import DEFAULT_FILL, DEFAULT_STROKE
from core.keyframes import KeyframeStore
from core.models import Project


class AppState:
    """
    Application state.

    Manages:
    - Current project (clock settings, audio, canvas size)
    - Live keyframe store
    - Drawing tool and colours
    - Playhead position and playing flag
    """

    def __init__(self):
        """Initialize empty state."""
        self._current_project: Optional[Project] = None
        self.keyframes = KeyframeStore()
        self.tool: str = "select"
        self.fill_color: str = DEFAULT_FILL
        self.stroke_color: str = DEFAULT_STROKE
        self._current_frame: int = 0
        self._is_playing: bool = False
        self._is_dirty: bool = False

    def get_current_project(self) -> Optional[Project]:
        """Get currently loaded project (live keyframes are in self.keyframes)."""
        return self._current_project

    def set_current_project(self, project: Project):
        """Set current project without touching the keyframe store."""
        self._current_project = project

    def load_project(self, project: Project):
        """Replace the project and reset the keyframe store from it."""
        self._current_project = project
        self.keyframes.clear()
        for frame, snapshot in project.keyframes.items():
            self.keyframes.set(frame, snapshot)
        self._current_frame = 0
        self._is_playing = False

    def snapshot_project(self) -> Optional[Project]:
        """Current project with the live keyframe store folded in (for saving)."""
        if self._current_project is None:
            return None
        return replace(self._current_project, keyframes=dict(self.keyframes.items()))

    def get_clock(self) -> ClockSettings:
        if self._current_project is None:
            return ClockSettings()
        return self._current_project.clock

    def set_clock(self, clock: ClockSettings):
        """Replace clock settings. Keyframes past the new end are kept."""
        if self._current_project is None:
            raise ValueError("No project loaded")
        self._current_project = replace(self._current_project, clock=clock)

    def get_current_frame(self) -> int:
        return self._current_frame

    def set_current_frame(self, frame: int):
        self._current_frame = max(0, int(frame))

    def is_playing(self) -> bool:
        return self._is_playing

    def set_playing(self, playing: bool):
        self._is_playing = playing

    def is_dirty(self) -> bool:
        """Check if project has unsaved changes."""
        return self._is_dirty

    def mark_dirty(self):
        """Mark project as having unsaved changes."""
        self._is_dirty = True

    def mark_clean(self):
        """Mark project as saved."""
        self._is_dirty = False

    def keyframe_frames(self) -> List[int]:
        return self.keyframes.all_frames()
