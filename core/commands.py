"""
Undoable edits to the animation.

Every keyframe or timing edit made from the UI is wrapped in a Command so
the Edit actions can step backwards and forwards through it. Commands
mutate the shared AppState in place and flag it dirty.
"""
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Optional

from core.clock import ClockSettings
from core.models import SceneSnapshot
from core.state import AppState


class Command(ABC):
    """One reversible edit."""

    @abstractmethod
    def execute(self, state: AppState) -> AppState:
        """Apply the edit to state (also used for redo)."""
        raise NotImplementedError()

    @abstractmethod
    def undo(self, state: AppState) -> AppState:
        """Revert a previously applied edit."""
        raise NotImplementedError()

    @property
    @abstractmethod
    def description(self) -> str:
        """Label shown next to Undo/Redo."""
        raise NotImplementedError()


class AddKeyframeCommand(Command):
    """Command to capture a keyframe (overwrites any keyframe at the same frame)."""

    def __init__(self, frame: int, snapshot: SceneSnapshot):
        """
        Args:
            frame: Frame index for the keyframe
            snapshot: Scene captured from the canvas
        """
        self.frame = frame
        self.snapshot = snapshot
        self._replaced: Optional[SceneSnapshot] = None
        self._executed = False

    def execute(self, state: AppState) -> AppState:
        """Insert keyframe, remembering any keyframe it replaces."""
        self._replaced = state.keyframes.get(self.frame)
        state.keyframes.set(self.frame, self.snapshot)
        self._executed = True
        state.mark_dirty()
        print(f"[KEYFRAME] Keyframe added at frame {self.frame}")
        return state

    def undo(self, state: AppState) -> AppState:
        """Remove the keyframe, restoring any keyframe it overwrote."""
        if not self._executed:
            raise ValueError("Command has not been executed yet")

        if self._replaced is not None:
            state.keyframes.set(self.frame, self._replaced)
        else:
            state.keyframes.remove(self.frame)
        state.mark_dirty()
        return state

    @property
    def description(self) -> str:
        return "Add Keyframe"


class RemoveKeyframeCommand(Command):
    """Command to delete the keyframe at a frame."""

    def __init__(self, frame: int):
        self.frame = frame
        self._removed: Optional[SceneSnapshot] = None

    def execute(self, state: AppState) -> AppState:
        """Delete keyframe."""
        removed = state.keyframes.remove(self.frame)
        if removed is None:
            raise ValueError(f"No keyframe at frame {self.frame}")
        self._removed = removed
        state.mark_dirty()
        print(f"[KEYFRAME] Keyframe removed at frame {self.frame}")
        return state

    def undo(self, state: AppState) -> AppState:
        """Restore deleted keyframe."""
        if self._removed is None:
            raise ValueError("Command has not been executed yet")

        state.keyframes.set(self.frame, self._removed)
        state.mark_dirty()
        return state

    @property
    def description(self) -> str:
        return "Remove Keyframe"


class ChangeClockSettingsCommand(Command):
    """
    Command to replace the clock settings (fps, bpm, meter, duration, tempo changes).

    Keyframes beyond the new end of the timeline are kept.
    """

    def __init__(self, new_clock: ClockSettings, label: str = "Change Timing"):
        self.new_clock = new_clock
        self.label = label
        self._previous_clock: Optional[ClockSettings] = None

    def execute(self, state: AppState) -> AppState:
        """Apply new clock settings."""
        self._previous_clock = state.get_clock()
        state.set_clock(self.new_clock)
        state.mark_dirty()
        return state

    def undo(self, state: AppState) -> AppState:
        """Restore previous clock settings."""
        if self._previous_clock is None:
            raise ValueError("Command has not been executed yet")

        state.set_clock(self._previous_clock)
        state.mark_dirty()
        return state

    @property
    def description(self) -> str:
        return self.label


class AddTempoChangeCommand(ChangeClockSettingsCommand):
    """Command to annotate a bar with a tempo change."""

    def __init__(self, bar: int, bpm: float):
        self.bar = bar
        self.bpm = bpm
        super().__init__(new_clock=None, label="Add Tempo Change")

    def execute(self, state: AppState) -> AppState:
        """Add tempo annotation at bar."""
        self.new_clock = state.get_clock().with_tempo_change(self.bar, self.bpm)
        super().execute(state)
        print(f"[TEMPO] BPM change to {self.bpm:g} added at bar {self.bar}")
        return state


class RemoveTempoChangeCommand(ChangeClockSettingsCommand):
    """Command to drop the tempo annotation at a bar."""

    def __init__(self, bar: int):
        self.bar = bar
        super().__init__(new_clock=None, label="Remove Tempo Change")

    def execute(self, state: AppState) -> AppState:
        clock = state.get_clock()
        if self.bar not in clock.tempo_changes:
            raise ValueError(f"No tempo change at bar {self.bar}")
        self.new_clock = clock.without_tempo_change(self.bar)
        super().execute(state)
        print(f"[TEMPO] BPM change removed from bar {self.bar}")
        return state


class CommandHistory:
    """
    Bounded undo/redo stacks.

    The oldest command is dropped once max_history is exceeded; executing a
    new command discards everything that could have been redone.
    """

    def __init__(self, app_state: AppState, max_history: int = 100):
        self.app_state = app_state
        self.max_history = max_history
        self._done: Deque[Command] = deque(maxlen=max_history)
        self._undone: Deque[Command] = deque()

    def execute(self, command: Command):
        """Run a new command and record it. Nothing is recorded if it raises."""
        command.execute(self.app_state)
        self._done.append(command)
        self._undone.clear()

    def undo(self) -> bool:
        """Revert the most recent command. Returns False if there is none."""
        if not self._done:
            return False
        command = self._done.pop()
        command.undo(self.app_state)
        self._undone.append(command)
        return True

    def redo(self) -> bool:
        """Re-apply the most recently undone command. Returns False if there is none."""
        if not self._undone:
            return False
        command = self._undone.pop()
        command.execute(self.app_state)
        self._done.append(command)
        return True

    def can_undo(self) -> bool:
        return bool(self._done)

    def can_redo(self) -> bool:
        return bool(self._undone)

    def clear(self):
        """Forget all history (new project / project load)."""
        self._done.clear()
        self._undone.clear()

    def get_undo_description(self) -> Optional[str]:
        return self._done[-1].description if self._done else None

    def get_redo_description(self) -> Optional[str]:
        return self._undone[-1].description if self._undone else None
