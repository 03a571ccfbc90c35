"""
Playback scheduler: the play/pause/stop/seek state machine for the playhead.

Frame-based master clock. The playhead advances either
- one frame per timer tick at 1000/fps ms (no soundtrack), or
- to floor(audio_seconds * fps) on every poll while a soundtrack plays.

Everything runs on the UI thread: AnimatorView.update() calls
PlaybackScheduler.update() once per rendered UI frame, which polls the
timer or the audio position. Pause and stop cancel the timer outright.
"""
import math
import time
from enum import Enum
from typing import Callable, Optional

from core.clock import MusicalTime
from core.interpolation import render_frame
from core.models import SceneSnapshot
from core.state import AppState
from core.timeline import x_to_frame


class PlaybackState(Enum):
    STOPPED = "stopped"
    PAUSED = "paused"
    PLAYING = "playing"


class RepeatingTimer:
    """
    Fixed-period timer polled from the UI loop.

    Fires at most one callback per poll. If the loop falls more than one
    period behind, the schedule restarts from now rather than bursting.
    """

    def __init__(self, period_ms: float, callback: Callable[[], None],
                 clock: Callable[[], float] = time.perf_counter):
        """
        Args:
            period_ms: Interval between ticks in milliseconds
            callback: Called once per elapsed period
            clock: Monotonic time source in seconds
        """
        self.period = period_ms / 1000.0
        self.callback = callback
        self.clock = clock
        self._deadline: Optional[float] = None

    @property
    def active(self) -> bool:
        return self._deadline is not None

    def start(self):
        self._deadline = self.clock() + self.period

    def cancel(self):
        self._deadline = None

    def poll(self) -> bool:
        """Fire the callback if the period has elapsed. Returns True if it fired."""
        if self._deadline is None:
            return False

        now = self.clock()
        if now < self._deadline:
            return False

        self._deadline += self.period
        if now - self._deadline >= self.period:
            self._deadline = now + self.period

        self.callback()
        return True


class PlaybackScheduler:
    """
    Drives the playhead and renders each tick.

    The current frame and playing flag live on AppState; this class is the
    only thing that changes them.
    """

    def __init__(self,
                 app_state: AppState,
                 on_render: Optional[Callable[[SceneSnapshot], None]] = None,
                 on_time: Optional[Callable[[MusicalTime], None]] = None,
                 on_timeline: Optional[Callable[[], None]] = None,
                 clock: Callable[[], float] = time.perf_counter):
        """
        Args:
            app_state: Application state (clock settings, keyframes, playhead)
            on_render: Receives the interpolated scene (skipped if no keyframes)
            on_time: Receives the musical time of the playhead
            on_timeline: Called when the timeline needs a redraw
            clock: Monotonic time source for the self-advance timer
        """
        self.app_state = app_state
        self.on_render = on_render
        self.on_time = on_time
        self.on_timeline = on_timeline
        self.clock = clock

        self.state = PlaybackState.STOPPED
        self.audio = None
        self._timer: Optional[RepeatingTimer] = None

    # Properties

    @property
    def current_frame(self) -> int:
        return self.app_state.get_current_frame()

    @property
    def max_frames(self) -> int:
        return self.app_state.get_clock().max_frames

    @property
    def fps(self) -> float:
        return self.app_state.get_clock().fps

    @property
    def is_audio_driven(self) -> bool:
        return self.audio is not None and self.audio.is_loaded

    # Audio

    def attach_audio(self, player):
        """Drive playback from a soundtrack. Pauses first if playing."""
        if self.state == PlaybackState.PLAYING:
            self.pause()
        self.audio = player

    def detach_audio(self):
        if self.state == PlaybackState.PLAYING:
            self.pause()
        self.audio = None

    # Transitions

    def play(self):
        """Stopped/Paused -> Playing."""
        if self.state == PlaybackState.PLAYING:
            return

        if self.is_audio_driven:
            duration = self.audio.get_duration()
            if duration > 0 and self.current_frame / self.fps >= duration:
                print(f"[PLAYBACK] Frame {self.current_frame} is past the end of the "
                      f"soundtrack ({duration:.2f}s); seek earlier to play")
                return

        self.state = PlaybackState.PLAYING
        self.app_state.set_playing(True)

        if self.is_audio_driven:
            self.audio.play()
            print(f"[PLAYBACK] Playing with audio from frame {self.current_frame}")
        else:
            self._timer = RepeatingTimer(1000.0 / self.fps, self._advance, self.clock)
            self._timer.start()
            print(f"[PLAYBACK] Playing at {self.fps:g} fps from frame {self.current_frame}")

    def pause(self):
        """Playing -> Paused at the current frame."""
        if self.state != PlaybackState.PLAYING:
            return

        self._cancel_timer()
        if self.is_audio_driven:
            self.audio.pause()

        self.state = PlaybackState.PAUSED
        self.app_state.set_playing(False)
        print(f"[PLAYBACK] Paused at frame {self.current_frame}")
        self._notify_timeline()

    def stop(self):
        """Any state -> Stopped at frame 0, soundtrack rewound."""
        self._cancel_timer()
        if self.is_audio_driven:
            self.audio.pause()
            self.audio.seek_to(0)

        self.state = PlaybackState.STOPPED
        self.app_state.set_playing(False)
        self.app_state.set_current_frame(0)
        print("[PLAYBACK] Stopped")
        self.refresh()

    def rewind(self):
        """Jump back to frame 0 and stop."""
        self.stop()

    def seek(self, frame: int):
        """
        Move the playhead without changing state.

        Out-of-range frames are clamped to [0, max_frames].
        """
        frame = max(0, min(self.max_frames, int(frame)))
        self.app_state.set_current_frame(frame)

        if self.is_audio_driven:
            duration = self.audio.get_duration()
            if duration > 0:
                self.audio.seek_to((frame / self.fps) / duration)

        self.refresh()

    def seek_to_x(self, x: float, width: float):
        """Seek to the frame under a timeline click."""
        self.seek(x_to_frame(x, width, self.max_frames))

    # Ticking

    def update(self):
        """Poll the active driver. Call once per UI frame."""
        if self.state != PlaybackState.PLAYING:
            return

        if self.is_audio_driven:
            self._follow_audio()
        elif self._timer is not None:
            self._timer.poll()

    def _advance(self):
        """Self-advance by one frame; pause at the end of the timeline."""
        frame = self.current_frame + 1

        if frame > self.max_frames:
            self._cancel_timer()
            self.state = PlaybackState.PAUSED
            self.app_state.set_playing(False)
            self.app_state.set_current_frame(self.max_frames)
            print(f"[PLAYBACK] Reached end at frame {self.max_frames}")
            self.refresh()
            return

        self.app_state.set_current_frame(frame)
        self.refresh()

    def _follow_audio(self):
        """Set the playhead from the soundtrack position."""
        frame = math.floor(self.audio.get_current_time() * self.fps)
        self.app_state.set_current_frame(max(0, min(self.max_frames, frame)))

        if not self.audio.is_playing():
            # Soundtrack ran out
            self.state = PlaybackState.PAUSED
            self.app_state.set_playing(False)
            print(f"[PLAYBACK] Audio finished at frame {self.current_frame}")

        self.refresh()

    def tick(self):
        """Run one tick of whichever driver is active (used by tests and the UI loop)."""
        if self.is_audio_driven:
            self._follow_audio()
        else:
            self._advance()

    def on_clock_changed(self):
        """
        Re-apply clock settings after fps/bpm/meter/duration edits.

        Clamps the playhead to the new end and restarts the timer at the
        new frame period.
        """
        if self.current_frame > self.max_frames:
            self.app_state.set_current_frame(self.max_frames)

        if self._timer is not None and self._timer.active:
            self._timer = RepeatingTimer(1000.0 / self.fps, self._advance, self.clock)
            self._timer.start()

        self.refresh()

    # Rendering

    def refresh(self):
        """Render the current frame, update the time display and redraw the timeline."""
        frame = self.current_frame
        snapshot = render_frame(self.app_state.keyframes, frame)
        if snapshot is not None and self.on_render:
            self.on_render(snapshot)

        if self.on_time:
            self.on_time(self.app_state.get_clock().to_musical_time(frame))

        self._notify_timeline()

    def _notify_timeline(self):
        if self.on_timeline:
            self.on_timeline()

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
