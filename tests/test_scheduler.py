"""Tests for the playback scheduler state machine."""
from dataclasses import replace

import pytest

from conftest import rect_snapshot
from audio.scheduler import PlaybackScheduler, PlaybackState, RepeatingTimer


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class FakeAudio:
    """Stands in for AudioPlayer without touching an audio device."""

    is_loaded = True

    def __init__(self, duration: float = 8.0):
        self.duration = duration
        self.time = 0.0
        self.playing = False
        self.seeks = []

    def play(self):
        self.playing = True

    def pause(self):
        self.playing = False

    def seek_to(self, fraction):
        self.seeks.append(fraction)

    def get_current_time(self):
        return self.time

    def get_duration(self):
        return self.duration

    def is_playing(self):
        return self.playing


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def events():
    return {"render": [], "time": [], "timeline": 0}


@pytest.fixture
def scheduler(app_state, clock, events):
    def on_timeline():
        events["timeline"] += 1

    return PlaybackScheduler(
        app_state,
        on_render=events["render"].append,
        on_time=events["time"].append,
        on_timeline=on_timeline,
        clock=clock,
    )


class TestRepeatingTimer:
    """Tests for the polled fixed-rate timer."""

    def test_fires_after_period(self):
        clock = FakeClock()
        fired = []
        timer = RepeatingTimer(250, lambda: fired.append(clock.now), clock)
        timer.start()

        clock.now = 0.125
        assert timer.poll() is False
        clock.now = 0.25
        assert timer.poll() is True
        assert fired == [0.25]

    def test_at_most_once_per_poll(self):
        clock = FakeClock()
        fired = []
        timer = RepeatingTimer(250, lambda: fired.append(1), clock)
        timer.start()

        clock.now = 10.0
        assert timer.poll() is True
        # Schedule restarted from now instead of bursting
        assert timer.poll() is False
        assert len(fired) == 1

    def test_cancel(self):
        clock = FakeClock()
        fired = []
        timer = RepeatingTimer(250, lambda: fired.append(1), clock)
        timer.start()
        timer.cancel()

        clock.now = 1.0
        assert timer.poll() is False
        assert not timer.active
        assert fired == []


class TestSelfAdvancing:
    """Tests for timer-driven playback (no soundtrack)."""

    def test_initial_state(self, scheduler):
        assert scheduler.state == PlaybackState.STOPPED
        assert scheduler.current_frame == 0
        assert scheduler.max_frames == 240

    def test_play_advances_one_frame_per_tick(self, scheduler, clock, app_state):
        scheduler.play()
        assert scheduler.state == PlaybackState.PLAYING
        assert app_state.is_playing()

        for expected in (1, 2, 3):
            clock.now += 1.0
            scheduler.update()
            assert scheduler.current_frame == expected

    def test_no_tick_before_period(self, scheduler, clock):
        scheduler.play()
        clock.now = 0.01
        scheduler.update()
        assert scheduler.current_frame == 0

    def test_tick_renders_and_updates_time(self, scheduler, clock, app_state, events):
        app_state.keyframes.set(0, rect_snapshot(0))
        app_state.keyframes.set(2, rect_snapshot(100))
        scheduler.play()
        clock.now += 1.0
        scheduler.update()

        assert events["render"][-1].objects[0]["left"] == pytest.approx(50)
        assert events["time"][-1].bar == 1
        assert events["timeline"] > 0

    def test_no_render_without_keyframes(self, scheduler, clock, events):
        scheduler.play()
        clock.now += 1.0
        scheduler.update()
        assert events["render"] == []
        assert len(events["time"]) == 1

    def test_pause_keeps_frame_and_stops_ticking(self, scheduler, clock, app_state):
        scheduler.play()
        clock.now += 1.0
        scheduler.update()
        scheduler.pause()

        clock.now += 1.0
        scheduler.update()
        assert scheduler.state == PlaybackState.PAUSED
        assert scheduler.current_frame == 1
        assert not app_state.is_playing()

    def test_resume_from_pause(self, scheduler, clock):
        scheduler.play()
        clock.now += 1.0
        scheduler.update()
        scheduler.pause()
        scheduler.play()
        clock.now += 1.0
        scheduler.update()
        assert scheduler.current_frame == 2

    def test_stop_returns_to_zero(self, scheduler, clock):
        scheduler.play()
        clock.now += 1.0
        scheduler.update()
        scheduler.stop()
        assert scheduler.state == PlaybackState.STOPPED
        assert scheduler.current_frame == 0

    def test_rewind_from_paused(self, scheduler):
        scheduler.seek(100)
        scheduler.rewind()
        assert scheduler.current_frame == 0
        assert scheduler.state == PlaybackState.STOPPED

    def test_natural_end_pauses_at_last_frame(self, scheduler, clock):
        scheduler.seek(240)
        scheduler.play()
        clock.now += 1.0
        scheduler.update()
        assert scheduler.current_frame == 240
        assert scheduler.state == PlaybackState.PAUSED

    def test_play_twice_is_noop(self, scheduler, clock):
        scheduler.play()
        scheduler.play()
        clock.now += 1.0
        scheduler.update()
        assert scheduler.current_frame == 1

    def test_tick_advances_directly(self, scheduler):
        scheduler.tick()
        assert scheduler.current_frame == 1


class TestSeek:
    """Tests for moving the playhead."""

    def test_seek_clamps(self, scheduler):
        scheduler.seek(-5)
        assert scheduler.current_frame == 0
        scheduler.seek(1000)
        assert scheduler.current_frame == 240

    def test_seek_keeps_state(self, scheduler):
        scheduler.play()
        scheduler.seek(50)
        assert scheduler.state == PlaybackState.PLAYING
        scheduler.pause()
        scheduler.seek(60)
        assert scheduler.state == PlaybackState.PAUSED
        assert scheduler.current_frame == 60

    def test_seek_renders_immediately(self, scheduler, app_state, events):
        app_state.keyframes.set(0, rect_snapshot(0))
        app_state.keyframes.set(10, rect_snapshot(100))
        scheduler.seek(5)
        assert events["render"][-1].objects[0]["left"] == pytest.approx(50)

    def test_seek_to_x(self, scheduler):
        scheduler.seek_to_x(400, 800)
        assert scheduler.current_frame == 120


class TestClockChanges:

    def test_clamps_playhead_to_new_end(self, scheduler, app_state):
        scheduler.seek(200)
        app_state.set_clock(replace(app_state.get_clock(), duration_bars=2))
        scheduler.on_clock_changed()
        assert scheduler.current_frame == 120

    def test_restarts_timer_at_new_rate(self, scheduler, app_state, clock):
        scheduler.play()
        app_state.set_clock(replace(app_state.get_clock(), fps=4))
        scheduler.on_clock_changed()

        # New period is 250ms
        clock.now += 0.125
        scheduler.update()
        assert scheduler.current_frame == 0
        clock.now += 0.125
        scheduler.update()
        assert scheduler.current_frame == 1


class TestAudioDriven:
    """Tests for playback following a soundtrack."""

    @pytest.fixture
    def audio(self, scheduler):
        player = FakeAudio()
        scheduler.attach_audio(player)
        return player

    def test_play_starts_audio(self, scheduler, audio):
        scheduler.play()
        assert audio.playing
        assert scheduler.is_audio_driven

    def test_frame_follows_audio_time(self, scheduler, audio):
        scheduler.play()
        audio.time = 1.0
        scheduler.update()
        assert scheduler.current_frame == 30

    def test_frame_clamped_to_timeline(self, scheduler, audio):
        scheduler.play()
        audio.time = 100.0
        scheduler.update()
        assert scheduler.current_frame == 240

    def test_pause_pauses_audio(self, scheduler, audio):
        scheduler.play()
        scheduler.pause()
        assert not audio.playing

    def test_stop_rewinds_audio(self, scheduler, audio):
        scheduler.play()
        scheduler.stop()
        assert not audio.playing
        assert audio.seeks[-1] == 0

    def test_seek_moves_audio(self, scheduler, audio):
        scheduler.seek(120)
        assert audio.seeks[-1] == pytest.approx(0.5)

    def test_audio_end_pauses(self, scheduler, audio):
        scheduler.play()
        audio.time = 4.0
        audio.playing = False
        scheduler.update()
        assert scheduler.state == PlaybackState.PAUSED
        assert scheduler.current_frame == 120

    def test_detach_returns_to_timer(self, scheduler, audio, clock):
        scheduler.detach_audio()
        scheduler.play()
        clock.now += 1.0
        scheduler.update()
        assert scheduler.current_frame == 1
        assert not audio.playing

    def test_play_past_soundtrack_end_stays_put(self, scheduler):
        short = FakeAudio(duration=2.0)
        scheduler.attach_audio(short)
        scheduler.seek(90)
        scheduler.play()
        assert scheduler.state == PlaybackState.STOPPED
        assert scheduler.current_frame == 90
        assert not short.playing

    def test_play_inside_soundtrack_keeps_frame(self, scheduler, audio):
        scheduler.seek(60)
        scheduler.play()
        assert scheduler.state == PlaybackState.PLAYING
        assert scheduler.current_frame == 60
