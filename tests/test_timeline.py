"""Tests for the timeline layout."""
import pytest

from core.clock import ClockSettings
from core.timeline import (
    BAR_TICK_HEIGHT,
    BEAT_TICK_HEIGHT,
    SUBDIVISION_TICK_HEIGHT,
    build_timeline,
    frame_to_x,
    x_to_frame,
)


@pytest.fixture
def layout():
    clock = ClockSettings().with_tempo_change(3, 140).with_tempo_change(10, 90)
    return build_timeline(clock, [20, 0], current_frame=120, width=800, height=80)


class TestTicks:
    """Tests for the bar/beat/subdivision grid."""

    def test_tick_count(self, layout):
        # 4 bars x 4 beats x (1 beat tick + 3 subdivision ticks)
        assert len(layout.ticks) == 64

    def test_bar_ticks(self, layout):
        bars = [tick for tick in layout.ticks if tick.kind == "bar"]
        assert [tick.label for tick in bars] == ["1", "2", "3", "4"]
        assert [tick.x for tick in bars] == pytest.approx([0, 200, 400, 600])
        assert all(tick.height == BAR_TICK_HEIGHT for tick in bars)

    def test_beat_and_subdivision_heights(self, layout):
        beats = [tick for tick in layout.ticks if tick.kind == "beat"]
        subs = [tick for tick in layout.ticks if tick.kind == "subdivision"]
        assert len(beats) == 12
        assert len(subs) == 48
        assert all(tick.height == BEAT_TICK_HEIGHT and not tick.label for tick in beats)
        assert all(tick.height == SUBDIVISION_TICK_HEIGHT for tick in subs)

    def test_zero_length_timeline(self):
        clock = ClockSettings(fps=1, bpm=300, time_signature=(1, 4), duration_bars=1)
        assert clock.max_frames == 0
        layout = build_timeline(clock, [0], 0, 800, 80)
        assert all(tick.x == 0 for tick in layout.ticks)
        assert layout.playhead_x == 0


class TestMarkers:
    """Tests for tempo markers, keyframe markers and the playhead."""

    def test_tempo_marker(self, layout):
        assert len(layout.tempo_markers) == 1
        marker = layout.tempo_markers[0]
        assert marker.bar == 3
        assert marker.x == pytest.approx(400)
        assert marker.label == "140"

    def test_fractional_tempo_label(self):
        clock = ClockSettings().with_tempo_change(2, 92.5)
        layout = build_timeline(clock, [], 0, 800, 80)
        assert layout.tempo_markers[0].label == "92.5"

    def test_keyframe_markers_sorted(self, layout):
        assert [marker.frame for marker in layout.keyframe_markers] == [0, 20]
        assert layout.keyframe_markers[1].x == pytest.approx(20 / 240 * 800)

    def test_playhead(self, layout):
        assert layout.playhead_x == pytest.approx(400)


class TestMapping:

    def test_frame_to_x(self):
        assert frame_to_x(120, 240, 800) == pytest.approx(400)
        assert frame_to_x(5, 0, 800) == 0

    def test_x_to_frame_floors(self):
        assert x_to_frame(799.9, 800, 240) == 239
        assert x_to_frame(400, 800, 240) == 120

    def test_x_to_frame_clamps(self):
        assert x_to_frame(-10, 800, 240) == 0
        assert x_to_frame(900, 800, 240) == 240
        assert x_to_frame(10, 0, 240) == 0
