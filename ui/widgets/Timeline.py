"""
Timeline widget: musical grid, tempo markers, keyframe markers and playhead.

Layout comes from core.timeline.build_timeline(); this widget only draws it
and turns clicks into seeks.
"""
import dearpygui.dearpygui as dpg
from typing import Callable, Iterable, Optional

from core.clock import ClockSettings
from core.timeline import (
    KEYFRAME_MARKER_RADIUS,
    KEYFRAME_MARKER_Y,
    TEMPO_MARKER_SIZE,
    TEMPO_MARKER_Y,
    TimelineLayout,
    build_timeline,
)
from ui.theme import TimelineColors


class Timeline:
    """Horizontal timeline strip drawn on a DearPyGui drawlist."""

    def __init__(self, width: int = 800, height: int = 80,
                 on_seek: Optional[Callable[[float, float], None]] = None):
        """
        Args:
            width: Strip width in pixels
            height: Strip height in pixels
            on_seek: Called with (x, width) when the strip is clicked
        """
        self.width = width
        self.height = height
        self.on_seek = on_seek

        self.drawlist_id = None
        self.layout: Optional[TimelineLayout] = None

    def update_layout(self, settings: ClockSettings, keyframe_frames: Iterable[int],
                      current_frame: int):
        """Recompute the layout and redraw."""
        self.layout = build_timeline(settings, keyframe_frames, current_frame,
                                     self.width, self.height)
        self.draw()

    def draw(self):
        if not self.drawlist_id or self.layout is None:
            return

        dpg.delete_item(self.drawlist_id, children_only=True)
        parent = self.drawlist_id
        layout = self.layout

        dpg.draw_rectangle((0, 0), (layout.width, layout.height),
                           fill=TimelineColors.BACKGROUND, color=TimelineColors.BACKGROUND,
                           parent=parent)

        for tick in layout.ticks:
            if tick.kind == "bar":
                color = TimelineColors.BAR_TICK
            elif tick.kind == "beat":
                color = TimelineColors.BEAT_TICK
            else:
                color = TimelineColors.SUBDIVISION_TICK
            dpg.draw_line((tick.x, 0), (tick.x, tick.height), color=color, thickness=1,
                          parent=parent)
            if tick.label:
                dpg.draw_text((tick.x + 2, tick.height - 12), tick.label,
                              color=TimelineColors.BAR_LABEL, size=12, parent=parent)

        # Tempo changes: downward triangle with the new BPM underneath
        for marker in layout.tempo_markers:
            x = marker.x
            dpg.draw_triangle(
                (x - TEMPO_MARKER_SIZE, TEMPO_MARKER_Y),
                (x + TEMPO_MARKER_SIZE, TEMPO_MARKER_Y),
                (x, TEMPO_MARKER_Y + 2 * TEMPO_MARKER_SIZE),
                color=TimelineColors.TEMPO_MARKER, fill=TimelineColors.TEMPO_MARKER,
                parent=parent
            )
            dpg.draw_text((x - 8, TEMPO_MARKER_Y + 12), marker.label,
                          color=TimelineColors.TEMPO_MARKER, size=11, parent=parent)

        for marker in layout.keyframe_markers:
            dpg.draw_circle((marker.x, KEYFRAME_MARKER_Y), KEYFRAME_MARKER_RADIUS,
                            color=TimelineColors.KEYFRAME_MARKER,
                            fill=TimelineColors.KEYFRAME_MARKER, parent=parent)

        dpg.draw_line((layout.playhead_x, 0), (layout.playhead_x, layout.height),
                      color=TimelineColors.PLAYHEAD, thickness=2, parent=parent)

    def _handle_click(self, sender, app_data):
        if not self.drawlist_id or not dpg.is_item_hovered(self.drawlist_id):
            return
        mouse_pos = dpg.get_mouse_pos(local=False)
        rect_min = dpg.get_item_rect_min(self.drawlist_id)
        x = mouse_pos[0] - rect_min[0]
        if self.on_seek:
            self.on_seek(x, self.width)

    def create(self, parent=None):
        """Create the drawlist and its click handler."""
        kwargs = {"parent": parent} if parent else {}
        self.drawlist_id = dpg.add_drawlist(width=self.width, height=self.height, **kwargs)

        with dpg.handler_registry():
            dpg.add_mouse_click_handler(button=dpg.mvMouseButton_Left, callback=self._handle_click)

        self.draw()
        return self.drawlist_id
