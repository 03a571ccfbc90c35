"""
Shape Canvas - drawing surface for Beatframe.

Left-drag draws the current tool's shape:
- rect: corner-to-corner, normalized so left/top is the top-left corner
- circle: radius follows the pointer distance from the press point
- line: second endpoint follows the pointer

With the select tool, left-drag picks the topmost shape under the pointer and
moves it by changing its left/top, which is what keyframes interpolate.

The canvas holds the live scene as serialized objects; keyframes capture it
with to_snapshot() and playback replaces it with load_snapshot().
"""
import math
import dearpygui.dearpygui as dpg
from typing import List, Dict, Any, Optional, Callable

from core.constants import (
    DEFAULT_BACKGROUND,
    DEFAULT_FILL,
    DEFAULT_STROKE,
    DEFAULT_STROKE_WIDTH,
    SHAPE_TYPES,
)
from core.models import SceneSnapshot, make_rect, make_circle, make_line
from core.raster import geometry_bounds, geometry_contains, object_opacity, shape_geometry
from ui.theme import hex_to_rgba

SNAPSHOT_VERSION = "1.0"


class ShapeCanvas:
    """Vector drawing surface backed by a DearPyGui drawlist."""

    def __init__(self, width: int = 800, height: int = 600,
                 background: str = DEFAULT_BACKGROUND,
                 on_shape_added: Optional[Callable[[Dict[str, Any]], None]] = None):
        self.width = width
        self.height = height
        self.background = background
        self.on_shape_added = on_shape_added

        self.objects: List[Dict[str, Any]] = []

        # Tool state
        self.tool = "select"  # "select", "rect", "circle" or "line"
        self.fill_color = DEFAULT_FILL
        self.stroke_color = DEFAULT_STROKE

        # Drag state
        self.is_drawing = False
        self._origin = (0.0, 0.0)
        self._current_index: Optional[int] = None
        self.is_moving = False
        self.selected_index: Optional[int] = None
        self._grab_offset = (0.0, 0.0)

        self.drawlist_id = None

    # Scene

    def to_snapshot(self) -> SceneSnapshot:
        """Serialize the live scene."""
        return SceneSnapshot(
            objects=tuple(dict(obj) for obj in self.objects),
            document={"version": SNAPSHOT_VERSION, "background": self.background},
        )

    def load_snapshot(self, snapshot: SceneSnapshot):
        """Replace the live scene with a snapshot and redraw."""
        self.objects = [dict(obj) for obj in snapshot.objects]
        self.background = snapshot.background
        self._reset_drag()
        self.draw()

    def clear(self):
        self.objects = []
        self._reset_drag()
        self.draw()

    # Shape creation (pure state changes; draw() is a no-op before create())

    def begin_shape(self, x: float, y: float) -> bool:
        """
        Start a shape at the press point.

        Returns:
            True if a shape was started (False in select mode)
        """
        if self.tool not in SHAPE_TYPES:
            return False

        self._origin = (x, y)
        if self.tool == "rect":
            shape = make_rect(x, y, 0, 0, self.fill_color, self.stroke_color, DEFAULT_STROKE_WIDTH)
        elif self.tool == "circle":
            shape = make_circle(x, y, 0, self.fill_color, self.stroke_color, DEFAULT_STROKE_WIDTH)
        else:
            shape = make_line(x, y, x, y, self.stroke_color, DEFAULT_STROKE_WIDTH)

        self.objects.append(shape)
        self._current_index = len(self.objects) - 1
        self.is_drawing = True
        self.draw()
        return True

    def drag_to(self, x: float, y: float):
        """Resize the shape being drawn to follow the pointer."""
        if not self.is_drawing or self._current_index is None:
            return

        ox, oy = self._origin
        shape = self.objects[self._current_index]

        if shape["type"] == "rect":
            shape.update({
                "width": abs(x - ox),
                "height": abs(y - oy),
                "left": min(x, ox),
                "top": min(y, oy),
            })
        elif shape["type"] == "circle":
            radius = math.hypot(x - ox, y - oy)
            shape.update({
                "radius": radius,
                "width": radius * 2,
                "height": radius * 2,
                "left": ox - radius,
                "top": oy - radius,
            })
        elif shape["type"] == "line":
            shape.update({
                "x2": x,
                "y2": y,
                "left": min(ox, x),
                "top": min(oy, y),
            })

        self.draw()

    def end_shape(self):
        """Finish the current shape."""
        if not self.is_drawing:
            return
        shape = self.objects[self._current_index]
        self.is_drawing = False
        self._current_index = None
        if self.on_shape_added:
            self.on_shape_added(shape)

    # Moving existing shapes (select tool)

    def object_at(self, x: float, y: float) -> Optional[int]:
        """Index of the topmost object under a point, or None."""
        for index in range(len(self.objects) - 1, -1, -1):
            geometry = shape_geometry(self.objects[index])
            if geometry is not None and geometry_contains(geometry, x, y):
                return index
        return None

    def begin_move(self, x: float, y: float) -> bool:
        """
        Pick up the topmost object under the press point.

        Returns:
            True if an object was picked (pressing empty space clears the selection)
        """
        if self.tool != "select":
            return False

        self.selected_index = self.object_at(x, y)
        if self.selected_index is None:
            self.draw()
            return False

        shape = self.objects[self.selected_index]
        self._grab_offset = (x - shape.get("left", 0), y - shape.get("top", 0))
        self.is_moving = True
        self.draw()
        return True

    def move_to(self, x: float, y: float):
        """Move the picked object so the grab point stays under the pointer."""
        if not self.is_moving or self.selected_index is None:
            return

        gx, gy = self._grab_offset
        self.objects[self.selected_index].update({"left": x - gx, "top": y - gy})
        self.draw()

    def end_move(self):
        """Drop the picked object; it stays selected."""
        self.is_moving = False

    def _reset_drag(self):
        self.is_drawing = False
        self.is_moving = False
        self._current_index = None
        self.selected_index = None

    # Drawing

    def draw(self):
        """Redraw the scene."""
        if not self.drawlist_id:
            return

        dpg.delete_item(self.drawlist_id, children_only=True)

        dpg.draw_rectangle(
            (0, 0), (self.width, self.height),
            fill=hex_to_rgba(self.background),
            color=hex_to_rgba(self.background),
            parent=self.drawlist_id
        )

        for obj in self.objects:
            self._draw_object(obj)

        if self.selected_index is not None and self.selected_index < len(self.objects):
            self._draw_selection(self.objects[self.selected_index])

    def _draw_selection(self, obj: Dict[str, Any]):
        geometry = shape_geometry(obj)
        if geometry is None:
            return
        (x0, y0), (x1, y1) = geometry_bounds(geometry)
        dpg.draw_rectangle((x0 - 3, y0 - 3), (x1 + 3, y1 + 3),
                           color=(0, 122, 204, 255), thickness=1,
                           parent=self.drawlist_id)

    def _draw_object(self, obj: Dict[str, Any]):
        geometry = shape_geometry(obj)
        if geometry is None:
            return

        alpha = int(round(object_opacity(obj) * 255))
        stroke = hex_to_rgba(obj["stroke"], alpha) if obj.get("stroke") else (0, 0, 0, 0)
        fill = hex_to_rgba(obj["fill"], alpha) if obj.get("fill") else (0, 0, 0, 0)
        thickness = obj.get("strokeWidth") or 1

        if geometry.kind == "polygon":
            # Closed polygon: repeat the first corner
            points = [list(p) for p in geometry.points] + [list(geometry.points[0])]
            dpg.draw_polygon(points, color=stroke, fill=fill, thickness=thickness,
                             parent=self.drawlist_id)
        elif geometry.kind == "ellipse":
            (cx, cy), (rx, ry) = geometry.center, geometry.radii
            dpg.draw_ellipse((cx - rx, cy - ry), (cx + rx, cy + ry), color=stroke, fill=fill,
                             thickness=thickness, parent=self.drawlist_id)
        elif geometry.kind == "line":
            start, end = geometry.points
            dpg.draw_line(start, end, color=stroke, thickness=thickness,
                          parent=self.drawlist_id)

    # Mouse handling

    def _local_mouse_pos(self):
        mouse_pos = dpg.get_mouse_pos(local=False)
        canvas_rect_min = dpg.get_item_rect_min(self.drawlist_id)
        return mouse_pos[0] - canvas_rect_min[0], mouse_pos[1] - canvas_rect_min[1]

    def _handle_mouse_down(self, sender, app_data):
        if self.is_drawing or self.is_moving or not dpg.is_item_hovered(self.drawlist_id):
            return
        x, y = self._local_mouse_pos()
        if self.tool in SHAPE_TYPES:
            self.begin_shape(x, y)
        else:
            self.begin_move(x, y)

    def _handle_mouse_drag(self, sender, app_data):
        if self.is_drawing:
            self.drag_to(*self._local_mouse_pos())
        elif self.is_moving:
            self.move_to(*self._local_mouse_pos())

    def _handle_mouse_release(self, sender, app_data):
        self.end_shape()
        self.end_move()

    def create(self, parent=None):
        """
        Create the canvas drawlist (embedded in the current container).

        Args:
            parent: Parent container tag (optional)
        """
        kwargs = {"parent": parent} if parent else {}
        self.drawlist_id = dpg.add_drawlist(width=self.width, height=self.height, **kwargs)

        with dpg.handler_registry():
            dpg.add_mouse_down_handler(button=dpg.mvMouseButton_Left, callback=self._handle_mouse_down)
            dpg.add_mouse_drag_handler(button=dpg.mvMouseButton_Left, callback=self._handle_mouse_drag)
            dpg.add_mouse_release_handler(button=dpg.mvMouseButton_Left, callback=self._handle_mouse_release)

        self.draw()
        return self.drawlist_id
