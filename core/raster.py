"""
Shape geometry and still-image rendering of scene snapshots.

shape_geometry() turns one serialized object into a drawing primitive; the
on-screen canvas (DearPyGui) and the PNG renderer (Pillow) both draw from it.
Supports the shapes the drawing surface creates: rect, circle and line.
Positions follow the canvas convention: left/top is the shape's top-left
corner and also its rotation origin.
"""
import io
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from PIL import Image, ImageColor, ImageDraw

from core.constants import DEFAULT_BACKGROUND
from core.models import SceneSnapshot

Point = Tuple[float, float]
RGBA = Tuple[int, int, int, int]


@dataclass(frozen=True)
class ShapeGeometry:
    """
    Drawing primitive for one object.

    Attributes:
        kind: "polygon", "ellipse" or "line"
        points: Polygon corners or line endpoints (empty for ellipses)
        center: Ellipse centre
        radii: Ellipse (rx, ry)
    """
    kind: str
    points: Tuple[Point, ...] = ()
    center: Point = (0.0, 0.0)
    radii: Tuple[float, float] = (0.0, 0.0)


def rotate_points(points: List[Point], origin: Point, degrees: float) -> List[Point]:
    """Rotate points clockwise (screen coordinates) around origin."""
    if not degrees:
        return list(points)
    theta = math.radians(degrees)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    ox, oy = origin
    rotated = []
    for x, y in points:
        dx, dy = x - ox, y - oy
        rotated.append((ox + dx * cos_t - dy * sin_t, oy + dx * sin_t + dy * cos_t))
    return rotated


def shape_geometry(obj: Dict[str, Any]) -> Optional[ShapeGeometry]:
    """
    Compute the primitive for a serialized object.

    Returns:
        ShapeGeometry, or None for unsupported object types
    """
    kind = obj.get("type")
    left = obj.get("left", 0)
    top = obj.get("top", 0)
    angle = obj.get("angle", 0)
    scale_x = obj.get("scaleX", 1)
    scale_y = obj.get("scaleY", 1)

    if kind == "rect":
        width = obj.get("width", 0) * scale_x
        height = obj.get("height", 0) * scale_y
        corners = [(left, top), (left + width, top),
                   (left + width, top + height), (left, top + height)]
        return ShapeGeometry(kind="polygon", points=tuple(rotate_points(corners, (left, top), angle)))

    if kind == "circle":
        radius = obj.get("radius", 0)
        # Mirrored scales flip the shape but never the radii
        rx, ry = abs(radius * scale_x), abs(radius * scale_y)
        # Rotation about the top-left corner moves the centre
        center = rotate_points([(left + rx, top + ry)], (left, top), angle)[0]
        return ShapeGeometry(kind="ellipse", center=center, radii=(rx, ry))

    if kind == "line":
        x1, y1 = obj.get("x1", 0), obj.get("y1", 0)
        x2, y2 = obj.get("x2", 0), obj.get("y2", 0)
        # Endpoints are fixed at creation; left/top carry the animated offset
        dx = left - min(x1, x2)
        dy = top - min(y1, y2)
        start = (x1 * scale_x + dx, y1 * scale_y + dy)
        end = (x2 * scale_x + dx, y2 * scale_y + dy)
        return ShapeGeometry(kind="line", points=tuple(rotate_points([start, end], start, angle)))

    return None


def _distance_to_segment(point: Point, start: Point, end: Point) -> float:
    (px, py), (ax, ay), (bx, by) = point, start, end
    dx, dy = bx - ax, by - ay
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return math.hypot(px - ax, py - ay)
    t = max(0.0, min(1.0, ((px - ax) * dx + (py - ay) * dy) / length_sq))
    return math.hypot(px - (ax + t * dx), py - (ay + t * dy))


def geometry_contains(geometry: ShapeGeometry, x: float, y: float,
                      tolerance: float = 4.0) -> bool:
    """
    Hit test a point against a primitive.

    Polygons use even-odd ray casting, ellipses the normalized radius, and
    lines count as hit within tolerance pixels of the segment.
    """
    if geometry.kind == "polygon":
        inside = False
        points = geometry.points
        for i, (ax, ay) in enumerate(points):
            bx, by = points[i - 1]
            if (ay > y) != (by > y) and x < (bx - ax) * (y - ay) / (by - ay) + ax:
                inside = not inside
        return inside

    if geometry.kind == "ellipse":
        (cx, cy), (rx, ry) = geometry.center, geometry.radii
        if rx <= 0 or ry <= 0:
            return math.hypot(x - cx, y - cy) <= tolerance
        return ((x - cx) / rx) ** 2 + ((y - cy) / ry) ** 2 <= 1.0

    if geometry.kind == "line":
        start, end = geometry.points
        return _distance_to_segment((x, y), start, end) <= tolerance

    return False


def geometry_bounds(geometry: ShapeGeometry) -> Tuple[Point, Point]:
    """Axis-aligned bounding box as ((min_x, min_y), (max_x, max_y))."""
    if geometry.kind == "ellipse":
        (cx, cy), (rx, ry) = geometry.center, geometry.radii
        return (cx - rx, cy - ry), (cx + rx, cy + ry)
    xs = [p[0] for p in geometry.points]
    ys = [p[1] for p in geometry.points]
    return (min(xs), min(ys)), (max(xs), max(ys))


def object_opacity(obj: Dict[str, Any]) -> float:
    """Opacity clamped to 0..1 (interpolation never overshoots, loaded files might)."""
    return max(0.0, min(1.0, float(obj.get("opacity", 1))))


def parse_color(value: Optional[str], alpha: int = 255) -> Optional[RGBA]:
    """
    Parse a CSS-style colour. None, '' and 'transparent' mean no paint.

    Example:
        >>> parse_color("#ff0000", 128)
        (255, 0, 0, 128)
    """
    if not value or value == "transparent":
        return None
    try:
        rgb = ImageColor.getrgb(value)
    except ValueError:
        print(f"[RENDER] Unknown colour {value!r}, skipping")
        return None
    return rgb[0], rgb[1], rgb[2], alpha


def _draw_geometry(draw: ImageDraw.ImageDraw, geometry: ShapeGeometry,
                   fill: Optional[RGBA], outline: Optional[RGBA], stroke_width: int):
    if geometry.kind == "polygon":
        draw.polygon(list(geometry.points), fill=fill, outline=outline, width=stroke_width)
    elif geometry.kind == "ellipse":
        (cx, cy), (rx, ry) = geometry.center, geometry.radii
        draw.ellipse((cx - rx, cy - ry, cx + rx, cy + ry), fill=fill, outline=outline,
                     width=stroke_width)
    elif geometry.kind == "line" and outline is not None:
        draw.line(list(geometry.points), fill=outline, width=stroke_width)


def render_image(snapshot: Optional[SceneSnapshot], width: int, height: int) -> Image.Image:
    """
    Rasterize a snapshot onto an RGB image.

    Objects are drawn in list order, each composited at its own opacity.
    """
    background = snapshot.background if snapshot is not None else DEFAULT_BACKGROUND
    base = Image.new("RGBA", (width, height), parse_color(background) or (255, 255, 255, 255))
    if snapshot is None:
        return base.convert("RGB")

    for obj in snapshot.objects:
        geometry = shape_geometry(obj)
        if geometry is None:
            print(f"[RENDER] Unsupported object type {obj.get('type')!r}, skipping")
            continue

        alpha = int(round(object_opacity(obj) * 255))
        if alpha == 0:
            continue

        fill = parse_color(obj.get("fill"), alpha)
        outline = parse_color(obj.get("stroke"), alpha)
        stroke_width = int(round(obj.get("strokeWidth") or 0))
        if stroke_width <= 0:
            outline = None
            stroke_width = 1

        layer = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        _draw_geometry(ImageDraw.Draw(layer), geometry, fill, outline, stroke_width)
        base = Image.alpha_composite(base, layer)

    return base.convert("RGB")


def render_png(snapshot: Optional[SceneSnapshot], width: int, height: int) -> bytes:
    """Rasterize a snapshot and encode it as PNG."""
    buffer = io.BytesIO()
    render_image(snapshot, width, height).save(buffer, format="PNG")
    return buffer.getvalue()
