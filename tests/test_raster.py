"""Tests for shape geometry and PNG rendering."""
import io

import pytest
from PIL import Image

from core.models import SceneSnapshot, make_circle, make_line, make_rect
from core.raster import (
    geometry_bounds,
    geometry_contains,
    object_opacity,
    parse_color,
    render_image,
    render_png,
    rotate_points,
    shape_geometry,
)


def snapshot_of(*objects, background="#ffffff"):
    return SceneSnapshot(objects=tuple(objects), document={"background": background})


class TestGeometry:

    def test_rotate_quarter_turn(self):
        (x, y), = rotate_points([(10, 0)], (0, 0), 90)
        assert x == pytest.approx(0, abs=1e-9)
        assert y == pytest.approx(10)

    def test_rect_corners_scaled(self):
        rect = make_rect(10, 20, 30, 40)
        rect["scaleX"] = 2
        geometry = shape_geometry(rect)
        assert geometry.kind == "polygon"
        assert geometry.points == ((10, 20), (70, 20), (70, 60), (10, 60))

    def test_circle_center(self):
        geometry = shape_geometry(make_circle(10, 10, 5))
        assert geometry.kind == "ellipse"
        assert geometry.center == (15, 15)
        assert geometry.radii == (5, 5)

    def test_line_follows_offset(self):
        line = make_line(0, 0, 10, 10)
        line["left"] = 5
        geometry = shape_geometry(line)
        assert geometry.points == ((5, 0), (15, 10))

    def test_circle_mirrored_scale_keeps_positive_radii(self):
        circle = make_circle(10, 10, 5)
        circle["scaleX"] = -1
        circle["scaleY"] = -2
        assert shape_geometry(circle).radii == (5, 10)

    def test_unknown_type(self):
        assert shape_geometry({"type": "path"}) is None

    def test_opacity_clamped(self):
        assert object_opacity({"opacity": 1.5}) == 1.0
        assert object_opacity({"opacity": -0.1}) == 0.0
        assert object_opacity({}) == 1.0

    def test_parse_color(self):
        assert parse_color("#ff0000", 128) == (255, 0, 0, 128)
        assert parse_color("transparent") is None
        assert parse_color(None) is None
        assert parse_color("not-a-colour") is None


class TestRender:

    def test_background_only(self):
        image = render_image(None, 20, 10)
        assert image.size == (20, 10)
        assert image.getpixel((5, 5)) == (255, 255, 255)

    def test_custom_background(self):
        image = render_image(snapshot_of(background="#000000"), 10, 10)
        assert image.getpixel((5, 5)) == (0, 0, 0)

    def test_filled_rect(self):
        image = render_image(snapshot_of(make_rect(10, 10, 20, 20, fill="#ff0000")), 50, 50)
        assert image.getpixel((20, 20)) == (255, 0, 0)
        assert image.getpixel((45, 45)) == (255, 255, 255)

    def test_half_opacity(self):
        rect = make_rect(0, 0, 40, 40, fill="#ff0000")
        rect["opacity"] = 0.5
        r, g, b = render_image(snapshot_of(rect), 50, 50).getpixel((20, 20))
        assert r == 255
        assert g == pytest.approx(127, abs=2)
        assert b == pytest.approx(127, abs=2)

    def test_invisible_object_skipped(self):
        rect = make_rect(0, 0, 40, 40, fill="#ff0000")
        rect["opacity"] = 0
        assert render_image(snapshot_of(rect), 50, 50).getpixel((20, 20)) == (255, 255, 255)

    def test_mirrored_circle_renders(self):
        circle = make_circle(10, 10, 20, fill="#0000ff")
        circle["scaleX"] = -1
        image = render_image(snapshot_of(circle), 100, 100)
        assert image.getpixel((30, 30))[:3] == (0, 0, 255)

    def test_filled_circle(self):
        image = render_image(snapshot_of(make_circle(10, 10, 10, fill="#0000ff")), 40, 40)
        assert image.getpixel((20, 20)) == (0, 0, 255)

    def test_png_bytes(self):
        data = render_png(snapshot_of(make_rect(0, 0, 5, 5)), 16, 16)
        assert data.startswith(b"\x89PNG")
        assert Image.open(io.BytesIO(data)).size == (16, 16)


class TestHitTesting:

    def test_rect_inside_and_outside(self):
        geometry = shape_geometry(make_rect(10, 10, 20, 20))
        assert geometry_contains(geometry, 15, 25)
        assert not geometry_contains(geometry, 35, 15)

    def test_rotated_rect(self):
        rect = make_rect(0, 0, 20, 20)
        rect["angle"] = 90
        geometry = shape_geometry(rect)
        assert geometry_contains(geometry, -10, 10)
        assert not geometry_contains(geometry, 10, 10)

    def test_circle(self):
        geometry = shape_geometry(make_circle(0, 0, 10))
        assert geometry_contains(geometry, 10, 10)
        assert not geometry_contains(geometry, 1, 1)

    def test_line_tolerance(self):
        geometry = shape_geometry(make_line(0, 0, 100, 0))
        assert geometry_contains(geometry, 50, 3)
        assert not geometry_contains(geometry, 50, 6)
        assert not geometry_contains(geometry, 110, 0)

    def test_bounds(self):
        assert geometry_bounds(shape_geometry(make_rect(5, 6, 10, 20))) == ((5, 6), (15, 26))
        assert geometry_bounds(shape_geometry(make_circle(0, 0, 5))) == ((0, 0), (10, 10))
