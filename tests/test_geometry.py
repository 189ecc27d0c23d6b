"""Square centres, crop→source→view mapping, UCI parsing and arrow drawing."""

import numpy as np
import pytest

from chess_overlay.inference.geometry import (
    SQUARES,
    Rect,
    aspect_fill_transform,
    map_crop_to_source,
    map_source_to_view,
    move_geometry,
    parse_uci,
    square_center,
    draw_arrow,
)


class TestSquareCenter:

    @pytest.mark.parametrize("square, expected", [
        ("a8", (50, 50)),
        ("h1", (750, 750)),
        ("e2", (450, 650)),
        ("d5", (350, 350)),
    ])
    def test_known_centres(self, square, expected):
        assert square_center(square, 800) == pytest.approx(expected)

    def test_scales_with_crop(self):
        assert square_center("a8", 640) == pytest.approx((40, 40))

    def test_all_squares_distinct(self):
        centres = {square_center(sq, 800) for sq in SQUARES}
        assert len(centres) == 64

    @pytest.mark.parametrize("square", ["i1", "a9", "a0", "e", "e44", ""])
    def test_bad_square_raises(self, square):
        with pytest.raises(ValueError):
            square_center(square, 800)


class TestMapping:

    def test_crop_to_source(self):
        p = map_crop_to_source((400, 400), Rect(100, 50, 600, 600), 800)
        assert p == pytest.approx((400, 350))

    def test_crop_origin_is_rect_origin(self):
        assert map_crop_to_source((0, 0), Rect(12, 34, 500, 500), 800) == pytest.approx((12, 34))

    def test_aspect_fill_landscape_into_square(self):
        # scale 1.0, 250 px cropped off each side horizontally
        assert map_source_to_view((500, 250), (1000, 500), (500, 500)) == pytest.approx((250, 250))
        assert aspect_fill_transform((1000, 500), (500, 500)) == pytest.approx((1.0, -250, 0))

    def test_aspect_fill_portrait_into_square(self):
        assert map_source_to_view((0, 0), (400, 800), (200, 200)) == pytest.approx((0, -100))

    def test_same_aspect_is_plain_scale(self):
        assert map_source_to_view((100, 50), (400, 200), (800, 400)) == pytest.approx((200, 100))

    @pytest.mark.parametrize("source", [(1, 500), (500, 0), (0.5, 0.5)])
    def test_degenerate_source_raises(self, source):
        with pytest.raises(ValueError):
            aspect_fill_transform(source, (500, 500))


class TestParseUci:

    @pytest.mark.parametrize("move, expected", [
        ("e2e4", ("e2", "e4")),
        ("g1f3", ("g1", "f3")),
        ("e7e8q", ("e7", "e8")),
        ("E2E4", ("e2", "e4")),
    ])
    def test_valid(self, move, expected):
        assert parse_uci(move) == expected

    @pytest.mark.parametrize("move", ["", "e2", "e2e", "z9e4", "e2e9", None])
    def test_malformed(self, move):
        assert parse_uci(move) is None


class TestMoveGeometry:

    def test_crop_space_endpoints(self):
        geom = move_geometry("e2e4", (1000, 600), Rect(280, 80, 440, 440), 800)
        assert geom.p1 == pytest.approx((450, 650))
        assert geom.p2 == pytest.approx((450, 450))

    def test_malformed_move(self):
        assert move_geometry("e2", (1000, 600), Rect(0, 0, 100, 100), 800) is None

    def test_promotion_ignored(self):
        a = move_geometry("a7a8", (1000, 600), Rect(0, 0, 600, 600), 800)
        b = move_geometry("a7a8n", (1000, 600), Rect(0, 0, 600, 600), 800)
        assert a == b

    def test_source_points_inside_crop_rect(self):
        rect = Rect(280, 80, 440, 440)
        for move in ("a8h1", "h8a1", "e2e4", "b1c3"):
            s1, s2 = move_geometry(move, (1000, 600), rect, 800).to_source()
            assert rect.contains(*s1) and rect.contains(*s2)

    def test_view_points_inside_projected_rect(self):
        rect = Rect(280, 80, 440, 440)
        source, view = (1000, 600), (300, 300)
        (x0, y0) = map_source_to_view((rect.x, rect.y), source, view)
        (x1, y1) = map_source_to_view((rect.max_x, rect.max_y), source, view)
        projected = Rect(x0, y0, x1 - x0, y1 - y0)
        v1, v2 = move_geometry("a8h1", source, rect, 800).to_view(view)
        assert projected.contains(*v1) and projected.contains(*v2)

    def test_to_view_composes_hops(self):
        geom = move_geometry("d5d4", (1000, 500), Rect(100, 50, 400, 400), 800)
        s1, _ = geom.to_source()
        v1, _ = geom.to_view((500, 500))
        assert v1 == pytest.approx(map_source_to_view(s1, (1000, 500), (500, 500)))


class TestDrawArrow:

    def test_returns_modified_copy(self):
        img = np.zeros((200, 200, 3), dtype=np.uint8)
        out = draw_arrow(img, (20, 100), (180, 100))
        assert out is not img
        assert img.sum() == 0
        assert out[100, 100, 2] > 0

    def test_head_drawn_near_tip(self):
        img = np.zeros((200, 200, 3), dtype=np.uint8)
        out = draw_arrow(img, (20, 100), (180, 100), thickness=2)
        # head strokes go back from the tip at ±30°
        assert out[85:97, 160:178].any()
        assert out[104:116, 160:178].any()
        assert not out[:80].any()
