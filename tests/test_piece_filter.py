"""Plausibility filtering of piece detections on an 800×800 crop."""

import pytest

from chess_overlay.inference.piece_filter import FilterConfig, filter_detections, interior_rect
from chess_overlay.models.detections import Detection


class TestConfidence:

    def test_low_confidence_dropped(self, det):
        assert filter_detections([det("d4", "w-queen", confidence=0.29)], 800) == []

    def test_threshold_is_inclusive(self, det):
        d = det("d4", "w-queen", confidence=0.30)
        assert filter_detections([d], 800) == [d]

    def test_king_uses_relaxed_threshold(self, det):
        king = det("e1", "w-king", confidence=0.25)
        queen = det("d1", "w-queen", confidence=0.25)
        assert filter_detections([king, queen], 800) == [king]

    def test_missing_confidence_is_zero(self):
        d = Detection(450, 450, 80, 80, "w-pawn", None)
        assert filter_detections([d], 800) == []


class TestInterior:

    def test_far_outside_dropped_despite_confidence(self):
        d = Detection(-50, 400, 80, 80, "w-queen", 0.99)
        assert filter_detections([d], 800) == []

    def test_edge_band_dropped(self):
        # 0.15 squares = 15 px inset
        inside = Detection(16, 400, 80, 80, "w-rook", 0.9)
        outside = Detection(14, 400, 80, 80, "w-rook", 0.9)
        assert filter_detections([inside, outside], 800) == [inside]

    def test_interior_rect(self):
        rect = interior_rect(800, 0.15)
        assert rect.x == pytest.approx(15)
        assert rect.max_x == pytest.approx(785)

    def test_live_preset_is_wider(self):
        d = Detection(13, 400, 80, 80, "w-rook", 0.9)
        assert filter_detections([d], 800) == []
        assert filter_detections([d], 800, FilterConfig.live()) == [d]


class TestSize:

    @pytest.mark.parametrize("size", [(20, 90), (80, 170), (30, 30)])
    def test_implausible_size_dropped(self, det, size):
        assert filter_detections([det("c3", "b-pawn", size=size)], 800) == []

    @pytest.mark.parametrize("size", [(35, 35), (160, 160), (60, 120)])
    def test_window_bounds_inclusive(self, det, size):
        assert len(filter_detections([det("c3", "b-pawn", size=size)], 800)) == 1


class TestOrdering:

    def test_order_preserved_and_counts_reported(self, det, recorder):
        dets = [
            det("a2", "w-pawn"),
            det("b2", "w-pawn", confidence=0.1),
            det("c2", "w-pawn"),
            Detection(900, 900, 80, 80, "w-pawn", 0.9),
        ]
        kept = filter_detections(dets, 800, observer=recorder)
        assert kept == [dets[0], dets[2]]
        assert recorder.named("filtered") == [{"kept": 2, "total": 4}]

    def test_accepts_size_pair(self, det):
        d = det("d4", "w-queen")
        assert filter_detections([d], (800, 800)) == [d]
