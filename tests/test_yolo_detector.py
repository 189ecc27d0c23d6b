"""YOLO adapters driven by a fake model (no ultralytics needed)."""

import numpy as np
import pytest

from chess_overlay.models.detections import BoxCandidate
from chess_overlay.models.yolo_detector import (
    YoloBoardDetector,
    YoloPieceDetector,
    xyxy_to_center,
)


class FakeBoxes:
    def __init__(self, xyxy, conf, cls):
        self.xyxy = np.asarray(xyxy, dtype=np.float32)
        self.conf = np.asarray(conf, dtype=np.float32)
        self.cls = np.asarray(cls, dtype=np.float32)

    def __len__(self):
        return len(self.conf)


class FakeResult:
    def __init__(self, boxes, names=None):
        self.boxes = boxes
        self.names = names or {}


class FakeModel:
    def __init__(self, results):
        self.results = results
        self.calls = []

    def predict(self, source, conf, iou, verbose):
        self.calls.append({"conf": conf, "iou": iou})
        return self.results


def test_xyxy_to_center():
    assert xyxy_to_center(10, 20, 50, 100) == (30, 60, 40, 80)


class TestBoardDetector:

    def test_candidates(self):
        boxes = FakeBoxes([[300, 100, 700, 500], [0, 0, 10, 10]], [0.9, 0.4], [0, 0])
        model = FakeModel([FakeResult(boxes)])
        det = YoloBoardDetector("board.pt", model=model)
        out = det(np.zeros((600, 1000, 3), dtype=np.uint8))
        assert len(out) == 2
        assert isinstance(out[0], BoxCandidate)
        assert (out[0].x, out[0].y, out[0].width, out[0].height) == (500, 300, 400, 400)
        assert out[0].confidence == pytest.approx(0.9)
        assert model.calls == [{"conf": 0.25, "iou": 0.20}]

    def test_no_results(self):
        det = YoloBoardDetector("board.pt", model=FakeModel([]))
        assert det(np.zeros((10, 10, 3), dtype=np.uint8)) == []

    def test_empty_boxes(self):
        det = YoloBoardDetector("board.pt", model=FakeModel([FakeResult(FakeBoxes([], [], []))]))
        assert det(np.zeros((10, 10, 3), dtype=np.uint8)) == []


class TestPieceDetector:

    def test_labels_from_model_names(self):
        boxes = FakeBoxes([[410, 710, 490, 790], [10, 10, 90, 90]], [0.8, 0.6], [3, 7])
        result = FakeResult(boxes, names={3: "w-king", 7: "b-rook"})
        det = YoloPieceDetector("pieces.pt", model=FakeModel([result]))
        out = det(np.zeros((800, 800, 3), dtype=np.uint8))
        assert [d.label for d in out] == ["w-king", "b-rook"]
        assert (out[0].x, out[0].y, out[0].width) == pytest.approx((450, 750, 80))

    def test_explicit_class_names(self):
        boxes = FakeBoxes([[0, 0, 10, 10]], [0.5], [1])
        det = YoloPieceDetector(
            "pieces.pt",
            model=FakeModel([FakeResult(boxes)]),
            class_names=["w-pawn", "b-pawn"],
        )
        (d,) = det(np.zeros((10, 10, 3), dtype=np.uint8))
        assert d.label == "b-pawn"

    def test_unknown_class_index(self):
        boxes = FakeBoxes([[0, 0, 10, 10]], [0.5], [12])
        det = YoloPieceDetector("pieces.pt", model=FakeModel([FakeResult(boxes, {0: "w-pawn"})]))
        (d,) = det(np.zeros((10, 10, 3), dtype=np.uint8))
        assert d.label == "12"
