"""
Shared fixtures: synthetic crops and detections placed on named squares.

All detections live on an 800×800 crop, so one square is 100 px.
"""

import numpy as np
import pytest

from chess_overlay.inference.diagnostics import RecordingObserver
from chess_overlay.inference.geometry import square_center
from chess_overlay.models.detections import Detection

CROP = 800


def make_detection(square, label, confidence=0.9, size=(80, 90), offset=(0, 0)):
    cx, cy = square_center(square, CROP)
    return Detection(
        x=cx + offset[0],
        y=cy + offset[1],
        width=size[0],
        height=size[1],
        label=label,
        confidence=confidence,
    )


START_POSITION = [
    ("a1", "w-rook"), ("b1", "w-knight"), ("c1", "w-bishop"), ("d1", "w-queen"),
    ("e1", "w-king"), ("f1", "w-bishop"), ("g1", "w-knight"), ("h1", "w-rook"),
    ("a8", "b-rook"), ("b8", "b-knight"), ("c8", "b-bishop"), ("d8", "b-queen"),
    ("e8", "b-king"), ("f8", "b-bishop"), ("g8", "b-knight"), ("h8", "b-rook"),
] + [(f"{f}2", "w-pawn") for f in "abcdefgh"] + [(f"{f}7", "b-pawn") for f in "abcdefgh"]


@pytest.fixture
def det():
    """Factory: ``det("e1", "w-king", confidence=0.4)``."""
    return make_detection


@pytest.fixture
def start_detections():
    return [make_detection(sq, label) for sq, label in START_POSITION]


@pytest.fixture
def recorder():
    return RecordingObserver()


@pytest.fixture
def source_image():
    """1000×600 BGR frame with a bright board-ish patch in the middle."""
    img = np.zeros((600, 1000, 3), dtype=np.uint8)
    img[100:500, 300:700] = 200
    return img
