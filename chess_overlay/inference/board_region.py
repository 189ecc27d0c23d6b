"""
Board Region – pick, pad, square, clamp and crop
================================================

Given the source image and the board-detector's candidate boxes, this
stage produces a fixed-size square crop of the board together with the
rectangle it came from, so that anything found on the crop can be mapped
back onto the source frame.

Steps:
  1. Pick the highest-confidence candidate (first one wins a tie).
  2. Pad the box by ``pad_frac`` of its own width / height.
  3. Optionally grow the shorter side so the box is square, keeping the
     original centre.
  4. Clamp into the image bounds (slide first, shrink only if needed).
  5. Reject degenerate results (≤ ``min_side_px`` on either axis).
  6. Snap to whole pixels, cut the window and resize to
     ``output_size × output_size``.

No perspective correction is attempted: the detector returns an
axis-aligned box and the crop is a plain crop + resize.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from chess_overlay.errors import NoDetectionError
from chess_overlay.inference.diagnostics import PipelineObserver, default_observer
from chess_overlay.inference.geometry import Rect
from chess_overlay.inference.preprocess import image_size
from chess_overlay.models.detections import BoxCandidate


# ── Configuration ──────────────────────────────────────────────────────

@dataclass
class CropConfig:
    """Tuning knobs for board location and cropping."""
    output_size: int = 800          # side of the square crop handed to the piece detector
    pad_frac: float = 0.05          # padding as a fraction of box width / height
    enforce_square: bool = True
    min_side_px: float = 2.0        # crops this small (or smaller) are rejected
    max_long_side: int = 1280       # caller-side downscale before detection

    @classmethod
    def live(cls) -> "CropConfig":
        """Preset used for live camera frames (tighter padding)."""
        return cls(pad_frac=0.03)


# ── Result dataclass ───────────────────────────────────────────────────

@dataclass
class BoardRegion:
    """A normalised board crop plus the metadata to map it back."""
    cropped: np.ndarray                    # output_size × output_size board image
    rect_in_source: Rect                   # crop window in whole source px (post-clamp)
    source_size: Tuple[int, int]           # (w, h) of the image actually cropped
    output_size: int
    confidence: float = 0.0                # board detection confidence
    candidate_rect: Optional[Rect] = field(default=None)  # padded box before squaring

    @property
    def board_size(self) -> Tuple[int, int]:
        h, w = self.cropped.shape[:2]
        return int(w), int(h)


# ── Candidate handling ─────────────────────────────────────────────────

def best_candidate(candidates: Sequence[BoxCandidate]) -> Optional[BoxCandidate]:
    """Highest-confidence candidate; earliest in input order on ties."""
    best: Optional[BoxCandidate] = None
    for cand in candidates:
        if best is None or cand.score > best.score:
            best = cand
    return best


def padded_rect(candidate: BoxCandidate, pad_frac: float) -> Rect:
    rect = Rect.from_center(candidate.x, candidate.y, candidate.width, candidate.height)
    return rect.inset(-rect.width * pad_frac, -rect.height * pad_frac)


def squared_rect(rect: Rect) -> Rect:
    """Grow the shorter side so that width == height, same centre."""
    side = max(rect.width, rect.height)
    return Rect.from_center(rect.mid_x, rect.mid_y, side, side)


def crop_rect(
    candidate: BoxCandidate,
    source_size: Tuple[float, float],
    config: CropConfig,
) -> Tuple[Rect, Rect]:
    """Compute ``(candidate_rect, clamped_rect)`` for *candidate*.

    Raises
    ------
    NoDetectionError
        If the clamped rect is ``min_side_px`` or thinner on either axis.
    """
    padded = padded_rect(candidate, config.pad_frac)
    rect = squared_rect(padded) if config.enforce_square else padded

    bounds = Rect(0.0, 0.0, float(source_size[0]), float(source_size[1]))
    rect = rect.clamped_to(bounds)
    if not rect.is_within(bounds):
        rect = rect.clamped_to(bounds)

    if not (rect.width > config.min_side_px and rect.height > config.min_side_px):
        raise NoDetectionError(
            f"Crop rect too small after clamp: "
            f"({rect.x:.1f}, {rect.y:.1f}, {rect.width:.1f}x{rect.height:.1f})"
        )
    return padded, rect


def pixel_window(rect: Rect, source_size: Tuple[int, int]) -> Rect:
    """Snap *rect* outward to whole source pixels, staying inside the image."""
    w, h = source_size
    x1 = max(0, int(math.floor(rect.x)))
    y1 = max(0, int(math.floor(rect.y)))
    x2 = min(w, max(x1 + 1, int(math.ceil(rect.max_x))))
    y2 = min(h, max(y1 + 1, int(math.ceil(rect.max_y))))
    return Rect(float(x1), float(y1), float(x2 - x1), float(y2 - y1))


def _cut_and_resize(image: np.ndarray, window: Rect, output_size: int) -> np.ndarray:
    x1, y1 = int(window.x), int(window.y)
    x2, y2 = int(window.max_x), int(window.max_y)
    pixels = image[y1:y2, x1:x2]
    return cv2.resize(pixels, (output_size, output_size), interpolation=cv2.INTER_AREA)


# ── Public API ─────────────────────────────────────────────────────────

def locate(
    image: np.ndarray,
    candidates: Sequence[BoxCandidate],
    config: Optional[CropConfig] = None,
    observer: Optional[PipelineObserver] = None,
) -> BoardRegion:
    """Select the board candidate and produce a square crop.

    Parameters
    ----------
    image : np.ndarray
        Upright source image (BGR).  Its *actual* size is used for
        clamping and is reported back in ``BoardRegion.source_size``.
    candidates : sequence of BoxCandidate
        Board boxes from the board detector, in *image* pixel space.
    config : CropConfig, optional
    observer : PipelineObserver, optional

    Returns
    -------
    BoardRegion

    Raises
    ------
    NoDetectionError
        No candidate at all, or the clamped region is degenerate.
    """
    config = config or CropConfig()
    observer = default_observer(observer)
    source_size = image_size(image)

    best = best_candidate(candidates)
    if best is None:
        observer.on_crop_failed("no board candidates")
        raise NoDetectionError("No chessboard detected.")

    try:
        padded, rect = crop_rect(best, source_size, config)
    except NoDetectionError as exc:
        observer.on_crop_failed(str(exc))
        raise

    # the stored rect must match the pixels actually cut
    rect = pixel_window(rect, source_size)
    cropped = _cut_and_resize(image, rect, config.output_size)
    observer.on_crop(rect, source_size, config.output_size)

    return BoardRegion(
        cropped=cropped,
        rect_in_source=rect,
        source_size=source_size,
        output_size=config.output_size,
        confidence=best.score,
        candidate_rect=padded,
    )
