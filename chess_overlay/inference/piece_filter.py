"""
Piece Filter – drop implausible detections
==========================================

Raw detector output on a board crop contains duplicates, low-confidence
guesses and boxes from the table / clock / hands around the board.  A
detection survives only if it passes, in order:

  1. **Confidence** – ``min_confidence``; kings use the relaxed
     ``min_confidence_king`` because a missing king invalidates the
     whole position.
  2. **Interior**   – its centre lies inside the board inset by
     ``edge_trim_squares`` squares on every side.
  3. **Size**       – its short side is at least ``min_size_frac`` and
     its long side at most ``max_size_frac`` of one square.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from chess_overlay.inference.diagnostics import PipelineObserver, default_observer
from chess_overlay.inference.geometry import Rect, SizeLike, as_size
from chess_overlay.models.detections import Detection
from chess_overlay.models.pieces import is_king_label


@dataclass
class FilterConfig:
    """Thresholds for ``filter_detections``."""
    min_confidence: float = 0.30
    min_confidence_king: float = 0.22
    edge_trim_squares: float = 0.15   # 0.15 → centres must lie in [0.15, 7.85] squares
    min_size_frac: float = 0.35
    max_size_frac: float = 1.60

    @classmethod
    def live(cls) -> "FilterConfig":
        """Preset used for live camera frames (slightly wider interior)."""
        return cls(edge_trim_squares=0.12)


def interior_rect(crop_size: SizeLike, edge_trim_squares: float) -> Rect:
    w, h = as_size(crop_size)
    inset = edge_trim_squares * (w / 8.0)
    return Rect(0.0, 0.0, w, h).inset(inset, inset)


def passes_confidence(det: Detection, config: FilterConfig) -> bool:
    threshold = config.min_confidence_king if is_king_label(det.label) else config.min_confidence
    return det.score >= threshold


def passes_size(det: Detection, square: float, config: FilterConfig) -> bool:
    wf = det.width / square
    hf = det.height / square
    return min(wf, hf) >= config.min_size_frac and max(wf, hf) <= config.max_size_frac


def filter_detections(
    detections: Iterable[Detection],
    crop_size: SizeLike,
    config: Optional[FilterConfig] = None,
    observer: Optional[PipelineObserver] = None,
) -> List[Detection]:
    """Keep only plausible on-board piece detections, preserving order.

    Parameters
    ----------
    detections : iterable of Detection
        Boxes in crop pixel space.
    crop_size : int or (w, h)
        Size of the crop the detections refer to.
    config : FilterConfig, optional
    observer : PipelineObserver, optional
        Receives the kept / total counts.

    Returns
    -------
    list[Detection]
    """
    config = config or FilterConfig()
    observer = default_observer(observer)
    square = as_size(crop_size)[0] / 8.0
    inner = interior_rect(crop_size, config.edge_trim_squares)

    kept: List[Detection] = []
    total = 0
    for det in detections:
        total += 1
        if not passes_confidence(det, config):
            continue
        if not inner.contains(det.x, det.y):
            continue
        if not passes_size(det, square, config):
            continue
        kept.append(det)

    observer.on_filtered(len(kept), total)
    return kept
