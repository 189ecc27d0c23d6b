"""
Inference Pipeline – Photo / frame → FEN + move overlay
=======================================================

This is the single-call entry point for production inference.

Pipeline stages:
  1. Board location   – external board detector + pad / square / clamp
  2. Crop             – normalise to 800×800
  3. Piece detection  – external piece detector on the crop
  4. Filtering        – confidence, interior and size checks
  5. FEN synthesis    – square assignment, king recovery, castling
  6. Validation       – structural sanity of the board field

Once a best move is known (from an engine the caller talks to),
``move_overlay`` projects it crop → source → view for drawing.

The pipeline holds configuration and collaborators only; every call is
independent, so one instance may serve several threads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from chess_overlay.errors import AnalysisCancelled
from chess_overlay.inference.board_region import BoardRegion, CropConfig, locate
from chess_overlay.inference.diagnostics import PipelineObserver, default_observer
from chess_overlay.inference.fen_utils import (
    PositionState,
    ValidationResult,
    build_position,
    legality_warnings,
    validate_fen,
)
from chess_overlay.inference.geometry import (
    MoveGeometry,
    Point,
    SizeLike,
    draw_arrow,
    move_geometry,
)
from chess_overlay.inference.piece_filter import FilterConfig, filter_detections
from chess_overlay.models.detections import BoxCandidate, Detection, scale_detections

log = logging.getLogger(__name__)

BoardDetector = Callable[[np.ndarray], Sequence[BoxCandidate]]
PieceDetector = Callable[[np.ndarray], Sequence[Detection]]


# ── Result dataclass ──────────────────────────────────────────────────

@dataclass
class RecognitionResult:
    """Full output of the recognition pipeline."""
    fen: str                                       # full FEN ("<board> w <castling> - 0 1")
    is_valid: bool                                 # structural validation passed
    reason: Optional[str]                          # why validation failed, if it did
    region: BoardRegion                            # crop + mapping metadata
    position: PositionState
    detections_raw: List[Detection] = field(default_factory=list)
    detections_kept: List[Detection] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)   # soft legality findings


# ── Pipeline class ─────────────────────────────────────────────────────

class ChessOverlayPipeline:
    """End-to-end board photo → FEN → move overlay.

    Parameters
    ----------
    board_detector : callable, optional
        ``image -> [BoxCandidate]``.  Required for ``locate_and_crop`` /
        ``recognize``.
    piece_detector : callable, optional
        ``crop -> [Detection]`` in crop pixel space.  Required for
        ``recognize``.
    crop_config : CropConfig, optional
    filter_config : FilterConfig, optional
    observer : PipelineObserver, optional
        Diagnostics sink; defaults to logging.
    piece_detector_size : (w, h), optional
        Image size the piece detector reports coordinates in, when it is
        not the crop itself (e.g. a hosted API that resizes uploads).
        Raw piece detections are rescaled to the crop before filtering.
    """

    def __init__(
        self,
        board_detector: Optional[BoardDetector] = None,
        piece_detector: Optional[PieceDetector] = None,
        crop_config: Optional[CropConfig] = None,
        filter_config: Optional[FilterConfig] = None,
        observer: Optional[PipelineObserver] = None,
        piece_detector_size: Optional[Tuple[float, float]] = None,
    ) -> None:
        self.board_detector = board_detector
        self.piece_detector = piece_detector
        self.crop_config = crop_config or CropConfig()
        self.filter_config = filter_config or FilterConfig()
        self.observer = default_observer(observer)
        self.piece_detector_size = piece_detector_size

    # ── Public API ─────────────────────────────────────────────────────

    def locate_and_crop(self, image: np.ndarray) -> BoardRegion:
        """Detect the board in *image* and return the square crop.

        Raises
        ------
        NoDetectionError
        """
        if self.board_detector is None:
            raise RuntimeError("No board detector configured")
        candidates = list(self.board_detector(image))
        return locate(image, candidates, self.crop_config, self.observer)

    def filter(self, detections: Sequence[Detection], crop_size: SizeLike) -> List[Detection]:
        return filter_detections(detections, crop_size, self.filter_config, self.observer)

    def position(self, detections: Sequence[Detection], crop_size: SizeLike) -> PositionState:
        """Filter raw crop detections and synthesise the position."""
        kept = self.filter(detections, crop_size)
        return build_position(kept, crop_size, self.observer)

    def build_position(self, detections: Sequence[Detection], crop_size: SizeLike) -> str:
        """Raw crop detections → full FEN string."""
        return self.position(detections, crop_size).fen

    def validate(self, fen: str) -> ValidationResult:
        result = validate_fen(fen)
        self.observer.on_validation(fen, result.ok, result.reason)
        return result

    def move_geometry(self, uci: str, region: BoardRegion) -> Optional[MoveGeometry]:
        return move_geometry(uci, region.source_size, region.rect_in_source, region.board_size)

    def move_overlay(
        self,
        uci: str,
        region: BoardRegion,
        view_size: SizeLike,
    ) -> Optional[Tuple[Point, Point]]:
        """View-space arrow endpoints for *uci*, or ``None`` if malformed."""
        geometry = self.move_geometry(uci, region)
        if geometry is None:
            return None
        return geometry.to_view(view_size)

    def recognize(
        self,
        image: np.ndarray,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> RecognitionResult:
        """Run every stage on an upright source image.

        *should_cancel* is polled between stages; when it returns true
        the run stops with ``AnalysisCancelled``.

        Raises
        ------
        NoDetectionError
            No usable board region.
        AnalysisCancelled
        """
        if self.piece_detector is None:
            raise RuntimeError("No piece detector configured")

        def checkpoint(stage: str) -> None:
            if should_cancel is not None and should_cancel():
                log.info("Analysis cancelled before %s", stage)
                raise AnalysisCancelled(stage)

        checkpoint("board location")
        region = self.locate_and_crop(image)

        checkpoint("piece detection")
        raw = list(self.piece_detector(region.cropped))
        if self.piece_detector_size is not None:
            raw = scale_detections(raw, self.piece_detector_size, region.board_size)

        checkpoint("filtering")
        kept = self.filter(raw, region.board_size)

        checkpoint("synthesis")
        position = build_position(kept, region.board_size, self.observer)

        checkpoint("validation")
        check = self.validate(position.fen)

        return RecognitionResult(
            fen=position.fen,
            is_valid=check.ok,
            reason=check.reason,
            region=region,
            position=position,
            detections_raw=raw,
            detections_kept=kept,
            warnings=legality_warnings(position.fen) if check.ok else [],
        )

    # ── Debug visualisation ────────────────────────────────────────────

    def render_move(self, region: BoardRegion, uci: str) -> Optional[np.ndarray]:
        """The board crop with an arrow for *uci*, or ``None`` if malformed."""
        geometry = self.move_geometry(uci, region)
        if geometry is None:
            return None
        return draw_arrow(region.cropped, geometry.p1, geometry.p2)

    def visualize(
        self,
        result: RecognitionResult,
        uci: Optional[str] = None,
        save_path: Optional[str] = None,
    ) -> np.ndarray:
        """Draw kept detections, the FEN and (optionally) a move arrow on the crop."""
        vis = result.region.cropped.copy()
        h, w = vis.shape[:2]
        cell = w // 8

        for i in range(1, 8):
            cv2.line(vis, (i * cell, 0), (i * cell, h), (80, 80, 80), 1)
            cv2.line(vis, (0, i * cell), (w, i * cell), (80, 80, 80), 1)

        for det in result.detections_kept:
            x1, y1 = int(det.x - det.width / 2), int(det.y - det.height / 2)
            x2, y2 = int(det.x + det.width / 2), int(det.y + det.height / 2)
            cv2.rectangle(vis, (x1, y1), (x2, y2), (0, 200, 0), 1)
            cv2.putText(
                vis, f"{det.label} {det.score:.0%}",
                (x1 + 2, max(10, y1 - 4)),
                cv2.FONT_HERSHEY_SIMPLEX, 0.35, (0, 200, 0), 1,
            )

        if uci:
            geometry = self.move_geometry(uci, result.region)
            if geometry is not None:
                vis = draw_arrow(vis, geometry.p1, geometry.p2)

        cv2.putText(
            vis, f"FEN: {result.fen}",
            (10, h - 10),
            cv2.FONT_HERSHEY_SIMPLEX, 0.45, (255, 255, 255), 1,
        )

        if save_path:
            cv2.imwrite(save_path, vis)
            log.info("Saved debug image to %s", save_path)

        return vis
