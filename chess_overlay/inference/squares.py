"""
Square Assignment – detections → one piece per square
=====================================================

Each detection is dropped into the square under its box centre.  When
several detections land on the same square the winner is chosen by an
explicit ordered key:

    (piece priority, confidence, box area)

with priority king > queen > rook > bishop = knight > pawn.  A later
criterion only matters when every earlier one is exactly equal; a full
tie keeps the detection that came first.

Independently of who wins a square, the square of every king detection
is remembered per colour so that a king that lost a collision can be
put back later (see ``fen_utils.synthesize``).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from chess_overlay.inference.diagnostics import PipelineObserver, default_observer
from chess_overlay.inference.geometry import SizeLike, as_size, square_name
from chess_overlay.models.detections import Detection
from chess_overlay.models.pieces import fen_char, parse_label, piece_priority


# ── Data structures ────────────────────────────────────────────────────

@dataclass(frozen=True)
class PieceCandidate:
    """One parsed detection competing for a square."""
    fen_char: str        # 'K', 'q', ...
    piece: str           # 'k', 'q', 'r', 'b', 'n', 'p'
    confidence: float
    area: float
    label: str           # raw class label


@dataclass
class SquareAssignment:
    """Resolved square map plus what was needed to resolve it."""
    pieces: Dict[str, str] = field(default_factory=dict)
    candidates: Dict[str, List[PieceCandidate]] = field(default_factory=dict)
    king_targets: Dict[str, str] = field(default_factory=dict)   # "w"/"b" → square


# ── Geometry ───────────────────────────────────────────────────────────

def square_for_point(x: float, y: float, crop_size: SizeLike) -> str:
    """Square under pixel ``(x, y)``; off-board points clamp to the edge."""
    side = as_size(crop_size)[0] / 8.0
    file_idx = max(0, min(7, int(math.floor(x / side))))
    row = max(0, min(7, int(math.floor(y / side))))   # 0 = top = rank 8
    return square_name(file_idx, 8 - row)


# ── Collision policy ──────────────────────────────────────────────────

def candidate_sort_key(cand: PieceCandidate) -> Tuple[int, float, float]:
    return piece_priority(cand.piece), cand.confidence, cand.area


def resolve_square(candidates: List[PieceCandidate]) -> PieceCandidate:
    """Pick the winner of one square (first candidate wins a full tie)."""
    return max(candidates, key=candidate_sort_key)


# ── Public API ─────────────────────────────────────────────────────────

def to_candidate(det: Detection) -> Optional[PieceCandidate]:
    parsed = parse_label(det.label)
    if parsed is None:
        return None
    color, piece = parsed
    return PieceCandidate(
        fen_char=fen_char(color, piece),
        piece=piece,
        confidence=det.score,
        area=det.area,
        label=det.label,
    )


def assign_squares(
    detections: Iterable[Detection],
    crop_size: SizeLike,
    observer: Optional[PipelineObserver] = None,
) -> SquareAssignment:
    """Group detections per square and resolve collisions.

    Detections whose label cannot be parsed are skipped without error.
    """
    observer = default_observer(observer)
    result = SquareAssignment()

    for det in detections:
        cand = to_candidate(det)
        if cand is None:
            continue
        sq = square_for_point(det.x, det.y, crop_size)
        result.candidates.setdefault(sq, []).append(cand)
        if cand.piece == "k":
            result.king_targets["w" if cand.fen_char == "K" else "b"] = sq

    for sq, cands in result.candidates.items():
        winner = resolve_square(cands)
        if len(cands) > 1:
            observer.on_collision(sq, cands, winner)
        result.pieces[sq] = winner.fen_char

    return result
