"""
FEN Utilities – Synthesis & Validation
======================================

Responsibilities:
  1. Turn a resolved square map into a FEN position string.
  2. Put back a king that was detected but lost its square to a
     collision.
  3. Infer castling rights from where the kings and rooks stand.
  4. Check the board field for structural sanity.

Side to move cannot be read from a photo, so it is always ``w``; the
en-passant square is ``-`` and the move counters are ``0 1``.

Structural checks (``validate_fen``), short-circuiting in order:
  • board field present
  • exactly 8 ranks
  • every rank covers exactly 8 squares
  • at least one white and one black king

Only the board field is inspected.  ``legality_warnings`` reports a few
further oddities (extra kings, too many pawns, pawns on the back ranks)
for diagnostics without affecting validity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from chess_overlay.inference.diagnostics import PipelineObserver, default_observer
from chess_overlay.inference.geometry import FILES, SizeLike
from chess_overlay.inference.squares import SquareAssignment, assign_squares
from chess_overlay.models.detections import Detection


# ── Data structures ────────────────────────────────────────────────────

@dataclass
class PositionState:
    """A synthesised position (one piece per square at most)."""
    pieces: Dict[str, str]                     # square → FEN char
    board: str                                 # 8 ranks, '/'-joined, rank 8 first
    castling: str                              # e.g. "KQkq" or "-"
    side_to_move: str = "w"
    en_passant: str = "-"
    halfmove: int = 0
    fullmove: int = 1
    recovered_kings: List[str] = field(default_factory=list)   # squares force-placed

    @property
    def fen(self) -> str:
        return (
            f"{self.board} {self.side_to_move} {self.castling} "
            f"{self.en_passant} {self.halfmove} {self.fullmove}"
        )


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of ``validate_fen``."""
    ok: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


# ── FEN construction ───────────────────────────────────────────────────

def board_string(pieces: Mapping[str, str]) -> str:
    """Render a square map as the FEN board field (rank 8 → 1, a → h)."""
    rows: List[str] = []
    for rank in range(8, 0, -1):
        row_chars: List[str] = []
        empty_count = 0
        for file_ch in FILES:
            ch = pieces.get(f"{file_ch}{rank}")
            if ch:
                if empty_count > 0:
                    row_chars.append(str(empty_count))
                    empty_count = 0
                row_chars.append(ch)
            else:
                empty_count += 1
        if empty_count > 0:
            row_chars.append(str(empty_count))
        rows.append("".join(row_chars))
    return "/".join(rows)


def castling_rights(pieces: Mapping[str, str]) -> str:
    """Castling rights implied by king / rook placement alone.

    ``K`` needs K on e1 and R on h1, ``Q`` K on e1 and R on a1; ``k`` and
    ``q`` mirror that on rank 8.  Returns ``"-"`` when none apply.
    """
    rights = ""
    if pieces.get("e1") == "K":
        if pieces.get("h1") == "R":
            rights += "K"
        if pieces.get("a1") == "R":
            rights += "Q"
    if pieces.get("e8") == "k":
        if pieces.get("h8") == "r":
            rights += "k"
        if pieces.get("a8") == "r":
            rights += "q"
    return rights or "-"


def synthesize(
    assignment: SquareAssignment,
    observer: Optional[PipelineObserver] = None,
) -> PositionState:
    """Build a ``PositionState`` from resolved squares.

    If a colour's king is absent from the board but a king of that colour
    was detected somewhere, the king is forced onto that square,
    overwriting whatever won it.  The opposing king is never overwritten;
    the clash is reported through ``on_king_conflict`` and the position
    stays invalid, so ``validate_fen`` rejects it.
    """
    observer = default_observer(observer)
    pieces = dict(assignment.pieces)
    recovered: List[str] = []

    for color, king in (("w", "K"), ("b", "k")):
        target = assignment.king_targets.get(color)
        if king in pieces.values() or target is None:
            continue
        replaced = pieces.get(target)
        if replaced is not None and replaced.lower() == "k":
            observer.on_king_conflict(color, target, replaced)
            continue
        pieces[target] = king
        recovered.append(target)
        observer.on_king_recovered(color, target, replaced)

    return PositionState(
        pieces=pieces,
        board=board_string(pieces),
        castling=castling_rights(pieces),
        recovered_kings=recovered,
    )


def build_position(
    detections: Iterable[Detection],
    crop_size: SizeLike,
    observer: Optional[PipelineObserver] = None,
) -> PositionState:
    """Assign squares and synthesise in one go."""
    observer = default_observer(observer)
    return synthesize(assign_squares(detections, crop_size, observer), observer)


def build_fen(
    detections: Iterable[Detection],
    crop_size: SizeLike,
    observer: Optional[PipelineObserver] = None,
) -> str:
    """Full FEN string for already-filtered detections on a crop."""
    return build_position(detections, crop_size, observer).fen


# ── Validation ─────────────────────────────────────────────────────────

def board_field(fen: str) -> str:
    parts = (fen or "").split()
    return parts[0] if parts else ""


def validate_fen(fen: str) -> ValidationResult:
    """Structural sanity check of the board field of *fen*."""
    board = board_field(fen)
    if not board:
        return ValidationResult(False, "Empty FEN")

    ranks = board.split("/")
    if len(ranks) != 8:
        return ValidationResult(False, "FEN must have 8 ranks")

    has_white_king = False
    has_black_king = False
    for rank in ranks:
        count = 0
        for ch in rank:
            if "0" <= ch <= "9":
                count += int(ch)
            else:
                count += 1
                if ch == "K":
                    has_white_king = True
                elif ch == "k":
                    has_black_king = True
        if count != 8:
            return ValidationResult(False, f"Rank '{rank}' does not sum to 8 squares")

    if not (has_white_king and has_black_king):
        return ValidationResult(
            False,
            f"Missing king(s): white={str(has_white_king).lower()}, "
            f"black={str(has_black_king).lower()}",
        )
    return ValidationResult(True)


def legality_warnings(fen: str) -> List[str]:
    """Soft legality findings for a structurally valid board field."""
    warnings: List[str] = []
    ranks = board_field(fen).split("/")
    if len(ranks) != 8:
        return warnings

    all_pieces = [ch for rank in ranks for ch in rank if not "0" <= ch <= "9"]

    wk = all_pieces.count("K")
    bk = all_pieces.count("k")
    if wk > 1:
        warnings.append(f"White king count = {wk} (expected 1)")
    if bk > 1:
        warnings.append(f"Black king count = {bk} (expected 1)")

    wp = all_pieces.count("P")
    bp = all_pieces.count("p")
    if wp > 8:
        warnings.append(f"White pawn count = {wp} (max 8)")
    if bp > 8:
        warnings.append(f"Black pawn count = {bp} (max 8)")

    if any(ch in ("P", "p") for ch in ranks[0] + ranks[7]):
        warnings.append("Pawn found on rank 1 or 8 (illegal)")

    return warnings
