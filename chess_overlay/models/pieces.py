"""
Piece Vocabulary – Detector labels ↔ FEN characters
===================================================

Piece detectors in the wild do not agree on a class naming scheme.
Labels seen in practice include ``"w-king"``, ``"white-king"``,
``"black_queen"``, ``"b-q"`` and versioned variants such as
``"b-queen-v2"``.  ``parse_label`` reduces all of them to a
``(colour, piece)`` pair:

  • colour  – ``"w"`` or ``"b"``
  • piece   – one of ``k q r b n p``

The colour token is located first and excluded from the piece search,
so the ``b`` in ``"b-king"`` is never mistaken for a bishop.
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Tuple


# ── Canonical vocabulary ──────────────────────────────────────────────

COLOR_TOKENS: Dict[str, str] = {
    "w": "w",
    "white": "w",
    "b": "b",
    "black": "b",
}

PIECE_WORDS: Dict[str, str] = {
    "king": "k",
    "queen": "q",
    "rook": "r",
    "bishop": "b",
    "knight": "n",
    "pawn": "p",
}

PIECE_LETTERS: Tuple[str, ...] = ("k", "q", "r", "b", "n", "p")

# Collision priority: king > queen > rook > bishop = knight > pawn
PIECE_PRIORITY: Dict[str, int] = {
    "k": 5,
    "q": 4,
    "r": 3,
    "b": 2,
    "n": 2,
    "p": 1,
}

_TOKEN_SPLIT = re.compile(r"[-_\s]+")


# ── Parsing ────────────────────────────────────────────────────────────

def parse_label(label: str) -> Optional[Tuple[str, str]]:
    """Parse a detector class label into ``(colour, piece)``.

    Returns ``None`` for anything that does not name both a colour and a
    piece; callers drop those detections silently.

    >>> parse_label("white-king")
    ('w', 'k')
    >>> parse_label("b-queen-v2")
    ('b', 'q')
    >>> parse_label("board") is None
    True
    """
    if not label:
        return None
    tokens = [t for t in _TOKEN_SPLIT.split(label.strip().lower()) if t]

    color: Optional[str] = None
    color_idx: Optional[int] = None
    for i, tok in enumerate(tokens):
        if tok in COLOR_TOKENS:
            color = COLOR_TOKENS[tok]
            color_idx = i
            break

    rest = [tok for i, tok in enumerate(tokens) if i != color_idx]

    piece: Optional[str] = None
    for tok in rest:
        if tok in PIECE_WORDS:
            piece = PIECE_WORDS[tok]
            break
    if piece is None:
        for tok in rest:
            if tok in PIECE_LETTERS:
                piece = tok
                break

    if color is None or piece is None:
        return None
    return color, piece


def fen_char(color: str, piece: str) -> str:
    """Uppercase for white, lowercase for black."""
    return piece.upper() if color == "w" else piece.lower()


def is_king_label(label: str) -> bool:
    parsed = parse_label(label)
    return parsed is not None and parsed[1] == "k"


def piece_priority(piece: str) -> int:
    return PIECE_PRIORITY.get(piece.lower(), 0)
