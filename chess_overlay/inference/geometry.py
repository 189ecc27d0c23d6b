"""
Move Geometry – Squares → pixels → source frame → view
======================================================

Three coordinate spaces are involved when a move arrow is drawn over a
live preview:

  1. **Crop space**   – the square board image (e.g. 800×800) that the
                        piece detector saw.  Rank 8 is at the top.
  2. **Source space** – the full photo / camera frame the crop was cut
                        from, described by ``crop_rect`` (in source px).
  3. **View space**   – the on-screen preview, which shows the source
                        with *aspect-fill* scaling (cover, then centre).

Each hop is its own pure function so a mapping bug can be pinned to a
single stage.  A move is always projected crop → source → view in that
order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import cv2
import numpy as np

Point = Tuple[float, float]
Size = Tuple[float, float]
SizeLike = Union[int, float, Tuple[float, float]]

FILES = "abcdefgh"

# FEN order: a8 … h8, a7 … h1
SQUARES: Tuple[str, ...] = tuple(
    f"{f}{r}" for r in range(8, 0, -1) for f in FILES
)


# ── Rectangles ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle, origin at top-left."""
    x: float
    y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2

    @classmethod
    def from_center(cls, cx: float, cy: float, w: float, h: float) -> "Rect":
        return cls(cx - w / 2, cy - h / 2, w, h)

    def inset(self, dx: float, dy: float) -> "Rect":
        """Shrink by *dx*/*dy* on every side (negative values grow)."""
        return Rect(self.x + dx, self.y + dy, self.width - 2 * dx, self.height - 2 * dy)

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x < self.max_x and self.y <= y < self.max_y

    def is_within(self, bounds: "Rect") -> bool:
        return (
            self.x >= bounds.x
            and self.y >= bounds.y
            and self.max_x <= bounds.max_x
            and self.max_y <= bounds.max_y
        )

    def clamped_to(self, bounds: "Rect") -> "Rect":
        """Slide the rect inside *bounds*, shrinking only if it is too big.

        Origin is pushed in first, then pulled back from the far edge,
        then the size is capped and the origin re-checked.
        """
        x, y, w, h = self.x, self.y, self.width, self.height
        if x < bounds.x:
            x = bounds.x
        if y < bounds.y:
            y = bounds.y
        if x + w > bounds.max_x:
            x = bounds.max_x - w
        if y + h > bounds.max_y:
            y = bounds.max_y - h
        w = min(w, bounds.width)
        h = min(h, bounds.height)
        if x < bounds.x:
            x = bounds.x
        if y < bounds.y:
            y = bounds.y
        return Rect(x, y, w, h)


def as_size(size: SizeLike) -> Size:
    """Normalise an ``int`` side length or a ``(w, h)`` pair to ``(w, h)``."""
    if isinstance(size, (int, float)):
        return float(size), float(size)
    w, h = size
    return float(w), float(h)


# ── Square keys ────────────────────────────────────────────────────────

def parse_square(square: str) -> Optional[Tuple[int, int]]:
    """``"e4"`` → ``(4, 4)`` as (file index 0–7, rank 1–8); ``None`` if invalid."""
    if len(square) != 2:
        return None
    file_ch, rank_ch = square[0].lower(), square[1]
    if file_ch not in FILES or rank_ch not in "12345678":
        return None
    return FILES.index(file_ch), int(rank_ch)


def square_name(file_idx: int, rank: int) -> str:
    return f"{FILES[file_idx]}{rank}"


def square_center(square: str, crop_size: SizeLike) -> Point:
    """Pixel centre of *square* inside a crop (rank 8 on top).

    Raises
    ------
    ValueError
        If *square* is not one of the 64 algebraic keys.
    """
    parsed = parse_square(square)
    if parsed is None:
        raise ValueError(f"Not a board square: {square!r}")
    file_idx, rank = parsed
    side = as_size(crop_size)[0] / 8.0
    return (file_idx + 0.5) * side, (8 - rank + 0.5) * side


# ── Space-to-space mapping ─────────────────────────────────────────────

def map_crop_to_source(point: Point, crop_rect: Rect, crop_size: SizeLike) -> Point:
    """Map a crop-space point into the source frame the crop was cut from."""
    crop_w, crop_h = as_size(crop_size)
    sx = crop_rect.width / crop_w
    sy = crop_rect.height / crop_h
    return crop_rect.x + point[0] * sx, crop_rect.y + point[1] * sy


def aspect_fill_transform(source_size: SizeLike, view_size: SizeLike) -> Tuple[float, float, float]:
    """Return ``(scale, offset_x, offset_y)`` for aspect-fill display.

    Raises
    ------
    ValueError
        If the source is degenerate (≤ 1 px along either axis).
    """
    src_w, src_h = as_size(source_size)
    view_w, view_h = as_size(view_size)
    if src_w <= 1 or src_h <= 1:
        raise ValueError(f"Degenerate source size: {src_w}x{src_h}")
    scale = max(view_w / src_w, view_h / src_h)
    off_x = (view_w - src_w * scale) * 0.5
    off_y = (view_h - src_h * scale) * 0.5
    return scale, off_x, off_y


def map_source_to_view(point: Point, source_size: SizeLike, view_size: SizeLike) -> Point:
    """Map a source-frame point into an aspect-filled view."""
    scale, off_x, off_y = aspect_fill_transform(source_size, view_size)
    return off_x + point[0] * scale, off_y + point[1] * scale


# ── Moves ──────────────────────────────────────────────────────────────

def parse_uci(move: str) -> Optional[Tuple[str, str]]:
    """Split a UCI move into its two squares.

    Anything shorter than four characters, or whose squares are not
    board keys, yields ``None``; the promotion letter is ignored.
    """
    if move is None or len(move) < 4:
        return None
    src, dst = move[:2].lower(), move[2:4].lower()
    if parse_square(src) is None or parse_square(dst) is None:
        return None
    return src, dst


@dataclass(frozen=True)
class MoveGeometry:
    """Arrow endpoints in crop space plus the frames needed to project them."""
    source_size: Size        # full frame the crop was cut from
    crop_rect: Rect          # where the board lives in that frame
    board_size: Size         # crop pixel size (usually 800×800)
    p1: Point                # arrow start, crop space
    p2: Point                # arrow end, crop space

    def to_source(self) -> Tuple[Point, Point]:
        return (
            map_crop_to_source(self.p1, self.crop_rect, self.board_size),
            map_crop_to_source(self.p2, self.crop_rect, self.board_size),
        )

    def to_view(self, view_size: SizeLike) -> Tuple[Point, Point]:
        s1, s2 = self.to_source()
        return (
            map_source_to_view(s1, self.source_size, view_size),
            map_source_to_view(s2, self.source_size, view_size),
        )


def move_geometry(
    move: str,
    source_size: SizeLike,
    crop_rect: Rect,
    board_size: SizeLike,
) -> Optional[MoveGeometry]:
    """Crop-space arrow for *move*, or ``None`` for a malformed move."""
    squares = parse_uci(move)
    if squares is None:
        return None
    src, dst = squares
    return MoveGeometry(
        source_size=as_size(source_size),
        crop_rect=crop_rect,
        board_size=as_size(board_size),
        p1=square_center(src, board_size),
        p2=square_center(dst, board_size),
    )


# ── Rendering ──────────────────────────────────────────────────────────

def draw_arrow(
    image: np.ndarray,
    start: Point,
    end: Point,
    color: Tuple[int, int, int] = (0, 0, 255),
    thickness: int = 6,
    tip_length: float = 18.0,
) -> np.ndarray:
    """Draw a move arrow (shaft + two head strokes at ±30°) on a copy of *image*."""
    canvas = image.copy()
    p1 = (int(round(start[0])), int(round(start[1])))
    p2 = (int(round(end[0])), int(round(end[1])))
    cv2.line(canvas, p1, p2, color, thickness, cv2.LINE_AA)

    angle = math.atan2(end[1] - start[1], end[0] - start[0])
    for delta in (-math.pi / 6, math.pi / 6):
        tip = (
            int(round(end[0] - tip_length * math.cos(angle + delta))),
            int(round(end[1] - tip_length * math.sin(angle + delta))),
        )
        cv2.line(canvas, p2, tip, color, thickness, cv2.LINE_AA)
    return canvas
