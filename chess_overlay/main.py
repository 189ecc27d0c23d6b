"""
Chess Overlay – Main Entry Point
================================

Commands:

  1. **Recognize** – Locate the board in a photo, detect pieces with
                     YOLO models and print the reconstructed FEN.
                     With ``--move`` also print where the move arrow
                     lands in the preview.
  2. **Validate**  – Structural check of a FEN string.
  3. **Overlay**   – Pure geometry: project a move from crop space to an
                     aspect-filled view.

Usage examples
--------------

**Recognition**::

    python chess_overlay.py recognize \\
        --image board.jpg \\
        --board-model weights/board.pt \\
        --piece-model weights/pieces.pt \\
        --move e2e4 --view 390x844 \\
        --save-debug debug.png

**Validation**::

    python chess_overlay.py validate "8/8/8/8/8/8/8/4K2k w - - 0 1"

**Overlay**::

    python chess_overlay.py overlay --move e2e4 \\
        --crop-rect 100,50,600,600 --source 1280x720 --view 390x844
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Tuple

import cv2

from chess_overlay.inference.geometry import Rect, move_geometry

log = logging.getLogger("chess_overlay")


def _parse_size(text: str) -> Tuple[float, float]:
    try:
        w, h = text.lower().split("x")
        return float(w), float(h)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected WxH, got {text!r}")


def _parse_rect(text: str) -> Rect:
    try:
        x, y, w, h = (float(v) for v in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected X,Y,W,H, got {text!r}")
    return Rect(x, y, w, h)


def _fmt_point(p: Tuple[float, float]) -> str:
    return f"({p[0]:.1f}, {p[1]:.1f})"


# ═══════════════════════════════════════════════════════════════════════
# Recognition
# ═══════════════════════════════════════════════════════════════════════

def cmd_recognize(args: argparse.Namespace) -> int:
    """Run the recognition pipeline on a photo."""
    from chess_overlay.errors import NoDetectionError
    from chess_overlay.inference.board_region import CropConfig
    from chess_overlay.inference.pipeline import ChessOverlayPipeline
    from chess_overlay.inference.piece_filter import FilterConfig
    from chess_overlay.inference.preprocess import downscale_if_needed, normalize_orientation
    from chess_overlay.models.yolo_detector import YoloBoardDetector, YoloPieceDetector

    image = cv2.imread(args.image)
    if image is None:
        log.error("Could not read image: %s", args.image)
        return 1

    crop_config = CropConfig(
        output_size=args.output_size,
        pad_frac=args.pad_frac,
        max_long_side=args.max_long_side,
    )
    image = normalize_orientation(image, args.exif_orientation)
    image = downscale_if_needed(image, crop_config.max_long_side)

    pipeline = ChessOverlayPipeline(
        board_detector=YoloBoardDetector(args.board_model, conf=args.board_conf),
        piece_detector=YoloPieceDetector(args.piece_model, conf=args.piece_conf),
        crop_config=crop_config,
        filter_config=FilterConfig(min_confidence=args.min_confidence),
    )

    try:
        result = pipeline.recognize(image)
    except NoDetectionError as exc:
        log.error("%s", exc)
        return 2

    print("\n" + "=" * 60)
    print("  CHESS OVERLAY RESULT")
    print("=" * 60)
    print(f"  FEN            : {result.fen}")
    print(f"  Valid position : {result.is_valid}")
    if result.reason:
        print(f"  Reason         : {result.reason}")
    print(f"  Detections     : {len(result.detections_kept)} kept "
          f"/ {len(result.detections_raw)} raw")
    rect = result.region.rect_in_source
    print(f"  Crop rect      : ({rect.x:.0f}, {rect.y:.0f}) "
          f"{rect.width:.0f}x{rect.height:.0f}")
    if result.position.recovered_kings:
        print(f"  Kings repaired : {', '.join(result.position.recovered_kings)}")
    if result.warnings:
        print(f"  Warnings       : {result.warnings}")

    if args.move:
        view = args.view or result.region.source_size
        points = pipeline.move_overlay(args.move, result.region, view)
        if points is None:
            print(f"  Move overlay   : malformed move {args.move!r}")
        else:
            print(f"  Move overlay   : {_fmt_point(points[0])} -> {_fmt_point(points[1])}")
    print("=" * 60 + "\n")

    if args.save_debug:
        pipeline.visualize(result, uci=args.move, save_path=args.save_debug)

    return 0 if result.is_valid else 1


# ═══════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════

def cmd_validate(args: argparse.Namespace) -> int:
    from chess_overlay.inference.fen_utils import legality_warnings, validate_fen

    result = validate_fen(args.fen)
    if result.ok:
        print("OK")
        for warning in legality_warnings(args.fen):
            print(f"warning: {warning}")
        return 0
    print(f"INVALID: {result.reason}")
    return 1


# ═══════════════════════════════════════════════════════════════════════
# Overlay geometry
# ═══════════════════════════════════════════════════════════════════════

def cmd_overlay(args: argparse.Namespace) -> int:
    geometry = move_geometry(args.move, args.source, args.crop_rect, args.board_size)
    if geometry is None:
        print(f"Malformed move: {args.move!r}")
        return 1
    p1, p2 = geometry.to_view(args.view)
    print(f"{_fmt_point(p1)} -> {_fmt_point(p2)}")
    return 0


# ═══════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chess_overlay",
        description="Board photo → FEN reconstruction and move overlay geometry.",
    )
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="command", help="Available commands")

    # ── recognize ──
    p_rec = sub.add_parser("recognize", help="Reconstruct the FEN from a photo")
    p_rec.add_argument("--image", required=True, help="Path to the photo")
    p_rec.add_argument("--board-model", required=True,
                       help="YOLOv8 .pt for board regions")
    p_rec.add_argument("--piece-model", required=True,
                       help="YOLOv8 .pt for pieces")
    p_rec.add_argument("--board-conf", type=float, default=0.25)
    p_rec.add_argument("--piece-conf", type=float, default=0.30)
    p_rec.add_argument("--min-confidence", type=float, default=0.30)
    p_rec.add_argument("--pad-frac", type=float, default=0.05)
    p_rec.add_argument("--output-size", type=int, default=800)
    p_rec.add_argument("--max-long-side", type=int, default=1280)
    p_rec.add_argument("--exif-orientation", type=int, default=1,
                       help="EXIF orientation of the photo (1-8)")
    p_rec.add_argument("--move", default=None,
                       help="UCI move to project, e.g. e2e4")
    p_rec.add_argument("--view", type=_parse_size, default=None,
                       help="Preview size WxH (default: source size)")
    p_rec.add_argument("--save-debug", default=None,
                       help="Save annotated crop to path")

    # ── validate ──
    p_val = sub.add_parser("validate", help="Check a FEN string")
    p_val.add_argument("fen")

    # ── overlay ──
    p_ovl = sub.add_parser("overlay", help="Project a move into view space")
    p_ovl.add_argument("--move", required=True)
    p_ovl.add_argument("--crop-rect", type=_parse_rect, required=True,
                       help="Crop rect in source px: X,Y,W,H")
    p_ovl.add_argument("--source", type=_parse_size, required=True,
                       help="Source frame size WxH")
    p_ovl.add_argument("--view", type=_parse_size, required=True,
                       help="View size WxH")
    p_ovl.add_argument("--board-size", type=int, default=800)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    dispatch = {
        "recognize": cmd_recognize,
        "validate": cmd_validate,
        "overlay": cmd_overlay,
    }

    return dispatch[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
