"""
Chess Overlay
=============

Reconstructs a chess position (FEN) from noisy object-detector output on
a board photo or camera frame, and maps a recommended move back onto the
photo / live preview as an arrow.

Architecture:
    1. Board Location   – best board box → pad, square, clamp, 800×800 crop
    2. Piece Filtering  – confidence, interior and size plausibility
    3. Square Assignment – one piece per square, explicit tie-break order
    4. FEN Synthesis    – king recovery, castling rights from placement
    5. Validation       – rank sums and king presence
    6. Move Geometry    – crop → source frame → aspect-filled view
"""

__version__ = "1.0.0"
