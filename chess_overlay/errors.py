"""
Exception hierarchy
===================

Only conditions that are fatal to a single invocation are raised.
Malformed moves and invalid positions are reported through return
values (``None`` / ``ValidationResult``) instead.
"""

from __future__ import annotations


class ChessOverlayError(Exception):
    """Base class for all pipeline errors."""


class BadImageError(ChessOverlayError):
    """The input could not be interpreted as an image."""


class NoDetectionError(ChessOverlayError):
    """No chessboard detected, or the detected region degenerated to nothing."""


class AnalysisCancelled(ChessOverlayError):
    """An in-flight analysis was cancelled between two stages."""
