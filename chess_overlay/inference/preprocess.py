"""
Source image preprocessing
==========================

Steps the caller runs *before* board location:

  1. ``normalize_orientation`` – bake the EXIF orientation into the
     pixels so that all later geometry starts from an upright image.
  2. ``downscale_if_needed``   – cap the long side (the board detector
     does not need full camera resolution).

The region locator reports the size of whatever image it receives, so
the inverse mapping stays correct whichever of these steps ran.
"""

from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np

from chess_overlay.errors import BadImageError


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """Return ``(width, height)`` of an image array."""
    if image is None or getattr(image, "ndim", 0) < 2 or image.size == 0:
        raise BadImageError("Could not create an image from input.")
    h, w = image.shape[:2]
    return int(w), int(h)


def normalize_orientation(image: np.ndarray, exif_orientation: int = 1) -> np.ndarray:
    """Rotate / mirror *image* so that EXIF orientation becomes 1 (upright).

    Parameters
    ----------
    image : np.ndarray
        Decoded image as stored on disk (before orientation is applied).
    exif_orientation : int
        EXIF ``Orientation`` tag value, 1–8.

    Returns
    -------
    np.ndarray
        Upright image.  Orientation 1 returns the input unchanged.
    """
    image_size(image)
    if exif_orientation == 1:
        return image
    if exif_orientation == 2:
        return cv2.flip(image, 1)
    if exif_orientation == 3:
        return cv2.rotate(image, cv2.ROTATE_180)
    if exif_orientation == 4:
        return cv2.flip(image, 0)
    if exif_orientation == 5:
        return cv2.transpose(image)
    if exif_orientation == 6:
        return cv2.rotate(image, cv2.ROTATE_90_CLOCKWISE)
    if exif_orientation == 7:
        # transverse
        return cv2.flip(cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE), 1)
    if exif_orientation == 8:
        return cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE)
    raise ValueError(f"Unknown EXIF orientation: {exif_orientation}")


def downscale_if_needed(image: np.ndarray, max_long_side: int = 1280) -> np.ndarray:
    """Shrink *image* so its long side is at most *max_long_side*.

    Images that already fit (or ``max_long_side <= 0``) are returned as-is.
    """
    w, h = image_size(image)
    long_side = max(w, h)
    if max_long_side <= 0 or long_side <= max_long_side:
        return image
    scale = max_long_side / long_side
    new_size = (max(1, int(round(w * scale))), max(1, int(round(h * scale))))
    return cv2.resize(image, new_size, interpolation=cv2.INTER_AREA)
