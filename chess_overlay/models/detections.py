"""
Detection Records
=================

Plain value types for what the external detectors return:

  • ``Detection``     – one piece box on the cropped board image.
  • ``BoxCandidate``  – one board-region box on the source image.

Both use centre + size coordinates, matching the hosted detection API
response shape (``x``, ``y``, ``width``, ``height``, ``class``,
``confidence``).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Mapping, Optional, Tuple


# ── Data structures ────────────────────────────────────────────────────

@dataclass(frozen=True)
class Detection:
    """A single piece detection in crop pixel space."""
    x: float                             # box centre x
    y: float                             # box centre y
    width: float
    height: float
    label: str                           # raw class label, e.g. "w-king"
    confidence: Optional[float] = None   # may be absent in detector output

    @property
    def score(self) -> float:
        """Confidence with *absent* treated as 0."""
        return float(self.confidence) if self.confidence is not None else 0.0

    @property
    def area(self) -> float:
        return self.width * self.height

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Detection":
        """Build from a detector JSON record.

        Accepts ``width``/``w``, ``height``/``h`` and
        ``class``/``class_name``/``label`` spellings.
        """
        conf = data.get("confidence")
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data.get("width", data.get("w", 0.0))),
            height=float(data.get("height", data.get("h", 0.0))),
            label=str(
                data.get("class", data.get("class_name", data.get("label", "")))
            ),
            confidence=float(conf) if conf is not None else None,
        )


@dataclass(frozen=True)
class BoxCandidate:
    """A board-region candidate in source image pixel space."""
    x: float
    y: float
    width: float
    height: float
    confidence: Optional[float] = None

    @property
    def score(self) -> float:
        return float(self.confidence) if self.confidence is not None else 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BoxCandidate":
        conf = data.get("confidence")
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data.get("width", data.get("w", 0.0))),
            height=float(data.get("height", data.get("h", 0.0))),
            confidence=float(conf) if conf is not None else None,
        )


# ── Coordinate-space rescaling ─────────────────────────────────────────

DEFAULT_SERVER_SIZE: Tuple[float, float] = (800.0, 800.0)


def scale_detections(
    detections: Iterable[Detection],
    from_size: Optional[Tuple[float, float]],
    to_size: Tuple[float, float],
) -> List[Detection]:
    """Rescale detections from the detector's image space to ours.

    Remote detectors may run on a resized copy of the upload and report
    coordinates in *their* image size.  This maps every box back to the
    pixel space of the image we actually hold.

    Parameters
    ----------
    detections : iterable of Detection
        Boxes in the detector's coordinate space.
    from_size : (w, h) or None
        Image size reported by the detector.  ``None`` falls back to
        800×800, the size crops are normally uploaded at.
    to_size : (w, h)
        Size of the local image.

    Returns
    -------
    list[Detection]
    """
    src_w, src_h = from_size if from_size is not None else DEFAULT_SERVER_SIZE
    sx = to_size[0] / max(src_w, 1.0)
    sy = to_size[1] / max(src_h, 1.0)
    return [
        replace(
            d,
            x=d.x * sx,
            y=d.y * sy,
            width=d.width * sx,
            height=d.height * sy,
        )
        for d in detections
    ]
