"""
YOLO Detector Adapters – board regions and pieces
=================================================

The reconstruction pipeline only needs two callables:

  • ``board_detector(image) -> list[BoxCandidate]``
  • ``piece_detector(image) -> list[Detection]``

This module provides both on top of YOLOv8 models via the
``ultralytics`` package.  ``ultralytics`` is imported lazily so the rest
of the package works (and tests run) without it; any other detector can
be plugged in as long as it returns the same records.

YOLO reports ``xyxy`` corner boxes; they are converted here to the
centre + size convention used everywhere else.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from chess_overlay.models.detections import BoxCandidate, Detection

log = logging.getLogger(__name__)


# ── Box conversion ─────────────────────────────────────────────────────

def xyxy_to_center(x1: float, y1: float, x2: float, y2: float) -> Tuple[float, float, float, float]:
    """``(x1, y1, x2, y2)`` → ``(cx, cy, w, h)``."""
    return (x1 + x2) / 2.0, (y1 + y2) / 2.0, x2 - x1, y2 - y1


def _to_numpy(values: Any) -> np.ndarray:
    if hasattr(values, "cpu"):
        values = values.cpu()
    if hasattr(values, "numpy"):
        values = values.numpy()
    return np.asarray(values, dtype=np.float64)


def _boxes_from_result(result: Any) -> List[Tuple[Tuple[float, float, float, float], float, int]]:
    """Extract ``[((cx, cy, w, h), conf, class_idx), ...]`` from one YOLO result."""
    boxes = result.boxes
    if boxes is None or len(boxes) == 0:
        return []
    xyxy = _to_numpy(boxes.xyxy).reshape(-1, 4)
    conf = _to_numpy(boxes.conf).reshape(-1)
    cls = _to_numpy(boxes.cls).reshape(-1) if getattr(boxes, "cls", None) is not None \
        else np.zeros(len(conf))
    out = []
    for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
        out.append((xyxy_to_center(float(x1), float(y1), float(x2), float(y2)), float(c), int(k)))
    return out


# ── YOLO base ──────────────────────────────────────────────────────────

class _YoloAdapter:
    """Lazily loads a YOLO model and runs single-image prediction."""

    def __init__(self, model_path: str, conf: float = 0.25, iou: float = 0.5, model: Any = None) -> None:
        self.model_path = str(model_path)
        self.conf = conf
        self.iou = iou
        self._model = model

    @property
    def model(self) -> Any:
        if self._model is None:
            from ultralytics import YOLO  # lazy import – optional dependency

            log.info("Loading YOLO model %s", self.model_path)
            self._model = YOLO(self.model_path)
        return self._model

    def _predict(self, image: np.ndarray) -> Optional[Any]:
        results = self.model.predict(source=image, conf=self.conf, iou=self.iou, verbose=False)
        if not results:
            return None
        return results[0]


class YoloBoardDetector(_YoloAdapter):
    """Board-region detector returning every candidate box.

    Parameters
    ----------
    model_path : str
        YOLOv8 ``.pt`` trained to detect chessboards.
    conf : float
        Detector-side confidence floor.
    iou : float
        NMS overlap threshold.
    """

    def __init__(self, model_path: str, conf: float = 0.25, iou: float = 0.20, model: Any = None) -> None:
        super().__init__(model_path, conf=conf, iou=iou, model=model)

    def __call__(self, image: np.ndarray) -> List[BoxCandidate]:
        result = self._predict(image)
        if result is None:
            return []
        candidates = [
            BoxCandidate(x=cx, y=cy, width=w, height=h, confidence=c)
            for (cx, cy, w, h), c, _ in _boxes_from_result(result)
        ]
        log.info("Board detector: %d candidate(s)", len(candidates))
        return candidates


class YoloPieceDetector(_YoloAdapter):
    """Piece detector; labels come from the model's own class names.

    A low NMS overlap (``iou``) would merge neighbouring pieces, so the
    default keeps it at 0.5.
    """

    def __init__(
        self,
        model_path: str,
        conf: float = 0.30,
        iou: float = 0.50,
        model: Any = None,
        class_names: Optional[Sequence[str]] = None,
    ) -> None:
        super().__init__(model_path, conf=conf, iou=iou, model=model)
        self.class_names = list(class_names) if class_names is not None else None

    def _label(self, result: Any, class_idx: int) -> str:
        if self.class_names is not None:
            names: Any = self.class_names
        else:
            names = getattr(result, "names", None) or {}
        try:
            return str(names[class_idx])
        except (KeyError, IndexError):
            return str(class_idx)

    def __call__(self, image: np.ndarray) -> List[Detection]:
        result = self._predict(image)
        if result is None:
            return []
        detections = [
            Detection(x=cx, y=cy, width=w, height=h, label=self._label(result, k), confidence=c)
            for (cx, cy, w, h), c, k in _boxes_from_result(result)
        ]
        log.info("Piece detector: %d prediction(s)", len(detections))
        return detections
