"""
Live Analysis – throttled, single-flight analysis of camera frames
==================================================================

``LiveAnalyzer`` sits between a camera stream and the pipeline:

  • **Throttle**      – frames closer than ``min_interval`` seconds to the
                        last accepted frame are skipped.
  • **Single flight** – while one frame is being analysed, new frames are
                        skipped rather than queued.
  • **Cancellation**  – ``cancel()`` stops the in-flight run at the next
                        stage boundary, never inside a stage.

Each accepted frame runs on a daemon worker thread: recognise → ask the
best-move provider → publish FEN, move text, evaluation and the arrow
geometry.  Published state is read with ``snapshot()``.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

import numpy as np

from chess_overlay.errors import AnalysisCancelled, NoDetectionError
from chess_overlay.inference.geometry import MoveGeometry
from chess_overlay.inference.pipeline import ChessOverlayPipeline

log = logging.getLogger(__name__)


# ── Engine result ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class EngineResult:
    """Best-move answer from a chess engine service."""
    uci: str                              # e.g. "e2e4"
    san: str                              # e.g. "e4"; may be empty
    evaluation: Optional[float] = None    # positive favours white
    pv: Optional[List[str]] = None

    @property
    def display_move(self) -> str:
        """SAN when available, else UCI."""
        return self.san if self.san else self.uci

    @property
    def evaluation_text(self) -> Optional[str]:
        if self.evaluation is None:
            return None
        return f"{self.evaluation:+.2f}"

    @classmethod
    def from_dict(cls, data: dict) -> "EngineResult":
        """Parse ``{"best_move_uci", "best_move_san", "evaluation"}`` payloads."""
        raw_eval = data.get("evaluation")
        try:
            evaluation = float(raw_eval) if raw_eval is not None else None
        except (TypeError, ValueError):
            evaluation = None
        return cls(
            uci=str(data.get("best_move_uci", "")),
            san=str(data.get("best_move_san", "") or ""),
            evaluation=evaluation,
        )


BestMoveProvider = Callable[[str], EngineResult]


# ── Published state ────────────────────────────────────────────────────

@dataclass(frozen=True)
class LiveState:
    status: str = "Searching for board…"
    fen: Optional[str] = None
    best_move: Optional[str] = None
    evaluation_text: Optional[str] = None
    arrow: Optional[MoveGeometry] = None
    is_analyzing: bool = False


# ── Analyzer ───────────────────────────────────────────────────────────

class LiveAnalyzer:
    """Drive the pipeline from a frame stream.

    Parameters
    ----------
    pipeline : ChessOverlayPipeline
        Configured with both detectors.
    engine : callable
        ``fen -> EngineResult``.
    min_interval : float
        Minimum seconds between two accepted frames.
    clock : callable
        Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        pipeline: ChessOverlayPipeline,
        engine: BestMoveProvider,
        min_interval: float = 0.8,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.pipeline = pipeline
        self.engine = engine
        self.min_interval = min_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._state = LiveState()
        self._last_at: Optional[float] = None
        self._cancel = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ── State ──────────────────────────────────────────────────────────

    def snapshot(self) -> LiveState:
        with self._lock:
            return self._state

    def _update(self, **changes) -> None:
        with self._lock:
            self._state = replace(self._state, **changes)

    @property
    def is_analyzing(self) -> bool:
        return self.snapshot().is_analyzing

    # ── Frame intake ───────────────────────────────────────────────────

    def handle_frame(self, frame: np.ndarray) -> bool:
        """Start analysing *frame* unless busy or throttled.

        Returns ``True`` when an analysis was started.
        """
        now = self._clock()
        with self._lock:
            if self._state.is_analyzing:
                return False
            if self._last_at is not None and (now - self._last_at) < self.min_interval:
                return False
            self._last_at = now
            self._state = replace(self._state, is_analyzing=True)
            self._cancel = threading.Event()
            cancel = self._cancel

        self._thread = threading.Thread(
            target=self._run,
            args=(frame, cancel),
            daemon=True,
            name="LiveAnalyzer",
        )
        self._thread.start()
        return True

    def cancel(self) -> None:
        """Ask the in-flight analysis (if any) to stop at the next stage."""
        self._cancel.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join the worker; returns ``True`` if no analysis is still running."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
            return not thread.is_alive()
        return True

    # ── Worker ─────────────────────────────────────────────────────────

    def _run(self, frame: np.ndarray, cancel: threading.Event) -> None:
        try:
            result = self.pipeline.recognize(frame, should_cancel=cancel.is_set)
            if not result.is_valid:
                self._update(status="No board found", arrow=None)
                return

            self._update(fen=result.fen, status="Analyzing…")
            if cancel.is_set():
                raise AnalysisCancelled("engine query")
            best = self.engine(result.fen)
            if cancel.is_set():
                raise AnalysisCancelled("overlay")

            self._update(
                best_move=best.display_move,
                evaluation_text=best.evaluation_text,
                status="Live",
                arrow=self.pipeline.move_geometry(best.uci, result.region),
            )
        except NoDetectionError:
            self._update(status="No board found", arrow=None)
        except AnalysisCancelled:
            self._update(status="Cancelled")
        except Exception as exc:
            log.exception("Live analysis failed")
            self._update(status=f"Error: {exc}", arrow=None)
        finally:
            self._update(is_analyzing=False)
