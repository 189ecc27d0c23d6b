"""
Pipeline diagnostics
====================

The reconstruction stages are pure functions; anything worth reporting
(filter drop counts, square collisions, king repairs and conflicts,
crop outcomes) is handed to an injectable ``PipelineObserver`` instead
of being logged from inside the stage.

  • ``LoggingObserver``   – default; forwards events to ``logging``.
  • ``RecordingObserver`` – keeps events in memory (tests, debugging UIs).
  • ``NullObserver``      – discards everything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

log = logging.getLogger(__name__)


class PipelineObserver:
    """Receives diagnostic events.  Every hook is a no-op by default."""

    def on_crop(self, rect: Any, source_size: Tuple[float, float], output_size: int) -> None:
        pass

    def on_crop_failed(self, reason: str) -> None:
        pass

    def on_filtered(self, kept: int, total: int) -> None:
        pass

    def on_collision(self, square: str, candidates: Sequence[Any], winner: Any) -> None:
        pass

    def on_king_recovered(self, color: str, square: str, replaced: Optional[str]) -> None:
        pass

    def on_king_conflict(self, color: str, square: str, occupant: str) -> None:
        pass

    def on_validation(self, fen: str, ok: bool, reason: Optional[str]) -> None:
        pass


NullObserver = PipelineObserver


class LoggingObserver(PipelineObserver):
    """Forward diagnostics to a standard :mod:`logging` logger."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.log = logger or log

    def on_crop(self, rect, source_size, output_size):
        self.log.info(
            "Board crop  rect=(%.0f,%.0f %.0fx%.0f)  source=%dx%d  output=%d",
            rect.x, rect.y, rect.width, rect.height,
            int(source_size[0]), int(source_size[1]), output_size,
        )

    def on_crop_failed(self, reason):
        self.log.error("Board crop failed: %s", reason)

    def on_filtered(self, kept, total):
        self.log.info("Filter: kept %d / %d (dropped %d)", kept, total, total - kept)

    def on_collision(self, square, candidates, winner):
        desc = " | ".join(
            f"{c.label}[{c.piece} c:{c.confidence:.3f} a:{int(c.area)}]"
            for c in candidates
        )
        self.log.debug("Collision @%s: %s  -> chose %s -> %s",
                       square, desc, winner.label, winner.fen_char)

    def on_king_recovered(self, color, square, replaced):
        name = "White" if color == "w" else "Black"
        self.log.warning(
            "%s king detected but missing; forcing %s at %s (replaced %s)",
            name, "K" if color == "w" else "k", square, replaced or "empty",
        )

    def on_king_conflict(self, color, square, occupant):
        name = "White" if color == "w" else "Black"
        self.log.warning(
            "%s king detected at %s but the square is held by %s; not recovered",
            name, square, occupant,
        )

    def on_validation(self, fen, ok, reason):
        if ok:
            self.log.info("FEN OK: %s", fen)
        else:
            self.log.warning("FEN rejected (%s): %s", reason, fen)


@dataclass
class RecordingObserver(PipelineObserver):
    """Collect every event as ``(name, payload)`` tuples."""
    events: List[Tuple[str, Dict[str, Any]]] = field(default_factory=list)

    def _record(self, name: str, **payload: Any) -> None:
        self.events.append((name, payload))

    def named(self, name: str) -> List[Dict[str, Any]]:
        return [payload for event, payload in self.events if event == name]

    def on_crop(self, rect, source_size, output_size):
        self._record("crop", rect=rect, source_size=source_size, output_size=output_size)

    def on_crop_failed(self, reason):
        self._record("crop_failed", reason=reason)

    def on_filtered(self, kept, total):
        self._record("filtered", kept=kept, total=total)

    def on_collision(self, square, candidates, winner):
        self._record("collision", square=square, candidates=list(candidates), winner=winner)

    def on_king_recovered(self, color, square, replaced):
        self._record("king_recovered", color=color, square=square, replaced=replaced)

    def on_king_conflict(self, color, square, occupant):
        self._record("king_conflict", color=color, square=square, occupant=occupant)

    def on_validation(self, fen, ok, reason):
        self._record("validation", fen=fen, ok=ok, reason=reason)


def default_observer(observer: Optional[PipelineObserver]) -> PipelineObserver:
    return observer if observer is not None else LoggingObserver()
