"""
Stability tracking for the active-square set.

A move is accepted only when the *same* set of *exactly two* squares has
been active for longer than the stability window.  That filters out a
hand over the board (many squares), single-square flicker from lighting
changes (one square) and frames captured mid-motion (set still changing).

``update`` returns the events produced by one tick instead of invoking
callbacks, so the state machine can be driven directly with synthetic
timestamps.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

log = logging.getLogger(__name__)

STABILITY_SECONDS: float = 1.0


class VisionEventKind(enum.Enum):
    STABILITY_GAINED = "stability_gained"
    STABILITY_LOST = "stability_lost"
    MOVE_DETECTED = "move_detected"


@dataclass(frozen=True)
class VisionEvent:
    kind: VisionEventKind
    squares: Tuple[int, ...] = ()


class StabilityTracker:
    """Debounce state machine: ``Unstable`` ⇄ ``Stable``."""

    def __init__(self, duration: float = STABILITY_SECONDS) -> None:
        self.duration = duration
        self.last_active: Tuple[int, ...] = ()
        self.window_start: float = 0.0
        self.stable: bool = False

    def update(
        self,
        active: Sequence[int],
        now: Optional[float] = None,
    ) -> List[VisionEvent]:
        """Feed one tick's active set; return the events it triggers."""
        if now is None:
            now = time.monotonic()
        current = tuple(active)
        events: List[VisionEvent] = []

        if current == self.last_active and len(current) == 2:
            if not self.stable and now - self.window_start > self.duration:
                self.stable = True
                log.debug("Active set %s stable", current)
                events.append(VisionEvent(VisionEventKind.STABILITY_GAINED))
                events.append(VisionEvent(VisionEventKind.MOVE_DETECTED, current))
        else:
            self.window_start = now
            self.last_active = current
            if self.stable:
                self.stable = False
                events.append(VisionEvent(VisionEventKind.STABILITY_LOST))

        return events

    def reset(self) -> None:
        self.last_active = ()
        self.window_start = 0.0
        self.stable = False
