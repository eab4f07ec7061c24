"""
Display Collaborators – Status Sink and Overlay Renderer
========================================================

The session reports everything user-facing (status line, move log,
board position, engine evaluation) to a *display* object.  Two pieces
live here:

  • ``LoggingDisplay`` – a display that writes to the log and remembers
    what it was told.  Used headless and in tests.
  • ``render_overlay`` – paints the vision core's drawing instructions
    onto a BGR image for the OpenCV preview window.
"""

from __future__ import annotations

import enum
import logging
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from chess_tracker.vision.overlay import (
    DrawInstruction,
    DrawPoint,
    DrawPolygon,
    DrawRect,
    DrawText,
)

log = logging.getLogger(__name__)


class Status(enum.Enum):
    READY = "ready"
    WAITING = "waiting"
    ERROR = "error"


# ── Status sink ────────────────────────────────────────────────────────

class LoggingDisplay:
    """Display that logs every update and keeps the latest values."""

    def __init__(self) -> None:
        self.status: Tuple[str, Status] = ("", Status.WAITING)
        self.statuses: List[Tuple[str, Status]] = []
        self.move_log: List[str] = []
        self.notifications: List[Tuple[str, str]] = []
        self.fen: Optional[str] = None
        self.turn: str = "w"
        self.best_move: str = "..."
        self.evaluation: int = 0

    def update_status(self, text: str, status: Status) -> None:
        self.status = (text, status)
        self.statuses.append(self.status)
        level = logging.ERROR if status is Status.ERROR else logging.INFO
        log.log(level, "[%s] %s", status.value, text)

    def notify(self, text: str, kind: str = "info") -> None:
        self.notifications.append((text, kind))
        log.info("(%s) %s", kind, text)

    def log_move(self, entry: str) -> None:
        self.move_log.append(entry)
        log.info("Move %d: %s", len(self.move_log), entry)

    def clear_log(self) -> None:
        self.move_log.clear()

    def update_board(self, fen: str) -> None:
        self.fen = fen

    def update_turn(self, color: str) -> None:
        self.turn = color

    def update_best_move(self, move: str) -> None:
        self.best_move = move
        if move != "...":
            log.info("Best move: %s", move)

    def update_evaluation(self, cp: int) -> None:
        self.evaluation = cp
        log.debug("Evaluation: %+d cp", cp)


# ── Overlay rendering ──────────────────────────────────────────────────

def render_overlay(
    image: np.ndarray,
    instructions: Sequence[DrawInstruction],
) -> np.ndarray:
    """Draw *instructions* onto a copy of *image* and return it."""
    vis = image.copy()
    if vis.ndim == 2:
        vis = cv2.cvtColor(vis, cv2.COLOR_GRAY2BGR)

    for item in instructions:
        if isinstance(item, DrawPoint):
            cv2.circle(vis, (int(item.x), int(item.y)), item.radius, item.color, -1)
        elif isinstance(item, DrawText):
            cv2.putText(
                vis, item.text,
                (int(item.x), int(item.y)),
                cv2.FONT_HERSHEY_SIMPLEX, item.scale, item.color, 2,
            )
        elif isinstance(item, DrawPolygon):
            pts = np.array(item.points, dtype=np.int32).reshape(-1, 1, 2)
            cv2.polylines(vis, [pts], item.closed, item.color, item.thickness)
        elif isinstance(item, DrawRect):
            x1, y1 = int(item.x), int(item.y)
            x2, y2 = int(item.x + item.width), int(item.y + item.height)
            thickness = -1 if item.filled else 1
            cv2.rectangle(vis, (x1, y1), (x2, y2), item.color, thickness)

    return vis


def render_status(image: np.ndarray, display: LoggingDisplay) -> np.ndarray:
    """Status line and last move along the bottom edge of *image*."""
    h = image.shape[0]
    text, status = display.status
    color = {
        Status.READY: (0, 200, 0),
        Status.WAITING: (0, 200, 255),
        Status.ERROR: (0, 0, 255),
    }[status]
    cv2.putText(
        image, text, (10, h - 30),
        cv2.FONT_HERSHEY_SIMPLEX, 0.55, color, 2,
    )
    footer = f"{'White' if display.turn == 'w' else 'Black'} to move"
    if display.move_log:
        footer += f"  |  last: {display.move_log[-1]}"
    if display.best_move != "...":
        footer += f"  |  best: {display.best_move} ({display.evaluation:+d})"
    cv2.putText(
        image, footer, (10, h - 10),
        cv2.FONT_HERSHEY_SIMPLEX, 0.45, (255, 255, 255), 1,
    )
    return image
