"""
Game Session – Vision ↔ Rules Engine ↔ Display
===============================================

``GameSession`` drives the frame loop and connects the pieces:

  camera ─► VisionProcessor ─► events ─► infer_move ─► ChessRules
                   ▲                                       │
                   └──── baseline + board context ◄────────┘
                                                           │
                                 analysis / display ◄──────┘

After every accepted move (detected or entered manually) the session
recaptures the baseline, pushes the new board context into the vision
core and forwards the position to the analysis service.

All calls are expected on a single thread.  A failure inside one tick is
logged and that tick is dropped; only ``stop`` ends the loop.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence

import numpy as np

from chess_tracker.config import TrackerConfig
from chess_tracker.display import LoggingDisplay, Status
from chess_tracker.game.inference import InferenceResult, InferenceStatus, infer_move
from chess_tracker.game.rules import ChessRules, LegalMove
from chess_tracker.vision.processor import VisionProcessor
from chess_tracker.vision.stability import VisionEvent, VisionEventKind

log = logging.getLogger(__name__)

STATUS_CALIBRATE = "Click the 4 board corners"
STATUS_PLAY = "Board locked - play!"
STATUS_DETECTING = "Detecting..."
STATUS_UNKNOWN_MOVE = "Move not recognized"
STATUS_PROMOTION = "Promotion needs manual choice"
STATUS_MOVE_ERROR = "Error while recognising move"
STATUS_TICK_ERROR = "Frame processing error"


class GameSession:
    """Integration layer around one tracked game.

    Parameters
    ----------
    config : TrackerConfig
        Thresholds, timing and analysis settings.
    camera : object, optional
        Anything with ``read() -> ndarray | None``.  Without a camera,
        frames must be passed to ``tick`` explicitly.
    rules : ChessRules, optional
        Rules engine; a fresh game by default.
    display : object, optional
        Status sink; ``LoggingDisplay`` by default.
    analysis : object, optional
        Anything with ``analyze(fen, depth)``.
    """

    def __init__(
        self,
        config: Optional[TrackerConfig] = None,
        camera=None,
        rules: Optional[ChessRules] = None,
        display=None,
        analysis=None,
    ) -> None:
        self.config = config or TrackerConfig()
        self.camera = camera
        self.rules = rules or ChessRules()
        self.display = display or LoggingDisplay()
        self.analysis = analysis

        self.vision = VisionProcessor(
            sensitivity=self.config.sensitivity,
            pixel_threshold=self.config.pixel_threshold,
            warp_size=self.config.warp_size,
            stability_seconds=self.config.stability_seconds,
        )
        self.last_frame: Optional[np.ndarray] = None
        self.pending: Optional[InferenceResult] = None
        self._running = False

    # ── Lifecycle ──────────────────────────────────────────────────────

    def init(self) -> None:
        self.vision.init()
        self.display.update_board(self.rules.fen())
        self.display.update_turn(self.rules.turn())
        self.display.update_status(STATUS_CALIBRATE, Status.WAITING)

    def run(self, max_ticks: Optional[int] = None) -> None:
        """Tick at the configured rate until ``stop`` (or *max_ticks*)."""
        if not self.vision.ready:
            self.init()
        interval = 1.0 / self.config.fps
        self._running = True
        ticks = 0
        while self._running:
            started = time.monotonic()
            self.tick()
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            delay = interval - (time.monotonic() - started)
            if delay > 0:
                time.sleep(delay)
        self._running = False

    def stop(self) -> None:
        """Halt the loop and release vision buffers.  Idempotent."""
        self._running = False
        self.vision.stop()
        self.last_frame = None

    # ── Per tick ───────────────────────────────────────────────────────

    def tick(
        self,
        frame: Optional[np.ndarray] = None,
        now: Optional[float] = None,
    ) -> List[VisionEvent]:
        """Process one frame (read from the camera when not given)."""
        try:
            if frame is None and self.camera is not None:
                frame = self.camera.read()
            if frame is None:
                return []
            self.last_frame = frame
            events = self.vision.process(frame, now)
            self.handle_events(events)
            return events
        except Exception:
            log.exception("Tick failed, skipping frame")
            self.display.update_status(STATUS_TICK_ERROR, Status.ERROR)
            return []

    def handle_events(self, events: Sequence[VisionEvent]) -> None:
        for event in events:
            if event.kind is VisionEventKind.STABILITY_LOST:
                self.display.update_status(STATUS_DETECTING, Status.WAITING)
            elif event.kind is VisionEventKind.MOVE_DETECTED:
                self.handle_move(event.squares)

    # ── Moves ──────────────────────────────────────────────────────────

    def handle_move(self, indices: Sequence[int]) -> Optional[LegalMove]:
        """Turn a detected two-square change into a played move."""
        try:
            result = infer_move(indices, self.rules.legal_moves())

            if result.status is InferenceStatus.NO_MOVE:
                self.display.update_status(STATUS_UNKNOWN_MOVE, Status.WAITING)
                return None

            if result.needs_disambiguation and not self.config.auto_promote:
                self.pending = result
                self.display.update_status(STATUS_PROMOTION, Status.WAITING)
                self.display.notify(
                    "Choose promotion: "
                    + ", ".join(m.san for m in result.candidates),
                    "info",
                )
                return None

            played = self.rules.apply_move(result.move)
            if played is None:
                self.display.update_status(STATUS_UNKNOWN_MOVE, Status.WAITING)
                return None

            log.info("Detected move: %s", played.uci)
            self.pending = None
            self._after_move(played, played.san)
            return played
        except Exception:
            log.exception("Move processing error")
            self.display.update_status(STATUS_MOVE_ERROR, Status.ERROR)
            return None

    def apply_manual_move(
        self,
        from_square: str,
        to_square: str,
        promotion: Optional[str] = None,
    ) -> Optional[LegalMove]:
        """Correction entered by the user (e.g. dragging a piece).

        While a promotion is pending, a move over the same squares must
        name one of the offered pieces.
        """
        if self.pending is not None:
            pair = (from_square.lower(), to_square.lower())
            offered = [
                m for m in self.pending.candidates
                if (m.from_square, m.to_square) == pair
            ]
            choices = {m.promotion for m in offered}
            if offered and (promotion or "").lower() not in choices:
                log.warning("Promotion %r not among %s", promotion, sorted(choices))
                self.display.notify(
                    "Choose promotion: " + ", ".join(m.san for m in offered),
                    "info",
                )
                return None

        uci = f"{from_square}{to_square}{promotion or ''}".lower()
        played = self.rules.apply_move(uci)
        if played is None:
            log.warning("Invalid manual move: %s", uci)
            self.display.update_board(self.rules.fen())
            return None

        log.info("Manual fix: %s", played.uci)
        self.pending = None
        self._after_move(played, f"(Fix) {played.san}")
        return played

    def _after_move(self, played: LegalMove, entry: str) -> None:
        fen = self.rules.fen()
        self.display.log_move(entry)
        self.display.update_board(fen)
        self.display.update_best_move("...")

        self.vision.capture_baseline()

        self.display.update_turn(self.rules.turn())
        self.vision.update_state(self.rules.board_state())

        if self.analysis is not None:
            self.analysis.analyze(fen, self.config.analysis_depth)

        if self.rules.is_checkmate():
            self.display.update_status(
                f"Checkmate ({self.rules.result()})", Status.READY,
            )
            self.display.notify("Checkmate!", "success")
        elif self.rules.is_game_over():
            self.display.update_status(
                f"Game over ({self.rules.result()})", Status.READY,
            )
        else:
            self.display.update_status(STATUS_PLAY, Status.READY)

    # ── Controls ───────────────────────────────────────────────────────

    def add_corner(self, x: float, y: float) -> bool:
        accepted = self.vision.add_corner(x, y)
        if accepted:
            label = self.vision.calibration.next_corner_label()
            if label is None:
                self.display.update_status("Corners set - press lock", Status.WAITING)
            else:
                self.display.update_status(f"Click {label}", Status.WAITING)
        return accepted

    def lock(self) -> None:
        """Start monitoring the board from the current frame."""
        if not self.vision.has_perspective:
            log.warning("Locking without 4 corners, falling back to raw frame")
            self.display.notify("No calibration: using un-warped frame", "info")
        self.vision.set_locked(True)
        self.vision.update_state(self.rules.board_state())
        self.display.update_status(STATUS_PLAY, Status.READY)
        self.display.notify("Board locked! Game on.", "success")
        if self.analysis is not None:
            self.analysis.analyze(self.rules.fen(), self.config.analysis_depth)

    def unlock(self) -> None:
        self.vision.set_locked(False)
        self.display.update_status("Board unlocked", Status.WAITING)

    def recalibrate(self) -> None:
        self.vision.reset_corners()
        self.vision.set_locked(False)
        self.display.update_status(STATUS_CALIBRATE, Status.WAITING)
        self.display.notify(
            "Click the 4 corners clockwise, starting top-left.", "info",
        )

    def new_game(self, fen: Optional[str] = None) -> None:
        """Start over from the initial position, or from *fen*."""
        if fen:
            self.rules.load_fen(fen)
        else:
            self.rules.reset()
        self.pending = None
        self.display.update_board(self.rules.fen())
        self.vision.set_locked(False)
        self.vision.reset_corners()
        self.vision.update_state(self.rules.board_state())
        self.display.update_status(STATUS_CALIBRATE, Status.WAITING)
        self.display.clear_log()
        self.display.update_best_move("...")
        self.display.update_evaluation(0)
        self.display.update_turn(self.rules.turn())
        self.display.notify("New game.", "info")

    def set_sensitivity(self, value: float) -> None:
        self.config.sensitivity = value
        self.vision.set_sensitivity(value)

    def set_threshold(self, value: float) -> None:
        self.config.pixel_threshold = value
        self.vision.set_threshold(value)
