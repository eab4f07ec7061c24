"""
Vision Processor – Calibration, Differencing and Stability in One Place
=======================================================================

``VisionProcessor`` is the single owner of all mutable vision state:

  • calibration corners and transform  (``CalibrationUnit``)
  • frame buffers and baseline         (``FramePipeline``)
  • board context for thresholds       (``BoardSnapshot``)
  • stability window                   (``StabilityTracker``)
  • lock flag

Every method is expected to be called from the same thread as the frame
loop; nothing here is locked.

Typical use::

    vision = VisionProcessor()
    vision.init()
    vision.add_corner(...)            # ×4, while unlocked
    vision.process(frame)             # tick
    vision.set_locked(True)           # baseline captured here
    events = vision.process(frame)    # → [VisionEvent, ...]
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import cv2
import numpy as np

from chess_tracker.game.squares import BoardSnapshot, Occupant, empty_snapshot, flatten_board
from chess_tracker.vision.calibration import WARP_SIZE, CalibrationUnit
from chess_tracker.vision.frames import FramePipeline
from chess_tracker.vision.occupancy import (
    DEFAULT_PIXEL_THRESHOLD,
    OccupancyDetector,
    OccupancyResult,
)
from chess_tracker.vision.overlay import DrawInstruction, active_minimap, calibration_overlay
from chess_tracker.vision.stability import STABILITY_SECONDS, StabilityTracker, VisionEvent
from chess_tracker.vision.thresholds import DEFAULT_SENSITIVITY

log = logging.getLogger(__name__)


class VisionProcessor:
    """Frame-by-frame move detector.

    Parameters
    ----------
    sensitivity : float
        Base changed-pixel count per square (see ``thresholds``).
    pixel_threshold : float
        Grey-level difference for a pixel to count as changed.
    warp_size : int
        Side of the canonical board frame after calibration.
    stability_seconds : float
        How long an identical two-square set must persist.
    """

    def __init__(
        self,
        sensitivity: float = DEFAULT_SENSITIVITY,
        pixel_threshold: float = DEFAULT_PIXEL_THRESHOLD,
        warp_size: int = WARP_SIZE,
        stability_seconds: float = STABILITY_SECONDS,
    ) -> None:
        self.calibration = CalibrationUnit(warp_size)
        self.pipeline = FramePipeline(self.calibration)
        self.detector = OccupancyDetector(sensitivity, pixel_threshold)
        self.stability = StabilityTracker(stability_seconds)

        self.snapshot: BoardSnapshot = empty_snapshot()
        self.locked: bool = False
        self.ready: bool = False
        self.last_result: Optional[OccupancyResult] = None

    # ── Lifecycle ──────────────────────────────────────────────────────

    def init(self) -> None:
        """One-time setup before the first ``process`` call."""
        log.debug("OpenCV %s", cv2.__version__)
        self.detector.init()
        self.ready = True

    def stop(self) -> None:
        """Release buffers, kernel and transform.  Safe to call repeatedly."""
        self.pipeline.release()
        self.detector.release()
        self.calibration.reset_corners()
        self.stability.reset()
        self.locked = False
        self.ready = False
        self.last_result = None

    # ── Calibration ────────────────────────────────────────────────────

    @property
    def has_perspective(self) -> bool:
        return self.calibration.is_complete

    def add_corner(self, x: float, y: float) -> bool:
        """Record a board corner; ignored while locked or once 4 are set."""
        if self.locked:
            log.debug("Corner (%.0f, %.0f) ignored while locked", x, y)
            return False
        return self.calibration.add_corner(x, y)

    def reset_corners(self) -> None:
        self.calibration.reset_corners()

    # ── Lock / baseline ────────────────────────────────────────────────

    def set_locked(self, locked: bool) -> None:
        """Start (``True``) or stop occupancy monitoring.

        Locking always recaptures the baseline from the current working
        frame.
        """
        self.locked = locked
        self.stability.reset()
        self.last_result = None
        if locked:
            if not self.has_perspective:
                log.warning("Locked without calibration, using un-warped frames")
            self.capture_baseline()

    def capture_baseline(self) -> bool:
        return self.pipeline.capture_baseline()

    # ── Runtime configuration ──────────────────────────────────────────

    def set_sensitivity(self, value: float) -> None:
        self.detector.sensitivity = value
        log.info("Sensitivity set to %s", value)

    def set_threshold(self, value: float) -> None:
        self.detector.pixel_threshold = value
        log.info("Pixel threshold set to %s", value)

    @property
    def sensitivity(self) -> float:
        return self.detector.sensitivity

    @property
    def pixel_threshold(self) -> float:
        return self.detector.pixel_threshold

    # ── Board context ──────────────────────────────────────────────────

    def update_state(
        self,
        board: Sequence[Sequence[Optional[Occupant]]],
    ) -> None:
        """Replace the board context.

        Accepts either the rules engine's 8×8 grid (rank 8 first) or an
        already flat list of 64 occupants.
        """
        if len(board) == 64:
            self.snapshot = list(board)
        else:
            self.snapshot = flatten_board(board)
        log.debug("Board context updated")

    # ── Per tick ───────────────────────────────────────────────────────

    def process(
        self,
        frame: Optional[np.ndarray],
        now: Optional[float] = None,
    ) -> List[VisionEvent]:
        """Ingest one camera frame and return the events it produced."""
        if not self.ready:
            raise RuntimeError("VisionProcessor.init() has not been called")
        if frame is None or frame.size == 0:
            log.debug("No frame this tick")
            return []

        working = self.pipeline.prepare(frame)
        if not self.locked:
            return []

        if not self.pipeline.baseline_fits(working):
            self.pipeline.reallocate_baseline(working)
            return []

        result = self.detector.detect(
            working,
            self.pipeline.buffers.baseline,
            self.snapshot,
            warped=self.pipeline.is_warped,
        )
        self.last_result = result
        return self.stability.update(result.active, now)

    def overlay(self) -> List[DrawInstruction]:
        """Drawing instructions for the current calibration / detection state."""
        instructions = calibration_overlay(self.calibration.corners, self.locked)
        if self.locked and self.last_result is not None:
            instructions.extend(active_minimap(self.last_result.active))
        return instructions
