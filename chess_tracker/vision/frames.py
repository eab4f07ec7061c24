"""
Frame Pipeline – Camera Frame → Working Frame
=============================================

Per tick:
  1. Convert the camera frame (BGR, BGRA or already single-channel) to
     an intensity image.
  2. If the board is calibrated, warp the intensity image into the
     square canonical frame.  That warped image is the *working frame*;
     without calibration the raw intensity image is used instead.

The pipeline exclusively owns the image buffers reused across ticks
(intensity, warped, baseline).  A buffer whose dimensions no longer fit
is simply replaced by a new array.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from chess_tracker.vision.calibration import CalibrationUnit

log = logging.getLogger(__name__)


# ── Buffer pool ────────────────────────────────────────────────────────

@dataclass
class FrameBuffers:
    """Images owned by the pipeline between ticks."""
    gray: Optional[np.ndarray] = None          # latest intensity image
    warped: Optional[np.ndarray] = None        # latest warped image
    baseline: Optional[np.ndarray] = None      # board at rest

    def release(self) -> None:
        self.gray = None
        self.warped = None
        self.baseline = None


def to_gray(frame: np.ndarray) -> np.ndarray:
    """Single-channel uint8 intensity image of *frame*."""
    if frame.ndim == 2:
        gray = frame
    elif frame.shape[2] == 4:
        gray = cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
    elif frame.shape[2] == 3:
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    else:
        raise ValueError(f"Unsupported frame shape: {frame.shape}")
    if gray.dtype != np.uint8:
        gray = cv2.convertScaleAbs(gray)
    return gray


class FramePipeline:
    """Turns camera frames into working frames and keeps the baseline."""

    def __init__(self, calibration: CalibrationUnit) -> None:
        self.calibration = calibration
        self.buffers = FrameBuffers()

    @property
    def is_warped(self) -> bool:
        return self.calibration.transform is not None

    # ── Per tick ───────────────────────────────────────────────────────

    def prepare(self, frame: np.ndarray) -> np.ndarray:
        """Ingest a camera frame and return the working frame."""
        self.buffers.gray = to_gray(frame)
        self._warp()
        return self.working_frame()

    def working_frame(self) -> Optional[np.ndarray]:
        """The warped image when calibrated, else the intensity image."""
        if self.is_warped:
            return self.buffers.warped
        return self.buffers.gray

    def _warp(self) -> None:
        transform = self.calibration.transform
        if transform is None or self.buffers.gray is None:
            self.buffers.warped = None
            return
        size = self.calibration.warp_size
        self.buffers.warped = cv2.warpPerspective(
            self.buffers.gray, transform, (size, size),
        )

    # ── Baseline ───────────────────────────────────────────────────────

    def capture_baseline(self) -> bool:
        """Copy the current working frame into the baseline buffer.

        The intensity image is re-warped first so that a transform
        computed since the last tick is honoured.  Returns ``False`` when
        no frame has been seen yet.
        """
        self._warp()
        source = self.working_frame()
        if source is None:
            log.debug("No frame yet, baseline not captured")
            return False

        baseline = self.buffers.baseline
        if baseline is None or baseline.shape != source.shape:
            self.buffers.baseline = source.copy()
        else:
            np.copyto(baseline, source)
        log.info("Baseline captured (%dx%d)", source.shape[1], source.shape[0])
        return True

    def baseline_fits(self, working: np.ndarray) -> bool:
        baseline = self.buffers.baseline
        return baseline is not None and baseline.shape == working.shape

    def reallocate_baseline(self, working: np.ndarray) -> None:
        """Replace a baseline whose size no longer matches the working frame."""
        old = self.buffers.baseline
        log.warning(
            "Baseline %s does not match working frame %s, reallocating",
            None if old is None else old.shape, working.shape,
        )
        self.buffers.baseline = working.copy()

    def release(self) -> None:
        self.buffers.release()
