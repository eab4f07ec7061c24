"""
Occupancy Detection – Baseline Differencing per Square
======================================================

Pipeline:
  1. ``absdiff`` between the working frame and the baseline.
  2. Binary threshold at the pixel-difference threshold.
  3. Morphological opening (erode → dilate, 3×3) to drop lone pixels.
  4. For each of the 64 squares count the set pixels inside the central
     50 % of the cell (25 % margin on every side) so that a piece
     overhanging its neighbour does not light up two squares.
  5. Compare every count against its context-aware threshold.

Square geometry:
  • **Warped** – the working frame *is* the board; cell = size / 8.
  • **Fallback** – the raw camera frame; the board is assumed to fill
    a min(h, w) square centred horizontally and anchored at the top edge
    (for 640×480 that is 480×480 starting at x = 80).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from chess_tracker.game.squares import Occupant
from chess_tracker.vision.thresholds import DEFAULT_SENSITIVITY, square_threshold

log = logging.getLogger(__name__)

DEFAULT_PIXEL_THRESHOLD: int = 10
INNER_MARGIN: float = 0.25


# ── Data classes ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class SquareGrid:
    """Placement of the 8×8 grid inside the working frame."""
    step_x: float
    step_y: float
    offset_x: float = 0.0
    offset_y: float = 0.0

    def inner_region(self, index: int) -> Tuple[int, int, int, int]:
        """``(x, y, w, h)`` of the central region of square *index*."""
        row, col = divmod(index, 8)
        x = self.offset_x + col * self.step_x
        y = self.offset_y + row * self.step_y
        return (
            int(x + self.step_x * INNER_MARGIN),
            int(y + self.step_y * INNER_MARGIN),
            int(self.step_x * (1 - 2 * INNER_MARGIN)),
            int(self.step_y * (1 - 2 * INNER_MARGIN)),
        )


@dataclass
class OccupancyResult:
    """Per-tick output of the detector."""
    active: Tuple[int, ...]            # ascending square indices
    counts: List[int]                  # changed pixels per square
    thresholds: List[float]            # threshold applied per square
    mask: np.ndarray                   # cleaned binary difference image


# ── Geometry ───────────────────────────────────────────────────────────

def square_grid(shape: Tuple[int, ...], warped: bool) -> SquareGrid:
    """Grid for a working frame of *shape* (rows, cols)."""
    h, w = shape[:2]
    if warped:
        return SquareGrid(step_x=w / 8, step_y=h / 8)

    side = min(h, w)
    return SquareGrid(
        step_x=side / 8,
        step_y=side / 8,
        offset_x=(w - side) / 2,
        offset_y=0.0,
    )


# ── Detector ───────────────────────────────────────────────────────────

def make_kernel(size: int = 3) -> np.ndarray:
    return cv2.getStructuringElement(cv2.MORPH_RECT, (size, size))


def difference_mask(
    working: np.ndarray,
    baseline: np.ndarray,
    pixel_threshold: float,
    kernel: np.ndarray,
) -> np.ndarray:
    """Binary mask of pixels that changed by more than *pixel_threshold*."""
    diff = cv2.absdiff(working, baseline)
    _, mask = cv2.threshold(diff, pixel_threshold, 255, cv2.THRESH_BINARY)
    return cv2.morphologyEx(mask, cv2.MORPH_OPEN, kernel)


def count_changes(mask: np.ndarray, grid: SquareGrid) -> List[int]:
    """Non-zero pixel count in the inner region of each square."""
    counts: List[int] = []
    for index in range(64):
        x, y, w, h = grid.inner_region(index)
        roi = mask[y:y + h, x:x + w]
        counts.append(int(cv2.countNonZero(roi)) if roi.size else 0)
    return counts


class OccupancyDetector:
    """Finds the squares whose content differs from the baseline.

    Parameters
    ----------
    sensitivity : float
        Base changed-pixel count needed for a square to be active; scaled
        per square by the context-aware policy.
    pixel_threshold : float
        Grey-level difference above which a pixel counts as changed.
    kernel_size : int
        Side of the rectangular opening kernel.
    """

    def __init__(
        self,
        sensitivity: float = DEFAULT_SENSITIVITY,
        pixel_threshold: float = DEFAULT_PIXEL_THRESHOLD,
        kernel_size: int = 3,
    ) -> None:
        self.sensitivity = sensitivity
        self.pixel_threshold = pixel_threshold
        self.kernel_size = kernel_size
        self.kernel: Optional[np.ndarray] = None

    def init(self) -> None:
        self.kernel = make_kernel(self.kernel_size)

    def release(self) -> None:
        self.kernel = None

    def detect(
        self,
        working: np.ndarray,
        baseline: np.ndarray,
        snapshot: Sequence[Optional[Occupant]],
        warped: bool,
    ) -> OccupancyResult:
        """Compare *working* against *baseline* square by square.

        Both images must have identical dimensions; the caller handles a
        mismatch before calling.
        """
        if working.shape != baseline.shape:
            raise ValueError(
                f"Frame {working.shape} and baseline {baseline.shape} differ"
            )
        if self.kernel is None:
            self.init()

        mask = difference_mask(working, baseline, self.pixel_threshold, self.kernel)
        counts = count_changes(mask, square_grid(working.shape, warped))

        thresholds: List[float] = []
        active: List[int] = []
        for index, count in enumerate(counts):
            occupant = snapshot[index] if index < len(snapshot) else None
            threshold = square_threshold(index, occupant, self.sensitivity)
            thresholds.append(threshold)
            if count > threshold:
                active.append(index)

        return OccupancyResult(
            active=tuple(active),
            counts=counts,
            thresholds=thresholds,
            mask=mask,
        )
