"""
Board Calibration – Four Clicked Corners → Perspective Transform
================================================================

The user clicks the four outer corners of the board in clockwise order
starting at the top-left.  Once the fourth corner is in, a perspective
transform is computed that maps the quadrilateral onto a square
canonical frame of side ``warp_size``:

    top-left     → (0, 0)
    top-right    → (W, 0)
    bottom-right → (W, W)
    bottom-left  → (0, W)

With fewer than four corners there is no transform and consumers fall
back to the raw, un-warped frame.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

log = logging.getLogger(__name__)

WARP_SIZE: int = 400  # Side of the canonical board frame

CORNER_LABELS: Tuple[str, ...] = (
    "Top-Left", "Top-Right", "Bottom-Right", "Bottom-Left",
)

Point = Tuple[float, float]


class CalibrationUnit:
    """Collects board corners and owns the derived transform."""

    def __init__(self, warp_size: int = WARP_SIZE) -> None:
        self.warp_size = warp_size
        self.corners: List[Point] = []
        self.transform: Optional[np.ndarray] = None

    @property
    def is_complete(self) -> bool:
        return self.transform is not None

    def add_corner(self, x: float, y: float) -> bool:
        """Append a corner.  Returns ``False`` once four are stored."""
        if len(self.corners) >= 4:
            return False
        self.corners.append((float(x), float(y)))
        log.debug("Corner %d (%s) at (%.1f, %.1f)",
                  len(self.corners), CORNER_LABELS[len(self.corners) - 1], x, y)
        if len(self.corners) == 4:
            self.transform = compute_transform(self.corners, self.warp_size)
            log.info("Perspective transform computed")
        return True

    def reset_corners(self) -> None:
        self.corners = []
        self.transform = None

    def next_corner_label(self) -> Optional[str]:
        """Name of the next expected corner, or ``None`` when complete."""
        if len(self.corners) >= 4:
            return None
        return CORNER_LABELS[len(self.corners)]

    def transform_points(self, points: Sequence[Point]) -> np.ndarray:
        """Map image points into the canonical board frame."""
        if self.transform is None:
            raise RuntimeError("Calibration incomplete: no transform")
        return transform_points(points, self.transform)


# ── Geometry helpers ───────────────────────────────────────────────────

def canonical_corners(size: int = WARP_SIZE) -> np.ndarray:
    """Destination corners (TL, TR, BR, BL) of the canonical frame."""
    return np.array([
        [0, 0],
        [size, 0],
        [size, size],
        [0, size],
    ], dtype=np.float32)


def compute_transform(
    corners: Sequence[Point],
    size: int = WARP_SIZE,
) -> np.ndarray:
    """Perspective transform from 4 clockwise corners to the square frame.

    Parameters
    ----------
    corners : sequence of (x, y)
        Exactly four image points in TL, TR, BR, BL order.  The order is
        taken as given; it is never re-sorted.
    size : int
        Side length of the canonical frame.

    Returns
    -------
    np.ndarray
        3×3 float64 homography.
    """
    if len(corners) != 4:
        raise ValueError(f"Expected 4 corners, got {len(corners)}")
    src = np.array(corners, dtype=np.float32)
    return cv2.getPerspectiveTransform(src, canonical_corners(size))


def transform_points(points: Sequence[Point], matrix: np.ndarray) -> np.ndarray:
    """Apply a 3×3 perspective transform to a list of points."""
    if len(points) == 0:
        return np.zeros((0, 2), dtype=np.float32)
    pts = np.array(points, dtype=np.float32).reshape(-1, 1, 2)
    return cv2.perspectiveTransform(pts, matrix).reshape(-1, 2)
