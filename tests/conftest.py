"""Synthetic frames shared by the tests.

Frames are 400×400 grey images, so one square is a 50×50 cell and its
inner region is the central 25×25 block.
"""

import numpy as np
import pytest

FRAME_SIZE = 400
CELL = FRAME_SIZE // 8
IDENTITY_CORNERS = [(0, 0), (FRAME_SIZE, 0), (FRAME_SIZE, FRAME_SIZE), (0, FRAME_SIZE)]


def blank_frame(value=100, size=FRAME_SIZE):
    return np.full((size, size), value, dtype=np.uint8)


def mark_square(frame, index, value=220, half=10):
    """Paint a (2*half)² block in the middle of square *index*."""
    row, col = divmod(index, 8)
    cx = col * CELL + CELL // 2
    cy = row * CELL + CELL // 2
    out = frame.copy()
    out[cy - half:cy + half, cx - half:cx + half] = value
    return out


def frame_with(*indices, base=100, value=220):
    frame = blank_frame(base)
    for index in indices:
        frame = mark_square(frame, index, value)
    return frame


@pytest.fixture
def base_frame():
    return blank_frame()
