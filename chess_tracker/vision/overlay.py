"""
Overlay drawing instructions.

The vision core never paints pixels.  It describes what the display
should draw on top of the camera image (corner markers, the calibrated
outline, the next-corner prompt, the active-square mini-map) as plain
data, and the display layer decides how to render it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from chess_tracker.vision.calibration import CORNER_LABELS, Point

Color = Tuple[int, int, int]  # BGR, OpenCV convention

MARKER_COLOR: Color = (60, 76, 231)      # red
PROMPT_COLOR: Color = (15, 196, 241)     # yellow
ACTIVE_COLOR: Color = (0, 0, 255)
MINIMAP_BORDER: Color = (255, 255, 255)

MINIMAP_ORIGIN: Tuple[int, int] = (10, 10)
MINIMAP_SIZE: int = 100


@dataclass(frozen=True)
class DrawPoint:
    x: float
    y: float
    radius: int
    color: Color


@dataclass(frozen=True)
class DrawText:
    text: str
    x: float
    y: float
    color: Color
    scale: float = 0.6


@dataclass(frozen=True)
class DrawPolygon:
    points: Tuple[Point, ...]
    color: Color
    closed: bool = True
    thickness: int = 2


@dataclass(frozen=True)
class DrawRect:
    x: float
    y: float
    width: float
    height: float
    color: Color
    filled: bool = False


DrawInstruction = Union[DrawPoint, DrawText, DrawPolygon, DrawRect]


def calibration_overlay(
    corners: Sequence[Point],
    locked: bool,
) -> List[DrawInstruction]:
    """Markers for the clicked corners plus either the outline or a prompt.

    Every stored corner gets a dot and its 1-based ordinal.  With all
    four corners the quadrilateral is outlined in click order; otherwise,
    while unlocked, a prompt names the next corner to click.
    """
    instructions: List[DrawInstruction] = []

    for i, (x, y) in enumerate(corners):
        instructions.append(DrawPoint(x, y, radius=5, color=MARKER_COLOR))
        instructions.append(DrawText(str(i + 1), x + 8, y - 8, MARKER_COLOR))

    if len(corners) == 4:
        instructions.append(DrawPolygon(tuple(corners), MARKER_COLOR))
    elif not locked:
        label = CORNER_LABELS[len(corners)]
        instructions.append(
            DrawText(f"Click {label}", 20, 30, PROMPT_COLOR, scale=0.8),
        )

    return instructions


def active_minimap(
    active: Iterable[int],
    origin: Optional[Tuple[int, int]] = None,
    size: int = MINIMAP_SIZE,
) -> List[DrawInstruction]:
    """Small 8×8 debug grid with the active squares filled in."""
    ox, oy = origin or MINIMAP_ORIGIN
    cell = size / 8
    instructions: List[DrawInstruction] = [
        DrawRect(ox, oy, size, size, MINIMAP_BORDER),
    ]
    for index in active:
        row, col = divmod(index, 8)
        instructions.append(DrawRect(
            ox + col * cell, oy + row * cell, cell - 1, cell - 1,
            ACTIVE_COLOR, filled=True,
        ))
    return instructions
