"""
Context-aware per-square thresholds.

A moving piece changes far fewer pixels when it has little contrast with
its square (dark piece on a dark square, light on light), so the
required pixel count is lowered for those cases.  The known occupant
comes from the last accepted board state.
"""

from __future__ import annotations

from typing import Optional

from chess_tracker.game.squares import DARK, LIGHT, Occupant, square_color

DEFAULT_SENSITIVITY: float = 80.0


def square_threshold(
    index: int,
    occupant: Optional[Occupant],
    base_sensitivity: float = DEFAULT_SENSITIVITY,
) -> float:
    """Minimum changed-pixel count for square *index* to count as active."""
    color = square_color(index)

    if color == DARK:
        if occupant is not None and occupant.is_dark:
            return max(10.0, base_sensitivity * 0.4)
        if occupant is None:
            return max(15.0, base_sensitivity * 0.5)
    elif color == LIGHT:
        if occupant is not None and occupant.is_light:
            return max(20.0, base_sensitivity * 0.6)

    return float(base_sensitivity)
