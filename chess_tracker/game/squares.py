"""
Square Geometry – Index ↔ Algebraic Conversion
===============================================

Square indices are **camera row-major**: index 0 is the top-left square
of the warped board (a8), index 63 is the bottom-right (h1).  Row 0 is
rank 8, column 0 is file a.

This module also defines the board-context types consumed by the
occupancy thresholds:

  • ``Occupant``      – (piece type, colour) of a piece on a square.
  • ``BoardSnapshot`` – 64 optional occupants in square-index order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import chess

FILES = "abcdefgh"
RANKS = "87654321"  # row 0 → rank 8

LIGHT = "w"
DARK = "b"


# ── Data structures ────────────────────────────────────────────────────

@dataclass(frozen=True)
class Occupant:
    """A piece standing on a square."""
    piece_type: str            # "p" | "n" | "b" | "r" | "q" | "k"
    color: str                 # "w" (light piece) | "b" (dark piece)

    @property
    def is_light(self) -> bool:
        return self.color == LIGHT

    @property
    def is_dark(self) -> bool:
        return self.color == DARK


BoardSnapshot = List[Optional[Occupant]]


# ── Conversions ────────────────────────────────────────────────────────

def index_to_square(index: int) -> str:
    """Convert a 0–63 index to an algebraic name (0 → ``a8``, 63 → ``h1``)."""
    if not 0 <= index < 64:
        raise ValueError(f"Square index out of range: {index}")
    row, col = divmod(index, 8)
    return FILES[col] + RANKS[row]


def square_to_index(name: str) -> int:
    """Convert an algebraic name such as ``e2`` to its 0–63 index."""
    name = name.strip().lower()
    if len(name) != 2 or name[0] not in FILES or name[1] not in RANKS:
        raise ValueError(f"Not a square name: {name!r}")
    return RANKS.index(name[1]) * 8 + FILES.index(name[0])


def index_to_chess_square(index: int) -> chess.Square:
    """Convert a 0–63 index to a python-chess square number (a1 = 0)."""
    row, col = divmod(index, 8)
    return chess.square(col, 7 - row)


def square_color(index: int) -> str:
    """Grid colour of a square: ``"w"`` when (row + col) is even."""
    row, col = divmod(index, 8)
    return LIGHT if (row + col) % 2 == 0 else DARK


# ── Snapshots ──────────────────────────────────────────────────────────

def empty_snapshot() -> BoardSnapshot:
    return [None] * 64


def flatten_board(grid: Sequence[Sequence[Optional[Occupant]]]) -> BoardSnapshot:
    """Flatten an 8×8 grid (rank 8 first, file a first) into a snapshot.

    The rules engine reports its board top rank first, which is exactly
    the camera row order, so a plain row-major flatten lines up with the
    square indices.
    """
    if len(grid) != 8 or any(len(row) != 8 for row in grid):
        raise ValueError("Board grid must be 8×8")
    return [occupant for row in grid for occupant in row]
