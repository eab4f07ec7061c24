"""
Move Inference – Changed Squares → Legal Move
==============================================

The vision layer only knows *where* something changed, never *what*
moved.  A move is recovered by intersecting the changed squares with
the rules engine's legal-move list:

  1. Convert each changed index to its algebraic name.
  2. Keep every legal move whose origin **and** destination are both
     among the changed squares (order independent).
  3. Resolve:
       • one candidate         → MATCHED
       • several candidates    → first one in the engine's enumeration
                                 order; flagged AMBIGUOUS_PROMOTION
                                 when they only differ by promotion
                                 piece (the camera cannot tell a queen
                                 from a knight)
       • no candidate          → NO_MOVE

Castling and en passant change more than two squares and are therefore
never reported by the two-square stability rule; they have to be entered
as manual corrections.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from chess_tracker.game.rules import LegalMove
from chess_tracker.game.squares import index_to_square

log = logging.getLogger(__name__)


class InferenceStatus(enum.Enum):
    MATCHED = "matched"
    AMBIGUOUS_PROMOTION = "ambiguous_promotion"
    NO_MOVE = "no_move"


@dataclass
class InferenceResult:
    """Outcome of matching changed squares against legal moves."""
    status: InferenceStatus
    move: Optional[LegalMove] = None              # first candidate, if any
    candidates: List[LegalMove] = field(default_factory=list)
    squares: List[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.move is not None

    @property
    def needs_disambiguation(self) -> bool:
        return self.status is InferenceStatus.AMBIGUOUS_PROMOTION


def infer_move(
    changed_indices: Sequence[int],
    legal_moves: Sequence[LegalMove],
) -> InferenceResult:
    """Find the legal move explained by *changed_indices*.

    Parameters
    ----------
    changed_indices : sequence of int
        Square indices (0–63) that differ from the baseline.
    legal_moves : sequence of LegalMove
        Verbose legal moves for the side to move, in engine order.

    Returns
    -------
    InferenceResult
    """
    if len(changed_indices) < 2:
        return InferenceResult(status=InferenceStatus.NO_MOVE)

    squares = [index_to_square(i) for i in changed_indices]
    changed = set(squares)

    candidates = [
        m for m in legal_moves
        if m.from_square in changed and m.to_square in changed
    ]

    if not candidates:
        log.info("No legal move matches changed squares %s", squares)
        return InferenceResult(status=InferenceStatus.NO_MOVE, squares=squares)

    if len(candidates) == 1:
        return InferenceResult(
            status=InferenceStatus.MATCHED,
            move=candidates[0],
            candidates=candidates,
            squares=squares,
        )

    if _promotion_variants(candidates):
        log.info(
            "Promotion on %s-%s needs a manual choice (%s)",
            candidates[0].from_square, candidates[0].to_square,
            ", ".join(m.san for m in candidates),
        )
        status = InferenceStatus.AMBIGUOUS_PROMOTION
    else:
        log.info(
            "%d moves match %s, taking the first (%s)",
            len(candidates), squares, candidates[0].san,
        )
        status = InferenceStatus.MATCHED

    return InferenceResult(
        status=status,
        move=candidates[0],
        candidates=candidates,
        squares=squares,
    )


def _promotion_variants(candidates: Sequence[LegalMove]) -> bool:
    """True if every candidate is a promotion over the same from/to pair."""
    first = candidates[0]
    return all(
        m.promotion is not None
        and m.from_square == first.from_square
        and m.to_square == first.to_square
        for m in candidates
    )
