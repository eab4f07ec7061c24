"""
Rules Engine Adapter – python-chess
===================================

The tracker never generates moves itself.  Everything it knows about
legality, position strings and game end comes from this adapter around
``chess.Board``.

The verbose move form (``LegalMove``) mirrors what the move inference
needs: origin and destination square names, the promotion piece (if
any) and the human-readable SAN / UCI strings for logging.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

import chess

from chess_tracker.game.squares import DARK, LIGHT, Occupant, index_to_chess_square

log = logging.getLogger(__name__)


# ── Data structures ────────────────────────────────────────────────────

@dataclass(frozen=True)
class LegalMove:
    """Verbose description of one legal move."""
    from_square: str           # e.g. "e2"
    to_square: str             # e.g. "e4"
    promotion: Optional[str]   # "q" | "r" | "b" | "n" | None
    san: str                   # e.g. "e4", "exd5", "e8=Q+"
    uci: str                   # e.g. "e2e4", "e7e8q"
    is_capture: bool = False

    def to_chess_move(self) -> chess.Move:
        return chess.Move.from_uci(self.uci)


# ── Adapter ────────────────────────────────────────────────────────────

class ChessRules:
    """Rules-engine collaborator backed by python-chess.

    Parameters
    ----------
    fen : str, optional
        Starting position.  Defaults to the standard initial position.
    """

    def __init__(self, fen: Optional[str] = None) -> None:
        self.board = chess.Board(fen) if fen else chess.Board()

    # ── Queries ────────────────────────────────────────────────────────

    def legal_moves(self) -> List[LegalMove]:
        """All legal moves for the side to move, in generation order."""
        return [self._describe(move) for move in self.board.legal_moves]

    def board_state(self) -> List[List[Optional[Occupant]]]:
        """8×8 grid of occupants, rank 8 first, file a first."""
        grid: List[List[Optional[Occupant]]] = []
        for r in range(8):
            row: List[Optional[Occupant]] = []
            for c in range(8):
                piece = self.board.piece_at(index_to_chess_square(r * 8 + c))
                if piece is None:
                    row.append(None)
                else:
                    row.append(Occupant(
                        piece_type=chess.piece_symbol(piece.piece_type),
                        color=LIGHT if piece.color == chess.WHITE else DARK,
                    ))
            grid.append(row)
        return grid

    def fen(self) -> str:
        return self.board.fen()

    def turn(self) -> str:
        return LIGHT if self.board.turn == chess.WHITE else DARK

    def is_checkmate(self) -> bool:
        return self.board.is_checkmate()

    def is_game_over(self) -> bool:
        return self.board.is_game_over()

    def result(self) -> str:
        return self.board.result()

    # ── Mutations ──────────────────────────────────────────────────────

    def apply_move(
        self, move: Union[LegalMove, chess.Move, str],
    ) -> Optional[LegalMove]:
        """Play *move* if it is legal.

        Accepts a ``LegalMove``, a ``chess.Move`` or a UCI string.
        Returns the verbose move actually played, or ``None`` when the
        move is malformed or illegal (the position is left untouched).
        """
        try:
            if isinstance(move, LegalMove):
                candidate = move.to_chess_move()
            elif isinstance(move, chess.Move):
                candidate = move
            else:
                candidate = chess.Move.from_uci(move.strip().lower())
        except ValueError as exc:
            log.warning("Malformed move %r: %s", move, exc)
            return None

        if candidate not in self.board.legal_moves:
            log.warning("Illegal move %s in %s", candidate.uci(), self.board.fen())
            return None

        played = self._describe(candidate)
        self.board.push(candidate)
        return played

    def reset(self) -> None:
        self.board.reset()

    def load_fen(self, fen: str) -> None:
        """Replace the position.  Raises ``ValueError`` on a bad FEN."""
        self.board.set_fen(fen)

    # ── Helpers ────────────────────────────────────────────────────────

    def _describe(self, move: chess.Move) -> LegalMove:
        return LegalMove(
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            promotion=(
                chess.piece_symbol(move.promotion) if move.promotion else None
            ),
            san=self.board.san(move),
            uci=move.uci(),
            is_capture=self.board.is_capture(move),
        )
