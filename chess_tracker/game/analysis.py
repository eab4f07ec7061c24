"""
Position Analysis – UCI engine on a worker thread
=================================================

After every accepted move the session forwards the new FEN here.  The
search runs on a background thread so a slow engine never stalls the
frame loop; results are reported through two callbacks:

  • ``on_evaluation(cp)`` – centipawns from White's point of view
    (mates are folded into ±``MATE_SCORE``).
  • ``on_best_move(uci)`` – the first move of the principal variation.

Only the most recent request matters: if several positions are queued
while the engine is busy, older ones are dropped.
"""

from __future__ import annotations

import logging
import queue
import shutil
import threading
from pathlib import Path
from typing import Callable, Optional, Tuple

import chess
import chess.engine

log = logging.getLogger(__name__)

MATE_SCORE: int = 10_000

_ENGINE_CANDIDATES = (
    "stockfish",
    "/usr/local/bin/stockfish",
    "/usr/bin/stockfish",
    "/usr/games/stockfish",
)


def find_engine(path: Optional[str] = None) -> Optional[str]:
    """Resolve an engine binary: explicit path, then PATH, then defaults."""
    if path:
        return path if Path(path).exists() or shutil.which(path) else None
    for candidate in _ENGINE_CANDIDATES:
        resolved = shutil.which(candidate)
        if resolved:
            return resolved
        if Path(candidate).exists():
            return candidate
    return None


class StockfishAnalysis:
    """Asynchronous analysis-service collaborator.

    Parameters
    ----------
    on_evaluation : callable
        Receives the evaluation in centipawns (White's view).
    on_best_move : callable
        Receives the best move as a UCI string.
    engine_path : str, optional
        Engine binary.  ``None`` searches ``PATH`` for ``stockfish``.
    default_depth : int
        Search depth used when ``analyze`` is called without one.
    """

    def __init__(
        self,
        on_evaluation: Callable[[int], None],
        on_best_move: Callable[[str], None],
        engine_path: Optional[str] = None,
        default_depth: int = 12,
    ) -> None:
        self.on_evaluation = on_evaluation
        self.on_best_move = on_best_move
        self.engine_path = engine_path
        self.default_depth = default_depth

        self._engine: Optional[chess.engine.SimpleEngine] = None
        self._jobs: "queue.Queue[Optional[Tuple[str, int]]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None

    @property
    def available(self) -> bool:
        return self._engine is not None

    # ── Lifecycle ──────────────────────────────────────────────────────

    def init(self) -> bool:
        """Start the engine process and worker thread.

        Returns ``False`` (analysis disabled) if no engine can be started.
        """
        if self._engine is not None:
            return True

        resolved = find_engine(self.engine_path)
        if resolved is None:
            log.warning("No UCI engine found; position analysis disabled")
            return False

        try:
            self._engine = chess.engine.SimpleEngine.popen_uci(resolved)
        except (OSError, chess.engine.EngineError) as exc:
            log.warning("Could not start engine %s: %s", resolved, exc)
            return False

        self._worker = threading.Thread(
            target=self._run, name="analysis", daemon=True,
        )
        self._worker.start()
        log.info("Analysis engine started: %s", resolved)
        return True

    def close(self) -> None:
        if self._worker is not None:
            self._jobs.put(None)
            self._worker.join(timeout=5.0)
            self._worker = None
        if self._engine is not None:
            try:
                self._engine.quit()
            except chess.engine.EngineError as exc:
                log.debug("Engine quit failed: %s", exc)
            self._engine = None

    # ── Requests ───────────────────────────────────────────────────────

    def analyze(self, fen: str, depth: Optional[int] = None) -> None:
        """Queue *fen* for analysis; returns immediately."""
        if self._engine is None:
            return
        self._jobs.put((fen, depth or self.default_depth))

    # ── Worker ─────────────────────────────────────────────────────────

    def _next_job(self) -> Optional[Tuple[str, int]]:
        job = self._jobs.get()
        # Drain to the newest request
        while job is not None:
            try:
                newer = self._jobs.get_nowait()
            except queue.Empty:
                break
            job = newer
        return job

    def _run(self) -> None:
        while True:
            job = self._next_job()
            if job is None:
                return
            fen, depth = job
            try:
                self._analyse_one(fen, depth)
            except chess.engine.EngineTerminatedError:
                log.error("Analysis engine terminated")
                return
            except (chess.engine.EngineError, ValueError) as exc:
                log.error("Analysis failed for %s: %s", fen, exc)

    def _analyse_one(self, fen: str, depth: int) -> None:
        assert self._engine is not None
        board = chess.Board(fen)
        info = self._engine.analyse(board, chess.engine.Limit(depth=depth))

        score = info.get("score")
        if score is not None:
            cp = score.white().score(mate_score=MATE_SCORE)
            if cp is not None:
                self.on_evaluation(cp)

        pv = info.get("pv")
        if pv:
            self.on_best_move(pv[0].uci())
