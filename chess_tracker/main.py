"""
Chess Tracker – Main Entry Point
================================

Commands:

  1. **Track**   – Watch a physical board through a camera (or a
                   recorded video) and log the moves as they are played.
  2. **Infer**   – Offline check: which legal move explains two changed
                   squares in a given position?
  3. **Config**  – Write the (merged) configuration to a JSON file.

Usage examples
--------------

**Live tracking**::

    python chess_tracker.py track --source 0 --sensitivity 80

Click the four board corners (top-left, top-right, bottom-right,
bottom-left), press ``l`` to lock, then play.

**Inference**::

    python chess_tracker.py infer --squares e2 e4
    python chess_tracker.py infer --fen "<fen>" --squares 52 36

**Config**::

    python chess_tracker.py config --output tracker_config.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

import cv2

from chess_tracker.config import DEFAULT_CONFIG_FILE, TrackerConfig

log = logging.getLogger("chess_tracker")

WINDOW = "Chess Tracker"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _load_config(args: argparse.Namespace) -> TrackerConfig:
    config = TrackerConfig.load(args.config).merged(
        sensitivity=getattr(args, "sensitivity", None),
        pixel_threshold=getattr(args, "threshold", None),
        stability_ms=getattr(args, "stability_ms", None),
        engine_path=getattr(args, "engine", None),
        analysis_depth=getattr(args, "depth", None),
    )
    if getattr(args, "auto_promote", False):
        config.auto_promote = True
    config.validate()
    return config


# ═══════════════════════════════════════════════════════════════════════
# Tracking
# ═══════════════════════════════════════════════════════════════════════

def cmd_track(args: argparse.Namespace) -> None:
    """Run the live tracker in an OpenCV window."""
    from chess_tracker.camera import OpenCVCamera, parse_source
    from chess_tracker.display import LoggingDisplay, render_overlay, render_status
    from chess_tracker.game.analysis import StockfishAnalysis
    from chess_tracker.game.rules import ChessRules
    from chess_tracker.session import GameSession

    config = _load_config(args)
    if args.source is not None:
        config.camera_source = parse_source(args.source)

    camera = OpenCVCamera(
        config.camera_source, config.frame_width, config.frame_height,
    )
    try:
        camera.open()
    except ValueError as exc:
        log.error("%s", exc)
        sys.exit(1)

    display = LoggingDisplay()
    analysis: Optional[StockfishAnalysis] = None
    if not args.no_analysis:
        analysis = StockfishAnalysis(
            on_evaluation=display.update_evaluation,
            on_best_move=display.update_best_move,
            engine_path=config.engine_path,
            default_depth=config.analysis_depth,
        )
        if not analysis.init():
            analysis = None

    rules = ChessRules(args.fen) if args.fen else ChessRules()
    session = GameSession(
        config, camera=camera, rules=rules, display=display, analysis=analysis,
    )
    session.init()

    def on_mouse(event, x, y, flags, param):
        if event == cv2.EVENT_LBUTTONDOWN:
            session.add_corner(x, y)

    cv2.namedWindow(WINDOW)
    cv2.setMouseCallback(WINDOW, on_mouse)
    delay_ms = max(1, int(1000 / config.fps))

    try:
        while True:
            session.tick()
            if session.last_frame is not None:
                vis = render_overlay(session.last_frame, session.vision.overlay())
                cv2.imshow(WINDOW, render_status(vis, display))

            key = cv2.waitKey(delay_ms) & 0xFF
            if key in (ord("q"), 27):
                break
            _handle_key(session, key)
    finally:
        session.stop()
        camera.release()
        if analysis is not None:
            analysis.close()
        cv2.destroyAllWindows()

    if display.move_log:
        print("\n" + "=" * 60)
        print("  MOVES")
        print("=" * 60)
        for i, entry in enumerate(display.move_log, start=1):
            print(f"  {i:3d}. {entry}")
        print(f"  FEN: {rules.fen()}")
        print("=" * 60 + "\n")


def _handle_key(session, key: int) -> None:
    if key == ord("l"):
        session.lock()
    elif key == ord("u"):
        session.unlock()
    elif key == ord("c"):
        session.recalibrate()
    elif key == ord("n"):
        session.new_game()
    elif key in (ord("+"), ord("=")):
        session.set_sensitivity(session.config.sensitivity + 5)
    elif key == ord("-"):
        session.set_sensitivity(max(0.0, session.config.sensitivity - 5))
    elif key == ord("]"):
        session.set_threshold(min(255.0, session.config.pixel_threshold + 1))
    elif key == ord("["):
        session.set_threshold(max(0.0, session.config.pixel_threshold - 1))


# ═══════════════════════════════════════════════════════════════════════
# Inference
# ═══════════════════════════════════════════════════════════════════════

def cmd_infer(args: argparse.Namespace) -> None:
    """Print the move explained by two changed squares."""
    from chess_tracker.game.inference import infer_move
    from chess_tracker.game.rules import ChessRules
    from chess_tracker.game.squares import square_to_index

    try:
        rules = ChessRules(args.fen) if args.fen else ChessRules()
        indices = [
            int(s) if s.isdigit() else square_to_index(s) for s in args.squares
        ]
        result = infer_move(indices, rules.legal_moves())
    except ValueError as exc:
        log.error("%s", exc)
        sys.exit(1)

    print("\n" + "=" * 60)
    print("  MOVE INFERENCE")
    print("=" * 60)
    print(f"  Position   : {rules.fen()}")
    print(f"  Squares    : {', '.join(result.squares) or '-'}")
    print(f"  Outcome    : {result.status.value}")
    if result.move is not None:
        print(f"  Move       : {result.move.san} ({result.move.uci})")
    if len(result.candidates) > 1:
        print(f"  Candidates : {', '.join(m.san for m in result.candidates)}")
    print("=" * 60 + "\n")


# ═══════════════════════════════════════════════════════════════════════
# Config
# ═══════════════════════════════════════════════════════════════════════

def cmd_config(args: argparse.Namespace) -> None:
    config = _load_config(args)
    config.save(args.output)


# ═══════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════

def _add_tuning_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--sensitivity", type=float, default=None,
                   help="Base changed-pixel count per square")
    p.add_argument("--threshold", type=float, default=None,
                   help="Pixel difference threshold (0-255)")
    p.add_argument("--stability-ms", type=int, default=None,
                   help="How long a two-square change must hold")
    p.add_argument("--engine", default=None,
                   help="Path to a UCI engine (default: stockfish on PATH)")
    p.add_argument("--depth", type=int, default=None,
                   help="Analysis search depth")
    p.add_argument("--auto-promote", action="store_true",
                   help="Apply the first promotion choice instead of asking")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chess_tracker",
        description="Track moves on a physical chessboard from video.",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE,
                        help="JSON configuration file")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Debug logging")
    sub = parser.add_subparsers(dest="command", help="Available commands")

    # ── track ──
    p_track = sub.add_parser("track", help="Track a live or recorded game")
    p_track.add_argument("--source", default=None,
                         help="Camera index or video file")
    p_track.add_argument("--fen", default=None,
                         help="Start from this position instead of the initial one")
    p_track.add_argument("--no-analysis", action="store_true",
                         help="Do not start the analysis engine")
    _add_tuning_args(p_track)

    # ── infer ──
    p_inf = sub.add_parser("infer", help="Infer a move from two squares")
    p_inf.add_argument("--fen", default=None, help="Position (default: start)")
    p_inf.add_argument("--squares", nargs="+", required=True,
                       help="Changed squares as names (e2) or indices (52)")

    # ── config ──
    p_cfg = sub.add_parser("config", help="Write the configuration file")
    p_cfg.add_argument("--output", default=DEFAULT_CONFIG_FILE)
    _add_tuning_args(p_cfg)

    return parser


def main(argv: Optional[list] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    _setup_logging(args.verbose)

    dispatch = {
        "track": cmd_track,
        "infer": cmd_infer,
        "config": cmd_config,
    }

    dispatch[args.command](args)


if __name__ == "__main__":
    main()
