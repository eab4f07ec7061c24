"""
Chess Tracker
=============

Follows a game on a physical chessboard through a fixed camera and turns
what it sees into legal moves.

Architecture:
    1. Calibration       – 4 clicked corners → perspective warp to 400×400
    2. Frame pipeline    – grey-scale working frame (warped or raw)
    3. Occupancy         – baseline difference, per-square inner-ROI counts
    4. Thresholds        – per-square sensitivity from piece / square colour
    5. Stability         – same two squares held for 1 s → move detected
    6. Move inference    – match the two squares against legal moves
    7. Session           – apply the move, re-baseline, analyse, report
"""

__version__ = "1.0.0"
