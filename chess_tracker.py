"""
Root entry point – delegates to the chess_tracker package.

Usage:
    python chess_tracker.py track  --source 0
    python chess_tracker.py infer  --squares e2 e4
    python chess_tracker.py config --output tracker_config.json
"""

from chess_tracker.main import main

if __name__ == "__main__":
    main()
