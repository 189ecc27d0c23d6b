"""
Root entry point – delegates to the chess_overlay package.

Usage:
    python chess_overlay.py recognize --image board.jpg --board-model board.pt --piece-model pieces.pt
    python chess_overlay.py validate  "8/8/8/8/8/8/8/4K2k w - - 0 1"
    python chess_overlay.py overlay   --move e2e4 --crop-rect 100,50,600,600 --source 1280x720 --view 390x844
"""

import sys

from chess_overlay.main import main

if __name__ == "__main__":
    sys.exit(main())
