import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
MATCHES_DIR = Path(os.getenv("SCOREBOARD_MATCHES_DIR", PROJECT_ROOT / "matches"))

SCHEMA_VERSION = 1

DEFAULT_P1_NAME = "Player 1"
DEFAULT_P2_NAME = "Player 2"
DEFAULT_SETS_TO_WIN = 2  # best of 3
DEFAULT_TIE_BREAK_AT = 6
DEFAULT_TIE_BREAK_POINTS = 7

SUPER_TIE_BREAK_POINTS = 10
SIDE_SWITCH_TIE_BREAK_POINTS = 6
