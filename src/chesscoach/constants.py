"""Shared constants for evaluation, review and report assembly."""

from __future__ import annotations

DEFAULT_EVAL_URL = "https://chess-api.com/v1"
DEFAULT_EVAL_TIMEOUT_SECONDS = 30.0

MIN_DEPTH = 1
MAX_DEPTH = 18
DEFAULT_DEPTH = 12
MIN_VARIANTS = 1
MAX_VARIANTS = 5
DEFAULT_VARIANTS = 1
ANALYSIS_VARIANTS = 3

TERMINAL_RECORD_TYPE = "bestmove"

REVIEW_DEPTH = 12
REVIEW_VARIANTS = 1
REVIEW_MAX_POSITIONS = 10
MISTAKE_EVAL_THRESHOLD = 1.0
REVIEW_PACING_MS = 200
REVIEW_PROMPT_EVAL_LINES = 5

MISTAKE_COMMENT = "Better was {best_move}. Evaluation changed significantly."
GOOD_MOVE_COMMENT = "Good move, in line with engine suggestion."
CRITICAL_MOMENT_LINE = "Move {move_number}: Played {move}, better was {best_move}. {comment}"
NO_CRITICAL_MOMENTS = "No significant mistakes detected in analyzed positions."

BULLET_GLYPHS = ("•", "-")
STRATEGIC_ADVICE_PLACEHOLDER = "See best move analysis for strategic guidance"
TACTICAL_THEMES_PLACEHOLDER = "Position analysis provided"
ALTERNATIVE_MOVES_PLACEHOLDER = "See best move analysis"

MIN_TOOL_COUNT = 1
MAX_TOOL_COUNT = 5
DEFAULT_FAMOUS_GAMES_COUNT = 2
MIN_FACT_COUNT = 3
