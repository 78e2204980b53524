"""Move-notation helpers shared by evaluation and review."""

from __future__ import annotations

import re

CHECK_SUFFIX_RE = re.compile(r"[+#]")


def normalize_move(move: str) -> str:
    """Strip check/mate markers and lower-case so cosmetic variants compare equal."""
    return CHECK_SUFFIX_RE.sub("", move).strip().lower()


def same_move(left: str, right: str) -> bool:
    return normalize_move(left) == normalize_move(right)


def best_move_label(san: str, from_square: str, to_square: str) -> str:
    if from_square and to_square:
        return f"{san} (from {from_square} to {to_square})"
    return san


def format_evaluation(value: float) -> str:
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.2f}"
