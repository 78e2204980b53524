"""Environment-driven settings for the evaluation service and game review."""

from __future__ import annotations

from dataclasses import dataclass
from os import environ
from typing import Mapping

from dotenv import load_dotenv

from chesscoach.constants import (
    DEFAULT_EVAL_TIMEOUT_SECONDS,
    DEFAULT_EVAL_URL,
    MISTAKE_EVAL_THRESHOLD,
    REVIEW_DEPTH,
    REVIEW_MAX_POSITIONS,
    REVIEW_PACING_MS,
)


@dataclass(frozen=True)
class EvaluationServiceConfig:
    url: str
    timeout_seconds: float


@dataclass(frozen=True)
class ReviewPolicy:
    """Tunable thresholds for the mistake analyzer."""

    mistake_threshold: float = MISTAKE_EVAL_THRESHOLD
    pacing_seconds: float = REVIEW_PACING_MS / 1000
    max_positions: int = REVIEW_MAX_POSITIONS
    depth: int = REVIEW_DEPTH


def _values(env: Mapping[str, str] | None) -> Mapping[str, str]:
    if env is None:
        load_dotenv()
        return environ
    return env


def _float_value(values: Mapping[str, str], key: str, default: float) -> float:
    raw = values.get(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_value(values: Mapping[str, str], key: str, default: int) -> int:
    raw = values.get(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_evaluation_config(env: Mapping[str, str] | None = None) -> EvaluationServiceConfig:
    values = _values(env)
    url = values.get("CHESSCOACH_EVAL_URL", "").strip() or DEFAULT_EVAL_URL
    timeout = _float_value(values, "CHESSCOACH_EVAL_TIMEOUT", DEFAULT_EVAL_TIMEOUT_SECONDS)
    if timeout <= 0:
        timeout = DEFAULT_EVAL_TIMEOUT_SECONDS
    return EvaluationServiceConfig(url=url, timeout_seconds=timeout)


def load_review_policy(env: Mapping[str, str] | None = None) -> ReviewPolicy:
    values = _values(env)
    threshold = _float_value(values, "CHESSCOACH_MISTAKE_THRESHOLD", MISTAKE_EVAL_THRESHOLD)
    pacing_ms = _int_value(values, "CHESSCOACH_PACING_MS", REVIEW_PACING_MS)
    max_positions = _int_value(values, "CHESSCOACH_MAX_REVIEW_POSITIONS", REVIEW_MAX_POSITIONS)
    depth = _int_value(values, "CHESSCOACH_REVIEW_DEPTH", REVIEW_DEPTH)
    return ReviewPolicy(
        mistake_threshold=threshold if threshold >= 0 else MISTAKE_EVAL_THRESHOLD,
        pacing_seconds=max(pacing_ms, 0) / 1000,
        max_positions=max_positions if max_positions >= 1 else REVIEW_MAX_POSITIONS,
        depth=depth,
    )
