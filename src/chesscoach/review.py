"""Mistake detection across an ordered list of game positions."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable, Sequence

from chesscoach.config import ReviewPolicy
from chesscoach.constants import CRITICAL_MOMENT_LINE, GOOD_MOVE_COMMENT, MISTAKE_COMMENT, REVIEW_VARIANTS
from chesscoach.errors import EvaluationServiceError
from chesscoach.evaluation import PositionEvaluator
from chesscoach.notation import same_move
from chesscoach.schemas import EvaluationResult, GamePosition, MoveAssessment, PositionQuery


def is_mistake(played_move: str, best_move: str, evaluation: float, threshold: float) -> bool:
    """A move is a mistake when it deviates from the engine and the position is lopsided."""
    return not same_move(played_move, best_move) and abs(evaluation) > threshold


def assess_move(position: GamePosition, result: EvaluationResult, threshold: float) -> MoveAssessment:
    mistake = is_mistake(position.move, result.best_move_san, result.evaluation, threshold)
    comment = MISTAKE_COMMENT.format(best_move=result.best_move_san) if mistake else GOOD_MOVE_COMMENT
    return MoveAssessment(
        move_number=position.move_number,
        fen=position.fen,
        move=position.move,
        evaluation=result.evaluation,
        best_move=result.best_move_san,
        is_mistake=mistake,
        comment=comment,
    )


def critical_moments(assessments: Sequence[MoveAssessment]) -> list[str]:
    return [
        CRITICAL_MOMENT_LINE.format(
            move_number=item.move_number,
            move=item.move,
            best_move=item.best_move,
            comment=item.comment,
        )
        for item in assessments
        if item.is_mistake
    ]


class MistakeAnalyzer:
    """Evaluates positions one at a time, pacing calls and skipping failures."""

    def __init__(
        self,
        evaluator: PositionEvaluator,
        policy: ReviewPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.evaluator = evaluator
        self.policy = policy or ReviewPolicy()
        self._sleep = sleep

    async def review(self, positions: Sequence[GamePosition]) -> list[MoveAssessment]:
        """Assess up to ``policy.max_positions`` positions in order.

        Only ``EvaluationServiceError`` skips a position. Evaluators must wrap
        their expected failures in it; any other exception aborts the review.
        """
        selected = list(positions[: self.policy.max_positions])
        _emit(f"Analyzing {len(selected)} of {len(positions)} positions...")

        assessments: list[MoveAssessment] = []
        for index, position in enumerate(selected):
            if index > 0:
                await self._sleep(self.policy.pacing_seconds)

            query = PositionQuery(fen=position.fen, depth=self.policy.depth, variants=REVIEW_VARIANTS)
            try:
                result = await self.evaluator.evaluate(query)
            except EvaluationServiceError as exc:
                _emit(f"warning: skipped move {position.move_number}: {exc}")
                continue

            assessments.append(assess_move(position, result, self.policy.mistake_threshold))
        return assessments


def _emit(message: str) -> None:
    print(f"[chesscoach.review] {message}", file=sys.stderr)
