from __future__ import annotations

from collections.abc import AsyncIterator, Sequence

import pytest

from chesscoach.errors import EvaluationServiceError
from chesscoach.llm_provider import NarrationMessage
from chesscoach.schemas import EvaluationResult, PositionQuery

START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


def make_result(san: str = "Nf3", evaluation: float = 0.3, mate_in: int | None = None) -> EvaluationResult:
    return EvaluationResult(
        best_move=f"{san} (from g1 to f3)",
        best_move_san=san,
        evaluation=evaluation,
        win_chance=52.0,
        depth=12,
        variations=[san],
        is_mate=mate_in is not None,
        mate_in=mate_in,
        description=f"Move {san}",
    )


class FakeNarrator:
    """Streams a canned narration word by word and records the prompts it saw."""

    def __init__(self, text: str = "Narration.") -> None:
        self.text = text
        self.calls: list[list[NarrationMessage]] = []

    async def stream(self, messages: Sequence[NarrationMessage]) -> AsyncIterator[str]:
        self.calls.append(list(messages))
        for index, token in enumerate(self.text.split(" ")):
            yield token if index == 0 else f" {token}"


class FakeEvaluator:
    """Returns queued results per FEN; an exception in the queue is raised instead."""

    def __init__(self, results: dict[str, EvaluationResult | Exception] | None = None) -> None:
        self.results = results or {}
        self.default: EvaluationResult | Exception = make_result()
        self.queries: list[PositionQuery] = []

    async def evaluate(self, query: PositionQuery) -> EvaluationResult:
        self.queries.append(query)
        outcome = self.results.get(query.fen, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_evaluator() -> FakeEvaluator:
    return FakeEvaluator()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def service_failure() -> EvaluationServiceError:
    return EvaluationServiceError("Chess API error: 503", status_code=503)
