from __future__ import annotations

import asyncio
import json
import random
from typing import Any

import httpx
import pytest
from conftest import START_FEN, FakeEvaluator, FakeNarrator, RecordingSleep, make_result

from chesscoach.agents import CHESS_AGENT, freeze_registry
from chesscoach.config import EvaluationServiceConfig, ReviewPolicy
from chesscoach.constants import NO_CRITICAL_MOMENTS
from chesscoach.errors import EvaluationServiceError, NarrationUnavailableError, ValidationError
from chesscoach.evaluation import EvaluationClient
from chesscoach.pipeline import PipelineContext
from chesscoach.prompts import ALTERNATIVE_MOVES_MARKER, STRATEGIC_ADVICE_MARKER, TACTICAL_THEMES_MARKER
from chesscoach.schemas import AnalysisReport, GamePosition
from chesscoach.tools import CHESS_FACTS, FAMOUS_GAMES
from chesscoach.workflows import analyze, chess_analysis_workflow, chess_learning_workflow, game_review_workflow, learn, review

SERVICE_URL = "https://chess-api.test/v1"

ADVICE_NARRATION = (
    f"{STRATEGIC_ADVICE_MARKER}\nDevelop quickly and fight for the center.\n\n"
    f"{TACTICAL_THEMES_MARKER}\n• Pin on c6\n• Pressure on e5\n\n"
    f"{ALTERNATIVE_MOVES_MARKER}\n• d4: opens the center\n"
)


def _context(evaluator: Any = None, narrator: FakeNarrator | None = None, **kwargs: Any) -> PipelineContext:
    agents = {} if narrator is None else {CHESS_AGENT: narrator}
    return PipelineContext(
        agents=freeze_registry(agents),
        evaluator=evaluator,
        rng=random.Random(11),
        sleep=RecordingSleep(),
        **kwargs,
    )


def _positions(count: int) -> list[GamePosition]:
    return [GamePosition(move_number=idx, fen=f"{START_FEN} #{idx}", move="e4") for idx in range(1, count + 1)]


def _analyze_over_http(narrator: FakeNarrator, captured: list[dict[str, Any]]) -> AnalysisReport:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(json.loads(request.content))
        records = [
            {"type": "move", "san": "e4", "eval": 0.4, "winChance": 54.0, "from": "e2", "to": "e4"},
            {
                "type": "bestmove",
                "san": "Nf3",
                "eval": 0.3,
                "winChance": 53.0,
                "depth": 12,
                "from": "g1",
                "to": "f3",
                "text": "Move g1 → f3 (Nf3): [0.3]",
                "continuationArr": ["g1f3", "d7d5"],
                "mate": None,
            },
        ]
        return httpx.Response(200, json=records)

    async def run() -> AnalysisReport:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            client = EvaluationClient(EvaluationServiceConfig(url=SERVICE_URL, timeout_seconds=5), http_client=http_client)
            return await analyze(START_FEN, context=_context(client, narrator))

    return asyncio.run(run())


def test_workflow_step_chains() -> None:
    assert [step.id for step in chess_analysis_workflow.steps] == ["analyze-position", "generate-strategic-advice"]
    assert [step.id for step in game_review_workflow.steps] == [
        "parse-game-moves",
        "analyze-game-positions",
        "generate-game-review",
    ]
    assert [step.id for step in chess_learning_workflow.steps] == [
        "fetch-famous-games",
        "fetch-chess-facts",
        "generate-educational-summary",
    ]


def test_analyze_end_to_end_over_http() -> None:
    captured: list[dict[str, Any]] = []
    narrator = FakeNarrator(ADVICE_NARRATION)

    report = _analyze_over_http(narrator, captured)

    assert captured == [{"fen": START_FEN, "depth": 12, "variants": 3}]
    assert report.position.is_mate is False
    assert report.position.mate_in is None
    assert "Nf3" in report.position.best_move
    assert report.position.win_chance == 53.0
    assert report.strategic_advice == "Develop quickly and fight for the center."
    assert report.tactical_themes == ["Pin on c6", "Pressure on e5"]
    assert report.alternative_moves == ["d4: opens the center"]

    prompt = narrator.calls[0][-1].content
    assert "Best Move: Nf3 (from g1 to f3)" in prompt
    assert STRATEGIC_ADVICE_MARKER in prompt


def test_analyze_with_unstructured_narration_uses_fallbacks() -> None:
    evaluator = FakeEvaluator()
    report = asyncio.run(analyze(START_FEN, 6, context=_context(evaluator, FakeNarrator("Just castle."))))

    assert evaluator.queries[0].depth == 6
    assert evaluator.queries[0].variants == 3
    assert report.strategic_advice == "Just castle."
    assert report.tactical_themes == ["Position analysis provided"]
    assert report.alternative_moves == ["See best move analysis"]


def test_analyze_forwards_streamed_tokens() -> None:
    seen: list[str] = []
    context = _context(FakeEvaluator(), FakeNarrator("Play d4 now."), on_token=seen.append)

    asyncio.run(analyze(START_FEN, context=context))

    assert "".join(seen) == "Play d4 now."


def test_analyze_mate_is_reported() -> None:
    evaluator = FakeEvaluator()
    evaluator.default = make_result("Qh7#", 15.0, mate_in=2)
    narrator = FakeNarrator("Mate follows.")

    report = asyncio.run(analyze(START_FEN, context=_context(evaluator, narrator)))

    assert report.position.is_mate is True
    assert report.position.mate_in == 2
    assert "Forced mate in 2 moves!" in narrator.calls[0][-1].content


def test_analyze_service_failure_is_fatal(service_failure: EvaluationServiceError) -> None:
    evaluator = FakeEvaluator()
    evaluator.default = service_failure
    narrator = FakeNarrator()

    with pytest.raises(EvaluationServiceError):
        asyncio.run(analyze(START_FEN, context=_context(evaluator, narrator)))
    assert narrator.calls == []


def test_analyze_rejects_blank_fen() -> None:
    evaluator = FakeEvaluator()

    with pytest.raises(ValidationError):
        asyncio.run(analyze("   ", context=_context(evaluator, FakeNarrator())))
    assert evaluator.queries == []


def test_analyze_without_narrator_fails_after_evaluation() -> None:
    evaluator = FakeEvaluator()

    with pytest.raises(NarrationUnavailableError):
        asyncio.run(analyze(START_FEN, context=_context(evaluator)))
    assert len(evaluator.queries) == 1


def test_review_analyzes_at_most_ten_positions() -> None:
    evaluator = FakeEvaluator()
    narrator = FakeNarrator("Solid game overall.")
    context = _context(evaluator, narrator)

    result = asyncio.run(review(_positions(12), context=context))

    assert result.total_moves == 12
    assert len(result.analyzed_positions) == 10
    assert result.overall_assessment == "Solid game overall."
    assert result.critical_moments == []
    assert context.sleep.delays == [0.2] * 9

    prompt = narrator.calls[0][-1].content
    assert "Total Moves Analyzed: 10 of 12" in prompt
    assert NO_CRITICAL_MOMENTS in prompt


def test_review_continues_past_service_failures(service_failure: EvaluationServiceError) -> None:
    positions = _positions(3)
    evaluator = FakeEvaluator({positions[0].fen: service_failure, positions[2].fen: make_result("Qh5", -2.5)})

    result = asyncio.run(review(positions, context=_context(evaluator, FakeNarrator("Review."))))

    assert [item.move_number for item in result.analyzed_positions] == [2, 3]
    assert result.critical_moments == [
        "Move 3: Played e4, better was Qh5. Better was Qh5. Evaluation changed significantly."
    ]


def test_review_accepts_plain_mappings() -> None:
    positions = [{"move_number": 1, "fen": START_FEN, "move": "Nf3"}]

    result = asyncio.run(review(positions, context=_context(FakeEvaluator(), FakeNarrator("Fine."))))

    assert result.total_moves == 1
    assert result.analyzed_positions[0].is_mistake is False


def test_review_rejects_empty_positions() -> None:
    evaluator = FakeEvaluator()
    narrator = FakeNarrator()

    with pytest.raises(ValidationError, match="No positions"):
        asyncio.run(review([], context=_context(evaluator, narrator)))
    assert evaluator.queries == []
    assert narrator.calls == []


def test_review_rejects_decreasing_move_numbers() -> None:
    positions = [
        GamePosition(move_number=5, fen=START_FEN, move="e4"),
        GamePosition(move_number=4, fen=START_FEN, move="d4"),
    ]

    with pytest.raises(ValidationError, match="must not decrease"):
        asyncio.run(review(positions, context=_context(FakeEvaluator(), FakeNarrator())))


def test_review_uses_context_policy() -> None:
    evaluator = FakeEvaluator()
    context = _context(evaluator, FakeNarrator("Ok."), review_policy=ReviewPolicy(max_positions=3, depth=8))

    result = asyncio.run(review(_positions(6), context=context))

    assert len(result.analyzed_positions) == 3
    assert {query.depth for query in evaluator.queries} == {8}


def test_learn_defaults_to_two_games_and_three_facts() -> None:
    narrator = FakeNarrator("Study the classics.")

    content = asyncio.run(learn(context=_context(narrator=narrator)))

    assert len(content.famous_games) == 2
    assert content.fact_count == 3
    assert len(content.facts) == 3
    assert set(content.facts) <= set(CHESS_FACTS)
    assert all(game in FAMOUS_GAMES for game in content.famous_games)
    assert content.educational_summary == "Study the classics."
    assert content.famous_games[0].move in narrator.calls[0][-1].content


@pytest.mark.parametrize(("count", "games", "facts"), [(1, 1, 3), (3, 3, 4), (5, 5, 5), (40, 5, 5), (0, 1, 3)])
def test_learn_bounds_counts(count: int, games: int, facts: int) -> None:
    content = asyncio.run(learn(count, context=_context(narrator=FakeNarrator("Summary."))))

    assert len(content.famous_games) == games
    assert content.fact_count == facts
    assert len(set(content.facts)) == facts


def test_learn_without_narrator_fails() -> None:
    with pytest.raises(NarrationUnavailableError):
        asyncio.run(learn(context=_context()))


@pytest.mark.parametrize("narration", ["", "  \n "])
def test_analyze_with_blank_narration_keeps_a_rationale(narration: str) -> None:
    report = asyncio.run(analyze(START_FEN, context=_context(FakeEvaluator(), FakeNarrator(narration))))

    assert report.strategic_advice == "See best move analysis for strategic guidance"
    assert report.tactical_themes == ["Position analysis provided"]
    assert report.alternative_moves == ["See best move analysis"]
