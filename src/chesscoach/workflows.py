"""Analysis, game-review and learning workflows built on the step pipeline."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, cast

from chesscoach.agents.registry import CHESS_AGENT
from chesscoach.constants import ANALYSIS_VARIANTS, DEFAULT_DEPTH, DEFAULT_FAMOUS_GAMES_COUNT, MAX_TOOL_COUNT, MIN_FACT_COUNT
from chesscoach.errors import ValidationError
from chesscoach.llm_provider import collect_narration, user_message
from chesscoach.narration import extract_sections
from chesscoach.pipeline import Pipeline, PipelineContext, Step
from chesscoach.prompts import (
    ANALYSIS_SECTIONS,
    build_educational_summary_prompt,
    build_game_review_prompt,
    build_strategic_advice_prompt,
)
from chesscoach.review import MistakeAnalyzer, critical_moments
from chesscoach.schemas import (
    AnalysisReport,
    AnalyzedGame,
    FamousGameSelection,
    GamePosition,
    GameReview,
    GameReviewRequest,
    LearningContent,
    LearningMaterial,
    LearningRequest,
    ParsedGame,
    PositionAnalysis,
    PositionRequest,
)
from chesscoach.tools import bounded_count, get_chess_facts, get_famous_moves, get_next_move


async def _narrate(context: PipelineContext, prompt: str) -> str:
    narrator = context.get_agent(CHESS_AGENT)
    return await collect_narration(narrator, user_message(prompt), on_token=context.on_token)


async def analyze_position_step(request: PositionRequest, context: PipelineContext) -> PositionAnalysis:
    depth = DEFAULT_DEPTH if request.depth is None else request.depth
    result = await get_next_move(
        request.fen,
        depth,
        ANALYSIS_VARIANTS,
        evaluator=context.require_evaluator(),
    )
    return PositionAnalysis(
        fen=request.fen,
        best_move=result.best_move,
        evaluation=result.evaluation,
        description=result.description,
        win_chance=result.win_chance,
        depth=result.depth,
        is_mate=result.is_mate,
        mate_in=result.mate_in,
    )


async def strategic_advice_step(analysis: PositionAnalysis, context: PipelineContext) -> AnalysisReport:
    advice_text = await _narrate(context, build_strategic_advice_prompt(analysis))
    sections = extract_sections(advice_text, ANALYSIS_SECTIONS)
    return AnalysisReport(
        position=analysis,
        strategic_advice=sections.text["strategic_advice"],
        tactical_themes=sections.lists["tactical_themes"],
        alternative_moves=sections.lists["alternative_moves"],
    )


chess_analysis_workflow = Pipeline(
    "chess-analysis-workflow",
    input_model=PositionRequest,
    output_model=AnalysisReport,
    steps=[
        Step(
            id="analyze-position",
            description="Analyzes a chess position with the evaluation service",
            input_model=PositionRequest,
            output_model=PositionAnalysis,
            execute=analyze_position_step,
        ),
        Step(
            id="generate-strategic-advice",
            description="Narrates strategic advice for the analyzed position",
            input_model=PositionAnalysis,
            output_model=AnalysisReport,
            execute=strategic_advice_step,
        ),
    ],
)


def parse_game_moves_step(request: GameReviewRequest, context: PipelineContext) -> ParsedGame:
    if not request.positions:
        raise ValidationError("No positions provided for analysis")
    for previous, current in zip(request.positions, request.positions[1:]):
        if current.move_number < previous.move_number:
            raise ValidationError(
                f"Move numbers must not decrease: {current.move_number} follows {previous.move_number}"
            )
    return ParsedGame(positions=request.positions, total_moves=len(request.positions))


async def analyze_game_positions_step(game: ParsedGame, context: PipelineContext) -> AnalyzedGame:
    analyzer = MistakeAnalyzer(context.require_evaluator(), context.review_policy, sleep=context.sleep)
    assessments = await analyzer.review(game.positions)
    return AnalyzedGame(total_moves=game.total_moves, analyzed_positions=assessments)


async def generate_game_review_step(game: AnalyzedGame, context: PipelineContext) -> GameReview:
    moments = critical_moments(game.analyzed_positions)
    prompt = build_game_review_prompt(game.total_moves, game.analyzed_positions, moments)
    review_text = await _narrate(context, prompt)
    return GameReview(
        total_moves=game.total_moves,
        analyzed_positions=game.analyzed_positions,
        critical_moments=moments,
        overall_assessment=review_text,
    )


game_review_workflow = Pipeline(
    "game-review-workflow",
    input_model=GameReviewRequest,
    output_model=GameReview,
    steps=[
        Step(
            id="parse-game-moves",
            description="Validates the list of positions to review",
            input_model=GameReviewRequest,
            output_model=ParsedGame,
            execute=parse_game_moves_step,
        ),
        Step(
            id="analyze-game-positions",
            description="Evaluates each position to find mistakes and best moves",
            input_model=ParsedGame,
            output_model=AnalyzedGame,
            execute=analyze_game_positions_step,
        ),
        Step(
            id="generate-game-review",
            description="Narrates a game review around the critical moments",
            input_model=AnalyzedGame,
            output_model=GameReview,
            execute=generate_game_review_step,
        ),
    ],
)


def fetch_famous_games_step(request: LearningRequest, context: PipelineContext) -> FamousGameSelection:
    count = bounded_count(request.count, default=DEFAULT_FAMOUS_GAMES_COUNT)
    return FamousGameSelection(famous_games=get_famous_moves(count, rng=context.rng), count=count)


def fetch_chess_facts_step(selection: FamousGameSelection, context: PipelineContext) -> LearningMaterial:
    # One fact per game plus one, never fewer than three.
    fact_count = max(MIN_FACT_COUNT, min(len(selection.famous_games) + 1, MAX_TOOL_COUNT))
    facts = get_chess_facts(fact_count, rng=context.rng)
    return LearningMaterial(famous_games=selection.famous_games, facts=facts, fact_count=fact_count)


async def generate_educational_summary_step(material: LearningMaterial, context: PipelineContext) -> LearningContent:
    summary_text = await _narrate(context, build_educational_summary_prompt(material.famous_games, material.facts))
    return LearningContent(
        famous_games=material.famous_games,
        facts=material.facts,
        educational_summary=summary_text,
        fact_count=len(material.facts),
    )


chess_learning_workflow = Pipeline(
    "chess-learning-workflow",
    input_model=LearningRequest,
    output_model=LearningContent,
    steps=[
        Step(
            id="fetch-famous-games",
            description="Selects famous games from chess history",
            input_model=LearningRequest,
            output_model=FamousGameSelection,
            execute=fetch_famous_games_step,
        ),
        Step(
            id="fetch-chess-facts",
            description="Selects chess facts to accompany the games",
            input_model=FamousGameSelection,
            output_model=LearningMaterial,
            execute=fetch_chess_facts_step,
        ),
        Step(
            id="generate-educational-summary",
            description="Narrates an educational summary of games and facts",
            input_model=LearningMaterial,
            output_model=LearningContent,
            execute=generate_educational_summary_step,
        ),
    ],
)


async def analyze(fen: str, depth: int | None = None, *, context: PipelineContext) -> AnalysisReport:
    return cast(AnalysisReport, await chess_analysis_workflow.run({"fen": fen, "depth": depth}, context))


async def review(
    positions: Sequence[GamePosition | Mapping[str, Any]],
    *,
    context: PipelineContext,
) -> GameReview:
    return cast(GameReview, await game_review_workflow.run({"positions": list(positions)}, context))


async def learn(count: int | None = None, *, context: PipelineContext) -> LearningContent:
    return cast(LearningContent, await chess_learning_workflow.run({"count": count}, context))
