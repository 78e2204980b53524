"""Prompt builders for the narrated workflow steps."""

from __future__ import annotations

from collections.abc import Sequence

from chesscoach.constants import (
    ALTERNATIVE_MOVES_PLACEHOLDER,
    NO_CRITICAL_MOMENTS,
    REVIEW_PROMPT_EVAL_LINES,
    STRATEGIC_ADVICE_PLACEHOLDER,
    TACTICAL_THEMES_PLACEHOLDER,
)
from chesscoach.guardrails import SectionRule
from chesscoach.notation import format_evaluation
from chesscoach.schemas import FamousGame, MoveAssessment, PositionAnalysis

STRATEGIC_ADVICE_MARKER = "🎯 STRATEGIC ADVICE"
TACTICAL_THEMES_MARKER = "⚔️ TACTICAL THEMES"
ALTERNATIVE_MOVES_MARKER = "🔄 ALTERNATIVE MOVES"

ANALYSIS_SECTIONS: tuple[SectionRule, ...] = (
    SectionRule(key="strategic_advice", marker=STRATEGIC_ADVICE_MARKER, placeholder=STRATEGIC_ADVICE_PLACEHOLDER),
    SectionRule(
        key="tactical_themes",
        marker=TACTICAL_THEMES_MARKER,
        kind="bullets",
        placeholder=TACTICAL_THEMES_PLACEHOLDER,
    ),
    SectionRule(
        key="alternative_moves",
        marker=ALTERNATIVE_MOVES_MARKER,
        kind="bullets",
        placeholder=ALTERNATIVE_MOVES_PLACEHOLDER,
    ),
)


def build_strategic_advice_prompt(analysis: PositionAnalysis) -> str:
    mate_line = f"Forced mate in {analysis.mate_in} moves!\n" if analysis.is_mate else ""
    return (
        "Analyze this chess position and provide strategic advice:\n\n"
        f"Position: {analysis.fen}\n"
        f"Best Move: {analysis.best_move}\n"
        f"Evaluation: {analysis.evaluation} (Win Chance: {analysis.win_chance}%)\n"
        f"{mate_line}\n"
        "Please provide:\n"
        "1. Strategic advice (2-3 key strategic points about the position)\n"
        "2. Tactical themes present (list 3-5 themes like pins, forks, discovered attacks, etc.)\n"
        "3. Alternative good moves (2-3 other strong moves and why they might be played)\n\n"
        "Format your response clearly with sections:\n"
        f"{STRATEGIC_ADVICE_MARKER}\n"
        "[Your strategic analysis here]\n\n"
        f"{TACTICAL_THEMES_MARKER}\n"
        "• [Theme 1]\n"
        "• [Theme 2]\n"
        "• [Theme 3]\n\n"
        f"{ALTERNATIVE_MOVES_MARKER}\n"
        "• [Move 1]: [Explanation]\n"
        "• [Move 2]: [Explanation]\n"
        "• [Move 3]: [Explanation]"
    )


def _numbered(items: Sequence[str]) -> str:
    return "\n".join(f"{idx}. {item}" for idx, item in enumerate(items, start=1))


def build_game_review_prompt(
    total_moves: int,
    analyzed_positions: Sequence[MoveAssessment],
    moments: Sequence[str],
) -> str:
    mistakes_count = sum(1 for item in analyzed_positions if item.is_mistake)
    evaluations = "\n".join(
        f"Move {item.move_number} ({item.move}): Eval {format_evaluation(item.evaluation)}"
        for item in analyzed_positions[:REVIEW_PROMPT_EVAL_LINES]
    )
    return (
        "Review this chess game and provide a comprehensive analysis:\n\n"
        "📊 GAME STATISTICS:\n"
        f"• Total Moves Analyzed: {len(analyzed_positions)} of {total_moves}\n"
        f"• Mistakes Found: {mistakes_count}\n\n"
        "🔍 CRITICAL MOMENTS:\n"
        f"{_numbered(moments) if moments else NO_CRITICAL_MOMENTS}\n\n"
        "📈 POSITION EVALUATIONS:\n"
        f"{evaluations}\n\n"
        "Please provide a comprehensive game review:\n\n"
        "🎮 GAME REVIEW REPORT\n\n"
        "📊 PERFORMANCE SUMMARY\n"
        "[Overall assessment of play quality]\n\n"
        "⚠️ CRITICAL MISTAKES\n"
        f"[Detailed analysis of the {mistakes_count} key mistakes]\n\n"
        "✅ STRONG MOVES\n"
        "[Highlight positions where good moves were played]\n\n"
        "🎯 PATTERNS & THEMES\n"
        "[Identify recurring tactical/strategic patterns]\n\n"
        "💡 IMPROVEMENT SUGGESTIONS\n"
        "• [Suggestion 1]\n"
        "• [Suggestion 2]\n"
        "• [Suggestion 3]\n\n"
        "📚 STUDY RECOMMENDATIONS\n"
        "[What to focus on based on this game]\n\n"
        "Keep the review constructive, specific, and actionable."
    )


def build_educational_summary_prompt(famous_games: Sequence[FamousGame], facts: Sequence[str]) -> str:
    games = "\n\n".join(
        f"{idx}. {game.game} - {game.players}\n   Iconic Move: {game.move}\n   {game.description}"
        for idx, game in enumerate(famous_games, start=1)
    )
    return (
        "Create an educational summary combining these chess elements:\n\n"
        "📚 FAMOUS GAMES:\n"
        f"{games}\n\n"
        "💡 CHESS FACTS:\n"
        f"{_numbered(facts)}\n\n"
        "Please create a comprehensive educational summary that:\n"
        "1. Introduces the significance of studying famous games\n"
        "2. Explains what makes each game special\n"
        "3. Connects the facts to broader chess knowledge\n"
        "4. Provides key takeaways for chess improvement\n\n"
        "Structure your response as:\n\n"
        "🎓 CHESS LEARNING JOURNEY\n\n"
        "📖 INTRODUCTION\n"
        "[Brief introduction to chess mastery through famous games]\n\n"
        "🏆 LEGENDARY GAMES BREAKDOWN\n"
        "[Analyze each famous game, explaining tactical and strategic lessons]\n\n"
        "💎 FASCINATING CHESS FACTS\n"
        "[Elaborate on the facts and their significance]\n\n"
        "🎯 KEY TAKEAWAYS\n"
        "• [Lesson 1]\n"
        "• [Lesson 2]\n"
        "• [Lesson 3]\n\n"
        "📈 NEXT STEPS\n"
        "[Suggestions for further study and improvement]\n\n"
        "Keep the summary engaging, educational, and actionable."
    )
