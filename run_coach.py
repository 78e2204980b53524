"""Command-line entrypoint for chess position analysis, game review and learning."""
# ruff: noqa: E402

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parent
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from pydantic import BaseModel

from chesscoach.agents.registry import build_default_registry
from chesscoach.config import load_evaluation_config, load_review_policy
from chesscoach.errors import ValidationError
from chesscoach.evaluation import EvaluationClient
from chesscoach.notation import format_evaluation
from chesscoach.pipeline import PipelineContext
from chesscoach.schemas import AnalysisReport, GameReview, LearningContent
from chesscoach.workflows import analyze, learn, review


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="run_coach.py",
        description="Analyze chess positions, review games and generate learning material.",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=("json", "md"),
        default="json",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--output",
        help="Optional output file path. If omitted, writes to stdout.",
    )
    parser.add_argument(
        "--stream",
        action="store_true",
        help="Echo narration tokens to stderr as they arrive.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    analyze_parser = commands.add_parser("analyze", help="Analyze a single position given in FEN.")
    analyze_parser.add_argument("fen", help="Position in FEN notation.")
    analyze_parser.add_argument("--depth", type=int, default=None, help="Analysis depth (1-18, default: 12).")

    review_parser = commands.add_parser("review", help="Review a game from a JSON list of positions.")
    review_parser.add_argument(
        "positions_path",
        help="Path to a JSON file holding a list of {move_number, fen, move} objects.",
    )

    learn_parser = commands.add_parser("learn", help="Build an educational summary of famous games and facts.")
    learn_parser.add_argument("--count", type=int, default=None, help="Number of famous games (1-5, default: 2).")
    return parser


def _read_positions(positions_path: str) -> list[Any]:
    path = Path(positions_path)
    if not path.is_file():
        raise FileNotFoundError(f"Positions file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Positions file is not valid JSON: {exc}") from exc
    if isinstance(payload, dict):
        payload = payload.get("positions")
    if not isinstance(payload, list):
        raise ValidationError("Positions file must hold a JSON list of positions")
    return payload


def _stderr_sink(token: str) -> None:
    sys.stderr.write(token)
    sys.stderr.flush()


async def _run_command(args: argparse.Namespace) -> BaseModel:
    positions = _read_positions(args.positions_path) if args.command == "review" else None
    async with EvaluationClient(load_evaluation_config()) as evaluator:
        context = PipelineContext(
            agents=build_default_registry(),
            evaluator=evaluator,
            review_policy=load_review_policy(),
            on_token=_stderr_sink if args.stream else None,
        )
        if args.command == "analyze":
            return await analyze(args.fen, args.depth, context=context)
        if args.command == "review":
            return await review(positions or [], context=context)
        return await learn(args.count, context=context)


def _render_analysis(report: AnalysisReport) -> list[str]:
    position = report.position
    lines = ["# Position Analysis", ""]
    lines.append("| Fact | Value |")
    lines.append("| --- | --- |")
    lines.append(f"| FEN | `{position.fen}` |")
    lines.append(f"| Best move | {position.best_move} |")
    lines.append(f"| Evaluation | {format_evaluation(position.evaluation)} |")
    lines.append(f"| Win chance | {position.win_chance:.1f}% |")
    lines.append(f"| Depth | {position.depth} |")
    lines.append(f"| Forced mate | {position.mate_in if position.is_mate else '-'} |")
    lines.extend(["", "## Strategic Advice", "", report.strategic_advice, ""])
    lines.extend(["## Tactical Themes", ""])
    lines.extend(f"- {item}" for item in report.tactical_themes)
    lines.extend(["", "## Alternative Moves", ""])
    lines.extend(f"- {item}" for item in report.alternative_moves)
    return lines


def _render_review(report: GameReview) -> list[str]:
    lines = ["# Game Review", ""]
    lines.append(f"Analyzed {len(report.analyzed_positions)} of {report.total_moves} positions.")
    lines.extend(["", "## Positions", ""])
    lines.append("| Move | Played | Best | Eval | Mistake |")
    lines.append("| ---: | --- | --- | ---: | --- |")
    for item in report.analyzed_positions:
        mistake = "Yes" if item.is_mistake else "No"
        lines.append(
            f"| {item.move_number} | {item.move} | {item.best_move} | {format_evaluation(item.evaluation)} | {mistake} |"
        )
    lines.extend(["", "## Critical Moments", ""])
    if report.critical_moments:
        lines.extend(f"- {item}" for item in report.critical_moments)
    else:
        lines.append("- None")
    lines.extend(["", "## Overall Assessment", "", report.overall_assessment])
    return lines


def _render_learning(content: LearningContent) -> list[str]:
    lines = ["# Chess Learning", "", "## Famous Games", ""]
    for idx, game in enumerate(content.famous_games, start=1):
        lines.append(f"### {idx}. {game.game}")
        lines.append(f"- Players: {game.players}")
        lines.append(f"- Iconic move: {game.move}")
        lines.append(f"- {game.description}")
        lines.append("")
    lines.extend(["## Facts", ""])
    lines.extend(f"- {fact}" for fact in content.facts)
    lines.extend(["", "## Educational Summary", "", content.educational_summary])
    return lines


def _render_markdown(report: BaseModel) -> str:
    if isinstance(report, AnalysisReport):
        lines = _render_analysis(report)
    elif isinstance(report, GameReview):
        lines = _render_review(report)
    elif isinstance(report, LearningContent):
        lines = _render_learning(report)
    else:
        raise ValueError(f"Unsupported report type: {type(report).__name__}")
    return "\n".join(lines).rstrip() + "\n"


def _serialize_report(report: BaseModel, output_format: str) -> str:
    if output_format == "json":
        return json.dumps(report.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"
    if output_format == "md":
        return _render_markdown(report)
    raise ValueError(f"Unsupported format: {output_format}")


def _write_output(content: str, output_path: str | None) -> None:
    if output_path is None:
        print(content, end="")
        return
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        report = asyncio.run(_run_command(args))
        rendered = _serialize_report(report, args.output_format)
        _write_output(rendered, args.output)
    except FileNotFoundError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except ValidationError as exc:
        print(f"error: invalid input: {exc}", file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"error: failed to read or write files: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:
        print(f"error: failed to generate report: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
