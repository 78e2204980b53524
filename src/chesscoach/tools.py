"""Chess tools: engine move lookup plus an in-memory trivia and history base."""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import TypeVar

from chesscoach.constants import DEFAULT_DEPTH, DEFAULT_VARIANTS, MAX_TOOL_COUNT, MIN_TOOL_COUNT
from chesscoach.evaluation import PositionEvaluator
from chesscoach.schemas import EvaluationResult, FamousGame, PositionQuery, clamp

_Item = TypeVar("_Item")

CHESS_FACTS: tuple[str, ...] = (
    "The longest possible chess game is 5,949 moves.",
    "The word 'checkmate' comes from the Persian phrase 'Shah Mat' meaning 'the king is dead'.",
    "The second book ever printed in the English language was about chess.",
    "The number of possible unique chess games is greater than the number of electrons in the universe.",
    "Emanuel Lasker was the longest-reigning world chess champion (27 years, from 1894 to 1921).",
    "The folding chessboard was invented by a priest who was forbidden to play chess.",
    "The longest official chess game lasted 269 moves (I. Nikolic vs. Arsovic, Belgrade 1989) and ended in a draw.",
    "The first chess-playing computer program was written by Alan Turing in 1951.",
    "Garry Kasparov was the youngest world chess champion at age 22 in 1985.",
    "The Queen was originally the weakest piece on the board, only able to move one square diagonally.",
    "Chess is called 'the game of kings' because it was popular among royalty in medieval times.",
    "There are 400 different possible positions after one move each by White and Black.",
    "There are 72,084 different possible positions after two moves each.",
    "There are over 9 million different possible positions after three moves each.",
    "The oldest recorded chess game dates back to 900 AD between a Baghdad historian and his student.",
    "Chess boxing is a hybrid sport combining chess and boxing in alternating rounds.",
    "The rook is called 'rook' because it comes from the Persian word 'rukh' meaning chariot.",
    "Bobby Fischer became the youngest grandmaster at age 15 in 1958 (record later broken).",
    "The 'Immortal Game' (Anderssen vs. Kieseritzky, 1851) is one of the most famous chess games ever played.",
)

FAMOUS_GAMES: tuple[FamousGame, ...] = (
    FamousGame(
        game="The Immortal Game (1851)",
        players="Adolf Anderssen vs. Lionel Kieseritzky",
        move="23. Bxe7 (Bishop takes e7)",
        description=(
            "Anderssen sacrificed his queen and both rooks to deliver checkmate. "
            "This game showcases brilliant tactical play and is still studied today."
        ),
    ),
    FamousGame(
        game="The Opera Game (1858)",
        players="Paul Morphy vs. Duke of Brunswick and Count Isouard",
        move="16. Qb8+ (Queen to b8, check)",
        description=(
            "Morphy sacrificed material to achieve a winning position, "
            "demonstrating the importance of development and king safety."
        ),
    ),
    FamousGame(
        game="The Evergreen Game (1852)",
        players="Adolf Anderssen vs. Jean Dufresne",
        move="19. Rad1 (Rook to d1)",
        description="A brilliant sacrificial attack showcasing piece coordination and tactical brilliance.",
    ),
    FamousGame(
        game="Fischer's Game of the Century (1956)",
        players="Donald Byrne vs. Bobby Fischer",
        move="17...Be6!! (Bishop to e6)",
        description=(
            "13-year-old Fischer sacrificed his queen to achieve a winning position against a top player, "
            "showcasing his prodigious talent."
        ),
    ),
    FamousGame(
        game="Kasparov's Immortal (1999)",
        players="Garry Kasparov vs. Veselin Topalov",
        move="24. Rxd4!! (Rook takes d4)",
        description="Kasparov sacrificed his queen for a devastating attack, demonstrating modern chess at its finest.",
    ),
    FamousGame(
        game="The Pearl of Wijk aan Zee (2007)",
        players="Aronian vs. Anand",
        move="23...Qxd4+ (Queen takes d4, check)",
        description="A spectacular queen sacrifice leading to a forced checkmate sequence.",
    ),
    FamousGame(
        game="Carlsen's Brilliancy (2013)",
        players="Magnus Carlsen vs. Fabiano Caruana",
        move="22. Nxe6! (Knight takes e6)",
        description="Carlsen's precise tactical blow in a World Championship candidate match.",
    ),
    FamousGame(
        game="Tal's Magic (1961)",
        players="Mikhail Tal vs. Tigran Petrosian",
        move="18. Nxb5!! (Knight takes b5)",
        description="Tal's signature sacrificial style, creating chaos on the board.",
    ),
    FamousGame(
        game="The Game of Death (1993)",
        players="Garry Kasparov vs. Nigel Short",
        move="20. e6! (Pawn to e6)",
        description="A powerful pawn breakthrough in a World Championship match.",
    ),
    FamousGame(
        game="Byrne vs. Fischer (1963)",
        players="Robert Byrne vs. Bobby Fischer",
        move="21...Qb2!! (Queen to b2)",
        description="Fischer's queen infiltration leading to a devastating attack on the white king.",
    ),
)


def bounded_count(count: int | None, default: int = MIN_TOOL_COUNT) -> int:
    return clamp(default if count is None else count, MIN_TOOL_COUNT, MAX_TOOL_COUNT)


def pick_random(items: Sequence[_Item], count: int, rng: random.Random | None = None) -> list[_Item]:
    """Return ``count`` distinct items in random order."""
    source = rng or random.Random()
    return source.sample(list(items), min(count, len(items)))


async def get_next_move(
    fen: str,
    depth: int = DEFAULT_DEPTH,
    variants: int = DEFAULT_VARIANTS,
    *,
    evaluator: PositionEvaluator,
) -> EvaluationResult:
    return await evaluator.evaluate(PositionQuery(fen=fen, depth=depth, variants=variants))


def get_chess_facts(count: int | None = None, *, rng: random.Random | None = None) -> list[str]:
    return pick_random(CHESS_FACTS, bounded_count(count), rng)


def get_famous_moves(count: int | None = None, *, rng: random.Random | None = None) -> list[FamousGame]:
    return pick_random(FAMOUS_GAMES, bounded_count(count), rng)
