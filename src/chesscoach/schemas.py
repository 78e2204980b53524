"""Core typed contracts for chesscoach analysis and reports."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from chesscoach.constants import (
    DEFAULT_DEPTH,
    DEFAULT_VARIANTS,
    MAX_DEPTH,
    MAX_VARIANTS,
    MIN_DEPTH,
    MIN_VARIANTS,
    TERMINAL_RECORD_TYPE,
)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _require_text(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("must not be blank")
    return stripped


class PositionQuery(BaseModel):
    """One request to the evaluation service; bounds are clamped, never rejected."""

    model_config = ConfigDict(frozen=True)

    fen: str
    depth: int = DEFAULT_DEPTH
    variants: int = DEFAULT_VARIANTS

    @field_validator("fen")
    @classmethod
    def validate_fen(cls, value: str) -> str:
        return _require_text(value)

    @field_validator("depth")
    @classmethod
    def clamp_depth(cls, value: int) -> int:
        return clamp(value, MIN_DEPTH, MAX_DEPTH)

    @field_validator("variants")
    @classmethod
    def clamp_variants(cls, value: int) -> int:
        return clamp(value, MIN_VARIANTS, MAX_VARIANTS)


class EngineRecord(BaseModel):
    """A single tagged record of the evaluation service response."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    record_type: str = Field(default="", alias="type")
    san: str | None = None
    evaluation: float | None = Field(default=None, alias="eval")
    win_chance: float | None = Field(default=None, alias="winChance")
    depth: int | None = None
    text: str = ""
    move: str = ""
    lan: str = ""
    fen: str = ""
    from_square: str = Field(default="", alias="from")
    to_square: str = Field(default="", alias="to")
    continuation: list[str] = Field(default_factory=list, alias="continuationArr")
    mate: int | None = None

    @field_validator("continuation", mode="before")
    @classmethod
    def empty_continuation(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("text", "move", "lan", "fen", "from_square", "to_square", mode="before")
    @classmethod
    def empty_text(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def is_terminal(self) -> bool:
        return self.record_type == TERMINAL_RECORD_TYPE


class EvaluationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    best_move: str = Field(min_length=1)
    best_move_san: str = Field(min_length=1)
    evaluation: float
    win_chance: float = Field(ge=0.0, le=100.0)
    depth: int = Field(ge=0)
    variations: list[str] = Field(default_factory=list)
    is_mate: bool = False
    mate_in: int | None = None
    description: str = ""

    @model_validator(mode="after")
    def validate_mate_flag(self) -> "EvaluationResult":
        if self.is_mate != (self.mate_in is not None):
            raise ValueError("is_mate must be set exactly when mate_in is present")
        return self


class GamePosition(BaseModel):
    model_config = ConfigDict(frozen=True)

    move_number: int = Field(ge=1)
    fen: str
    move: str

    @field_validator("fen", "move")
    @classmethod
    def validate_text(cls, value: str) -> str:
        return _require_text(value)


class MoveAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    move_number: int = Field(ge=1)
    fen: str
    move: str
    evaluation: float
    best_move: str
    is_mistake: bool
    comment: str = Field(min_length=1)


class NarrativeSections(BaseModel):
    text: dict[str, str] = Field(default_factory=dict)
    lists: dict[str, list[str]] = Field(default_factory=dict)


class PositionRequest(BaseModel):
    fen: str
    depth: int | None = None

    @field_validator("fen")
    @classmethod
    def validate_fen(cls, value: str) -> str:
        return _require_text(value)


class PositionAnalysis(BaseModel):
    fen: str
    best_move: str
    evaluation: float
    description: str
    win_chance: float
    depth: int
    is_mate: bool
    mate_in: int | None = None


class AnalysisReport(BaseModel):
    position: PositionAnalysis
    strategic_advice: str = Field(min_length=1)
    tactical_themes: list[str] = Field(min_length=1)
    alternative_moves: list[str] = Field(min_length=1)


class GameReviewRequest(BaseModel):
    positions: list[GamePosition]


class ParsedGame(BaseModel):
    positions: list[GamePosition]
    total_moves: int = Field(ge=0)


class AnalyzedGame(BaseModel):
    total_moves: int = Field(ge=0)
    analyzed_positions: list[MoveAssessment] = Field(default_factory=list)


class GameReview(BaseModel):
    total_moves: int = Field(ge=0)
    analyzed_positions: list[MoveAssessment] = Field(default_factory=list)
    critical_moments: list[str] = Field(default_factory=list)
    overall_assessment: str


class LearningRequest(BaseModel):
    count: int | None = None


class FamousGame(BaseModel):
    model_config = ConfigDict(frozen=True)

    game: str = Field(min_length=1)
    players: str = Field(min_length=1)
    move: str = Field(min_length=1)
    description: str = Field(min_length=1)


class FamousGameSelection(BaseModel):
    famous_games: list[FamousGame]
    count: int = Field(ge=1)


class LearningMaterial(BaseModel):
    famous_games: list[FamousGame]
    facts: list[str]
    fact_count: int = Field(ge=0)


class LearningContent(BaseModel):
    famous_games: list[FamousGame]
    facts: list[str]
    educational_summary: str
    fact_count: int = Field(ge=0)
