"""Sequential step composition with contracts checked at build time."""

from __future__ import annotations

import asyncio
import inspect
import random
import sys
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from os import environ
from typing import Any, Union

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from chesscoach.agents.registry import AgentRegistry, freeze_registry
from chesscoach.config import ReviewPolicy
from chesscoach.errors import ChessCoachError, NarrationUnavailableError, PipelineWiringError, ValidationError
from chesscoach.evaluation import PositionEvaluator
from chesscoach.llm_provider import Narrator, TokenSink

_DEBUG_TRUTHY = {"1", "true", "yes", "on"}

StepResult = Union[BaseModel, Mapping[str, Any]]
StepFunction = Callable[[Any, "PipelineContext"], Union[StepResult, Awaitable[StepResult]]]
SleepFunction = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PipelineContext:
    """Read-only runtime shared by every step of a pipeline run."""

    agents: AgentRegistry = field(default_factory=lambda: freeze_registry({}))
    evaluator: PositionEvaluator | None = None
    review_policy: ReviewPolicy = field(default_factory=ReviewPolicy)
    on_token: TokenSink | None = None
    rng: random.Random = field(default_factory=random.Random)
    sleep: SleepFunction = asyncio.sleep

    def get_agent(self, name: str) -> Narrator:
        narrator = self.agents.get(name)
        if narrator is None:
            registered = ", ".join(sorted(self.agents)) or "none"
            raise NarrationUnavailableError(f"Narrator '{name}' not found (registered: {registered})")
        return narrator

    def require_evaluator(self) -> PositionEvaluator:
        if self.evaluator is None:
            raise ChessCoachError("No evaluation client configured for this pipeline run")
        return self.evaluator


@dataclass(frozen=True)
class Step:
    id: str
    input_model: type[BaseModel]
    output_model: type[BaseModel]
    execute: StepFunction
    description: str = ""


def check_contract(producer: type[BaseModel], consumer: type[BaseModel], *, where: str) -> None:
    """Raise PipelineWiringError unless ``producer`` satisfies every field ``consumer`` needs."""
    if issubclass(producer, consumer):
        return

    produced = producer.model_fields
    for name, consumed in consumer.model_fields.items():
        supplied = produced.get(name)
        if supplied is None:
            if consumed.is_required():
                raise PipelineWiringError(
                    f"{where}: {consumer.__name__}.{name} is required but {producer.__name__} does not produce it"
                )
            continue
        if supplied.annotation != consumed.annotation:
            raise PipelineWiringError(
                f"{where}: {producer.__name__}.{name} is {supplied.annotation!r}, "
                f"{consumer.__name__}.{name} expects {consumed.annotation!r}"
            )


def _coerce(value: StepResult, model: type[BaseModel]) -> BaseModel:
    if isinstance(value, model):
        return value
    if isinstance(value, BaseModel):
        return model.model_validate(value.model_dump())
    return model.model_validate(value)


class Pipeline:
    """An ordered list of steps, each feeding its output to the next."""

    def __init__(
        self,
        id: str,
        *,
        input_model: type[BaseModel],
        output_model: type[BaseModel],
        steps: Sequence[Step],
        description: str = "",
    ) -> None:
        if not steps:
            raise PipelineWiringError(f"{id}: a pipeline needs at least one step")

        self.id = id
        self.input_model = input_model
        self.output_model = output_model
        self.steps: tuple[Step, ...] = tuple(steps)
        self.description = description

        check_contract(input_model, self.steps[0].input_model, where=f"{id} -> {self.steps[0].id}")
        for previous, current in zip(self.steps, self.steps[1:]):
            check_contract(previous.output_model, current.input_model, where=f"{previous.id} -> {current.id}")
        check_contract(self.steps[-1].output_model, output_model, where=f"{self.steps[-1].id} -> {id}")

    def validate_input(self, input_data: StepResult) -> BaseModel:
        try:
            return _coerce(input_data, self.input_model)
        except SchemaValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}" for error in exc.errors()
            )
            raise ValidationError(f"Invalid input for {self.id}: {details}") from exc

    async def run(self, input_data: StepResult, context: PipelineContext) -> BaseModel:
        current: StepResult = self.validate_input(input_data)
        debug_enabled = environ.get("CHESSCOACH_DEBUG", "").strip().lower() in _DEBUG_TRUTHY

        for step in self.steps:
            if debug_enabled:
                _emit_debug(f"pipeline={self.id} step={step.id} started")
            outcome = step.execute(_coerce(current, step.input_model), context)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            current = _coerce(outcome, step.output_model)
            if debug_enabled:
                _emit_debug(f"pipeline={self.id} step={step.id} completed")

        return _coerce(current, self.output_model)


def _emit_debug(message: str) -> None:
    print(f"[chesscoach.pipeline] {message}", file=sys.stderr)
