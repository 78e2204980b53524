"""Async client for the remote position-evaluation service."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from os import environ
from typing import Any, Protocol

import httpx
from pydantic import ValidationError as SchemaValidationError

from chesscoach.config import EvaluationServiceConfig, load_evaluation_config
from chesscoach.errors import EvaluationServiceError
from chesscoach.notation import best_move_label
from chesscoach.schemas import EngineRecord, EvaluationResult, PositionQuery

_DEBUG_TRUTHY = {"1", "true", "yes", "on"}


class PositionEvaluator(Protocol):
    async def evaluate(self, query: PositionQuery) -> EvaluationResult: ...


def build_request_payload(query: PositionQuery) -> dict[str, Any]:
    # PositionQuery already clamps; the payload never carries out-of-range bounds.
    return {"fen": query.fen, "depth": query.depth, "variants": query.variants}


def parse_records(payload: Any) -> list[EngineRecord]:
    if not isinstance(payload, list):
        raise EvaluationServiceError("Chess API returned a non-list analysis payload")
    if not payload:
        raise EvaluationServiceError("No analysis data received from Chess API")
    try:
        return [EngineRecord.model_validate(item) for item in payload]
    except SchemaValidationError as exc:
        raise EvaluationServiceError(f"Malformed analysis record: {exc.error_count()} validation errors") from exc


def select_terminal_record(records: Sequence[EngineRecord]) -> EngineRecord:
    """Return the first record tagged as the final best move, else the last record."""
    if not records:
        raise EvaluationServiceError("No analysis data received from Chess API")
    return next((record for record in records if record.is_terminal), records[-1])


def to_evaluation_result(record: EngineRecord) -> EvaluationResult:
    if not record.san or record.evaluation is None or record.win_chance is None:
        raise EvaluationServiceError("Selected analysis record is missing san, eval or winChance")
    try:
        return EvaluationResult(
            best_move=best_move_label(record.san, record.from_square, record.to_square),
            best_move_san=record.san,
            evaluation=record.evaluation,
            win_chance=record.win_chance,
            depth=record.depth or 0,
            variations=list(record.continuation),
            is_mate=record.mate is not None,
            mate_in=record.mate,
            description=record.text,
        )
    except SchemaValidationError as exc:
        raise EvaluationServiceError(f"Malformed analysis record: {exc.error_count()} validation errors") from exc


class EvaluationClient:
    """Evaluates positions over HTTP; one POST per call, no retries."""

    def __init__(
        self,
        config: EvaluationServiceConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or load_evaluation_config()
        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else httpx.AsyncClient(timeout=self.config.timeout_seconds)

    async def __aenter__(self) -> "EvaluationClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def evaluate(self, query: PositionQuery) -> EvaluationResult:
        payload = build_request_payload(query)
        debug_enabled = _env_flag("CHESSCOACH_DEBUG")
        if debug_enabled:
            _emit_debug(f"POST {self.config.url} depth={payload['depth']} variants={payload['variants']}")

        try:
            response = await self._client.post(
                self.config.url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise EvaluationServiceError(f"Chess API request failed: {type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            raise EvaluationServiceError(f"Chess API error: {response.status_code}", status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise EvaluationServiceError("Chess API returned a non-JSON body", status_code=response.status_code) from exc

        records = parse_records(body)
        selected = select_terminal_record(records)
        if debug_enabled:
            _emit_debug(
                f"records={len(records)} selected_type={selected.record_type or '-'} "
                f"san={selected.san} eval={selected.evaluation} mate={selected.mate}"
            )
        return to_evaluation_result(selected)


def _env_flag(key: str) -> bool:
    return environ.get(key, "").strip().lower() in _DEBUG_TRUTHY


def _emit_debug(message: str) -> None:
    print(f"[chesscoach.evaluation] {message}", file=sys.stderr)
