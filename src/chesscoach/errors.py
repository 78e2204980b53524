"""Error taxonomy for the analysis pipeline."""

from __future__ import annotations


class ChessCoachError(Exception):
    """Base class for every error raised by chesscoach."""


class ValidationError(ChessCoachError):
    """Malformed or missing caller input; raised before any remote call."""


class EvaluationServiceError(ChessCoachError):
    """The evaluation service answered with a failure or an unusable body."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PipelineWiringError(ChessCoachError):
    """Consecutive steps declare incompatible input/output contracts."""


class NarrationUnavailableError(ChessCoachError):
    """No narrator is registered under the requested name."""
