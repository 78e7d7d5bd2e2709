"""
Pipeline Stage Models

Stage bookkeeping and the error taxonomy shared by every pipeline stage.
Each failure kind is a PipelineError subclass; the orchestrator catches the
base class once and renders it into the single user-facing error channel.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class PipelineStage(str, Enum):
    """Lifecycle of one question through the pipeline."""

    RECEIVED = "received"
    GENERATING = "generating"
    EXECUTING = "executing"
    NORMALIZING = "normalizing"
    SUMMARIZING = "summarizing"
    DONE = "done"
    FAILED = "failed"


class StageMetadata(BaseModel):
    """Metadata about one stage execution."""

    stage_name: str
    started_at: datetime
    completed_at: datetime | None = None
    duration_ms: float | None = None
    llm_calls: int = 0
    tokens_used: int | None = None
    error: str | None = None

    model_config = ConfigDict(frozen=False)

    def mark_complete(self, completed_at: datetime) -> None:
        """Mark execution as complete and calculate duration."""
        self.completed_at = completed_at
        self.duration_ms = (completed_at - self.started_at).total_seconds() * 1000


class PipelineError(Exception):
    """
    Base exception for pipeline failures.

    Attributes:
        stage: Stage that raised the error
        message: User-presentable error description
        context: Additional context for debugging (service, status, handle...)
    """

    status_code = 500

    def __init__(
        self,
        stage: str,
        message: str,
        context: dict[str, Any] | None = None,
    ):
        self.stage = stage
        self.message = message
        self.context = context or {}
        super().__init__(f"[{stage}] {message}")

    @property
    def kind(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "stage": self.stage,
            "message": self.message,
            "context": self.context,
            "type": self.kind,
        }


class RequestValidationError(PipelineError):
    """Inbound request was malformed; reported with a 400."""

    status_code = 400

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(PipelineStage.RECEIVED.value, message, context=context)


class GenerationFailure(PipelineError):
    """The model call failed or produced no usable query."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(PipelineStage.GENERATING.value, message, context=context)


class SubmissionFailure(PipelineError):
    """The provider rejected the query or returned no job handle."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(PipelineStage.EXECUTING.value, message, context=context)


class ExecutionFailure(PipelineError):
    """The job reached a failure state, or polling itself failed."""

    def __init__(
        self,
        message: str,
        status: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.status = status
        context = dict(context or {})
        if status is not None:
            context.setdefault("status", status)
        super().__init__(PipelineStage.EXECUTING.value, message, context=context)


class ExecutionTimeout(PipelineError):
    """The job did not reach a terminal state within the wall-clock ceiling."""

    def __init__(
        self,
        message: str,
        elapsed_seconds: float,
        max_wait_seconds: float,
        context: dict[str, Any] | None = None,
    ):
        self.elapsed_seconds = elapsed_seconds
        self.max_wait_seconds = max_wait_seconds
        context = dict(context or {})
        context.update(elapsed_seconds=elapsed_seconds, max_wait_seconds=max_wait_seconds)
        super().__init__(PipelineStage.EXECUTING.value, message, context=context)


class ResultFetchFailure(PipelineError):
    """The job succeeded but its rows could not be retrieved."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(PipelineStage.EXECUTING.value, message, context=context)


class SummarizationFailure(PipelineError):
    """The summarization model call failed or returned no text."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(PipelineStage.SUMMARIZING.value, message, context=context)
