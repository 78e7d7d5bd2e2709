"""
Base Agent Framework

Abstract base class for the LLM-backed pipeline stages (query generation and
summarization). Provides a consistent interface, timing, logging and error
translation.

Usage:
    class MyAgent(BaseAgent):
        failure_type = GenerationFailure

        def __init__(self, llm):
            super().__init__(name="MyAgent")
            self.llm = llm

        async def execute(self, metadata, question: str) -> str:
            response = await self.llm.generate(LLMRequest.from_prompt(question))
            self._track_llm_call(metadata, response.usage.total_tokens)
            return response.content

    result = await MyAgent(llm)(question="...")
    print(result.value, result.metadata.duration_ms)
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from chainsage.gateway import GatewayError
from chainsage.llm.base import LLMProviderError
from chainsage.models.agent import PipelineError, StageMetadata

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class AgentResult(Generic[T]):
    """Value produced by an agent plus its execution metadata."""

    value: T
    metadata: StageMetadata


class BaseAgent(ABC):
    """
    Abstract base class for LLM-backed stages.

    The __call__ method wraps execute() with:
        - Performance timing
        - Error translation: gateway and LLM errors, and anything
          unexpected, are re-raised as ``failure_type`` with context
        - Metadata collection (LLM calls, tokens)

    There are no retries; a failure ends the request.

    Attributes:
        name: Unique identifier for this agent
        failure_type: PipelineError subclass raised on failure
    """

    failure_type: type[PipelineError] = PipelineError
    action: str = "Agent failed"

    def __init__(self, name: str):
        self.name = name

        logger.info(f"Initialized {self.name}", extra={"agent": self.name})

    @abstractmethod
    async def execute(self, metadata: StageMetadata, **inputs: Any) -> Any:
        """
        Execute the agent's core logic.

        Args:
            metadata: Metadata for this run; record LLM calls on it
            **inputs: Agent-specific inputs

        Raises:
            PipelineError: On expected failures
        """
        pass  # pragma: no cover - abstract method

    async def __call__(self, **inputs: Any) -> AgentResult:
        start_time = time.perf_counter()
        metadata = self._create_metadata()

        logger.info(
            f"Starting {self.name}",
            extra={"agent": self.name, "inputs": sorted(inputs)},
        )

        try:
            value = await self.execute(metadata, **inputs)
        except PipelineError as e:
            self._finish(metadata, start_time, error=e.message)
            logger.warning(
                f"Failed {self.name}: {e.message}",
                extra={"agent": self.name, "error_type": e.kind, "context": e.context},
            )
            raise
        except (GatewayError, LLMProviderError) as e:
            self._finish(metadata, start_time, error=e.message)
            context: dict[str, Any] = {"agent": self.name, "error_type": type(e).__name__}
            service = getattr(e, "service_name", None) or getattr(e, "provider", None)
            if service:
                context["service"] = service
            status_code = getattr(e, "status_code", None)
            if status_code is not None:
                context["status_code"] = status_code
            logger.warning(
                f"Failed {self.name}: {e.message}",
                extra=context,
            )
            raise self.failure_type(f"{self.action}: {e.message}", context=context) from e
        except Exception as e:
            self._finish(metadata, start_time, error=str(e))
            logger.error(
                f"Unexpected error in {self.name}",
                extra={"agent": self.name, "error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            raise self.failure_type(
                f"{self.action}: unexpected error: {e}",
                context={"agent": self.name, "error_type": type(e).__name__},
            ) from e

        self._finish(metadata, start_time)
        logger.info(
            f"Completed {self.name}",
            extra={
                "agent": self.name,
                "duration_ms": metadata.duration_ms,
                "llm_calls": metadata.llm_calls,
            },
        )
        return AgentResult(value=value, metadata=metadata)

    def _create_metadata(self) -> StageMetadata:
        return StageMetadata(stage_name=self.name, started_at=datetime.now(timezone.utc))

    def _finish(self, metadata: StageMetadata, start_time: float, error: str | None = None) -> None:
        metadata.mark_complete(datetime.now(timezone.utc))
        metadata.duration_ms = (time.perf_counter() - start_time) * 1000
        metadata.error = error

    def _track_llm_call(self, metadata: StageMetadata, tokens: int | None = None) -> None:
        """Record one LLM API call on the run metadata."""
        metadata.llm_calls += 1
        if tokens:
            metadata.tokens_used = (metadata.tokens_used or 0) + tokens

        logger.debug(
            f"LLM call tracked for {self.name}",
            extra={
                "agent": self.name,
                "total_llm_calls": metadata.llm_calls,
                "tokens_this_call": tokens,
            },
        )
