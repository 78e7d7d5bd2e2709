"""
Job Polling

Status vocabularies for asynchronous-job providers, their collapse into a
three-valued JobState, and the wall-clock bounded polling loop.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from chainsage.models.agent import ExecutionFailure, ExecutionTimeout

logger = logging.getLogger(__name__)


class JobState(str, Enum):
    PENDING = "pending"
    TERMINAL_SUCCESS = "terminal_success"
    TERMINAL_FAILURE = "terminal_failure"


@dataclass(frozen=True)
class StatusVocabulary:
    """Provider status strings grouped by the state they collapse to."""

    pending: frozenset[str]
    success: frozenset[str]
    failure: frozenset[str]

    def classify(self, status: str | None) -> JobState:
        """Collapse a raw status. Anything unrecognized is a failure."""
        if status in self.success:
            return JobState.TERMINAL_SUCCESS
        if status in self.pending:
            return JobState.PENDING
        return JobState.TERMINAL_FAILURE

    def is_known(self, status: str | None) -> bool:
        return status in self.pending or status in self.success or status in self.failure


FLIPSIDE_STATUSES = StatusVocabulary(
    pending=frozenset(
        {"PENDING", "RUNNING", "QUERY_STATE_READY", "QUERY_STATE_RUNNING",
         "QUERY_STATE_STREAMING_RESULTS"}
    ),
    success=frozenset({"COMPLETED", "QUERY_STATE_SUCCESS"}),
    failure=frozenset(
        {"FAILED", "CANCELLED", "CANCELLING", "QUERY_STATE_FAILED", "QUERY_STATE_CANCELED"}
    ),
)

DUNE_STATUSES = StatusVocabulary(
    pending=frozenset({"QUERY_STATE_PENDING", "QUERY_STATE_EXECUTING"}),
    success=frozenset({"QUERY_STATE_COMPLETED"}),
    failure=frozenset(
        {"QUERY_STATE_FAILED", "QUERY_STATE_CANCELLED", "QUERY_STATE_EXPIRED"}
    ),
)

REST_JOB_STATUSES = StatusVocabulary(
    pending=frozenset({"pending", "running"}),
    success=frozenset({"finished"}),
    failure=frozenset({"failed"}),
)


@dataclass(frozen=True)
class PollPolicy:
    """
    Fixed-interval polling bounded by wall-clock time from loop entry.

    ``clock`` and ``sleep`` are injectable so tests can drive time.
    """

    interval_seconds: float = 5.0
    max_wait_seconds: float = 30.0
    clock: Callable[[], float] = field(default=time.monotonic, compare=False)
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    async def wait_for_terminal(
        self,
        poll: Callable[[], Awaitable[str | None]],
        vocabulary: StatusVocabulary,
        *,
        service_name: str,
        job_id: str,
    ) -> str:
        """
        Poll until the job reaches a terminal state.

        Returns:
            The raw success status string

        Raises:
            ExecutionFailure: Terminal failure or unrecognized status
            ExecutionTimeout: Ceiling reached before a terminal state
        """
        started = self.clock()
        attempts = 0
        context = {"service": service_name, "job_id": job_id}

        while True:
            elapsed = self.clock() - started
            if elapsed >= self.max_wait_seconds:
                logger.warning(
                    f"{service_name} job {job_id} timed out after {elapsed:.1f}s",
                    extra={**context, "attempts": attempts},
                )
                raise ExecutionTimeout(
                    f"{service_name} query timed out after {self.max_wait_seconds:g} seconds",
                    elapsed_seconds=elapsed,
                    max_wait_seconds=self.max_wait_seconds,
                    context=context,
                )

            status = await poll()
            attempts += 1
            state = vocabulary.classify(status)
            logger.info(
                f"{service_name} job {job_id} status: {status}",
                extra={**context, "status": status, "state": state.value, "attempt": attempts},
            )

            if state is JobState.TERMINAL_SUCCESS:
                return status
            if state is JobState.TERMINAL_FAILURE:
                raise ExecutionFailure(
                    _failure_message(service_name, status, vocabulary),
                    status=status,
                    context=context,
                )

            await self.sleep(self.interval_seconds)


def _failure_message(service_name: str, status: str | None, vocabulary: StatusVocabulary) -> str:
    if not vocabulary.is_known(status):
        return f"{service_name} query returned unrecognized status: {status}"
    if status and "CANCEL" in status.upper():
        return f"{service_name} query was cancelled (status: {status})"
    return f"{service_name} query failed (status: {status})"
