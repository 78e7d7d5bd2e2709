"""
Base Query Executor

Abstract base classes for blockchain data providers. Every provider exposes
``execute(generated_query) -> ResultSet``; two families implement it:

- AsyncJobExecutor: submit -> job handle -> poll status -> fetch rows,
  bounded by a PollPolicy
- SyncQueryExecutor: one call returning rows directly

Gateway failures are wrapped into the pipeline failure kind of the sub-step
that raised them (submission, polling, result fetch).
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import Any, TypeVar

from chainsage.connectors.normalizer import normalize
from chainsage.connectors.polling import PollPolicy, StatusVocabulary
from chainsage.gateway import GatewayError, ServiceGateway, require_credential
from chainsage.models.agent import (
    ExecutionFailure,
    PipelineError,
    ResultFetchFailure,
    SubmissionFailure,
)
from chainsage.models.query import EndpointSelection, GeneratedQuery, ResultSet, SQLQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseQueryExecutor(ABC):
    """
    Abstract base class for data provider executors.

    Attributes:
        provider_name: Registry key of the provider ("flipside", "dune"...)
        display_name: Label used in logs and error messages
        query_kind: GeneratedQuery variant this executor consumes
        api_key_env: Environment variable that supplies the key
    """

    provider_name: str = ""
    display_name: str = ""
    query_kind: str = "sql"
    api_key_env: str = ""

    def __init__(self, gateway: ServiceGateway, api_key: str | None):
        self.gateway = gateway
        self.api_key = api_key

        logger.info(
            f"Initialized {self.__class__.__name__}",
            extra={"provider": self.provider_name, "has_api_key": bool(api_key)},
        )

    @abstractmethod
    async def execute(self, query: GeneratedQuery) -> ResultSet:
        """
        Run a generated query and return its rows.

        Raises:
            SubmissionFailure: Query could not be submitted
            ExecutionFailure: Job failed, or the synchronous call failed
            ExecutionTimeout: Job did not finish within the ceiling
            ResultFetchFailure: Rows could not be retrieved
        """
        pass  # pragma: no cover - abstract method

    def _credential(self, service_name: str) -> str:
        return require_credential(self.api_key, service_name, self.api_key_env)

    async def _guard(
        self,
        call: Awaitable[T],
        failure_type: type[PipelineError],
        action: str,
        **context: Any,
    ) -> T:
        """Await a gateway call, translating gateway errors into ``failure_type``."""
        try:
            return await call
        except GatewayError as exc:
            error_context = {"service": exc.service_name, **context}
            status_code = getattr(exc, "status_code", None)
            if status_code is not None:
                error_context["status_code"] = status_code
            raise failure_type(f"{action}: {exc.message}", context=error_context) from exc


class AsyncJobExecutor(BaseQueryExecutor):
    """
    Template for submit/poll/fetch providers.

    Subclasses implement ``submit``, ``poll_status`` and ``fetch_results``;
    the polling loop, status collapse and error mapping live here.
    """

    vocabulary: StatusVocabulary

    def __init__(
        self,
        gateway: ServiceGateway,
        api_key: str | None,
        poll_policy: PollPolicy | None = None,
        page_size: int = 1000,
    ):
        super().__init__(gateway, api_key)
        self.poll_policy = poll_policy or PollPolicy()
        self.page_size = page_size

    async def execute(self, query: GeneratedQuery) -> ResultSet:
        if not isinstance(query, SQLQuery):
            raise SubmissionFailure(
                f"{self.display_name} expects a SQL query, got {query.kind}",
                context={"provider": self.provider_name},
            )

        job_id = await self._guard(
            self.submit(query),
            SubmissionFailure,
            f"Failed to submit query to {self.display_name}",
        )
        if not isinstance(job_id, str) or not job_id:
            raise SubmissionFailure(
                f"{self.display_name} did not return a job handle",
                context={"provider": self.provider_name, "handle": repr(job_id)},
            )

        logger.info(
            f"{self.display_name} job submitted: {job_id}",
            extra={"provider": self.provider_name, "job_id": job_id},
        )

        await self.poll_policy.wait_for_terminal(
            lambda: self._guard(
                self.poll_status(job_id),
                ExecutionFailure,
                f"Failed to poll {self.display_name} job status",
                job_id=job_id,
            ),
            self.vocabulary,
            service_name=self.display_name,
            job_id=job_id,
        )

        payload = await self._guard(
            self.fetch_results(job_id),
            ResultFetchFailure,
            f"Failed to fetch {self.display_name} results",
            job_id=job_id,
        )
        result_set = normalize(payload)

        logger.info(
            f"{self.display_name} job {job_id} returned {result_set.row_count} rows",
            extra={"provider": self.provider_name, "job_id": job_id, "rows": result_set.row_count},
        )
        return result_set

    @abstractmethod
    async def submit(self, query: SQLQuery) -> str:
        """Submit the query and return the job handle."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def poll_status(self, job_id: str) -> str | None:
        """Return the raw provider status string for the job."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def fetch_results(self, job_id: str) -> Any:
        """
        Fetch the first page of results.

        Returns a payload accepted by ``normalize``. Raises ResultFetchFailure
        when the rows container is absent and the provider does not define
        that as an empty result.
        """
        pass  # pragma: no cover - abstract method

    def _missing_rows(self, job_id: str, detail: str) -> ResultFetchFailure:
        return ResultFetchFailure(
            f"{self.display_name} results were missing rows: {detail}",
            context={"provider": self.provider_name, "job_id": job_id},
        )


class SyncQueryExecutor(BaseQueryExecutor):
    """Template for providers that answer a query in one call."""

    query_kind = "endpoint"

    async def execute(self, query: GeneratedQuery) -> ResultSet:
        if not isinstance(query, EndpointSelection):
            raise ExecutionFailure(
                f"{self.display_name} expects an endpoint selection, got {query.kind}",
                context={"provider": self.provider_name},
            )
        if not query.is_executable:
            raise ExecutionFailure(
                f"{self.display_name} endpoint selection is not executable",
                context={
                    "provider": self.provider_name,
                    "missing_parameters": query.missing_parameters,
                },
            )

        payload = await self._guard(
            self.call(query),
            ExecutionFailure,
            f"{self.display_name} request failed",
        )
        result_set = normalize(payload)

        logger.info(
            f"{self.display_name} returned {result_set.row_count} rows",
            extra={"provider": self.provider_name, "rows": result_set.row_count},
        )
        return result_set

    @abstractmethod
    async def call(self, selection: EndpointSelection) -> Any:
        """Perform the provider call and return its raw payload."""
        pass  # pragma: no cover - abstract method
