"""
REST Job Executor

Generic submit/poll/fetch executor for REST providers that expose a job
resource: POST submit -> bare ``job_id``; GET status -> bare ``status`` in
{pending, running, finished, failed}; GET results -> bare row array.
Used for Covalent, and specialized for Dune.
"""

import logging
from typing import Any

from chainsage.connectors.base import AsyncJobExecutor
from chainsage.connectors.polling import REST_JOB_STATUSES, PollPolicy
from chainsage.gateway import ServiceGateway
from chainsage.models.query import SQLQuery

logger = logging.getLogger(__name__)


class RestJobExecutor(AsyncJobExecutor):
    """REST job executor with configurable paths."""

    provider_name = "covalent"
    display_name = "Covalent"
    api_key_env = "COVALENT_API"
    vocabulary = REST_JOB_STATUSES

    def __init__(
        self,
        gateway: ServiceGateway,
        api_key: str | None,
        base_url: str,
        submit_path: str = "/sql/jobs",
        status_path: str = "/sql/jobs/{job_id}",
        results_path: str = "/sql/jobs/{job_id}/results",
        poll_policy: PollPolicy | None = None,
        page_size: int = 1000,
    ):
        super().__init__(gateway, api_key, poll_policy=poll_policy, page_size=page_size)
        self.base_url = base_url.rstrip("/")
        self.submit_path = submit_path
        self.status_path = status_path
        self.results_path = results_path

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"Content-Type": "application/json", "Authorization": f"Bearer {api_key}"}

    async def _request(
        self,
        path: str,
        *,
        service_name: str,
        method: str = "GET",
        body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        api_key = self._credential(service_name)
        return await self.gateway.call(
            f"{self.base_url}{path}",
            method=method,
            headers=self._headers(api_key),
            body=body,
            params=params,
            service_name=service_name,
        )

    async def submit(self, query: SQLQuery) -> str:
        data = await self._request(
            self.submit_path,
            method="POST",
            body={"sql": query.sql},
            service_name=f"{self.display_name} Submit Query",
        )
        return data.get("job_id") if isinstance(data, dict) else None

    async def poll_status(self, job_id: str) -> str | None:
        data = await self._request(
            self.status_path.format(job_id=job_id),
            service_name=f"{self.display_name} Job Status",
        )
        return data.get("status") if isinstance(data, dict) else None

    async def fetch_results(self, job_id: str) -> Any:
        data = await self._request(
            self.results_path.format(job_id=job_id),
            params={"limit": self.page_size},
            service_name=f"{self.display_name} Job Results",
        )
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("rows"), list):
            return data
        raise self._missing_rows(job_id, "expected a row array")
