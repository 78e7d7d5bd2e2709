"""
Dune Executor

Dune's API needs a saved query before it can execute: the submit step
creates a private query from the SQL, then starts an execution whose id is
the job handle.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from chainsage.connectors.polling import DUNE_STATUSES, PollPolicy
from chainsage.connectors.rest_job import RestJobExecutor
from chainsage.gateway import ServiceGateway
from chainsage.models.query import SQLQuery

logger = logging.getLogger(__name__)


class DuneExecutor(RestJobExecutor):
    """Dune REST executor."""

    provider_name = "dune"
    display_name = "Dune"
    api_key_env = "DUNE_API"
    vocabulary = DUNE_STATUSES

    def __init__(
        self,
        gateway: ServiceGateway,
        api_key: str | None,
        base_url: str = "https://api.dune.com/api/v1",
        poll_policy: PollPolicy | None = None,
        page_size: int = 1000,
        private_queries: bool = True,
    ):
        super().__init__(
            gateway,
            api_key,
            base_url=base_url,
            submit_path="/query",
            status_path="/execution/{job_id}/status",
            results_path="/execution/{job_id}/results",
            poll_policy=poll_policy,
            page_size=page_size,
        )
        self.private_queries = private_queries

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"Content-Type": "application/json", "X-DUNE-API-KEY": api_key}

    async def submit(self, query: SQLQuery) -> str:
        created = await self._request(
            self.submit_path,
            method="POST",
            body={
                "name": f"ChainSage Query - {datetime.now(timezone.utc).isoformat()}",
                "description": f"Generated for question: {query.question or 'n/a'}",
                "query_sql": query.sql,
                "is_private": self.private_queries,
            },
            service_name="Dune Create Query",
        )
        query_id = created.get("query_id") if isinstance(created, dict) else None
        if query_id is None:
            return ""

        logger.info(f"Dune query created: {query_id}", extra={"query_id": query_id})

        started = await self._request(
            f"/query/{query_id}/execute",
            method="POST",
            body={},
            service_name="Dune Execute Query",
        )
        return started.get("execution_id") if isinstance(started, dict) else None

    async def poll_status(self, job_id: str) -> str | None:
        data = await self._request(
            self.status_path.format(job_id=job_id),
            service_name="Dune Execution Status",
        )
        return data.get("state") if isinstance(data, dict) else None

    async def fetch_results(self, job_id: str) -> Any:
        data = await self._request(
            self.results_path.format(job_id=job_id),
            params={"limit": self.page_size},
            service_name="Dune Execution Results",
        )
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, dict):
            raise self._missing_rows(job_id, "no 'result' object")

        metadata = result.get("metadata") or {}
        rows = result.get("rows")
        if rows is None:
            # A completed execution with zero rows may omit the array
            if metadata.get("total_row_count") == 0:
                rows = []
            else:
                raise self._missing_rows(job_id, "no 'result.rows' array")

        return {"columnNames": metadata.get("column_names"), "rows": rows}
