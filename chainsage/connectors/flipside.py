"""
Flipside Executor

Runs SQL on Flipside over its JSON-RPC 2.0 API:
createQueryRun -> getQueryRun (polled) -> getQueryRunResults.
"""

import itertools
import logging
from typing import Any

from chainsage.connectors.base import AsyncJobExecutor
from chainsage.connectors.polling import FLIPSIDE_STATUSES, PollPolicy
from chainsage.gateway import ServiceGateway
from chainsage.models.query import SQLQuery

logger = logging.getLogger(__name__)


class FlipsideExecutor(AsyncJobExecutor):
    """Flipside JSON-RPC executor."""

    provider_name = "flipside"
    display_name = "Flipside"
    api_key_env = "FLIPSIDE_API"
    vocabulary = FLIPSIDE_STATUSES

    def __init__(
        self,
        gateway: ServiceGateway,
        api_key: str | None,
        rpc_url: str = "https://api-v2.flipsidecrypto.xyz/json-rpc",
        poll_policy: PollPolicy | None = None,
        page_size: int = 1000,
        max_age_minutes: int = 0,
        result_ttl_hours: int = 1,
        data_source: str = "snowflake-default",
        data_provider: str = "flipside",
    ):
        super().__init__(gateway, api_key, poll_policy=poll_policy, page_size=page_size)
        self.rpc_url = rpc_url
        self.max_age_minutes = max_age_minutes
        self.result_ttl_hours = result_ttl_hours
        self.data_source = data_source
        self.data_provider = data_provider
        self._request_ids = itertools.count(1)

    async def submit(self, query: SQLQuery) -> str:
        result = await self._rpc(
            "createQueryRun",
            {
                "sql": query.sql,
                "maxAgeMinutes": self.max_age_minutes,
                "resultTTLHours": self.result_ttl_hours,
                "tags": {"source": "chainsage"},
                "dataSource": self.data_source,
                "dataProvider": self.data_provider,
            },
            service_name="Flipside Create Query",
        )
        query_run = result.get("queryRun") if isinstance(result, dict) else None
        if not isinstance(query_run, dict):
            return ""
        return query_run.get("queryRunId") or query_run.get("id") or ""

    async def poll_status(self, job_id: str) -> str | None:
        result = await self._rpc(
            "getQueryRun",
            {"queryRunId": job_id},
            service_name="Flipside Query Status",
        )
        if not isinstance(result, dict):
            return None
        status = result.get("status")
        if status is None and isinstance(result.get("queryRun"), dict):
            status = result["queryRun"].get("state")
        return status

    async def fetch_results(self, job_id: str) -> dict[str, Any]:
        result = await self._rpc(
            "getQueryRunResults",
            {
                "queryRunId": job_id,
                "format": "json",
                "page": {"number": 1, "size": self.page_size},
            },
            service_name="Flipside Query Results",
        )
        if not isinstance(result, dict) or "rows" not in result:
            raise self._missing_rows(job_id, "no 'rows' in getQueryRunResults result")

        # Flipside reports a zero-row run as rows: null
        return {"columnNames": result.get("columnNames"), "rows": result["rows"] or []}

    async def _rpc(self, method: str, params: dict[str, Any], *, service_name: str) -> Any:
        api_key = self._credential(service_name)
        data = await self.gateway.call(
            self.rpc_url,
            method="POST",
            headers={"Content-Type": "application/json", "x-api-key": api_key},
            body={
                "jsonrpc": "2.0",
                "method": method,
                "params": [params],
                "id": next(self._request_ids),
            },
            service_name=service_name,
        )
        return data.get("result") if isinstance(data, dict) else None
