"""
Unit tests for the generic REST job executor (Covalent).
"""

import json

import httpx
import pytest

from chainsage.connectors.rest_job import RestJobExecutor
from chainsage.models.agent import ExecutionFailure, ResultFetchFailure, SubmissionFailure
from chainsage.models.query import SQLQuery

BASE_URL = "https://api.covalenthq.com/v1"
SQL = SQLQuery(sql="SELECT * FROM blocks LIMIT 5", dialect="covalent")


def job_handler(statuses, results, submit=None):
    statuses = list(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "POST" and path.endswith("/sql/jobs"):
            return httpx.Response(200, json=submit if submit is not None else {"job_id": "job-7"})
        if path.endswith("/results"):
            return httpx.Response(200, json=results)
        return httpx.Response(200, json={"status": statuses.pop(0)})

    return handler


def make_executor(gateway, policy, api_key="cv-key"):
    return RestJobExecutor(gateway, api_key, base_url=BASE_URL, poll_policy=policy, page_size=25)


class TestRestJobExecutor:
    @pytest.mark.asyncio
    async def test_bare_rows_array(self, make_gateway, fast_poll_policy):
        gateway, transport = make_gateway(
            job_handler(["pending", "running", "finished"], [{"height": 1}, {"height": 2}])
        )

        result = await make_executor(gateway, fast_poll_policy).execute(SQL)

        assert result.column_names == ["height"]
        assert result.row_count == 2

        submit, *polls, fetch = transport.requests
        assert submit.url.path == "/v1/sql/jobs"
        assert json.loads(submit.content) == {"sql": SQL.sql}
        assert submit.headers["authorization"] == "Bearer cv-key"
        assert [p.url.path for p in polls] == ["/v1/sql/jobs/job-7"] * 3
        assert fetch.url.path == "/v1/sql/jobs/job-7/results"
        assert fetch.url.params["limit"] == "25"

    @pytest.mark.asyncio
    async def test_rows_envelope(self, make_gateway, fast_poll_policy):
        gateway, _ = make_gateway(job_handler(["finished"], {"rows": []}))

        result = await make_executor(gateway, fast_poll_policy).execute(SQL)

        assert result.is_empty

    @pytest.mark.asyncio
    async def test_failed_job(self, make_gateway, fast_poll_policy):
        gateway, _ = make_gateway(job_handler(["running", "failed"], []))

        with pytest.raises(ExecutionFailure, match=r"Covalent query failed \(status: failed\)"):
            await make_executor(gateway, fast_poll_policy).execute(SQL)

    @pytest.mark.asyncio
    async def test_missing_job_id(self, make_gateway, fast_poll_policy):
        gateway, _ = make_gateway(job_handler([], [], submit={"status": "accepted"}))

        with pytest.raises(SubmissionFailure):
            await make_executor(gateway, fast_poll_policy).execute(SQL)

    @pytest.mark.asyncio
    async def test_unexpected_results_shape(self, make_gateway, fast_poll_policy):
        gateway, _ = make_gateway(job_handler(["finished"], {"message": "expired"}))

        with pytest.raises(ResultFetchFailure):
            await make_executor(gateway, fast_poll_policy).execute(SQL)

    @pytest.mark.asyncio
    async def test_status_http_error_is_execution_failure(self, make_gateway, fast_poll_policy):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(200, json={"job_id": "job-7"})
            return httpx.Response(503, json={"message": "maintenance"})

        gateway, _ = make_gateway(handler)

        with pytest.raises(ExecutionFailure) as exc_info:
            await make_executor(gateway, fast_poll_policy).execute(SQL)

        assert exc_info.value.context["status_code"] == 503
        assert exc_info.value.context["job_id"] == "job-7"
        assert "maintenance" in exc_info.value.message
