"""
Unit tests for the Flipside JSON-RPC executor.
"""

import json

import httpx
import pytest

from chainsage.connectors.flipside import FlipsideExecutor
from chainsage.models.agent import (
    ExecutionFailure,
    ExecutionTimeout,
    ResultFetchFailure,
    SubmissionFailure,
)
from chainsage.models.query import EndpointSelection, SQLQuery

SQL = SQLQuery(
    sql="SELECT balance FROM balances WHERE address='0xabc'",
    dialect="flipside",
    question="What is the ETH balance of address 0xabc?",
)


def rpc_handler(statuses, results=None, create=None):
    """Answer Flipside RPC methods; statuses are returned in order."""
    statuses = list(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        method = payload["method"]
        if method == "createQueryRun":
            result = create if create is not None else {"queryRun": {"queryRunId": "qr-1"}}
        elif method == "getQueryRun":
            result = {"status": statuses.pop(0)}
        else:
            result = results if results is not None else {
                "columnNames": ["balance"],
                "rows": [{"balance": "1.23"}],
            }
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})

    return handler


def methods(transport) -> list[str]:
    return [json.loads(r.content)["method"] for r in transport.requests]


class TestFlipsideExecutor:
    @pytest.mark.asyncio
    async def test_submit_poll_fetch(self, make_gateway, fast_poll_policy):
        gateway, transport = make_gateway(rpc_handler(["PENDING", "RUNNING", "COMPLETED"]))
        executor = FlipsideExecutor(gateway, "fs-key", poll_policy=fast_poll_policy, page_size=100)

        result = await executor.execute(SQL)

        assert result.column_names == ["balance"]
        assert result.rows == [{"balance": "1.23"}]
        assert methods(transport) == [
            "createQueryRun",
            "getQueryRun",
            "getQueryRun",
            "getQueryRun",
            "getQueryRunResults",
        ]

        create = json.loads(transport.requests[0].content)
        assert create["jsonrpc"] == "2.0"
        assert create["params"][0]["sql"] == SQL.sql
        assert create["params"][0]["maxAgeMinutes"] == 0
        assert transport.requests[0].headers["x-api-key"] == "fs-key"

        fetch = json.loads(transport.requests[-1].content)
        assert fetch["params"][0] == {
            "queryRunId": "qr-1",
            "format": "json",
            "page": {"number": 1, "size": 100},
        }

    @pytest.mark.asyncio
    async def test_failed_status_after_running(self, make_gateway, fast_poll_policy):
        gateway, transport = make_gateway(
            rpc_handler(["RUNNING", "PENDING", "RUNNING", "FAILED"])
        )
        executor = FlipsideExecutor(gateway, "fs-key", poll_policy=fast_poll_policy)

        with pytest.raises(ExecutionFailure, match="failed"):
            await executor.execute(SQL)

        assert "getQueryRunResults" not in methods(transport)

    @pytest.mark.asyncio
    async def test_times_out(self, make_gateway, fast_poll_policy):
        gateway, _ = make_gateway(rpc_handler(["RUNNING"] * 20))
        executor = FlipsideExecutor(gateway, "fs-key", poll_policy=fast_poll_policy)

        with pytest.raises(ExecutionTimeout, match="Flipside query timed out after 30 seconds"):
            await executor.execute(SQL)

    @pytest.mark.asyncio
    async def test_null_rows_is_empty_result(self, make_gateway, fast_poll_policy):
        gateway, _ = make_gateway(
            rpc_handler(["COMPLETED"], results={"columnNames": ["balance"], "rows": None})
        )
        executor = FlipsideExecutor(gateway, "fs-key", poll_policy=fast_poll_policy)

        result = await executor.execute(SQL)

        assert result.is_empty
        assert result.column_names == ["balance"]

    @pytest.mark.asyncio
    async def test_missing_rows_is_fetch_failure(self, make_gateway, fast_poll_policy):
        gateway, _ = make_gateway(rpc_handler(["COMPLETED"], results={"columnNames": []}))
        executor = FlipsideExecutor(gateway, "fs-key", poll_policy=fast_poll_policy)

        with pytest.raises(ResultFetchFailure, match="missing rows"):
            await executor.execute(SQL)

    @pytest.mark.asyncio
    async def test_missing_handle_is_submission_failure(self, make_gateway, fast_poll_policy):
        gateway, transport = make_gateway(rpc_handler([], create={"queryRun": {}}))
        executor = FlipsideExecutor(gateway, "fs-key", poll_policy=fast_poll_policy)

        with pytest.raises(SubmissionFailure, match="did not return a job handle"):
            await executor.execute(SQL)

        assert methods(transport) == ["createQueryRun"]

    @pytest.mark.asyncio
    async def test_rpc_error_is_submission_failure(self, make_gateway, fast_poll_policy):
        gateway, _ = make_gateway(
            lambda request: httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "bad sql"}},
            )
        )
        executor = FlipsideExecutor(gateway, "fs-key", poll_policy=fast_poll_policy)

        with pytest.raises(SubmissionFailure) as exc_info:
            await executor.execute(SQL)

        assert "bad sql" in exc_info.value.message
        assert exc_info.value.context["service"] == "Flipside Create Query"

    @pytest.mark.asyncio
    async def test_missing_key_fails_on_first_use(self, make_gateway, fast_poll_policy):
        gateway, transport = make_gateway(rpc_handler([]))
        executor = FlipsideExecutor(gateway, None, poll_policy=fast_poll_policy)

        with pytest.raises(SubmissionFailure, match="set FLIPSIDE_API"):
            await executor.execute(SQL)

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_rejects_endpoint_selection(self, make_gateway, fast_poll_policy):
        gateway, _ = make_gateway(rpc_handler([]))
        executor = FlipsideExecutor(gateway, "fs-key", poll_policy=fast_poll_policy)

        with pytest.raises(SubmissionFailure, match="expects a SQL query"):
            await executor.execute(EndpointSelection(can_query=False))
