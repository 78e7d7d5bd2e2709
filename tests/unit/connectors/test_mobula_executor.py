"""
Unit tests for the synchronous Mobula executor.
"""

import httpx
import pytest

from chainsage.connectors.mobula import MobulaExecutor
from chainsage.models.agent import ExecutionFailure
from chainsage.models.query import EndpointCall, EndpointSelection, SQLQuery


def selection(**params) -> EndpointSelection:
    return EndpointSelection(
        can_query=True,
        endpoints=[
            EndpointCall(
                path="/1/market/data",
                name="Get Market Data",
                extracted_parameters=params,
                required_parameters=["asset"],
            )
        ],
    )


class TestMobulaExecutor:
    @pytest.mark.asyncio
    async def test_calls_selected_endpoint(self, make_gateway):
        gateway, transport = make_gateway(
            lambda request: httpx.Response(
                200, json={"data": {"name": "Ethereum", "price": 3100.5}}
            )
        )
        executor = MobulaExecutor(gateway, "mb-key")

        result = await executor.execute(selection(asset="ethereum", blockchain=None))

        assert result.rows == [{"name": "Ethereum", "price": 3100.5}]
        request = transport.requests[0]
        assert request.url.path == "/api/1/market/data"
        assert dict(request.url.params) == {"asset": "ethereum"}
        assert request.headers["authorization"] == "mb-key"

    @pytest.mark.asyncio
    async def test_missing_parameters_not_executable(self, make_gateway):
        gateway, transport = make_gateway(lambda request: httpx.Response(200, json={}))
        executor = MobulaExecutor(gateway, "mb-key")

        with pytest.raises(ExecutionFailure, match="not executable"):
            await executor.execute(selection())

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_http_error_is_execution_failure(self, make_gateway):
        gateway, _ = make_gateway(
            lambda request: httpx.Response(404, json={"message": "Asset not found"})
        )
        executor = MobulaExecutor(gateway, "mb-key")

        with pytest.raises(ExecutionFailure, match="Asset not found"):
            await executor.execute(selection(asset="notacoin"))

    @pytest.mark.asyncio
    async def test_missing_key(self, make_gateway):
        gateway, _ = make_gateway(lambda request: httpx.Response(200, json={}))
        executor = MobulaExecutor(gateway, None)

        with pytest.raises(ExecutionFailure, match="set MOBULA_API"):
            await executor.execute(selection(asset="ethereum"))

    @pytest.mark.asyncio
    async def test_rejects_sql(self, make_gateway):
        gateway, _ = make_gateway(lambda request: httpx.Response(200, json={}))

        with pytest.raises(ExecutionFailure, match="expects an endpoint selection"):
            await MobulaExecutor(gateway, "mb-key").execute(
                SQLQuery(sql="SELECT 1 FROM x", dialect="flipside")
            )
