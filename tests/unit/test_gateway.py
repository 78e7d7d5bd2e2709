"""
Unit tests for the outbound service gateway.

Uses an in-memory httpx transport; no network access.
"""

import json

import httpx
import pytest

from chainsage.gateway import (
    MissingCredentialError,
    RpcError,
    ServiceError,
    TransportError,
    require_credential,
)


class TestServiceGatewayCall:
    """Test ServiceGateway.call outcomes."""

    @pytest.mark.asyncio
    async def test_returns_parsed_json(self, make_gateway):
        gateway, transport = make_gateway(lambda request: httpx.Response(200, json={"ok": True}))

        data = await gateway.call("https://example.test/status", service_name="Test")

        assert data == {"ok": True}
        assert transport.requests[0].method == "GET"
        assert transport.requests[0].headers["user-agent"].startswith("ChainSage/")

    @pytest.mark.asyncio
    async def test_sends_json_body_headers_and_params(self, make_gateway):
        gateway, transport = make_gateway(lambda request: httpx.Response(200, json=[]))

        await gateway.call(
            "https://example.test/jobs",
            method="POST",
            headers={"x-api-key": "secret"},
            body={"sql": "SELECT 1"},
            params={"limit": 10},
            service_name="Test",
        )

        request = transport.requests[0]
        assert request.method == "POST"
        assert request.headers["x-api-key"] == "secret"
        assert request.url.params["limit"] == "10"
        assert json.loads(request.content) == {"sql": "SELECT 1"}

    @pytest.mark.asyncio
    async def test_non_success_status_raises_service_error(self, make_gateway):
        gateway, _ = make_gateway(
            lambda request: httpx.Response(401, json={"error": "invalid api key"})
        )

        with pytest.raises(ServiceError) as exc_info:
            await gateway.call("https://example.test", service_name="Dune Status")

        error = exc_info.value
        assert error.status_code == 401
        assert error.service_name == "Dune Status"
        assert error.body == {"error": "invalid api key"}
        assert error.message == "Error 401 from Dune Status: invalid api key"

    @pytest.mark.asyncio
    async def test_non_json_error_keeps_raw_text(self, make_gateway):
        gateway, _ = make_gateway(lambda request: httpx.Response(502, text="Bad Gateway upstream"))

        with pytest.raises(ServiceError) as exc_info:
            await gateway.call("https://example.test", service_name="Covalent")

        assert exc_info.value.body == "Bad Gateway upstream"
        assert "Bad Gateway upstream" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_nested_error_message_is_used(self, make_gateway):
        gateway, _ = make_gateway(
            lambda request: httpx.Response(
                400, json={"error": {"code": 400, "message": "API key not valid"}}
            )
        )

        with pytest.raises(ServiceError, match="API key not valid"):
            await gateway.call("https://example.test", service_name="Gemini")

    @pytest.mark.asyncio
    async def test_long_error_detail_is_truncated(self, make_gateway):
        gateway, _ = make_gateway(lambda request: httpx.Response(500, text="x" * 1000))

        with pytest.raises(ServiceError) as exc_info:
            await gateway.call("https://example.test", service_name="Test")

        assert len(exc_info.value.message) < 300
        assert exc_info.value.message.endswith("...")

    @pytest.mark.asyncio
    async def test_success_with_invalid_json_raises(self, make_gateway):
        gateway, _ = make_gateway(lambda request: httpx.Response(200, text="<html>ok</html>"))

        with pytest.raises(ServiceError, match="Invalid JSON response from Mobula"):
            await gateway.call("https://example.test", service_name="Mobula")

    @pytest.mark.asyncio
    async def test_jsonrpc_error_on_http_success(self, make_gateway):
        gateway, _ = make_gateway(
            lambda request: httpx.Response(
                200,
                json={
                    "jsonrpc": "2.0",
                    "id": 1,
                    "error": {"code": -32602, "message": "invalid sql", "data": {"line": 1}},
                },
            )
        )

        with pytest.raises(RpcError) as exc_info:
            await gateway.call("https://example.test", method="POST", service_name="Flipside")

        error = exc_info.value
        assert error.code == -32602
        assert error.data == {"line": 1}
        assert "invalid sql" in error.message

    @pytest.mark.asyncio
    async def test_jsonrpc_result_passes_through(self, make_gateway):
        body = {"jsonrpc": "2.0", "id": 1, "result": {"queryRun": {"id": "qr-1"}}}
        gateway, _ = make_gateway(lambda request: httpx.Response(200, json=body))

        assert await gateway.call("https://example.test", service_name="Flipside") == body

    @pytest.mark.asyncio
    async def test_network_failure_raises_transport_error(self, make_gateway):
        gateway, _ = make_gateway(lambda request: httpx.ConnectError("connection refused"))

        with pytest.raises(TransportError) as exc_info:
            await gateway.call("https://example.test", service_name="Dune")

        assert exc_info.value.service_name == "Dune"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


class TestRequireCredential:
    def test_returns_value(self):
        assert require_credential("key", "Dune", "DUNE_API") == "key"

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing_value_raises(self, value):
        with pytest.raises(MissingCredentialError) as exc_info:
            require_credential(value, "Dune", "DUNE_API")

        assert exc_info.value.env_var == "DUNE_API"
        assert exc_info.value.message == "Dune API key is not configured (set DUNE_API)"
