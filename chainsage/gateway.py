"""
External Caller Gateway

Uniform outbound HTTP calls for every external collaborator (Gemini, Flipside,
Dune, Covalent, Mobula). Each call is logged, the response body is read once
and parsed as JSON, and any non-success outcome is raised as a GatewayError
carrying the service name and status.

Usage:
    from chainsage.gateway import ServiceGateway

    async with ServiceGateway(timeout=30) as gateway:
        data = await gateway.call(
            "https://api.dune.com/api/v1/execution/01H.../status",
            headers={"X-DUNE-API-KEY": key},
            service_name="Dune Status",
        )
"""

import json
import logging
from typing import Any

import httpx

from chainsage import __version__

logger = logging.getLogger(__name__)

_DETAIL_LIMIT = 200


class GatewayError(Exception):
    """Base exception for outbound call failures."""

    def __init__(self, service_name: str, message: str):
        self.service_name = service_name
        self.message = message
        super().__init__(message)


class ServiceError(GatewayError):
    """The service answered with a non-success status or an unreadable body."""

    def __init__(self, service_name: str, status_code: int, body: Any, message: str | None = None):
        self.status_code = status_code
        self.body = body
        detail = _describe_body(body)
        super().__init__(
            service_name,
            message or f"Error {status_code} from {service_name}: {detail}",
        )


class RpcError(GatewayError):
    """A JSON-RPC response carried an application-level error object."""

    def __init__(self, service_name: str, code: Any, message: str, data: Any = None):
        self.code = code
        self.data = data
        super().__init__(service_name, f"{service_name} RPC error {code}: {message}")


class TransportError(GatewayError):
    """The request never produced a response (DNS, connect, timeout...)."""


class MissingCredentialError(GatewayError):
    """A secret required to call the service is not configured."""

    def __init__(self, service_name: str, env_var: str):
        self.env_var = env_var
        super().__init__(
            service_name,
            f"{service_name} API key is not configured (set {env_var})",
        )


def require_credential(value: str | None, service_name: str, env_var: str) -> str:
    """Return the credential or raise MissingCredentialError."""
    if not value:
        raise MissingCredentialError(service_name, env_var)
    return value


def _describe_body(body: Any) -> str:
    if isinstance(body, dict):
        detail = body.get("message") or body.get("error")
        if isinstance(detail, dict):
            detail = detail.get("message") or json.dumps(detail)
        if not detail:
            detail = json.dumps(body, default=str)
    elif body is None or body == "":
        detail = "empty response body"
    else:
        detail = str(body)
    detail = str(detail)
    if len(detail) > _DETAIL_LIMIT:
        detail = detail[:_DETAIL_LIMIT] + "..."
    return detail


class ServiceGateway:
    """
    Shared outbound HTTP client.

    One instance is created per process and reused across requests; the
    underlying connection pool is closed with ``aclose()``.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": f"ChainSage/{__version__}"},
        )

    async def __aenter__(self) -> "ServiceGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def call(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: Any = None,
        params: dict[str, Any] | None = None,
        service_name: str,
    ) -> Any:
        """
        Perform one HTTP call and return the parsed JSON body.

        Args:
            url: Absolute URL to call
            method: HTTP method
            headers: Extra request headers (merged over the defaults)
            body: JSON-serializable request body
            params: Query string parameters
            service_name: Human-readable label used in logs and errors

        Returns:
            Parsed JSON response

        Raises:
            TransportError: Network failure before a response arrived
            ServiceError: Non-2xx status, or a 2xx body that is not JSON
            RpcError: JSON-RPC body carrying an ``error`` object
        """
        logger.info(
            f"Calling external API: {service_name} - {url}",
            extra={"service": service_name, "method": method},
        )

        try:
            response = await self._client.request(
                method,
                url,
                headers=headers,
                json=body,
                params=params,
            )
        except httpx.HTTPError as exc:
            logger.error(
                f"Network error calling {service_name}: {exc}",
                extra={"service": service_name, "url": url},
            )
            raise TransportError(
                service_name, f"Failed to reach {service_name}: {exc}"
            ) from exc

        text = response.text
        try:
            parsed: Any = json.loads(text) if text else None
            is_json = True
        except json.JSONDecodeError:
            parsed = text
            is_json = False

        if not response.is_success:
            logger.error(
                f"Error response from {service_name}: {response.status_code}",
                extra={
                    "service": service_name,
                    "status_code": response.status_code,
                    "body": parsed,
                },
            )
            raise ServiceError(service_name, response.status_code, parsed or response.reason_phrase)

        if not is_json:
            logger.error(
                f"Non-JSON response from {service_name}",
                extra={"service": service_name, "status_code": response.status_code},
            )
            raise ServiceError(
                service_name,
                response.status_code,
                parsed,
                message=f"Invalid JSON response from {service_name}: {_describe_body(parsed)}",
            )

        if isinstance(parsed, dict) and "jsonrpc" in parsed and parsed.get("error"):
            error = parsed["error"]
            if isinstance(error, dict):
                raise RpcError(
                    service_name,
                    error.get("code"),
                    str(error.get("message") or "unknown error"),
                    error.get("data"),
                )
            raise RpcError(service_name, None, str(error))

        logger.debug(
            f"{service_name} responded {response.status_code}",
            extra={"service": service_name, "status_code": response.status_code},
        )
        return parsed
