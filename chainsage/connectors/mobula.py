"""
Mobula Executor

Synchronous provider: the selected catalog endpoint is called once with the
parameters extracted from the question, and the JSON answer is the result.
"""

import logging
from typing import Any

from chainsage.connectors.base import SyncQueryExecutor
from chainsage.gateway import ServiceGateway
from chainsage.models.query import EndpointSelection

logger = logging.getLogger(__name__)


class MobulaExecutor(SyncQueryExecutor):
    """Mobula REST executor."""

    provider_name = "mobula"
    display_name = "Mobula"
    api_key_env = "MOBULA_API"

    def __init__(
        self,
        gateway: ServiceGateway,
        api_key: str | None,
        base_url: str = "https://api.mobula.io/api",
    ):
        super().__init__(gateway, api_key)
        self.base_url = base_url.rstrip("/")

    async def call(self, selection: EndpointSelection) -> Any:
        # Only the first selected endpoint is called
        endpoint = selection.endpoints[0]
        api_key = self._credential(self.display_name)

        params = {
            key: value
            for key, value in endpoint.extracted_parameters.items()
            if value is not None
        }
        logger.debug(
            f"Mobula endpoint {endpoint.path}",
            extra={"endpoint": endpoint.name, "params": params},
        )

        return await self.gateway.call(
            f"{self.base_url}{endpoint.path}",
            method=endpoint.method,
            headers={"Authorization": api_key},
            params=params,
            service_name=self.display_name,
        )
