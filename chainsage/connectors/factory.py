"""Executor factory for the configured data provider."""

from __future__ import annotations

from typing import TYPE_CHECKING

from chainsage.connectors.base import BaseQueryExecutor
from chainsage.connectors.dune import DuneExecutor
from chainsage.connectors.flipside import FlipsideExecutor
from chainsage.connectors.mobula import MobulaExecutor
from chainsage.connectors.polling import PollPolicy
from chainsage.connectors.rest_job import RestJobExecutor
from chainsage.gateway import ServiceGateway

if TYPE_CHECKING:
    from chainsage.config import PollingSettings, ProviderSettings

EXECUTORS: dict[str, type[BaseQueryExecutor]] = {
    "flipside": FlipsideExecutor,
    "dune": DuneExecutor,
    "covalent": RestJobExecutor,
    "mobula": MobulaExecutor,
}


def resolve_provider(name: str) -> str:
    """Normalize a provider name and reject unknown ones."""
    value = (name or "").strip().lower()
    if value not in EXECUTORS:
        raise ValueError(
            f"Unsupported data provider: {name}. Available providers: {sorted(EXECUTORS)}"
        )
    return value


def create_executor(
    *,
    provider: ProviderSettings,
    polling: PollingSettings,
    gateway: ServiceGateway,
    poll_policy: PollPolicy | None = None,
) -> BaseQueryExecutor:
    """Create the executor selected by ``provider.name``."""
    name = resolve_provider(provider.name)
    policy = poll_policy or PollPolicy(
        interval_seconds=polling.interval_seconds,
        max_wait_seconds=polling.max_wait_seconds,
    )

    if name == "flipside":
        return FlipsideExecutor(
            gateway,
            provider.flipside_api_key,
            rpc_url=provider.flipside_rpc_url,
            poll_policy=policy,
            page_size=polling.page_size,
            max_age_minutes=provider.flipside_max_age_minutes,
            result_ttl_hours=provider.flipside_result_ttl_hours,
            data_source=provider.flipside_data_source,
            data_provider=provider.flipside_data_provider,
        )

    if name == "dune":
        return DuneExecutor(
            gateway,
            provider.dune_api_key,
            base_url=provider.dune_base_url,
            poll_policy=policy,
            page_size=polling.page_size,
            private_queries=provider.dune_private_queries,
        )

    if name == "covalent":
        return RestJobExecutor(
            gateway,
            provider.covalent_api_key,
            base_url=provider.covalent_base_url,
            submit_path=provider.covalent_submit_path,
            status_path=provider.covalent_status_path,
            results_path=provider.covalent_results_path,
            poll_policy=policy,
            page_size=polling.page_size,
        )

    return MobulaExecutor(
        gateway,
        provider.mobula_api_key,
        base_url=provider.mobula_base_url,
    )
