"""
Data Provider Executors Module

Runs generated queries against blockchain data providers and returns the
canonical ResultSet.

Available Executors:
    - BaseQueryExecutor: Abstract base class
    - AsyncJobExecutor: submit / poll / fetch template
    - SyncQueryExecutor: single-call template
    - FlipsideExecutor: Flipside JSON-RPC
    - DuneExecutor: Dune REST
    - RestJobExecutor: generic REST job API (Covalent)
    - MobulaExecutor: Mobula REST endpoints

Usage:
    from chainsage.connectors import create_executor

    executor = create_executor(
        provider=settings.provider,
        polling=settings.polling,
        gateway=gateway,
    )
    result_set = await executor.execute(sql_query)
"""

from chainsage.connectors.base import AsyncJobExecutor, BaseQueryExecutor, SyncQueryExecutor
from chainsage.connectors.dune import DuneExecutor
from chainsage.connectors.factory import EXECUTORS, create_executor, resolve_provider
from chainsage.connectors.flipside import FlipsideExecutor
from chainsage.connectors.mobula import MobulaExecutor
from chainsage.connectors.normalizer import normalize, sample
from chainsage.connectors.polling import (
    DUNE_STATUSES,
    FLIPSIDE_STATUSES,
    REST_JOB_STATUSES,
    JobState,
    PollPolicy,
    StatusVocabulary,
)
from chainsage.connectors.rest_job import RestJobExecutor

__all__ = [
    "BaseQueryExecutor",
    "AsyncJobExecutor",
    "SyncQueryExecutor",
    "FlipsideExecutor",
    "DuneExecutor",
    "RestJobExecutor",
    "MobulaExecutor",
    "EXECUTORS",
    "create_executor",
    "resolve_provider",
    "normalize",
    "sample",
    "JobState",
    "PollPolicy",
    "StatusVocabulary",
    "FLIPSIDE_STATUSES",
    "DUNE_STATUSES",
    "REST_JOB_STATUSES",
]
