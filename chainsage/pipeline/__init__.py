"""
Pipeline package for ChainSage.

Contains the LangGraph orchestrator that connects query generation, execution,
normalization and summarization.
"""

from chainsage.pipeline.orchestrator import ChainSagePipeline, create_pipeline

__all__ = ["ChainSagePipeline", "create_pipeline"]
