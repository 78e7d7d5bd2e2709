"""
ChainSage Agents Module

LLM-backed pipeline stages.

Available Agents:
    - BaseAgent: Abstract base class with timing and error translation
    - SQLGeneratorAgent: Question to provider-dialect SQL
    - EndpointSelectorAgent: Question to catalog endpoint selection
    - SummarizerAgent: Result set to insight text
"""

from chainsage.agents.base import AgentResult, BaseAgent
from chainsage.agents.query_generator import EndpointSelectorAgent, SQLGeneratorAgent
from chainsage.agents.summarizer import SummarizerAgent

__all__ = [
    "AgentResult",
    "BaseAgent",
    "SQLGeneratorAgent",
    "EndpointSelectorAgent",
    "SummarizerAgent",
]
