"""Prompt templates and loader."""

from chainsage.prompts.loader import PromptLoader

__all__ = ["PromptLoader"]
