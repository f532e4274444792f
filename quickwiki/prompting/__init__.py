"""Prompt construction for the oracle."""

from .builder import PromptBuilder, excerpt

__all__ = ["PromptBuilder", "excerpt"]
