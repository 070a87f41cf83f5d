"""Prompt construction for the planning and writing oracles."""

from .builder import PromptBuilder, PromptRequest, summarize_index

__all__ = ["PromptBuilder", "PromptRequest", "summarize_index"]
