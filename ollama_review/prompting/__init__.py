"""Prompt rendering for chunk reviews."""

from .builder import DEFAULT_GUIDELINE, PromptBuilder

__all__ = ["DEFAULT_GUIDELINE", "PromptBuilder"]
