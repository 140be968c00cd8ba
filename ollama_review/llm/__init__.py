"""Ollama backend adapters."""

from .client import ChatFragment, ChatMessage, ChatRequest, OllamaClient
from .dispatcher import FragmentAccumulator, ReviewDispatcher
from .readiness import ensure_model

__all__ = [
    "ChatFragment",
    "ChatMessage",
    "ChatRequest",
    "FragmentAccumulator",
    "OllamaClient",
    "ReviewDispatcher",
    "ensure_model",
]
