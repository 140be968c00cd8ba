"""Exception types shared across the review pipeline."""

from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when the configuration file or backend endpoint is invalid."""


class ExtractionError(RuntimeError):
    """Raised when a source file cannot be parsed into function chunks."""


class PromptError(RuntimeError):
    """Raised when the guideline template cannot be rendered for a chunk."""


class ChatError(RuntimeError):
    """Raised when a chat call against the backend fails."""


class ModelUnavailableError(RuntimeError):
    """Raised when the configured model is missing and cannot be pulled."""


class ReportWriteError(RuntimeError):
    """Raised when the final report cannot be written."""


__all__ = [
    "ChatError",
    "ConfigError",
    "ExtractionError",
    "ModelUnavailableError",
    "PromptError",
    "ReportWriteError",
]
