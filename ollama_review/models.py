"""Core data models shared across review pipeline components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class LanguageSpec:
    """Grammar and function node type registered for one file extension."""

    extension: str
    grammar_id: str
    function_node_type: str

    @property
    def language_tag(self) -> str:
        """Short tag used in prompts, e.g. ``py`` for ``.py``."""
        return self.extension.lstrip(".")


@dataclass
class SourceFile:
    """Raw bytes of one eligible file, read once per run."""

    path: Path
    display_path: str
    source: bytes


@dataclass(frozen=True)
class CodeChunk:
    """One function-shaped byte span submitted for review."""

    file_path: str
    index: int
    total: int
    language_tag: str
    source: bytes
    start_byte: int
    end_byte: int

    @property
    def label(self) -> str:
        return f"{self.file_path} (chunk {self.index}/{self.total})"


@dataclass
class ReviewOutcome:
    """Result of dispatching a single chunk to the chat backend."""

    chunk: CodeChunk
    text: str
    success: bool
    error: Optional[str] = None


@dataclass
class RunSummary:
    """Counters describing a completed review run."""

    output_path: Optional[Path] = None
    files_visited: int = 0
    files_reviewed: int = 0
    files_skipped: int = 0
    chunks_extracted: int = 0
    chunks_failed: int = 0
    sections: int = 0
    failures: list[str] = field(default_factory=list)
