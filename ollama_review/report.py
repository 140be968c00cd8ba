"""Markdown report assembly."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from .errors import ReportWriteError
from .models import ReviewOutcome

REPORT_TITLE = "# Code Review Report\n\n"
_REPORT_MODE = 0o644


def format_section(outcome: ReviewOutcome) -> str:
    chunk = outcome.chunk
    return f"## {chunk.file_path} (chunk {chunk.index}/{chunk.total})\n\n{outcome.text}\n\n---\n"


class ReportAggregator:
    """Collects sections in arrival order and writes them once at the end."""

    def __init__(self, title: str = REPORT_TITLE) -> None:
        self.title = title
        self._sections: List[str] = []

    def __len__(self) -> int:
        return len(self._sections)

    def add(self, outcome: ReviewOutcome) -> None:
        if not outcome.success:
            raise ValueError(f"Failed outcome for {outcome.chunk.label} cannot be reported")
        self._sections.append(format_section(outcome))

    @property
    def sections(self) -> List[str]:
        return list(self._sections)

    def render(self) -> str:
        return self.title + "".join(self._sections)

    def write(self, output_path: Path) -> Path:
        """Write the whole report in one go, replacing any existing file."""
        target = Path(output_path)
        data = self.render().encode("utf-8")
        try:
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _REPORT_MODE)
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
        except OSError as exc:
            raise ReportWriteError(f"write report: {exc}") from exc
        return target


__all__ = ["REPORT_TITLE", "ReportAggregator", "format_section"]
