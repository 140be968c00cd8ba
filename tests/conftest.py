from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tests._fixtures.fakes import ScriptedChatBackend
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def chat_backend() -> ScriptedChatBackend:
    return ScriptedChatBackend()


@pytest.fixture
def simple_template(tmp_path: Path) -> Path:
    """A minimal guideline template that only fences the code."""
    path = tmp_path / "templates" / "guideline.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("Review this {{ lang }} code:\n```{{ lang }}\n{{ code }}\n```\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo configure_logging() so caplog sees records from every test."""
    logger = logging.getLogger("ollama_review")
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
