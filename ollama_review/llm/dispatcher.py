"""Sends one chunk prompt to the chat backend and collects the review."""

from __future__ import annotations

from typing import List

from ..errors import ChatError
from ..logging import get_logger
from ..models import CodeChunk, ReviewOutcome
from .client import ChatBackend, ChatFragment, ChatMessage, ChatRequest


class FragmentAccumulator:
    """Joins streamed fragments, in arrival order, into one response.

    The text is only available once the stream is sealed, either by a
    ``done`` fragment or by the caller after the backend returned.
    """

    def __init__(self) -> None:
        self._parts: List[str] = []
        self._complete = False

    def __call__(self, fragment: ChatFragment) -> None:
        self.feed(fragment)

    def feed(self, fragment: ChatFragment) -> None:
        if self._complete:
            raise ChatError("Received a fragment after the stream completed")
        self._parts.append(fragment.content)
        if fragment.done:
            self._complete = True

    def complete(self) -> None:
        self._complete = True

    def discard(self) -> None:
        self._parts.clear()
        self._complete = False

    @property
    def is_complete(self) -> bool:
        return self._complete

    @property
    def text(self) -> str:
        if not self._complete:
            raise RuntimeError("Response requested before the stream completed")
        return "".join(self._parts)


class ReviewDispatcher:
    """Runs one chat round trip per chunk and never raises on chat failure."""

    def __init__(self, backend: ChatBackend, model: str) -> None:
        self.backend = backend
        self.model = model
        self.logger = get_logger("dispatcher")

    def build_request(self, prompt: str) -> ChatRequest:
        return ChatRequest(
            model=self.model,
            messages=[ChatMessage(role="user", content=prompt)],
        )

    def dispatch(self, chunk: CodeChunk, prompt: str) -> ReviewOutcome:
        request = self.build_request(prompt)
        accumulator = FragmentAccumulator()
        try:
            self.backend.chat(request, accumulator)
        except ChatError as exc:
            accumulator.discard()
            self.logger.warning(
                "Review error %s[%d]: %s", chunk.file_path, chunk.index, exc
            )
            return ReviewOutcome(chunk=chunk, text="", success=False, error=str(exc))
        accumulator.complete()
        return ReviewOutcome(chunk=chunk, text=accumulator.text, success=True)


__all__ = ["FragmentAccumulator", "ReviewDispatcher"]
