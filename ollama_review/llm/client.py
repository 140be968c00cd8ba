"""HTTP client for the Ollama chat, tags and pull endpoints."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from http.client import HTTPException
from typing import Callable, Iterator, List, Optional, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from ..errors import ChatError, ConfigError

DEFAULT_HOST = "http://127.0.0.1:11434"


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str


@dataclass
class ChatRequest:
    """A chat completion request for a single model."""

    model: str
    messages: List[ChatMessage] = field(default_factory=list)
    stream: bool = True

    def to_payload(self) -> dict[str, object]:
        return {
            "model": self.model,
            "messages": [
                {"role": message.role, "content": message.content}
                for message in self.messages
            ],
            "stream": self.stream,
        }


@dataclass(frozen=True)
class ChatFragment:
    """A piece of streamed assistant text; ``done`` marks the final event."""

    content: str
    done: bool = False


FragmentHandler = Callable[[ChatFragment], None]


class ChatBackend(Protocol):
    """Anything able to answer a ChatRequest through a fragment callback."""

    def chat(self, request: ChatRequest, on_fragment: FragmentHandler) -> None: ...


def normalize_host(raw: str | None) -> str:
    """Return a canonical http(s) base URL for an Ollama host setting.

    Accepts the same shapes as ``OLLAMA_HOST``: a full URL or a bare
    ``host:port``. Raises ConfigError for anything else.
    """
    value = (raw or "").strip()
    if not value:
        return DEFAULT_HOST
    if "://" not in value:
        value = f"http://{value}"
    try:
        parsed = urlparse(value)
        # .port raises ValueError for a non-numeric or out-of-range port.
        hostname, _port = parsed.hostname, parsed.port
    except ValueError as exc:
        raise ConfigError(f"parse OllamaHost: {exc}") from exc
    if parsed.scheme not in {"http", "https"}:
        raise ConfigError(f"parse OllamaHost: unsupported scheme '{parsed.scheme}' in {raw!r}")
    if not hostname:
        raise ConfigError(f"parse OllamaHost: missing host in {raw!r}")
    return value.rstrip("/")


class OllamaClient:
    """Talks to an Ollama server over its JSON HTTP API.

    Streaming endpoints return newline-delimited JSON objects; each line is
    decoded and handed to the caller as soon as it arrives.
    """

    def __init__(self, base_url: str | None = None, *, request_timeout: Optional[float] = None) -> None:
        self.base_url = normalize_host(base_url)
        self.request_timeout = request_timeout

    def chat(self, request: ChatRequest, on_fragment: FragmentHandler) -> None:
        """Stream a chat completion, calling ``on_fragment`` for every event."""
        payload = request.to_payload()
        for event in self._stream("/api/chat", payload):
            message = event.get("message")
            content = ""
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                content = message["content"]
            done = bool(event.get("done"))
            on_fragment(ChatFragment(content=content, done=done))
            if done:
                return

    def list_models(self) -> List[str]:
        """Return the names of models available on the server."""
        payload = self._request_json("GET", "/api/tags")
        models = payload.get("models")
        if not isinstance(models, list):
            return []
        names: List[str] = []
        for entry in models:
            if isinstance(entry, dict):
                name = entry.get("name") or entry.get("model")
                if isinstance(name, str):
                    names.append(name)
        return names

    def pull(self, model: str, on_progress: Callable[[str], None] | None = None) -> None:
        """Download ``model`` on the server, reporting status lines."""
        for event in self._stream("/api/pull", {"model": model, "stream": True}):
            status = event.get("status")
            if on_progress is not None and isinstance(status, str) and status:
                on_progress(status)

    def _build_request(self, method: str, path: str, payload: dict[str, object] | None) -> Request:
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        headers = {"Accept": "application/x-ndjson, application/json"}
        if data is not None:
            headers["Content-Type"] = "application/json"
        return Request(f"{self.base_url}{path}", data=data, headers=headers, method=method)

    def _request_json(self, method: str, path: str) -> dict[str, object]:
        request = self._build_request(method, path, None)
        try:
            with urlopen(request, timeout=self.request_timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            raise ChatError(_http_error_message(exc)) from exc
        except URLError as exc:
            raise ChatError(f"Ollama request to {path} failed: {exc.reason}") from exc
        except OSError as exc:
            raise ChatError(f"Ollama request to {path} failed: {exc}") from exc
        except HTTPException as exc:
            raise ChatError(f"Ollama request to {path} failed: {exc!r}") from exc
        try:
            decoded = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ChatError(f"Ollama returned invalid JSON from {path}") from exc
        if not isinstance(decoded, dict):
            raise ChatError(f"Ollama returned an unexpected payload from {path}")
        return decoded

    def _stream(self, path: str, payload: dict[str, object]) -> Iterator[dict[str, object]]:
        request = self._build_request("POST", path, payload)
        try:
            with urlopen(request, timeout=self.request_timeout) as response:  # type: ignore[arg-type]
                for raw_line in response:
                    line = raw_line.strip()
                    if not line:
                        continue
                    try:
                        event = json.loads(line.decode("utf-8"))
                    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                        raise ChatError(f"Ollama streamed invalid JSON from {path}") from exc
                    if not isinstance(event, dict):
                        raise ChatError(f"Ollama streamed an unexpected event from {path}")
                    error = event.get("error")
                    if error:
                        raise ChatError(f"Ollama reported an error: {error}")
                    yield event
        except HTTPError as exc:
            raise ChatError(_http_error_message(exc)) from exc
        except URLError as exc:
            raise ChatError(f"Ollama request to {path} failed: {exc.reason}") from exc
        except OSError as exc:
            raise ChatError(f"Ollama stream from {path} failed: {exc}") from exc
        except HTTPException as exc:
            # IncompleteRead and friends surface while the body is being read.
            raise ChatError(f"Ollama stream from {path} failed: {exc!r}") from exc


def _http_error_message(exc: HTTPError) -> str:
    try:
        detail = exc.read().decode("utf-8", errors="ignore")
    except OSError:
        detail = ""
    message = detail.strip() or str(exc.reason)
    try:
        parsed = json.loads(message)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict) and isinstance(parsed.get("error"), str):
        message = parsed["error"]
    return f"Ollama request failed with status {exc.code}: {message}"


__all__ = [
    "ChatBackend",
    "ChatFragment",
    "ChatMessage",
    "ChatRequest",
    "DEFAULT_HOST",
    "FragmentHandler",
    "OllamaClient",
    "normalize_host",
]
