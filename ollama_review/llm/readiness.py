"""Checks that the configured model is present before a review starts."""

from __future__ import annotations

from typing import Callable, Iterable, Protocol

from ..errors import ChatError, ModelUnavailableError
from ..logging import get_logger

ConfirmPull = Callable[[str], bool]


class ModelStore(Protocol):
    def list_models(self) -> list[str]: ...

    def pull(self, model: str, on_progress: Callable[[str], None] | None = None) -> None: ...


def _matches(model: str, available: Iterable[str]) -> bool:
    candidates = {model}
    if ":" not in model:
        candidates.add(f"{model}:latest")
    return any(name in candidates for name in available)


def decline_pull(model: str) -> bool:
    return False


def ensure_model(store: ModelStore, model: str | None, confirm: ConfirmPull = decline_pull) -> None:
    """Verify ``model`` exists on the server, pulling it when ``confirm`` agrees.

    Raises ModelUnavailableError when no model is configured, when the server
    cannot be queried, when the user declines the download, or when the pull
    fails.
    """
    logger = get_logger("readiness")
    if not model:
        raise ModelUnavailableError("model is not specified")

    try:
        available = store.list_models()
    except ChatError as exc:
        raise ModelUnavailableError(f"list models: {exc}") from exc

    if _matches(model, available):
        logger.debug("Model %s is available", model)
        return

    if not confirm(model):
        raise ModelUnavailableError(f"required model {model} not available")

    logger.info("Pulling model %s", model)
    try:
        store.pull(model, on_progress=logger.info)
    except ChatError as exc:
        raise ModelUnavailableError(f"pull model: {exc}") from exc


__all__ = ["ConfirmPull", "ModelStore", "decline_pull", "ensure_model"]
