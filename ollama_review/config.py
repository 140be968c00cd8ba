"""Configuration loading for ollama-review (config.yaml plus environment)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .errors import ConfigError
from .llm.client import DEFAULT_HOST, normalize_host
from .logging import get_logger

DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_OUTPUT = "review.md"

ENV_MODEL_KEYS = ("OLLAMA_REVIEW_MODEL",)
ENV_HOST_KEYS = ("OLLAMA_REVIEW_HOST", "OLLAMA_HOST")
ENV_GUIDELINE_KEYS = ("OLLAMA_REVIEW_GUIDELINE",)
ENV_OUTPUT_KEYS = ("OLLAMA_REVIEW_OUTPUT",)
ENV_EXCLUDE_KEYS = ("OLLAMA_REVIEW_EXCLUDE",)


@dataclass
class ReviewConfig:
    """Resolved settings for a review run."""

    root: Path
    config_file: Optional[Path] = None
    model: Optional[str] = None
    ollama_host: str = DEFAULT_HOST
    guideline: Optional[Path] = None
    exclude: List[str] = field(default_factory=list)
    output: Path = Path(DEFAULT_OUTPUT)
    workers: int = 1
    skip_nested: bool = False
    request_timeout: Optional[float] = None


def load_config(
    config_path: Path | str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ReviewConfig:
    """Load settings from ``config_path`` and apply environment overrides.

    A missing file yields defaults. Keys are matched case-insensitively and
    without underscores, so ``OllamaHost`` and ``ollama_host`` are the same
    setting. Relative paths in the file resolve against the file's folder.
    """
    env = os.environ if environ is None else environ
    config_file = Path(config_path or DEFAULT_CONFIG_FILE).expanduser()
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    loaded_from: Optional[Path] = None
    if config_file.is_file():
        data = _read_config(config_file)
        loaded_from = config_file.resolve()
        get_logger("config").info("Using config file: %s", loaded_from)

    model = _as_str(data.get("model"), "model")
    host = _as_str(data.get("ollamahost"), "OllamaHost")
    guideline_str = _as_str(data.get("guideline"), "guideline")
    output_str = _as_str(data.get("output"), "output")
    exclude = _as_str_list(data.get("exclude"), "exclude")
    workers = _as_int(data.get("workers"), "workers")
    skip_nested = _as_bool(data.get("skipnested"), "skip_nested")
    request_timeout = _as_float(data.get("requesttimeout"), "request_timeout")

    guideline = root / guideline_str if guideline_str else None
    output = root / output_str if output_str else Path(DEFAULT_OUTPUT)

    model = _first_env_value(env, ENV_MODEL_KEYS) or model
    host = _first_env_value(env, ENV_HOST_KEYS) or host
    env_guideline = _first_env_value(env, ENV_GUIDELINE_KEYS)
    if env_guideline:
        guideline = Path(env_guideline).expanduser()
    env_output = _first_env_value(env, ENV_OUTPUT_KEYS)
    if env_output:
        output = Path(env_output).expanduser()
    env_exclude = _first_env_value(env, ENV_EXCLUDE_KEYS)
    if env_exclude:
        exclude = [name.strip() for name in env_exclude.split(",") if name.strip()]

    if workers is not None and workers < 1:
        raise ConfigError("workers must be a positive integer")
    if request_timeout is not None and request_timeout <= 0:
        raise ConfigError("request_timeout must be greater than zero")

    return ReviewConfig(
        root=root,
        config_file=loaded_from,
        model=model,
        ollama_host=normalize_host(host),
        guideline=guideline,
        exclude=exclude,
        output=output,
        workers=workers or 1,
        skip_nested=bool(skip_nested),
        request_timeout=request_timeout,
    )


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return {_normalise_key(key): value for key, value in loaded.items()}


def _normalise_key(key: Any) -> str:
    return str(key).lower().replace("_", "").replace("-", "")


def _first_env_value(env: Mapping[str, str], keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = env.get(key)
        if value:
            return value
    return None


def _as_str(value: Any, name: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ConfigError(f"'{name}' must be a string")
    text = str(value).strip()
    return text or None


def _as_int(value: Any, name: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"'{name}' must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigError(f"'{name}' must be an integer") from exc
    raise ConfigError(f"'{name}' must be an integer")


def _as_float(value: Any, name: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"'{name}' must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError as exc:
            raise ConfigError(f"'{name}' must be a number") from exc
    raise ConfigError(f"'{name}' must be a number")


def _as_bool(value: Any, name: str) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    raise ConfigError(f"'{name}' must be true or false")


def _as_str_list(value: Any, name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        items: List[str] = []
        for item in value:
            if isinstance(item, bool) or not isinstance(item, (str, int, float)):
                raise ConfigError(f"'{name}' entries must be strings")
            items.append(str(item))
        return items
    raise ConfigError(f"'{name}' must be a list of strings")


__all__ = ["DEFAULT_CONFIG_FILE", "DEFAULT_OUTPUT", "ReviewConfig", "load_config"]
