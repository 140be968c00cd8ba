"""Builds review prompts from the guideline template."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from ..errors import PromptError

DEFAULT_GUIDELINE = Path(__file__).with_name("templates") / "guideline.md.j2"


class PromptBuilder:
    """Renders the guideline template for one chunk at a time.

    The template exposes two variables, ``lang`` and ``code``. It is read
    from disk on every call so edits take effect mid-run.
    """

    def __init__(self, template_path: Path | None = None) -> None:
        self.template_path = Path(template_path or DEFAULT_GUIDELINE).expanduser()
        self._env = self._create_env(self.template_path.parent)

    def build(self, lang: str, code: Union[bytes, str]) -> str:
        """Return the rendered prompt; raise PromptError if rendering fails."""
        if isinstance(code, bytes):
            try:
                code_text = code.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise PromptError(f"Chunk is not valid UTF-8: {exc}") from exc
        else:
            code_text = code

        try:
            template = self._env.get_template(self.template_path.name)
            return template.render(lang=lang, code=code_text)
        except TemplateError as exc:
            raise PromptError(f"Failed to render {self.template_path}: {exc}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise PromptError(f"Unable to read guideline {self.template_path}: {exc}") from exc

    @staticmethod
    def _create_env(directory: Path) -> Environment:
        # cache_size=0 makes every get_template call hit the filesystem.
        return Environment(
            loader=FileSystemLoader(str(directory)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            cache_size=0,
        )


__all__ = ["DEFAULT_GUIDELINE", "PromptBuilder"]
