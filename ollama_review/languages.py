"""Registry mapping file extensions to grammars and function node types."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Iterable, Iterator, Optional

from .models import LanguageSpec

_DEFAULT_SPECS: tuple[LanguageSpec, ...] = (
    LanguageSpec(".py", "python", "function_definition"),
    LanguageSpec(".java", "java", "method_declaration"),
    LanguageSpec(".cpp", "cpp", "function_definition"),
    LanguageSpec(".hpp", "cpp", "function_definition"),
    LanguageSpec(".h", "cpp", "function_definition"),
    LanguageSpec(".go", "go", "function_declaration"),
)


class LanguageRegistry(Mapping[str, LanguageSpec]):
    """Immutable extension -> LanguageSpec lookup.

    Built once and handed to the walker and extractor explicitly, so tests can
    register fake grammars without touching module state.
    """

    def __init__(self, specs: Iterable[LanguageSpec] = ()) -> None:
        table: dict[str, LanguageSpec] = {}
        for spec in specs:
            if not spec.extension.startswith("."):
                raise ValueError(f"Extension must start with '.': {spec.extension!r}")
            if spec.extension in table:
                raise ValueError(f"Duplicate language entry for {spec.extension}")
            table[spec.extension] = spec
        self._specs = MappingProxyType(table)

    def __getitem__(self, extension: str) -> LanguageSpec:
        return self._specs[extension]

    def __iter__(self) -> Iterator[str]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __repr__(self) -> str:
        return f"LanguageRegistry({sorted(self._specs)})"

    def lookup(self, extension: str) -> Optional[LanguageSpec]:
        """Return the LanguageSpec for ``extension`` or ``None`` when unregistered."""
        return self._specs.get(extension)

    def with_spec(self, spec: LanguageSpec) -> "LanguageRegistry":
        """Return a new registry with ``spec`` added or replacing its extension."""
        merged = {key: value for key, value in self._specs.items() if key != spec.extension}
        merged[spec.extension] = spec
        return LanguageRegistry(merged.values())


def default_registry() -> LanguageRegistry:
    """Return the registry of languages supported out of the box."""
    return LanguageRegistry(_DEFAULT_SPECS)


__all__ = ["LanguageRegistry", "default_registry"]
