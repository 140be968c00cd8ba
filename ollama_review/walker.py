"""Deterministic repository traversal for the review pipeline."""

from __future__ import annotations

import os
from pathlib import Path
from typing import AbstractSet, Iterator, List, Optional, Tuple

from .languages import LanguageRegistry
from .logging import get_logger
from .models import LanguageSpec, SourceFile

_logger = get_logger("walker")


def _sorted_entries(directory: Path) -> List[os.DirEntry[str]]:
    with os.scandir(directory) as entries:
        return sorted(entries, key=lambda entry: entry.name)


def _walk_directory(directory: Path, excluded: AbstractSet[str]) -> Iterator[Path]:
    for entry in _sorted_entries(directory):
        if entry.is_dir(follow_symlinks=False):
            if entry.name in excluded:
                _logger.debug("Skipping excluded directory %s", entry.path)
                continue
            yield from _walk_directory(Path(entry.path), excluded)
        else:
            yield Path(entry.path)


def iter_files(root: Path, excluded: AbstractSet[str] = frozenset()) -> Iterator[Path]:
    """Yield every file under ``root`` in lexical order per directory level.

    Directories whose base name is in ``excluded`` are pruned along with
    everything below them; the root is never pruned by name. A regular file
    passed as ``root`` is yielded on its own. OSError from listing a
    directory propagates to the caller.
    """
    root = Path(root)
    if not root.exists():
        raise FileNotFoundError(f"Review target not found: {root}")
    if not root.is_dir():
        yield root
        return
    yield from _walk_directory(root, excluded)


def extension_of(path: Path) -> str:
    """Return the text from the last dot of the base name, or ``""``."""
    name = path.name
    dot = name.rfind(".")
    return name[dot:] if dot != -1 else ""


def display_path(path: Path, root: Path) -> str:
    if root.is_dir():
        try:
            return path.relative_to(root).as_posix()
        except ValueError:
            return path.as_posix()
    return root.as_posix()


class DirectoryWalker:
    """Pairs each eligible file under a root with its LanguageSpec."""

    def __init__(self, registry: LanguageRegistry, excluded_dirs: AbstractSet[str] = frozenset()) -> None:
        self.registry = registry
        self.excluded_dirs = frozenset(excluded_dirs)

    def candidates(self, root: Path) -> Iterator[Tuple[Path, LanguageSpec]]:
        for path in iter_files(root, self.excluded_dirs):
            spec = self.registry.lookup(extension_of(path))
            if spec is None:
                _logger.debug("Skipping %s: no language registered", path)
                continue
            yield path, spec

    @staticmethod
    def read(path: Path, root: Path) -> Optional[SourceFile]:
        """Load one file; return None (after logging) when it is unreadable."""
        try:
            source = path.read_bytes()
        except OSError as exc:
            _logger.warning("Read error %s: %s", path, exc)
            return None
        return SourceFile(
            path=path,
            display_path=display_path(path, root),
            source=source,
        )


__all__ = ["DirectoryWalker", "display_path", "extension_of", "iter_files"]
