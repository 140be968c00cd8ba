"""Language-aware extraction of function-shaped byte spans."""

from __future__ import annotations

from typing import Callable, Dict, Iterator, List, Mapping, NamedTuple, Optional, Protocol, Sequence

import tree_sitter_cpp
import tree_sitter_go
import tree_sitter_java
import tree_sitter_python
from tree_sitter import Language, Parser

from .errors import ExtractionError
from .logging import get_logger
from .models import CodeChunk, LanguageSpec, SourceFile

_GRAMMAR_LOADERS: Dict[str, Callable[[], object]] = {
    "python": tree_sitter_python.language,
    "java": tree_sitter_java.language,
    "cpp": tree_sitter_cpp.language,
    "go": tree_sitter_go.language,
}


class SyntaxNode(Protocol):
    """Minimal view of a concrete syntax tree node."""

    @property
    def type(self) -> str: ...

    @property
    def start_byte(self) -> int: ...

    @property
    def end_byte(self) -> int: ...

    @property
    def named_children(self) -> Sequence["SyntaxNode"]: ...


class SourceParser(Protocol):
    """Turns raw source bytes into a syntax tree for a grammar."""

    def parse(self, source: bytes, grammar_id: str) -> SyntaxNode: ...


class ByteSpan(NamedTuple):
    start: int
    end: int


class FunctionSpans:
    """Lazy, restartable pre-order walk yielding spans of matching nodes.

    Only named children are visited. With ``nested`` enabled the walk keeps
    descending below a match, so an inner function is reported after (and
    overlapping) the function that contains it.
    """

    def __init__(self, root: SyntaxNode, node_type: str, *, nested: bool = True) -> None:
        self._root = root
        self._node_type = node_type
        self._nested = nested

    def __iter__(self) -> Iterator[ByteSpan]:
        stack: List[SyntaxNode] = [self._root]
        while stack:
            node = stack.pop()
            descend = True
            if node.type == self._node_type:
                yield ByteSpan(node.start_byte, node.end_byte)
                descend = self._nested
            if descend:
                stack.extend(reversed(list(node.named_children)))


def iter_function_spans(
    root: SyntaxNode, node_type: str, *, nested: bool = True
) -> FunctionSpans:
    """Return the spans of every ``node_type`` node under ``root`` in document order."""
    return FunctionSpans(root, node_type, nested=nested)


class TreeSitterParser:
    """SourceParser backed by the tree-sitter grammar packages."""

    def __init__(self, grammars: Mapping[str, Callable[[], object]] | None = None) -> None:
        self._grammars = dict(grammars) if grammars is not None else dict(_GRAMMAR_LOADERS)
        self._parsers: Dict[str, Parser] = {}

    def supports(self, grammar_id: str) -> bool:
        return grammar_id in self._grammars

    def parse(self, source: bytes, grammar_id: str) -> SyntaxNode:
        parser = self._get_parser(grammar_id)
        try:
            tree = parser.parse(source)
        except (ValueError, RuntimeError) as exc:
            raise ExtractionError(f"tree-sitter failed to parse {grammar_id} source: {exc}") from exc
        if tree is None:
            raise ExtractionError(f"tree-sitter returned no tree for {grammar_id} source")
        return tree.root_node

    def _get_parser(self, grammar_id: str) -> Parser:
        parser = self._parsers.get(grammar_id)
        if parser is not None:
            return parser
        loader = self._grammars.get(grammar_id)
        if loader is None:
            raise ExtractionError(f"No tree-sitter grammar available for '{grammar_id}'")
        try:
            parser = Parser(Language(loader()))
        except (TypeError, ValueError) as exc:
            raise ExtractionError(f"Unable to load tree-sitter grammar '{grammar_id}': {exc}") from exc
        self._parsers[grammar_id] = parser
        return parser


class FunctionExtractor:
    """Splits a source file into numbered function chunks."""

    def __init__(self, parser: Optional[SourceParser] = None, *, skip_nested: bool = False) -> None:
        self._parser = parser or TreeSitterParser()
        self._skip_nested = skip_nested
        self.logger = get_logger("extractor")

    def spans(self, source: bytes, spec: LanguageSpec) -> List[ByteSpan]:
        root = self._parser.parse(source, spec.grammar_id)
        return list(
            iter_function_spans(root, spec.function_node_type, nested=not self._skip_nested)
        )

    def extract(self, source_file: SourceFile, spec: LanguageSpec) -> List[CodeChunk]:
        """Return the file's chunks, indexed 1..N in document order.

        Raises ExtractionError when the file cannot be parsed. An empty list
        means the file holds no function nodes.
        """
        spans = self.spans(source_file.source, spec)
        total = len(spans)
        self.logger.debug(
            "Extracted %d %s node(s) from %s",
            total,
            spec.function_node_type,
            source_file.display_path,
        )
        return [
            CodeChunk(
                file_path=source_file.display_path,
                index=position,
                total=total,
                language_tag=spec.language_tag,
                source=source_file.source[span.start : span.end],
                start_byte=span.start,
                end_byte=span.end,
            )
            for position, span in enumerate(spans, start=1)
        ]


__all__ = [
    "ByteSpan",
    "FunctionExtractor",
    "FunctionSpans",
    "SourceParser",
    "SyntaxNode",
    "TreeSitterParser",
    "iter_function_spans",
]
