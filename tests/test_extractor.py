"""Tests for ollama_review.extractor."""

from __future__ import annotations

from pathlib import Path
import textwrap

import pytest

from ollama_review.errors import ExtractionError
from ollama_review.extractor import (
    ByteSpan,
    FunctionExtractor,
    TreeSitterParser,
    iter_function_spans,
)
from ollama_review.languages import default_registry
from ollama_review.models import LanguageSpec, SourceFile
from tests._fixtures.fakes import FakeNode, FakeParser

FAKE_SPEC = LanguageSpec(".fake", "fake", "fn")


def _fake_tree() -> FakeNode:
    inner = FakeNode("fn", 12, 18)
    outer = FakeNode(
        "fn",
        0,
        20,
        children=[
            FakeNode("identifier", 3, 6),
            FakeNode("fn", 6, 7, named=False),
            FakeNode("block", 10, 20, children=[inner]),
        ],
    )
    trailing = FakeNode("fn", 30, 40)
    return FakeNode("module", 0, 40, children=[outer, FakeNode("comment", 22, 28), trailing])


def _source_file(text: str, name: str = "sample.py") -> SourceFile:
    source = textwrap.dedent(text).lstrip("\n").encode("utf-8")
    return SourceFile(path=Path(name), display_path=name, source=source)


def test_spans_follow_preorder_and_include_nested_matches() -> None:
    spans = list(iter_function_spans(_fake_tree(), "fn"))
    assert spans == [ByteSpan(0, 20), ByteSpan(12, 18), ByteSpan(30, 40)]


def test_spans_ignore_unnamed_nodes() -> None:
    spans = list(iter_function_spans(_fake_tree(), "fn"))
    assert ByteSpan(6, 7) not in spans


def test_spans_can_stop_descending_at_matches() -> None:
    spans = list(iter_function_spans(_fake_tree(), "fn", nested=False))
    assert spans == [ByteSpan(0, 20), ByteSpan(30, 40)]


def test_spans_are_restartable() -> None:
    spans = iter_function_spans(_fake_tree(), "fn")
    assert list(spans) == list(spans)


def test_spans_match_the_root_itself() -> None:
    root = FakeNode("fn", 0, 5)
    assert list(iter_function_spans(root, "fn")) == [ByteSpan(0, 5)]


def test_extractor_numbers_chunks_from_one() -> None:
    source = bytes(range(65, 65 + 40))
    parser = FakeParser({"fake": _fake_tree()})
    extractor = FunctionExtractor(parser)
    source_file = SourceFile(path=Path("x.fake"), display_path="x.fake", source=source)

    chunks = extractor.extract(source_file, FAKE_SPEC)

    assert [chunk.index for chunk in chunks] == [1, 2, 3]
    assert {chunk.total for chunk in chunks} == {3}
    assert chunks[1].source == source[12:18]
    assert chunks[0].language_tag == "fake"
    assert parser.calls == [(source, "fake")]


def test_extractor_propagates_parse_failure() -> None:
    extractor = FunctionExtractor(FakeParser(error=ExtractionError("broken")))
    with pytest.raises(ExtractionError):
        extractor.extract(_source_file("x = 1\n", "x.fake"), FAKE_SPEC)


def test_tree_sitter_python_chunks_match_function_spans() -> None:
    source_file = _source_file(
        """
        import os


        def first(a):
            return a + 1


        class Greeter:
            def greet(self, name):
                return f"hi {name}"


        def second(b):
            total = b * 2
            return total
        """
    )
    spec = default_registry()[".py"]

    chunks = FunctionExtractor().extract(source_file, spec)

    texts = [chunk.source.decode("utf-8") for chunk in chunks]
    assert texts == [
        "def first(a):\n    return a + 1",
        'def greet(self, name):\n        return f"hi {name}"',
        "def second(b):\n    total = b * 2\n    return total",
    ]
    assert [(chunk.index, chunk.total) for chunk in chunks] == [(1, 3), (2, 3), (3, 3)]
    assert all(chunk.language_tag == "py" for chunk in chunks)
    for chunk in chunks:
        assert source_file.source[chunk.start_byte : chunk.end_byte] == chunk.source


def test_tree_sitter_python_nested_functions_overlap_by_default() -> None:
    source_file = _source_file(
        """
        def outer():
            def inner():
                return 1
            return inner
        """
    )
    spec = default_registry()[".py"]

    nested = FunctionExtractor().extract(source_file, spec)
    outermost = FunctionExtractor(skip_nested=True).extract(source_file, spec)

    assert len(nested) == 2
    assert nested[1].source.decode("utf-8") == "def inner():\n        return 1"
    assert nested[1].source in nested[0].source
    assert [chunk.source for chunk in outermost] == [nested[0].source]


def test_tree_sitter_file_without_functions_yields_no_chunks() -> None:
    source_file = _source_file(
        """
        VALUE = 3
        print(VALUE)
        """
    )
    assert FunctionExtractor().extract(source_file, default_registry()[".py"]) == []


def test_tree_sitter_go_only_collects_function_declarations() -> None:
    source_file = _source_file(
        """
        package calc

        type Acc struct{ n int }

        func Add(a, b int) int {
        \treturn a + b
        }

        func (s *Acc) Push(v int) {
        \ts.n += v
        }
        """,
        "calc.go",
    )
    chunks = FunctionExtractor().extract(source_file, default_registry()[".go"])
    assert [chunk.source.decode("utf-8") for chunk in chunks] == [
        "func Add(a, b int) int {\n\treturn a + b\n}"
    ]


def test_tree_sitter_java_collects_methods() -> None:
    source_file = _source_file(
        """
        class Counter {
            Counter() {}
            void reset() { count = 0; }
            int next() { return ++count; }
            private int count;
        }
        """,
        "Counter.java",
    )
    chunks = FunctionExtractor().extract(source_file, default_registry()[".java"])
    assert [chunk.source.decode("utf-8") for chunk in chunks] == [
        "void reset() { count = 0; }",
        "int next() { return ++count; }",
    ]


def test_tree_sitter_cpp_skips_declarations() -> None:
    source_file = _source_file(
        """
        int add(int a, int b);

        int add(int a, int b) {
            return a + b;
        }
        """,
        "math.cpp",
    )
    chunks = FunctionExtractor().extract(source_file, default_registry()[".cpp"])
    assert [chunk.source.decode("utf-8") for chunk in chunks] == [
        "int add(int a, int b) {\n    return a + b;\n}"
    ]


def test_tree_sitter_parser_rejects_unknown_grammar() -> None:
    parser = TreeSitterParser()
    assert parser.supports("python")
    assert not parser.supports("cobol")
    with pytest.raises(ExtractionError):
        parser.parse(b"IDENTIFICATION DIVISION.", "cobol")
