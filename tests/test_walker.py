"""Tests for ollama_review.walker."""

from __future__ import annotations

from pathlib import Path

import pytest

from ollama_review.languages import default_registry
from ollama_review.walker import DirectoryWalker, display_path, extension_of, iter_files
from tests._fixtures.repo_builder import RepoBuilder


def _relative(paths, root: Path) -> list[str]:
    return [path.relative_to(root).as_posix() for path in paths]


def test_iter_files_interleaves_files_and_directories_lexically(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "c.py": "",
            "a.py": "",
            "b/z.py": "",
            "b/a/inner.py": "",
            "B.py": "",
        }
    )
    root = repo_builder.path()

    assert _relative(iter_files(root), root) == [
        "B.py",
        "a.py",
        "b/a/inner.py",
        "b/z.py",
        "c.py",
    ]


def test_excluded_directories_are_pruned_at_any_depth(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/main.py": "",
            "src/vendor/lib.py": "",
            "vendor/top.py": "",
            "docs/vendor.py": "",
        }
    )
    root = repo_builder.path()

    paths = _relative(iter_files(root, {"vendor"}), root)

    assert paths == ["docs/vendor.py", "src/main.py"]


def test_root_is_never_excluded_by_name(tmp_path: Path) -> None:
    root = tmp_path / "vendor"
    (root / "vendor").mkdir(parents=True)
    (root / "keep.py").write_text("", encoding="utf-8")
    (root / "vendor" / "drop.py").write_text("", encoding="utf-8")

    assert _relative(iter_files(root, {"vendor"}), root) == ["keep.py"]


def test_single_file_root_is_visited_alone(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"one.py": "", "two.py": ""})
    target = repo_builder.path() / "one.py"

    assert list(iter_files(target)) == [target]
    assert display_path(target, target) == target.as_posix()


def test_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        list(iter_files(tmp_path / "missing"))


def test_directory_listing_errors_propagate(repo_builder: RepoBuilder, monkeypatch) -> None:
    repo_builder.write({"ok.py": "", "locked/secret.py": ""})
    import ollama_review.walker as walker_module

    original = walker_module._sorted_entries

    def flaky(directory: Path):
        if directory.name == "locked":
            raise PermissionError(13, "Permission denied", str(directory))
        return original(directory)

    monkeypatch.setattr(walker_module, "_sorted_entries", flaky)

    with pytest.raises(PermissionError):
        list(iter_files(repo_builder.path()))


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("main.py", ".py"),
        ("archive.tar.gz", ".gz"),
        ("Makefile", ""),
        (".bashrc", ".bashrc"),
        ("UPPER.PY", ".PY"),
        ("..py", ".py"),
        ("trailing.", "."),
    ],
)
def test_extension_of(name: str, expected: str) -> None:
    assert extension_of(Path("dir") / name) == expected


def test_candidates_skip_unregistered_extensions(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"a.py": "", "b.txt": "", "c.go": "", "README.md": ""})
    walker = DirectoryWalker(default_registry())

    found = [(path.name, spec.grammar_id) for path, spec in walker.candidates(repo_builder.path())]

    assert found == [("a.py", "python"), ("c.go", "go")]


def test_read_returns_none_for_unreadable_file(repo_builder: RepoBuilder, caplog) -> None:
    root = repo_builder.path()

    assert DirectoryWalker.read(root / "ghost.py", root) is None
    assert "Read error" in caplog.text


def test_read_uses_root_relative_display_path(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"pkg/mod.py": "x = 1\n"})
    root = repo_builder.path()

    source_file = DirectoryWalker.read(root / "pkg" / "mod.py", root)

    assert source_file is not None
    assert source_file.display_path == "pkg/mod.py"
    assert source_file.source == b"x = 1\n"
