"""Review pipeline: walk, extract, prompt, dispatch and aggregate."""

from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .config import ReviewConfig
from .errors import ExtractionError, PromptError
from .extractor import FunctionExtractor
from .languages import LanguageRegistry, default_registry
from .llm.client import ChatBackend, OllamaClient
from .llm.dispatcher import ReviewDispatcher
from .logging import get_logger
from .models import CodeChunk, LanguageSpec, ReviewOutcome, RunSummary, SourceFile
from .prompting.builder import PromptBuilder
from .report import ReportAggregator
from .walker import DirectoryWalker

OutcomeHook = Callable[[ReviewOutcome], None]


class ReviewPipeline:
    """Coordinates one review run over a repository or a single file.

    Files are handled strictly one after another. With ``workers > 1`` the
    chunks of the current file are reviewed concurrently, but outcomes are
    gathered in chunk order so the report layout never depends on timing.
    """

    def __init__(
        self,
        dispatcher: ReviewDispatcher,
        *,
        registry: LanguageRegistry | None = None,
        extractor: FunctionExtractor | None = None,
        prompt_builder: PromptBuilder | None = None,
        excluded_dirs: Iterable[str] = (),
        workers: int = 1,
        on_outcome: OutcomeHook | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.dispatcher = dispatcher
        self.registry = registry or default_registry()
        self.extractor = extractor or FunctionExtractor()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.walker = DirectoryWalker(self.registry, frozenset(excluded_dirs))
        self.workers = workers
        self.on_outcome = on_outcome
        self.logger = get_logger("pipeline")

    def run(self, target: str | Path) -> tuple[ReportAggregator, RunSummary]:
        """Review every eligible file under ``target`` and return the report.

        Traversal errors propagate; per-file and per-chunk failures are
        logged, counted and left out of the report.
        """
        root = Path(target).expanduser()
        self.logger.info("Starting review of %s", root)
        report = ReportAggregator()
        summary = RunSummary()
        executor: Optional[Executor] = (
            ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="ollama-review")
            if self.workers > 1
            else None
        )
        try:
            for path, spec in self.walker.candidates(root):
                summary.files_visited += 1
                source_file = self.walker.read(path, root)
                if source_file is None:
                    summary.files_skipped += 1
                    summary.failures.append(f"{path}: unreadable")
                    continue
                self._review_file(source_file, spec, report, summary, executor)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        summary.sections = len(report)
        self.logger.info(
            "Reviewed %d file(s): %d section(s), %d failed chunk(s)",
            summary.files_reviewed,
            summary.sections,
            summary.chunks_failed,
        )
        return report, summary

    def run_to_file(self, target: str | Path, output_path: str | Path) -> RunSummary:
        report, summary = self.run(target)
        summary.output_path = report.write(Path(output_path).expanduser())
        return summary

    def review_chunk(self, chunk: CodeChunk) -> ReviewOutcome:
        try:
            prompt = self.prompt_builder.build(chunk.language_tag, chunk.source)
        except PromptError as exc:
            self.logger.warning("Prompt error %s[%d]: %s", chunk.file_path, chunk.index, exc)
            return ReviewOutcome(chunk=chunk, text="", success=False, error=str(exc))
        return self.dispatcher.dispatch(chunk, prompt)

    def _review_file(
        self,
        source_file: SourceFile,
        spec: LanguageSpec,
        report: ReportAggregator,
        summary: RunSummary,
        executor: Optional[Executor],
    ) -> None:
        try:
            chunks = self.extractor.extract(source_file, spec)
        except ExtractionError as exc:
            self.logger.warning("Parse error %s: %s", source_file.display_path, exc)
            summary.files_skipped += 1
            summary.failures.append(f"{source_file.display_path}: {exc}")
            return
        if not chunks:
            self.logger.debug("No %s nodes in %s", spec.function_node_type, source_file.display_path)
            summary.files_skipped += 1
            return

        summary.files_reviewed += 1
        summary.chunks_extracted += len(chunks)
        for outcome in self._review_chunks(chunks, executor):
            if not outcome.success:
                summary.chunks_failed += 1
                summary.failures.append(f"{outcome.chunk.label}: {outcome.error}")
                continue
            report.add(outcome)
            if self.on_outcome is not None:
                self.on_outcome(outcome)

    def _review_chunks(
        self, chunks: List[CodeChunk], executor: Optional[Executor]
    ) -> List[ReviewOutcome]:
        if executor is None or len(chunks) < 2:
            return [self.review_chunk(chunk) for chunk in chunks]
        futures = [executor.submit(self.review_chunk, chunk) for chunk in chunks]
        return [future.result() for future in futures]


def build_pipeline(
    config: ReviewConfig,
    *,
    backend: ChatBackend | None = None,
    registry: LanguageRegistry | None = None,
    on_outcome: OutcomeHook | None = None,
) -> ReviewPipeline:
    """Wire a ReviewPipeline from resolved configuration values."""
    chat_backend = backend or OllamaClient(config.ollama_host, request_timeout=config.request_timeout)
    dispatcher = ReviewDispatcher(chat_backend, config.model or "")
    return ReviewPipeline(
        dispatcher,
        registry=registry,
        extractor=FunctionExtractor(skip_nested=config.skip_nested),
        prompt_builder=PromptBuilder(config.guideline),
        excluded_dirs=config.exclude,
        workers=config.workers,
        on_outcome=on_outcome,
    )


__all__ = ["OutcomeHook", "ReviewPipeline", "build_pipeline"]
