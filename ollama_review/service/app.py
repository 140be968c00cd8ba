"""FastAPI application exposing the review pipeline over HTTP."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..config import ReviewConfig, load_config
from ..models import RunSummary
from ..pipeline import ReviewPipeline, build_pipeline

PipelineFactory = Callable[[ReviewConfig], ReviewPipeline]


class ReviewRequest(BaseModel):
    repository: Optional[str] = None
    source: Optional[str] = None
    output: Optional[str] = None


class ReviewResponse(BaseModel):
    status: str
    output_path: str
    sections: int
    failed_chunks: int
    files_reviewed: int


class HealthResponse(BaseModel):
    status: str


def _default_pipeline(config: ReviewConfig) -> ReviewPipeline:
    return build_pipeline(config)


def _resolve_output(root: Path, requested: str) -> Path:
    """Place a client-supplied report path under the service root."""
    candidate = Path(requested)
    if candidate.is_absolute() or ".." in candidate.parts:
        raise RuntimeError(f"output must be a relative path inside {root}: {requested}")
    return root / candidate


def create_app(
    pipeline_factory: PipelineFactory = _default_pipeline,
    config: ReviewConfig | None = None,
) -> FastAPI:
    """Create the FastAPI application serving review runs."""

    settings = config or load_config()
    app = FastAPI(title="Ollama Review Service", version=__version__)

    async def get_pipeline() -> ReviewPipeline:
        # A fresh pipeline per request keeps runs independent of each other.
        return pipeline_factory(settings)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/review", response_model=ReviewResponse)
    async def review(
        payload: ReviewRequest,
        pipeline: ReviewPipeline = Depends(get_pipeline),
    ) -> ReviewResponse:
        target = payload.source or payload.repository or "."
        output = _resolve_output(settings.root, payload.output) if payload.output else settings.output

        def _run_review() -> RunSummary:
            return pipeline.run_to_file(target, output)

        loop = asyncio.get_running_loop()
        summary = await loop.run_in_executor(None, _run_review)
        return ReviewResponse(
            status="ok",
            output_path=str(summary.output_path),
            sections=summary.sections,
            failed_chunks=summary.chunks_failed,
            files_reviewed=summary.files_reviewed,
        )

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(_: Any, exc: RuntimeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000, config: ReviewConfig | None = None
) -> None:  # pragma: no cover - integration path
    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
