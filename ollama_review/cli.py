"""CLI entrypoints for ollama-review commands."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path

from .config import DEFAULT_CONFIG_FILE, load_config
from .errors import ConfigError, ModelUnavailableError, ReportWriteError
from .llm.client import OllamaClient
from .llm.readiness import ensure_model
from .logging import configure_logging
from .models import ReviewOutcome
from .pipeline import build_pipeline


def _add_common_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    default: object = argparse.SUPPRESS if suppress_default else False
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--config",
        default=argparse.SUPPRESS if suppress_default else DEFAULT_CONFIG_FILE,
        help=f"Config file (default is {DEFAULT_CONFIG_FILE}).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ollama-review",
        description="Review source code function by function with a local Ollama model.",
    )
    _add_common_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    review_parser = subparsers.add_parser(
        "review",
        help="Review a repository or a single source file.",
    )
    _add_common_options(review_parser, suppress_default=True)
    review_parser.add_argument(
        "-r",
        "--repository",
        default=".",
        help="Repository to review (defaults to current directory).",
    )
    review_parser.add_argument(
        "-s",
        "--source",
        default=None,
        help="Single source file to review; takes precedence over --repository.",
    )
    review_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Report path; overrides the configured output.",
    )
    review_parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Do not echo reviews; log warnings only.",
    )
    review_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Pull a missing model without asking.",
    )
    review_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write diagnostics to this file.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_common_options(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def _confirm_pull(model: str) -> bool:
    try:
        answer = input(f"Model {model} not found. Pull now? [y/N]: ")
    except EOFError:
        return False
    return answer.strip().lower() == "y"


def _echo_review(outcome: ReviewOutcome) -> None:
    print(outcome.text)


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for ollama-review commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "quiet", False)),
        log_file=getattr(args, "log_file", None),
    )

    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        parser.exit(1, f"ollama-review: {exc}\n")

    if args.command == "review":
        if args.output:
            config = dataclasses.replace(config, output=Path(args.output))
        target = args.source or args.repository
        try:
            client = OllamaClient(config.ollama_host, request_timeout=config.request_timeout)
            confirm = (lambda _model: True) if args.yes else _confirm_pull
            ensure_model(client, config.model, confirm)
            pipeline = build_pipeline(
                config,
                backend=client,
                on_outcome=None if args.quiet else _echo_review,
            )
            summary = pipeline.run_to_file(target, config.output)
        except (ConfigError, ModelUnavailableError, ReportWriteError) as exc:
            parser.exit(1, f"ollama-review: {exc}\n")
        except OSError as exc:
            parser.exit(1, f"ollama-review: review failed: {exc}\n")
        print(f"Review completed: {summary.output_path}")
    elif args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port, config=config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
