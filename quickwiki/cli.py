"""CLI entrypoints for quickwiki commands."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from .config import QuickWikiConfig, load_config
from .content_store import ContentStore
from .errors import QuickWikiError
from .logging import configure_logging
from .oracle.client import PROBE_PROMPT, RunnerOracle
from .oracle.retry import RetryPolicy
from .oracle.runner import LLMRunner
from .orchestrator import Orchestrator


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_llm_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-k",
        "--api-key",
        help="API key for the model endpoint (defaults to QUICKWIKI_LLM_API_KEY / OPENAI_API_KEY / GEMINI_API_KEY).",
    )
    parser.add_argument("--model", help="Model name to request.")
    parser.add_argument("--base-url", help="OpenAI-compatible base URL of the model endpoint.")
    parser.add_argument(
        "--allow-remote",
        action="store_true",
        default=None,
        help="Permit a non-local base URL.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quickwiki",
        description="Generate a markdown wiki for a source repository with an LLM.",
    )
    _add_verbose_option(parser)
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate documentation for a repository.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_llm_options(generate_parser)
    generate_parser.add_argument("path", help="Path to the repository to document.")
    generate_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output directory for documentation (default: <repository>/wiki).",
    )
    generate_parser.add_argument(
        "--concurrency",
        type=int,
        help="Number of pages to generate at once (default: 1).",
    )

    scan_parser = subparsers.add_parser("test-scan", help="Print the repository tree as JSON.")
    _add_verbose_option(scan_parser, suppress_default=True)
    scan_parser.add_argument("directory", help="Repository directory to scan.")

    read_parser = subparsers.add_parser("test-read", help="Print one file through the content store.")
    _add_verbose_option(read_parser, suppress_default=True)
    read_parser.add_argument("directory", help="Repository directory.")
    read_parser.add_argument("file", help="File path relative to the repository.")

    llm_parser = subparsers.add_parser("test-llm", help="Check the model endpoint with one prompt.")
    _add_verbose_option(llm_parser, suppress_default=True)
    _add_llm_options(llm_parser)
    llm_parser.add_argument("--prompt", default="What model are you?", help="Prompt to send.")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def _apply_overrides(config: QuickWikiConfig, args: argparse.Namespace) -> QuickWikiConfig:
    api_key = getattr(args, "api_key", None)
    if api_key:
        config.llm.api_key = api_key
    model = getattr(args, "model", None)
    if model:
        config.llm.model = model
    base_url = getattr(args, "base_url", None)
    if base_url:
        config.llm.base_url = base_url
    if getattr(args, "allow_remote", None):
        config.llm.allow_remote = True
    concurrency = getattr(args, "concurrency", None)
    if concurrency is not None and concurrency > 0:
        config.compile.concurrency = concurrency
    return config


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for quickwiki commands."""
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "generate":
        _run_generate(parser, args)
    elif args.command == "test-scan":
        store = ContentStore(args.directory)
        try:
            tree = store.list_tree()
        except QuickWikiError as exc:
            parser.exit(1, f"Error: {exc}\n")
        print(json.dumps([node.to_dict() for node in tree], indent=2))
    elif args.command == "test-read":
        store = ContentStore(args.directory)
        print(asyncio.run(store.read_one(args.file)))
    elif args.command == "test-llm":
        _run_test_llm(parser, args)
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_generate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    repo_path = Path(args.path).expanduser().resolve()
    try:
        config = _apply_overrides(load_config(repo_path), args)
        outcome = asyncio.run(Orchestrator(config).run(repo_path, args.output))
    except QuickWikiError as exc:
        parser.exit(1, f"Error: {exc}\n")
    except Exception as exc:  # pragma: no cover - defensive guard
        parser.exit(1, f"Error: {exc}\nRun with --verbose for more details.\n")

    report = outcome.report
    print(f"Documentation generated at {_relativize(outcome.output_dir)}")
    print(f"{report.succeeded} of {report.attempted} pages written")
    for failure in report.failed:
        print(f"  failed: {failure.page_id} ({failure.title}): {failure.reason}")


def _run_test_llm(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        config = _apply_overrides(load_config(Path.cwd()), args)
        runner = LLMRunner.from_config(config.llm)
        oracle = RunnerOracle(
            runner,
            retry=RetryPolicy(
                retries=config.llm.max_retries,
                initial_delay=config.llm.retry_initial_delay,
            ),
        )

        async def _probe() -> str:
            await oracle.initialize()
            return await oracle.respond(args.prompt or PROBE_PROMPT)

        print(asyncio.run(_probe()))
    except QuickWikiError as exc:
        parser.exit(1, f"Error: {exc}\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
