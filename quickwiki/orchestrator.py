"""Pipeline orchestration: scan, select, read, plan, compile, index."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List

from .compiler import PageCompiler
from .config import QuickWikiConfig, load_config
from .content_store import ContentStore, render_tree
from .logging import get_logger
from .models import FileContent, RunOutcome
from .oracle.client import Oracle, RunnerOracle
from .oracle.retry import RetryPolicy
from .oracle.runner import LLMRunner
from .planner import StructurePlanner
from .prompting import PromptBuilder
from .selector import RelevanceSelector


class Orchestrator:
    """Coordinates one documentation run for a repository.

    Stages run strictly one after another because each consumes the previous
    stage's output. Fatal errors propagate as :class:`~quickwiki.errors.QuickWikiError`
    subclasses; per-page failures only show up in the returned report.
    """

    def __init__(
        self,
        config: QuickWikiConfig | None = None,
        *,
        oracle: Oracle | None = None,
        prompt_builder: PromptBuilder | None = None,
        store: ContentStore | None = None,
    ) -> None:
        self.config = config
        self._oracle = oracle
        self._prompt_builder = prompt_builder
        self._store = store
        self.logger = get_logger("orchestrator")

    async def run(self, repo_path: str | Path, output_dir: str | Path | None = None) -> RunOutcome:
        repo = Path(repo_path).expanduser().resolve()
        config = self.config or load_config(repo)
        target_dir = config.resolve_output_dir(output_dir)

        self.logger.info("Starting documentation generation for: %s", repo)
        self.logger.info("Output directory: %s", target_dir)

        store = self._store or ContentStore(
            repo,
            max_file_bytes=config.scan.max_file_bytes,
            exclude_paths=config.scan.exclude_paths,
        )
        prompts = self._prompt_builder or PromptBuilder(config.templates_dir)
        oracle = await self._resolve_oracle(config)

        self.logger.info("Scanning repository structure...")
        tree = await asyncio.to_thread(store.list_tree)
        summary = render_tree(tree).splitlines()[-1]
        self.logger.info("Repository scan complete: %s", summary)

        selector = RelevanceSelector(
            oracle,
            prompts,
            file_count=config.selection.file_count,
            digest_chars=config.selection.digest_chars,
        )

        self.logger.info("Selecting initial relevant files...")
        initial_paths = await selector.select_initial(tree)
        self.logger.info("Selected %d initial files", len(initial_paths))
        initial_contents = await store.read_many(initial_paths)

        self.logger.info("Selecting additional relevant files...")
        additional_paths = await selector.select_additional(tree, initial_contents)
        self.logger.info("Selected %d additional files", len(additional_paths))
        additional_contents = await store.read_many(additional_paths)

        all_contents: List[FileContent] = [*initial_contents, *additional_contents]
        self.logger.info("Generating documentation structure from %d files...", len(all_contents))
        planner = StructurePlanner(oracle, prompts, excerpt_chars=config.planning.excerpt_chars)
        structure = await planner.plan(all_contents)
        self.logger.info("Created structure with %d pages", len(structure.pages))

        compiler = PageCompiler(
            oracle,
            store,
            target_dir,
            prompts,
            concurrency=config.compile.concurrency,
        )
        report = await compiler.compile_all(structure)

        self.logger.info("Documentation generated at %s", target_dir)
        return RunOutcome(
            repo_path=repo,
            output_dir=target_dir,
            structure=structure,
            report=report,
        )

    async def _resolve_oracle(self, config: QuickWikiConfig) -> Oracle:
        if self._oracle is not None:
            return self._oracle
        self.logger.info("Initializing model endpoint...")
        runner = LLMRunner.from_config(config.llm)
        oracle = RunnerOracle(
            runner,
            retry=RetryPolicy(
                retries=config.llm.max_retries,
                initial_delay=config.llm.retry_initial_delay,
            ),
        )
        await oracle.initialize()
        return oracle


__all__ = ["Orchestrator"]
