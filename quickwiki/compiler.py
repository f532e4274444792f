"""Per-page markdown generation and persistence."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

from .content_store import ContentStore
from .errors import PageGenerationFailed, PersistenceFailure
from .index import INDEX_FILENAME, IndexComposer, page_filename
from .logging import get_logger
from .models import CompileReport, PageFailure
from .oracle.client import Oracle
from .prompting import PromptBuilder
from .schemas import DocPage, DocStructure, PageBody, parse_structured


class PageCompiler:
    """Generates one markdown file per planned page, then the index.

    Pages are attempted in ``structure.pages`` order. A failure on one page is
    logged and recorded in the report; it never stops the remaining pages.
    ``concurrency`` bounds how many pages are generated at once.
    """

    def __init__(
        self,
        oracle: Oracle,
        store: ContentStore,
        output_dir: Path,
        prompts: PromptBuilder | None = None,
        *,
        composer: IndexComposer | None = None,
        concurrency: int = 1,
    ) -> None:
        self.oracle = oracle
        self.store = store
        self.output_dir = Path(output_dir)
        self.prompts = prompts or PromptBuilder()
        self.composer = composer or IndexComposer()
        self.concurrency = max(1, concurrency)
        self.logger = get_logger("compiler")

    async def compile_all(self, structure: DocStructure) -> CompileReport:
        await asyncio.to_thread(self._prepare_output_dir)

        total = len(structure.pages)
        self.logger.info("Generating %d documentation pages...", total)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _guarded(position: int, page: DocPage) -> Optional[PageFailure]:
            async with semaphore:
                return await self._compile_page(position, total, page)

        outcomes = await asyncio.gather(
            *(_guarded(position, page) for position, page in enumerate(structure.pages, start=1))
        )
        failures: List[PageFailure] = [outcome for outcome in outcomes if outcome is not None]

        index_path = await asyncio.to_thread(self.write_index, structure)
        report = CompileReport(
            succeeded=total - len(failures),
            failed=failures,
            index_path=index_path,
        )
        self.logger.info(
            "Compiled %d/%d pages (%d failed)", report.succeeded, total, len(failures)
        )
        return report

    def write_index(self, structure: DocStructure) -> Path:
        index_path = self.output_dir / INDEX_FILENAME
        try:
            index_path.write_text(self.composer.compose(structure), encoding="utf-8")
        except OSError as exc:
            raise PersistenceFailure(f"Failed to write {index_path}: {exc}") from exc
        self.logger.debug("Index written to %s", index_path)
        return index_path

    async def _compile_page(self, position: int, total: int, page: DocPage) -> Optional[PageFailure]:
        self.logger.info("[%d/%d] Generating: %s - %s", position, total, page.id, page.title)
        try:
            body = await self.generate_body(page)
            await asyncio.to_thread(self._write_page, page, body)
        except Exception as exc:  # one bad page must not block the rest
            self.logger.error("Failed to generate page %s (%s): %s", page.id, page.title, exc)
            return PageFailure(page_id=page.id, title=page.title, reason=str(exc))
        self.logger.info("Generated: %s", page.id)
        return None

    async def generate_body(self, page: DocPage) -> str:
        files = await self.store.read_many(page.relevant_file_paths)
        prompt = self.prompts.page(page, files)
        try:
            raw = await self.oracle.respond_structured(prompt, PageBody)
            if isinstance(raw, PageBody):
                return raw.raw_markdown_content
            return parse_structured(PageBody, raw).raw_markdown_content
        except Exception as exc:
            raise PageGenerationFailed(page.id, str(exc)) from exc

    def _write_page(self, page: DocPage, body: str) -> Path:
        target = self.output_dir / page_filename(page.id)
        try:
            target.write_text(body, encoding="utf-8", newline="")
        except OSError as exc:
            raise PersistenceFailure(f"Failed to write {target}: {exc}") from exc
        return target

    def _prepare_output_dir(self) -> None:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceFailure(
                f"Failed to create output directory {self.output_dir}: {exc}"
            ) from exc
        self.logger.info("Output directory: %s", self.output_dir)


__all__ = ["PageCompiler"]
